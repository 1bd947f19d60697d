"""Check cycle orchestration across every configured repository group.

One cycle:
1) Discover local checkouts when any group enables auto-discovery
2) Resolve each group's repository lists (auto-discovery, exclusions)
3) Build one FetchRequest per non-empty platform x data type
4) Fetch all requests concurrently (dedup only for scheduled runs); a
   repository shared by several groups is fetched once per cycle
5) Render and deliver each group's entries
6) Report the total number of entries
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Mapping, Optional, Sequence, Union

from core.config import CodeUpdateConfig, RepositoryGroupConfig
from core.dedup import build_key_prefix
from core.delivery import DeliveryFanOut
from core.fetcher import CycleCache, FetchOrchestrator
from core.models import COMMITS, RELEASES, FetchRequest
from core.ports import DiscoveryPort, RequesterPort
from core.repo_ids import resolve_repo_list

LOGGER = logging.getLogger(__name__)

NO_CONFIG_REPLY = "No repositories are configured yet."

# (platform, data type, dedup key name)
_REQUEST_KINDS = (
    ("GitHub", COMMITS, "GitHub"),
    ("Gitee", COMMITS, "Gitee"),
    ("Gitcode", COMMITS, "Gitcode"),
    ("Gitee", RELEASES, "GiteeReleases"),
    ("GitHub", RELEASES, "GithubReleases"),
)


def build_fetch_requests(
    group: RepositoryGroupConfig,
    config: CodeUpdateConfig,
    discovered: Optional[Mapping[str, Sequence[str]]] = None,
) -> List[FetchRequest]:
    """Return the FetchRequests for one group, skipping empty combinations.

    ``discovered`` holds the repositories found in local checkouts; the
    group's own ``discovered`` entries are appended to them.
    """

    discovered = discovered or {}
    requests: List[FetchRequest] = []
    for platform, data_type, key in _REQUEST_KINDS:
        if data_type == COMMITS:
            repos = resolve_repo_list(
                group.commit_repos(platform),
                [*discovered.get(platform, ()), *group.discovered.get(platform, ())],
                group.exclude,
                group.auto_path,
            )
        else:
            repos = list(group.release_repos(platform))
        if not repos:
            continue
        requests.append(
            FetchRequest(
                repos=tuple(dict.fromkeys(repos)),
                platform=platform,
                credentials=config.credentials(platform),
                data_type=data_type,
                key_prefix=build_key_prefix(key),
            )
        )
    return requests


class CheckCycleController:
    """Ties repo resolution, fetching and delivery together per group."""

    def __init__(
        self,
        config_provider: Callable[[], CodeUpdateConfig],
        fetcher: FetchOrchestrator,
        delivery: DeliveryFanOut,
        discovery: Optional[DiscoveryPort] = None,
    ) -> None:
        self._config_provider = config_provider
        self._fetcher = fetcher
        self._delivery = delivery
        self._discovery = discovery

    async def _discover(self, config: CodeUpdateConfig) -> Mapping[str, Sequence[str]]:
        if self._discovery is None or not any(group.auto_path for group in config.groups):
            return {}
        try:
            return await self._discovery.discover()
        except Exception:
            LOGGER.exception("Discovering local checkouts failed")
            return {}

    async def check_updates(
        self,
        scheduled: bool,
        requester: Optional[RequesterPort] = None,
    ) -> Union[int, bool]:
        """Run one cycle and return the number of entries produced.

        Returns ``False`` when no repository group is configured.
        """

        config = self._config_provider()
        if not config.groups:
            LOGGER.info("No repositories configured, skipping update check")
            if not scheduled and requester is not None:
                await requester.reply(NO_CONFIG_REPLY)
            return False

        LOGGER.info("Checking repositories for updates")
        discovered = await self._discover(config)
        # Dedup keys carry no group, so a shared repository must be read once.
        cycle_cache: CycleCache = {}
        counts = await asyncio.gather(
            *(
                self._check_group(group, config, discovered, scheduled, requester, cycle_cache)
                for group in config.groups
            )
        )
        total = sum(counts)
        if total:
            LOGGER.info("Collected %s updates", total)
        else:
            LOGGER.info("No updates collected")
        return total

    async def _check_group(
        self,
        group: RepositoryGroupConfig,
        config: CodeUpdateConfig,
        discovered: Mapping[str, Sequence[str]],
        scheduled: bool,
        requester: Optional[RequesterPort],
        cycle_cache: CycleCache,
    ) -> int:
        try:
            requests = build_fetch_requests(group, config, discovered)
            entries = await self._fetcher.fetch_all(requests, scheduled, cycle_cache)
            if entries:
                await self._delivery.deliver(entries, group, scheduled, requester)
            return len(entries)
        except Exception:
            LOGGER.exception("Update check failed for a repository group")
            return 0
