"""Concurrent fetching of the newest commit or release per repository.

Each repository is processed independently: an exception for one repository
is logged with its platform, data type and identifier and never affects the
rest of the batch.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from core.branches import BranchCache
from core.dedup import DedupEngine
from core.formatting import format_commit, format_release
from core.models import COMMITS, AdapterSignal, ContentEntry, FetchRequest
from core.ports import PlatformApiPort
from core.repo_ids import split_repo_identifier

LOGGER = logging.getLogger(__name__)

NOT_FOUND_MESSAGES = frozenset({"Not Found", "Not Found Projec"})

CredentialPicker = Callable[[Sequence[str]], str]

# (key prefix, repository) -> the in-flight fetch of that repository
CycleCache = Dict[Tuple[str, str], "asyncio.Future[Optional[ContentEntry]]"]


def _is_not_found(data: Any) -> bool:
    if data is None or data is AdapterSignal.NOT_FOUND:
        return True
    return isinstance(data, dict) and data.get("message") in NOT_FOUND_MESSAGES


def _newest_marker(item: dict, data_type: str) -> Optional[str]:
    if data_type == COMMITS:
        return item.get("sha")
    # Gitee releases carry no node_id, only a numeric id.
    marker = item.get("node_id") or item.get("id")
    return str(marker) if marker is not None else None


class FetchOrchestrator:
    """Turns FetchRequests into ContentEntry records."""

    def __init__(
        self,
        api: PlatformApiPort,
        dedup: DedupEngine,
        branch_cache: BranchCache,
        pick_credential: CredentialPicker = random.choice,
    ) -> None:
        self._api = api
        self._dedup = dedup
        self._branch_cache = branch_cache
        self._pick_credential = pick_credential

    async def fetch_all(
        self,
        requests: Iterable[FetchRequest],
        scheduled: bool,
        cycle_cache: Optional[CycleCache] = None,
    ) -> List[ContentEntry]:
        """Run every request concurrently and concatenate their entries.

        Callers sharing a ``cycle_cache`` fetch each repository only once and
        all receive its entry.
        """

        batches = await asyncio.gather(*(self.fetch(request, scheduled, cycle_cache) for request in requests))
        return [entry for batch in batches for entry in batch]

    async def fetch(
        self,
        request: FetchRequest,
        scheduled: bool,
        cycle_cache: Optional[CycleCache] = None,
    ) -> List[ContentEntry]:
        content: List[ContentEntry] = []

        async def _collect(repo: str) -> None:
            if cycle_cache is None:
                entry = await self._fetch_repo(request, repo, scheduled)
            else:
                key = (request.key_prefix, repo)
                if key not in cycle_cache:
                    cycle_cache[key] = asyncio.ensure_future(self._fetch_repo(request, repo, scheduled))
                entry = await cycle_cache[key]
            if entry is not None:
                content.append(entry)

        await asyncio.gather(*(_collect(repo) for repo in request.repos if repo))
        return content

    async def _fetch_repo(self, request: FetchRequest, repo: str, scheduled: bool) -> Optional[ContentEntry]:
        source = request.platform
        data_type = request.data_type
        try:
            LOGGER.debug("Requesting %s %s: %s", source, data_type, repo)
            if data_type == COMMITS:
                path, branch = split_repo_identifier(repo)
            else:
                path, branch = repo, None
            if not branch:
                branch = self._branch_cache.get(path)
            credential = self._pick_credential(request.credentials) if request.credentials else None

            data = await self._api.get_repository_data(path, source, data_type, credential, branch)
            if data is AdapterSignal.SKIP:
                return None
            if _is_not_found(data):
                LOGGER.error("%s: repository %s does not exist", source, repo)
                return None
            if data_type == COMMITS and branch:
                data = [data]
            if not data or (data_type != COMMITS and not data[0].get("tag_name")):
                LOGGER.warning("%s: no %s data for %s", source, data_type, repo)
                return None

            newest = data[0]
            if scheduled:
                marker = _newest_marker(newest, data_type)
                if marker is None:
                    LOGGER.warning("%s: newest %s of %s carries no identifier", source, data_type, repo)
                    return None
                if await self._dedup.is_up_to_date(repo, request.key_prefix, marker):
                    LOGGER.debug("%s is up to date", repo)
                    return None
                LOGGER.info("Update detected for %s", repo)
                await self._dedup.record_update(repo, request.key_prefix, marker, scheduled)

            if data_type == COMMITS:
                return format_commit(newest, source, path, branch)
            return format_release(newest, source, repo)
        except Exception:
            LOGGER.exception("Failed to fetch %s %s for %s", source, data_type, repo)
            return None
