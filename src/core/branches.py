"""Default branch resolution for repositories configured without a branch."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, List, Optional, Tuple

from core.concurrency import gather_settled
from core.config import PLATFORMS, CodeUpdateConfig
from core.ports import PlatformApiPort
from core.repo_ids import build_repo_identifier, split_repo_identifier

LOGGER = logging.getLogger(__name__)


class BranchCache:
    """Process-wide map of bare repository path to its default branch.

    Entries are never evicted; a restart simply resolves them again. Writes
    for the same path always carry the same value, so concurrent tasks may
    update it without locking.
    """

    def __init__(self) -> None:
        self._branches: Dict[str, str] = {}

    def get(self, path: str) -> Optional[str]:
        return self._branches.get(path)

    def set(self, path: str, branch: str) -> None:
        self._branches[path] = branch

    def __len__(self) -> int:
        return len(self._branches)


class BranchResolutionError(RuntimeError):
    pass


# (group index, platform, list index, pinned identifier)
_Resolution = Tuple[int, str, int, str]


async def _resolve_one(
    api: PlatformApiPort,
    cache: BranchCache,
    position: Tuple[int, str, int],
    path: str,
    credential: Optional[str],
) -> _Resolution:
    group_index, platform, list_index = position
    try:
        branch = await api.get_default_branch(path, platform, credential)
    except Exception as exc:
        raise BranchResolutionError(f"Failed to resolve default branch for {platform} {path}: {exc}") from exc
    if not branch:
        raise BranchResolutionError(
            f"Failed to resolve default branch for {platform} {path}: empty branch ({branch!r})"
        )
    cache.set(path, branch)
    return group_index, platform, list_index, build_repo_identifier(path, branch)


async def resolve_default_branches(
    config: CodeUpdateConfig,
    api: PlatformApiPort,
    cache: BranchCache,
) -> CodeUpdateConfig:
    """Return a copy of ``config`` with default branches pinned where resolved.

    Every unbranched commit repository is resolved concurrently; a failure for
    one repository leaves that entry unbranched without affecting the others.
    """

    if not config.auto_branch:
        return config

    tasks = []
    for group_index, group in enumerate(config.groups):
        for platform in PLATFORMS:
            credentials = config.credentials(platform)
            # Branch lookups are rare, the first token is enough.
            credential = credentials[0] if credentials else None
            for list_index, identifier in enumerate(group.commit_repos(platform)):
                path, branch = split_repo_identifier(identifier)
                if branch:
                    continue
                tasks.append(_resolve_one(api, cache, (group_index, platform, list_index), path, credential))

    if not tasks:
        return config

    resolutions = await gather_settled(tasks)

    pinned: Dict[Tuple[int, str], Dict[int, str]] = {}
    for group_index, platform, list_index, identifier in resolutions:
        pinned.setdefault((group_index, platform), {})[list_index] = identifier

    groups = list(config.groups)
    for (group_index, platform), replacements in pinned.items():
        group = groups[group_index]
        repos: List[str] = list(group.commit_repos(platform))
        for list_index, identifier in replacements.items():
            repos[list_index] = identifier
        groups[group_index] = group.with_commit_repos(platform, tuple(repos))

    if resolutions:
        LOGGER.info("Resolved %s default branches automatically", len(resolutions))
    return replace(config, groups=tuple(groups))
