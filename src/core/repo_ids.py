"""Helpers for working with repository identifiers (``owner/repo[:branch]``)."""

from __future__ import annotations

from typing import Iterable, List, Optional, Tuple

BRANCH_SEPARATOR = ":"


def split_repo_identifier(identifier: str) -> Tuple[str, Optional[str]]:
    """Split an identifier into (path, branch); branch is None when absent."""

    path, _, branch = identifier.partition(BRANCH_SEPARATOR)
    return path, branch or None


def build_repo_identifier(path: str, branch: Optional[str]) -> str:
    """Return the identifier, adding a branch suffix when needed."""

    if not branch:
        return path
    return f"{path}{BRANCH_SEPARATOR}{branch}"


def resolve_repo_list(
    explicit: Iterable[str],
    discovered: Iterable[str],
    exclude: Iterable[str],
    auto_discover: bool,
) -> List[str]:
    """Return the working set of repositories to poll.

    Without auto-discovery the explicit list passes through unchanged.
    With it, explicit and discovered identifiers are merged (duplicates
    collapsed, first occurrence wins) and excluded identifiers removed.
    """

    if not auto_discover:
        return list(explicit)

    excluded = set(exclude)
    merged = dict.fromkeys([*explicit, *discovered])
    return [repo for repo in merged if repo not in excluded]
