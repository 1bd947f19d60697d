"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any hosting platform or delivery channel types.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal, Optional, Tuple, Union

COMMITS = "commits"
RELEASES = "releases"


class AdapterSignal(Enum):
    """Non-payload outcomes a platform adapter may return."""

    # The adapter chose not to fetch (e.g. rate limited); nothing to report.
    SKIP = "skip"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class FetchRequest:
    """One (platform, data type) batch of repositories for a single cycle."""

    repos: Tuple[str, ...]
    platform: str
    credentials: Tuple[str, ...]
    data_type: str
    key_prefix: str


@dataclass(frozen=True)
class CommitStats:
    files: int
    additions: int
    deletions: int


@dataclass(frozen=True)
class CommitEntry:
    """Presentation record for the newest commit of a repository."""

    source: str
    repo: str
    branch: Optional[str]
    author_name: Optional[str]
    committer_name: Optional[str]
    author_start: str
    committer_start: str
    author_avatar: Optional[str]
    committer_avatar: Optional[str]
    avatar_differs: bool
    time_info: str
    text: str
    stats: Optional[CommitStats]
    kind: Literal["commit"] = "commit"


@dataclass(frozen=True)
class ReleaseEntry:
    """Presentation record for the newest release of a repository."""

    source: str
    repo: str
    tag: str
    author_name: Optional[str]
    author_start: str
    avatar: Optional[str]
    time_info: str
    text: str
    kind: Literal["release"] = "release"


ContentEntry = Union[CommitEntry, ReleaseEntry]


@dataclass(frozen=True)
class RenderedArtifact:
    """Opaque rendered output shared with every delivery target."""

    data: bytes
    filename: str
    mime_type: str
