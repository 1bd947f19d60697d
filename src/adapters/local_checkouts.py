"""Repository discovery from local git checkouts.

Every direct subdirectory of a configured checkout directory that is a git
repository contributes its ``origin`` remote, sorted by hosting platform.
Reading checkouts is blocking, so discovery runs in a worker thread.
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
from typing import Dict, Iterable, List, Optional, Tuple
from urllib.parse import urlsplit

from git import Repo
from git.exc import InvalidGitRepositoryError, NoSuchPathError

LOGGER = logging.getLogger(__name__)

HOST_PLATFORMS = {
    "github.com": "GitHub",
    "gitee.com": "Gitee",
    "gitcode.com": "Gitcode",
    "gitcode.net": "Gitcode",
}

# git@github.com:owner/repo.git
_SCP_LIKE = re.compile(r"^(?:[\w.-]+@)?([\w.-]+):(?!//)(.+)$")


def parse_remote_url(url: str) -> Optional[Tuple[str, str]]:
    """Return ``(platform, owner/repo)`` for a supported remote URL."""

    url = url.strip()
    if "://" in url:
        parts = urlsplit(url)
        host, path = parts.hostname or "", parts.path
    else:
        match = _SCP_LIKE.match(url)
        if not match:
            return None
        host, path = match.group(1), match.group(2)

    platform = HOST_PLATFORMS.get(host.lower())
    if platform is None:
        return None

    path = path.strip("/")
    if path.endswith(".git"):
        path = path[: -len(".git")]
    segments = [segment for segment in path.split("/") if segment]
    if len(segments) != 2:
        return None
    return platform, "/".join(segments)


def _origin_url(path: str) -> Optional[str]:
    try:
        repo = Repo(path)
    except (InvalidGitRepositoryError, NoSuchPathError):
        return None
    with repo:
        reader = repo.config_reader(config_level="repository")
        return reader.get_value('remote "origin"', "url", default="") or None


class LocalCheckoutDiscovery:
    """Discovery adapter that scans checkout directories for git remotes."""

    def __init__(self, roots: Iterable[str]) -> None:
        self._roots = tuple(roots)

    def scan(self) -> Dict[str, Tuple[str, ...]]:
        found: Dict[str, List[str]] = {}
        for root in self._roots:
            if not os.path.isdir(root):
                LOGGER.warning("Checkout directory %s does not exist", root)
                continue
            for name in sorted(os.listdir(root)):
                path = os.path.join(root, name)
                if not os.path.isdir(path):
                    continue
                url = _origin_url(path)
                if not url:
                    continue
                parsed = parse_remote_url(url)
                if parsed is None:
                    LOGGER.debug("Skipping %s: unsupported remote %s", path, url)
                    continue
                platform, repo = parsed
                found.setdefault(platform, []).append(repo)

        LOGGER.debug("Discovered %s local checkouts", sum(len(repos) for repos in found.values()))
        return {platform: tuple(repos) for platform, repos in found.items()}

    async def discover(self) -> Dict[str, Tuple[str, ...]]:
        return await asyncio.to_thread(self.scan)
