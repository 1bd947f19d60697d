"""Core configuration dataclasses.

We keep config loading outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple

PLATFORMS = ("GitHub", "Gitee", "Gitcode")

# config key -> platform name used by the API adapter
_COMMIT_LIST_KEYS = {"GitHub": "github", "Gitee": "gitee", "Gitcode": "gitcode"}
_RELEASE_LIST_KEYS = {"GitHub": "github_releases", "Gitee": "gitee_releases"}


class ConfigError(ValueError):
    """Raised when config.json does not match the expected schema."""


@dataclass(frozen=True)
class RepositoryGroupConfig:
    """One configured unit of repositories plus its delivery targets."""

    commits: Dict[str, Tuple[str, ...]]
    releases: Dict[str, Tuple[str, ...]]
    auto_path: bool = False
    exclude: frozenset = frozenset()
    # Extra auto-discovery candidates on top of the scanned checkouts.
    discovered: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    groups: Tuple[str, ...] = ()
    directs: Tuple[str, ...] = ()

    def commit_repos(self, platform: str) -> Tuple[str, ...]:
        return self.commits.get(platform, ())

    def release_repos(self, platform: str) -> Tuple[str, ...]:
        return self.releases.get(platform, ())

    def with_commit_repos(self, platform: str, repos: Tuple[str, ...]) -> "RepositoryGroupConfig":
        commits = dict(self.commits)
        commits[platform] = tuple(repos)
        return replace(self, commits=commits)


@dataclass(frozen=True)
class CodeUpdateConfig:
    """Global polling settings plus every configured repository group."""

    tokens: Dict[str, Tuple[str, ...]]
    groups: Tuple[RepositoryGroupConfig, ...]
    auto_branch: bool = False
    interval_minutes: int = 30
    send_delay_seconds: float = 5.0
    request_timeout_seconds: float = 15.0
    checkout_dirs: Tuple[str, ...] = ()

    def credentials(self, platform: str) -> Tuple[str, ...]:
        return self.tokens.get(platform, ())


def _resolve_secret(value: str) -> str:
    # "env:NAME" keeps tokens out of config.json
    if value.startswith("env:"):
        return os.getenv(value[4:], "")
    return value


def normalize_credentials(raw: Any) -> Tuple[str, ...]:
    """Return credentials as a tuple, whether configured as a scalar or a list."""

    if raw is None:
        return ()
    if isinstance(raw, str):
        values = [raw]
    elif isinstance(raw, (list, tuple)):
        values = list(raw)
    else:
        raise ConfigError(f"Token must be a string or a list of strings, got {type(raw).__name__}")

    resolved: List[str] = []
    for value in values:
        if not isinstance(value, str):
            raise ConfigError("Token lists may only contain strings")
        secret = _resolve_secret(value.strip())
        if secret:
            resolved.append(secret)
    return tuple(resolved)


def _string_list(entry: dict, key: str) -> Tuple[str, ...]:
    value = entry.get(key) or []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        raise ConfigError(f"'{key}' must be a list")
    # Numeric chat ids are common for targets, keep everything as text.
    return tuple(str(item).strip() for item in value if str(item).strip())


def build_group_config(entry: dict) -> RepositoryGroupConfig:
    """Normalize one raw group entry from config.json."""

    if not isinstance(entry, dict):
        raise ConfigError("Each entry of code_update.list must be an object")

    commits = {platform: _string_list(entry, key) for platform, key in _COMMIT_LIST_KEYS.items()}
    releases = {platform: _string_list(entry, key) for platform, key in _RELEASE_LIST_KEYS.items()}

    raw_discovered = entry.get("discovered") or {}
    if not isinstance(raw_discovered, dict):
        raise ConfigError("'discovered' must be an object keyed by platform")
    discovered = {
        platform: _string_list(raw_discovered, key)
        for platform, key in _COMMIT_LIST_KEYS.items()
        if key in raw_discovered
    }

    return RepositoryGroupConfig(
        commits=commits,
        releases=releases,
        auto_path=bool(entry.get("auto_path", False)),
        exclude=frozenset(_string_list(entry, "exclude")),
        discovered=discovered,
        groups=_string_list(entry, "groups"),
        directs=_string_list(entry, "directs"),
    )


def build_code_update_config(raw: Optional[dict]) -> CodeUpdateConfig:
    """Build the core config from the ``code_update`` section of config.json."""

    raw = raw or {}
    if not isinstance(raw, dict):
        raise ConfigError("'code_update' must be an object")

    tokens = {
        "GitHub": normalize_credentials(raw.get("github_token")),
        "Gitee": normalize_credentials(raw.get("gitee_token")),
        "Gitcode": normalize_credentials(raw.get("gitcode_token")),
    }
    groups = tuple(build_group_config(entry) for entry in raw.get("list", []) or [])

    try:
        interval = int(raw.get("interval_minutes", 30))
        delay = float(raw.get("send_delay_seconds", 5))
        timeout = float(raw.get("request_timeout_seconds", 15))
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid numeric setting in code_update: {exc}") from exc
    if interval <= 0:
        raise ConfigError("interval_minutes must be positive")
    if delay < 0:
        raise ConfigError("send_delay_seconds must not be negative")

    return CodeUpdateConfig(
        tokens=tokens,
        groups=groups,
        auto_branch=bool(raw.get("auto_branch", False)),
        interval_minutes=interval,
        send_delay_seconds=delay,
        request_timeout_seconds=timeout,
        checkout_dirs=_string_list(raw, "checkout_dirs"),
    )
