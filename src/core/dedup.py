"""Deduplication against the last-seen commit or release (core domain)."""

from __future__ import annotations

import json
import logging
from typing import Optional

from core.ports import StateStorePort

LOGGER = logging.getLogger(__name__)

KEY_ROOT = "DF:CodeUpdate"


def build_key_prefix(request_key: str) -> str:
    """Return the store key prefix for one request kind (e.g. ``GitHub``)."""

    return f"{KEY_ROOT}:{request_key}"


def build_dedup_key(prefix: str, repo: str) -> str:
    return f"{prefix}:{repo}"


def encode_marker(marker: str) -> str:
    return json.dumps([{"shacode": marker}])


def decode_marker(raw: str) -> Optional[str]:
    """Return the stored marker, or None if the value is not a marker record."""

    try:
        payload = json.loads(raw)
        return payload[0]["shacode"]
    except (ValueError, TypeError, LookupError):
        return None


class DedupEngine:
    """Compares fetched identifiers with the persisted last-seen marker.

    Only scheduled runs consult or update the store; on-demand runs always
    report the current state.
    """

    def __init__(self, store: StateStorePort) -> None:
        self._store = store

    async def is_up_to_date(self, repo: str, prefix: str, new_id: str) -> bool:
        key = build_dedup_key(prefix, repo)
        raw = await self._store.get(key)
        if raw is None:
            return False
        stored = decode_marker(raw)
        if stored is None:
            LOGGER.warning("Ignoring unreadable dedup record at %s", key)
            return False
        return stored == new_id

    async def record_update(self, repo: str, prefix: str, new_id: str, scheduled: bool) -> None:
        if not scheduled:
            return
        await self._store.set(build_dedup_key(prefix, repo), encode_marker(new_id))
