"""Ports (interfaces) used by the core pipeline.

Ports define the minimal contracts for platform, storage, rendering and
delivery adapters so that the core can be reused with different backends.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from core.models import ContentEntry, RenderedArtifact


class PlatformApiPort(Protocol):
    """Hosting platform operations required by the fetch and branch steps."""

    async def get_repository_data(
        self,
        path: str,
        platform: str,
        data_type: str,
        credential: Optional[str],
        branch: Optional[str] = None,
    ) -> Any:
        ...

    async def get_default_branch(self, path: str, platform: str, credential: Optional[str]) -> Optional[str]:
        ...


class StateStorePort(Protocol):
    """Key/value persistence for dedup markers."""

    async def get(self, key: str) -> Optional[str]:
        ...

    async def set(self, key: str, value: str) -> None:
        ...


class RendererPort(Protocol):
    async def render(self, template_id: str, entries: Sequence[ContentEntry], save_id: str) -> RenderedArtifact:
        ...


class DeliveryPort(Protocol):
    """Broadcast operations used by scheduled runs."""

    async def send_to_group(self, group_id: str, artifact: RenderedArtifact) -> None:
        ...

    async def send_to_direct(self, user_id: str, artifact: RenderedArtifact) -> None:
        ...


class RequesterPort(Protocol):
    """The caller of an on-demand run."""

    @property
    def requester_id(self) -> str:
        ...

    async def reply(self, text: str) -> None:
        ...

    async def reply_artifact(self, artifact: RenderedArtifact) -> None:
        ...


class DiscoveryPort(Protocol):
    """Source of auto-discovered repositories, keyed by platform."""

    async def discover(self) -> Mapping[str, Sequence[str]]:
        ...
