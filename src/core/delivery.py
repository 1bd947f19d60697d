"""Rendering and paced fan-out of one group's content batch."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Sequence

from core.config import RepositoryGroupConfig
from core.models import ContentEntry, RenderedArtifact
from core.ports import DeliveryPort, RendererPort, RequesterPort

LOGGER = logging.getLogger(__name__)

TEMPLATE_ID = "code_update/index"
SCHEDULED_SAVE_ID = "auto"

Sleeper = Callable[[float], Awaitable[None]]


class DeliveryFanOut:
    """Renders a batch once and sends it to every configured target.

    Scheduled sends are strictly sequential and every target is followed by
    the pacing delay, even when nothing was sent, so the cadence towards the
    delivery channel stays predictable.
    """

    def __init__(
        self,
        renderer: RendererPort,
        transport: Optional[DeliveryPort],
        send_delay: float = 5.0,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self._renderer = renderer
        self._transport = transport
        self._send_delay = send_delay
        self._sleep = sleep

    async def render(self, entries: Sequence[ContentEntry], save_id: str) -> Optional[RenderedArtifact]:
        if not entries:
            return None
        try:
            return await self._renderer.render(TEMPLATE_ID, entries, save_id)
        except Exception:
            LOGGER.exception("Rendering %s entries failed", len(entries))
            return None

    async def deliver(
        self,
        entries: Sequence[ContentEntry],
        group: RepositoryGroupConfig,
        scheduled: bool,
        requester: Optional[RequesterPort] = None,
    ) -> Optional[RenderedArtifact]:
        """Render ``entries`` and hand the artifact to its recipients."""

        save_id = SCHEDULED_SAVE_ID if scheduled or requester is None else requester.requester_id
        artifact = await self.render(entries, save_id)

        if not scheduled:
            if requester is not None and artifact is not None:
                await requester.reply_artifact(artifact)
            return artifact

        if self._transport is None:
            raise RuntimeError("Scheduled delivery requires a transport")
        for group_id in group.groups:
            if artifact is not None:
                await self._send(self._transport.send_to_group, "group", group_id, artifact)
            await self._sleep(self._send_delay)
        for user_id in group.directs:
            if artifact is not None:
                await self._send(self._transport.send_to_direct, "direct", user_id, artifact)
            await self._sleep(self._send_delay)
        return artifact

    async def _send(
        self,
        send: Callable[[str, RenderedArtifact], Awaitable[None]],
        target_kind: str,
        target: str,
        artifact: RenderedArtifact,
    ) -> None:
        try:
            await send(target, artifact)
            LOGGER.info("Delivered update to %s %s", target_kind, target)
        except Exception:
            LOGGER.exception("Failed to deliver update to %s %s", target_kind, target)
