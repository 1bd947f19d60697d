"""Telegram delivery adapters.

TelegramDelivery broadcasts rendered artifacts to groups and users for
scheduled runs; TelegramRequester answers the chat that asked for an
on-demand check.
"""

from __future__ import annotations

import io
from typing import Union

from core.models import RenderedArtifact

CAPTION = "Repository updates"


def resolve_peer(target: str) -> Union[int, str]:
    """Return a Telethon-friendly peer: numeric ids as int, usernames as-is."""

    text = target.strip()
    if text.lstrip("-").isdigit():
        return int(text)
    return text


def _as_file(artifact: RenderedArtifact) -> io.BytesIO:
    buffer = io.BytesIO(artifact.data)
    # Telethon derives the document file name from the buffer name.
    buffer.name = artifact.filename
    return buffer


class TelegramDelivery:
    """DeliveryPort adapter backed by a Telethon client."""

    def __init__(self, client, caption: str = CAPTION) -> None:
        self._client = client
        self._caption = caption

    async def _send(self, target: str, artifact: RenderedArtifact) -> None:
        await self._client.send_file(
            resolve_peer(target),
            _as_file(artifact),
            caption=self._caption,
            force_document=True,
        )

    async def send_to_group(self, group_id: str, artifact: RenderedArtifact) -> None:
        await self._send(group_id, artifact)

    async def send_to_direct(self, user_id: str, artifact: RenderedArtifact) -> None:
        await self._send(user_id, artifact)


class TelegramRequester:
    """RequesterPort adapter wrapping a Telethon NewMessage event."""

    def __init__(self, event, caption: str = CAPTION) -> None:
        self._event = event
        self._caption = caption

    @property
    def requester_id(self) -> str:
        return str(self._event.sender_id)

    async def reply(self, text: str) -> None:
        await self._event.reply(text)

    async def reply_artifact(self, artifact: RenderedArtifact) -> None:
        await self._event.reply(self._caption, file=_as_file(artifact), force_document=True)
