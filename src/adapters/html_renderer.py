"""HTML renderer adapter.

Renders a batch of content entries into one self-contained HTML document,
used as the shareable artifact for every delivery target.
"""

from __future__ import annotations

import asyncio
import html
import os
from datetime import datetime, timezone
from string import Template
from typing import List, Optional, Sequence

from core.models import CommitEntry, ContentEntry, ReleaseEntry, RenderedArtifact

MIME_TYPE = "text/html"


def _avatar(url: Optional[str], initial: str) -> str:
    if url:
        return f'<img class="avatar" src="{html.escape(url)}" alt="{html.escape(initial)}">'
    return f'<div class="avatar placeholder">{html.escape(initial)}</div>'


def _render_commit(entry: CommitEntry) -> str:
    title = html.escape(entry.repo)
    if entry.branch:
        title += f' <span class="branch">{html.escape(entry.branch)}</span>'
    avatars = [_avatar(entry.author_avatar, entry.author_start)]
    if entry.avatar_differs:
        avatars.append(_avatar(entry.committer_avatar, entry.committer_start))

    stats = ""
    if entry.stats is not None:
        stats = (
            '<div class="stats">'
            f"<span>{entry.stats.files} files</span>"
            f'<span class="add">+{entry.stats.additions}</span>'
            f'<span class="del">-{entry.stats.deletions}</span>'
            "</div>"
        )

    return (
        '<section class="entry commit">'
        f'<header><span class="source">{html.escape(entry.source)}</span> {title}</header>'
        f'<div class="avatars">{"".join(avatars)}</div>'
        f'<div class="time">{entry.time_info}</div>'
        f'<pre class="text">{entry.text}</pre>'
        f"{stats}"
        "</section>"
    )


def _render_release(entry: ReleaseEntry) -> str:
    return (
        '<section class="entry release">'
        f'<header><span class="source">{html.escape(entry.source)}</span> {html.escape(entry.repo)}'
        f' <span class="tag">{html.escape(entry.tag)}</span></header>'
        f'<div class="avatars">{_avatar(entry.avatar, entry.author_start)}</div>'
        f'<div class="time">{entry.time_info}</div>'
        f'<div class="text">{entry.text}</div>'
        "</section>"
    )


def render_entries(entries: Sequence[ContentEntry]) -> str:
    """Return the HTML fragments for every entry, in order."""

    parts: List[str] = []
    for entry in entries:
        if entry.kind == "commit":
            parts.append(_render_commit(entry))
        elif entry.kind == "release":
            parts.append(_render_release(entry))
        else:
            raise ValueError(f"Unsupported content entry kind: {entry.kind}")
    return "\n".join(parts)


class HtmlRenderer:
    """Renderer adapter that fills a ``string.Template`` page with entries."""

    def __init__(self, template_dir: str, output_dir: Optional[str] = None) -> None:
        self._template_dir = template_dir
        self._output_dir = output_dir

    def _load_template(self, template_id: str) -> Template:
        path = os.path.join(self._template_dir, f"{template_id}.html")
        with open(path, "r", encoding="utf-8") as handle:
            return Template(handle.read())

    def _render(self, template_id: str, entries: Sequence[ContentEntry], save_id: str) -> RenderedArtifact:
        template = self._load_template(template_id)
        document = template.safe_substitute(
            entries=render_entries(entries),
            count=len(entries),
            generated_at=datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC"),
        )
        artifact = RenderedArtifact(
            data=document.encode("utf-8"),
            filename=f"code-update-{save_id}.html",
            mime_type=MIME_TYPE,
        )
        # The last render per save id is kept on disk for inspection.
        if self._output_dir:
            os.makedirs(self._output_dir, exist_ok=True)
            with open(os.path.join(self._output_dir, artifact.filename), "wb") as handle:
                handle.write(artifact.data)
        return artifact

    async def render(self, template_id: str, entries: Sequence[ContentEntry], save_id: str) -> RenderedArtifact:
        return await asyncio.to_thread(self._render, template_id, entries, save_id)
