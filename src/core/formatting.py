"""Commit and release payload formatting (core domain).

Both formatters are pure: they take a raw platform payload and return a
presentation record, tolerating missing optional fields instead of raising.
"""

from __future__ import annotations

import html
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Union

import markdown

from core.models import CommitEntry, CommitStats, ReleaseEntry

HEAD_TEMPLATE = "<span class='head'>{}</span>"
PLACEHOLDER_INITIAL = "?"
UNKNOWN_TIME = "unknown time"

# Release notes are written in GitHub-flavoured markdown.
MARKDOWN_EXTENSIONS = ["fenced_code", "tables"]

# (upper bound in seconds, unit seconds, unit name)
_TIME_UNITS = (
    (3600, 60, "minute"),
    (86400, 3600, "hour"),
    (86400 * 30, 86400, "day"),
    (86400 * 365, 86400 * 30, "month"),
)


def _parse_moment(moment: Union[str, datetime, None]) -> Optional[datetime]:
    if moment is None:
        return None
    if isinstance(moment, datetime):
        parsed = moment
    else:
        try:
            parsed = datetime.fromisoformat(str(moment).replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def time_ago(moment: Union[str, datetime, None], now: Optional[datetime] = None) -> str:
    """Return a human-relative description such as ``"3 days ago"``."""

    parsed = _parse_moment(moment)
    if parsed is None:
        return UNKNOWN_TIME
    now = now or datetime.now(timezone.utc)
    seconds = int((now - parsed).total_seconds())
    if seconds < 0:
        return "in the future"
    if seconds < 60:
        return "just now"

    for limit, unit, name in _TIME_UNITS:
        if seconds < limit:
            break
    else:
        unit, name = 86400 * 365, "year"
    count = seconds // unit
    return f"{count} {name}{'s' if count != 1 else ''} ago"


def _span(value: str) -> str:
    return f"<span>{value}</span>"


def _initial(*names: Optional[str]) -> str:
    for name in names:
        if name:
            return name[0]
    return PLACEHOLDER_INITIAL


def format_message(message: Optional[str]) -> str:
    """Wrap the first line as the headline, keeping the rest verbatim."""

    lines = (message or "").split("\n")
    lines[0] = HEAD_TEMPLATE.format(lines[0])
    return "\n".join(lines)


def _commit_stats(data: Mapping[str, Any]) -> Optional[CommitStats]:
    stats = data.get("stats")
    files = data.get("files")
    # Partial information is omitted rather than zero-filled.
    if stats is None or files is None:
        return None
    return CommitStats(
        files=len(files),
        additions=int(stats.get("additions") or 0),
        deletions=int(stats.get("deletions") or 0),
    )


def format_commit(
    data: Mapping[str, Any],
    source: str,
    repo: str,
    branch: Optional[str],
    now: Optional[datetime] = None,
) -> CommitEntry:
    """Build a CommitEntry from a platform commit payload."""

    commit = data.get("commit") or {}
    git_author = commit.get("author") or {}
    git_committer = commit.get("committer") or {}
    author = data.get("author") or {}
    committer = data.get("committer") or {}

    author_name = git_author.get("name")
    committer_name = git_committer.get("name")
    author_label = _span(html.escape(author_name or PLACEHOLDER_INITIAL))
    author_time = _span(time_ago(git_author.get("date"), now))

    if author_name == committer_name:
        time_info = f"{author_label} committed {author_time}"
    else:
        committer_label = _span(html.escape(committer_name or PLACEHOLDER_INITIAL))
        committer_time = _span(time_ago(git_committer.get("date"), now))
        time_info = f"{author_label} authored {author_time}, committed by {committer_label} {committer_time}"

    author_avatar = author.get("avatar_url")
    committer_avatar = committer.get("avatar_url")

    return CommitEntry(
        source=source,
        repo=repo,
        branch=branch,
        author_name=author_name,
        committer_name=committer_name,
        author_start=_initial(author_name),
        committer_start=_initial(committer_name),
        author_avatar=author_avatar,
        committer_avatar=committer_avatar,
        avatar_differs=author_avatar != committer_avatar,
        time_info=time_info,
        text=format_message(commit.get("message")),
        stats=_commit_stats(data),
    )


def format_release(
    data: Mapping[str, Any],
    source: str,
    repo: str,
    now: Optional[datetime] = None,
) -> ReleaseEntry:
    """Build a ReleaseEntry from a platform release payload."""

    author = data.get("author") or {}
    login = author.get("login")
    name = author.get("name")
    display_name = login or name
    release_time = _span(time_ago(data.get("published_at") or data.get("created_at"), now))

    if display_name:
        time_info = f"{_span(html.escape(display_name))} released {release_time}"
    else:
        time_info = release_time

    title = data.get("name") or data.get("tag_name") or ""
    body = markdown.markdown(data.get("body") or "", extensions=MARKDOWN_EXTENSIONS)

    return ReleaseEntry(
        source=source,
        repo=repo,
        tag=data.get("tag_name") or "",
        author_name=display_name,
        author_start=_initial(login, name),
        avatar=author.get("avatar_url"),
        time_info=time_info,
        text=f"{HEAD_TEMPLATE.format(title)}\n{body}",
    )
