from __future__ import annotations

from datetime import datetime, timedelta, timezone

from core.formatting import format_commit, format_message, format_release, time_ago

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def _commit(author: str = "Alice", committer: str = "Alice", **extra) -> dict:
    data = {
        "sha": "abc123",
        "commit": {
            "author": {"name": author, "date": "2024-06-01T10:00:00Z"},
            "committer": {"name": committer, "date": "2024-06-01T11:00:00Z"},
            "message": "Fix parser\n\nLonger explanation\n- item <one>",
        },
        "author": {"avatar_url": "https://avatars/alice"},
        "committer": {"avatar_url": "https://avatars/alice"},
    }
    data.update(extra)
    return data


def test_time_ago() -> None:
    assert time_ago(NOW - timedelta(seconds=10), NOW) == "just now"
    assert time_ago(NOW - timedelta(minutes=1), NOW) == "1 minute ago"
    assert time_ago(NOW - timedelta(minutes=5), NOW) == "5 minutes ago"
    assert time_ago("2024-06-01T10:00:00Z", NOW) == "2 hours ago"
    assert time_ago(NOW - timedelta(days=3), NOW) == "3 days ago"
    assert time_ago(NOW - timedelta(days=65), NOW) == "2 months ago"
    assert time_ago(NOW - timedelta(days=800), NOW) == "2 years ago"
    assert time_ago(None, NOW) == "unknown time"
    assert time_ago("yesterday-ish", NOW) == "unknown time"


def test_format_message_wraps_only_first_line() -> None:
    text = format_message("Title\nbody line\n\nlast <b>")
    lines = text.split("\n")
    assert lines[0] == "<span class='head'>Title</span>"
    assert lines[1:] == ["body line", "", "last <b>"]


def test_format_message_tolerates_missing_message() -> None:
    assert format_message(None) == "<span class='head'></span>"


def test_commit_single_actor_sentence() -> None:
    entry = format_commit(_commit(), "GitHub", "a/b", "main", now=NOW)

    assert entry.kind == "commit"
    assert entry.time_info == "<span>Alice</span> committed <span>2 hours ago</span>"
    assert entry.author_start == "A"
    assert entry.avatar_differs is False
    assert entry.branch == "main"
    assert entry.text.startswith("<span class='head'>Fix parser</span>\n")
    assert entry.text.endswith("\n\nLonger explanation\n- item <one>")


def test_commit_two_actor_sentence() -> None:
    data = _commit(committer="Bob")
    data["committer"] = {"avatar_url": "https://avatars/bob"}
    entry = format_commit(data, "GitHub", "a/b", None, now=NOW)

    assert entry.time_info == (
        "<span>Alice</span> authored <span>2 hours ago</span>, "
        "committed by <span>Bob</span> <span>1 hour ago</span>"
    )
    assert entry.committer_start == "B"
    assert entry.avatar_differs is True


def test_commit_stats_require_stats_and_files() -> None:
    with_both = format_commit(
        _commit(stats={"additions": 10, "deletions": 2}, files=[{}, {}, {}]),
        "GitHub",
        "a/b",
        None,
        now=NOW,
    )
    assert with_both.stats is not None
    assert (with_both.stats.files, with_both.stats.additions, with_both.stats.deletions) == (3, 10, 2)

    only_stats = format_commit(_commit(stats={"additions": 1, "deletions": 1}), "GitHub", "a/b", None, now=NOW)
    assert only_stats.stats is None

    only_files = format_commit(_commit(files=[{}]), "GitHub", "a/b", None, now=NOW)
    assert only_files.stats is None

    # An empty stats object is still a stats object.
    empty_stats = format_commit(_commit(stats={}, files=[]), "GitHub", "a/b", None, now=NOW)
    assert empty_stats.stats is not None
    assert (empty_stats.stats.files, empty_stats.stats.additions, empty_stats.stats.deletions) == (0, 0, 0)


def test_commit_tolerates_missing_optional_fields() -> None:
    data = {"sha": "x", "commit": {"author": {}, "committer": {}, "message": "msg"}, "author": None}
    entry = format_commit(data, "Gitee", "a/b", None, now=NOW)

    assert entry.author_start == "?"
    assert entry.author_avatar is None
    assert entry.stats is None
    assert "unknown time" in entry.time_info


def test_commit_names_are_escaped() -> None:
    entry = format_commit(_commit(author="<x>", committer="<x>"), "GitHub", "a/b", None, now=NOW)
    assert "<span>&lt;x&gt;</span>" in entry.time_info


def test_release_formatting() -> None:
    data = {
        "tag_name": "v1.2.0",
        "name": "Version 1.2",
        "body": "## Changes\n\n- **faster**",
        "author": {"login": "octo", "name": "Octo Cat", "avatar_url": "https://avatars/octo"},
        "published_at": "2024-05-31T12:00:00Z",
    }
    entry = format_release(data, "GitHub", "a/b", now=NOW)

    assert entry.kind == "release"
    assert entry.tag == "v1.2.0"
    assert entry.author_name == "octo"
    assert entry.author_start == "o"
    assert entry.avatar == "https://avatars/octo"
    assert entry.time_info == "<span>octo</span> released <span>1 day ago</span>"
    assert entry.text.startswith("<span class='head'>Version 1.2</span>\n")
    assert "<h2>Changes</h2>" in entry.text
    assert "<strong>faster</strong>" in entry.text


def test_release_body_renders_fenced_code_and_tables() -> None:
    body = "Notes\n\n```python\nprint('x')\n```\n\n| a | b |\n|---|---|\n| 1 | 2 |\n"
    entry = format_release({"tag_name": "v2", "body": body}, "GitHub", "a/b", now=NOW)

    assert "<pre><code" in entry.text
    assert "print(" in entry.text
    assert "<table>" in entry.text
    assert "<td>1</td>" in entry.text


def test_release_author_fallbacks() -> None:
    by_name = format_release({"tag_name": "v1", "author": {"login": None, "name": "Neo"}}, "Gitee", "a/b", now=NOW)
    assert by_name.author_name == "Neo"
    assert by_name.author_start == "N"

    anonymous = format_release({"tag_name": "v1", "author": {"login": None, "name": None}}, "Gitee", "a/b", now=NOW)
    assert anonymous.author_start == "?"
    assert anonymous.author_name is None
    assert anonymous.time_info == "<span>unknown time</span>"

    no_author = format_release({"tag_name": "v1", "body": None}, "Gitee", "a/b", now=NOW)
    assert no_author.author_start == "?"
    assert no_author.text.startswith("<span class='head'>v1</span>\n")
