from __future__ import annotations

import asyncio

from adapters.html_renderer import HtmlRenderer, render_entries
from core.models import CommitEntry, CommitStats, ReleaseEntry


def _commit(**overrides) -> CommitEntry:
    values = dict(
        source="GitHub",
        repo="a/<b>",
        branch="main",
        author_name="Alice",
        committer_name="Bob",
        author_start="A",
        committer_start="B",
        author_avatar="https://avatars/alice",
        committer_avatar=None,
        avatar_differs=True,
        time_info="<span>Alice</span> committed <span>now</span>",
        text="<span class='head'>Title</span>\nbody",
        stats=CommitStats(files=2, additions=5, deletions=1),
    )
    values.update(overrides)
    return CommitEntry(**values)


def _release() -> ReleaseEntry:
    return ReleaseEntry(
        source="Gitee",
        repo="c/d",
        tag="v2",
        author_name=None,
        author_start="?",
        avatar=None,
        time_info="<span>now</span>",
        text="<span class='head'>Two</span>\n<p>notes</p>",
    )


def test_render_entries_escapes_identifiers_and_keeps_markup() -> None:
    fragment = render_entries([_commit(), _release()])

    assert "a/&lt;b&gt;" in fragment
    assert "<span class='head'>Title</span>\nbody" in fragment
    assert '<img class="avatar" src="https://avatars/alice" alt="A">' in fragment
    assert '<div class="avatar placeholder">B</div>' in fragment
    assert "+5" in fragment and "-1" in fragment
    assert '<span class="tag">v2</span>' in fragment
    assert '<div class="avatar placeholder">?</div>' in fragment


def test_render_entries_omits_missing_stats() -> None:
    fragment = render_entries([_commit(stats=None, avatar_differs=False)])
    assert 'class="stats"' not in fragment
    assert "placeholder" not in fragment


def test_renderer_fills_template_and_saves_output(tmp_path) -> None:
    template_dir = tmp_path / "templates"
    (template_dir / "code_update").mkdir(parents=True)
    (template_dir / "code_update" / "index.html").write_text(
        "<html>$count<main>$entries</main>$generated_at</html>", encoding="utf-8"
    )
    output_dir = tmp_path / "output"
    renderer = HtmlRenderer(str(template_dir), str(output_dir))

    artifact = asyncio.run(renderer.render("code_update/index", [_release()], "auto"))

    document = artifact.data.decode("utf-8")
    assert artifact.filename == "code-update-auto.html"
    assert artifact.mime_type == "text/html"
    assert document.startswith("<html>1<main><section")
    assert "$entries" not in document
    assert (output_dir / "code-update-auto.html").read_bytes() == artifact.data
