from __future__ import annotations

import asyncio

from git import Repo

from adapters.local_checkouts import LocalCheckoutDiscovery, parse_remote_url


def _checkout(root, name: str, origin: str | None = None) -> None:
    repo = Repo.init(root / name)
    if origin is not None:
        with repo.config_writer() as writer:
            writer.set_value('remote "origin"', "url", origin)
    repo.close()


def test_parse_remote_url_variants() -> None:
    assert parse_remote_url("https://github.com/octo/cat.git") == ("GitHub", "octo/cat")
    assert parse_remote_url("https://github.com/octo/cat/") == ("GitHub", "octo/cat")
    assert parse_remote_url("git@gitee.com:owner/repo.git") == ("Gitee", "owner/repo")
    assert parse_remote_url("ssh://git@gitcode.com:22/owner/repo") == ("Gitcode", "owner/repo")
    assert parse_remote_url("https://GitHub.com/octo/cat") == ("GitHub", "octo/cat")


def test_parse_remote_url_rejects_unsupported() -> None:
    assert parse_remote_url("https://gitlab.com/octo/cat.git") is None
    assert parse_remote_url("https://github.com/octo") is None
    assert parse_remote_url("/srv/git/cat.git") is None


def test_scan_sorts_checkouts_by_platform(tmp_path) -> None:
    _checkout(tmp_path, "b-plugin", "https://github.com/octo/b-plugin.git")
    _checkout(tmp_path, "a-plugin", "git@github.com:octo/a-plugin.git")
    _checkout(tmp_path, "gitee-plugin", "https://gitee.com/owner/gitee-plugin")
    _checkout(tmp_path, "gitcode-plugin", "https://gitcode.com/owner/gitcode-plugin.git")
    _checkout(tmp_path, "no-origin")
    _checkout(tmp_path, "elsewhere", "https://gitlab.com/owner/elsewhere.git")
    (tmp_path / "not-a-repo").mkdir()
    (tmp_path / "README.txt").write_text("ignored")

    found = LocalCheckoutDiscovery([str(tmp_path)]).scan()

    assert found == {
        "GitHub": ("octo/a-plugin", "octo/b-plugin"),
        "Gitee": ("owner/gitee-plugin",),
        "Gitcode": ("owner/gitcode-plugin",),
    }


def test_discover_skips_missing_directories(tmp_path) -> None:
    _checkout(tmp_path, "plugin", "https://github.com/octo/plugin")
    discovery = LocalCheckoutDiscovery([str(tmp_path / "missing"), str(tmp_path)])

    assert asyncio.run(discovery.discover()) == {"GitHub": ("octo/plugin",)}
