"""Tests for site_sync.mcp.lifespan and runtime loading.

server_lifespan() loads the runtime, reports it on stderr, and fails fast
with RuntimeError on configuration errors.  A missing git binary is only
a warning.
"""

import pytest

from site_sync.mcp.lifespan import server_lifespan
from site_sync.runtime import load_runtime, to_jsonable
from site_sync.sync.models import HistoryResult


@pytest.fixture
def isolated(tmp_path, monkeypatch):
    home = tmp_path / "home"
    home.mkdir()
    work = tmp_path / "work"
    work.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(work)
    for name in (
        "SITE_SYNC_CONFIG",
        "SITE_SYNC_ROOT",
        "EMBGIT_PATH",
        "SITE_SYNC_GIT_TIMEOUT",
        "SITE_SYNC_DEBUG",
    ):
        monkeypatch.delenv(name, raising=False)
    return work


def _write_config(work, text):
    path = work / ".site_sync" / "config.yml"
    path.parent.mkdir()
    path.write_text(text)


class TestLoadRuntime:
    def test_overrides_and_config_file(self, isolated, tmp_path):
        """CLI overrides reach the engine config; sites come from the file."""
        _write_config(
            isolated,
            "sites:\n  - key: blog\n    source: {path: /srv/blog}\n",
        )

        runtime = load_runtime(
            {"data_root": str(tmp_path / "data"), "build_dir": str(tmp_path / "b")}
        )

        assert runtime.config.data_root == str(tmp_path / "data")
        assert [s.key for s in runtime.provider.list_sites()] == ["blog"]
        helper = runtime.factory.dependencies.path_helper
        assert helper.last_build_dir == tmp_path / "b"
        assert any(s.startswith("config file:") for s in runtime.sources)

    def test_git_settings_passed_to_embedded_git(self, isolated):
        runtime = load_runtime({"git_binary": "/opt/embgit", "git_timeout": 12})
        git = runtime.factory.dependencies.git
        assert git.binary == "/opt/embgit"
        assert git.timeout == 12.0


def test_to_jsonable():
    history = HistoryResult.model_validate(
        {"lastRefresh": "2026-01-02T03:04:05Z", "commitList": [{"ref": "a"}]}
    )
    assert to_jsonable(history)["commitList"][0]["ref"] == "a"
    assert to_jsonable("no_changes") == "no_changes"


class TestServerLifespan:
    async def test_yields_runtime(self, isolated, tmp_path, capsys):
        async with server_lifespan(
            {"data_root": str(tmp_path / "data"), "git_binary": "/opt/embgit"}
        ) as ctx:
            assert ctx["runtime"].config.data_root == str(tmp_path / "data")

        err = capsys.readouterr().err
        assert "Server ready" in err
        assert "Embedded git: /opt/embgit" in err
        assert "shutting down" in err

    async def test_missing_git_is_a_warning(self, isolated, monkeypatch, capsys):
        monkeypatch.setenv("PATH", "")
        async with server_lifespan({}) as ctx:
            assert ctx["runtime"] is not None
        assert "WARNING" in capsys.readouterr().err

    async def test_config_error_raises_runtime_error(self, isolated):
        with pytest.raises(RuntimeError, match="Configuration error"):
            async with server_lifespan({"git_timeout": -5}):
                pass
