"""Shared pytest fixtures for site-sync tests."""

import stat
from pathlib import Path

import pytest

from site_sync.config_schema import build_config
from site_sync.core.paths import PathHelper
from site_sync.core.sites import UnifiedConfigProvider
from site_sync.sync.base import SyncServiceDependencies
from site_sync.sync.errors import ExternalProcessFailure


class RecordingConsole:
    """OutputConsole that keeps every line."""

    def __init__(self):
        self.lines: list[str] = []

    def append_line(self, line: str) -> None:
        self.lines.append(line)

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


def _snapshot(directory: Path) -> dict[str, str]:
    return {
        p.relative_to(directory).as_posix(): p.read_text()
        for p in sorted(directory.rglob("*"))
        if p.is_file() and ".git" not in p.relative_to(directory).parts
    }


class FakeGit:
    """Stands in for ``EmbeddedGit``.

    ``remote_files`` is what a clone or pull materializes; ``pushed`` holds
    a snapshot of the checkout at each push.  Key files passed in an
    identity are checked for existence and owner-only permissions at the
    moment of the call.
    """

    def __init__(self):
        self.calls: list[tuple] = []
        self.remote_files: dict[str, str] = {"index.html": "remote"}
        self.pushed: list[dict[str, str]] = []
        self.key_checks: list[tuple[Path, bool, int]] = []
        self.pull_error: ExternalProcessFailure | None = None
        self.remote_log: list[dict] = []
        self.local_log: list[dict] = []
        self.local_log_error: ExternalProcessFailure | None = None
        self.commits: list[tuple[str, str, str]] = []

    def _check_key(self, identity) -> None:
        key = getattr(identity, "private_key_path", None)
        if key is None:
            return
        key = Path(key)
        mode = stat.S_IMODE(key.stat().st_mode) if key.exists() else 0
        self.key_checks.append((key, key.exists(), mode))

    def _materialize(self, destination: Path) -> None:
        destination.mkdir(parents=True, exist_ok=True)
        (destination / ".git").mkdir(exist_ok=True)
        (destination / ".git" / "HEAD").write_text("ref: refs/heads/main")
        for name, content in self.remote_files.items():
            target = destination / name
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content)

    async def clone(self, url, destination, identity=None):
        self.calls.append(("clone", url, Path(destination)))
        self._check_key(identity)
        self._materialize(Path(destination))

    async def pull(self, destination, identity):
        self.calls.append(("pull", Path(destination)))
        self._check_key(identity)
        if self.pull_error is not None:
            raise self.pull_error
        self._materialize(Path(destination))

    async def reset_hard(self, destination):
        self.calls.append(("reset_hard", Path(destination)))

    async def add_all(self, destination):
        self.calls.append(("add_all", Path(destination)))

    async def commit(self, destination, message, identity):
        self.calls.append(("commit", Path(destination)))
        self.commits.append((message, identity.name, identity.email))

    async def push(self, destination, identity):
        self.calls.append(("push", Path(destination)))
        self._check_key(identity)
        self.pushed.append(_snapshot(Path(destination)))

    async def checkout(self, ref, destination):
        self.calls.append(("checkout", ref, Path(destination)))
        (Path(destination) / "checked_out.txt").write_text(ref)

    async def log_remote(self, url, identity):
        self.calls.append(("log_remote", url))
        self._check_key(identity)
        return self.remote_log

    async def log_local(self, destination):
        self.calls.append(("log_local", Path(destination)))
        if self.local_log_error is not None:
            raise self.local_log_error
        return self.local_log

    def names(self) -> list[str]:
        return [call[0] for call in self.calls]


@pytest.fixture
def console():
    return RecordingConsole()


@pytest.fixture
def fake_git():
    return FakeGit()


@pytest.fixture
def site_dir(tmp_path):
    """A small Hugo site source tree."""
    root = tmp_path / "site"
    (root / "content").mkdir(parents=True)
    (root / "content" / "post.md").write_text("# Post")
    (root / "config.toml").write_text("title = 'Blog'")
    (root / "themes" / "local").mkdir(parents=True)
    (root / "themes" / "local" / "theme.toml").write_text("name = 'local'")
    return root


@pytest.fixture
def build_dir(tmp_path):
    """Output of a finished build: site files plus public/ and tool artifacts."""
    root = tmp_path / "build"
    (root / "public").mkdir(parents=True)
    (root / "public" / "index.html").write_text("<h1>Home</h1>")
    (root / "public" / ".gitignore").write_text("*.tmp")
    (root / "content").mkdir()
    (root / "content" / "post.md").write_text("# Post")
    (root / ".quiqr-cache").mkdir()
    (root / ".quiqr-cache" / "thumbs").write_text("x")
    (root / ".hugo_build.lock").write_text("")
    return root


@pytest.fixture
def make_deps(tmp_path, console, fake_git):
    """Factory for ``SyncServiceDependencies`` over a given sites list."""

    def _make(sites=None, last_build_dir=None, progress_callback=None):
        unified = build_config({"sites": sites or []})
        return SyncServiceDependencies(
            path_helper=PathHelper(tmp_path / "data", last_build_dir),
            configuration_provider=UnifiedConfigProvider(unified),
            git=fake_git,
            console=console,
            progress_callback=progress_callback,
        )

    return _make
