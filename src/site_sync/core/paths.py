"""Filesystem layout of the engine's data root."""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class PathHelper:
    """Resolves every directory the publish pipeline writes to.

    Layout under ``root``::

        sites/<site_key>/<provider>SyncRepo/<repository>   git staging checkout
        sites/<site_key>/<provider>Sync-<repo>-cache_remote_history.json
        temp/<site_key>/                                   keys, tmpclone/

    The build pipeline reports its output through ``last_build_dir``; the
    engine only ever reads it.
    """

    def __init__(self, root: str | Path, last_build_dir: str | Path | None = None):
        self.root = Path(root).expanduser()
        self._last_build_dir = Path(last_build_dir) if last_build_dir else None

    @property
    def last_build_dir(self) -> Path | None:
        """Directory of the most recent build, or ``None`` before any build."""
        return self._last_build_dir

    @last_build_dir.setter
    def last_build_dir(self, value: str | Path | None) -> None:
        self._last_build_dir = Path(value) if value else None
        logger.debug("Last build dir set to %s", self._last_build_dir)

    def site_root(self, site_key: str) -> Path:
        if not site_key.strip():
            raise ValueError("Site key cannot be empty")
        return self.root / "sites" / site_key

    def temp_dir(self, site_key: str) -> Path:
        """Per-site temp root; never shared between sites."""
        if not site_key.strip():
            raise ValueError("Site key cannot be empty")
        return self.root / "temp" / site_key

    def sync_repo_dir(self, site_key: str, provider: str) -> Path:
        return self.site_root(site_key) / f"{provider}SyncRepo"

    def history_cache_file(
        self, site_key: str, provider: str, repository: str
    ) -> Path:
        return (
            self.site_root(site_key)
            / f"{provider}Sync-{repository}-cache_remote_history.json"
        )
