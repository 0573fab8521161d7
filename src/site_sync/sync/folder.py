"""Folder backend: copy a site to or from a local directory, no git involved."""

import logging
from collections.abc import Mapping
from pathlib import Path

from ..core.async_utils import run_sync
from ..core.console import write_banner
from .base import ActionHandler, SyncService
from .errors import SyncNotConfigured
from .models import FolderPublishConf, SyncAction
from .staging import (
    copy_tree,
    ensure_dir,
    ensure_sync_dir_empty,
    force_remove,
    remove_unwanted,
)

logger = logging.getLogger(__name__)

PULLED = "reset-and-pulled-from-remote"


class FolderSync(SyncService):
    """Publishes the last build to ``config.path`` and pulls it back.

    Pulling replaces the site's source tree with the folder's contents:
    local changes are discarded, nothing is merged.
    """

    service_type = "folder"
    config: FolderPublishConf

    def handlers(self) -> Mapping[SyncAction, ActionHandler]:
        return {
            SyncAction.PULL_FROM_REMOTE: lambda _params: self.pull_fast_forward_merge(),
            SyncAction.PUSH_TO_REMOTE: lambda _params: self.publish(),
        }

    def _destination(self) -> Path:
        if not self.config.path:
            raise SyncNotConfigured("Folder sync path is not configured")
        return Path(self.config.path).expanduser()

    async def publish(self) -> bool:
        destination = self._destination()
        build_dir = self.require_build_dir()

        await run_sync(ensure_sync_dir_empty, destination)

        write_banner(
            self.console,
            "FOLDER SYNC",
            [
                ("from is", build_dir),
                None,
                ("destination path", destination),
                ("publish scope", self.config.publish_scope),
                ("override BaseURL", self.config.override_base_url),
            ],
        )
        self.progress.send("Prepare files before uploading..", 30)

        if self.config.publish_scope == "build":
            await run_sync(copy_tree, build_dir / "public", destination)
            await run_sync(remove_unwanted, destination)
        else:
            await run_sync(copy_tree, build_dir, destination)
            await run_sync(remove_unwanted, destination)
            if self.config.publish_scope == "source":
                await run_sync(force_remove, destination / "public")
            await run_sync(ensure_dir, destination / "static")

        self.console.append_line("prepare and sync finished")
        return True

    async def pull_fast_forward_merge(self) -> str:
        destination = self._destination()
        source_path = self.site_source_path()
        if not destination.is_dir():
            raise SyncNotConfigured(
                f"Folder sync path does not exist or is not a directory: {destination}"
            )

        write_banner(
            self.console,
            "FOLDER PULL",
            [("from is", destination), ("site path", source_path)],
        )
        self.progress.send("Replacing site files with folder contents..", 30)
        await run_sync(ensure_sync_dir_empty, source_path)
        await run_sync(copy_tree, destination, source_path)
        self.console.append_line("synced source to destination ...")
        return PULLED
