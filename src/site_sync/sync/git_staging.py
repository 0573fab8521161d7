"""Git staging steps shared by git-backed services.

Each step is a standalone coroutine taking everything it needs as
arguments, so services compose them explicitly:

    clone or refresh checkout -> fill checkout -> add/commit/push
"""

import contextlib
import logging
from collections.abc import Iterator
from pathlib import Path

from ..core.async_utils import run_sync
from ..core.console import OutputConsole
from ..file_handler import private_key_file, write_file
from ..git.process import EmbeddedGit, GitIdentity
from .ci import CIConfigurator, WorkflowOptions
from .errors import ExternalProcessFailure
from .staging import (
    IgnoreFilter,
    copy_tree,
    ensure_dir,
    ensure_sync_dir_empty,
)

logger = logging.getLogger(__name__)

COMMIT_MESSAGE = "push by site-sync"


def is_already_up_to_date(error: ExternalProcessFailure) -> bool:
    return "already up-to-date" in f"{error.output}\n{error}".lower()


def is_non_fast_forward(error: ExternalProcessFailure) -> bool:
    return "non-fast-forward update" in f"{error.output}\n{error}".lower()


class GitStagingHelper:
    """Runs the staging steps against one embedded git process."""

    def __init__(self, git: EmbeddedGit, console: OutputConsole):
        self.git = git
        self.console = console

    @contextlib.contextmanager
    def deploy_key(
        self, temp_root: Path, private_key: str, identity: GitIdentity
    ) -> Iterator[GitIdentity]:
        """Write the deploy key (0600) under *temp_root* and yield *identity* carrying it.

        The key file is removed when the block exits, however it exits.
        """
        with private_key_file(temp_root, private_key) as key_path:
            logger.debug("Deploy key written to %s", key_path)
            yield identity.with_key(key_path)

    async def initial_clone(
        self, url: str, checkout: Path, identity: GitIdentity
    ) -> None:
        await self.git.clone(url, checkout, identity)

    async def pull_tolerant(self, checkout: Path, identity: GitIdentity) -> bool:
        """Pull into *checkout*; return ``False`` if it was already up to date."""
        try:
            await self.git.pull(checkout, identity)
        except ExternalProcessFailure as e:
            if is_already_up_to_date(e):
                self.console.append_line("Already up-to-date ...")
                return False
            raise
        return True

    async def refresh_checkout(
        self,
        url: str,
        staging_root: Path,
        checkout: Path,
        identity: GitIdentity,
    ) -> None:
        """Bring *checkout* to the remote's state.

        An existing checkout is reset and pulled.  Otherwise the staging
        root is emptied and the remote cloned fresh.
        """
        if (checkout / ".git").is_dir():
            await self.git.reset_hard(checkout)
            await self.pull_tolerant(checkout, identity)
            return
        await run_sync(ensure_sync_dir_empty, staging_root)
        await self.initial_clone(url, checkout, identity)

    async def copy_history(self, clone_dir: Path, checkout: Path) -> None:
        """Copy only the ``.git`` database of *clone_dir* into *checkout*."""
        await run_sync(copy_tree, clone_dir / ".git", checkout / ".git")

    async def copy_build_output(self, build_dir: Path, checkout: Path) -> None:
        await run_sync(copy_tree, build_dir / "public", checkout)
        self.console.append_line("prepare and sync finished")

    async def copy_site_tree(
        self, source: Path, checkout: Path, ignore: IgnoreFilter
    ) -> None:
        await run_sync(copy_tree, source, checkout, ignore)
        self.console.append_line("synced ALL source to destination ...")

    async def write_workflow(
        self,
        configurator: CIConfigurator,
        checkout: Path,
        options: WorkflowOptions,
    ) -> Path:
        path = await run_sync(configurator.write_workflow, checkout, options)
        self.console.append_line(
            f"{configurator.get_name()} workflow written: {path.relative_to(checkout)}"
        )
        return path

    async def write_cname(self, checkout: Path, cname: str) -> None:
        await run_sync(write_file, checkout / "CNAME", cname)

    async def ensure_static_dir(self, checkout: Path) -> None:
        await run_sync(ensure_dir, checkout / "static")

    async def add_commit_push(
        self,
        checkout: Path,
        identity: GitIdentity,
        message: str = COMMIT_MESSAGE,
    ) -> None:
        await self.git.add_all(checkout)
        await self.git.commit(checkout, message, identity)
        await self.git.push(checkout, identity)
