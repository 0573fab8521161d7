"""Universal git backend (GitHub, GitLab, Forgejo/Gitea, generic servers).

Git work goes through the embedded git binary; CI workflow generation is
delegated to the provider's ``CIConfigurator``.

Two publish paths exist:

- ``pushWithSoftMerge`` reuses the staging checkout when it already has
  history (reset + pull), otherwise clones it fresh.
- ``hardPush`` always rebuilds history from a fresh clone in a temp
  directory, so it works without any cached checkout.

``pullFromRemote`` is a hard reset of the site's source tree to the
remote's state, not a merge: uncommitted local edits are overwritten.
"""

import json
import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from pathlib import Path

from ..core.async_utils import run_sync
from ..core.console import write_banner
from ..file_handler import read_file_with_encoding, write_file
from ..git.process import ANONYMOUS, GitIdentity
from .base import ActionHandler, SyncService, SyncServiceDependencies
from .ci import WorkflowOptions, get_ci_configurator
from .errors import ExternalProcessFailure, SyncNotConfigured
from .git_staging import (
    GitStagingHelper,
    is_already_up_to_date,
    is_non_fast_forward,
)
from .models import CommitInfo, GitPublishConf, HistoryResult, SyncAction
from .staging import (
    PULL_EXCLUDES,
    IgnoreFilter,
    copy_tree,
    ensure_sync_dir_empty,
    read_sync_ignore,
    replace_subdirs,
)

logger = logging.getLogger(__name__)

PULLED = "reset-and-pulled-from-remote"
NO_CHANGES = "no_changes"
NON_FAST_FORWARD = "non_fast_forward"
LATEST = "LATEST"
THEME_AND_QUIQR_DIRS = ("themes", "quiqr")


def build_git_url(
    base_url: str,
    org: str,
    repo: str,
    protocol: str = "ssh",
    ssh_port: int = 22,
) -> str:
    """Build the remote URL handed to the embedded git binary.

    >>> build_git_url("github.com", "acme", "site")
    'git@github.com:acme/site.git'
    >>> build_git_url("git.example.com:3000", "acme", "site", "ssh", 2222)
    'ssh://git@git.example.com:2222/acme/site.git'
    >>> build_git_url("localhost:3000", "acme", "site", "https")
    'http://localhost:3000/acme/site.git'
    """
    repo_with_git = repo if repo.endswith(".git") else f"{repo}.git"
    if protocol == "ssh":
        host = base_url.split(":", 1)[0]
        if ssh_port == 22:
            return f"git@{host}:{org}/{repo_with_git}"
        return f"ssh://git@{host}:{ssh_port}/{org}/{repo_with_git}"

    is_local = base_url.startswith("localhost") or base_url.startswith(
        "127.0.0.1"
    )
    scheme = "http" if is_local else "https"
    return f"{scheme}://{base_url}/{org}/{repo_with_git}"


class GitSync(SyncService):
    service_type = "git"
    config: GitPublishConf

    def __init__(
        self,
        config: GitPublishConf,
        site_key: str,
        workspace_key: str,
        dependencies: SyncServiceDependencies,
    ):
        super().__init__(config, site_key, workspace_key, dependencies)
        self.ci_configurator = get_ci_configurator(config.git_provider)
        self.staging = GitStagingHelper(self.git, self.console)

    def handlers(self) -> Mapping[SyncAction, ActionHandler]:
        return {
            SyncAction.READ_REMOTE: lambda _p: self.read_remote(),
            SyncAction.REFRESH_REMOTE: lambda _p: self.history_remote(),
            SyncAction.CHECKOUT_REF: lambda p: self.checkout_ref(p.get("ref")),
            SyncAction.PULL_FROM_REMOTE: lambda _p: self.pull_fast_forward_merge(),
            SyncAction.HARD_PUSH: lambda _p: self.hard_push(),
            SyncAction.CHECKOUT_LATEST: lambda _p: self.checkout_ref(LATEST),
            SyncAction.PUSH_WITH_SOFT_MERGE: lambda _p: self.push_with_soft_merge(),
        }

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def log_prefix(self) -> str:
        return f"GIT[{self.config.git_provider.upper()}]"

    @property
    def repository(self) -> str:
        if not self.config.repository:
            raise SyncNotConfigured("Git repository is not configured")
        return self.config.repository

    def git_url(self) -> str:
        return build_git_url(
            self.config.git_base_url,
            self.config.username,
            self.repository,
            self.config.git_protocol,
            self.config.ssh_port or 22,
        )

    @property
    def staging_root(self) -> Path:
        return self.path_helper.sync_repo_dir(
            self.site_key, self.config.git_provider
        )

    @property
    def checkout_dir(self) -> Path:
        return self.staging_root / self.repository

    @property
    def temp_root(self) -> Path:
        return self.path_helper.temp_dir(self.site_key)

    @property
    def history_cache_file(self) -> Path:
        return self.path_helper.history_cache_file(
            self.site_key, self.config.git_provider, self.repository
        )

    def _require_credentials(self) -> str:
        if not self.config.repository:
            raise SyncNotConfigured("Git repository is not configured")
        if not self.config.deploy_private_key:
            raise SyncNotConfigured("Deploy private key is not configured")
        return self.config.deploy_private_key

    def _author(self) -> GitIdentity:
        return GitIdentity(
            name=self.config.username or ANONYMOUS.name,
            email=self.config.email or ANONYMOUS.email,
        )

    def _deploy_key(self):
        return self.staging.deploy_key(
            self.temp_root, self._require_credentials(), self._author()
        )

    def _workflow_options(self) -> WorkflowOptions:
        override = (
            self.config.override_base_url
            if self.config.override_base_url_switch
            else None
        )
        return WorkflowOptions(
            branch=self.config.branch or "main",
            override_base_url=override or None,
        )

    def _sync_ignore_patterns(self) -> list[str]:
        site = self.configuration_provider.get_site(self.site_key)
        if site is None or site.source is None or not site.source.path:
            return []
        return read_sync_ignore(Path(site.source.path).expanduser())

    def _push_filter(self, root: Path) -> IgnoreFilter:
        return IgnoreFilter(
            root,
            exclude_public=self.config.publish_scope == "source",
            patterns=self._sync_ignore_patterns(),
        )

    def _wants_ci_workflow(self) -> bool:
        return (
            self.config.publish_scope == "source"
            and bool(self.config.set_ci_workflow)
            and self.ci_configurator is not None
        )

    def _banner(self, title: str, extra: list) -> None:
        write_banner(
            self.console,
            f"{self.log_prefix} {title}",
            [
                ("git url", self.git_url()),
                ("destination path", self.checkout_dir),
                None,
                ("repository", self.repository),
                ("branch", self.config.branch),
                ("email", self.config.email),
                *extra,
            ],
        )

    # ------------------------------------------------------------------
    # Push
    # ------------------------------------------------------------------

    async def push_with_soft_merge(self) -> bool:
        self._require_credentials()
        build_dir = self.require_build_dir()
        checkout = self.checkout_dir

        with self._deploy_key() as identity:
            self._banner(
                "SYNC",
                [
                    ("from is", build_dir),
                    ("publishScope", self.config.publish_scope),
                    ("set CI workflow", self.config.set_ci_workflow),
                    ("override BaseURL", self.config.override_base_url),
                ],
            )

            self.progress.send("Get remote files..", 20)
            await self.staging.refresh_checkout(
                self.git_url(), self.staging_root, checkout, identity
            )

            self.progress.send("Prepare files before uploading..", 30)
            if self.config.publish_scope == "build":
                await self.staging.copy_build_output(build_dir, checkout)
            else:
                await self._prepare_source(build_dir, checkout)

            self.progress.send("Upload files to remote server..", 70)
            await self.staging.add_commit_push(checkout, identity)
        return True

    async def _prepare_source(self, build_dir: Path, checkout: Path) -> None:
        await self.staging.copy_site_tree(
            build_dir, checkout, self._push_filter(build_dir)
        )
        if self._wants_ci_workflow():
            await self.staging.write_workflow(
                self.ci_configurator, checkout, self._workflow_options()
            )
        if self.config.cname_switch and self.config.cname:
            await self.staging.write_cname(checkout, self.config.cname)
        await self.staging.ensure_static_dir(checkout)
        self.console.append_line("prepare and sync finished")

    async def hard_push(self) -> bool:
        self._require_credentials()
        site_path = self.site_source_path()
        checkout = self.checkout_dir

        temp_root = await run_sync(ensure_sync_dir_empty, self.temp_root)
        clone_dir = temp_root / "tmpclone"
        clone_dir.mkdir()

        with self._deploy_key() as identity:
            await run_sync(ensure_sync_dir_empty, self.staging_root)
            self._banner("CHECKOUT", [("site path", site_path)])

            self.progress.send("Getting latest remote commit history..", 20)
            await self.staging.initial_clone(self.git_url(), clone_dir, identity)

            self.progress.send("Copying commit history to destination directory", 30)
            await self.staging.copy_history(clone_dir, checkout)

            self.progress.send("Copying site files to git destination directory", 40)
            await self.staging.copy_site_tree(
                site_path, checkout, self._push_filter(site_path)
            )

            if self._wants_ci_workflow():
                await self.staging.write_workflow(
                    self.ci_configurator, checkout, self._workflow_options()
                )

            self.progress.send("Upload files to remote server..", 70)
            await self.staging.add_commit_push(checkout, identity)
        return True

    # ------------------------------------------------------------------
    # Pull / checkout
    # ------------------------------------------------------------------

    async def pull_fast_forward_merge(self) -> str:
        self._require_credentials()
        site_path = self.site_source_path()
        checkout = self.checkout_dir
        selection = self.config.sync_selection or "all"

        with self._deploy_key() as identity:
            self._banner("PULL", [("site path", site_path), ("sync selection", selection)])
            try:
                self.progress.send("Get remote files..", 20)
                if not (checkout / ".git").is_dir():
                    await run_sync(ensure_sync_dir_empty, checkout)
                    await self.staging.initial_clone(self.git_url(), checkout, identity)
                await self.git.reset_hard(checkout)
                await self.staging.pull_tolerant(checkout, identity)

                self.progress.send("Copying remote files to site directory", 60)
                await self._copy_checkout_to_site(checkout, site_path, selection)
            except ExternalProcessFailure as e:
                if is_already_up_to_date(e):
                    return NO_CHANGES
                if is_non_fast_forward(e):
                    self.console.append_line("Pull rejected: non-fast-forward update")
                    return NON_FAST_FORWARD
                raise
        return PULLED

    async def _copy_checkout_to_site(
        self, checkout: Path, site_path: Path, selection: str
    ) -> None:
        if selection == "themeandquiqr":
            await run_sync(replace_subdirs, checkout, site_path, THEME_AND_QUIQR_DIRS)
            self.console.append_line("synced THEME AND QUIQR sources to destination ...")
            return
        ignore = IgnoreFilter(
            checkout,
            exclude_public=self.config.publish_scope == "source",
            patterns=self._sync_ignore_patterns(),
            names=PULL_EXCLUDES,
        )
        await run_sync(copy_tree, checkout, site_path, ignore)
        self.console.append_line("synced ALL source to destination ...")

    async def checkout_ref(self, ref: str | None = LATEST) -> bool:
        if not ref:
            raise ValueError("checkoutRef requires a 'ref' parameter")
        self._require_credentials()
        site_path = self.site_source_path()
        checkout = self.checkout_dir

        with self._deploy_key() as identity:
            await run_sync(ensure_sync_dir_empty, self.staging_root)
            self._banner("CHECKOUT", [("git ref", ref)])

            self.progress.send("Making a fresh clone of the repository..", 20)
            await self.staging.initial_clone(self.git_url(), checkout, identity)

        if ref != LATEST:
            self.progress.send(f"Checking out ref: {ref}", 70)
            await self.git.checkout(ref, checkout)

        self.progress.send("Copying to main site directory", 90)
        await run_sync(ensure_sync_dir_empty, site_path)
        await run_sync(
            copy_tree, checkout, site_path, IgnoreFilter(checkout, names=(".git",))
        )
        return True

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    async def history_remote(self) -> HistoryResult:
        """Fetch the remote log, flag commits present locally, and cache it."""
        checkout = self.checkout_dir
        with self._deploy_key() as identity:
            self.progress.send("Getting remote commits.", 20)
            remote = await self.git.log_remote(self.git_url(), identity)

        local_refs: set[str] = set()
        if checkout.exists():
            self.progress.send("Comparing with local commit history", 80)
            try:
                local = await self.git.log_local(checkout)
            except ExternalProcessFailure as e:
                # detached HEAD after a checkoutRef
                self.console.append_line(
                    f"Warning: Could not get local commit history: {e}"
                )
                local = []
            local_refs = {entry.get("ref") for entry in local}

        commits = [
            CommitInfo.model_validate({**entry, "local": entry.get("ref") in local_refs})
            for entry in remote
        ]

        self.progress.send("Writing commit history cache", 95)
        cache = self.history_cache_file
        payload = json.dumps([c.model_dump(mode="json") for c in commits])
        await run_sync(write_file, cache, payload)
        return HistoryResult(last_refresh=_mtime(cache), commit_list=commits)

    async def history_remote_from_cache(self) -> HistoryResult | None:
        cache = self.history_cache_file
        if not cache.is_file():
            return None
        content, _ = await run_sync(read_file_with_encoding, cache)
        commits = [CommitInfo.model_validate(entry) for entry in json.loads(content)]
        return HistoryResult(last_refresh=_mtime(cache), commit_list=commits)

    async def read_remote(self) -> HistoryResult:
        cached = await self.history_remote_from_cache()
        if cached is not None:
            return cached
        return await self.history_remote()


def _mtime(path: Path) -> datetime:
    return datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
