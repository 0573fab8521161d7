"""Pydantic models for the publish/sync engine.

Defines the core data contracts used across all sync modules:

- ``SyncAction``: Enum of the action names accepted by ``action_dispatcher``.
- ``FolderPublishConf``, ``GitPublishConf``, ``GithubPublishConf``,
  ``SysgitPublishConf``: the publish target variants, discriminated by
  ``type``.
- ``PublishConfig``: a named publish target attached to a site.
- ``ProgressEvent``: one progress notification.
- ``CommitInfo``, ``HistoryResult``: remote commit history.

Publish configs are persisted with camelCase keys (``publishScope``,
``deployPrivateKey``, ``CNAMESwitch``).  Models accept those keys as well
as the Python attribute names.  All models are frozen.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel


class SyncAction(str, Enum):
    """Action names understood by sync services (wire-level strings)."""

    PULL_FROM_REMOTE = "pullFromRemote"
    PUSH_TO_REMOTE = "pushToRemote"
    READ_REMOTE = "readRemote"
    REFRESH_REMOTE = "refreshRemote"
    CHECKOUT_REF = "checkoutRef"
    HARD_PUSH = "hardPush"
    CHECKOUT_LATEST = "checkoutLatest"
    PUSH_WITH_SOFT_MERGE = "pushWithSoftMerge"

    @classmethod
    def parse(cls, value: str) -> SyncAction | None:
        """Return the member for *value*, or ``None`` if unknown."""
        try:
            return cls(value)
        except ValueError:
            return None


PublishScope = Literal["build", "source", "build_and_source"]
GitProvider = Literal["github", "gitlab", "forgejo", "generic"]
SyncSelection = Literal["all", "themeandquiqr"]


class _PersistedModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


# ---------------------------------------------------------------------------
# Publish target variants
# ---------------------------------------------------------------------------


class FolderPublishConf(_PersistedModel):
    """Publish to a local folder, no git involved.

    Attributes:
        path: Destination folder.  Required by every action, but optional
            here so a half-configured target can still be stored.
        publish_scope: ``build`` copies ``public/`` only, ``source`` copies
            the site tree without ``public/``, ``build_and_source`` both.
    """

    type: Literal["folder"] = "folder"
    path: str | None = None
    publish_scope: PublishScope = "build"
    override_base_url_switch: bool = Field(
        default=False, alias="overrideBaseURLSwitch"
    )
    override_base_url: str = Field(default="", alias="overrideBaseURL")


class _GitLikeConf(_PersistedModel):
    title: str | None = None
    email: str = ""
    branch: str = "main"
    deploy_private_key: str | None = None
    deploy_public_key: str | None = None
    publish_scope: PublishScope = "build"
    key_pair_busy: bool | None = None
    override_base_url_switch: bool = Field(
        default=False, alias="overrideBaseURLSwitch"
    )
    override_base_url: str = Field(default="", alias="overrideBaseURL")
    pull_only: bool | None = None
    backup_at_pull: bool | None = None
    sync_selection: SyncSelection | None = None
    cname_switch: bool | None = Field(default=None, alias="CNAMESwitch")
    cname: str | None = Field(default=None, alias="CNAME")


class GitPublishConf(_GitLikeConf):
    """Universal git target (GitHub, GitLab, Forgejo/Gitea, generic).

    Attributes:
        git_provider: Selects the CI configurator; ``generic`` gets none.
        git_base_url: Host, optionally with ``:port`` (e.g. ``localhost:3000``).
        git_protocol: ``ssh`` or ``https``.
        ssh_port: SSH port, only used for the ``ssh`` protocol.
        username: Organisation or user owning the repository; also the
            commit author name.
        repository: Repository name, with or without ``.git``.
        set_ci_workflow: Write the provider's CI workflow on source publishes.
    """

    type: Literal["git"] = "git"
    git_provider: GitProvider = "generic"
    git_base_url: str = ""
    git_protocol: Literal["ssh", "https"] = "ssh"
    ssh_port: int | None = None
    username: str = ""
    repository: str | None = None
    set_ci_workflow: bool | None = Field(default=None, alias="setCIWorkflow")


class GithubPublishConf(_GitLikeConf):
    """Legacy single-provider GitHub target (placeholder backend)."""

    type: Literal["github"] = "github"
    username: str = ""
    repository: str | None = None
    set_github_actions: bool = Field(
        default=False, alias="setGitHubActions"
    )


class SysgitPublishConf(_GitLikeConf):
    """Legacy system-git target (placeholder backend)."""

    type: Literal["sysgit"] = "sysgit"
    git_server_url: str = Field(default="", alias="git_server_url")
    set_github_actions: bool = Field(
        default=False, alias="setGitHubActions"
    )


SyncConfigVariant = Annotated[
    Union[
        FolderPublishConf,
        GitPublishConf,
        GithubPublishConf,
        SysgitPublishConf,
    ],
    Field(discriminator="type"),
]

_variant_adapter: TypeAdapter[SyncConfigVariant] = TypeAdapter(
    SyncConfigVariant
)


def parse_sync_config(raw: dict) -> SyncConfigVariant:
    """Validate a raw persisted publish config dict into its variant model."""
    return _variant_adapter.validate_python(raw)


class PublishConfig(BaseModel):
    """A named publish target attached to a site.

    Attributes:
        key: Unique within the site's publish list; used for lookup and
            as part of the action lock key.  Not secret.
        config: The target variant.
    """

    key: str
    config: SyncConfigVariant

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Progress and history
# ---------------------------------------------------------------------------


class ProgressEvent(BaseModel):
    """One progress notification.

    Attributes:
        message: Human-readable step description.
        progress: Percentage, 0-100.  Monotonic in spirit only.
        complete: Set on the final event of a successful action.
        error: Set on the final event of a failed action.
    """

    message: str
    progress: int = Field(ge=0, le=100)
    complete: bool | None = None
    error: str | None = None

    model_config = {"frozen": True}


class CommitInfo(BaseModel):
    """A commit as reported by ``log_remote``/``log_local``.

    Extra keys reported by the git binary are kept as-is.
    """

    ref: str
    message: str | None = None
    author: str | None = None
    date: str | None = None
    local: bool = False

    model_config = {"frozen": True, "extra": "allow"}


class HistoryResult(BaseModel):
    """Remote commit history with the time it was last fetched."""

    last_refresh: datetime = Field(alias="lastRefresh")
    commit_list: list[CommitInfo] = Field(
        default_factory=list, alias="commitList"
    )

    model_config = {"frozen": True, "populate_by_name": True}
