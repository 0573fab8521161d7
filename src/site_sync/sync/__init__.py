"""Publish/sync engine.

Pushes a built or authored site to a folder or a git remote and pulls
remote state back into the site's source tree.

Modules:

- ``models``      -- publish config variants, ``SyncAction``, progress and
  history models.
- ``errors``      -- ``SyncError`` hierarchy.
- ``staging``     -- directory emptying, filtered copies, artifact removal.
- ``git_staging`` -- the git staging steps shared by git backends.
- ``ci``          -- CI workflow configurators per git provider.
- ``base``        -- ``SyncService`` and its injected dependencies.
- ``folder``, ``git``, ``legacy`` -- the backends.
- ``factory``     -- ``SyncFactory``: picks a backend and serializes actions.

Only models and errors are re-exported here; import the services from
their modules (``from site_sync.sync.factory import SyncFactory``).
"""

from .errors import (
    ActionNotImplemented,
    ExternalProcessFailure,
    NoBuildAvailable,
    SyncError,
    SyncNotConfigured,
    UnsupportedSyncType,
)
from .models import (
    CommitInfo,
    FolderPublishConf,
    GitPublishConf,
    GithubPublishConf,
    HistoryResult,
    ProgressEvent,
    PublishConfig,
    SyncAction,
    SysgitPublishConf,
    parse_sync_config,
)

__all__ = [
    "ActionNotImplemented",
    "CommitInfo",
    "ExternalProcessFailure",
    "FolderPublishConf",
    "GitPublishConf",
    "GithubPublishConf",
    "HistoryResult",
    "NoBuildAvailable",
    "ProgressEvent",
    "PublishConfig",
    "SyncAction",
    "SyncError",
    "SyncNotConfigured",
    "SysgitPublishConf",
    "UnsupportedSyncType",
    "parse_sync_config",
]
