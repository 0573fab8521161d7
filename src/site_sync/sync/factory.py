"""Builds the sync service for a publish config.

The backend is chosen strictly by the config's ``type``.  Every service
receives the same dependencies, and every returned service runs its
actions under a lock keyed by the site.  All targets of a site share its
temp root, its git staging roots and its source tree, so actions on the
same site run one at a time whichever target they belong to.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Hashable
from typing import Any

from pydantic import BaseModel

from ..core.async_utils import KeyedLocks
from .base import SyncService, SyncServiceDependencies
from .errors import UnsupportedSyncType
from .folder import FolderSync
from .git import GitSync
from .legacy import GithubSync, SysgitSync
from .models import PublishConfig, parse_sync_config
from .progress import ProgressCallback

logger = logging.getLogger(__name__)

SERVICES: dict[str, type[SyncService]] = {
    "folder": FolderSync,
    "git": GitSync,
    "github": GithubSync,
    "sysgit": SysgitSync,
}


class SerializedService:
    """Wraps a ``SyncService`` so each action holds its site's lock."""

    def __init__(
        self,
        service: SyncService,
        locks: KeyedLocks,
        lock_key: Hashable,
        publish_key: str | None = None,
    ):
        self.service = service
        self._locks = locks
        self.lock_key = lock_key
        self.publish_key = publish_key

    @property
    def service_type(self) -> str:
        return self.service.service_type

    def supported_actions(self) -> list[str]:
        return self.service.supported_actions()

    async def action_dispatcher(
        self, action: str, parameters: dict | None = None
    ) -> Any:
        if self._locks.is_locked(self.lock_key):
            logger.info(
                "Waiting for running action on site %s before %s (%s)",
                self.lock_key,
                action,
                self.publish_key,
            )
        async with self._locks.hold(self.lock_key):
            return await self.service.action_dispatcher(action, parameters)


class SyncFactory:
    """Creates sync services sharing one set of dependencies and one lock registry."""

    def __init__(
        self,
        dependencies: SyncServiceDependencies,
        locks: KeyedLocks | None = None,
    ):
        self.dependencies = dependencies
        self.locks = locks or KeyedLocks()

    def get_publisher(
        self,
        config: PublishConfig | BaseModel | dict,
        site_key: str,
        workspace_key: str,
        publish_key: str | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> SerializedService:
        """Return the service for *config*.

        Args:
            config: A ``PublishConfig``, one of its variant models, or the
                raw persisted variant dict.
            site_key: Site the target belongs to; also the action lock key.
            workspace_key: Workspace the action runs for.
            publish_key: Target key, reported in logs.  Taken from
                a ``PublishConfig`` when omitted; falls back to the type.
            progress_callback: Overrides the factory-wide callback for this
                service.

        Raises:
            UnsupportedSyncType: If no backend handles ``config.type``.
        """
        if isinstance(config, PublishConfig):
            publish_key = publish_key or config.key
            config = config.config

        if isinstance(config, dict):
            sync_type = config.get("type")
        else:
            sync_type = getattr(config, "type", None)

        service_cls = SERVICES.get(sync_type) if isinstance(sync_type, str) else None
        if service_cls is None:
            raise UnsupportedSyncType(str(sync_type))

        if isinstance(config, dict):
            config = parse_sync_config(config)

        deps = self.dependencies
        if progress_callback is not None:
            deps = dataclasses.replace(deps, progress_callback=progress_callback)

        service = service_cls(config, site_key, workspace_key, deps)
        publish_key = publish_key or sync_type
        logger.debug(
            "Created %s service for %s/%s", sync_type, site_key, publish_key
        )
        return SerializedService(service, self.locks, site_key, publish_key)
