"""Common interface of all sync services.

A service performs one named action per ``action_dispatcher`` call.
Action strings are parsed into ``SyncAction`` at this boundary, and each
service declares the actions it supports as an explicit mapping; anything
else is rejected with ``ActionNotImplemented``.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, ClassVar

from ..core.console import LoggingConsole, OutputConsole
from ..core.paths import PathHelper
from ..core.sites import ConfigurationProvider, resolve_source_path
from ..git.process import EmbeddedGit
from .errors import ActionNotImplemented, NoBuildAvailable
from .models import SyncAction
from .progress import ProgressCallback, ProgressReporter

logger = logging.getLogger(__name__)

ActionHandler = Callable[[dict], Awaitable[Any]]


@dataclass
class SyncServiceDependencies:
    """Collaborators injected identically into every service."""

    path_helper: PathHelper
    configuration_provider: ConfigurationProvider
    git: EmbeddedGit
    console: OutputConsole = field(default_factory=LoggingConsole)
    progress_callback: ProgressCallback | None = None


class SyncService(ABC):
    """Base class for sync backends.

    Subclasses set ``service_type`` and return their supported actions
    from ``handlers()``.  ``placeholder`` services support nothing and
    say so in the rejection message.
    """

    service_type: ClassVar[str]
    placeholder: ClassVar[bool] = False

    def __init__(
        self,
        config: Any,
        site_key: str,
        workspace_key: str,
        dependencies: SyncServiceDependencies,
    ):
        self.config = config
        self.site_key = site_key
        self.workspace_key = workspace_key
        self.path_helper = dependencies.path_helper
        self.configuration_provider = dependencies.configuration_provider
        self.git = dependencies.git
        self.console = dependencies.console
        self.progress = ProgressReporter(
            dependencies.progress_callback, dependencies.console
        )

    @abstractmethod
    def handlers(self) -> Mapping[SyncAction, ActionHandler]:
        """Map each supported action to its coroutine."""

    def supported_actions(self) -> list[str]:
        return [action.value for action in self.handlers()]

    async def action_dispatcher(
        self, action: str, parameters: dict | None = None
    ) -> Any:
        """Run one action and return its result.

        Raises:
            ActionNotImplemented: If *action* is unknown or unsupported here.
            SyncError: Any failure of the action itself.
            ValueError: If *parameters* are malformed.
        """
        parsed = SyncAction.parse(action)
        handler = self.handlers().get(parsed) if parsed is not None else None
        if handler is None:
            raise ActionNotImplemented(
                action, self.service_type, placeholder=self.placeholder
            )

        logger.info(
            "%s sync: %s for site %s", self.service_type, action, self.site_key
        )
        try:
            result = await handler(parameters or {})
        except asyncio.CancelledError:
            self.progress.fail("Cancelled")
            raise
        except Exception as e:
            logger.error(
                "%s sync: %s failed for site %s: %s",
                self.service_type,
                action,
                self.site_key,
                e,
            )
            self.progress.fail(str(e))
            raise
        self.progress.complete()
        return result

    # ------------------------------------------------------------------
    # Shared lookups
    # ------------------------------------------------------------------

    def require_build_dir(self) -> Path:
        build_dir = self.path_helper.last_build_dir
        if build_dir is None:
            raise NoBuildAvailable(
                "Could not determine last build directory; build the site first"
            )
        return build_dir

    def site_source_path(self) -> Path:
        return resolve_source_path(self.configuration_provider, self.site_key)
