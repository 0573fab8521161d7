"""Exception hierarchy for the publish/sync engine.

Every failure a caller can observe from ``action_dispatcher`` is a
``SyncError`` subclass (or a ``ValueError`` for malformed action
parameters).  Nothing in the engine swallows these; console output is
supplementary.
"""

from __future__ import annotations

from collections.abc import Sequence


class SyncError(Exception):
    """Base class for all publish/sync errors."""


class SyncNotConfigured(SyncError):
    """A required configuration value is missing.

    Raised before any filesystem mutation takes place.
    """


class UnsupportedSyncType(SyncError):
    """The factory cannot resolve a backend for a publish config type."""

    def __init__(self, sync_type: str) -> None:
        self.sync_type = sync_type
        super().__init__(f"Unsupported sync type: {sync_type!r}")


class ActionNotImplemented(SyncError):
    """A valid service was asked for an action it does not support."""

    def __init__(
        self, action: str, service_type: str, placeholder: bool = False
    ) -> None:
        self.action = action
        self.service_type = service_type
        self.placeholder = placeholder
        if placeholder:
            message = (
                f"Not yet implemented: {action} ({service_type} sync)"
            )
        else:
            message = (
                f"Action not implemented: {action} ({service_type} sync)"
            )
        super().__init__(message)


class NoBuildAvailable(SyncError):
    """A publish was requested before the build pipeline produced output."""


class ExternalProcessFailure(SyncError):
    """The embedded git binary failed, timed out, or could not start.

    Attributes:
        args_used: The subcommand and arguments passed to the binary.
        returncode: Process exit code, ``None`` if it never exited normally.
        stderr: Captured standard error.
        stdout: Captured standard output.
    """

    def __init__(
        self,
        args_used: Sequence[str],
        returncode: int | None,
        stderr: str = "",
        stdout: str = "",
        reason: str | None = None,
    ) -> None:
        self.args_used = list(args_used)
        self.returncode = returncode
        self.stderr = stderr
        self.stdout = stdout
        subcommand = self.args_used[0] if self.args_used else "?"
        detail = reason or stderr.strip() or stdout.strip() or "no output"
        if returncode is None:
            message = f"embgit {subcommand} failed: {detail}"
        else:
            message = (
                f"embgit {subcommand} exited with code {returncode}: {detail}"
            )
        super().__init__(message)

    @property
    def output(self) -> str:
        """Combined stdout and stderr, for matching known status phrases."""
        return f"{self.stdout}\n{self.stderr}"
