"""Progress reporting for a single action."""

import logging
from collections.abc import Callable

from ..core.console import OutputConsole
from .models import ProgressEvent

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressEvent], None]


class ProgressReporter:
    """Sends ``ProgressEvent``s to an optional callback.

    Emission never fails the action: a callback that raises is logged and
    ignored.  Without a callback, events go to the output console instead.
    """

    def __init__(
        self,
        callback: ProgressCallback | None = None,
        console: OutputConsole | None = None,
    ):
        self.callback = callback
        self.console = console
        self.last: ProgressEvent | None = None

    def _emit(self, event: ProgressEvent) -> None:
        self.last = event
        if self.callback is None:
            if self.console is not None:
                self.console.append_line(f"[{event.progress:3d}%] {event.message}")
            return
        try:
            self.callback(event)
        except Exception:
            logger.warning("Progress callback failed", exc_info=True)

    def send(self, message: str, progress: int) -> None:
        self._emit(ProgressEvent(message=message, progress=progress))

    def complete(self, message: str = "Done") -> None:
        self._emit(ProgressEvent(message=message, progress=100, complete=True))

    def fail(self, error: str) -> None:
        progress = self.last.progress if self.last is not None else 0
        self._emit(
            ProgressEvent(message="Failed", progress=progress, error=error)
        )
