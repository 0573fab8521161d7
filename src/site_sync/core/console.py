"""Human-readable progress output.

Sync services write step-by-step lines (banners, "Clone success ...") to
an ``OutputConsole``.  The lines are informational only; failures are
always raised as exceptions as well.
"""

import logging
from collections.abc import Iterable
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)

BANNER_RULE = "-----------------"


@runtime_checkable
class OutputConsole(Protocol):
    def append_line(self, line: str) -> None: ...


class LoggingConsole:
    """Default console: forwards every line to the ``site_sync.console`` logger."""

    def __init__(self, logger_name: str = "site_sync.console"):
        self._logger = logging.getLogger(logger_name)

    def append_line(self, line: str) -> None:
        self._logger.info("%s", line)


def write_banner(
    console: OutputConsole,
    title: str,
    rows: Iterable[tuple[str, object] | None],
) -> None:
    """Write a ``START <title>`` block of aligned ``label: value`` rows.

    A ``None`` row produces a blank separator line.
    """
    console.append_line(f"START {title}")
    console.append_line(BANNER_RULE)
    for row in rows:
        if row is None:
            console.append_line("")
            continue
        label, value = row
        console.append_line(f"  {label + ':':<21}{'' if value is None else value}")
    console.append_line(BANNER_RULE)
    console.append_line("")
