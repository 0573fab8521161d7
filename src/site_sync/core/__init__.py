"""Core collaborators shared between the CLI, the MCP server, and sync services."""

from .async_utils import KeyedLocks, run_sync
from .console import LoggingConsole, OutputConsole
from .paths import PathHelper
from .sites import ConfigurationProvider, UnifiedConfigProvider

__all__ = [
    "ConfigurationProvider",
    "KeyedLocks",
    "LoggingConsole",
    "OutputConsole",
    "PathHelper",
    "UnifiedConfigProvider",
    "run_sync",
]
