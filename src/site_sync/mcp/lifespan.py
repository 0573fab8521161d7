"""Lifespan management for MCP server startup and shutdown."""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from ..runtime import load_runtime
from ..sync.errors import SyncNotConfigured

logger = logging.getLogger(__name__)


def _stderr_print(msg: str) -> None:
    """Print message to stderr for user feedback (safe in MCP mode)."""
    print(msg, file=sys.stderr, flush=True)


@asynccontextmanager
async def server_lifespan(
    config_overrides: dict[str, Any] | None = None,
) -> AsyncIterator[dict[str, Any]]:
    """
    Manage server startup and shutdown lifecycle.

    On startup:
    - Load .env, YAML config files and CLI overrides into a runtime
    - Report the data root and configured sites on stderr
    - Warn (without failing) when the embedded git binary cannot be found;
      folder targets still work without it

    Args:
        config_overrides: Optional dict with config values from CLI
            (data_root, git_binary, git_timeout, build_dir)

    Yields:
        Dict with 'runtime' key containing the initialized Runtime

    Raises:
        RuntimeError: If configuration is invalid.
    """
    logger.info("MCP server starting...")
    _stderr_print("Site Sync MCP Server starting...")

    overrides = {
        k: v
        for k, v in (config_overrides or {}).items()
        if k in ("data_root", "git_binary", "git_timeout", "build_dir", "debug")
    }
    try:
        runtime = load_runtime(overrides)
    except ValueError as e:
        logger.error("Configuration error: %s", e)
        _stderr_print(f"ERROR: Configuration error: {e}")
        _stderr_print("  Check SITE_SYNC_ROOT and the config file.")
        raise RuntimeError(
            f"Configuration error: {e}. Check SITE_SYNC_ROOT and the config file."
        ) from e

    source_desc = ", ".join(runtime.sources) if runtime.sources else "defaults"
    _stderr_print(f"  Configuration loaded from: {source_desc}")
    _stderr_print(f"  Data root: {runtime.config.data_root}")
    site_keys = [s.key for s in runtime.provider.list_sites()]
    logger.info("Configured sites: %s", site_keys)
    _stderr_print(f"  Sites: {', '.join(site_keys) or 'none'}")

    try:
        binary = runtime.factory.dependencies.git.binary
        _stderr_print(f"  Embedded git: {binary}")
    except SyncNotConfigured as e:
        logger.warning("Embedded git not available: %s", e)
        _stderr_print(f"  WARNING: {e}. Git targets will fail until it is set.")

    _stderr_print("Server ready. Waiting for MCP client connection...")

    yield {"runtime": runtime}

    logger.info("MCP server shutting down")
    _stderr_print("Site Sync MCP Server shutting down.")
