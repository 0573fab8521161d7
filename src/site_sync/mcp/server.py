"""MCP server exposing site publish targets over stdio.

Transport: stdio
Protocol: JSON-RPC 2.0 over MCP
"""

import argparse
import asyncio
import logging
import sys

import mcp.server.stdio
import mcp.types as types
from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions

from .. import __version__
from ..logger import setup_logging
from ..runtime import Runtime
from .lifespan import server_lifespan
from .tools import ALL_SPECS, ToolRegistry, build_error_response

logger = logging.getLogger(__name__)

server = Server("site-sync-mcp")

# Initialized in main()
_runtime: Runtime | None = None
_registry: ToolRegistry | None = None


# ---------------------------------------------------------------------------
# Global accessors
# ---------------------------------------------------------------------------


def get_runtime() -> Runtime:
    """Get the global Runtime instance.

    Raises:
        RuntimeError: If the runtime is not initialized
    """
    if _runtime is None:
        raise RuntimeError("Runtime not initialized. Server lifespan not started.")
    return _runtime


def set_runtime(runtime: Runtime | None) -> None:
    global _runtime
    _runtime = runtime


def get_registry() -> ToolRegistry:
    """Get the global ToolRegistry instance.

    Raises:
        RuntimeError: If registry is not initialized
    """
    if _registry is None:
        raise RuntimeError("ToolRegistry not initialized.")
    return _registry


def set_registry(registry: ToolRegistry | None) -> None:
    global _registry
    _registry = registry


# ---------------------------------------------------------------------------
# MCP protocol handlers
# ---------------------------------------------------------------------------


@server.list_tools()
async def handle_list_tools() -> list[types.Tool]:
    """List available publish tools."""
    return get_registry().list_tools()


@server.call_tool()
async def handle_call_tool(
    name: str, arguments: dict | None
) -> types.CallToolResult:
    """Handle tool execution via ToolRegistry dispatch."""
    runtime = get_runtime()
    try:
        return await get_registry().call_tool(name, arguments, runtime)
    except ValueError as e:
        # Unknown or filtered-out tool name
        return build_error_response(
            "unknown_tool",
            str(e),
            "Use list_tools to see available tools.",
        )


# ---------------------------------------------------------------------------
# Server lifecycle
# ---------------------------------------------------------------------------


async def main(config_overrides: dict | None = None):
    """Run the MCP server with stdio transport.

    Logging is set up for MCP mode (file only, never stdout) before the
    stdio transport starts.

    Args:
        config_overrides: Optional dict with data_root, git_binary,
            git_timeout, build_dir, read_only and log_file
    """
    overrides = config_overrides or {}
    setup_logging(mode="mcp", log_file=overrides.get("log_file"))

    read_only = bool(overrides.get("read_only"))
    registry = ToolRegistry(ALL_SPECS, read_only=read_only)
    logger.info(
        "Registered %d tools (of %d total)", registry.tool_count(), len(ALL_SPECS)
    )
    if read_only:
        print(
            f"Read-only mode: {registry.tool_count()} of {len(ALL_SPECS)} tools enabled",
            file=sys.stderr,
        )
    set_registry(registry)

    # set_runtime() is called here rather than in the lifespan so that
    # running this file as __main__ updates the same module globals the
    # handlers read.
    async with server_lifespan(config_overrides=overrides) as ctx:
        set_runtime(ctx["runtime"])
        try:
            async with mcp.server.stdio.stdio_server() as (
                read_stream,
                write_stream,
            ):
                init_options = InitializationOptions(
                    server_name="site-sync-mcp",
                    server_version=__version__,
                    capabilities=server.get_capabilities(
                        notification_options=NotificationOptions(),
                        experimental_capabilities={},
                    ),
                )
                await server.run(read_stream, write_stream, init_options)
        finally:
            set_runtime(None)
            set_registry(None)


def run() -> None:
    """Entry point that handles errors gracefully and parses CLI arguments."""
    parser = argparse.ArgumentParser(
        description="Site Sync MCP Server - publish static sites from an MCP client",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run with default config (from .env or .site_sync/config.yml)
  site-sync-mcp

  # Use another data root and embedded git binary
  site-sync-mcp --data-root ~/SiteSync --git-binary /opt/embgit/embgit

  # Only expose listing and history tools
  site-sync-mcp --read-only

Note: This server uses stdio transport for JSON-RPC communication with MCP clients.
All user-facing messages are written to stderr.
        """,
    )
    parser.add_argument("--data-root", help="Data root (overrides SITE_SYNC_ROOT)")
    parser.add_argument(
        "--git-binary", help="Embedded git binary (overrides EMBGIT_PATH)"
    )
    parser.add_argument(
        "--git-timeout", type=float, help="Seconds before a git call is killed"
    )
    parser.add_argument(
        "--build-dir", help="Default directory of the last site build"
    )
    parser.add_argument(
        "--read-only",
        action="store_true",
        help="Only register tools that do not change sites or remotes",
    )
    parser.add_argument(
        "--log-file",
        default="/tmp/site-sync.log",
        help="Log file path (default: /tmp/site-sync.log)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"site-sync-mcp version {__version__}",
    )

    args = parser.parse_args()

    config_overrides = {
        k: v
        for k, v in vars(args).items()
        if v is not None and v is not False
    }
    if config_overrides:
        print(
            f"Config overrides from CLI: {', '.join(config_overrides)}",
            file=sys.stderr,
        )

    try:
        asyncio.run(main(config_overrides=config_overrides or None))
    except RuntimeError:
        # Error already printed to stderr by lifespan manager
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(0)


if __name__ == "__main__":
    run()
