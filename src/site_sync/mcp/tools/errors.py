"""Error responses for MCP tool handlers.

Errors are returned to the agent as results with ``isError=True`` and a
corrective action, never raised through the protocol layer.
"""

import mcp.types as types

from ...sync.errors import (
    ActionNotImplemented,
    ExternalProcessFailure,
    NoBuildAvailable,
    SyncError,
    SyncNotConfigured,
    UnsupportedSyncType,
)


def build_error_response(
    error_type: str, message: str, corrective_action: str
) -> types.CallToolResult:
    """Build a structured error response with corrective action.

    Examples:
        >>> build_error_response("no_build", "No build", "Build the site first.")
        CallToolResult(content=[TextContent(...)], isError=True)
    """
    error_text = f"Error ({error_type}): {message}\n\nAction: {corrective_action}"
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=error_text)],
        isError=True,
    )


def translate_sync_error(error: SyncError) -> types.CallToolResult:
    """Map a ``SyncError`` to an error response with a matching hint."""
    match error:
        case SyncNotConfigured():
            return build_error_response(
                "not_configured",
                str(error),
                "Complete the site's source path or publish target settings "
                "(repository, deploy key, folder path) in the config file.",
            )
        case UnsupportedSyncType():
            return build_error_response(
                "unsupported_type",
                str(error),
                "Use a publish target of type folder or git.",
            )
        case ActionNotImplemented(placeholder=True):
            return build_error_response(
                "not_implemented",
                str(error),
                "This legacy target type has no backend; recreate it as a 'git' target.",
            )
        case ActionNotImplemented():
            return build_error_response(
                "not_implemented",
                str(error),
                "Use publish_targets to see the actions this target supports.",
            )
        case NoBuildAvailable():
            return build_error_response(
                "no_build",
                str(error),
                "Build the site, then pass its output directory as build_dir.",
            )
        case ExternalProcessFailure():
            return build_error_response(
                "git_error",
                str(error),
                "Check the remote URL, deploy key and network access, then retry.",
            )
        case _:
            return build_error_response(
                "sync_error", str(error), "Check the console log and retry."
            )
