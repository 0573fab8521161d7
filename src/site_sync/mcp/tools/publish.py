"""MCP tool handlers for publish targets.

Defines three tools:

- ``publish_targets`` -- list sites, their publish targets and supported actions.
- ``publish_history`` -- remote commit history of a git target (cached or fresh).
- ``publish_action``  -- run one sync action against a publish target.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import mcp.types as types

from ...core.sites import find_publish_config
from ...runtime import Runtime, to_jsonable
from ...sync.models import ProgressEvent, SyncAction
from .registry import ToolSpec

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Tool definitions
# ---------------------------------------------------------------------------

_TARGET_PROPERTIES = {
    "site_key": {"type": "string", "description": "Site key from the config"},
    "publish_key": {
        "type": "string",
        "description": "Publish target key within the site",
    },
}

PUBLISH_TARGETS_TOOL = types.Tool(
    name="publish_targets",
    description=(
        "List configured sites with their publish targets (folder or git), "
        "target type, and the actions each target supports."
    ),
    annotations=types.ToolAnnotations(
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    ),
    inputSchema={
        "type": "object",
        "properties": {
            "site_key": {
                "type": "string",
                "description": "Only list this site",
            },
        },
        "required": [],
    },
)

PUBLISH_HISTORY_TOOL = types.Tool(
    name="publish_history",
    description=(
        "Show the remote commit history of a git publish target. Uses the "
        "local cache unless refresh is true."
    ),
    annotations=types.ToolAnnotations(
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=True,
    ),
    inputSchema={
        "type": "object",
        "properties": {
            **_TARGET_PROPERTIES,
            "refresh": {
                "type": "boolean",
                "default": False,
                "description": "Fetch from the remote instead of the cache",
            },
        },
        "required": ["site_key", "publish_key"],
    },
)

PUBLISH_ACTION_TOOL = types.Tool(
    name="publish_action",
    description=(
        "Run a sync action on a publish target: push the site to a folder "
        "or git remote, or pull remote state back into the site. Pulls and "
        "checkouts overwrite local changes in the site directory."
    ),
    annotations=types.ToolAnnotations(
        readOnlyHint=False,
        destructiveHint=True,
        idempotentHint=False,
        openWorldHint=True,
    ),
    inputSchema={
        "type": "object",
        "properties": {
            **_TARGET_PROPERTIES,
            "action": {
                "type": "string",
                "enum": [a.value for a in SyncAction],
                "description": "Action name",
            },
            "ref": {
                "type": "string",
                "description": "Commit ref, required for checkoutRef",
            },
            "build_dir": {
                "type": "string",
                "description": (
                    "Directory of the last site build (absolute path). "
                    "Needed by push actions that publish build output."
                ),
            },
        },
        "required": ["site_key", "publish_key", "action"],
    },
)


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def _require(args: dict[str, Any], *names: str) -> None:
    missing = [n for n in names if not args.get(n)]
    if missing:
        raise ValueError(f"Missing required parameter(s): {', '.join(missing)}")


def _json_result(text: str, structured: dict[str, Any]) -> types.CallToolResult:
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=text)],
        structuredContent=structured,
    )


async def _handle_publish_targets(
    runtime: Runtime, args: dict[str, Any]
) -> types.CallToolResult:
    site_filter = args.get("site_key")
    sites = runtime.provider.list_sites()
    if site_filter:
        sites = [s for s in sites if s.key == site_filter]
        if not sites:
            raise ValueError(f"Site '{site_filter}' not found")

    listing = []
    lines = []
    for site in sites:
        source = site.source.path if site.source else None
        lines.append(f"{site.key} ({site.name or site.key}) source: {source or '-'}")
        targets = []
        for entry in site.publish:
            actions = runtime.factory.get_publisher(
                entry, site.key, "mcp"
            ).supported_actions()
            targets.append(
                {"key": entry.key, "type": entry.config.type, "actions": actions}
            )
            lines.append(
                f"  {entry.key} [{entry.config.type}]: "
                f"{', '.join(actions) or 'no actions'}"
            )
        listing.append({"site": site.key, "source": source, "targets": targets})

    text = "\n".join(lines) if lines else "No sites configured."
    return _json_result(text, {"sites": listing})


async def _run_action(
    runtime: Runtime,
    site_key: str,
    publish_key: str,
    action: str,
    parameters: dict | None,
) -> tuple[Any, list[ProgressEvent]]:
    events: list[ProgressEvent] = []
    entry = find_publish_config(runtime.provider, site_key, publish_key)
    service = runtime.factory.get_publisher(
        entry,
        site_key=site_key,
        workspace_key="mcp",
        progress_callback=events.append,
    )
    result = await service.action_dispatcher(action, parameters)
    return result, events


async def _handle_publish_history(
    runtime: Runtime, args: dict[str, Any]
) -> types.CallToolResult:
    _require(args, "site_key", "publish_key")
    action = (
        SyncAction.REFRESH_REMOTE if args.get("refresh") else SyncAction.READ_REMOTE
    )
    result, _ = await _run_action(
        runtime, args["site_key"], args["publish_key"], action.value, None
    )
    history = to_jsonable(result)
    commits = history.get("commitList", [])
    lines = [f"Last refresh: {history.get('lastRefresh')}"]
    for commit in commits:
        marker = "*" if commit.get("local") else " "
        lines.append(
            f"{marker} {str(commit.get('ref', ''))[:10]}  {commit.get('date') or ''}  "
            f"{commit.get('message') or ''}".rstrip()
        )
    if not commits:
        lines.append("No commits.")
    return _json_result("\n".join(lines), history)


async def _handle_publish_action(
    runtime: Runtime, args: dict[str, Any]
) -> types.CallToolResult:
    _require(args, "site_key", "publish_key", "action")
    if args.get("build_dir"):
        runtime.factory.dependencies.path_helper.last_build_dir = Path(
            args["build_dir"]
        ).expanduser()

    parameters = {"ref": args["ref"]} if args.get("ref") else None
    result, events = await _run_action(
        runtime, args["site_key"], args["publish_key"], args["action"], parameters
    )
    payload = to_jsonable(result)
    lines = [f"[{e.progress:3d}%] {e.message}" for e in events]
    lines.append(f"Result: {json.dumps(payload)}")
    return _json_result(
        "\n".join(lines),
        {
            "action": args["action"],
            "result": payload,
            "progress": [e.model_dump(exclude_none=True) for e in events],
        },
    )


PUBLISH_SPECS: list[ToolSpec] = [
    ToolSpec(
        tool=PUBLISH_TARGETS_TOOL, mutating=False, handler=_handle_publish_targets
    ),
    ToolSpec(
        tool=PUBLISH_HISTORY_TOOL, mutating=False, handler=_handle_publish_history
    ),
    ToolSpec(
        tool=PUBLISH_ACTION_TOOL, mutating=True, handler=_handle_publish_action
    ),
]
