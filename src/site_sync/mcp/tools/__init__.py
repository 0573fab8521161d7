"""MCP tool handlers for the publish/sync engine.

Handlers dispatch through ``SyncFactory`` only and return structured
results; sync errors become error results with corrective actions.
"""

from .errors import build_error_response, translate_sync_error
from .publish import PUBLISH_SPECS
from .registry import ToolRegistry, ToolSpec

ALL_SPECS: list[ToolSpec] = list(PUBLISH_SPECS)

__all__ = [
    "ALL_SPECS",
    "PUBLISH_SPECS",
    "ToolRegistry",
    "ToolSpec",
    "build_error_response",
    "translate_sync_error",
]
