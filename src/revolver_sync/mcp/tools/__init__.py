"""MCP tool handlers for WebDAV sync.

This package wraps the sync orchestrator with async handlers, text
reports and structured error responses.
"""

from .errors import build_error_response, translate_transport_error
from .registry import ToolContext, ToolRegistry, ToolSpec
from .sync import SYNC_SPECS, SYNC_TOOLS

ALL_SPECS: list[ToolSpec] = list(SYNC_SPECS)

__all__ = [
    "build_error_response",
    "translate_transport_error",
    # Registry
    "ToolContext",
    "ToolSpec",
    "ToolRegistry",
    # Spec lists
    "ALL_SPECS",
    "SYNC_SPECS",
    "SYNC_TOOLS",
]
