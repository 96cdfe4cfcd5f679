"""MCP tool handlers for WebDAV backup and restore.

Defines five tools:

- ``webdav_test_connection`` -- probe the remote root, creating it if missing.
- ``accounts_sync_upload`` / ``accounts_sync_download`` -- account files.
- ``codex_sync_upload`` / ``codex_sync_download`` -- Codex configuration,
  with per-call flags that default to the configured ``codex_sync`` section.

Upload and download handlers run through ``run_exclusive`` so that two
sync runs never touch the same directories at once.
"""

from __future__ import annotations

import logging
from typing import Any

import mcp.types as types

from ...core.async_utils import run_exclusive, run_sync
from ...sync.models import CodexSyncOptions, SyncOutcome
from ...sync.reporter import format_sync_report, outcome_to_json
from .registry import ToolContext, ToolSpec

logger = logging.getLogger(__name__)

_WRITE_ANNOTATIONS = types.ToolAnnotations(
    readOnlyHint=False,
    destructiveHint=True,
    idempotentHint=True,
    openWorldHint=True,
)

_CODEX_FLAG_SCHEMA: dict[str, Any] = {
    "sync_prompts": {
        "type": "boolean",
        "description": "Include the prompts/ directory",
    },
    "sync_skills": {
        "type": "boolean",
        "description": "Include every skill under skills/",
    },
    "sync_agents_md": {
        "type": "boolean",
        "description": "Include AGENTS.MD",
    },
    "sync_config_toml": {
        "type": "boolean",
        "description": "Include config.toml (machine-specific, off by default)",
    },
}

_NO_ARGS: dict[str, Any] = {"type": "object", "properties": {}, "required": []}


# ---------------------------------------------------------------------------
# Tool definitions
# ---------------------------------------------------------------------------


SYNC_TOOLS: list[types.Tool] = [
    types.Tool(
        name="webdav_test_connection",
        description=(
            "Check that the WebDAV server is reachable with the configured "
            "credentials. Creates the remote backup folder when it does not "
            "exist yet."
        ),
        annotations=types.ToolAnnotations(
            readOnlyHint=False,
            destructiveHint=False,
            idempotentHint=True,
            openWorldHint=True,
        ),
        inputSchema=_NO_ARGS,
    ),
    types.Tool(
        name="accounts_sync_upload",
        description=(
            "Upload every local account file (*.json) to the accounts/ "
            "folder on the WebDAV server, overwriting remote copies."
        ),
        annotations=_WRITE_ANNOTATIONS,
        inputSchema=_NO_ARGS,
    ),
    types.Tool(
        name="accounts_sync_download",
        description=(
            "Download every account file from the WebDAV server into the "
            "local accounts directory, overwriting local copies."
        ),
        annotations=_WRITE_ANNOTATIONS,
        inputSchema=_NO_ARGS,
    ),
    types.Tool(
        name="codex_sync_upload",
        description=(
            "Upload Codex configuration (prompts, skills, AGENTS.MD and, "
            "if enabled, config.toml) to the WebDAV server. Omitted flags "
            "use the configured defaults."
        ),
        annotations=_WRITE_ANNOTATIONS,
        inputSchema={
            "type": "object",
            "properties": _CODEX_FLAG_SCHEMA,
            "required": [],
        },
    ),
    types.Tool(
        name="codex_sync_download",
        description=(
            "Download Codex configuration from the WebDAV server into the "
            "local Codex directory. Omitted flags use the configured defaults."
        ),
        annotations=_WRITE_ANNOTATIONS,
        inputSchema={
            "type": "object",
            "properties": _CODEX_FLAG_SCHEMA,
            "required": [],
        },
    ),
]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _codex_options(
    defaults: CodexSyncOptions, args: dict[str, Any]
) -> CodexSyncOptions:
    """Overlay boolean tool arguments on the configured defaults.

    Raises:
        ValueError: If a flag is present but not a boolean.
    """
    update: dict[str, bool] = {}
    for key in CodexSyncOptions.model_fields:
        if key not in args:
            continue
        value = args[key]
        if not isinstance(value, bool):
            raise ValueError(f"{key} must be a boolean, got {value!r}")
        update[key] = value
    if not update:
        return defaults
    return defaults.model_copy(update=update)


def _outcome_result(outcome: SyncOutcome, title: str) -> types.CallToolResult:
    # Per-item failures are reported, not raised; the call itself succeeded.
    return types.CallToolResult(
        content=[
            types.TextContent(
                type="text", text=format_sync_report(outcome, title)
            )
        ],
        structuredContent=outcome_to_json(outcome, title),
    )


# ---------------------------------------------------------------------------
# Individual handlers
# ---------------------------------------------------------------------------


async def _handle_test_connection(
    context: ToolContext, args: dict[str, Any]
) -> types.CallToolResult:
    """Handle the ``webdav_test_connection`` tool."""
    endpoint = context.config.endpoint()
    message = await run_sync(context.orchestrator().test_connection)
    logger.info("Connection test for %s: %s", endpoint.url, message)
    return types.CallToolResult(
        content=[
            types.TextContent(type="text", text=f"{message}: {endpoint.url}")
        ],
        structuredContent={
            "success": True,
            "message": message,
            "url": endpoint.url,
        },
    )


async def _handle_accounts_upload(
    context: ToolContext, args: dict[str, Any]
) -> types.CallToolResult:
    """Handle the ``accounts_sync_upload`` tool."""
    outcome = await run_exclusive(context.orchestrator().upload_accounts)
    return _outcome_result(outcome, "Accounts upload")


async def _handle_accounts_download(
    context: ToolContext, args: dict[str, Any]
) -> types.CallToolResult:
    """Handle the ``accounts_sync_download`` tool."""
    outcome = await run_exclusive(context.orchestrator().download_accounts)
    return _outcome_result(outcome, "Accounts download")


async def _handle_codex_upload(
    context: ToolContext, args: dict[str, Any]
) -> types.CallToolResult:
    """Handle the ``codex_sync_upload`` tool."""
    options = _codex_options(context.config.codex_options, args)
    outcome = await run_exclusive(
        context.orchestrator().upload_codex, options
    )
    return _outcome_result(outcome, "Codex upload")


async def _handle_codex_download(
    context: ToolContext, args: dict[str, Any]
) -> types.CallToolResult:
    """Handle the ``codex_sync_download`` tool."""
    options = _codex_options(context.config.codex_options, args)
    outcome = await run_exclusive(
        context.orchestrator().download_codex, options
    )
    return _outcome_result(outcome, "Codex download")


# ToolSpec list for registry-based dispatch
SYNC_SPECS: list[ToolSpec] = [
    ToolSpec(tool=SYNC_TOOLS[0], handler=_handle_test_connection),
    ToolSpec(tool=SYNC_TOOLS[1], handler=_handle_accounts_upload),
    ToolSpec(tool=SYNC_TOOLS[2], handler=_handle_accounts_download),
    ToolSpec(tool=SYNC_TOOLS[3], handler=_handle_codex_upload),
    ToolSpec(tool=SYNC_TOOLS[4], handler=_handle_codex_download),
]
