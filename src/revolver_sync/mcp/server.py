"""MCP Server for WebDAV account and Codex configuration sync.

Exposes the sync orchestrator to AI agents as MCP tools: a connectivity
probe plus upload and download for accounts and Codex configuration.

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
from ..core.async_utils import run_sync
from ..logger import DEFAULT_LOG_FILE
from .lifespan import server_lifespan
from .tools import (
    ALL_SPECS,
    ToolContext,
    ToolRegistry,
    build_error_response,
)
from .tools.registry import ToolSpec

logger = logging.getLogger(__name__)

SERVER_NAME = "revolver-sync"

server = Server(SERVER_NAME)

# Initialized in main()
_context: ToolContext | None = None
_registry: ToolRegistry | None = None


# ---------------------------------------------------------------------------
# Ping tool
# ---------------------------------------------------------------------------


async def _handle_ping(
    context: ToolContext, args: dict
) -> types.CallToolResult:
    """Handle ping tool -- probe the WebDAV root."""
    try:
        message = await run_sync(context.orchestrator().test_connection)
        return types.CallToolResult(
            content=[
                types.TextContent(
                    type="text",
                    text=f"Revolver Sync MCP server: {message}",
                )
            ]
        )
    except Exception as e:
        return types.CallToolResult(
            content=[
                types.TextContent(
                    type="text",
                    text=f"WebDAV connection failed: {e}. Check "
                    "REVOLVER_WEBDAV_URL, REVOLVER_WEBDAV_USERNAME, "
                    "REVOLVER_WEBDAV_PASSWORD.",
                )
            ],
            isError=True,
        )


PING_SPEC = ToolSpec(
    tool=types.Tool(
        name="ping",
        description="Test WebDAV connectivity of the Revolver Sync MCP server",
        inputSchema={
            "type": "object",
            "properties": {},
            "required": [],
        },
    ),
    handler=_handle_ping,
)


# ---------------------------------------------------------------------------
# Global accessors
# ---------------------------------------------------------------------------


def get_context() -> ToolContext:
    """Get the global ToolContext.

    Raises:
        RuntimeError: If the server lifespan has not started.
    """
    if _context is None:
        raise RuntimeError(
            "ToolContext not initialized. Server lifespan not started."
        )
    return _context


def set_context(context: ToolContext | None) -> None:
    """Set (or clear, with None) the global ToolContext."""
    global _context
    _context = context


def get_registry() -> ToolRegistry:
    """Return the registry installed by ``main()``.

    Raises:
        RuntimeError: Before ``main()`` has run.
    """
    if _registry is None:
        raise RuntimeError("ToolRegistry not initialized.")
    return _registry


def set_registry(registry: ToolRegistry | None) -> None:
    """Set (or clear, with None) the global ToolRegistry."""
    global _registry
    _registry = registry


def build_registry() -> ToolRegistry:
    """Registry with ping plus every sync tool."""
    return ToolRegistry([PING_SPEC] + ALL_SPECS)


# ---------------------------------------------------------------------------
# MCP protocol handlers
# ---------------------------------------------------------------------------


@server.list_tools()
async def handle_list_tools() -> list[types.Tool]:
    """List available sync tools."""
    return get_registry().list_tools()


@server.call_tool()
async def handle_call_tool(
    name: str, arguments: dict | None
) -> types.CallToolResult:
    """Dispatch a tool call through the registry.

    Handler failures come back from the registry as error results; only
    an unknown tool name is turned into an error here.
    """
    context = get_context()
    try:
        return await get_registry().call_tool(name, arguments, context)
    except ValueError as e:
        return build_error_response(
            "unknown_tool",
            str(e),
            "Use list_tools to see available tools.",
        )


# ---------------------------------------------------------------------------
# Server lifecycle
# ---------------------------------------------------------------------------


async def main(config_overrides: dict | None = None):
    """Serve MCP over stdio until the client disconnects.

    The lifespan resolves configuration, sends logging to a file and
    proves the WebDAV share is reachable, then JSON-RPC is served on
    stdin/stdout.

    Args:
        config_overrides: Values from command-line flags (url, username,
            password, remote_path, insecure, log_file).
    """
    registry = build_registry()
    set_registry(registry)

    # set_context() is called here, not in the lifespan, so that running
    # this file as __main__ updates this module's globals.
    async with server_lifespan(
        config_overrides=config_overrides
    ) as ctx:
        set_context(ctx["context"])
        logger.info("Registered %d tools", registry.tool_count())
        try:
            async with mcp.server.stdio.stdio_server() as (
                read_stream,
                write_stream,
            ):
                init_options = InitializationOptions(
                    server_name=SERVER_NAME,
                    server_version=__version__,
                    capabilities=server.get_capabilities(
                        notification_options=NotificationOptions(),
                        experimental_capabilities={},
                    ),
                )
                await server.run(
                    read_stream, write_stream, init_options
                )
        finally:
            set_context(None)
            set_registry(None)


_EPILOG = """
Examples:
  # Settings from .env, the environment or .revolver_sync/config.yml
  revolver-sync-mcp

  # Point at another share and backup folder
  revolver-sync-mcp --url https://dav.example.com/remote.php/dav/files/me --remote-path /backup/

  # Self-signed certificate on a test server
  revolver-sync-mcp --url https://localhost:8443 --insecure

  # Write the log somewhere else
  revolver-sync-mcp --log-file /var/log/revolver-sync.log

stdout carries MCP JSON-RPC frames; every human-readable line goes to stderr.
"""

# Overrides that are echoed back on startup (the password never is)
_ECHOED_OVERRIDES = ("url", "username", "remote_path", "insecure")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="revolver-sync-mcp",
        description="MCP server that backs up accounts and Codex configuration to WebDAV",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=_EPILOG,
    )
    parser.add_argument(
        "--url", help="WebDAV base URL (beats REVOLVER_WEBDAV_URL and config files)"
    )
    parser.add_argument(
        "--username",
        help="WebDAV user (beats REVOLVER_WEBDAV_USERNAME and config files)",
    )
    parser.add_argument(
        "--password",
        help="WebDAV password; shows up in the process list, so prefer "
        "REVOLVER_WEBDAV_PASSWORD",
    )
    parser.add_argument(
        "--remote-path",
        help="Backup folder on the server (default: /code-revolver/)",
    )
    parser.add_argument(
        "--insecure",
        action="store_true",
        help="Skip SSL certificate verification (use only for development)",
    )
    parser.add_argument(
        "--log-file",
        help="Where to write the server log (beats LOG_FILE and logging.file;"
        f" default: {DEFAULT_LOG_FILE})",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"revolver-sync-mcp {__version__}",
    )
    return parser


def collect_overrides(args: argparse.Namespace) -> dict:
    """Turn parsed flags into the override dict ``main()`` expects."""
    overrides: dict = {
        key: getattr(args, key)
        for key in ("url", "username", "password", "remote_path", "log_file")
        if getattr(args, key)
    }
    if args.insecure:
        overrides["insecure"] = True
    return overrides


def run() -> None:
    """Console entry point: parse flags, serve, map failures to exit codes."""
    config_overrides = collect_overrides(build_parser().parse_args())

    echoed = [k for k in _ECHOED_OVERRIDES if k in config_overrides]
    if echoed:
        print(f"Config overrides from CLI: {', '.join(echoed)}", file=sys.stderr)

    try:
        asyncio.run(main(config_overrides=config_overrides or None))
    except RuntimeError:
        # lifespan already reported the cause on stderr
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(0)


if __name__ == "__main__":
    run()
