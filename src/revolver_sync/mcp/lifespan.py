"""Lifespan management for MCP server startup and shutdown."""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from ..config import resolve_config
from ..core.async_utils import reset_lock, run_sync
from ..core.client import WebDavClient
from ..logger import setup_logging
from ..sync.orchestrator import SyncOrchestrator
from .tools.registry import ToolContext

logger = logging.getLogger(__name__)

_CREDENTIAL_HINT = (
    "Ensure REVOLVER_WEBDAV_URL, REVOLVER_WEBDAV_USERNAME, "
    "REVOLVER_WEBDAV_PASSWORD are set."
)


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
    - Resolve configuration: CLI > env vars > .env > YAML > defaults
    - Send logging to the log file with the configured level
    - Create the WebDavClient and probe the remote root
    - Fail fast if the server is unreachable or rejects the credentials

    On shutdown:
    - Close the client's HTTP session

    Args:
        config_overrides: Optional dict with config values from CLI
            (url, username, password, remote_path, insecure, log_file)

    Yields:
        Dict with 'context' key containing the ToolContext for handlers

    Raises:
        RuntimeError: If configuration is invalid or the connection fails.
    """
    overrides = config_overrides or {}
    _stderr_print("Revolver Sync MCP Server starting...")

    # Logging must be file-only before stdio_server owns stdout
    try:
        config, sources = await run_sync(resolve_config, config_overrides)
    except ValueError as e:
        setup_logging(mode="mcp", log_file=overrides.get("log_file"))
        logger.error("Configuration error: %s", e)
        _stderr_print(f"ERROR: Configuration error: {e}")
        _stderr_print(f"  {_CREDENTIAL_HINT}")
        raise RuntimeError(
            f"Configuration error: {e}. {_CREDENTIAL_HINT}"
        ) from e

    setup_logging(
        mode="mcp",
        debug=config.debug,
        log_file=overrides.get("log_file") or config.log_file,
        level=config.log_level,
    )
    logger.info("MCP server starting...")

    source_desc = ", ".join(sources)
    logger.info("Configuration loaded from: %s", source_desc)
    _stderr_print(f"  Configuration loaded from: {source_desc}")
    endpoint = config.endpoint()
    logger.info("WebDAV root: %s", endpoint.url)
    _stderr_print(f"  WebDAV root: {endpoint.url}")

    client = WebDavClient(insecure=config.insecure)
    _stderr_print("  Validating WebDAV connection...")
    try:
        orchestrator = SyncOrchestrator(client, endpoint, config.sync_paths())
        message = await run_sync(orchestrator.test_connection)
    except Exception as e:
        client.close()
        logger.error("Failed to connect to WebDAV server: %s", e)
        _stderr_print("ERROR: WebDAV connection failed.")
        _stderr_print(f"  {e}")
        raise RuntimeError(f"WebDAV connection failed: {e}") from e

    logger.info(message)
    _stderr_print(f"  {message}")
    _stderr_print("Server ready. Waiting for MCP client connection...")

    # The sync lock must belong to the loop that serves requests
    reset_lock()
    try:
        yield {"context": ToolContext(config=config, client=client)}
    finally:
        client.close()
        logger.info("MCP server shutting down")
        _stderr_print("Revolver Sync MCP Server shutting down.")
