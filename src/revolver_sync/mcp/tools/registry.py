"""ToolSpec and ToolRegistry for MCP tool dispatch.

Key concepts:
- ToolContext: What every handler needs: the loaded ``Config`` and the
  shared ``WebDavClient``.
- ToolSpec: Immutable dataclass linking a Tool definition to an async
  handler with standardized signature (context, args) -> CallToolResult.
- ToolRegistry: Holds the specs, provides list_tools() and call_tool()
  dispatch, and translates sync-engine exceptions into structured
  error responses.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import mcp.types as types

from ...config import Config
from ...core.client import WebDavClient
from ...exceptions import (
    ContentValidationError,
    FilesystemError,
    TransportError,
)
from ...sync.orchestrator import SyncOrchestrator

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ToolContext:
    """Per-server state handed to every tool handler."""

    config: Config
    client: WebDavClient

    def orchestrator(self) -> SyncOrchestrator:
        return SyncOrchestrator(
            self.client, self.config.endpoint(), self.config.sync_paths()
        )


@dataclass(frozen=True, slots=True)
class ToolSpec:
    """Immutable specification for a single MCP tool.

    Attributes:
        tool: The MCP Tool definition (name, description, inputSchema).
        handler: Async handler with signature (context, args) -> CallToolResult.
    """

    tool: types.Tool
    handler: Callable[[ToolContext, dict], Awaitable[types.CallToolResult]]


class ToolRegistry:
    """Registry of ToolSpecs keyed by tool name.

    Registering two specs with the same name is a programming error and
    raises ``ValueError``.
    """

    def __init__(self, specs: list[ToolSpec]):
        self._specs: dict[str, ToolSpec] = {}
        for spec in specs:
            if spec.tool.name in self._specs:
                raise ValueError(f"Duplicate tool name: {spec.tool.name}")
            self._specs[spec.tool.name] = spec

    def list_tools(self) -> list[types.Tool]:
        """Return list of types.Tool for all registered specs."""
        return [spec.tool for spec in self._specs.values()]

    def tool_count(self) -> int:
        """Return number of registered tools."""
        return len(self._specs)

    async def call_tool(
        self,
        name: str,
        arguments: dict | None,
        context: ToolContext,
    ) -> types.CallToolResult:
        """Dispatch tool call to registered handler.

        Transport failures, validation errors, local filesystem errors
        and unexpected exceptions are translated into structured
        CallToolResult responses with corrective actions.

        Args:
            name: Tool name to invoke.
            arguments: Tool arguments (may be None).
            context: Shared config and WebDAV client.

        Returns:
            CallToolResult from the handler.

        Raises:
            ValueError: If tool name is not registered.
        """
        from .errors import build_error_response, translate_transport_error

        spec = self._specs.get(name)
        if spec is None:
            raise ValueError(f"Unknown tool: {name}")
        args = arguments or {}
        try:
            return await spec.handler(context, args)
        except TransportError as e:
            logger.warning("Transport error in %s: %s", name, e)
            return translate_transport_error(e)
        except FilesystemError as e:
            logger.warning("Filesystem error in %s: %s", name, e)
            return build_error_response(
                "filesystem_error",
                str(e),
                "Check that the local directory exists and is writable.",
            )
        except (ContentValidationError, ValueError) as e:
            return build_error_response(
                "validation_error",
                str(e),
                "Check parameter values and retry.",
            )
        except Exception as e:
            logger.exception("Unexpected error in tool %s", name)
            return build_error_response(
                "server_error",
                str(e),
                "Check the server log and retry later.",
            )
