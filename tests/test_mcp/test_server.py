"""Tests for tool registration and routing in the MCP server.

Verifies:
- handle_list_tools exposes ping plus every sync tool
- handle_call_tool routes through the ToolRegistry
- Unknown tools return an error response
- The ping tool reports connectivity
- run() turns CLI flags into config overrides

Handler behaviour is tested in tests/test_mcp/tools/test_sync.py; this
file only covers the server layer.
"""

import asyncio
import sys
from unittest.mock import MagicMock, patch

import mcp.types as types
import pytest

from revolver_sync.exceptions import TransportError
from revolver_sync.mcp import server
from revolver_sync.mcp.server import (
    PING_SPEC,
    build_registry,
    get_context,
    get_registry,
    handle_call_tool,
    handle_list_tools,
    set_context,
    set_registry,
)


def _text(result: types.CallToolResult) -> str:
    return result.content[0].text


@pytest.fixture
def registered():
    set_registry(build_registry())
    yield
    set_registry(None)
    set_context(None)


def _mock_context(message="Connection successful", error=None):
    context = MagicMock()
    orchestrator = context.orchestrator.return_value
    if error is not None:
        orchestrator.test_connection.side_effect = error
    else:
        orchestrator.test_connection.return_value = message
    return context


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


class TestRegistration:
    def test_build_registry(self):
        registry = build_registry()
        assert registry.tool_count() == 6
        assert registry.list_tools()[0] is PING_SPEC.tool

    def test_list_tools(self, registered):
        tools = asyncio.run(handle_list_tools())
        assert {t.name for t in tools} == {
            "ping",
            "webdav_test_connection",
            "accounts_sync_upload",
            "accounts_sync_download",
            "codex_sync_upload",
            "codex_sync_download",
        }

    def test_accessors_raise_before_startup(self):
        set_registry(None)
        set_context(None)
        with pytest.raises(RuntimeError, match="ToolRegistry not initialized"):
            get_registry()
        with pytest.raises(RuntimeError, match="ToolContext not initialized"):
            get_context()


# ---------------------------------------------------------------------------
# Routing
# ---------------------------------------------------------------------------


class TestCallTool:
    def test_ping_success(self, registered):
        set_context(_mock_context())

        result = asyncio.run(handle_call_tool("ping", {}))

        assert not result.isError
        assert _text(result) == "Revolver Sync MCP server: Connection successful"

    def test_ping_failure(self, registered):
        set_context(_mock_context(error=TransportError("Connection failed: refused")))

        result = asyncio.run(handle_call_tool("ping", None))

        assert result.isError
        assert "WebDAV connection failed" in _text(result)
        assert "REVOLVER_WEBDAV_URL" in _text(result)

    def test_unknown_tool(self, registered):
        set_context(_mock_context())

        result = asyncio.run(handle_call_tool("remote_delete", {}))

        assert result.isError
        assert _text(result).startswith("Error (unknown_tool): Unknown tool: remote_delete")

    def test_routes_to_sync_tool(self, registered):
        set_context(MagicMock())
        registry = get_registry()
        with patch.object(
            registry,
            "call_tool",
            return_value=types.CallToolResult(content=[]),
        ) as call:
            asyncio.run(handle_call_tool("accounts_sync_upload", {"x": 1}))

        call.assert_called_once_with(
            "accounts_sync_upload", {"x": 1}, get_context()
        )


# ---------------------------------------------------------------------------
# run()
# ---------------------------------------------------------------------------


class TestRun:
    def _run(self, monkeypatch, argv):
        monkeypatch.setattr(sys, "argv", ["revolver-sync-mcp", *argv])
        with (
            patch.object(server.asyncio, "run"),
            patch.object(server, "main", new=MagicMock()) as main,
        ):
            server.run()
        return main

    def test_overrides_forwarded(self, monkeypatch, capsys):
        main = self._run(
            monkeypatch,
            ["--url", "https://dav.example.com", "--insecure", "--password", "pw"],
        )

        overrides = main.call_args.kwargs["config_overrides"]
        assert overrides["url"] == "https://dav.example.com"
        assert overrides["insecure"] is True
        assert overrides["password"] == "pw"
        assert "log_file" not in overrides
        stderr = capsys.readouterr().err
        assert "Config overrides from CLI: url, insecure" in stderr
        assert "password" not in stderr

    def test_log_file_flag_forwarded(self, monkeypatch):
        main = self._run(monkeypatch, ["--log-file", "/var/tmp/mcp.log"])

        overrides = main.call_args.kwargs["config_overrides"]
        assert overrides == {"log_file": "/var/tmp/mcp.log"}

    def test_runtime_error_exits_1(self, monkeypatch):
        monkeypatch.setattr(sys, "argv", ["revolver-sync-mcp"])
        with (
            patch.object(server.asyncio, "run", side_effect=RuntimeError("x")),
            patch.object(server, "main", new=MagicMock()),
            pytest.raises(SystemExit) as exc_info,
        ):
            server.run()
        assert exc_info.value.code == 1
