"""Tests for MCP sync tool definitions and handlers.

Covers:
- Tool definitions have valid schemas
- Handlers run against the in-memory WebDAV double
- Codex flag overrides and their validation
- Structured content mirrors the text report
"""

from __future__ import annotations

from pathlib import Path

import mcp.types as types
import pytest

from revolver_sync.core.async_utils import reset_lock
from revolver_sync.mcp.tools.registry import ToolContext, ToolRegistry
from revolver_sync.mcp.tools.sync import SYNC_SPECS, SYNC_TOOLS, _codex_options
from revolver_sync.sync.models import CodexSyncOptions

ROOT = "/code-revolver/"


def _write(path: Path, content: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)


def _text(result: types.CallToolResult) -> str:
    content = result.content[0]
    assert isinstance(content, types.TextContent)
    return content.text


@pytest.fixture(autouse=True)
def _fresh_lock():
    reset_lock()
    yield
    reset_lock()


@pytest.fixture
def context(mock_config, fake_dav):
    return ToolContext(config=mock_config, client=fake_dav)


@pytest.fixture
def registry():
    return ToolRegistry(SYNC_SPECS)


# ---------------------------------------------------------------------------
# Tool definitions
# ---------------------------------------------------------------------------


class TestToolDefinitions:
    def test_tool_names(self):
        assert [t.name for t in SYNC_TOOLS] == [
            "webdav_test_connection",
            "accounts_sync_upload",
            "accounts_sync_download",
            "codex_sync_upload",
            "codex_sync_download",
        ]

    def test_specs_match_tools(self):
        assert [s.tool for s in SYNC_SPECS] == SYNC_TOOLS

    def test_schemas_are_objects_without_required_args(self):
        for tool in SYNC_TOOLS:
            assert tool.inputSchema["type"] == "object"
            assert tool.inputSchema["required"] == []

    def test_codex_tools_expose_boolean_flags(self):
        codex = [t for t in SYNC_TOOLS if t.name.startswith("codex_")]
        for tool in codex:
            props = tool.inputSchema["properties"]
            assert set(props) == set(CodexSyncOptions.model_fields)
            assert all(p["type"] == "boolean" for p in props.values())


# ---------------------------------------------------------------------------
# _codex_options
# ---------------------------------------------------------------------------


class TestCodexOptions:
    def test_no_args_returns_defaults(self):
        defaults = CodexSyncOptions(sync_config_toml=True)
        assert _codex_options(defaults, {}) is defaults

    def test_overrides_applied(self):
        options = _codex_options(
            CodexSyncOptions(), {"sync_skills": False, "sync_config_toml": True}
        )
        assert options.sync_skills is False
        assert options.sync_config_toml is True
        assert options.sync_prompts is True

    def test_unknown_keys_ignored(self):
        options = _codex_options(CodexSyncOptions(), {"dry_run": True})
        assert options == CodexSyncOptions()

    def test_non_boolean_rejected(self):
        with pytest.raises(ValueError, match="sync_prompts must be a boolean"):
            _codex_options(CodexSyncOptions(), {"sync_prompts": "yes"})


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


class TestTestConnection:
    async def test_creates_root(self, registry, context, fake_dav):
        result = await registry.call_tool("webdav_test_connection", {}, context)

        assert not result.isError
        assert _text(result).startswith(
            "Connection successful, remote directory created: https://"
        )
        assert result.structuredContent["success"] is True
        assert result.structuredContent["url"].endswith(ROOT)
        assert ROOT in fake_dav.collections

    async def test_auth_failure_translated(self, registry, context, fake_dav):
        fake_dav.probe_status = 401

        result = await registry.call_tool("webdav_test_connection", {}, context)

        assert result.isError
        assert "authentication_failed" in _text(result)


class TestAccountsTools:
    async def test_upload(self, registry, context, fake_dav, mock_config):
        _write(Path(mock_config.accounts_dir) / "work.json", b'{"id": 1}')

        result = await registry.call_tool("accounts_sync_upload", {}, context)

        assert not result.isError
        assert _text(result).startswith("Accounts upload completed: 1 uploaded")
        assert result.structuredContent["uploaded"] == [f"{ROOT}accounts/work.json"]
        assert fake_dav.files[f"{ROOT}accounts/work.json"] == b'{"id": 1}'

    async def test_download_reports_item_errors(
        self, registry, context, fake_dav, mock_config
    ):
        fake_dav.seed(f"{ROOT}accounts/good.json", b"{}")
        fake_dav.seed(f"{ROOT}accounts/bad.json", b"not json")

        result = await registry.call_tool("accounts_sync_download", None, context)

        assert not result.isError
        assert result.structuredContent["success"] is False
        assert result.structuredContent["counts"] == {
            "uploaded": 0,
            "downloaded": 1,
            "errors": 1,
        }
        assert "completed with errors" in _text(result)
        assert (Path(mock_config.accounts_dir) / "good.json").exists()


class TestCodexTools:
    async def test_upload_with_flags(self, registry, context, fake_dav, mock_config):
        codex = Path(mock_config.codex_dir)
        _write(codex / "AGENTS.MD", b"# Agents")
        _write(codex / "config.toml", b'model = "o3"\n')
        _write(codex / "prompts" / "review.md", b"Review")

        result = await registry.call_tool(
            "codex_sync_upload",
            {"sync_prompts": False, "sync_config_toml": True},
            context,
        )

        assert not result.isError
        assert result.structuredContent["uploaded"] == [
            f"{ROOT}AGENTS.MD",
            f"{ROOT}config.toml",
        ]
        assert result.structuredContent["operation"] == "Codex upload"

    async def test_download_uses_configured_defaults(
        self, registry, context, fake_dav, mock_config
    ):
        fake_dav.seed(f"{ROOT}config.toml", b'model = "o3"\n')
        fake_dav.seed(f"{ROOT}prompts/a.md", b"a")

        result = await registry.call_tool("codex_sync_download", {}, context)

        codex = Path(mock_config.codex_dir)
        assert result.structuredContent["downloaded"] == [f"{ROOT}prompts/a.md"]
        assert (codex / "prompts" / "a.md").read_bytes() == b"a"
        assert not (codex / "config.toml").exists()

    async def test_bad_flag_is_validation_error(self, registry, context):
        result = await registry.call_tool(
            "codex_sync_download", {"sync_skills": 0}, context
        )

        assert result.isError
        assert "validation_error" in _text(result)
