"""Tests for the revolver-sync command line.

Runs main() against the in-memory WebDAV double with configuration
resolution and logging setup patched out.
"""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from revolver_sync import cli
from revolver_sync.cli import (
    EXIT_FAILURE,
    EXIT_ITEM_ERRORS,
    EXIT_OK,
    build_parser,
    main,
)

ROOT = "/code-revolver/"


@pytest.fixture
def wired(mock_config, fake_dav):
    """Route main() to mock_config and the fake server."""
    with (
        patch.object(
            cli,
            "resolve_config",
            return_value=(mock_config, ["environment variables"]),
        ) as resolve,
        patch.object(cli, "WebDavClient", return_value=fake_dav),
        patch.object(cli, "setup_logging"),
    ):
        yield resolve


def _write(path: Path, content: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)


class TestParser:
    def test_defaults(self):
        args = build_parser().parse_args(["upload"])
        assert args.scope == "all"
        assert args.json is False
        assert args.insecure is False

    def test_command_required(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args([])
        assert exc_info.value.code == 2

    def test_invalid_scope(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["download", "--scope", "prompts"])


class TestMain:
    def test_overrides_passed_to_resolver(self, wired):
        main(["--url", "https://cli.example.com", "--insecure", "--debug", "test"])
        wired.assert_called_once_with(
            {"url": "https://cli.example.com", "insecure": True, "debug": True}
        )

    def test_test_command(self, wired, fake_dav, capsys):
        assert main(["test"]) == EXIT_OK
        assert capsys.readouterr().out.strip() == (
            "Connection successful, remote directory created"
        )
        assert ROOT in fake_dav.collections

    def test_connection_failure(self, wired, fake_dav, capsys):
        fake_dav.probe_status = 401
        assert main(["test"]) == EXIT_FAILURE
        assert "Authentication failed" in capsys.readouterr().err

    def test_configuration_error(self, wired, capsys):
        wired.side_effect = ValueError("WebDAV URL not found")
        assert main(["upload"]) == EXIT_FAILURE
        assert "Configuration error: WebDAV URL not found" in capsys.readouterr().err

    def test_upload_all(self, wired, fake_dav, mock_config, capsys):
        _write(Path(mock_config.accounts_dir) / "a.json", b"{}")
        _write(Path(mock_config.codex_dir) / "AGENTS.MD", b"# Agents")

        assert main(["upload"]) == EXIT_OK

        out = capsys.readouterr().out
        assert out.startswith("Upload (all) completed: 2 uploaded")
        assert f"{ROOT}accounts/a.json" in fake_dav.files
        assert f"{ROOT}AGENTS.MD" in fake_dav.files

    def test_upload_accounts_scope(self, wired, fake_dav, mock_config):
        _write(Path(mock_config.accounts_dir) / "a.json", b"{}")
        _write(Path(mock_config.codex_dir) / "AGENTS.MD", b"# Agents")

        main(["upload", "--scope", "accounts"])

        assert f"{ROOT}accounts/a.json" in fake_dav.files
        assert f"{ROOT}AGENTS.MD" not in fake_dav.files

    def test_download_json_with_item_errors(self, wired, fake_dav, capsys):
        fake_dav.seed(f"{ROOT}accounts/bad.json", b"oops")

        assert main(["download", "--scope", "accounts", "--json"]) == (
            EXIT_ITEM_ERRORS
        )

        report = json.loads(capsys.readouterr().out)
        assert report["operation"] == "Download (accounts)"
        assert report["success"] is False
        assert report["errors"][0]["item"] == f"{ROOT}accounts/bad.json"

    def test_client_closed(self, wired, fake_dav):
        with patch.object(fake_dav, "close") as close:
            main(["download", "--scope", "codex"])
        close.assert_called_once_with()


def test_run_maps_keyboard_interrupt():
    with (
        patch.object(cli, "main", side_effect=KeyboardInterrupt),
        pytest.raises(SystemExit) as exc_info,
    ):
        cli.run()
    assert exc_info.value.code == 130


def test_init_writes_starter_config(tmp_path, monkeypatch, capsys):
    monkeypatch.delenv("REVOLVER_SYNC_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))

    with patch.object(cli, "setup_logging"):
        assert main(["init"]) == EXIT_OK

    target = tmp_path / ".revolver_sync" / "config.yml"
    assert target.exists()
    assert capsys.readouterr().out.strip() == str(target)


class TestLoggingFromConfigFile:
    @pytest.fixture
    def project(self, tmp_path, monkeypatch, fake_dav):
        for var in (
            "REVOLVER_WEBDAV_URL",
            "REVOLVER_WEBDAV_USERNAME",
            "REVOLVER_WEBDAV_PASSWORD",
            "REVOLVER_DEBUG",
            "REVOLVER_SYNC_CONFIG",
            "LOG_FILE",
        ):
            monkeypatch.delenv(var, raising=False)
        monkeypatch.setattr("revolver_sync.config.load_dotenv", lambda: False)
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HOME", str(tmp_path / "home"))
        config_dir = tmp_path / ".revolver_sync"
        config_dir.mkdir()
        (config_dir / "config.yml").write_text(
            "webdav:\n"
            "  url: https://dav.example.com/dav\n"
            "  username: me\n"
            "  password: secret\n"
            "logging:\n"
            "  level: DEBUG\n"
            f"  file: {tmp_path / 'yaml.log'}\n"
        )
        with (
            patch.object(cli, "WebDavClient", return_value=fake_dav),
            patch.object(cli, "setup_logging") as setup,
        ):
            yield tmp_path, setup

    def test_level_and_file_applied(self, project):
        tmp_path, setup = project

        assert main(["test"]) == EXIT_OK

        setup.assert_called_once_with(
            mode="cli",
            debug=False,
            log_file=str(tmp_path / "yaml.log"),
            level="DEBUG",
        )

    def test_flags_beat_config_file(self, project):
        _, setup = project

        assert main(["--debug", "--log-file", "/tmp/cli.log", "test"]) == EXIT_OK

        kwargs = setup.call_args.kwargs
        assert kwargs["debug"] is True
        assert kwargs["log_file"] == "/tmp/cli.log"
