"""Command-line interface for WebDAV sync.

Subcommands:

- ``revolver-sync init``: write a commented starter config file.
- ``revolver-sync test``: probe the remote root (creating it if missing).
- ``revolver-sync upload --scope accounts|codex|all``
- ``revolver-sync download --scope accounts|codex|all``

Exit status is 0 when every item transferred, 1 when some items failed
and 2 on configuration or connection failures.
"""

import argparse
import json
import logging
import sys

from . import __version__
from .config import Config, resolve_config
from .config_loader import ensure_config
from .core.client import WebDavClient
from .exceptions import RevolverSyncError
from .logger import setup_logging
from .sync import SyncOrchestrator, SyncOutcome, format_sync_report, outcome_to_json

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ITEM_ERRORS = 1
EXIT_FAILURE = 2

SCOPES = ("accounts", "codex", "all")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="revolver-sync",
        description="Back up and restore accounts and Codex configuration over WebDAV",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Check credentials and create the remote folder on first use
  revolver-sync test

  # Upload everything
  revolver-sync upload

  # Restore only accounts, machine-readable report
  revolver-sync download --scope accounts --json
        """,
    )
    parser.add_argument(
        "--url", help="Override WebDAV URL (REVOLVER_WEBDAV_URL)"
    )
    parser.add_argument(
        "--username", help="Override WebDAV username (REVOLVER_WEBDAV_USERNAME)"
    )
    parser.add_argument(
        "--password",
        help="Override WebDAV password"
        " (visible in process list -- prefer REVOLVER_WEBDAV_PASSWORD)",
    )
    parser.add_argument(
        "--remote-path",
        help="Override the remote backup folder (default: /code-revolver/)",
    )
    parser.add_argument(
        "--insecure",
        action="store_true",
        help="Skip SSL certificate verification (use only for development)",
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging"
    )
    parser.add_argument("--log-file", help="Also write logs to this file")
    parser.add_argument(
        "--version",
        action="version",
        version=f"revolver-sync version {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser(
        "init", help="Create .revolver_sync/config.yml if no config exists"
    )
    subparsers.add_parser("test", help="Test the WebDAV connection")
    for command in ("upload", "download"):
        sub = subparsers.add_parser(
            command, help=f"{command.capitalize()} synced files"
        )
        sub.add_argument(
            "--scope",
            choices=SCOPES,
            default="all",
            help="What to sync (default: all)",
        )
        sub.add_argument(
            "--json",
            action="store_true",
            help="Print the report as JSON instead of text",
        )
    return parser


def _overrides(args: argparse.Namespace) -> dict:
    overrides: dict = {}
    for key in ("url", "username", "password", "remote_path"):
        value = getattr(args, key)
        if value:
            overrides[key] = value
    if args.insecure:
        overrides["insecure"] = True
    if args.debug:
        overrides["debug"] = True
    return overrides


def run_sync_command(
    orchestrator: SyncOrchestrator, config: Config, command: str, scope: str
) -> SyncOutcome:
    """Run *command* ("upload" or "download") for *scope*.

    Raises:
        FilesystemError: If a top-level local directory cannot be created.
    """
    outcome = SyncOutcome()
    if scope in ("accounts", "all"):
        if command == "upload":
            outcome.merge(orchestrator.upload_accounts())
        else:
            outcome.merge(orchestrator.download_accounts())
    if scope in ("codex", "all"):
        if command == "upload":
            outcome.merge(orchestrator.upload_codex(config.codex_options))
        else:
            outcome.merge(orchestrator.download_codex(config.codex_options))
    return outcome


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.command == "init":
        setup_logging(mode="cli", debug=args.debug, log_file=args.log_file)
        print(ensure_config())
        return EXIT_OK

    try:
        config, sources = resolve_config(_overrides(args))
    except ValueError as e:
        setup_logging(mode="cli", debug=args.debug, log_file=args.log_file)
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    # config.debug already includes --debug
    setup_logging(
        mode="cli",
        debug=config.debug,
        log_file=args.log_file or config.log_file,
        level=config.log_level,
    )
    logger.debug("Configuration loaded from: %s", ", ".join(sources))

    client = WebDavClient(insecure=config.insecure)
    orchestrator = SyncOrchestrator(
        client, config.endpoint(), config.sync_paths()
    )
    try:
        if args.command == "test":
            print(orchestrator.test_connection())
            return EXIT_OK

        title = f"{args.command.capitalize()} ({args.scope})"
        outcome = run_sync_command(
            orchestrator, config, args.command, args.scope
        )
    except RevolverSyncError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURE
    finally:
        client.close()

    if args.json:
        print(json.dumps(outcome_to_json(outcome, title), indent=2))
    else:
        print(format_sync_report(outcome, title))
    return EXIT_OK if outcome.ok else EXIT_ITEM_ERRORS


def run() -> None:
    """Console script entry point."""
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    run()
