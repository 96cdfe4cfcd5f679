"""Connection and path configuration for WebDAV sync.

Reads WebDAV connection settings and local roots from CLI args,
environment variables, .env files, and YAML config file fallbacks.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    REVOLVER_WEBDAV_URL: WebDAV server URL (required)
    REVOLVER_WEBDAV_USERNAME: WebDAV username (required)
    REVOLVER_WEBDAV_PASSWORD: WebDAV (application) password (required)
    REVOLVER_WEBDAV_REMOTE_PATH: Root collection (optional, default: /code-revolver/)
    REVOLVER_WEBDAV_INSECURE: Skip SSL verification (optional, default: false)
    REVOLVER_ACCOUNTS_DIR: Local accounts directory (optional, default: ~/.myswitch/accounts)
    CODEX_HOME: Codex home directory (optional, default: ~/.codex)
    LOG_FILE: Log file (optional; beats the YAML logging.file)
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from dotenv import load_dotenv

from .config_loader import discover_config_files, load_hierarchical_config
from .config_schema import build_config, to_yaml_fallbacks
from .core.paths import RemoteEndpoint, normalize_remote_path
from .sync.models import CodexSyncOptions, SyncPaths

logger = logging.getLogger(__name__)

DEFAULT_REMOTE_PATH = "/code-revolver/"
DEFAULT_ACCOUNTS_DIR = "~/.myswitch/accounts"
DEFAULT_CODEX_DIR = "~/.codex"

_OVERRIDE_KEYS = ("url", "username", "password", "remote_path", "insecure", "debug")


@dataclass
class Config:
    webdav_url: str
    username: str
    password: str
    remote_path: str = DEFAULT_REMOTE_PATH
    insecure: bool = False
    debug: bool = False
    accounts_dir: str = DEFAULT_ACCOUNTS_DIR
    codex_dir: str = DEFAULT_CODEX_DIR
    codex_options: CodexSyncOptions = field(default_factory=CodexSyncOptions)
    log_level: str | None = None
    log_file: str | None = None

    def endpoint(self) -> RemoteEndpoint:
        """Root collection endpoint for this configuration."""
        return RemoteEndpoint(
            base_url=self.webdav_url,
            username=self.username,
            password=self.password,
            remote_path=self.remote_path,
        )

    def sync_paths(self) -> SyncPaths:
        """Local roots, with ``~`` expanded."""
        return SyncPaths(
            accounts_dir=Path(self.accounts_dir).expanduser(),
            codex_dir=Path(self.codex_dir).expanduser(),
        )


def validate_config(config: Config) -> None:
    """Validate configuration values and raise ValueError if invalid.

    Args:
        config: Config instance to validate.

    Raises:
        ValueError: If URL format is invalid or credentials are empty.
    """
    config.webdav_url = config.webdav_url.strip()

    if not config.webdav_url.startswith(("http://", "https://")):
        raise ValueError(
            f"Invalid WebDAV URL '{config.webdav_url}': must start with http:// or https://"
        )

    parsed = urlparse(config.webdav_url)
    if not parsed.hostname:
        raise ValueError(
            f"Invalid WebDAV URL '{config.webdav_url}': URL must include a hostname"
        )

    config.webdav_url = config.webdav_url.rstrip("/")
    config.remote_path = normalize_remote_path(config.remote_path)

    if not config.username.strip():
        raise ValueError(
            "WebDAV username cannot be empty. Set REVOLVER_WEBDAV_USERNAME environment variable."
        )

    if not config.password.strip():
        raise ValueError(
            "WebDAV password cannot be empty. Set REVOLVER_WEBDAV_PASSWORD environment variable."
        )

    if config.insecure:
        logger.warning(
            "WARNING: SSL verification disabled (insecure=True). Use only for development."
        )


def get_bool_env(key: str) -> bool | None:
    """Return True/False from env var, or None if unset."""
    val = os.getenv(key)
    if val is None:
        return None
    return val.lower() in ("true", "1", "yes", "on")


def load_config(
    url: str | None = None,
    username: str | None = None,
    password: str | None = None,
    remote_path: str | None = None,
    insecure: bool = False,
    debug: bool = False,
    yaml_fallbacks: dict | None = None,
) -> Config:
    """Load configuration with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > yaml_fallbacks > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        url: Override WebDAV URL.
        username: Override username.
        password: Override password.
        remote_path: Override root collection path.
        insecure: Skip SSL verification (CLI flag).
        debug: Enable debug logging (CLI flag).
        yaml_fallbacks: Flat dict built from the YAML ``webdav``,
            ``paths``, ``codex_sync`` and ``logging`` sections (see
            ``config_schema.to_yaml_fallbacks``).  Used when CLI arg and
            env var are both unset.

    Returns:
        Validated Config instance.

    Raises:
        ValueError: If URL, username or password is missing after
            checking all sources.
    """
    fb = yaml_fallbacks or {}

    # --- String fields: CLI > env > YAML > error/default ---

    webdav_url = url or os.getenv("REVOLVER_WEBDAV_URL") or fb.get("url")
    if not webdav_url:
        raise ValueError(
            "WebDAV URL not found. Set REVOLVER_WEBDAV_URL environment variable, "
            "pass --url CLI argument, or add 'url' to config.yml."
        )

    dav_username = (
        username or os.getenv("REVOLVER_WEBDAV_USERNAME") or fb.get("username")
    )
    if not dav_username:
        raise ValueError(
            "WebDAV username not found. Set REVOLVER_WEBDAV_USERNAME environment variable, "
            "pass --username CLI argument, or add 'username' to config.yml."
        )

    dav_password = (
        password or os.getenv("REVOLVER_WEBDAV_PASSWORD") or fb.get("password")
    )
    if not dav_password:
        raise ValueError(
            "WebDAV password not found. Set REVOLVER_WEBDAV_PASSWORD environment variable, "
            "pass --password CLI argument, or add 'password' to config.yml."
        )

    final_remote_path = (
        remote_path
        or os.getenv("REVOLVER_WEBDAV_REMOTE_PATH")
        or fb.get("remote_path")
        or DEFAULT_REMOTE_PATH
    )

    accounts_dir = (
        os.getenv("REVOLVER_ACCOUNTS_DIR")
        or fb.get("accounts_dir")
        or DEFAULT_ACCOUNTS_DIR
    )
    codex_dir = os.getenv("CODEX_HOME") or fb.get("codex_dir") or DEFAULT_CODEX_DIR
    log_file = os.getenv("LOG_FILE") or fb.get("log_file")

    # --- Boolean fields: CLI > env > YAML > default ---

    if insecure:
        final_insecure = True
    else:
        env_insecure = get_bool_env("REVOLVER_WEBDAV_INSECURE")
        if env_insecure is not None:
            final_insecure = env_insecure
        else:
            final_insecure = bool(fb.get("insecure", False))

    if debug:
        final_debug = True
    else:
        env_debug = get_bool_env("REVOLVER_DEBUG")
        if env_debug is not None:
            final_debug = env_debug
        else:
            final_debug = bool(fb.get("debug", False))

    codex_options = CodexSyncOptions(
        **{
            key: bool(fb[key])
            for key in CodexSyncOptions.model_fields
            if key in fb
        }
    )

    config = Config(
        webdav_url=webdav_url.strip(),
        username=dav_username.strip(),
        password=dav_password.strip(),
        remote_path=final_remote_path,
        insecure=final_insecure,
        debug=final_debug,
        accounts_dir=accounts_dir,
        codex_dir=codex_dir,
        codex_options=codex_options,
        log_level=fb.get("log_level"),
        log_file=log_file,
    )

    validate_config(config)

    return config


def resolve_config(
    overrides: dict[str, Any] | None = None,
) -> tuple[Config, list[str]]:
    """Load configuration from every source an entry point supports.

    Loads ``.env`` first so YAML ``${VAR}`` interpolation can see it,
    then the discovered YAML files, then calls ``load_config()`` with
    the CLI *overrides* (keys: url, username, password, remote_path,
    insecure, debug).

    Returns:
        The validated config and a list describing the sources used.

    Raises:
        ValueError: If required settings are missing or invalid.
    """
    load_dotenv()

    fallbacks: dict[str, Any] | None = None
    sources: list[str] = []
    config_files = discover_config_files()
    if config_files:
        unified = build_config(load_hierarchical_config())
        fallbacks = to_yaml_fallbacks(unified)
        sources.append(f"config file: {config_files[0]}")

    overrides = overrides or {}
    config = load_config(
        url=overrides.get("url"),
        username=overrides.get("username"),
        password=overrides.get("password"),
        remote_path=overrides.get("remote_path"),
        insecure=overrides.get("insecure", False),
        debug=overrides.get("debug", False),
        yaml_fallbacks=fallbacks,
    )

    if any(key in overrides for key in _OVERRIDE_KEYS):
        sources.append("CLI arguments")
    sources.append("environment variables")
    return config, sources
