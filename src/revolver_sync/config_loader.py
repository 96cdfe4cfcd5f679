"""
Hierarchical YAML configuration loader for revolver_sync.

Finds config files by convention, resolves ``!include`` directives,
interpolates ``${VAR}`` references from the environment and merges the
files so that the project-level file wins over the global one.

Usage:
    from revolver_sync.config_loader import load_hierarchical_config

    raw = load_hierarchical_config()
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "REVOLVER_SYNC_CONFIG"
PROJECT_CONFIG_DIR = ".revolver_sync"

# ${VAR} or ${VAR:-default}
_ENV_REF = re.compile(r"\$\{([^}:]+?)(?::-(.*?))?\}")


# ---------------------------------------------------------------------------
# Env var interpolation
# ---------------------------------------------------------------------------


def interpolate_env_vars(value: str) -> str:
    """Expand ``${VAR}`` and ``${VAR:-default}`` in *value*.

    An unset or empty variable expands to its default, or to ``""`` when
    there is none.  Unterminated ``${`` sequences are left as they are.
    """

    def _expand(match: re.Match) -> str:
        current = os.environ.get(match.group(1))
        if current:
            return current
        return match.group(2) or ""

    return _ENV_REF.sub(_expand, value)


def _interpolate_tree(node: Any) -> Any:
    if isinstance(node, dict):
        return {key: _interpolate_tree(val) for key, val in node.items()}
    if isinstance(node, list):
        return [_interpolate_tree(val) for val in node]
    if isinstance(node, str):
        return interpolate_env_vars(node)
    return node


# ---------------------------------------------------------------------------
# !include support
# ---------------------------------------------------------------------------


class ConfigLoader(yaml.SafeLoader):
    """SafeLoader with an ``!include`` tag.

    A subclass keeps the tag out of ``yaml.SafeLoader`` itself.  Each
    loader carries the chain of files being loaded so that include
    cycles are reported instead of recursing forever.
    """


def _construct_include(loader: ConfigLoader, node: yaml.ScalarNode) -> Any:
    raw_path = Path(loader.construct_scalar(node))
    including_file = Path(loader.name).resolve()
    if not raw_path.is_absolute():
        raw_path = including_file.parent / raw_path
    target = raw_path.resolve()

    chain: list[Path] = getattr(loader, "_include_stack", [])
    if target in chain:
        cycle = " -> ".join(str(p) for p in [*chain, target])
        raise ValueError(f"Circular include detected: {cycle}")

    if not target.exists():
        raise FileNotFoundError(
            f"Include file not found: {target} (referenced from {including_file})"
        )

    return _load_yaml_file(target, chain=[*chain, target])


ConfigLoader.add_constructor("!include", _construct_include)


def _load_yaml_file(path: Path, *, chain: list[Path] | None = None) -> Any:
    """Parse one YAML file with ``ConfigLoader``."""
    path = path.resolve()
    with open(path, "r", encoding="utf-8") as fh:
        loader = ConfigLoader(fh)
        loader._include_stack = chain or [path]  # type: ignore[attr-defined]
        try:
            return loader.get_single_data()
        finally:
            loader.dispose()


# ---------------------------------------------------------------------------
# File discovery
# ---------------------------------------------------------------------------


def discover_config_files() -> list[Path]:
    """Return the config files that exist, highest precedence first.

    Candidates:
        1. The path named by ``REVOLVER_SYNC_CONFIG``.
        2. ``.revolver_sync/config.yml`` in the working directory.
        3. ``.revolver_sync/config.yaml`` in the working directory.
        4. ``~/.config/revolver_sync/config.yml``.
    """
    candidates: list[Path] = []

    explicit = os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        candidates.append(Path(explicit).expanduser().resolve())

    project_dir = Path.cwd() / PROJECT_CONFIG_DIR
    candidates.extend(
        [project_dir / "config.yml", project_dir / "config.yaml"]
    )
    candidates.append(Path.home() / ".config" / "revolver_sync" / "config.yml")

    return [path for path in candidates if path.exists()]


# ---------------------------------------------------------------------------
# Starter config
# ---------------------------------------------------------------------------

_STARTER_CONFIG = """\
# revolver-sync configuration
#
# Connection settings can also come from environment variables:
#   REVOLVER_WEBDAV_URL, REVOLVER_WEBDAV_USERNAME, REVOLVER_WEBDAV_PASSWORD,
#   REVOLVER_WEBDAV_REMOTE_PATH, REVOLVER_WEBDAV_INSECURE
#
# webdav:
#   url: https://dav.example.com/remote.php/dav/files/me
#   username: me
#   password: ${REVOLVER_WEBDAV_PASSWORD}
#   remote_path: /code-revolver/
#   insecure: false
#
# paths:
#   accounts_dir: ~/.myswitch/accounts
#   codex_dir: ~/.codex
#
# codex_sync:
#   sync_prompts: true
#   sync_skills: true
#   sync_agents_md: true
#   sync_config_toml: false
#
# logging:
#   level: INFO
#   file: null
"""


def resolve_config_path() -> Path:
    """Return the active config file, or the project-level default path.

    Nothing is created; see ``ensure_config()``.
    """
    existing = discover_config_files()
    if existing:
        return existing[0]
    return Path.cwd() / PROJECT_CONFIG_DIR / "config.yml"


def ensure_config(target: Path | None = None) -> Path:
    """Make sure a config file exists and return its path.

    An existing file is returned untouched.  Otherwise a commented
    starter file is written to *target* (default: ``resolve_config_path()``).
    """
    existing = discover_config_files()
    if existing:
        logger.debug("Config file already exists: %s", existing[0])
        return existing[0]

    config_path = target or resolve_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(_STARTER_CONFIG, encoding="utf-8")
    logger.info("Created starter config: %s", config_path)
    return config_path


# ---------------------------------------------------------------------------
# Hierarchical merge
# ---------------------------------------------------------------------------


def load_hierarchical_config() -> dict[str, Any]:
    """Load every discovered config file and merge them.

    Files are applied from lowest to highest precedence; a top-level key
    from a higher-precedence file replaces the whole section below it.
    Env var interpolation runs on the merged result.  With no config
    files the result is ``{}``.
    """
    paths = discover_config_files()
    if not paths:
        logger.debug("No config files found, using built-in defaults")
        return {}

    merged: dict[str, Any] = {}
    for path in reversed(paths):
        logger.debug("Loading config: %s", path)
        try:
            data = _load_yaml_file(path)
        except (OSError, ValueError, yaml.YAMLError):
            logger.exception("Failed to load config file %s", path)
            raise

        if isinstance(data, dict):
            merged.update(data)
        elif data is not None:
            logger.warning(
                "Config file %s has non-dict root (%s), skipping",
                path,
                type(data).__name__,
            )

    return _interpolate_tree(merged)
