"""Unified configuration schema for revolver_sync.

Defines Pydantic models for the unified config structure with dedicated
sections for the WebDAV connection, local paths, Codex sync options and
logging, plus the adapter that flattens them into ``load_config``
fallbacks.

Usage:
    from revolver_sync.config_schema import build_config, to_yaml_fallbacks

    raw = load_hierarchical_config()
    fallbacks = to_yaml_fallbacks(build_config(raw))
    config = load_config(yaml_fallbacks=fallbacks)
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, Field

from .sync.models import CodexSyncOptions

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class WebDavSection(BaseModel):
    """WebDAV server connection settings.

    All fields are optional to support zero-config: env vars and CLI args
    can supply them at runtime instead.
    """

    url: str | None = Field(default=None, description="WebDAV server URL")
    username: str | None = Field(
        default=None, description="WebDAV username"
    )
    password: str | None = Field(
        default=None, description="WebDAV (application) password"
    )
    remote_path: str = Field(
        default="/code-revolver/",
        description="Root collection for the backup",
    )
    insecure: bool = Field(
        default=False,
        description="Disable SSL verification (development only)",
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    model_config = {"frozen": True}


class PathsSection(BaseModel):
    """Local directories that take part in a sync run."""

    accounts_dir: str = Field(
        default="~/.myswitch/accounts",
        description="Directory with one <name>.json per account",
    )
    codex_dir: str = Field(
        default="~/.codex", description="Codex home directory"
    )

    model_config = {"frozen": True}


class CodexSyncSection(BaseModel):
    """Which Codex configuration pieces take part in a sync run.

    ``config.toml`` often holds machine-specific settings, so it is
    opt-in.
    """

    sync_prompts: bool = True
    sync_skills: bool = True
    sync_agents_md: bool = True
    sync_config_toml: bool = False

    model_config = {"frozen": True}

    def to_options(self) -> CodexSyncOptions:
        return CodexSyncOptions(**self.model_dump())


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            Unset means the entry point default; LOG_LEVEL still wins.
        file: Optional log file path.
    """

    level: str | None = Field(default=None, description="Log level")
    file: str | None = Field(default=None, description="Log file path")

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level unified config
# ---------------------------------------------------------------------------


class UnifiedConfig(BaseModel):
    """Top-level unified configuration.

    Aggregates all config sections. Every section has sensible defaults,
    so ``UnifiedConfig()`` (zero-config) is always valid.
    """

    webdav: WebDavSection = Field(default_factory=WebDavSection)
    paths: PathsSection = Field(default_factory=PathsSection)
    codex_sync: CodexSyncSection = Field(default_factory=CodexSyncSection)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Factory functions
# ---------------------------------------------------------------------------


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the raw dict returned by
    ``load_hierarchical_config()``.

    Handles missing sections gracefully: anything absent gets defaults.

    Args:
        raw_data: Merged configuration dictionary.

    Returns:
        Validated ``UnifiedConfig`` instance.
    """
    if not raw_data:
        return UnifiedConfig()

    return UnifiedConfig(**raw_data)


def to_yaml_fallbacks(unified: UnifiedConfig) -> dict[str, Any]:
    """Flatten the file-based sections into ``load_config`` fallbacks.

    ``None`` values are dropped so they never shadow built-in defaults.
    """
    merged: dict[str, Any] = {}
    merged.update(unified.webdav.model_dump())
    merged.update(unified.paths.model_dump())
    merged.update(unified.codex_sync.model_dump())
    merged["log_level"] = unified.logging.level
    merged["log_file"] = unified.logging.file
    return {k: v for k, v in merged.items() if v is not None}
