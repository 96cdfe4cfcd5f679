"""Pydantic models for the WebDAV sync engine.

Defines the data contracts shared by the reconciler, the orchestrator
and the report formatters:

- ``SyncDirection``: Upload or download.
- ``SyncError``: One failed item and its message.
- ``SyncOutcome``: Aggregate result of one sync run.
- ``CodexSyncOptions``: Which Codex configuration pieces take part.
- ``SyncPaths``: Local roots for every synced subtree.

``SyncOutcome`` is the only mutable model: it is append-only while a
run is in progress and handed to the caller once the run completes.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class SyncDirection(str, Enum):
    """Direction of a single reconciler pass."""

    UPLOAD = "upload"
    DOWNLOAD = "download"


class SyncError(BaseModel):
    """One item that could not be transferred.

    Attributes:
        item: Item identifier (remote path of the file or collection).
        message: Human-readable reason.
    """

    item: str
    message: str

    model_config = {"frozen": True}

    def __str__(self) -> str:
        return f"{self.item}: {self.message}"


class SyncOutcome(BaseModel):
    """Aggregate result of one sync run.

    Attributes:
        uploaded: Item identifiers written to the server, in order.
        downloaded: Item identifiers written locally, in order.
        errors: Failed items, in order.
    """

    uploaded: list[str] = Field(default_factory=list)
    downloaded: list[str] = Field(default_factory=list)
    errors: list[SyncError] = Field(default_factory=list)

    def record_upload(self, item: str) -> None:
        self.uploaded.append(item)

    def record_download(self, item: str) -> None:
        self.downloaded.append(item)

    def record_error(self, item: str, message: str) -> None:
        self.errors.append(SyncError(item=item, message=message))

    def merge(self, other: SyncOutcome) -> None:
        """Append every entry of *other* to this outcome."""
        self.uploaded.extend(other.uploaded)
        self.downloaded.extend(other.downloaded)
        self.errors.extend(other.errors)

    @property
    def ok(self) -> bool:
        """True when no item failed."""
        return not self.errors

    def summary(self) -> str:
        """One-line count summary."""
        return (
            f"{len(self.uploaded)} uploaded, "
            f"{len(self.downloaded)} downloaded, "
            f"{len(self.errors)} errors"
        )


class CodexSyncOptions(BaseModel):
    """Which parts of the Codex home directory are synced.

    ``config.toml`` often holds machine-specific settings, so it is off
    by default.
    """

    sync_prompts: bool = True
    sync_skills: bool = True
    sync_agents_md: bool = True
    sync_config_toml: bool = False

    model_config = {"frozen": True}


class SyncPaths(BaseModel):
    """Local roots for each synced subtree.

    Attributes:
        accounts_dir: Directory holding one ``<name>.json`` per account.
        codex_dir: Codex home directory (``~/.codex``).
    """

    accounts_dir: Path
    codex_dir: Path

    model_config = {"frozen": True}

    @property
    def prompts_dir(self) -> Path:
        return self.codex_dir / "prompts"

    @property
    def skills_dir(self) -> Path:
        return self.codex_dir / "skills"

    @property
    def agents_md(self) -> Path:
        return self.codex_dir / "AGENTS.MD"

    @property
    def config_toml(self) -> Path:
        return self.codex_dir / "config.toml"
