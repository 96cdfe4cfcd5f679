"""Sync orchestration: which local trees take part in a run and where
they live on the server.

Remote layout under the configured root collection::

    <root>/accounts/          one <name>.json per account (flat)
    <root>/prompts/           prompt templates, nested categories allowed
    <root>/skills/<skill>/    one recursive sub-tree per skill
    <root>/AGENTS.MD          agent instructions
    <root>/config.toml        Codex CLI config (opt-in)

The orchestrator creates the root and first-level collections before
delegating to the :class:`DirectoryReconciler`, so a brand-new share
bootstraps on first upload.  All local roots are passed in through
:class:`SyncPaths`; nothing here reads global configuration.
"""

from __future__ import annotations

import logging
from pathlib import Path

from revolver_sync.core.client import WebDavClient
from revolver_sync.core.paths import RemoteEndpoint
from revolver_sync.exceptions import (
    ContentValidationError,
    TransportError,
)
from revolver_sync.sync.models import (
    CodexSyncOptions,
    SyncOutcome,
    SyncPaths,
)
from revolver_sync.sync.reconciler import DirectoryReconciler, write_atomic
from revolver_sync.validators import validate_content, validate_json

logger = logging.getLogger(__name__)

ACCOUNTS_COLLECTION = "accounts"
PROMPTS_COLLECTION = "prompts"
SKILLS_COLLECTION = "skills"

# Skill directories that are build output, not user content.
SKIPPED_SKILL_DIRS = frozenset({"dist"})


def _accounts_filter(name: str, is_directory: bool) -> bool:
    """Accounts are a flat collection of ``.json`` files."""
    return not is_directory and name.endswith(".json")


class SyncOrchestrator:
    """Compose reconciler passes for accounts and Codex configuration.

    Args:
        client: WebDAV transport.
        endpoint: Root collection of the backup on the server.
        paths: Local roots for every synced subtree.
    """

    def __init__(
        self,
        client: WebDavClient,
        endpoint: RemoteEndpoint,
        paths: SyncPaths,
    ) -> None:
        self.client = client
        self.endpoint = endpoint
        self.paths = paths

    # ------------------------------------------------------------------
    # Connectivity
    # ------------------------------------------------------------------

    def test_connection(self) -> str:
        """Probe the root collection, creating it on a fresh share.

        Returns:
            Human-readable success message.

        Raises:
            TransportError: On connection failure, bad credentials, or
                any other unexpected status.
        """
        try:
            status = self.client.probe(self.endpoint)
        except TransportError as e:
            raise TransportError(f"Connection failed: {e}") from e

        if 200 <= status < 300 or status == 207:
            return "Connection successful"
        if status == 404:
            self.client.ensure_collection(self.endpoint)
            logger.info("Created remote root %s", self.endpoint.remote_path)
            return "Connection successful, remote directory created"
        if status == 401:
            raise TransportError(
                "Authentication failed: check the username and "
                "application password",
                status,
            )
        raise TransportError(f"Connection failed: HTTP {status}", status)

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def upload_accounts(self) -> SyncOutcome:
        """Upload every ``*.json`` account file to ``<root>/accounts/``."""
        outcome = SyncOutcome()
        self._bootstrap(self.endpoint)
        accounts = self.endpoint.child(ACCOUNTS_COLLECTION)
        self._bootstrap(accounts)

        if not self.paths.accounts_dir.is_dir():
            logger.info(
                "No local accounts directory at %s", self.paths.accounts_dir
            )
            return outcome

        outcome.merge(
            self._accounts_reconciler().upload(
                self.paths.accounts_dir, accounts
            )
        )
        return outcome

    def download_accounts(self) -> SyncOutcome:
        """Download ``<root>/accounts/*.json`` into the accounts directory.

        Raises:
            FilesystemError: If the local accounts directory cannot be
                created.
        """
        accounts = self.endpoint.child(ACCOUNTS_COLLECTION)
        return self._accounts_reconciler().download(
            accounts, self.paths.accounts_dir
        )

    def _accounts_reconciler(self) -> DirectoryReconciler:
        return DirectoryReconciler(
            self.client, validator=validate_json, include=_accounts_filter
        )

    # ------------------------------------------------------------------
    # Codex configuration
    # ------------------------------------------------------------------

    def upload_codex(
        self, options: CodexSyncOptions | None = None
    ) -> SyncOutcome:
        """Upload the selected Codex configuration pieces."""
        options = options or CodexSyncOptions()
        outcome = SyncOutcome()
        self._bootstrap(self.endpoint)

        if options.sync_agents_md:
            self._upload_single(self.paths.agents_md, outcome)
        if options.sync_config_toml:
            self._upload_single(self.paths.config_toml, outcome)

        reconciler = DirectoryReconciler(self.client)

        if options.sync_prompts:
            prompts = self.endpoint.child(PROMPTS_COLLECTION)
            self._bootstrap(prompts)
            if self.paths.prompts_dir.is_dir():
                outcome.merge(
                    reconciler.upload(self.paths.prompts_dir, prompts)
                )

        if options.sync_skills:
            skills = self.endpoint.child(SKILLS_COLLECTION)
            self._bootstrap(skills)
            for skill_dir in self._local_skills():
                outcome.merge(
                    reconciler.upload(skill_dir, skills.child(skill_dir.name))
                )

        return outcome

    def download_codex(
        self, options: CodexSyncOptions | None = None
    ) -> SyncOutcome:
        """Download the selected Codex configuration pieces.

        Raises:
            FilesystemError: If the prompts or skills directory cannot be
                created.
        """
        options = options or CodexSyncOptions()
        outcome = SyncOutcome()

        if options.sync_agents_md:
            self._download_single(self.paths.agents_md, outcome)

        reconciler = DirectoryReconciler(self.client)

        if options.sync_prompts:
            outcome.merge(
                reconciler.download(
                    self.endpoint.child(PROMPTS_COLLECTION),
                    self.paths.prompts_dir,
                )
            )

        if options.sync_skills:
            outcome.merge(
                reconciler.download(
                    self.endpoint.child(SKILLS_COLLECTION),
                    self.paths.skills_dir,
                )
            )

        if options.sync_config_toml:
            self._download_single(self.paths.config_toml, outcome)

        return outcome

    def _local_skills(self) -> list[Path]:
        skills_dir = self.paths.skills_dir
        if not skills_dir.is_dir():
            return []
        return sorted(
            (
                child
                for child in skills_dir.iterdir()
                if child.is_dir()
                and not child.name.startswith(".")
                and child.name not in SKIPPED_SKILL_DIRS
            ),
            key=lambda p: p.name,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _bootstrap(self, endpoint: RemoteEndpoint) -> None:
        try:
            self.client.ensure_collection(endpoint)
        except TransportError as e:
            logger.warning(
                "Could not create remote %s: %s", endpoint.remote_path, e
            )

    def _upload_single(self, path: Path, outcome: SyncOutcome) -> None:
        """Upload one standalone file to the root; missing files are skipped."""
        if not path.is_file():
            logger.debug("Skipping %s: not present locally", path)
            return

        item = self.endpoint.item_id(path.name)
        try:
            content = path.read_bytes()
            validate_content(path.name, content)
            self.client.put_file(self.endpoint, path.name, content)
        except OSError as e:
            outcome.record_error(item, f"Read failed: {e}")
            return
        except (ContentValidationError, TransportError) as e:
            logger.warning("%s: %s", item, e)
            outcome.record_error(item, str(e))
            return
        outcome.record_upload(item)

    def _download_single(self, path: Path, outcome: SyncOutcome) -> None:
        """Download one standalone file from the root; 404 is skipped."""
        item = self.endpoint.item_id(path.name)
        try:
            content = self.client.get_file(self.endpoint, path.name)
            validate_content(path.name, content)
        except TransportError as e:
            if e.not_found:
                logger.debug("No remote %s", item)
                return
            logger.warning("%s: %s", item, e)
            outcome.record_error(item, str(e))
            return
        except ContentValidationError as e:
            logger.warning("%s: %s", item, e)
            outcome.record_error(item, str(e))
            return

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            write_atomic(path, content)
        except OSError as e:
            outcome.record_error(item, f"Write failed: {e}")
            return
        outcome.record_download(item)
