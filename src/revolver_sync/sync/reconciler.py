"""Recursive, single-direction reconciliation of a local directory tree
against a remote WebDAV collection.

One traversal routine serves both directions.  For each level it:

1. Lists the *source* side (local directory for uploads, remote
   collection for downloads).
2. Transfers every file entry: read, validate, write to the destination.
3. Ensures the matching destination directory for every directory entry
   and recurses into it, merging the child outcome.

The reconciler never deletes and never compares timestamps: an item on
the source side overwrites a same-named item on the destination side,
and items present only on the destination are left alone.

Error handling is per item: transport, validation and filesystem errors
are recorded in the ``SyncOutcome`` and traversal continues with the
next sibling.  Only a failure to prepare the top-level local directory
raises.
"""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import NamedTuple

from revolver_sync.core.client import WebDavClient
from revolver_sync.core.paths import RemoteEndpoint
from revolver_sync.exceptions import (
    ContentValidationError,
    FilesystemError,
    TransportError,
)
from revolver_sync.sync.models import SyncDirection, SyncOutcome
from revolver_sync.validators import (
    Validator,
    is_synced_name,
    validate_content,
    validate_item_name,
)

logger = logging.getLogger(__name__)

IncludeFilter = Callable[[str, bool], bool]


class _Entry(NamedTuple):
    name: str
    is_directory: bool


def write_atomic(path: Path, content: bytes) -> None:
    """Replace *path* with *content* so readers never see partial data.

    Raises:
        OSError: If the temp file cannot be written or moved into place.
    """
    fd, tmp_path = tempfile.mkstemp(
        dir=str(path.parent), prefix=".revolver-", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(content)
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


class DirectoryReconciler:
    """Mirror one local directory and one remote collection, recursively.

    Args:
        client: WebDAV transport.
        validator: Called as ``validator(name, content)`` before a file
            is committed to its destination; raises
            ``ContentValidationError`` to reject it.
        include: Optional ``include(name, is_directory)`` predicate
            applied on top of the built-in hidden/cache-name filter.
    """

    def __init__(
        self,
        client: WebDavClient,
        validator: Validator = validate_content,
        include: IncludeFilter | None = None,
    ) -> None:
        self.client = client
        self.validator = validator
        self.include = include

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def upload(
        self, local_dir: Path, endpoint: RemoteEndpoint
    ) -> SyncOutcome:
        """Upload *local_dir* into the endpoint's collection."""
        return self.reconcile(SyncDirection.UPLOAD, local_dir, endpoint)

    def download(
        self, endpoint: RemoteEndpoint, local_dir: Path
    ) -> SyncOutcome:
        """Download the endpoint's collection into *local_dir*."""
        return self.reconcile(SyncDirection.DOWNLOAD, local_dir, endpoint)

    def reconcile(
        self,
        direction: SyncDirection,
        local_dir: Path,
        endpoint: RemoteEndpoint,
    ) -> SyncOutcome:
        """Run one pass in *direction*.

        Returns:
            The completed outcome for the whole subtree.

        Raises:
            FilesystemError: If the top-level local directory is missing
                (upload) or cannot be created (download).
        """
        logger.info(
            "Reconciling %s <-> %s (%s)",
            local_dir,
            endpoint.remote_path,
            direction.value,
        )
        if direction is SyncDirection.UPLOAD:
            if not local_dir.is_dir():
                raise FilesystemError(
                    f"Local directory does not exist: {local_dir}"
                )
            self._ensure_remote(endpoint)
        else:
            try:
                local_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise FilesystemError(
                    f"Failed to create local directory {local_dir}: {e}"
                ) from e

        outcome = self._walk(direction, local_dir, endpoint)
        logger.info(
            "Finished %s of %s: %s",
            direction.value,
            endpoint.remote_path,
            outcome.summary(),
        )
        return outcome

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def _walk(
        self,
        direction: SyncDirection,
        local_dir: Path,
        endpoint: RemoteEndpoint,
    ) -> SyncOutcome:
        outcome = SyncOutcome()

        if direction is SyncDirection.UPLOAD:
            entries = self._list_local(local_dir, endpoint, outcome)
        else:
            entries = self._list_remote(endpoint, outcome)

        for entry in entries:
            if entry.is_directory:
                child_dir = local_dir / entry.name
                child_endpoint = endpoint.child(entry.name)
                if not self._prepare_directory(
                    direction, child_dir, child_endpoint, outcome
                ):
                    continue
                outcome.merge(
                    self._walk(direction, child_dir, child_endpoint)
                )
            elif direction is SyncDirection.UPLOAD:
                self._upload_file(local_dir, endpoint, entry.name, outcome)
            else:
                self._download_file(
                    endpoint, local_dir, entry.name, outcome
                )

        return outcome

    def _accepts(self, name: str, is_directory: bool) -> bool:
        if not is_synced_name(name):
            return False
        if self.include is not None and not self.include(
            name, is_directory
        ):
            return False
        return True

    def _list_local(
        self,
        local_dir: Path,
        endpoint: RemoteEndpoint,
        outcome: SyncOutcome,
    ) -> list[_Entry]:
        try:
            children = sorted(local_dir.iterdir(), key=lambda p: p.name)
        except OSError as e:
            logger.warning("Cannot read %s: %s", local_dir, e)
            outcome.record_error(
                endpoint.remote_path, f"Read directory failed: {e}"
            )
            return []

        entries = []
        for child in children:
            is_directory = child.is_dir()
            if self._accepts(child.name, is_directory):
                entries.append(_Entry(child.name, is_directory))
        return entries

    def _list_remote(
        self, endpoint: RemoteEndpoint, outcome: SyncOutcome
    ) -> list[_Entry]:
        try:
            remote = self.client.list_collection(endpoint)
        except TransportError as e:
            if e.not_found:
                logger.info(
                    "Remote collection %s does not exist yet",
                    endpoint.remote_path,
                )
                return []
            logger.warning(
                "Failed to list %s: %s", endpoint.remote_path, e
            )
            outcome.record_error(endpoint.remote_path, str(e))
            return []

        entries = []
        for item in remote:
            is_valid, reason = validate_item_name(item.name)
            if not is_valid:
                outcome.record_error(endpoint.item_id(item.name), reason)
                continue
            if self._accepts(item.name, item.is_collection):
                entries.append(_Entry(item.name, item.is_collection))
        return entries

    def _prepare_directory(
        self,
        direction: SyncDirection,
        local_dir: Path,
        endpoint: RemoteEndpoint,
        outcome: SyncOutcome,
    ) -> bool:
        """Ensure the destination directory for a sub-tree exists.

        Returns ``False`` when the sub-tree must be skipped.
        """
        if direction is SyncDirection.UPLOAD:
            self._ensure_remote(endpoint)
            return True

        try:
            local_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning("Cannot create %s: %s", local_dir, e)
            outcome.record_error(
                endpoint.remote_path, f"Create directory failed: {e}"
            )
            return False
        return True

    def _ensure_remote(self, endpoint: RemoteEndpoint) -> None:
        # Some servers reject MKCOL on an existing collection with an
        # unexpected status; the PUTs that follow report real failures.
        try:
            self.client.ensure_collection(endpoint)
        except TransportError as e:
            logger.warning(
                "Could not create remote %s: %s", endpoint.remote_path, e
            )

    # ------------------------------------------------------------------
    # Per-item transfers
    # ------------------------------------------------------------------

    def _upload_file(
        self,
        local_dir: Path,
        endpoint: RemoteEndpoint,
        name: str,
        outcome: SyncOutcome,
    ) -> None:
        item = endpoint.item_id(name)
        try:
            content = (local_dir / name).read_bytes()
        except OSError as e:
            self._fail(outcome, item, f"Read failed: {e}")
            return

        try:
            self.validator(name, content)
            self.client.put_file(endpoint, name, content)
        except (ContentValidationError, TransportError) as e:
            self._fail(outcome, item, str(e))
            return

        logger.debug("Uploaded %s (%d bytes)", item, len(content))
        outcome.record_upload(item)

    def _download_file(
        self,
        endpoint: RemoteEndpoint,
        local_dir: Path,
        name: str,
        outcome: SyncOutcome,
    ) -> None:
        item = endpoint.item_id(name)
        try:
            content = self.client.get_file(endpoint, name)
            self.validator(name, content)
        except (ContentValidationError, TransportError) as e:
            self._fail(outcome, item, str(e))
            return

        try:
            write_atomic(local_dir / name, content)
        except OSError as e:
            self._fail(outcome, item, f"Write failed: {e}")
            return

        logger.debug("Downloaded %s (%d bytes)", item, len(content))
        outcome.record_download(item)

    @staticmethod
    def _fail(outcome: SyncOutcome, item: str, message: str) -> None:
        logger.warning("%s: %s", item, message)
        outcome.record_error(item, message)
