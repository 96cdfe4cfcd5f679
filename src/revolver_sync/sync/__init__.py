"""WebDAV backup sync engine.

Mirrors Codex account credentials and configuration between the local
filesystem and a WebDAV collection.

Architecture
------------
Each run is one-directional and additive: the source side overwrites
same-named items on the destination side, nothing is ever deleted, and
a failure on one item never aborts the rest of the run.

Modules:

- ``reconciler``   -- ``DirectoryReconciler``: recursive single-direction
  mirror of one local directory and one remote collection.
- ``orchestrator`` -- ``SyncOrchestrator``: accounts and Codex
  configuration runs, remote bootstrap, connectivity probe.
- ``models``       -- ``SyncOutcome``, ``SyncError``, ``SyncDirection``,
  ``CodexSyncOptions``, ``SyncPaths``.
- ``reporter``     -- Human-readable and JSON report formatting.

Usage example
-------------
::

    from pathlib import Path
    from revolver_sync.core import RemoteEndpoint, WebDavClient
    from revolver_sync.sync import (
        SyncOrchestrator,
        SyncPaths,
        format_sync_report,
    )

    endpoint = RemoteEndpoint(
        base_url="https://dav.example.com/remote.php/dav/files/me",
        username="me",
        password="app-password",
        remote_path="/code-revolver/",
    )
    paths = SyncPaths(
        accounts_dir=Path.home() / ".myswitch" / "accounts",
        codex_dir=Path.home() / ".codex",
    )
    orchestrator = SyncOrchestrator(WebDavClient(), endpoint, paths)

    print(orchestrator.test_connection())
    outcome = orchestrator.upload_accounts()
    print(format_sync_report(outcome, "Accounts upload"))
"""

from .models import (
    CodexSyncOptions,
    SyncDirection,
    SyncError,
    SyncOutcome,
    SyncPaths,
)
from .orchestrator import SyncOrchestrator
from .reconciler import DirectoryReconciler
from .reporter import format_sync_report, outcome_to_json

__all__ = [
    "CodexSyncOptions",
    "DirectoryReconciler",
    "SyncDirection",
    "SyncError",
    "SyncOrchestrator",
    "SyncOutcome",
    "SyncPaths",
    "format_sync_report",
    "outcome_to_json",
]
