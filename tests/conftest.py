"""Shared pytest fixtures for revolver-sync tests."""

import pytest

from revolver_sync.config import Config
from revolver_sync.core.listing import RemoteEntry
from revolver_sync.core.paths import RemoteEndpoint
from revolver_sync.exceptions import TransportError


def pytest_addoption(parser):
    """Add custom CLI options for test filtering."""
    parser.addoption(
        "--run-live",
        action="store_true",
        default=False,
        help="Run tests that require a live WebDAV server",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "live: mark test as requiring a live WebDAV server"
    )


def pytest_collection_modifyitems(config, items):
    """Skip live tests unless --run-live is passed."""
    if config.getoption("--run-live"):
        return
    skip_live = pytest.mark.skip(reason="need --run-live option to run")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


class FakeDavServer:
    """In-memory stand-in for ``WebDavClient``.

    Files are keyed by decoded remote path (``/root/sub/name``) and
    collections by normalised path (``/root/sub/``), matching
    ``RemoteEndpoint.item_id`` and ``RemoteEndpoint.remote_path``.

    Failures are injected per path: ``put_failures``, ``get_failures``
    and ``list_failures`` map a path to the HTTP status to fail with.
    """

    def __init__(self):
        self.files: dict[str, bytes] = {}
        self.collections: set[str] = {"/"}
        self.put_failures: dict[str, int] = {}
        self.get_failures: dict[str, int] = {}
        self.list_failures: dict[str, int] = {}
        self.mkcol_failures: dict[str, int] = {}
        self.probe_status: int | None = None
        self.calls: list[tuple[str, str]] = []

    # -- test helpers -------------------------------------------------

    def seed(self, path: str, content: bytes) -> None:
        """Store a file and every collection above it."""
        self.files[path] = content
        parts = path.strip("/").split("/")[:-1]
        for depth in range(1, len(parts) + 1):
            self.collections.add("/" + "/".join(parts[:depth]) + "/")

    # -- WebDavClient interface ---------------------------------------

    def put_file(self, endpoint: RemoteEndpoint, name: str, content: bytes):
        path = endpoint.item_id(name)
        self.calls.append(("PUT", path))
        if path in self.put_failures:
            status = self.put_failures[path]
            raise TransportError(f"Upload failed: HTTP {status}", status)
        if endpoint.remote_path not in self.collections:
            raise TransportError("Upload failed: HTTP 409", 409)
        self.files[path] = bytes(content)

    def get_file(self, endpoint: RemoteEndpoint, name: str) -> bytes:
        path = endpoint.item_id(name)
        self.calls.append(("GET", path))
        if path in self.get_failures:
            status = self.get_failures[path]
            raise TransportError(f"Download failed: HTTP {status}", status)
        if path not in self.files:
            raise TransportError("Download failed: HTTP 404", 404)
        return self.files[path]

    def list_collection(self, endpoint: RemoteEndpoint) -> list[RemoteEntry]:
        path = endpoint.remote_path
        self.calls.append(("PROPFIND", path))
        if path in self.list_failures:
            status = self.list_failures[path]
            raise TransportError(
                f"Failed to list directory: HTTP {status}", status
            )
        if path not in self.collections:
            raise TransportError("Failed to list directory: HTTP 404", 404)

        entries = []
        for collection in sorted(self.collections):
            rest = collection[len(path):].rstrip("/")
            if collection.startswith(path) and rest and "/" not in rest:
                entries.append(RemoteEntry(name=rest, is_collection=True))
        for file_path in sorted(self.files):
            rest = file_path[len(path):]
            if file_path.startswith(path) and "/" not in rest:
                entries.append(RemoteEntry(name=rest))
        return entries

    def ensure_collection(self, endpoint: RemoteEndpoint) -> None:
        path = endpoint.remote_path
        self.calls.append(("MKCOL", path))
        if path in self.mkcol_failures:
            status = self.mkcol_failures[path]
            raise TransportError(
                f"Failed to create directory: HTTP {status}", status
            )
        self.collections.add(path)

    def probe(self, endpoint: RemoteEndpoint) -> int:
        self.calls.append(("PROBE", endpoint.remote_path))
        if self.probe_status is not None:
            return self.probe_status
        return 207 if endpoint.remote_path in self.collections else 404

    def close(self) -> None:
        pass


@pytest.fixture
def fake_dav():
    """Empty in-memory WebDAV server."""
    return FakeDavServer()


@pytest.fixture
def endpoint():
    """Root endpoint used by sync tests."""
    return RemoteEndpoint(
        base_url="https://dav.example.com/remote.php/dav/files/me",
        username="me",
        password="app-password",
        remote_path="/code-revolver/",
    )


@pytest.fixture
def mock_config(tmp_path):
    """Create a Config instance whose local roots live under tmp_path."""
    return Config(
        webdav_url="https://dav.example.com/remote.php/dav/files/me",
        username="me",
        password="app-password",
        remote_path="/code-revolver/",
        insecure=False,
        accounts_dir=str(tmp_path / "accounts"),
        codex_dir=str(tmp_path / "codex"),
    )
