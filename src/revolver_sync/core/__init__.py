"""WebDAV transport, PROPFIND parsing and remote path helpers."""

from .async_utils import run_sync
from .client import WebDavClient
from .listing import RemoteEntry, parse_propfind
from .paths import RemoteEndpoint, build_url, normalize_remote_path

__all__ = [
    "RemoteEndpoint",
    "RemoteEntry",
    "WebDavClient",
    "build_url",
    "normalize_remote_path",
    "parse_propfind",
    "run_sync",
]
