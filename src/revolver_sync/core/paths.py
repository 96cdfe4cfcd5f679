"""Remote path normalisation and WebDAV URL construction.

Remote paths are kept in decoded (human-readable) form everywhere in the
sync engine; percent-encoding happens only when a URL is built.  This
keeps item identifiers readable in reports while names containing
spaces or non-ASCII characters still round-trip on the wire.
"""

from __future__ import annotations

from urllib.parse import quote

from pydantic import BaseModel, Field, field_validator


def normalize_remote_path(path: str) -> str:
    """Return *path* with exactly one leading and one trailing ``/``.

    Whitespace is trimmed first.  An empty path normalises to ``/``.
    The function is idempotent.

    Examples:
        >>> normalize_remote_path("foo/bar")
        '/foo/bar/'
        >>> normalize_remote_path("/foo/bar/")
        '/foo/bar/'
    """
    stripped = path.strip().strip("/")
    if not stripped:
        return "/"
    return f"/{stripped}/"


def build_url(
    base_url: str, remote_path: str, item_name: str | None = None
) -> str:
    """Build a WebDAV URL from base URL, collection path and item name.

    Args:
        base_url: Server base URL; a trailing ``/`` is dropped.
        remote_path: Collection path (normalised here, so callers may
            pass it raw).
        item_name: Optional file name inside the collection.  Encoded
            with no safe characters, so a ``/`` in a name can never
            escape the collection.

    Returns:
        Absolute URL string.
    """
    url = base_url.strip().rstrip("/") + quote(
        normalize_remote_path(remote_path), safe="/"
    )
    if item_name:
        url += quote(item_name, safe="")
    return url


class RemoteEndpoint(BaseModel):
    """Connection details plus one collection path on the server.

    Immutable: sub-collections are addressed through :meth:`child`,
    which returns a new endpoint.

    Attributes:
        base_url: WebDAV server URL (e.g. ``https://dav.example.com/dav``).
        username: HTTP Basic username.
        password: HTTP Basic password (application password for most
            hosted providers).
        remote_path: Collection path, always ``/``-delimited on both ends.
    """

    base_url: str
    username: str
    password: str = Field(repr=False)
    remote_path: str = "/"

    model_config = {"frozen": True}

    @field_validator("remote_path")
    @classmethod
    def _normalise_path(cls, value: str) -> str:
        return normalize_remote_path(value)

    @property
    def auth(self) -> tuple[str, str]:
        return (self.username, self.password)

    @property
    def url(self) -> str:
        """URL of the collection itself (with trailing slash)."""
        return build_url(self.base_url, self.remote_path)

    @property
    def collection_url(self) -> str:
        """Collection URL without the trailing slash, as MKCOL expects."""
        return self.url.rstrip("/")

    def item_url(self, name: str) -> str:
        """URL of *name* inside this collection."""
        return build_url(self.base_url, self.remote_path, name)

    def item_id(self, name: str) -> str:
        """Identifier used in sync reports for *name* in this collection."""
        return f"{self.remote_path}{name}"

    def child(self, name: str) -> RemoteEndpoint:
        """Return the endpoint for sub-collection *name*."""
        return self.model_copy(
            update={
                "remote_path": normalize_remote_path(
                    f"{self.remote_path}{name}/"
                )
            }
        )
