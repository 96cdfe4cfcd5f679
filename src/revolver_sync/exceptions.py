"""Exception taxonomy for the WebDAV sync engine.

All three concrete errors are caught per item by the directory
reconciler and turned into ``SyncOutcome.errors`` entries.  Only a
failure to create the top-level local directory escapes a sync call.
"""

from __future__ import annotations


class RevolverSyncError(Exception):
    """Base class for all sync errors."""


class TransportError(RevolverSyncError):
    """Connection failure, timeout, or non-success HTTP status.

    Attributes:
        status_code: HTTP status when the server answered, ``None`` when
            the connection itself failed.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def not_found(self) -> bool:
        """True when the server answered 404."""
        return self.status_code == 404


class ContentValidationError(RevolverSyncError):
    """Transferred content is not well-formed for its declared format."""


class FilesystemError(RevolverSyncError):
    """Local read, write, or mkdir failure."""
