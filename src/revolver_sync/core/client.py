import logging
import mimetypes
import threading
from typing import NamedTuple

import requests

from ..exceptions import TransportError
from .listing import LISTING_BODY, PROBE_BODY, RemoteEntry, parse_propfind
from .paths import RemoteEndpoint

logger = logging.getLogger(__name__)

# Some hosted WebDAV providers are slow to answer large PROPFIND listings.
DEFAULT_CONNECT_TIMEOUT = 15
DEFAULT_READ_TIMEOUT = 60

# MKCOL: 405 means the collection already exists, 301 is a redirect to it.
_MKCOL_OK = frozenset({201, 301, 405})

_CONTENT_TYPES = {
    ".json": "application/json; charset=utf-8",
    ".md": "text/markdown; charset=utf-8",
    ".toml": "application/toml; charset=utf-8",
    ".yaml": "application/yaml; charset=utf-8",
    ".yml": "application/yaml; charset=utf-8",
    ".txt": "text/plain; charset=utf-8",
}


class DavResponse(NamedTuple):
    status_code: int
    content: bytes

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


def content_type_for(name: str) -> str:
    """Pick the PUT ``Content-Type`` for a file name."""
    lowered = name.lower()
    for suffix, content_type in _CONTENT_TYPES.items():
        if lowered.endswith(suffix):
            return content_type
    guessed, _ = mimetypes.guess_type(name)
    return guessed or "application/octet-stream"


class WebDavClient:
    """Thin WebDAV transport over ``requests``.

    The client holds no server configuration: every call takes the
    :class:`RemoteEndpoint` that carries URL and credentials.  No call
    is retried; callers record a failure and move on.

    Timeouts are ``(connect, read)`` as ``requests`` applies them: the
    read timeout bounds each wait for bytes on the socket, not the whole
    response, so a server that keeps trickling data can take longer.

    Each thread gets its own session; ``close()`` closes all of them.
    """

    def __init__(
        self,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        read_timeout: float = DEFAULT_READ_TIMEOUT,
        insecure: bool = False,
    ):
        self.timeout = (connect_timeout, read_timeout)
        self.insecure = insecure
        self._thread_local = threading.local()
        self._sessions: list[requests.Session] = []
        self._sessions_lock = threading.Lock()

    @property
    def session(self) -> requests.Session:
        """The current thread's session."""
        return self._get_session()

    def _get_session(self) -> requests.Session:
        """Get or create a thread-local requests.Session."""
        if getattr(self._thread_local, "session", None) is None:
            session = self._create_session()
            with self._sessions_lock:
                self._sessions.append(session)
            self._thread_local.session = session
        return self._thread_local.session

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.verify = not self.insecure
        return session

    def close(self) -> None:
        """Close every session this client opened, in any thread."""
        with self._sessions_lock:
            sessions, self._sessions = self._sessions, []
        for session in sessions:
            session.close()
        # Threads still holding a closed session get a fresh one
        self._thread_local = threading.local()

    def request(
        self,
        method: str,
        url: str,
        endpoint: RemoteEndpoint,
        headers: dict[str, str] | None = None,
        body: bytes | str | None = None,
    ) -> DavResponse:
        """
        Issue one HTTP request with Basic credentials from *endpoint*.

        Raises:
            TransportError: If the connection fails or times out.  HTTP
                error statuses are returned, not raised.
        """
        logger.debug("[WebDAV] %s %s", method, url)
        try:
            response = self._get_session().request(
                method,
                url,
                auth=endpoint.auth,
                headers=headers,
                data=body,
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            raise TransportError(f"{method} {url} timed out: {e}") from e
        except requests.RequestException as e:
            raise TransportError(f"{method} {url} failed: {e}") from e

        logger.debug(
            "[WebDAV] %s %s -> HTTP %d", method, url, response.status_code
        )
        return DavResponse(response.status_code, response.content)

    def put_file(
        self, endpoint: RemoteEndpoint, name: str, content: bytes
    ) -> None:
        """
        Upload *content* as *name* into the endpoint's collection.

        Raises:
            TransportError: On connection failure or non-2xx status.
        """
        response = self.request(
            "PUT",
            endpoint.item_url(name),
            endpoint,
            headers={"Content-Type": content_type_for(name)},
            body=content,
        )
        if not response.ok:
            raise TransportError(
                f"Upload failed: HTTP {response.status_code}",
                response.status_code,
            )

    def get_file(self, endpoint: RemoteEndpoint, name: str) -> bytes:
        """
        Download *name* from the endpoint's collection.

        Raises:
            TransportError: On connection failure or non-2xx status.
        """
        response = self.request(
            "GET",
            endpoint.item_url(name),
            endpoint,
            headers={"Accept": "*/*"},
        )
        if not response.ok:
            raise TransportError(
                f"Download failed: HTTP {response.status_code}",
                response.status_code,
            )
        logger.debug(
            "[WebDAV] Downloaded %s (%d bytes)", name, len(response.content)
        )
        return response.content

    def list_collection(
        self, endpoint: RemoteEndpoint
    ) -> list[RemoteEntry]:
        """
        List the children of the endpoint's collection (PROPFIND Depth 1).

        Raises:
            TransportError: On connection failure or a status other than
                2xx/207.  ``status_code == 404`` means the collection
                does not exist yet.
        """
        response = self.request(
            "PROPFIND",
            endpoint.url,
            endpoint,
            headers={
                "Depth": "1",
                "Content-Type": "application/xml; charset=utf-8",
                "Accept": "*/*",
            },
            body=LISTING_BODY,
        )
        if not response.ok and response.status_code != 207:
            raise TransportError(
                f"Failed to list directory: HTTP {response.status_code}",
                response.status_code,
            )
        return parse_propfind(response.text)

    def ensure_collection(self, endpoint: RemoteEndpoint) -> None:
        """
        Create the endpoint's collection; an existing one is not an error.

        Raises:
            TransportError: On connection failure or an unexpected status.
        """
        response = self.request("MKCOL", endpoint.collection_url, endpoint)
        if response.ok or response.status_code in _MKCOL_OK:
            return
        raise TransportError(
            f"Failed to create directory: HTTP {response.status_code}",
            response.status_code,
        )

    def probe(self, endpoint: RemoteEndpoint) -> int:
        """
        PROPFIND Depth 0 on the collection and return the HTTP status.

        Raises:
            TransportError: If the connection fails.
        """
        response = self.request(
            "PROPFIND",
            endpoint.url,
            endpoint,
            headers={
                "Depth": "0",
                "Content-Type": "application/xml; charset=utf-8",
            },
            body=PROBE_BODY,
        )
        return response.status_code
