"""PROPFIND multistatus parsing.

WebDAV servers disagree on namespace prefixes, on whether collection
hrefs carry a trailing slash, and occasionally on XML well-formedness.
The parser therefore scans the body as text instead of building an
element tree:

1. ``<d:href>``, ``<D:href>`` and ``<href>`` pairs are scanned in turn.
2. Each href is percent-decoded; the item name is its last path segment.
3. The first href of each pattern family is the queried collection
   itself (Depth 1 echoes it) and is skipped.
4. An entry is a collection when its href ends with ``/`` or a
   ``collection`` resource-type marker appears within
   ``COLLECTION_LOOKAHEAD`` characters after the href.
5. Empty and hidden (``.``-prefixed) names are dropped.

Any other prefix (``<ns0:href>`` from ElementTree-based servers, for
example) yields an empty listing and a warning.
"""

from __future__ import annotations

import logging
from urllib.parse import unquote

from pydantic import BaseModel

logger = logging.getLogger(__name__)

HREF_PATTERNS: tuple[tuple[str, str], ...] = (
    ("<d:href>", "</d:href>"),
    ("<D:href>", "</D:href>"),
    ("<href>", "</href>"),
)

COLLECTION_MARKERS: tuple[str, ...] = (
    "<d:collection",
    "<D:collection",
    "<collection",
)

# Characters after an href searched for a collection marker.
COLLECTION_LOOKAHEAD = 500

LISTING_BODY = (
    '<?xml version="1.0" encoding="utf-8"?>'
    '<propfind xmlns="DAV:"><prop><displayname/><resourcetype/>'
    "</prop></propfind>"
)

PROBE_BODY = (
    '<?xml version="1.0" encoding="utf-8"?>'
    '<propfind xmlns="DAV:"><prop><displayname/><getcontentlength/>'
    "</prop></propfind>"
)


class RemoteEntry(BaseModel):
    """One child of a remote collection.

    Attributes:
        name: Decoded item name without trailing slash.
        is_collection: True for sub-collections (directories).
    """

    name: str
    is_collection: bool = False

    model_config = {"frozen": True}


def _iter_hrefs(body: str, start_tag: str, end_tag: str):
    """Yield ``(href, end_index)`` for every *start_tag*/*end_tag* pair."""
    pos = 0
    while True:
        start = body.find(start_tag, pos)
        if start == -1:
            return
        content_start = start + len(start_tag)
        end = body.find(end_tag, content_start)
        if end == -1:
            return
        yield body[content_start:end].strip(), content_start
        pos = end + len(end_tag)


def _looks_like_collection(body: str, href_start: int) -> bool:
    window = body[href_start : href_start + COLLECTION_LOOKAHEAD]
    return any(marker in window for marker in COLLECTION_MARKERS)


def parse_propfind(body: str) -> list[RemoteEntry]:
    """Extract the children listed in a Depth 1 PROPFIND response.

    Args:
        body: Raw response text.

    Returns:
        Entries in document order, deduplicated by name.  The queried
        collection itself and hidden entries are never included.
    """
    entries: list[RemoteEntry] = []
    seen: set[str] = set()
    matched = False

    for start_tag, end_tag in HREF_PATTERNS:
        first = True
        for href, href_start in _iter_hrefs(body, start_tag, end_tag):
            matched = True
            if first:
                first = False
                continue

            decoded = unquote(href)
            name = decoded.rstrip("/").rsplit("/", 1)[-1]
            if not name or name.startswith("."):
                continue

            is_collection = decoded.endswith("/") or _looks_like_collection(
                body, href_start
            )
            if name in seen:
                continue
            seen.add(name)
            entries.append(
                RemoteEntry(name=name, is_collection=is_collection)
            )

    if not matched and "href>" in body:
        logger.warning(
            "PROPFIND response uses an unrecognised href prefix; "
            "treating the collection as empty"
        )
    logger.debug("Parsed %d entries from PROPFIND response", len(entries))
    return entries
