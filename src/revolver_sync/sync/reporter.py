"""Sync outcome formatting functions.

Provides human-readable and machine-readable output for sync runs:

- ``format_sync_report`` -- full post-sync summary.
- ``outcome_to_json`` -- structured dict for MCP tool output and
  ``--json`` CLI output.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import SyncOutcome

# Lists longer than this are truncated in the text report.
MAX_LISTED_ITEMS = 50


def _append_section(
    lines: list[str], heading: str, items: list[str]
) -> None:
    if not items:
        return
    lines.append(f"{heading}:")
    for item in items[:MAX_LISTED_ITEMS]:
        lines.append(f"  {item}")
    if len(items) > MAX_LISTED_ITEMS:
        lines.append(f"  ... ({len(items) - MAX_LISTED_ITEMS} more)")
    lines.append("")


def format_sync_report(outcome: SyncOutcome, title: str = "Sync") -> str:
    """Format a sync outcome as human-readable text.

    Sections are only included when they contain at least one item.

    Args:
        outcome: The completed sync outcome.
        title: Heading, e.g. ``"Accounts upload"``.

    Returns:
        Multi-line formatted string.
    """
    lines: list[str] = []
    status = "completed" if outcome.ok else "completed with errors"
    lines.append(f"{title} {status}: {outcome.summary()}")
    lines.append("")

    _append_section(lines, "Uploaded", outcome.uploaded)
    _append_section(lines, "Downloaded", outcome.downloaded)
    _append_section(
        lines, "Errors", [str(error) for error in outcome.errors]
    )

    if not (outcome.uploaded or outcome.downloaded or outcome.errors):
        lines.append("Nothing to sync.")

    return "\n".join(lines).rstrip()


def outcome_to_json(outcome: SyncOutcome, title: str = "Sync") -> dict:
    """Convert a sync outcome to a structured dict for JSON serialisation.

    Args:
        outcome: The sync outcome.
        title: Operation label stored under ``"operation"``.

    Returns:
        Dict with counts and per-item details.
    """
    return {
        "operation": title,
        "success": outcome.ok,
        "counts": {
            "uploaded": len(outcome.uploaded),
            "downloaded": len(outcome.downloaded),
            "errors": len(outcome.errors),
        },
        "uploaded": list(outcome.uploaded),
        "downloaded": list(outcome.downloaded),
        "errors": [
            {"item": error.item, "message": error.message}
            for error in outcome.errors
        ],
    }
