"""
Content and name validation for files moving through the sync engine.

Validators raise :class:`ContentValidationError`; the reconciler turns
that into an error entry and does not write the file.
"""

import json
import tomllib
from collections.abc import Callable

import yaml

from .exceptions import ContentValidationError

Validator = Callable[[str, bytes], None]


# ---------------------------------------------------------------------------
# Error message formatting helpers
# ---------------------------------------------------------------------------


def format_validation_error(field_name: str, reason: str) -> str:
    """
    Generate consistent error message for validation failures.

    Args:
        field_name: Human-readable subject (e.g., "auth.json")
        reason: Description of validation failure (e.g., "is not valid JSON")

    Returns:
        Formatted error message string
    """
    return f"{field_name} {reason}"


def _decode(name: str, content: bytes) -> str:
    try:
        return content.decode("utf-8")
    except UnicodeDecodeError:
        raise ContentValidationError(
            format_validation_error(name, "is not valid UTF-8 text")
        ) from None


# ---------------------------------------------------------------------------
# Format validators
# ---------------------------------------------------------------------------


def validate_json(name: str, content: bytes) -> None:
    """Require *content* to parse as JSON."""
    try:
        json.loads(_decode(name, content))
    except json.JSONDecodeError as e:
        raise ContentValidationError(
            format_validation_error(name, f"is not valid JSON: {e.msg}")
        ) from None


def validate_toml(name: str, content: bytes) -> None:
    """Require *content* to parse as TOML."""
    try:
        tomllib.loads(_decode(name, content))
    except tomllib.TOMLDecodeError as e:
        raise ContentValidationError(
            format_validation_error(name, f"is not valid TOML: {e}")
        ) from None


def validate_yaml(name: str, content: bytes) -> None:
    """Require *content* to parse as YAML."""
    try:
        yaml.safe_load(_decode(name, content))
    except yaml.YAMLError as e:
        raise ContentValidationError(
            format_validation_error(name, f"is not valid YAML: {e}")
        ) from None


_BY_SUFFIX: dict[str, Validator] = {
    ".json": validate_json,
    ".toml": validate_toml,
    ".yaml": validate_yaml,
    ".yml": validate_yaml,
}


def validate_content(name: str, content: bytes) -> None:
    """
    Validate *content* according to the extension of *name*.

    Files with an unknown extension (Markdown, scripts, assets) are
    accepted as-is.

    Raises:
        ContentValidationError: If the content is malformed.
    """
    lowered = name.lower()
    for suffix, validator in _BY_SUFFIX.items():
        if lowered.endswith(suffix):
            validator(name, content)
            return


# ---------------------------------------------------------------------------
# Name validation
# ---------------------------------------------------------------------------


def validate_item_name(name: str) -> tuple[bool, str]:
    """
    Check that *name* is safe to use as a single local path component.

    Args:
        name: Item name as reported by the server or the filesystem

    Returns:
        Tuple of (is_valid, error_message).
        Returns (True, "") if valid, (False, reason) if invalid.

    Validation rules:
        - Cannot be empty or whitespace-only
        - Cannot be '.' or '..'
        - Cannot contain path separators or NUL bytes
    """
    if not name or not name.strip():
        return (
            False,
            format_validation_error("Item name", "cannot be empty"),
        )

    if name in (".", ".."):
        return (
            False,
            format_validation_error(
                "Item name", f"'{name}' is not allowed"
            ),
        )

    if "/" in name or "\\" in name or "\x00" in name:
        return (
            False,
            format_validation_error(
                "Item name",
                f"'{name}' cannot contain path separators",
            ),
        )

    return (True, "")


def is_synced_name(name: str) -> bool:
    """Return False for hidden entries and ``__``-prefixed cache artifacts."""
    return not (name.startswith(".") or name.startswith("__"))
