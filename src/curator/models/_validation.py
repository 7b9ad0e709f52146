"""Shared validation helpers for frozen dataclass models.

Private module -- not part of the public API. Used by ``__post_init__``
methods in sibling model modules to enforce runtime type constraints,
hex-encoding, and null-byte safety.
"""

from __future__ import annotations

from typing import Any

from .constants import EVENT_KIND_MAX


def validate_instance(value: Any, expected: type, name: str) -> None:
    """Raise ``TypeError`` if *value* is not an instance of *expected*."""
    if not isinstance(value, expected):
        article = "an" if expected.__name__[0] in "AEIOUaeiou" else "a"
        raise TypeError(f"{name} must be {article} {expected.__name__}, got {type(value).__name__}")


def validate_timestamp(value: Any, name: str) -> None:
    """Raise if *value* is not a non-negative ``int`` (``bool`` excluded)."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"{name} must be non-negative")


def validate_kind(value: Any, name: str = "kind") -> None:
    """Raise if *value* is not an event kind in ``0..EVENT_KIND_MAX``."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    if not 0 <= value <= EVENT_KIND_MAX:
        raise ValueError(f"{name} {value} out of valid range (0-{EVENT_KIND_MAX})")


def validate_str_no_null(value: Any, name: str) -> None:
    """Raise if *value* is not a ``str`` or contains null bytes."""
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a str, got {type(value).__name__}")
    if "\x00" in value:
        raise ValueError(f"{name} contains null bytes")


def validate_hex(value: Any, name: str, length: int) -> None:
    """Raise if *value* is not a lowercase-insensitive hex string of *length* chars."""
    validate_str_no_null(value, name)
    if len(value) != length:
        raise ValueError(f"{name} must be {length} hex chars, got {len(value)}")
    try:
        bytes.fromhex(value)
    except ValueError:
        raise ValueError(f"{name} is not valid hex: {value[:16]}...") from None
