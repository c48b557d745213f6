from __future__ import annotations

from typing import Any, Optional


def normalize_text(raw_value: Any) -> Optional[str]:
    """
    Returns the stripped string form of a cell value, or None for blanks.
    Lookup/rollup cells arrive as arrays; the first element is used.
    """
    if isinstance(raw_value, (list, tuple)):
        raw_value = raw_value[0] if raw_value else None
    if raw_value is None:
        return None

    raw = str(raw_value).strip()
    if raw == "" or raw.lower() in ("none", "nan"):
        return None
    return raw


def normalize_photo(raw_value: Any) -> Optional[str]:
    """
    Returns an image URL for a photo cell:
      - plain URL string -> itself
      - attachment array -> url of the first attachment ({"url": ..., "thumbnails": ...})
    """
    if isinstance(raw_value, (list, tuple)):
        if not raw_value:
            return None
        raw_value = raw_value[0]
    if isinstance(raw_value, dict):
        raw_value = raw_value.get("url")
    return normalize_text(raw_value)


def first_or_none(raw_value: Any) -> Any:
    """First element of a linked-record array, or None when absent/empty."""
    if not raw_value:
        return None
    if isinstance(raw_value, (list, tuple)):
        return raw_value[0]
    return raw_value
