"""Cursor-based pagination helpers.

Cursor format: base64("seq:<int>")
"""
from __future__ import annotations

import base64
import binascii


def encode_cursor(seq: int) -> str:
    raw = f"seq:{seq}"
    cursor = base64.urlsafe_b64encode(raw.encode()).decode()
    return cursor.rstrip("=")


def decode_cursor(cursor: str) -> int:
    """Raises ValueError on a malformed cursor."""
    # Restore base64 padding if it was stripped
    cursor += "=" * ((4 - len(cursor) % 4) % 4)
    try:
        raw = base64.urlsafe_b64decode(cursor.encode()).decode()
    except (binascii.Error, UnicodeDecodeError) as exc:
        raise ValueError("malformed cursor") from exc
    prefix, _, value = raw.partition(":")
    if prefix != "seq" or not value.isdigit():
        raise ValueError("malformed cursor")
    return int(value)
