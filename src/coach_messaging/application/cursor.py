"""Thread position cursors.

Cursor format: base64("<iso-timestamp>|<seq>")
"""
from __future__ import annotations

import base64
import binascii
from datetime import datetime

from coach_messaging.application.exceptions import ValidationError


def encode_cursor(ts: datetime, seq: int) -> str:
    raw = f"{ts.isoformat()}|{seq}"
    cursor = base64.urlsafe_b64encode(raw.encode()).decode()
    return cursor.rstrip("=")


def decode_cursor(cursor: str) -> tuple[datetime, int]:
    # Restore base64 padding if it was stripped
    cursor += "=" * ((4 - len(cursor) % 4) % 4)
    try:
        raw = base64.urlsafe_b64decode(cursor.encode()).decode()
        ts_str, seq_str = raw.split("|", 1)
        return datetime.fromisoformat(ts_str), int(seq_str)
    except (binascii.Error, UnicodeDecodeError, ValueError) as exc:
        raise ValidationError("Malformed cursor") from exc
