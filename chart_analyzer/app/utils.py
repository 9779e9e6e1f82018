"""
Small utilities: media-type guessing, timestamps and data URLs.

Rationale:
- Keep tiny helpers out of the request path modules so they stay readable.
"""

import base64
import os
from datetime import datetime, timezone


def media_type_from_extension(path: str) -> str:
    """Map a file extension to a media type (.jpg/.jpeg -> JPEG, everything else -> PNG)."""
    ext = os.path.splitext(path)[1].lower()
    if ext in (".jpg", ".jpeg"):
        return "image/jpeg"
    return "image/png"


def utc_timestamp() -> str:
    """ISO-8601 timestamp in UTC, e.g. 2024-05-01T12:00:00.123456+00:00."""
    return datetime.now(timezone.utc).isoformat()


def format_size(num_bytes: int) -> str:
    """Human readable byte count (1536 -> '1.5 KB')."""
    size = float(num_bytes)
    for unit in ("bytes", "KB", "MB"):
        if size < 1024 or unit == "MB":
            if unit == "bytes":
                return f"{int(size)} bytes"
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} MB"


def to_data_url(data: bytes, media_type: str) -> str:
    """Encode raw image bytes as a data URL (used for the stored preview)."""
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{media_type};base64,{encoded}"
