"""
Timestamp helpers for image records.

`created_at` doubles as the range key of the owner index, so timestamps are
always UTC ISO-8601 strings that sort lexicographically in creation order.
"""

from datetime import datetime, timezone


def utc_now_iso() -> str:
    """Return current UTC time in ISO-8601 format.

    Example:
        2024-01-15T10:42:31.123456+00:00
    """
    return datetime.now(timezone.utc).isoformat()
