# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""UTC helpers for model timestamps.

Columns are declared ``DateTime(timezone=True)`` and filled with utc_now().
PostgreSQL returns aware values; SQLite drops the offset, so values read
back from SQLite are normalized with ensure_utc() when instances load
(see models/base.py).
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Current time as an aware UTC datetime. Used as column default."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Normalize a stored timestamp to aware UTC.

    Args:
        dt: Timestamp read from a database, or None.

    Returns:
        None for None; naive values are taken as UTC; aware values are
        converted to UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
