# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for datetime utilities."""

from datetime import datetime, timedelta, timezone

from src.utils.datetime import ensure_utc, utc_now


class TestUtcNow:
    """Tests for utc_now."""

    def test_is_timezone_aware(self) -> None:
        """Test the returned datetime carries UTC tzinfo."""
        assert utc_now().tzinfo == timezone.utc


class TestEnsureUtc:
    """Tests for ensure_utc."""

    def test_none(self) -> None:
        """Test None passes through."""
        assert ensure_utc(None) is None

    def test_naive_is_assumed_utc(self) -> None:
        """Test naive datetimes, as read back from SQLite, get UTC tzinfo."""
        naive = datetime(2025, 1, 2, 3, 4, 5)

        assert ensure_utc(naive) == datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    def test_aware_is_converted(self) -> None:
        """Test aware datetimes are converted to UTC."""
        plus_two = datetime(2025, 1, 2, 5, 0, tzinfo=timezone(timedelta(hours=2)))

        assert ensure_utc(plus_two) == datetime(2025, 1, 2, 3, 0, tzinfo=timezone.utc)
