# tests/unit/test_date_utils.py
"""Unit tests for date utilities."""

from datetime import datetime, timedelta, timezone

import pytest

from newsingest.utils.date_utils import ensure_utc, hours_ago, now_utc, parse_date


@pytest.mark.unit
class TestNowUtc:
    """Tests for now_utc function."""

    def test_has_utc_timezone(self):
        """Should return an aware UTC datetime."""
        assert now_utc().tzinfo == timezone.utc

    def test_is_current_time(self):
        before = datetime.now(timezone.utc)
        result = now_utc()
        after = datetime.now(timezone.utc)
        assert before <= result <= after


@pytest.mark.unit
class TestParseDate:
    """Tests for parse_date function."""

    def test_iso_format(self):
        """Should parse ISO 8601 format."""
        result = parse_date("2024-03-13T14:30:00Z")
        assert (result.year, result.month, result.day, result.hour, result.minute) == (
            2024,
            3,
            13,
            14,
            30,
        )
        assert result.utcoffset() == timedelta(0)

    def test_rfc_822_format(self):
        """Should parse the RSS pubDate format."""
        result = parse_date("Wed, 13 Mar 2024 14:30:00 +0000")
        assert result == datetime(2024, 3, 13, 14, 30, tzinfo=timezone.utc)

    def test_keeps_offset(self):
        """Should keep an explicit offset."""
        result = parse_date("Wed, 13 Mar 2024 16:30:00 +0200")
        assert ensure_utc(result) == datetime(2024, 3, 13, 14, 30, tzinfo=timezone.utc)

    def test_naive_becomes_utc(self):
        """Should assume UTC when no zone is given."""
        assert parse_date("2024-03-13 14:30:00").tzinfo == timezone.utc

    @pytest.mark.parametrize("value", [None, "", "not a date"])
    def test_invalid_returns_none(self, value):
        """Should return None for missing or unparseable dates."""
        assert parse_date(value) is None


@pytest.mark.unit
class TestHoursAgo:
    """Tests for hours_ago function."""

    def test_is_in_the_past(self):
        result = hours_ago(24)
        delta = now_utc() - result
        assert timedelta(hours=23, minutes=59) < delta < timedelta(hours=24, minutes=1)


@pytest.mark.unit
class TestEnsureUtc:
    """Tests for ensure_utc function."""

    def test_attaches_utc_to_naive(self):
        assert ensure_utc(datetime(2024, 1, 1)).tzinfo == timezone.utc

    def test_converts_aware(self):
        cet = timezone(timedelta(hours=1))
        result = ensure_utc(datetime(2024, 1, 1, 1, 0, tzinfo=cet))
        assert result == datetime(2024, 1, 1, 0, 0, tzinfo=timezone.utc)
