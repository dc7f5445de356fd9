"""
Unit tests for the clock helpers.
"""

from datetime import datetime, timedelta, timezone

from minimart.utils.time_utils import parse_iso_datetime, to_iso


class TestIsoConversion:
    """Stored timestamps are naive local time in both directions."""

    def test_naive_value_is_kept(self):
        dt = datetime(2024, 3, 15, 10, 0, 0)
        assert to_iso(dt) == '2024-03-15T10:00:00'
        assert parse_iso_datetime(to_iso(dt)) == dt

    def test_aware_value_keeps_its_instant(self):
        dt = datetime(2024, 3, 15, 3, 0, 0, tzinfo=timezone(timedelta(hours=7)))

        restored = parse_iso_datetime(to_iso(dt))

        assert restored.tzinfo is None
        assert restored.astimezone() == dt

    def test_utc_suffix_is_read_as_local(self):
        restored = parse_iso_datetime('2024-03-15T03:00:00Z')
        assert restored.astimezone() == datetime(2024, 3, 15, 3, 0, 0, tzinfo=timezone.utc)

    def test_empty_values(self):
        assert to_iso(None) is None
        assert parse_iso_datetime('') is None
        assert parse_iso_datetime(None) is None
