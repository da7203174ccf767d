"""Tests for date normalization."""

import pendulum
import pytest

from newsdesk.errors import DateParseError, ParseError
from newsdesk.ingestion.dates import first_valid_date, normalize_date, normalize_date_or_now


class TestStandardFormats:
    """ISO-8601 and RFC 822."""

    @pytest.mark.parametrize(
        "raw",
        [
            "2025-06-15T14:00:00+00:00",
            "2025-06-15T17:00:00+03:00",
            "2025-06-15T14:00:00Z",
        ],
    )
    def test_iso_round_trip_is_same_instant(self, raw):
        parsed = normalize_date(raw)
        assert parsed == pendulum.datetime(2025, 6, 15, 14, 0, tz="UTC")
        assert normalize_date(parsed.to_iso8601_string()) == parsed

    def test_rfc822(self):
        parsed = normalize_date("Sun, 15 Jun 2025 14:00:00 +0300")
        assert parsed == pendulum.datetime(2025, 6, 15, 11, 0, tz="UTC")

    def test_naive_iso_uses_configured_timezone(self):
        parsed = normalize_date("2025-06-15T17:00:00", tz="Europe/Istanbul")
        assert parsed == pendulum.datetime(2025, 6, 15, 14, 0, tz="UTC")


class TestTurkishFormats:
    """Locale patterns used by Turkish news sites."""

    def test_date_dash_time(self):
        parsed = normalize_date("15.06.2025 - 17:00")
        assert (parsed.year, parsed.month, parsed.day, parsed.hour, parsed.minute) == (2025, 6, 15, 17, 0)
        assert parsed == pendulum.datetime(2025, 6, 15, 17, 0, tz="Europe/Istanbul")

    def test_label_prefixed(self):
        parsed = normalize_date("Son Güncelleme : 15.06.2025 - 17:00")
        assert parsed == pendulum.datetime(2025, 6, 15, 17, 0, tz="Europe/Istanbul")

    def test_date_space_time(self):
        parsed = normalize_date("15.06.2025 09:30")
        assert (parsed.hour, parsed.minute) == (9, 30)

    def test_date_only(self):
        parsed = normalize_date("Yayın: 1.2.2024")
        assert (parsed.year, parsed.month, parsed.day) == (2024, 2, 1)

    def test_month_name(self):
        parsed = normalize_date("15 Haziran 2025")
        assert (parsed.year, parsed.month, parsed.day) == (2025, 6, 15)

    def test_month_name_with_time(self):
        parsed = normalize_date("3 Ağustos 2024, 08:45")
        assert (parsed.month, parsed.day, parsed.hour, parsed.minute) == (8, 3, 8, 45)

    def test_invalid_values_rejected(self):
        with pytest.raises(DateParseError):
            normalize_date("32.13.2025")

    def test_invalid_match_falls_through_to_next_candidate(self):
        parsed = normalize_date("32.13.2025 17:00 / 15.06.2025")
        assert (parsed.year, parsed.month, parsed.day) == (2025, 6, 15)

    def test_impossible_calendar_date_rejected(self):
        with pytest.raises(DateParseError):
            normalize_date("31.02.2025")


class TestFallbacks:
    """Lenient parsing and the lenient wrappers."""

    def test_label_strip_lenient_parse(self):
        parsed = normalize_date("Updated: June 15, 2025 5:00 PM")
        assert (parsed.month, parsed.day, parsed.hour) == (6, 15, 17)

    @pytest.mark.parametrize("raw", ["", "   ", "not a date at all"])
    def test_garbage_raises(self, raw):
        with pytest.raises(ParseError):
            normalize_date(raw)

    def test_first_valid_date_skips_bad_candidates(self):
        parsed = first_valid_date([None, "", "garbage", "15.06.2025"])
        assert parsed.day == 15

    def test_first_valid_date_none(self):
        assert first_valid_date(["garbage"]) is None

    def test_or_now_falls_back_to_now(self):
        before = pendulum.now("UTC")
        parsed = normalize_date_or_now(["garbage"])
        assert parsed >= before.subtract(seconds=1)
