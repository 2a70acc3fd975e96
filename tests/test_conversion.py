from datetime import datetime, timedelta

import pytest

from subtrack.conversion import (
    ConversionError,
    filter_to_norm,
    format_month,
    normal_to_raw,
    parse_month,
    raw_to_normal,
)
from subtrack.models import RawReportFilter, RawSubscription


def test_parse_month_gives_middle_of_month():
    assert parse_month("07-2025") == datetime(2025, 7, 16)


def test_parse_month_empty_is_none():
    assert parse_month("") is None


@pytest.mark.parametrize("text", ["7-2025", "13-2025", "00-2025", "2025-07", "07-2025x", "ab-cdef", "07-25"])
def test_parse_month_rejects_malformed(text):
    with pytest.raises(ConversionError):
        parse_month(text)


@pytest.mark.parametrize("text", ["07-2025", "12-2025", "01-2024"])
def test_month_round_trip(text):
    assert format_month(parse_month(text)) == text


def test_format_month_none():
    assert format_month(None) == ""


def test_conversion_error_is_value_error():
    with pytest.raises(ValueError, match="failed to convert raw data to normal"):
        parse_month("bad")


def test_raw_to_normal_copies_fields():
    raw = RawSubscription(
        sid=20,
        uid="60601fee-2bf1-4721-ae6f-7636e79a0cba",
        provider="Yandex Plus",
        price=400,
        start="07-2025",
        end="12-2025",
    )
    sub = raw_to_normal(raw)
    assert sub.sid == 20
    assert sub.uid == raw.uid
    assert sub.provider == "Yandex Plus"
    assert sub.price == 400
    assert sub.start == parse_month("07-2025")
    assert sub.end == parse_month("12-2025")


def test_raw_normal_round_trip():
    raw = RawSubscription(sid=3, uid="user1", provider="Netflix", price=300, start="06-2025", end="")
    assert normal_to_raw(raw_to_normal(raw)) == raw


def test_raw_to_normal_without_end():
    sub = raw_to_normal(RawSubscription(uid="user1", provider="Netflix", price=300, start="06-2025"))
    assert sub.end is None
    assert sub.sid is None


def test_raw_to_normal_reports_bad_dates():
    raw = RawSubscription(uid="u", provider="p", price=1, start="bad", end="99-2025")
    with pytest.raises(ConversionError) as info:
        raw_to_normal(raw)
    assert "start_date" in str(info.value)
    assert "end_date" in str(info.value)


def test_filter_covers_whole_month():
    norm = filter_to_norm(RawReportFilter(period="07-2025"))
    assert norm.start == datetime(2025, 7, 1)
    assert norm.end < parse_month("08-2025")
    assert format_month(norm.end) == "07-2025"
    assert format_month(norm.end + timedelta(microseconds=1)) == "08-2025"


def test_filter_december_rolls_year():
    norm = filter_to_norm(RawReportFilter(period="12-2025"))
    assert format_month(norm.end) == "12-2025"
    assert format_month(norm.end + timedelta(microseconds=1)) == "01-2026"


def test_filter_optional_fields():
    empty = filter_to_norm(RawReportFilter(period="07-2025"))
    assert (empty.uid, empty.provider) == (None, None)
    full = filter_to_norm(RawReportFilter(period="07-2025", uid="user1", provider="Netflix"))
    assert (full.uid, full.provider) == ("user1", "Netflix")


@pytest.mark.parametrize("period", ["", "2025-07", "07/2025", "13-2025"])
def test_filter_rejects_bad_period(period):
    with pytest.raises(ConversionError):
        filter_to_norm(RawReportFilter(period=period))