"""Conversion between raw (text-dated) and normalised subscription data."""

import re
from datetime import MINYEAR, datetime, timedelta
from typing import Optional

from subtrack.models import RawReportFilter, RawSubscription, ReportFilter, Subscription

_MONTH = re.compile(r"([0-9]{2})-([0-9]{4})")
_MID_MONTH = timedelta(days=15)


class ConversionError(ValueError):
    """Raised when raw input cannot be turned into normalised data."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        message = "failed to convert raw data to normal"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


def _first_of_month(text: str) -> datetime:
    match = _MONTH.fullmatch(text)
    if match is None:
        raise ConversionError(f"cannot parse {text!r} as MM-YYYY")
    month, year = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise ConversionError(f"month out of range in {text!r}")
    if year < MINYEAR:
        raise ConversionError(f"year out of range in {text!r}")
    return datetime(year, month, 1)


def _next_month(moment: datetime) -> datetime:
    try:
        return datetime(moment.year + moment.month // 12, moment.month % 12 + 1, 1)
    except ValueError as exc:
        raise ConversionError(str(exc)) from exc


def parse_month(text: str) -> Optional[datetime]:
    """Parse MM-YYYY into the middle of that month; empty text gives None."""
    if not text:
        return None
    return _first_of_month(text) + _MID_MONTH


def format_month(value: Optional[datetime]) -> str:
    """Format a moment as MM-YYYY; None gives an empty string."""
    if value is None:
        return ""
    return f"{value.month:02d}-{value.year:04d}"


def raw_to_normal(raw: RawSubscription) -> Subscription:
    """Turn a raw subscription into a stored-form one.

    Absent price or start date stay None; malformed dates raise ConversionError.
    """
    problems = []
    parsed = {}
    for name, text in (("start_date", raw.start), ("end_date", raw.end)):
        try:
            parsed[name] = parse_month(text)
        except ConversionError as exc:
            problems.append(f"{name}: {exc.detail}")
    if problems:
        raise ConversionError("; ".join(problems))
    return Subscription(
        sid=raw.sid,
        uid=raw.uid,
        provider=raw.provider,
        price=raw.price,
        start=parsed["start_date"],
        end=parsed["end_date"],
    )


def normal_to_raw(sub: Subscription) -> RawSubscription:
    """Turn a stored subscription into its raw JSON-facing form."""
    return RawSubscription(
        sid=sub.sid,
        uid=sub.uid,
        provider=sub.provider,
        price=sub.price,
        start=format_month(sub.start),
        end=format_month(sub.end),
    )


def filter_to_norm(raw_filter: RawReportFilter) -> ReportFilter:
    """Turn a raw report filter into a whole-month time range with optional filters."""
    start = _first_of_month(raw_filter.period)
    end = _next_month(start) - timedelta(microseconds=1)
    return ReportFilter(
        start=start,
        end=end,
        uid=raw_filter.uid or None,
        provider=raw_filter.provider or None,
    )