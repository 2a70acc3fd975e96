"""Data models for subscriptions and price reports."""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import BigInteger, DateTime, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Declarative base for the package's tables."""


class Subscription(Base):
    """A stored subscription with normalised dates."""

    __tablename__ = "subscriptions"

    sid: Mapped[Optional[int]] = mapped_column(
        "subscription_id",
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )
    uid: Mapped[str] = mapped_column("user_id", String, nullable=False)
    provider: Mapped[str] = mapped_column("service_name", String, nullable=False)
    price: Mapped[int] = mapped_column("price", Integer, nullable=False)
    start: Mapped[datetime] = mapped_column("start_date", DateTime, nullable=False)
    end: Mapped[Optional[datetime]] = mapped_column("end_date", DateTime, nullable=True)

    def __repr__(self) -> str:
        return (
            f"Subscription(sid={self.sid!r}, uid={self.uid!r}, provider={self.provider!r}, "
            f"price={self.price!r}, start={self.start!r}, end={self.end!r})"
        )


def _unsigned(data: Mapping, key: str) -> Optional[int]:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be a non-negative integer")
    if value < 0:
        raise ValueError(f"{key} must be a non-negative integer")
    return value


def _text(data: Mapping, key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"{key} must be a string")
    return value


@dataclass
class RawSubscription:
    """A subscription as exchanged over JSON, with dates as MM-YYYY text."""

    sid: Optional[int] = None
    uid: str = ""
    provider: str = ""
    price: Optional[int] = None
    start: str = ""
    end: str = ""

    @classmethod
    def from_json(cls, data: Any) -> "RawSubscription":
        """Build from a decoded JSON object; raise ValueError on wrong types."""
        if not isinstance(data, Mapping):
            raise ValueError("subscription must be a JSON object")
        return cls(
            sid=_unsigned(data, "subscription_id"),
            uid=_text(data, "user_id"),
            provider=_text(data, "service_name"),
            price=_unsigned(data, "price"),
            start=_text(data, "start_date"),
            end=_text(data, "end_date"),
        )

    def to_json(self) -> dict:
        """Return the JSON object form; an empty end date is left out."""
        body = {
            "subscription_id": self.sid,
            "user_id": self.uid,
            "service_name": self.provider,
            "price": self.price,
            "start_date": self.start,
        }
        if self.end:
            body["end_date"] = self.end
        return body


@dataclass
class RawReportFilter:
    """Report criteria as received: a mandatory MM-YYYY period and optional filters."""

    period: str
    uid: str = ""
    provider: str = ""


@dataclass
class ReportFilter:
    """Report criteria ready for querying: a time range and optional filters."""

    start: datetime
    end: datetime
    uid: Optional[str] = None
    provider: Optional[str] = None


@dataclass
class Report:
    """Total price of the subscriptions matching a report filter."""

    total: int = 0

    def to_json(self) -> dict:
        return {"total": self.total}