"""Database access for subscriptions."""

from typing import List, Optional

from sqlalchemy import create_engine, delete, func, or_, select
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from subtrack.models import Base, ReportFilter, Subscription


class SubscriptionError(Exception):
    """Base class for subscription errors."""

    default_message = "subscription error"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.default_message)


class SubscriptionNotFound(SubscriptionError, LookupError):
    default_message = "subscription not found"


class SubscriptionExists(SubscriptionError):
    default_message = "subscription already exists"


class EmptyAllFields(SubscriptionError, ValueError):
    default_message = "all fields are empty"


class EmptySomeFields(SubscriptionError, ValueError):
    default_message = "mandatory fields are empty"


def _normalise_dsn(dsn: str) -> str:
    if dsn.startswith("postgres://"):
        return "postgresql://" + dsn[len("postgres://"):]
    return dsn


def connect(dsn: str) -> Engine:
    """Open a pooled engine for the database URL and create the tables."""
    url = make_url(_normalise_dsn(dsn))
    if url.get_backend_name() == "sqlite":
        options = {"connect_args": {"check_same_thread": False}}
        if url.database in (None, "", ":memory:"):
            options["poolclass"] = StaticPool
    else:
        options = {
            "pool_size": 5,
            "max_overflow": 5,
            "pool_recycle": 3600,
            "pool_pre_ping": True,
        }
    engine = create_engine(url, **options)
    Base.metadata.create_all(engine)
    return engine


class SubscriptionRepository:
    """Queries and updates on the subscriptions table."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self._sessions = sessionmaker(bind=engine, expire_on_commit=False)

    def create(self, sub: Subscription) -> Subscription:
        """Insert a subscription; its sid is filled in."""
        with self._sessions.begin() as session:
            session.add(sub)
        return sub

    def get(self, sid: int) -> Subscription:
        """Return the subscription with this sid or raise SubscriptionNotFound."""
        with self._sessions() as session:
            sub = session.get(Subscription, sid)
        if sub is None:
            raise SubscriptionNotFound()
        return sub

    def list_all(self) -> List[Subscription]:
        """Return every stored subscription, ordered by sid."""
        with self._sessions() as session:
            return list(session.scalars(select(Subscription).order_by(Subscription.sid)))

    def update(self, sub: Subscription) -> Subscription:
        """Save all fields of the subscription, inserting it if its sid is new."""
        with self._sessions.begin() as session:
            merged = session.merge(sub)
        return merged

    def delete(self, sid: int) -> int:
        """Delete by sid and return the number of rows removed."""
        with self._sessions.begin() as session:
            result = session.execute(delete(Subscription).where(Subscription.sid == sid))
            return result.rowcount

    def compose_report(self, report_filter: ReportFilter) -> int:
        """Sum the prices of subscriptions active during the filter's range."""
        query = select(func.coalesce(func.sum(Subscription.price), 0)).where(
            Subscription.start <= report_filter.end,
            or_(Subscription.end.is_(None), Subscription.end >= report_filter.start),
        )
        if report_filter.uid is not None:
            query = query.where(Subscription.uid == report_filter.uid)
        if report_filter.provider is not None:
            query = query.where(Subscription.provider == report_filter.provider)
        with self._sessions() as session:
            return int(session.scalar(query) or 0)

    def exists(self, candidate: Subscription) -> bool:
        """Tell whether the user already has an overlapping subscription to the provider."""
        query = (
            select(func.count())
            .select_from(Subscription)
            .where(
                Subscription.uid == candidate.uid,
                Subscription.provider == candidate.provider,
                or_(Subscription.end.is_(None), Subscription.end >= candidate.start),
            )
        )
        if candidate.end is not None:
            query = query.where(Subscription.start <= candidate.end)
        with self._sessions() as session:
            return (session.scalar(query) or 0) > 0