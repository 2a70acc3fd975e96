"""Business rules for creating, updating, reading and reporting subscriptions."""

import logging
import re
from typing import List

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from subtrack.conversion import (
    ConversionError,
    filter_to_norm,
    normal_to_raw,
    raw_to_normal,
)
from subtrack.models import RawReportFilter, RawSubscription
from subtrack.repository import (
    EmptyAllFields,
    EmptySomeFields,
    SubscriptionExists,
    SubscriptionNotFound,
    SubscriptionRepository,
)

log = logging.getLogger(__name__)

_DIGITS = re.compile(r"[0-9]+")
_MAX_SID = 2**64 - 1


def _parse_sid(sid_text: str) -> int:
    if _DIGITS.fullmatch(sid_text) is None:
        raise ConversionError(f"invalid subscription id {sid_text!r}")
    sid = int(sid_text)
    if sid > _MAX_SID:
        raise ConversionError(f"subscription id {sid_text!r} out of range")
    return sid


class SubscriptionService:
    """Validates input and drives the repository."""

    def __init__(self, engine: Engine) -> None:
        self.repo = SubscriptionRepository(engine)

    def create_subscription(self, raw: RawSubscription) -> RawSubscription:
        """Store a new subscription unless an overlapping one exists.

        The given raw subscription gets its new sid and is returned.
        """
        if not raw.uid or not raw.start or not raw.provider:
            raise EmptySomeFields(f"Warning on creation: {EmptySomeFields.default_message}")
        if raw.price is None:
            raise ConversionError("price is missing")
        new_sub = raw_to_normal(raw)

        try:
            already = self.repo.exists(new_sub)
        except SQLAlchemyError as exc:
            log.error("DB problem while checking for an existing subscription: %s", exc)
            raise
        if already:
            raise SubscriptionExists(
                f"Failed to create subscription: {SubscriptionExists.default_message}"
            )

        try:
            self.repo.create(new_sub)
        except SQLAlchemyError as exc:
            log.error("DB problem while creating a subscription: %s; input data: %r", exc, raw)
            raise
        raw.sid = new_sub.sid
        return raw

    def update_by_sid(self, raw: RawSubscription, sid_text: str) -> RawSubscription:
        """Overwrite the non-empty fields of the subscription with this sid.

        The given raw subscription gets the sid and is returned.
        """
        if not sid_text:
            raise EmptySomeFields(
                f"Failed to update subscription: {EmptySomeFields.default_message}"
            )
        if not (raw.uid or raw.provider or raw.price is not None or raw.start or raw.end):
            raise EmptyAllFields(
                f"Failed to update subscription {sid_text}: {EmptyAllFields.default_message}"
            )
        sid = _parse_sid(sid_text)
        raw.sid = sid
        new_sub = raw_to_normal(raw)

        try:
            db_sub = self.repo.get(sid)
        except SubscriptionNotFound:
            raise SubscriptionNotFound(
                f"Failed to update user info: {SubscriptionNotFound.default_message}"
            ) from None
        except SQLAlchemyError as exc:
            log.error("DB problem while fetching subscription %s: %s", sid_text, exc)
            raise

        if raw.uid:
            db_sub.uid = new_sub.uid
        if raw.provider:
            db_sub.provider = new_sub.provider
        if raw.price is not None:
            db_sub.price = new_sub.price
        if raw.start:
            db_sub.start = new_sub.start
        if raw.end:
            db_sub.end = new_sub.end

        try:
            self.repo.update(db_sub)
        except SQLAlchemyError as exc:
            log.error("DB problem while updating a subscription: %s; input data: %r", exc, raw)
            raise
        return raw

    def get_by_sid(self, sid: int) -> RawSubscription:
        """Return the subscription with this sid in raw form."""
        try:
            db_sub = self.repo.get(sid)
        except SubscriptionNotFound:
            raise SubscriptionNotFound(
                f"Failed to get subscription info: {SubscriptionNotFound.default_message}"
            ) from None
        except SQLAlchemyError as exc:
            log.error("DB problem while fetching subscription %s: %s", sid, exc)
            raise
        return normal_to_raw(db_sub)

    def get_list(self) -> List[RawSubscription]:
        """Return every subscription in raw form; empty when there are none."""
        try:
            db_subs = self.repo.list_all()
        except SQLAlchemyError as exc:
            log.error("DB problem while listing subscriptions: %s", exc)
            raise
        return [normal_to_raw(sub) for sub in db_subs]

    def delete_subscription(self, sid: int) -> None:
        """Remove the subscription with this sid; raise if there was none."""
        try:
            count = self.repo.delete(sid)
        except SQLAlchemyError as exc:
            log.error("DB problem while deleting subscription %s: %s", sid, exc)
            raise
        if count == 0:
            raise SubscriptionNotFound(
                f"Failed to remove subscription: {SubscriptionNotFound.default_message}"
            )

    def report(self, raw_filter: RawReportFilter) -> int:
        """Total price of subscriptions active in the period that match the filters."""
        norm_filter = filter_to_norm(raw_filter)
        try:
            return self.repo.compose_report(norm_filter)
        except SQLAlchemyError as exc:
            log.error("DB problem while composing a report: %s; input data: %r", exc, norm_filter)
            raise