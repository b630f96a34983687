"""
Rate Card (Rule Catalog)

Client-specific, time-bounded, ordered collection of rate items.

SELECTION
---------
A trip is priced by the FIRST rate item, in stored order, whose matching keys
(origin, destination, vehicle type) fit the trip. Selection is not
most-specific-first: a wildcard item listed before a concrete one wins.
Callers rely on catalog order, so keep it that way.

SNAPSHOTS
---------
rate_items is a tuple and every edit replaces it with a new tuple. A
calculation reads the tuple once, so edits made while it runs are not visible
to it.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime
from uuid import uuid4

from .charges import ChargeComposition
from .enums import RateCardStatus, coerce_tag
from .errors import NoApplicableRuleError
from .rate_rule import RateRule
from .trip import TripRecord
from .versions import RateCardVersion

logger = logging.getLogger(__name__)


def as_datetime(value) -> datetime | None:
    """Effective dates as datetimes: a date is midnight, ISO text is parsed."""
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    return datetime.fromisoformat(str(value))


def select_rule(rules: Iterable[RateRule], trip, rate_card_id: str | None = None) -> RateRule:
    """
    Select the rate item that prices a trip.

    Args:
        rules: Rate items in catalog order
        trip: TripRecord or mapping with origin, destination, vehicle_type, id
        rate_card_id: Included in the error for context

    Returns:
        First rate item whose matching keys fit the trip

    Raises:
        NoApplicableRuleError: no rate item matches (including an empty catalog)
    """
    trip = TripRecord.of(trip)
    for rule in rules:
        if rule.matches_trip(trip):
            logger.debug(
                "Trip %s matched rate item %s", trip.id, rule.id,
                extra={"trip_id": trip.id, "rate_item_id": rule.id, "rate_card_id": rate_card_id},
            )
            return rule
    raise NoApplicableRuleError(trip.id, rate_card_id)


@dataclass
class RateCard:
    """Rate card header plus its ordered rate items."""

    name: str
    client_id: str
    effective_from: datetime
    effective_to: datetime | None = None
    description: str = ""
    status: RateCardStatus = RateCardStatus.DRAFT
    created_by: str | None = None
    created_at: datetime = field(default_factory=datetime.now)
    updated_by: str | None = None
    updated_at: datetime = field(default_factory=datetime.now)
    current_version_id: str | None = None
    latest_version_number: int = 0
    rate_items: tuple[RateRule, ...] = ()
    id: str = field(default_factory=lambda: str(uuid4()))

    def __post_init__(self):
        self.status = coerce_tag(RateCardStatus, self.status)
        self.effective_from = as_datetime(self.effective_from)
        self.effective_to = as_datetime(self.effective_to)
        self.rate_items = tuple(self._bind(item) for item in self.rate_items)

    def _bind(self, item: RateRule, item_id: str | None = None) -> RateRule:
        return item.bind(self.id, item_id)

    # -------------------------------------------------------------------------
    # RATE ITEMS
    # -------------------------------------------------------------------------

    def add_rate_item(self, item: RateRule) -> RateRule:
        """Append a rate item (last in selection order). Returns the bound item."""
        bound = self._bind(item)
        self.rate_items = (*self.rate_items, bound)
        return bound

    def remove_rate_item(self, item_id: str) -> bool:
        """Remove a rate item by id. Returns False if not found."""
        remaining = tuple(item for item in self.rate_items if item.id != item_id)
        removed = len(remaining) < len(self.rate_items)
        self.rate_items = remaining
        return removed

    def update_rate_item(self, item_id: str, updated_item: RateRule) -> bool:
        """Replace a rate item in place (same position, same id). Returns False if not found."""
        for index, item in enumerate(self.rate_items):
            if item.id == item_id:
                items = list(self.rate_items)
                items[index] = self._bind(updated_item, item_id)
                self.rate_items = tuple(items)
                return True
        return False

    def clear_rate_items(self) -> None:
        self.rate_items = ()

    # -------------------------------------------------------------------------
    # PRICING
    # -------------------------------------------------------------------------

    def select_rule(self, trip) -> RateRule:
        return select_rule(self.rate_items, trip, self.id)

    def calculate_rate(self, trip) -> ChargeComposition:
        """
        Price a trip with this rate card.

        Raises:
            NoApplicableRuleError: no rate item matches the trip
            ConditionsNotMetError: the selected item's conditions fail
            (plus any error raised by RateRule.calculate_charge)
        """
        trip = TripRecord.of(trip)
        rule = select_rule(self.rate_items, trip, self.id)
        return rule.calculate_charge(trip)

    # -------------------------------------------------------------------------
    # VERSIONS
    # -------------------------------------------------------------------------

    def create_new_version(self, now: datetime | None = None) -> RateCardVersion:
        """Snapshot the current rate items as the next version."""
        now = now or datetime.now()
        self.latest_version_number += 1
        version = RateCardVersion(
            rate_card_id=self.id,
            version_number=self.latest_version_number,
            effective_from=now,
            created_by=self.updated_by,
            created_at=now,
            rate_items=self.rate_items,
        )
        self.current_version_id = version.id
        return version

    def restore_version(self, version: RateCardVersion) -> None:
        """Make a stored snapshot the card's current rate items."""
        if version.rate_card_id != self.id:
            raise ValueError(
                f"Version {version.id} belongs to rate card {version.rate_card_id}, not {self.id}"
            )
        self.rate_items = tuple(self._bind(item) for item in version.rate_items)
        self.current_version_id = version.id
        logger.info(
            "Restored version %s of rate card %s", version.version_number, self.id,
            extra={"rate_card_id": self.id},
        )

    # -------------------------------------------------------------------------
    # STATUS
    # -------------------------------------------------------------------------

    def is_active(self, now: datetime | None = None) -> bool:
        """ACTIVE status and now within [effective_from, effective_to]."""
        now = now or datetime.now()
        return (
            self.status == RateCardStatus.ACTIVE and
            self.effective_from <= now and
            (self.effective_to is None or self.effective_to >= now)
        )

    def is_expired(self, now: datetime | None = None) -> bool:
        now = now or datetime.now()
        return self.effective_to is not None and self.effective_to < now


__all__ = ["RateCard", "select_rule", "as_datetime"]
