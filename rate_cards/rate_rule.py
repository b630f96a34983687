"""
Rate Rule (Rate Item)

One pricing rule within a rate card: which trips it prices (matching keys and
conditions) and how (rate type, base rate, minimum charge, additional charges,
fuel adjustment).

CALCULATION ORDER
-----------------
    1. Rule conditions      - all must hold, else ConditionsNotMetError
    2. Base charge          - by rate type (see BASE_CHARGE_HANDLERS)
    3. Minimum charge       - base charge raised to min_charge if below
    4. Additional charges   - each against the clamped base charge
    5. Fuel adjustment      - against the clamped base charge
    6. Composition          - discounts and surcharges left empty

RATE TYPES
----------
    FIXED          - base_rate
    PER_DISTANCE   - base_rate * trip distance
    PER_WEIGHT     - base_rate * trip weight
    PER_VOLUME     - base_rate * trip volume
    SLAB_BASED     - base_rate (slab tables not modelled yet)
    ZONE_BASED     - base_rate (zone tables not modelled yet)

MATCHING
--------
Origin, destination and vehicle type keys compare by text form (see
values.as_text), so an integer origin of 90210 matches the key "90210".
WILDCARD matches any value, including an absent one.

Unknown rate type tags read from data fail with UnsupportedRateTypeError when
the rule is used.
"""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from decimal import Decimal
from uuid import uuid4

from .charges import ChargeComponent, ChargeComposition, ChargeCompositionBuilder, FuelAdjustment
from .conditions import Condition, first_unmet
from .data.reference import WILDCARD
from .data.reference.trip_fields import RATE_TYPE_FIELDS
from .enums import RateType, coerce_tag
from .errors import (
    ConditionsNotMetError,
    InvalidTripFieldError,
    MissingTripFieldError,
    UnsupportedRateTypeError,
)
from .trip import TripRecord
from .values import as_text, require_decimal, to_decimal

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass(frozen=True)
class RateRule:
    """
    Pricing rule for trips matching its keys and conditions.

    Attributes:
        PRICING
            rate_type           - How base_rate becomes a base charge
            base_rate           - Non-negative rate (per unit or flat)
            min_charge          - Non-negative floor for the base charge

        MATCHING
            origin              - Trip origin, or WILDCARD
            destination         - Trip destination, or WILDCARD
            vehicle_type        - Trip vehicle type, or WILDCARD
            conditions          - All must hold at calculation time

        ADD-ONS
            additional_charges  - Ordered charge components
            fuel_adjustment     - Fuel price pass-through (disabled by default)
    """

    # -------------------------------------------------------------------------
    # PRICING
    # -------------------------------------------------------------------------
    rate_type: RateType | str
    base_rate: Decimal
    min_charge: Decimal = ZERO

    # -------------------------------------------------------------------------
    # MATCHING
    # -------------------------------------------------------------------------
    origin: str = WILDCARD
    destination: str = WILDCARD
    vehicle_type: str = WILDCARD
    conditions: tuple[Condition, ...] = ()

    # -------------------------------------------------------------------------
    # ADD-ONS
    # -------------------------------------------------------------------------
    additional_charges: tuple[ChargeComponent, ...] = ()
    fuel_adjustment: FuelAdjustment = field(default_factory=FuelAdjustment)

    # -------------------------------------------------------------------------
    # IDENTITY
    # -------------------------------------------------------------------------
    service_code: str | None = None
    rate_card_id: str | None = None
    id: str = field(default_factory=lambda: str(uuid4()))

    def __post_init__(self):
        object.__setattr__(self, "rate_type", coerce_tag(RateType, self.rate_type))
        for name in ("base_rate", "min_charge"):
            amount = require_decimal(getattr(self, name), name)
            if amount < 0:
                raise ValueError(f"{name} must be non-negative, got {amount}")
            object.__setattr__(self, name, amount)
        object.__setattr__(self, "conditions", tuple(self.conditions))
        object.__setattr__(self, "additional_charges", tuple(self.additional_charges))

    @classmethod
    def from_dict(cls, data: Mapping, rate_card_id: str | None = None) -> "RateRule":
        """
        Build a rule from a DTO-style dict (snake_case keys).

        Nested conditions and additional charges may be dicts or instances;
        dicts are bound to this rule's id.
        """
        if isinstance(data, RateRule):
            return data
        rule_id = data.get("id") or str(uuid4())
        return cls(
            id=rule_id,
            rate_card_id=data.get("rate_card_id", rate_card_id),
            service_code=data.get("service_code"),
            origin=data.get("origin", WILDCARD),
            destination=data.get("destination", WILDCARD),
            vehicle_type=data.get("vehicle_type", WILDCARD),
            rate_type=data["rate_type"],
            base_rate=data["base_rate"],
            min_charge=data.get("min_charge", ZERO),
            additional_charges=tuple(
                ChargeComponent.from_dict(c, rule_id) for c in data.get("additional_charges", ())
            ),
            conditions=tuple(
                Condition.from_dict(c, rule_id) for c in data.get("conditions", ())
            ),
            fuel_adjustment=FuelAdjustment.from_dict(data.get("fuel_adjustment")),
        )

    # -------------------------------------------------------------------------
    # MATCHING
    # -------------------------------------------------------------------------

    def matches(self, origin, destination, vehicle_type) -> bool:
        """Each key is the wildcard or equal to the text form of the trip's value."""
        return (
            _key_matches(self.origin, origin) and
            _key_matches(self.destination, destination) and
            _key_matches(self.vehicle_type, vehicle_type)
        )

    def bind(self, rate_card_id: str | None, item_id: str | None = None) -> "RateRule":
        """
        Copy owned by a rate card.

        Nested conditions and additional charges (and their conditions) are
        re-pointed at the copy's id, so errors name the rule that raised them.
        """
        item_id = item_id or self.id

        def rebind(conditions):
            return tuple(replace(c, rate_item_id=item_id) for c in conditions)

        return replace(
            self,
            id=item_id,
            rate_card_id=rate_card_id,
            conditions=rebind(self.conditions),
            additional_charges=tuple(
                replace(charge, rate_item_id=item_id, conditions=rebind(charge.conditions))
                for charge in self.additional_charges
            ),
        )

    def matches_trip(self, trip) -> bool:
        trip = TripRecord.of(trip)
        return self.matches(trip.origin, trip.destination, trip.vehicle_type)

    # -------------------------------------------------------------------------
    # CALCULATION
    # -------------------------------------------------------------------------

    def base_charge(self, trip) -> Decimal:
        """Base charge by rate type, before the minimum-charge clamp."""
        handler = BASE_CHARGE_HANDLERS.get(self.rate_type)
        if handler is None:
            raise UnsupportedRateTypeError(self.rate_type, self.id)
        return handler(self, TripRecord.of(trip))

    def calculate_charge(self, trip) -> ChargeComposition:
        """
        Price a trip with this rule.

        Args:
            trip: TripRecord or mapping of trip fields

        Returns:
            ChargeComposition with base, additional charges and fuel adjustment

        Raises:
            ConditionsNotMetError: a rule condition does not hold for the trip
            UnsupportedRateTypeError: rate_type is not a known RateType
            MissingTripFieldError / InvalidTripFieldError: the rate type's
                quantity field is absent or not numeric
        """
        trip = TripRecord.of(trip)

        unmet = first_unmet(self.conditions, trip)
        if unmet is not None:
            raise ConditionsNotMetError(self.id, trip.id, unmet)

        base_charge = self.base_charge(trip)
        if base_charge < self.min_charge:
            base_charge = self.min_charge

        builder = ChargeCompositionBuilder(base_charge)
        for charge in self.additional_charges:
            builder.add_additional_charge(charge.name, charge.compute(base_charge, trip))
        builder.set_fuel_adjustment(self.fuel_adjustment.compute(base_charge))

        composition = builder.build()
        logger.debug(
            "Rate item %s priced trip %s: base %s, total %s",
            self.id, trip.id, composition.base_charge, composition.total_charge,
            extra={"trip_id": trip.id, "rate_item_id": self.id, "rate_card_id": self.rate_card_id},
        )
        return composition

    def _trip_quantity(self, trip: TripRecord, field_name: str) -> Decimal:
        """Numeric trip field a per-unit rate type multiplies by."""
        value = trip.get(field_name)
        if value is None:
            raise MissingTripFieldError(field_name, trip.id, self.id)
        quantity = to_decimal(value)
        if quantity is None:
            raise InvalidTripFieldError(field_name, value, trip.id, self.id)
        return quantity


def _key_matches(key, value) -> bool:
    if key == WILDCARD:
        return True
    return value is not None and as_text(key) == as_text(value)


# =============================================================================
# RATE TYPE DISPATCH
# =============================================================================

def _flat_rate(rule: RateRule, trip: TripRecord) -> Decimal:
    return rule.base_rate


def _per_unit(field_name: str) -> Callable[[RateRule, TripRecord], Decimal]:
    def handler(rule: RateRule, trip: TripRecord) -> Decimal:
        return rule.base_rate * rule._trip_quantity(trip, field_name)
    return handler


BASE_CHARGE_HANDLERS: dict[RateType, Callable[[RateRule, TripRecord], Decimal]] = {
    RateType.FIXED: _flat_rate,
    RateType.PER_DISTANCE: _per_unit(RATE_TYPE_FIELDS[RateType.PER_DISTANCE.value]),
    RateType.PER_WEIGHT: _per_unit(RATE_TYPE_FIELDS[RateType.PER_WEIGHT.value]),
    RateType.PER_VOLUME: _per_unit(RATE_TYPE_FIELDS[RateType.PER_VOLUME.value]),
    # Extension points: slab and zone lookup tables are not modelled, both
    # price at the flat base rate
    RateType.SLAB_BASED: _flat_rate,
    RateType.ZONE_BASED: _flat_rate,
}


def validate_rate_types() -> None:
    """
    Check every RateType has a base charge handler.

    Raises ValueError listing the missing rate types.
    Called at import time to fail fast when a rate type is added to the enum.
    """
    missing = [t.value for t in RateType if t not in BASE_CHARGE_HANDLERS]
    if missing:
        raise ValueError(f"Rate types without a base charge handler: {', '.join(missing)}")


validate_rate_types()


__all__ = [
    "RateRule",
    "BASE_CHARGE_HANDLERS",
    "validate_rate_types",
]
