"""
Charge Component (Additional Charge)

An optional add-on amount attached to a rate item: loading, tolls, detention
and so on. Each component carries its own conditions; when any of them fails
the component contributes zero, never a negative amount.

Amount when applicable:
    is_percentage=True  -> base_charge * value / 100
    is_percentage=False -> value
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from uuid import uuid4

from rate_cards.conditions import Condition, all_met
from rate_cards.enums import ChargeType, coerce_tag
from rate_cards.values import require_decimal

ZERO = Decimal("0")


@dataclass(frozen=True)
class ChargeComponent:
    """
    Additional charge on a rate item.

    Attributes:
        IDENTITY
            name            - Breakdown key, unique within the rate item
            charge_type     - LOADING, TOLL, ... (informational only)

        PRICING
            value           - Magnitude: absolute amount or percentage
            is_percentage   - True if value is a percentage of the base charge

        APPLICABILITY
            conditions      - All must hold for the charge to apply
    """

    # -------------------------------------------------------------------------
    # IDENTITY
    # -------------------------------------------------------------------------
    name: str
    charge_type: ChargeType | str = ChargeType.OTHER

    # -------------------------------------------------------------------------
    # PRICING
    # -------------------------------------------------------------------------
    value: Decimal = ZERO
    is_percentage: bool = False

    # -------------------------------------------------------------------------
    # APPLICABILITY
    # -------------------------------------------------------------------------
    conditions: tuple[Condition, ...] = ()

    rate_item_id: str | None = None
    id: str = field(default_factory=lambda: str(uuid4()))

    def __post_init__(self):
        object.__setattr__(self, "charge_type", coerce_tag(ChargeType, self.charge_type))
        object.__setattr__(self, "value", require_decimal(self.value, f"{self.name}.value"))
        object.__setattr__(self, "conditions", tuple(self.conditions))

    @classmethod
    def from_dict(cls, data: Mapping, rate_item_id: str | None = None) -> "ChargeComponent":
        if isinstance(data, ChargeComponent):
            return data
        rate_item_id = data.get("rate_item_id", rate_item_id)
        kwargs = {
            "name": data["name"],
            "charge_type": data.get("charge_type", data.get("type", ChargeType.OTHER)),
            "value": data.get("value", ZERO),
            "is_percentage": bool(data.get("is_percentage", False)),
            "conditions": tuple(
                Condition.from_dict(c, rate_item_id) for c in data.get("conditions", ())
            ),
            "rate_item_id": rate_item_id,
        }
        if data.get("id"):
            kwargs["id"] = data["id"]
        return cls(**kwargs)

    # -------------------------------------------------------------------------
    # METHODS
    # -------------------------------------------------------------------------

    def applies(self, trip) -> bool:
        """True if every condition holds for the trip."""
        return all_met(self.conditions, trip)

    def compute(self, base_charge: Decimal, trip) -> Decimal:
        """
        Amount this charge adds for a trip.

        Args:
            base_charge: Base charge after the minimum-charge clamp
            trip: TripRecord or mapping used by the conditions

        Returns:
            Charge amount, or 0 if any condition is not met
        """
        if not self.applies(trip):
            return ZERO
        if self.is_percentage:
            return base_charge * self.value / 100
        return self.value


__all__ = ["ChargeComponent"]
