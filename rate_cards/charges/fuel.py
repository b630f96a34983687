"""
Fuel Adjustment

Adjusts a rate item's charge for the movement of fuel prices since the rate
was agreed. The reference (base) price is the fuel price the rate assumes; the
current price is the one in force for the trip.

    percent_change = (current_price - base_price) / base_price * 100
    adjustment     = base_charge * percent_change * adjustment_factor / 100

adjustment_factor is the share of the fuel movement passed through to the
client (0.5 = half). A price drop gives a negative adjustment.

Disabled adjustments, and a reference price of exactly zero, contribute zero.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal

from rate_cards.values import require_decimal

ZERO = Decimal("0")


@dataclass(frozen=True)
class FuelAdjustment:
    """Fuel price pass-through for one rate item."""

    enabled: bool = False
    base_price: Decimal = ZERO
    current_price: Decimal = ZERO
    adjustment_factor: Decimal = ZERO

    def __post_init__(self):
        for name in ("base_price", "current_price", "adjustment_factor"):
            object.__setattr__(self, name, require_decimal(getattr(self, name), name))

    @classmethod
    def from_dict(cls, data: Mapping | None) -> "FuelAdjustment":
        if data is None:
            return cls()
        if isinstance(data, FuelAdjustment):
            return data
        return cls(
            enabled=bool(data.get("enabled", False)),
            base_price=data.get("base_price", ZERO),
            current_price=data.get("current_price", ZERO),
            adjustment_factor=data.get("adjustment_factor", ZERO),
        )

    def percent_change(self) -> Decimal:
        """Fuel price change relative to the reference price, in percent."""
        if self.base_price == 0:
            return ZERO
        return (self.current_price - self.base_price) / self.base_price * 100

    def compute(self, base_charge: Decimal) -> Decimal:
        """Adjustment amount for a base charge (0 when disabled)."""
        if not self.enabled or self.base_price == 0:
            return ZERO
        return base_charge * self.percent_change() * self.adjustment_factor / 100


__all__ = ["FuelAdjustment"]
