"""
Charge Composition

Result of one rate calculation: the base charge and every amount layered on
top of it, plus the total.

    total_charge = base_charge
                 + sum(additional_charges)
                 + fuel_adjustment
                 + sum(surcharges)
                 - sum(discounts)

Discounts are stored as positive amounts and subtracted. The total is computed
once, with exact Decimal arithmetic, when the composition is built. Amounts are
kept unrounded; round_money() is applied only where they leave the engine.

A composition is built through ChargeCompositionBuilder and never changes
afterwards. Category mappings keep insertion order for the breakdown.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType

import polars as pl

from rate_cards.data.reference import MONEY_PLACES, ROUNDING
from rate_cards.values import require_decimal

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
_QUANTUM = Decimal(1).scaleb(-MONEY_PLACES)


def round_money(amount: Decimal) -> Decimal:
    """Quantize to MONEY_PLACES using the configured rounding mode."""
    return Decimal(amount).quantize(_QUANTUM, rounding=ROUNDING)


def _frozen_amounts(amounts: Mapping, category: str) -> Mapping[str, Decimal]:
    return MappingProxyType(
        {name: require_decimal(amount, f"{category}[{name}]") for name, amount in amounts.items()}
    )


@dataclass(frozen=True)
class ChargeComposition:
    """Immutable, categorized charge breakdown with a cached total."""

    base_charge: Decimal
    additional_charges: Mapping[str, Decimal] = field(default_factory=dict)
    fuel_adjustment: Decimal = ZERO
    discounts: Mapping[str, Decimal] = field(default_factory=dict)
    surcharges: Mapping[str, Decimal] = field(default_factory=dict)
    total_charge: Decimal = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "base_charge", require_decimal(self.base_charge, "base_charge"))
        object.__setattr__(
            self, "fuel_adjustment", require_decimal(self.fuel_adjustment, "fuel_adjustment")
        )
        for category in ("additional_charges", "discounts", "surcharges"):
            object.__setattr__(self, category, _frozen_amounts(getattr(self, category), category))
        object.__setattr__(self, "total_charge", self._calculate_total())

    def _calculate_total(self) -> Decimal:
        total = self.base_charge
        total += sum(self.additional_charges.values(), ZERO)
        total += self.fuel_adjustment
        total += sum(self.surcharges.values(), ZERO)
        total -= sum(self.discounts.values(), ZERO)
        return total

    # -------------------------------------------------------------------------
    # BREAKDOWN
    # -------------------------------------------------------------------------

    def breakdown(self) -> dict:
        """
        Flattened breakdown for display and audit.

        Returns:
            dict with base_charge, fuel_adjustment and total_charge amounts, and
            additional_charges, discounts and surcharges as ordered lists of
            {"name": ..., "amount": ...}. Nothing is recomputed.
        """
        return {
            "base_charge": self.base_charge,
            "additional_charges": _line_items(self.additional_charges),
            "fuel_adjustment": self.fuel_adjustment,
            "discounts": _line_items(self.discounts),
            "surcharges": _line_items(self.surcharges),
            "total_charge": self.total_charge,
        }

    def to_frame(self) -> pl.DataFrame:
        """
        Breakdown as a DataFrame, one row per line item, total last.

        Columns: category, name, amount (Float64, rounded with round_money).
        Discount amounts are shown positive, as stored.
        """
        rows = [("base", "base_charge", self.base_charge)]
        rows += [("additional", name, amount) for name, amount in self.additional_charges.items()]
        rows.append(("fuel", "fuel_adjustment", self.fuel_adjustment))
        rows += [("surcharge", name, amount) for name, amount in self.surcharges.items()]
        rows += [("discount", name, amount) for name, amount in self.discounts.items()]
        rows.append(("total", "total_charge", self.total_charge))

        return pl.DataFrame(
            [(category, name, float(round_money(amount))) for category, name, amount in rows],
            schema={"category": pl.Utf8, "name": pl.Utf8, "amount": pl.Float64},
            orient="row",
        )


def _line_items(amounts: Mapping[str, Decimal]) -> list[dict]:
    return [{"name": name, "amount": amount} for name, amount in amounts.items()]


# =============================================================================
# BUILDER
# =============================================================================

class ChargeCompositionBuilder:
    """
    Collects amounts for one calculation, then finalizes into a composition.

    Adding a name twice within a category overwrites the earlier amount (the
    name keeps its first position) and logs a warning.
    """

    def __init__(self, base_charge: Decimal):
        self._base_charge = require_decimal(base_charge, "base_charge")
        self._additional_charges: dict[str, Decimal] = {}
        self._fuel_adjustment = ZERO
        self._discounts: dict[str, Decimal] = {}
        self._surcharges: dict[str, Decimal] = {}

    @staticmethod
    def _put(amounts: dict, category: str, name: str, amount: Decimal) -> None:
        if name in amounts:
            logger.warning(
                "Duplicate %s name %r: %s overwrites %s", category, name, amount, amounts[name]
            )
        amounts[name] = require_decimal(amount, f"{category}[{name}]")

    def add_additional_charge(self, name: str, amount: Decimal) -> "ChargeCompositionBuilder":
        self._put(self._additional_charges, "additional charge", name, amount)
        return self

    def set_fuel_adjustment(self, amount: Decimal) -> "ChargeCompositionBuilder":
        self._fuel_adjustment = require_decimal(amount, "fuel_adjustment")
        return self

    def add_discount(self, name: str, amount: Decimal) -> "ChargeCompositionBuilder":
        self._put(self._discounts, "discount", name, amount)
        return self

    def add_surcharge(self, name: str, amount: Decimal) -> "ChargeCompositionBuilder":
        self._put(self._surcharges, "surcharge", name, amount)
        return self

    def build(self) -> ChargeComposition:
        """Finalize. The composition copies the collected amounts."""
        return ChargeComposition(
            base_charge=self._base_charge,
            additional_charges=self._additional_charges,
            fuel_adjustment=self._fuel_adjustment,
            discounts=self._discounts,
            surcharges=self._surcharges,
        )


__all__ = [
    "ChargeComposition",
    "ChargeCompositionBuilder",
    "round_money",
]
