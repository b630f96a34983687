"""
Rate Card Batch Cost Calculator

DataFrame in, DataFrame out. Each row is one trip; every column of the row is
a trip field (null cells are absent), so conditions can reference any column.
The output is the same DataFrame with pricing columns appended.

STANDARD INPUT COLUMNS
----------------------
    id                  - Trip identifier (used in error messages)
    origin              - Matched against rate item origin
    destination         - Matched against rate item destination
    vehicle_type        - Matched against rate item vehicle type
    distance            - Required by PER_DISTANCE rate items
    weight              - Required by PER_WEIGHT rate items
    volume              - Required by PER_VOLUME rate items

OUTPUT COLUMNS ADDED
--------------------
    rate_item_id        - Selected rate item
    cost_base           - Base charge after minimum-charge clamp
    cost_additional     - Sum of additional charges
    cost_fuel           - Fuel adjustment (may be negative)
    cost_discounts      - Sum of discounts (positive, subtracted)
    cost_surcharges     - Sum of surcharges
    cost_total          - Total charge
    pricing_error       - Error class name, null when priced
    calculator_version

Cost columns are rounded with round_money(); the total is rounded from the
exact total, not summed from rounded parts.

USAGE
-----
    from rate_cards.calculate_costs import calculate_costs
    result = calculate_costs(trips, rate_card)
"""

import logging
from decimal import Decimal
from typing import Literal

import polars as pl

from .charges import ChargeComposition, round_money
from .errors import RateCardError
from .rate_card import RateCard, select_rule
from .trip import TripRecord
from .version import VERSION

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

COST_SCHEMA = {
    "rate_item_id": pl.Utf8,
    "cost_base": pl.Float64,
    "cost_additional": pl.Float64,
    "cost_fuel": pl.Float64,
    "cost_discounts": pl.Float64,
    "cost_surcharges": pl.Float64,
    "cost_total": pl.Float64,
    "pricing_error": pl.Utf8,
}


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================

def calculate_costs(
    df: pl.DataFrame,
    rate_card: RateCard,
    errors: Literal["raise", "null"] = "raise",
) -> pl.DataFrame:
    """
    Price every trip in a DataFrame against one rate card.

    The rate card's items are read once, so the whole batch is priced against
    the same snapshot.

    Args:
        df: Trip DataFrame, one row per trip (see module docstring)
        rate_card: Rate card to price against
        errors: "raise" propagates the first pricing error; "null" leaves the
            row's cost columns null and records the error class name

    Returns:
        DataFrame with input columns preserved and pricing columns appended
    """
    if errors not in ("raise", "null"):
        raise ValueError(f"errors must be 'raise' or 'null', got '{errors}'")

    rules = rate_card.rate_items
    rows = [
        _price_row(row, rules, rate_card.id, errors)
        for row in df.iter_rows(named=True)
    ]
    costs = pl.DataFrame(rows, schema=COST_SCHEMA, orient="row")

    failed = costs["pricing_error"].is_not_null().sum()
    logger.info(
        "Priced %d of %d trips against rate card %s", len(rows) - failed, len(rows), rate_card.id,
        extra={"rate_card_id": rate_card.id},
    )

    df = df.with_columns(costs.get_columns())
    df = _stamp_version(df)
    return df


# =============================================================================
# PRICING
# =============================================================================

def _price_row(row: dict, rules, rate_card_id: str, errors: str) -> tuple:
    """Price one row, returning values in COST_SCHEMA order."""
    trip = TripRecord(row)
    try:
        rule = select_rule(rules, trip, rate_card_id)
        composition = rule.calculate_charge(trip)
    except RateCardError as e:
        if errors == "raise":
            raise
        logger.debug(
            "Trip %s not priced: %s", trip.id, e,
            extra={"trip_id": trip.id, "rate_card_id": rate_card_id},
        )
        return (None, None, None, None, None, None, None, type(e).__name__)

    return (rule.id, *_cost_values(composition), None)


def _cost_values(composition: ChargeComposition) -> tuple[float, ...]:
    amounts = (
        composition.base_charge,
        sum(composition.additional_charges.values(), ZERO),
        composition.fuel_adjustment,
        sum(composition.discounts.values(), ZERO),
        sum(composition.surcharges.values(), ZERO),
        composition.total_charge,
    )
    return tuple(float(round_money(amount)) for amount in amounts)


def _stamp_version(df: pl.DataFrame) -> pl.DataFrame:
    """Stamp calculator version on output."""
    return df.with_columns(pl.lit(VERSION).alias("calculator_version"))


__all__ = [
    "calculate_costs",
    "COST_SCHEMA",
]
