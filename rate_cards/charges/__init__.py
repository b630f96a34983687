"""
Charges Package

Building blocks a rate item layers on top of its base charge.

    ChargeComponent      - conditional additional charge (absolute or percentage)
    FuelAdjustment       - fuel price pass-through
    ChargeComposition    - immutable result with cached total and breakdown

Usage:
    from rate_cards.charges import ChargeComponent, FuelAdjustment, ChargeComposition
"""

from .components import ChargeComponent
from .fuel import FuelAdjustment
from .composition import ChargeComposition, ChargeCompositionBuilder, round_money

__all__ = [
    "ChargeComponent",
    "FuelAdjustment",
    "ChargeComposition",
    "ChargeCompositionBuilder",
    "round_money",
]
