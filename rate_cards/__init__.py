"""
Rate Cards

Prices transportation trips against client-specific rate cards: selects the
rate item for a trip, evaluates its conditions, and composes base charge,
additional charges, fuel adjustment, discounts and surcharges into a total.

Usage:
    from rate_cards import RateCard, RateRule, RateType
    composition = rate_card.calculate_rate({"id": "T1", "origin": "MUM", ...})
    composition.total_charge, composition.breakdown()
"""

from .calculate_costs import calculate_costs
from .charges import (
    ChargeComponent,
    ChargeComposition,
    ChargeCompositionBuilder,
    FuelAdjustment,
    round_money,
)
from .conditions import Condition, evaluate
from .enums import ChargeType, ConditionOperator, RateCardStatus, RateType
from .errors import (
    ConditionsNotMetError,
    InactiveRateCardError,
    InvalidOperandError,
    InvalidTripFieldError,
    MissingTripFieldError,
    NoApplicableRuleError,
    NotFoundError,
    RateCardError,
    UnsupportedOperatorError,
    UnsupportedRateTypeError,
    ValidationError,
)
from .rate_card import RateCard, select_rule
from .rate_rule import RateRule
from .service import RateCardService, ValidationResult
from .trip import TripRecord
from .version import VERSION
from .versions import RateCardVersion, VersionDifference

__all__ = [
    # Engine
    "Condition",
    "evaluate",
    "ChargeComponent",
    "FuelAdjustment",
    "ChargeComposition",
    "ChargeCompositionBuilder",
    "round_money",
    "RateRule",
    "RateCard",
    "select_rule",
    "TripRecord",
    # Batch
    "calculate_costs",
    # Versions and service
    "RateCardVersion",
    "VersionDifference",
    "RateCardService",
    "ValidationResult",
    # Enums
    "RateType",
    "ChargeType",
    "ConditionOperator",
    "RateCardStatus",
    # Errors
    "RateCardError",
    "NoApplicableRuleError",
    "ConditionsNotMetError",
    "UnsupportedRateTypeError",
    "UnsupportedOperatorError",
    "InvalidOperandError",
    "MissingTripFieldError",
    "InvalidTripFieldError",
    "ValidationError",
    "NotFoundError",
    "InactiveRateCardError",
    "VERSION",
]
