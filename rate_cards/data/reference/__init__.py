"""Rate card reference configuration: matching, rounding, and trip fields."""

from rate_cards.data.reference.matching import WILDCARD, LIST_DELIMITER
from rate_cards.data.reference.rounding import MONEY_PLACES, ROUNDING
from rate_cards.data.reference import trip_fields

__all__ = [
    "WILDCARD",
    "LIST_DELIMITER",
    "MONEY_PLACES",
    "ROUNDING",
    "trip_fields",
]
