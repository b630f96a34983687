"""
Rate Card Data

Static reference configuration for the pricing engine.

Structure:
    - reference/: Matching, rounding, and trip field configuration
"""

from .reference import (
    WILDCARD,
    LIST_DELIMITER,
    MONEY_PLACES,
    ROUNDING,
    trip_fields,
)

__all__ = [
    # Matching config
    "WILDCARD",
    "LIST_DELIMITER",
    # Rounding config
    "MONEY_PLACES",
    "ROUNDING",
    # Trip field names
    "trip_fields",
]
