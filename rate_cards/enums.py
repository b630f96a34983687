"""
Rate Card Enumerations

Tag values are the strings stored in rate card data, so members compare equal
to their raw tag (RateType.FIXED == "FIXED").
"""

from enum import Enum


class RateCardStatus(str, Enum):
    """Lifecycle status of a rate card."""
    DRAFT = "DRAFT"
    PENDING_APPROVAL = "PENDING_APPROVAL"
    ACTIVE = "ACTIVE"
    REJECTED = "REJECTED"
    EXPIRED = "EXPIRED"
    ARCHIVED = "ARCHIVED"


class RateType(str, Enum):
    """How a rate item turns its base rate into a base charge."""
    FIXED = "FIXED"
    PER_DISTANCE = "PER_DISTANCE"
    PER_WEIGHT = "PER_WEIGHT"
    PER_VOLUME = "PER_VOLUME"
    SLAB_BASED = "SLAB_BASED"
    ZONE_BASED = "ZONE_BASED"


class ChargeType(str, Enum):
    """Kind of additional charge. Informational only, no effect on arithmetic."""
    LOADING = "LOADING"
    UNLOADING = "UNLOADING"
    DETENTION = "DETENTION"
    TOLL = "TOLL"
    PERMIT = "PERMIT"
    MULTIPLE_DELIVERY = "MULTIPLE_DELIVERY"
    OTHER = "OTHER"


class ConditionOperator(str, Enum):
    """Comparison applied by a condition to one trip field."""
    EQUALS = "EQUALS"
    NOT_EQUALS = "NOT_EQUALS"
    GREATER_THAN = "GREATER_THAN"
    LESS_THAN = "LESS_THAN"
    GREATER_THAN_EQUAL = "GREATER_THAN_EQUAL"
    LESS_THAN_EQUAL = "LESS_THAN_EQUAL"
    BETWEEN = "BETWEEN"
    IN = "IN"
    NOT_IN = "NOT_IN"
    CONTAINS = "CONTAINS"


def coerce_tag(enum_cls: type[Enum], value):
    """
    Convert a raw tag to an enum member, leaving unknown tags as raw strings.

    Rate card data may carry legacy or misspelled tags. They are kept as-is so
    the calculation that reaches them can fail with a descriptive error,
    instead of the whole rate card failing to load.
    """
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return value


__all__ = [
    "RateCardStatus",
    "RateType",
    "ChargeType",
    "ConditionOperator",
    "coerce_tag",
]
