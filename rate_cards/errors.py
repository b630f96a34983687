"""
Rate Card Errors

Every failure the engine raises derives from RateCardError. None of them are
retried or swallowed internally; each carries the ids needed to point at the
offending trip or rate item.

Engine errors:
    NoApplicableRuleError    - no rate item's matching keys fit the trip
    ConditionsNotMetError    - the selected rate item's own conditions fail
    UnsupportedRateTypeError - rate item carries an unknown rate type tag
    UnsupportedOperatorError - condition carries an unknown operator tag
    InvalidOperandError      - condition operand cannot be parsed
    MissingTripFieldError    - rate type needs a trip field that is absent
    InvalidTripFieldError    - that trip field is not numeric

Service errors:
    ValidationError          - collaborator validation rejected the input
    NotFoundError            - rate card id unknown to the repository
    InactiveRateCardError    - pricing requested against an inactive card
"""


class RateCardError(Exception):
    """Base class for all rate card errors."""


def _tag(value) -> str:
    """Raw tag of an enum member, or the value itself for unknown tags."""
    return str(getattr(value, "value", value))


# =============================================================================
# ENGINE ERRORS
# =============================================================================

class NoApplicableRuleError(RateCardError):
    def __init__(self, trip_id, rate_card_id: str | None = None):
        self.trip_id = trip_id
        self.rate_card_id = rate_card_id
        message = f"No applicable rate found for trip: {trip_id}"
        if rate_card_id is not None:
            message += f" (rate card {rate_card_id})"
        super().__init__(message)


class ConditionsNotMetError(RateCardError):
    def __init__(self, rate_item_id, trip_id, condition=None):
        self.rate_item_id = rate_item_id
        self.trip_id = trip_id
        self.condition = condition
        message = f"Trip {trip_id} does not meet all conditions of rate item {rate_item_id}"
        if condition is not None:
            message += f": {condition.describe()}"
        super().__init__(message)


class UnsupportedRateTypeError(RateCardError):
    def __init__(self, rate_type, rate_item_id=None):
        self.rate_type = rate_type
        self.rate_item_id = rate_item_id
        super().__init__(f"Unsupported rate type: {_tag(rate_type)} (rate item {rate_item_id})")


class UnsupportedOperatorError(RateCardError):
    def __init__(self, operator, parameter=None, rate_item_id=None):
        self.operator = operator
        self.parameter = parameter
        self.rate_item_id = rate_item_id
        super().__init__(
            f"Unsupported condition operator: {_tag(operator)} "
            f"(parameter '{parameter}', rate item {rate_item_id})"
        )


class InvalidOperandError(RateCardError):
    def __init__(self, operator, operand, rate_item_id=None, reason: str | None = None):
        self.operator = operator
        self.operand = operand
        self.rate_item_id = rate_item_id
        message = f"Invalid operand {operand!r} for operator {_tag(operator)} (rate item {rate_item_id})"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class MissingTripFieldError(RateCardError):
    def __init__(self, field: str, trip_id=None, rate_item_id=None):
        self.field = field
        self.trip_id = trip_id
        self.rate_item_id = rate_item_id
        super().__init__(
            f"Trip {trip_id} is missing '{field}' required by rate item {rate_item_id}"
        )


class InvalidTripFieldError(RateCardError):
    def __init__(self, field: str, value, trip_id=None, rate_item_id=None):
        self.field = field
        self.value = value
        self.trip_id = trip_id
        self.rate_item_id = rate_item_id
        super().__init__(
            f"Trip {trip_id} has non-numeric '{field}'={value!r} "
            f"required by rate item {rate_item_id}"
        )


# =============================================================================
# SERVICE ERRORS
# =============================================================================

class ValidationError(RateCardError):
    def __init__(self, errors):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__("Validation failed:\n  " + "\n  ".join(str(e) for e in self.errors))


class NotFoundError(RateCardError):
    """Rate card id unknown to the repository."""


class InactiveRateCardError(RateCardError):
    def __init__(self, rate_card_id, status):
        self.rate_card_id = rate_card_id
        self.status = status
        super().__init__(f"Rate card {rate_card_id} is not active (status {_tag(status)})")


__all__ = [
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
]
