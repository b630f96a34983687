"""
Condition Evaluator

A condition is a predicate over one trip field: `parameter operator value`.
Conditions gate both rate items (all must hold or the calculation fails) and
additional charges (all must hold or the charge is zero).

OPERATORS
---------
    EQUALS / NOT_EQUALS     - numeric when both sides are numeric-looking,
                              textual otherwise
    GREATER_THAN, LESS_THAN,
    GREATER_THAN_EQUAL,
    LESS_THAN_EQUAL         - numeric; date comparison for date fields
    BETWEEN                 - "min,max", inclusive on both ends
    IN / NOT_IN             - "a,b,c", membership of the field's text form
    CONTAINS                - field's text form contains the operand

FAILURE MODES
-------------
    Absent trip field           -> False (condition not met, never raises)
    Non-numeric field value     -> False for numeric operators
    Unparsable operand          -> InvalidOperandError
    Unknown operator tag        -> UnsupportedOperatorError

The last two are authoring defects in the rate card, so they surface instead
of quietly deciding applicability.
"""

import operator as op
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from uuid import uuid4

from .data.reference import LIST_DELIMITER
from .enums import ConditionOperator, coerce_tag
from .errors import InvalidOperandError, UnsupportedOperatorError
from .trip import TripRecord
from .values import as_text, to_decimal


@dataclass(frozen=True)
class Condition:
    """One predicate over a trip field."""

    parameter: str
    operator: ConditionOperator | str
    value: object = None
    rate_item_id: str | None = None
    id: str = field(default_factory=lambda: str(uuid4()))

    def __post_init__(self):
        object.__setattr__(self, "operator", coerce_tag(ConditionOperator, self.operator))

    @classmethod
    def from_dict(cls, data: Mapping, rate_item_id: str | None = None) -> "Condition":
        if isinstance(data, Condition):
            return data
        kwargs = {
            "parameter": data["parameter"],
            "operator": data["operator"],
            "value": data.get("value"),
            "rate_item_id": data.get("rate_item_id", rate_item_id),
        }
        if data.get("id"):
            kwargs["id"] = data["id"]
        return cls(**kwargs)

    def evaluate(self, trip) -> bool:
        """True if the trip satisfies this condition."""
        return evaluate(self, trip)

    def describe(self) -> str:
        tag = getattr(self.operator, "value", self.operator)
        return f"{self.parameter} {tag} {self.value!r}"


def evaluate(condition: Condition, trip) -> bool:
    """
    Evaluate a condition against a trip.

    Args:
        condition: Condition to evaluate
        trip: TripRecord or plain mapping of trip fields

    Returns:
        True if the condition holds, False if it doesn't or the field is absent

    Raises:
        UnsupportedOperatorError: operator tag is not a ConditionOperator
        InvalidOperandError: operand cannot be parsed for the operator
    """
    value = TripRecord.of(trip).get(condition.parameter)
    if value is None:
        return False

    handler = OPERATORS.get(condition.operator)
    if handler is None:
        raise UnsupportedOperatorError(
            condition.operator, condition.parameter, condition.rate_item_id
        )

    return handler(condition, value)


# =============================================================================
# OPERAND PARSING
# =============================================================================

def _operand_list(condition: Condition) -> list[str]:
    """Split a list operand ("a, b, c") into trimmed entries."""
    if isinstance(condition.value, (list, tuple)):
        return [as_text(part).strip() for part in condition.value]
    return [part.strip() for part in as_text(condition.value).split(LIST_DELIMITER)]


def _parse_number(condition: Condition, text):
    number = to_decimal(text)
    if number is None:
        raise InvalidOperandError(
            condition.operator, condition.value, condition.rate_item_id,
            reason=f"{text!r} is not a number",
        )
    return number


def _is_aware(value: datetime) -> bool:
    return value.tzinfo is not None and value.utcoffset() is not None


def _parse_date(condition: Condition, text, like: date):
    """
    Parse an ISO-8601 operand to the same type as the trip field (date or datetime).

    A naive operand compared with an aware datetime is read in that datetime's
    time zone. An operand with a UTC offset cannot be placed against a naive
    datetime and raises InvalidOperandError.
    """
    parse = datetime.fromisoformat if isinstance(like, datetime) else date.fromisoformat
    try:
        parsed = parse(as_text(text).strip())
    except ValueError:
        raise InvalidOperandError(
            condition.operator, condition.value, condition.rate_item_id,
            reason=f"{text!r} is not an ISO-8601 date",
        ) from None

    if isinstance(like, datetime) and _is_aware(parsed) != _is_aware(like):
        if _is_aware(like):
            return parsed.replace(tzinfo=like.tzinfo)
        raise InvalidOperandError(
            condition.operator, condition.value, condition.rate_item_id,
            reason=f"{text!r} has a UTC offset but the trip value is naive",
        )
    return parsed


# =============================================================================
# OPERATORS
# =============================================================================

def _equals(condition: Condition, value) -> bool:
    number = to_decimal(value)
    target = to_decimal(condition.value)
    if number is not None and target is not None:
        return number == target
    return as_text(value) == as_text(condition.value)


def _not_equals(condition: Condition, value) -> bool:
    return not _equals(condition, value)


def _comparison(compare: Callable) -> Callable[[Condition, object], bool]:
    """Build a handler comparing the field (left) to the operand (right)."""

    def handler(condition: Condition, value) -> bool:
        if isinstance(value, date):
            return compare(value, _parse_date(condition, condition.value, value))

        # Parse the operand first so a malformed rule fails for every trip
        target = _parse_number(condition, condition.value)
        number = to_decimal(value)
        if number is None:
            return False
        return compare(number, target)

    return handler


def _between(condition: Condition, value) -> bool:
    bounds = _operand_list(condition)
    if len(bounds) != 2:
        raise InvalidOperandError(
            condition.operator, condition.value, condition.rate_item_id,
            reason="expected 'min,max'",
        )

    if isinstance(value, date):
        low, high = (_parse_date(condition, bound, value) for bound in bounds)
        return low <= value <= high

    low, high = (_parse_number(condition, bound) for bound in bounds)
    number = to_decimal(value)
    if number is None:
        return False
    return low <= number <= high


def _in(condition: Condition, value) -> bool:
    return as_text(value) in _operand_list(condition)


def _not_in(condition: Condition, value) -> bool:
    return not _in(condition, value)


def _contains(condition: Condition, value) -> bool:
    return as_text(condition.value) in as_text(value)


OPERATORS: dict[ConditionOperator, Callable[[Condition, object], bool]] = {
    ConditionOperator.EQUALS: _equals,
    ConditionOperator.NOT_EQUALS: _not_equals,
    ConditionOperator.GREATER_THAN: _comparison(op.gt),
    ConditionOperator.LESS_THAN: _comparison(op.lt),
    ConditionOperator.GREATER_THAN_EQUAL: _comparison(op.ge),
    ConditionOperator.LESS_THAN_EQUAL: _comparison(op.le),
    ConditionOperator.BETWEEN: _between,
    ConditionOperator.IN: _in,
    ConditionOperator.NOT_IN: _not_in,
    ConditionOperator.CONTAINS: _contains,
}


def validate_operators() -> None:
    """
    Check every ConditionOperator has a handler.

    Raises ValueError listing the missing operators.
    Called at import time to fail fast when an operator is added to the enum.
    """
    missing = [o.value for o in ConditionOperator if o not in OPERATORS]
    if missing:
        raise ValueError(f"Condition operators without a handler: {', '.join(missing)}")


validate_operators()


def all_met(conditions, trip) -> bool:
    """Logical AND over conditions (vacuously True for none)."""
    trip = TripRecord.of(trip)
    return all(condition.evaluate(trip) for condition in conditions)


def first_unmet(conditions, trip) -> Condition | None:
    """First condition the trip fails, or None if all hold."""
    trip = TripRecord.of(trip)
    for condition in conditions:
        if not condition.evaluate(trip):
            return condition
    return None


__all__ = [
    "Condition",
    "evaluate",
    "OPERATORS",
    "validate_operators",
    "all_met",
    "first_unmet",
]
