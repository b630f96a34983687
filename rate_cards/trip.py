"""
Trip Record

Immutable mapping of trip field name to value. Conditions look fields up by
name; the rate item reads origin, destination, vehicle_type and the quantity
its rate type needs (distance, weight or volume).

ABSENCE
-------
A key that is missing or maps to None is absent: `name in trip` is False and
`trip.get(name)` returns None. Absent fields make conditions evaluate to False.
"""

from collections.abc import Iterator, Mapping
from datetime import date
from decimal import Decimal
from types import MappingProxyType
from typing import Union

from rate_cards.data.reference import trip_fields

TripValue = Union[int, float, Decimal, str, date, bool]


class TripRecord(Mapping):
    """Read-only trip fields with None values dropped."""

    __slots__ = ("_fields",)

    def __init__(self, fields: Mapping[str, TripValue | None] | None = None, **kwargs: TripValue | None):
        merged = dict(fields or {})
        merged.update(kwargs)
        self._fields = MappingProxyType(
            {str(key): value for key, value in merged.items() if value is not None}
        )

    @classmethod
    def of(cls, trip: "TripRecord | Mapping[str, TripValue | None]") -> "TripRecord":
        """Wrap a plain mapping, passing TripRecords through unchanged."""
        if isinstance(trip, TripRecord):
            return trip
        return cls(trip)

    def __getitem__(self, key: str) -> TripValue:
        return self._fields[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"TripRecord({dict(self._fields)!r})"

    # -------------------------------------------------------------------------
    # STANDARD FIELDS
    # -------------------------------------------------------------------------

    @property
    def id(self):
        return self.get(trip_fields.ID)

    @property
    def origin(self):
        return self.get(trip_fields.ORIGIN)

    @property
    def destination(self):
        return self.get(trip_fields.DESTINATION)

    @property
    def vehicle_type(self):
        return self.get(trip_fields.VEHICLE_TYPE)

    @property
    def distance(self):
        return self.get(trip_fields.DISTANCE)

    @property
    def weight(self):
        return self.get(trip_fields.WEIGHT)

    @property
    def volume(self):
        return self.get(trip_fields.VOLUME)


__all__ = ["TripRecord", "TripValue"]
