"""
Rate Card Versions

A version is a frozen snapshot of a rate card's rate items, taken whenever the
card is created or edited. Storage of versions belongs to the repository; this
module only defines the snapshot and how two snapshots differ.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import NamedTuple
from uuid import uuid4

from .rate_rule import RateRule


class VersionDifference(NamedTuple):
    """Rate items changed between two versions, compared by item id."""
    added_items: list[RateRule]
    removed_items: list[RateRule]
    modified_items: list[RateRule]

    def is_empty(self) -> bool:
        return not (self.added_items or self.removed_items or self.modified_items)


@dataclass(frozen=True)
class RateCardVersion:
    """Historical snapshot of a rate card's rate items."""

    rate_card_id: str
    version_number: int
    effective_from: datetime
    created_by: str | None = None
    created_at: datetime = field(default_factory=datetime.now)
    rate_items: tuple[RateRule, ...] = ()
    id: str = field(default_factory=lambda: str(uuid4()))

    def __post_init__(self):
        object.__setattr__(self, "rate_items", tuple(self.rate_items))

    def compare(self, other: "RateCardVersion") -> VersionDifference:
        """
        Changes going from this version to `other`.

        Returns:
            VersionDifference where added/modified items are taken from `other`
            and removed items from this version, each in stored order
        """
        mine = {item.id: item for item in self.rate_items}
        theirs = {item.id: item for item in other.rate_items}

        return VersionDifference(
            added_items=[item for item in other.rate_items if item.id not in mine],
            removed_items=[item for item in self.rate_items if item.id not in theirs],
            modified_items=[
                item for item in other.rate_items
                if item.id in mine and mine[item.id] != item
            ],
        )


__all__ = ["RateCardVersion", "VersionDifference"]
