"""
Rate Card Service

Orchestrates rate card administration and pricing requests over external
collaborators. Their internals (storage, authorization rules, approval state
machine, validation rules) live elsewhere; this module only defines the
interfaces it calls and the order it calls them in.

COLLABORATORS
-------------
    RateCardRepository  - load/save rate cards and versions
    RateCardValidator   - structural validation and date-overlap checks
    AuthService         - permission checks, current user
    WorkflowService     - approval hand-off after submission

EDITABLE STATUSES
-----------------
Only DRAFT and REJECTED cards may be updated, deleted or submitted.
"""

import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Any, NamedTuple, Protocol

from .charges import ChargeComposition
from .enums import RateCardStatus
from .errors import InactiveRateCardError, NotFoundError, ValidationError
from .rate_card import RateCard, as_datetime
from .rate_rule import RateRule
from .versions import RateCardVersion

logger = logging.getLogger(__name__)

EDITABLE_STATUSES = (RateCardStatus.DRAFT, RateCardStatus.REJECTED)


# =============================================================================
# COLLABORATOR INTERFACES
# =============================================================================

class ValidationResult(NamedTuple):
    is_valid: bool
    errors: tuple[str, ...] = ()


class RateCardRepository(Protocol):
    def find_by_id(self, rate_card_id: str) -> RateCard | None: ...

    def find_all(self, filters: Mapping[str, Any] | None = None) -> list[RateCard]: ...

    def save(self, rate_card: RateCard) -> RateCard: ...

    def delete(self, rate_card_id: str) -> None: ...

    def save_version(self, version: RateCardVersion) -> None: ...


class RateCardValidator(Protocol):
    def validate_rate_card(self, data: Any) -> ValidationResult: ...

    def validate_rate_item(self, data: Any) -> ValidationResult: ...

    def check_for_overlaps(self, data: Any) -> ValidationResult: ...


class AuthService(Protocol):
    def check_permission(self, resource: str, action: str) -> None:
        """Raise (any exception) if the current user may not perform the action."""

    def get_current_user_id(self) -> str: ...


class WorkflowService(Protocol):
    def start_approval(self, rate_card: RateCard) -> None: ...


# =============================================================================
# HELPERS
# =============================================================================

def _check(result: ValidationResult) -> None:
    if not result.is_valid:
        raise ValidationError(result.errors)


def rate_rule_from_dict(data: Mapping, rate_card_id: str | None = None) -> RateRule:
    """Build a rate item (with nested conditions and charges) from DTO data."""
    return RateRule.from_dict(data, rate_card_id)


# =============================================================================
# SERVICE
# =============================================================================

class RateCardService:
    """Rate card CRUD, submission and pricing over injected collaborators."""

    RESOURCE = "rate_card"

    def __init__(
        self,
        repository: RateCardRepository,
        validator: RateCardValidator,
        auth: AuthService,
        workflow: WorkflowService,
    ):
        self.repository = repository
        self.validator = validator
        self.auth = auth
        self.workflow = workflow

    def _get(self, rate_card_id: str) -> RateCard:
        rate_card = self.repository.find_by_id(rate_card_id)
        if rate_card is None:
            raise NotFoundError(f"Rate card with ID {rate_card_id} not found")
        return rate_card

    def _require_editable(self, rate_card: RateCard, action: str) -> None:
        if rate_card.status not in EDITABLE_STATUSES:
            raise ValidationError(
                f"Cannot {action} rate card with status "
                f"{getattr(rate_card.status, 'value', rate_card.status)}"
            )

    def _build_items(self, items_data, rate_card_id: str) -> list[RateRule]:
        """Validate and build every item before any of them reaches a card."""
        items = []
        for item_data in items_data:
            _check(self.validator.validate_rate_item(item_data))
            items.append(rate_rule_from_dict(item_data, rate_card_id))
        return items

    def _save_with_version(self, rate_card: RateCard) -> RateCard:
        saved = self.repository.save(rate_card)
        version = saved.create_new_version()
        self.repository.save_version(version)
        return saved

    # -------------------------------------------------------------------------
    # CRUD
    # -------------------------------------------------------------------------

    def create_rate_card(self, data: Mapping) -> RateCard:
        """
        Create a DRAFT rate card with its rate items and initial version.

        Args:
            data: name, client_id, effective_from, optional description,
                effective_to and rate_items (list of rate item dicts)

        Raises:
            ValidationError: card, overlap or item validation failed
        """
        self.auth.check_permission(self.RESOURCE, "create")

        _check(self.validator.validate_rate_card(data))
        _check(self.validator.check_for_overlaps(data))

        user_id = self.auth.get_current_user_id()
        now = datetime.now()
        rate_card = RateCard(
            name=data["name"],
            client_id=data["client_id"],
            description=data.get("description", ""),
            effective_from=as_datetime(data["effective_from"]),
            effective_to=as_datetime(data.get("effective_to")),
            status=RateCardStatus.DRAFT,
            created_by=user_id,
            created_at=now,
            updated_by=user_id,
            updated_at=now,
        )
        for item in self._build_items(data.get("rate_items") or (), rate_card.id):
            rate_card.add_rate_item(item)

        saved = self._save_with_version(rate_card)
        logger.info(
            "Created rate card %s for client %s", saved.id, saved.client_id,
            extra={"rate_card_id": saved.id},
        )
        return saved

    def update_rate_card(self, rate_card_id: str, data: Mapping) -> RateCard:
        """
        Update a DRAFT or REJECTED rate card and record a new version.

        Header fields missing from data are kept. rate_items, when present,
        replaces all existing items.
        """
        self.auth.check_permission(self.RESOURCE, "update")

        rate_card = self._get(rate_card_id)
        self._require_editable(rate_card, "update")

        _check(self.validator.validate_rate_card(data))
        _check(self.validator.check_for_overlaps({**data, "id": rate_card.id}))

        # Build and parse everything before the stored card is touched
        items = None
        if data.get("rate_items") is not None:
            items = self._build_items(data["rate_items"], rate_card.id)
        effective_from = rate_card.effective_from
        if data.get("effective_from"):
            effective_from = as_datetime(data["effective_from"])
        effective_to = rate_card.effective_to
        if "effective_to" in data:
            effective_to = as_datetime(data["effective_to"])
        user_id = self.auth.get_current_user_id()

        rate_card.name = data.get("name") or rate_card.name
        rate_card.description = data.get("description") or rate_card.description
        rate_card.effective_from = effective_from
        rate_card.effective_to = effective_to
        rate_card.updated_by = user_id
        rate_card.updated_at = datetime.now()

        if items is not None:
            rate_card.clear_rate_items()
            for item in items:
                rate_card.add_rate_item(item)

        saved = self._save_with_version(rate_card)
        logger.info(
            "Updated rate card %s (version %s)", saved.id, saved.latest_version_number,
            extra={"rate_card_id": saved.id},
        )
        return saved

    def get_rate_card(self, rate_card_id: str) -> RateCard:
        self.auth.check_permission(self.RESOURCE, "read")
        return self._get(rate_card_id)

    def list_rate_cards(self, filters: Mapping[str, Any] | None = None) -> list[RateCard]:
        self.auth.check_permission(self.RESOURCE, "list")
        return self.repository.find_all(filters)

    def delete_rate_card(self, rate_card_id: str) -> None:
        self.auth.check_permission(self.RESOURCE, "delete")

        rate_card = self._get(rate_card_id)
        self._require_editable(rate_card, "delete")

        self.repository.delete(rate_card_id)
        logger.info("Deleted rate card %s", rate_card_id, extra={"rate_card_id": rate_card_id})

    # -------------------------------------------------------------------------
    # WORKFLOW
    # -------------------------------------------------------------------------

    def submit_for_approval(self, rate_card_id: str) -> RateCard:
        """Move a DRAFT or REJECTED card to PENDING_APPROVAL and hand it to the workflow."""
        self.auth.check_permission(self.RESOURCE, "submit_for_approval")

        rate_card = self._get(rate_card_id)
        self._require_editable(rate_card, "submit")

        _check(self.validator.validate_rate_card(rate_card))

        rate_card.status = RateCardStatus.PENDING_APPROVAL
        rate_card.updated_by = self.auth.get_current_user_id()
        rate_card.updated_at = datetime.now()

        saved = self.repository.save(rate_card)
        self.workflow.start_approval(saved)
        logger.info("Submitted rate card %s for approval", saved.id, extra={"rate_card_id": saved.id})
        return saved

    # -------------------------------------------------------------------------
    # PRICING
    # -------------------------------------------------------------------------

    def calculate_rate(self, rate_card_id: str, trip, now: datetime | None = None) -> ChargeComposition:
        """
        Price a trip against an active rate card.

        Raises:
            NotFoundError: unknown rate card id
            InactiveRateCardError: card is not ACTIVE or outside its dates
            (plus any error raised by RateCard.calculate_rate)
        """
        self.auth.check_permission(self.RESOURCE, "calculate")

        rate_card = self._get(rate_card_id)
        if not rate_card.is_active(now):
            raise InactiveRateCardError(rate_card.id, rate_card.status)

        return rate_card.calculate_rate(trip)


__all__ = [
    "RateCardService",
    "RateCardRepository",
    "RateCardValidator",
    "AuthService",
    "WorkflowService",
    "ValidationResult",
    "EDITABLE_STATUSES",
    "rate_rule_from_dict",
]
