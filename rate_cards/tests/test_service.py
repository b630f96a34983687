"""
Tests for the Rate Card Service

Collaborators are in-memory fakes recording what the service asked of them.

Run with: pytest rate_cards/tests/test_service.py -v
"""

from datetime import datetime
from decimal import Decimal

import pytest

from rate_cards.enums import RateCardStatus, RateType
from rate_cards.errors import InactiveRateCardError, NotFoundError, ValidationError
from rate_cards.rate_card import RateCard
from rate_cards.service import RateCardService, ValidationResult, rate_rule_from_dict


# =============================================================================
# FAKE COLLABORATORS
# =============================================================================

class InMemoryRepository:
    def __init__(self):
        self.rate_cards = {}
        self.versions = []
        self.deleted = []

    def find_by_id(self, rate_card_id):
        return self.rate_cards.get(rate_card_id)

    def find_all(self, filters=None):
        filters = filters or {}
        return [
            card for card in self.rate_cards.values()
            if all(getattr(card, key) == value for key, value in filters.items())
        ]

    def save(self, rate_card):
        self.rate_cards[rate_card.id] = rate_card
        return rate_card

    def delete(self, rate_card_id):
        self.deleted.append(rate_card_id)
        self.rate_cards.pop(rate_card_id, None)

    def save_version(self, version):
        self.versions.append(version)


class StubValidator:
    def __init__(self):
        self.card_errors = ()
        self.item_errors = ()
        self.overlap_errors = ()
        self.overlap_checks = []

    def validate_rate_card(self, data):
        return ValidationResult(not self.card_errors, self.card_errors)

    def validate_rate_item(self, data):
        return ValidationResult(not self.item_errors, self.item_errors)

    def check_for_overlaps(self, data):
        self.overlap_checks.append(dict(data))
        return ValidationResult(not self.overlap_errors, self.overlap_errors)


class PermissionDenied(Exception):
    pass


class StubAuth:
    def __init__(self, user_id="u-planner", denied=()):
        self.user_id = user_id
        self.denied = set(denied)
        self.checks = []

    def check_permission(self, resource, action):
        self.checks.append((resource, action))
        if action in self.denied:
            raise PermissionDenied(action)

    def get_current_user_id(self):
        return self.user_id


class RecordingWorkflow:
    def __init__(self):
        self.started = []

    def start_approval(self, rate_card):
        self.started.append(rate_card.id)


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def repository():
    return InMemoryRepository()


@pytest.fixture
def validator():
    return StubValidator()


@pytest.fixture
def auth():
    return StubAuth()


@pytest.fixture
def workflow():
    return RecordingWorkflow()


@pytest.fixture
def service(repository, validator, auth, workflow):
    return RateCardService(repository, validator, auth, workflow)


@pytest.fixture
def card_data():
    return {
        "name": "Acme FTL 2026",
        "client_id": "ACME",
        "description": "Full truckload lanes",
        "effective_from": "2026-01-01",
        "effective_to": "2026-12-31",
        "rate_items": [
            {"origin": "MUM", "destination": "PUN", "rate_type": "FIXED", "base_rate": "5000"},
            {"rate_type": "PER_DISTANCE", "base_rate": "40", "min_charge": "2500",
             "additional_charges": [{"name": "toll", "type": "TOLL", "value": 5,
                                     "is_percentage": True}]},
        ],
    }


@pytest.fixture
def active_card(repository) -> RateCard:
    card = RateCard(
        id="RC-LIVE", name="Live", client_id="ACME",
        effective_from=datetime(2026, 1, 1), status=RateCardStatus.ACTIVE,
        rate_items=(rate_rule_from_dict({"rate_type": "PER_DISTANCE", "base_rate": "40"}),),
    )
    return repository.save(card)


# =============================================================================
# TESTS: CREATE
# =============================================================================

class TestCreate:

    def test_creates_draft_with_items_and_version(self, service, repository, auth, card_data):
        card = service.create_rate_card(card_data)

        assert card.status == RateCardStatus.DRAFT
        assert card.created_by == card.updated_by == "u-planner"
        assert card.effective_from == datetime(2026, 1, 1)
        assert card.effective_to == datetime(2026, 12, 31)
        assert [item.rate_type for item in card.rate_items] == [RateType.FIXED, RateType.PER_DISTANCE]
        assert all(item.rate_card_id == card.id for item in card.rate_items)

        assert repository.find_by_id(card.id) is card
        assert len(repository.versions) == 1
        assert repository.versions[0].version_number == 1
        assert card.current_version_id == repository.versions[0].id
        assert ("rate_card", "create") in auth.checks

    def test_invalid_card_rejected(self, service, repository, validator, card_data):
        validator.card_errors = ("name is required",)
        with pytest.raises(ValidationError) as exc_info:
            service.create_rate_card(card_data)
        assert exc_info.value.errors == ["name is required"]
        assert repository.rate_cards == {}

    def test_overlap_rejected(self, service, validator, card_data):
        validator.overlap_errors = ("overlaps RC-OLD",)
        with pytest.raises(ValidationError, match="overlaps RC-OLD"):
            service.create_rate_card(card_data)

    def test_invalid_item_rejected(self, service, repository, validator, card_data):
        validator.item_errors = ("base_rate must be positive",)
        with pytest.raises(ValidationError):
            service.create_rate_card(card_data)
        assert repository.versions == []

    def test_permission_denied(self, repository, validator, workflow, card_data):
        service = RateCardService(repository, validator, StubAuth(denied={"create"}), workflow)
        with pytest.raises(PermissionDenied):
            service.create_rate_card(card_data)


# =============================================================================
# TESTS: UPDATE AND DELETE
# =============================================================================

class TestUpdate:

    def test_update_patches_header_and_replaces_items(self, service, repository, validator, card_data):
        card = service.create_rate_card(card_data)

        updated = service.update_rate_card(card.id, {
            "name": "Acme FTL 2026 rev B",
            "rate_items": [{"rate_type": "FIXED", "base_rate": "100"}],
        })

        assert updated.name == "Acme FTL 2026 rev B"
        assert updated.description == "Full truckload lanes"
        assert [item.base_rate for item in updated.rate_items] == [Decimal("100")]
        assert updated.latest_version_number == 2
        assert len(repository.versions) == 2
        assert validator.overlap_checks[-1]["id"] == card.id

    def test_rejected_items_leave_stored_card_untouched(self, service, repository, validator, card_data):
        card = service.create_rate_card(card_data)
        item_ids = [item.id for item in card.rate_items]

        validator.item_errors = ("base_rate must be positive",)
        with pytest.raises(ValidationError):
            service.update_rate_card(card.id, {
                "name": "Acme FTL 2026 rev B",
                "effective_from": "2026-02-01",
                "rate_items": [{"rate_type": "FIXED", "base_rate": "100"}],
            })

        stored = repository.find_by_id(card.id)
        assert stored.name == "Acme FTL 2026"
        assert stored.effective_from == datetime(2026, 1, 1)
        assert [item.id for item in stored.rate_items] == item_ids
        assert stored.latest_version_number == 1
        assert len(repository.versions) == 1

    def test_malformed_item_leaves_stored_card_untouched(self, service, repository, card_data):
        card = service.create_rate_card(card_data)
        with pytest.raises(ValueError):
            service.update_rate_card(card.id, {
                "name": "Broken",
                "rate_items": [{"rate_type": "FIXED", "base_rate": "-5"}],
            })
        stored = repository.find_by_id(card.id)
        assert stored.name == "Acme FTL 2026"
        assert len(stored.rate_items) == 2

    def test_update_without_items_keeps_items(self, service, card_data):
        card = service.create_rate_card(card_data)
        updated = service.update_rate_card(card.id, {"description": "New lanes"})
        assert len(updated.rate_items) == 2

    def test_update_unknown_card(self, service):
        with pytest.raises(NotFoundError):
            service.update_rate_card("missing", {})

    @pytest.mark.parametrize("status", [RateCardStatus.ACTIVE, RateCardStatus.PENDING_APPROVAL])
    def test_update_locked_status(self, service, active_card, status):
        active_card.status = status
        with pytest.raises(ValidationError, match=f"status {status.value}"):
            service.update_rate_card(active_card.id, {"name": "x"})

    def test_rejected_card_is_editable(self, service, card_data):
        card = service.create_rate_card(card_data)
        card.status = RateCardStatus.REJECTED
        assert service.update_rate_card(card.id, {"name": "Fixed"}).name == "Fixed"


class TestDelete:

    def test_delete_draft(self, service, repository, card_data):
        card = service.create_rate_card(card_data)
        service.delete_rate_card(card.id)
        assert repository.deleted == [card.id]

    def test_delete_active_rejected(self, service, repository, active_card):
        with pytest.raises(ValidationError):
            service.delete_rate_card(active_card.id)
        assert repository.deleted == []


# =============================================================================
# TESTS: READ
# =============================================================================

class TestRead:

    def test_get(self, service, active_card):
        assert service.get_rate_card("RC-LIVE") is active_card

    def test_get_unknown(self, service):
        with pytest.raises(NotFoundError):
            service.get_rate_card("missing")

    def test_list_with_filters(self, service, active_card, card_data):
        service.create_rate_card(card_data)
        assert service.list_rate_cards({"status": RateCardStatus.ACTIVE}) == [active_card]
        assert len(service.list_rate_cards()) == 2


# =============================================================================
# TESTS: SUBMIT FOR APPROVAL
# =============================================================================

class TestSubmit:

    def test_submit(self, service, repository, workflow, card_data):
        card = service.create_rate_card(card_data)
        submitted = service.submit_for_approval(card.id)

        assert submitted.status == RateCardStatus.PENDING_APPROVAL
        assert workflow.started == [card.id]
        assert repository.find_by_id(card.id).status == RateCardStatus.PENDING_APPROVAL

    def test_submit_twice_rejected(self, service, workflow, card_data):
        card = service.create_rate_card(card_data)
        service.submit_for_approval(card.id)
        with pytest.raises(ValidationError):
            service.submit_for_approval(card.id)
        assert workflow.started == [card.id]


# =============================================================================
# TESTS: PRICING
# =============================================================================

class TestCalculateRate:

    def test_prices_active_card(self, service, auth, active_card):
        trip = {"id": "T-1", "distance": 100}
        composition = service.calculate_rate("RC-LIVE", trip, now=datetime(2026, 5, 1))
        assert composition.total_charge == Decimal("4000")
        assert ("rate_card", "calculate") in auth.checks

    def test_draft_card_rejected(self, service, card_data):
        card = service.create_rate_card(card_data)
        with pytest.raises(InactiveRateCardError) as exc_info:
            service.calculate_rate(card.id, {"id": "T-1", "distance": 10}, now=datetime(2026, 5, 1))
        assert exc_info.value.status == RateCardStatus.DRAFT
        assert "DRAFT" in str(exc_info.value)

    def test_before_effective_date_rejected(self, service, active_card):
        with pytest.raises(InactiveRateCardError):
            service.calculate_rate("RC-LIVE", {"id": "T-1", "distance": 10}, now=datetime(2025, 5, 1))

    def test_unknown_card(self, service):
        with pytest.raises(NotFoundError):
            service.calculate_rate("missing", {"id": "T-1"})
