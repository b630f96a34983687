"""
Tests for Rate Rule Calculation

Run with: pytest rate_cards/tests/test_rate_rule.py -v
"""

from decimal import Decimal

import pytest

from rate_cards.charges import ChargeComponent, FuelAdjustment
from rate_cards.conditions import Condition
from rate_cards.data.reference import WILDCARD
from rate_cards.enums import RateType
from rate_cards.errors import (
    ConditionsNotMetError,
    InvalidTripFieldError,
    MissingTripFieldError,
    UnsupportedRateTypeError,
)
from rate_cards.rate_rule import BASE_CHARGE_HANDLERS, RateRule, validate_rate_types
from rate_cards.trip import TripRecord


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def trip() -> TripRecord:
    return TripRecord(
        id="T-42",
        origin="MUM",
        destination="PUN",
        vehicle_type="TRUCK_20FT",
        distance=148.5,
        weight=2200,
        volume="18.75",
        stops=3,
    )


@pytest.fixture
def full_rule() -> RateRule:
    """Per-km rule with a toll %, conditional loading charge and fuel pass-through."""
    return RateRule(
        id="R-FULL",
        rate_type=RateType.PER_DISTANCE,
        base_rate="40",
        min_charge="2500",
        origin="MUM",
        destination="PUN",
        additional_charges=(
            ChargeComponent(name="toll", value="5", is_percentage=True),
            ChargeComponent(
                name="multi_drop", value="300",
                conditions=(Condition("stops", "GREATER_THAN_EQUAL", "3"),),
            ),
            ChargeComponent(
                name="hazmat", value="1000",
                conditions=(Condition("hazardous", "EQUALS", "true"),),
            ),
        ),
        fuel_adjustment=FuelAdjustment(
            enabled=True, base_price="100", current_price="104", adjustment_factor="0.5"
        ),
    )


# =============================================================================
# TESTS: BASE CHARGE BY RATE TYPE
# =============================================================================

class TestBaseCharge:

    def test_fixed(self, trip):
        rule = RateRule(rate_type=RateType.FIXED, base_rate="4500")
        assert rule.calculate_charge(trip).base_charge == Decimal("4500")

    def test_per_distance(self, trip):
        rule = RateRule(rate_type=RateType.PER_DISTANCE, base_rate="40")
        assert rule.calculate_charge(trip).base_charge == Decimal("5940")

    def test_per_weight(self, trip):
        rule = RateRule(rate_type=RateType.PER_WEIGHT, base_rate="1.25")
        assert rule.calculate_charge(trip).base_charge == Decimal("2750")

    def test_per_volume_string_quantity(self, trip):
        rule = RateRule(rate_type=RateType.PER_VOLUME, base_rate="200")
        assert rule.calculate_charge(trip).base_charge == Decimal("3750")

    @pytest.mark.parametrize("rate_type", [RateType.SLAB_BASED, RateType.ZONE_BASED])
    def test_slab_and_zone_price_at_base_rate(self, trip, rate_type):
        rule = RateRule(rate_type=rate_type, base_rate="999")
        assert rule.calculate_charge(trip).base_charge == Decimal("999")

    def test_raw_tag_accepted(self, trip):
        rule = RateRule(rate_type="PER_WEIGHT", base_rate="2")
        assert rule.rate_type is RateType.PER_WEIGHT
        assert rule.base_charge(trip) == Decimal("4400")

    def test_every_rate_type_has_handler(self):
        validate_rate_types()
        assert set(BASE_CHARGE_HANDLERS) == set(RateType)


# =============================================================================
# TESTS: MINIMUM CHARGE
# =============================================================================

class TestMinimumCharge:

    def test_clamped_to_minimum(self):
        """5 per km over 8 km is 40, raised to the minimum of 50."""
        rule = RateRule(rate_type=RateType.PER_DISTANCE, base_rate=5, min_charge=50)
        assert rule.calculate_charge({"id": "T", "distance": 8}).base_charge == Decimal("50")

    def test_above_minimum_unchanged(self):
        rule = RateRule(rate_type=RateType.PER_DISTANCE, base_rate=5, min_charge=50)
        assert rule.calculate_charge({"id": "T", "distance": 12}).base_charge == Decimal("60")

    def test_percentage_charges_use_clamped_base(self):
        rule = RateRule(
            rate_type=RateType.PER_DISTANCE, base_rate=5, min_charge=50,
            additional_charges=(ChargeComponent(name="toll", value=10, is_percentage=True),),
        )
        composition = rule.calculate_charge({"id": "T", "distance": 8})
        assert composition.additional_charges["toll"] == Decimal("5")
        assert composition.total_charge == Decimal("55")

    @pytest.mark.parametrize("field_name", ["base_rate", "min_charge"])
    def test_negative_amounts_rejected(self, field_name):
        kwargs = {"rate_type": RateType.FIXED, "base_rate": 10, field_name: -1}
        with pytest.raises(ValueError, match=field_name):
            RateRule(**kwargs)


# =============================================================================
# TESTS: FULL CALCULATION
# =============================================================================

class TestCalculateCharge:

    def test_full_composition(self, full_rule, trip):
        composition = full_rule.calculate_charge(trip)

        # 40 * 148.5 = 5940 (above 2500 minimum)
        assert composition.base_charge == Decimal("5940")
        assert dict(composition.additional_charges) == {
            "toll": Decimal("297"),
            "multi_drop": Decimal("300"),
            "hazmat": Decimal("0"),
        }
        # +4% fuel, half passed through -> 2% of 5940
        assert composition.fuel_adjustment == Decimal("118.8")
        assert composition.discounts == {}
        assert composition.surcharges == {}
        assert composition.total_charge == Decimal("6655.8")

    def test_unmet_charge_still_in_breakdown(self, full_rule, trip):
        breakdown = full_rule.calculate_charge(trip).breakdown()
        names = [line["name"] for line in breakdown["additional_charges"]]
        assert names == ["toll", "multi_drop", "hazmat"]

    def test_rule_conditions_met(self, trip):
        rule = RateRule(
            rate_type=RateType.FIXED, base_rate=100,
            conditions=(Condition("weight", "BETWEEN", "1000,5000"),),
        )
        assert rule.calculate_charge(trip).total_charge == Decimal("100")

    def test_rule_conditions_not_met(self, trip):
        failing = Condition("weight", "LESS_THAN", "1000")
        rule = RateRule(
            id="R-LIGHT", rate_type=RateType.FIXED, base_rate=100,
            conditions=(Condition("stops", "EQUALS", "3"), failing),
        )
        with pytest.raises(ConditionsNotMetError) as exc_info:
            rule.calculate_charge(trip)
        assert exc_info.value.rate_item_id == "R-LIGHT"
        assert exc_info.value.trip_id == "T-42"
        assert exc_info.value.condition is failing
        assert "weight LESS_THAN '1000'" in str(exc_info.value)

    def test_duplicate_charge_names_overwrite(self, trip):
        rule = RateRule(
            rate_type=RateType.FIXED, base_rate=100,
            additional_charges=(
                ChargeComponent(name="loading", value=10),
                ChargeComponent(name="loading", value=25),
            ),
        )
        composition = rule.calculate_charge(trip)
        assert dict(composition.additional_charges) == {"loading": Decimal("25")}
        assert composition.total_charge == Decimal("125")


# =============================================================================
# TESTS: ERRORS
# =============================================================================

class TestErrors:

    def test_missing_quantity_field(self):
        rule = RateRule(id="R-KG", rate_type=RateType.PER_WEIGHT, base_rate=2)
        with pytest.raises(MissingTripFieldError) as exc_info:
            rule.calculate_charge({"id": "T-7", "distance": 10})
        assert exc_info.value.field == "weight"
        assert exc_info.value.rate_item_id == "R-KG"

    def test_none_quantity_is_missing(self):
        rule = RateRule(rate_type=RateType.PER_DISTANCE, base_rate=2)
        with pytest.raises(MissingTripFieldError):
            rule.calculate_charge({"id": "T-7", "distance": None})

    def test_non_numeric_quantity(self):
        rule = RateRule(rate_type=RateType.PER_DISTANCE, base_rate=2)
        with pytest.raises(InvalidTripFieldError) as exc_info:
            rule.calculate_charge({"id": "T-7", "distance": "far"})
        assert exc_info.value.value == "far"

    @pytest.mark.parametrize("tag", ["PER_KM", "PER_KG", "HOURLY"])
    def test_unknown_rate_type(self, trip, tag):
        rule = RateRule(id="R-OLD", rate_type=tag, base_rate=10)
        with pytest.raises(UnsupportedRateTypeError) as exc_info:
            rule.calculate_charge(trip)
        assert exc_info.value.rate_type == tag
        assert tag in str(exc_info.value)


# =============================================================================
# TESTS: MATCHING
# =============================================================================

class TestMatching:

    def test_wildcards_match_anything(self):
        rule = RateRule(rate_type=RateType.FIXED, base_rate=1)
        assert rule.origin == rule.destination == rule.vehicle_type == WILDCARD
        assert rule.matches("ANY", "WHERE", "VAN") is True

    def test_concrete_keys_match_exactly(self, trip):
        rule = RateRule(rate_type=RateType.FIXED, base_rate=1, origin="MUM", vehicle_type="TRUCK_20FT")
        assert rule.matches_trip(trip) is True
        assert rule.matches("MUM", "PUN", "TRUCK_32FT") is False
        assert rule.matches("mum", "PUN", "TRUCK_20FT") is False

    def test_missing_trip_key_only_matches_wildcard(self):
        rule = RateRule(rate_type=RateType.FIXED, base_rate=1, destination="DEL")
        assert rule.matches_trip({"origin": "MUM"}) is False
        assert RateRule(rate_type=RateType.FIXED, base_rate=1).matches_trip({}) is True

    def test_numeric_trip_keys_match_text_keys(self):
        """Integer codes from a DataFrame column match keys stored as text."""
        rule = RateRule(rate_type=RateType.FIXED, base_rate=1, origin="90210", destination="10001")
        assert rule.matches_trip({"origin": 90210, "destination": 10001}) is True
        assert rule.matches_trip({"origin": 90210.0, "destination": "10001"}) is True
        assert rule.matches_trip({"origin": 90211, "destination": 10001}) is False


# =============================================================================
# TESTS: BINDING
# =============================================================================

class TestBind:

    def test_nested_items_follow_new_id(self):
        rule = RateRule(
            id="R-OLD", rate_type=RateType.FIXED, base_rate=1,
            conditions=(Condition("distance", "LESS_THAN", "50", rate_item_id="R-OLD"),),
            additional_charges=(
                ChargeComponent(
                    name="toll", value=5, rate_item_id="R-OLD",
                    conditions=(Condition("stops", "EQUALS", "1", rate_item_id="R-OLD"),),
                ),
            ),
        )
        bound = rule.bind("RC-1", "R-NEW")

        assert (bound.id, bound.rate_card_id) == ("R-NEW", "RC-1")
        assert bound.conditions[0].rate_item_id == "R-NEW"
        assert bound.conditions[0].id == rule.conditions[0].id
        assert bound.additional_charges[0].rate_item_id == "R-NEW"
        assert bound.additional_charges[0].conditions[0].rate_item_id == "R-NEW"
        assert rule.conditions[0].rate_item_id == "R-OLD"


# =============================================================================
# TESTS: FROM DICT
# =============================================================================

class TestFromDict:

    def test_nested_items_bound_to_rule(self):
        rule = RateRule.from_dict(
            {
                "id": "R-10",
                "origin": "DEL",
                "rate_type": "FIXED",
                "base_rate": "1200",
                "service_code": "FTL",
                "conditions": [{"parameter": "distance", "operator": "LESS_THAN", "value": "50"}],
                "additional_charges": [{"name": "loading", "type": "LOADING", "value": 200}],
                "fuel_adjustment": {"enabled": True, "base_price": 100, "current_price": 110,
                                    "adjustment_factor": 1},
            },
            rate_card_id="RC-1",
        )
        assert rule.id == "R-10"
        assert rule.rate_card_id == "RC-1"
        assert rule.destination == WILDCARD
        assert rule.conditions[0].rate_item_id == "R-10"
        assert rule.additional_charges[0].rate_item_id == "R-10"

        composition = rule.calculate_charge({"id": "T", "origin": "DEL", "distance": 20})
        assert composition.total_charge == Decimal("1520")
