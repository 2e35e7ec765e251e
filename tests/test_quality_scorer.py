"""Tests for DataQualityScorer."""

from decimal import Decimal

import pytest

from ghgcore.emissions.config import EmissionsEngineConfig
from ghgcore.emissions.models import Scope1Request, Scope2Request, Scope3Request
from ghgcore.emissions.quality_scorer import DataQualityScorer


@pytest.fixture
def scorer(config):
    return DataQualityScorer(config)


class TestOverallScore:
    """Tests for the weighted overall score."""

    def test_perfect_scope1_scores_99(self, scorer, scope1_payload):
        """Complete, accurate, consistent data loses only the timeliness placeholder."""
        request = Scope1Request.model_validate(scope1_payload)

        assert scorer.score(request) == 99

    def test_none_scores_zero(self, scorer):
        """No request scores 0."""
        assert scorer.score(None) == 0

    def test_breakdown_reports_sub_scores(self, scorer, scope2_payload):
        """The breakdown exposes every dimension and the weights."""
        breakdown = scorer.breakdown(Scope2Request.model_validate(scope2_payload))

        assert breakdown.completeness == 100.0
        assert breakdown.timeliness == 90.0
        assert breakdown.weights["completeness"] == 0.4
        assert breakdown.overall == 99

    def test_custom_weights(self, scope1_payload):
        """Weights come from config and are normalized by their sum."""
        cfg = EmissionsEngineConfig(
            completeness_weight=0, accuracy_weight=0,
            consistency_weight=0, timeliness_weight=1,
        )
        request = Scope1Request.model_validate(scope1_payload)

        assert DataQualityScorer(cfg).score(request) == 90


class TestCompleteness:
    """Tests for the completeness sub-score."""

    def test_missing_fuel_fields(self, scorer, scope1_payload):
        """Missing fuel type and unit lower completeness."""
        scope1_payload["fuel_data"][0].pop("fuel_type")
        scope1_payload["fuel_data"][0].pop("unit")
        request = Scope1Request.model_validate(scope1_payload)

        # 3 of 5 expected fields present
        assert scorer.completeness(request) == Decimal("60")

    def test_missing_company(self, scorer, scope3_payload):
        """Scope 3 counts four fields per item plus the two top-level fields."""
        scope3_payload.pop("company_id")
        request = Scope3Request.model_validate(scope3_payload)

        assert scorer.completeness(request) == Decimal(9) / Decimal(10) * 100


class TestAccuracy:
    """Tests for the accuracy sub-score."""

    def test_negative_quantity(self, scorer, scope1_payload):
        """Each negative quantity costs 10 points."""
        scope1_payload["fuel_data"][0]["amount"] = "-5"

        assert scorer.accuracy(Scope1Request.model_validate(scope1_payload)) == Decimal("90")

    def test_outlier_fuel_amount(self, scorer, scope1_payload):
        """Fuel amounts above the threshold cost 5 points."""
        scope1_payload["fuel_data"][0]["amount"] = "2000000"

        assert scorer.accuracy(Scope1Request.model_validate(scope1_payload)) == Decimal("95")

    def test_outlier_only_applies_to_fuel(self, scorer, scope2_payload):
        """Large electricity amounts are not outliers."""
        scope2_payload["electricity_data"][0]["amount"] = "2000000"

        assert scorer.accuracy(Scope2Request.model_validate(scope2_payload)) == Decimal("100")


class TestConsistency:
    """Tests for the consistency sub-score."""

    def test_unit_variety(self, scorer, scope1_payload):
        """More than three distinct units cost 10 points."""
        scope1_payload["fuel_data"] = [
            {"fuel_type": "natural_gas", "amount": "1", "unit": unit}
            for unit in ("therms", "MMBtu", "scf", "kWh")
        ]

        assert scorer.consistency(Scope1Request.model_validate(scope1_payload)) == Decimal("90")

    def test_case_variants_are_one_unit(self, scorer, scope1_payload):
        """Units are compared after normalization."""
        scope1_payload["fuel_data"] = [
            {"fuel_type": "diesel", "amount": "1", "unit": unit}
            for unit in ("Gallons", "gallons", "GALLONS", "liters")
        ]

        assert scorer.consistency(Scope1Request.model_validate(scope1_payload)) == Decimal("100")

    def test_year_mismatch(self, scorer, scope1_payload):
        """Neither boundary in the reporting year costs 15 points."""
        scope1_payload["reporting_period"]["reporting_year"] = 2022

        assert scorer.consistency(Scope1Request.model_validate(scope1_payload)) == Decimal("85")

    def test_fiscal_year_spanning_boundary(self, scorer, scope1_payload):
        """One boundary in the reporting year is enough."""
        scope1_payload["reporting_period"] = {
            "start_date": "2023-07-01", "end_date": "2024-06-30", "reporting_year": 2024,
        }

        assert scorer.consistency(Scope1Request.model_validate(scope1_payload)) == Decimal("100")
