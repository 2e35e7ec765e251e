"""Tests for emissions request parsing and result models."""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError as PydanticValidationError

from ghgcore.emissions.models import (
    CalculationFilters,
    CalculationSummary,
    EmissionCalculation,
    EmissionFactor,
    ReportingPeriod,
    Scope1Request,
    Scope2Methodology,
    Scope2Request,
    Scope3Category,
    Scope3Request,
    ScopeType,
    Severity,
    ValidationCode,
    ValidationErrorItem,
    ValidationResult,
    detect_scope,
    format_error_location,
    parse_calculation_request,
    parse_calculation_request_lenient,
)
from ghgcore.exceptions import InvalidSchema


# ==============================================================================
# Request parsing
# ==============================================================================

class TestDetectScope:
    """Tests for detect_scope."""

    def test_activity_field_decides(self):
        """The activity list key identifies the scope."""
        assert detect_scope({"fuel_data": []}) == ScopeType.SCOPE1
        assert detect_scope({"electricity_data": []}) == ScopeType.SCOPE2
        assert detect_scope({"categories": []}) == ScopeType.SCOPE3

    def test_explicit_scope_wins(self):
        """An explicit scope key overrides the activity field."""
        assert detect_scope({"scope": "scope_2", "fuel_data": []}) == ScopeType.SCOPE2

    def test_unrecognized(self):
        """Non-mappings and unknown shapes give None."""
        assert detect_scope({"company_id": "acme"}) is None
        assert detect_scope("scope1") is None
        assert detect_scope(None) is None


class TestParseCalculationRequest:
    """Tests for parse_calculation_request."""

    def test_parses_scope1(self, scope1_payload):
        """A Scope 1 mapping becomes a Scope1Request with Decimal amounts."""
        request = parse_calculation_request(scope1_payload)

        assert isinstance(request, Scope1Request)
        assert request.fuel_data[0].amount == Decimal("1000")
        assert request.reporting_period.start_date == date(2024, 1, 1)

    def test_typed_request_passes_through(self, scope3_payload):
        """Typed requests are returned unchanged."""
        request = Scope3Request.model_validate(scope3_payload)

        assert parse_calculation_request(request) is request

    def test_unknown_shape(self):
        """Unrecognized input raises InvalidSchema with no field errors."""
        with pytest.raises(InvalidSchema) as exc_info:
            parse_calculation_request(["not", "a", "request"])

        assert "Scope 1, Scope 2 or Scope 3" in exc_info.value.message
        assert exc_info.value.schema_errors == []

    def test_field_type_errors(self, scope1_payload):
        """Wrong field types are reported with dotted paths."""
        scope1_payload["fuel_data"][0]["amount"] = "lots"

        with pytest.raises(InvalidSchema) as exc_info:
            parse_calculation_request(scope1_payload)

        fields = [e["field"] for e in exc_info.value.schema_errors]
        assert fields == ["fuel_data[0].amount"]

    def test_unknown_keys_ignored(self, scope2_payload):
        """Extra keys do not fail parsing."""
        scope2_payload["dashboard_widget"] = "x"

        assert isinstance(parse_calculation_request(scope2_payload), Scope2Request)

    def test_invalid_methodology_kept_as_string(self, scope2_payload):
        """An unsupported methodology survives parsing for the validator."""
        scope2_payload["methodology"] = "hybrid"
        request = parse_calculation_request(scope2_payload)

        assert request.methodology == "hybrid"
        assert request.methodology_enum is None

    def test_format_error_location(self):
        """Integer parts render as indexes."""
        assert format_error_location(("fuel_data", 0, "amount")) == "fuel_data[0].amount"
        assert format_error_location(()) == "root"


class TestParseCalculationRequestLenient:
    """Tests for parse_calculation_request_lenient."""

    def test_clean_input_has_no_errors(self, scope1_payload):
        """Well-typed input parses with an empty error list."""
        request, errors = parse_calculation_request_lenient(scope1_payload)

        assert isinstance(request, Scope1Request)
        assert errors == []

    def test_mistyped_fields_dropped(self, scope1_payload):
        """Mistyped values are reported and left unset; the rest survives."""
        scope1_payload["fuel_data"][0]["heating_value"] = "n/a"
        scope1_payload["reporting_period"]["end_date"] = "2024-02-30"

        request, errors = parse_calculation_request_lenient(scope1_payload)

        assert {e["field"] for e in errors} == {
            "fuel_data[0].heating_value",
            "reporting_period.end_date",
        }
        assert request.fuel_data[0].heating_value is None
        assert request.fuel_data[0].amount == Decimal("1000")
        assert request.reporting_period.end_date is None
        assert request.reporting_period.start_date == date(2024, 1, 1)

    def test_input_not_mutated(self, scope1_payload):
        """The caller's mapping keeps its mistyped value."""
        scope1_payload["fuel_data"][0]["amount"] = "lots"

        parse_calculation_request_lenient(scope1_payload)

        assert scope1_payload["fuel_data"][0]["amount"] == "lots"

    def test_unknown_shape_still_raises(self):
        """Unrecognized input is not recoverable."""
        with pytest.raises(InvalidSchema):
            parse_calculation_request_lenient({"company_id": "acme"})


class TestReportingPeriod:
    """Tests for ReportingPeriod."""

    def test_length_days(self):
        """length_days is end minus start, None when incomplete."""
        period = ReportingPeriod(start_date=date(2024, 1, 1), end_date=date(2024, 12, 31))

        assert period.length_days == 365
        assert ReportingPeriod(start_date=date(2024, 1, 1)).length_days is None


class TestScope3Category:
    """Tests for Scope3Category."""

    def test_key_and_label(self):
        """Categories expose a stable key and a label."""
        assert Scope3Category(6).key == "category_6"
        assert Scope3Category.BUSINESS_TRAVEL.label == "Business travel"
        assert len(Scope3Category) == 15


# ==============================================================================
# Result models
# ==============================================================================

class TestValidationResult:
    """Tests for ValidationResult."""

    def _result(self, **kwargs):
        defaults = dict(
            is_valid=False,
            errors=[ValidationErrorItem(
                code=ValidationCode.MISSING_REQUIRED_FIELD,
                message="Company ID is required",
                field="company_id",
                severity=Severity.CRITICAL,
            )],
            quality_score=40,
            validated_at=datetime(2026, 1, 15, tzinfo=timezone.utc),
        )
        defaults.update(kwargs)
        return ValidationResult(**defaults)

    def test_payload_uses_camel_case(self):
        """to_payload emits isValid / qualityScore / validatedAt."""
        payload = self._result().to_payload()

        assert payload["isValid"] is False
        assert payload["qualityScore"] == 40
        assert payload["validatedAt"].startswith("2026-01-15")
        assert payload["errors"][0]["severity"] == "critical"

    def test_accepts_camel_case_input(self):
        """Aliased keys are accepted on input."""
        result = ValidationResult.model_validate({"isValid": True, "qualityScore": 99})

        assert result.is_valid is True
        assert result.quality_score == 99

    def test_score_bounds(self):
        """Scores outside 0-100 are rejected."""
        with pytest.raises(PydanticValidationError):
            self._result(quality_score=101)

    def test_find_errors(self):
        """find_errors filters by code and field."""
        result = self._result()

        assert result.has_critical_errors
        assert len(result.find_errors(ValidationCode.MISSING_REQUIRED_FIELD, "company_id")) == 1
        assert result.find_errors(field="reporting_period") == []

    def test_frozen(self):
        """Results are immutable."""
        result = self._result()
        with pytest.raises(PydanticValidationError):
            result.quality_score = 10


class TestEmissionFactor:
    """Tests for EmissionFactor aliases."""

    def test_backend_field_names(self):
        """Backend names map onto the canonical fields."""
        factor = EmissionFactor.model_validate({
            "factor_code": "EGRID-WECC",
            "category": "electricity_grid",
            "electricity_region": "WECC",
            "co2e_factor": "0.322",
            "unit": "kWh",
            "source": "EPA eGRID",
            "version": 2022,
        })

        assert factor.factor_key == "EGRID-WECC"
        assert factor.region == "WECC"
        assert factor.factor_value == Decimal("0.322")
        assert factor.factor_unit == "kWh"
        assert factor.vintage == "2022"

    def test_negative_factor_rejected(self):
        """Factors must be non-negative."""
        with pytest.raises(PydanticValidationError):
            EmissionFactor(
                factor_key="X", category="c", factor_value=Decimal("-1"),
                factor_unit="kWh", source="S",
            )


class TestCalculationModels:
    """Tests for stored calculation models."""

    def test_scope_normalized(self):
        """Backend scope spellings such as 'scope_1' are normalized."""
        calc = EmissionCalculation.model_validate({
            "id": "c1", "company_id": "acme", "scope_type": "Scope_1",
            "total_co2e": "1.5", "data_quality_score": 87.5,
        })

        assert calc.scope_type == ScopeType.SCOPE1
        assert calc.data_quality_score == 88

    def test_summary_aliases(self):
        """Summaries accept id / scope_type aliases."""
        summary = CalculationSummary.model_validate({
            "id": "c1", "company_id": "acme", "scope_type": "scope2",
            "total_co2e": "3.22", "status": "completed",
        })

        assert summary.calculation_id == "c1"
        assert summary.scope == ScopeType.SCOPE2

    def test_filters_query_params(self):
        """Filters render only set values, as strings."""
        filters = CalculationFilters(company_id="acme", scope=ScopeType.SCOPE1, limit=10)

        assert filters.to_query_params() == {"company_id": "acme", "scope": "scope1", "limit": "10"}

    def test_scope2_methodology_enum(self):
        """A valid methodology string maps onto the enum."""
        request = Scope2Request(methodology="market_based")

        assert request.methodology_enum == Scope2Methodology.MARKET_BASED
