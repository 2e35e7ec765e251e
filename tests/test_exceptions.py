"""Tests for the ghgcore exception hierarchy.

Covers:
- Base exception functionality and error codes
- Calculation and data exception context
- Serialization
- Exception utilities (chain formatting, retriability)
"""

import json
from datetime import datetime

import pytest

from ghgcore.exceptions import (
    CalculationError,
    CalculationException,
    ConfigurationError,
    DataAccessError,
    DataException,
    GHGCoreException,
    InvalidSchema,
    MissingData,
    RequestTimeoutError,
    UnitConversionError,
    ValidationError,
    format_exception_chain,
    is_retriable,
)


# ==============================================================================
# Base Exception Tests
# ==============================================================================

class TestGHGCoreException:
    """Tests for base GHGCoreException."""

    def test_create_basic_exception(self):
        """Can create basic exception with message."""
        exc = GHGCoreException("Something went wrong")

        assert exc.message == "Something went wrong"
        assert exc.error_code.startswith("GHG_")
        assert exc.context == {}
        assert isinstance(exc.timestamp, datetime)
        assert exc.timestamp.tzinfo is not None

    def test_explicit_error_code(self):
        """Explicit error code overrides the generated one."""
        exc = GHGCoreException("Test error", error_code="GHG_TEST_001", context={"k": "v"})

        assert exc.error_code == "GHG_TEST_001"
        assert exc.context == {"k": "v"}

    def test_str_includes_code_and_message(self):
        """String form is '[code] - message'."""
        exc = MissingData("No factor")

        assert str(exc) == "[GHG_DATA_MISSING_DATA] - No factor"

    def test_to_json_round_trips_through_json(self):
        """to_json output is valid JSON carrying the error fields."""
        exc = DataAccessError("boom", status_code=503, operation="get_calculation")
        payload = json.loads(exc.to_json())

        assert payload["error_type"] == "DataAccessError"
        assert payload["message"] == "boom"
        assert payload["context"]["status_code"] == 503
        assert payload["context"]["operation"] == "get_calculation"


# ==============================================================================
# Hierarchy Tests
# ==============================================================================

class TestHierarchy:
    """Tests for class relationships and error code prefixes."""

    @pytest.mark.parametrize("cls,parent", [
        (ValidationError, CalculationException),
        (CalculationError, CalculationException),
        (ConfigurationError, CalculationException),
        (InvalidSchema, DataException),
        (MissingData, DataException),
        (UnitConversionError, DataException),
        (DataAccessError, DataException),
        (RequestTimeoutError, DataAccessError),
    ])
    def test_subclass_relationships(self, cls, parent):
        """Every error sits under its family base and GHGCoreException."""
        assert issubclass(cls, parent)
        assert issubclass(cls, GHGCoreException)

    def test_calculation_prefix(self):
        """Calculation family codes start with GHG_CALC."""
        assert ValidationError("x").error_code == "GHG_CALC_VALIDATION_ERROR"

    def test_data_prefix(self):
        """Data family codes start with GHG_DATA."""
        assert InvalidSchema("x").error_code == "GHG_DATA_INVALID_SCHEMA"


# ==============================================================================
# Context Tests
# ==============================================================================

class TestContext:
    """Tests for subclass-specific context fields."""

    def test_validation_error_field_and_scope(self):
        """ValidationError records the offending field and scope."""
        exc = ValidationError("Quantity is required for entry 1", field="fuel_data[0].amount", scope="scope1")

        assert exc.field == "fuel_data[0].amount"
        assert exc.scope == "scope1"
        assert exc.context == {"field": "fuel_data[0].amount", "scope": "scope1"}

    def test_calculation_error_records_cause(self):
        """CalculationError stores the cause type and message."""
        cause = MissingData("No emission factor found")
        exc = CalculationError("Failed", scope="scope1", cause=cause)

        assert exc.context["cause_type"] == "MissingData"
        assert "No emission factor found" in exc.context["cause"]

    def test_invalid_schema_errors(self):
        """InvalidSchema keeps per-field schema errors."""
        errors = [{"field": "fuel_data[0].amount", "message": "Input should be a valid decimal"}]
        exc = InvalidSchema("Invalid field types", schema_errors=errors)

        assert exc.schema_errors == errors

    def test_missing_data_fields(self):
        """MissingData records the data type and missing fields."""
        exc = MissingData("missing", data_type="emission_factor", missing_fields=["region"])

        assert exc.context["data_type"] == "emission_factor"
        assert exc.context["missing_fields"] == ["region"]

    def test_unit_conversion_units(self):
        """UnitConversionError records both units."""
        exc = UnitConversionError("bad", from_unit="kg", to_unit="kWh")

        assert exc.context["from_unit"] == "kg"
        assert exc.context["to_unit"] == "kWh"


# ==============================================================================
# Utility Tests
# ==============================================================================

class TestFormatExceptionChain:
    """Tests for format_exception_chain."""

    def test_formats_cause_chain(self):
        """Each exception in the __cause__ chain gets a line."""
        try:
            try:
                raise KeyError("natural_gas")
            except KeyError as e:
                raise CalculationError("Failed to calculate", cause=e) from e
        except CalculationError as exc:
            text = format_exception_chain(exc)

        assert "[GHG_CALC_CALCULATION_ERROR] - Failed to calculate" in text
        assert "KeyError" in text


class TestIsRetriable:
    """Tests for is_retriable."""

    def test_validation_not_retriable(self):
        """Bad input never becomes good on retry."""
        assert is_retriable(ValidationError("x")) is False
        assert is_retriable(InvalidSchema("x")) is False
        assert is_retriable(MissingData("x")) is False
        assert is_retriable(UnitConversionError("x")) is False

    def test_timeout_retriable(self):
        """Timeouts are retriable."""
        assert is_retriable(RequestTimeoutError("slow")) is True

    @pytest.mark.parametrize("status,expected", [
        (500, True),
        (503, True),
        (429, True),
        (404, False),
        (400, False),
    ])
    def test_http_status(self, status, expected):
        """5xx and 429 are retriable, other 4xx are not."""
        assert is_retriable(DataAccessError("x", status_code=status)) is expected

    def test_calculation_error_follows_cause(self):
        """CalculationError is retriable only when its cause is."""
        transient = DataAccessError("x", status_code=503)
        wrapped = CalculationError("Failed", cause=transient)
        wrapped.__cause__ = transient
        permanent = CalculationError("Failed")

        assert is_retriable(wrapped) is True
        assert is_retriable(permanent) is False
