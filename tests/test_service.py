"""
Emissions Reporting Service Tests

Validate-then-calculate flow: critical validation errors block calculation,
guard failures are reported as blocked, everything else calculates.
"""

from decimal import Decimal

import pytest
from pydantic import ValidationError as PydanticValidationError

from ghgcore.emissions.calculation_engine import CalculationEngine
from ghgcore.emissions.service import (
    EmissionsReportingService,
    ProcessingOutcome,
    ProcessingStatus,
)
from ghgcore.emissions.validation_engine import ValidationEngine
from ghgcore.exceptions import CalculationError


@pytest.fixture
def service(config, provider):
    engine = CalculationEngine(provider, ValidationEngine(config), config=config)
    return EmissionsReportingService(engine)


class TestProcess:
    """Tests for EmissionsReportingService.process."""

    @pytest.mark.asyncio
    async def test_valid_request_calculated(self, service, scope1_payload):
        """A clean request is validated and calculated."""
        outcome = await service.process(scope1_payload)

        assert outcome.status == ProcessingStatus.CALCULATED
        assert outcome.calculated is True
        assert outcome.validation.is_valid is True
        assert outcome.calculation.total_co2e == Decimal("5.306")
        assert outcome.blocked_reason is None

    @pytest.mark.asyncio
    async def test_critical_error_blocks(self, service, scope1_payload):
        """A missing company id never reaches the calculator."""
        scope1_payload.pop("company_id")

        outcome = await service.process(scope1_payload)

        assert outcome.status == ProcessingStatus.BLOCKED
        assert outcome.calculation is None
        assert outcome.blocked_reason == "company_id: Company ID is required"

    @pytest.mark.asyncio
    async def test_unparseable_input_blocks(self, service):
        """Input of the wrong type is blocked with a root error."""
        outcome = await service.process(None)

        assert outcome.status == ProcessingStatus.BLOCKED
        assert outcome.validation.quality_score == 0
        assert outcome.blocked_reason.startswith("root: ")

    @pytest.mark.asyncio
    async def test_warnings_do_not_block_but_guards_do(self, service, scope1_payload):
        """A zero amount only warns in validation but fails the guard check."""
        scope1_payload["fuel_data"][0]["amount"] = "0"

        outcome = await service.process(scope1_payload)

        assert outcome.validation.is_valid is True
        assert outcome.status == ProcessingStatus.BLOCKED
        assert outcome.blocked_reason == "Quantity must be greater than 0 for entry 1"

    @pytest.mark.asyncio
    async def test_market_request_without_region(self, service, scope2_payload):
        """Market-based items with a supplier factor need no region."""
        scope2_payload["methodology"] = "market_based"
        scope2_payload["electricity_data"][0]["supplier_emission_factor"] = "0.2"
        scope2_payload["electricity_data"][0].pop("region")

        outcome = await service.process(scope2_payload)

        assert outcome.calculated
        assert outcome.calculation.total_co2e == Decimal("2.000")

    @pytest.mark.asyncio
    async def test_calculation_failure_propagates(self, service, scope1_payload):
        """Factor lookup failures are not folded into a blocked outcome."""
        scope1_payload["fuel_data"][0]["fuel_type"] = "unobtainium"

        with pytest.raises(CalculationError):
            await service.process(scope1_payload)

    @pytest.mark.asyncio
    async def test_uses_engine_validator_by_default(self, config, provider):
        """Without an explicit validator the engine's is used."""
        validator = ValidationEngine(config)
        engine = CalculationEngine(provider, validator, config=config)

        assert EmissionsReportingService(engine).validation_engine is validator


class TestProcessMany:
    """Tests for EmissionsReportingService.process_many."""

    @pytest.mark.asyncio
    async def test_order_preserved(self, service, scope1_payload, scope2_payload, scope3_payload):
        """Outcomes come back in input order, blocked ones included."""
        scope2_payload["company_id"] = ""

        outcomes = await service.process_many([scope1_payload, scope2_payload, scope3_payload])

        assert [o.status for o in outcomes] == [
            ProcessingStatus.CALCULATED,
            ProcessingStatus.BLOCKED,
            ProcessingStatus.CALCULATED,
        ]
        assert outcomes[2].calculation.total_co2e == Decimal("21.800")


class TestProcessingOutcome:
    """Tests for the outcome model."""

    def test_extra_fields_rejected(self, scope1_payload):
        """Outcomes are strict."""
        validation = ValidationEngine().validate(scope1_payload)

        with pytest.raises(PydanticValidationError):
            ProcessingOutcome(validation=validation, status="calculated", unexpected=True)
