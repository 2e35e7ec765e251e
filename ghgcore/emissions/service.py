# -*- coding: utf-8 -*-
"""
Emissions Reporting Service

Validate-then-calculate orchestration. A request is always validated first;
calculation only runs when validation produced no CRITICAL errors.

Example:
    >>> service = EmissionsReportingService(calculation_engine, validation_engine)
    >>> outcome = await service.process(request)
    >>> outcome.status, outcome.calculation.total_co2e
"""

import logging
from enum import Enum
from typing import Any, List, Optional, Sequence

from pydantic import BaseModel, Field

from ghgcore.emissions.calculation_engine import CalculationEngine
from ghgcore.emissions.models import EmissionCalculation, Severity, ValidationResult
from ghgcore.emissions.validation_engine import ValidationEngine
from ghgcore.exceptions import ValidationError

logger = logging.getLogger(__name__)


class ProcessingStatus(str, Enum):
    CALCULATED = "calculated"
    BLOCKED = "blocked"


class ProcessingOutcome(BaseModel):
    """Validation result plus the calculation, when one was allowed to run."""

    validation: ValidationResult
    calculation: Optional[EmissionCalculation] = None
    status: ProcessingStatus
    blocked_reason: Optional[str] = Field(
        None, description="Why calculation did not run",
    )

    model_config = {"extra": "forbid"}

    @property
    def calculated(self) -> bool:
        return self.status == ProcessingStatus.CALCULATED


class EmissionsReportingService:
    """Runs validation and calculation as one unit of work."""

    def __init__(
        self,
        calculation_engine: CalculationEngine,
        validation_engine: Optional[ValidationEngine] = None,
    ):
        self.calculation_engine = calculation_engine
        self.validation_engine = validation_engine or calculation_engine.validation_engine

    async def process(self, request: Any) -> ProcessingOutcome:
        """
        Validate a request and calculate it if nothing critical was found.

        Major and minor findings do not block calculation. A request that
        passes validation but fails the calculator's guard checks is also
        reported as blocked. Factor, conversion and store failures propagate
        as CalculationError.
        """
        validation = self.validation_engine.validate(request)
        if validation.has_critical_errors:
            critical = [e for e in validation.errors if e.severity == Severity.CRITICAL]
            reason = "; ".join(f"{e.field}: {e.message}" for e in critical)
            logger.info("Calculation blocked by %d critical validation error(s)", len(critical))
            return ProcessingOutcome(
                validation=validation,
                status=ProcessingStatus.BLOCKED,
                blocked_reason=reason,
            )

        try:
            calculation = await self.calculation_engine.calculate(request)
        except ValidationError as e:
            logger.info("Calculation blocked by guard check: %s", e.message)
            return ProcessingOutcome(
                validation=validation,
                status=ProcessingStatus.BLOCKED,
                blocked_reason=e.message,
            )

        return ProcessingOutcome(
            validation=validation,
            calculation=calculation,
            status=ProcessingStatus.CALCULATED,
        )

    async def process_many(self, requests: Sequence[Any]) -> List[ProcessingOutcome]:
        """Process requests one after another, keeping input order."""
        return [await self.process(request) for request in requests]


__all__ = [
    "EmissionsReportingService",
    "ProcessingOutcome",
    "ProcessingStatus",
]
