# -*- coding: utf-8 -*-
"""
Collaborator interfaces consumed by the emissions engines.

The engines never talk to storage or the network directly. They depend on
three abstract collaborators:

- EmissionFactorProvider: standardized emission factors
- CalculationStore: persisted calculations, approvals and audit trail
- ValidationMetricsSource: aggregate validation statistics

``EmissionsApiClient`` implements all three against the backend REST API;
``StaticEmissionFactorProvider`` serves factors from a YAML registry.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import List, Optional

from ghgcore.emissions.models import (
    AuditTrailEvent,
    CalculationApprovalRequest,
    CalculationFilters,
    CalculationSummary,
    EmissionCalculation,
    EmissionFactor,
    ValidationMetrics,
)


class EmissionFactorProvider(ABC):
    """Source of emission factors in kg CO2e per factor unit."""

    @abstractmethod
    async def get_emissions_factors(
        self,
        source: Optional[str] = None,
        category: Optional[str] = None,
        fuel_type: Optional[str] = None,
        electricity_region: Optional[str] = None,
    ) -> List[EmissionFactor]:
        """
        Return every factor matching all of the given filters.

        Args:
            source: Publishing body or supplier (e.g. "EPA")
            category: Factor category (e.g. "stationary_combustion")
            fuel_type: Fuel, process or refrigerant identifier
            electricity_region: Grid region (e.g. "WECC")

        Returns:
            Matching factors, possibly empty
        """
        pass


class CalculationStore(ABC):
    """Persistence for completed calculations."""

    @abstractmethod
    async def get_calculations(
        self, filters: Optional[CalculationFilters] = None
    ) -> List[CalculationSummary]:
        pass

    @abstractmethod
    async def get_calculation(self, calculation_id: str) -> EmissionCalculation:
        pass

    @abstractmethod
    async def approve_calculation(
        self, calculation_id: str, approval: CalculationApprovalRequest
    ) -> None:
        pass

    @abstractmethod
    async def get_audit_trail(self, calculation_id: str) -> List[AuditTrailEvent]:
        pass


class ValidationMetricsSource(ABC):
    """Aggregate validation statistics over a date window."""

    @abstractmethod
    async def get_validation_metrics(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> ValidationMetrics:
        pass


__all__ = [
    "EmissionFactorProvider",
    "CalculationStore",
    "ValidationMetricsSource",
]
