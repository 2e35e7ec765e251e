# -*- coding: utf-8 -*-
"""Pytest configuration and shared fixtures."""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

import pytest

from ghgcore.determinism import DeterministicClock
from ghgcore.emissions.config import EmissionsEngineConfig, reset_config, set_config
from ghgcore.emissions.factor_provider import StaticEmissionFactorProvider
from ghgcore.emissions.interfaces import CalculationStore, ValidationMetricsSource
from ghgcore.emissions.models import (
    AuditTrailEvent,
    CalculationApprovalRequest,
    CalculationFilters,
    CalculationStatus,
    CalculationSummary,
    EmissionCalculation,
    ScopeType,
    ValidationMetrics,
)

FROZEN_AT = datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


# ==================== STATE ====================

@pytest.fixture(autouse=True)
def _isolate_global_state():
    """Reset the config singleton and the clock around every test."""
    reset_config()
    DeterministicClock.unfreeze()
    yield
    reset_config()
    DeterministicClock.unfreeze()


@pytest.fixture
def frozen_clock():
    """Freeze the deterministic clock at FROZEN_AT."""
    DeterministicClock.freeze(FROZEN_AT)
    yield FROZEN_AT
    DeterministicClock.unfreeze()


@pytest.fixture
def config():
    """Default engine configuration installed as the global config."""
    cfg = EmissionsEngineConfig()
    set_config(cfg)
    return cfg


@pytest.fixture
def provider(config):
    """Factor provider backed by the bundled registry."""
    return StaticEmissionFactorProvider(config=config)


# ==================== COLLABORATOR FAKES ====================

class FakeCalculationStore(CalculationStore):
    """In-memory calculation store that records approvals."""

    def __init__(self, calculations: Optional[List[EmissionCalculation]] = None, fail_with=None):
        self.calculations = {c.id: c for c in calculations or []}
        self.approvals: List[tuple] = []
        self.fail_with = fail_with

    def _maybe_fail(self):
        if self.fail_with is not None:
            raise self.fail_with

    async def get_calculations(self, filters: Optional[CalculationFilters] = None) -> List[CalculationSummary]:
        self._maybe_fail()
        summaries = [
            CalculationSummary(
                id=c.id,
                company_id=c.company_id,
                scope_type=c.scope_type,
                total_co2e=c.total_co2e,
                status=c.status,
            )
            for c in self.calculations.values()
        ]
        if filters and filters.company_id:
            summaries = [s for s in summaries if s.company_id == filters.company_id]
        return summaries

    async def get_calculation(self, calculation_id: str) -> EmissionCalculation:
        self._maybe_fail()
        return self.calculations[calculation_id]

    async def approve_calculation(self, calculation_id: str, approval: CalculationApprovalRequest) -> None:
        self._maybe_fail()
        self.approvals.append((calculation_id, approval))

    async def get_audit_trail(self, calculation_id: str) -> List[AuditTrailEvent]:
        self._maybe_fail()
        return [
            AuditTrailEvent(
                event_id="evt-1",
                calculation_id=calculation_id,
                event_type="created",
                timestamp=FROZEN_AT,
            )
        ]


class FakeMetricsSource(ValidationMetricsSource):
    """Metrics source returning a fixed payload or raising."""

    def __init__(self, payload: Any = None, fail_with=None):
        self.payload = payload
        self.fail_with = fail_with
        self.calls: List[tuple] = []

    async def get_validation_metrics(self, start_date=None, end_date=None):
        self.calls.append((start_date, end_date))
        if self.fail_with is not None:
            raise self.fail_with
        return self.payload


@pytest.fixture
def stored_calculation():
    return EmissionCalculation(
        id="calc-1",
        company_id="acme",
        scope_type=ScopeType.SCOPE1,
        total_co2e=Decimal("5.306"),
        status=CalculationStatus.COMPLETED,
    )


@pytest.fixture
def fake_store(stored_calculation):
    return FakeCalculationStore([stored_calculation])


@pytest.fixture
def fake_metrics_source():
    return FakeMetricsSource(ValidationMetrics(total_validations=10, success_rate=0.9))


# ==================== REQUEST PAYLOADS ====================

def _period(year: int = 2024) -> Dict[str, Any]:
    return {
        "start_date": date(year, 1, 1).isoformat(),
        "end_date": date(year, 12, 31).isoformat(),
        "reporting_year": year,
    }


@pytest.fixture
def scope1_payload() -> Dict[str, Any]:
    """A complete Scope 1 request: 1000 therms of natural gas."""
    return {
        "calculation_name": "FY2024 Scope 1",
        "company_id": "acme",
        "reporting_period": _period(),
        "fuel_data": [
            {"fuel_type": "natural_gas", "amount": "1000", "unit": "therms"},
        ],
    }


@pytest.fixture
def scope2_payload() -> Dict[str, Any]:
    """A complete location-based Scope 2 request: 10,000 kWh in WECC."""
    return {
        "calculation_name": "FY2024 Scope 2",
        "company_id": "acme",
        "reporting_period": _period(),
        "methodology": "location_based",
        "electricity_data": [
            {"amount": "10000", "unit": "kWh", "region": "WECC"},
        ],
    }


@pytest.fixture
def scope3_payload() -> Dict[str, Any]:
    """A complete Scope 3 request with two categories."""
    return {
        "calculation_name": "FY2024 Scope 3",
        "company_id": "acme",
        "reporting_period": _period(),
        "categories": [
            {
                "category": 6,
                "description": "Business travel",
                "quantity": "12000",
                "unit": "km",
                "emission_factor": "0.15",
                "factor_source": "DEFRA-2023",
            },
            {
                "category": 1,
                "description": "Purchased goods",
                "quantity": "50000",
                "unit": "USD",
                "emission_factor": "0.4",
            },
        ],
    }


# ==================== FAKE FACTORIES ====================

@pytest.fixture
def store_cls():
    """The in-memory store class, for tests that need a custom instance."""
    return FakeCalculationStore


@pytest.fixture
def metrics_source_cls():
    """The fake metrics source class, for tests that need a custom instance."""
    return FakeMetricsSource
