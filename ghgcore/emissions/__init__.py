# -*- coding: utf-8 -*-
"""
ghgcore.emissions: Emissions Validation and Calculation SDK
============================================================

This package validates emissions calculation requests and turns activity
data into Scope 1, 2 and 3 emissions. It supports:

- Rule-based validation with stable error codes and severities
- Four-dimension data quality scoring (0-100)
- Scope 1 fuel, process and fugitive emissions from a factor registry
- Scope 2 location-based and market-based electricity emissions
- Scope 3 value-chain emissions with caller-supplied factors
- Unit conversion between energy, volume, mass and distance units
- SHA-256 provenance hashes on every calculation
- Prometheus metrics for validations, calculations and fallbacks
- An httpx client for the emissions backend API
- Thread-safe configuration with GHG_ env prefix

Key Components:
    - config: EmissionsEngineConfig with GHG_ env prefix
    - models: pydantic request and result models
    - validation_engine: ValidationEngine
    - quality_scorer: DataQualityScorer
    - calculation_engine: CalculationEngine
    - factor_provider: StaticEmissionFactorProvider (YAML registry)
    - api_client: EmissionsApiClient
    - service: EmissionsReportingService facade
    - builders: request construction helpers
    - metrics: Prometheus metrics

Example:
    >>> from ghgcore.emissions import (
    ...     CalculationEngine, StaticEmissionFactorProvider, ValidationEngine,
    ... )
    >>> validator = ValidationEngine()
    >>> engine = CalculationEngine(StaticEmissionFactorProvider(), validator)
    >>> result = validator.validate(request)
    >>> calculation = await engine.calculate(request)
"""

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------
from ghgcore.emissions.config import (
    EmissionsEngineConfig,
    get_config,
    reset_config,
    set_config,
)

# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------
from ghgcore.emissions.models import (
    ActivityType,
    ApprovalDecision,
    AuditTrailEvent,
    CalculationApprovalRequest,
    CalculationFilters,
    CalculationMetadata,
    CalculationRequest,
    CalculationStatus,
    CalculationSummary,
    DataQuality,
    ElectricityData,
    EmissionCalculation,
    EmissionFactor,
    FactorSource,
    FuelData,
    FugitiveData,
    LineItemResult,
    ProcessData,
    QualityScoreBreakdown,
    QualityTrend,
    ReportingPeriod,
    Scope1Request,
    Scope2Methodology,
    Scope2Request,
    Scope3Category,
    Scope3CategoryItem,
    Scope3Request,
    ScopeType,
    Severity,
    ValidationCode,
    ValidationErrorItem,
    ValidationErrorSummary,
    ValidationMetrics,
    ValidationResult,
    ValidationWarningItem,
    detect_scope,
    parse_calculation_request,
    parse_calculation_request_lenient,
)

# ---------------------------------------------------------------------------
# Collaborator interfaces and implementations
# ---------------------------------------------------------------------------
from ghgcore.emissions.interfaces import (
    CalculationStore,
    EmissionFactorProvider,
    ValidationMetricsSource,
)
from ghgcore.emissions.factor_provider import StaticEmissionFactorProvider
from ghgcore.emissions.api_client import EmissionsApiClient

# ---------------------------------------------------------------------------
# Engines
# ---------------------------------------------------------------------------
from ghgcore.emissions.unit_converter import UnitConverter
from ghgcore.emissions.quality_scorer import DataQualityScorer
from ghgcore.emissions.validation_engine import ValidationEngine
from ghgcore.emissions.calculation_engine import CalculationEngine
from ghgcore.emissions.service import (
    EmissionsReportingService,
    ProcessingOutcome,
    ProcessingStatus,
)

# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------
from ghgcore.emissions.builders import (
    build_request,
    create_electricity_data,
    create_fuel_data,
    create_reporting_period,
    create_scope3_item,
)

__all__ = [
    # Configuration
    "EmissionsEngineConfig",
    "get_config",
    "set_config",
    "reset_config",
    # Enumerations
    "ActivityType",
    "ApprovalDecision",
    "CalculationStatus",
    "DataQuality",
    "FactorSource",
    "Scope2Methodology",
    "Scope3Category",
    "ScopeType",
    "Severity",
    "ValidationCode",
    # Requests
    "CalculationMetadata",
    "CalculationRequest",
    "ElectricityData",
    "FuelData",
    "FugitiveData",
    "ProcessData",
    "ReportingPeriod",
    "Scope1Request",
    "Scope2Request",
    "Scope3CategoryItem",
    "Scope3Request",
    "detect_scope",
    "parse_calculation_request",
    "parse_calculation_request_lenient",
    # Results
    "AuditTrailEvent",
    "CalculationApprovalRequest",
    "CalculationFilters",
    "CalculationSummary",
    "EmissionCalculation",
    "EmissionFactor",
    "LineItemResult",
    "QualityScoreBreakdown",
    "QualityTrend",
    "ValidationErrorItem",
    "ValidationErrorSummary",
    "ValidationMetrics",
    "ValidationResult",
    "ValidationWarningItem",
    # Interfaces
    "CalculationStore",
    "EmissionFactorProvider",
    "ValidationMetricsSource",
    "StaticEmissionFactorProvider",
    "EmissionsApiClient",
    # Engines
    "UnitConverter",
    "DataQualityScorer",
    "ValidationEngine",
    "CalculationEngine",
    "EmissionsReportingService",
    "ProcessingOutcome",
    "ProcessingStatus",
    # Builders
    "build_request",
    "create_electricity_data",
    "create_fuel_data",
    "create_reporting_period",
    "create_scope3_item",
]
