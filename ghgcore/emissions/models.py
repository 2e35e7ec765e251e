# -*- coding: utf-8 -*-
"""
Emissions Data Models

Pydantic v2 data models for the emissions calculation and validation
engines.

Enumerations (10):
    - Severity, ScopeType, CalculationStatus, Scope2Methodology,
      DataQuality, ActivityType, FactorSource, ApprovalDecision,
      ValidationCode, Scope3Category

Request models (lenient; every field optional so incomplete drafts can be
diagnosed instead of rejected):
    - ReportingPeriod, CalculationMetadata, FuelData, ElectricityData,
      ProcessData, FugitiveData, Scope3CategoryItem,
      Scope1Request, Scope2Request, Scope3Request (CalculationRequest)

Result models (strict):
    - ValidationErrorItem, ValidationWarningItem, ValidationResult,
      QualityScoreBreakdown, ValidationErrorSummary, QualityTrend,
      ValidationMetrics, EmissionFactor, LineItemResult,
      EmissionCalculation, CalculationSummary, CalculationFilters,
      CalculationApprovalRequest, AuditTrailEvent

``parse_calculation_request`` (strict) and
``parse_calculation_request_lenient`` (drops mistyped fields) are the only
places untyped input is turned into a typed request.

Author: ghgcore maintainers
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from datetime import date, datetime
from decimal import Decimal
from enum import Enum, IntEnum
from typing import Any, ClassVar, Dict, List, Optional, Tuple, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    Field,
    ValidationError as PydanticValidationError,
    field_validator,
)

from ghgcore.determinism import round_half_up, utcnow
from ghgcore.exceptions import InvalidSchema

# =============================================================================
# Enumerations (10)
# =============================================================================


class Severity(str, Enum):
    """Severity of a validation finding.

    Any CRITICAL error blocks calculation.
    """

    CRITICAL = "critical"
    MAJOR = "major"
    MINOR = "minor"


class ScopeType(str, Enum):
    """GHG Protocol emission scope."""

    SCOPE1 = "scope1"
    SCOPE2 = "scope2"
    SCOPE3 = "scope3"


class CalculationStatus(str, Enum):
    """Lifecycle status of a stored calculation."""

    DRAFT = "draft"
    COMPLETED = "completed"
    APPROVED = "approved"
    REJECTED = "rejected"


class Scope2Methodology(str, Enum):
    """Scope 2 accounting method.

    LOCATION_BASED uses the average grid factor of the region where the
    electricity is consumed. MARKET_BASED uses contractual instruments
    (supplier factors, RECs, PPAs) and falls back to the grid factor for
    consumption no instrument covers.
    """

    LOCATION_BASED = "location_based"
    MARKET_BASED = "market_based"


class DataQuality(str, Enum):
    """Self-declared quality of a line item's activity data."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ActivityType(str, Enum):
    """Emission source category of a Scope 1 or Scope 2 line item."""

    STATIONARY_COMBUSTION = "stationary_combustion"
    MOBILE_COMBUSTION = "mobile_combustion"
    FUGITIVE_EMISSIONS = "fugitive_emissions"
    PROCESS_EMISSIONS = "process_emissions"
    GRID_ELECTRICITY = "grid_electricity"
    RENEWABLE_ELECTRICITY = "renewable_electricity"


class FactorSource(str, Enum):
    """Where the emission factor applied to a line item came from."""

    PROVIDER = "provider"
    LOCATION = "location"
    MARKET = "market"
    LOCATION_FALLBACK = "location_fallback"
    SUPPLIED = "supplied"


class ApprovalDecision(str, Enum):
    """Approver decision on a completed calculation."""

    APPROVE = "approve"
    REJECT = "reject"


class ValidationCode(str, Enum):
    """Stable codes emitted by the validation engine."""

    MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"
    MISSING_ACTIVITY_DATA = "MISSING_ACTIVITY_DATA"
    INVALID_DATA_TYPE = "INVALID_DATA_TYPE"
    DATA_OUT_OF_RANGE = "DATA_OUT_OF_RANGE"
    INVALID_DATE_RANGE = "INVALID_DATE_RANGE"
    INVALID_METHODOLOGY = "INVALID_METHODOLOGY"
    ZERO_ACTIVITY_DATA = "ZERO_ACTIVITY_DATA"
    LONG_REPORTING_PERIOD = "LONG_REPORTING_PERIOD"
    MISSING_ELECTRICITY_REGION = "MISSING_ELECTRICITY_REGION"
    VALIDATION_ERROR = "VALIDATION_ERROR"


class Scope3Category(IntEnum):
    """The 15 GHG Protocol Scope 3 categories."""

    PURCHASED_GOODS_AND_SERVICES = 1
    CAPITAL_GOODS = 2
    FUEL_AND_ENERGY_RELATED_ACTIVITIES = 3
    UPSTREAM_TRANSPORTATION = 4
    WASTE_GENERATED_IN_OPERATIONS = 5
    BUSINESS_TRAVEL = 6
    EMPLOYEE_COMMUTING = 7
    UPSTREAM_LEASED_ASSETS = 8
    DOWNSTREAM_TRANSPORTATION = 9
    PROCESSING_OF_SOLD_PRODUCTS = 10
    USE_OF_SOLD_PRODUCTS = 11
    END_OF_LIFE_TREATMENT = 12
    DOWNSTREAM_LEASED_ASSETS = 13
    FRANCHISES = 14
    INVESTMENTS = 15

    @property
    def key(self) -> str:
        """Stable subtotal key, e.g. ``category_6``."""
        return f"category_{self.value}"

    @property
    def label(self) -> str:
        return _SCOPE3_LABELS[self]


_SCOPE3_LABELS = {
    Scope3Category.PURCHASED_GOODS_AND_SERVICES: "Purchased goods and services",
    Scope3Category.CAPITAL_GOODS: "Capital goods",
    Scope3Category.FUEL_AND_ENERGY_RELATED_ACTIVITIES: "Fuel- and energy-related activities",
    Scope3Category.UPSTREAM_TRANSPORTATION: "Upstream transportation and distribution",
    Scope3Category.WASTE_GENERATED_IN_OPERATIONS: "Waste generated in operations",
    Scope3Category.BUSINESS_TRAVEL: "Business travel",
    Scope3Category.EMPLOYEE_COMMUTING: "Employee commuting",
    Scope3Category.UPSTREAM_LEASED_ASSETS: "Upstream leased assets",
    Scope3Category.DOWNSTREAM_TRANSPORTATION: "Downstream transportation and distribution",
    Scope3Category.PROCESSING_OF_SOLD_PRODUCTS: "Processing of sold products",
    Scope3Category.USE_OF_SOLD_PRODUCTS: "Use of sold products",
    Scope3Category.END_OF_LIFE_TREATMENT: "End-of-life treatment of sold products",
    Scope3Category.DOWNSTREAM_LEASED_ASSETS: "Downstream leased assets",
    Scope3Category.FRANCHISES: "Franchises",
    Scope3Category.INVESTMENTS: "Investments",
}


# =============================================================================
# Request Models
# =============================================================================

_LENIENT = {"extra": "ignore", "populate_by_name": True}


class ReportingPeriod(BaseModel):
    """Time window a calculation reports on.

    Attributes:
        start_date: First day of the period.
        end_date: Last day of the period; must be after ``start_date``.
        reporting_year: Fiscal or calendar year the period is disclosed under.
    """

    start_date: Optional[date] = Field(None, description="Period start date")
    end_date: Optional[date] = Field(None, description="Period end date")
    reporting_year: Optional[int] = Field(None, description="Disclosure year")

    model_config = _LENIENT

    @property
    def length_days(self) -> Optional[int]:
        if self.start_date is None or self.end_date is None:
            return None
        return (self.end_date - self.start_date).days


class CalculationMetadata(BaseModel):
    """Free-text documentation attached to a calculation request."""

    description: Optional[str] = None
    methodology_notes: Optional[str] = None
    data_sources: List[str] = Field(default_factory=list)
    uncertainty_notes: Optional[str] = None

    model_config = _LENIENT


class FuelData(BaseModel):
    """Scope 1 fuel consumption line item.

    Attributes:
        fuel_type: Fuel identifier, e.g. ``natural_gas`` or ``diesel``.
        amount: Quantity consumed, in ``unit``.
        unit: Unit of ``amount``, e.g. ``therms`` or ``gallons``.
        activity_type: Stationary or mobile combustion.
        heating_value: Optional heating value; must be positive when present.
        carbon_content: Optional carbon content in percent (0-100).
        source_description: Human description of the emission source.
        location: Facility or site identifier.
        data_quality: Self-declared quality of the measurement.
    """

    fuel_type: Optional[str] = Field(None, description="Fuel identifier")
    amount: Optional[Decimal] = Field(None, description="Quantity consumed")
    unit: Optional[str] = Field(None, description="Unit of amount")
    activity_type: ActivityType = Field(
        ActivityType.STATIONARY_COMBUSTION, description="Combustion category",
    )
    heating_value: Optional[Decimal] = None
    carbon_content: Optional[Decimal] = None
    source_description: Optional[str] = None
    location: Optional[str] = None
    data_quality: Optional[DataQuality] = None

    model_config = _LENIENT


class ElectricityData(BaseModel):
    """Scope 2 electricity consumption line item.

    Attributes:
        amount: Electricity consumed, in ``unit``.
        unit: ``kWh``, ``MWh`` or another energy unit.
        region: Electricity grid region (e.g. ``WECC``); needed for
            location-based factors.
        supplier: Electricity supplier, used for market-based lookups.
        supplier_emission_factor: Contractual factor in kg CO2e per ``unit``.
        renewable_percentage: Share (0-100) covered by renewable instruments.
    """

    amount: Optional[Decimal] = Field(None, description="Electricity consumed")
    unit: Optional[str] = Field(None, description="Unit of amount")
    region: Optional[str] = Field(None, description="Grid region")
    supplier: Optional[str] = None
    supplier_emission_factor: Optional[Decimal] = None
    renewable_percentage: Optional[Decimal] = None
    activity_type: ActivityType = ActivityType.GRID_ELECTRICITY
    source_description: Optional[str] = None
    data_quality: Optional[DataQuality] = None

    model_config = _LENIENT


class ProcessData(BaseModel):
    """Scope 1 industrial process emission line item."""

    process_type: Optional[str] = None
    amount: Optional[Decimal] = None
    unit: Optional[str] = None
    emission_factor: Optional[Decimal] = Field(
        None, description="Caller-supplied kg CO2e per unit; looked up when absent",
    )
    source_description: Optional[str] = None

    model_config = _LENIENT


class FugitiveData(BaseModel):
    """Scope 1 fugitive (refrigerant, leak) emission line item."""

    source_type: Optional[str] = None
    amount: Optional[Decimal] = None
    unit: Optional[str] = None
    emission_factor: Optional[Decimal] = Field(
        None, description="Caller-supplied kg CO2e per unit; looked up when absent",
    )
    source_description: Optional[str] = None

    model_config = _LENIENT


class Scope3CategoryItem(BaseModel):
    """Scope 3 value-chain line item with a caller-supplied factor."""

    category: Optional[int] = Field(None, description="GHG Protocol category 1-15")
    description: Optional[str] = None
    quantity: Optional[Decimal] = None
    unit: Optional[str] = None
    emission_factor: Optional[Decimal] = Field(
        None, description="kg CO2e per unit",
    )
    factor_source: Optional[str] = None
    data_quality: Optional[DataQuality] = None

    model_config = _LENIENT


class EmissionsRequestBase(BaseModel):
    """Fields shared by every calculation request."""

    SCOPE: ClassVar[ScopeType]
    ACTIVITY_FIELD: ClassVar[str]

    calculation_name: Optional[str] = Field(None, description="Calculation label")
    company_id: Optional[str] = Field(None, description="Reporting company")
    entity_id: Optional[str] = Field(None, description="Reporting entity")
    reporting_period: Optional[ReportingPeriod] = None
    calculation_metadata: Optional[CalculationMetadata] = None

    model_config = _LENIENT

    def activity_items(self) -> List[Any]:
        """Return the primary line-item list, empty when missing."""
        return list(getattr(self, self.ACTIVITY_FIELD) or [])


class Scope1Request(EmissionsRequestBase):
    """Direct emissions from owned or controlled sources."""

    SCOPE: ClassVar[ScopeType] = ScopeType.SCOPE1
    ACTIVITY_FIELD: ClassVar[str] = "fuel_data"

    fuel_data: Optional[List[FuelData]] = None
    process_data: Optional[List[ProcessData]] = None
    fugitive_data: Optional[List[FugitiveData]] = None


class Scope2Request(EmissionsRequestBase):
    """Indirect emissions from purchased electricity.

    ``methodology`` is kept as a plain string so that an unsupported value
    reaches the validation engine and is reported as INVALID_METHODOLOGY.
    """

    SCOPE: ClassVar[ScopeType] = ScopeType.SCOPE2
    ACTIVITY_FIELD: ClassVar[str] = "electricity_data"

    electricity_data: Optional[List[ElectricityData]] = None
    methodology: Optional[str] = None
    renewable_percentage: Optional[Decimal] = None

    @property
    def methodology_enum(self) -> Optional[Scope2Methodology]:
        try:
            return Scope2Methodology(self.methodology)
        except ValueError:
            return None


class Scope3Request(EmissionsRequestBase):
    """Value-chain emissions, one line item per activity."""

    SCOPE: ClassVar[ScopeType] = ScopeType.SCOPE3
    ACTIVITY_FIELD: ClassVar[str] = "categories"

    categories: Optional[List[Scope3CategoryItem]] = None


CalculationRequest = Union[Scope1Request, Scope2Request, Scope3Request]

_REQUEST_TYPES = {
    ScopeType.SCOPE1: Scope1Request,
    ScopeType.SCOPE2: Scope2Request,
    ScopeType.SCOPE3: Scope3Request,
}


def format_error_location(loc: tuple) -> str:
    """Render a pydantic error location as ``fuel_data[0].amount``."""
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path = f"{path}.{part}" if path else str(part)
    return path or "root"


def _normalize_scope(value: Any) -> Optional[ScopeType]:
    if not isinstance(value, str):
        return None
    try:
        return ScopeType(value.strip().lower().replace("_", ""))
    except ValueError:
        return None


def detect_scope(data: Any) -> Optional[ScopeType]:
    """Work out which request shape an untyped mapping represents.

    An explicit ``scope`` (or ``scope_type``) key wins; otherwise the
    presence of ``fuel_data``, ``electricity_data`` or ``categories``
    decides. Returns None when nothing matches.
    """
    if not isinstance(data, Mapping):
        return None
    for key in ("scope", "scope_type"):
        scope = _normalize_scope(data.get(key))
        if scope is not None:
            return scope
    for scope, request_type in _REQUEST_TYPES.items():
        if request_type.ACTIVITY_FIELD in data:
            return scope
    return None


def parse_calculation_request(data: Any) -> CalculationRequest:
    """Turn untyped input into a typed calculation request.

    Typed requests pass through unchanged.

    Args:
        data: Mapping (decoded JSON) or an existing request model.

    Returns:
        Scope1Request, Scope2Request or Scope3Request.

    Raises:
        InvalidSchema: If the shape is unrecognized or fields have the wrong
            type. ``schema_errors`` holds one ``{"field", "message"}`` entry
            per offending field; it is empty for an unrecognized shape.
    """
    if isinstance(data, (Scope1Request, Scope2Request, Scope3Request)):
        return data

    scope = detect_scope(data)
    if scope is None:
        raise InvalidSchema(
            "Data must be a Scope 1, Scope 2 or Scope 3 calculation request",
            context={"received_type": type(data).__name__},
        )

    try:
        return _REQUEST_TYPES[scope].model_validate(dict(data))
    except PydanticValidationError as e:
        schema_errors = [
            {"field": format_error_location(err["loc"]), "message": err["msg"]}
            for err in e.errors()
        ]
        raise InvalidSchema(
            f"Invalid field types in {scope.value} calculation request",
            context={"scope": scope.value},
            schema_errors=schema_errors,
        ) from e


def _drop_at(data: Any, loc: tuple) -> bool:
    """Remove the value at a pydantic error location; list items become ``{}``."""
    node = data
    for part in loc[:-1]:
        try:
            node = node[part]
        except (KeyError, IndexError, TypeError):
            return False
    last = loc[-1]
    if isinstance(node, dict) and last in node:
        del node[last]
        return True
    if isinstance(node, list) and isinstance(last, int) and 0 <= last < len(node):
        node[last] = {}
        return True
    return False


def parse_calculation_request_lenient(
    data: Any,
) -> Tuple[CalculationRequest, List[Dict[str, str]]]:
    """Parse a request, dropping fields whose values have the wrong type.

    Each dropped field is reported in the returned ``schema_errors`` list and
    is absent from the request, so rule checks can still run over the rest.

    Raises:
        InvalidSchema: If the shape is unrecognized, or a mistyped value
            cannot be removed.
    """
    try:
        return parse_calculation_request(data), []
    except InvalidSchema as e:
        if not e.schema_errors:
            raise
        first_error = e

    scope = detect_scope(data)
    cleaned = copy.deepcopy(dict(data))
    schema_errors: List[Dict[str, str]] = []
    while True:
        try:
            request = _REQUEST_TYPES[scope].model_validate(cleaned)
        except PydanticValidationError as e:
            dropped = set()
            for err in e.errors():
                loc = tuple(err["loc"])
                if loc in dropped:
                    continue
                if not _drop_at(cleaned, loc):
                    raise first_error
                dropped.add(loc)
                schema_errors.append(
                    {"field": format_error_location(err["loc"]), "message": err["msg"]}
                )
            continue
        return request, schema_errors


# =============================================================================
# Validation Result Models
# =============================================================================


class ValidationErrorItem(BaseModel):
    """A rule violation found by the validation engine.

    Attributes:
        code: Stable error code.
        message: Human-readable description.
        field: Dotted path of the offending field, or ``root``.
        severity: critical, major or minor.
        suggestion: Optional remediation hint.
    """

    code: ValidationCode = Field(..., description="Stable error code")
    message: str = Field(..., description="Human-readable description")
    field: str = Field(..., description="Dotted field path or 'root'")
    severity: Severity = Field(..., description="Finding severity")
    suggestion: Optional[str] = Field(None, description="Remediation hint")

    model_config = {"extra": "forbid", "frozen": True}


class ValidationWarningItem(BaseModel):
    """An advisory finding; never affects ``is_valid``."""

    code: ValidationCode = Field(..., description="Stable warning code")
    message: str = Field(..., description="Human-readable description")
    field: str = Field(..., description="Dotted field path or 'root'")
    severity: Severity = Field(Severity.MINOR, description="Finding severity")
    suggestion: Optional[str] = Field(None, description="Remediation hint")

    model_config = {"extra": "forbid", "frozen": True}


class ValidationResult(BaseModel):
    """Outcome of validating one calculation request.

    Serializes with camelCase keys (``isValid``, ``qualityScore``,
    ``validatedAt``) via ``to_payload()``.
    """

    is_valid: bool = Field(..., alias="isValid")
    errors: List[ValidationErrorItem] = Field(default_factory=list)
    warnings: List[ValidationWarningItem] = Field(default_factory=list)
    quality_score: int = Field(..., ge=0, le=100, alias="qualityScore")
    recommendations: List[str] = Field(default_factory=list)
    validated_at: datetime = Field(default_factory=utcnow, alias="validatedAt")

    model_config = {"extra": "forbid", "frozen": True, "populate_by_name": True}

    @property
    def has_critical_errors(self) -> bool:
        return any(e.severity == Severity.CRITICAL for e in self.errors)

    def find_errors(
        self,
        code: Optional[Union[ValidationCode, str]] = None,
        field: Optional[str] = None,
    ) -> List[ValidationErrorItem]:
        """Return errors matching the given code and/or field."""
        return [
            e for e in self.errors
            if (code is None or e.code == code) and (field is None or e.field == field)
        ]

    def find_warnings(
        self,
        code: Optional[Union[ValidationCode, str]] = None,
        field: Optional[str] = None,
    ) -> List[ValidationWarningItem]:
        """Return warnings matching the given code and/or field."""
        return [
            w for w in self.warnings
            if (code is None or w.code == code) and (field is None or w.field == field)
        ]

    def to_payload(self) -> Dict[str, Any]:
        """JSON-ready dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


class QualityScoreBreakdown(BaseModel):
    """Sub-scores behind a data quality score."""

    completeness: float = Field(..., ge=0, le=100)
    accuracy: float = Field(..., ge=0, le=100)
    consistency: float = Field(..., ge=0, le=100)
    timeliness: float = Field(..., ge=0, le=100)
    weights: Dict[str, float] = Field(default_factory=dict)
    overall: int = Field(..., ge=0, le=100)

    model_config = {"extra": "forbid"}


class ValidationErrorSummary(BaseModel):
    """How often an error code occurred over a metrics window."""

    error_code: str
    error_message: str = ""
    frequency: int = 0
    percentage: float = 0.0

    model_config = {"extra": "ignore"}


class QualityTrend(BaseModel):
    """Average quality score for one day of validations."""

    date: str
    average_score: float = 0.0
    validation_count: int = 0

    model_config = {"extra": "ignore"}


class ValidationMetrics(BaseModel):
    """Aggregate validation statistics reported by the metrics source."""

    total_validations: int = 0
    success_rate: float = 0.0
    average_quality_score: float = 0.0
    common_errors: List[ValidationErrorSummary] = Field(default_factory=list)
    quality_trends: List[QualityTrend] = Field(default_factory=list)

    model_config = {"extra": "ignore"}

    @classmethod
    def empty(cls) -> ValidationMetrics:
        """Zeroed metrics returned when the source is unavailable."""
        return cls()


# =============================================================================
# Emission Factor Model
# =============================================================================


class EmissionFactor(BaseModel):
    """A standardized emission factor in kg CO2e per ``factor_unit``.

    Accepts the backend's field names (``factor_code``, ``co2e_factor``,
    ``unit``, ``version``, ``electricity_region``) as aliases.
    """

    factor_key: str = Field(
        ..., validation_alias=AliasChoices("factor_key", "factor_code"),
    )
    factor_name: Optional[str] = None
    category: str = Field(..., description="Factor category, e.g. stationary_combustion")
    fuel_type: Optional[str] = None
    region: Optional[str] = Field(
        None, validation_alias=AliasChoices("region", "electricity_region"),
    )
    factor_value: Decimal = Field(
        ..., ge=0, validation_alias=AliasChoices("factor_value", "co2e_factor"),
    )
    factor_unit: str = Field(
        ..., validation_alias=AliasChoices("factor_unit", "unit"),
    )
    source: str = Field(..., description="Publishing body, e.g. EPA")
    vintage: Optional[str] = Field(
        None, validation_alias=AliasChoices("vintage", "version"),
    )
    market_instrument: Optional[str] = None

    model_config = {"extra": "ignore", "frozen": True}

    @field_validator("vintage", mode="before")
    @classmethod
    def coerce_vintage(cls, v: Any) -> Any:
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v


# =============================================================================
# Calculation Result Models
# =============================================================================


class LineItemResult(BaseModel):
    """Per-line-item calculation record kept for audit."""

    field: str = Field(..., description="Dotted path of the source line item")
    source_category: str
    activity_data: Decimal
    activity_unit: str
    converted_quantity: Decimal = Field(
        ..., description="Quantity expressed in factor_unit",
    )
    emission_factor: Decimal = Field(..., description="kg CO2e per factor_unit")
    factor_unit: str
    factor_key: Optional[str] = None
    factor_source: FactorSource
    factor_region: Optional[str] = None
    factor_vintage: Optional[str] = None
    market_instrument: Optional[str] = None
    co2e_kg: Decimal
    co2e_tonnes: Decimal

    model_config = {"extra": "forbid"}


class EmissionCalculation(BaseModel):
    """A completed (or stored) emissions calculation.

    Totals are metric tons CO2e. Results read back from the calculation
    store may omit line items and the provenance hash.
    """

    id: str
    calculation_name: Optional[str] = None
    company_id: str
    entity_id: Optional[str] = None
    scope_type: ScopeType
    methodology: Optional[Scope2Methodology] = None
    total_co2e: Decimal = Field(..., ge=0)
    total_scope1_co2e: Optional[Decimal] = None
    total_scope2_co2e: Optional[Decimal] = None
    total_scope3_co2e: Optional[Decimal] = None
    category_totals: Dict[str, Decimal] = Field(default_factory=dict)
    line_items: List[LineItemResult] = Field(default_factory=list)
    data_quality_score: int = Field(0, ge=0, le=100)
    status: CalculationStatus = CalculationStatus.COMPLETED
    reporting_year: Optional[int] = None
    reporting_period_start: Optional[date] = None
    reporting_period_end: Optional[date] = None
    fallback_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    provenance_hash: Optional[str] = None

    model_config = {"extra": "ignore"}

    @field_validator("scope_type", mode="before")
    @classmethod
    def normalize_scope(cls, v: Any) -> Any:
        return _normalize_scope(v) or v

    @field_validator("data_quality_score", mode="before")
    @classmethod
    def round_score(cls, v: Any) -> Any:
        if isinstance(v, float):
            return round_half_up(v)
        return v


class CalculationSummary(BaseModel):
    """List-view entry returned by the calculation store."""

    calculation_id: str = Field(..., validation_alias=AliasChoices("calculation_id", "id"))
    company_id: str
    entity_id: Optional[str] = None
    scope: ScopeType = Field(..., validation_alias=AliasChoices("scope", "scope_type"))
    total_co2e: Decimal
    data_quality_score: float = 0.0
    status: CalculationStatus
    created_at: Optional[datetime] = None
    created_by: Optional[str] = None

    model_config = {"extra": "ignore"}

    @field_validator("scope", mode="before")
    @classmethod
    def normalize_scope(cls, v: Any) -> Any:
        return _normalize_scope(v) or v


class CalculationFilters(BaseModel):
    """Query filters for listing stored calculations."""

    company_id: Optional[str] = None
    entity_id: Optional[str] = None
    scope: Optional[ScopeType] = None
    status: Optional[CalculationStatus] = None
    reporting_year: Optional[int] = None
    limit: Optional[int] = Field(None, ge=1)
    offset: Optional[int] = Field(None, ge=0)

    model_config = {"extra": "forbid"}

    def to_query_params(self) -> Dict[str, str]:
        """Non-empty filters as string query parameters."""
        return {
            key: str(value)
            for key, value in self.model_dump(mode="json", exclude_none=True).items()
        }


class CalculationApprovalRequest(BaseModel):
    """Approver decision submitted for a calculation."""

    decision: ApprovalDecision
    comments: Optional[str] = None
    conditions: List[str] = Field(default_factory=list)

    model_config = {"extra": "forbid"}


class AuditTrailEvent(BaseModel):
    """One entry in a calculation's audit trail."""

    event_id: str
    calculation_id: str
    event_type: str
    user_id: Optional[str] = None
    user_name: Optional[str] = None
    timestamp: datetime
    details: Dict[str, Any] = Field(default_factory=dict)
    ip_address: Optional[str] = None

    model_config = {"extra": "ignore"}


__all__ = [
    # Enumerations
    "Severity",
    "ScopeType",
    "CalculationStatus",
    "Scope2Methodology",
    "DataQuality",
    "ActivityType",
    "FactorSource",
    "ApprovalDecision",
    "ValidationCode",
    "Scope3Category",
    # Requests
    "ReportingPeriod",
    "CalculationMetadata",
    "FuelData",
    "ElectricityData",
    "ProcessData",
    "FugitiveData",
    "Scope3CategoryItem",
    "EmissionsRequestBase",
    "Scope1Request",
    "Scope2Request",
    "Scope3Request",
    "CalculationRequest",
    "detect_scope",
    "format_error_location",
    "parse_calculation_request",
    "parse_calculation_request_lenient",
    # Validation results
    "ValidationErrorItem",
    "ValidationWarningItem",
    "ValidationResult",
    "QualityScoreBreakdown",
    "ValidationErrorSummary",
    "QualityTrend",
    "ValidationMetrics",
    # Factors and calculations
    "EmissionFactor",
    "LineItemResult",
    "EmissionCalculation",
    "CalculationSummary",
    "CalculationFilters",
    "CalculationApprovalRequest",
    "AuditTrailEvent",
]
