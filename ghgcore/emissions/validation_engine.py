# -*- coding: utf-8 -*-
"""
Emissions Validation Engine

Validates calculation requests against business and regulatory rules and
attaches a 0-100 data quality score.

Rule groups:
    1. Type discrimination   INVALID_DATA_TYPE (critical)
    2. Required fields       MISSING_REQUIRED_FIELD, MISSING_ACTIVITY_DATA
    3. Reporting period      INVALID_DATE_RANGE, LONG_REPORTING_PERIOD
    4. Line items            DATA_OUT_OF_RANGE, ZERO_ACTIVITY_DATA
    5. Scope 2 specifics     INVALID_METHODOLOGY, MISSING_ELECTRICITY_REGION

Any CRITICAL error blocks calculation. Validation is pure and never raises:
an unexpected internal failure is reported as a single VALIDATION_ERROR.

Example:
    >>> engine = ValidationEngine()
    >>> result = engine.validate({"company_id": "acme", "fuel_data": [...]})
    >>> result.is_valid, result.quality_score
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from ghgcore.determinism import utcnow
from ghgcore.emissions.config import EmissionsEngineConfig, get_config
from ghgcore.emissions.interfaces import ValidationMetricsSource
from ghgcore.emissions.metrics import (
    record_processing_duration,
    record_quality_score,
    record_store_error,
    record_validation,
    record_validation_issue,
)
from ghgcore.emissions.models import (
    CalculationRequest,
    ElectricityData,
    EmissionsRequestBase,
    FuelData,
    FugitiveData,
    ProcessData,
    ReportingPeriod,
    Scope1Request,
    Scope2Methodology,
    Scope2Request,
    Scope3CategoryItem,
    Scope3Request,
    Severity,
    ValidationCode,
    ValidationErrorItem,
    ValidationMetrics,
    ValidationResult,
    ValidationWarningItem,
    parse_calculation_request_lenient,
)
from ghgcore.emissions.quality_scorer import DataQualityScorer
from ghgcore.exceptions import InvalidSchema

logger = logging.getLogger(__name__)

REC_FIX_ERRORS = "Address all validation errors before submitting data"
REC_REVIEW_WARNINGS = "Review warnings to improve data quality"
REC_IMPROVE_SCORE = "Improve data completeness and accuracy to achieve higher quality scores"
REC_INTERNAL_FAILURE = "Fix validation errors and try again"

_SCOPE3_MIN_CATEGORY = 1
_SCOPE3_MAX_CATEGORY = 15


def _missing(value: Optional[str]) -> bool:
    return value is None or value.strip() == ""


class _Findings:
    """Accumulates errors and warnings for one validation run."""

    def __init__(self):
        self.errors: List[ValidationErrorItem] = []
        self.warnings: List[ValidationWarningItem] = []

    def error(
        self,
        code: ValidationCode,
        message: str,
        field: str,
        severity: Severity,
        suggestion: Optional[str] = None,
    ) -> None:
        self.errors.append(ValidationErrorItem(
            code=code, message=message, field=field, severity=severity, suggestion=suggestion,
        ))

    def warning(
        self,
        code: ValidationCode,
        message: str,
        field: str,
        suggestion: Optional[str] = None,
    ) -> None:
        self.warnings.append(ValidationWarningItem(
            code=code, message=message, field=field, suggestion=suggestion,
        ))


class ValidationEngine:
    """
    Rule-based validator for Scope 1, 2 and 3 calculation requests.

    The engine holds no per-request state and can be shared across threads.
    """

    def __init__(
        self,
        config: Optional[EmissionsEngineConfig] = None,
        metrics_source: Optional[ValidationMetricsSource] = None,
        scorer: Optional[DataQualityScorer] = None,
    ):
        """
        Initialize the validation engine.

        Args:
            config: Engine configuration (defaults to the global config)
            metrics_source: Source for aggregate validation metrics
            scorer: Quality scorer (defaults to one built from ``config``)
        """
        self.config = config or get_config()
        self.metrics_source = metrics_source
        self.scorer = scorer or DataQualityScorer(self.config)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def validate(self, data: Any) -> ValidationResult:
        """
        Validate a calculation request.

        Args:
            data: Typed request, decoded JSON mapping, or None

        Returns:
            ValidationResult; never raises
        """
        start = time.perf_counter()
        scope_label = "unknown"
        try:
            try:
                request, schema_errors = parse_calculation_request_lenient(data)
            except InvalidSchema as e:
                result = self._invalid_type_result(e)
            else:
                scope_label = request.SCOPE.value
                result = self._validate_request(request, schema_errors)
            outcome = "valid" if result.is_valid else "invalid"
        except Exception as e:
            logger.exception("Validation failed unexpectedly: %s", e)
            result = ValidationResult(
                is_valid=False,
                errors=[ValidationErrorItem(
                    code=ValidationCode.VALIDATION_ERROR,
                    message=str(e) or "Unknown validation error",
                    field="root",
                    severity=Severity.CRITICAL,
                )],
                quality_score=0,
                recommendations=[REC_INTERNAL_FAILURE],
                validated_at=utcnow(),
            )
            outcome = "error"

        record_validation(scope_label, outcome)
        for item in (*result.errors, *result.warnings):
            record_validation_issue(item.code.value, item.severity.value)
        record_quality_score(result.quality_score)
        record_processing_duration("validate", time.perf_counter() - start)
        logger.debug(
            "Validated %s request: valid=%s errors=%d warnings=%d score=%d",
            scope_label, result.is_valid, len(result.errors),
            len(result.warnings), result.quality_score,
        )
        return result

    def validate_emissions_data(self, data: Any) -> ValidationResult:
        """Alias of :meth:`validate`."""
        return self.validate(data)

    def validate_bulk_data(self, items: Sequence[Any]) -> List[ValidationResult]:
        """
        Validate each item independently.

        Results are positionally aligned with ``items``; one bad item never
        affects another. Uses ``config.bulk_max_workers`` threads.
        """
        items = list(items)
        workers = min(self.config.bulk_max_workers, len(items))
        if workers <= 1:
            results = [self.validate(item) for item in items]
        else:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                results = list(executor.map(self.validate, items))

        logger.info(
            "Bulk validation complete: %d items, %d valid",
            len(results), sum(1 for r in results if r.is_valid),
        )
        return results

    def calculate_data_quality_score(self, data: Any) -> int:
        """
        Quality score for a request without running the rule set.

        Returns 0 for None or input that is not a recognizable request.
        Mistyped fields are scored as missing.
        """
        if data is None:
            return 0
        try:
            request, _ = parse_calculation_request_lenient(data)
        except InvalidSchema:
            return 0
        return self.scorer.score(request)

    async def get_validation_metrics(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> ValidationMetrics:
        """
        Aggregate validation statistics for a date window.

        Returns zeroed metrics when no source is configured or the source
        fails.
        """
        if self.metrics_source is None:
            logger.warning("No validation metrics source configured; returning empty metrics")
            return ValidationMetrics.empty()
        try:
            metrics = await self.metrics_source.get_validation_metrics(start_date, end_date)
            if not isinstance(metrics, ValidationMetrics):
                metrics = ValidationMetrics.model_validate(metrics)
        except Exception as e:
            logger.warning("Failed to fetch validation metrics, returning defaults: %s", e)
            record_store_error("get_validation_metrics")
            return ValidationMetrics.empty()
        return metrics

    # ------------------------------------------------------------------
    # Rule evaluation
    # ------------------------------------------------------------------

    def _validate_request(
        self,
        request: CalculationRequest,
        schema_errors: Sequence[Dict[str, str]] = (),
    ) -> ValidationResult:
        findings = _Findings()
        for err in schema_errors:
            self._type_error(findings, err)

        self._check_company_and_period(request, findings)
        if isinstance(request, Scope1Request):
            self._check_scope1(request, findings)
        elif isinstance(request, Scope2Request):
            self._check_scope2(request, findings)
        elif isinstance(request, Scope3Request):
            self._check_scope3(request, findings)

        # a mistyped field was dropped before the rules ran; report it once
        mistyped = {err["field"] for err in schema_errors}
        if mistyped:
            findings.errors = [
                e for e in findings.errors
                if e.code == ValidationCode.INVALID_DATA_TYPE or e.field not in mistyped
            ]

        score = self.scorer.score(request)
        return ValidationResult(
            is_valid=not findings.errors,
            errors=findings.errors,
            warnings=findings.warnings,
            quality_score=score,
            recommendations=self._recommendations(findings, score),
            validated_at=utcnow(),
        )

    @staticmethod
    def _type_error(findings: _Findings, err: Dict[str, str]) -> None:
        findings.error(
            ValidationCode.INVALID_DATA_TYPE,
            f"Invalid data type: {err['message']}",
            err["field"],
            Severity.CRITICAL,
            "Provide a value of the expected type",
        )

    def _invalid_type_result(self, exc: InvalidSchema) -> ValidationResult:
        findings = _Findings()
        if exc.schema_errors:
            for err in exc.schema_errors:
                self._type_error(findings, err)
        else:
            findings.error(
                ValidationCode.INVALID_DATA_TYPE,
                exc.message,
                "root",
                Severity.CRITICAL,
            )
        return ValidationResult(
            is_valid=False,
            errors=findings.errors,
            quality_score=0,
            recommendations=self._recommendations(findings, 0),
            validated_at=utcnow(),
        )

    def _recommendations(self, findings: _Findings, score: int) -> List[str]:
        recommendations = []
        if findings.errors:
            recommendations.append(REC_FIX_ERRORS)
        if findings.warnings:
            recommendations.append(REC_REVIEW_WARNINGS)
        if score < self.config.recommendation_threshold:
            recommendations.append(REC_IMPROVE_SCORE)
        return recommendations

    def _check_company_and_period(self, request: EmissionsRequestBase, findings: _Findings) -> None:
        if _missing(request.company_id):
            findings.error(
                ValidationCode.MISSING_REQUIRED_FIELD,
                "Company ID is required",
                "company_id",
                Severity.CRITICAL,
                "Provide a valid company identifier",
            )

        if request.reporting_period is None:
            findings.error(
                ValidationCode.MISSING_REQUIRED_FIELD,
                "Reporting period is required",
                "reporting_period",
                Severity.CRITICAL,
                "Specify the reporting period with start date, end date, and year",
            )
        else:
            self._check_reporting_period(request.reporting_period, findings)

    def _check_reporting_period(self, period: ReportingPeriod, findings: _Findings) -> None:
        if period.start_date is None:
            findings.error(
                ValidationCode.MISSING_REQUIRED_FIELD,
                "Reporting period start date is required",
                "reporting_period.start_date",
                Severity.CRITICAL,
            )
        if period.end_date is None:
            findings.error(
                ValidationCode.MISSING_REQUIRED_FIELD,
                "Reporting period end date is required",
                "reporting_period.end_date",
                Severity.CRITICAL,
            )
        if not period.reporting_year:
            findings.error(
                ValidationCode.MISSING_REQUIRED_FIELD,
                "Reporting year is required",
                "reporting_period.reporting_year",
                Severity.CRITICAL,
            )

        if period.start_date is not None and period.end_date is not None:
            if period.start_date >= period.end_date:
                findings.error(
                    ValidationCode.INVALID_DATE_RANGE,
                    "Start date must be before end date",
                    "reporting_period",
                    Severity.MAJOR,
                    "Ensure the reporting period dates are in correct order",
                )
            if period.length_days > self.config.long_period_days:
                findings.warning(
                    ValidationCode.LONG_REPORTING_PERIOD,
                    "Reporting period is longer than one year",
                    "reporting_period",
                    "Consider breaking down into shorter periods for better accuracy",
                )

    # -- Scope 1 -------------------------------------------------------------

    def _check_scope1(self, request: Scope1Request, findings: _Findings) -> None:
        if not request.fuel_data:
            findings.error(
                ValidationCode.MISSING_ACTIVITY_DATA,
                "At least one fuel data entry is required for Scope 1 calculations",
                "fuel_data",
                Severity.CRITICAL,
                "Add fuel consumption data for your emission sources",
            )
        else:
            for index, fuel in enumerate(request.fuel_data):
                self._check_fuel(fuel, f"fuel_data[{index}]", findings)

        for index, process in enumerate(request.process_data or []):
            self._check_process(process, f"process_data[{index}]", findings)
        for index, fugitive in enumerate(request.fugitive_data or []):
            self._check_fugitive(fugitive, f"fugitive_data[{index}]", findings)

    def _check_fuel(self, fuel: FuelData, prefix: str, findings: _Findings) -> None:
        if _missing(fuel.fuel_type):
            findings.error(
                ValidationCode.MISSING_REQUIRED_FIELD,
                "Fuel type is required",
                f"{prefix}.fuel_type",
                Severity.CRITICAL,
                "Specify the type of fuel (e.g., natural_gas, diesel, gasoline)",
            )

        if fuel.amount is None:
            findings.error(
                ValidationCode.MISSING_REQUIRED_FIELD,
                "Fuel amount is required",
                f"{prefix}.amount",
                Severity.CRITICAL,
                "Provide the quantity of fuel consumed",
            )
        elif fuel.amount < 0:
            findings.error(
                ValidationCode.DATA_OUT_OF_RANGE,
                "Fuel amount cannot be negative",
                f"{prefix}.amount",
                Severity.MAJOR,
                "Provide a positive fuel consumption value",
            )
        elif fuel.amount == 0:
            findings.warning(
                ValidationCode.ZERO_ACTIVITY_DATA,
                "Fuel amount is zero",
                f"{prefix}.amount",
                "Verify if zero consumption is correct",
            )

        if _missing(fuel.unit):
            findings.error(
                ValidationCode.MISSING_REQUIRED_FIELD,
                "Fuel unit is required",
                f"{prefix}.unit",
                Severity.CRITICAL,
                "Specify the unit of measurement (e.g., gallons, liters, therms)",
            )

        if fuel.heating_value is not None and fuel.heating_value <= 0:
            findings.error(
                ValidationCode.DATA_OUT_OF_RANGE,
                "Heating value must be positive",
                f"{prefix}.heating_value",
                Severity.MINOR,
            )

        if fuel.carbon_content is not None and not 0 <= fuel.carbon_content <= 100:
            findings.error(
                ValidationCode.DATA_OUT_OF_RANGE,
                "Carbon content must be between 0 and 100 percent",
                f"{prefix}.carbon_content",
                Severity.MINOR,
            )

    def _check_process(self, process: ProcessData, prefix: str, findings: _Findings) -> None:
        if _missing(process.process_type):
            findings.error(
                ValidationCode.MISSING_REQUIRED_FIELD,
                "Process type is required",
                f"{prefix}.process_type",
                Severity.MAJOR,
            )
        if process.amount is None or process.amount < 0:
            findings.error(
                ValidationCode.DATA_OUT_OF_RANGE,
                "Process amount must be non-negative",
                f"{prefix}.amount",
                Severity.MAJOR,
            )

    def _check_fugitive(self, fugitive: FugitiveData, prefix: str, findings: _Findings) -> None:
        if _missing(fugitive.source_type):
            findings.error(
                ValidationCode.MISSING_REQUIRED_FIELD,
                "Fugitive source type is required",
                f"{prefix}.source_type",
                Severity.MAJOR,
            )
        if fugitive.amount is None or fugitive.amount < 0:
            findings.error(
                ValidationCode.DATA_OUT_OF_RANGE,
                "Fugitive amount must be non-negative",
                f"{prefix}.amount",
                Severity.MAJOR,
            )

    # -- Scope 2 -------------------------------------------------------------

    def _check_scope2(self, request: Scope2Request, findings: _Findings) -> None:
        methodology = request.methodology_enum
        if methodology is None:
            findings.error(
                ValidationCode.INVALID_METHODOLOGY,
                'Methodology must be either "location_based" or "market_based"',
                "methodology",
                Severity.MAJOR,
                "Select a valid Scope 2 calculation methodology",
            )

        if not request.electricity_data:
            findings.error(
                ValidationCode.MISSING_ACTIVITY_DATA,
                "At least one electricity data entry is required for Scope 2 calculations",
                "electricity_data",
                Severity.CRITICAL,
                "Add electricity consumption data for your facilities",
            )
        else:
            for index, item in enumerate(request.electricity_data):
                self._check_electricity(item, f"electricity_data[{index}]", methodology, findings)

        if request.renewable_percentage is not None and not 0 <= request.renewable_percentage <= 100:
            findings.error(
                ValidationCode.DATA_OUT_OF_RANGE,
                "Renewable percentage must be between 0 and 100",
                "renewable_percentage",
                Severity.MAJOR,
                "Provide a valid percentage value (0-100)",
            )

    def _check_electricity(
        self,
        item: ElectricityData,
        prefix: str,
        methodology: Optional[Scope2Methodology],
        findings: _Findings,
    ) -> None:
        if item.amount is None:
            findings.error(
                ValidationCode.MISSING_REQUIRED_FIELD,
                "Electricity amount is required",
                f"{prefix}.amount",
                Severity.CRITICAL,
                "Provide the quantity of electricity consumed",
            )
        elif item.amount < 0:
            findings.error(
                ValidationCode.DATA_OUT_OF_RANGE,
                "Electricity amount cannot be negative",
                f"{prefix}.amount",
                Severity.MAJOR,
                "Provide a positive electricity consumption value",
            )
        elif item.amount == 0:
            findings.warning(
                ValidationCode.ZERO_ACTIVITY_DATA,
                "Electricity amount is zero",
                f"{prefix}.amount",
                "Verify if zero consumption is correct",
            )

        if _missing(item.unit):
            findings.error(
                ValidationCode.MISSING_REQUIRED_FIELD,
                "Electricity unit is required",
                f"{prefix}.unit",
                Severity.CRITICAL,
                "Specify the unit of measurement (e.g., kWh, MWh)",
            )

        if item.renewable_percentage is not None and not 0 <= item.renewable_percentage <= 100:
            findings.error(
                ValidationCode.DATA_OUT_OF_RANGE,
                "Renewable percentage must be between 0 and 100",
                f"{prefix}.renewable_percentage",
                Severity.MINOR,
            )

        if item.supplier_emission_factor is not None and item.supplier_emission_factor < 0:
            findings.error(
                ValidationCode.DATA_OUT_OF_RANGE,
                "Supplier emission factor cannot be negative",
                f"{prefix}.supplier_emission_factor",
                Severity.MAJOR,
            )

        if methodology == Scope2Methodology.LOCATION_BASED and _missing(item.region):
            findings.warning(
                ValidationCode.MISSING_ELECTRICITY_REGION,
                "Electricity region is required for location-based calculations",
                f"{prefix}.region",
                "Provide the grid region (e.g., WECC) so a location-based factor can be applied",
            )

    # -- Scope 3 -------------------------------------------------------------

    def _check_scope3(self, request: Scope3Request, findings: _Findings) -> None:
        if not request.categories:
            findings.error(
                ValidationCode.MISSING_ACTIVITY_DATA,
                "At least one category entry is required for Scope 3 calculations",
                "categories",
                Severity.CRITICAL,
                "Add value-chain activity data for the relevant Scope 3 categories",
            )
            return
        for index, item in enumerate(request.categories):
            self._check_scope3_item(item, f"categories[{index}]", findings)

    def _check_scope3_item(self, item: Scope3CategoryItem, prefix: str, findings: _Findings) -> None:
        if item.category is None:
            findings.error(
                ValidationCode.MISSING_REQUIRED_FIELD,
                "Scope 3 category is required",
                f"{prefix}.category",
                Severity.CRITICAL,
                "Specify the GHG Protocol category number (1-15)",
            )
        elif not _SCOPE3_MIN_CATEGORY <= item.category <= _SCOPE3_MAX_CATEGORY:
            findings.error(
                ValidationCode.DATA_OUT_OF_RANGE,
                "Scope 3 category must be between 1 and 15",
                f"{prefix}.category",
                Severity.MAJOR,
                "Use a GHG Protocol category number (1-15)",
            )

        if item.quantity is None:
            findings.error(
                ValidationCode.MISSING_REQUIRED_FIELD,
                "Activity quantity is required",
                f"{prefix}.quantity",
                Severity.CRITICAL,
                "Provide the activity quantity for this category",
            )
        elif item.quantity < 0:
            findings.error(
                ValidationCode.DATA_OUT_OF_RANGE,
                "Activity quantity cannot be negative",
                f"{prefix}.quantity",
                Severity.MAJOR,
                "Provide a positive activity value",
            )
        elif item.quantity == 0:
            findings.warning(
                ValidationCode.ZERO_ACTIVITY_DATA,
                "Activity quantity is zero",
                f"{prefix}.quantity",
                "Verify if zero activity is correct",
            )

        if _missing(item.unit):
            findings.error(
                ValidationCode.MISSING_REQUIRED_FIELD,
                "Activity unit is required",
                f"{prefix}.unit",
                Severity.CRITICAL,
                "Specify the unit of measurement (e.g., USD, km, tonnes)",
            )

        if item.emission_factor is None:
            findings.error(
                ValidationCode.MISSING_REQUIRED_FIELD,
                "Emission factor is required for Scope 3 activities",
                f"{prefix}.emission_factor",
                Severity.CRITICAL,
                "Provide a kg CO2e per unit factor from a supplier or a recognized database",
            )
        elif item.emission_factor < 0:
            findings.error(
                ValidationCode.DATA_OUT_OF_RANGE,
                "Emission factor cannot be negative",
                f"{prefix}.emission_factor",
                Severity.MAJOR,
            )


__all__ = [
    "ValidationEngine",
    "REC_FIX_ERRORS",
    "REC_REVIEW_WARNINGS",
    "REC_IMPROVE_SCORE",
    "REC_INTERNAL_FAILURE",
]
