# -*- coding: utf-8 -*-
"""
Emissions Calculation Engine

Converts activity data into Scope 1, 2 and 3 emissions in metric tons CO2e.

Formula per line item:
    co2e_kg = quantity (converted to the factor unit) x factor (kg CO2e / unit)

Totals are summed in kg with Decimal arithmetic and reported in metric tons,
rounded ROUND_HALF_UP to ``config.reporting_precision`` decimal places.

Scope 2 methodologies:
    location_based  grid factor for the item's region
    market_based    supplier factor and/or renewable share; items without a
                    contractual instrument fall back to the grid factor and
                    are tagged ``location_fallback``

Every result carries per-line provenance and a SHA-256 hash over inputs and
outputs, so the same request always hashes the same way.

Error semantics:
    ValidationError   request failed the guard checks (raised unwrapped)
    CalculationError  factor lookup, unit conversion or store failure,
                      chained to the original exception
    ConfigurationError a store operation was called without a store

Example:
    >>> engine = CalculationEngine(StaticEmissionFactorProvider())
    >>> result = await engine.calculate_scope1(request)
    >>> result.total_co2e
    Decimal('5.306')
"""

import inspect
import logging
import time
import uuid
from collections.abc import Mapping
from decimal import Decimal
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Tuple, Type, Union

from ghgcore.determinism import content_hash, round_for_reporting, utcnow
from ghgcore.emissions.config import EmissionsEngineConfig, get_config
from ghgcore.emissions.interfaces import CalculationStore, EmissionFactorProvider
from ghgcore.emissions.metrics import (
    record_calculation,
    record_factor_fallback,
    record_processing_duration,
    record_store_error,
)
from ghgcore.emissions.models import (
    ActivityType,
    AuditTrailEvent,
    CalculationApprovalRequest,
    CalculationFilters,
    CalculationRequest,
    CalculationStatus,
    CalculationSummary,
    ElectricityData,
    EmissionCalculation,
    EmissionFactor,
    EmissionsRequestBase,
    FactorSource,
    LineItemResult,
    Scope1Request,
    Scope2Methodology,
    Scope2Request,
    Scope3Category,
    Scope3Request,
    ScopeType,
    parse_calculation_request,
)
from ghgcore.emissions.unit_converter import UnitConverter
from ghgcore.emissions.validation_engine import ValidationEngine
from ghgcore.exceptions import (
    CalculationError,
    ConfigurationError,
    GHGCoreException,
    InvalidSchema,
    MissingData,
    UnitConversionError,
    ValidationError,
)

logger = logging.getLogger(__name__)

InvalidationHook = Callable[[str], Union[None, Awaitable[None]]]

_KG_PER_TONNE = Decimal("1000")
_HUNDRED = Decimal("100")

_SCOPE_LABELS = {
    ScopeType.SCOPE1: "Scope 1",
    ScopeType.SCOPE2: "Scope 2",
    ScopeType.SCOPE3: "Scope 3",
}


def _blank(value: Optional[str]) -> bool:
    return value is None or value.strip() == ""


def _cause_message(exc: BaseException) -> str:
    if isinstance(exc, GHGCoreException):
        return exc.message
    return str(exc) or type(exc).__name__


class CalculationEngine:
    """
    Scope 1/2/3 emissions calculator.

    The engine is stateless between calls; it holds only its collaborators.
    """

    def __init__(
        self,
        factor_provider: EmissionFactorProvider,
        validation_engine: Optional[ValidationEngine] = None,
        store: Optional[CalculationStore] = None,
        config: Optional[EmissionsEngineConfig] = None,
        invalidation_hooks: Optional[Iterable[InvalidationHook]] = None,
        unit_converter: Optional[UnitConverter] = None,
    ):
        """
        Initialize the calculation engine.

        Args:
            factor_provider: Source of emission factors
            validation_engine: Supplies the data quality score
            store: Calculation store for the read/approve pass-throughs
            config: Engine configuration (defaults to the global config)
            invalidation_hooks: Callables invoked with the company id after
                each successful calculation (sync or async)
            unit_converter: Unit converter (defaults to UnitConverter())
        """
        self.config = config or get_config()
        self.factor_provider = factor_provider
        self.validation_engine = validation_engine or ValidationEngine(self.config)
        self.store = store
        self.converter = unit_converter or UnitConverter()
        self._invalidation_hooks: List[InvalidationHook] = list(invalidation_hooks or [])

    def add_invalidation_hook(self, hook: InvalidationHook) -> None:
        """Register a callable notified with the company id after each calculation."""
        self._invalidation_hooks.append(hook)

    # ==================================================================
    # Calculation entry points
    # ==================================================================

    async def calculate(self, request: Any) -> EmissionCalculation:
        """Dispatch to the scope-specific calculation for the request type."""
        typed = self._coerce(request, None)
        if isinstance(typed, Scope1Request):
            return await self.calculate_scope1(typed)
        if isinstance(typed, Scope2Request):
            return await self.calculate_scope2(typed)
        return await self.calculate_scope3(typed)

    async def calculate_scope1(self, request: Any) -> EmissionCalculation:
        """Direct emissions from fuel combustion, processes and fugitive releases."""
        typed = self._coerce(request, Scope1Request)
        return await self._run(typed, self._guard_scope1, self._compute_scope1)

    async def calculate_scope2(self, request: Any) -> EmissionCalculation:
        """Indirect emissions from purchased electricity."""
        typed = self._coerce(request, Scope2Request)
        return await self._run(typed, self._guard_scope2, self._compute_scope2)

    async def calculate_scope3(self, request: Any) -> EmissionCalculation:
        """Value-chain emissions using caller-supplied factors."""
        typed = self._coerce(request, Scope3Request)
        return await self._run(typed, self._guard_scope3, self._compute_scope3)

    # ==================================================================
    # Store pass-throughs
    # ==================================================================

    async def get_calculations(
        self, filters: Optional[CalculationFilters] = None
    ) -> List[CalculationSummary]:
        store = self._require_store("get_calculations")
        try:
            return await store.get_calculations(filters)
        except Exception as e:
            raise self._store_failure("get_calculations", "Failed to fetch calculations", e) from e

    async def get_calculation(self, calculation_id: str) -> EmissionCalculation:
        store = self._require_store("get_calculation")
        try:
            return await store.get_calculation(calculation_id)
        except Exception as e:
            raise self._store_failure("get_calculation", "Failed to fetch calculation", e) from e

    async def approve_calculation(
        self, calculation_id: str, approval: CalculationApprovalRequest
    ) -> None:
        store = self._require_store("approve_calculation")
        try:
            await store.approve_calculation(calculation_id, approval)
        except Exception as e:
            raise self._store_failure("approve_calculation", "Failed to approve calculation", e) from e
        logger.info("Calculation %s %sd", calculation_id, approval.decision.value)

    async def get_audit_trail(self, calculation_id: str) -> List[AuditTrailEvent]:
        store = self._require_store("get_audit_trail")
        try:
            return await store.get_audit_trail(calculation_id)
        except Exception as e:
            raise self._store_failure("get_audit_trail", "Failed to fetch audit trail", e) from e

    def _require_store(self, operation: str) -> CalculationStore:
        if self.store is None:
            raise ConfigurationError(
                "No calculation store configured",
                context={"operation": operation},
            )
        return self.store

    @staticmethod
    def _store_failure(operation: str, prefix: str, exc: Exception) -> CalculationError:
        logger.error("%s: %s", prefix, exc)
        record_store_error(operation)
        return CalculationError(
            f"{prefix}: {_cause_message(exc)}",
            operation=operation,
            cause=exc,
        )

    # ==================================================================
    # Orchestration
    # ==================================================================

    def _coerce(
        self,
        request: Any,
        expected: Optional[Type[EmissionsRequestBase]],
    ) -> CalculationRequest:
        """Accept a typed request or a mapping; reject anything else."""
        if isinstance(request, (Scope1Request, Scope2Request, Scope3Request)):
            typed = request
        elif isinstance(request, Mapping):
            try:
                typed = parse_calculation_request(request)
            except InvalidSchema as e:
                field = e.schema_errors[0]["field"] if e.schema_errors else None
                raise ValidationError(
                    f"Invalid calculation request: {e.message}",
                    field=field,
                    context={"schema_errors": e.schema_errors},
                ) from e
        else:
            raise ValidationError(
                f"Calculation request must be a request model or mapping, got {type(request).__name__}",
            )

        if expected is not None and not isinstance(typed, expected):
            raise ValidationError(
                f"Expected a {_SCOPE_LABELS[expected.SCOPE]} calculation request, "
                f"got {_SCOPE_LABELS[typed.SCOPE]}",
                scope=expected.SCOPE.value,
            )
        return typed

    async def _run(
        self,
        request: CalculationRequest,
        guard: Callable[[Any], None],
        compute: Callable[[Any], Awaitable[Tuple[List[LineItemResult], int]]],
    ) -> EmissionCalculation:
        scope = request.SCOPE
        label = _SCOPE_LABELS[scope]
        start = time.perf_counter()

        try:
            guard(request)
        except ValidationError:
            record_calculation(scope.value, "rejected")
            raise

        try:
            line_items, fallback_count = await compute(request)
            result = self._build_result(request, line_items, fallback_count)
        except Exception as e:
            logger.error("%s calculation failed for company %s: %s", label, request.company_id, e)
            record_calculation(scope.value, "failed")
            raise CalculationError(
                f"Failed to calculate {label} emissions: {_cause_message(e)}",
                scope=scope.value,
                cause=e,
            ) from e

        record_calculation(scope.value, "success")
        record_processing_duration(f"calculate_{scope.value}", time.perf_counter() - start)
        logger.info(
            "%s calculation %s complete: company=%s total=%s tCO2e items=%d fallbacks=%d",
            label, result.id, result.company_id, result.total_co2e,
            len(line_items), fallback_count,
        )
        await self._notify(result.company_id)
        return result

    async def _notify(self, company_id: str) -> None:
        for hook in self._invalidation_hooks:
            try:
                outcome = hook(company_id)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as e:
                logger.warning("Invalidation hook %r failed for company %s: %s", hook, company_id, e)

    def _build_result(
        self,
        request: CalculationRequest,
        line_items: List[LineItemResult],
        fallback_count: int,
    ) -> EmissionCalculation:
        precision = self.config.reporting_precision
        total_kg = sum((li.co2e_kg for li in line_items), Decimal("0"))
        total = round_for_reporting(total_kg / _KG_PER_TONNE, precision)

        category_kg: Dict[str, Decimal] = {}
        for li in line_items:
            category_kg[li.source_category] = category_kg.get(li.source_category, Decimal("0")) + li.co2e_kg
        category_totals = {
            key: round_for_reporting(kg / _KG_PER_TONNE, precision)
            for key, kg in sorted(category_kg.items())
        }

        scope = request.SCOPE
        period = request.reporting_period
        methodology = request.methodology_enum if isinstance(request, Scope2Request) else None

        provenance_hash = content_hash({
            "scope": scope.value,
            "methodology": methodology.value if methodology else None,
            "request": request.model_dump(mode="json"),
            "line_items": [li.model_dump(mode="json") for li in line_items],
            "category_totals": {k: str(v) for k, v in category_totals.items()},
            "total_co2e": str(total),
        })

        return EmissionCalculation(
            id=str(uuid.uuid4()),
            calculation_name=request.calculation_name,
            company_id=request.company_id,
            entity_id=request.entity_id,
            scope_type=scope,
            methodology=methodology,
            total_co2e=total,
            total_scope1_co2e=total if scope == ScopeType.SCOPE1 else None,
            total_scope2_co2e=total if scope == ScopeType.SCOPE2 else None,
            total_scope3_co2e=total if scope == ScopeType.SCOPE3 else None,
            category_totals=category_totals,
            line_items=line_items,
            data_quality_score=self.validation_engine.calculate_data_quality_score(request),
            status=CalculationStatus.COMPLETED,
            reporting_year=period.reporting_year,
            reporting_period_start=period.start_date,
            reporting_period_end=period.end_date,
            fallback_count=fallback_count,
            created_at=utcnow(),
            provenance_hash=provenance_hash,
        )

    # ==================================================================
    # Guards
    # ==================================================================

    def _guard_common(self, request: EmissionsRequestBase) -> None:
        scope = request.SCOPE.value
        if _blank(request.calculation_name):
            raise ValidationError("Calculation name is required", field="calculation_name", scope=scope)
        if _blank(request.company_id):
            raise ValidationError("Company ID is required", field="company_id", scope=scope)
        period = request.reporting_period
        if period is None or period.start_date is None:
            raise ValidationError(
                "Reporting period start date is required",
                field="reporting_period.start_date", scope=scope,
            )
        if period.end_date is None:
            raise ValidationError(
                "Reporting period end date is required",
                field="reporting_period.end_date", scope=scope,
            )
        if not request.activity_items():
            raise ValidationError(
                self._empty_items_message(request),
                field=request.ACTIVITY_FIELD, scope=scope,
            )

    @staticmethod
    def _empty_items_message(request: EmissionsRequestBase) -> str:
        if isinstance(request, Scope2Request):
            return "At least one electricity consumption entry is required"
        if isinstance(request, Scope3Request):
            return "At least one category entry is required"
        return "At least one activity data entry is required"

    @staticmethod
    def _guard_date_order(request: EmissionsRequestBase) -> None:
        period = request.reporting_period
        if period.end_date <= period.start_date:
            raise ValidationError(
                "Reporting period end date must be after start date",
                field="reporting_period", scope=request.SCOPE.value,
            )

    @staticmethod
    def _guard_quantity(
        quantity: Optional[Decimal],
        unit: Optional[str],
        entry: int,
        prefix: str,
        scope: str,
        quantity_field: str = "amount",
        label: str = "entry",
    ) -> None:
        if quantity is None:
            raise ValidationError(
                f"Quantity is required for {label} {entry}",
                field=f"{prefix}.{quantity_field}", scope=scope,
            )
        if quantity <= 0:
            raise ValidationError(
                f"Quantity must be greater than 0 for {label} {entry}",
                field=f"{prefix}.{quantity_field}", scope=scope,
            )
        if _blank(unit):
            raise ValidationError(
                f"Unit is required for {label} {entry}",
                field=f"{prefix}.unit", scope=scope,
            )

    def _guard_scope1(self, request: Scope1Request) -> None:
        self._guard_common(request)
        scope = request.SCOPE.value
        for index, fuel in enumerate(request.fuel_data):
            prefix = f"fuel_data[{index}]"
            if _blank(fuel.fuel_type):
                raise ValidationError(
                    f"Activity type is required for entry {index + 1}",
                    field=f"{prefix}.fuel_type", scope=scope,
                )
            self._guard_quantity(fuel.amount, fuel.unit, index + 1, prefix, scope)

        optional_groups = (
            ("process_data", "process_type", "process entry", request.process_data),
            ("fugitive_data", "source_type", "fugitive entry", request.fugitive_data),
        )
        for field_name, type_field, label, group in optional_groups:
            for index, item in enumerate(group or []):
                prefix = f"{field_name}[{index}]"
                if _blank(getattr(item, type_field)):
                    raise ValidationError(
                        f"Activity type is required for {label} {index + 1}",
                        field=f"{prefix}.{type_field}", scope=scope,
                    )
                self._guard_quantity(item.amount, item.unit, index + 1, prefix, scope, label=label)
                if item.emission_factor is not None and item.emission_factor < 0:
                    raise ValidationError(
                        f"Emission factor must be non-negative for {label} {index + 1}",
                        field=f"{prefix}.emission_factor", scope=scope,
                    )

        self._guard_date_order(request)

    def _guard_scope2(self, request: Scope2Request) -> None:
        self._guard_common(request)
        scope = request.SCOPE.value
        if _blank(request.methodology):
            raise ValidationError("Calculation method is required", field="methodology", scope=scope)
        methodology = request.methodology_enum
        if methodology is None:
            raise ValidationError(
                "Calculation method must be either location_based or market_based",
                field="methodology", scope=scope,
            )
        if request.renewable_percentage is not None and not 0 <= request.renewable_percentage <= 100:
            raise ValidationError(
                "Renewable percentage must be between 0 and 100",
                field="renewable_percentage", scope=scope,
            )

        for index, item in enumerate(request.electricity_data):
            prefix = f"electricity_data[{index}]"
            self._guard_quantity(item.amount, item.unit, index + 1, prefix, scope)
            if methodology == Scope2Methodology.LOCATION_BASED and _blank(item.region):
                raise ValidationError(
                    f"Electricity region is required for location-based entry {index + 1}",
                    field=f"{prefix}.region", scope=scope,
                )
            if item.renewable_percentage is not None and not 0 <= item.renewable_percentage <= 100:
                raise ValidationError(
                    f"Renewable percentage must be between 0 and 100 for entry {index + 1}",
                    field=f"{prefix}.renewable_percentage", scope=scope,
                )
            if item.supplier_emission_factor is not None and item.supplier_emission_factor < 0:
                raise ValidationError(
                    f"Supplier emission factor must be non-negative for entry {index + 1}",
                    field=f"{prefix}.supplier_emission_factor", scope=scope,
                )

        self._guard_date_order(request)

    def _guard_scope3(self, request: Scope3Request) -> None:
        self._guard_common(request)
        scope = request.SCOPE.value
        for index, item in enumerate(request.categories):
            prefix = f"categories[{index}]"
            if item.category is None:
                raise ValidationError(
                    f"Category is required for entry {index + 1}",
                    field=f"{prefix}.category", scope=scope,
                )
            if not 1 <= item.category <= 15:
                raise ValidationError(
                    f"Category must be between 1 and 15 for entry {index + 1}",
                    field=f"{prefix}.category", scope=scope,
                )
            self._guard_quantity(
                item.quantity, item.unit, index + 1, prefix, scope, quantity_field="quantity",
            )
            if item.emission_factor is None:
                raise ValidationError(
                    f"Emission factor is required for entry {index + 1}",
                    field=f"{prefix}.emission_factor", scope=scope,
                )
            if item.emission_factor < 0:
                raise ValidationError(
                    f"Emission factor must be non-negative for entry {index + 1}",
                    field=f"{prefix}.emission_factor", scope=scope,
                )

        self._guard_date_order(request)

    # ==================================================================
    # Factor resolution
    # ==================================================================

    def _select_factor(
        self,
        factors: List[EmissionFactor],
        quantity: Decimal,
        unit: str,
        description: str,
        query: Dict[str, Any],
    ) -> Tuple[EmissionFactor, Decimal]:
        """Pick the first factor in the item's unit, else the first convertible one."""
        for factor in factors:
            if self.converter.same_unit(factor.factor_unit, unit):
                return factor, quantity
        for factor in factors:
            if self.converter.is_compatible(unit, factor.factor_unit):
                return factor, self.converter.convert(quantity, unit, factor.factor_unit)
        if factors:
            raise UnitConversionError(
                f"No emission factor for {description} is compatible with unit '{unit}'",
                context={"available_units": sorted({f.factor_unit for f in factors})},
                from_unit=unit,
                to_unit=factors[0].factor_unit,
            )
        raise MissingData(
            f"No emission factor found for {description}",
            context=query,
            data_type="emission_factor",
        )

    async def _lookup(
        self,
        description: str,
        quantity: Decimal,
        unit: str,
        **query: Optional[str],
    ) -> Tuple[EmissionFactor, Decimal]:
        factors = await self.factor_provider.get_emissions_factors(**query)
        return self._select_factor(factors, quantity, unit, description, query)

    def _line_item(
        self,
        field: str,
        source_category: str,
        quantity: Decimal,
        unit: str,
        converted: Decimal,
        factor_value: Decimal,
        factor_unit: str,
        factor_source: FactorSource,
        factor: Optional[EmissionFactor] = None,
        factor_key: Optional[str] = None,
        market_instrument: Optional[str] = None,
    ) -> LineItemResult:
        co2e_kg = converted * factor_value
        return LineItemResult(
            field=field,
            source_category=source_category,
            activity_data=quantity,
            activity_unit=unit,
            converted_quantity=converted,
            emission_factor=factor_value,
            factor_unit=factor_unit,
            factor_key=factor.factor_key if factor else factor_key,
            factor_source=factor_source,
            factor_region=factor.region if factor else None,
            factor_vintage=factor.vintage if factor else None,
            market_instrument=market_instrument,
            co2e_kg=co2e_kg,
            co2e_tonnes=round_for_reporting(co2e_kg / _KG_PER_TONNE, self.config.reporting_precision),
        )

    # ==================================================================
    # Scope 1
    # ==================================================================

    async def _compute_scope1(self, request: Scope1Request) -> Tuple[List[LineItemResult], int]:
        items: List[LineItemResult] = []

        for index, fuel in enumerate(request.fuel_data):
            category = fuel.activity_type.value
            factor, converted = await self._lookup(
                f"fuel type '{fuel.fuel_type}' ({category})",
                fuel.amount,
                fuel.unit,
                category=category,
                fuel_type=fuel.fuel_type,
            )
            items.append(self._line_item(
                f"fuel_data[{index}]", category, fuel.amount, fuel.unit, converted,
                factor.factor_value, factor.factor_unit, FactorSource.PROVIDER, factor=factor,
            ))

        groups = (
            ("process_data", "process_type", ActivityType.PROCESS_EMISSIONS, request.process_data),
            ("fugitive_data", "source_type", ActivityType.FUGITIVE_EMISSIONS, request.fugitive_data),
        )
        for field_name, type_field, activity, group in groups:
            for index, item in enumerate(group or []):
                field = f"{field_name}[{index}]"
                item_type = getattr(item, type_field)
                if item.emission_factor is not None:
                    items.append(self._line_item(
                        field, activity.value, item.amount, item.unit, item.amount,
                        item.emission_factor, item.unit, FactorSource.SUPPLIED,
                        factor_key=item_type,
                    ))
                    continue
                factor, converted = await self._lookup(
                    f"{activity.value} source '{item_type}'",
                    item.amount,
                    item.unit,
                    category=activity.value,
                    fuel_type=item_type,
                )
                items.append(self._line_item(
                    field, activity.value, item.amount, item.unit, converted,
                    factor.factor_value, factor.factor_unit, FactorSource.PROVIDER, factor=factor,
                ))

        return items, 0

    # ==================================================================
    # Scope 2
    # ==================================================================

    async def _location_factor(self, item: ElectricityData) -> Tuple[EmissionFactor, Decimal]:
        if _blank(item.region):
            raise MissingData(
                "Electricity region is required to resolve a location-based factor",
                data_type="emission_factor",
                missing_fields=["region"],
            )
        return await self._lookup(
            f"electricity region '{item.region}'",
            item.amount,
            item.unit,
            category="electricity_grid",
            electricity_region=item.region,
        )

    async def _compute_scope2(self, request: Scope2Request) -> Tuple[List[LineItemResult], int]:
        methodology = request.methodology_enum
        items: List[LineItemResult] = []
        fallback_count = 0

        for index, item in enumerate(request.electricity_data):
            field = f"electricity_data[{index}]"
            if methodology == Scope2Methodology.LOCATION_BASED:
                factor, converted = await self._location_factor(item)
                items.append(self._line_item(
                    field, ActivityType.GRID_ELECTRICITY.value, item.amount, item.unit, converted,
                    factor.factor_value, factor.factor_unit, FactorSource.LOCATION, factor=factor,
                ))
                continue

            market_item = await self._market_line_item(request, item, field)
            if market_item is not None:
                items.append(market_item)
                continue

            factor, converted = await self._location_factor(item)
            fallback_count += 1
            record_factor_fallback(item.region)
            logger.warning(
                "No contractual instrument for %s (company %s); using location factor %s",
                field, request.company_id, factor.factor_key,
            )
            items.append(self._line_item(
                field, ActivityType.GRID_ELECTRICITY.value, item.amount, item.unit, converted,
                factor.factor_value, factor.factor_unit, FactorSource.LOCATION_FALLBACK, factor=factor,
            ))

        return items, fallback_count

    async def _market_line_item(
        self,
        request: Scope2Request,
        item: ElectricityData,
        field: str,
    ) -> Optional[LineItemResult]:
        """Market-based line item, or None when no instrument covers the item.

        A supplier factor (explicit, else looked up by supplier) is the base
        factor. A renewable share scales the base factor, which defaults to
        the location factor when there is no supplier factor.
        """
        renewable_pct = item.renewable_percentage
        if renewable_pct is None:
            renewable_pct = request.renewable_percentage
        has_renewables = renewable_pct is not None and renewable_pct > 0

        factor: Optional[EmissionFactor] = None
        instruments = []
        if item.supplier_emission_factor is not None:
            base_value, base_unit, converted = item.supplier_emission_factor, item.unit, item.amount
            instruments.append("supplier_specific")
        else:
            if not _blank(item.supplier):
                factors = await self.factor_provider.get_emissions_factors(
                    category="electricity_market", source=item.supplier,
                )
                compatible = [f for f in factors if self.converter.is_compatible(item.unit, f.factor_unit)]
                if compatible:
                    factor, converted = self._select_factor(
                        compatible, item.amount, item.unit,
                        f"supplier '{item.supplier}'", {"source": item.supplier},
                    )
                    instruments.append(factor.market_instrument or "supplier_specific")
            if factor is None:
                if not has_renewables:
                    return None
                factor, converted = await self._location_factor(item)
            base_value, base_unit = factor.factor_value, factor.factor_unit

        effective = base_value
        if has_renewables:
            effective = base_value * (1 - renewable_pct / _HUNDRED)
            instruments.append("renewable_energy_certificates")

        return self._line_item(
            field,
            ActivityType.GRID_ELECTRICITY.value,
            item.amount,
            item.unit,
            converted,
            effective,
            base_unit,
            FactorSource.MARKET,
            factor=factor,
            market_instrument="+".join(instruments),
        )

    # ==================================================================
    # Scope 3
    # ==================================================================

    async def _compute_scope3(self, request: Scope3Request) -> Tuple[List[LineItemResult], int]:
        items = []
        for index, item in enumerate(request.categories):
            category = Scope3Category(item.category)
            items.append(self._line_item(
                f"categories[{index}]",
                category.key,
                item.quantity,
                item.unit,
                item.quantity,
                item.emission_factor,
                item.unit,
                FactorSource.SUPPLIED,
                factor_key=item.factor_source,
            ))
        return items, 0


__all__ = ["CalculationEngine", "InvalidationHook"]
