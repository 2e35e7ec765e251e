# -*- coding: utf-8 -*-
"""
Request Builders

Small constructors for calculation requests, mainly for scripts and tests.

Example:
    >>> request = build_request(
    ...     "scope1",
    ...     calculation_name="FY2024 Scope 1",
    ...     company_id="acme",
    ...     reporting_period=create_reporting_period(2024),
    ...     fuel_data=[create_fuel_data("natural_gas", 1000, "therms")],
    ... )
"""

from datetime import date
from decimal import Decimal
from typing import Any, Optional, Union

from ghgcore.determinism import safe_decimal
from ghgcore.emissions.models import (
    ActivityType,
    CalculationRequest,
    ElectricityData,
    FuelData,
    ReportingPeriod,
    Scope1Request,
    Scope2Request,
    Scope3CategoryItem,
    Scope3Request,
    ScopeType,
)
from ghgcore.exceptions import ValidationError

Number = Union[int, float, str, Decimal]

_REQUEST_TYPES = {
    ScopeType.SCOPE1: Scope1Request,
    ScopeType.SCOPE2: Scope2Request,
    ScopeType.SCOPE3: Scope3Request,
}


def _optional_decimal(value: Optional[Number]) -> Optional[Decimal]:
    return None if value is None else safe_decimal(value)


def create_reporting_period(year: int) -> ReportingPeriod:
    """Calendar-year reporting period: January 1 to December 31 of ``year``."""
    return ReportingPeriod(
        start_date=date(year, 1, 1),
        end_date=date(year, 12, 31),
        reporting_year=year,
    )


def create_fuel_data(
    fuel_type: str,
    amount: Number,
    unit: str,
    activity_type: Union[ActivityType, str] = ActivityType.STATIONARY_COMBUSTION,
    **extra: Any,
) -> FuelData:
    return FuelData(
        fuel_type=fuel_type,
        amount=safe_decimal(amount),
        unit=unit,
        activity_type=ActivityType(activity_type),
        **extra,
    )


def create_electricity_data(
    amount: Number,
    unit: str = "kWh",
    region: Optional[str] = None,
    supplier: Optional[str] = None,
    supplier_emission_factor: Optional[Number] = None,
    renewable_percentage: Optional[Number] = None,
    **extra: Any,
) -> ElectricityData:
    return ElectricityData(
        amount=safe_decimal(amount),
        unit=unit,
        region=region,
        supplier=supplier,
        supplier_emission_factor=_optional_decimal(supplier_emission_factor),
        renewable_percentage=_optional_decimal(renewable_percentage),
        **extra,
    )


def create_scope3_item(
    category: int,
    quantity: Number,
    unit: str,
    emission_factor: Number,
    description: Optional[str] = None,
    factor_source: Optional[str] = None,
    **extra: Any,
) -> Scope3CategoryItem:
    return Scope3CategoryItem(
        category=category,
        quantity=safe_decimal(quantity),
        unit=unit,
        emission_factor=safe_decimal(emission_factor),
        description=description,
        factor_source=factor_source,
        **extra,
    )


def build_request(scope: Union[ScopeType, str], **fields: Any) -> CalculationRequest:
    """
    Build a typed request for ``scope`` from keyword fields.

    Raises:
        ValidationError: If ``scope`` is not scope1, scope2 or scope3
    """
    try:
        scope_type = ScopeType(scope)
    except ValueError as e:
        raise ValidationError(
            f"Unknown scope: {scope}",
            field="scope",
        ) from e
    return _REQUEST_TYPES[scope_type](**fields)


__all__ = [
    "build_request",
    "create_electricity_data",
    "create_fuel_data",
    "create_reporting_period",
    "create_scope3_item",
]
