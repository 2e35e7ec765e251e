# -*- coding: utf-8 -*-
"""
ghgcore: GHG emissions validation and calculation
==================================================

Validates Scope 1, 2 and 3 emissions calculation requests, scores their
data quality, and converts activity data into tCO2e with per-line
provenance.

Subpackages:
    - emissions: models, validation engine, calculation engine, factor
      providers, backend API client and reporting service
"""

__version__ = "1.0.0"

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
)

__all__ = [
    "__version__",
    "GHGCoreException",
    "CalculationException",
    "ValidationError",
    "CalculationError",
    "ConfigurationError",
    "DataException",
    "InvalidSchema",
    "MissingData",
    "UnitConversionError",
    "DataAccessError",
    "RequestTimeoutError",
]
