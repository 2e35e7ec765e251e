# -*- coding: utf-8 -*-
"""
Prometheus Metrics - ghgcore emissions engines

Metrics:
    1. ghg_validations_total (Counter, labels: scope, outcome)
    2. ghg_validation_issues_total (Counter, labels: code, severity)
    3. ghg_quality_score (Histogram, buckets: 10-100)
    4. ghg_calculations_total (Counter, labels: scope, outcome)
    5. ghg_factor_fallbacks_total (Counter, labels: region)
    6. ghg_processing_duration_seconds (Histogram, labels: operation)
    7. ghg_store_errors_total (Counter, labels: operation)

Author: ghgcore maintainers
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import logging

from prometheus_client import Counter, Histogram

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Metric definitions
# ---------------------------------------------------------------------------

# 1. Validations by scope and outcome (valid, invalid, error)
ghg_validations_total = Counter(
    "ghg_validations_total",
    "Total emissions validations performed",
    labelnames=["scope", "outcome"],
)

# 2. Validation findings by code and severity
ghg_validation_issues_total = Counter(
    "ghg_validation_issues_total",
    "Total validation errors and warnings reported",
    labelnames=["code", "severity"],
)

# 3. Data quality score distribution
ghg_quality_score = Histogram(
    "ghg_quality_score",
    "Data quality score distribution (0-100)",
    buckets=(10, 20, 30, 40, 50, 60, 70, 80, 90, 100),
)

# 4. Calculations by scope and outcome (success, rejected, failed)
ghg_calculations_total = Counter(
    "ghg_calculations_total",
    "Total emissions calculations attempted",
    labelnames=["scope", "outcome"],
)

# 5. Market-based line items that fell back to the location factor
ghg_factor_fallbacks_total = Counter(
    "ghg_factor_fallbacks_total",
    "Market-based Scope 2 line items calculated with the location factor",
    labelnames=["region"],
)

# 6. Processing duration by operation
ghg_processing_duration_seconds = Histogram(
    "ghg_processing_duration_seconds",
    "Emissions engine processing duration in seconds",
    labelnames=["operation"],
    buckets=(
        0.001, 0.005, 0.01, 0.05, 0.1, 0.25,
        0.5, 1.0, 2.5, 5.0, 10.0, 30.0,
    ),
)

# 7. Calculation store and metrics source failures
ghg_store_errors_total = Counter(
    "ghg_store_errors_total",
    "Total failures reading from or writing to external collaborators",
    labelnames=["operation"],
)


# ---------------------------------------------------------------------------
# Helper functions
# ---------------------------------------------------------------------------


def record_validation(scope: str, outcome: str) -> None:
    """Record a validation run.

    Args:
        scope: scope1, scope2, scope3 or unknown.
        outcome: valid, invalid or error.
    """
    ghg_validations_total.labels(scope=scope, outcome=outcome).inc()


def record_validation_issue(code: str, severity: str) -> None:
    """Record a single validation error or warning."""
    ghg_validation_issues_total.labels(code=code, severity=severity).inc()


def record_quality_score(score: float) -> None:
    """Observe a data quality score."""
    ghg_quality_score.observe(score)


def record_calculation(scope: str, outcome: str) -> None:
    """Record a calculation attempt.

    Args:
        scope: scope1, scope2 or scope3.
        outcome: success, rejected (guard) or failed.
    """
    ghg_calculations_total.labels(scope=scope, outcome=outcome).inc()


def record_factor_fallback(region: str) -> None:
    """Record a market-based line item that used the location factor."""
    ghg_factor_fallbacks_total.labels(region=region or "unknown").inc()


def record_processing_duration(operation: str, duration: float) -> None:
    """Observe how long an engine operation took, in seconds."""
    ghg_processing_duration_seconds.labels(operation=operation).observe(duration)


def record_store_error(operation: str) -> None:
    """Record a failed call to the calculation store or metrics source."""
    ghg_store_errors_total.labels(operation=operation).inc()


__all__ = [
    # Metric objects
    "ghg_validations_total",
    "ghg_validation_issues_total",
    "ghg_quality_score",
    "ghg_calculations_total",
    "ghg_factor_fallbacks_total",
    "ghg_processing_duration_seconds",
    "ghg_store_errors_total",
    # Helper functions
    "record_validation",
    "record_validation_issue",
    "record_quality_score",
    "record_calculation",
    "record_factor_fallback",
    "record_processing_duration",
    "record_store_error",
]
