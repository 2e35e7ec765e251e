# -*- coding: utf-8 -*-
"""
Emissions Engine Configuration

Centralized configuration for the emissions calculation and validation
engines covering:
- Quality score weights (completeness, accuracy, consistency, timeliness)
- Accuracy and consistency deductions, outlier threshold, unit-variety limit
- Timeliness placeholder score and recommendation threshold
- Reporting precision and long-period warning limit
- Bulk validation worker count
- Backend API connection defaults (base URL, token, timeout)
- Emission factor registry location and logging

All settings can be overridden via environment variables with the
``GHG_`` prefix (e.g. ``GHG_OUTLIER_THRESHOLD``).

Example:
    >>> from ghgcore.emissions.config import get_config
    >>> cfg = get_config()
    >>> print(cfg.completeness_weight, cfg.outlier_threshold)

Author: ghgcore maintainers
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ghgcore.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Environment variable prefix
# ---------------------------------------------------------------------------

_ENV_PREFIX = "GHG_"


# ---------------------------------------------------------------------------
# EmissionsEngineConfig
# ---------------------------------------------------------------------------


@dataclass
class EmissionsEngineConfig:
    """Complete configuration for the ghgcore emissions engines.

    Attributes:
        completeness_weight: Weight of the completeness sub-score.
        accuracy_weight: Weight of the accuracy sub-score.
        consistency_weight: Weight of the consistency sub-score.
        timeliness_weight: Weight of the timeliness sub-score.
        negative_value_deduction: Accuracy points removed per negative quantity.
        outlier_deduction: Accuracy points removed per fuel quantity above
            ``outlier_threshold``.
        outlier_threshold: Fuel quantity above which an entry counts as an
            outlier. The default is a placeholder pending domain review.
        unit_variety_limit: Distinct Scope 1/2 units tolerated before the
            consistency deduction applies.
        unit_variety_deduction: Consistency points removed when the unit
            variety limit is exceeded.
        year_mismatch_deduction: Consistency points removed when neither
            period boundary falls in ``reporting_year``.
        timeliness_placeholder_score: Fixed timeliness sub-score.
        recommendation_threshold: Quality score below which the score
            recommendation is emitted.
        long_period_days: Reporting periods longer than this raise a warning.
        reporting_precision: Decimal places for reported tCO2e totals.
        bulk_max_workers: Threads used by bulk validation (1 = sequential).
        api_base_url: Backend REST API base URL.
        api_token: Bearer token sent to the backend, if any.
        api_timeout_seconds: Per-request timeout for backend calls.
        factor_registry_path: YAML registry used by the static factor
            provider (None = bundled registry).
        log_level: Logging level for the ghgcore loggers.
    """

    # -- Quality score weights -----------------------------------------------
    completeness_weight: float = 0.4
    accuracy_weight: float = 0.3
    consistency_weight: float = 0.2
    timeliness_weight: float = 0.1

    # -- Deductions and thresholds -------------------------------------------
    negative_value_deduction: float = 10.0
    outlier_deduction: float = 5.0
    outlier_threshold: float = 1_000_000.0
    unit_variety_limit: int = 3
    unit_variety_deduction: float = 10.0
    year_mismatch_deduction: float = 15.0
    timeliness_placeholder_score: float = 90.0
    recommendation_threshold: float = 80.0
    long_period_days: int = 366

    # -- Calculation ---------------------------------------------------------
    reporting_precision: int = 3

    # -- Processing ----------------------------------------------------------
    bulk_max_workers: int = 1

    # -- Backend API ---------------------------------------------------------
    api_base_url: str = "http://localhost:8000/v1"
    api_token: Optional[str] = None
    api_timeout_seconds: float = 30.0

    # -- Factor registry -----------------------------------------------------
    factor_registry_path: Optional[str] = None

    # -- Logging -------------------------------------------------------------
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        weights = self.score_weights()
        if any(w < 0 for w in weights.values()):
            raise ConfigurationError(
                "Quality score weights must be non-negative",
                context={"weights": weights},
            )
        if sum(weights.values()) <= 0:
            raise ConfigurationError(
                "Quality score weights must not all be zero",
                context={"weights": weights},
            )
        if self.bulk_max_workers < 1:
            raise ConfigurationError(
                "bulk_max_workers must be at least 1",
                context={"bulk_max_workers": self.bulk_max_workers},
            )
        if self.reporting_precision < 0:
            raise ConfigurationError(
                "reporting_precision must be non-negative",
                context={"reporting_precision": self.reporting_precision},
            )

    def score_weights(self) -> Dict[str, float]:
        """Return the quality sub-score weights keyed by dimension."""
        return {
            "completeness": self.completeness_weight,
            "accuracy": self.accuracy_weight,
            "consistency": self.consistency_weight,
            "timeliness": self.timeliness_weight,
        }

    # ------------------------------------------------------------------
    # Factory helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_env(cls) -> EmissionsEngineConfig:
        """Build an EmissionsEngineConfig from environment variables.

        Every field can be overridden via ``GHG_<FIELD_UPPER>``. Values that
        fail to parse are logged and replaced by the default.

        Returns:
            Populated EmissionsEngineConfig instance.
        """
        prefix = _ENV_PREFIX

        def _env(name: str, default: Any = None) -> Optional[str]:
            return os.environ.get(f"{prefix}{name}", default)

        def _int(name: str, default: int) -> int:
            val = _env(name)
            if val is None:
                return default
            try:
                return int(val)
            except ValueError:
                logger.warning(
                    "Invalid integer for %s%s=%s, using default %d",
                    prefix, name, val, default,
                )
                return default

        def _float(name: str, default: float) -> float:
            val = _env(name)
            if val is None:
                return default
            try:
                return float(val)
            except ValueError:
                logger.warning(
                    "Invalid float for %s%s=%s, using default %f",
                    prefix, name, val, default,
                )
                return default

        def _str(name: str, default: Optional[str]) -> Optional[str]:
            val = _env(name)
            if val is None or val == "":
                return default
            return val

        config = cls(
            # Weights
            completeness_weight=_float("COMPLETENESS_WEIGHT", cls.completeness_weight),
            accuracy_weight=_float("ACCURACY_WEIGHT", cls.accuracy_weight),
            consistency_weight=_float("CONSISTENCY_WEIGHT", cls.consistency_weight),
            timeliness_weight=_float("TIMELINESS_WEIGHT", cls.timeliness_weight),
            # Deductions and thresholds
            negative_value_deduction=_float(
                "NEGATIVE_VALUE_DEDUCTION", cls.negative_value_deduction,
            ),
            outlier_deduction=_float("OUTLIER_DEDUCTION", cls.outlier_deduction),
            outlier_threshold=_float("OUTLIER_THRESHOLD", cls.outlier_threshold),
            unit_variety_limit=_int("UNIT_VARIETY_LIMIT", cls.unit_variety_limit),
            unit_variety_deduction=_float(
                "UNIT_VARIETY_DEDUCTION", cls.unit_variety_deduction,
            ),
            year_mismatch_deduction=_float(
                "YEAR_MISMATCH_DEDUCTION", cls.year_mismatch_deduction,
            ),
            timeliness_placeholder_score=_float(
                "TIMELINESS_PLACEHOLDER_SCORE", cls.timeliness_placeholder_score,
            ),
            recommendation_threshold=_float(
                "RECOMMENDATION_THRESHOLD", cls.recommendation_threshold,
            ),
            long_period_days=_int("LONG_PERIOD_DAYS", cls.long_period_days),
            # Calculation
            reporting_precision=_int("REPORTING_PRECISION", cls.reporting_precision),
            # Processing
            bulk_max_workers=_int("BULK_MAX_WORKERS", cls.bulk_max_workers),
            # Backend API
            api_base_url=_str("API_BASE_URL", cls.api_base_url),
            api_token=_str("API_TOKEN", cls.api_token),
            api_timeout_seconds=_float("API_TIMEOUT_SECONDS", cls.api_timeout_seconds),
            # Factor registry
            factor_registry_path=_str("FACTOR_REGISTRY_PATH", cls.factor_registry_path),
            # Logging
            log_level=_str("LOG_LEVEL", cls.log_level),
        )

        logger.info(
            "EmissionsEngineConfig loaded: weights=[C=%.2f A=%.2f Co=%.2f T=%.2f], "
            "outlier_threshold=%.1f, unit_variety_limit=%d, timeliness=%.1f, "
            "precision=%d, bulk_workers=%d, api=%s, timeout=%.1fs",
            config.completeness_weight,
            config.accuracy_weight,
            config.consistency_weight,
            config.timeliness_weight,
            config.outlier_threshold,
            config.unit_variety_limit,
            config.timeliness_placeholder_score,
            config.reporting_precision,
            config.bulk_max_workers,
            config.api_base_url,
            config.api_timeout_seconds,
        )
        return config


# ---------------------------------------------------------------------------
# Thread-safe singleton accessor
# ---------------------------------------------------------------------------

_config_instance: Optional[EmissionsEngineConfig] = None
_config_lock = threading.Lock()


def apply_log_level(config: EmissionsEngineConfig) -> None:
    """Set the level of the top-level ``ghgcore`` logger from ``config.log_level``.

    Unknown level names fall back to INFO.
    """
    level = logging.getLevelName((config.log_level or "INFO").upper())
    if not isinstance(level, int):
        level = logging.INFO
    logging.getLogger("ghgcore").setLevel(level)


def get_config() -> EmissionsEngineConfig:
    """Return the singleton EmissionsEngineConfig, creating from env if needed.

    Uses double-checked locking so the hot path does not take the lock.
    """
    global _config_instance
    if _config_instance is None:
        with _config_lock:
            if _config_instance is None:
                _config_instance = EmissionsEngineConfig.from_env()
                apply_log_level(_config_instance)
    return _config_instance


def set_config(config: EmissionsEngineConfig) -> None:
    """Replace the singleton EmissionsEngineConfig (useful for testing).

    Args:
        config: New configuration to install.
    """
    global _config_instance
    with _config_lock:
        _config_instance = config
    apply_log_level(config)
    logger.info("EmissionsEngineConfig replaced programmatically")


def reset_config() -> None:
    """Reset the singleton (primarily for test teardown)."""
    global _config_instance
    with _config_lock:
        _config_instance = None


__all__ = [
    "EmissionsEngineConfig",
    "apply_log_level",
    "get_config",
    "set_config",
    "reset_config",
]
