# -*- coding: utf-8 -*-
"""
Data Quality Scorer

Computes the 0-100 data quality score attached to every validation result
and calculation. The score is a weighted mean of four sub-scores:

    completeness  populated / expected required fields
    accuracy      100 - deductions for negative and outlier quantities
    consistency   100 - deductions for unit sprawl and period/year mismatch
    timeliness    fixed placeholder (no data-freshness timestamps yet)

``overall = round_half_up(sum(w_i * s_i) / sum(w_i))`` with weights and
deductions taken from EmissionsEngineConfig (defaults 0.4 / 0.3 / 0.2 / 0.1).

Example:
    >>> scorer = DataQualityScorer()
    >>> scorer.score(request)
    99
"""

import logging
from decimal import Decimal
from typing import List, Optional, Tuple

from ghgcore.determinism import round_half_up
from ghgcore.emissions.config import EmissionsEngineConfig, get_config
from ghgcore.emissions.models import (
    CalculationRequest,
    QualityScoreBreakdown,
    Scope1Request,
    Scope2Request,
    Scope3Request,
)
from ghgcore.emissions.unit_converter import UnitConverter

logger = logging.getLogger(__name__)

_HUNDRED = Decimal("100")
_ZERO = Decimal("0")


def _present(value: Optional[str]) -> bool:
    return value is not None and value.strip() != ""


def _d(value: float) -> Decimal:
    return Decimal(str(value))


class DataQualityScorer:
    """Weighted four-dimension quality scorer for calculation requests."""

    def __init__(self, config: Optional[EmissionsEngineConfig] = None):
        self.config = config or get_config()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def score(self, request: Optional[CalculationRequest]) -> int:
        """Overall score in [0, 100]; 0 when there is no request."""
        if request is None:
            return 0
        return self.breakdown(request).overall

    def breakdown(self, request: CalculationRequest) -> QualityScoreBreakdown:
        """Sub-scores, weights and overall score for a request."""
        sub_scores = {
            "completeness": self.completeness(request),
            "accuracy": self.accuracy(request),
            "consistency": self.consistency(request),
            "timeliness": self.timeliness(request),
        }
        weights = {k: _d(v) for k, v in self.config.score_weights().items()}

        weighted = sum((weights[k] * sub_scores[k] for k in sub_scores), _ZERO)
        overall = round_half_up(weighted / sum(weights.values()))
        overall = max(0, min(100, overall))

        logger.debug(
            "Quality score %d (C=%s A=%s Co=%s T=%s)",
            overall,
            sub_scores["completeness"],
            sub_scores["accuracy"],
            sub_scores["consistency"],
            sub_scores["timeliness"],
        )
        return QualityScoreBreakdown(
            completeness=float(sub_scores["completeness"]),
            accuracy=float(sub_scores["accuracy"]),
            consistency=float(sub_scores["consistency"]),
            timeliness=float(sub_scores["timeliness"]),
            weights=self.config.score_weights(),
            overall=overall,
        )

    # ------------------------------------------------------------------
    # Sub-scores
    # ------------------------------------------------------------------

    def completeness(self, request: CalculationRequest) -> Decimal:
        """Percentage of expected required fields that are populated.

        Expected fields: company_id and reporting_period, plus three per
        fuel item, two per electricity item and four per Scope 3 item.
        """
        filled, total = self._count_fields(request)
        if total == 0:
            return _ZERO
        return Decimal(filled) / Decimal(total) * _HUNDRED

    def accuracy(self, request: CalculationRequest) -> Decimal:
        cfg = self.config
        deductions = _ZERO
        for quantity in self._primary_quantities(request):
            if quantity < 0:
                deductions += _d(cfg.negative_value_deduction)

        # Outlier check only applies to fuel quantities
        if isinstance(request, Scope1Request):
            threshold = _d(cfg.outlier_threshold)
            for fuel in request.fuel_data or []:
                if fuel.amount is not None and fuel.amount > threshold:
                    deductions += _d(cfg.outlier_deduction)

        return max(_ZERO, _HUNDRED - deductions)

    def consistency(self, request: CalculationRequest) -> Decimal:
        cfg = self.config
        deductions = _ZERO

        if isinstance(request, (Scope1Request, Scope2Request)):
            units = {
                UnitConverter.normalize_unit(item.unit)
                for item in request.activity_items()
                if _present(item.unit)
            }
            if len(units) > cfg.unit_variety_limit:
                deductions += _d(cfg.unit_variety_deduction)

        period = request.reporting_period
        if (
            period is not None
            and period.start_date is not None
            and period.end_date is not None
            and period.reporting_year
        ):
            if (
                period.start_date.year != period.reporting_year
                and period.end_date.year != period.reporting_year
            ):
                deductions += _d(cfg.year_mismatch_deduction)

        return max(_ZERO, _HUNDRED - deductions)

    def timeliness(self, request: CalculationRequest) -> Decimal:
        # TODO: derive from data freshness once line items carry collection timestamps
        return _d(self.config.timeliness_placeholder_score)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _count_fields(request: CalculationRequest) -> Tuple[int, int]:
        filled = int(_present(request.company_id)) + int(request.reporting_period is not None)
        total = 2

        if isinstance(request, Scope1Request):
            for fuel in request.fuel_data or []:
                total += 3
                filled += _present(fuel.fuel_type) + (fuel.amount is not None) + _present(fuel.unit)
        elif isinstance(request, Scope2Request):
            for item in request.electricity_data or []:
                total += 2
                filled += (item.amount is not None) + _present(item.unit)
        elif isinstance(request, Scope3Request):
            for item in request.categories or []:
                total += 4
                filled += (
                    (item.category is not None)
                    + (item.quantity is not None)
                    + _present(item.unit)
                    + (item.emission_factor is not None)
                )
        return filled, total

    @staticmethod
    def _primary_quantities(request: CalculationRequest) -> List[Decimal]:
        if isinstance(request, Scope3Request):
            values = [item.quantity for item in request.categories or []]
        else:
            values = [item.amount for item in request.activity_items()]
        return [v for v in values if v is not None]


__all__ = ["DataQualityScorer"]
