"""
Supplier Scorecard - Main Orchestrator.

============================================================
PURPOSE
============================================================
The ScoreEngine is the main entry point for supplier scoring.

It provides:
1. Weighted total score of one monthly sample
2. Rolling, yearly and quarterly aggregation
3. At-risk assessment with per-metric shortfall attribution
4. Linear trend analysis of a year of monthly scores

============================================================
DESIGN PRINCIPLES
============================================================
- Stateless per call: weights and target are parameters,
  falling back to the configured defaults when omitted
- No I/O: samples come from the caller
- Bad readings degrade gracefully, bad wiring fails fast
- Safe to call concurrently

============================================================
USAGE
============================================================
    from supplier_scorecard import ScoreEngine, MetricSample, CriteriaWeights

    engine = ScoreEngine()
    weights = CriteriaWeights.equal()

    samples = [
        MetricSample("SUP-1", 2024, 1, otif=9.0, nil=10.0),
        MetricSample("SUP-1", 2024, 2, otif=7.5, nil=5.0, pickup=10.0),
    ]

    total = engine.compute_total_score(samples[0], weights)
    risk = engine.assess_risk(samples, weights, year=2024, target=8.7)
    trend = engine.fit_supplier_trend(samples, weights, year=2024)

============================================================
"""

from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union
import logging
import math

from .calculators import (
    QUARTER_MONTHS,
    classify_against_target,
    compare_periods,
    in_rolling_window,
    mean_or_none,
    mean_or_zero,
    metric_average,
    metric_deficits,
    normalize_impacts,
    weighted_total,
    worst_metric,
)
from .clock import ClockProtocol, SystemClock
from .config import ScorecardConfig
from .exceptions import InvalidTargetError, InvalidWeightsError
from .regression import build_trend_series, classify_fit, fit_trend
from .types import (
    AggregateScores,
    CriteriaWeights,
    FitQuality,
    Metric,
    MetricSample,
    RegressionResult,
    RiskAssessment,
    TargetStatus,
    TrendPoint,
    to_real,
)


logger = logging.getLogger(__name__)


WeightsLike = Union[CriteriaWeights, Mapping[str, Any]]


def _coerce_weights(weights: WeightsLike) -> CriteriaWeights:
    if isinstance(weights, CriteriaWeights):
        return weights
    if isinstance(weights, Mapping):
        return CriteriaWeights.from_mapping(weights)
    raise InvalidWeightsError(
        f"Criteria weights must be CriteriaWeights or a mapping, got {type(weights).__name__}"
    )


def _validate_target(target: Any) -> float:
    value = to_real(target)
    if value is None:
        raise InvalidTargetError(f"Target must be a number, got {target!r}")
    if not math.isfinite(value) or not 0.0 <= value <= 10.0:
        raise InvalidTargetError(f"Target must be within [0, 10], got {target}")
    return value


class ScoreEngine:
    """
    Supplier performance scoring engine.

    ============================================================
    RESPONSIBILITIES
    ============================================================
    1. Combine weighted metrics into a total score
    2. Aggregate monthly totals over time
    3. Flag suppliers under target and explain why
    4. Fit and describe score trends

    ============================================================
    STATE
    ============================================================
    Holds only its immutable configuration and a clock used
    for the default "as of" date. No state is carried between
    calls.

    ============================================================
    """

    def __init__(
        self,
        config: Optional[ScorecardConfig] = None,
        clock: Optional[ClockProtocol] = None,
    ):
        """
        Initialize the engine.

        Args:
            config: Engine configuration. Uses defaults if not provided.
            clock: Reference date source. Uses the system date if not provided.
        """
        self.config = config or ScorecardConfig()
        self._clock = clock or SystemClock()
        logger.info(f"ScoreEngine initialized (version {self.config.engine_version})")

    def _resolve_weights(self, weights: Optional[WeightsLike]) -> CriteriaWeights:
        """Coerce the given weights, falling back to the configured ones."""
        if weights is None:
            return self.config.weights
        return _coerce_weights(weights)

    # =========================================================
    # TOTAL SCORE
    # =========================================================

    def compute_total_score(
        self,
        sample: MetricSample,
        weights: Optional[WeightsLike] = None,
    ) -> float:
        """
        Weighted average of the metrics present in a sample.

        Args:
            sample: One supplier-month of readings
            weights: Criteria weights (defaults to config)

        Returns:
            Total score at full precision (0.0 when nothing counts)

        Raises:
            InvalidWeightsError: If the weights are malformed
        """
        return weighted_total(sample, self._resolve_weights(weights))

    # =========================================================
    # AGGREGATION
    # =========================================================

    def aggregate(
        self,
        samples: Sequence[MetricSample],
        weights: Optional[WeightsLike],
        year: int,
        as_of: Optional[date] = None,
    ) -> AggregateScores:
        """
        Rolling, yearly and quarterly averages of monthly totals.

        Args:
            samples: Full history of one supplier
            weights: Criteria weights (None = configured weights)
            year: Reporting year for year_average and quarters
            as_of: End of the rolling window (defaults to today)

        Returns:
            AggregateScores; empty quarters are None, other
            empty averages are 0.0
        """
        weights = self._resolve_weights(weights)
        if as_of is None:
            as_of = self._clock.today()

        scored = [
            (sample, weighted_total(sample, weights))
            for sample in samples
            if sample.has_data and sample.has_valid_month
        ]

        overall = mean_or_zero(total for _, total in scored)

        last_12_months = mean_or_zero(
            total
            for sample, total in scored
            if in_rolling_window(
                sample, as_of.year, as_of.month, self.config.rolling_window_months
            )
        )

        year_scored = [(sample, total) for sample, total in scored if sample.year == year]
        year_average = mean_or_zero(total for _, total in year_scored)

        quarters = tuple(
            mean_or_none(total for sample, total in year_scored if sample.month in months)
            for _, months in sorted(QUARTER_MONTHS.items())
        )

        # Q1 is compared with the year baseline, the others with the previous quarter
        previous = (year_average if year_scored else None,) + quarters[:3]
        quarter_trends = tuple(
            compare_periods(current, prev) for current, prev in zip(quarters, previous)
        )

        logger.debug(
            f"Aggregated {len(scored)} samples for {year}: "
            f"overall={overall:.3f}, year={year_average:.3f}, quarters={quarters}"
        )

        return AggregateScores(
            year=year,
            as_of=as_of,
            overall=overall,
            last_12_months=last_12_months,
            year_average=year_average,
            quarters=quarters,
            quarter_trends=quarter_trends,
        )

    # =========================================================
    # RISK
    # =========================================================

    def assess_risk(
        self,
        samples: Sequence[MetricSample],
        weights: Optional[WeightsLike],
        year: int,
        target: Optional[float] = None,
        supplier_id: Optional[str] = None,
    ) -> RiskAssessment:
        """
        Decide whether a supplier is under target and which metrics cause it.

        Args:
            samples: Samples of one supplier
            weights: Criteria weights (None = configured weights)
            year: Reporting year
            target: Minimum acceptable score (defaults to config)
            supplier_id: Reported id (defaults to the samples' id)

        Returns:
            RiskAssessment

        Raises:
            InvalidWeightsError: If the weights are malformed
            InvalidTargetError: If the target is outside [0, 10]
        """
        weights = self._resolve_weights(weights)
        target = _validate_target(self.config.default_target if target is None else target)

        if supplier_id is None:
            supplier_id = samples[0].supplier_id if samples else ""

        quarters = self.aggregate(samples, weights, year).quarters
        defined = [q for q in quarters if q is not None]

        avg_score = mean_or_zero(defined)
        at_risk = bool(defined) and math.isfinite(avg_score) and avg_score < target

        year_samples = [
            sample for sample in samples if sample.year == year and sample.has_valid_month
        ]
        averages: Dict[Metric, Optional[float]] = {
            metric: metric_average(year_samples, metric) for metric in Metric.all_metrics()
        }
        deficits = metric_deficits(averages, weights, target)
        impacts = normalize_impacts(deficits)

        status = (
            classify_against_target(avg_score, target, self.config.near_target_band)
            if defined
            else TargetStatus.NO_DATA
        )

        assessment = RiskAssessment(
            supplier_id=supplier_id,
            year=year,
            target=target,
            quarters=quarters,
            avg_score=avg_score,
            at_risk=at_risk,
            metric_averages=averages,
            deficits=deficits,
            impacts=impacts,
            worst_metric=worst_metric(averages),
            status=status,
        )

        logger.debug(
            f"Risk for {supplier_id} {year}: avg={avg_score:.3f} "
            f"target={target} at_risk={at_risk}"
        )
        return assessment

    def find_suppliers_at_risk(
        self,
        samples_by_supplier: Mapping[str, Sequence[MetricSample]],
        weights: Optional[WeightsLike],
        year: int,
        target: Optional[float] = None,
    ) -> List[RiskAssessment]:
        """
        Assess every supplier and keep only those under target.

        Args:
            samples_by_supplier: Samples keyed by supplier id
            weights: Criteria weights (None = configured weights)
            year: Reporting year
            target: Minimum acceptable score (defaults to config)

        Returns:
            At-risk assessments, lowest average first
        """
        weights = self._resolve_weights(weights)
        target = _validate_target(self.config.default_target if target is None else target)
        at_risk = []
        for supplier_id, samples in samples_by_supplier.items():
            assessment = self.assess_risk(
                samples, weights, year, target=target, supplier_id=supplier_id
            )
            if assessment.at_risk:
                at_risk.append(assessment)

        at_risk.sort(key=lambda a: (a.avg_score, a.supplier_id))
        logger.info(
            f"Found {len(at_risk)} of {len(samples_by_supplier)} suppliers at risk in {year}"
        )
        return at_risk

    # =========================================================
    # TREND
    # =========================================================

    def fit_trend(self, series: Sequence[TrendPoint]) -> RegressionResult:
        """
        Least-squares trend over a series of monthly scores.

        Scores of exactly 0 are treated as missing months.
        """
        return fit_trend(series, epsilon=self.config.trend_slope_epsilon)

    def build_trend_series(
        self,
        samples: Sequence[MetricSample],
        weights: Optional[WeightsLike],
        year: int,
        metric: Optional[Metric] = None,
    ) -> List[TrendPoint]:
        """Twelve monthly slots of total (or single-metric) scores."""
        return build_trend_series(samples, self._resolve_weights(weights), year, metric=metric)

    def fit_supplier_trend(
        self,
        samples: Sequence[MetricSample],
        weights: Optional[WeightsLike],
        year: int,
        metric: Optional[Metric] = None,
    ) -> RegressionResult:
        """Build a supplier's monthly series for a year and fit it."""
        return self.fit_trend(self.build_trend_series(samples, weights, year, metric=metric))

    def fit_quality(self, result: RegressionResult) -> FitQuality:
        """Band a regression's R² using the configured thresholds."""
        return classify_fit(
            result,
            strong=self.config.fit_quality_strong,
            moderate=self.config.fit_quality_moderate,
            weak=self.config.fit_quality_weak,
        )

    # =========================================================
    # TARGET
    # =========================================================

    def classify_against_target(
        self,
        score: Optional[float],
        target: Optional[float] = None,
    ) -> TargetStatus:
        target = _validate_target(self.config.default_target if target is None else target)
        return classify_against_target(score, target, self.config.near_target_band)

    def get_config(self) -> ScorecardConfig:
        """Return the current engine configuration."""
        return self.config


# ============================================================
# CONVENIENCE FUNCTIONS
# ============================================================


def compute_total_score(sample: MetricSample, weights: WeightsLike) -> float:
    """Weighted total of one sample with the default engine."""
    return weighted_total(sample, _coerce_weights(weights))


def aggregate(
    samples: Sequence[MetricSample],
    weights: WeightsLike,
    year: int,
    as_of: Optional[date] = None,
    config: Optional[ScorecardConfig] = None,
) -> AggregateScores:
    """
    Convenience function to aggregate in one call.

    For repeated scoring, prefer a persistent ScoreEngine.
    """
    return ScoreEngine(config=config).aggregate(samples, weights, year, as_of=as_of)


def assess_risk(
    samples: Sequence[MetricSample],
    weights: WeightsLike,
    year: int,
    target: float,
    config: Optional[ScorecardConfig] = None,
) -> RiskAssessment:
    """Convenience function to assess one supplier in one call."""
    return ScoreEngine(config=config).assess_risk(samples, weights, year, target=target)


def format_risk_summary(assessment: RiskAssessment) -> str:
    """
    Format a human-readable risk summary.

    Useful for logging and exported reports.
    """
    def _fmt(value: Optional[float]) -> str:
        return "-" if value is None else f"{value:.2f}"

    lines = [
        "=" * 50,
        f"SUPPLIER RISK SUMMARY: {assessment.supplier_id}",
        "=" * 50,
        f"Year: {assessment.year}",
        f"Target: {assessment.target:.2f}",
        f"Average: {assessment.avg_score:.2f} ({assessment.status.value})",
        f"At Risk: {'YES' if assessment.at_risk else 'no'}",
        "",
        "Quarters:",
    ]
    for number, value in enumerate(assessment.quarters, start=1):
        lines.append(f"  Q{number}: {_fmt(value)}")

    lines.extend(["", "Metrics (average / impact):"])
    for metric in Metric.all_metrics():
        average = assessment.metric_averages.get(metric)
        impact = assessment.impacts.get(metric, 0.0)
        lines.append(f"  {metric.label:<8} {_fmt(average):>6} / {impact * 100:5.1f}%")

    worst = assessment.worst_metric.label if assessment.worst_metric else "N/A"
    lines.extend(["", f"Worst Metric: {worst}", "=" * 50])

    return "\n".join(lines)
