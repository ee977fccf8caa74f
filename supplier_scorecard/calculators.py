"""
Supplier Scorecard - Calculators.

============================================================
PURPOSE
============================================================
The arithmetic shared by every scoring view.

Each calculator:
1. Takes plain values or samples
2. Applies one rule
3. Returns a number, None, or a classification

============================================================
DESIGN PRINCIPLES
============================================================
- Pure functions: same input = same output
- Absent values are skipped, never counted as zero
- Division by zero mapped to documented sentinels
- Exact rational arithmetic for averages, so that a set of
  identical scores averages to exactly that score

============================================================
"""

from fractions import Fraction
from typing import Dict, Iterable, Optional
import logging
import math
import statistics

from .types import (
    CriteriaWeights,
    Metric,
    MetricSample,
    QuarterTrend,
    TargetStatus,
)


logger = logging.getLogger(__name__)


QUARTER_MONTHS = {
    1: (1, 2, 3),
    2: (4, 5, 6),
    3: (7, 8, 9),
    4: (10, 11, 12),
}


# ============================================================
# AVERAGES
# ============================================================


def mean_or_none(values: Iterable[float]) -> Optional[float]:
    """Exact arithmetic mean, None for an empty input."""
    values = list(values)
    if not values:
        return None
    return float(statistics.mean(values))


def mean_or_zero(values: Iterable[float]) -> float:
    """Exact arithmetic mean, 0.0 for an empty input."""
    result = mean_or_none(values)
    return 0.0 if result is None else result


def weighted_total(sample: MetricSample, weights: CriteriaWeights) -> float:
    """
    Weighted average of the metrics present in a sample.

    Only present metrics enter the numerator and the
    denominator, so a supplier scored on two metrics is not
    diluted by implicit zeros for the other two.

    Args:
        sample: Monthly readings
        weights: Criteria weights

    Returns:
        Total score in [0, 10]; 0.0 when nothing is present or
        every present metric has weight 0
    """
    numerator = Fraction(0)
    denominator = Fraction(0)

    for metric in Metric.all_metrics():
        raw = getattr(sample, metric.value)
        value = sample.value(metric)
        if value is None:
            if raw is not None:
                logger.debug(
                    f"Ignoring invalid {metric.label} value {raw!r} "
                    f"for {sample.supplier_id} {sample.year}-{sample.month:02d}"
                )
            continue
        weight = Fraction(weights.weight(metric))
        numerator += Fraction(value) * weight
        denominator += weight

    if denominator <= 0:
        return 0.0
    return float(numerator / denominator)


def metric_average(samples: Iterable[MetricSample], metric: Metric) -> Optional[float]:
    """Mean of one metric's valid readings, None if there are none."""
    return mean_or_none(
        value for value in (sample.value(metric) for sample in samples) if value is not None
    )


# ============================================================
# PERIODS
# ============================================================


def months_back(as_of_year: int, as_of_month: int, year: int, month: int) -> int:
    """Number of months from (year, month) up to the reference month."""
    return (as_of_year - year) * 12 + (as_of_month - month)


def in_rolling_window(
    sample: MetricSample,
    as_of_year: int,
    as_of_month: int,
    window_months: int = 12,
) -> bool:
    """
    True if the sample falls in the window ending at the reference month.

    Both ends are inclusive: 0 <= months back <= window_months.
    """
    distance = months_back(as_of_year, as_of_month, sample.year, sample.month)
    return 0 <= distance <= window_months


def compare_periods(current: Optional[float], previous: Optional[float]) -> QuarterTrend:
    """
    Direction from a previous period to the current one.

    Returns UNDEFINED if either side has no data.
    """
    if current is None or previous is None:
        return QuarterTrend.UNDEFINED
    diff = current - previous
    if diff > 0:
        return QuarterTrend.UP
    elif diff < 0:
        return QuarterTrend.DOWN
    return QuarterTrend.FLAT


# ============================================================
# TARGET
# ============================================================


def classify_against_target(
    score: Optional[float],
    target: float,
    warning_band: float = 1.0,
) -> TargetStatus:
    """
    Band a score relative to the target.

    Args:
        score: Score to classify (None = no data)
        target: Minimum acceptable score
        warning_band: Width of the near-target band under target

    Returns:
        TargetStatus
    """
    if score is None or not math.isfinite(score):
        return TargetStatus.NO_DATA
    if score >= target:
        return TargetStatus.ON_TARGET
    elif score >= target - warning_band:
        return TargetStatus.NEAR_TARGET
    return TargetStatus.BELOW_TARGET


def metric_deficits(
    metric_averages: Dict[Metric, Optional[float]],
    weights: CriteriaWeights,
    target: float,
) -> Dict[Metric, float]:
    """
    Weighted shortfall of each metric against the target.

    deficit = max(0, target - average) * weight; metrics
    without data are not penalised.
    """
    deficits: Dict[Metric, float] = {}
    for metric in Metric.all_metrics():
        average = metric_averages.get(metric)
        if average is None:
            deficits[metric] = 0.0
            continue
        deficits[metric] = max(0.0, target - average) * weights.weight(metric)
    return deficits


def normalize_impacts(deficits: Dict[Metric, float]) -> Dict[Metric, float]:
    """
    Share of the total shortfall attributable to each metric.

    Sums to 1 when any deficit is positive, all zeros otherwise.
    """
    total = math.fsum(max(0.0, deficits.get(metric, 0.0)) for metric in Metric.all_metrics())
    if total <= 0:
        return {metric: 0.0 for metric in Metric.all_metrics()}

    impacts: Dict[Metric, float] = {}
    for metric in Metric.all_metrics():
        share = max(0.0, deficits.get(metric, 0.0)) / total
        impacts[metric] = min(1.0, max(0.0, share))
    return impacts


def worst_metric(metric_averages: Dict[Metric, Optional[float]]) -> Optional[Metric]:
    """
    Metric with the lowest average among those with data.

    Ties go to the first metric in the order OTIF, NIL,
    Pickup, Package.
    """
    worst: Optional[Metric] = None
    worst_value: Optional[float] = None
    for metric in Metric.all_metrics():
        average = metric_averages.get(metric)
        if average is None:
            continue
        if worst_value is None or average < worst_value:
            worst = metric
            worst_value = average
    return worst
