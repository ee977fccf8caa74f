"""
Supplier Scorecard - Trend Regression.

============================================================
PURPOSE
============================================================
Fits an ordinary-least-squares line through a year of
monthly scores and describes it: slope, intercept, R²,
direction, equation and actual-vs-predicted points.

============================================================
ZERO SCORES
============================================================
A month scoring exactly 0 is treated as a month without
data here. Zero usually comes from a month whose total was
never computed rather than a real zero performance. This
differs from the total score, where 0 is a valid reading.

============================================================
X AXIS
============================================================
x is the position among present points (1..n), not the
calendar month. A gap month therefore does not stretch the
line.

============================================================
"""

from typing import List, Optional, Sequence
import logging
import math

from .calculators import mean_or_none, weighted_total
from .types import (
    CriteriaWeights,
    FitQuality,
    Metric,
    MetricSample,
    RegressionPoint,
    RegressionResult,
    TrendDirection,
    TrendPoint,
    to_real,
)


logger = logging.getLogger(__name__)


MONTH_LABELS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

DEFAULT_TREND_EPSILON = 0.01

# Total variance at or below this is treated as a flat series
_FLAT_VARIANCE = 1e-12


def _present_score(score) -> Optional[float]:
    value = to_real(score)
    if value is None or not math.isfinite(value) or value <= 0:
        return None
    return value


def format_equation(slope: float, intercept: float) -> str:
    """
    Render the trend line as text.

    Example: "y = 0.25x + 7.10" or "y = -0.10x - 1.50".
    """
    # Adding 0.0 turns -0.0 into 0.0 so it never prints as "-0.00"
    rounded_slope = round(slope, 2) + 0.0
    rounded_intercept = round(intercept, 2) + 0.0
    if rounded_intercept >= 0:
        return f"y = {rounded_slope:.2f}x + {rounded_intercept:.2f}"
    return f"y = {rounded_slope:.2f}x - {abs(rounded_intercept):.2f}"


def classify_slope(slope: float, epsilon: float = DEFAULT_TREND_EPSILON) -> TrendDirection:
    if slope > epsilon:
        return TrendDirection.INCREASING
    elif slope < -epsilon:
        return TrendDirection.DECREASING
    return TrendDirection.STABLE


def fit_trend(
    series: Sequence[TrendPoint],
    epsilon: float = DEFAULT_TREND_EPSILON,
) -> RegressionResult:
    """
    Fit a least-squares line through the present points of a series.

    Args:
        series: Chronological points; None, 0 and invalid scores are skipped
        epsilon: Slope magnitude under which the trend is stable

    Returns:
        RegressionResult (zeroed, stable result for an empty series)
    """
    present = []
    ys = []
    for point in series:
        score = _present_score(point.score)
        if score is not None:
            present.append(point)
            ys.append(score)
    n = len(present)

    if n == 0:
        return RegressionResult()

    xs = [float(i) for i in range(1, n + 1)]

    mean_x = math.fsum(xs) / n
    mean_y = math.fsum(ys) / n

    sxy = math.fsum((x - mean_x) * (y - mean_y) for x, y in zip(xs, ys))
    sxx = math.fsum((x - mean_x) ** 2 for x in xs)

    slope = sxy / sxx if sxx != 0 else 0.0
    intercept = mean_y - slope * mean_x

    predicted = [slope * x + intercept for x in xs]
    ss_res = math.fsum((y - p) ** 2 for y, p in zip(ys, predicted))
    ss_tot = math.fsum((y - mean_y) ** 2 for y in ys)

    if ss_tot <= _FLAT_VARIANCE:
        r2 = 0.0
    else:
        r2 = 1.0 - ss_res / ss_tot
    r2 = min(1.0, max(0.0, r2))

    points = tuple(
        RegressionPoint(
            label=point.label,
            real=y,
            predicted=p,
            difference=y - p,
        )
        for point, y, p in zip(present, ys, predicted)
    )

    result = RegressionResult(
        slope=slope,
        intercept=intercept,
        r2=r2,
        trend=classify_slope(slope, epsilon),
        equation=format_equation(slope, intercept),
        months_analyzed=n,
        average_score=mean_y,
        real_vs_predicted=points,
    )

    logger.debug(
        f"Fitted trend over {n} points: {result.equation}, "
        f"r2={r2:.3f}, trend={result.trend.value}"
    )
    return result


def classify_fit(
    result: RegressionResult,
    strong: float = 0.8,
    moderate: float = 0.5,
    weak: float = 0.3,
) -> FitQuality:
    return FitQuality.from_r2(result.r2, strong=strong, moderate=moderate, weak=weak)


def build_trend_series(
    samples: Sequence[MetricSample],
    weights: CriteriaWeights,
    year: int,
    metric: Optional[Metric] = None,
) -> List[TrendPoint]:
    """
    Lay out one year of monthly scores as 12 labelled slots.

    Args:
        samples: Supplier samples (any years; only `year` is used)
        weights: Criteria weights for total scores
        year: Reporting year
        metric: Chart one metric instead of the total score

    Returns:
        Twelve TrendPoints, Jan..Dec; months without data hold None
    """
    by_month = {month: [] for month in range(1, 13)}
    for sample in samples:
        if sample.year != year or not sample.has_valid_month:
            continue
        if metric is None:
            if sample.has_data:
                by_month[sample.month].append(weighted_total(sample, weights))
        else:
            value = sample.value(metric)
            if value is not None:
                by_month[sample.month].append(value)

    return [
        TrendPoint(label=MONTH_LABELS[month - 1], score=mean_or_none(by_month[month]))
        for month in range(1, 13)
    ]
