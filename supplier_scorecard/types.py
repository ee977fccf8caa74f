"""
Supplier Scorecard - Type Definitions.

============================================================
PURPOSE
============================================================
Data contracts for the supplier scoring engine.

This module defines the enums and dataclasses exchanged
between the engine and its collaborators: the store that
supplies monthly samples and criteria weights, and the
views that render scores, risk cards and trend charts.

============================================================
DESIGN PRINCIPLES
============================================================
- All types are immutable
- Absent metric = None, never 0
- Enums for discrete classifications
- Clear separation between input and output types

============================================================
METRICS
============================================================
Every sample carries up to four sub-metrics on a 0-10 scale:

1. OTIF - On-Time-In-Full delivery
2. NIL - Incident-count derived banding
3. PICKUP - Pickup quality incidents
4. PACKAGE - Packaging quality incidents

The declaration order is also the tie-break order used when
picking a supplier's worst metric.

============================================================
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple
import math
import numbers

from .exceptions import InvalidWeightsError


METRIC_MIN_VALUE = 0.0
METRIC_MAX_VALUE = 10.0


# ============================================================
# ENUMS
# ============================================================


class Metric(str, Enum):
    """
    The four sub-metrics combined into a supplier's total score.
    """

    OTIF = "otif"
    NIL = "nil"
    PICKUP = "pickup"
    PACKAGE = "package"

    @classmethod
    def all_metrics(cls) -> List["Metric"]:
        """Return all metrics in tie-break order."""
        return [cls.OTIF, cls.NIL, cls.PICKUP, cls.PACKAGE]

    @property
    def label(self) -> str:
        """Display label as used on the scorecard."""
        return {
            "otif": "OTIF",
            "nil": "NIL",
            "pickup": "Pickup",
            "package": "Package",
        }[self.value]


class QuarterTrend(str, Enum):
    """
    Direction of a quarter relative to the preceding period.

    UNDEFINED is used whenever either side has no data and
    is rendered without an arrow.
    """

    UP = "up"
    DOWN = "down"
    FLAT = "flat"
    UNDEFINED = "undefined"


class TrendDirection(str, Enum):
    """Direction of a fitted regression line."""

    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


class FitQuality(str, Enum):
    """
    How much of the score variation the trend line explains.

    Bands (R²):
    - STRONG: >= 0.8
    - MODERATE: >= 0.5
    - WEAK: >= 0.3
    - VERY_WEAK: below 0.3
    """

    STRONG = "strong"
    MODERATE = "moderate"
    WEAK = "weak"
    VERY_WEAK = "very_weak"

    @classmethod
    def from_r2(
        cls,
        r2: float,
        strong: float = 0.8,
        moderate: float = 0.5,
        weak: float = 0.3,
    ) -> "FitQuality":
        """
        Classify a coefficient of determination.

        Args:
            r2: R² in [0, 1]
            strong: Lower bound for STRONG
            moderate: Lower bound for MODERATE
            weak: Lower bound for WEAK

        Returns:
            FitQuality band
        """
        if r2 >= strong:
            return cls.STRONG
        elif r2 >= moderate:
            return cls.MODERATE
        elif r2 >= weak:
            return cls.WEAK
        return cls.VERY_WEAK


class TargetStatus(str, Enum):
    """
    Position of a score relative to the target.

    - ON_TARGET: score >= target
    - NEAR_TARGET: within the warning band below target
    - BELOW_TARGET: further below
    - NO_DATA: nothing to compare
    """

    ON_TARGET = "on_target"
    NEAR_TARGET = "near_target"
    BELOW_TARGET = "below_target"
    NO_DATA = "no_data"


# ============================================================
# VALUE VALIDATION
# ============================================================


def to_real(value: Any) -> Optional[float]:
    """
    Convert a real number to float, None for anything else.

    Accepts int, float, Decimal (as returned by Numeric columns)
    and other numbers.Real types. Booleans are not numbers here.
    The result may be NaN or infinite.
    """
    if value is None or isinstance(value, bool):
        return None
    if not isinstance(value, (numbers.Real, Decimal)):
        return None
    try:
        return float(value)
    except (ValueError, OverflowError):
        # Signaling NaN Decimals refuse conversion
        return None


def normalize_metric_value(value: Any) -> Optional[float]:
    """
    Return a metric reading as float, or None if it cannot count.

    Non-numeric values, booleans, NaN, infinities and readings
    outside [0, 10] are treated as absent.
    """
    value = to_real(value)
    if value is None or not math.isfinite(value):
        return None
    if value < METRIC_MIN_VALUE or value > METRIC_MAX_VALUE:
        return None
    return value


# ============================================================
# INPUT DATA CONTRACTS
# ============================================================


@dataclass(frozen=True)
class MetricSample:
    """
    One supplier's sub-metric readings for one calendar month.

    None means no submission that month. Zero is a real score.
    """

    supplier_id: str
    year: int
    month: int  # 1-12

    otif: Optional[float] = None
    nil: Optional[float] = None
    pickup: Optional[float] = None
    package: Optional[float] = None

    def value(self, metric: Metric) -> Optional[float]:
        """Return the validated reading for a metric, None if absent or invalid."""
        return normalize_metric_value(getattr(self, Metric(metric).value))

    def present_metrics(self) -> Dict[Metric, float]:
        """Return the valid readings keyed by metric, in tie-break order."""
        present: Dict[Metric, float] = {}
        for metric in Metric.all_metrics():
            reading = self.value(metric)
            if reading is not None:
                present[metric] = reading
        return present

    @property
    def has_data(self) -> bool:
        """True if at least one metric carries a valid reading."""
        return any(self.value(metric) is not None for metric in Metric.all_metrics())

    @property
    def has_valid_month(self) -> bool:
        """False for month numbers outside 1-12; such rows are never aggregated."""
        return isinstance(self.month, int) and 1 <= self.month <= 12


_WEIGHT_KEY_ALIASES = {
    "otif": Metric.OTIF,
    "nil": Metric.NIL,
    "pickup": Metric.PICKUP,
    "quality_pickup": Metric.PICKUP,
    "package": Metric.PACKAGE,
    "quality_package": Metric.PACKAGE,
}


@dataclass(frozen=True)
class CriteriaWeights:
    """
    Relative weight of each metric in the total score.

    Weights are not required to sum to 1: the total score
    divides by the weights of the metrics actually present.
    """

    otif: float
    nil: float
    pickup: float
    package: float

    def __post_init__(self):
        for metric in Metric.all_metrics():
            raw = getattr(self, metric.value)
            weight = to_real(raw)
            if weight is None:
                raise InvalidWeightsError(
                    f"Weight for {metric.label} must be a number, got {raw!r}",
                    field_name=metric.value,
                )
            if not math.isfinite(weight) or weight < 0:
                raise InvalidWeightsError(
                    f"Weight for {metric.label} must be finite and >= 0, got {raw!r}",
                    field_name=metric.value,
                )
            object.__setattr__(self, metric.value, weight)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "CriteriaWeights":
        """
        Build weights from a settings mapping.

        Keys are matched case-insensitively; the store's
        "quality_pickup" / "quality_package" names are accepted.

        Raises:
            InvalidWeightsError: If a metric is missing or a value is invalid
        """
        if not isinstance(mapping, Mapping):
            raise InvalidWeightsError(
                f"Criteria weights must be a mapping, got {type(mapping).__name__}"
            )

        resolved: Dict[Metric, Any] = {}
        for key, raw in mapping.items():
            metric = _WEIGHT_KEY_ALIASES.get(str(key).strip().lower())
            if metric is not None:
                resolved[metric] = raw

        for metric in Metric.all_metrics():
            if metric not in resolved:
                raise InvalidWeightsError(
                    f"Missing weight for {metric.label}",
                    field_name=metric.value,
                )

        return cls(
            otif=resolved[Metric.OTIF],
            nil=resolved[Metric.NIL],
            pickup=resolved[Metric.PICKUP],
            package=resolved[Metric.PACKAGE],
        )

    @classmethod
    def equal(cls) -> "CriteriaWeights":
        """Return 0.25 for every metric."""
        return cls(otif=0.25, nil=0.25, pickup=0.25, package=0.25)

    def weight(self, metric: Metric) -> float:
        return getattr(self, Metric(metric).value)

    @property
    def total(self) -> float:
        return sum(self.weight(metric) for metric in Metric.all_metrics())

    def is_balanced(self, tolerance: float = 0.01) -> bool:
        """True if the weights sum to 1 within tolerance."""
        return abs(self.total - 1.0) < tolerance

    def to_dict(self) -> Dict[str, float]:
        return {metric.value: self.weight(metric) for metric in Metric.all_metrics()}


@dataclass(frozen=True)
class TrendPoint:
    """One labelled slot of a trend series. None = no data."""

    label: str
    score: Optional[float] = None


# ============================================================
# OUTPUT DATA CONTRACTS
# ============================================================


@dataclass(frozen=True)
class AggregateScores:
    """
    Rolling, yearly and quarterly averages for one supplier.

    ============================================================
    SENTINELS
    ============================================================
    - overall / last_12_months / year_average: 0.0 when empty
    - quarters: None when the quarter has no data

    An empty quarter must never read as 0, which would look
    like a collapse in performance.

    ============================================================
    """

    year: int
    as_of: date

    overall: float = 0.0
    last_12_months: float = 0.0
    year_average: float = 0.0

    quarters: Tuple[Optional[float], ...] = (None, None, None, None)
    quarter_trends: Tuple[QuarterTrend, ...] = (
        QuarterTrend.UNDEFINED,
        QuarterTrend.UNDEFINED,
        QuarterTrend.UNDEFINED,
        QuarterTrend.UNDEFINED,
    )

    def quarter(self, number: int) -> Optional[float]:
        """Return the average of quarter 1-4."""
        return self.quarters[number - 1]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "year": self.year,
            "as_of": self.as_of.isoformat(),
            "overall": self.overall,
            "last_12_months": self.last_12_months,
            "year_average": self.year_average,
            "quarters": list(self.quarters),
            "quarter_trends": [trend.value for trend in self.quarter_trends],
        }


@dataclass(frozen=True)
class RiskAssessment:
    """
    Risk view of one supplier for one year.

    impacts is a distribution over the four metrics of the
    share of the shortfall each one causes. It sums to 1 when
    any metric is below target and is all zeros otherwise.
    """

    supplier_id: str
    year: int
    target: float

    quarters: Tuple[Optional[float], ...] = (None, None, None, None)
    avg_score: float = 0.0
    at_risk: bool = False

    metric_averages: Dict[Metric, Optional[float]] = field(default_factory=dict)
    deficits: Dict[Metric, float] = field(default_factory=dict)
    impacts: Dict[Metric, float] = field(default_factory=dict)
    worst_metric: Optional[Metric] = None

    status: TargetStatus = TargetStatus.NO_DATA

    @property
    def has_data(self) -> bool:
        return any(q is not None for q in self.quarters)

    @property
    def total_deficit(self) -> float:
        return sum(self.deficits.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "supplier_id": self.supplier_id,
            "year": self.year,
            "target": self.target,
            "quarters": list(self.quarters),
            "avg_score": self.avg_score,
            "at_risk": self.at_risk,
            "metric_averages": {m.value: v for m, v in self.metric_averages.items()},
            "deficits": {m.value: v for m, v in self.deficits.items()},
            "impacts": {m.value: v for m, v in self.impacts.items()},
            "worst_metric": self.worst_metric.value if self.worst_metric else None,
            "status": self.status.value,
        }


@dataclass(frozen=True)
class RegressionPoint:
    """Actual vs fitted score for one present point."""

    label: str
    real: float
    predicted: float
    difference: float


@dataclass(frozen=True)
class RegressionResult:
    """
    Ordinary-least-squares trend over a series of monthly scores.

    x is the position among present points (1..n), not the
    calendar month.
    """

    slope: float = 0.0
    intercept: float = 0.0
    r2: float = 0.0
    trend: TrendDirection = TrendDirection.STABLE
    equation: str = "y = 0"
    months_analyzed: int = 0
    average_score: float = 0.0
    real_vs_predicted: Tuple[RegressionPoint, ...] = ()

    @property
    def fit_quality(self) -> FitQuality:
        """
        Quality band of R² using the default 0.8 / 0.5 / 0.3 cut-offs.

        Use ScoreEngine.fit_quality for configured bands.
        """
        return FitQuality.from_r2(self.r2)

    def predict(self, x: float) -> float:
        """Evaluate the trend line at position x."""
        return self.slope * x + self.intercept

    def to_dict(self) -> Dict[str, Any]:
        return {
            "slope": self.slope,
            "intercept": self.intercept,
            "r2": self.r2,
            "trend": self.trend.value,
            "equation": self.equation,
            "months_analyzed": self.months_analyzed,
            "average_score": self.average_score,
            "real_vs_predicted": [
                {
                    "label": point.label,
                    "real": point.real,
                    "predicted": point.predicted,
                    "difference": point.difference,
                }
                for point in self.real_vs_predicted
            ],
        }
