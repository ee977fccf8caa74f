"""
Supplier Scorecard - Package.

============================================================
PURPOSE
============================================================
Scoring and trend analysis for supplier performance
scorecards. Four monthly sub-metrics (OTIF, NIL, Pickup,
Package) are combined into a weighted total score, which is
then aggregated, compared against a target and trended.

============================================================
WHAT IT IS
============================================================
- Pure computation: no storage, no UI, no I/O
- Deterministic: same input = same output
- Graceful on bad data, strict on bad configuration

============================================================
OPERATIONS
============================================================
1. compute_total_score: weighted average of present metrics
2. aggregate: overall, last 12 months, year and quarters
3. assess_risk: at-risk flag, metric deficits and impacts
4. fit_trend: least-squares line over monthly scores

============================================================
USAGE
============================================================
    from supplier_scorecard import (
        ScoreEngine,
        MetricSample,
        CriteriaWeights,
    )

    engine = ScoreEngine()
    weights = CriteriaWeights(otif=0.4, nil=0.2, pickup=0.2, package=0.2)

    samples = [
        MetricSample("SUP-1", 2024, month, otif=8.0, nil=10.0)
        for month in range(1, 7)
    ]

    risk = engine.assess_risk(samples, weights, year=2024, target=8.7)
    print(f"At risk: {risk.at_risk}, worst: {risk.worst_metric}")

    trend = engine.fit_supplier_trend(samples, weights, year=2024)
    print(trend.equation, trend.trend.value)

============================================================
"""

# Types
from .types import (
    # Enums
    Metric,
    QuarterTrend,
    TrendDirection,
    FitQuality,
    TargetStatus,

    # Input types
    MetricSample,
    CriteriaWeights,
    TrendPoint,

    # Output types
    AggregateScores,
    RiskAssessment,
    RegressionPoint,
    RegressionResult,
)

# Exceptions
from .exceptions import (
    ScorecardError,
    ConfigurationError,
    InvalidWeightsError,
    InvalidTargetError,
    InvalidMetricValueError,
    EditNotAllowedError,
    FieldNotEditableError,
    FutureMonthError,
)

# Configuration
from .config import (
    ScorecardConfig,
    get_default_config,
    load_config_from_env,
)

# Clock
from .clock import (
    ClockProtocol,
    SystemClock,
    FixedClock,
)

# Regression
from .regression import (
    MONTH_LABELS,
    fit_trend,
    build_trend_series,
    format_equation,
)

# Calculators
from .calculators import (
    classify_against_target,
)

# Editing
from .editing import (
    EditableFields,
    is_future_month,
    clamp_metric_value,
    apply_metric_updates,
)

# Engine
from .engine import (
    ScoreEngine,
    compute_total_score,
    aggregate,
    assess_risk,
    format_risk_summary,
)


__all__ = [
    # Enums
    "Metric",
    "QuarterTrend",
    "TrendDirection",
    "FitQuality",
    "TargetStatus",

    # Input types
    "MetricSample",
    "CriteriaWeights",
    "TrendPoint",

    # Output types
    "AggregateScores",
    "RiskAssessment",
    "RegressionPoint",
    "RegressionResult",

    # Exceptions
    "ScorecardError",
    "ConfigurationError",
    "InvalidWeightsError",
    "InvalidTargetError",
    "InvalidMetricValueError",
    "EditNotAllowedError",
    "FieldNotEditableError",
    "FutureMonthError",

    # Configuration
    "ScorecardConfig",
    "get_default_config",
    "load_config_from_env",

    # Clock
    "ClockProtocol",
    "SystemClock",
    "FixedClock",

    # Regression
    "MONTH_LABELS",
    "fit_trend",
    "build_trend_series",
    "format_equation",

    # Calculators
    "classify_against_target",

    # Editing
    "EditableFields",
    "is_future_month",
    "clamp_metric_value",
    "apply_metric_updates",

    # Engine
    "ScoreEngine",
    "compute_total_score",
    "aggregate",
    "assess_risk",
    "format_risk_summary",
]


__version__ = "1.0.0"
