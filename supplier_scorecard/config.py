"""
Supplier Scorecard - Configuration.

============================================================
PURPOSE
============================================================
Defines the configuration dataclass and default values for
the scoring engine.

The weights and the risk target normally come from the
settings store and are passed to each call explicitly. The
values here are the fallbacks used when a caller does not
have them, plus the fixed thresholds of the trend analysis.

============================================================
DESIGN PRINCIPLES
============================================================
- Immutable configurations
- Validated at construction
- Environment overrides loaded through python-dotenv

============================================================
ENVIRONMENT VARIABLES
============================================================
SCORECARD_TARGET           Default risk target (0-10)
SCORECARD_WEIGHT_OTIF      OTIF weight
SCORECARD_WEIGHT_NIL       NIL weight
SCORECARD_WEIGHT_PICKUP    Pickup weight
SCORECARD_WEIGHT_PACKAGE   Package weight
SCORECARD_TREND_EPSILON    Slope below which a trend is stable

============================================================
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional
import logging
import math
import os

from dotenv import load_dotenv

from .exceptions import ConfigurationError
from .types import CriteriaWeights, Metric


logger = logging.getLogger(__name__)


# Fallback used by the store when no target row exists
DEFAULT_TARGET = 8.7

ENV_TARGET = "SCORECARD_TARGET"
ENV_TREND_EPSILON = "SCORECARD_TREND_EPSILON"
ENV_WEIGHT_PREFIX = "SCORECARD_WEIGHT_"


# ============================================================
# MASTER CONFIGURATION
# ============================================================


@dataclass(frozen=True)
class ScorecardConfig:
    """
    Configuration for the scoring engine.

    ============================================================
    THRESHOLD RATIONALE
    ============================================================
    Trend epsilon (0.01 points/month):
    - Below it the line is reported as stable so that
      near-flat data is not labelled as a trend

    Near-target band (1.0 point):
    - Scores within one point under target are flagged as
      near target rather than below target

    Fit quality (R²):
    - STRONG >= 0.8, MODERATE >= 0.5, WEAK >= 0.3

    ============================================================
    """

    default_target: float = DEFAULT_TARGET
    weights: CriteriaWeights = field(default_factory=CriteriaWeights.equal)

    # Regression
    trend_slope_epsilon: float = 0.01
    fit_quality_strong: float = 0.8
    fit_quality_moderate: float = 0.5
    fit_quality_weak: float = 0.3

    # Target banding
    near_target_band: float = 1.0

    # Rolling window ending at the reference month (inclusive)
    rolling_window_months: int = 12

    engine_version: str = "1.0.0"

    def __post_init__(self):
        if not math.isfinite(self.default_target) or not 0.0 <= self.default_target <= 10.0:
            raise ConfigurationError(
                f"default_target must be within [0, 10], got {self.default_target}"
            )
        if not isinstance(self.weights, CriteriaWeights):
            raise ConfigurationError("weights must be a CriteriaWeights instance")
        for name in (
            "trend_slope_epsilon",
            "near_target_band",
            "fit_quality_strong",
            "fit_quality_moderate",
            "fit_quality_weak",
        ):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
                raise ConfigurationError(f"{name} must be a finite number, got {value!r}")
        if self.trend_slope_epsilon < 0:
            raise ConfigurationError("trend_slope_epsilon must be >= 0")
        if self.near_target_band < 0:
            raise ConfigurationError("near_target_band must be >= 0")
        if not (self.fit_quality_strong >= self.fit_quality_moderate >= self.fit_quality_weak >= 0):
            raise ConfigurationError("fit quality bands must be descending and >= 0")
        if self.rolling_window_months < 0:
            raise ConfigurationError("rolling_window_months must be >= 0")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "default_target": self.default_target,
            "weights": self.weights.to_dict(),
            "trend_slope_epsilon": self.trend_slope_epsilon,
            "fit_quality_strong": self.fit_quality_strong,
            "fit_quality_moderate": self.fit_quality_moderate,
            "fit_quality_weak": self.fit_quality_weak,
            "near_target_band": self.near_target_band,
            "rolling_window_months": self.rolling_window_months,
            "engine_version": self.engine_version,
        }


# ============================================================
# DEFAULT CONFIGURATION
# ============================================================


def get_default_config() -> ScorecardConfig:
    """Return the default scoring configuration."""
    return ScorecardConfig()


def _read_float(environ: Mapping[str, str], name: str) -> Optional[float]:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} is not a number: {raw!r}") from e


def load_config_from_env(
    environ: Optional[Mapping[str, str]] = None,
    dotenv_path: Optional[str] = None,
) -> ScorecardConfig:
    """
    Build a configuration from environment variables.

    A .env file is loaded first (existing variables win).
    Weights are only overridden when all four are set.

    Args:
        environ: Mapping to read instead of os.environ
        dotenv_path: Explicit .env location

    Returns:
        ScorecardConfig

    Raises:
        ConfigurationError: If a variable cannot be parsed
    """
    if environ is None:
        load_dotenv(dotenv_path)
        environ = os.environ

    overrides: Dict[str, Any] = {}

    target = _read_float(environ, ENV_TARGET)
    if target is not None:
        overrides["default_target"] = target

    epsilon = _read_float(environ, ENV_TREND_EPSILON)
    if epsilon is not None:
        overrides["trend_slope_epsilon"] = epsilon

    weight_values = {
        metric.value: _read_float(environ, f"{ENV_WEIGHT_PREFIX}{metric.name}")
        for metric in Metric.all_metrics()
    }
    provided = {name: value for name, value in weight_values.items() if value is not None}
    if len(provided) == len(weight_values):
        overrides["weights"] = CriteriaWeights.from_mapping(provided)
    elif provided:
        raise ConfigurationError(
            f"Incomplete weight override, missing: "
            f"{sorted(set(weight_values) - set(provided))}"
        )

    config = ScorecardConfig(**overrides)
    logger.debug(f"Loaded scorecard config: {config.to_dict()}")
    return config
