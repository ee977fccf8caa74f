"""
Tests for score aggregation.

Tests cover:
- Overall, rolling 12-month and yearly averages
- Quarter averages and the "undefined" empty quarter
- Quarter-over-quarter trends
"""

from datetime import date

import pytest

from supplier_scorecard import (
    CriteriaWeights,
    FixedClock,
    MetricSample,
    QuarterTrend,
    ScoreEngine,
    aggregate,
)


# ============================================================
# FIXTURES
# ============================================================

AS_OF = date(2024, 6, 15)


@pytest.fixture
def engine():
    return ScoreEngine(clock=FixedClock(AS_OF))


@pytest.fixture
def weights():
    return CriteriaWeights.equal()


def otif(year, month, value):
    return MetricSample("SUP-1", year, month, otif=value)


@pytest.fixture
def history():
    """
    2024: Q1 = 6, 7, 8 / Q2 = 9, 8 / Q3, Q4 empty
    2023: May = 4, Dec = 5
    """
    return [
        otif(2023, 5, 4.0),
        otif(2023, 12, 5.0),
        otif(2024, 1, 6.0),
        otif(2024, 2, 7.0),
        MetricSample("SUP-1", 2024, 2),  # row without any reading
        otif(2024, 3, 8.0),
        otif(2024, 4, 9.0),
        otif(2024, 5, 8.0),
    ]


# ============================================================
# AVERAGES
# ============================================================

class TestAverages:
    """Overall, rolling and yearly averages."""

    def test_overall_uses_all_history(self, engine, weights, history):
        result = engine.aggregate(history, weights, 2024, as_of=AS_OF)
        assert result.overall == pytest.approx(47 / 7)

    def test_year_average(self, engine, weights, history):
        result = engine.aggregate(history, weights, 2024, as_of=AS_OF)
        assert result.year_average == pytest.approx(7.6)

    def test_last_12_months(self, engine, weights, history):
        """2023-05 is 13 months back and falls out of the window."""
        result = engine.aggregate(history, weights, 2024, as_of=AS_OF)
        assert result.last_12_months == pytest.approx(43 / 6)

    def test_rolling_window_edges(self, engine, weights):
        samples = [
            otif(2023, 6, 2.0),   # 12 months back: included
            otif(2023, 5, 10.0),  # 13 months back: excluded
            otif(2024, 6, 4.0),   # current month: included
            otif(2024, 7, 10.0),  # future: excluded
        ]
        result = engine.aggregate(samples, weights, 2024, as_of=AS_OF)
        assert result.last_12_months == 3.0

    def test_as_of_defaults_to_clock(self, engine, weights, history):
        result = engine.aggregate(history, weights, 2024)
        assert result.as_of == AS_OF
        assert result.last_12_months == pytest.approx(43 / 6)

    def test_empty_history_reports_zero(self, engine, weights):
        result = engine.aggregate([], weights, 2024, as_of=AS_OF)
        assert result.overall == 0.0
        assert result.last_12_months == 0.0
        assert result.year_average == 0.0

    def test_year_without_data_reports_zero(self, engine, weights, history):
        result = engine.aggregate(history, weights, 2022, as_of=AS_OF)
        assert result.year_average == 0.0
        assert result.overall == pytest.approx(47 / 7)

    def test_rows_without_readings_are_skipped(self, engine, weights):
        samples = [otif(2024, 1, 8.0), MetricSample("SUP-1", 2024, 1)]
        result = engine.aggregate(samples, weights, 2024, as_of=AS_OF)
        assert result.year_average == 8.0

    def test_zero_total_counts(self, engine, weights):
        """A real zero reading is data and pulls the average down."""
        samples = [otif(2024, 1, 0.0), otif(2024, 2, 10.0)]
        result = engine.aggregate(samples, weights, 2024, as_of=AS_OF)
        assert result.year_average == 5.0
        assert result.quarter(1) == 5.0


# ============================================================
# QUARTERS
# ============================================================

class TestQuarters:
    """Quarter averages and the undefined empty quarter."""

    def test_quarter_averages(self, engine, weights, history):
        result = engine.aggregate(history, weights, 2024, as_of=AS_OF)
        assert result.quarter(1) == 7.0
        assert result.quarter(2) == 8.5

    def test_empty_quarter_is_undefined_not_zero(self, engine, weights, history):
        result = engine.aggregate(history, weights, 2024, as_of=AS_OF)
        assert result.quarter(3) is None
        assert result.quarter(4) is None

    def test_no_data_gives_four_undefined_quarters(self, engine, weights):
        result = engine.aggregate([], weights, 2024, as_of=AS_OF)
        assert result.quarters == (None, None, None, None)

    def test_quarter_with_only_empty_rows_is_undefined(self, engine, weights):
        samples = [MetricSample("SUP-1", 2024, 7), MetricSample("SUP-1", 2024, 8)]
        result = engine.aggregate(samples, weights, 2024, as_of=AS_OF)
        assert result.quarter(3) is None

    def test_quarters_only_use_requested_year(self, engine, weights, history):
        result = engine.aggregate(history, weights, 2023, as_of=AS_OF)
        assert result.quarters == (None, 4.0, None, 5.0)

    def test_quarter_boundaries(self, engine, weights):
        samples = [otif(2024, m, float(m) / 2) for m in (3, 4, 9, 10)]
        result = engine.aggregate(samples, weights, 2024, as_of=AS_OF)
        assert result.quarters == (1.5, 2.0, 4.5, 5.0)


# ============================================================
# TRENDS
# ============================================================

class TestQuarterTrends:
    """Direction of each quarter relative to the previous period."""

    def test_trends(self, engine, weights, history):
        result = engine.aggregate(history, weights, 2024, as_of=AS_OF)
        assert result.quarter_trends == (
            QuarterTrend.DOWN,       # Q1 7.0 vs year 7.6
            QuarterTrend.UP,         # Q2 8.5 vs Q1 7.0
            QuarterTrend.UNDEFINED,  # Q3 empty
            QuarterTrend.UNDEFINED,  # Q4 vs empty Q3
        )

    def test_trend_after_gap_is_undefined(self, engine, weights):
        samples = [otif(2024, 1, 5.0), otif(2024, 10, 9.0)]
        result = engine.aggregate(samples, weights, 2024, as_of=AS_OF)
        assert result.quarter_trends[3] == QuarterTrend.UNDEFINED

    def test_equal_quarters_are_flat(self, engine, weights):
        samples = [otif(2024, 1, 7.0), otif(2024, 4, 7.0)]
        result = engine.aggregate(samples, weights, 2024, as_of=AS_OF)
        assert result.quarter_trends[0] == QuarterTrend.FLAT
        assert result.quarter_trends[1] == QuarterTrend.FLAT

    def test_to_dict(self, engine, weights, history):
        data = engine.aggregate(history, weights, 2024, as_of=AS_OF).to_dict()
        assert data["quarters"][2] is None
        assert data["quarter_trends"][1] == "up"
        assert data["as_of"] == "2024-06-15"


# ============================================================
# PURITY
# ============================================================

class TestAggregationPurity:

    def test_repeated_calls_are_identical(self, engine, weights, history):
        first = engine.aggregate(history, weights, 2024, as_of=AS_OF)
        second = engine.aggregate(history, weights, 2024, as_of=AS_OF)
        assert first == second

    def test_module_function(self, weights, history):
        result = aggregate(history, weights, 2024, as_of=AS_OF)
        assert result.quarter(2) == 8.5


# ============================================================
# OUT-OF-RANGE MONTHS
# ============================================================

class TestInvalidMonths:
    """Rows with a month outside 1-12 are ignored everywhere."""

    @pytest.mark.parametrize("month", [0, 13, -1])
    def test_row_is_skipped(self, engine, weights, month):
        samples = [otif(2024, 1, 6.0), otif(2024, month, 1.0)]
        result = engine.aggregate(samples, weights, 2024, as_of=AS_OF)

        assert result.overall == 6.0
        assert result.year_average == 6.0
        assert result.last_12_months == 6.0
        assert result.quarters == (6.0, None, None, None)

    def test_valid_month_flag(self):
        assert otif(2024, 12, 5.0).has_valid_month
        assert not otif(2024, 13, 5.0).has_valid_month


# ============================================================
# CONFIGURED WEIGHTS
# ============================================================

class TestAggregationConfiguredWeights:

    def test_none_uses_configured_weights(self, engine, weights):
        samples = [MetricSample("SUP-1", 2024, 1, otif=10.0, nil=6.0)]
        implicit = engine.aggregate(samples, None, 2024, as_of=AS_OF)
        explicit = engine.aggregate(samples, weights, 2024, as_of=AS_OF)
        assert implicit == explicit
        assert implicit.year_average == 8.0
