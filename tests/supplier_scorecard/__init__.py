"""
Tests for the Supplier Scorecard Engine.

This package contains tests for:
- Weighted total score
- Overall, rolling, yearly and quarterly aggregation
- Risk assessment and at-risk listing
- Trend regression
- Configuration loading
- Editing capability and reference clock
"""
