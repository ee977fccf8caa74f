"""Test suite for the supplier scorecard project."""
