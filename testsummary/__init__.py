"""Aggregate XML test results into localized HTML reports."""

__version__ = "0.1.0"
