"""Spend Dashboard: clean up a transactions CSV and summarize spending."""

__version__ = "0.1.0"
