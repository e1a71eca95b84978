"""Multi-source news aggregation for the starter site."""

__version__ = "0.1.0"
