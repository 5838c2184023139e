"""Market newsroom: market-driven article selection, scoring and publishing."""

__version__ = "0.1.0"
