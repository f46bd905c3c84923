"""Pooled fund accounting and capital-allocation engine."""

__version__ = "0.1.0"
