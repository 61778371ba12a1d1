"""Lending lifecycle and schedule engine."""

__version__ = "0.1.0"
