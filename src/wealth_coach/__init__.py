"""Wealth Coach - personal financial advisory engine."""

__version__ = "0.1.0"
