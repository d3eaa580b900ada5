"""Reverse geocoding and map gesture handling for the pinmap application."""

__version__ = "1.0.0"
