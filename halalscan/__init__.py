"""Halal barcode scanner: offline-resilient lookup engine and product registry."""

__version__ = "1.0.0"
