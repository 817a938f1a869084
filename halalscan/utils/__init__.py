"""
==============================================================================
Utilities Package
==============================================================================

Utility classes and functions for the application.

Modules:
--------
- validators: Barcode and product name validation, ingredient parsing

==============================================================================
"""

from .validators import BarcodeValidator, ProductNameValidator, split_ingredients

__all__ = [
    "BarcodeValidator",
    "ProductNameValidator",
    "split_ingredients",
]
