"""
==============================================================================
Validation Utilities Module
==============================================================================

Validation helpers for user-supplied product details.

This module implements:
- BarcodeValidator: Validates scanned or typed barcodes
- ProductNameValidator: Validates product names on submission
- split_ingredients: Parses a comma-separated ingredient list

Validation Rules for Barcodes:
-----------------------------
- Required, surrounding whitespace ignored
- No inner whitespace
- At most 64 characters

==============================================================================
"""

from __future__ import annotations

from typing import List, Optional, Tuple


class BarcodeValidator:
    """
    Validator for product barcodes.

    Example:
        >>> validator = BarcodeValidator()
        >>> validator.validate(" 000111 ")
        (True, '000111', None)
    """

    MAX_LENGTH = 64

    def validate(self, barcode: Optional[str]) -> Tuple[bool, Optional[str], Optional[str]]:
        """
        Validate and normalize a barcode.

        Args:
            barcode: Raw barcode string

        Returns:
            Tuple of (is_valid, normalized_barcode, error_message)
        """
        if barcode is None:
            return False, None, "Barcode is required"

        barcode = str(barcode).strip()

        if not barcode:
            return False, None, "Barcode cannot be empty"

        if any(ch.isspace() for ch in barcode):
            return False, None, "Barcode cannot contain spaces"

        if len(barcode) > self.MAX_LENGTH:
            return False, None, f"Barcode must be at most {self.MAX_LENGTH} characters"

        return True, barcode, None

    def is_valid(self, barcode: Optional[str]) -> bool:
        """Quick validation check."""
        is_valid, _, _ = self.validate(barcode)
        return is_valid


class ProductNameValidator:
    """Validator for product names."""

    MAX_LENGTH = 200

    def validate(self, name: Optional[str]) -> Tuple[bool, Optional[str], Optional[str]]:
        """
        Validate and normalize a product name.

        Returns:
            Tuple of (is_valid, normalized_name, error_message)
        """
        if name is None:
            return False, None, "Product name is required"

        name = " ".join(str(name).split())

        if not name:
            return False, None, "Product name cannot be empty"

        if len(name) > self.MAX_LENGTH:
            return False, None, f"Product name must be at most {self.MAX_LENGTH} characters"

        return True, name, None


def split_ingredients(raw: str) -> List[str]:
    """
    Split a comma-separated ingredient string.

    Blank items are dropped and order is kept.

    Example:
        >>> split_ingredients("flour, water,,salt ")
        ['flour', 'water', 'salt']
    """
    return [item.strip() for item in raw.split(",") if item.strip()]
