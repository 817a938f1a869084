"""
==============================================================================
Product Registry Service Module
==============================================================================

Business logic behind the registry endpoints.

This module implements:
- ProductRegistryService: lookup and last-writer-wins upsert of products

==============================================================================
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from halalscan.db.models import ProductRow
from halalscan.schemas import ProductRecord


# Module logger
logger = logging.getLogger(__name__)


class ProductRegistryService:
    """
    Service for registry product operations.

    Attributes:
        _db: Database session

    Example:
        >>> service = ProductRegistryService(db_session)
        >>> record, created = service.upsert(record)
        >>> service.lookup(record.barcode) == record
        True
    """

    def __init__(self, db: Session) -> None:
        self._db = db

    def lookup(self, barcode: str) -> Optional[ProductRecord]:
        """
        Find a registered product.

        Returns:
            The product record, or None if the barcode is unknown
        """
        row = self._db.get(ProductRow, barcode)
        return row.to_record() if row else None

    def upsert(self, record: ProductRecord) -> Tuple[ProductRecord, bool]:
        """
        Create or overwrite a product.

        Returns:
            Tuple of (stored record, created flag)
        """
        row = self._db.get(ProductRow, record.barcode)
        created = row is None

        if created:
            row = ProductRow(barcode=record.barcode)
            self._db.add(row)

        row.apply(record)
        self._db.commit()

        action = "Registered" if created else "Updated"
        logger.info(f"📦 {action} product {record.barcode} ({record.status.value})")

        return row.to_record(), created

    def count(self) -> int:
        """Number of registered products."""
        return self._db.query(ProductRow).count()
