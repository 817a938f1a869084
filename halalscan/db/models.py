"""
==============================================================================
SQLAlchemy ORM Models Module
==============================================================================

ORM models for the product registry.

Database Schema:
---------------

    ┌─────────────────────────────────────────────────────────────────┐
    │                           products                               │
    ├─────────────────────────────────────────────────────────────────┤
    │ barcode (VARCHAR, PK)                                           │
    │ name (VARCHAR, NOT NULL)                                        │
    │ type (VARCHAR: food, non-food)                                  │
    │ ingredients (TEXT, JSON array)                                  │
    │ status (VARCHAR: Halal, Haram, Unknown, NonFoodItem)            │
    │ created_at (DATETIME, DEFAULT now)                              │
    │ updated_at (DATETIME, AUTO UPDATE)                              │
    └─────────────────────────────────────────────────────────────────┘

Rows are overwritten whole on every add (last writer wins) and never
deleted.

=============================================================================
"""

from __future__ import annotations

import json
import logging

from sqlalchemy import Column, DateTime, String, Text, func

from halalscan.db.database import Base
from halalscan.schemas import HalalStatus, ProductCategory, ProductRecord


# Module logger
logger = logging.getLogger(__name__)


class ProductRow(Base):
    """Registered product."""

    __tablename__ = "products"

    barcode = Column(String(64), primary_key=True)
    name = Column(String(200), nullable=False)
    type = Column(String(16), nullable=False, default=ProductCategory.FOOD.value)
    ingredients = Column(Text, nullable=False, default="[]")
    status = Column(String(16), nullable=False, default=HalalStatus.UNKNOWN.value)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    def apply(self, record: ProductRecord) -> None:
        """Overwrite every field from a record."""
        self.name = record.name
        self.type = record.category.value
        self.ingredients = json.dumps(record.ingredients, ensure_ascii=False)
        self.status = record.status.value

    def to_record(self) -> ProductRecord:
        try:
            ingredients = json.loads(self.ingredients or "[]")
        except json.JSONDecodeError:
            logger.warning(f"Corrupt ingredients for {self.barcode}, returning none")
            ingredients = []

        return ProductRecord(
            barcode=self.barcode,
            name=self.name,
            category=self.type,
            ingredients=ingredients,
            status=self.status,
        )

    def __repr__(self) -> str:
        return f"ProductRow(barcode={self.barcode!r}, status={self.status!r})"
