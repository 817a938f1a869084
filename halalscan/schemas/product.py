"""
==============================================================================
Product Schemas Module
==============================================================================

Pydantic models for product records as stored locally and exchanged with
the registry.

Wire Format:
-----------
    {
      "barcode": "000111",
      "name": "Biscuit",
      "type": "food",
      "ingredients": ["flour", "water"],
      "status": "Unknown"
    }

The category travels as "type" on the wire and in local storage; the model
accepts either name on input.

==============================================================================
"""

from __future__ import annotations

import enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from halalscan.utils.validators import split_ingredients


# Sentinel status the registry returns for unknown barcodes
PRODUCT_NOT_AVAILABLE = "Product Not Available"


# =============================================================================
# ENUMS
# =============================================================================

class ProductCategory(str, enum.Enum):
    """Product category. Non-food items need not carry ingredients."""

    FOOD = "food"
    NON_FOOD = "non-food"

    @classmethod
    def _missing_(cls, value: object) -> Optional["ProductCategory"]:
        if isinstance(value, str):
            normalized = value.strip().lower().replace("_", "-").replace(" ", "-")
            if normalized == "nonfood":
                normalized = "non-food"
            for member in cls:
                if member.value == normalized:
                    return member
        return None


class HalalStatus(str, enum.Enum):
    """Permissibility status as recorded by the registry."""

    HALAL = "Halal"
    HARAM = "Haram"
    UNKNOWN = "Unknown"
    NON_FOOD_ITEM = "NonFoodItem"

    @classmethod
    def _missing_(cls, value: object) -> Optional["HalalStatus"]:
        if isinstance(value, str):
            normalized = value.strip().lower().replace("-", "").replace(" ", "")
            for member in cls:
                if member.value.lower() == normalized:
                    return member
        return None


# =============================================================================
# RECORDS
# =============================================================================

class ProductRecord(BaseModel):
    """
    A product as known to the registry or authored locally.

    Records are only ever replaced as a whole; there are no partial updates.

    Attributes:
        barcode: Unique product key
        name: Display name
        category: food or non-food (wire name "type")
        ingredients: Ordered ingredient names, possibly empty
        status: Halal, Haram, Unknown or NonFoodItem
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
    )

    barcode: str = Field(..., min_length=1, description="Product barcode")
    name: str = Field(default="", description="Product name")
    category: ProductCategory = Field(
        default=ProductCategory.FOOD,
        alias="type",
        description="food or non-food"
    )
    ingredients: List[str] = Field(default_factory=list, description="Ingredients")
    status: HalalStatus = Field(default=HalalStatus.UNKNOWN, description="Halal status")

    @field_validator("barcode", mode="before")
    @classmethod
    def strip_barcode(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            value = str(value)
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("ingredients", mode="before")
    @classmethod
    def coerce_ingredients(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return split_ingredients(value)
        return value

    def to_wire(self) -> Dict[str, Any]:
        """Serialize for the registry and the local stores."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_wire(cls, data: Dict[str, Any]) -> "ProductRecord":
        """Parse a registry or storage payload."""
        return cls.model_validate(data)


class ScanProductRequest(BaseModel):
    """Body of POST /scan-product."""

    barcode: str = Field(..., min_length=1)

    @field_validator("barcode", mode="before")
    @classmethod
    def strip_barcode(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value


class AddProductRequest(ProductRecord):
    """Body of POST /add-product. A product name is mandatory here."""

    name: str = Field(..., min_length=1, description="Product name")

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    def to_record(self) -> ProductRecord:
        return ProductRecord.model_validate(self.model_dump())


class ProductNotAvailableResponse(BaseModel):
    """Registry answer for an unregistered barcode."""

    status: str = Field(default=PRODUCT_NOT_AVAILABLE)


class AddProductResponse(BaseModel):
    """Registry acknowledgement for POST /add-product."""

    success: bool = Field(default=True)
    message: str
    product: ProductRecord
