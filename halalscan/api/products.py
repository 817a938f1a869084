"""
==============================================================================
Product Registry Endpoints
==============================================================================

Endpoints the scan engine talks to.

    POST /scan-product   look a barcode up
    POST /add-product    register or overwrite a product

==============================================================================
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from halalscan.db.database import get_db
from halalscan.schemas import (
    AddProductRequest,
    AddProductResponse,
    ProductNotAvailableResponse,
    ScanProductRequest,
)
from halalscan.services import ProductRegistryService


router = APIRouter(tags=["Products"])


class ProductController:
    """Controller for registry product operations."""

    def __init__(self, db: Session):
        self._service = ProductRegistryService(db)

    def scan(self, request: ScanProductRequest) -> dict:
        """Look up a product; unknown barcodes are not an error."""
        record = self._service.lookup(request.barcode)

        if record is None:
            return ProductNotAvailableResponse().model_dump()

        return record.to_wire()

    def add(self, request: AddProductRequest) -> AddProductResponse:
        """Register or overwrite a product."""
        record, created = self._service.upsert(request.to_record())

        return AddProductResponse(
            message="Product added" if created else "Product updated",
            product=record,
        )


@router.post("/scan-product")
async def scan_product(request: ScanProductRequest, db: Session = Depends(get_db)):
    """Look up a scanned barcode."""
    controller = ProductController(db)
    return controller.scan(request)


@router.post("/add-product", response_model=AddProductResponse)
async def add_product(request: AddProductRequest, db: Session = Depends(get_db)):
    """Register a product (last writer wins)."""
    controller = ProductController(db)
    return controller.add(request)
