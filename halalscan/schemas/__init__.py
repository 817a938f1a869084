"""
==============================================================================
Schemas Package
==============================================================================

Pydantic models for product records, registry payloads and engine outcomes.

==============================================================================
"""

from .product import (
    PRODUCT_NOT_AVAILABLE,
    AddProductRequest,
    AddProductResponse,
    HalalStatus,
    ProductCategory,
    ProductNotAvailableResponse,
    ProductRecord,
    ScanProductRequest,
)
from .outcomes import (
    AwaitingAdd,
    EventKind,
    Failed,
    ResolutionOutcome,
    ResolutionSource,
    Resolved,
    SessionEvent,
    SubmitOutcome,
    Submitted,
    SyncReport,
)

__all__ = [
    # Products
    "PRODUCT_NOT_AVAILABLE",
    "ProductCategory",
    "HalalStatus",
    "ProductRecord",
    "ScanProductRequest",
    "AddProductRequest",
    "AddProductResponse",
    "ProductNotAvailableResponse",
    # Outcomes
    "ResolutionSource",
    "Resolved",
    "AwaitingAdd",
    "Failed",
    "ResolutionOutcome",
    "Submitted",
    "SubmitOutcome",
    "SyncReport",
    "EventKind",
    "SessionEvent",
]
