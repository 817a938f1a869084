"""
==============================================================================
Services Package - Registry Business Logic
==============================================================================

Service classes sit between the registry endpoints and the ORM.

    ┌─────────────────┐
    │   API Router    │
    └────────┬────────┘
             │
    ┌────────▼────────┐
    │    Service      │  ← Business Logic
    └────────┬────────┘
             │
    ┌────────▼────────┐
    │   ORM models    │  ← Data Access
    └─────────────────┘

==============================================================================
"""

from .registry_service import ProductRegistryService

__all__ = [
    "ProductRegistryService",
]
