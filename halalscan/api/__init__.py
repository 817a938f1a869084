"""
==============================================================================
Registry API Package
==============================================================================

Routers:
--------
- products: scan-product and add-product
- health: Health check endpoints

==============================================================================
"""

from fastapi import APIRouter

from . import health, products


class RegistryRouter:
    """
    Router combining all registry routes.

    Routes are mounted at the root because the scan engine calls
    /scan-product and /add-product directly.
    """

    def __init__(self):
        self._router = APIRouter()
        self._router.include_router(products.router)
        self._router.include_router(health.router)

    @property
    def router(self) -> APIRouter:
        """Get the FastAPI router instance."""
        return self._router


api_router = RegistryRouter().router

__all__ = ["api_router", "health", "products"]
