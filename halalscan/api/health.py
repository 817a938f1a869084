"""
==============================================================================
Registry Health Endpoints
==============================================================================

    GET /health        database reachability and registered product count
    GET /health/ready  200 only once the products table can be queried
    GET /health/live   process is up

The scan engine's own reachability probe is GET / (see main.py) and never
touches the database; these endpoints are for whoever operates the
registry.

==============================================================================
"""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from halalscan.db.database import get_db, ping
from halalscan.services import ProductRegistryService


router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
async def registry_health(db: Session = Depends(get_db)):
    """Report database state and how many products are registered."""
    if not ping(db):
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unavailable", "database": "down", "products": None},
        )

    return {
        "status": "healthy",
        "database": "up",
        "products": ProductRegistryService(db).count(),
    }


@router.get("/ready")
async def registry_ready(db: Session = Depends(get_db)):
    """Ready when lookups can be served."""
    try:
        ProductRegistryService(db).count()
        ready = True
    except SQLAlchemyError:
        ready = False

    return JSONResponse(
        status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"ready": ready},
    )


@router.get("/live")
async def registry_live():
    return {"alive": True}
