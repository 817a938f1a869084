"""
==============================================================================
Database Package
==============================================================================

SQLAlchemy infrastructure for the registry service.

Architecture:
------------
├── database.py   - engine, session dependency, init_db
└── models.py     - ProductRow ORM model

==============================================================================
"""

from .database import Base, dispose_engine, get_db, get_engine, init_db, ping
from .models import ProductRow

__all__ = [
    "Base",
    "get_engine",
    "get_db",
    "ping",
    "init_db",
    "dispose_engine",
    "ProductRow",
]
