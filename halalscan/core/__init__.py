"""
==============================================================================
Core Package
==============================================================================

Core infrastructure shared by the scan engine and the registry service.

Modules:
--------
- exceptions: AppException hierarchy and error factory functions

Usage:
------
    from halalscan.core import AppException, NetworkError

    # Or use exception factory functions via module
    from halalscan.core import exceptions
    raise exceptions.product_not_found("000111")

==============================================================================
"""

from .exceptions import (
    AppException,
    NetworkError,
    NotFoundError,
    RemoteServerError,
    ValidationError,
    register_exception_handlers,
)

__all__ = [
    "AppException",
    "ValidationError",
    "NotFoundError",
    "NetworkError",
    "RemoteServerError",
    "register_exception_handlers",
]
