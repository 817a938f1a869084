"""
==============================================================================
Registry Client Module
==============================================================================

Async HTTP client for the remote product registry.

Endpoints:
---------
    POST /scan-product  {barcode}            -> product | {"status": "Product Not Available"}
    POST /add-product   {barcode, name, ...} -> ack
    GET  /                                   -> health

Error Mapping:
-------------
- Timeout (httpx timeout or total deadline)   -> NetworkError
- Connection, transport or decoding failure  -> NetworkError
- "Product Not Available" body or HTTP 404    -> NotFoundError (scan only)
- Any other non-2xx, or an unparseable body   -> RemoteServerError

Every call is bounded by a total deadline and is never retried here.

==============================================================================
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError as SchemaValidationError

from halalscan.config import Settings
from halalscan.core import exceptions
from halalscan.core.exceptions import RemoteServerError
from halalscan.schemas import PRODUCT_NOT_AVAILABLE, ProductRecord


# Module logger
logger = logging.getLogger(__name__)


class RegistryClient:
    """
    Client for the product registry.

    Attributes:
        base_url: Registry root URL
        timeout_seconds: Deadline for scan-product and add-product
        probe_timeout_seconds: Deadline for the health probe

    Example:
        >>> async with RegistryClient("http://localhost:5001") as client:
        ...     record = await client.scan_product("000111")
    """

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 3.0,
        probe_timeout_seconds: float = 1.5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds
        self._probe_timeout_seconds = probe_timeout_seconds
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(timeout_seconds),
            transport=transport,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "RegistryClient":
        """Build a client from application settings."""
        return cls(
            settings.api_base_url,
            timeout_seconds=settings.request_timeout_seconds,
            probe_timeout_seconds=settings.probe_timeout_seconds,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    # =========================================================================
    # ENDPOINTS
    # =========================================================================

    async def scan_product(self, barcode: str) -> ProductRecord:
        """
        Look a barcode up in the registry.

        Raises:
            NotFoundError: The registry does not know the barcode
            NetworkError: Timeout or unreachable registry
            RemoteServerError: Any other failure response
        """
        response = await self._send(
            "POST", "/scan-product", self._timeout_seconds, json={"barcode": barcode}
        )

        if response.status_code == 404:
            raise exceptions.product_not_found(barcode)

        data = self._json_body(response)

        if data.get("status") == PRODUCT_NOT_AVAILABLE:
            raise exceptions.product_not_found(barcode)

        payload = data.get("product", data)
        try:
            return ProductRecord.from_wire(payload)
        except SchemaValidationError as e:
            raise RemoteServerError(
                response.status_code, f"Malformed product from registry: {e}"
            ) from e

    async def add_product(self, record: ProductRecord) -> Dict[str, Any]:
        """
        Create or overwrite a product in the registry.

        Returns:
            The registry acknowledgement body

        Raises:
            NetworkError: Timeout or unreachable registry
            RemoteServerError: Failure response
        """
        response = await self._send(
            "POST", "/add-product", self._timeout_seconds, json=record.to_wire()
        )

        if response.status_code == 404:
            # Not a lookup: a 404 here means the endpoint is missing
            raise RemoteServerError(404, "Registry has no /add-product endpoint")

        if not response.content:
            return {}
        return self._json_body(response)

    async def health(self) -> None:
        """
        Lightweight reachability check.

        Raises:
            NetworkError: Timeout or unreachable registry
            RemoteServerError: Failure response
        """
        response = await self._send("GET", "/", self._probe_timeout_seconds)
        if response.status_code >= 400:
            raise RemoteServerError(response.status_code)

    # =========================================================================
    # TRANSPORT
    # =========================================================================

    async def _send(
        self,
        method: str,
        path: str,
        timeout_seconds: float,
        json: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        try:
            response = await asyncio.wait_for(
                self._client.request(method, path, json=json, timeout=timeout_seconds),
                timeout=timeout_seconds,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            logger.debug(f"{method} {path} timed out: {e!r}")
            raise exceptions.registry_timeout(timeout_seconds) from e
        except httpx.RequestError as e:
            logger.debug(f"{method} {path} request failure: {e!r}")
            raise exceptions.registry_unreachable(type(e).__name__) from e

        if response.status_code >= 400 and response.status_code != 404:
            raise RemoteServerError(
                response.status_code, self._error_message(response)
            )

        return response

    @staticmethod
    def _json_body(response: httpx.Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise RemoteServerError(
                response.status_code, "Registry returned a non-JSON body"
            ) from e

        if not isinstance(data, dict):
            raise RemoteServerError(
                response.status_code, "Registry returned an unexpected body"
            )

        return data

    @staticmethod
    def _error_message(response: httpx.Response) -> Optional[str]:
        """Pull the message out of an AppException envelope, if present."""
        try:
            body = response.json()
        except ValueError:
            return None

        if isinstance(body, dict):
            error = body.get("error")
            if isinstance(error, dict) and error.get("message"):
                return f"Registry error: {error['message']}"
        return None

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "RegistryClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return f"RegistryClient(base_url={self._base_url!r})"
