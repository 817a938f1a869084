"""
==============================================================================
Lookup Resolver Module
==============================================================================

Decides, for one scanned barcode, whether to answer from the local cache,
ask the registry, or hand over to the add-product flow.

State Machine:
-------------

    IDLE ──▶ CACHE_CHECK ──hit──▶ RESOLVED (source=cache)
                 │
                miss
                 ▼
           REMOTE_CHECK ──found──────▶ RESOLVED (source=remote, cached)
                 │  │
                 │  └──not found─────▶ AWAITING_ADD (offline=False)
                 │
          network failure
                 ▼
         OFFLINE_FALLBACK ──▶ CACHE_CHECK ──hit──▶ RESOLVED (source=cache)
                                   │
                                  miss
                                   ▼
                             AWAITING_ADD (offline=True)

A server error (non-2xx other than not-found) is counted on the
connectivity state. It takes the offline fallback only once errors repeat
past the threshold; before that a cache miss ends in FAILED (retryable).

The cache is authoritative once populated: a known barcode never reaches
the registry, so previously confirmed statuses stay stable even if the
registry later changes them.

==============================================================================
"""

from __future__ import annotations

import enum
import logging

from halalscan.core.exceptions import (
    NetworkError,
    NotFoundError,
    RemoteServerError,
    ValidationError,
)
from halalscan.schemas import (
    AwaitingAdd,
    Failed,
    ProductRecord,
    ResolutionOutcome,
    ResolutionSource,
    Resolved,
)
from halalscan.utils.validators import BarcodeValidator

from .cache import LocalProductCache
from .connectivity import ConnectivityState
from .remote import RegistryClient


# Module logger
logger = logging.getLogger(__name__)


class ResolverState(str, enum.Enum):
    """Phases of a single resolution attempt."""

    IDLE = "idle"
    CACHE_CHECK = "cache_check"
    REMOTE_CHECK = "remote_check"
    OFFLINE_FALLBACK = "offline_fallback"
    RESOLVED = "resolved"
    AWAITING_ADD = "awaiting_add"
    FAILED = "failed"


class LookupResolver:
    """
    Orchestrates cache → registry → cache fallback → add flow.

    Attributes:
        state: Phase reached by the most recent resolution

    Example:
        >>> resolver = LookupResolver(cache, client, connectivity)
        >>> outcome = await resolver.resolve("000111")
        >>> outcome.kind
        'awaiting_add'
    """

    def __init__(
        self,
        cache: LocalProductCache,
        remote: RegistryClient,
        connectivity: ConnectivityState,
    ) -> None:
        self._cache = cache
        self._remote = remote
        self._connectivity = connectivity
        self._validator = BarcodeValidator()
        self._state = ResolverState.IDLE

    @property
    def state(self) -> ResolverState:
        return self._state

    def _enter(self, state: ResolverState, barcode: str) -> None:
        self._state = state
        logger.debug(f"[{barcode}] → {state.value}")

    async def resolve(self, barcode: str) -> ResolutionOutcome:
        """
        Resolve a scanned barcode.

        Network failures never escape: they become an offline fallback.

        Raises:
            ValidationError: The barcode is empty or malformed
        """
        is_valid, normalized, error = self._validator.validate(barcode)
        if not is_valid:
            raise ValidationError(error, "barcode")
        barcode = normalized

        self._enter(ResolverState.CACHE_CHECK, barcode)
        cached = await self._cache.get(barcode)
        if cached is not None:
            return self._resolved(cached, ResolutionSource.CACHE)

        if not self._connectivity.is_online:
            return await self._offline_fallback(barcode)

        self._enter(ResolverState.REMOTE_CHECK, barcode)
        try:
            record = await self._remote.scan_product(barcode)
        except NotFoundError:
            self._connectivity.mark_online()
            logger.info(f"❔ {barcode} not in registry, awaiting product details")
            self._enter(ResolverState.AWAITING_ADD, barcode)
            return AwaitingAdd(barcode=barcode, offline=False)
        except NetworkError as e:
            self._connectivity.mark_offline(e.message)
            return await self._offline_fallback(barcode)
        except RemoteServerError as e:
            return await self._server_error_fallback(barcode, e)

        self._connectivity.mark_online()
        if record.barcode != barcode:
            record = record.model_copy(update={"barcode": barcode})

        await self._cache.put(record)
        return self._resolved(record, ResolutionSource.REMOTE)

    # =========================================================================
    # FALLBACKS
    # =========================================================================

    async def _offline_fallback(self, barcode: str) -> ResolutionOutcome:
        self._enter(ResolverState.OFFLINE_FALLBACK, barcode)

        # Another task may have cached the barcode while the remote call ran
        self._enter(ResolverState.CACHE_CHECK, barcode)
        cached = await self._cache.get(barcode)
        if cached is not None:
            return self._resolved(cached, ResolutionSource.CACHE)

        logger.info(f"📴 {barcode} unknown while offline, awaiting product details")
        self._enter(ResolverState.AWAITING_ADD, barcode)
        return AwaitingAdd(barcode=barcode, offline=True)

    async def _server_error_fallback(
        self, barcode: str, error: RemoteServerError
    ) -> ResolutionOutcome:
        if self._connectivity.record_server_error(error.upstream_status):
            return await self._offline_fallback(barcode)

        cached = await self._cache.get(barcode)
        if cached is not None:
            return self._resolved(cached, ResolutionSource.CACHE)

        self._enter(ResolverState.FAILED, barcode)
        return Failed(
            barcode=barcode,
            message=error.message,
            code=error.code,
            retryable=True,
        )

    def _resolved(self, record: ProductRecord, source: ResolutionSource) -> Resolved:
        self._enter(ResolverState.RESOLVED, record.barcode)
        logger.info(f"✅ {record.barcode}: {record.status.value} (from {source.value})")
        return Resolved(record=record, source=source)
