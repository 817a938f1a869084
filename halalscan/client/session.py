"""
==============================================================================
Scan Session Module
==============================================================================

Boundary between the scan engine and whatever UI drives it.

The UI feeds events in and gets outcome values back; nothing here knows
about rendering.

Events consumed:
---------------
    on_barcode_scanned(barcode)   -> ResolutionOutcome | None (debounced)
    on_submit_requested(fields)   -> SubmitOutcome | Failed
    on_sync_requested()           -> SyncReport
    on_reconnect_requested()      -> bool
    on_rescan_requested()         -> None (leave the paused phase)

Events produced (to listeners):
------------------------------
    resolution, submission, sync, connectivity

Background Task:
---------------
ReconnectTaskManager runs the connectivity probe on an interval while the
session believes it is offline, so a stale offline belief is corrected
without user action.

==============================================================================
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

import httpx

from halalscan.config import Settings, get_settings
from halalscan.core.exceptions import RemoteServerError, ValidationError
from halalscan.schemas import (
    EventKind,
    Failed,
    ResolutionOutcome,
    SessionEvent,
    SubmitOutcome,
    SyncReport,
)

from .cache import LocalProductCache
from .connectivity import ConnectivityState, ConnectivityStatus
from .debouncer import ScanDebouncer
from .pending_queue import PendingWriteQueue
from .reconciler import ConnectivityProbe, SyncReconciler
from .remote import RegistryClient
from .resolver import LookupResolver
from .storage import JsonFileStore
from .submitter import ProductSubmitter


# Module logger
logger = logging.getLogger(__name__)


SessionListener = Callable[[SessionEvent], None]


class ScanSession:
    """
    Wires the engine components together behind UI-facing event methods.

    Attributes:
        cache: Local product cache
        queue: Pending write queue
        connectivity: Online/offline belief
        debouncer: Scan debouncer
        resolver: Lookup resolver
        submitter: Add-product flow
        reconciler: Pending queue drainer
        probe: Reconnect probe

    Example:
        >>> session = ScanSession.from_settings(get_settings())
        >>> outcome = await session.on_barcode_scanned("000111")
        >>> if outcome.kind == "awaiting_add":
        ...     await session.on_submit_requested({"barcode": "000111", "name": "Biscuit"})
    """

    def __init__(
        self,
        remote: RegistryClient,
        store: JsonFileStore,
        cool_down_ms: float = 3000,
        server_error_threshold: int = 3,
        probe_interval_seconds: Optional[float] = None,
    ) -> None:
        self.remote = remote
        self.store = store
        self.cache = LocalProductCache(store)
        self.queue = PendingWriteQueue(store)
        self.connectivity = ConnectivityState(server_error_threshold)
        self.debouncer = ScanDebouncer(cool_down_ms)
        self.resolver = LookupResolver(self.cache, remote, self.connectivity)
        self.submitter = ProductSubmitter(self.cache, self.queue, remote, self.connectivity)
        self.reconciler = SyncReconciler(self.queue, self.cache, remote, self.connectivity)
        self.probe = ConnectivityProbe(remote, self.connectivity, self.reconciler)

        self._listeners: List[SessionListener] = []
        self._in_flight: Dict[str, asyncio.Task] = {}
        self.reconnect: Optional[ReconnectTaskManager] = None
        if probe_interval_seconds:
            self.reconnect = ReconnectTaskManager(self, probe_interval_seconds)

        self.connectivity.add_listener(self._on_connectivity_change)

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        storage_dir: Optional[Union[str, Path]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "ScanSession":
        """Build a session from application settings."""
        settings = settings or get_settings()
        return cls(
            RegistryClient.from_settings(settings, transport=transport),
            JsonFileStore(storage_dir or settings.storage_path),
            cool_down_ms=settings.scan_cooldown_ms,
            server_error_threshold=settings.server_error_threshold,
            probe_interval_seconds=(
                settings.probe_interval_seconds if settings.auto_probe_enabled else None
            ),
        )

    # =========================================================================
    # LISTENERS
    # =========================================================================

    def add_listener(self, listener: SessionListener) -> None:
        """Register a callback for produced events."""
        self._listeners.append(listener)

    def remove_listener(self, listener: SessionListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, kind: EventKind, payload: Any) -> None:
        event = SessionEvent(kind=kind, payload=payload)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.error(f"Session listener failed on {kind.value}: {e}")

    def _on_connectivity_change(self, status: ConnectivityStatus) -> None:
        self._emit(EventKind.CONNECTIVITY, status)

    # =========================================================================
    # UI EVENTS
    # =========================================================================

    async def on_barcode_scanned(
        self, barcode: str, now: Optional[float] = None
    ) -> Optional[ResolutionOutcome]:
        """
        Handle a scan callback.

        Returns:
            The resolution outcome, or None if the scan was debounced
        """
        barcode = (barcode or "").strip()
        if not self.debouncer.accept(barcode, now):
            return None

        try:
            outcome = await self._resolve_once(barcode)
        except ValidationError as e:
            outcome = Failed(barcode=barcode, message=e.message, code=e.code)

        self._emit(EventKind.RESOLUTION, outcome)
        return outcome

    async def _resolve_once(self, barcode: str) -> ResolutionOutcome:
        # Concurrent scans of one barcode share a single in-flight resolution
        task = self._in_flight.get(barcode)
        if task is None:
            task = asyncio.ensure_future(self.resolver.resolve(barcode))
            self._in_flight[barcode] = task
            task.add_done_callback(lambda _: self._in_flight.pop(barcode, None))

        # Shielded: an abandoned caller must not cancel the cache write-through
        return await asyncio.shield(task)

    async def on_submit_requested(
        self, fields: Mapping[str, Any]
    ) -> Union[SubmitOutcome, Failed]:
        """
        Handle the add-product form.

        Accepted keys: barcode, name, category (or type), ingredients, status.
        """
        barcode = fields.get("barcode", "")
        try:
            outcome: Union[SubmitOutcome, Failed] = await self.submitter.submit(
                barcode,
                fields.get("name", ""),
                fields.get("category", fields.get("type", "food")),
                fields.get("ingredients"),
                fields.get("status"),
            )
        except ValidationError as e:
            outcome = Failed(barcode=barcode, message=e.message, code=e.code)
        except RemoteServerError as e:
            outcome = Failed(
                barcode=barcode, message=e.message, code=e.code, retryable=True
            )

        self._emit(EventKind.SUBMISSION, outcome)
        return outcome

    async def on_sync_requested(self) -> SyncReport:
        """Handle a manual sync request."""
        report = await self.reconciler.sync_all()
        self._emit(EventKind.SYNC, report)
        return report

    async def on_reconnect_requested(self) -> bool:
        """Probe the registry; a successful probe also syncs."""
        return await self.probe.probe()

    def on_rescan_requested(self) -> None:
        """The user asked to scan again."""
        self.debouncer.reset()

    def start(self) -> None:
        """Start the background reconnect task, if configured."""
        if self.reconnect is not None:
            self.reconnect.start()

    async def aclose(self) -> None:
        if self.reconnect is not None:
            self.reconnect.stop()
        await self.remote.aclose()


class ReconnectTaskManager:
    """
    Background task probing the registry while the session is offline.

    Example:
        >>> manager = ReconnectTaskManager(session, interval_seconds=30)
        >>> manager.start()  # Start background task
        >>> # ... application runs ...
        >>> manager.stop()   # Stop on shutdown
    """

    def __init__(self, session: ScanSession, interval_seconds: float = 30) -> None:
        self._session = session
        self._interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None
        self._running = False

    async def _probe_loop(self) -> None:
        """Background probe loop."""
        logger.info("🔄 Reconnect background task started")

        while self._running:
            try:
                await asyncio.sleep(self._interval_seconds)

                if self._session.connectivity.is_online:
                    continue

                logger.debug("Probing registry...")
                if await self._session.on_reconnect_requested():
                    logger.info("✅ Registry reachable again")

            except asyncio.CancelledError:
                logger.info("🛑 Reconnect task cancelled")
                break
            except Exception as e:
                logger.error(f"Reconnect task error: {e}")

    def start(self) -> asyncio.Task:
        """
        Start the background reconnect task.

        Returns:
            The asyncio Task object
        """
        if self._task is None or self._task.done():
            self._running = True
            self._task = asyncio.create_task(self._probe_loop())
            logger.info("✅ Reconnect task started")
        return self._task

    def stop(self) -> None:
        """Stop the background reconnect task."""
        self._running = False
        if self._task and not self._task.done():
            self._task.cancel()
            logger.info("🛑 Reconnect task stopped")

    @property
    def is_running(self) -> bool:
        """Check if task is running."""
        return self._running and self._task is not None and not self._task.done()
