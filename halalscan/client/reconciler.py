"""
==============================================================================
Sync Reconciler Module
==============================================================================

Drains the pending write queue against the registry.

Pass Semantics:
--------------
- The queue is snapshotted and every entry is attempted once, FIFO.
- Failures are independent: a stuck entry stays queued and the pass moves
  on to the next one. Calling sync_all() again is the retry mechanism.
- The queue is persisted once, after the pass, with an atomic replace of
  the whole list. A crash mid-pass leaves the original queue on disk.
- Entries enqueued while the pass was running survive it: delivered
  entries are removed from the *current* queue (oldest match per barcode),
  not from the snapshot.
- Only one pass runs at a time; a re-entrant call reports skipped=True.

The module also holds the connectivity probe, which triggers a pass as soon
as the registry is reachable again.

==============================================================================
"""

from __future__ import annotations

import logging
from typing import List

from halalscan.core.exceptions import AppException, NetworkError, RemoteServerError
from halalscan.schemas import ProductRecord, SyncReport

from .cache import LocalProductCache
from .connectivity import ConnectivityState
from .pending_queue import PendingWriteQueue, remove_first
from .remote import RegistryClient


# Module logger
logger = logging.getLogger(__name__)


class SyncReconciler:
    """
    Flushes queued product writes to the registry.

    Example:
        >>> reconciler = SyncReconciler(queue, cache, client, connectivity)
        >>> report = await reconciler.sync_all()
        >>> report.succeeded, len(report.remaining)
        (3, 0)
    """

    def __init__(
        self,
        queue: PendingWriteQueue,
        cache: LocalProductCache,
        remote: RegistryClient,
        connectivity: ConnectivityState,
    ) -> None:
        self._queue = queue
        self._cache = cache
        self._remote = remote
        self._connectivity = connectivity
        self._in_progress = False

    @property
    def in_progress(self) -> bool:
        return self._in_progress

    async def sync_all(self) -> SyncReport:
        """
        Attempt delivery of every pending write once.

        Returns:
            SyncReport with attempted, succeeded and remaining entries
        """
        if self._in_progress:
            logger.debug("Sync already running, skipping")
            return SyncReport(remaining=await self._queue.list(), skipped=True)

        self._in_progress = True
        try:
            return await self._run_pass()
        finally:
            self._in_progress = False

    async def _run_pass(self) -> SyncReport:
        snapshot = await self._queue.list()
        if not snapshot:
            return SyncReport()

        logger.info(f"🔄 Syncing {len(snapshot)} pending products")
        delivered: List[str] = []

        for record in snapshot:
            if not await self._deliver(record):
                continue

            delivered.append(record.barcode)

            # A version still waiting in the queue, including one submitted
            # during this pass, owns the cache entry
            if not await self._still_pending(record.barcode, delivered):
                await self._cache.put(record)

        remaining = await self._queue.list()
        for barcode in delivered:
            remove_first(remaining, barcode)
        await self._queue.replace_all(remaining)

        report = SyncReport(
            attempted=len(snapshot),
            succeeded=len(delivered),
            remaining=remaining,
        )

        if report.failed:
            logger.warning(
                f"⚠️ Sync finished: {report.succeeded}/{report.attempted} delivered, "
                f"{len(remaining)} still pending"
            )
        else:
            logger.info(f"✅ Sync finished: {report.succeeded} delivered")

        return report

    async def _still_pending(self, barcode: str, delivered: List[str]) -> bool:
        pending = await self._queue.list()
        for done in delivered:
            remove_first(pending, done)
        return any(r.barcode == barcode for r in pending)

    async def _deliver(self, record: ProductRecord) -> bool:
        try:
            await self._remote.add_product(record)
        except NetworkError as e:
            self._connectivity.mark_offline(e.message)
            logger.warning(f"⚠️ Could not deliver {record.barcode}: {e.message}")
            return False
        except RemoteServerError as e:
            self._connectivity.record_server_error(e.upstream_status)
            logger.warning(f"⚠️ Registry refused {record.barcode}: {e.message}")
            return False
        except AppException as e:
            logger.warning(f"⚠️ Could not deliver {record.barcode}: {e.message}")
            return False

        self._connectivity.mark_online()
        return True


class ConnectivityProbe:
    """
    Reconnect check that resynchronizes once the registry answers.

    Example:
        >>> probe = ConnectivityProbe(client, connectivity, reconciler)
        >>> await probe.probe()
        True
    """

    def __init__(
        self,
        remote: RegistryClient,
        connectivity: ConnectivityState,
        reconciler: SyncReconciler,
    ) -> None:
        self._remote = remote
        self._connectivity = connectivity
        self._reconciler = reconciler

    async def probe(self) -> bool:
        """
        Check registry reachability.

        On success the state goes ONLINE and a sync pass runs; on failure
        the state goes OFFLINE.

        Returns:
            True if the registry answered
        """
        try:
            await self._remote.health()
        except AppException as e:
            self._connectivity.mark_offline(e.message)
            logger.debug(f"Probe failed: {e.message}")
            return False

        self._connectivity.mark_online()
        await self._reconciler.sync_all()
        return True
