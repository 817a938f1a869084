"""
==============================================================================
Pending Write Queue Module
==============================================================================

Ordered durable list of product records the registry has not accepted yet.

Queue order is the FIFO order in which deliveries are attempted. It says
nothing about causality between different barcodes.

Removal Policy:
--------------
remove_by_barcode() removes the FIRST (oldest) entry with the barcode and
leaves later duplicates in place. A barcode submitted twice before a sync
is therefore drained one successful delivery at a time, oldest first, so
the newest version is always the last one the registry receives.

Persisted under the ``pendingProducts`` key as a JSON array.

==============================================================================
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, List, Optional

from pydantic import ValidationError as SchemaValidationError

from halalscan.schemas import ProductRecord

from .storage import JsonFileStore


# Module logger
logger = logging.getLogger(__name__)

QUEUE_KEY = "pendingProducts"


def remove_first(records: List[ProductRecord], barcode: str) -> bool:
    """
    Remove the first record with the given barcode from a list in place.

    Returns:
        True if a record was removed
    """
    for index, record in enumerate(records):
        if record.barcode == barcode:
            del records[index]
            return True
    return False


class PendingWriteQueue:
    """
    FIFO queue of unsynced product records backed by durable storage.

    No maximum size is enforced.

    Example:
        >>> queue = PendingWriteQueue(JsonFileStore("storage/client"))
        >>> await queue.enqueue(record)
        >>> [r.barcode for r in await queue.list()]
        ['000111']
    """

    def __init__(self, store: JsonFileStore) -> None:
        self._store = store
        self._records: Optional[List[ProductRecord]] = None
        self._write_lock = asyncio.Lock()

    async def _load(self) -> List[ProductRecord]:
        if self._records is None:
            raw = await self._store.load_json(QUEUE_KEY, list, [])
            records: List[ProductRecord] = []

            for position, data in enumerate(raw):
                try:
                    records.append(ProductRecord.from_wire(data))
                except (SchemaValidationError, TypeError) as e:
                    logger.warning(f"⚠️ Dropping unreadable pending entry #{position}: {e}")

            if self._records is None:
                self._records = records
                logger.debug(f"Loaded {len(records)} pending products")

        return self._records

    async def enqueue(self, record: ProductRecord) -> None:
        """Append a record to the end of the queue."""
        records = await self._load()
        records.append(record)
        await self._persist()
        logger.info(f"📥 Queued product {record.barcode} ({len(records)} pending)")

    async def list(self) -> List[ProductRecord]:
        """Return a snapshot of the queue in FIFO order."""
        records = await self._load()
        return list(records)

    async def size(self) -> int:
        records = await self._load()
        return len(records)

    async def remove_by_barcode(self, barcode: str) -> bool:
        """
        Remove the oldest entry for a barcode.

        Returns:
            True if an entry was removed
        """
        records = await self._load()
        removed = remove_first(records, barcode)
        if removed:
            await self._persist()
        return removed

    async def replace_all(self, records: Iterable[ProductRecord]) -> None:
        """Atomically overwrite the whole persisted queue."""
        await self._load()
        self._records = list(records)
        await self._persist()

    async def _persist(self) -> None:
        # Serialize under the lock so the last write always holds the newest state
        async with self._write_lock:
            records = self._records or []
            await self._store.save_json(
                QUEUE_KEY, [record.to_wire() for record in records]
            )
