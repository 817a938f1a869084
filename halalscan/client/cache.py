"""
==============================================================================
Local Product Cache Module
==============================================================================

First lookup tier for scanned barcodes.

Entries map a barcode to the most recently known product record and are
overwritten, never appended. There is no eviction: product catalogs are
small compared to device storage, so retention is unbounded. Revisit this
if the cache is ever shared by large catalogs.

Persisted under the ``cachedProducts`` key as a JSON object.

==============================================================================
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Optional

from pydantic import ValidationError as SchemaValidationError

from halalscan.schemas import ProductRecord

from .storage import JsonFileStore


# Module logger
logger = logging.getLogger(__name__)

CACHE_KEY = "cachedProducts"


class LocalProductCache:
    """
    Barcode-keyed product cache backed by durable storage.

    The persisted mapping is loaded on first access and kept in memory;
    every put rewrites the stored object.

    Example:
        >>> cache = LocalProductCache(JsonFileStore("storage/client"))
        >>> await cache.put(record)
        >>> await cache.get(record.barcode) == record
        True
    """

    def __init__(self, store: JsonFileStore) -> None:
        self._store = store
        self._entries: Optional[Dict[str, ProductRecord]] = None
        self._write_lock = asyncio.Lock()

    async def _load(self) -> Dict[str, ProductRecord]:
        if self._entries is None:
            raw = await self._store.load_json(CACHE_KEY, dict, {})
            entries: Dict[str, ProductRecord] = {}

            for barcode, data in raw.items():
                try:
                    record = ProductRecord.from_wire(data)
                except (SchemaValidationError, TypeError) as e:
                    logger.warning(f"⚠️ Dropping unreadable cache entry {barcode!r}: {e}")
                    continue
                entries[record.barcode] = record

            # Another task may have finished loading while this one awaited
            if self._entries is None:
                self._entries = entries
                logger.debug(f"Loaded {len(entries)} cached products")

        return self._entries

    async def get(self, barcode: str) -> Optional[ProductRecord]:
        """Return the cached record for a barcode, or None."""
        entries = await self._load()
        return entries.get(barcode)

    async def put(self, record: ProductRecord) -> None:
        """Insert or overwrite the entry for the record's barcode."""
        entries = await self._load()
        entries[record.barcode] = record
        await self._persist()
        logger.debug(f"Cached product {record.barcode} ({record.status.value})")

    async def all(self) -> Dict[str, ProductRecord]:
        """Return a copy of every cached entry."""
        entries = await self._load()
        return dict(entries)

    async def _persist(self) -> None:
        # Serialize under the lock so the last write always holds the newest state
        async with self._write_lock:
            entries = self._entries or {}
            await self._store.save_json(
                CACHE_KEY,
                {barcode: record.to_wire() for barcode, record in entries.items()},
            )
