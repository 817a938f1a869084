"""
==============================================================================
Durable Key-Value Storage Module
==============================================================================

File-backed key-value store used by the product cache and the pending
write queue.

Storage Layout:
--------------
    <storage_dir>/
    ├── cachedProducts.json    - JSON object, barcode -> product
    └── pendingProducts.json   - JSON array of products, FIFO order

Every write goes to a temporary file in the same directory which is then
moved over the old file with os.replace, so a reader sees either the old
or the new content and never a torn file. File I/O goes through aiofiles
to keep the event loop free.

==============================================================================
"""

from __future__ import annotations

import json
import logging
import os
import re
import uuid
from pathlib import Path
from typing import Any, Optional, Union

import aiofiles
import aiofiles.os


# Module logger
logger = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")

_fsync = aiofiles.os.wrap(os.fsync)


class JsonFileStore:
    """
    Durable key-value store with one JSON file per key.

    Attributes:
        directory: Folder holding the key files

    Example:
        >>> store = JsonFileStore("storage/client")
        >>> await store.save_json("pendingProducts", [])
        >>> await store.load_json("pendingProducts", list, [])
        []
    """

    def __init__(self, directory: Union[str, Path]) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def _path(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self._directory / f"{key}.json"

    # =========================================================================
    # RAW ACCESS
    # =========================================================================

    async def get_item(self, key: str) -> Optional[str]:
        """Return the raw stored string, or None if the key was never set."""
        path = self._path(key)
        try:
            async with aiofiles.open(path, "r", encoding="utf-8") as f:
                return await f.read()
        except FileNotFoundError:
            return None
        except UnicodeDecodeError as e:
            logger.warning(f"⚠️ Unreadable store file {path}: {e}")
            return None

    async def set_item(self, key: str, value: str) -> None:
        """Atomically replace the stored string for a key."""
        path = self._path(key)
        await aiofiles.os.makedirs(path.parent, exist_ok=True)
        tmp_path = path.with_name(f".{path.stem}.{uuid.uuid4().hex}.tmp")

        try:
            async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
                await f.write(value)
                await f.flush()
                await _fsync(f.fileno())
            await aiofiles.os.replace(tmp_path, path)
        except BaseException:
            try:
                await aiofiles.os.remove(tmp_path)
            except FileNotFoundError:
                pass
            raise

    async def remove_item(self, key: str) -> None:
        """Delete a key. Missing keys are ignored."""
        try:
            await aiofiles.os.remove(self._path(key))
        except FileNotFoundError:
            pass

    # =========================================================================
    # JSON ACCESS
    # =========================================================================

    async def load_json(self, key: str, expected_type: type, default: Any) -> Any:
        """
        Load and decode a JSON value.

        Malformed content or a value of the wrong JSON type is treated as
        an empty store: a warning is logged and the default is returned.

        Args:
            key: Storage key
            expected_type: dict or list
            default: Value returned when the key is missing or unreadable
        """
        raw = await self.get_item(key)
        if raw is None or not raw.strip():
            return default

        try:
            value = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"⚠️ Corrupt store '{key}', treating as empty: {e}")
            return default

        if not isinstance(value, expected_type):
            logger.warning(
                f"⚠️ Store '{key}' holds {type(value).__name__}, "
                f"expected {expected_type.__name__}; treating as empty"
            )
            return default

        return value

    async def save_json(self, key: str, value: Any) -> None:
        """Encode and atomically persist a JSON value."""
        await self.set_item(key, json.dumps(value, ensure_ascii=False))

    def __repr__(self) -> str:
        return f"JsonFileStore(directory={str(self._directory)!r})"
