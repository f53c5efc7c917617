"""
Key-value storage backends for the record store.

A backend maps string keys to string values. The record store keeps one
JSON-encoded collection per key, so a backend never needs to understand the
records it holds.
"""

import logging
from typing import Optional
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker
from neemamed.exceptions import StoreError
from neemamed.models.kv_entry import KeyValueEntry

logger = logging.getLogger(__name__)


def _nbytes(text: str) -> int:
    return len(text.encode("utf-8"))


class KeyValueStorage:
    """Interface shared by every storage backend."""

    async def get_item(self, key: str) -> Optional[str]:
        raise NotImplementedError

    async def set_item(self, key: str, value: str) -> None:
        raise NotImplementedError

    async def remove_item(self, key: str) -> None:
        raise NotImplementedError


class MemoryStorage(KeyValueStorage):
    """
    In-process storage. Optionally enforces a byte quota over all stored
    values, the same way browser storage refuses writes once full.
    """

    def __init__(self, quota_bytes: Optional[int] = None):
        self.quota_bytes = quota_bytes
        self._items: dict[str, str] = {}

    def _size_with(self, key: str, value: str) -> int:
        size = sum(_nbytes(k) + _nbytes(v) for k, v in self._items.items() if k != key)
        return size + _nbytes(key) + _nbytes(value)

    async def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        if self.quota_bytes is not None and self._size_with(key, value) > self.quota_bytes:
            raise StoreError(
                "Storage quota exceeded",
                {"key": key, "quota_bytes": self.quota_bytes},
            )
        self._items[key] = value

    async def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._items)


class SQLStorage(KeyValueStorage):
    """Durable storage: one row per key in the kv_entries table."""

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def get_item(self, key: str) -> Optional[str]:
        try:
            async with self.session_factory() as session:
                return await session.scalar(
                    select(KeyValueEntry.value).where(KeyValueEntry.key == key)
                )
        except SQLAlchemyError as e:
            logger.exception("Failed to read key %s", key)
            raise StoreError("Storage read failed", {"key": key, "error": str(e)}) from e

    async def set_item(self, key: str, value: str) -> None:
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    entry = await session.get(KeyValueEntry, key)
                    if entry is None:
                        session.add(KeyValueEntry(key=key, value=value))
                    else:
                        entry.value = value
        except SQLAlchemyError as e:
            logger.exception("Failed to write key %s", key)
            raise StoreError("Storage write failed", {"key": key, "error": str(e)}) from e

    async def remove_item(self, key: str) -> None:
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    entry = await session.get(KeyValueEntry, key)
                    if entry is not None:
                        await session.delete(entry)
        except SQLAlchemyError as e:
            logger.exception("Failed to remove key %s", key)
            raise StoreError("Storage write failed", {"key": key, "error": str(e)}) from e
