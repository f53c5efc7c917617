"""
Record store: named collections of JSON records over a key-value storage.

Each collection is persisted as one JSON array under its own key. Reads
always go to storage; every mutation is a single read-merge-write of one
collection, so there is never a partially written collection to observe.
"""

import asyncio
import json
import logging
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from neemamed.exceptions import AlreadyExistsError, NotFoundError, StoreError
from neemamed.store.storage import KeyValueStorage

logger = logging.getLogger(__name__)


class Collection(str, Enum):
    ACCOUNTS = "users"
    DOCTORS = "doctors"
    LAB_TECHNICIANS = "lab_technicians"
    APPOINTMENTS = "appointments"
    LAB_TESTS = "lab_tests"
    MEDICAL_RECORDS = "medical_records"
    NOTIFICATIONS = "notifications"
    REVOKED_TOKENS = "revoked_tokens"


ID_PREFIXES = {
    Collection.ACCOUNTS: "user",
    Collection.DOCTORS: "doctor",
    Collection.LAB_TECHNICIANS: "labtech",
    Collection.APPOINTMENTS: "appointment",
    Collection.LAB_TESTS: "labtest",
    Collection.MEDICAL_RECORDS: "record",
    Collection.NOTIFICATIONS: "notification",
    Collection.REVOKED_TOKENS: "revoked",
}

SESSION_KEY = "session"


def new_id(collection: Collection) -> str:
    return f"{ID_PREFIXES[collection]}_{uuid.uuid4().hex}"


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class RecordStore:
    """Collection-style CRUD over an injected KeyValueStorage."""

    def __init__(self, storage: KeyValueStorage, key_prefix: str = "neemamed_"):
        self.storage = storage
        self.key_prefix = key_prefix
        self._locks: dict[Collection, asyncio.Lock] = {c: asyncio.Lock() for c in Collection}

    def key_for(self, name: str) -> str:
        return f"{self.key_prefix}{name}"

    async def _read(self, collection: Collection) -> list[dict]:
        key = self.key_for(collection.value)
        raw = await self.storage.get_item(key)
        if raw is None:
            return []
        try:
            records = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error("Collection %s holds invalid JSON", collection.value)
            raise StoreError("Stored collection is corrupt", {"collection": collection.value}) from e
        if not isinstance(records, list):
            raise StoreError("Stored collection is not a list", {"collection": collection.value})
        return records

    async def _write(self, collection: Collection, records: list[dict]) -> None:
        try:
            raw = json.dumps(records)
        except (TypeError, ValueError) as e:
            logger.error("Collection %s could not be serialised: %s", collection.value, e)
            raise StoreError("Record is not serialisable", {"collection": collection.value}) from e
        await self.storage.set_item(self.key_for(collection.value), raw)

    async def _append(self, collection: Collection, records: list[dict], record: dict) -> dict:
        new_record = {**record, "id": new_id(collection)}
        new_record.setdefault("created_at", utcnow_iso())
        records.append(new_record)
        await self._write(collection, records)
        return new_record

    # --- queries ---

    async def list_all(self, collection: Collection) -> list[dict]:
        return await self._read(collection)

    async def get_by_id(self, collection: Collection, record_id: str) -> Optional[dict]:
        for record in await self._read(collection):
            if record.get("id") == record_id:
                return record
        return None

    async def filter_by_field(self, collection: Collection, field: str, value: Any) -> list[dict]:
        return [r for r in await self._read(collection) if r.get(field) == value]

    async def find_one(self, collection: Collection, field: str, value: Any) -> Optional[dict]:
        for record in await self._read(collection):
            if record.get(field) == value:
                return record
        return None

    # --- mutations ---

    async def create(self, collection: Collection, record: dict) -> dict:
        async with self._locks[collection]:
            return await self._append(collection, await self._read(collection), record)

    async def create_unique(self, collection: Collection, field: str, record: dict) -> dict:
        """
        Create a record unless another one already has the same value for
        ``field``. The check and the write happen under the collection lock.
        """
        value = record.get(field)
        async with self._locks[collection]:
            records = await self._read(collection)
            if any(r.get(field) == value for r in records):
                raise AlreadyExistsError(
                    f"{collection.value} record with this {field} already exists",
                    {"collection": collection.value, field: value},
                )
            return await self._append(collection, records, record)

    async def update(self, collection: Collection, record_id: str, changes: dict) -> dict:
        async with self._locks[collection]:
            records = await self._read(collection)
            for index, record in enumerate(records):
                if record.get("id") == record_id:
                    # id is immutable
                    updated = {**record, **changes, "id": record_id}
                    records[index] = updated
                    await self._write(collection, records)
                    return updated
        raise NotFoundError(
            f"{collection.value} record not found",
            {"collection": collection.value, "id": record_id},
        )

    async def delete(self, collection: Collection, record_id: str, missing_ok: bool = True) -> bool:
        """
        Remove a record. A missing id is a no-op returning False unless
        missing_ok is False, in which case NotFoundError is raised.
        """
        async with self._locks[collection]:
            records = await self._read(collection)
            remaining = [r for r in records if r.get("id") != record_id]
            if len(remaining) == len(records):
                if missing_ok:
                    return False
                raise NotFoundError(
                    f"{collection.value} record not found",
                    {"collection": collection.value, "id": record_id},
                )
            await self._write(collection, remaining)
        return True

    async def mark_as_read(self, notification_id: str) -> dict:
        return await self.update(Collection.NOTIFICATIONS, notification_id, {"read": True})

    # --- session key ---

    async def read_session(self) -> Optional[dict]:
        raw = await self.storage.get_item(self.key_for(SESSION_KEY))
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise StoreError("Stored session is corrupt") from e

    async def write_session(self, session: dict) -> None:
        await self.storage.set_item(self.key_for(SESSION_KEY), json.dumps(session))

    async def clear_session(self) -> None:
        await self.storage.remove_item(self.key_for(SESSION_KEY))
