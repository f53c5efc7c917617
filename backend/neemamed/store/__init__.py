from neemamed.store.record_store import Collection, RecordStore
from neemamed.store.storage import KeyValueStorage, MemoryStorage, SQLStorage

__all__ = ["Collection", "RecordStore", "KeyValueStorage", "MemoryStorage", "SQLStorage"]
