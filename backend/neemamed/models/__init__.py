from neemamed.models.kv_entry import KeyValueEntry

__all__ = ["KeyValueEntry"]
