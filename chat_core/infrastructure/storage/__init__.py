"""本地持久化：键值存储后端与 PersistenceGateway。"""

from .gateway import PersistenceGateway, PreferenceStore
from .json_store import JsonKeyValueStore, KeyValueStore, MemoryKeyValueStore

__all__ = [
    "JsonKeyValueStore",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "PersistenceGateway",
    "PreferenceStore",
]
