from imagekeeper.storage.base import KeyValueStore
from imagekeeper.storage.local import LocalKeyValueStore

__all__ = ["KeyValueStore", "LocalKeyValueStore"]
