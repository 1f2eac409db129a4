import json
import os
from pathlib import Path
from typing import Dict, List, Optional

from loguru import logger

from imagekeeper.errors import StorageError
from imagekeeper.storage.base import KeyValueStore


class LocalKeyValueStore(KeyValueStore):
    """Key-value store kept in a single JSON file.

    The file holds one JSON object mapping keys to string values. Every read goes
    to disk, and every write replaces the whole file atomically.
    """

    def __init__(self, filepath: str | Path) -> None:
        """Initialize LocalKeyValueStore.

        Args:
            filepath: Path to the store file. A missing or empty file is an empty store.
                     The file and its parent directories are created on first write.
        """
        self._filepath = Path(filepath)

    def get_item(self, key: str) -> Optional[str]:
        """Get the value stored under a key, or None if the key is absent."""
        return self._read().get(key)

    def set_item(self, key: str, value: str) -> None:
        """Store a value under a key, replacing any previous value."""
        data = self._read()
        data[key] = value
        self._write(data)

    def remove_item(self, key: str) -> None:
        """Remove a key. Removing an absent key is not an error."""
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)

    def keys(self) -> List[str]:
        """Get all keys currently in the store."""
        return list(self._read().keys())

    def _read(self) -> Dict[str, str]:
        if not self._filepath.exists():
            return {}
        try:
            with open(self._filepath, "r", encoding="utf-8") as f:
                raw = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Could not read store file {self._filepath}: {e}") from e

        if not raw.strip():
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise StorageError(f"Store file {self._filepath} is not valid JSON: {e}") from e

        if not isinstance(data, dict) or not all(isinstance(v, str) for v in data.values()):
            raise StorageError(f"Store file {self._filepath} does not map keys to strings")
        return data

    def _write(self, data: Dict[str, str]) -> None:
        tmp_path = self._filepath.with_name(f"{self._filepath.name}.tmp")
        try:
            self._filepath.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False)
            os.replace(tmp_path, self._filepath)
        except (OSError, UnicodeEncodeError) as e:
            logger.error(f"Failed to write store file {self._filepath}: {e}")
            try:
                tmp_path.unlink(missing_ok=True)
            except OSError as cleanup_error:
                logger.warning(f"Could not remove temporary file {tmp_path}: {cleanup_error}")
            raise StorageError(f"Could not write store file {self._filepath}: {e}") from e
