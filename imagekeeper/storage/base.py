from typing import List, Optional, Protocol


class KeyValueStore(Protocol):
    """Protocol for durable string-keyed blob stores.

    Implementations raise ``StorageError`` when the underlying medium cannot be
    read or written.
    """

    def get_item(self, key: str) -> Optional[str]:
        """Get the value stored under a key, or None if the key is absent."""
        ...

    def set_item(self, key: str, value: str) -> None:
        """Store a value under a key, replacing any previous value."""
        ...

    def remove_item(self, key: str) -> None:
        """Remove a key. Removing an absent key is not an error."""
        ...

    def keys(self) -> List[str]:
        """Get all keys currently in the store."""
        ...
