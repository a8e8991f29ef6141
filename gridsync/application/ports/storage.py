"""Port for the persisted key/value storage shared by execution contexts."""

from typing import Protocol


class KeyValueStoragePort(Protocol):
    """Port exposing string values under string keys.

    Implementations raise ``StorageUnavailableError`` when the backing store
    cannot be read or written.
    """

    def get(self, key: str) -> str | None:
        """Return the stored value, or None when the key is absent."""

    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""

    def delete(self, key: str) -> None:
        """Remove ``key`` if present."""


__all__ = ["KeyValueStoragePort"]
