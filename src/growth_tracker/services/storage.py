"""Key-value persistence port for local state."""

from dataclasses import dataclass
from typing import Protocol

ANONYMOUS_OWNER = "anonymous"


class KeyValueStore(Protocol):
    """Persistence interface over string keys and string values."""

    def get(self, key: str) -> str | None:
        """Return the stored value, if present."""

    def set(self, key: str, value: str) -> None:
        """Store a value under a key."""

    def remove(self, key: str) -> None:
        """Remove a key if present."""


@dataclass
class InMemoryStorage(KeyValueStore):
    """Process-local storage used for anonymous sessions and tests."""

    _values: dict[str, str]

    def __init__(self) -> None:
        self._values = {}

    def get(self, key: str) -> str | None:
        """Return the stored value, if present."""
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        """Store a value under a key."""
        self._values[key] = value

    def remove(self, key: str) -> None:
        """Remove a key if present."""
        self._values.pop(key, None)


def owner_key(owner: str, key: str) -> str:
    """Namespace a storage key for a single owner."""
    return f"{owner}:{key}"


def commit(storage: KeyValueStore, updates: dict[str, str | None]) -> None:
    """Apply several writes all-or-nothing.

    A ``None`` value removes the key. When any write fails, keys already
    written are restored to their previous values and the error is re-raised.
    """
    previous = {key: storage.get(key) for key in updates}
    applied: list[str] = []
    try:
        for key, value in updates.items():
            if value is None:
                storage.remove(key)
            else:
                storage.set(key, value)
            applied.append(key)
    except Exception:
        for key in reversed(applied):
            old = previous[key]
            if old is None:
                storage.remove(key)
            else:
                storage.set(key, old)
        raise
