"""Window store abstraction + in-memory implementation."""

import threading
import uuid
from abc import ABC, abstractmethod

from quotagate.limiter.models import RateWindowEntry


class WindowStore(ABC):
    """Abstract base for per-key timestamp storage.

    Implementations only need to offer an atomic compare-and-swap on the
    entry version. The controller and the sweep build their read-prune-write
    cycles on top of it, so the same code works for a single process or a
    shared backend.
    """

    @abstractmethod
    async def get_or_create(self, key: str) -> RateWindowEntry:
        """Return a snapshot of the entry for `key`.

        Unknown keys yield an empty entry with version None; the entry is
        materialized by the first successful compare_and_swap.
        """
        ...

    @abstractmethod
    async def compare_and_swap(
        self, key: str, expected_version: str | None, timestamps: list[float]
    ) -> bool:
        """Replace the timestamps if the stored version still equals `expected_version`."""
        ...

    @abstractmethod
    async def delete_if_empty(self, key: str) -> bool:
        """Delete the entry only if it holds no timestamps. Returns True if deleted."""
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Unconditionally drop the entry for `key`."""
        ...

    @abstractmethod
    async def keys(self) -> list[str]:
        """All stored keys, for the sweep."""
        ...

    async def close(self) -> None:
        """Cleanup resources. Override if the store holds connections."""
        pass


class MemoryWindowStore(WindowStore):
    """Process-local store. Best-effort only: each instance counts on its own."""

    def __init__(self):
        self._entries: dict[str, RateWindowEntry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    async def get_or_create(self, key: str) -> RateWindowEntry:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return RateWindowEntry(key=key)
            return RateWindowEntry(key=key, timestamps=list(entry.timestamps), version=entry.version)

    async def compare_and_swap(
        self, key: str, expected_version: str | None, timestamps: list[float]
    ) -> bool:
        with self._lock:
            current = self._entries.get(key)
            current_version = current.version if current is not None else None
            if current_version != expected_version:
                return False
            self._entries[key] = RateWindowEntry(
                key=key, timestamps=list(timestamps), version=new_version_token()
            )
            return True

    async def delete_if_empty(self, key: str) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or entry.timestamps:
                return False
            del self._entries[key]
            return True

    async def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    async def keys(self) -> list[str]:
        with self._lock:
            return list(self._entries)


def new_version_token() -> str:
    return uuid.uuid4().hex
