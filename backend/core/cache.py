"""
cache.py — Read-through cache for reference lookups (subjects, users).

One instance is shared by every student fetched in a report run and is
passed in explicitly. Concurrent fetches may both miss and both store the
same key; that is harmless because the stored value is the same.
"""

from time import time
from typing import Any, Awaitable, Callable, Dict, Hashable, Optional, Tuple


class LookupCache:
    def __init__(self, ttl_seconds: Optional[float] = None):
        self.ttl_seconds = ttl_seconds
        self._entries: Dict[Hashable, Tuple[float, Any]] = {}

    def _expired(self, stored_at: float) -> bool:
        return self.ttl_seconds is not None and (time() - stored_at) > self.ttl_seconds

    def get(self, key: Hashable, default: Any = None) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return default
        stored_at, value = entry
        if self._expired(stored_at):
            self._entries.pop(key, None)
            return default
        return value

    def put(self, key: Hashable, value: Any) -> None:
        self._entries[key] = (time(), value)

    async def get_or_fetch(self, key: Hashable, fetch: Callable[[], Awaitable[Any]]) -> Any:
        """
        Return the cached value for key, or await fetch(), store and return
        its result. A fetch that raises stores nothing.
        """
        if key in self:
            return self.get(key)
        value = await fetch()
        self.put(key, value)
        return value

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: Hashable) -> bool:
        entry = self._entries.get(key)
        if entry is None:
            return False
        if self._expired(entry[0]):
            self._entries.pop(key, None)
            return False
        return True

    def __len__(self) -> int:
        return len(self._entries)
