"""
Tests for core/cache.py — read-through lookup cache.
"""

import asyncio
import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from core.cache import LookupCache


class TestLookupCache:
    """Tests for LookupCache."""

    def test_get_put(self):
        cache = LookupCache()
        assert cache.get("u1") is None
        cache.put("u1", {"name": "Jane"})
        assert cache.get("u1") == {"name": "Jane"}
        assert "u1" in cache
        assert len(cache) == 1

    def test_get_or_fetch_fetches_once(self):
        cache = LookupCache()
        calls = []

        async def fetch():
            calls.append(1)
            return "English"

        async def run():
            first = await cache.get_or_fetch("eng", fetch)
            second = await cache.get_or_fetch("eng", fetch)
            return first, second

        assert asyncio.run(run()) == ("English", "English")
        assert len(calls) == 1

    def test_failed_fetch_is_not_cached(self):
        cache = LookupCache()

        async def fail():
            raise LookupError("down")

        with pytest.raises(LookupError):
            asyncio.run(cache.get_or_fetch("eng", fail))
        assert "eng" not in cache

    def test_ttl_expiry(self):
        cache = LookupCache(ttl_seconds=0)
        cache._entries["k"] = (0.0, "stale")
        assert cache.get("k", "fresh") == "fresh"
        assert "k" not in cache

    def test_clear(self):
        cache = LookupCache()
        cache.put("a", 1)
        cache.clear()
        assert len(cache) == 0
