"""Tests for the TTL result cache."""

import pytest
from pydantic import ValidationError

from barcode_lookup.core.schema import ProductInfo
from barcode_lookup.lookup.cache import ANY_SOURCE, ResultCache


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def product(barcode: str = "123", name: str = "Lait 1L", source: str = "Shop") -> ProductInfo:
    return ProductInfo(barcode=barcode, name=name, price="12.50", source=source)


class TestResultCache:
    """Tests for ResultCache."""

    def test_get_missing(self) -> None:
        cache = ResultCache()
        assert cache.get("123", "shop") is None
        assert cache.misses == 1

    def test_set_and_get(self) -> None:
        cache = ResultCache()
        cache.set("123", product(), "shop")
        assert cache.get("123", "shop") == product()
        assert cache.hits == 1

    def test_keys_are_per_source(self) -> None:
        cache = ResultCache()
        cache.set("123", product(), "shop")
        assert cache.get("123", "off") is None
        assert cache.get("123") is None

    def test_cached_product_cannot_be_mutated(self) -> None:
        cache = ResultCache()
        cache.set("123", product(), "shop")

        with pytest.raises(ValidationError):
            cache.get("123", "shop").price = "1.00"

        assert cache.get("123", "shop").price == "12.50"

    def test_combined_key(self) -> None:
        cache = ResultCache()
        cache.set("123", product(), None)
        assert ("123", ANY_SOURCE) in cache
        assert cache.get("123") == product()
        assert cache.get("123", "shop") is None

    def test_ttl_boundary(self) -> None:
        """Entries are served strictly before inserted_at + ttl."""
        clock = FakeClock()
        cache = ResultCache(ttl_seconds=60, clock=clock)
        cache.set("123", product(), "shop")

        clock.advance(59)
        assert cache.get("123", "shop") is not None

        clock.advance(1)
        assert cache.get("123", "shop") is None
        assert len(cache) == 0

    def test_overwrite_restarts_ttl(self) -> None:
        clock = FakeClock()
        cache = ResultCache(ttl_seconds=60, clock=clock)
        cache.set("123", product(name="Old"), "shop")
        clock.advance(50)
        cache.set("123", product(name="New"), "shop")
        clock.advance(50)

        cached = cache.get("123", "shop")
        assert cached is not None
        assert cached.name == "New"
        assert len(cache) == 1

    def test_lru_eviction(self) -> None:
        cache = ResultCache(max_entries=2)
        cache.set("1", product("1"), "shop")
        cache.set("2", product("2"), "shop")
        cache.get("1", "shop")
        cache.set("3", product("3"), "shop")

        assert ("1", "shop") in cache
        assert ("2", "shop") not in cache
        assert ("3", "shop") in cache

    def test_purge_expired(self) -> None:
        clock = FakeClock()
        cache = ResultCache(ttl_seconds=10, clock=clock)
        cache.set("1", product("1"), "shop")
        clock.advance(5)
        cache.set("2", product("2"), "shop")
        clock.advance(6)

        assert cache.purge_expired() == 1
        assert len(cache) == 1
        assert ("2", "shop") in cache

    def test_clear(self) -> None:
        cache = ResultCache()
        cache.set("1", product("1"), "shop")
        cache.get("1", "shop")
        cache.clear()
        assert len(cache) == 0
        assert cache.hits == 0

    def test_contains_rejects_other_keys(self) -> None:
        cache = ResultCache()
        assert "123" not in cache

    @pytest.mark.parametrize("kwargs", [{"ttl_seconds": 0}, {"max_entries": 0}])
    def test_invalid_settings(self, kwargs: dict) -> None:
        with pytest.raises(ValueError):
            ResultCache(**kwargs)
