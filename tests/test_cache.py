import pytest

from mark2pdf.cache import ResultCache


def test_oldest_entry_is_evicted() -> None:
    cache: ResultCache[str] = ResultCache(max_size=2)
    cache.put("a", "1")
    cache.put("b", "2")
    assert cache.get("a") == "1"
    cache.put("c", "3")
    assert "b" not in cache
    assert "a" in cache and "c" in cache
    assert len(cache) == 2


def test_discard_clear_and_stats() -> None:
    cache: ResultCache[int] = ResultCache()
    cache.put("a", 1)
    cache.discard("a")
    cache.discard("missing")
    assert cache.get("a") is None
    cache.put("b", 2)
    assert cache.stats() == {"size": 1, "max_size": 100}
    cache.clear()
    assert len(cache) == 0


def test_invalid_size() -> None:
    with pytest.raises(ValueError):
        ResultCache(max_size=0)
