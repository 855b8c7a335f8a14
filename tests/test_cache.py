import pytest

from edge_compat.cache import LRUCache


def test_evicts_least_recently_used_entry():
    cache = LRUCache(max_size=2)
    cache.set("a", 1)
    cache.set("b", 2)

    cache.set("c", 3)

    assert "a" not in cache
    assert cache.keys() == ["b", "c"]
    assert len(cache) == 2


def test_get_refreshes_recency():
    cache = LRUCache(max_size=2)
    cache.set("a", 1)
    cache.set("b", 2)

    assert cache.get("a").value == 1
    cache.set("c", 3)

    assert cache.keys() == ["a", "c"]


def test_overwriting_existing_key_does_not_evict():
    cache = LRUCache(max_size=2)
    cache.set("a", 1)
    cache.set("b", 2)

    cache.set("a", 10)

    assert cache.keys() == ["b", "a"]
    assert cache.get("a").value == 10


def test_get_valid_checks_invalidation_key():
    cache = LRUCache()
    cache.set("file.ts", ("finding",), invalidation_key=100)

    assert cache.get_valid("file.ts", 100) == ("finding",)
    assert cache.get_valid("file.ts", 200) is None
    assert cache.get_valid("other.ts", 100) is None


def test_delete_and_clear():
    cache = LRUCache()
    cache.set("a", 1)
    cache.set("b", 2)

    cache.delete("a")
    cache.delete("missing")
    assert cache.keys() == ["b"]

    cache.clear()
    assert len(cache) == 0


def test_rejects_non_positive_size():
    with pytest.raises(ValueError):
        LRUCache(max_size=0)
