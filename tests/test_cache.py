"""Tests for the on-disk thumbnail cache."""

import json
import logging

from preview_resolver.cache import CacheStore


def test_missing_file_loads_empty(cache_path):
    assert CacheStore(cache_path).load() == {}


def test_corrupt_file_loads_empty_with_warning(cache_path, caplog):
    cache_path.parent.mkdir(parents=True)
    cache_path.write_text("{not json", encoding="utf-8")

    with caplog.at_level(logging.WARNING, logger="preview_resolver"):
        assert CacheStore(cache_path).load() == {}
    assert "Failed to load cache" in caplog.text


def test_non_mapping_json_loads_empty(cache_path):
    cache_path.parent.mkdir(parents=True)
    cache_path.write_text('["https://site/a"]', encoding="utf-8")
    assert CacheStore(cache_path).load() == {}


def test_persist_creates_directory_and_pretty_prints(cache_path):
    store = CacheStore(cache_path)
    store.persist({"https://site/a": "https://cdn/a.jpg", "https://site/b": "https://cdn/b.jpg"})

    text = cache_path.read_text(encoding="utf-8")
    assert text.startswith('{\n  "https://site/a"')
    assert json.loads(text) == {
        "https://site/a": "https://cdn/a.jpg",
        "https://site/b": "https://cdn/b.jpg",
    }
    assert list(json.loads(text)) == ["https://site/a", "https://site/b"]


def test_persist_overwrites_in_full(cache_path):
    store = CacheStore(cache_path)
    store.persist({"a": "1", "b": "2"})
    store.persist({"c": "3"})
    assert store.load() == {"c": "3"}


def test_persist_writes_utf8(cache_path):
    store = CacheStore(cache_path)
    store.persist({"https://site/café": "https://cdn/é.jpg"})
    assert "café" in cache_path.read_text(encoding="utf-8")
    assert store.load() == {"https://site/café": "https://cdn/é.jpg"}


def test_round_trip_is_byte_identical(cache_path):
    store = CacheStore(cache_path)
    store.persist({"https://site/a": "https://cdn/a.jpg"})
    first = cache_path.read_bytes()
    store.persist(store.load())
    assert cache_path.read_bytes() == first


def test_get_is_plain_lookup():
    mapping = {"https://site/a": "https://cdn/a.jpg"}
    assert CacheStore.get(mapping, "https://site/a") == "https://cdn/a.jpg"
    assert CacheStore.get(mapping, "https://site/a/") is None
