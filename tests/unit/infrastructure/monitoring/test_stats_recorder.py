import logging

import pytest

from throughcache.domain.events.cache_events import (
    BackingFailure, CacheHit, CacheMiss, DomainEvent, EntryEvicted, FetchCoalesced,
)
from throughcache.infrastructure.monitoring.logger_setup import resolve_level, setup_logging
from throughcache.infrastructure.monitoring.stats_recorder import CacheStatsRecorder

def test_recorder_counts_events():
    recorder = CacheStatsRecorder()
    for event in (CacheHit("a"), CacheHit("a"), CacheMiss("b"), FetchCoalesced("b"),
                  EntryEvicted("a", "lru"), BackingFailure("c", "fetch", "boom")):
        recorder(event)

    stats = recorder.snapshot()
    assert stats["hits"] == 2
    assert stats["misses"] == 1
    assert stats["coalesced"] == 1
    assert stats["evictions"] == 1
    assert stats["failures"] == 1
    assert stats["hit_ratio"] == pytest.approx(0.5)

def test_recorder_ignores_unknown_events_and_resets():
    recorder = CacheStatsRecorder()
    recorder(DomainEvent())
    recorder(CacheHit("a"))
    recorder.reset()
    stats = recorder.snapshot()
    assert stats["hits"] == 0
    assert stats["hit_ratio"] == 0.0

@pytest.mark.parametrize("value, expected", [
    ("debug", logging.DEBUG), ("INFO", logging.INFO), (logging.ERROR, logging.ERROR), ("nonsense", logging.WARNING),
])
def test_resolve_level(value, expected):
    assert resolve_level(value) == expected

def test_setup_logging_replaces_handlers_and_adds_file(tmp_path):
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    log_file = tmp_path / "cache.log"
    try:
        setup_logging(log_level="INFO", log_file=str(log_file))
        assert root.level == logging.INFO
        assert len(root.handlers) == 2
        logging.getLogger("throughcache.test").info("hello file")
        for handler in root.handlers:
            handler.flush()
        assert "hello file" in log_file.read_text(encoding="utf-8")
    finally:
        for handler in root.handlers[:]:
            root.removeHandler(handler)
            handler.close()
        for handler in original_handlers:
            root.addHandler(handler)
        root.setLevel(original_level)
