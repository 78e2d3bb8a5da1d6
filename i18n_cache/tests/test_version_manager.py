"""
Tests for the cache epoch manager.
"""
import logging
import threading

import pytest
from unittest.mock import Mock

from i18n_cache.cache.version_manager import VERSION_KEY, VersionManager
from i18n_cache.stores.memory_store import MemoryStore


def test_initializes_missing_epoch(version_manager, memory_store):
    assert memory_store.read_raw(VERSION_KEY) is None

    assert version_manager.current_epoch() == 0
    assert memory_store.read_raw(VERSION_KEY) == 0


def test_existing_epoch_is_kept(memory_store, clock):
    memory_store.write_raw(VERSION_KEY, 3)

    manager = VersionManager(memory_store, clock=clock)
    manager.ensure_initialized()

    assert manager.current_epoch() == 3


def test_epoch_cached_within_fetch_interval(version_manager, memory_store, clock):
    assert version_manager.current_epoch() == 0

    memory_store.write_raw(VERSION_KEY, 7)
    clock.advance(4.0)
    assert version_manager.current_epoch() == 0

    clock.advance(1.0)
    assert version_manager.current_epoch() == 7


def test_invalidate_bumps_store_not_local_copy(version_manager, memory_store):
    version_manager.current_epoch()

    assert version_manager.invalidate() == 1
    assert memory_store.read_raw(VERSION_KEY) == 1
    assert version_manager.current_epoch() == 0

    version_manager.refresh()
    assert version_manager.current_epoch() == 1


def test_invalidate_on_empty_store_starts_from_zero(version_manager):
    assert version_manager.invalidate() == 1
    assert version_manager.invalidate() == 2


def test_malformed_epoch_reads_as_zero(version_manager, memory_store):
    memory_store.write(VERSION_KEY, "garbage")

    assert version_manager.current_epoch() == 0


def test_resync_does_one_check_and_one_read(clock):
    store = Mock(wraps=MemoryStore())
    manager = VersionManager(store, clock=clock)

    manager.current_epoch()
    assert store.read_raw.call_count == 2  # initialization check + epoch read
    assert store.write_raw.call_count == 1

    manager.current_epoch()
    assert store.read_raw.call_count == 2

    clock.advance(5.0)
    manager.current_epoch()
    assert store.read_raw.call_count == 4
    assert store.write_raw.call_count == 1


def test_zero_interval_rereads_every_call(memory_store, clock):
    manager = VersionManager(memory_store, fetch_interval=0, clock=clock)
    manager.current_epoch()

    memory_store.increment(VERSION_KEY)

    assert manager.current_epoch() == 1


def test_negative_interval_rejected(memory_store):
    with pytest.raises(ValueError):
        VersionManager(memory_store, fetch_interval=-1)


def test_invalidate_is_logged(version_manager, caplog):
    with caplog.at_level(logging.INFO, logger="i18n_cache.cache.version_manager"):
        version_manager.invalidate()

    assert "epoch is now 1" in caplog.text


def test_concurrent_readers_see_monotonic_epochs(memory_store):
    manager = VersionManager(memory_store, fetch_interval=0)
    manager.ensure_initialized()
    errors = []
    observed = {}

    def reader(index):
        seen = []
        try:
            for _ in range(200):
                seen.append(manager.current_epoch())
        except Exception as e:
            errors.append(e)
        observed[index] = seen

    threads = [threading.Thread(target=reader, args=(i,)) for i in range(8)]
    for thread in threads:
        thread.start()
    for _ in range(50):
        manager.invalidate()
    for thread in threads:
        thread.join()

    assert not errors
    for seen in observed.values():
        assert seen == sorted(seen)
        assert all(0 <= epoch <= 50 for epoch in seen)
