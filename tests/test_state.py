"""ResourceState の鮮度判定とロック挙動のテスト。"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from rescache.config import ResourceConfig
from rescache.enums import FileType
from rescache.errors import CacheLockError
from rescache.state import ResourceState


class _Clock:
    def __init__(self, now: float) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def _state(
    tmp_path: Path,
    clock: _Clock,
    *,
    ttl: float | None = 60.0,
    lock_timeout: float = 5.0,
) -> ResourceState[dict]:
    config = ResourceConfig(
        name="cfg",
        file_type=FileType.JSON,
        storage_dir=tmp_path,
        ttl_seconds=ttl,
        lock_timeout=lock_timeout,
    )
    return ResourceState(config, clock=clock)


def test_empty_slot_has_no_internal_data(tmp_path: Path) -> None:
    state = _state(tmp_path, _Clock(1000.0))
    assert state.get_internal_data() is None
    assert state.is_marked_stale() is False


def test_freshness_follows_ttl_boundary(tmp_path: Path) -> None:
    clock = _Clock(1000.0)
    state = _state(tmp_path, clock, ttl=60.0)
    state.set_internal_cache({"v": 1})

    clock.now = 1059.9
    entry = state.get_internal_data()
    assert entry is not None
    assert entry.is_fresh is True
    assert entry.timestamp == 1000.0

    clock.now = 1060.0
    entry = state.get_internal_data()
    assert entry is not None
    assert entry.is_fresh is False
    assert entry.value == {"v": 1}


def test_no_ttl_is_always_fresh(tmp_path: Path) -> None:
    clock = _Clock(1000.0)
    state = _state(tmp_path, clock, ttl=None)
    state.set_internal_cache({"v": 1})

    clock.now = 1000.0 + 10 * 365 * 24 * 3600
    entry = state.get_internal_data()
    assert entry is not None
    assert entry.is_fresh is True


def test_clock_rollback_is_never_fresh(tmp_path: Path) -> None:
    clock = _Clock(1000.0)
    state = _state(tmp_path, clock, ttl=None)
    state.set_internal_cache({"v": 1})

    clock.now = 900.0
    entry = state.get_internal_data()
    assert entry is not None
    assert entry.is_fresh is False


def test_mark_as_stale_is_cleared_only_by_set(tmp_path: Path) -> None:
    clock = _Clock(1000.0)
    state = _state(tmp_path, clock)
    state.set_internal_cache({"v": 1})

    state.mark_as_stale()
    assert state.is_marked_stale() is True
    entry = state.get_internal_data()
    assert entry is not None
    assert entry.value == {"v": 1}

    state.set_internal_cache({"v": 2})
    assert state.is_marked_stale() is False


def test_lock_unavailable_raises_cache_lock_error(tmp_path: Path) -> None:
    state = _state(tmp_path, _Clock(1000.0), lock_timeout=0.01)
    state._lock.acquire()
    try:
        with pytest.raises(CacheLockError):
            state.is_marked_stale()
        with pytest.raises(CacheLockError):
            state.get_internal_data()
        with pytest.raises(CacheLockError):
            state.set_internal_cache({"v": 1})
        state.mark_as_stale()
    finally:
        state._lock.release()

    assert state.is_marked_stale() is False


def test_disk_freshness_uses_file_name_timestamp(tmp_path: Path) -> None:
    clock = _Clock(2000.0)
    state = _state(tmp_path, clock, ttl=60.0)
    (tmp_path / "cfg-1990.json").write_text(json.dumps({"v": "fresh"}), encoding="utf-8")

    entry = state.get_disk_cached_data()
    assert entry is not None
    assert entry.value == {"v": "fresh"}
    assert entry.is_fresh is True
    assert entry.timestamp == 1990.0

    clock.now = 2100.0
    entry = state.get_disk_cached_data()
    assert entry is not None
    assert entry.is_fresh is False


def test_disk_skips_unparseable_candidates(tmp_path: Path) -> None:
    state = _state(tmp_path, _Clock(2000.0), ttl=None)
    (tmp_path / "cfg-1999.json").write_text("{broken", encoding="utf-8")
    (tmp_path / "cfg-latest.json").write_text(json.dumps({"v": 0}), encoding="utf-8")
    (tmp_path / "cfg-1500.json").write_text(json.dumps({"v": 1}), encoding="utf-8")

    entry = state.get_disk_cached_data()
    assert entry is not None
    assert entry.value == {"v": 1}
    assert entry.timestamp == 1500.0


def test_disk_returns_none_without_candidates(tmp_path: Path) -> None:
    state = _state(tmp_path / "missing", _Clock(2000.0))
    assert state.get_disk_cached_data() is None
    assert state.load_disk_value() is None


def test_disk_skips_candidate_with_invalid_utf8(tmp_path: Path) -> None:
    state = _state(tmp_path, _Clock(2000.0), ttl=None)
    (tmp_path / "cfg-200.json").write_bytes(b'{"v": "\xff\xfe"}')
    (tmp_path / "cfg-100.json").write_text(json.dumps({"v": "ok"}), encoding="utf-8")

    entry = state.get_disk_cached_data()
    assert entry is not None
    assert entry.value == {"v": "ok"}
    assert state.load_disk_value() == {"v": "ok"}
