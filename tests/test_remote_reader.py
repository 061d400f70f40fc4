"""RemoteResourceReader の層探索と更新操作のテスト。"""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path

import httpx
import pytest

from rescache import (
    DataState,
    FreshingDataError,
    HttpConfig,
    MutationOutcome,
    RemoteResourceReader,
    ResourceConfig,
    ResourceState,
    ResourceValidationError,
    RetryConfig,
    StaleInternalNoneError,
)
from rescache.enums import FileType

URL = "https://example.invalid/config"


class _Clock:
    def __init__(self, now: float) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def _json_response(request: httpx.Request, payload: object, *, status_code: int = 200) -> httpx.Response:
    return httpx.Response(
        status_code=status_code,
        content=json.dumps(payload).encode("utf-8"),
        request=request,
    )


def _reader(
    tmp_path: Path,
    clock: _Clock,
    handler: Callable[[httpx.Request], httpx.Response],
    *,
    ttl: float | None = 60.0,
    file_type: FileType = FileType.JSON,
) -> RemoteResourceReader[dict]:
    config = ResourceConfig(
        name="res",
        file_type=file_type,
        storage_dir=tmp_path,
        url=URL,
        ttl_seconds=ttl,
    )
    http_client = httpx.Client(transport=httpx.MockTransport(handler))
    return RemoteResourceReader(
        ResourceState(config, clock=clock),
        http_client=http_client,
        http_config=HttpConfig(retry=RetryConfig(max_attempts=1)),
    )


def _failing(calls: list[str]) -> Callable[[httpx.Request], httpx.Response]:
    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.method)
        return httpx.Response(status_code=404, request=request)

    return handler


def test_fetch_persists_to_disk_and_memory(tmp_path: Path) -> None:
    calls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.method)
        return _json_response(request, {"version": 3})

    with _reader(tmp_path, _Clock(1700000000.0), handler) as reader:
        result = reader.get_data_or_error()
        assert result.state == DataState.FRESH
        assert result.value == {"version": 3}

        saved = tmp_path / "res-1700000000.json"
        assert json.loads(saved.read_text(encoding="utf-8")) == {"version": 3}

        again = reader.get_data_or_error()
        assert again.value == {"version": 3}

    assert calls == ["GET"]


def test_fresh_disk_entry_skips_network(tmp_path: Path) -> None:
    calls: list[str] = []
    (tmp_path / "res-1970.json").write_text(json.dumps({"v": "disk"}), encoding="utf-8")

    with _reader(tmp_path, _Clock(2000.0), _failing(calls)) as reader:
        result = reader.get_data_or_error()

    assert result.state == DataState.FRESH
    assert result.value == {"v": "disk"}
    assert calls == []


def test_fetch_failure_without_candidates_splits_error_kinds(tmp_path: Path) -> None:
    calls: list[str] = []
    with _reader(tmp_path, _Clock(2000.0), _failing(calls)) as reader:
        with pytest.raises(StaleInternalNoneError):
            reader.get_data_or_error(allow_stale=True)
        with pytest.raises(FreshingDataError):
            reader.get_data_or_error(allow_stale=False)
    assert calls == ["GET", "GET"]


def test_connect_error_is_treated_as_missing_remote_data(tmp_path: Path) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("down", request=request)

    with _reader(tmp_path, _Clock(2000.0), handler) as reader:
        with pytest.raises(FreshingDataError):
            reader.get_data_or_error()
        assert reader.get_data_or_none(allow_stale=True) is None
        assert reader.get_data_or_default(allow_stale=True) == {}


@pytest.mark.parametrize(
    ("disk_timestamp", "expected"),
    [
        (1500, {"v": "disk"}),
        (500, {"v": "memory"}),
        (1000, {"v": "memory"}),
    ],
)
def test_newest_stale_candidate_wins(
    tmp_path: Path,
    disk_timestamp: int,
    expected: dict[str, str],
) -> None:
    clock = _Clock(1000.0)
    with _reader(tmp_path, clock, _failing([])) as reader:
        reader.state.set_internal_cache({"v": "memory"})
        (tmp_path / f"res-{disk_timestamp}.json").write_text(
            json.dumps({"v": "disk"}),
            encoding="utf-8",
        )

        clock.now = 2000.0
        result = reader.get_data_or_error(allow_stale=True)

    assert result.state == DataState.STALE
    assert result.value == expected


def test_single_stale_tier_is_used(tmp_path: Path) -> None:
    (tmp_path / "res-100.json").write_text(json.dumps({"v": "disk"}), encoding="utf-8")
    with _reader(tmp_path, _Clock(2000.0), _failing([])) as reader:
        result = reader.get_data_or_error(allow_stale=True)
    assert result.state == DataState.STALE
    assert result.value == {"v": "disk"}


def test_stale_memory_is_refreshed_from_network(tmp_path: Path) -> None:
    clock = _Clock(1000.0)

    def handler(request: httpx.Request) -> httpx.Response:
        return _json_response(request, {"v": "remote"})

    with _reader(tmp_path, clock, handler) as reader:
        reader.state.set_internal_cache({"v": "memory"})
        clock.now = 1100.0
        result = reader.get_data_or_error(allow_stale=True)

        assert result.state == DataState.FRESH
        assert result.value == {"v": "remote"}
        entry = reader.state.get_internal_data()
        assert entry is not None
        assert entry.timestamp == 1100.0
        assert (tmp_path / "res-1100.json").exists()


def test_mark_as_stale_requires_successful_refresh(tmp_path: Path) -> None:
    state = {"fail": False}

    def handler(request: httpx.Request) -> httpx.Response:
        if state["fail"]:
            return httpx.Response(status_code=404, request=request)
        return _json_response(request, {"v": "first"})

    with _reader(tmp_path, _Clock(1000.0), handler, ttl=None) as reader:
        assert reader.get_data_or_error().value == {"v": "first"}

        reader.mark_as_stale()
        state["fail"] = True
        with pytest.raises(FreshingDataError):
            reader.get_data_or_error(allow_stale=False)
        # forced staleness skips the cached tiers entirely
        with pytest.raises(StaleInternalNoneError):
            reader.get_data_or_error(allow_stale=True)

        state["fail"] = False
        assert reader.get_data_or_error().value == {"v": "first"}
        assert reader.state.is_marked_stale() is False


def test_yaml_body_is_parsed_with_declared_format(tmp_path: Path) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"name: demo\nitems:\n  - 1\n  - 2\n", request=request)

    with _reader(tmp_path, _Clock(50.0), handler, file_type=FileType.YAML) as reader:
        result = reader.get_data_or_error()

    assert result.value == {"name": "demo", "items": [1, 2]}
    assert (tmp_path / "res-50.yaml").exists()


def test_unparseable_body_counts_as_fetch_failure(tmp_path: Path) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>maintenance</html>", request=request)

    with _reader(tmp_path, _Clock(50.0), handler) as reader:
        with pytest.raises(FreshingDataError):
            reader.get_data_or_error()
    assert list(tmp_path.iterdir()) == []


def test_remote_reader_requires_url(tmp_path: Path) -> None:
    config = ResourceConfig(name="res", storage_dir=tmp_path)
    with pytest.raises(ResourceValidationError) as exc_info:
        RemoteResourceReader(ResourceState(config))
    assert exc_info.value.validation_code == "missing_url"


def test_create_installs_returned_body(tmp_path: Path) -> None:
    seen: list[tuple[str, object]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            sent = json.loads(request.content)
            seen.append((request.method, sent))
            return _json_response(request, {**sent, "id": 7}, status_code=201)
        seen.append((request.method, None))
        return httpx.Response(status_code=404, request=request)

    with _reader(tmp_path, _Clock(300.0), handler) as reader:
        result = reader.create_data({"name": "demo"})
        assert result.outcome == MutationOutcome.APPLIED
        assert result.ok
        assert result.value == {"name": "demo", "id": 7}
        assert reader.get_data_or_error().value == {"name": "demo", "id": 7}

    assert seen == [("POST", {"name": "demo"})]
    assert (tmp_path / "res-300.json").exists()


def test_update_with_empty_body_installs_sent_value(tmp_path: Path) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "PUT"
        assert request.headers["Content-Type"] == "application/json"
        return httpx.Response(status_code=204, request=request)

    with _reader(tmp_path, _Clock(300.0), handler) as reader:
        result = reader.update_data({"name": "renamed"})
        assert result.outcome == MutationOutcome.APPLIED
        assert reader.get_data_or_none() == {"name": "renamed"}


def test_failed_mutation_reports_retained_or_missing_data(tmp_path: Path) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code=409, request=request)

    with _reader(tmp_path, _Clock(300.0), handler) as reader:
        missing = reader.update_data({"name": "x"})
        assert missing.outcome == MutationOutcome.FAILED_NO_DATA
        assert missing.value is None
        assert missing.error is not None

        reader.state.set_internal_cache({"name": "old"})
        retained = reader.update_data({"name": "new"})
        assert retained.outcome == MutationOutcome.FAILED_DATA_RETAINED
        assert retained.value == {"name": "old"}
        assert reader.state.is_marked_stale() is True


def test_delete_marks_cache_stale(tmp_path: Path) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "DELETE":
            return httpx.Response(status_code=204, request=request)
        return httpx.Response(status_code=404, request=request)

    with _reader(tmp_path, _Clock(300.0), handler) as reader:
        reader.state.set_internal_cache({"name": "old"})
        result = reader.delete_data()
        assert result.outcome == MutationOutcome.APPLIED
        assert reader.state.is_marked_stale() is True
        with pytest.raises(FreshingDataError):
            reader.get_data_or_error()


def test_oversized_integer_body_counts_as_no_remote_data(tmp_path: Path) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code=200, content=b"1" * 5000, request=request)

    with _reader(tmp_path, _Clock(1000.0), handler) as reader:
        with pytest.raises(FreshingDataError):
            reader.get_data_or_error()
        assert reader.get_data_or_default() == {}
    assert list(tmp_path.iterdir()) == []
