"""リモートリソースリーダー（メモリ→ディスク→ネットワーク）。"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, Generic, TypeVar

import httpx

from rescache.config import HttpConfig
from rescache.enums import FileType, MutationOutcome
from rescache.errors import (
    CacheLockError,
    FreshingDataError,
    ResourceError,
    ResourceValidationError,
    SerializationError,
    StaleInternalNoneError,
)
from rescache.parsers import dump_content, parse_content
from rescache.readers._transport import perform_async_request, perform_sync_request
from rescache.readers.base import AsyncResourceReader, ResourceReader, pick_stale_candidate
from rescache.state import ResourceState
from rescache.types import CacheEntry, DataResult, MutationResult

T = TypeVar("T")

logger = logging.getLogger(__name__)

_CONTENT_TYPES = {
    FileType.JSON: "application/json",
    FileType.YAML: "application/yaml",
}


class _Probe(Generic[T]):
    """キャッシュ層の探索結果。"""

    __slots__ = ("fresh", "stale_memory", "stale_disk")

    def __init__(self) -> None:
        self.fresh: T | None = None
        self.stale_memory: CacheEntry[T] | None = None
        self.stale_disk: CacheEntry[T] | None = None


class _RemoteResolver(Generic[T]):
    """同期/非同期リモートリーダー共通の層探索と反映処理。"""

    _state: ResourceState[T]

    def _init_remote(self, http_config: HttpConfig | None) -> str:
        url = self._state.url
        if url is None:
            raise ResourceValidationError(
                "リモートリソースにはURLが必要です。",
                validation_code="missing_url",
            )
        self._url = url
        self._http_config = http_config or HttpConfig()
        self._generation = 0
        return url

    @property
    def url(self) -> str:
        return self._url

    def _probe_cached_tiers(self) -> _Probe[T]:
        state = self._state
        probe: _Probe[T] = _Probe()
        if state.is_marked_stale():
            logger.debug("resource marked stale, skipping cached tiers resource=%s", state.name)
            return probe

        memory = state.get_internal_data()
        if memory is not None:
            if memory.is_fresh:
                logger.debug("memory hit resource=%s", state.name)
                probe.fresh = memory.value
                return probe
            probe.stale_memory = memory

        disk = state.get_disk_cached_data()
        if disk is not None:
            if disk.is_fresh:
                logger.debug("disk hit resource=%s", state.name)
                probe.fresh = disk.value
                return probe
            probe.stale_disk = disk
        return probe

    def _parse_remote_body(self, response: httpx.Response) -> T | None:
        try:
            payload = parse_content(response.content, file_type=self._state.file_type)
            return self._state.decode(payload, path=str(response.request.url))
        except ResourceError as exc:
            logger.debug("remote body unparseable resource=%s error=%s", self._state.name, exc)
            return None

    def _resolve_without_remote(self, probe: _Probe[T], *, allow_stale: bool) -> DataResult[T]:
        state = self._state
        if not allow_stale:
            raise FreshingDataError(resource_name=state.name, request_url=self._url)
        candidate = pick_stale_candidate(probe.stale_memory, probe.stale_disk)
        if candidate is None:
            raise StaleInternalNoneError(resource_name=state.name)
        logger.debug(
            "serving stale value resource=%s timestamp=%s",
            state.name,
            candidate.timestamp,
        )
        return DataResult.stale(candidate.value)

    def _install(self, value: T) -> DataResult[T]:
        self._state.save_to_disk(value)
        self._state.set_internal_cache(value)
        self._generation += 1
        return DataResult.fresh(value)

    def _refreshed_since(self, generation: int) -> T | None:
        """別の呼び出しが待機中にリフレッシュを完了していればその値を返す。"""

        if generation == self._generation or self._state.is_marked_stale():
            return None
        entry = self._state.get_internal_data()
        if entry is None or not entry.is_fresh:
            return None
        return entry.value

    def _encode_body(self, value: T) -> tuple[str, str]:
        file_type = self._state.file_type
        try:
            payload = self._state.config.to_payload(value)
        except Exception as exc:  # noqa: BLE001
            raise SerializationError(file_type.value) from exc
        body = dump_content(payload, file_type=file_type)
        return body, _CONTENT_TYPES[file_type]

    def _apply_mutation(self, sent: T, response: httpx.Response) -> MutationResult[T]:
        value = sent
        if response.content.strip():
            returned = self._parse_remote_body(response)
            if returned is not None:
                value = returned
        self._state.set_internal_cache(value)
        self._generation += 1
        try:
            self._state.save_to_disk(value)
        except ResourceError as exc:
            logger.warning(
                "remote mutation applied but disk cache write failed resource=%s error=%s",
                self._state.name,
                exc,
            )
        return MutationResult(outcome=MutationOutcome.APPLIED, value=value)

    def _mutation_failed(self, exc: ResourceError) -> MutationResult[T]:
        self._state.mark_as_stale()
        try:
            entry = self._state.get_internal_data()
        except CacheLockError:
            entry = None
        logger.debug("remote mutation failed resource=%s error=%s", self._state.name, exc)
        if entry is None:
            return MutationResult(outcome=MutationOutcome.FAILED_NO_DATA, error=exc)
        return MutationResult(
            outcome=MutationOutcome.FAILED_DATA_RETAINED,
            value=entry.value,
            error=exc,
        )


class RemoteResourceReader(_RemoteResolver[T], ResourceReader[T]):
    """ネットワーク取得元を持つリソースの同期リーダー。

    並行リフレッシュは既定では重複排除しない。N個の呼び出しがstaleな
    リソースを同時に読むとN回の取得と書き込みが起こり、最後に書いた値が残る。
    ``single_flight=True`` のとき、リフレッシュをリーダー単位で直列化し、
    待機中に他の呼び出しがリフレッシュを完了していればその値を返す。
    """

    def __init__(
        self,
        state: ResourceState[T],
        *,
        http_client: httpx.Client | None = None,
        http_config: HttpConfig | None = None,
    ) -> None:
        """リーダーを初期化する。

        Args:
            state: リソース状態。URLが必須。
            http_client: 外部httpx.Client。
            http_config: HTTP設定。

        Raises:
            ResourceValidationError: URLが未設定の場合。
        """

        super().__init__(state)
        self._init_remote(http_config)
        self._refresh_lock = threading.Lock()
        self._owns_client = http_client is None
        if http_client is None:
            self._http_client = httpx.Client(timeout=self._http_config.timeout)
        else:
            self._http_client = http_client

    def _fetch_remote(self) -> T | None:
        try:
            response = perform_sync_request(
                client=self._http_client,
                method="GET",
                url=self._url,
                http_config=self._http_config,
            )
        except ResourceError as exc:
            logger.debug("remote fetch failed resource=%s error=%s", self._state.name, exc)
            return None
        return self._parse_remote_body(response)

    def _refresh(self, probe: _Probe[T], *, allow_stale: bool) -> DataResult[T]:
        value = self._fetch_remote()
        if value is None:
            return self._resolve_without_remote(probe, allow_stale=allow_stale)
        return self._install(value)

    def get_data_or_error(self, allow_stale: bool = False) -> DataResult[T]:
        """メモリ、ディスク、ネットワークの順に値を探索する。

        Raises:
            CacheLockError: ロックを取得できない場合。
            FreshingDataError: 新しい値を取得できず、staleが許可されていない場合。
            StaleInternalNoneError: stale許可時に候補がどの層にもない場合。
            SerializationError: 取得値をディスクへ保存できない場合。
            ResourceIOError: 取得値をディスクへ保存できない場合。
        """

        generation = self._generation
        probe = self._probe_cached_tiers()
        if probe.fresh is not None:
            return DataResult.fresh(probe.fresh)

        if not self._state.config.single_flight:
            return self._refresh(probe, allow_stale=allow_stale)
        with self._refresh_lock:
            refreshed = self._refreshed_since(generation)
            if refreshed is not None:
                return DataResult.fresh(refreshed)
            return self._refresh(probe, allow_stale=allow_stale)

    def _mutate(self, method: str, value: T) -> MutationResult[T]:
        try:
            body, content_type = self._encode_body(value)
            response = perform_sync_request(
                client=self._http_client,
                method=method,
                url=self._url,
                http_config=self._http_config,
                content=body,
                content_type=content_type,
            )
            return self._apply_mutation(value, response)
        except ResourceError as exc:
            return self._mutation_failed(exc)

    def create_data(self, value: T) -> MutationResult[T]:
        """POSTで値を作成し、成功時はキャッシュへ反映する。"""

        return self._mutate("POST", value)

    def update_data(self, value: T) -> MutationResult[T]:
        """PUTで値を更新し、成功時はキャッシュへ反映する。"""

        return self._mutate("PUT", value)

    def delete_data(self) -> MutationResult[T]:
        """DELETEで値を削除し、キャッシュをstaleにする。"""

        try:
            perform_sync_request(
                client=self._http_client,
                method="DELETE",
                url=self._url,
                http_config=self._http_config,
            )
        except ResourceError as exc:
            return self._mutation_failed(exc)
        self._state.mark_as_stale()
        return MutationResult(outcome=MutationOutcome.APPLIED)

    def close(self) -> None:
        """内部Clientをクローズする。"""

        if self._owns_client:
            self._http_client.close()

    def __enter__(self) -> "RemoteResourceReader[T]":
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.close()


class AsyncRemoteResourceReader(_RemoteResolver[T], AsyncResourceReader[T]):
    """ネットワーク取得元を持つリソースの非同期リーダー。

    ネットワーク取得のみが中断点で、ロックはI/Oをまたいで保持しない。
    並行リフレッシュの扱いは RemoteResourceReader と同じ。
    """

    def __init__(
        self,
        state: ResourceState[T],
        *,
        http_client: httpx.AsyncClient | None = None,
        http_config: HttpConfig | None = None,
    ) -> None:
        super().__init__(state)
        self._init_remote(http_config)
        self._refresh_lock = asyncio.Lock()
        self._owns_client = http_client is None
        if http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._http_config.timeout)
        else:
            self._http_client = http_client

    async def _fetch_remote(self) -> T | None:
        try:
            response = await perform_async_request(
                client=self._http_client,
                method="GET",
                url=self._url,
                http_config=self._http_config,
            )
        except ResourceError as exc:
            logger.debug("remote fetch failed resource=%s error=%s", self._state.name, exc)
            return None
        return self._parse_remote_body(response)

    async def _refresh(self, probe: _Probe[T], *, allow_stale: bool) -> DataResult[T]:
        value = await self._fetch_remote()
        if value is None:
            return self._resolve_without_remote(probe, allow_stale=allow_stale)
        return self._install(value)

    async def get_data_or_error(self, allow_stale: bool = False) -> DataResult[T]:
        """メモリ、ディスク、ネットワークの順に値を探索する。"""

        generation = self._generation
        probe = self._probe_cached_tiers()
        if probe.fresh is not None:
            return DataResult.fresh(probe.fresh)

        if not self._state.config.single_flight:
            return await self._refresh(probe, allow_stale=allow_stale)
        async with self._refresh_lock:
            refreshed = self._refreshed_since(generation)
            if refreshed is not None:
                return DataResult.fresh(refreshed)
            return await self._refresh(probe, allow_stale=allow_stale)

    async def _mutate(self, method: str, value: T) -> MutationResult[T]:
        try:
            body, content_type = self._encode_body(value)
            response = await perform_async_request(
                client=self._http_client,
                method=method,
                url=self._url,
                http_config=self._http_config,
                content=body,
                content_type=content_type,
            )
            return self._apply_mutation(value, response)
        except ResourceError as exc:
            return self._mutation_failed(exc)

    async def create_data(self, value: T) -> MutationResult[T]:
        """POSTで値を作成し、成功時はキャッシュへ反映する。"""

        return await self._mutate("POST", value)

    async def update_data(self, value: T) -> MutationResult[T]:
        """PUTで値を更新し、成功時はキャッシュへ反映する。"""

        return await self._mutate("PUT", value)

    async def delete_data(self) -> MutationResult[T]:
        """DELETEで値を削除し、キャッシュをstaleにする。"""

        try:
            await perform_async_request(
                client=self._http_client,
                method="DELETE",
                url=self._url,
                http_config=self._http_config,
            )
        except ResourceError as exc:
            return self._mutation_failed(exc)
        self._state.mark_as_stale()
        return MutationResult(outcome=MutationOutcome.APPLIED)

    async def aclose(self) -> None:
        """内部Clientをクローズする。"""

        if self._owns_client:
            await self._http_client.aclose()

    async def __aenter__(self) -> "AsyncRemoteResourceReader[T]":
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        await self.aclose()
