"""リソースリーダーのビルダー。"""

from __future__ import annotations

import time
from collections.abc import Callable
from pathlib import Path
from typing import Any, Generic, TypeVar

import httpx

from rescache.config import DEFAULT_LOCK_TIMEOUT, HttpConfig, ResourceConfig
from rescache.enums import FileType
from rescache.errors import ResourceValidationError
from rescache.readers.local import AsyncLocalResourceReader, LocalResourceReader
from rescache.readers.remote import AsyncRemoteResourceReader, RemoteResourceReader
from rescache.state import ResourceState
from rescache.validation import (
    normalize_file_type,
    normalize_name,
    normalize_storage_dir,
    normalize_ttl,
    normalize_url,
)

T = TypeVar("T")


class ResourceBuilder(Generic[T]):
    """リソースリーダーをメソッドチェーンで構築する。

    例::

        reader = (
            ResourceBuilder()
            .name("settings")
            .url("https://example.com/settings.json")
            .cache_directory("/var/cache/app")
            .ttl(60)
            .build_remote()
        )
    """

    def __init__(self) -> None:
        self._name: str | None = None
        self._url: str | None = None
        self._cache_directory: str | Path | None = None
        self._ttl: float | None = None
        self._file_type: FileType | str | None = None
        self._lock_timeout = DEFAULT_LOCK_TIMEOUT
        self._single_flight = False
        self._from_payload: Callable[[Any], T] | None = None
        self._to_payload: Callable[[T], Any] | None = None
        self._default_factory: Callable[[], T] | None = None
        self._clock: Callable[[], float] = time.time

    def name(self, name: str) -> "ResourceBuilder[T]":
        """ファイル名接頭辞を設定する。"""

        self._name = name
        return self

    file_name = name

    def url(self, url: str) -> "ResourceBuilder[T]":
        """取得元URLを設定する。"""

        self._url = url
        return self

    def cache_directory(self, directory: str | Path) -> "ResourceBuilder[T]":
        """キャッシュディレクトリを設定する。"""

        self._cache_directory = directory
        return self

    def ttl(self, seconds: float | None) -> "ResourceBuilder[T]":
        """TTL秒を設定する。Noneなら常にfresh。"""

        self._ttl = seconds
        return self

    timeout = ttl

    def file_type(self, file_type: FileType | str) -> "ResourceBuilder[T]":
        """宣言形式を設定する。"""

        self._file_type = file_type
        return self

    def lock_timeout(self, seconds: float) -> "ResourceBuilder[T]":
        """キャッシュロック取得の待機上限秒を設定する。"""

        self._lock_timeout = seconds
        return self

    def single_flight(self, enabled: bool = True) -> "ResourceBuilder[T]":
        """並行リフレッシュの直列化を設定する。"""

        self._single_flight = enabled
        return self

    def model(
        self,
        from_payload: Callable[[Any], T],
        to_payload: Callable[[T], Any] | None = None,
    ) -> "ResourceBuilder[T]":
        """ペイロードと値の相互変換を設定する。"""

        self._from_payload = from_payload
        self._to_payload = to_payload
        return self

    def default(self, factory: Callable[[], T]) -> "ResourceBuilder[T]":
        """既定値の生成関数を設定する。"""

        self._default_factory = factory
        return self

    def clock(self, clock: Callable[[], float]) -> "ResourceBuilder[T]":
        """現在時刻（UNIX秒）を返す関数を設定する。"""

        self._clock = clock
        return self

    def build_config(self, *, remote: bool) -> ResourceConfig:
        """設定を検証してResourceConfigを生成する。

        Raises:
            ResourceValidationError: 必須項目の欠落や不正値。
        """

        if self._lock_timeout <= 0:
            raise ResourceValidationError(
                "lock_timeout は0より大きい値を指定してください。",
                validation_code="invalid_lock_timeout",
            )
        kwargs: dict[str, Any] = {
            "name": normalize_name(self._name),
            "file_type": normalize_file_type(self._file_type),
            "storage_dir": normalize_storage_dir(self._cache_directory),
            "url": normalize_url(self._url) if remote else None,
            "ttl_seconds": normalize_ttl(self._ttl),
            "lock_timeout": float(self._lock_timeout),
            "single_flight": self._single_flight,
        }
        if self._from_payload is not None:
            kwargs["from_payload"] = self._from_payload
        if self._to_payload is not None:
            kwargs["to_payload"] = self._to_payload
        if self._default_factory is not None:
            kwargs["default_factory"] = self._default_factory
        return ResourceConfig(**kwargs)

    def build_state(self, *, remote: bool) -> ResourceState[T]:
        return ResourceState(self.build_config(remote=remote), clock=self._clock)

    def build_local(self) -> LocalResourceReader[T]:
        """ローカルリーダーを構築する。"""

        return LocalResourceReader(self.build_state(remote=False))

    def build_async_local(self) -> AsyncLocalResourceReader[T]:
        """非同期ローカルリーダーを構築する。"""

        return AsyncLocalResourceReader(self.build_state(remote=False))

    def build_remote(
        self,
        *,
        http_client: httpx.Client | None = None,
        http_config: HttpConfig | None = None,
    ) -> RemoteResourceReader[T]:
        """リモートリーダーを構築する。URLが必須。"""

        return RemoteResourceReader(
            self.build_state(remote=True),
            http_client=http_client,
            http_config=http_config,
        )

    def build_async_remote(
        self,
        *,
        http_client: httpx.AsyncClient | None = None,
        http_config: HttpConfig | None = None,
    ) -> AsyncRemoteResourceReader[T]:
        """非同期リモートリーダーを構築する。URLが必須。"""

        return AsyncRemoteResourceReader(
            self.build_state(remote=True),
            http_client=http_client,
            http_config=http_config,
        )
