"""リソース状態（メモリキャッシュスロットと識別情報）。"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from threading import Lock
from typing import Any, Generic, TypeVar

from rescache.config import ResourceConfig
from rescache.enums import FileType
from rescache.errors import (
    CacheLockError,
    DeserializationError,
    ResourceError,
    SerializationError,
)
from rescache.storage import (
    list_files_with_prefix,
    read_file,
    read_file_with_timestamp,
    write_cache_file,
)
from rescache.types import CacheEntry, CacheSlot

T = TypeVar("T")

logger = logging.getLogger(__name__)


class ResourceState(Generic[T]):
    """1リソース分のキャッシュスロットと静的設定を保持する。

    スロットの読み書きはすべて単一のロックで直列化する。
    ロックはスロットの参照と差し替えの間だけ保持し、I/O中は保持しない。
    """

    def __init__(
        self,
        config: ResourceConfig,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """状態を初期化する。

        Args:
            config: リソース設定。
            clock: 現在時刻（UNIX秒）を返す関数。
        """

        self._config = config
        self._clock = clock
        self._lock = Lock()
        self._slot: CacheSlot[T] = CacheSlot()

    @property
    def config(self) -> ResourceConfig:
        return self._config

    @property
    def name(self) -> str:
        return self._config.name

    @property
    def file_type(self) -> FileType:
        return self._config.file_type

    @property
    def storage_dir(self) -> Path:
        return self._config.storage_dir

    @property
    def url(self) -> str | None:
        return self._config.url

    @property
    def ttl_seconds(self) -> float | None:
        return self._config.ttl_seconds

    def now(self) -> float:
        """現在時刻（UNIX秒）。"""

        return self._clock()

    @contextmanager
    def _guard(self) -> Iterator[None]:
        if not self._lock.acquire(timeout=self._config.lock_timeout):
            raise CacheLockError(resource_name=self.name)
        try:
            yield
        finally:
            self._lock.release()

    def _is_fresh(self, timestamp: float) -> bool:
        elapsed = self.now() - timestamp
        if elapsed < 0:
            # clock moved backward relative to the recorded timestamp
            return False
        ttl = self.ttl_seconds
        if ttl is None:
            return True
        return elapsed < ttl

    def is_marked_stale(self) -> bool:
        """明示的stale指定の有無を返す。

        Raises:
            CacheLockError: ロックを取得できない場合。
        """

        with self._guard():
            return self._slot.is_stale

    def mark_as_stale(self) -> None:
        """スロットを明示的にstaleにする。

        ロックを取得できない場合は何もしない。例外は送出しない。
        """

        try:
            with self._guard():
                slot = self._slot
                self._slot = CacheSlot(value=slot.value, is_stale=True, timestamp=slot.timestamp)
        except CacheLockError:
            logger.debug("mark_as_stale skipped, lock unavailable resource=%s", self.name)

    def get_internal_data(self) -> CacheEntry[T] | None:
        """メモリ上の値と鮮度を返す。

        Returns:
            値がない場合はNone。

        Raises:
            CacheLockError: ロックを取得できない場合。
        """

        with self._guard():
            slot = self._slot
        if slot.value is None:
            return None
        return CacheEntry(
            value=slot.value,
            is_fresh=self._is_fresh(slot.timestamp),
            timestamp=slot.timestamp,
        )

    def set_internal_cache(self, value: T) -> None:
        """スロットを新しい値で置き換える。

        明示的stale指定を解除する唯一の経路。

        Raises:
            CacheLockError: ロックを取得できない場合。
        """

        slot: CacheSlot[T] = CacheSlot(value=value, is_stale=False, timestamp=self.now())
        with self._guard():
            self._slot = slot

    def decode(self, payload: Any, *, path: str | None = None) -> T:
        """解析済みペイロードから値を生成する。

        Raises:
            DeserializationError: from_payloadが失敗した場合。
        """

        try:
            return self._config.from_payload(payload)
        except Exception as exc:  # noqa: BLE001
            raise DeserializationError(self.file_type.value, path=path) from exc

    def default_value(self) -> T:
        """型の既定値を生成する。"""

        return self._config.default_factory()

    def get_disk_cached_data(self) -> CacheEntry[T] | None:
        """ディスクキャッシュから最初に解析できた候補を返す。

        鮮度はファイル名に埋め込まれた時刻で判定する。
        """

        for path in list_files_with_prefix(self.name, self.storage_dir):
            try:
                payload, timestamp = read_file_with_timestamp(path, self.file_type)
                value = self.decode(payload, path=str(path))
            except ResourceError as exc:
                logger.debug("disk candidate skipped path=%s error=%s", path, exc)
                continue
            if value is None:
                continue
            return CacheEntry(value=value, is_fresh=self._is_fresh(timestamp), timestamp=timestamp)
        return None

    def load_disk_value(self) -> T | None:
        """ディスクから最初に解析できた値を鮮度判定なしで返す。

        ファイル名に時刻がなくても候補とする。
        """

        for path in list_files_with_prefix(self.name, self.storage_dir):
            try:
                value = self.decode(read_file(path, self.file_type), path=str(path))
            except ResourceError as exc:
                logger.debug("disk candidate skipped path=%s error=%s", path, exc)
                continue
            if value is not None:
                return value
        return None

    def save_to_disk(self, value: T) -> Path:
        """値を新しいタイムスタンプ付きファイルとして保存する。

        Raises:
            UnsupportedFileTypeError: JSON/YAML以外の場合。
            SerializationError: 直列化に失敗した場合。
            ResourceIOError: 書き込みに失敗した場合。
        """

        try:
            payload = self._config.to_payload(value)
        except Exception as exc:  # noqa: BLE001
            raise SerializationError(self.file_type.value) from exc
        return write_cache_file(
            payload,
            directory=self.storage_dir,
            prefix=self.name,
            file_type=self.file_type,
            timestamp=self.now(),
        )
