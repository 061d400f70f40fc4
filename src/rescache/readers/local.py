"""ローカルリソースリーダー（メモリ→ディスク）。"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TypeVar

from rescache.errors import StaleInternalNoneError
from rescache.readers.base import AsyncResourceReader, ResourceReader
from rescache.state import ResourceState
from rescache.types import DataResult

T = TypeVar("T")

logger = logging.getLogger(__name__)


def resolve_local(state: ResourceState[T], *, allow_stale: bool) -> DataResult[T]:
    """メモリ、ディスクの順に値を探索する。

    ローカルリソースではディスクを正とし、ファイルが存在して解析できれば
    時刻に関係なくfreshとして採用する。

    Args:
        state: リソース状態。
        allow_stale: stale値の返却を許可するか。

    Returns:
        読み取り結果。

    Raises:
        CacheLockError: ロックを取得できない場合。
        StaleInternalNoneError: fresh/staleいずれの値もない場合。
    """

    stale_memory: T | None = None
    if not state.is_marked_stale():
        entry = state.get_internal_data()
        if entry is not None:
            if entry.is_fresh:
                logger.debug("memory hit resource=%s", state.name)
                return DataResult.fresh(entry.value)
            stale_memory = entry.value

    disk_value = state.load_disk_value()
    if disk_value is None:
        if allow_stale and stale_memory is not None:
            logger.debug("serving stale memory value resource=%s", state.name)
            return DataResult.stale(stale_memory)
        raise StaleInternalNoneError(resource_name=state.name)

    state.set_internal_cache(disk_value)
    logger.debug("disk value loaded resource=%s", state.name)
    return DataResult.fresh(disk_value)


def store_local(state: ResourceState[T], value: T) -> Path:
    """値をディスクへ保存し、メモリへ反映する。"""

    path = state.save_to_disk(value)
    state.set_internal_cache(value)
    return path


class LocalResourceReader(ResourceReader[T]):
    """ネットワークを使わないリソースの同期リーダー。"""

    def __init__(self, state: ResourceState[T]) -> None:
        super().__init__(state)

    def get_data_or_error(self, allow_stale: bool = False) -> DataResult[T]:
        """メモリ、ディスクの順に値を探索する。"""

        return resolve_local(self._state, allow_stale=allow_stale)

    def set_data(self, value: T) -> Path:
        """値を新しいキャッシュファイルとして保存し、メモリへ反映する。

        Returns:
            書き込んだファイルのパス。

        Raises:
            UnsupportedFileTypeError: JSON/YAML以外の場合。
            SerializationError: 直列化に失敗した場合。
            ResourceIOError: 書き込みに失敗した場合。
            CacheLockError: ロックを取得できない場合。
        """

        return store_local(self._state, value)


class AsyncLocalResourceReader(AsyncResourceReader[T]):
    """ネットワークを使わないリソースの非同期リーダー。

    ディスクI/Oは同期で実行する。
    """

    def __init__(self, state: ResourceState[T]) -> None:
        super().__init__(state)

    async def get_data_or_error(self, allow_stale: bool = False) -> DataResult[T]:
        return resolve_local(self._state, allow_stale=allow_stale)

    async def set_data(self, value: T) -> Path:
        return store_local(self._state, value)
