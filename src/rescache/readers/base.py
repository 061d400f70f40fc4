"""リーダー共通契約。

実装側は ``get_data_or_error`` のみを定義する。
``get_data_or_default`` と ``get_data_or_none`` はここで一度だけ定義する。
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from rescache.errors import ResourceError
from rescache.state import ResourceState
from rescache.types import CacheEntry, DataResult

T = TypeVar("T")

logger = logging.getLogger(__name__)


def select_result_value(result: DataResult[T], *, allow_stale: bool) -> T | None:
    """読み取り結果から呼び出し元へ返す値を選ぶ。

    FRESHは常に値、STALEはallow_staleのときのみ値、NONEはNone。
    """

    if result.is_fresh or (result.is_stale and allow_stale):
        return result.value
    return None


def pick_stale_candidate(
    memory: CacheEntry[T] | None,
    disk: CacheEntry[T] | None,
) -> CacheEntry[T] | None:
    """stale候補のうち時刻の新しい方を選ぶ。同時刻ならメモリ側。"""

    if memory is not None and disk is not None:
        return disk if disk.timestamp > memory.timestamp else memory
    return memory if memory is not None else disk


class _StatefulReader(Generic[T]):
    def __init__(self, state: ResourceState[T]) -> None:
        self._state = state

    @property
    def state(self) -> ResourceState[T]:
        return self._state

    @property
    def name(self) -> str:
        return self._state.name

    def mark_as_stale(self) -> None:
        """キャッシュを明示的にstaleにする。例外は送出しない。"""

        self._state.mark_as_stale()

    def _default_or_none(self, value: T | None) -> T:
        return self._state.default_value() if value is None else value


class ResourceReader(_StatefulReader[T], ABC):
    """同期リーダーの契約。"""

    @abstractmethod
    def get_data_or_error(self, allow_stale: bool = False) -> DataResult[T]:
        """最新の値を層順に探索して返す。

        Args:
            allow_stale: stale値の返却を許可するか。

        Raises:
            ResourceError: どの層からも値を得られない場合など。
        """

    def get_data_or_none(self, allow_stale: bool = False) -> T | None:
        """値、または取得できない場合はNoneを返す。例外は送出しない。"""

        try:
            result = self.get_data_or_error(allow_stale)
        except ResourceError as exc:
            logger.debug("read failed resource=%s error=%s", self.name, exc)
            return None
        return select_result_value(result, allow_stale=allow_stale)

    def get_data_or_default(self, allow_stale: bool = False) -> T:
        """値、または取得できない場合は既定値を返す。例外は送出しない。"""

        return self._default_or_none(self.get_data_or_none(allow_stale))


class AsyncResourceReader(_StatefulReader[T], ABC):
    """非同期リーダーの契約。"""

    @abstractmethod
    async def get_data_or_error(self, allow_stale: bool = False) -> DataResult[T]:
        """最新の値を層順に探索して返す。

        Raises:
            ResourceError: どの層からも値を得られない場合など。
        """

    async def get_data_or_none(self, allow_stale: bool = False) -> T | None:
        """値、または取得できない場合はNoneを返す。例外は送出しない。"""

        try:
            result = await self.get_data_or_error(allow_stale)
        except ResourceError as exc:
            logger.debug("read failed resource=%s error=%s", self.name, exc)
            return None
        return select_result_value(result, allow_stale=allow_stale)

    async def get_data_or_default(self, allow_stale: bool = False) -> T:
        """値、または取得できない場合は既定値を返す。例外は送出しない。"""

        return self._default_or_none(await self.get_data_or_none(allow_stale))
