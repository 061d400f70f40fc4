"""公開型と内部共通データ構造。"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from rescache.enums import DataState, MutationOutcome
from rescache.errors import ResourceError

T = TypeVar("T")


@dataclass(slots=True, frozen=True)
class CacheSlot(Generic[T]):
    """メモリキャッシュの1スロット。

    書き込みのたびに丸ごと置き換える。valueがNoneのとき
    is_stale/timestampは意味を持たない。

    Attributes:
        value: キャッシュ値。共有スナップショットとして扱い、変更しない。
        is_stale: 明示的stale指定。
        timestamp: 書き込み時刻（UNIX秒）。
    """

    value: T | None = None
    is_stale: bool = False
    timestamp: float = 0.0


@dataclass(slots=True, frozen=True)
class CacheEntry(Generic[T]):
    """層から取り出した候補値。

    Attributes:
        value: 値。
        is_fresh: TTL判定結果。
        timestamp: 鮮度判定の基準時刻（UNIX秒）。
    """

    value: T
    is_fresh: bool
    timestamp: float


@dataclass(slots=True, frozen=True)
class DataResult(Generic[T]):
    """読み取り結果。

    Attributes:
        state: 鮮度区分。
        value: 値。stateがNONEのときNone。
    """

    state: DataState
    value: T | None = None

    @classmethod
    def fresh(cls, value: T) -> "DataResult[T]":
        return cls(state=DataState.FRESH, value=value)

    @classmethod
    def stale(cls, value: T) -> "DataResult[T]":
        return cls(state=DataState.STALE, value=value)

    @classmethod
    def none(cls) -> "DataResult[T]":
        return cls(state=DataState.NONE)

    @property
    def is_fresh(self) -> bool:
        return self.state == DataState.FRESH

    @property
    def is_stale(self) -> bool:
        return self.state == DataState.STALE


@dataclass(slots=True, frozen=True)
class MutationResult(Generic[T]):
    """リモート更新操作の結果。

    Attributes:
        outcome: 成否と残存データの区分。
        value: 成功時は反映後の値、失敗時はメモリに残る値。
        error: 失敗時の例外。
    """

    outcome: MutationOutcome
    value: T | None = None
    error: ResourceError | None = None

    @property
    def ok(self) -> bool:
        return self.outcome == MutationOutcome.APPLIED
