"""設定値定義。"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from rescache.enums import FileType

DEFAULT_USER_AGENT = "rescache/0.1.0"
DEFAULT_LOCK_TIMEOUT = 5.0


def _identity(value: Any) -> Any:
    return value


@dataclass(slots=True, frozen=True)
class ResourceConfig:
    """リソースの識別情報と読み取り設定。

    構築後は変更しない。

    Attributes:
        name: ディスクキャッシュのファイル名接頭辞。
        file_type: 宣言形式。
        storage_dir: ディスクキャッシュのディレクトリ。
        url: 取得元URL（リモートのみ）。
        ttl_seconds: TTL秒。Noneなら常にfresh。
        lock_timeout: キャッシュロック取得の待機上限秒。
        single_flight: 同一リソースの並行リフレッシュを直列化するか。
        from_payload: 解析済みペイロードから値を生成する関数。
        to_payload: 値を直列化可能な形へ変換する関数。
        default_factory: 既定値を生成する関数。
    """

    name: str
    file_type: FileType = FileType.JSON
    storage_dir: Path = Path(".")
    url: str | None = None
    ttl_seconds: float | None = None
    lock_timeout: float = DEFAULT_LOCK_TIMEOUT
    single_flight: bool = False
    from_payload: Callable[[Any], Any] = _identity
    to_payload: Callable[[Any], Any] = _identity
    default_factory: Callable[[], Any] = dict


@dataclass(slots=True)
class RetryConfig:
    """再試行設定。

    Attributes:
        max_attempts: 最大試行回数。
        transport_max_attempts: 通信例外時の最大試行回数（未指定時はmax_attempts）。
        base_delay: 指数バックオフの基準秒。
        cap_delay: 待機上限秒。
    """

    max_attempts: int = 3
    transport_max_attempts: int | None = None
    base_delay: float = 0.5
    cap_delay: float = 8.0


@dataclass(slots=True)
class HttpConfig:
    """HTTPトランスポート設定。

    Attributes:
        timeout: 要求単位のタイムアウト秒。
        user_agent: User-Agent。
        retry: 再試行設定。
    """

    timeout: float = 30.0
    user_agent: str = DEFAULT_USER_AGENT
    retry: RetryConfig = field(default_factory=RetryConfig)
