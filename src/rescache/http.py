"""HTTP再試行方針。"""

from __future__ import annotations

import random
import time
from dataclasses import dataclass
from email.utils import parsedate_to_datetime

import httpx

from rescache.config import RetryConfig

_RETRYABLE_STATUSES = frozenset({429, 500, 502, 503, 504})
_IDEMPOTENT_METHODS = frozenset({"GET", "HEAD", "PUT", "DELETE"})
_RETRYABLE_TRANSPORT_ERRORS = (
    httpx.TimeoutException,
    httpx.ConnectError,
    httpx.ReadError,
    httpx.RemoteProtocolError,
)


def parse_retry_after(value: str | None) -> float | None:
    """Retry-Afterヘッダ（秒数またはHTTP日付）を待機秒へ変換する。"""

    text = (value or "").strip()
    if not text:
        return None
    if text.isdigit():
        return float(text)
    try:
        retry_at = parsedate_to_datetime(text)
    except (TypeError, ValueError):
        return None
    return max(0.0, retry_at.timestamp() - time.time())


def request_headers(user_agent: str, *, content_type: str | None = None) -> dict[str, str]:
    """要求ヘッダを組み立てる。"""

    headers = {"User-Agent": user_agent, "Accept-Encoding": "gzip"}
    if content_type:
        headers["Content-Type"] = content_type
    return headers


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    """1要求分の再試行方針。

    Attributes:
        status_attempts: 再試行対象ステータス応答時の最大試行回数。
        transport_attempts: 通信例外時の最大試行回数。
        base_delay: 指数バックオフの基準秒。
        cap_delay: 待機上限秒。
    """

    status_attempts: int
    transport_attempts: int
    base_delay: float = 0.0
    cap_delay: float = 0.0

    @classmethod
    def for_method(cls, method: str, config: RetryConfig) -> "RetryPolicy":
        """メソッドに応じた方針を作る。非冪等メソッドは1回のみ。"""

        if method.upper() not in _IDEMPOTENT_METHODS:
            return cls(status_attempts=1, transport_attempts=1)
        status_attempts = max(1, config.max_attempts)
        if config.transport_max_attempts is None:
            transport_attempts = status_attempts
        else:
            transport_attempts = max(1, config.transport_max_attempts)
        return cls(
            status_attempts=status_attempts,
            transport_attempts=transport_attempts,
            base_delay=config.base_delay,
            cap_delay=config.cap_delay,
        )

    @property
    def total_attempts(self) -> int:
        return max(self.status_attempts, self.transport_attempts)

    def backoff(self, attempt: int) -> float:
        """full jitter の待機秒。"""

        return random.uniform(0.0, min(self.cap_delay, self.base_delay * (2**attempt)))

    def transport_wait(self, exc: Exception, attempt: int) -> float | None:
        """通信例外後の待機秒を返す。再試行しない場合はNone。"""

        if attempt >= self.transport_attempts:
            return None
        if not isinstance(exc, _RETRYABLE_TRANSPORT_ERRORS):
            return None
        return self.backoff(attempt)

    def status_wait(self, response: httpx.Response, attempt: int) -> float | None:
        """応答ステータスから待機秒を返す。再試行しない場合はNone。

        Retry-Afterがあればバックオフとの大きい方を採用する。
        """

        if attempt >= self.status_attempts:
            return None
        if response.status_code not in _RETRYABLE_STATUSES:
            return None
        backoff = self.backoff(attempt)
        retry_after = parse_retry_after(response.headers.get("Retry-After"))
        return backoff if retry_after is None else max(retry_after, backoff)
