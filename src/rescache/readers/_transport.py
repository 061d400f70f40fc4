"""リーダー向けトランスポート共通処理。"""

from __future__ import annotations

import asyncio
import logging
import time

import httpx

from rescache.config import HttpConfig
from rescache.errors import ResourceTimeoutError, ResourceTransportError
from rescache.http import RetryPolicy, request_headers

logger = logging.getLogger(__name__)


def _wrap_transport_error(exc: Exception, *, url: str) -> ResourceTransportError:
    if isinstance(exc, httpx.TimeoutException):
        return ResourceTimeoutError(f"要求がタイムアウトしました: {exc}", request_url=url)
    return ResourceTransportError(str(exc) or type(exc).__name__, request_url=url)


def _checked(response: httpx.Response) -> httpx.Response:
    if response.is_success:
        return response
    raise ResourceTransportError(
        f"HTTP {response.status_code} が返されました。",
        request_url=str(response.request.url),
        status=response.status_code,
    )


def _log_retry(method: str, url: str, attempt: int, wait: float, reason: object) -> None:
    logger.debug(
        "retrying request method=%s url=%s attempt=%d wait=%.2f reason=%s",
        method,
        url,
        attempt,
        wait,
        reason,
    )


def perform_sync_request(
    *,
    client: httpx.Client,
    method: str,
    url: str,
    http_config: HttpConfig,
    content: str | None = None,
    content_type: str | None = None,
) -> httpx.Response:
    """同期要求を再試行つきで実行する。

    非冪等メソッド（POST）は再試行しない。

    Args:
        client: httpxクライアント。
        method: HTTPメソッド。
        url: 要求URL。
        http_config: HTTP設定。
        content: 要求本文。
        content_type: 要求本文のContent-Type。

    Returns:
        2xxレスポンス。

    Raises:
        ResourceTimeoutError: タイムアウトした場合。
        ResourceTransportError: 通信失敗または2xx以外の応答。
    """

    policy = RetryPolicy.for_method(method, http_config.retry)
    headers = request_headers(http_config.user_agent, content_type=content_type)
    for attempt in range(1, policy.total_attempts + 1):
        try:
            response = client.request(method, url, content=content, headers=headers)
        except httpx.HTTPError as exc:
            wait = policy.transport_wait(exc, attempt)
            if wait is None:
                raise _wrap_transport_error(exc, url=url) from exc
            _log_retry(method, url, attempt, wait, type(exc).__name__)
            time.sleep(wait)
            continue

        wait = policy.status_wait(response, attempt)
        if wait is None:
            return _checked(response)
        _log_retry(method, url, attempt, wait, response.status_code)
        time.sleep(wait)
    raise ResourceTransportError("要求の実行に失敗しました。", request_url=url)


async def perform_async_request(
    *,
    client: httpx.AsyncClient,
    method: str,
    url: str,
    http_config: HttpConfig,
    content: str | None = None,
    content_type: str | None = None,
) -> httpx.Response:
    """非同期要求を再試行つきで実行する。"""

    policy = RetryPolicy.for_method(method, http_config.retry)
    headers = request_headers(http_config.user_agent, content_type=content_type)
    for attempt in range(1, policy.total_attempts + 1):
        try:
            response = await client.request(method, url, content=content, headers=headers)
        except httpx.HTTPError as exc:
            wait = policy.transport_wait(exc, attempt)
            if wait is None:
                raise _wrap_transport_error(exc, url=url) from exc
            _log_retry(method, url, attempt, wait, type(exc).__name__)
            await asyncio.sleep(wait)
            continue

        wait = policy.status_wait(response, attempt)
        if wait is None:
            return _checked(response)
        _log_retry(method, url, attempt, wait, response.status_code)
        await asyncio.sleep(wait)
    raise ResourceTransportError("要求の実行に失敗しました。", request_url=url)
