"""JSONコーデック。"""

from __future__ import annotations

import json
from typing import Any

from rescache.errors import DeserializationError, SerializationError


def parse_json_text(text: str, *, path: str | None = None) -> Any:
    """JSON本文を解析する。

    Args:
        text: 本文。
        path: エラー報告用のファイルパス。

    Returns:
        解析済みペイロード。

    Raises:
        DeserializationError: 解析に失敗した場合。
    """

    try:
        return json.loads(text)
    except (ValueError, RecursionError) as exc:
        raise DeserializationError("JSON", path=path) from exc


def dump_json_text(payload: Any, *, path: str | None = None) -> str:
    """ペイロードをJSON文字列へ変換する。"""

    try:
        return json.dumps(payload, ensure_ascii=False, indent=2)
    except (TypeError, ValueError) as exc:
        raise SerializationError("JSON", path=path) from exc
