"""YAMLコーデック。"""

from __future__ import annotations

from typing import Any

import yaml

from rescache.errors import DeserializationError, SerializationError


def parse_yaml_text(text: str, *, path: str | None = None) -> Any:
    """YAML本文を解析する。

    Raises:
        DeserializationError: 解析に失敗した場合。
    """

    try:
        return yaml.safe_load(text)
    except (yaml.YAMLError, ValueError, RecursionError) as exc:
        raise DeserializationError("YAML", path=path) from exc


def dump_yaml_text(payload: Any, *, path: str | None = None) -> str:
    """ペイロードをYAML文字列へ変換する。"""

    try:
        return yaml.safe_dump(payload, allow_unicode=True, sort_keys=False)
    except yaml.YAMLError as exc:
        raise SerializationError("YAML", path=path) from exc
