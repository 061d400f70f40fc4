"""コーデック公開API。"""

from __future__ import annotations

from typing import Any

from rescache.enums import FileType
from rescache.errors import DeserializationError, UnsupportedFileTypeError
from rescache.parsers.json_parser import dump_json_text, parse_json_text
from rescache.parsers.yaml_parser import dump_yaml_text, parse_yaml_text


def decode_bytes(payload: bytes, *, file_type: FileType, path: str | None = None) -> str:
    """バイト列をUTF-8としてデコードする。BOMは除去する。

    Raises:
        DeserializationError: UTF-8として不正なバイト列の場合。
    """

    try:
        return payload.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise DeserializationError(file_type.value, path=path) from exc


def parse_content(
    content: str | bytes,
    *,
    file_type: FileType,
    path: str | None = None,
) -> Any:
    """宣言形式に従って内容を解析する。

    Args:
        content: 本文。
        file_type: 宣言形式。
        path: エラー報告用のファイルパス。

    Returns:
        解析済みペイロード。

    Raises:
        UnsupportedFileTypeError: JSON/YAML以外の場合。
        DeserializationError: 解析に失敗した場合。
    """

    if not file_type.readable:
        raise UnsupportedFileTypeError(file_type.value)
    if isinstance(content, bytes):
        text = decode_bytes(content, file_type=file_type, path=path)
    else:
        text = content
    if file_type == FileType.JSON:
        return parse_json_text(text, path=path)
    return parse_yaml_text(text, path=path)


def dump_content(payload: Any, *, file_type: FileType, path: str | None = None) -> str:
    """宣言形式に従ってペイロードを直列化する。

    Raises:
        UnsupportedFileTypeError: JSON/YAML以外の場合。
        SerializationError: 直列化に失敗した場合。
    """

    if not file_type.readable:
        raise UnsupportedFileTypeError(file_type.value)
    if file_type == FileType.JSON:
        return dump_json_text(payload, path=path)
    return dump_yaml_text(payload, path=path)


__all__ = ["decode_bytes", "dump_content", "parse_content"]
