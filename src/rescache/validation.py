"""入力正規化と構築時バリデーション。"""

from __future__ import annotations

import warnings
from pathlib import Path

import httpx

from rescache.enums import FileType
from rescache.errors import ResourceValidationError

_FILE_TYPE_ALIASES = {
    "YML": FileType.YAML,
    "TXT": FileType.TEXT,
}


def normalize_file_type(value: FileType | str | None) -> FileType:
    """ファイル形式入力を正規化する。

    TOML/TEXTは宣言のみ許可し、警告を出す。

    Args:
        value: 入力形式。

    Returns:
        正規化後の形式。

    Raises:
        ResourceValidationError: 値が不正な場合。
    """

    if value is None:
        return FileType.JSON
    if isinstance(value, FileType):
        file_type = value
    else:
        normalized = str(value).strip().upper()
        try:
            file_type = _FILE_TYPE_ALIASES.get(normalized) or FileType(normalized)
        except ValueError as exc:
            raise ResourceValidationError(
                f"ファイル形式が不正です: {value}",
                validation_code="invalid_file_type",
            ) from exc
    if not file_type.readable:
        warnings.warn(
            f"形式 {file_type.value} は宣言のみ可能で、読み書き時にエラーとなります。",
            stacklevel=2,
        )
    return file_type


def normalize_name(value: str | None) -> str:
    """リソース名（ファイル名接頭辞）を正規化する。"""

    if value is None or not value.strip():
        raise ResourceValidationError(
            "リソース名が指定されていません。",
            validation_code="missing_name",
        )
    name = value.strip()
    if "/" in name or "\\" in name:
        raise ResourceValidationError(
            "リソース名にパス区切り文字は使用できません。",
            validation_code="invalid_name",
        )
    return name


def normalize_ttl(value: float | None) -> float | None:
    """TTL秒を検証する。"""

    if value is None:
        return None
    ttl = float(value)
    if ttl < 0:
        raise ResourceValidationError(
            "TTLは0以上を指定してください。",
            validation_code="invalid_ttl",
        )
    return ttl


def normalize_url(value: str | None) -> str:
    """取得元URLを検証する。

    Raises:
        ResourceValidationError: 未指定、またはhttp/https以外の場合。
    """

    if value is None or not value.strip():
        raise ResourceValidationError(
            "リモートリソースにはURLが必要です。",
            validation_code="missing_url",
        )
    try:
        url = httpx.URL(value.strip())
    except httpx.InvalidURL as exc:
        raise ResourceValidationError(
            f"URLが不正です: {value}",
            validation_code="invalid_url",
        ) from exc
    if url.scheme not in {"http", "https"}:
        raise ResourceValidationError(
            f"URLスキームは http/https のみ対応です: {value}",
            validation_code="invalid_url",
        )
    return str(url)


def normalize_storage_dir(value: str | Path | None) -> Path:
    """ストレージディレクトリを正規化する。"""

    if value is None:
        return Path(".")
    return Path(value).expanduser()
