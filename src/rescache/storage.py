"""タイムスタンプ付きディスクキャッシュ。

キャッシュファイル名は ``{prefix}-{unix秒}.{拡張子}`` とする。
鮮度の基準はファイル名に埋め込んだ時刻で、mtimeは使わない。
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from rescache.enums import FileType
from rescache.errors import ResourceIOError
from rescache.parsers import dump_content, parse_content

logger = logging.getLogger(__name__)


def build_cache_file_name(prefix: str, timestamp: float, file_type: FileType) -> str:
    """キャッシュファイル名を組み立てる。"""

    return f"{prefix}-{int(timestamp)}.{file_type.extension}"


def extract_timestamp(file_name: str) -> float:
    """ファイル名に埋め込まれたUNIX秒を取り出す。

    最後の ``-`` より後ろ、かつその後の最初の ``.`` より前を時刻とみなす。

    Args:
        file_name: ファイル名。

    Returns:
        UNIX秒。

    Raises:
        ResourceIOError: 区切りがない、または数値でない場合。
    """

    if "-" not in file_name:
        raise ResourceIOError(
            f"ファイル名に時刻区切りがありません: {file_name}",
            path=file_name,
        )
    segment = file_name.rsplit("-", 1)[1].split(".", 1)[0]
    if not segment.isdigit():
        raise ResourceIOError(
            f"ファイル名の時刻を解析できません: {file_name}",
            path=file_name,
        )
    try:
        return float(int(segment))
    except ValueError as exc:
        raise ResourceIOError(
            f"ファイル名の時刻を解析できません: {file_name}",
            path=file_name,
        ) from exc


def _sort_key(path: Path) -> tuple[int, float, str]:
    try:
        return (0, -extract_timestamp(path.name), path.name)
    except ResourceIOError:
        return (1, 0.0, path.name)


def list_files_with_prefix(prefix: str, directory: Path) -> list[Path]:
    """接頭辞に一致するファイルを新しい順に列挙する。

    時刻を解析できる名前を時刻の降順で先に並べ、残りを名前順で続ける。
    ディレクトリが読めない場合は空リストを返す。

    一致判定は単純な前方一致のため、``cfg`` は ``cfg-local-1700.json`` のような
    別リソース ``cfg-local`` のファイルも拾う。リソース名は互いに接頭辞と
    ならないように付けること。

    Args:
        prefix: ファイル名接頭辞。
        directory: 走査対象ディレクトリ。

    Returns:
        候補ファイルのパス。
    """

    try:
        entries = list(directory.iterdir())
    except OSError as exc:
        logger.debug("cache directory unreadable dir=%s error=%s", directory, exc)
        return []

    matches: list[Path] = []
    for entry in entries:
        if not entry.name.startswith(prefix):
            continue
        try:
            if not entry.is_file():
                continue
        except OSError:
            continue
        matches.append(entry)
    return sorted(matches, key=_sort_key)


def read_file(path: Path, file_type: FileType) -> Any:
    """ファイルを読み込み、宣言形式で解析する。

    Raises:
        UnsupportedFileTypeError: JSON/YAML以外の場合。
        ResourceIOError: 読み込みに失敗した場合。
        DeserializationError: 解析に失敗した場合。
    """

    try:
        content = path.read_bytes()
    except OSError as exc:
        raise ResourceIOError(f"ファイルを読み込めません: {exc}", path=str(path)) from exc
    return parse_content(content, file_type=file_type, path=str(path))


def read_file_with_timestamp(path: Path, file_type: FileType) -> tuple[Any, float]:
    """ファイル名の時刻と内容をまとめて読み込む。

    時刻を先に検証し、名前が不正なら内容は読まない。
    """

    timestamp = extract_timestamp(path.name)
    return read_file(path, file_type), timestamp


def write_cache_file(
    payload: Any,
    *,
    directory: Path,
    prefix: str,
    file_type: FileType,
    timestamp: float,
) -> Path:
    """新しいタイムスタンプ付きキャッシュファイルを書き込む。

    同一秒の既存ファイルは置き換える。古いファイルは削除しない。

    Args:
        payload: 直列化可能な値。
        directory: 保存先ディレクトリ。
        prefix: ファイル名接頭辞。
        file_type: 保存形式。
        timestamp: 埋め込む時刻（UNIX秒）。

    Returns:
        書き込んだファイルのパス。

    Raises:
        UnsupportedFileTypeError: JSON/YAML以外の場合。
        SerializationError: 直列化に失敗した場合。
        ResourceIOError: 書き込みに失敗した場合。
    """

    path = directory / build_cache_file_name(prefix, timestamp, file_type)
    data = dump_content(payload, file_type=file_type, path=str(path))

    try:
        directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            prefix=f".{path.name}.",
            suffix=".tmp",
            dir=str(directory),
        )
    except OSError as exc:
        raise ResourceIOError(f"キャッシュファイルを作成できません: {exc}", path=str(path)) from exc
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(data)
        Path(tmp_path).replace(path)
    except OSError as exc:
        raise ResourceIOError(f"キャッシュファイルを書き込めません: {exc}", path=str(path)) from exc
    finally:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
    logger.debug("cache file written path=%s", path)
    return path
