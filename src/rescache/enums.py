"""列挙型定義。"""

from __future__ import annotations

from enum import StrEnum


class FileType(StrEnum):
    """リソースの宣言形式を表す列挙型。

    TOMLとTEXTは宣言のみ可能で、読み書き時には
    UnsupportedFileTypeError となる。

    Attributes:
        JSON: JSON形式。
        YAML: YAML形式。
        TOML: TOML形式（読み書き非対応）。
        TEXT: テキスト形式（読み書き非対応）。
    """

    JSON = "JSON"
    YAML = "YAML"
    TOML = "TOML"
    TEXT = "TEXT"

    @property
    def extension(self) -> str:
        """ディスクキャッシュファイルの拡張子。"""

        return _EXTENSIONS[self]

    @property
    def readable(self) -> bool:
        """コーデックで読み書き可能か。"""

        return self in (FileType.JSON, FileType.YAML)


_EXTENSIONS = {
    FileType.JSON: "json",
    FileType.YAML: "yaml",
    FileType.TOML: "toml",
    FileType.TEXT: "txt",
}


class DataState(StrEnum):
    """読み取り結果の鮮度区分。

    Attributes:
        FRESH: TTL内、またはTTL未設定。
        STALE: TTL超過、または明示的にstale指定済み。
        NONE: どの層からも値を得られなかった。
    """

    FRESH = "fresh"
    STALE = "stale"
    NONE = "none"


class MutationOutcome(StrEnum):
    """リモート更新操作の結果区分。

    Attributes:
        APPLIED: 更新成功。
        FAILED_DATA_RETAINED: 更新失敗。メモリに既存値が残っている。
        FAILED_NO_DATA: 更新失敗。参照可能な値がない。
    """

    APPLIED = "applied"
    FAILED_DATA_RETAINED = "failed_data_retained"
    FAILED_NO_DATA = "failed_no_data"
