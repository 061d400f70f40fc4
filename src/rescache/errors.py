"""例外定義。"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class ResourceErrorContext:
    """例外に付随する共通コンテキスト。

    Attributes:
        resource_name: リソース名（ファイル名接頭辞）。
        path: 関連ファイルパス。
        request_url: リクエストURL。
    """

    resource_name: str | None = None
    path: str | None = None
    request_url: str | None = None


class ResourceError(Exception):
    """ライブラリ例外の基底クラス。

    Attributes:
        origin: 例外発生元。
        context: 追加コンテキスト。
    """

    def __init__(
        self,
        message: str,
        *,
        origin: str,
        context: ResourceErrorContext | None = None,
    ) -> None:
        super().__init__(message)
        self.origin = origin
        self.context = context or ResourceErrorContext()


class CacheLockError(ResourceError):
    """キャッシュロックを取得できない。"""

    def __init__(
        self,
        message: str = "キャッシュロックを取得できませんでした。",
        *,
        resource_name: str | None = None,
    ) -> None:
        super().__init__(
            message,
            origin="cache",
            context=ResourceErrorContext(resource_name=resource_name),
        )


class SerializationError(ResourceError):
    """値の直列化に失敗した。"""

    def __init__(self, format_name: str, *, path: str | None = None) -> None:
        super().__init__(
            f"{format_name} への直列化に失敗しました。",
            origin="codec",
            context=ResourceErrorContext(path=path),
        )
        self.format_name = format_name


class DeserializationError(ResourceError):
    """内容の解析に失敗した。"""

    def __init__(self, format_name: str, *, path: str | None = None) -> None:
        super().__init__(
            f"{format_name} として解析できませんでした。",
            origin="codec",
            context=ResourceErrorContext(path=path),
        )
        self.format_name = format_name


class ResourceIOError(ResourceError):
    """ファイルシステム操作の失敗。"""

    def __init__(self, message: str, *, path: str | None = None) -> None:
        super().__init__(
            message,
            origin="storage",
            context=ResourceErrorContext(path=path),
        )


class UnsupportedFileTypeError(ResourceError):
    """JSON/YAML以外の形式で読み書きしようとした。"""

    def __init__(self, file_type: str) -> None:
        super().__init__(
            f"未対応のファイル形式です: {file_type}",
            origin="codec",
        )
        self.file_type = file_type


class FreshingDataError(ResourceError):
    """新しい値を取得できず、staleも許可されていない。"""

    def __init__(self, *, resource_name: str, request_url: str | None = None) -> None:
        super().__init__(
            f"リソース '{resource_name}' の最新データを取得できませんでした。",
            origin="resolution",
            context=ResourceErrorContext(resource_name=resource_name, request_url=request_url),
        )


class StaleInternalNoneError(ResourceError):
    """fresh/staleいずれのデータもどの層にも存在しない。"""

    def __init__(self, *, resource_name: str) -> None:
        super().__init__(
            f"リソース '{resource_name}' に利用可能なfresh/staleデータがありません。",
            origin="resolution",
            context=ResourceErrorContext(resource_name=resource_name),
        )


class ResourceTransportError(ResourceError):
    """HTTP通信層の例外。

    Attributes:
        status: HTTPステータス。通信自体が失敗した場合はNone。
    """

    def __init__(
        self,
        message: str,
        *,
        request_url: str | None = None,
        status: int | None = None,
    ) -> None:
        super().__init__(
            message,
            origin="transport",
            context=ResourceErrorContext(request_url=request_url),
        )
        self.status = status


class ResourceTimeoutError(ResourceTransportError):
    """トランスポートに設定したタイムアウトを超過した。"""


class ResourceValidationError(ResourceError):
    """構築時バリデーションエラー。"""

    def __init__(self, message: str, *, validation_code: str) -> None:
        super().__init__(message, origin="client_validation")
        self.validation_code = validation_code
