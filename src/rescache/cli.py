"""CLIエントリポイント。"""

from __future__ import annotations

import json
import logging
from typing import Any

from rescache.errors import ResourceError
from rescache.types import DataResult


def _require_typer() -> Any:
    try:
        import typer
    except ImportError as exc:
        raise RuntimeError(
            "CLIには typer が必要です。pip install 'rescache[cli]' を実行してください。"
        ) from exc
    return typer


def _configure_logging(level: str) -> None:
    numeric = logging.getLevelNamesMapping().get(level.upper())
    if numeric is None:
        raise ValueError(f"ログレベルが不正です: {level}")
    logging.basicConfig(
        level=numeric,
        format="[%(asctime)s][%(levelname)s][%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def render_result(result: DataResult[Any]) -> str:
    """読み取り結果を出力用JSONへ変換する。"""

    return json.dumps(
        {"state": result.state.value, "value": result.value},
        ensure_ascii=False,
        indent=2,
        default=str,
    )


def build_app() -> Any:
    """CLIアプリを構築する。"""

    typer = _require_typer()
    from rescache.builder import ResourceBuilder

    app = typer.Typer(no_args_is_help=True)

    def _emit(read: Any) -> None:
        try:
            result = read()
        except ResourceError as exc:
            typer.echo(f"{type(exc).__name__}: {exc}", err=True)
            raise typer.Exit(code=1) from exc
        typer.echo(render_result(result))

    @app.command("read")
    def read_command(
        name: str = typer.Option(..., "--name"),
        directory: str = typer.Option(".", "--dir"),
        file_type: str = typer.Option("json", "--format"),
        ttl: float | None = typer.Option(None, "--ttl"),
        allow_stale: bool = typer.Option(False, "--allow-stale"),
        log_level: str = typer.Option("WARNING", "--log-level"),
    ) -> None:
        """ローカルリソースを読み取る。"""

        _configure_logging(log_level)
        builder = (
            ResourceBuilder()
            .name(name)
            .cache_directory(directory)
            .file_type(file_type)
            .ttl(ttl)
        )
        _emit(lambda: builder.build_local().get_data_or_error(allow_stale))

    @app.command("fetch")
    def fetch_command(
        name: str = typer.Option(..., "--name"),
        url: str = typer.Option(..., "--url"),
        directory: str = typer.Option(".", "--dir"),
        file_type: str = typer.Option("json", "--format"),
        ttl: float | None = typer.Option(None, "--ttl"),
        allow_stale: bool = typer.Option(False, "--allow-stale"),
        log_level: str = typer.Option("WARNING", "--log-level"),
    ) -> None:
        """リモートリソースを取得する。"""

        _configure_logging(log_level)
        builder = (
            ResourceBuilder()
            .name(name)
            .url(url)
            .cache_directory(directory)
            .file_type(file_type)
            .ttl(ttl)
        )

        def run() -> DataResult[Any]:
            with builder.build_remote() as reader:
                return reader.get_data_or_error(allow_stale)

        _emit(run)

    return app


def app_entry() -> None:
    """CLIアプリを起動する。"""

    build_app()()


if __name__ == "__main__":
    app_entry()
