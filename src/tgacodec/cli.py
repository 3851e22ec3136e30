"""CLI entry point for tgacodec."""

from dataclasses import replace
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from tgacodec import __version__
from tgacodec.codec import FormatRevision, TGACodec
from tgacodec.config import (
    DEFAULT_CONFIG_NAME,
    ConfigError,
    TGACodecConfig,
    get_default_config,
    load_config,
)
from tgacodec.converter import OutputFormat, TGAConverter, TGAEncoder
from tgacodec.errors import TGAError
from tgacodec.logger import CodecLogger, LogConfig, VerboseLevel
from tgacodec.types import ExitCode

app = typer.Typer(help="Truevision TGA画像のデコード・エンコードを行うCLIツール")
console = Console()


def _format_size(size_bytes: int) -> str:
    """バイト数を人間が読みやすい形式に変換する"""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    else:
        return f"{size_bytes / (1024 * 1024):.1f} MB"


def _resolve_config(config_path: Path | None) -> TGACodecConfig:
    """設定ファイルを読み込む（未指定時はカレントディレクトリのtgacodec.ymlを探す）"""
    if config_path is None:
        candidate = Path.cwd() / DEFAULT_CONFIG_NAME
        if not candidate.exists():
            return get_default_config()
        config_path = candidate
    try:
        return load_config(config_path)
    except ConfigError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(ExitCode.INVALID_INPUT) from e


def _create_logger(config: TGACodecConfig, verbose: int) -> CodecLogger:
    level = VerboseLevel(min(verbose, VerboseLevel.DEBUG))
    return CodecLogger(LogConfig(verbose_level=level, log_file=config.log_file))


def _require_file(path: Path) -> None:
    if not path.is_file():
        console.print(f"[red]Error: ファイルが見つかりません: {path}[/red]")
        raise typer.Exit(ExitCode.ERROR)


@app.command()
def info(
    input_path: Annotated[Path, typer.Argument(help="TGAファイルパス")],
) -> None:
    """TGAファイルのヘッダー情報を表示する"""
    _require_file(input_path)

    data = input_path.read_bytes()
    try:
        metadata, _ = TGACodec().decode(data)
    except TGAError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(ExitCode.INVALID_INPUT) from e

    table = Table(title="TGA Info")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("File Size", _format_size(len(data)))
    table.add_row("Revision", metadata.revision.value)
    table.add_row("Image Type", metadata.kind.name)
    table.add_row("Compressed", "RLE" if metadata.compressed else "none")
    table.add_row("Size", f"{metadata.width}x{metadata.height}")
    table.add_row("Pixel Depth", f"{metadata.pixel_depth} bit")
    table.add_row("Alpha Depth", f"{metadata.alpha_depth} bit")
    table.add_row("Origin", f"({metadata.x_origin}, {metadata.y_origin})")
    table.add_row(
        "Orientation",
        f"{'top' if metadata.top_to_bottom else 'bottom'}-"
        f"{'right' if metadata.right_to_left else 'left'}",
    )
    if metadata.image_id:
        table.add_row("Image ID", metadata.image_id_text)

    if metadata.colour_map:
        table.add_section()
        table.add_row("Colour Map", f"{len(metadata.colour_map)} entries")
        table.add_row("  First Index", str(metadata.colour_map_first_index))
        table.add_row("  Entry Size", f"{metadata.colour_map_entry_size} bit")

    if metadata.revision == FormatRevision.EXTENDED:
        table.add_section()
        table.add_row("Extension Area", _format_size(len(metadata.extension_area)))
        table.add_row("Developer Area", _format_size(len(metadata.developer_area)))

    console.print(table)
    raise typer.Exit(ExitCode.SUCCESS)


@app.command()
def decode(
    input_path: Annotated[Path, typer.Argument(help="TGAファイルパス")],
    output: Annotated[Path | None, typer.Option("-o", "--output", help="出力ファイルパス")] = None,
    output_format: Annotated[
        str | None, typer.Option("--format", help="出力形式（png/webp/bmp）")
    ] = None,
    config_path: Annotated[Path | None, typer.Option("--config", help="設定ファイル")] = None,
    verbose: Annotated[int, typer.Option("-v", "--verbose", count=True, help="詳細ログ出力")] = 0,
) -> None:
    """TGA画像を他形式に変換する"""
    _require_file(input_path)
    config = _resolve_config(config_path)

    try:
        fmt = OutputFormat((output_format or config.output.format).lower())
    except ValueError as e:
        console.print(f"[red]Error: 未対応の出力形式です: {output_format}[/red]")
        raise typer.Exit(ExitCode.INVALID_INPUT) from e

    with _create_logger(config, verbose) as logger:
        converter = TGAConverter(output_format=fmt, logger=logger)
        dest = output or converter.default_dest(input_path)
        result = converter.convert(input_path, dest)
        if result.is_success:
            logger.info(
                f"変換完了: {dest} ({result.width}x{result.height}, "
                f"{_format_size(result.bytes_after)})"
            )

    if not result.is_success:
        console.print(f"[red]変換失敗: {input_path}[/red]")
        raise typer.Exit(ExitCode.INVALID_INPUT)
    raise typer.Exit(ExitCode.SUCCESS)


@app.command()
def encode(
    input_path: Annotated[Path, typer.Argument(help="入力画像ファイルパス（png/bmp/jpg等）")],
    output: Annotated[Path | None, typer.Option("-o", "--output", help="出力TGAパス")] = None,
    compress: Annotated[
        bool | None, typer.Option("--compress/--no-compress", help="RLE圧縮する")
    ] = None,
    depth: Annotated[
        int | None, typer.Option("--depth", help="ピクセル深度（16/24/32）")
    ] = None,
    config_path: Annotated[Path | None, typer.Option("--config", help="設定ファイル")] = None,
    verbose: Annotated[int, typer.Option("-v", "--verbose", count=True, help="詳細ログ出力")] = 0,
) -> None:
    """画像をTGA形式に変換する"""
    _require_file(input_path)
    config = _resolve_config(config_path)

    encode_config = config.encode
    if compress is not None:
        encode_config = replace(encode_config, compress=compress)
    if depth is not None:
        if depth not in (16, 24, 32):
            console.print(f"[red]Error: 未対応のピクセル深度です: {depth}[/red]")
            raise typer.Exit(ExitCode.INVALID_INPUT)
        encode_config = replace(encode_config, pixel_depth=depth)

    with _create_logger(config, verbose) as logger:
        encoder = TGAEncoder(config=encode_config, logger=logger)
        dest = output or encoder.default_dest(input_path)
        try:
            result = encoder.convert(input_path, dest)
        except (OSError, TGAError) as e:
            logger.error(f"{input_path.name}: {e}")
            console.print(f"[red]変換失敗: {input_path}[/red]")
            raise typer.Exit(ExitCode.ERROR) from e
        logger.info(
            f"変換完了: {dest} ({result.width}x{result.height}, "
            f"{_format_size(result.bytes_after)})"
        )
    raise typer.Exit(ExitCode.SUCCESS)


def version_callback(value: bool) -> None:
    """バージョン表示コールバック"""
    if value:
        typer.echo(f"tgacodec {__version__}")
        raise typer.Exit(0)


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="バージョンを表示する",
        ),
    ] = False,
) -> None:
    """tgacodec CLI - Truevision TGA画像の変換"""
    pass
