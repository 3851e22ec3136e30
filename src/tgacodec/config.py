"""Configuration module for tgacodec."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

SUPPORTED_ENCODE_DEPTHS: tuple[int, ...] = (16, 24, 32)
SUPPORTED_OUTPUT_FORMATS: tuple[str, ...] = ("png", "webp", "bmp")

DEFAULT_CONFIG_NAME = "tgacodec.yml"


class ConfigError(Exception):
    """設定ファイル読み込みエラー"""

    pass


@dataclass(frozen=True)
class EncodeConfig:
    """TGAエンコード設定"""

    compress: bool = True
    pixel_depth: int = 32
    top_to_bottom: bool = True
    right_to_left: bool = False
    image_id: str = ""


@dataclass(frozen=True)
class OutputConfig:
    """デコード時の出力形式設定"""

    format: str = "png"


@dataclass(frozen=True)
class TGACodecConfig:
    """ルート設定"""

    encode: EncodeConfig = field(default_factory=EncodeConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    log_file: Path | None = None


def load_config(path: Path) -> TGACodecConfig:
    """設定ファイルを読み込む

    Args:
        path: 設定ファイルパス

    Returns:
        TGACodecConfig: 読み込んだ設定（デフォルトとマージ済み）

    Raises:
        ConfigError: ファイル読み込み、パース、または値の検証エラー
    """
    if not path.exists():
        raise ConfigError(f"設定ファイルが見つかりません: {path}")

    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"YAML解析エラー: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError("設定ファイルはYAMLのマッピング形式である必要があります")

    default = get_default_config()
    log_file = data.get("log_file")

    config = TGACodecConfig(
        encode=_merge_encode_config(data.get("encode", {}), default.encode),
        output=_merge_output_config(data.get("output", {}), default.output),
        log_file=Path(log_file) if log_file else default.log_file,
    )
    _validate(config)
    return config


def get_default_config() -> TGACodecConfig:
    """デフォルト設定を取得する"""
    return TGACodecConfig()


def _merge_encode_config(data: dict[str, Any], default: EncodeConfig) -> EncodeConfig:
    """エンコード設定をマージする"""
    if not isinstance(data, dict):
        return default
    return EncodeConfig(
        compress=data.get("compress", default.compress),
        pixel_depth=data.get("pixel_depth", default.pixel_depth),
        top_to_bottom=data.get("top_to_bottom", default.top_to_bottom),
        right_to_left=data.get("right_to_left", default.right_to_left),
        image_id=str(data.get("image_id", default.image_id)),
    )


def _merge_output_config(data: dict[str, Any], default: OutputConfig) -> OutputConfig:
    """出力形式設定をマージする"""
    if not isinstance(data, dict):
        return default
    return OutputConfig(format=str(data.get("format", default.format)).lower())


def _validate(config: TGACodecConfig) -> None:
    """設定値を検証する"""
    if config.encode.pixel_depth not in SUPPORTED_ENCODE_DEPTHS:
        raise ConfigError(f"未対応のピクセル深度です: {config.encode.pixel_depth}")
    if config.output.format not in SUPPORTED_OUTPUT_FORMATS:
        raise ConfigError(f"未対応の出力形式です: {config.output.format}")
    if len(config.encode.image_id.encode("utf-8")) > 255:
        raise ConfigError("image_idは255バイト以内である必要があります")
