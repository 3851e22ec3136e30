"""ラスター画像変換パッケージ

TGAと他のラスター形式を相互変換するConverterを提供する。
"""

from .base import BaseConverter, ConversionResult, ConversionStatus
from .image import (
    OutputFormat,
    TGAConverter,
    TGAEncoder,
    TGAImageDecoder,
    from_pil_image,
    to_pil_image,
)

__all__ = [
    "BaseConverter",
    "ConversionResult",
    "ConversionStatus",
    "OutputFormat",
    "TGAConverter",
    "TGAEncoder",
    "TGAImageDecoder",
    "from_pil_image",
    "to_pil_image",
]
