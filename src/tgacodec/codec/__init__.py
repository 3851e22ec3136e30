"""TGA画像コーデックパッケージ

Truevision TGA形式の画像をデコード・エンコードする。
"""

from tgacodec.codec.assembler import DecodedImage, ImageAssembler
from tgacodec.codec.colour_map import ColourMapReader, ColourMapWriter
from tgacodec.codec.header import (
    ColourMapSpec,
    FormatRevision,
    ImageKind,
    ImageSpec,
    PixelDepth,
    TGAHeader,
    Trailer,
    detect_revision,
    parse_header,
    read_trailer,
)
from tgacodec.codec.pixel import PixelDecoder, PixelEncoder
from tgacodec.codec.rle import RLEDecoder, RLEEncoder
from tgacodec.codec.tga import TGACodec, TGAMetadata, decode, encode

__all__ = [
    "ColourMapReader",
    "ColourMapSpec",
    "ColourMapWriter",
    "DecodedImage",
    "FormatRevision",
    "ImageAssembler",
    "ImageKind",
    "ImageSpec",
    "PixelDecoder",
    "PixelDepth",
    "PixelEncoder",
    "RLEDecoder",
    "RLEEncoder",
    "TGACodec",
    "TGAHeader",
    "TGAMetadata",
    "Trailer",
    "decode",
    "detect_revision",
    "encode",
    "parse_header",
    "read_trailer",
]
