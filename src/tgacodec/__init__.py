"""tgacodec - Truevision TGA image decoder and encoder."""

from tgacodec.codec import (
    DecodedImage,
    FormatRevision,
    ImageKind,
    PixelDepth,
    TGACodec,
    TGAMetadata,
    decode,
    encode,
)
from tgacodec.colour import HSLColour, HSVColour, RGBColour
from tgacodec.errors import (
    ColourNotInPalette,
    MalformedRLEStream,
    PaletteIndexOutOfRange,
    PixelCountOverflow,
    TGAError,
    TooSmall,
    TruncatedInput,
    UnsupportedColourMapDepth,
    UnsupportedPixelEncoding,
)
from tgacodec.logger import CodecLogger, LogConfig, VerboseLevel

__version__ = "0.1.0"

__all__ = [
    "CodecLogger",
    "ColourNotInPalette",
    "DecodedImage",
    "FormatRevision",
    "HSLColour",
    "HSVColour",
    "ImageKind",
    "LogConfig",
    "MalformedRLEStream",
    "PaletteIndexOutOfRange",
    "PixelCountOverflow",
    "PixelDepth",
    "RGBColour",
    "TGACodec",
    "TGAError",
    "TGAMetadata",
    "TooSmall",
    "TruncatedInput",
    "UnsupportedColourMapDepth",
    "UnsupportedPixelEncoding",
    "VerboseLevel",
    "decode",
    "encode",
]
