"""ピクセルデコード・エンコードモジュール

生のピクセルサンプル列（非圧縮データまたはRLE展開後のデータ）を
画像種別とピクセル深度に従って色値に変換する。
TGAはチャンネルをB, G, R(, A)の順で格納する。
"""

from __future__ import annotations

from collections.abc import Sequence

from tgacodec.codec.header import ImageKind, PixelDepth
from tgacodec.colour import RGBColour
from tgacodec.errors import (
    ColourNotInPalette,
    PaletteIndexOutOfRange,
    UnsupportedPixelEncoding,
)

_SUPPORTED_DEPTHS: dict[ImageKind, tuple[PixelDepth, ...]] = {
    ImageKind.COLOUR_MAPPED: (PixelDepth.GREYSCALE, PixelDepth.RGB5_A),
    ImageKind.TRUE_COLOUR: (
        PixelDepth.RGB5,
        PixelDepth.RGB5_A,
        PixelDepth.RGB8,
        PixelDepth.RGBA8,
    ),
    ImageKind.MONOCHROME: (PixelDepth.GREYSCALE,),
}


def check_encoding(kind: ImageKind, depth: int) -> PixelDepth:
    """画像種別とピクセル深度の組み合わせを検証する

    Args:
        kind: 画像種別
        depth: ピクセル深度（ビット数）

    Returns:
        検証済みのピクセル深度

    Raises:
        UnsupportedPixelEncoding: 未対応の組み合わせの場合
    """
    pixel_depth = PixelDepth.from_bits(depth)
    if pixel_depth not in _SUPPORTED_DEPTHS.get(kind, ()):
        raise UnsupportedPixelEncoding(
            f"未対応のピクセル形式です: {kind.name} / {pixel_depth.value}bit"
        )
    return pixel_depth


def _expand5(value: int) -> int:
    """5bitチャンネルを8bitに拡張する"""
    return (value << 3) | (value >> 2)


def unpack_rgb5(word: int, has_alpha: bool) -> RGBColour:
    """16bitワード（5-5-5 + 属性ビット）を色に変換する

    ビット0〜4が青、5〜9が緑、10〜14が赤。has_alphaの場合はビット15をアルファとする。
    """
    alpha = (255 if word & 0x8000 else 0) if has_alpha else 255
    return RGBColour(
        _expand5((word >> 10) & 0x1F),
        _expand5((word >> 5) & 0x1F),
        _expand5(word & 0x1F),
        alpha,
    )


def pack_rgb5(colour: RGBColour, has_alpha: bool) -> int:
    """色を16bitワード（5-5-5 + 属性ビット）に変換する"""
    word = ((colour.r >> 3) << 10) | ((colour.g >> 3) << 5) | (colour.b >> 3)
    if has_alpha and colour.a >= 128:
        word |= 0x8000
    return word


def unpack_colour(sample: bytes, bits: int, has_alpha: bool) -> RGBColour:
    """true-colour形式の1サンプルを色に変換する

    Args:
        sample: サンプルのバイト列（15/16bitは2バイト、24bitは3バイト、32bitは4バイト）
        bits: サンプルのビット数
        has_alpha: 16bit時に最上位ビットをアルファとして扱うか

    Returns:
        変換後の色
    """
    if bits in (15, 16):
        return unpack_rgb5(sample[0] | (sample[1] << 8), has_alpha and bits == 16)
    if bits == 24:
        return RGBColour(sample[2], sample[1], sample[0])
    return RGBColour(sample[2], sample[1], sample[0], sample[3])


def quantise_colour(colour: RGBColour, bits: int, has_alpha: bool) -> RGBColour:
    """色をtrue-colour形式で表現できる最も近い色に丸める

    15/16bitは各チャンネルを5bitに、アルファを属性ビットの有無に応じて0/255または255に、
    24bitはアルファを255にする。32bitはそのまま返す。
    """
    if bits in (15, 16):
        if has_alpha and bits == 16:
            alpha = 255 if colour.a >= 128 else 0
        else:
            alpha = 255
        return RGBColour(
            _expand5(colour.r >> 3),
            _expand5(colour.g >> 3),
            _expand5(colour.b >> 3),
            alpha,
        )
    if bits == 24:
        return RGBColour(colour.r, colour.g, colour.b)
    return colour


def pack_colour(colour: RGBColour, bits: int, has_alpha: bool) -> bytes:
    """色をtrue-colour形式の1サンプルに変換する

    Raises:
        UnsupportedPixelEncoding: 指定のビット数で正確に表現できない色の場合
    """
    if quantise_colour(colour, bits, has_alpha) != colour:
        raise UnsupportedPixelEncoding(f"{bits}bitで表現できない色です: {colour}")
    if bits in (15, 16):
        return pack_rgb5(colour, has_alpha and bits == 16).to_bytes(2, "little")
    if bits == 24:
        return bytes((colour.b, colour.g, colour.r))
    return bytes((colour.b, colour.g, colour.r, colour.a))


class PixelDecoder:
    """ピクセルデコーダー

    固定長サンプルの連続（width*height個）を色値の列に変換する。
    """

    def decode(
        self,
        raw: bytes,
        kind: ImageKind,
        depth: int,
        alpha_depth: int = 0,
        palette: Sequence[RGBColour] = (),
    ) -> list[RGBColour]:
        """サンプル列をデコードする

        Args:
            raw: サンプルを連結したバイト列
            kind: 画像種別
            depth: ピクセル深度（ビット数）
            alpha_depth: 画像記述子のアルファビット数
            palette: カラーマップ（COLOUR_MAPPED時のみ使用）

        Returns:
            ファイル格納順の色値リスト

        Raises:
            UnsupportedPixelEncoding: 未対応の種別・深度の組み合わせの場合
            PaletteIndexOutOfRange: インデックスがカラーマップの範囲外の場合
        """
        pixel_depth = check_encoding(kind, depth)
        size = pixel_depth.sample_size
        count = len(raw) // size

        if kind == ImageKind.COLOUR_MAPPED:
            return self._decode_indexed(raw, size, count, palette)
        if kind == ImageKind.MONOCHROME:
            return [RGBColour.grey(value) for value in raw[:count]]

        has_alpha = alpha_depth > 0
        return [
            unpack_colour(raw[i * size : (i + 1) * size], pixel_depth.value, has_alpha)
            for i in range(count)
        ]

    def _decode_indexed(
        self,
        raw: bytes,
        size: int,
        count: int,
        palette: Sequence[RGBColour],
    ) -> list[RGBColour]:
        # インデックスはカラーマップの格納位置をそのまま指す（first_indexは加算しない）
        pixels: list[RGBColour] = []
        for i in range(count):
            index = int.from_bytes(raw[i * size : (i + 1) * size], "little")
            if index >= len(palette):
                raise PaletteIndexOutOfRange(
                    f"パレットインデックスが範囲外です: {index}（エントリ数 {len(palette)}）"
                )
            pixels.append(palette[index])
        return pixels


class PixelEncoder:
    """ピクセルエンコーダー

    PixelDecoderの逆変換を行い、色値の列をサンプル列に変換する。
    """

    def encode(
        self,
        pixels: Sequence[RGBColour],
        kind: ImageKind,
        depth: int,
        alpha_depth: int = 0,
        palette: Sequence[RGBColour] = (),
    ) -> bytes:
        """色値の列をサンプル列にエンコードする

        Args:
            pixels: ファイル格納順の色値
            kind: 画像種別
            depth: ピクセル深度（ビット数）
            alpha_depth: 画像記述子のアルファビット数
            palette: カラーマップ（COLOUR_MAPPED時のみ使用）

        Returns:
            サンプルを連結したバイト列

        Raises:
            UnsupportedPixelEncoding: 未対応の種別・深度の組み合わせ、または深度で表現できない色の場合
            ColourNotInPalette: カラーマップに存在しない色がある場合
        """
        pixel_depth = check_encoding(kind, depth)

        if kind == ImageKind.COLOUR_MAPPED:
            return self._encode_indexed(pixels, pixel_depth.sample_size, palette)
        if kind == ImageKind.MONOCHROME:
            return self._encode_grey(pixels)

        has_alpha = alpha_depth > 0
        out = bytearray()
        for colour in pixels:
            out += pack_colour(colour, pixel_depth.value, has_alpha)
        return bytes(out)

    def _encode_grey(self, pixels: Sequence[RGBColour]) -> bytes:
        for colour in pixels:
            if colour != RGBColour.grey(colour.r):
                raise UnsupportedPixelEncoding(f"モノクロで表現できない色です: {colour}")
        return bytes(colour.r for colour in pixels)

    def _encode_indexed(
        self,
        pixels: Sequence[RGBColour],
        size: int,
        palette: Sequence[RGBColour],
    ) -> bytes:
        lookup: dict[RGBColour, int] = {}
        for index, colour in enumerate(palette):
            lookup.setdefault(colour, index)

        limit = 1 << (size * 8)
        out = bytearray()
        for colour in pixels:
            index = lookup.get(colour)
            if index is None:
                raise ColourNotInPalette(f"カラーマップに存在しない色です: {colour}")
            if index >= limit:
                raise PaletteIndexOutOfRange(
                    f"インデックスが{size * 8}bitに収まりません: {index}"
                )
            out += index.to_bytes(size, "little")
        return bytes(out)
