"""カラーマップ（パレット）モジュール

ヘッダーと画像IDの直後に置かれるカラーマップを読み書きする。
"""

from __future__ import annotations

from collections.abc import Sequence

from tgacodec.codec.header import ColourMapSpec, ImageKind
from tgacodec.codec.pixel import pack_colour, unpack_colour
from tgacodec.colour import RGBColour
from tgacodec.errors import TruncatedInput, UnsupportedColourMapDepth

SUPPORTED_ENTRY_SIZES: tuple[int, ...] = (15, 16, 24, 32)
"""対応するカラーマップのエントリサイズ（ビット数）"""


def check_entry_size(entry_size: int) -> None:
    """エントリサイズを検証する

    Raises:
        UnsupportedColourMapDepth: 未対応のエントリサイズの場合
    """
    if entry_size not in SUPPORTED_ENTRY_SIZES:
        raise UnsupportedColourMapDepth(
            f"未対応のカラーマップエントリサイズです: {entry_size}bit"
        )


class ColourMapReader:
    """カラーマップ読み込みクラス"""

    def read(
        self,
        data: bytes,
        offset: int,
        spec: ColourMapSpec,
        kind: ImageKind,
        alpha_depth: int = 0,
    ) -> tuple[tuple[RGBColour, ...], int]:
        """カラーマップを読み込む

        画像種別がCOLOUR_MAPPEDでない場合もカラーマップのバイト列は読み飛ばし、
        空のパレットを返す。

        Args:
            data: TGA形式のバイト列
            offset: カラーマップの開始位置
            spec: カラーマップ仕様
            kind: 画像種別
            alpha_depth: 画像記述子のアルファビット数（16bitエントリの属性ビット判定用）

        Returns:
            (パレット, カラーマップ直後の位置)のタプル

        Raises:
            UnsupportedColourMapDepth: COLOUR_MAPPEDで未対応のエントリサイズの場合
            TruncatedInput: カラーマップがデータ末尾を超える場合
        """
        if kind == ImageKind.COLOUR_MAPPED:
            check_entry_size(spec.entry_size)

        end = offset + spec.byte_size
        if end > len(data):
            raise TruncatedInput(
                f"カラーマップが不完全です: {spec.byte_size}バイト必要、"
                f"残り{max(len(data) - offset, 0)}バイト"
            )

        if kind != ImageKind.COLOUR_MAPPED:
            return (), end

        size = (spec.entry_size + 7) // 8
        has_alpha = alpha_depth > 0
        palette = tuple(
            unpack_colour(data[pos : pos + size], spec.entry_size, has_alpha)
            for pos in range(offset, end, size)
        )
        return palette, end


class ColourMapWriter:
    """カラーマップ書き込みクラス"""

    def write(
        self,
        palette: Sequence[RGBColour],
        entry_size: int,
        alpha_depth: int = 0,
    ) -> bytes:
        """パレットをカラーマップのバイト列に変換する

        Raises:
            UnsupportedColourMapDepth: 未対応のエントリサイズの場合
            UnsupportedPixelEncoding: エントリサイズで表現できない色がある場合
        """
        check_entry_size(entry_size)
        has_alpha = alpha_depth > 0
        return b"".join(pack_colour(colour, entry_size, has_alpha) for colour in palette)
