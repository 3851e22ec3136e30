"""画像組み立てモジュール

ファイル格納順のピクセル列を、画像記述子の向きフラグに従って
左上原点（上から下、左から右）の正規化された並びに変換する。
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import TypeVar

from tgacodec.colour import RGBColour

T = TypeVar("T")


@dataclass(frozen=True)
class DecodedImage:
    """デコード済み画像

    左上原点・行優先の色値バッファを保持する不変データクラス。

    Attributes:
        width: 画像の幅（ピクセル）
        height: 画像の高さ（ピクセル）
        pixels: width*height個の色値（上の行から順、各行は左から右）
    """

    width: int
    height: int
    pixels: tuple[RGBColour, ...]

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError(f"画像サイズが不正です: {self.width}x{self.height}")
        if len(self.pixels) != self.width * self.height:
            raise ValueError(
                f"ピクセル数が画像サイズと一致しません: "
                f"{len(self.pixels)} != {self.width}x{self.height}"
            )

    @classmethod
    def empty(cls) -> DecodedImage:
        """0x0の空画像を返す"""
        return cls(0, 0, ())

    def get_pixel(self, x: int, y: int) -> RGBColour:
        """座標(x, y)の色を返す（(0, 0)は左上）"""
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"座標が画像の範囲外です: ({x}, {y})")
        return self.pixels[y * self.width + x]

    def rows(self) -> Iterator[tuple[RGBColour, ...]]:
        """上の行から順に各行の色値を返す"""
        for y in range(self.height):
            yield self.pixels[y * self.width : (y + 1) * self.width]


def _reorient(
    pixels: Sequence[T],
    width: int,
    height: int,
    right_to_left: bool,
    top_to_bottom: bool,
) -> list[T]:
    rows = [list(pixels[y * width : (y + 1) * width]) for y in range(height)]
    # TGAの既定は左下原点のため、top_to_bottomでない場合は行を反転する
    if not top_to_bottom:
        rows.reverse()
    if right_to_left:
        for row in rows:
            row.reverse()
    return [pixel for row in rows for pixel in row]


class ImageAssembler:
    """画像組み立てクラス

    行の反転と列の反転はいずれも自己逆変換のため、
    デコード時の組み立てとエンコード時の分解は同じ処理で行う。
    """

    def assemble(
        self,
        pixels: Sequence[RGBColour],
        width: int,
        height: int,
        right_to_left: bool,
        top_to_bottom: bool,
    ) -> DecodedImage:
        """ファイル格納順のピクセル列から正規化された画像を組み立てる

        Args:
            pixels: ファイル格納順の色値（width*height個）
            width: 画像の幅
            height: 画像の高さ
            right_to_left: 各行が右から左に格納されているか
            top_to_bottom: 行が上から下に格納されているか

        Returns:
            左上原点に正規化された画像
        """
        ordered = _reorient(pixels, width, height, right_to_left, top_to_bottom)
        return DecodedImage(width=width, height=height, pixels=tuple(ordered))

    def disassemble(
        self,
        image: DecodedImage,
        right_to_left: bool,
        top_to_bottom: bool,
    ) -> list[RGBColour]:
        """正規化された画像をファイル格納順のピクセル列に分解する"""
        return _reorient(
            image.pixels, image.width, image.height, right_to_left, top_to_bottom
        )
