"""色型モジュール

デコード結果のピクセル値として使用する8bit RGBA色型と、
HSL/HSV色空間との相互変換を提供する。
"""

from __future__ import annotations

import colorsys
from dataclasses import dataclass


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _to_byte(value: float) -> int:
    """0.0〜1.0の浮動小数点値を0〜255の整数に変換する"""
    return int(round(_clamp(value, 0.0, 1.0) * 255))


@dataclass(frozen=True)
class RGBColour:
    """8bit RGBA色

    各チャンネルを0〜255の整数で保持する不変データクラス。

    Attributes:
        r: 赤チャンネル
        g: 緑チャンネル
        b: 青チャンネル
        a: アルファチャンネル（255で不透明）
    """

    r: int
    g: int
    b: int
    a: int = 255

    def __post_init__(self) -> None:
        for name in ("r", "g", "b", "a"):
            value = getattr(self, name)
            if not 0 <= value <= 255:
                raise ValueError(f"チャンネル値は0〜255である必要があります: {name}={value}")

    @classmethod
    def grey(cls, value: int, a: int = 255) -> RGBColour:
        """R=G=Bのグレースケール色を作成する"""
        return cls(value, value, value, a)

    @classmethod
    def from_floats(cls, r: float, g: float, b: float, a: float = 1.0) -> RGBColour:
        """0.0〜1.0の浮動小数点チャンネルから色を作成する

        範囲外の値は0.0〜1.0にクランプされる。
        """
        return cls(_to_byte(r), _to_byte(g), _to_byte(b), _to_byte(a))

    @classmethod
    def from_hsl(
        cls, hue: float, saturation: float, lightness: float, alpha: float = 1.0
    ) -> RGBColour:
        """HSL値から色を作成する

        Args:
            hue: 色相（度、360で折り返す）
            saturation: 彩度（0.0〜1.0）
            lightness: 輝度（0.0〜1.0）
            alpha: アルファ（0.0〜1.0）

        Returns:
            変換後の色
        """
        r, g, b = colorsys.hls_to_rgb(
            (hue % 360) / 360,
            _clamp(lightness, 0.0, 1.0),
            _clamp(saturation, 0.0, 1.0),
        )
        return cls.from_floats(r, g, b, alpha)

    @classmethod
    def from_hsv(
        cls, hue: float, saturation: float, value: float, alpha: float = 1.0
    ) -> RGBColour:
        """HSV値から色を作成する

        Args:
            hue: 色相（度、360で折り返す）
            saturation: 彩度（0.0〜1.0）
            value: 明度（0.0〜1.0）
            alpha: アルファ（0.0〜1.0）

        Returns:
            変換後の色
        """
        r, g, b = colorsys.hsv_to_rgb(
            (hue % 360) / 360,
            _clamp(saturation, 0.0, 1.0),
            _clamp(value, 0.0, 1.0),
        )
        return cls.from_floats(r, g, b, alpha)

    @property
    def rf(self) -> float:
        return self.r / 255

    @property
    def gf(self) -> float:
        return self.g / 255

    @property
    def bf(self) -> float:
        return self.b / 255

    @property
    def af(self) -> float:
        return self.a / 255

    def to_tuple(self) -> tuple[int, int, int, int]:
        """(r, g, b, a)のタプルを返す"""
        return (self.r, self.g, self.b, self.a)

    def to_hsl(self) -> HSLColour:
        """HSL色に変換する"""
        h, l, s = colorsys.rgb_to_hls(self.rf, self.gf, self.bf)  # noqa: E741
        return HSLColour(hue=h * 360, saturation=s, lightness=l, alpha=self.af)

    def to_hsv(self) -> HSVColour:
        """HSV色に変換する"""
        h, s, v = colorsys.rgb_to_hsv(self.rf, self.gf, self.bf)
        return HSVColour(hue=h * 360, saturation=s, value=v, alpha=self.af)

    def __str__(self) -> str:
        return f"{self.r},{self.g},{self.b},{self.a}"


@dataclass(frozen=True)
class HSLColour:
    """HSL色（色相は度、その他は0.0〜1.0）"""

    hue: float
    saturation: float
    lightness: float
    alpha: float = 1.0

    def to_rgb(self) -> RGBColour:
        return RGBColour.from_hsl(self.hue, self.saturation, self.lightness, self.alpha)


@dataclass(frozen=True)
class HSVColour:
    """HSV色（色相は度、その他は0.0〜1.0）"""

    hue: float
    saturation: float
    value: float
    alpha: float = 1.0

    def to_rgb(self) -> RGBColour:
        return RGBColour.from_hsv(self.hue, self.saturation, self.value, self.alpha)
