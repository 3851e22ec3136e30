"""TGAヘッダー・フッター解析モジュール

18バイト固定長のヘッダーと、ファイル末尾26バイトのフッター（トレーラー）を扱う。
TGAにはバージョンバイトが存在しないため、フォーマットリビジョンは
末尾のシグネチャ "TRUEVISION-XFILE" の有無から推定する。
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import Enum, IntEnum

from tgacodec.errors import TruncatedInput, UnsupportedPixelEncoding

HEADER_SIZE: int = 18
"""ヘッダーサイズ: 基本情報(3) + カラーマップ仕様(5) + 画像仕様(10)"""

FOOTER_SIZE: int = 26
"""フッターサイズ: 拡張領域オフセット(4) + 開発者領域オフセット(4) + シグネチャ(16) + 予約(2)"""

SIGNATURE_OFFSET: int = 8
"""フッター先頭からシグネチャまでのオフセット"""

SIGNATURE: bytes = b"TRUEVISION-XFILE"
"""拡張リビジョン（TGA 2.0）のフッターに含まれるシグネチャ"""

_HEADER_FORMAT = "<BBBHHBHHHHBB"
_FOOTER_FORMAT = "<II16s2s"

_IMAGE_TYPE_KIND_MASK = 0x07
_IMAGE_TYPE_RLE_BIT = 0x08

_DESCRIPTOR_ALPHA_MASK = 0x0F
_DESCRIPTOR_RIGHT_TO_LEFT = 0x10
_DESCRIPTOR_TOP_TO_BOTTOM = 0x20


class FormatRevision(Enum):
    """TGAフォーマットのリビジョン

    ORIGINAL: フッターを持たない旧形式
    EXTENDED: 有効なシグネチャ付きフッターを持つ形式（TGA 2.0）
    """

    ORIGINAL = "original"
    EXTENDED = "extended"


class ImageKind(IntEnum):
    """画像種別（画像タイプバイトの下位3ビット）"""

    NONE = 0
    COLOUR_MAPPED = 1
    TRUE_COLOUR = 2
    MONOCHROME = 3


class PixelDepth(IntEnum):
    """1ピクセルあたりのビット数"""

    GREYSCALE = 8
    RGB5 = 15
    RGB5_A = 16
    RGB8 = 24
    RGBA8 = 32

    @property
    def sample_size(self) -> int:
        """1サンプルのバイト数（15bitは2バイトに切り上げ）"""
        return (self.value + 7) // 8

    @classmethod
    def from_bits(cls, bits: int) -> PixelDepth:
        """ビット数からPixelDepthを取得する

        Raises:
            UnsupportedPixelEncoding: 未対応のビット数の場合
        """
        try:
            return cls(bits)
        except ValueError:
            raise UnsupportedPixelEncoding(f"未対応のピクセル深度です: {bits}bit") from None


@dataclass(frozen=True)
class ColourMapSpec:
    """カラーマップ仕様（ヘッダーのオフセット3〜7）

    Attributes:
        first_index: 最初のエントリのインデックス
        length: エントリ数
        entry_size: 1エントリのビット数
    """

    first_index: int = 0
    length: int = 0
    entry_size: int = 0

    @property
    def has_entries(self) -> bool:
        return self.length > 0

    @property
    def byte_size(self) -> int:
        """カラーマップ全体のバイト数"""
        return self.length * ((self.entry_size + 7) // 8)


@dataclass(frozen=True)
class ImageSpec:
    """画像仕様（ヘッダーのオフセット8〜17）

    Attributes:
        x_origin: X原点
        y_origin: Y原点
        width: 画像の幅（ピクセル）
        height: 画像の高さ（ピクセル）
        pixel_depth: ピクセル深度（ビット数、未検証の生値）
        alpha_depth: アルファビット数（記述子のビット0〜3）
        right_to_left: 右から左への格納順（記述子のビット4）
        top_to_bottom: 上から下への格納順（記述子のビット5）
    """

    x_origin: int = 0
    y_origin: int = 0
    width: int = 0
    height: int = 0
    pixel_depth: int = 0
    alpha_depth: int = 0
    right_to_left: bool = False
    top_to_bottom: bool = False

    @property
    def descriptor(self) -> int:
        """画像記述子バイトを組み立てる"""
        value = self.alpha_depth & _DESCRIPTOR_ALPHA_MASK
        if self.right_to_left:
            value |= _DESCRIPTOR_RIGHT_TO_LEFT
        if self.top_to_bottom:
            value |= _DESCRIPTOR_TOP_TO_BOTTOM
        return value

    @property
    def pixel_count(self) -> int:
        return self.width * self.height


@dataclass(frozen=True)
class TGAHeader:
    """TGAヘッダー情報

    Attributes:
        id_length: 画像ID欄の長さ
        has_colour_map: カラーマップフラグ（バイト1のビット0）
        image_type: 画像タイプバイト
        colour_map: カラーマップ仕様
        image: 画像仕様
    """

    id_length: int
    has_colour_map: bool
    image_type: int
    colour_map: ColourMapSpec
    image: ImageSpec

    @property
    def kind(self) -> ImageKind:
        """画像種別を返す

        Raises:
            UnsupportedPixelEncoding: 未対応の画像タイプ（Huffman圧縮等）の場合
        """
        if self.image_type & ~(_IMAGE_TYPE_KIND_MASK | _IMAGE_TYPE_RLE_BIT):
            raise UnsupportedPixelEncoding(f"未対応の画像タイプです: {self.image_type}")
        try:
            return ImageKind(self.image_type & _IMAGE_TYPE_KIND_MASK)
        except ValueError:
            raise UnsupportedPixelEncoding(
                f"未対応の画像タイプです: {self.image_type}"
            ) from None

    @property
    def compressed(self) -> bool:
        return bool(self.image_type & _IMAGE_TYPE_RLE_BIT)

    @property
    def reads_colour_map(self) -> bool:
        """カラーマップのバイト列がストリーム中に存在するか"""
        return self.has_colour_map and self.colour_map.has_entries

    def to_bytes(self) -> bytes:
        """18バイトのヘッダーバイト列に変換する"""
        return struct.pack(
            _HEADER_FORMAT,
            self.id_length,
            1 if self.has_colour_map else 0,
            self.image_type,
            self.colour_map.first_index,
            self.colour_map.length,
            self.colour_map.entry_size,
            self.image.x_origin,
            self.image.y_origin,
            self.image.width,
            self.image.height,
            self.image.pixel_depth,
            self.image.descriptor,
        )


@dataclass(frozen=True)
class Trailer:
    """拡張リビジョンのフッター情報

    Attributes:
        extension_area_offset: 拡張領域のオフセット（0は領域なし）
        developer_area_offset: 開発者領域のオフセット（0は領域なし）
    """

    extension_area_offset: int = 0
    developer_area_offset: int = 0

    def to_bytes(self) -> bytes:
        """26バイトのフッターバイト列に変換する"""
        return struct.pack(
            _FOOTER_FORMAT,
            self.extension_area_offset,
            self.developer_area_offset,
            SIGNATURE,
            b"\x00\x00",
        )


def make_image_type(kind: ImageKind, compressed: bool) -> int:
    """画像種別と圧縮フラグから画像タイプバイトを組み立てる"""
    return int(kind) | (_IMAGE_TYPE_RLE_BIT if compressed else 0)


def parse_header(data: bytes) -> TGAHeader:
    """TGAヘッダーを解析する

    Args:
        data: TGA形式のバイト列

    Returns:
        解析されたヘッダー情報

    Raises:
        TruncatedInput: データが18バイトに満たない場合
    """
    if len(data) < HEADER_SIZE:
        raise TruncatedInput(
            f"ヘッダーが不完全です: {len(data)}バイト（{HEADER_SIZE}バイト必要）"
        )

    (
        id_length,
        colour_map_type,
        image_type,
        map_first,
        map_length,
        map_entry_size,
        x_origin,
        y_origin,
        width,
        height,
        pixel_depth,
        descriptor,
    ) = struct.unpack(_HEADER_FORMAT, data[:HEADER_SIZE])

    # ビット1〜7は予約領域のため無視する
    return TGAHeader(
        id_length=id_length,
        has_colour_map=bool(colour_map_type & 0x01),
        image_type=image_type,
        colour_map=ColourMapSpec(
            first_index=map_first,
            length=map_length,
            entry_size=map_entry_size,
        ),
        image=ImageSpec(
            x_origin=x_origin,
            y_origin=y_origin,
            width=width,
            height=height,
            pixel_depth=pixel_depth,
            alpha_depth=descriptor & _DESCRIPTOR_ALPHA_MASK,
            right_to_left=bool(descriptor & _DESCRIPTOR_RIGHT_TO_LEFT),
            top_to_bottom=bool(descriptor & _DESCRIPTOR_TOP_TO_BOTTOM),
        ),
    )


def read_trailer(data: bytes) -> Trailer | None:
    """フッターを読み取る

    末尾26バイトのシグネチャ欄が "TRUEVISION-XFILE" と一致する場合のみ
    フッターを返す。一致しない場合や26バイト未満の場合は旧形式とみなしNoneを返す。
    シグネチャ不一致はエラーではない。

    Args:
        data: TGA形式のバイト列

    Returns:
        フッター情報、旧形式の場合はNone
    """
    if len(data) < FOOTER_SIZE:
        return None

    footer = data[-FOOTER_SIZE:]
    signature = footer[SIGNATURE_OFFSET : SIGNATURE_OFFSET + len(SIGNATURE)]
    if signature != SIGNATURE:
        return None

    extension_offset, developer_offset, _signature, _reserved = struct.unpack(
        _FOOTER_FORMAT, footer
    )
    return Trailer(
        extension_area_offset=extension_offset,
        developer_area_offset=developer_offset,
    )


def detect_revision(data: bytes) -> FormatRevision:
    """フォーマットリビジョンを判別する"""
    if read_trailer(data) is None:
        return FormatRevision.ORIGINAL
    return FormatRevision.EXTENDED
