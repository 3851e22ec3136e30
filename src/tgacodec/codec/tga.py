"""TGAコーデックモジュール

ヘッダー解析、カラーマップ、RLE展開、ピクセルデコード、画像組み立てを
まとめてTGA形式のデコード・エンコードを行う。

TGA形式の構造:
- ヘッダー(18) + 画像ID(id_length) + カラーマップ(可変) + ピクセルデータ(非圧縮またはRLE)
- 拡張リビジョンのみ: 開発者領域・拡張領域(可変) + フッター(26)

フォーマットリビジョンは末尾のシグネチャから推定するため、
入力は常にメモリ上に揃ったバイト列である必要がある（ストリーミングデコード非対応）。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from tgacodec.codec.assembler import DecodedImage, ImageAssembler
from tgacodec.codec.colour_map import ColourMapReader, ColourMapWriter
from tgacodec.codec.header import (
    FOOTER_SIZE,
    HEADER_SIZE,
    ColourMapSpec,
    FormatRevision,
    ImageKind,
    ImageSpec,
    TGAHeader,
    Trailer,
    make_image_type,
    parse_header,
    read_trailer,
)
from tgacodec.codec.pixel import PixelDecoder, PixelEncoder, check_encoding
from tgacodec.codec.rle import RLEDecoder, RLEEncoder
from tgacodec.colour import RGBColour
from tgacodec.errors import TGAError, TooSmall, TruncatedInput
from tgacodec.identifier import decode_image_id
from tgacodec.logger import CodecLogger

_U16_MAX = 0xFFFF


class TGACodecProtocol(Protocol):
    """TGAコーデックインターフェース"""

    def decode(self, data: bytes) -> tuple[TGAMetadata, DecodedImage]:
        """TGA形式のバイト列をデコードする"""
        ...

    def encode(
        self,
        metadata: TGAMetadata,
        image: DecodedImage,
        compress: bool | None = None,
    ) -> bytes:
        """画像をTGA形式のバイト列にエンコードする"""
        ...


@dataclass(frozen=True)
class TGAMetadata:
    """TGA画像のメタ情報

    デコード結果として生成される不変データクラス。エンコード時の入力にも使用する。

    Attributes:
        kind: 画像種別
        pixel_depth: ピクセル深度（ビット数）
        width: 画像の幅（ピクセル）
        height: 画像の高さ（ピクセル）
        revision: フォーマットリビジョン
        compressed: RLE圧縮の有無
        alpha_depth: 画像記述子のアルファビット数
        x_origin: X原点
        y_origin: Y原点
        right_to_left: 各行が右から左に格納されているか
        top_to_bottom: 行が上から下に格納されているか
        image_id: 画像ID欄の生バイト列
        colour_map: カラーマップ（COLOUR_MAPPED以外は空）
        colour_map_first_index: カラーマップの最初のインデックス
        colour_map_entry_size: カラーマップのエントリサイズ（ビット数）
        extension_area: 拡張領域の生バイト列（拡張リビジョンのみ）
        developer_area: 開発者領域の生バイト列（拡張リビジョンのみ）
    """

    kind: ImageKind
    pixel_depth: int
    width: int
    height: int
    revision: FormatRevision = FormatRevision.EXTENDED
    compressed: bool = False
    alpha_depth: int = 0
    x_origin: int = 0
    y_origin: int = 0
    right_to_left: bool = False
    top_to_bottom: bool = True
    image_id: bytes = b""
    colour_map: tuple[RGBColour, ...] = ()
    colour_map_first_index: int = 0
    colour_map_entry_size: int = 0
    extension_area: bytes = b""
    developer_area: bytes = b""

    @property
    def image_id_text(self) -> str:
        """画像ID欄を文字列として返す"""
        return decode_image_id(self.image_id)

    @property
    def has_alpha(self) -> bool:
        """アルファ情報を持つか"""
        return self.alpha_depth > 0 or self.pixel_depth == 32


class TGACodec:
    """TGA画像コーデック

    デコード・エンコードはいずれも1回の呼び出しで完結し、呼び出し間で状態を保持しない。
    """

    def __init__(self, logger: CodecLogger | None = None) -> None:
        """TGAコーデックを初期化する

        Args:
            logger: デバッグ情報の出力先（Noneの場合は出力しない）
        """
        self._logger = logger
        self._colour_map_reader = ColourMapReader()
        self._colour_map_writer = ColourMapWriter()
        self._rle_decoder = RLEDecoder()
        self._rle_encoder = RLEEncoder()
        self._pixel_decoder = PixelDecoder()
        self._pixel_encoder = PixelEncoder()
        self._assembler = ImageAssembler()

    def _debug(self, message: str) -> None:
        if self._logger is not None:
            self._logger.debug(message)

    def is_valid(self, data: bytes) -> bool:
        """指定されたデータが対応するTGA形式のヘッダーを持つかを判定する

        Args:
            data: 判定対象のバイト列

        Returns:
            ヘッダーが解析でき、画像種別とピクセル深度が対応している場合True
        """
        if len(data) < HEADER_SIZE:
            return False
        try:
            header = parse_header(data)
            kind = header.kind
            if kind != ImageKind.NONE:
                check_encoding(kind, header.image.pixel_depth)
        except TGAError:
            return False
        return True

    def parse_header(self, data: bytes) -> TGAHeader:
        """TGAヘッダーを解析する

        Raises:
            TooSmall: データが18バイトに満たない場合
        """
        if len(data) < HEADER_SIZE:
            raise TooSmall(f"データが短すぎます: {len(data)}バイト")
        return parse_header(data)

    def decode(self, data: bytes) -> tuple[TGAMetadata, DecodedImage]:
        """TGA形式のバイト列をデコードする

        Args:
            data: TGA形式の画像バイト列（ファイル全体）

        Returns:
            (メタ情報, 左上原点に正規化された画像)のタプル

        Raises:
            TooSmall: データが18バイトに満たない場合
            TruncatedInput: 宣言されたセクションがデータ末尾を超える場合
            UnsupportedColourMapDepth: 未対応のカラーマップエントリサイズの場合
            UnsupportedPixelEncoding: 未対応の画像種別・ピクセル深度の場合
            PaletteIndexOutOfRange: インデックスがカラーマップの範囲外の場合
            MalformedRLEStream: RLEデータが不完全な場合
            PixelCountOverflow: RLEパケットが画像サイズを超える場合
        """
        data = bytes(data)
        header = self.parse_header(data)
        kind = header.kind
        spec = header.image

        trailer = read_trailer(data)
        revision = FormatRevision.ORIGINAL if trailer is None else FormatRevision.EXTENDED
        # フッターがある場合、ピクセルデータはフッターの手前までに制限する
        body = data if trailer is None else data[:-FOOTER_SIZE]

        self._debug(
            f"TGA: {kind.name} {spec.width}x{spec.height} {spec.pixel_depth}bit "
            f"rle={header.compressed} revision={revision.value}"
        )

        offset = HEADER_SIZE
        id_end = offset + header.id_length
        if id_end > len(body):
            raise TruncatedInput(f"画像ID欄が不完全です: {header.id_length}バイト")
        image_id = body[offset:id_end]
        offset = id_end

        palette: tuple[RGBColour, ...] = ()
        if header.reads_colour_map:
            palette, offset = self._colour_map_reader.read(
                body, offset, header.colour_map, kind, spec.alpha_depth
            )
            self._debug(f"カラーマップ: {header.colour_map.length}エントリ")

        if kind == ImageKind.NONE:
            image = DecodedImage.empty()
        else:
            image = self._decode_pixels(body, offset, header, palette)

        extension_area, developer_area = self._read_areas(data, trailer)

        colour_mapped = kind == ImageKind.COLOUR_MAPPED
        metadata = TGAMetadata(
            kind=kind,
            pixel_depth=spec.pixel_depth,
            width=spec.width,
            height=spec.height,
            revision=revision,
            compressed=header.compressed,
            alpha_depth=spec.alpha_depth,
            x_origin=spec.x_origin,
            y_origin=spec.y_origin,
            right_to_left=spec.right_to_left,
            top_to_bottom=spec.top_to_bottom,
            image_id=image_id,
            colour_map=palette,
            colour_map_first_index=header.colour_map.first_index if colour_mapped else 0,
            colour_map_entry_size=header.colour_map.entry_size if colour_mapped else 0,
            extension_area=extension_area,
            developer_area=developer_area,
        )
        return metadata, image

    def _decode_pixels(
        self,
        body: bytes,
        offset: int,
        header: TGAHeader,
        palette: tuple[RGBColour, ...],
    ) -> DecodedImage:
        spec = header.image
        kind = header.kind
        depth = check_encoding(kind, spec.pixel_depth)
        sample_size = depth.sample_size
        pixel_count = spec.pixel_count

        if header.compressed:
            raw, _ = self._rle_decoder.decode(body, offset, sample_size, pixel_count)
        else:
            end = offset + pixel_count * sample_size
            if end > len(body):
                raise TruncatedInput(
                    f"ピクセルデータが不完全です: {pixel_count * sample_size}バイト必要、"
                    f"残り{max(len(body) - offset, 0)}バイト"
                )
            raw = body[offset:end]

        pixels = self._pixel_decoder.decode(raw, kind, depth, spec.alpha_depth, palette)
        self._debug(
            f"向き: right_to_left={spec.right_to_left} top_to_bottom={spec.top_to_bottom}"
        )
        return self._assembler.assemble(
            pixels, spec.width, spec.height, spec.right_to_left, spec.top_to_bottom
        )

    def _read_areas(self, data: bytes, trailer: Trailer | None) -> tuple[bytes, bytes]:
        """拡張領域と開発者領域を不透明なバイト列として読み取る"""
        if trailer is None:
            return b"", b""

        footer_start = len(data) - FOOTER_SIZE
        extension_offset = trailer.extension_area_offset
        developer_offset = trailer.developer_area_offset

        extension_area = b""
        if extension_offset:
            if extension_offset + 2 > footer_start:
                raise TruncatedInput(f"拡張領域のオフセットが不正です: {extension_offset}")
            size = int.from_bytes(data[extension_offset : extension_offset + 2], "little")
            if size < 2 or extension_offset + size > footer_start:
                raise TruncatedInput(f"拡張領域のサイズが不正です: {size}バイト")
            extension_area = data[extension_offset : extension_offset + size]

        developer_area = b""
        if developer_offset:
            if developer_offset > footer_start:
                raise TruncatedInput(f"開発者領域のオフセットが不正です: {developer_offset}")
            end = extension_offset if extension_offset > developer_offset else footer_start
            developer_area = data[developer_offset:end]

        return extension_area, developer_area

    def encode(
        self,
        metadata: TGAMetadata,
        image: DecodedImage,
        compress: bool | None = None,
    ) -> bytes:
        """画像をTGA形式のバイト列にエンコードする

        常に拡張リビジョン（フッター付き）で出力する。

        Args:
            metadata: 出力するメタ情報
            image: 左上原点に正規化された画像
            compress: RLE圧縮するか（Noneの場合はmetadata.compressedに従う）

        Returns:
            TGA形式のバイト列

        Raises:
            ValueError: メタ情報と画像が矛盾する場合、またはヘッダーに収まらない値の場合
            UnsupportedPixelEncoding: 未対応の画像種別・ピクセル深度、または深度で表現できない色の場合
            UnsupportedColourMapDepth: 未対応のカラーマップエントリサイズの場合
            ColourNotInPalette: カラーマップに存在しない色がある場合
        """
        compressed = metadata.compressed if compress is None else compress
        self._validate(metadata, image)
        kind = metadata.kind

        palette = metadata.colour_map
        map_bytes = b""
        if kind == ImageKind.COLOUR_MAPPED and palette:
            map_bytes = self._colour_map_writer.write(
                palette, metadata.colour_map_entry_size, metadata.alpha_depth
            )

        pixel_bytes = b""
        if kind != ImageKind.NONE:
            pixel_bytes = self._encode_pixels(metadata, image, compressed)

        header = TGAHeader(
            id_length=len(metadata.image_id),
            has_colour_map=bool(map_bytes),
            image_type=make_image_type(kind, compressed),
            colour_map=ColourMapSpec(
                first_index=metadata.colour_map_first_index,
                length=len(palette),
                entry_size=metadata.colour_map_entry_size,
            ),
            image=ImageSpec(
                x_origin=metadata.x_origin,
                y_origin=metadata.y_origin,
                width=metadata.width,
                height=metadata.height,
                pixel_depth=metadata.pixel_depth,
                alpha_depth=metadata.alpha_depth,
                right_to_left=metadata.right_to_left,
                top_to_bottom=metadata.top_to_bottom,
            ),
        )

        output = bytearray(header.to_bytes())
        output += metadata.image_id
        output += map_bytes
        output += pixel_bytes

        developer_offset = 0
        if metadata.developer_area:
            developer_offset = len(output)
            output += metadata.developer_area

        extension_offset = 0
        if metadata.extension_area:
            extension_offset = len(output)
            output += metadata.extension_area

        output += Trailer(
            extension_area_offset=extension_offset,
            developer_area_offset=developer_offset,
        ).to_bytes()

        self._debug(
            f"TGAエンコード: {kind.name} {metadata.width}x{metadata.height} "
            f"{metadata.pixel_depth}bit rle={compressed} {len(output)}バイト"
        )
        return bytes(output)

    def _encode_pixels(
        self, metadata: TGAMetadata, image: DecodedImage, compressed: bool
    ) -> bytes:
        depth = check_encoding(metadata.kind, metadata.pixel_depth)
        ordered = self._assembler.disassemble(
            image, metadata.right_to_left, metadata.top_to_bottom
        )
        samples = self._pixel_encoder.encode(
            ordered,
            metadata.kind,
            depth,
            metadata.alpha_depth,
            metadata.colour_map,
        )
        if compressed:
            return self._rle_encoder.encode(samples, depth.sample_size, metadata.width)
        return samples

    def _validate(self, metadata: TGAMetadata, image: DecodedImage) -> None:
        """エンコード可能なメタ情報と画像かを検証する"""
        for name in ("width", "height", "x_origin", "y_origin", "colour_map_first_index"):
            value = getattr(metadata, name)
            if not 0 <= value <= _U16_MAX:
                raise ValueError(f"{name}が16bitに収まりません: {value}")
        if len(metadata.colour_map) > _U16_MAX:
            raise ValueError(f"カラーマップが大きすぎます: {len(metadata.colour_map)}エントリ")
        if not 0 <= metadata.pixel_depth <= 0xFF:
            raise ValueError(f"ピクセル深度が不正です: {metadata.pixel_depth}")
        if not 0 <= metadata.alpha_depth <= 0x0F:
            raise ValueError(f"アルファビット数が不正です: {metadata.alpha_depth}")
        if len(metadata.image_id) > 0xFF:
            raise ValueError(f"画像IDが長すぎます: {len(metadata.image_id)}バイト")

        if metadata.kind == ImageKind.NONE:
            if image != DecodedImage.empty():
                raise ValueError(
                    f"画像種別NONEでは空の画像のみ指定できます: {image.width}x{image.height}"
                )
        elif (image.width, image.height) != (metadata.width, metadata.height):
            raise ValueError(
                f"画像サイズがメタ情報と一致しません: "
                f"{image.width}x{image.height} != {metadata.width}x{metadata.height}"
            )

        if metadata.kind != ImageKind.COLOUR_MAPPED and (
            metadata.colour_map
            or metadata.colour_map_first_index
            or metadata.colour_map_entry_size
        ):
            raise ValueError("カラーマップはCOLOUR_MAPPED画像でのみ指定できます")

        if metadata.extension_area:
            declared = int.from_bytes(metadata.extension_area[:2], "little")
            if len(metadata.extension_area) < 2 or declared != len(metadata.extension_area):
                raise ValueError(
                    f"拡張領域のサイズ欄が実サイズと一致しません: {declared} != "
                    f"{len(metadata.extension_area)}"
                )


def decode(data: bytes) -> tuple[TGAMetadata, DecodedImage]:
    """TGA形式のバイト列をデコードする（TGACodec.decodeの簡易呼び出し）"""
    return TGACodec().decode(data)


def encode(
    metadata: TGAMetadata,
    image: DecodedImage,
    compress: bool | None = None,
) -> bytes:
    """画像をTGA形式にエンコードする（TGACodec.encodeの簡易呼び出し）"""
    return TGACodec().encode(metadata, image, compress=compress)
