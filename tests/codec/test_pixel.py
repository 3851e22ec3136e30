"""ピクセルデコーダー・エンコーダーのテスト"""

import pytest

from tgacodec.codec.header import ImageKind
from tgacodec.codec.pixel import (
    PixelDecoder,
    PixelEncoder,
    check_encoding,
    pack_rgb5,
    quantise_colour,
    unpack_rgb5,
)
from tgacodec.colour import RGBColour
from tgacodec.errors import (
    ColourNotInPalette,
    PaletteIndexOutOfRange,
    UnsupportedPixelEncoding,
)

PALETTE = (
    RGBColour(0, 0, 0),
    RGBColour(255, 0, 0),
    RGBColour(0, 255, 0),
    RGBColour(0, 0, 255),
)


class TestPixelDecoderTrueColour:
    """true-colourのデコードのテスト"""

    def test_24bit_bgr_order(self) -> None:
        """24bitはB, G, Rの順で格納され、アルファは不透明"""
        raw = bytes([0, 0, 255, 0, 255, 0])
        pixels = PixelDecoder().decode(raw, ImageKind.TRUE_COLOUR, 24)

        assert pixels == [RGBColour(255, 0, 0, 255), RGBColour(0, 255, 0, 255)]

    def test_32bit_bgra_order(self) -> None:
        raw = bytes([10, 20, 30, 40])
        pixels = PixelDecoder().decode(raw, ImageKind.TRUE_COLOUR, 32, alpha_depth=8)

        assert pixels == [RGBColour(30, 20, 10, 40)]

    @pytest.mark.parametrize(
        "word, alpha_depth, expected",
        [
            pytest.param(0x7C00, 0, RGBColour(255, 0, 0), id="正常系: 赤"),
            pytest.param(0x03E0, 0, RGBColour(0, 255, 0), id="正常系: 緑"),
            pytest.param(0x001F, 0, RGBColour(0, 0, 255), id="正常系: 青"),
            pytest.param(0x0421, 0, RGBColour(8, 8, 8), id="正常系: 各チャンネル1"),
            pytest.param(0x8000, 0, RGBColour(0, 0, 0), id="正常系: アルファ深度0は不透明"),
            pytest.param(0x8000, 1, RGBColour(0, 0, 0, 255), id="正常系: 属性ビット1"),
            pytest.param(0x7FFF, 1, RGBColour(255, 255, 255, 0), id="正常系: 属性ビット0"),
        ],
    )
    def test_16bit(self, word: int, alpha_depth: int, expected: RGBColour) -> None:
        raw = word.to_bytes(2, "little")
        pixels = PixelDecoder().decode(raw, ImageKind.TRUE_COLOUR, 16, alpha_depth=alpha_depth)
        assert pixels == [expected]

    def test_15bit_ignores_top_bit(self) -> None:
        """15bitでは最上位ビットをアルファとして扱わない"""
        raw = (0x0000).to_bytes(2, "little")
        pixels = PixelDecoder().decode(raw, ImageKind.TRUE_COLOUR, 15, alpha_depth=1)
        assert pixels == [RGBColour(0, 0, 0, 255)]

    def test_rgb5_pack_unpack(self) -> None:
        colour = unpack_rgb5(0x5A5A, has_alpha=False)
        assert pack_rgb5(colour, has_alpha=False) == 0x5A5A


class TestPixelDecoderIndexed:
    """カラーマップ・モノクロのデコードのテスト"""

    def test_8bit_index(self) -> None:
        raw = bytes([3, 0, 1])
        pixels = PixelDecoder().decode(raw, ImageKind.COLOUR_MAPPED, 8, palette=PALETTE)
        assert pixels == [PALETTE[3], PALETTE[0], PALETTE[1]]

    def test_16bit_index(self) -> None:
        raw = (2).to_bytes(2, "little")
        pixels = PixelDecoder().decode(raw, ImageKind.COLOUR_MAPPED, 16, palette=PALETTE)
        assert pixels == [PALETTE[2]]

    def test_index_out_of_range(self) -> None:
        """パレット長4に対しインデックス5は範囲外"""
        with pytest.raises(PaletteIndexOutOfRange, match="範囲外"):
            PixelDecoder().decode(bytes([5]), ImageKind.COLOUR_MAPPED, 8, palette=PALETTE)

    def test_monochrome(self) -> None:
        pixels = PixelDecoder().decode(bytes([0, 128, 255]), ImageKind.MONOCHROME, 8)
        assert pixels == [RGBColour.grey(0), RGBColour.grey(128), RGBColour.grey(255)]


class TestCheckEncoding:
    """check_encoding()のテスト"""

    @pytest.mark.parametrize(
        "kind, depth",
        [
            pytest.param(ImageKind.MONOCHROME, 24, id="異常系: モノクロ24bit"),
            pytest.param(ImageKind.MONOCHROME, 16, id="異常系: モノクロ16bit"),
            pytest.param(ImageKind.TRUE_COLOUR, 8, id="異常系: true-colour 8bit"),
            pytest.param(ImageKind.COLOUR_MAPPED, 24, id="異常系: カラーマップ24bit"),
            pytest.param(ImageKind.TRUE_COLOUR, 12, id="異常系: 未定義の深度"),
            pytest.param(ImageKind.NONE, 8, id="異常系: 画像なし"),
        ],
    )
    def test_unsupported(self, kind: ImageKind, depth: int) -> None:
        with pytest.raises(UnsupportedPixelEncoding):
            check_encoding(kind, depth)

    def test_decoder_rejects_unsupported(self) -> None:
        with pytest.raises(UnsupportedPixelEncoding):
            PixelDecoder().decode(b"\x00" * 3, ImageKind.MONOCHROME, 24)


class TestPixelEncoder:
    """PixelEncoderのテスト"""

    @pytest.mark.parametrize(
        "kind, depth, alpha_depth, raw",
        [
            pytest.param(ImageKind.TRUE_COLOUR, 24, 0, bytes([0, 0, 255, 0, 255, 0]), id="24bit"),
            pytest.param(ImageKind.TRUE_COLOUR, 16, 1, bytes([0x00, 0xFC, 0xE0, 0x83]), id="16bit"),
            pytest.param(ImageKind.MONOCHROME, 8, 0, bytes([76, 149]), id="モノクロ"),
        ],
    )
    def test_mirror_of_decoder(
        self, kind: ImageKind, depth: int, alpha_depth: int, raw: bytes
    ) -> None:
        """デコード結果をエンコードすると元のサンプル列に戻る"""
        pixels = PixelDecoder().decode(raw, kind, depth, alpha_depth)
        assert PixelEncoder().encode(pixels, kind, depth, alpha_depth) == raw

    def test_32bit_keeps_alpha(self) -> None:
        raw = PixelEncoder().encode([RGBColour(1, 2, 3, 4)], ImageKind.TRUE_COLOUR, 32, 8)
        assert raw == bytes([3, 2, 1, 4])

    def test_indexed_uses_first_match(self) -> None:
        palette = (RGBColour(1, 1, 1), RGBColour(2, 2, 2), RGBColour(1, 1, 1))
        raw = PixelEncoder().encode(
            [RGBColour(1, 1, 1), RGBColour(2, 2, 2)],
            ImageKind.COLOUR_MAPPED,
            8,
            palette=palette,
        )
        assert raw == bytes([0, 1])

    def test_indexed_missing_colour(self) -> None:
        with pytest.raises(ColourNotInPalette):
            PixelEncoder().encode(
                [RGBColour(9, 9, 9)], ImageKind.COLOUR_MAPPED, 8, palette=PALETTE
            )

    def test_8bit_index_overflow(self) -> None:
        """8bitインデックスに収まらないパレット位置はエラー"""
        palette = tuple(RGBColour(i % 256, i // 256, 0) for i in range(300))
        with pytest.raises(PaletteIndexOutOfRange):
            PixelEncoder().encode([palette[299]], ImageKind.COLOUR_MAPPED, 8, palette=palette)

    @pytest.mark.parametrize(
        "kind, depth, alpha_depth, colour",
        [
            pytest.param(ImageKind.TRUE_COLOUR, 24, 0, RGBColour(10, 20, 30, 0), id="異常系: 24bitで透明"),
            pytest.param(ImageKind.TRUE_COLOUR, 16, 0, RGBColour(8, 8, 8, 0), id="異常系: 属性ビットなしで透明"),
            pytest.param(ImageKind.TRUE_COLOUR, 16, 1, RGBColour(8, 8, 8, 128), id="異常系: 半透明"),
            pytest.param(ImageKind.TRUE_COLOUR, 15, 0, RGBColour(9, 8, 8), id="異常系: 5bitに収まらない"),
            pytest.param(ImageKind.MONOCHROME, 8, 0, RGBColour(200, 10, 10), id="異常系: モノクロで有彩色"),
            pytest.param(ImageKind.MONOCHROME, 8, 0, RGBColour.grey(5, a=0), id="異常系: モノクロで透明"),
        ],
    )
    def test_unrepresentable_colour(
        self, kind: ImageKind, depth: int, alpha_depth: int, colour: RGBColour
    ) -> None:
        """深度で正確に表現できない色は丸めずにエラーにする"""
        with pytest.raises(UnsupportedPixelEncoding, match="表現できない色です"):
            PixelEncoder().encode([colour], kind, depth, alpha_depth)


class TestQuantiseColour:
    """quantise_colour()のテスト"""

    @pytest.mark.parametrize(
        "bits, has_alpha, colour, expected",
        [
            pytest.param(32, True, RGBColour(1, 2, 3, 4), RGBColour(1, 2, 3, 4), id="正常系: 32bitはそのまま"),
            pytest.param(24, False, RGBColour(1, 2, 3, 4), RGBColour(1, 2, 3, 255), id="正常系: 24bitは不透明化"),
            pytest.param(16, True, RGBColour(10, 20, 30, 128), RGBColour(8, 16, 24, 255), id="正常系: 16bit半透明"),
            pytest.param(16, True, RGBColour(255, 255, 255, 127), RGBColour(255, 255, 255, 0), id="正常系: 16bit透明"),
            pytest.param(15, True, RGBColour(10, 20, 30, 0), RGBColour(8, 16, 24, 255), id="正常系: 15bitは不透明"),
        ],
    )
    def test_quantise(
        self, bits: int, has_alpha: bool, colour: RGBColour, expected: RGBColour
    ) -> None:
        assert quantise_colour(colour, bits, has_alpha) == expected

    def test_quantised_colour_is_encodable(self) -> None:
        colour = quantise_colour(RGBColour(123, 45, 67, 200), 16, True)
        raw = PixelEncoder().encode([colour], ImageKind.TRUE_COLOUR, 16, 1)
        assert PixelDecoder().decode(raw, ImageKind.TRUE_COLOUR, 16, 1) == [colour]
