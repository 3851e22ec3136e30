"""TGAImageDecoder・TGAConverter・TGAEncoderのテスト"""

from pathlib import Path

import pytest
from PIL import Image

from tgacodec.codec import DecodedImage, ImageKind, TGAMetadata, decode, encode
from tgacodec.colour import RGBColour
from tgacodec.config import EncodeConfig
from tgacodec.converter import (
    ConversionStatus,
    OutputFormat,
    TGAConverter,
    TGAEncoder,
    TGAImageDecoder,
    from_pil_image,
    to_pil_image,
)
from tgacodec.logger import CodecLogger, LogConfig

PIXELS = (
    RGBColour(255, 0, 0, 255),
    RGBColour(0, 255, 0, 128),
    RGBColour(0, 0, 255, 0),
    RGBColour(10, 20, 30, 255),
)


def create_tga_file(
    path: Path,
    *,
    pixel_depth: int = 32,
    compressed: bool = False,
    top_to_bottom: bool = True,
) -> Path:
    """2x2のテスト用TGAファイルを作成する"""
    alpha_depth = 8 if pixel_depth == 32 else 0
    metadata = TGAMetadata(
        kind=ImageKind.TRUE_COLOUR,
        pixel_depth=pixel_depth,
        width=2,
        height=2,
        alpha_depth=alpha_depth,
        top_to_bottom=top_to_bottom,
    )
    pixels = PIXELS if pixel_depth == 32 else tuple(RGBColour(c.r, c.g, c.b) for c in PIXELS)
    path.write_bytes(encode(metadata, DecodedImage(2, 2, pixels), compress=compressed))
    return path


class TestPilConversion:
    """PIL.Imageとの相互変換のテスト"""

    def test_to_pil_image(self) -> None:
        img = to_pil_image(DecodedImage(2, 2, PIXELS))

        assert img.mode == "RGBA"
        assert img.size == (2, 2)
        assert img.getpixel((1, 0)) == (0, 255, 0, 128)
        assert img.getpixel((0, 1)) == (0, 0, 255, 0)

    def test_from_pil_image_converts_mode(self) -> None:
        img = Image.new("RGB", (3, 1), (1, 2, 3))
        image = from_pil_image(img)

        assert (image.width, image.height) == (3, 1)
        assert image.pixels == (RGBColour(1, 2, 3, 255),) * 3

    def test_round_trip(self) -> None:
        image = DecodedImage(2, 2, PIXELS)
        assert from_pil_image(to_pil_image(image)) == image


class TestTGAImageDecoder:
    """TGAImageDecoderのテスト"""

    def test_is_tga_file(self, tmp_path: Path) -> None:
        path = create_tga_file(tmp_path / "image.tga")
        assert TGAImageDecoder().is_tga_file(path) is True

    @pytest.mark.parametrize(
        "name, content",
        [
            pytest.param("image.png", None, id="異常系: 拡張子が異なる"),
            pytest.param("short.tga", b"\x00" * 10, id="異常系: ヘッダー不足"),
            pytest.param("huffman.tga", bytes([0, 0, 32]) + b"\x00" * 15, id="異常系: 未対応の種別"),
        ],
    )
    def test_is_not_tga_file(self, tmp_path: Path, name: str, content: bytes | None) -> None:
        path = tmp_path / name
        if content is None:
            create_tga_file(path)
        else:
            path.write_bytes(content)
        assert TGAImageDecoder().is_tga_file(path) is False

    def test_is_tga_file_missing(self, tmp_path: Path) -> None:
        assert TGAImageDecoder().is_tga_file(tmp_path / "missing.tga") is False

    @pytest.mark.parametrize("compressed", [False, True])
    @pytest.mark.parametrize("top_to_bottom", [False, True])
    def test_decode(self, tmp_path: Path, compressed: bool, top_to_bottom: bool) -> None:
        path = create_tga_file(
            tmp_path / "image.tga", compressed=compressed, top_to_bottom=top_to_bottom
        )
        img = TGAImageDecoder().decode(path)

        assert img.size == (2, 2)
        assert img.getpixel((0, 0)) == (255, 0, 0, 255)
        assert img.getpixel((1, 1)) == (10, 20, 30, 255)

    def test_get_info(self, tmp_path: Path) -> None:
        path = create_tga_file(tmp_path / "image.tga", pixel_depth=24, compressed=True)
        metadata = TGAImageDecoder().get_info(path)

        assert metadata.pixel_depth == 24
        assert metadata.compressed is True

    def test_decode_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            TGAImageDecoder().decode(tmp_path / "missing.tga")

    def test_decode_pillow_written_tga(self, tmp_path: Path) -> None:
        """Pillowが書き出したTGA（左下原点）をデコードできる"""
        path = tmp_path / "pillow.tga"
        source = Image.new("RGB", (3, 2), (0, 0, 0))
        source.putpixel((0, 0), (200, 100, 50))
        source.save(path, "TGA")

        img = TGAImageDecoder().decode(path)

        assert img.getpixel((0, 0)) == (200, 100, 50, 255)
        assert img.getpixel((2, 1)) == (0, 0, 0, 255)


class TestTGAConverter:
    """TGAConverterのテスト"""

    @pytest.mark.parametrize(
        "output_format, pil_format",
        [
            pytest.param(OutputFormat.PNG, "PNG", id="正常系: PNG"),
            pytest.param(OutputFormat.WEBP, "WEBP", id="正常系: WebP"),
            pytest.param(OutputFormat.BMP, "BMP", id="正常系: BMP"),
        ],
    )
    def test_convert(self, tmp_path: Path, output_format: OutputFormat, pil_format: str) -> None:
        source = create_tga_file(tmp_path / "image.tga", pixel_depth=24)
        converter = TGAConverter(output_format)
        dest = converter.default_dest(source)

        result = converter.convert(source, dest)

        assert result.status == ConversionStatus.SUCCESS
        assert result.dest_path == dest
        assert (result.width, result.height) == (2, 2)
        assert result.bytes_after > 0
        with Image.open(dest) as img:
            assert img.format == pil_format
            assert img.convert("RGB").getpixel((0, 0)) == (255, 0, 0)

    def test_convert_keeps_alpha(self, tmp_path: Path) -> None:
        source = create_tga_file(tmp_path / "image.tga", pixel_depth=32)
        dest = tmp_path / "out" / "image.png"

        result = TGAConverter().convert(source, dest)

        assert result.is_success
        with Image.open(dest) as img:
            assert img.mode == "RGBA"
            assert img.getpixel((0, 1)) == (0, 0, 255, 0)

    def test_convert_drops_alpha_for_opaque_source(self, tmp_path: Path) -> None:
        source = create_tga_file(tmp_path / "image.tga", pixel_depth=24)
        dest = tmp_path / "image.png"

        TGAConverter().convert(source, dest)

        with Image.open(dest) as img:
            assert img.mode == "RGB"

    def test_convert_broken_file(self, tmp_path: Path) -> None:
        """不正なTGAは例外を送出せずFAILEDになる"""
        source = tmp_path / "broken.tga"
        source.write_bytes(create_tga_file(tmp_path / "ok.tga").read_bytes()[:20])

        result = TGAConverter().convert(source, tmp_path / "broken.png")

        assert result.status == ConversionStatus.FAILED
        assert result.dest_path is None
        assert "不完全" in result.message
        assert not (tmp_path / "broken.png").exists()

    def test_convert_broken_file_is_logged(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        source = tmp_path / "broken.tga"
        source.write_bytes(b"\x00" * 10)
        logger = CodecLogger(LogConfig(use_color=False))

        result = TGAConverter(logger=logger).convert(source, tmp_path / "broken.png")

        assert result.status == ConversionStatus.FAILED
        assert "エラー: broken.tga: デコードに失敗しました" in capsys.readouterr().err

    def test_convert_unwritable_dest(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """出力先に書き込めない場合も例外を送出せずFAILEDになる"""
        source = create_tga_file(tmp_path / "image.tga")
        blocker = tmp_path / "file.txt"
        blocker.write_text("not a directory")
        logger = CodecLogger(LogConfig(use_color=False))

        result = TGAConverter(logger=logger).convert(source, blocker / "out.png")

        assert result.status == ConversionStatus.FAILED
        assert result.dest_path is None
        assert "書き出しに失敗しました" in result.message
        assert "エラー: image.tga: 書き出しに失敗しました" in capsys.readouterr().err

    def test_supported_extensions(self) -> None:
        converter = TGAConverter(OutputFormat.WEBP)
        assert converter.supported_extensions == (".tga", ".tpic")
        assert converter.get_output_extension() == ".webp"


class TestTGAEncoder:
    """TGAEncoderのテスト"""

    def test_convert_png_to_tga(self, tmp_path: Path) -> None:
        source = tmp_path / "image.png"
        to_pil_image(DecodedImage(2, 2, PIXELS)).save(source)
        encoder = TGAEncoder()
        dest = encoder.default_dest(source)

        result = encoder.convert(source, dest)

        assert result.is_success
        assert result.bytes_after == dest.stat().st_size
        metadata, image = decode(dest.read_bytes())
        assert metadata.pixel_depth == 32
        assert metadata.alpha_depth == 8
        assert metadata.compressed is True
        assert image.pixels == PIXELS

    @pytest.mark.parametrize(
        "pixel_depth, expected",
        [
            pytest.param(24, RGBColour(0, 0, 255, 255), id="正常系: 24bitはアルファを破棄"),
            pytest.param(16, RGBColour(0, 0, 255, 0), id="正常系: 16bitは属性ビット"),
        ],
    )
    def test_encode_depth(self, pixel_depth: int, expected: RGBColour) -> None:
        config = EncodeConfig(pixel_depth=pixel_depth, compress=False)
        data = TGAEncoder(config).encode_image(to_pil_image(DecodedImage(2, 2, PIXELS)))

        metadata, image = decode(data)

        assert metadata.pixel_depth == pixel_depth
        assert image.get_pixel(0, 1) == expected

    def test_build_metadata_from_config(self) -> None:
        config = EncodeConfig(
            compress=False, top_to_bottom=False, right_to_left=True, image_id="作品"
        )
        metadata = TGAEncoder(config).build_metadata(DecodedImage(1, 1, (PIXELS[0],)))

        assert metadata.kind == ImageKind.TRUE_COLOUR
        assert metadata.compressed is False
        assert metadata.top_to_bottom is False
        assert metadata.right_to_left is True
        assert metadata.image_id == "作品".encode()

    def test_pillow_can_read_output(self, tmp_path: Path) -> None:
        """出力したTGAをPillowで読み込める"""
        path = tmp_path / "image.tga"
        config = EncodeConfig(pixel_depth=24, compress=False)
        path.write_bytes(TGAEncoder(config).encode_image(Image.new("RGB", (2, 2), (9, 8, 7))))

        with Image.open(path) as img:
            assert img.size == (2, 2)
            assert img.convert("RGB").getpixel((1, 1)) == (9, 8, 7)

    def test_quantisation_is_logged(self, capsys: pytest.CaptureFixture[str]) -> None:
        """出力深度に合わせて色を丸めた場合は警告を出す"""
        logger = CodecLogger(LogConfig(use_color=False))
        encoder = TGAEncoder(EncodeConfig(pixel_depth=24), logger=logger)

        data = encoder.encode_image(to_pil_image(DecodedImage(2, 2, PIXELS)))

        _, image = decode(data)
        assert all(colour.a == 255 for colour in image.pixels)
        assert "警告: 24bitで表現できない色を丸めました（2ピクセル）" in capsys.readouterr().out

    def test_exact_colours_are_not_logged(self, capsys: pytest.CaptureFixture[str]) -> None:
        logger = CodecLogger(LogConfig(use_color=False))
        TGAEncoder(logger=logger).encode_image(to_pil_image(DecodedImage(2, 2, PIXELS)))
        assert "警告" not in capsys.readouterr().out
