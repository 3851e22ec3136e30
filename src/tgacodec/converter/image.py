"""画像変換モジュール

TGA画像と他のラスター形式（PNG/WebP/BMP等）をPillow経由で相互変換する。
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from PIL import Image

from tgacodec.codec import DecodedImage, ImageKind, TGACodec, TGAMetadata
from tgacodec.codec.pixel import quantise_colour
from tgacodec.colour import RGBColour
from tgacodec.config import EncodeConfig
from tgacodec.converter.base import BaseConverter, ConversionResult, ConversionStatus
from tgacodec.errors import TGAError
from tgacodec.logger import CodecLogger


class OutputFormat(Enum):
    """デコード時の出力形式"""

    PNG = "png"
    WEBP = "webp"
    BMP = "bmp"


_ALPHA_DEPTHS: dict[int, int] = {16: 1, 24: 0, 32: 8}


def to_pil_image(image: DecodedImage) -> Image.Image:
    """デコード済み画像をRGBAのPIL.Imageに変換する

    Args:
        image: デコード済み画像

    Returns:
        RGBAモードのPIL.Imageオブジェクト
    """
    size = (image.width, image.height)
    if not image.pixels:
        return Image.new("RGBA", size)
    data = bytearray(len(image.pixels) * 4)
    for i, colour in enumerate(image.pixels):
        data[i * 4 : i * 4 + 4] = bytes(colour.to_tuple())
    return Image.frombytes("RGBA", size, bytes(data))


def from_pil_image(pil_image: Image.Image) -> DecodedImage:
    """PIL.Imageをデコード済み画像の形式に変換する

    Args:
        pil_image: 変換元のPIL.Imageオブジェクト（任意のモード）

    Returns:
        左上原点・RGBAの画像
    """
    rgba = pil_image if pil_image.mode == "RGBA" else pil_image.convert("RGBA")
    raw = rgba.tobytes()
    pixels = tuple(
        RGBColour(raw[i], raw[i + 1], raw[i + 2], raw[i + 3]) for i in range(0, len(raw), 4)
    )
    return DecodedImage(width=rgba.width, height=rgba.height, pixels=pixels)


class TGAImageDecoder:
    """TGAファイルデコーダー

    TGAファイルを読み込み、PIL.Imageオブジェクトに変換する。
    """

    def __init__(self, logger: CodecLogger | None = None) -> None:
        self._codec = TGACodec(logger=logger)

    def is_tga_file(self, file_path: Path) -> bool:
        """指定されたファイルが対応するTGA形式かどうかをヘッダーから判定する

        TGAにはマジックバイトがないため、拡張子とヘッダーの妥当性で判定する。
        """
        if not file_path.is_file() or file_path.suffix.lower() not in (".tga", ".tpic"):
            return False

        try:
            with open(file_path, "rb") as f:
                header = f.read(18)
        except OSError:
            return False
        return self._codec.is_valid(header)

    def get_info(self, file_path: Path) -> TGAMetadata:
        """TGA画像のメタ情報を取得する

        Raises:
            FileNotFoundError: ファイルが存在しない場合
            TGAError: 不正なTGAデータの場合
        """
        metadata, _ = self.read(file_path)
        return metadata

    def decode(self, file_path: Path) -> Image.Image:
        """TGA画像をデコードしてPIL.Imageオブジェクトを返す

        Raises:
            FileNotFoundError: ファイルが存在しない場合
            TGAError: 不正なTGAデータの場合
        """
        _, image = self.read(file_path)
        return to_pil_image(image)

    def read(self, file_path: Path) -> tuple[TGAMetadata, DecodedImage]:
        """TGAファイルを読み込み、メタ情報とデコード済み画像を返す"""
        if not file_path.exists():
            raise FileNotFoundError(f"ファイルが見つかりません: {file_path}")
        return self._codec.decode(file_path.read_bytes())


class TGAConverter(BaseConverter):
    """TGAから他形式への変換クラス

    Attributes:
        output_format: 出力形式
    """

    def __init__(
        self,
        output_format: OutputFormat = OutputFormat.PNG,
        logger: CodecLogger | None = None,
    ) -> None:
        self._output_format = output_format
        self._logger = logger
        self._decoder = TGAImageDecoder(logger=logger)

    @property
    def output_format(self) -> OutputFormat:
        """出力形式を返す"""
        return self._output_format

    @property
    def supported_extensions(self) -> tuple[str, ...]:
        return (".tga", ".tpic")

    def get_output_extension(self) -> str:
        return f".{self._output_format.value}"

    def convert(self, source: Path, dest: Path) -> ConversionResult:
        """TGA画像を出力形式に変換する

        デコードまたは書き出しに失敗した場合は例外を送出せずFAILEDの結果を返す。

        Args:
            source: 変換元TGAファイルのパス
            dest: 変換先ファイルのパス

        Returns:
            変換結果
        """
        self._validate_source(source)
        bytes_before = self._get_file_size(source)

        try:
            metadata, decoded = self._decoder.read(source)
        except TGAError as e:
            return self._failed(source, f"デコードに失敗しました: {e}", bytes_before)

        img = to_pil_image(decoded)
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            self._save(img, dest, keep_alpha=metadata.has_alpha)
        except OSError as e:
            return self._failed(source, f"書き出しに失敗しました: {e}", bytes_before)
        finally:
            img.close()

        if self._logger is not None:
            self._logger.log_conversion(source, dest, ConversionStatus.SUCCESS.value)

        return ConversionResult(
            source_path=source,
            dest_path=dest,
            status=ConversionStatus.SUCCESS,
            width=metadata.width,
            height=metadata.height,
            bytes_before=bytes_before,
            bytes_after=self._get_file_size(dest),
        )

    def _failed(self, source: Path, message: str, bytes_before: int) -> ConversionResult:
        if self._logger is not None:
            self._logger.error(f"{source.name}: {message}")
        return ConversionResult(
            source_path=source,
            dest_path=None,
            status=ConversionStatus.FAILED,
            message=message,
            bytes_before=bytes_before,
        )

    def _save(self, image: Image.Image, dest: Path, keep_alpha: bool) -> None:
        if not keep_alpha:
            image = image.convert("RGB")
        if self._output_format == OutputFormat.WEBP:
            image.save(dest, "WEBP", lossless=True)
        elif self._output_format == OutputFormat.BMP:
            image.save(dest, "BMP")
        else:
            image.save(dest, "PNG")


class TGAEncoder(BaseConverter):
    """他形式からTGAへの変換クラス

    Pillowで読み込める画像をtrue-colourのTGAに変換する。
    """

    def __init__(
        self,
        config: EncodeConfig | None = None,
        logger: CodecLogger | None = None,
    ) -> None:
        self._config = config or EncodeConfig()
        self._logger = logger
        self._codec = TGACodec(logger=logger)

    @property
    def config(self) -> EncodeConfig:
        return self._config

    @property
    def supported_extensions(self) -> tuple[str, ...]:
        return (".png", ".bmp", ".jpg", ".jpeg", ".webp", ".gif")

    def get_output_extension(self) -> str:
        return ".tga"

    def build_metadata(self, image: DecodedImage) -> TGAMetadata:
        """エンコード設定から画像のメタ情報を組み立てる"""
        depth = self._config.pixel_depth
        return TGAMetadata(
            kind=ImageKind.TRUE_COLOUR,
            pixel_depth=depth,
            width=image.width,
            height=image.height,
            compressed=self._config.compress,
            alpha_depth=_ALPHA_DEPTHS.get(depth, 0),
            right_to_left=self._config.right_to_left,
            top_to_bottom=self._config.top_to_bottom,
            image_id=self._config.image_id.encode("utf-8"),
        )

    def encode_image(self, pil_image: Image.Image) -> bytes:
        """PIL.ImageをTGA形式のバイト列に変換する

        出力するピクセル深度で表現できない色（アルファ、16bit時の下位ビット）は
        エンコード前に丸める。
        """
        image = from_pil_image(pil_image)
        metadata = self.build_metadata(image)
        return self._codec.encode(metadata, self._quantise(image, metadata))

    def _quantise(self, image: DecodedImage, metadata: TGAMetadata) -> DecodedImage:
        has_alpha = metadata.alpha_depth > 0
        pixels = tuple(
            quantise_colour(colour, metadata.pixel_depth, has_alpha) for colour in image.pixels
        )
        if pixels == image.pixels:
            return image
        if self._logger is not None:
            self._logger.warning(
                f"{metadata.pixel_depth}bitで表現できない色を丸めました"
                f"（{sum(a != b for a, b in zip(pixels, image.pixels))}ピクセル）"
            )
        return DecodedImage(width=image.width, height=image.height, pixels=pixels)

    def convert(self, source: Path, dest: Path) -> ConversionResult:
        """画像ファイルをTGAに変換する

        Args:
            source: 変換元画像ファイルのパス
            dest: 変換先TGAファイルのパス

        Returns:
            変換結果
        """
        self._validate_source(source)
        bytes_before = self._get_file_size(source)

        with Image.open(source) as img:
            data = self.encode_image(img)
            width, height = img.size

        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(data)

        if self._logger is not None:
            self._logger.log_conversion(source, dest, ConversionStatus.SUCCESS.value)

        return ConversionResult(
            source_path=source,
            dest_path=dest,
            status=ConversionStatus.SUCCESS,
            width=width,
            height=height,
            bytes_before=bytes_before,
            bytes_after=len(data),
        )
