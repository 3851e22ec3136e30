"""TGA RLE圧縮モジュール

TGAのパケット単位のランレングス圧縮を展開・生成する。

パケット構造:
- 制御バイト: 最上位ビットが1ならランレングスパケット、0なら生パケット
- 下位7ビット: ピクセル数 - 1（1〜128ピクセル）
- ランレングスパケット: 1ピクセル分のサンプルが続き、ピクセル数だけ繰り返される
- 生パケット: ピクセル数分のサンプルがそのまま続く
"""

from typing import Protocol

from tgacodec.errors import MalformedRLEStream, PixelCountOverflow


class RLEDecoderProtocol(Protocol):
    """RLE展開インターフェース"""

    def decode(
        self, data: bytes, offset: int, sample_size: int, pixel_count: int
    ) -> tuple[bytes, int]:
        """RLE圧縮データを展開する

        Args:
            data: 圧縮データを含むバイト列
            offset: 圧縮データの開始位置
            sample_size: 1ピクセルのバイト数
            pixel_count: 展開後のピクセル数

        Returns:
            (展開されたサンプル列, 読み取り終了位置)のタプル

        Raises:
            MalformedRLEStream: 不完全な圧縮データの場合
            PixelCountOverflow: パケットが宣言ピクセル数を超える場合
        """
        ...


class RLEDecoder:
    """RLE展開クラス"""

    RUN_FLAG: int = 0x80
    """ランレングスパケットを示す制御バイトのビット"""

    COUNT_MASK: int = 0x7F
    """制御バイトのピクセル数部分"""

    def decode(
        self, data: bytes, offset: int, sample_size: int, pixel_count: int
    ) -> tuple[bytes, int]:
        """RLE圧縮データを展開する

        pixel_count個のサンプルが揃った時点で展開を終了し、
        それ以降のパケットは無視する。

        Args:
            data: 圧縮データを含むバイト列
            offset: 圧縮データの開始位置
            sample_size: 1ピクセルのバイト数
            pixel_count: 展開後のピクセル数

        Returns:
            (展開されたサンプル列, 読み取り終了位置)のタプル

        Raises:
            MalformedRLEStream: 目標ピクセル数に達する前にデータが尽きた場合
            PixelCountOverflow: パケットが宣言ピクセル数を超えて展開される場合
        """
        output = bytearray()
        produced = 0
        pos = offset
        data_len = len(data)

        while produced < pixel_count:
            if pos >= data_len:
                raise MalformedRLEStream(
                    "不完全なRLEデータ: 制御バイトが不足しています"
                    f"（{produced}/{pixel_count}ピクセル）"
                )

            control = data[pos]
            pos += 1
            count = (control & self.COUNT_MASK) + 1

            if produced + count > pixel_count:
                raise PixelCountOverflow(
                    "RLEパケットが画像サイズを超えています: "
                    f"{produced}+{count} > {pixel_count}ピクセル"
                )

            if control & self.RUN_FLAG:
                if pos + sample_size > data_len:
                    raise MalformedRLEStream("不完全なRLEデータ: ランレングスのサンプルが不足しています")
                output += data[pos : pos + sample_size] * count
                pos += sample_size
            else:
                length = sample_size * count
                if pos + length > data_len:
                    raise MalformedRLEStream("不完全なRLEデータ: 生パケットのサンプルが不足しています")
                output += data[pos : pos + length]
                pos += length

            produced += count

        return bytes(output), pos


class RLEEncoder:
    """RLE圧縮クラス

    同一サンプルが2個以上連続する部分をランレングスパケット、
    それ以外を生パケットとする貪欲法でパケット化する。
    パケットは走査線をまたがない。
    """

    MAX_PACKET: int = 128
    """1パケットの最大ピクセル数"""

    def encode(self, samples: bytes, sample_size: int, width: int) -> bytes:
        """サンプル列をRLE圧縮する

        Args:
            samples: ファイル格納順のサンプル列
            sample_size: 1ピクセルのバイト数
            width: 走査線のピクセル数

        Returns:
            RLE圧縮されたバイト列
        """
        if width <= 0 or not samples:
            return b""

        row_bytes = width * sample_size
        output = bytearray()
        for row_start in range(0, len(samples), row_bytes):
            row = samples[row_start : row_start + row_bytes]
            pixels = [row[i : i + sample_size] for i in range(0, len(row), sample_size)]
            self._encode_row(pixels, output)
        return bytes(output)

    def _run_length(self, pixels: list[bytes], start: int) -> int:
        """startから始まる同一サンプルの連続数を返す（最大MAX_PACKET）"""
        end = min(start + self.MAX_PACKET, len(pixels))
        length = 1
        while start + length < end and pixels[start + length] == pixels[start]:
            length += 1
        return length

    def _encode_row(self, pixels: list[bytes], output: bytearray) -> None:
        pos = 0
        total = len(pixels)
        while pos < total:
            run = self._run_length(pixels, pos)
            if run >= 2:
                output.append(0x80 | (run - 1))
                output += pixels[pos]
                pos += run
                continue

            # 次のランが始まるまで生パケットに集める
            raw_end = pos + 1
            while (
                raw_end < total
                and raw_end - pos < self.MAX_PACKET
                and self._run_length(pixels, raw_end) < 2
            ):
                raw_end += 1
            output.append(raw_end - pos - 1)
            for pixel in pixels[pos:raw_end]:
                output += pixel
            pos = raw_end
