"""TGAコーデックの例外定義

デコード・エンコード処理で発生するエラーを定義する。
すべての例外はTGAErrorを基底とし、呼び出しに対して終端的に扱われる
（部分的にデコードされた画像は返さない）。
"""


class TGAError(ValueError):
    """TGAコーデックエラーの基底クラス"""

    pass


class TooSmall(TGAError):
    """データがヘッダーサイズ（18バイト）に満たない"""

    pass


class TruncatedInput(TGAError):
    """宣言されたセクションが残りのデータを超えている"""

    pass


class UnsupportedColourMapDepth(TGAError):
    """カラーマップのエントリサイズが未対応"""

    pass


class UnsupportedPixelEncoding(TGAError):
    """画像種別とピクセル深度の組み合わせが未対応"""

    pass


class PaletteIndexOutOfRange(TGAError):
    """パレットインデックスがカラーマップの範囲外"""

    pass


class MalformedRLEStream(TGAError):
    """RLEストリームが目標ピクセル数に達する前に終端した"""

    pass


class PixelCountOverflow(TGAError):
    """RLEパケットが画像の宣言ピクセル数を超えて展開される"""

    pass


class ColourNotInPalette(TGAError):
    """エンコード対象の色がカラーマップに存在しない"""

    pass
