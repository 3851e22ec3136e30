"""画像ID欄の文字コード検出モジュール

TGAの画像ID欄は文字コードが規定されていないため、
ASCIIでなければchardetで文字コードを推定してデコードする。
"""

import chardet

FALLBACK_ENCODING: str = "latin-1"
"""検出に失敗した場合に使用するエンコーディング（全バイト値をデコード可能）"""


def detect_encoding(raw: bytes) -> str | None:
    """バイト列の文字コードを推定する

    Args:
        raw: 判定対象のバイト列

    Returns:
        推定されたエンコーディング名、推定できない場合はNone
    """
    if not raw:
        return None
    result = chardet.detect(raw)
    encoding = result.get("encoding")
    if encoding is None:
        return None
    return encoding.lower()


def decode_image_id(raw: bytes) -> str:
    """画像ID欄を文字列にデコードする

    末尾のNULバイトは除去する。

    Args:
        raw: 画像ID欄のバイト列

    Returns:
        デコードされた文字列
    """
    text = raw.rstrip(b"\x00")
    if not text:
        return ""
    if text.isascii():
        return text.decode("ascii")

    encoding = detect_encoding(text)
    if encoding is not None:
        try:
            return text.decode(encoding)
        except (LookupError, UnicodeDecodeError):
            pass
    return text.decode(FALLBACK_ENCODING)
