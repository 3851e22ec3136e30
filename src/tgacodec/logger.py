"""ログ出力のインターフェース定義

このモジュールは、tgacodecのデコード・エンコード処理のログ出力を定義する。
VerboseLevel (詳細ログレベル)に応じた出力制御を行い、
CLIでの変換処理の状況をユーザーにわかりやすく表示するために使用される。
"""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum
from pathlib import Path
from typing import TextIO


class VerboseLevel(IntEnum):
    """詳細ログレベル

    ログ出力の詳細度を制御するための列挙型。
    QUIET: エラーのみ出力
    NORMAL: 結果のサマリ出力
    VERBOSE: 変換ファイル一覧も出力（-vオプション）
    DEBUG: ヘッダー解析等の内部情報も出力（-vvオプション）
    """

    QUIET = -1
    NORMAL = 0
    VERBOSE = 1
    DEBUG = 2


@dataclass
class LogConfig:
    """ログ設定

    Attributes:
        verbose_level: ログの詳細度レベル
        log_file: ログ出力先ファイルパス（Noneの場合はファイル出力なし）
        use_color: カラー出力を使用するか
    """

    verbose_level: VerboseLevel = VerboseLevel.NORMAL
    log_file: Path | None = None
    use_color: bool = True


class CodecLogger:
    """コーデックログ出力クラス

    VerboseLevelに応じてメッセージのフィルタリングを行う。

    使用例:
        >>> config = LogConfig(verbose_level=VerboseLevel.DEBUG)
        >>> logger = CodecLogger(config)
        >>> logger.debug("リビジョン: extended")
    """

    _ANSI_ESCAPE_PATTERN = re.compile(r"\x1b\[[0-9;]*m")

    _COLORS: dict[str, str] = {
        "ERROR": "\x1b[31m",
        "WARNING": "\x1b[33m",
        "DEBUG": "\x1b[2m",
    }
    _RESET = "\x1b[0m"

    def __init__(self, config: LogConfig | None = None) -> None:
        """ロガーを初期化する

        Args:
            config: ログ設定（Noneの場合はデフォルト設定）
        """
        self._config = config or LogConfig()
        self._log_file: TextIO | None = None
        if self._config.log_file:
            # クラス自体がコンテキストマネージャとして動作し、__exit__でファイルを閉じる
            self._log_file = open(self._config.log_file, "w", encoding="utf-8")  # noqa: SIM115

    def __enter__(self) -> CodecLogger:
        """コンテキストマネージャのエントリポイント"""
        return self

    def __exit__(self, *args: object) -> None:
        """コンテキストマネージャの終了処理"""
        self.close()

    def close(self) -> None:
        """ログファイルを閉じる"""
        if self._log_file:
            self._log_file.close()
            self._log_file = None

    @property
    def config(self) -> LogConfig:
        """ログ設定を取得する"""
        return self._config

    def _colorize(self, level: str, message: str) -> str:
        color = self._COLORS.get(level)
        if not self._config.use_color or color is None:
            return message
        return f"{color}{message}{self._RESET}"

    def _print(self, message: str, file: TextIO | None = None) -> None:
        """メッセージを出力する

        Args:
            message: 出力するメッセージ
            file: 出力先（Noneの場合は標準出力）
        """
        if file is None:
            file = sys.stdout
        print(message, file=file)

    def _log_to_file(self, level: str, message: str) -> None:
        """ファイルにログ出力する

        Args:
            level: ログレベル文字列
            message: 出力するメッセージ
        """
        if self._log_file:
            timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
            clean_message = self._strip_ansi(message)
            self._log_file.write(f"[{timestamp}] {level}: {clean_message}\n")
            self._log_file.flush()

    def _strip_ansi(self, text: str) -> str:
        """ANSIエスケープシーケンスを除去する"""
        return self._ANSI_ESCAPE_PATTERN.sub("", text)

    def info(self, message: str) -> None:
        """情報メッセージを出力する（NORMAL以上）"""
        if self._config.verbose_level >= VerboseLevel.NORMAL:
            self._print(message)
        self._log_to_file("INFO", message)

    def verbose(self, message: str) -> None:
        """詳細メッセージを出力する（VERBOSE以上）"""
        if self._config.verbose_level >= VerboseLevel.VERBOSE:
            self._print(message)
        self._log_to_file("VERBOSE", message)

    def debug(self, message: str) -> None:
        """デバッグメッセージを出力する（DEBUG以上）"""
        if self._config.verbose_level >= VerboseLevel.DEBUG:
            self._print(self._colorize("DEBUG", message))
        self._log_to_file("DEBUG", message)

    def error(self, message: str) -> None:
        """エラーメッセージを出力する（常に出力）"""
        self._print(self._colorize("ERROR", f"エラー: {message}"), file=sys.stderr)
        self._log_to_file("ERROR", message)

    def warning(self, message: str) -> None:
        """警告メッセージを出力する（QUIET以上）"""
        if self._config.verbose_level > VerboseLevel.QUIET:
            self._print(self._colorize("WARNING", f"警告: {message}"))
        self._log_to_file("WARNING", message)

    def log_conversion(self, source: Path, dest: Path, status: str) -> None:
        """ファイル変換をログする（VERBOSE以上）

        Args:
            source: 変換元ファイルパス
            dest: 変換先ファイルパス
            status: 変換ステータス
        """
        self.verbose(f"変換: {source.name} -> {dest.name} [{status}]")
