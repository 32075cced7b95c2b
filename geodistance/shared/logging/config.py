"""ロギング設定"""
import logging
import sys
from typing import Optional, TextIO

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# 出力が多いため WARNING 以上に抑えるロガー
NOISY_LOGGERS = ("urllib3", "requests", "google", "googlemaps")

_logger_configured = False


def setup_logging(
    level: str = "INFO",
    enable_cloud_logging: bool = False,
    project_id: Optional[str] = None,
    stream: Optional[TextIO] = None,
    fmt: str = DEFAULT_FORMAT,
) -> None:
    """
    ルートロガーを一度だけ設定する

    CLIは標準出力にJSONを書くため、ログの出力先は標準エラーがデフォルト。

    Args:
        level: ログレベル (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        enable_cloud_logging: Cloud Loggingハンドラーを追加するか
        project_id: GCPプロジェクトID (Cloud Logging有効時に使用)
        stream: 出力先ストリーム（Noneの場合は標準エラー）
        fmt: ログフォーマット
    """
    global _logger_configured

    if _logger_configured:
        return

    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(stream or sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter(fmt=fmt, datefmt="%Y-%m-%d %H:%M:%S"))
    root_logger.addHandler(console_handler)

    if enable_cloud_logging:
        try:
            from google.cloud import logging as cloud_logging

            client = cloud_logging.Client(project=project_id)
            cloud_handler = cloud_logging.handlers.CloudLoggingHandler(client)
            cloud_handler.setLevel(log_level)
            root_logger.addHandler(cloud_handler)

            logging.info("Cloud Logging enabled")
        except Exception as e:
            logging.warning(f"Failed to enable Cloud Logging: {e}")

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _logger_configured = True
    logging.info(f"Logging configured with level: {level}")


def reset_logging() -> None:
    """設定済みフラグを戻し、ルートロガーのハンドラーを外す"""
    global _logger_configured

    logging.getLogger().handlers.clear()
    _logger_configured = False


def get_logger(name: str) -> logging.Logger:
    """
    指定名のロガーを取得

    Args:
        name: ロガー名（通常は__name__を指定）

    Returns:
        ロガーインスタンス
    """
    return logging.getLogger(name)
