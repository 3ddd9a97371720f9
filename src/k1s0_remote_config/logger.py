"""structlog ベースのロガー設定

ライブラリ内のモジュールロガーはすべて ``k1s0_remote_config`` 配下の名前を持つ。
configure_logging はその配下だけにハンドラとレベルを設定し、
アプリケーション側のルートロガーには触れない。
"""

from __future__ import annotations

import logging
import sys
from typing import IO, Any

import structlog

LOGGER_NAME = "k1s0_remote_config"

_handler: logging.Handler | None = None


def get_logger(name: str = LOGGER_NAME, **initial_values: Any) -> structlog.stdlib.BoundLogger:
    """ライブラリ名を束縛したモジュールロガーを返す。"""
    return structlog.stdlib.get_logger(name, library=LOGGER_NAME, **initial_values)


def configure_logging(
    level: str = "INFO",
    format: str = "json",
    stream: IO[str] | None = None,
) -> structlog.stdlib.BoundLogger:
    """remote config クライアントのログ出力を設定し、ロガーを返す。

    Args:
        level: ライブラリロガーのレベル ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
        format: 出力形式 ("json" or "text")
        stream: 出力先。省略時は標準出力

    Returns:
        ライブラリ名を束縛した structlog.stdlib.BoundLogger
    """
    global _handler

    library_logger = logging.getLogger(LOGGER_NAME)
    library_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    if _handler is not None:
        library_logger.removeHandler(_handler)
    _handler = logging.StreamHandler(stream or sys.stdout)
    _handler.setFormatter(logging.Formatter("%(message)s"))
    library_logger.addHandler(_handler)
    library_logger.propagate = False

    processors: list[structlog.types.Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if format == "json":
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    return get_logger()
