from __future__ import annotations

import logging
import sys
import time
from functools import lru_cache
from logging import Logger

ROOT_LOGGER_NAME = "dcreport"
_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_CONFIGURED = False


class UtcFormatter(logging.Formatter):
    converter = time.gmtime


class _StderrHandler(logging.StreamHandler):
    """書き込み時点の sys.stderr に出力する（差し替えられていても追従する）。"""

    def emit(self, record: logging.LogRecord) -> None:
        self.stream = sys.stderr
        super().emit(record)


def configure_logging(level: str | int = "INFO") -> Logger:
    """dcreport 配下のロガーにハンドラを1つだけ設定する（複数回呼んでも増えない）。"""
    global _CONFIGURED
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if isinstance(level, str):
        resolved = logging.getLevelName(level.strip().upper())
        if not isinstance(resolved, int):
            raise ValueError(f"不明なログレベルです: {level}")
        level = resolved
    root.setLevel(level)
    if not _CONFIGURED:
        handler = _StderrHandler()
        handler.setFormatter(UtcFormatter(_FORMAT))
        root.addHandler(handler)
        root.propagate = False
        _CONFIGURED = True
    return root


@lru_cache(None)
def get_logger(name: str = ROOT_LOGGER_NAME) -> Logger:
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)
