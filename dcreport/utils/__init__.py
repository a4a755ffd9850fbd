"""共通ユーティリティ。"""

from .logger import configure_logging, get_logger
from .units import IEC_UNITS, format_bytes_iec, format_number

__all__ = ["IEC_UNITS", "configure_logging", "format_bytes_iec", "format_number", "get_logger"]
