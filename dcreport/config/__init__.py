"""設定読み込みとスキーマ定義。"""

from .config import (
    ALLOWED_LOG_LEVELS,
    ConfigError,
    LoggingConfig,
    PathsConfig,
    ReportConfig,
    ReportSettings,
    load_config,
    normalize_config,
)

__all__ = [
    "ALLOWED_LOG_LEVELS",
    "ConfigError",
    "LoggingConfig",
    "PathsConfig",
    "ReportConfig",
    "ReportSettings",
    "load_config",
    "normalize_config",
]
