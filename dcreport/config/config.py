from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml


ALLOWED_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class ConfigError(ValueError):
    """設定の検証・読み込みで失敗した際の例外。"""


@dataclass(frozen=True)
class PathsConfig:
    # 入力ファイル（clients / deals / flagged / audit trails）の相対パスの基準
    data_dir: str = "."
    reports_dir: str = "reports"

    def resolve_input(self, path: str | Path) -> Path:
        """相対パスは data_dir 基準で解決する。絶対パスはそのまま。"""
        candidate = Path(path)
        if candidate.is_absolute():
            return candidate
        return Path(self.data_dir) / candidate

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ReportSettings:
    clients_query_limit: int = 20
    max_workers: int = 1
    color_seed: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ReportConfig:
    paths: PathsConfig
    report: ReportSettings = field(default_factory=ReportSettings)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def to_dict(self) -> dict[str, Any]:
        return {
            "paths": self.paths.to_dict(),
            "report": self.report.to_dict(),
            "logging": self.logging.to_dict(),
        }


def _ensure_str(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"{field_name} は空でない文字列である必要があります")
    return value.strip()


def _ensure_positive_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{field_name} は整数である必要があります")
    if value < 1:
        raise ConfigError(f"{field_name} は 1 以上である必要があります")
    return value


def _normalize_paths(raw: Any) -> PathsConfig:
    if not isinstance(raw, Mapping):
        raise ConfigError("paths はマッピングである必要があります")
    data_dir = _ensure_str(raw.get("data_dir", "."), "paths.data_dir")
    reports_dir = _ensure_str(raw.get("reports_dir", "reports"), "paths.reports_dir")
    return PathsConfig(data_dir=data_dir, reports_dir=reports_dir)


def _normalize_report(raw: Any) -> ReportSettings:
    if raw is None:
        raw = {}
    if not isinstance(raw, Mapping):
        raise ConfigError("report はマッピングである必要があります")

    limit = _ensure_positive_int(raw.get("clients_query_limit", 20), "report.clients_query_limit")
    max_workers = _ensure_positive_int(raw.get("max_workers", 1), "report.max_workers")

    color_seed = raw.get("color_seed")
    if color_seed is not None and (isinstance(color_seed, bool) or not isinstance(color_seed, int)):
        raise ConfigError("report.color_seed は整数または null である必要があります")

    return ReportSettings(clients_query_limit=limit, max_workers=max_workers, color_seed=color_seed)


def _normalize_logging(raw: Any) -> LoggingConfig:
    if raw is None:
        raw = {}
    if not isinstance(raw, Mapping):
        raise ConfigError("logging はマッピングである必要があります")
    level = _ensure_str(raw.get("level", "INFO"), "logging.level").upper()
    if level not in ALLOWED_LOG_LEVELS:
        raise ConfigError(f"logging.level は {sorted(ALLOWED_LOG_LEVELS)} のいずれかである必要があります")
    return LoggingConfig(level=level)


def normalize_config(raw: Any) -> ReportConfig:
    if not isinstance(raw, Mapping):
        raise ConfigError("設定はマッピングである必要があります")
    if "paths" not in raw:
        raise ConfigError("paths は必須です")
    paths = _normalize_paths(raw["paths"])
    report = _normalize_report(raw.get("report"))
    logging_cfg = _normalize_logging(raw.get("logging"))
    return ReportConfig(paths=paths, report=report, logging=logging_cfg)


def load_config(path: str | Path) -> ReportConfig:
    file_path = Path(path)
    if not file_path.exists():
        raise ConfigError(f"設定ファイルが見つかりません: {file_path}")
    try:
        content = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"設定ファイルの読み込みに失敗しました: {exc}") from exc

    try:
        raw = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise ConfigError(f"YAMLのパースに失敗しました: {exc}") from exc

    if raw is None:
        raise ConfigError("設定ファイルが空です")

    return normalize_config(raw)
