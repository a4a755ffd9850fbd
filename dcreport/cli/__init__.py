"""Command line interface for dcreport."""

from __future__ import annotations

import argparse
import json
from importlib import metadata
from pathlib import Path
import sys
from typing import Iterable, Optional

import yaml

from dcreport.config import ConfigError, ReportConfig, load_config
from dcreport.io import IngestError, load_clients, load_deals
from dcreport.report import compute_histogram, pastel_color_source, run_report
from dcreport.tracking import TimelineError
from dcreport.utils import configure_logging


def _get_version() -> str:
    """Return the installed package version, or a placeholder when unavailable."""
    try:
        return metadata.version("dcreport")
    except metadata.PackageNotFoundError:
        return "0.0.0"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dcreport",
        description="Datacap allocation consumption report.",
    )
    parser.add_argument(
        "-c",
        "--config",
        help="Optional path to a configuration file.",
        default=None,
    )
    parser.add_argument(
        "--print-config",
        action="store_true",
        help="YAML 設定を読み込み、正規化した内容を標準出力へ出力。",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="ログレベル（未指定なら設定ファイルの logging.level、なければ INFO）",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )
    subparsers = parser.add_subparsers(dest="command")

    report_parser = subparsers.add_parser(
        "report", help="クライアント割当と deal からレポート一式（markdown/PNG/JSON）を生成"
    )
    report_parser.add_argument("--verifier", required=True, help="verifier の address ID（出力ディレクトリ名）")
    report_parser.add_argument("--clients", required=True, help="getVerifiedClients 応答の JSON")
    report_parser.add_argument("--deals", required=True, help="deal 行の Parquet / JSON Lines")
    report_parser.add_argument("--flagged", default=None, help="複数 verifier から割当を受けたクライアント ID の JSON 配列")
    report_parser.add_argument("--audit-trails", default=None, help="クライアント ID -> 監査証跡 URL の JSON")
    report_parser.add_argument(
        "--reports-dir",
        default=None,
        help="出力先（未指定なら paths.reports_dir、設定もなければ reports）",
    )
    report_parser.add_argument("--max-workers", type=int, default=None, help="クライアント集計の並列数")
    report_parser.add_argument("--color-seed", type=int, default=None, help="チャート色の乱数シード")

    hist_parser = subparsers.add_parser("histogram", help="マイルストーン × 経過時間帯の件数を JSON で出力")
    hist_parser.add_argument("--clients", required=True, help="getVerifiedClients 応答の JSON")
    hist_parser.add_argument("--deals", required=True, help="deal 行の Parquet / JSON Lines")
    hist_parser.add_argument("--max-workers", type=int, default=None, help="クライアント集計の並列数")
    return parser


def _input_path(config: Optional[ReportConfig], path: Optional[str]) -> Optional[Path]:
    if path is None:
        return None
    return config.paths.resolve_input(path) if config else Path(path)


def _load_optional_config(parser: argparse.ArgumentParser, path: Optional[str]) -> Optional[ReportConfig]:
    if not path:
        return None
    try:
        return load_config(path)
    except ConfigError as exc:
        parser.exit(status=1, message=f"config error: {exc}\n")


def main(argv: Optional[Iterable[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    config = _load_optional_config(parser, args.config)
    log_level = args.log_level or (config.logging.level if config else "INFO")
    try:
        configure_logging(log_level)
    except ValueError as exc:
        parser.error(str(exc))

    if args.command == "report":
        settings = config.report if config else None
        reports_dir = args.reports_dir or (config.paths.reports_dir if config else "reports")
        max_workers = args.max_workers if args.max_workers is not None else (settings.max_workers if settings else 1)
        seed = args.color_seed if args.color_seed is not None else (settings.color_seed if settings else None)
        try:
            out_dir = run_report(
                verifier_id=args.verifier,
                clients_path=_input_path(config, args.clients),
                deals_path=_input_path(config, args.deals),
                reports_dir=reports_dir,
                flagged_path=_input_path(config, args.flagged),
                audit_trails_path=_input_path(config, args.audit_trails),
                clients_query_limit=settings.clients_query_limit if settings else 20,
                max_workers=max_workers,
                color_source=pastel_color_source(seed),
            )
        except (IngestError, TimelineError) as exc:
            parser.exit(status=1, message=f"input error: {exc}\n")
        print(out_dir)
        return 0

    if args.command == "histogram":
        max_workers = args.max_workers if args.max_workers is not None else (config.report.max_workers if config else 1)
        try:
            histogram = compute_histogram(
                load_clients(_input_path(config, args.clients)),
                load_deals(_input_path(config, args.deals)),
                max_workers=max_workers,
            )
        except (IngestError, TimelineError) as exc:
            parser.exit(status=1, message=f"input error: {exc}\n")
        json.dump(histogram.to_json_dict(), sys.stdout, ensure_ascii=False, indent=2)
        sys.stdout.write("\n")
        return 0

    if args.print_config:
        if not config:
            parser.error("--print-config を使うには --config で YAML を指定してください")
        yaml.safe_dump(config.to_dict(), stream=sys.stdout, sort_keys=True)
        return 0

    parser.print_help()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
