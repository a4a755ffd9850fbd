from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, Mapping, Optional, Sequence

from dcreport.data import Deal
from dcreport.io import (
    ClientsData,
    granted_allocations,
    group_allocations,
    group_deals,
    load_audit_trails,
    load_clients,
    load_deals,
    load_flagged_clients,
)
from dcreport.tracking import MilestoneHistogram, build_histogram, progression_rows
from dcreport.utils import get_logger

from .charts import ColorSource, pastel_color_source, plot_issuance_chart, plot_milestone_histograms
from .markdown import render_report_markdown

logger = get_logger(__name__)

HISTOGRAM_DIR = "datacap_in_clients"


def compute_histogram(
    clients_data: ClientsData, deals: Iterable[Deal], max_workers: Optional[int] = None
) -> MilestoneHistogram:
    allocation_timelines = group_allocations(granted_allocations(clients_data.clients))
    return build_histogram(allocation_timelines, group_deals(deals), max_workers=max_workers)


def generate_report(
    verifier_id: str,
    clients_data: ClientsData,
    deals: Sequence[Deal],
    reports_dir: str | Path = "reports",
    flagged: Optional[Iterable[str]] = None,
    audit_trails: Optional[Mapping[str, str]] = None,
    clients_query_limit: int = 20,
    max_workers: Optional[int] = None,
    color_source: Optional[ColorSource] = None,
) -> Path:
    """reports_dir/<verifier_id>/ にレポート一式を書き出し、そのディレクトリを返す。"""
    if not isinstance(verifier_id, str) or not verifier_id.strip():
        raise ValueError("verifier_id は非空の文字列である必要があります")
    out_dir = Path(reports_dir) / verifier_id.strip()
    out_dir.mkdir(parents=True, exist_ok=True)
    color_source = color_source or pastel_color_source()

    histogram_files: list[str] = []
    issuance_file: Optional[str] = None
    rows = []
    if clients_data.count and clients_data.clients:
        allocations = granted_allocations(clients_data.clients)
        timelines = group_allocations(allocations)
        histogram = build_histogram(timelines, group_deals(deals), max_workers=max_workers)
        rows = progression_rows(timelines)

        (out_dir / f"{HISTOGRAM_DIR}.json").write_text(
            json.dumps(histogram.to_json_dict(), ensure_ascii=False, indent=2), encoding="utf-8"
        )
        for path in plot_milestone_histograms(histogram, out_dir / HISTOGRAM_DIR, color_source):
            histogram_files.append(f"{HISTOGRAM_DIR}/{path.name}")
        issuance_file = plot_issuance_chart(allocations, out_dir / "issuance_chart.png", color_source).name
    else:
        logger.warning("no datacap issued for verifier %s", verifier_id)

    text = render_report_markdown(
        clients=clients_data.clients,
        client_count=clients_data.count,
        rows=rows,
        flagged=flagged,
        audit_trails=audit_trails,
        clients_query_limit=clients_query_limit,
        histogram_files=histogram_files,
        issuance_chart_file=issuance_file,
    )
    (out_dir / "report.md").write_text(text + "\n", encoding="utf-8")
    logger.info("report for %s written to %s", verifier_id, out_dir)
    return out_dir


def run_report(
    verifier_id: str,
    clients_path: str | Path,
    deals_path: str | Path,
    reports_dir: str | Path = "reports",
    flagged_path: str | Path | None = None,
    audit_trails_path: str | Path | None = None,
    clients_query_limit: int = 20,
    max_workers: Optional[int] = None,
    color_source: Optional[ColorSource] = None,
) -> Path:
    """ファイルから入力を読み込んで generate_report を実行する。"""
    return generate_report(
        verifier_id=verifier_id,
        clients_data=load_clients(clients_path),
        deals=load_deals(deals_path),
        reports_dir=reports_dir,
        flagged=load_flagged_clients(flagged_path),
        audit_trails=load_audit_trails(audit_trails_path),
        clients_query_limit=clients_query_limit,
        max_workers=max_workers,
        color_source=color_source,
    )
