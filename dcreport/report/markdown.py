from __future__ import annotations

from typing import Iterable, List, Mapping, Optional, Sequence

from dcreport.data import ClientRecord, Milestone
from dcreport.tracking import AllocationProgressionRow
from dcreport.utils import format_bytes_iec

WARNING = "⚠️"
PULSE_CLIENT_URL = (
    "https://filecoinpulse.pages.dev/client/{address_id}/#client-interactions-with-storage-providers"
)

PROGRESSION_INTRO = (
    "The table below shows the allocations for each client. The percentage next to each allocation "
    "represents the increase or decrease compared to the previous allocation."
)


def _client_label(address_id: str, audit_trails: Mapping[str, str]) -> str:
    url = audit_trails.get(address_id)
    return f"[{address_id}]({url})" if url else address_id


def progression_table(
    rows: Iterable[AllocationProgressionRow], audit_trails: Optional[Mapping[str, str]] = None
) -> List[str]:
    audit_trails = audit_trails or {}
    lines = [
        PROGRESSION_INTRO,
        "",
        "| ID | First Allocation | Second Allocation | Third Allocation | Remaining Allocations |",
        "|-|-|-|-|-|",
    ]
    for row in rows:
        cells = " | ".join(cell or "-" for cell in row.display_cells)
        lines.append(f"| {_client_label(row.client_id, audit_trails)} | {cells} | {row.remaining_summary} |")
    lines.append("")
    return lines


def pulse_link(address_id: str) -> str:
    return f"[Filecoin Pulse]({PULSE_CLIENT_URL.format(address_id=address_id)})"


def clients_table(
    clients: Iterable[ClientRecord],
    flagged: Optional[Iterable[str]] = None,
    audit_trails: Optional[Mapping[str, str]] = None,
) -> List[str]:
    flagged_ids = set(flagged or ())
    audit_trails = audit_trails or {}
    lines = [
        "## List of clients and their allocations",
        "",
        "| ID | Name | Number of Allocations | Total Allocations | Client Interactions |",
        "|-|-|-|-|-|",
    ]
    for client in clients:
        marker = f"{WARNING} " if client.address_id in flagged_ids else ""
        lines.append(
            f"| {marker}{_client_label(client.address_id, audit_trails)} | {client.name or '-'} "
            f"| {len(client.allowances)} | {format_bytes_iec(client.total_allowance)} | {pulse_link(client.address_id)} |"
        )
    lines.append("")
    return lines


def render_report_markdown(
    clients: Sequence[ClientRecord],
    client_count: int,
    rows: Sequence[AllocationProgressionRow],
    flagged: Optional[Iterable[str]] = None,
    audit_trails: Optional[Mapping[str, str]] = None,
    clients_query_limit: int = 20,
    histogram_files: Optional[Sequence[str]] = None,
    issuance_chart_file: Optional[str] = None,
) -> str:
    """レポート本文（markdown）を組み立てる。画像パスは report.md からの相対パス。"""
    content = ["# Compliance Report"]
    if not client_count or not clients:
        content.append("### No Datacap issued for verifier")
        return "\n".join(content)

    flagged_ids = set(flagged or ())
    content.append("## Distribution of Datacap in Clients")
    content.append("")
    for milestone, name in zip(Milestone, histogram_files or ()):
        content.append(f"![{milestone.value}]({name})")
    if histogram_files:
        content.append("")
    content.extend(progression_table(rows, audit_trails))

    if issuance_chart_file:
        content.append(f"![Size of Datacap issuance over time]({issuance_chart_file})")
        content.append("")

    content.extend(clients_table(clients, flagged_ids, audit_trails))

    if any(c.address_id in flagged_ids for c in clients):
        content.append(f"### Clients with {WARNING} flag received datacap from more than one verifier")
        content.append("")

    if client_count > clients_query_limit:
        content.append(
            f"## {WARNING} There are more than {clients_query_limit} clients for a given allocator, "
            "report may be inaccurate"
        )
    return "\n".join(content)
