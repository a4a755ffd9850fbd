"""入出力ユーティリティ。"""

from .ingest import (
    FILECOIN_GENESIS_UNIX,
    SECONDS_PER_EPOCH,
    ClientsData,
    IngestError,
    granted_allocations,
    group_allocations,
    group_deals,
    height_to_unix,
    iter_json_lines,
    load_audit_trails,
    load_clients,
    load_deals,
    load_flagged_clients,
    parse_client,
    parse_deal,
)

__all__ = [
    "FILECOIN_GENESIS_UNIX",
    "SECONDS_PER_EPOCH",
    "ClientsData",
    "IngestError",
    "granted_allocations",
    "group_allocations",
    "group_deals",
    "height_to_unix",
    "iter_json_lines",
    "load_audit_trails",
    "load_clients",
    "load_deals",
    "load_flagged_clients",
    "parse_client",
    "parse_deal",
]
