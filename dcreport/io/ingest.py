from __future__ import annotations

import io
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Set, Tuple

import pyarrow.parquet as pq

from dcreport.data import Allocation, ClientRecord, Deal
from dcreport.utils import get_logger

try:
    import zstandard as zstd
except ImportError:  # pragma: no cover - zstd は任意依存
    zstd = None

logger = get_logger(__name__)

FILECOIN_GENESIS_UNIX = 1598306400  # mainnet epoch 0
SECONDS_PER_EPOCH = 30
UNSET_EPOCH = -1


class IngestError(ValueError):
    """入力ファイルの形式が想定と異なる場合の例外。"""


@dataclass(frozen=True)
class ClientsData:
    clients: Tuple[ClientRecord, ...] = field(default_factory=tuple)
    # API 側の総件数（取得上限で切られる前の値）
    count: int = 0


def height_to_unix(height: int) -> int:
    """チェーンのエポック高を unix 秒に変換する。"""
    return FILECOIN_GENESIS_UNIX + SECONDS_PER_EPOCH * int(height)


def _to_int(value: object, name: str) -> int:
    if isinstance(value, bool):
        raise IngestError(f"{name} は整数である必要があります: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise IngestError(f"{name} は整数である必要があります: {value!r}")


def _to_str(record: dict, key: str) -> str:
    if key not in record:
        raise IngestError(f"{key} は必須です")
    value = record[key]
    if not isinstance(value, str) or not value.strip():
        raise IngestError(f"{key} は非空の文字列である必要があります")
    return value.strip()


def parse_client(record: dict) -> ClientRecord:
    if not isinstance(record, dict):
        raise IngestError(f"クライアントはオブジェクトである必要があります: {record!r}")
    address_id = _to_str(record, "addressId")
    raw_allowances = record.get("allowanceArray") or []
    if not isinstance(raw_allowances, list):
        raise IngestError(f"{address_id}: allowanceArray は配列である必要があります")
    allowances = []
    for idx, item in enumerate(raw_allowances):
        if not isinstance(item, dict):
            raise IngestError(f"{address_id}: allowanceArray[{idx}] はオブジェクトである必要があります")
        allowance = _to_int(item.get("allowance"), f"{address_id}.allowanceArray[{idx}].allowance")
        ts = _to_int(
            item.get("createMessageTimestamp"),
            f"{address_id}.allowanceArray[{idx}].createMessageTimestamp",
        )
        allowances.append((allowance, ts))
    try:
        return ClientRecord(
            address_id=address_id,
            address=str(record.get("address") or ""),
            name=str(record.get("name") or ""),
            allowances=tuple(allowances),
        )
    except ValueError as exc:
        raise IngestError(f"{address_id}: {exc}") from exc


def load_clients(path: str | Path) -> ClientsData:
    """レジストリ API の getVerifiedClients 応答（JSON）を読み込む。"""
    file_path = Path(path)
    try:
        raw = json.loads(file_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise IngestError(f"クライアントファイルの読み込みに失敗しました: {exc}") from exc

    if isinstance(raw, list):
        raw = {"data": raw, "count": len(raw)}
    if not isinstance(raw, dict) or not isinstance(raw.get("data"), list):
        raise IngestError("クライアントファイルは data 配列を持つオブジェクトである必要があります")

    clients = tuple(parse_client(rec) for rec in raw["data"])
    count = _to_int(raw.get("count", len(clients)), "count")
    logger.info("loaded %d clients (count=%d) from %s", len(clients), count, file_path)
    return ClientsData(clients=clients, count=count)


def granted_allocations(clients: Iterable[ClientRecord]) -> List[Allocation]:
    """クライアントごとの allowance を割当イベントの平坦な列に展開する。"""
    out: List[Allocation] = []
    for client in clients:
        for size, issued_at in client.allowances:
            out.append(Allocation(address_id=client.address_id, size=size, issued_at=issued_at))
    return out


def parse_deal(record: dict) -> Optional[Deal]:
    """DB の deal 行を Deal にする。開始エポック未設定（-1）の行は None。"""
    if not isinstance(record, dict):
        raise IngestError(f"deal はオブジェクトである必要があります: {record!r}")
    client_id = _to_str(record, "client_id")
    size = _to_int(record.get("deal_value"), f"{client_id}.deal_value")

    if record.get("deal_timestamp") is not None:
        started_at = _to_int(record["deal_timestamp"], f"{client_id}.deal_timestamp")
    else:
        epoch = _to_int(record.get("start_epoch"), f"{client_id}.start_epoch")
        if epoch == UNSET_EPOCH:
            return None
        started_at = height_to_unix(epoch)
    try:
        return Deal(client_id=client_id, size_bytes=size, started_at=started_at)
    except ValueError as exc:
        raise IngestError(f"{client_id}: {exc}") from exc


def iter_json_lines(path: Path) -> Iterator[dict]:
    if path.suffix == ".zst":
        if zstd is None:
            raise IngestError(f"{path}: zstandard がインストールされていないため .zst を読めません")
        with path.open("rb") as fh:
            reader = zstd.ZstdDecompressor().stream_reader(fh)
            with io.TextIOWrapper(reader, encoding="utf-8") as text_stream:
                for line in text_stream:
                    line = line.strip()
                    if not line:
                        continue
                    yield json.loads(line)
    else:
        with path.open("r", encoding="utf-8") as fh:
            for line in fh:
                line = line.strip()
                if not line:
                    continue
                yield json.loads(line)


def _iter_deal_records(path: Path) -> Iterator[dict]:
    if path.suffix == ".parquet":
        table = pq.read_table(path)
        yield from table.to_pylist()
        return
    try:
        yield from iter_json_lines(path)
    except json.JSONDecodeError as exc:
        raise IngestError(f"{path}: JSON Lines のパースに失敗しました: {exc}") from exc


def load_deals(path: str | Path) -> List[Deal]:
    """deal 行（Parquet / JSON Lines / .jsonl.zst）を読み込み、開始時刻未設定の行を除く。"""
    file_path = Path(path)
    if not file_path.exists():
        raise IngestError(f"deal ファイルが見つかりません: {file_path}")
    deals: List[Deal] = []
    skipped = 0
    for record in _iter_deal_records(file_path):
        deal = parse_deal(record)
        if deal is None:
            skipped += 1
            continue
        deals.append(deal)
    logger.info("loaded %d deals from %s (skipped %d without start epoch)", len(deals), file_path, skipped)
    return deals


def group_allocations(allocations: Iterable[Allocation]) -> Dict[str, List[Allocation]]:
    """クライアント ID ごとに割当をまとめ、発行時刻の昇順に並べる（同時刻は入力順）。"""
    groups: Dict[str, List[Allocation]] = {}
    for alloc in allocations:
        groups.setdefault(alloc.address_id, []).append(alloc)
    for key in groups:
        groups[key].sort(key=lambda a: a.issued_at)
    return groups


def group_deals(deals: Iterable[Deal]) -> Dict[str, List[Deal]]:
    """クライアント ID ごとに deal をまとめ、開始時刻の昇順に並べる（同時刻は入力順）。"""
    groups: Dict[str, List[Deal]] = {}
    for deal in deals:
        groups.setdefault(deal.client_id, []).append(deal)
    for key in groups:
        groups[key].sort(key=lambda d: d.started_at)
    return groups


def load_flagged_clients(path: str | Path | None) -> Set[str]:
    """複数の verifier から割当を受けたクライアント ID の一覧（JSON 配列）。"""
    if path is None:
        return set()
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise IngestError(f"flagged ファイルの読み込みに失敗しました: {exc}") from exc
    if not isinstance(raw, list):
        raise IngestError("flagged ファイルは配列である必要があります")
    out: Set[str] = set()
    for item in raw:
        if isinstance(item, dict):
            item = item.get("addressId")
        if not isinstance(item, str) or not item.strip():
            raise IngestError(f"flagged の要素が不正です: {item!r}")
        out.add(item.strip())
    return out


def load_audit_trails(path: str | Path | None) -> Dict[str, str]:
    """クライアント ID -> 監査証跡 URL の対応（JSON オブジェクト）。"""
    if path is None:
        return {}
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise IngestError(f"audit trail ファイルの読み込みに失敗しました: {exc}") from exc
    if not isinstance(raw, dict):
        raise IngestError("audit trail ファイルはオブジェクトである必要があります")
    return {str(k): str(v) for k, v in raw.items() if v}
