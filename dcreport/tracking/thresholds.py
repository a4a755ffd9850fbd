"""割当ごとの累積消化マイルストーン到達時間の算出。

1クライアント分の割当列（発行時刻昇順）と deal 列（開始時刻昇順）を前から
1回だけ走査する。deal カーソルは割当をまたいで共有され、前の割当で消化に
使われた deal は後の割当では再度数えない（先入れ先出しの消化モデル）。
"""

from __future__ import annotations

from typing import Dict, List, Sequence, Tuple

from dcreport.data import Allocation, AllocationOutcome, Deal, Milestone
from dcreport.utils import get_logger

logger = get_logger(__name__)

SECONDS_PER_HOUR = 3600

# FIRST 以降の閾値（割当サイズに対する %）。必ずこの順に判定する
_PERCENT_THRESHOLDS: Tuple[Tuple[Milestone, int], ...] = (
    (Milestone.QUARTER, 25),
    (Milestone.HALF, 50),
    (Milestone.THIRD_QUARTER, 75),
    (Milestone.FULL, 100),
)


class TimelineError(ValueError):
    """割当/deal 列が前提（昇順・同一クライアント）を満たさない場合の例外。"""


def _validate_timelines(allocations: Sequence[Allocation], deals: Sequence[Deal]) -> None:
    client_id = allocations[0].address_id if allocations else None
    prev_ts = None
    for idx, alloc in enumerate(allocations):
        if alloc.address_id != client_id:
            raise TimelineError(
                f"allocations[{idx}] は別クライアントの割当です: {alloc.address_id} != {client_id}"
            )
        if prev_ts is not None and alloc.issued_at < prev_ts:
            raise TimelineError(f"allocations は issued_at の昇順である必要があります（index {idx}）")
        prev_ts = alloc.issued_at

    prev_ts = None
    for idx, deal in enumerate(deals):
        if client_id is not None and deal.client_id != client_id:
            raise TimelineError(f"deals[{idx}] は別クライアントの deal です: {deal.client_id} != {client_id}")
        if prev_ts is not None and deal.started_at < prev_ts:
            raise TimelineError(f"deals は started_at の昇順である必要があります（index {idx}）")
        prev_ts = deal.started_at


def track_allocation(
    allocation: Allocation, deals: Sequence[Deal], cursor: int = 0
) -> Tuple[AllocationOutcome, int]:
    """cursor 位置から deal を消化し、(結果, 次の割当が使う cursor) を返す。

    FULL に到達した場合は到達させた deal の直後、deal を使い切った場合は
    len(deals) が返る。サイズ 0 の割当はどのマイルストーンにも到達せず、
    deal も消化しない。
    """
    if cursor < 0 or cursor > len(deals):
        raise TimelineError(f"cursor が範囲外です: {cursor}")
    elapsed: Dict[Milestone, float] = {}
    if allocation.size == 0:
        return AllocationOutcome(allocation=allocation, milestone_elapsed_hours=elapsed), cursor

    used = 0
    pending = 0
    idx = cursor
    while idx < len(deals):
        deal = deals[idx]
        idx += 1
        # deal が割当より前に始まっていれば負の値になる（そのまま記録）
        hours = (deal.started_at - allocation.issued_at) / SECONDS_PER_HOUR
        if Milestone.FIRST not in elapsed:
            elapsed[Milestone.FIRST] = hours
        used += deal.size_bytes
        # 1件の deal で複数の閾値をまとめて越えることがある
        while pending < len(_PERCENT_THRESHOLDS):
            milestone, percent = _PERCENT_THRESHOLDS[pending]
            if used * 100 < allocation.size * percent:
                break
            elapsed[milestone] = hours
            pending += 1
        if pending == len(_PERCENT_THRESHOLDS):
            break

    return AllocationOutcome(allocation=allocation, milestone_elapsed_hours=elapsed), idx


def track_thresholds(allocations: Sequence[Allocation], deals: Sequence[Deal]) -> List[AllocationOutcome]:
    """1クライアント分の割当列と deal 列から、割当ごとのマイルストーン到達時間を求める。"""
    _validate_timelines(allocations, deals)
    outcomes: List[AllocationOutcome] = []
    cursor = 0
    for alloc in allocations:
        outcome, cursor = track_allocation(alloc, deals, cursor)
        outcomes.append(outcome)
    if allocations:
        logger.debug(
            "tracked %s: %d allocations, %d/%d deals consumed",
            allocations[0].address_id,
            len(allocations),
            cursor,
            len(deals),
        )
    return outcomes
