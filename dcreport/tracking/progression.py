from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Sequence, Tuple

from dcreport.data import Allocation
from dcreport.utils import format_bytes_iec, format_number

from .thresholds import TimelineError

DISPLAY_CELLS = 3


@dataclass(frozen=True)
class AllocationProgressionRow:
    client_id: str
    # 先頭3件の割当（足りない分は None）
    display_cells: Tuple[Optional[str], Optional[str], Optional[str]] = (None, None, None)
    remaining_sizes: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def remaining_summary(self) -> str:
        return ", ".join(self.remaining_sizes) or "-"


def percentage_change(previous: int, current: int) -> Optional[float]:
    """current / previous * 100。previous が 0 の場合は None。"""
    if previous == 0:
        return None
    return current / previous * 100


def format_percentage(percentage: float) -> str:
    return f"{format_number(percentage)}%"


def _cell(allocations: Sequence[Allocation], idx: int) -> str:
    current = allocations[idx].size
    text = format_bytes_iec(current)
    if idx == 0:
        return text
    pct = percentage_change(allocations[idx - 1].size, current)
    if pct is None:
        return text
    return f"{text} ({format_percentage(pct)})"


def progression_row(client_id: str, allocations: Sequence[Allocation]) -> AllocationProgressionRow:
    """発行時刻昇順の割当列から、前回比付きの表示行を作る。"""
    for idx in range(1, len(allocations)):
        if allocations[idx].issued_at < allocations[idx - 1].issued_at:
            raise TimelineError(f"{client_id}: allocations は issued_at の昇順である必要があります")
    cells = [_cell(allocations, i) for i in range(min(DISPLAY_CELLS, len(allocations)))]
    cells += [None] * (DISPLAY_CELLS - len(cells))
    remaining = tuple(format_bytes_iec(a.size) for a in allocations[DISPLAY_CELLS:])
    return AllocationProgressionRow(client_id=client_id, display_cells=tuple(cells), remaining_sizes=remaining)


def progression_rows(timelines: Mapping[str, Sequence[Allocation]]) -> List[AllocationProgressionRow]:
    return [progression_row(client_id, allocs) for client_id, allocs in timelines.items()]
