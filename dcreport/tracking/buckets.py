from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Iterable, Mapping, Optional, Sequence

import numpy as np

from dcreport.data import BAND_LABELS, Allocation, AllocationOutcome, Deal, Milestone
from dcreport.utils import get_logger

from .thresholds import track_thresholds

logger = get_logger(__name__)

# BAND_LABELS の区間の右端（時間）。searchsorted(side="right") で左閉右開になる
_BAND_EDGES_HOURS = np.array([1.0, 12.0, 24.0, 48.0], dtype=float)


def classify_band(elapsed_hours: float) -> str:
    """経過時間を帯ラベルに分類する。負の値は "< 1" に入る。"""
    value = float(elapsed_hours)
    if np.isnan(value):
        raise ValueError("elapsed_hours が NaN です")
    idx = int(np.searchsorted(_BAND_EDGES_HOURS, value, side="right"))
    return BAND_LABELS[idx]


def empty_histogram() -> Dict[Milestone, Dict[str, int]]:
    return {m: {label: 0 for label in BAND_LABELS} for m in Milestone}


class MilestoneHistogram:
    """マイルストーン × 帯ごとの件数。1レポート生成の間だけ使う。"""

    def __init__(self, counts: Optional[Mapping[Milestone, Mapping[str, int]]] = None) -> None:
        self._counts = empty_histogram()
        if counts:
            for milestone, bands in counts.items():
                for label, n in bands.items():
                    self._counts[Milestone(milestone)][self._check_label(label)] += int(n)

    @staticmethod
    def _check_label(label: str) -> str:
        if label not in BAND_LABELS:
            raise ValueError(f"未知の帯ラベルです: {label}")
        return label

    def add(self, outcome: AllocationOutcome) -> None:
        for milestone, hours in outcome.milestone_elapsed_hours.items():
            self._counts[milestone][classify_band(hours)] += 1

    def add_all(self, outcomes: Iterable[AllocationOutcome]) -> "MilestoneHistogram":
        for outcome in outcomes:
            self.add(outcome)
        return self

    def merge(self, other: "MilestoneHistogram") -> "MilestoneHistogram":
        """other の件数を加算する（並列集計の結果をまとめる用）。"""
        for milestone, bands in other._counts.items():
            for label, n in bands.items():
                self._counts[milestone][label] += n
        return self

    def counts(self, milestone: Milestone) -> Dict[str, int]:
        return dict(self._counts[Milestone(milestone)])

    def total(self, milestone: Milestone) -> int:
        return int(sum(self._counts[Milestone(milestone)].values()))

    def to_dict(self) -> Dict[Milestone, Dict[str, int]]:
        return {m: dict(bands) for m, bands in self._counts.items()}

    def to_json_dict(self) -> Dict[str, Dict[str, int]]:
        return {m.value: dict(bands) for m, bands in self._counts.items()}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MilestoneHistogram):
            return NotImplemented
        return self._counts == other._counts

    def __repr__(self) -> str:
        return f"MilestoneHistogram({self.to_json_dict()!r})"


def bucketize(
    outcomes: Iterable[AllocationOutcome], histogram: Optional[MilestoneHistogram] = None
) -> MilestoneHistogram:
    """結果を帯に分類して histogram に加算する（未指定なら新規作成）。"""
    if histogram is None:
        histogram = MilestoneHistogram()
    return histogram.add_all(outcomes)


def _client_histogram(allocations: Sequence[Allocation], deals: Sequence[Deal]) -> MilestoneHistogram:
    return bucketize(track_thresholds(allocations, deals))


def build_histogram(
    allocation_timelines: Mapping[str, Sequence[Allocation]],
    deal_timelines: Mapping[str, Sequence[Deal]],
    max_workers: Optional[int] = None,
) -> MilestoneHistogram:
    """全クライアントを集計する。

    max_workers > 1 のときはクライアント単位でスレッドに分け、各スレッドの
    histogram を呼び出し側スレッドで merge する。
    """
    client_ids = list(allocation_timelines.keys())
    total = MilestoneHistogram()
    if max_workers is None or max_workers <= 1 or len(client_ids) <= 1:
        for client_id in client_ids:
            total.merge(_client_histogram(allocation_timelines[client_id], deal_timelines.get(client_id, ())))
    else:
        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="dcreport-track") as pool:
            futures = [
                pool.submit(_client_histogram, allocation_timelines[cid], deal_timelines.get(cid, ()))
                for cid in client_ids
            ]
            for future in futures:
                total.merge(future.result())
    logger.info(
        "bucketized %d clients (%s)",
        len(client_ids),
        ", ".join(f"{m.value}={total.total(m)}" for m in Milestone),
    )
    return total
