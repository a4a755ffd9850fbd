from __future__ import annotations

import math
import random
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterable, List, Mapping, Optional, Tuple

import matplotlib
import matplotlib.pyplot as plt
from matplotlib.ticker import FuncFormatter, MaxNLocator

from dcreport.data import BAND_LABELS, Allocation, Milestone
from dcreport.tracking import MilestoneHistogram
from dcreport.utils import format_bytes_iec

matplotlib.use("Agg")  # 非GUI環境での描画

Color = Tuple[float, float, float]
ColorSource = Callable[[], Color]


def random_pastel_color(rng: Optional[random.Random] = None) -> Color:
    """明るめのランダム色（各成分 128..255）を 0..1 の RGB で返す。"""
    rng = rng or random.Random()
    base = 128
    span = 127
    channels = []
    for offset in (1, 2, 3):
        value = int(base + abs(math.sin(rng.random() + offset) * span))
        channels.append(value / 255.0)
    return tuple(channels)  # type: ignore[return-value]


def pastel_color_source(seed: Optional[int] = None) -> ColorSource:
    rng = random.Random(seed)
    return lambda: random_pastel_color(rng)


def milestone_title(milestone: Milestone) -> str:
    return f"Deals made by clients until reached {milestone.value} Datacap allocation"


def plot_milestone_histogram(
    counts: Mapping[str, int], milestone: Milestone, out_path: Path, color_source: ColorSource
) -> Path:
    values = [int(counts.get(label, 0)) for label in BAND_LABELS]
    fig, ax = plt.subplots(figsize=(10, 5))
    ax.bar(list(BAND_LABELS), values, width=1.0, color=[color_source() for _ in BAND_LABELS], edgecolor="white")
    ax.set_title(milestone_title(milestone))
    ax.set_xlabel(f"Time from Datacap issuance to {milestone.value} Datacap allocation (hours)")
    ax.set_ylabel("Amount of deals made")
    # 件数なので整数目盛りのみ
    ax.yaxis.set_major_locator(MaxNLocator(integer=True))
    fig.tight_layout()
    fig.savefig(out_path)
    plt.close(fig)
    return out_path


def plot_milestone_histograms(
    histogram: MilestoneHistogram, out_dir: Path, color_source: ColorSource
) -> List[Path]:
    """マイルストーン順に histogram_<idx>.png を出力する。"""
    out_dir.mkdir(parents=True, exist_ok=True)
    paths = []
    for idx, milestone in enumerate(Milestone):
        paths.append(
            plot_milestone_histogram(
                histogram.counts(milestone), milestone, out_dir / f"histogram_{idx}.png", color_source
            )
        )
    return paths


def daily_issuance(allocations: Iterable[Allocation]) -> List[Tuple[str, int]]:
    """UTC 日付ごとの発行量合計（日付昇順）。"""
    totals: dict[str, int] = {}
    for alloc in allocations:
        day = datetime.fromtimestamp(alloc.issued_at, tz=timezone.utc).strftime("%Y-%m-%d")
        totals[day] = totals.get(day, 0) + alloc.size
    return sorted(totals.items())


def plot_issuance_chart(allocations: Iterable[Allocation], out_path: Path, color_source: ColorSource) -> Path:
    data = daily_issuance(allocations)
    days = [d for d, _ in data]
    sizes = [s for _, s in data]
    fig, ax = plt.subplots(figsize=(max(6, len(days) * 0.5), 5))
    ax.bar(days, sizes, color=[color_source() for _ in days] or None)
    if sizes and max(sizes) > 0:
        ax.set_yscale("log")
    ax.yaxis.set_major_formatter(FuncFormatter(lambda v, _pos: format_bytes_iec(int(v)) if v >= 0 else ""))
    ax.set_title("Size of Datacap issuance over time by client address ID")
    ax.set_xlabel("Date of Issuance")
    ax.set_ylabel("Size of Issuance")
    ax.tick_params(axis="x", labelrotation=45)
    fig.tight_layout()
    fig.savefig(out_path)
    plt.close(fig)
    return out_path
