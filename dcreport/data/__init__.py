"""データモデル定義。"""

from .models import (
    BAND_LABELS,
    Allocation,
    AllocationOutcome,
    ClientRecord,
    Deal,
    Milestone,
)

__all__ = [
    "BAND_LABELS",
    "Allocation",
    "AllocationOutcome",
    "ClientRecord",
    "Deal",
    "Milestone",
]
