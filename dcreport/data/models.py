from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional, Tuple

# 割当発行からの経過時間（時間）の区分。半開区間 [0,1) [1,12) [12,24) [24,48) [48,inf)
BAND_LABELS: Tuple[str, ...] = ("< 1", "1 - 12", "12 - 24", "24 - 48", "> 48")


class Milestone(str, Enum):
    """割当の累積消化チェックポイント（消化順）。"""

    FIRST = "first"
    QUARTER = "quarter"
    HALF = "half"
    THIRD_QUARTER = "third"
    FULL = "full"


def _ensure_str(value: str | None, name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{name} は非空の文字列である必要があります")
    return value.strip()


def _ensure_int(value: int | None, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} は int である必要があります")
    return value


def _ensure_size(value: int | None, name: str) -> int:
    value = _ensure_int(value, name)
    if value < 0:
        raise ValueError(f"{name} は 0 以上である必要があります: {value}")
    return value


@dataclass(frozen=True)
class Allocation:
    address_id: str
    size: int
    issued_at: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "address_id", _ensure_str(self.address_id, "address_id"))
        _ensure_size(self.size, "size")
        _ensure_int(self.issued_at, "issued_at")


@dataclass(frozen=True)
class Deal:
    client_id: str
    size_bytes: int
    started_at: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "client_id", _ensure_str(self.client_id, "client_id"))
        _ensure_size(self.size_bytes, "size_bytes")
        _ensure_int(self.started_at, "started_at")


@dataclass(frozen=True)
class ClientRecord:
    """レジストリ API が返す検証済みクライアント1件。"""

    address_id: str
    address: str = ""
    name: str = ""
    # (allowance, createMessageTimestamp) の組
    allowances: Tuple[Tuple[int, int], ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "address_id", _ensure_str(self.address_id, "address_id"))
        pairs = []
        for idx, item in enumerate(self.allowances):
            if not isinstance(item, (list, tuple)) or len(item) != 2:
                raise ValueError(f"allowances[{idx}] は (allowance, timestamp) の2要素である必要があります")
            pairs.append(
                (
                    _ensure_size(item[0], f"allowances[{idx}].allowance"),
                    _ensure_int(item[1], f"allowances[{idx}].timestamp"),
                )
            )
        object.__setattr__(self, "allowances", tuple(pairs))

    @property
    def total_allowance(self) -> int:
        return sum(size for size, _ in self.allowances)


@dataclass(frozen=True)
class AllocationOutcome:
    allocation: Allocation
    # 到達しなかったマイルストーンはキー自体を持たない
    milestone_elapsed_hours: Mapping[Milestone, float] = field(default_factory=dict)

    def elapsed(self, milestone: Milestone) -> Optional[float]:
        return self.milestone_elapsed_hours.get(milestone)

    @property
    def reached(self) -> Tuple[Milestone, ...]:
        return tuple(m for m in Milestone if m in self.milestone_elapsed_hours)
