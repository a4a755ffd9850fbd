from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

IEC_UNITS = ("B", "KiB", "MiB", "GiB", "TiB", "PiB", "EiB")
MAX_DECIMALS = 2


def format_number(value: float | Decimal, max_decimals: int = MAX_DECIMALS) -> str:
    """小数 max_decimals 桁で四捨五入し、末尾の 0 を落とした文字列にする。"""
    if max_decimals < 0:
        raise ValueError("max_decimals は 0 以上である必要があります")
    dec = value if isinstance(value, Decimal) else Decimal(str(value))
    if dec.is_nan() or dec.is_infinite():
        raise ValueError(f"有限の数値ではありません: {value}")
    quantum = Decimal(1).scaleb(-max_decimals)
    text = format(dec.quantize(quantum, rounding=ROUND_HALF_UP), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text in ("-0", ""):
        text = "0"
    return text


def format_bytes_iec(size: int) -> str:
    """バイト数を IEC 単位（1024 基数）で表示する。例: 100 B / 1.5 KiB / 2 GiB。"""
    if isinstance(size, bool) or not isinstance(size, int):
        raise TypeError("size は int である必要があります")
    if size < 0:
        raise ValueError("size は 0 以上である必要があります")
    value = Decimal(size)
    unit_idx = 0
    while value >= 1024 and unit_idx < len(IEC_UNITS) - 1:
        value /= 1024
        unit_idx += 1
    return f"{format_number(value)} {IEC_UNITS[unit_idx]}"
