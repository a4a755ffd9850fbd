import random

from dcreport.data import Allocation
from dcreport.report import daily_issuance, pastel_color_source, random_pastel_color


def test_pastel_colors_in_range():
    rng = random.Random(0)
    for _ in range(20):
        color = random_pastel_color(rng)
        assert len(color) == 3
        assert all(128 / 255 <= c <= 1.0 for c in color)


def test_color_source_is_seedable():
    a = pastel_color_source(42)
    b = pastel_color_source(42)
    assert [a() for _ in range(5)] == [b() for _ in range(5)]


def test_daily_issuance_groups_by_utc_day():
    day = 86400
    allocs = [
        Allocation(address_id="f01", size=10, issued_at=day + 5),
        Allocation(address_id="f02", size=5, issued_at=day + 100),
        Allocation(address_id="f01", size=1, issued_at=0),
    ]
    assert daily_issuance(allocs) == [("1970-01-01", 1), ("1970-01-02", 15)]
