import pytest

from dcreport.data import Allocation, Deal, Milestone
from dcreport.tracking import TimelineError, bucketize, track_allocation, track_thresholds

H = 3600


def test_cursor_is_not_rewound_between_allocations():
    allocs = [
        Allocation(address_id="f01", size=10, issued_at=0),
        Allocation(address_id="f01", size=10, issued_at=H),
    ]
    deals = [
        Deal(client_id="f01", size_bytes=10, started_at=2 * H),
        Deal(client_id="f01", size_bytes=5, started_at=3 * H),
        Deal(client_id="f01", size_bytes=5, started_at=20 * H),
    ]
    first, second = track_thresholds(allocs, deals)

    assert first.elapsed(Milestone.FULL) == 2.0
    # 2件目の割当は deal[1] から数える
    assert second.elapsed(Milestone.FIRST) == 2.0
    assert second.elapsed(Milestone.HALF) == 2.0
    assert second.elapsed(Milestone.FULL) == 19.0


def test_track_allocation_returns_next_cursor():
    alloc = Allocation(address_id="f01", size=10, issued_at=0)
    deals = [
        Deal(client_id="f01", size_bytes=4, started_at=H),
        Deal(client_id="f01", size_bytes=6, started_at=2 * H),
        Deal(client_id="f01", size_bytes=6, started_at=3 * H),
    ]
    _, cursor = track_allocation(alloc, deals, 0)
    assert cursor == 2

    _, cursor = track_allocation(alloc, deals, cursor)
    # FULL に届かず deal を使い切ったら末尾
    assert cursor == len(deals)


def test_exhausted_deals_leave_later_allocations_empty():
    allocs = [
        Allocation(address_id="f01", size=100, issued_at=0),
        Allocation(address_id="f01", size=100, issued_at=H),
    ]
    deals = [Deal(client_id="f01", size_bytes=60, started_at=H)]
    first, second = track_thresholds(allocs, deals)

    assert first.reached == (Milestone.FIRST, Milestone.QUARTER, Milestone.HALF)
    assert second.reached == ()


def test_no_deal_counted_for_two_allocations():
    allocs = [Allocation(address_id="f01", size=7, issued_at=i * H) for i in range(4)]
    deals = [Deal(client_id="f01", size_bytes=3, started_at=(i + 1) * H) for i in range(12)]
    cursor = 0
    consumed = []
    for alloc in allocs:
        _, nxt = track_allocation(alloc, deals, cursor)
        assert nxt >= cursor
        consumed.append(range(cursor, nxt))
        cursor = nxt
    seen = [i for r in consumed for i in r]
    assert len(seen) == len(set(seen))


def test_unsorted_allocations_fail_fast():
    allocs = [
        Allocation(address_id="f01", size=10, issued_at=H),
        Allocation(address_id="f01", size=10, issued_at=0),
    ]
    with pytest.raises(TimelineError):
        track_thresholds(allocs, [])


def test_unsorted_deals_fail_fast():
    allocs = [Allocation(address_id="f01", size=10, issued_at=0)]
    deals = [
        Deal(client_id="f01", size_bytes=1, started_at=2 * H),
        Deal(client_id="f01", size_bytes=1, started_at=H),
    ]
    with pytest.raises(TimelineError):
        track_thresholds(allocs, deals)


def test_foreign_deal_is_rejected():
    allocs = [Allocation(address_id="f01", size=10, issued_at=0)]
    deals = [Deal(client_id="f02", size_bytes=1, started_at=H)]
    with pytest.raises(TimelineError):
        track_thresholds(allocs, deals)


def test_negative_size_is_rejected():
    with pytest.raises(ValueError):
        Allocation(address_id="f01", size=-1, issued_at=0)
    with pytest.raises(ValueError):
        Deal(client_id="f01", size_bytes=-5, started_at=0)


def test_equal_timestamps_are_consumed_in_order():
    allocs = [
        Allocation(address_id="f01", size=10, issued_at=0),
        Allocation(address_id="f01", size=10, issued_at=0),
    ]
    deals = [
        Deal(client_id="f01", size_bytes=10, started_at=0),
        Deal(client_id="f01", size_bytes=10, started_at=0),
    ]
    first, cursor = track_allocation(allocs[0], deals, 0)
    assert cursor == 1
    second, cursor = track_allocation(allocs[1], deals, cursor)
    assert cursor == 2

    outcomes = track_thresholds(allocs, deals)
    assert outcomes == [first, second]
    for outcome in outcomes:
        assert outcome.elapsed(Milestone.FULL) == 0.0

    hist = bucketize(outcomes)
    assert hist.counts(Milestone.FULL)["< 1"] == 2
    assert hist.total(Milestone.FULL) == 2
