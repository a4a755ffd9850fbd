import pytest

from dcreport.data import BAND_LABELS, Allocation, AllocationOutcome, Deal, Milestone
from dcreport.tracking import MilestoneHistogram, bucketize, build_histogram, classify_band

H = 3600


@pytest.mark.parametrize(
    "hours,label",
    [
        (-5.0, "< 1"),
        (0.0, "< 1"),
        (0.99, "< 1"),
        (1.0, "1 - 12"),
        (11.99, "1 - 12"),
        (12.0, "12 - 24"),
        (24.0, "24 - 48"),
        (47.9, "24 - 48"),
        (48.0, "> 48"),
        (10_000.0, "> 48"),
    ],
)
def test_classify_band_half_open(hours, label):
    assert classify_band(hours) == label


def test_empty_histogram_has_all_cells():
    hist = bucketize([])
    data = hist.to_dict()
    assert set(data) == set(Milestone)
    for bands in data.values():
        assert tuple(bands) == BAND_LABELS
        assert all(v == 0 for v in bands.values())


def test_absent_milestones_do_not_count():
    alloc = Allocation(address_id="f01", size=100, issued_at=0)
    outcome = AllocationOutcome(
        allocation=alloc,
        milestone_elapsed_hours={Milestone.FIRST: 0.5, Milestone.QUARTER: 13.0},
    )
    hist = bucketize([outcome])

    assert hist.counts(Milestone.FIRST)["< 1"] == 1
    assert hist.counts(Milestone.QUARTER)["12 - 24"] == 1
    assert hist.total(Milestone.HALF) == 0
    assert hist.total(Milestone.FULL) == 0


def test_totals_match_recorded_outcomes():
    outcomes = [
        AllocationOutcome(
            allocation=Allocation(address_id="f01", size=1, issued_at=0),
            milestone_elapsed_hours={m: float(i * 10) for m in list(Milestone)[: i % 6]},
        )
        for i in range(12)
    ]
    hist = bucketize(outcomes)
    for m in Milestone:
        expected = sum(1 for o in outcomes if o.elapsed(m) is not None)
        assert hist.total(m) == expected


def test_merge_sums_counts():
    a = MilestoneHistogram({Milestone.FIRST: {"< 1": 2}})
    b = MilestoneHistogram({"first": {"< 1": 1, "> 48": 4}})
    a.merge(b)
    assert a.counts(Milestone.FIRST) == {"< 1": 3, "1 - 12": 0, "12 - 24": 0, "24 - 48": 0, "> 48": 4}


def test_unknown_band_label_is_rejected():
    with pytest.raises(ValueError):
        MilestoneHistogram({Milestone.FIRST: {"2 - 3": 1}})


def _timelines(n_clients):
    allocs = {}
    deals = {}
    for c in range(n_clients):
        cid = f"f0{c}"
        allocs[cid] = [Allocation(address_id=cid, size=100 + c, issued_at=i * 10 * H) for i in range(3)]
        deals[cid] = [Deal(client_id=cid, size_bytes=20 + c, started_at=(i + c) * H) for i in range(20)]
    return allocs, deals


def test_parallel_matches_sequential():
    allocs, deals = _timelines(9)
    sequential = build_histogram(allocs, deals)
    parallel = build_histogram(allocs, deals, max_workers=4)
    assert sequential == parallel
    assert sequential.total(Milestone.FIRST) > 0


def test_client_without_deals():
    allocs = {"f01": [Allocation(address_id="f01", size=10, issued_at=0)]}
    hist = build_histogram(allocs, {})
    assert all(hist.total(m) == 0 for m in Milestone)
