"""割当消化の追跡と集計。"""

from .buckets import MilestoneHistogram, bucketize, build_histogram, classify_band, empty_histogram
from .progression import (
    AllocationProgressionRow,
    format_percentage,
    percentage_change,
    progression_row,
    progression_rows,
)
from .thresholds import SECONDS_PER_HOUR, TimelineError, track_allocation, track_thresholds

__all__ = [
    "SECONDS_PER_HOUR",
    "AllocationProgressionRow",
    "MilestoneHistogram",
    "TimelineError",
    "bucketize",
    "build_histogram",
    "classify_band",
    "empty_histogram",
    "format_percentage",
    "percentage_change",
    "progression_row",
    "progression_rows",
    "track_allocation",
    "track_thresholds",
]
