# salesscope/modules/analytics/services/bucketing.py

"""
Adaptive time bucketing for revenue-over-time series.

The bucket size follows the span of the records actually being charted:
up to a month of data is shown per day, up to a quarter per week
(Monday-anchored), anything longer per calendar month.
"""

import math
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Sequence, Tuple

from ..constants import DAY_BUCKET_MAX_SPAN_DAYS, WEEK_BUCKET_MAX_SPAN_DAYS
from ..schemas.analytics_schemas import BucketGranularity, RevenueByDatePoint

SECONDS_PER_DAY = 24 * 60 * 60


def span_in_days(first: datetime, last: datetime) -> int:
    """Whole days between two timestamps, rounded up"""
    return math.ceil((last - first).total_seconds() / SECONDS_PER_DAY)


def choose_granularity(span_days: int) -> BucketGranularity:
    if span_days <= DAY_BUCKET_MAX_SPAN_DAYS:
        return BucketGranularity.DAY
    if span_days <= WEEK_BUCKET_MAX_SPAN_DAYS:
        return BucketGranularity.WEEK
    return BucketGranularity.MONTH


def bucket_key(moment: datetime, granularity: BucketGranularity) -> str:
    """
    Key of the bucket containing ``moment``.

    Keys sort lexicographically in chronological order:
    day -> YYYY-MM-DD, week -> YYYY-MM-DD of the Monday on/before, month -> YYYY-MM
    """
    day: date = moment.date()
    if granularity == BucketGranularity.DAY:
        return day.isoformat()
    if granularity == BucketGranularity.WEEK:
        return (day - timedelta(days=day.weekday())).isoformat()
    return f"{day.year:04d}-{day.month:02d}"


def bucket_revenue(
    rows: Sequence[Tuple[datetime, float, int]],
) -> Tuple[BucketGranularity, List[RevenueByDatePoint]]:
    """
    Aggregate (date, revenue, quantity) rows into adaptive buckets.

    Args:
        rows: Records ordered by date ascending

    Returns:
        The granularity used and the buckets sorted by key. Empty input
        yields day granularity and no buckets.
    """
    if not rows:
        return BucketGranularity.DAY, []

    granularity = choose_granularity(span_in_days(rows[0][0], rows[-1][0]))
    totals: Dict[str, List[float]] = defaultdict(lambda: [0.0, 0])

    for moment, revenue, quantity in rows:
        entry = totals[bucket_key(moment, granularity)]
        entry[0] += revenue
        entry[1] += quantity

    return granularity, [
        RevenueByDatePoint(bucket_key=key, revenue=revenue, quantity=quantity)
        for key, (revenue, quantity) in sorted(totals.items())
    ]


def daily_series(
    rows: Iterable[Tuple[datetime, float, int]],
    start: date,
    end: date,
) -> List[Tuple[str, float, int]]:
    """
    Zero-filled per-day totals for every calendar day in [start, end].

    Rows outside the window are ignored.
    """
    totals: Dict[date, List[float]] = defaultdict(lambda: [0.0, 0])
    for moment, revenue, quantity in rows:
        day = moment.date()
        if start <= day <= end:
            totals[day][0] += revenue
            totals[day][1] += quantity

    series = []
    current = start
    while current <= end:
        revenue, quantity = totals.get(current, (0.0, 0))
        series.append((current.isoformat(), revenue, int(quantity)))
        current += timedelta(days=1)
    return series
