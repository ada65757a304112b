# salesscope/modules/analytics/services/grouping.py

"""
In-process grouped aggregation.

Mirrors what the SQL path computes with GROUP BY: rows with an unset key
are dropped, sums are accumulated per key, groups are ranked by revenue
(descending, ties broken by key) and optionally truncated.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple


@dataclass
class GroupTotals:
    key: str
    revenue: float = 0.0
    quantity: int = 0
    count: int = 0


def rank_groups(
    rows: Iterable[Tuple[Optional[str], float, int]],
    limit: Optional[int] = None,
) -> List[GroupTotals]:
    """
    Group (key, revenue, quantity) rows and rank them by summed revenue.

    Args:
        rows: One tuple per record; rows whose key is None or "" are skipped
        limit: Keep only the top ``limit`` groups

    Returns:
        Groups ordered by revenue descending
    """
    groups: Dict[str, GroupTotals] = {}
    for key, revenue, quantity in rows:
        if not key:
            continue
        group = groups.get(key)
        if group is None:
            group = groups[key] = GroupTotals(key=key)
        group.revenue += revenue
        group.quantity += quantity
        group.count += 1

    ranked = sorted(groups.values(), key=lambda g: (-g.revenue, g.key))
    if limit is not None:
        ranked = ranked[:limit]
    return ranked
