# salesscope/modules/analytics/services/cache_keys.py

"""
Deterministic cache keys for memoized analytics results.

Key layout: ``analytics:{dataset_id}:{json}`` where the JSON part holds the
set filter fields, the query type and (for product rankings) the limit,
serialized with sorted keys so equal queries always map to the same key.
"""

import json
from typing import Optional

from ..schemas.analytics_schemas import AnalyticsFilter

CACHE_NAMESPACE = "analytics"


class QueryType:
    KPIS = "kpis"
    REVENUE_BY_DATE = "revenue-by-date"
    REVENUE_BY_CATEGORY = "revenue-by-category"
    REVENUE_BY_PRODUCT = "revenue-by-product"


def build_cache_key(
    dataset_id: str,
    filters: AnalyticsFilter,
    query_type: str,
    limit: Optional[int] = None,
) -> str:
    params = filters.cache_params()
    params["type"] = query_type
    if limit is not None:
        params["limit"] = limit
    return f"{dataset_cache_prefix(dataset_id)}{json.dumps(params, sort_keys=True, separators=(',', ':'))}"


def dataset_cache_prefix(dataset_id: str) -> str:
    return f"{CACHE_NAMESPACE}:{dataset_id}:"


def dataset_cache_pattern(dataset_id: str) -> str:
    """Glob matching every cached result of one dataset"""
    return f"{dataset_cache_prefix(dataset_id)}*"
