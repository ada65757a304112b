# salesscope/modules/analytics/services/analytics_service.py

"""
Aggregation engine over ingested sales records.

Per-dataset queries verify that the dataset belongs to the calling
organization before anything else (including the cache lookup), then serve
memoized results for five minutes. Organization-wide dashboard queries are
computed fresh on every call.
"""

import json
import logging
from datetime import date, datetime, time, timedelta
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

from pydantic import TypeAdapter
from sqlalchemy import and_, case, distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from salesscope.core.config import Settings, get_settings
from salesscope.modules.datasets.models.dataset_models import Dataset, DatasetStatus, SalesRecord
from salesscope.modules.datasets.services.dataset_service import get_owned_dataset

from ..constants import (
    DEFAULT_PRODUCT_LIMIT,
    MAX_PRODUCT_LIMIT,
    RECENT_ACTIVITY_LONG_DAYS,
    RECENT_ACTIVITY_SHORT_DAYS,
    TREND_WINDOW_DAYS,
)
from ..schemas.analytics_schemas import (
    AnalyticsFilter,
    AvailableFilters,
    DatasetStats,
    DatasetSummary,
    DateRange,
    KPIResponse,
    OverviewStats,
    RecentActivity,
    RevenueByCategoryItem,
    RevenueByDatePoint,
    RevenueByProductItem,
    TrendPoint,
)
from .bucketing import bucket_revenue, daily_series
from .cache_keys import QueryType, build_cache_key
from .grouping import rank_groups

logger = logging.getLogger(__name__)

T = TypeVar("T")


def build_filter_conditions(dataset_id: str, filters: AnalyticsFilter) -> List[Any]:
    """WHERE clauses for one dataset narrowed by an analytics filter"""
    conditions = [SalesRecord.dataset_id == dataset_id]
    if filters.start_date is not None:
        conditions.append(SalesRecord.date >= datetime.combine(filters.start_date, time.min))
    if filters.end_date is not None:
        # End date is a whole calendar day
        end_exclusive = datetime.combine(filters.end_date + timedelta(days=1), time.min)
        conditions.append(SalesRecord.date < end_exclusive)
    if filters.category is not None:
        conditions.append(SalesRecord.category == filters.category)
    if filters.product is not None:
        conditions.append(SalesRecord.product == filters.product)
    return conditions


def serialize_result(adapter: TypeAdapter, value: Any) -> str:
    return json.dumps(adapter.dump_python(value, mode="json"), sort_keys=True, separators=(",", ":"))


class AnalyticsService:
    """Dataset analytics and organization dashboard statistics"""

    def __init__(self, db: AsyncSession, cache, settings: Optional[Settings] = None):
        self.db = db
        self.cache = cache
        self.settings = settings or get_settings()

    async def _cached(
        self,
        cache_key: str,
        adapter: TypeAdapter,
        compute: Callable[[], Awaitable[T]],
    ) -> T:
        cached = await self.cache.get(cache_key)
        if cached is not None:
            logger.debug(f"Analytics cache hit: {cache_key}")
            return adapter.validate_json(cached)

        logger.debug(f"Analytics cache miss: {cache_key}")
        result = await compute()
        await self.cache.set(
            cache_key,
            serialize_result(adapter, result),
            ttl=self.settings.analytics_cache_ttl_seconds,
        )
        return result

    # Per-dataset analytics

    async def compute_kpis(
        self, dataset_id: str, organization_id: str, filters: AnalyticsFilter
    ) -> KPIResponse:
        await get_owned_dataset(self.db, dataset_id, organization_id)

        async def compute() -> KPIResponse:
            result = await self.db.execute(
                select(
                    func.coalesce(func.sum(SalesRecord.revenue), 0.0),
                    func.coalesce(func.avg(SalesRecord.revenue), 0.0),
                    func.count(SalesRecord.id),
                    func.coalesce(func.sum(SalesRecord.quantity), 0),
                ).where(*build_filter_conditions(dataset_id, filters))
            )
            total_revenue, average_revenue, total_sales, total_quantity = result.one()
            return KPIResponse(
                total_revenue=float(total_revenue),
                average_revenue=float(average_revenue),
                total_sales=int(total_sales),
                total_quantity=int(total_quantity),
            )

        return await self._cached(
            build_cache_key(dataset_id, filters, QueryType.KPIS),
            TypeAdapter(KPIResponse),
            compute,
        )

    async def compute_revenue_by_date(
        self, dataset_id: str, organization_id: str, filters: AnalyticsFilter
    ) -> List[RevenueByDatePoint]:
        """
        Revenue and quantity per time bucket.

        The bucket size is derived from the span of the records matching the
        filter, so narrowing the date range can switch months to weeks or days.
        """
        await get_owned_dataset(self.db, dataset_id, organization_id)

        async def compute() -> List[RevenueByDatePoint]:
            result = await self.db.execute(
                select(SalesRecord.date, SalesRecord.revenue, SalesRecord.quantity)
                .where(*build_filter_conditions(dataset_id, filters))
                .order_by(SalesRecord.date.asc())
            )
            granularity, points = bucket_revenue([tuple(row) for row in result.all()])
            logger.debug(
                f"Dataset {dataset_id}: {len(points)} {granularity.value} buckets"
            )
            return points

        return await self._cached(
            build_cache_key(dataset_id, filters, QueryType.REVENUE_BY_DATE),
            TypeAdapter(List[RevenueByDatePoint]),
            compute,
        )

    async def compute_revenue_by_category(
        self, dataset_id: str, organization_id: str, filters: AnalyticsFilter
    ) -> List[RevenueByCategoryItem]:
        await get_owned_dataset(self.db, dataset_id, organization_id)

        async def compute() -> List[RevenueByCategoryItem]:
            conditions = build_filter_conditions(dataset_id, filters)

            if not self.settings.analytics_store_aggregation:
                result = await self.db.execute(
                    select(SalesRecord.category, SalesRecord.revenue, SalesRecord.quantity)
                    .where(*conditions)
                )
                return [
                    RevenueByCategoryItem(category=g.key, revenue=g.revenue, count=g.count)
                    for g in rank_groups(result.all())
                ]

            revenue = func.sum(SalesRecord.revenue)
            result = await self.db.execute(
                select(SalesRecord.category, revenue, func.count(SalesRecord.id))
                .where(*conditions, SalesRecord.category.isnot(None), SalesRecord.category != "")
                .group_by(SalesRecord.category)
                .order_by(revenue.desc(), SalesRecord.category.asc())
            )
            return [
                RevenueByCategoryItem(category=category, revenue=float(total), count=int(count))
                for category, total, count in result.all()
            ]

        return await self._cached(
            build_cache_key(dataset_id, filters, QueryType.REVENUE_BY_CATEGORY),
            TypeAdapter(List[RevenueByCategoryItem]),
            compute,
        )

    async def compute_revenue_by_product(
        self,
        dataset_id: str,
        organization_id: str,
        filters: AnalyticsFilter,
        limit: int = DEFAULT_PRODUCT_LIMIT,
    ) -> List[RevenueByProductItem]:
        """Top ``limit`` products by revenue"""
        if not 1 <= limit <= MAX_PRODUCT_LIMIT:
            raise ValueError(f"limit must be between 1 and {MAX_PRODUCT_LIMIT}")

        await get_owned_dataset(self.db, dataset_id, organization_id)

        async def compute() -> List[RevenueByProductItem]:
            conditions = build_filter_conditions(dataset_id, filters)

            if not self.settings.analytics_store_aggregation:
                result = await self.db.execute(
                    select(SalesRecord.product, SalesRecord.revenue, SalesRecord.quantity)
                    .where(*conditions)
                )
                return [
                    RevenueByProductItem(product=g.key, revenue=g.revenue, quantity=g.quantity)
                    for g in rank_groups(result.all(), limit=limit)
                ]

            revenue = func.sum(SalesRecord.revenue)
            result = await self.db.execute(
                select(SalesRecord.product, revenue, func.sum(SalesRecord.quantity))
                .where(*conditions, SalesRecord.product.isnot(None), SalesRecord.product != "")
                .group_by(SalesRecord.product)
                .order_by(revenue.desc(), SalesRecord.product.asc())
                .limit(limit)
            )
            return [
                RevenueByProductItem(product=product, revenue=float(total), quantity=int(quantity or 0))
                for product, total, quantity in result.all()
            ]

        return await self._cached(
            build_cache_key(dataset_id, filters, QueryType.REVENUE_BY_PRODUCT, limit=limit),
            TypeAdapter(List[RevenueByProductItem]),
            compute,
        )

    async def list_available_filters(
        self, dataset_id: str, organization_id: str
    ) -> AvailableFilters:
        """Distinct categories and products across the whole dataset"""
        await get_owned_dataset(self.db, dataset_id, organization_id)

        categories = await self.db.execute(
            select(distinct(SalesRecord.category)).where(
                SalesRecord.dataset_id == dataset_id,
                SalesRecord.category.isnot(None),
                SalesRecord.category != "",
            )
        )
        products = await self.db.execute(
            select(distinct(SalesRecord.product)).where(
                SalesRecord.dataset_id == dataset_id,
                SalesRecord.product.isnot(None),
                SalesRecord.product != "",
            )
        )
        return AvailableFilters(
            categories=sorted(categories.scalars().all()),
            products=sorted(products.scalars().all()),
        )

    # Organization dashboard

    async def compute_overview(
        self, organization_id: str, now: Optional[datetime] = None
    ) -> OverviewStats:
        now = now or datetime.utcnow()
        last_short = now - timedelta(days=RECENT_ACTIVITY_SHORT_DAYS)
        last_long = now - timedelta(days=RECENT_ACTIVITY_LONG_DAYS)

        dataset_counts = await self.db.execute(
            select(
                func.count(Dataset.id),
                func.coalesce(
                    func.sum(case((Dataset.status == DatasetStatus.READY, 1), else_=0)), 0
                ),
            ).where(Dataset.organization_id == organization_id)
        )
        total_datasets, datasets_ready = dataset_counts.one()

        record_totals = await self.db.execute(
            select(
                func.coalesce(func.sum(SalesRecord.revenue), 0.0),
                func.coalesce(func.sum(SalesRecord.quantity), 0),
                func.min(SalesRecord.date),
                func.max(SalesRecord.date),
                func.coalesce(
                    func.sum(case((SalesRecord.date >= last_short, SalesRecord.quantity), else_=0)), 0
                ),
                func.coalesce(
                    func.sum(case((SalesRecord.date >= last_long, SalesRecord.quantity), else_=0)), 0
                ),
            )
            .join(Dataset, Dataset.id == SalesRecord.dataset_id)
            .where(Dataset.organization_id == organization_id)
        )
        revenue, quantity, earliest, latest, recent_short, recent_long = record_totals.one()

        return OverviewStats(
            total_revenue=float(revenue),
            total_sales=int(quantity),
            total_datasets=int(total_datasets),
            datasets_ready=int(datasets_ready),
            date_range=DateRange(earliest=earliest, latest=latest),
            recent_activity=RecentActivity(
                last_7_days=int(recent_short),
                last_30_days=int(recent_long),
            ),
        )

    async def compute_datasets_summary(self, organization_id: str) -> List[DatasetSummary]:
        """Every dataset of the organization with its totals, most recently updated first"""
        revenue = func.coalesce(func.sum(SalesRecord.revenue), 0.0)
        quantity = func.coalesce(func.sum(SalesRecord.quantity), 0)

        result = await self.db.execute(
            select(Dataset, revenue, quantity)
            .outerjoin(SalesRecord, SalesRecord.dataset_id == Dataset.id)
            .where(Dataset.organization_id == organization_id)
            .group_by(Dataset.id)
            .order_by(Dataset.updated_at.desc(), Dataset.created_at.desc())
        )

        summaries = []
        for dataset, total_revenue, total_quantity in result.all():
            total_revenue = float(total_revenue)
            total_quantity = int(total_quantity)
            summaries.append(
                DatasetSummary(
                    id=dataset.id,
                    name=dataset.name,
                    status=dataset.status,
                    row_count=dataset.row_count,
                    file_size=dataset.file_size,
                    created_at=dataset.created_at,
                    updated_at=dataset.updated_at,
                    stats=DatasetStats(
                        total_revenue=total_revenue,
                        total_sales=total_quantity,
                        avg_revenue=total_revenue / total_quantity if total_quantity else 0.0,
                    ),
                )
            )
        return summaries

    async def compute_trends(
        self, organization_id: str, today: Optional[date] = None
    ) -> List[TrendPoint]:
        """Daily revenue and units for today and the preceding 30 days, zero-filled"""
        today = today or datetime.utcnow().date()
        window_start = today - timedelta(days=TREND_WINDOW_DAYS)
        window_end = datetime.combine(today + timedelta(days=1), time.min)

        result = await self.db.execute(
            select(SalesRecord.date, SalesRecord.revenue, SalesRecord.quantity)
            .join(Dataset, Dataset.id == SalesRecord.dataset_id)
            .where(
                and_(
                    Dataset.organization_id == organization_id,
                    SalesRecord.date >= datetime.combine(window_start, time.min),
                    SalesRecord.date < window_end,
                )
            )
        )
        return [
            TrendPoint(date=day, revenue=revenue, sales=units)
            for day, revenue, units in daily_series(result.all(), window_start, today)
        ]
