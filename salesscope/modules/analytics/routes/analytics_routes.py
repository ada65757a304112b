# salesscope/modules/analytics/routes/analytics_routes.py

from datetime import date
from typing import Optional
import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from salesscope.core.auth import CurrentUser, get_current_user
from salesscope.core.cache import get_cache
from salesscope.core.config import Settings, get_settings
from salesscope.core.database import get_db

from ..constants import DEFAULT_PRODUCT_LIMIT, MAX_PRODUCT_LIMIT
from ..schemas.analytics_schemas import AnalyticsFilter
from ..services.analytics_service import AnalyticsService

router = APIRouter(prefix="/analytics", tags=["Analytics"])
logger = logging.getLogger(__name__)


def get_analytics_filter(
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    category: Optional[str] = Query(None),
    product: Optional[str] = Query(None),
) -> AnalyticsFilter:
    """Validate query parameters once into an immutable filter"""
    return AnalyticsFilter(
        start_date=start_date,
        end_date=end_date,
        category=category or None,
        product=product or None,
    )


def get_analytics_service(
    db: AsyncSession = Depends(get_db),
    cache=Depends(get_cache),
    settings: Settings = Depends(get_settings),
) -> AnalyticsService:
    return AnalyticsService(db, cache, settings)


# Dashboard routes are declared before /{dataset_id}/... so their paths never
# get captured as dataset ids.


@router.get("/overview")
async def get_overview(
    service: AnalyticsService = Depends(get_analytics_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Organization-wide totals across all datasets"""
    return {"success": True, "data": await service.compute_overview(current_user.organization_id)}


@router.get("/datasets-summary")
async def get_datasets_summary(
    service: AnalyticsService = Depends(get_analytics_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    summary = await service.compute_datasets_summary(current_user.organization_id)
    return {"success": True, "data": summary}


@router.get("/trends")
async def get_trends(
    service: AnalyticsService = Depends(get_analytics_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Daily revenue for the last 30 days plus today"""
    return {"success": True, "data": await service.compute_trends(current_user.organization_id)}


@router.get("/{dataset_id}/kpis")
async def get_kpis(
    dataset_id: str,
    filters: AnalyticsFilter = Depends(get_analytics_filter),
    service: AnalyticsService = Depends(get_analytics_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    kpis = await service.compute_kpis(dataset_id, current_user.organization_id, filters)
    return {"success": True, "data": kpis}


@router.get("/{dataset_id}/revenue-by-date")
async def get_revenue_by_date(
    dataset_id: str,
    filters: AnalyticsFilter = Depends(get_analytics_filter),
    service: AnalyticsService = Depends(get_analytics_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Revenue over time, bucketed by day, week or month depending on the span"""
    points = await service.compute_revenue_by_date(dataset_id, current_user.organization_id, filters)
    return {"success": True, "data": points}


@router.get("/{dataset_id}/revenue-by-category")
async def get_revenue_by_category(
    dataset_id: str,
    filters: AnalyticsFilter = Depends(get_analytics_filter),
    service: AnalyticsService = Depends(get_analytics_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    items = await service.compute_revenue_by_category(
        dataset_id, current_user.organization_id, filters
    )
    return {"success": True, "data": items}


@router.get("/{dataset_id}/revenue-by-product")
async def get_revenue_by_product(
    dataset_id: str,
    limit: int = Query(DEFAULT_PRODUCT_LIMIT, ge=1, le=MAX_PRODUCT_LIMIT),
    filters: AnalyticsFilter = Depends(get_analytics_filter),
    service: AnalyticsService = Depends(get_analytics_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Top products by revenue"""
    items = await service.compute_revenue_by_product(
        dataset_id, current_user.organization_id, filters, limit=limit
    )
    return {"success": True, "data": items}


@router.get("/{dataset_id}/filters")
async def get_available_filters(
    dataset_id: str,
    service: AnalyticsService = Depends(get_analytics_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    filters = await service.list_available_filters(dataset_id, current_user.organization_id)
    return {"success": True, "data": filters}
