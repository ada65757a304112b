# salesscope/modules/analytics/schemas/analytics_schemas.py

from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Optional, List, Dict, Any
from datetime import datetime, date
from enum import Enum

from salesscope.modules.datasets.models.dataset_models import DatasetStatus


class BucketGranularity(str, Enum):
    """Time bucket chosen for revenue-over-time series"""
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class AnalyticsFilter(BaseModel):
    """
    Immutable query scope for dataset analytics.

    Dates are inclusive calendar days; category and product are exact,
    case-sensitive matches.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    start_date: Optional[date] = Field(None, alias="startDate", description="First day included")
    end_date: Optional[date] = Field(None, alias="endDate", description="Last day included")
    category: Optional[str] = Field(None, description="Exact category match")
    product: Optional[str] = Field(None, description="Exact product match")

    @model_validator(mode="after")
    def validate_date_range(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("endDate must not be before startDate")
        return self

    def cache_params(self) -> Dict[str, Any]:
        """Set fields only, JSON-ready, for cache key derivation"""
        params: Dict[str, Any] = {}
        if self.start_date is not None:
            params["startDate"] = self.start_date.isoformat()
        if self.end_date is not None:
            params["endDate"] = self.end_date.isoformat()
        if self.category is not None:
            params["category"] = self.category
        if self.product is not None:
            params["product"] = self.product
        return params


class KPIResponse(BaseModel):
    """Headline numbers for one dataset"""

    total_revenue: float = Field(description="Sum of revenue")
    average_revenue: float = Field(description="Mean revenue per record")
    total_sales: int = Field(description="Number of records")
    total_quantity: int = Field(description="Sum of quantity")


class RevenueByDatePoint(BaseModel):
    bucket_key: str = Field(description="YYYY-MM-DD for day/week buckets, YYYY-MM for months")
    revenue: float
    quantity: int


class RevenueByCategoryItem(BaseModel):
    category: str
    revenue: float
    count: int


class RevenueByProductItem(BaseModel):
    product: str
    revenue: float
    quantity: int


class AvailableFilters(BaseModel):
    """Distinct labels present in a dataset, sorted"""

    categories: List[str]
    products: List[str]


class DateRange(BaseModel):
    earliest: Optional[datetime] = None
    latest: Optional[datetime] = None


class RecentActivity(BaseModel):
    last_7_days: int = Field(description="Units sold in the last 7 days")
    last_30_days: int = Field(description="Units sold in the last 30 days")


class OverviewStats(BaseModel):
    """Organization-wide dashboard totals"""

    total_revenue: float
    total_sales: int = Field(description="Sum of quantity across all datasets")
    total_datasets: int
    datasets_ready: int
    date_range: DateRange
    recent_activity: RecentActivity


class DatasetStats(BaseModel):
    total_revenue: float
    total_sales: int = Field(description="Sum of quantity")
    avg_revenue: float = Field(description="Revenue per unit sold")


class DatasetSummary(BaseModel):
    id: str
    name: str
    status: DatasetStatus
    row_count: int
    file_size: int
    created_at: datetime
    updated_at: datetime
    stats: DatasetStats


class TrendPoint(BaseModel):
    date: str
    revenue: float
    sales: int = Field(description="Units sold that day")
