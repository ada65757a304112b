# salesscope/modules/datasets/schemas/dataset_schemas.py

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import datetime

from ..models.dataset_models import ColumnType, DatasetStatus


class InferredColumn(BaseModel):
    """Inferred schema of one CSV column"""

    model_config = ConfigDict(frozen=True)

    name: str
    type: ColumnType
    nullable: bool = False


class SalesRecordResponse(BaseModel):
    """One normalized sales row"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    date: datetime
    revenue: float
    quantity: int
    product: Optional[str] = None
    category: Optional[str] = None


class DatasetResponse(BaseModel):
    """Dataset metadata as returned by the API"""

    model_config = ConfigDict(from_attributes=True)

    id: str
    organization_id: str
    created_by_id: Optional[str] = None
    name: str
    file_name: str
    file_size: int
    row_count: int
    columns: List[InferredColumn] = Field(default_factory=list)
    status: DatasetStatus
    error_message: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class DatasetDetailResponse(DatasetResponse):
    """Dataset with its most recent sales records"""

    sales_records: List[SalesRecordResponse] = Field(default_factory=list)


class PaginationInfo(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class DatasetListResponse(BaseModel):
    success: bool = True
    data: List[DatasetResponse]
    pagination: PaginationInfo
