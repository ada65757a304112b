# salesscope/modules/datasets/routes/dataset_routes.py

import logging
import math
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from salesscope.core.auth import CurrentUser, get_current_user
from salesscope.core.cache import get_cache
from salesscope.core.config import Settings, get_settings
from salesscope.core.database import get_db
from salesscope.core.exceptions import ValidationError

from ..constants import (
    CSV_CONTENT_TYPES,
    CSV_EXTENSION,
    DEFAULT_PAGE_SIZE,
    DEFAULT_RECORD_PREVIEW_LIMIT,
    MAX_PAGE_SIZE,
)
from ..schemas.dataset_schemas import DatasetListResponse, DatasetResponse, PaginationInfo
from ..services.dataset_service import DatasetService

router = APIRouter(prefix="/datasets", tags=["Datasets"])
logger = logging.getLogger(__name__)


def _is_csv(upload: UploadFile) -> bool:
    filename = (upload.filename or "").lower()
    return upload.content_type in CSV_CONTENT_TYPES or filename.endswith(CSV_EXTENSION)


@router.post("/upload", status_code=status.HTTP_201_CREATED)
async def upload_dataset(
    file: UploadFile = File(..., description="CSV file with sales transactions"),
    name: Optional[str] = Form(None, description="Dataset name, defaults to the file name"),
    db: AsyncSession = Depends(get_db),
    cache=Depends(get_cache),
    settings: Settings = Depends(get_settings),
    current_user: CurrentUser = Depends(get_current_user),
):
    """
    Upload a CSV file and ingest it as a new dataset.

    The file must contain a date column and a revenue column (see the
    accepted header aliases); quantity, product and category are optional.
    """
    if not _is_csv(file):
        raise ValidationError("Only CSV files are allowed", error_code="INVALID_FILE_TYPE")

    content = await file.read()
    if len(content) > settings.max_upload_size_bytes:
        raise ValidationError(
            f"File exceeds the {settings.max_upload_size_mb}MB upload limit",
            error_code="FILE_TOO_LARGE",
        )

    try:
        csv_text = content.decode("utf-8")
    except UnicodeDecodeError:
        raise ValidationError("CSV file must be UTF-8 encoded", error_code="INVALID_ENCODING")

    file_name = file.filename or "upload.csv"
    dataset_name = name or file_name
    if not name and dataset_name.lower().endswith(CSV_EXTENSION):
        dataset_name = dataset_name[: -len(CSV_EXTENSION)]

    service = DatasetService(db, cache, settings)
    dataset = await service.upload_dataset(
        organization_id=current_user.organization_id,
        uploader_id=current_user.id,
        name=dataset_name,
        csv_text=csv_text,
        file_name=file_name,
        file_size=len(content),
    )
    return {"success": True, "data": DatasetResponse.model_validate(dataset)}


@router.get("", response_model=DatasetListResponse)
async def list_datasets(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_db),
    cache=Depends(get_cache),
    current_user: CurrentUser = Depends(get_current_user),
):
    """List the organization's datasets, newest first"""
    service = DatasetService(db, cache)
    datasets, total = await service.list_datasets(current_user.organization_id, page, limit)
    return DatasetListResponse(
        data=[DatasetResponse.model_validate(d) for d in datasets],
        pagination=PaginationInfo(
            page=page,
            limit=limit,
            total=total,
            total_pages=math.ceil(total / limit),
        ),
    )


@router.get("/{dataset_id}")
async def get_dataset(
    dataset_id: str,
    include_records: bool = Query(True, alias="includeRecords"),
    limit: int = Query(DEFAULT_RECORD_PREVIEW_LIMIT, ge=1, le=DEFAULT_RECORD_PREVIEW_LIMIT),
    db: AsyncSession = Depends(get_db),
    cache=Depends(get_cache),
    current_user: CurrentUser = Depends(get_current_user),
):
    service = DatasetService(db, cache)
    detail = await service.get_dataset_detail(
        dataset_id, current_user.organization_id, include_records=include_records, limit=limit
    )
    return {"success": True, "data": detail}


@router.delete("/{dataset_id}")
async def delete_dataset(
    dataset_id: str,
    db: AsyncSession = Depends(get_db),
    cache=Depends(get_cache),
    current_user: CurrentUser = Depends(get_current_user),
):
    service = DatasetService(db, cache)
    await service.delete_dataset(dataset_id, current_user.organization_id)
    return {"success": True, "message": "Dataset deleted successfully"}
