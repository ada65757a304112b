# salesscope/modules/datasets/services/dataset_service.py

import logging
from typing import List, Optional, Tuple

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from salesscope.core.config import Settings, get_settings
from salesscope.core.exceptions import NotFoundError
from salesscope.modules.analytics.services.cache_keys import dataset_cache_pattern

from ..constants import DEFAULT_PAGE_SIZE, DEFAULT_RECORD_PREVIEW_LIMIT, MAX_PAGE_SIZE
from ..models.dataset_models import Dataset, SalesRecord
from ..schemas.dataset_schemas import DatasetDetailResponse, DatasetResponse, SalesRecordResponse
from .ingestion_pipeline import IngestionPipeline

logger = logging.getLogger(__name__)


async def get_owned_dataset(
    db: AsyncSession, dataset_id: str, organization_id: str
) -> Dataset:
    """
    Load a dataset scoped to the calling organization.

    Missing and foreign datasets are indistinguishable to the caller.

    Raises:
        NotFoundError: no dataset with this id belongs to the organization
    """
    result = await db.execute(
        select(Dataset).where(
            Dataset.id == dataset_id,
            Dataset.organization_id == organization_id,
        )
    )
    dataset = result.scalar_one_or_none()
    if dataset is None:
        raise NotFoundError("Dataset not found")
    return dataset


class DatasetService:
    """Upload, retrieval and deletion of an organization's datasets"""

    def __init__(self, db: AsyncSession, cache, settings: Optional[Settings] = None):
        self.db = db
        self.cache = cache
        self.settings = settings or get_settings()

    async def upload_dataset(
        self,
        organization_id: str,
        uploader_id: str,
        name: str,
        csv_text: str,
        file_name: str,
        file_size: int,
    ) -> Dataset:
        """Ingest a CSV upload; see IngestionPipeline.ingest for failure modes."""
        pipeline = IngestionPipeline(
            self.db,
            batch_size=self.settings.ingestion_batch_size,
            sample_size=self.settings.inference_sample_size,
        )
        return await pipeline.ingest(
            organization_id, uploader_id, name, csv_text, file_name, file_size
        )

    async def get_dataset(self, dataset_id: str, organization_id: str) -> Dataset:
        return await get_owned_dataset(self.db, dataset_id, organization_id)

    async def get_dataset_detail(
        self,
        dataset_id: str,
        organization_id: str,
        include_records: bool = True,
        limit: int = DEFAULT_RECORD_PREVIEW_LIMIT,
    ) -> DatasetDetailResponse:
        """Dataset metadata plus its latest records (newest first)"""
        dataset = await get_owned_dataset(self.db, dataset_id, organization_id)
        # Built from DatasetResponse so the lazy relationship is never touched
        metadata = DatasetResponse.model_validate(dataset).model_dump()
        if not include_records:
            return DatasetDetailResponse(**metadata)

        result = await self.db.execute(
            select(SalesRecord)
            .where(SalesRecord.dataset_id == dataset_id)
            .order_by(SalesRecord.date.desc(), SalesRecord.id.desc())
            .limit(limit)
        )
        return DatasetDetailResponse(
            **metadata,
            sales_records=[
                SalesRecordResponse.model_validate(record)
                for record in result.scalars().all()
            ],
        )

    async def list_datasets(
        self, organization_id: str, page: int = 1, limit: int = DEFAULT_PAGE_SIZE
    ) -> Tuple[List[Dataset], int]:
        """Newest-first page of the organization's datasets and the total count"""
        if page < 1:
            raise ValueError("page must be at least 1")
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValueError(f"limit must be between 1 and {MAX_PAGE_SIZE}")

        total = await self.db.scalar(
            select(func.count(Dataset.id)).where(Dataset.organization_id == organization_id)
        )
        result = await self.db.execute(
            select(Dataset)
            .where(Dataset.organization_id == organization_id)
            .order_by(Dataset.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars().all()), total or 0

    async def delete_dataset(self, dataset_id: str, organization_id: str) -> None:
        """Delete a dataset, its sales records and its cached analytics"""
        dataset = await get_owned_dataset(self.db, dataset_id, organization_id)

        await self.db.execute(delete(SalesRecord).where(SalesRecord.dataset_id == dataset_id))
        await self.db.delete(dataset)
        await self.db.commit()

        removed = await self.cache.delete_pattern(dataset_cache_pattern(dataset_id))
        logger.info(
            f"Deleted dataset {dataset_id} for organization {organization_id} "
            f"({removed} cached results invalidated)"
        )
