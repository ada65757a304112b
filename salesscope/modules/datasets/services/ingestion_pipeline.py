# salesscope/modules/datasets/services/ingestion_pipeline.py

"""
CSV ingestion pipeline: parse -> infer -> validate -> map -> persist.

Structural problems (malformed CSV, no rows, missing required columns) are
raised before any Dataset exists. Once the Dataset is created it is
durable: rows are written in sequential batches, each committed on its own,
and any failure leaves the Dataset FAILED with the error stored on it.
Previously committed batches are kept.
"""

import logging
from datetime import datetime
from typing import List

from sqlalchemy import insert, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..constants import DEFAULT_BATCH_SIZE, DEFAULT_SAMPLE_SIZE
from ..exceptions import EmptyFileError, IngestionPersistError, ParseError
from ..models.dataset_models import Dataset, DatasetStatus, SalesRecord
from ..schemas.dataset_schemas import InferredColumn
from .csv_parser import parse_csv
from .row_normalizer import normalize_row
from .schema_mapper import FieldMapping, map_columns
from .type_inference import infer_column_types

logger = logging.getLogger(__name__)


class IngestionPipeline:
    """Turns uploaded CSV text into a Dataset and its SalesRecords"""

    def __init__(
        self,
        db: AsyncSession,
        batch_size: int = DEFAULT_BATCH_SIZE,
        sample_size: int = DEFAULT_SAMPLE_SIZE,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.db = db
        self.batch_size = batch_size
        self.sample_size = sample_size

    async def ingest(
        self,
        organization_id: str,
        uploader_id: str,
        name: str,
        csv_text: str,
        file_name: str,
        file_size: int,
    ) -> Dataset:
        """
        Ingest one CSV file for an organization.

        Raises:
            ParseError: the parser reported structural errors
            EmptyFileError: the file has no data rows
            SchemaValidationError: no date or no revenue column
            IngestionPersistError: saving records failed; the Dataset is FAILED
        """
        parsed = parse_csv(csv_text)
        if parsed.errors:
            first = parsed.errors[0]
            raise ParseError(first.message, row=first.row)
        if not parsed.rows:
            raise EmptyFileError()

        columns = infer_column_types(parsed.rows, parsed.headers, self.sample_size)
        mapping = map_columns(columns)

        dataset = await self._create_dataset(
            organization_id, uploader_id, name, file_name, file_size,
            row_count=len(parsed.rows), columns=columns,
        )
        dataset_id = dataset.id
        logger.info(
            f"Ingesting dataset {dataset_id} for organization {organization_id}: "
            f"{len(parsed.rows)} rows, {len(columns)} columns"
        )

        persisted = 0
        try:
            for start in range(0, len(parsed.rows), self.batch_size):
                batch = parsed.rows[start:start + self.batch_size]
                persisted += await self._persist_batch(dataset_id, batch, mapping)

            dataset.status = DatasetStatus.READY
            await self.db.commit()

        except Exception as e:
            reason = str(e) or e.__class__.__name__
            logger.error(
                f"Ingestion of dataset {dataset_id} failed after "
                f"{persisted}/{len(parsed.rows)} rows: {reason}"
            )
            await self._mark_failed(dataset_id, reason)
            raise IngestionPersistError(dataset_id, reason, persisted) from e

        logger.info(f"Dataset {dataset_id} is ready ({persisted} records)")
        return dataset

    async def _create_dataset(
        self,
        organization_id: str,
        uploader_id: str,
        name: str,
        file_name: str,
        file_size: int,
        row_count: int,
        columns: List[InferredColumn],
    ) -> Dataset:
        dataset = Dataset(
            organization_id=organization_id,
            created_by_id=uploader_id,
            name=name,
            file_name=file_name,
            file_size=file_size,
            row_count=row_count,
            columns=[column.model_dump(mode="json") for column in columns],
            status=DatasetStatus.PROCESSING,
        )
        self.db.add(dataset)
        await self.db.commit()
        return dataset

    async def _persist_batch(
        self, dataset_id: str, batch: List[dict], mapping: FieldMapping
    ) -> int:
        ingested_at = datetime.utcnow()
        records = [
            {"dataset_id": dataset_id, **normalize_row(row, mapping, now=ingested_at)}
            for row in batch
        ]
        await self.db.execute(insert(SalesRecord), records)
        await self.db.commit()
        return len(records)

    async def _mark_failed(self, dataset_id: str, reason: str) -> None:
        await self.db.rollback()
        await self.db.execute(
            update(Dataset)
            .where(Dataset.id == dataset_id)
            .values(
                status=DatasetStatus.FAILED,
                error_message=reason,
                updated_at=datetime.utcnow(),
            )
        )
        await self.db.commit()
