# salesscope/modules/datasets/models/dataset_models.py

from enum import Enum

from sqlalchemy import (
    Column, Integer, String, ForeignKey, DateTime, Float, Text, JSON,
    BigInteger, Index, Enum as SQLEnum
)
from sqlalchemy.orm import relationship

from salesscope.core.database import Base
from salesscope.core.mixins import TimestampMixin, generate_id


class DatasetStatus(str, Enum):
    """Lifecycle of an uploaded CSV"""
    UPLOADING = "UPLOADING"
    PROCESSING = "PROCESSING"
    READY = "READY"
    FAILED = "FAILED"


class ColumnType(str, Enum):
    """Inferred type of a CSV column"""
    NUMBER = "NUMBER"
    DATE = "DATE"
    STRING = "STRING"


class Dataset(Base, TimestampMixin):
    """
    One uploaded CSV and its inferred schema, owned by an organization.

    ``columns`` holds the inferred schema as an ordered list of
    ``{"name", "type", "nullable"}`` objects.
    """
    __tablename__ = "datasets"

    id = Column(String(32), primary_key=True, default=generate_id)
    organization_id = Column(
        String(32), ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False, index=True
    )
    created_by_id = Column(
        String(32), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    name = Column(String(255), nullable=False)
    file_name = Column(String(255), nullable=False)
    file_size = Column(BigInteger, nullable=False, default=0)
    row_count = Column(Integer, nullable=False, default=0)
    columns = Column(JSON, nullable=False, default=list)

    status = Column(
        SQLEnum(DatasetStatus, name="dataset_status"),
        nullable=False, default=DatasetStatus.UPLOADING, index=True
    )
    error_message = Column(Text, nullable=True)

    sales_records = relationship(
        "SalesRecord", back_populates="dataset", passive_deletes=True
    )

    __table_args__ = (
        Index("idx_dataset_org_created", "organization_id", "created_at"),
        Index("idx_dataset_org_updated", "organization_id", "updated_at"),
    )


class SalesRecord(Base):
    """
    One normalized transaction row. Immutable after ingestion; removed only
    together with its dataset.
    """
    __tablename__ = "sales_records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    dataset_id = Column(
        String(32), ForeignKey("datasets.id", ondelete="CASCADE"),
        nullable=False, index=True
    )

    date = Column(DateTime, nullable=False)
    revenue = Column(Float, nullable=False, default=0.0)
    quantity = Column(Integer, nullable=False, default=1)
    product = Column(String(255), nullable=True)
    category = Column(String(255), nullable=True)

    dataset = relationship("Dataset", back_populates="sales_records")

    __table_args__ = (
        Index("idx_sales_dataset_date", "dataset_id", "date"),
        Index("idx_sales_dataset_category", "dataset_id", "category"),
        Index("idx_sales_dataset_product", "dataset_id", "product"),
    )
