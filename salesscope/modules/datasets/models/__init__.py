# salesscope/modules/datasets/models/__init__.py

from .dataset_models import ColumnType, Dataset, DatasetStatus, SalesRecord

__all__ = ["ColumnType", "Dataset", "DatasetStatus", "SalesRecord"]
