# salesscope/modules/datasets/exceptions.py

"""
Custom exceptions for the datasets module.

Every ingestion failure maps to one of these so the API layer can turn it
into a structured response without inspecting messages.
"""

from typing import Optional, Dict, Any, List


class DatasetBaseException(Exception):
    """Base exception for all dataset ingestion errors"""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class ParseError(DatasetBaseException):
    """Raised when the CSV text is structurally malformed"""

    def __init__(self, reason: str, row: Optional[int] = None):
        message = f"CSV parsing error: {reason}"
        details = {"reason": reason, "row": row}
        super().__init__(message, "CSV_PARSE_ERROR", details)


class EmptyFileError(DatasetBaseException):
    """Raised when the CSV yields no data rows"""

    def __init__(self):
        super().__init__("CSV file is empty", "EMPTY_FILE")


class SchemaValidationError(DatasetBaseException):
    """Raised when a required sales column cannot be found"""

    def __init__(self, field: str, accepted_names: List[str]):
        names = ", ".join(accepted_names[:-1]) + f", or {accepted_names[-1]}"
        message = f"CSV must contain a {field} column ({names})"
        details = {"field": field, "accepted_names": accepted_names}
        super().__init__(message, "SCHEMA_VALIDATION_ERROR", details)


class IngestionPersistError(DatasetBaseException):
    """Raised when saving sales records fails after the dataset exists"""

    def __init__(self, dataset_id: str, reason: str, persisted_rows: int = 0):
        message = f"Failed to persist dataset {dataset_id}: {reason}"
        details = {
            "dataset_id": dataset_id,
            "reason": reason,
            "persisted_rows": persisted_rows,
        }
        super().__init__(message, "INGESTION_PERSIST_ERROR", details)
        self.dataset_id = dataset_id
