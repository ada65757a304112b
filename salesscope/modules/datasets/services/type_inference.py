# salesscope/modules/datasets/services/type_inference.py

from typing import Dict, List, Optional, Sequence

from ..constants import DEFAULT_SAMPLE_SIZE
from ..models.dataset_models import ColumnType
from ..schemas.dataset_schemas import InferredColumn
from .value_parsing import is_blank, is_date, is_number


def infer_column_type(name: str, values: Sequence[Optional[str]]) -> InferredColumn:
    """
    Classify one column from its sampled cells.

    Blank cells mark the column nullable but never disqualify a type. A
    column stays a NUMBER (or DATE) candidate until the first non-blank cell
    that fails to parse as one. DATE wins over NUMBER, STRING is the fallback.
    """
    candidate_number = True
    candidate_date = True
    nullable = False

    for value in values:
        if is_blank(value):
            nullable = True
            continue

        if candidate_number and not is_number(value):
            candidate_number = False
        if candidate_date and not is_date(value):
            candidate_date = False

    if candidate_date:
        column_type = ColumnType.DATE
    elif candidate_number:
        column_type = ColumnType.NUMBER
    else:
        column_type = ColumnType.STRING

    return InferredColumn(name=name, type=column_type, nullable=nullable)


def infer_column_types(
    rows: Sequence[Dict[str, str]],
    headers: Sequence[str],
    sample_size: int = DEFAULT_SAMPLE_SIZE,
) -> List[InferredColumn]:
    """Infer every column's type from the first ``sample_size`` rows, in header order."""
    sample = rows[:sample_size]
    return [
        infer_column_type(header, [row.get(header) for row in sample])
        for header in headers
    ]
