# salesscope/modules/datasets/services/schema_mapper.py

"""
Maps loosely named CSV headers onto the canonical sales fields.

Resolution is case-insensitive and follows the fixed alias priority in
``constants.FIELD_ALIASES``; the resolved value is the header as it
appears in the file.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from ..constants import FIELD_ALIASES, REQUIRED_FIELDS
from ..exceptions import SchemaValidationError
from ..schemas.dataset_schemas import InferredColumn


@dataclass(frozen=True)
class FieldMapping:
    """Source header for each sales field (None when the file has no such column)"""

    date: Optional[str] = None
    revenue: Optional[str] = None
    quantity: Optional[str] = None
    product: Optional[str] = None
    category: Optional[str] = None


def _first_alias(lookup: Dict[str, str], aliases: Iterable[str]) -> Optional[str]:
    for alias in aliases:
        if alias in lookup:
            return lookup[alias]
    return None


def resolve_field_mapping(columns: List[InferredColumn]) -> FieldMapping:
    """Pick the source column for every sales field."""
    lookup: Dict[str, str] = {}
    for column in columns:
        # First header wins when two differ only by case
        lookup.setdefault(column.name.lower(), column.name)

    return FieldMapping(**{
        field_name: _first_alias(lookup, aliases)
        for field_name, aliases in FIELD_ALIASES.items()
    })


def validate_field_mapping(mapping: FieldMapping) -> None:
    """
    Ensure the required sales fields were found.

    Raises:
        SchemaValidationError: no date column, or no revenue column
    """
    for field_name in REQUIRED_FIELDS:
        if getattr(mapping, field_name) is None:
            raise SchemaValidationError(field_name, FIELD_ALIASES[field_name])


def map_columns(columns: List[InferredColumn]) -> FieldMapping:
    """Resolve and validate in one step."""
    mapping = resolve_field_mapping(columns)
    validate_field_mapping(mapping)
    return mapping
