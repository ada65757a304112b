# salesscope/modules/datasets/services/row_normalizer.py

"""
Turns one raw CSV row into sales record values.

Ingestion is lenient: a malformed cell degrades to its default instead of
rejecting the row.

- date: unparseable or unmapped -> the ingestion timestamp
- revenue: unparseable, missing, negative or non-finite -> 0
- quantity: unparseable, missing or below 1 -> 1
- product / category: blank -> unset
"""

from datetime import datetime
from typing import Any, Dict, Optional

from ..constants import DEFAULT_QUANTITY, DEFAULT_REVENUE
from .schema_mapper import FieldMapping
from .value_parsing import is_blank, parse_date, parse_float_prefix, parse_int_prefix


def _cell(row: Dict[str, str], column: Optional[str]) -> Optional[str]:
    if column is None:
        return None
    return row.get(column)


def _label(row: Dict[str, str], column: Optional[str]) -> Optional[str]:
    value = _cell(row, column)
    return None if is_blank(value) else value


def normalize_row(
    row: Dict[str, str],
    mapping: FieldMapping,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Coerce a parsed row into the columns of a SalesRecord.

    Args:
        row: Raw cells keyed by header
        mapping: Resolved source header per sales field
        now: Fallback timestamp for rows without a usable date

    Returns:
        Dict with date, revenue, quantity, product and category
    """
    date = parse_date(_cell(row, mapping.date))
    if date is None:
        date = now or datetime.utcnow()

    revenue = parse_float_prefix(_cell(row, mapping.revenue))
    if revenue is None or revenue < 0:
        revenue = DEFAULT_REVENUE

    quantity = parse_int_prefix(_cell(row, mapping.quantity))
    if quantity is None or quantity < 1:
        quantity = DEFAULT_QUANTITY

    return {
        "date": date,
        "revenue": revenue,
        "quantity": quantity,
        "product": _label(row, mapping.product),
        "category": _label(row, mapping.category),
    }
