# salesscope/modules/datasets/services/csv_parser.py

"""
CSV reader that returns header-keyed rows plus row-level structural errors.

The first non-empty line is the header. Completely empty lines are skipped
everywhere. Rows whose field count differs from the header are still
returned but reported as errors, so the caller decides whether to reject
the file.
"""

import csv
import io
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class CSVRowError:
    """Structural problem found while reading the file"""

    code: str
    message: str
    row: Optional[int] = None  # 0-based index of the data row, None for file-level errors


@dataclass
class CSVParseResult:
    headers: List[str] = field(default_factory=list)
    rows: List[Dict[str, str]] = field(default_factory=list)
    errors: List[CSVRowError] = field(default_factory=list)


def _is_empty_line(record: List[str]) -> bool:
    return not record or (len(record) == 1 and record[0] == "")


def _dedupe_headers(raw_headers: List[str]) -> List[str]:
    """Trim header names and suffix repeats: name, name_1, name_2..."""
    headers: List[str] = []
    used = set()
    for raw in raw_headers:
        base = raw.strip()
        name = base
        suffix = 0
        # A generated name may collide with a later literal header
        while name in used:
            suffix += 1
            name = f"{base}_{suffix}"
        used.add(name)
        headers.append(name)
    return headers


def parse_csv(text: str) -> CSVParseResult:
    """
    Parse raw CSV text.

    Args:
        text: Decoded file contents

    Returns:
        CSVParseResult with trimmed headers, rows keyed by header and any
        structural errors (field count mismatches, unterminated quotes)
    """
    result = CSVParseResult()
    if text.startswith("\ufeff"):
        text = text[1:]

    reader = csv.reader(io.StringIO(text, newline=""), strict=True)
    row_index = 0

    try:
        for record in reader:
            if _is_empty_line(record):
                continue

            if not result.headers:
                result.headers = _dedupe_headers(record)
                continue

            expected = len(result.headers)
            if len(record) < expected:
                result.errors.append(CSVRowError(
                    code="TooFewFields",
                    message=f"Too few fields: expected {expected} fields but parsed {len(record)}",
                    row=row_index,
                ))
            elif len(record) > expected:
                result.errors.append(CSVRowError(
                    code="TooManyFields",
                    message=f"Too many fields: expected {expected} fields but parsed {len(record)}",
                    row=row_index,
                ))

            result.rows.append(dict(zip(result.headers, record)))
            row_index += 1

    except csv.Error as e:
        result.errors.append(CSVRowError(
            code="MalformedQuotes",
            message=f"Malformed quoted field near line {reader.line_num}: {e}",
            row=row_index,
        ))

    if result.errors:
        logger.debug(f"CSV parsed with {len(result.errors)} structural errors")

    return result
