"""Total coercion of raw tabular rows into typed transaction records."""

import math
from collections.abc import Mapping
from typing import Any

from .models import RawRow, TransactionRecord
from .schema import CATEGORICAL_FIELDS, blank_record, is_numeric


def coerce_numeric(value: Any) -> float:
    """Parse a cell as a finite float. Anything unparseable becomes 0.0.

    Never raises: empty strings, free text, ``nan``/``inf`` and non-numeric
    objects all normalize to zero so a bad cell cannot abort a file.
    """
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return 0.0
    else:
        return 0.0
    return number if math.isfinite(number) else 0.0


def is_zero_filled(value: Any) -> bool:
    """True when coerce_numeric would discard the value rather than parse it."""
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return True
        try:
            return not math.isfinite(float(text))
        except ValueError:
            return True
    return coerce_numeric(value) == 0.0 and value != 0


def coerce_row(row: Mapping[str, Any]) -> TransactionRecord:
    """Type one raw row using the field schema.

    Numeric columns are parsed, categorical and unknown columns pass through
    unchanged except that a null categorical becomes the empty token.
    Columns missing from the row stay missing in the record.
    """
    record: TransactionRecord = {}
    for column, value in row.items():
        if is_numeric(column):
            record[column] = coerce_numeric(value)
        elif value is None and column in CATEGORICAL_FIELDS:
            record[column] = ""
        else:
            record[column] = value
    return record


def coerce_form(values: Mapping[str, Any]) -> TransactionRecord:
    """Overlay partially entered form values on a blank record."""
    record = blank_record()
    record.update(coerce_row(values))
    return record


def count_zero_filled(row: RawRow) -> int:
    return sum(1 for column, value in row.items() if is_numeric(column) and is_zero_filled(value))
