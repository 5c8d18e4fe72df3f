"""Batch ingestion: decode a CSV upload into order-aligned records and raw rows."""

import asyncio
import io
import math
import warnings
from pathlib import Path
from typing import Any

import pandas as pd
import structlog

from src.domains.transactions.coercion import coerce_row, count_zero_filled
from src.domains.transactions.errors import DecodeError
from src.domains.transactions.models import BatchSubmission, RawRow

logger = structlog.get_logger()

CSV_SUFFIX = ".csv"


def check_csv_filename(file_name: str) -> None:
    """Reject anything that is not named like a CSV file before decoding it."""
    if not file_name or not file_name.lower().endswith(CSV_SUFFIX):
        raise DecodeError(f"Please select a CSV file (got {file_name or 'no file'!r})")


def _decode_text(data: bytes) -> str:
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError:
        logger.info("csv_decode_fallback_latin1", size_bytes=len(data))
        return data.decode("latin-1")


def _read_frame(text: str) -> pd.DataFrame:
    # Empty cells stay "", cells missing from short rows come back as NaN.
    # A row longer than the header only warns under index_col=False.
    try:
        with warnings.catch_warnings():
            warnings.simplefilter("error", pd.errors.ParserWarning)
            return pd.read_csv(
                io.StringIO(text),
                dtype=str,
                keep_default_na=False,
                index_col=False,
                skip_blank_lines=True,
            )
    except pd.errors.EmptyDataError as e:
        raise DecodeError("CSV file is empty: a header row is required") from e
    except pd.errors.ParserWarning as e:
        raise DecodeError(f"CSV row has more cells than the header: {e}") from e
    except (pd.errors.ParserError, ValueError) as e:
        raise DecodeError(f"CSV parsing errors: {e}") from e


def _to_raw_row(row: dict[Any, Any]) -> RawRow:
    # Cells missing from short rows come back as NaN; they are absent, not empty.
    raw: RawRow = {}
    for column, value in row.items():
        if value is None or (isinstance(value, float) and math.isnan(value)):
            continue
        raw[str(column)] = value if isinstance(value, str) else str(value)
    return raw


def ingest_csv(source: bytes | str | Path) -> BatchSubmission:
    """Decode a CSV file and coerce every data row, preserving document order.

    ``source`` is either the raw file bytes or a path to the file. Raises
    DecodeError only when the file itself cannot be tokenized; bad cell
    values are normalized by the coercer and never fail the batch.
    """
    if isinstance(source, (str, Path)):
        data = Path(source).read_bytes()
    else:
        data = source

    frame = _read_frame(_decode_text(data))

    raw_rows: list[RawRow] = []
    records = []
    zero_filled = 0
    for row in frame.to_dict(orient="records"):
        raw = _to_raw_row(row)
        raw_rows.append(raw)
        records.append(coerce_row(raw))
        zero_filled += count_zero_filled(raw)

    submission = BatchSubmission(
        records=tuple(records),
        raw_rows=tuple(raw_rows),
        columns=tuple(str(c) for c in frame.columns),
        zero_filled_cells=zero_filled,
        source_bytes=data,
    )
    logger.info(
        "csv_ingested",
        rows=len(submission),
        columns=len(submission.columns),
    )
    if zero_filled:
        logger.debug("csv_numeric_cells_zero_filled", count=zero_filled)
    return submission


async def ingest_file(file_name: str, data: bytes) -> BatchSubmission:
    """Validate the file name, then decode off the event loop."""
    check_csv_filename(file_name)
    return await asyncio.to_thread(ingest_csv, data)
