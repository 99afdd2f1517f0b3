"""
Decoding of uploaded spreadsheets into canonical tables.

``.csv`` payloads are read as delimited text, everything else as a workbook
(first sheet only). Rows are kept positional and cell types are not coerced.
"""
import asyncio
import csv
import io
import logging
import os
import time
from datetime import date, datetime, time as dt_time, timedelta
from enum import Enum
from typing import Any, List, Sequence, Tuple, Union

import pandas as pd
from openpyxl.utils.datetime import to_excel
from pydantic import BaseModel, Field
from starlette.concurrency import run_in_threadpool

import config
from errors import DecodeError, EmptyInputError
from models import FileError, Row, Table
from utils.result import Result

logger = logging.getLogger(__name__)


class FormatHint(str, Enum):
    DELIMITED = "delimited"
    BINARY = "binary"


class BatchDecodeResult(BaseModel):
    """
    Tables decoded from a batch of files, in upload order, plus the files
    that failed. ``positions[i]`` is the upload index of ``tables[i]``.
    """
    tables: List[Table] = Field(default_factory=list)
    positions: List[int] = Field(default_factory=list)
    errors: List[FileError] = Field(default_factory=list)


def format_hint(file_name: str) -> FormatHint:
    extension = os.path.splitext(file_name)[1].lower()
    return FormatHint.DELIMITED if extension == ".csv" else FormatHint.BINARY


def _plain_value(value: Any) -> Any:
    """
    Map a pandas cell to a value Cell.from_value understands.

    Date-formatted cells become the serial the workbook stores (openpyxl
    counts from 1899-12-30), while serial_date reads serials from
    1899-12-31. A cell showing 01/01/2022 therefore summarizes under
    02/01/2022, matching how the raw serial of that cell is read. Keep the
    two epochs as they are.
    """
    if value is None or isinstance(value, str):
        return value
    if pd.isna(value):
        return None
    # date-formatted workbook cells come back as datetimes; keep the stored serial
    if isinstance(value, (datetime, date, dt_time, timedelta)):
        return to_excel(value)
    return value


def _frame_to_rows(df: pd.DataFrame) -> List[Row]:
    return [
        Row.from_values([_plain_value(value) for value in values])
        for values in df.itertuples(index=False, name=None)
    ]


def _read_delimited(payload: Union[bytes, str], file_name: str) -> pd.DataFrame:
    if isinstance(payload, bytes):
        try:
            text = payload.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise DecodeError(file_name, f"not valid UTF-8 text: {e}") from e
    else:
        text = payload

    # rows may be ragged; pandas needs the widest row up front
    try:
        width = max((len(fields) for fields in csv.reader(io.StringIO(text))), default=0)
    except csv.Error as e:
        raise DecodeError(file_name, str(e)) from e
    if width == 0:
        return pd.DataFrame()

    try:
        return pd.read_csv(
            io.StringIO(text),
            header=None,
            names=list(range(width)),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=False,
        )
    except (pd.errors.ParserError, ValueError) as e:
        raise DecodeError(file_name, str(e)) from e


def _read_workbook(payload: Union[bytes, str], file_name: str) -> pd.DataFrame:
    if isinstance(payload, str):
        # binary string, one character per byte
        payload = payload.encode("latin-1")

    engine = "xlrd" if file_name.lower().endswith(".xls") else "openpyxl"
    try:
        return pd.read_excel(
            io.BytesIO(payload),
            sheet_name=0,
            header=None,
            dtype=object,
            keep_default_na=False,
            engine=engine,
        )
    except Exception as e:
        raise DecodeError(file_name, f"{type(e).__name__}: {e}") from e


def decode(payload: Union[bytes, str], file_name: str) -> Table:
    """
    Decode one spreadsheet payload.

    Args:
        payload: Raw file content
        file_name: Original file name; its extension selects the format

    Returns:
        Table: Every row of the first sheet, positional, types as stored

    Raises:
        DecodeError: If the payload cannot be read in the hinted format
    """
    hint = format_hint(file_name)
    start_time = time.time()
    if hint == FormatHint.DELIMITED:
        df = _read_delimited(payload, file_name)
    else:
        df = _read_workbook(payload, file_name)

    table = Table(name=file_name, rows=_frame_to_rows(df))
    logger.info(
        f"Decoded {file_name}",
        extra={
            "file_name": file_name,
            "format": hint.value,
            "row_count": len(table.rows),
            "read_time_seconds": f"{time.time() - start_time:.2f}",
        },
    )
    return table


def _decode_to_result(file_name: str, payload: Union[bytes, str]) -> Result[Table]:
    extension = os.path.splitext(file_name)[1].lower()
    if extension not in config.ALLOWED_EXTENSIONS:
        return Result.invalid_input(f"Unsupported file type: {extension or 'none'}")
    try:
        return Result.ok(decode(payload, file_name))
    except DecodeError as e:
        logger.warning(f"Skipping {file_name}: {e.reason}", extra={"file_name": file_name})
        return Result.invalid_input(e.reason)


async def decode_many(files: Sequence[Tuple[str, Union[bytes, str]]]) -> BatchDecodeResult:
    """
    Decode several files concurrently and wait for all of them.

    A file that fails is reported in ``errors`` and left out of ``tables``;
    the other files are unaffected. Tables keep the order of ``files``.

    Raises:
        EmptyInputError: If no files were supplied
    """
    if not files:
        raise EmptyInputError("No files supplied")

    results = await asyncio.gather(
        *(run_in_threadpool(_decode_to_result, name, payload) for name, payload in files)
    )

    batch = BatchDecodeResult()
    for position, ((name, _), result) in enumerate(zip(files, results)):
        if result.is_success():
            batch.tables.append(result.data)
            batch.positions.append(position)
        else:
            batch.errors.append(FileError(file_name=name, error=result.error))

    logger.info(
        f"Decoded {len(batch.tables)} of {len(files)} files",
        extra={"decoded": len(batch.tables), "failed": len(batch.errors)},
    )
    return batch
