"""
Writing merged tables and payment summaries as single-sheet .xlsx files.
"""
import io
import logging
from typing import List, Optional, Sequence, Union

import pandas as pd
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from pydantic.alias_generators import to_camel

import config
from models import MergedTable, PaymentSummaryRecord, Table

logger = logging.getLogger(__name__)

# Header row of an exported summary
RECORD_COLUMNS: List[str] = [to_camel(name) for name in PaymentSummaryRecord.model_fields]

Exportable = Union[MergedTable, Table, Sequence[PaymentSummaryRecord]]


def _is_table(data: Exportable) -> bool:
    return isinstance(data, (MergedTable, Table))


def _writable(value):
    # control characters are not allowed in worksheet XML
    if isinstance(value, str):
        return ILLEGAL_CHARACTERS_RE.sub("", value)
    return value


def _to_frame(data: Exportable) -> pd.DataFrame:
    if isinstance(data, MergedTable):
        rows = [row.values() for row in data.as_rows()]
        return pd.DataFrame([[_writable(v) for v in row] for row in rows], dtype=object)
    if isinstance(data, Table):
        return pd.DataFrame([[_writable(v) for v in row] for row in data.values()], dtype=object)
    return pd.DataFrame(
        [record.model_dump(by_alias=True) for record in data],
        columns=RECORD_COLUMNS,
    )


def _store_text_as_text(sheet) -> None:
    """openpyxl reads strings starting with "=" as formulas; keep them as text."""
    for row in sheet.iter_rows():
        for cell in row:
            if cell.data_type == "f":
                cell.data_type = "s"


def suggested_file_name(data: Exportable) -> str:
    return config.MERGED_FILE_NAME if _is_table(data) else config.SUMMARY_FILE_NAME


def encode(data: Exportable, sheet_name: Optional[str] = None) -> bytes:
    """
    Serialize a table or a summary to .xlsx bytes.

    Tables are written row for row, their own first row acting as the header.
    Summaries get a header of camelCase field names.

    Args:
        data: MergedTable, Table or sequence of PaymentSummaryRecord
        sheet_name: Sheet title, MergedData or Summary by default

    Returns:
        bytes: The workbook
    """
    is_table = _is_table(data)
    if sheet_name is None:
        sheet_name = config.MERGED_SHEET_NAME if is_table else config.SUMMARY_SHEET_NAME

    df = _to_frame(data)
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=sheet_name, index=False, header=not is_table)
        _store_text_as_text(writer.sheets[sheet_name])

    payload = buffer.getvalue()
    logger.info(
        f"Encoded {len(df)} rows into sheet {sheet_name}",
        extra={"sheet_name": sheet_name, "row_count": len(df), "size_bytes": len(payload)},
    )
    return payload
