import math
from datetime import date
from enum import Enum
from typing import Annotated, Any, List, Literal, Optional, Union

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

import config
from errors import FieldDecodeError


class CellKind(str, Enum):
    """Variant tag of a Cell"""
    TEXT = "text"
    NUMBER = "number"
    EMPTY = "empty"


class Cell(BaseModel):
    """
    A single spreadsheet value with an explicit type.

    Attributes:
        kind: Which variant the cell holds
        value: The raw value, None for EMPTY cells
    """
    model_config = ConfigDict(frozen=True)

    kind: CellKind
    value: Union[int, float, str, None] = None

    @classmethod
    def text(cls, value: str) -> "Cell":
        return cls(kind=CellKind.TEXT, value=value)

    @classmethod
    def number(cls, value: Union[int, float]) -> "Cell":
        return cls(kind=CellKind.NUMBER, value=value)

    @classmethod
    def empty(cls) -> "Cell":
        return cls(kind=CellKind.EMPTY)

    @classmethod
    def from_value(cls, value: Any) -> "Cell":
        """
        Wrap a plain Python value as read by pandas.

        None, NaN and empty strings become EMPTY, numbers become NUMBER and
        everything else is kept as TEXT. Numeric-looking strings stay TEXT.
        """
        if value is None:
            return cls.empty()
        if isinstance(value, str):
            return cls.text(value) if value != "" else cls.empty()
        if pd.isna(value):
            return cls.empty()
        # numpy scalars
        if hasattr(value, "item"):
            value = value.item()
        if isinstance(value, bool):
            return cls.text("TRUE" if value else "FALSE")
        if isinstance(value, (int, float)):
            return cls.number(value)
        return cls.text(str(value))

    def is_empty(self) -> bool:
        return self.kind == CellKind.EMPTY

    def as_number(self, column: Optional[int] = None) -> float:
        """
        Coerce the cell to a finite float.

        Raises:
            FieldDecodeError: If the cell is empty, non-numeric or not finite
        """
        if self.kind == CellKind.EMPTY:
            raise FieldDecodeError(None, "empty cell", column=column)
        if self.kind == CellKind.NUMBER:
            number = float(self.value)
        else:
            try:
                number = float(str(self.value).strip())
            except ValueError:
                raise FieldDecodeError(self.value, "not a number", column=column)
        if not math.isfinite(number):
            raise FieldDecodeError(self.value, "not a finite number", column=column)
        return number

    def to_value(self) -> Union[int, float, str, None]:
        return self.value


class Row(BaseModel):
    """Ordered cells of one spreadsheet row. Short rows read as trailing empties."""
    cells: List[Cell] = Field(default_factory=list)

    @classmethod
    def from_values(cls, values: List[Any]) -> "Row":
        return cls(cells=[Cell.from_value(value) for value in values])

    def cell(self, index: int) -> Cell:
        if 0 <= index < len(self.cells):
            return self.cells[index]
        return Cell.empty()

    def values(self) -> List[Union[int, float, str, None]]:
        return [cell.to_value() for cell in self.cells]

    def __len__(self) -> int:
        return len(self.cells)


class Table(BaseModel):
    """
    A decoded spreadsheet: source file name, rows, and an optional
    selection mask with one entry per row.
    """
    name: str
    rows: List[Row] = Field(default_factory=list)
    selection: Optional[List[bool]] = None

    @classmethod
    def from_values(cls, name: str, values: List[List[Any]]) -> "Table":
        return cls(name=name, rows=[Row.from_values(row) for row in values])

    def values(self) -> List[List[Union[int, float, str, None]]]:
        return [row.values() for row in self.rows]

    def __len__(self) -> int:
        return len(self.rows)


class MergedTable(BaseModel):
    """
    Result of a merge: an optional header row followed by data rows.

    The header is None for selection merges, where the caller picks the
    header rows as part of the selection.
    """
    header: Optional[Row] = None
    rows: List[Row] = Field(default_factory=list)

    def as_rows(self) -> List[Row]:
        if self.header is None:
            return list(self.rows)
        return [self.header] + list(self.rows)

    def __len__(self) -> int:
        return len(self.rows)


class OffsetPolicy(BaseModel):
    """Drop a fixed preamble from every table; the last preamble row of the first table is the header."""
    kind: Literal["offset"] = "offset"
    preamble_rows: int = Field(default=config.PREAMBLE_ROWS, ge=1)


class SelectionPolicy(BaseModel):
    """Keep only rows whose mask entry is true."""
    kind: Literal["selection"] = "selection"


MergePolicy = Annotated[Union[OffsetPolicy, SelectionPolicy], Field(discriminator="kind")]


class PaymentSummaryRecord(BaseModel):
    """
    Per-day summary of challans.

    Serialized with camelCase names, which are also the export headers.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    sno: int
    challan_date: str
    no_of_challans: int = 0
    no_of_payments: int = 0
    count100: int = 0
    total100: int = 0
    count1000: int = 0
    total1000: int = 0
    grand_total: int = 0


class AggregationSettings(BaseModel):
    """Column positions and date window of the challan export."""
    challan_date_column: int = Field(default=config.CHALLAN_DATE_COLUMN, ge=0)
    payment_date_column: int = Field(default=config.PAYMENT_DATE_COLUMN, ge=0)
    amount_column: int = Field(default=config.AMOUNT_COLUMN, ge=0)
    window_start: date = config.SUMMARY_WINDOW_START


# API response schemas

class FileError(BaseModel):
    """A file that could not be decoded and was left out of the batch."""
    file_name: str
    error: str


class TablePreview(BaseModel):
    name: str
    rows: List[List[Any]]
    total_rows: int


class DecodeResponse(BaseModel):
    """
    Response schema for decoding uploaded files.

    Attributes:
        success: Whether at least one file was decoded
        tables: Decoded tables in upload order
        file_errors: Files that could not be decoded
    """
    success: bool
    status_code: Optional[int] = 200
    status: Optional[str] = "OK"
    tables: List[TablePreview] = Field(default_factory=list)
    file_errors: List[FileError] = Field(default_factory=list)
    error: Optional[str] = None


class MergeResponse(BaseModel):
    """
    Response schema for a merge.

    Attributes:
        policy: Merge policy that was applied
        header: Header row, None for selection merges
        rows: Merged data rows
        total_rows: Number of data rows
        file_errors: Files that could not be decoded and were skipped
    """
    success: bool
    status_code: Optional[int] = 200
    status: Optional[str] = "OK"
    policy: Optional[str] = None
    header: Optional[List[Any]] = None
    rows: List[List[Any]] = Field(default_factory=list)
    total_rows: int = 0
    file_errors: List[FileError] = Field(default_factory=list)
    error: Optional[str] = None


class PaymentSummaryResponse(BaseModel):
    """Response schema for the daily payment summary."""
    success: bool
    status_code: Optional[int] = 200
    status: Optional[str] = "OK"
    summaries: List[PaymentSummaryRecord] = Field(default_factory=list)
    total_records: int = 0
    error: Optional[str] = None
