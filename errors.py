"""
Exception taxonomy for workbook decoding, merging and aggregation.

The core functions raise these; WorkbookProcessor turns them into Result
objects for the API layer.
"""
from typing import Any, Optional


class WorkbookError(Exception):
    """Base class for every error raised by the workbook core."""


class DecodeError(WorkbookError):
    """
    Raised when a payload cannot be read in its hinted format.

    Attributes:
        file_name: Name of the uploaded file
        reason: Underlying parser message
    """
    def __init__(self, file_name: str, reason: str):
        self.file_name = file_name
        self.reason = reason
        super().__init__(f"Could not decode {file_name}: {reason}")


class FieldDecodeError(WorkbookError):
    """
    Raised when a single cell fails numeric or date coercion.

    Row-local: callers skip the offending row and carry on.
    """
    def __init__(self, value: Any, reason: str, column: Optional[int] = None):
        self.value = value
        self.reason = reason
        self.column = column
        where = f" in column {column}" if column is not None else ""
        super().__init__(f"Cannot decode {value!r}{where}: {reason}")


class EmptyInputError(WorkbookError):
    """Raised when no files, tables or rows were supplied."""
    def __init__(self, message: str = "No data found"):
        super().__init__(message)


class InvalidMaskError(WorkbookError):
    """Raised when selection masks do not line up with the tables or their rows."""

    @classmethod
    def length_mismatch(cls, table_name: str, mask_length: int, row_count: int) -> "InvalidMaskError":
        return cls(
            f"Selection mask for {table_name} has {mask_length} entries "
            f"but the table has {row_count} rows"
        )
