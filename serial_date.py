"""
Spreadsheet serial-date conversion.

A serial is the number of days since 1899-12-31 (serial 1 is 1900-01-01);
the fractional part is the time of day.
"""
import math
from datetime import date, datetime, timedelta
from typing import Optional, Union

from errors import FieldDecodeError
from models import Cell

SERIAL_EPOCH = datetime(1899, 12, 31)
MILLISECONDS_IN_A_DAY = 86400000


def to_date(serial: Union[int, float], column: Optional[int] = None) -> datetime:
    """
    Convert a serial number to a calendar instant.

    Args:
        serial: Days since the epoch, fraction = time of day
        column: Column the value came from, used in error messages

    Returns:
        datetime: The decoded instant (naive)

    Raises:
        FieldDecodeError: If the serial is not a finite, non-negative number
    """
    if isinstance(serial, bool) or not isinstance(serial, (int, float)):
        raise FieldDecodeError(serial, "serial date must be a number", column=column)
    if not math.isfinite(serial) or serial < 0:
        raise FieldDecodeError(serial, "serial date must be finite and non-negative", column=column)

    days = math.floor(serial)
    # keep the time of day strictly inside the day so rounding never rolls over
    milliseconds = min((serial - days) * MILLISECONDS_IN_A_DAY, MILLISECONDS_IN_A_DAY - 1)
    try:
        return SERIAL_EPOCH + timedelta(days=days, milliseconds=milliseconds)
    except OverflowError:
        raise FieldDecodeError(serial, "serial date out of range", column=column)


def to_serial(instant: Union[date, datetime]) -> float:
    """Inverse of to_date."""
    if not isinstance(instant, datetime):
        instant = datetime(instant.year, instant.month, instant.day)
    return (instant - SERIAL_EPOCH) / timedelta(days=1)


def format_date(instant: Union[date, datetime]) -> str:
    """Render as DD/MM/YYYY."""
    return f"{instant.day:02d}/{instant.month:02d}/{instant.year:04d}"


def decode_cell(cell: Cell, column: Optional[int] = None) -> datetime:
    """Read a cell holding a serial date."""
    return to_date(cell.as_number(column), column=column)
