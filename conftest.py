"""
Pytest configuration file.

Puts the project root on the Python path so the flat modules import during
test runs, and provides shared builders for workbook and CSV payloads.
"""
import io
import os
import sys
from datetime import date, datetime

import pandas as pd
import pytest

# Add the current directory to the Python path
sys.path.insert(0, os.path.abspath(os.path.dirname(__file__)))

from serial_date import to_serial  # noqa: E402

PAYMENT_ROW_WIDTH = 14


def workbook_bytes(rows):
    """Write rows (lists of plain values) to an .xlsx payload without a header."""
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        pd.DataFrame(rows, dtype=object).to_excel(writer, sheet_name="Sheet1", index=False, header=False)
    return buffer.getvalue()


def csv_bytes(rows):
    """Join rows into a comma separated payload."""
    lines = [",".join("" if value is None else str(value) for value in row) for row in rows]
    return ("\n".join(lines) + "\n").encode("utf-8")


def preamble_table_rows(label, data_rows, preamble_rows=15):
    """Rows of a statement with a boilerplate block whose last row is the header."""
    rows = [[f"{label} boilerplate {i}"] for i in range(preamble_rows - 1)]
    rows.append(["Challan No", "Amount"])
    rows.extend(data_rows)
    return rows


def payment_row(challan_day, payment_day=None, amount=None, challan_no="CH-1"):
    """
    A challan export row: challan date in column 10, payment date in 11,
    amount in 13. Days are date objects or raw values.
    """
    row = [None] * PAYMENT_ROW_WIDTH
    row[0] = challan_no
    row[10] = to_serial(challan_day) if isinstance(challan_day, date) else challan_day
    row[11] = to_serial(payment_day) if isinstance(payment_day, date) else payment_day
    row[13] = amount
    return row


PAYMENT_HEADER = [f"col{i}" for i in range(PAYMENT_ROW_WIDTH)]


@pytest.fixture
def fixed_now():
    """Wall clock used as the upper bound of the summary window."""
    return datetime(2024, 6, 30, 12, 0, 0)


@pytest.fixture
def sample_rows():
    return [
        ["Name", "Amount", "Note"],
        ["Asha", 100, "paid"],
        ["Ravi", 1000.5, None],
    ]


@pytest.fixture
def payment_rows():
    """Header plus challans over two days inside the window and one before it."""
    return [
        PAYMENT_HEADER,
        payment_row(date(2022, 1, 5), date(2022, 1, 6), 100, "CH-1"),
        payment_row(date(2022, 1, 5), None, 1000, "CH-2"),
        payment_row(date(2022, 1, 7), date(2022, 1, 7), 1000, "CH-3"),
        payment_row(date(2021, 11, 30), date(2021, 11, 30), 100, "CH-4"),
        payment_row(date(2022, 1, 5), date(2022, 1, 8), 250, "CH-5"),
    ]
