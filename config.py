"""
Application settings.

Every value can be overridden through an environment variable of the same
name prefixed with ``WORKBOOK_``.
"""
import os
from datetime import date

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# Logging
LOG_DIR = os.environ.get("WORKBOOK_LOG_DIR", os.path.join(BASE_DIR, "logs"))
LOG_LEVEL = os.environ.get("WORKBOOK_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Source files share a fixed boilerplate block; the header is its last row
PREAMBLE_ROWS = int(os.environ.get("WORKBOOK_PREAMBLE_ROWS", "15"))

# Positional columns of the challan export (0-based)
CHALLAN_DATE_COLUMN = int(os.environ.get("WORKBOOK_CHALLAN_DATE_COLUMN", "10"))
PAYMENT_DATE_COLUMN = int(os.environ.get("WORKBOOK_PAYMENT_DATE_COLUMN", "11"))
AMOUNT_COLUMN = int(os.environ.get("WORKBOOK_AMOUNT_COLUMN", "13"))

SUMMARY_WINDOW_START = date.fromisoformat(
    os.environ.get("WORKBOOK_SUMMARY_WINDOW_START", "2021-12-01")
)

# Export
MERGED_FILE_NAME = os.environ.get("WORKBOOK_MERGED_FILE_NAME", "MergedData.xlsx")
SUMMARY_FILE_NAME = os.environ.get("WORKBOOK_SUMMARY_FILE_NAME", "PaymentSummary.xlsx")
MERGED_SHEET_NAME = "MergedData"
SUMMARY_SHEET_NAME = "Summary"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

ALLOWED_EXTENSIONS = (".xlsx", ".xls", ".csv")
