"""
Daily payment summary of a challan export.

Every row after the header is one challan. Rows are bucketed by the
DD/MM/YYYY string of their challan date; each bucket counts challans and
payments and totals the 100 and 1000 denomination amounts.
"""
import logging
from datetime import datetime, time as dt_time
from typing import Dict, List, Optional

from errors import EmptyInputError, FieldDecodeError
from models import AggregationSettings, PaymentSummaryRecord, Row, Table
from serial_date import decode_cell, format_date

logger = logging.getLogger(__name__)

# Only these two amounts are totalled; other amounts still count as challans
AMOUNT_100 = 100
AMOUNT_1000 = 1000


def _is_paid(row: Row, settings: AggregationSettings) -> bool:
    column = settings.payment_date_column
    try:
        decode_cell(row.cell(column), column=column)
    except FieldDecodeError:
        return False
    return True


def _amount(row: Row, settings: AggregationSettings) -> Optional[float]:
    try:
        return row.cell(settings.amount_column).as_number(settings.amount_column)
    except FieldDecodeError:
        return None


def _update_record(record: PaymentSummaryRecord, row: Row, settings: AggregationSettings) -> None:
    record.no_of_challans += 1
    if _is_paid(row, settings):
        record.no_of_payments += 1

    amount = _amount(row, settings)
    if amount == AMOUNT_100:
        record.count100 += 1
        record.total100 += AMOUNT_100
    elif amount == AMOUNT_1000:
        record.count1000 += 1
        record.total1000 += AMOUNT_1000

    record.grand_total = record.total100 + record.total1000


def aggregate(
    table: Table,
    settings: Optional[AggregationSettings] = None,
    now: Optional[datetime] = None,
) -> List[PaymentSummaryRecord]:
    """
    Build one summary record per challan date.

    Args:
        table: Decoded challan export; the first row is the header
        settings: Column positions and window start, config defaults if omitted
        now: Upper bound of the date window, the current time if omitted

    Returns:
        List[PaymentSummaryRecord]: Records in order of first appearance,
        numbered from 1

    Raises:
        EmptyInputError: If the table has no rows at all
    """
    if not table.rows:
        raise EmptyInputError(f"{table.name} has no rows to summarize")

    settings = settings or AggregationSettings()
    now = now or datetime.now()
    window_start = datetime.combine(settings.window_start, dt_time.min)

    records: List[PaymentSummaryRecord] = []
    by_date: Dict[str, PaymentSummaryRecord] = {}
    undecodable = 0
    out_of_window = 0

    for row in table.rows[1:]:
        try:
            challan_date = decode_cell(row.cell(settings.challan_date_column), column=settings.challan_date_column)
        except FieldDecodeError as e:
            undecodable += 1
            logger.debug(f"Skipping row without a challan date: {e}")
            continue

        if not window_start <= challan_date <= now:
            out_of_window += 1
            continue

        key = format_date(challan_date)
        record = by_date.get(key)
        if record is None:
            record = PaymentSummaryRecord(sno=len(records) + 1, challan_date=key)
            by_date[key] = record
            records.append(record)

        _update_record(record, row, settings)

    logger.info(
        f"Summarized {len(table.rows) - 1} rows of {table.name} into {len(records)} days",
        extra={
            "file_name": table.name,
            "records": len(records),
            "undecodable_rows": undecodable,
            "out_of_window_rows": out_of_window,
        },
    )
    return records
