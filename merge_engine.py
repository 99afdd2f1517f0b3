"""
Merging of decoded tables into one table.

Two policies share the single ``merge`` entry point:

- OffsetPolicy strips the same boilerplate preamble from every table and
  takes the header from the last preamble row of the first table.
- SelectionPolicy keeps the rows the user ticked, table by table.
"""
import logging
from typing import List, Optional, Sequence

from errors import EmptyInputError, InvalidMaskError
from models import MergedTable, MergePolicy, OffsetPolicy, Row, SelectionPolicy, Table

logger = logging.getLogger(__name__)


def empty_mask(table: Table) -> List[bool]:
    return [False] * len(table.rows)


def set_all(table: Table, selected: bool) -> Table:
    """Return a copy of ``table`` with every row (de)selected."""
    return table.model_copy(update={"selection": [selected] * len(table.rows)})


def toggle_row(table: Table, index: int) -> Table:
    """
    Return a copy of ``table`` with the selection of one row flipped.

    Raises:
        IndexError: If ``index`` is not a row of the table
    """
    if not 0 <= index < len(table.rows):
        raise IndexError(f"Row {index} is out of range for {table.name} ({len(table.rows)} rows)")
    mask = list(table.selection) if table.selection is not None else empty_mask(table)
    mask[index] = not mask[index]
    return table.model_copy(update={"selection": mask})


def _resolve_mask(table: Table, mask: Optional[Sequence[bool]]) -> List[bool]:
    if mask is None:
        mask = table.selection
    if mask is None:
        return empty_mask(table)
    if len(mask) != len(table.rows):
        raise InvalidMaskError.length_mismatch(table.name, len(mask), len(table.rows))
    return [bool(selected) for selected in mask]


def _merge_offset(tables: Sequence[Table], policy: OffsetPolicy) -> MergedTable:
    header_index = policy.preamble_rows - 1
    first = tables[0]
    if header_index < len(first.rows):
        header = first.rows[header_index]
    else:
        logger.warning(
            f"{first.name} has no header row at index {header_index}; using an empty header",
            extra={"file_name": first.name, "row_count": len(first.rows)},
        )
        header = Row()

    rows: List[Row] = []
    for table in tables:
        rows.extend(table.rows[policy.preamble_rows:])
    return MergedTable(header=header, rows=rows)


def _merge_selection(tables: Sequence[Table], masks: Optional[Sequence[Optional[Sequence[bool]]]]) -> MergedTable:
    if masks is not None and len(masks) != len(tables):
        raise InvalidMaskError(f"Got {len(masks)} masks for {len(tables)} tables")

    rows: List[Row] = []
    for position, table in enumerate(tables):
        mask = _resolve_mask(table, masks[position] if masks is not None else None)
        rows.extend(row for row, selected in zip(table.rows, mask) if selected)
    return MergedTable(header=None, rows=rows)


def merge(
    tables: Sequence[Table],
    policy: MergePolicy,
    masks: Optional[Sequence[Optional[Sequence[bool]]]] = None,
) -> MergedTable:
    """
    Combine tables into one, in the order given.

    Args:
        tables: Decoded tables in upload order
        policy: OffsetPolicy or SelectionPolicy
        masks: Selection masks parallel to ``tables``; when omitted (or None
            for a table) the table's own ``selection`` is used. Ignored by
            the offset policy.

    Returns:
        MergedTable: Header (offset policy only) and data rows

    Raises:
        EmptyInputError: If no tables were supplied
        InvalidMaskError: If a mask length differs from its table
    """
    if not tables:
        raise EmptyInputError("No tables to merge")

    if isinstance(policy, OffsetPolicy):
        merged = _merge_offset(tables, policy)
    elif isinstance(policy, SelectionPolicy):
        merged = _merge_selection(tables, masks)
    else:
        raise TypeError(f"Unknown merge policy: {policy!r}")

    logger.info(
        f"Merged {len(tables)} tables into {len(merged.rows)} rows",
        extra={"policy": policy.kind, "table_count": len(tables), "merged_rows": len(merged.rows)},
    )
    return merged
