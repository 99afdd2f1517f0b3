from datetime import date, datetime

import pytest

from errors import FieldDecodeError
from models import Cell
from serial_date import decode_cell, format_date, to_date, to_serial


class TestToDate:
    """
    Tests for serial number decoding.
    """

    @pytest.mark.parametrize(
        "serial, expected",
        [
            (1, datetime(1900, 1, 1)),
            (44530, datetime(2021, 12, 1)),
            (44562, datetime(2022, 1, 2)),
            (45472, datetime(2024, 6, 30)),
        ],
        ids=["first-day", "window-start", "new-year", "mid-2024"]
    )
    def test_integer_serials_map_to_midnight(self, serial, expected):
        assert to_date(serial) == expected

    def test_fraction_is_time_of_day(self):
        assert to_date(44530.5) == datetime(2021, 12, 1, 12, 0, 0)
        assert to_date(44530.25) == datetime(2021, 12, 1, 6, 0, 0)

    def test_fraction_close_to_one_stays_on_the_same_day(self):
        """
        Floating point noise in the fraction must never push the instant
        into the next day.
        """
        instant = to_date(44530.99999999999)
        assert instant.date() == date(2021, 12, 1)

    @pytest.mark.parametrize(
        "serial",
        [-1, float("nan"), float("inf"), "44530", None, True],
        ids=["negative", "nan", "infinite", "string", "none", "bool"]
    )
    def test_invalid_serials_raise_field_decode_error(self, serial):
        with pytest.raises(FieldDecodeError):
            to_date(serial)

    def test_out_of_range_serial_raises_field_decode_error(self):
        with pytest.raises(FieldDecodeError):
            to_date(1e12)

    def test_decoding_is_deterministic(self):
        for serial in (1, 59, 60, 61, 25569, 44562, 45000):
            assert format_date(to_date(serial)) == format_date(to_date(serial))


class TestFormatDate:
    """
    Tests for DD/MM/YYYY rendering.
    """

    def test_day_and_month_are_zero_padded(self):
        assert format_date(datetime(2022, 3, 4, 15, 30)) == "04/03/2022"

    def test_accepts_plain_dates(self):
        assert format_date(date(2021, 12, 31)) == "31/12/2021"

    def test_known_serial_formats_exactly(self):
        assert format_date(to_date(44530)) == "01/12/2021"
        assert format_date(to_date(44562)) == "02/01/2022"


class TestToSerial:
    """
    Tests for the inverse conversion.
    """

    def test_inverse_of_to_date(self):
        assert to_serial(date(2021, 12, 1)) == 44530
        assert to_serial(datetime(2021, 12, 1, 18, 0)) == 44530.75
        assert to_date(to_serial(datetime(2023, 7, 9, 6, 0))) == datetime(2023, 7, 9, 6, 0)


class TestDecodeCell:
    """
    Tests for reading serial dates out of cells.
    """

    def test_number_cell(self):
        assert decode_cell(Cell.number(44530)) == datetime(2021, 12, 1)

    def test_numeric_text_cell(self):
        assert decode_cell(Cell.text(" 44530.5 ")) == datetime(2021, 12, 1, 12)

    @pytest.mark.parametrize(
        "cell",
        [Cell.empty(), Cell.text("pending"), Cell.number(-3), Cell.text("nan")],
        ids=["empty", "text", "negative", "nan-text"]
    )
    def test_undecodable_cells_raise_with_column(self, cell):
        with pytest.raises(FieldDecodeError) as exc_info:
            decode_cell(cell, column=11)
        assert exc_info.value.column == 11
