import pytest
from pydantic import TypeAdapter, ValidationError

from conftest import preamble_table_rows
from errors import EmptyInputError, InvalidMaskError
from merge_engine import empty_mask, merge, set_all, toggle_row
from models import MergePolicy, OffsetPolicy, SelectionPolicy, Table


@pytest.fixture
def statement_tables():
    """Two statements of 16 rows each: 15 boilerplate rows and one challan."""
    return [
        Table.from_values("jan.xlsx", preamble_table_rows("jan", [["CH-1", 100]])),
        Table.from_values("feb.xlsx", preamble_table_rows("feb", [["CH-2", 1000]])),
    ]


@pytest.fixture
def small_tables():
    return [
        Table.from_values("a.csv", [["h1", "h2"], ["a1", "a2"], ["a3", "a4"]]),
        Table.from_values("b.csv", [["h1", "h2"], ["b1", "b2"]]),
    ]


class TestMergePolicy:
    """
    Tests for the tagged policy variant.
    """

    def test_kind_selects_the_variant(self):
        adapter = TypeAdapter(MergePolicy)
        assert isinstance(adapter.validate_python({"kind": "offset"}), OffsetPolicy)
        assert isinstance(adapter.validate_python({"kind": "selection"}), SelectionPolicy)

    def test_offset_defaults_to_fifteen_preamble_rows(self):
        assert OffsetPolicy().preamble_rows == 15

    def test_unknown_kind_is_rejected(self):
        with pytest.raises(ValidationError):
            TypeAdapter(MergePolicy).validate_python({"kind": "zip"})

    def test_preamble_must_hold_a_header_row(self):
        with pytest.raises(ValidationError):
            OffsetPolicy(preamble_rows=0)


class TestOffsetMerge:
    """
    Tests for stripping the shared preamble.
    """

    def test_two_statements_merge_into_header_and_two_rows(self, statement_tables):
        merged = merge(statement_tables, OffsetPolicy())

        assert merged.header.values() == ["Challan No", "Amount"]
        assert [row.values() for row in merged.rows] == [["CH-1", 100], ["CH-2", 1000]]

    def test_header_comes_from_the_first_table(self):
        first = Table.from_values("first.xlsx", [["pre"], ["First header"], ["x"]])
        second = Table.from_values("second.xlsx", [["pre"], ["Second header"], ["y"]])

        merged = merge([first, second], OffsetPolicy(preamble_rows=2))

        assert merged.header.values() == ["First header"]
        assert [row.values() for row in merged.rows] == [["x"], ["y"]]

    def test_row_count_is_sum_of_rows_past_the_preamble(self):
        tables = [
            Table.from_values(f"t{n}.xlsx", [[f"r{i}"] for i in range(n)])
            for n in (20, 15, 3, 16)
        ]
        merged = merge(tables, OffsetPolicy())
        assert len(merged.rows) == sum(max(0, len(t.rows) - 15) for t in tables) == 6

    def test_short_first_table_gives_empty_header(self):
        short = Table.from_values("short.xlsx", [["only"]])
        merged = merge([short], OffsetPolicy())

        assert merged.header is not None
        assert len(merged.header) == 0
        assert merged.rows == []

    def test_masks_are_ignored(self, statement_tables):
        merged = merge(statement_tables, OffsetPolicy(), masks=[[False] * 16, [False] * 16])
        assert len(merged.rows) == 2


class TestSelectionMerge:
    """
    Tests for merging only the ticked rows.
    """

    def test_selected_rows_in_table_and_row_order(self, small_tables):
        masks = [[True, False, True], [False, True]]
        merged = merge(small_tables, SelectionPolicy(), masks)

        assert merged.header is None
        assert [row.values() for row in merged.rows] == [["h1", "h2"], ["a3", "a4"], ["b1", "b2"]]

    def test_row_count_is_number_of_true_entries(self, small_tables):
        masks = [[True, True, True], [True, False]]
        merged = merge(small_tables, SelectionPolicy(), masks)
        assert len(merged.rows) == sum(sum(mask) for mask in masks)

    def test_table_selection_is_used_without_masks(self, small_tables):
        tables = [set_all(small_tables[0], True), small_tables[1]]
        merged = merge(tables, SelectionPolicy())
        assert len(merged.rows) == 3

    def test_none_mask_falls_back_to_table_selection(self, small_tables):
        tables = [small_tables[0], toggle_row(small_tables[1], 1)]
        merged = merge(tables, SelectionPolicy(), masks=[[False, False, True], None])
        assert [row.values() for row in merged.rows] == [["a3", "a4"], ["b1", "b2"]]

    def test_unselected_tables_contribute_nothing(self, small_tables):
        merged = merge(small_tables, SelectionPolicy())
        assert merged.rows == []

    def test_mask_length_must_match_rows(self, small_tables):
        with pytest.raises(InvalidMaskError) as exc_info:
            merge(small_tables, SelectionPolicy(), masks=[[True], [True, True]])
        assert "a.csv" in str(exc_info.value)

    def test_mask_count_must_match_tables(self, small_tables):
        with pytest.raises(InvalidMaskError):
            merge(small_tables, SelectionPolicy(), masks=[[True, True, True]])


class TestMergeInput:
    """
    Tests for invalid merge input.
    """

    @pytest.mark.parametrize("policy", [OffsetPolicy(), SelectionPolicy()], ids=["offset", "selection"])
    def test_no_tables_raises_empty_input_error(self, policy):
        with pytest.raises(EmptyInputError):
            merge([], policy)


class TestMaskHelpers:
    """
    Tests for select all / deselect all / toggle.
    """

    def test_empty_mask_matches_row_count(self, small_tables):
        assert empty_mask(small_tables[0]) == [False, False, False]

    def test_set_all_returns_a_new_table(self, small_tables):
        selected = set_all(small_tables[0], True)

        assert selected.selection == [True, True, True]
        assert small_tables[0].selection is None
        assert set_all(selected, False).selection == [False, False, False]

    def test_toggle_row_flips_one_entry(self, small_tables):
        toggled = toggle_row(small_tables[0], 1)
        assert toggled.selection == [False, True, False]
        assert toggle_row(toggled, 1).selection == [False, False, False]

    def test_toggle_row_out_of_range(self, small_tables):
        with pytest.raises(IndexError):
            toggle_row(small_tables[1], 2)
