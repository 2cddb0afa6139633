import pytest

from app_qr.exceptions import InvalidSeatFormat, RangeOrderError
from app_qr.seats import SeatRange
from app_qr.selection import SelectionState, build_map


def labels(seats):
    return [str(s) for s in seats]


class TestAddRange:

    def test_adding_same_range_twice_keeps_cardinality(self):
        # Given a selection with A1..B5
        state = SelectionState().add_range("A1", "B5")

        # When the same range is added again
        again = state.add_range("A1", "B5")

        # Then nothing is duplicated
        assert len(again.selected) == len(state.selected) == 10
        assert len(again.ranges) == 1

    def test_overlapping_ranges_merge_as_union(self):
        state = SelectionState().add_range("A1", "A10").add_range("A5", "A15")

        assert labels(state.seats()) == [f"A{n}" for n in range(1, 16)]
        assert len(state.ranges) == 2

    def test_invalid_range_leaves_state_untouched(self):
        state = SelectionState().add_range("A1", "A3")

        with pytest.raises(RangeOrderError):
            state.add_range("C1", "A1")
        assert labels(state.seats()) == ["A1", "A2", "A3"]

    def test_blank_range_uses_default(self):
        state = SelectionState().add_range(None, None)

        assert labels(state.seats())[0] == "A1"
        assert labels(state.seats())[-1] == "A20"


class TestDeleteRow:

    def test_delete_row_discards_whole_contributing_range(self):
        # Given ranges A1..B20 and C1..C5
        state = SelectionState().add_range("A1", "B20").add_range("C1", "C5")

        # When row B is deleted
        state = state.delete_row("B")

        # Then only row C remains and the A1..B20 range is gone
        assert labels(state.seats()) == ["C1", "C2", "C3", "C4", "C5"]
        assert state.ranges == (SeatRange.between("C1", "C5"),)

    def test_delete_row_only_matches_exact_row(self):
        state = SelectionState().add_range("A1", "A3").toggle("AA1")

        state = state.delete_row("A")

        assert labels(state.seats()) == ["AA1"]

    def test_invalid_row_rejected(self):
        with pytest.raises(InvalidSeatFormat):
            SelectionState().delete_row("b")


class TestToggle:

    def test_toggle_adds_and_removes(self):
        state = SelectionState().add_range("A1", "A3")

        state = state.toggle("A2")
        assert labels(state.seats()) == ["A1", "A3"]

        state = state.toggle("A2")
        assert labels(state.seats()) == ["A1", "A2", "A3"]


class TestSeatMap:

    def test_build_map_groups_rows_in_order(self):
        ranges = [SeatRange.between("C1", "C2"), SeatRange.between("A9", "B10")]

        seat_map = build_map(ranges)

        assert [row for row, _ in seat_map] == ["A", "B", "C"]
        assert labels(seat_map[0][1]) == ["A9", "A10"]
        assert len(seat_map[1][1]) == 10

    def test_selected_map_reflects_toggles(self):
        state = SelectionState().add_range("A1", "B2").toggle("B1")

        assert [(row, labels(s)) for row, s in state.selected_map()] == [("A", ["A1", "A2"]), ("B", ["B2"])]

    def test_state_serializes_to_plain_data(self):
        state = SelectionState().add_range("A1", "B2").toggle("A1")

        data = state.to_dict()

        assert data == {"ranges": [{"start": "A1", "end": "B2"}], "selected": ["A2", "B1", "B2"]}
        assert SelectionState.from_dict(data) == state
