import itertools

import pytest

from app_qr.exceptions import InvalidSeatFormat, RangeOrderError
from app_qr.seats import (
    SeatId,
    SeatRange,
    compare,
    expand,
    parse,
    range_from_input,
    row_code,
    row_letters,
    sort_seats,
)


def labels(seats):
    return [str(s) for s in seats]


class TestParse:

    @pytest.mark.parametrize("token,row,number", [("A1", "A", 1), ("C20", "C", 20), ("AA12", "AA", 12)])
    def test_valid_tokens(self, token, row, number):
        assert parse(token) == SeatId(row, number)

    @pytest.mark.parametrize("token", ["1A", "a1", "A", "12", "A0", "A01", " A1", "A1 ", "A-1", ""])
    def test_invalid_tokens_name_the_token(self, token):
        with pytest.raises(InvalidSeatFormat) as exc:
            parse(token)
        assert exc.value.token == token
        assert repr(token) in exc.value.message

    def test_non_string_is_rejected(self):
        with pytest.raises(InvalidSeatFormat):
            parse(5)

    def test_str_round_trips(self):
        assert str(parse("B7")) == "B7"


class TestOrdering:

    def test_numbers_compare_numerically(self):
        assert compare("A2", "A10") == -1
        assert compare("A10", "A2") == 1
        assert compare("A3", "A3") == 0

    def test_row_comes_before_number(self):
        assert compare("B1", "A20") == 1
        assert parse("A20") < parse("B1")

    def test_multi_letter_rows_follow_z(self):
        assert compare("Z99", "AA1") == -1

    def test_total_order_over_generated_seats(self):
        seats = expand("A1", "C4")
        for a, b in itertools.product(seats, repeat=2):
            assert compare(a, b) == -compare(b, a)
        for a, b, c in itertools.product(seats[:6], repeat=3):
            if compare(a, b) < 0 and compare(b, c) < 0:
                assert compare(a, c) < 0

    def test_sort_seats_dedupes_and_orders(self):
        assert labels(sort_seats(["B1", "A10", "A2", "B1"])) == ["A2", "A10", "B1"]


class TestRowCode:

    @pytest.mark.parametrize("letters,code", [("A", 0), ("B", 1), ("Z", 25), ("AA", 26), ("AZ", 51), ("BA", 52)])
    def test_codes(self, letters, code):
        assert row_code(letters) == code

    def test_row_letters_is_inverse(self):
        for code in range(0, 200):
            assert row_code(row_letters(code)) == code

    def test_lowercase_row_rejected(self):
        with pytest.raises(InvalidSeatFormat):
            row_code("a")


class TestExpand:

    def test_single_row_is_contiguous(self):
        # Given a range inside one row
        seats = expand("A3", "A7")

        # Then it yields end - start + 1 ascending seats
        assert labels(seats) == ["A3", "A4", "A5", "A6", "A7"]

    def test_multi_row_uses_end_number_as_row_width(self):
        # When expanding A1..C20
        seats = expand("A1", "C20")

        # Then every row holds 1..20
        assert len(seats) == 60
        for row in "ABC":
            assert [s.number for s in seats if s.row == row] == list(range(1, 21))

    def test_start_row_starts_mid_range(self):
        seats = expand("A5", "C20")

        assert labels(seats)[:2] == ["A5", "A6"]
        assert len([s for s in seats if s.row == "A"]) == 16
        assert len([s for s in seats if s.row == "B"]) == 20
        assert len(seats) == 56

    def test_start_number_above_end_number_leaves_start_row_empty(self):
        seats = expand("A15", "B10")

        assert labels(seats) == [f"B{n}" for n in range(1, 11)]

    def test_output_is_in_canonical_order(self):
        seats = expand("A1", "B3")
        assert seats == sorted(seats)

    def test_repeated_expansion_is_identical(self):
        assert expand("B2", "D9") == expand("B2", "D9")

    def test_reversed_range_raises_order_error(self):
        with pytest.raises(RangeOrderError) as exc:
            expand("B5", "A1")
        assert exc.value.field == "seat_end"

    def test_reversed_numbers_in_one_row_raise_order_error(self):
        with pytest.raises(RangeOrderError):
            expand("A10", "A5")

    def test_invalid_start_is_scoped_to_start_field(self):
        with pytest.raises(InvalidSeatFormat) as exc:
            expand("1A", "A1")
        assert exc.value.field == "seat_start"

    def test_invalid_end_is_scoped_to_end_field(self):
        with pytest.raises(InvalidSeatFormat) as exc:
            expand("A1", "A")
        assert exc.value.field == "seat_end"


class TestSeatRange:

    def test_fields_are_derived_once(self):
        rng = SeatRange.between("B2", "D9")

        assert (rng.start_row, rng.end_row) == ("B", "D")
        assert (rng.start_number, rng.end_number) == (2, 9)
        assert (rng.start_row_code, rng.end_row_code) == (1, 3)
        assert rng.rows() == ["B", "C", "D"]

    def test_contains_row(self):
        rng = SeatRange.between("B1", "D5")

        assert rng.contains_row("C")
        assert not rng.contains_row("A")
        assert not rng.contains_row("E")

    def test_blank_input_defaults_to_a1_a20(self):
        rng = range_from_input("", "  ")

        assert str(rng) == "A1-A20"
        assert len(rng.seats()) == 20
