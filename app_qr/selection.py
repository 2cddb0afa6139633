"""
Estado de selección de butacas para la pantalla de generación.

`SelectionState` es un valor inmutable y serializable (se guarda en sesión
o viaja en el cuerpo de la petición); cada operación devuelve un estado
nuevo.
"""
from __future__ import annotations

from dataclasses import dataclass
from itertools import groupby
from typing import Iterable, List, Tuple

from .seats import SeatId, SeatRange, parse, range_from_input, row_code, sort_seats

SeatMap = List[Tuple[str, List[SeatId]]]


def group_by_row(seats: Iterable[SeatId]) -> SeatMap:
    ordered = sort_seats(seats)
    return [(row, list(items)) for row, items in groupby(ordered, key=lambda s: s.row)]


def build_map(ranges: Iterable[SeatRange]) -> SeatMap:
    """Agrupa por fila todas las butacas que producen los rangos aceptados."""
    seats = set()
    for rng in ranges:
        seats.update(rng.seats())
    return group_by_row(seats)


@dataclass(frozen=True)
class SelectionState:
    ranges: Tuple[SeatRange, ...] = ()
    selected: frozenset = frozenset()

    def add_range(self, start: str | None, end: str | None) -> "SelectionState":
        rng = range_from_input(start, end)
        ranges = self.ranges if rng in self.ranges else self.ranges + (rng,)
        return SelectionState(ranges, self.selected | frozenset(rng.seats()))

    def delete_row(self, row: str) -> "SelectionState":
        row_code(row)  # valida la fila
        ranges = tuple(r for r in self.ranges if not r.contains_row(row))
        # las butacas que solo aportaba un rango descartado también salen
        dropped = {s for r in self.ranges if r.contains_row(row) for s in r.seats()}
        dropped -= {s for r in ranges for s in r.seats()}
        selected = frozenset(s for s in self.selected if s.row != row and s not in dropped)
        return SelectionState(ranges, selected)

    def toggle(self, seat) -> "SelectionState":
        seat = parse(seat)
        if seat in self.selected:
            return SelectionState(self.ranges, self.selected - {seat})
        return SelectionState(self.ranges, self.selected | {seat})

    def clear(self) -> "SelectionState":
        return SelectionState()

    def seats(self) -> List[SeatId]:
        return sorted(self.selected)

    def seat_map(self) -> SeatMap:
        return build_map(self.ranges)

    def selected_map(self) -> SeatMap:
        return group_by_row(self.selected)

    def to_dict(self) -> dict:
        return {
            "ranges": [r.to_dict() for r in self.ranges],
            "selected": [str(s) for s in self.seats()],
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> "SelectionState":
        data = data or {}
        ranges = tuple(SeatRange.from_dict(r) for r in data.get("ranges") or [])
        selected = frozenset(parse(s) for s in data.get("selected") or [])
        return cls(ranges, selected)
