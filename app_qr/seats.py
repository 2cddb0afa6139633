"""
Gramática de identificadores de butaca y expansión de rangos.

Una butaca se escribe como letras de fila + número dentro de la fila
(``A1``, ``C20``). Las filas se ordenan por su código (A=0, B=1, ... Z=25,
AA=26) y dentro de la fila por número ascendente.

Política de ancho de fila: cuando un rango abarca varias filas, el número
final se usa como "butacas por fila". ``A5..C20`` produce A5..A20, B1..B20
y C1..C20. Se mantiene tal cual porque cambiarlo alteraría qué butacas se
aprovisionan en salas existentes.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from functools import total_ordering
from typing import Iterable, List, Union

from .exceptions import InvalidSeatFormat, RangeOrderError

SEAT_RE = re.compile(r"^([A-Z]+)([1-9][0-9]*)$")
ROW_RE = re.compile(r"^[A-Z]+$")

DEFAULT_RANGE = ("A1", "A20")


def row_code(letters: str) -> int:
    """Código ordinal de una fila: A->0, Z->25, AA->26."""
    if not isinstance(letters, str) or not ROW_RE.fullmatch(letters):
        raise InvalidSeatFormat(letters)
    code = 0
    for ch in letters:
        code = code * 26 + (ord(ch) - ord("A") + 1)
    return code - 1


def row_letters(code: int) -> str:
    """Inversa de row_code."""
    if code < 0:
        raise ValueError(f"Row code must be >= 0, got {code}")
    code += 1
    out = []
    while code:
        code, rem = divmod(code - 1, 26)
        out.append(chr(ord("A") + rem))
    return "".join(reversed(out))


@total_ordering
@dataclass(frozen=True)
class SeatId:
    row: str
    number: int

    @property
    def row_code(self) -> int:
        return row_code(self.row)

    def sort_key(self):
        return (self.row_code, self.number)

    def __lt__(self, other):
        if not isinstance(other, SeatId):
            return NotImplemented
        return self.sort_key() < other.sort_key()

    def __str__(self) -> str:
        return f"{self.row}{self.number}"


SeatLike = Union[SeatId, str]


def parse(token) -> SeatId:
    if isinstance(token, SeatId):
        return token
    if not isinstance(token, str):
        raise InvalidSeatFormat(token)
    m = SEAT_RE.fullmatch(token)
    if not m:
        raise InvalidSeatFormat(token)
    return SeatId(m.group(1), int(m.group(2)))


def compare(a: SeatLike, b: SeatLike) -> int:
    ka, kb = parse(a).sort_key(), parse(b).sort_key()
    return (ka > kb) - (ka < kb)


def sort_seats(seats: Iterable[SeatLike]) -> List[SeatId]:
    """Parsea, quita duplicados y devuelve en orden canónico."""
    return sorted({parse(s) for s in seats})


@dataclass(frozen=True)
class SeatRange:
    start_row: str
    end_row: str
    start_number: int
    end_number: int
    start_row_code: int
    end_row_code: int

    @classmethod
    def between(cls, start: SeatLike, end: SeatLike, field_prefix: str = "seat") -> "SeatRange":
        try:
            a = parse(start)
        except InvalidSeatFormat as exc:
            raise InvalidSeatFormat(exc.token, field=f"{field_prefix}_start")
        try:
            b = parse(end)
        except InvalidSeatFormat as exc:
            raise InvalidSeatFormat(exc.token, field=f"{field_prefix}_end")
        if a > b:
            raise RangeOrderError(a, b, field=f"{field_prefix}_end")
        return cls(
            start_row=a.row,
            end_row=b.row,
            start_number=a.number,
            end_number=b.number,
            start_row_code=a.row_code,
            end_row_code=b.row_code,
        )

    @property
    def start(self) -> SeatId:
        return SeatId(self.start_row, self.start_number)

    @property
    def end(self) -> SeatId:
        return SeatId(self.end_row, self.end_number)

    def contains_row(self, row: str) -> bool:
        return self.start_row_code <= row_code(row) <= self.end_row_code

    def rows(self) -> List[str]:
        return [row_letters(c) for c in range(self.start_row_code, self.end_row_code + 1)]

    def seats(self) -> List[SeatId]:
        out = []
        for code in range(self.start_row_code, self.end_row_code + 1):
            row = row_letters(code)
            # la primera fila arranca en start_number; el resto en 1
            first = self.start_number if code == self.start_row_code else 1
            for number in range(first, self.end_number + 1):
                out.append(SeatId(row, number))
        return out

    def to_dict(self) -> dict:
        return {"start": str(self.start), "end": str(self.end)}

    @classmethod
    def from_dict(cls, data: dict) -> "SeatRange":
        return cls.between(data["start"], data["end"])

    def __str__(self) -> str:
        return f"{self.start}-{self.end}"


def expand(start: SeatLike, end: SeatLike) -> List[SeatId]:
    return SeatRange.between(start, end).seats()


def range_from_input(start: str | None, end: str | None) -> SeatRange:
    """Rango a partir de lo que escribe el operador; vacío = A1..A20."""
    start = (start or "").strip()
    end = (end or "").strip()
    if not start and not end:
        start, end = DEFAULT_RANGE
    return SeatRange.between(start, end)
