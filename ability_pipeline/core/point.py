"""
Punkt w ciągłej przestrzeni 2D obszaru gry.

Współrzędne są w jednostkach kafelków:
- x = kolumna (rośnie w prawo)
- y = wiersz (rośnie w dół)

Kafelek pod punktem to (floor(x), floor(y)).

Odległość euklidesowa:
    distance = sqrt(dx² + dy²)

Przykład użycia:
    >>> a = Point(0, 0)
    >>> b = Point(0, 100)
    >>> a.distance(b)
    100.0
    >>> (b - a) / 5.0
    Point(x=0.0, y=20.0)
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Tuple
import math


@dataclass(frozen=True)
class Point:
    """
    Niemutowalny punkt (x, y).

    Klasa jest frozen=True - może być kluczem w słowniku
    lub elementem zbioru.

    Attributes:
        x (float): Współrzędna pozioma
        y (float): Współrzędna pionowa
    """
    x: float
    y: float

    def __post_init__(self):
        # frozen dataclass - wymuś float przez object.__setattr__
        object.__setattr__(self, "x", float(self.x))
        object.__setattr__(self, "y", float(self.y))

    # ─────────────────────────────────────────────────────────────────────────
    # WŁAŚCIWOŚCI
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def tile(self) -> Tuple[int, int]:
        """
        Kafelek zawierający punkt.

        Returns:
            Tuple[int, int]: (floor(x), floor(y))
        """
        return (math.floor(self.x), math.floor(self.y))

    def is_finite(self) -> bool:
        return math.isfinite(self.x) and math.isfinite(self.y)

    # ─────────────────────────────────────────────────────────────────────────
    # ODLEGŁOŚĆ
    # ─────────────────────────────────────────────────────────────────────────

    def distance(self, other: Point) -> float:
        """
        Odległość euklidesowa do innego punktu.

        Args:
            other: Drugi punkt

        Returns:
            float: sqrt(dx² + dy²)

        Example:
            >>> Point(5, 5).distance(Point(5, 25))
            20.0
        """
        return math.hypot(other.x - self.x, other.y - self.y)

    # ─────────────────────────────────────────────────────────────────────────
    # ARYTMETYKA WEKTOROWA
    # ─────────────────────────────────────────────────────────────────────────

    def __add__(self, other: Point) -> Point:
        return Point(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Point) -> Point:
        return Point(self.x - other.x, self.y - other.y)

    def __mul__(self, scalar: float) -> Point:
        return Point(self.x * scalar, self.y * scalar)

    __rmul__ = __mul__

    def __truediv__(self, scalar: float) -> Point:
        return Point(self.x / scalar, self.y / scalar)

    def __neg__(self) -> Point:
        return Point(-self.x, -self.y)

    # ─────────────────────────────────────────────────────────────────────────
    # SERIALIZACJA
    # ─────────────────────────────────────────────────────────────────────────

    def to_list(self, digits: int = 3) -> list:
        """Zwraca [x, y] zaokrąglone - do logu JSON."""
        return [round(self.x, digits), round(self.y, digits)]

    @classmethod
    def from_sequence(cls, values) -> Point:
        """Tworzy punkt z [x, y] (np. z YAML lub requestu API)."""
        x, y = values
        return cls(x, y)

    def __repr__(self) -> str:
        return f"Point(x={self.x}, y={self.y})"


ORIGIN = Point(0.0, 0.0)
