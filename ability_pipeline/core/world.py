"""
World - obszar gry z aktorami i mapą przechodniości.

World to część HOSTA (silnika gry), nie pipeline'u umiejętności:
- Jest właścicielem aktorów (pipeline trzyma tylko ActorRef)
- Zna wymiary obszaru i zablokowane kafelki
- Odpowiada na zapytania "czy obiekt rozmiaru X zmieści się tu?"

Układ obszaru:
    Kafelki (tx, ty) dla 0 <= tx < width, 0 <= ty < height.
    Punkt (x, y) leży na kafelku (floor(x), floor(y)).

Przechodniość obiektu w × h postawionego na punkcie:
    Kafelki od floor(x - w/2 + 0.5) do (+ w - 1) w poziomie,
    analogicznie w pionie. Dla "1by1" to dokładnie kafelek pod punktem.

Przykład użycia:
    >>> world = World(width=40, height=40)
    >>> world.block_tile(10, 10)
    >>> world.is_passable(Point(10.5, 10.5), width=1, height=1)
    False
    >>> world.add_actor(actor)
    >>> world.get_actor(actor.id) is actor
    True
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple, TYPE_CHECKING
import math

from .point import Point

if TYPE_CHECKING:
    from ..units.actor import Actor


@dataclass
class World:
    """
    Obszar gry.

    Attributes:
        width (int): Szerokość w kafelkach
        height (int): Wysokość w kafelkach
        _actors (Dict[str, Actor]): Aktorzy w kolejności dodania
        _blocked (Set[Tuple[int, int]]): Zablokowane kafelki
        _generation (int): Licznik dodań (Actor.generation)
    """
    width: int
    height: int
    _actors: Dict[str, Actor] = field(default_factory=dict, repr=False)
    _blocked: Set[Tuple[int, int]] = field(default_factory=set, repr=False)
    _generation: int = field(default=0, repr=False)

    # ─────────────────────────────────────────────────────────────────────────
    # AKTORZY
    # ─────────────────────────────────────────────────────────────────────────

    def add_actor(self, actor: Actor) -> bool:
        """
        Dodaje aktora do świata.

        Każde dodanie nadaje nową generację, więc referencje do
        poprzedniego aktora o tym samym ID przestają się rozwiązywać.

        Returns:
            bool: False jeśli ID jest zajęte
        """
        if actor.id in self._actors:
            return False
        self._generation += 1
        actor.generation = self._generation
        actor.present = True
        self._actors[actor.id] = actor
        return True

    def remove_actor(self, actor_id: str) -> Optional[Actor]:
        """
        Usuwa aktora ze świata.

        Obiekt zostaje oznaczony present=False - stare referencje
        do obiektu też widzą go jako nieważnego.
        """
        actor = self._actors.pop(actor_id, None)
        if actor is not None:
            actor.present = False
        return actor

    def get_actor(self, actor_id: str) -> Optional[Actor]:
        return self._actors.get(actor_id)

    def actors(self) -> List[Actor]:
        """Wszyscy aktorzy (kolejność dodania)."""
        return list(self._actors.values())

    def valid_actors(self) -> List[Actor]:
        return [a for a in self._actors.values() if a.is_valid()]

    # ─────────────────────────────────────────────────────────────────────────
    # PRZECHODNIOŚĆ
    # ─────────────────────────────────────────────────────────────────────────

    def block_tile(self, tx: int, ty: int) -> None:
        self._blocked.add((tx, ty))

    def is_tile_in_bounds(self, tx: int, ty: int) -> bool:
        return 0 <= tx < self.width and 0 <= ty < self.height

    def is_tile_passable(self, tx: int, ty: int) -> bool:
        return self.is_tile_in_bounds(tx, ty) and (tx, ty) not in self._blocked

    def footprint_tiles(self, point: Point, width: int, height: int) -> List[Tuple[int, int]]:
        """
        Kafelki zajmowane przez obiekt width x height wycentrowany na punkcie.
        """
        min_x = math.floor(point.x - width / 2 + 0.5)
        min_y = math.floor(point.y - height / 2 + 0.5)
        return [
            (min_x + dx, min_y + dy)
            for dy in range(height)
            for dx in range(width)
        ]

    def is_passable(self, point: Point, width: int = 1, height: int = 1) -> bool:
        """
        Czy obiekt danego rozmiaru może stać na punkcie.

        Args:
            point: Środek obiektu
            width: Szerokość w kafelkach
            height: Wysokość w kafelkach
        """
        if not point.is_finite():
            return False
        return all(
            self.is_tile_passable(tx, ty)
            for tx, ty in self.footprint_tiles(point, width, height)
        )

    def to_dict(self) -> Dict:
        return {
            "width": self.width,
            "height": self.height,
            "blocked": sorted(list(t) for t in self._blocked),
            "actors": [a.to_dict() for a in self._actors.values()],
        }
