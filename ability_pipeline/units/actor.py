"""
Actor - jednostka w świecie gry + słaba referencja ActorRef.

Aktorzy należą do świata (World). Pipeline umiejętności NIGDY
nie trzyma obiektu Actor między etapami - trzyma ActorRef (id + generacja)
i rozwiązuje go w świecie w momencie użycia.

Dlaczego słabe referencje:
═══════════════════════════════════════════════════════════════════

    Między zaplanowaniem callbacku a jego wywołaniem aktor może:
    - zginąć (alive = False)
    - zostać usunięty ze świata (present = False / brak w World)

    Każdy konsument musi więc sprawdzić ważność:

        actor = ref.resolve(world)
        if actor is None:
            return  # cel nieważny - pomiń

Pule zasobów:
    resources to słownik nazwa -> float (np. "hp", "overflow_ap").
    change_resource() to JEDNA addytywna mutacja.

Przykład użycia:
    >>> actor = Actor(id="goblin_1", name="Goblin", position=Point(3, 4))
    >>> world.add_actor(actor)
    >>> ref = ActorRef.of(actor)
    >>> ref.resolve(world) is actor
    True
    >>> world.remove_actor("goblin_1")
    >>> ref.resolve(world) is None
    True
    >>> world.add_actor(Actor(id="goblin_1", name="Nowy", position=Point(3, 4)))
    >>> ref.resolve(world) is None  # inna generacja
    True
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Any, Optional, TYPE_CHECKING

from ..core.point import Point

if TYPE_CHECKING:
    from ..core.world import World


@dataclass
class Actor:
    """
    Aktor w świecie gry.

    Attributes:
        id (str): Unikalny identyfikator
        name (str): Nazwa wyświetlana
        position (Point): Środek aktora
        alive (bool): Czy żyje
        present (bool): Czy jest w świecie (False po usunięciu)
        resources (Dict[str, float]): Pule zasobów
        defense (Dict[str, int]): Obrona per rodzaj ("Reflex", ...)
        accuracy (Dict[str, int]): Celność per rodzaj ataku ("Ranged", ...)
        generation (int): Numer wpisu w świecie (nadawany przy add_actor)
    """
    id: str
    name: str
    position: Point
    alive: bool = True
    present: bool = True
    resources: Dict[str, float] = field(default_factory=dict)
    defense: Dict[str, int] = field(default_factory=dict)
    accuracy: Dict[str, int] = field(default_factory=dict)
    generation: int = field(default=0, repr=False)

    def is_valid(self) -> bool:
        """Aktor żyje i jest obecny w świecie."""
        return self.alive and self.present

    @property
    def center(self) -> Point:
        return self.position

    def dist_to_point(self, point: Point) -> float:
        return self.position.distance(point)

    # ─────────────────────────────────────────────────────────────────────────
    # ZASOBY
    # ─────────────────────────────────────────────────────────────────────────

    def get_resource(self, name: str) -> float:
        return self.resources.get(name, 0.0)

    def change_resource(self, name: str, amount: float) -> float:
        """
        Dodaje amount (ze znakiem) do puli zasobu.

        Args:
            name: Nazwa puli (np. "overflow_ap")
            amount: Zmiana (ujemna = odjęcie)

        Returns:
            float: Wartość po zmianie
        """
        self.resources[name] = self.resources.get(name, 0.0) + amount
        return self.resources[name]

    def get_defense(self, kind: str) -> int:
        return self.defense.get(kind, 0)

    def get_accuracy(self, kind: str) -> int:
        return self.accuracy.get(kind, 0)

    # ─────────────────────────────────────────────────────────────────────────
    # SERIALIZACJA
    # ─────────────────────────────────────────────────────────────────────────

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "Actor":
        """
        Tworzy aktora z konfiguracji (ConfigLoader.build_actor_config).

        Args:
            config: Słownik z id, position [x, y] i opcjonalnymi polami
        """
        actor_id = config["id"]
        return cls(
            id=actor_id,
            name=config.get("name", actor_id),
            position=Point.from_sequence(config["position"]),
            alive=config.get("alive", True),
            resources={k: float(v) for k, v in config.get("resources", {}).items()},
            defense=dict(config.get("defense", {})),
            accuracy=dict(config.get("accuracy", {})),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "position": self.position.to_list(),
            "alive": self.alive,
            "present": self.present,
            "resources": {k: round(v, 1) for k, v in self.resources.items()},
        }

    def __hash__(self) -> int:
        return hash(self.id)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Actor):
            return NotImplemented
        return self.id == other.id


@dataclass(frozen=True)
class ActorRef:
    """
    Słaba referencja do aktora - ID + generacja, lookup w świecie.

    ID może zostać użyte ponownie po usunięciu aktora; generacja
    odróżnia nowego aktora od tego, na którego wskazywała referencja.

    Attributes:
        actor_id (str): ID aktora
        generation (Optional[int]): Generacja z ActorRef.of (None = dowolna)
    """
    actor_id: str
    generation: Optional[int] = None

    @classmethod
    def of(cls, actor: Actor) -> "ActorRef":
        return cls(actor.id, actor.generation)

    def resolve(self, world: "World") -> Optional[Actor]:
        """
        Zwraca aktora jeśli nadal jest ważny.

        Returns:
            Optional[Actor]: Aktor lub None (usunięty / martwy / inny pod tym ID)
        """
        actor = world.get_actor(self.actor_id)
        if actor is None or not actor.is_valid():
            return None
        if self.generation is not None and actor.generation != self.generation:
            return None
        return actor

    def is_valid(self, world: "World") -> bool:
        return self.resolve(world) is not None
