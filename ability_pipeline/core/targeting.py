"""
Targeting umiejętności - od wybranego punktu do zbioru celów.

TargetResolver zamienia punkt wybrany przez gracza/AI + pozycję
castera w zwalidowany TargetSet:

    1. Free select: punkt w zasięgu max_range od castera (włącznie)
    2. Passability: obiekt "1by1" musi móc stać na punkcie
    3. Shape filter: kształt (np. "7by7round") centrowany na punkcie
       zbiera aktorów z puli kandydatów (kolejność puli zachowana)

Resolver NIE mutuje stanu świata.

STANY TARGETERA:
═══════════════════════════════════════════════════════════════════

    CREATED ──activate()──► ACTIVE ──select(p)──► SELECTED
                              │
                              ├──cancel()──────► CANCELLED
                              └──zły punkt─────► CANCELLED

    SELECTED i CANCELLED są końcowe.

UŻYCIE:
═══════════════════════════════════════════════════════════════════

    targeter = Targeter(
        caster=ActorRef.of(caster),
        ability_id="frag_grenade",
        resolver=TargetResolver(world),
        max_range=12.0,
        passability=PassabilityRule.from_size_id("1by1", object_sizes),
        shape=parse_shape("7by7round", object_sizes),
        effectable=[ActorRef.of(a) for a in world.actors()],
    )
    targeter.activate()
    target_set = targeter.select(Point(5, 12))   # gracz
    target_set = targeter.auto_select()          # AI
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union, TYPE_CHECKING

from .point import Point
from ..abilities.aoe import Shape, ObjectSizeShape
from ..errors import SelectionCancelled, SchedulerStateError
from ..units.actor import Actor, ActorRef

if TYPE_CHECKING:
    from .world import World


# Tolerancja dla "dokładnie na max_range"
RANGE_EPSILON = 1e-9


class SelectionPending:
    """Sentinel - punkt jeszcze nie wybrany."""

    _instance: Optional["SelectionPending"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SELECTION_PENDING"

    def __bool__(self) -> bool:
        return False


SELECTION_PENDING = SelectionPending()


@dataclass(frozen=True)
class TargetSet:
    """
    Wynik targetingu - wybrany punkt + uporządkowane słabe referencje.

    Tworzony raz per aktywacja, read-only.
    Referencje mogą być nieważne w momencie użycia!

    Attributes:
        point: Wybrany punkt
        targets: ActorRef w kolejności odkrycia przez shape filter
    """
    point: Point
    targets: Tuple[ActorRef, ...] = ()

    def __len__(self) -> int:
        return len(self.targets)

    def __iter__(self):
        return iter(self.targets)

    def first(self) -> Optional[ActorRef]:
        return self.targets[0] if self.targets else None

    def actor_ids(self) -> List[str]:
        return [ref.actor_id for ref in self.targets]

    def valid_actors(self, world: "World") -> List[Actor]:
        """Aktorzy nadal ważni (rozwiązani teraz, nie w momencie wyboru)."""
        result = []
        for ref in self.targets:
            actor = ref.resolve(world)
            if actor is not None:
                result.append(actor)
        return result

    def to_dict(self) -> Dict:
        return {"point": self.point.to_list(), "targets": self.actor_ids()}


@dataclass(frozen=True)
class PassabilityRule:
    """
    Predykat "obiekt width x height może stać na punkcie".

    Attributes:
        size_id: ID rozmiaru (np. "1by1")
        width, height: Rozmiar w kafelkach
    """
    size_id: str
    width: int = 1
    height: int = 1

    @classmethod
    def from_size_id(cls, size_id: str, object_sizes: Dict[str, Dict]) -> "PassabilityRule":
        size = ObjectSizeShape.from_size_id(size_id, object_sizes)
        return cls(size_id=size_id, width=size.width, height=size.height)

    def check(self, world: "World", point: Point) -> bool:
        return world.is_passable(point, self.width, self.height)


class TargetResolver:
    """
    Bezstanowy resolver: punkt + ograniczenia -> TargetSet.

    Attributes:
        world: Świat hosta (tylko odczyt)
    """

    def __init__(self, world: "World"):
        self.world = world

    def rejection_reason(
        self,
        caster: Actor,
        max_range: float,
        passability: PassabilityRule,
        point: Point,
    ) -> Optional[str]:
        """
        Sprawdza punkt.

        Returns:
            Optional[str]: Powód odrzucenia lub None gdy punkt OK
        """
        if not caster.is_valid():
            return "caster_invalid"
        if not point.is_finite():
            return "point_not_finite"
        if caster.dist_to_point(point) > max_range + RANGE_EPSILON:
            return "out_of_range"
        if not passability.check(self.world, point):
            return "impassable"
        return None

    def resolve(
        self,
        caster: Actor,
        max_range: float,
        passability: PassabilityRule,
        shape: Shape,
        candidate_pool: Iterable[Actor],
        point: Optional[Point] = None,
    ) -> Union[TargetSet, SelectionPending]:
        """
        Zamienia wybrany punkt w TargetSet.

        Args:
            caster: Aktor używający umiejętności
            max_range: Maksymalna odległość punktu od castera
            passability: Predykat przechodniości punktu
            shape: Filtr kształtu centrowany na punkcie
            candidate_pool: Aktorzy, których można trafić
            point: Wybrany punkt (None = jeszcze nie wybrany)

        Returns:
            TargetSet albo SELECTION_PENDING

        Raises:
            SelectionCancelled: Punkt poza zasięgiem / nieprzechodni
        """
        if point is None:
            return SELECTION_PENDING

        reason = self.rejection_reason(caster, max_range, passability, point)
        if reason is not None:
            raise SelectionCancelled(reason, point)

        gathered = shape.gather(point, candidate_pool, origin=caster.position)
        return TargetSet(point=point, targets=tuple(ActorRef.of(a) for a in gathered))

    def best_point(
        self,
        caster: Actor,
        max_range: float,
        passability: PassabilityRule,
        shape: Shape,
        candidate_pool: Sequence[Actor],
    ) -> Optional[Point]:
        """
        Wybór punktu dla AI - pozycja kandydata (poza casterem), która zbiera
        najwięcej celów (cluster). Remis - pierwszy w puli.

        Returns:
            Optional[Point]: Najlepszy punkt lub None
        """
        best: Optional[Point] = None
        best_count = 0

        for candidate in candidate_pool:
            if not candidate.is_valid() or candidate.id == caster.id:
                continue
            point = candidate.position
            if self.rejection_reason(caster, max_range, passability, point) is not None:
                continue
            count = len(shape.gather(point, candidate_pool, origin=caster.position))
            if count > best_count:
                best, best_count = point, count

        return best


class TargeterState(Enum):
    """Stan interaktywnego targetera."""
    CREATED = auto()
    ACTIVE = auto()
    SELECTED = auto()
    CANCELLED = auto()

    def is_terminal(self) -> bool:
        return self in (TargeterState.SELECTED, TargeterState.CANCELLED)


@dataclass
class Targeter:
    """
    Targeter związany z casterem - odpowiednik create_targeter().

    Attributes:
        caster: Słaba referencja do castera
        ability_id: ID umiejętności
        resolver: TargetResolver świata
        max_range: Zasięg free select
        passability: Predykat przechodniości
        shape: Filtr kształtu
        effectable: Pula kandydatów (słabe referencje)
        state: Aktualny stan
        target_set: Wynik po select()
    """
    caster: ActorRef
    ability_id: str
    resolver: TargetResolver
    max_range: float
    passability: PassabilityRule
    shape: Shape
    effectable: List[ActorRef] = field(default_factory=list)
    state: TargeterState = TargeterState.CREATED
    target_set: Optional[TargetSet] = None
    cancel_reason: Optional[str] = None

    def add_all_effectable(self, refs: Iterable[ActorRef]) -> None:
        self.effectable.extend(refs)

    def activate(self) -> None:
        if self.state != TargeterState.CREATED:
            raise SchedulerStateError(f"Targeter for '{self.ability_id}' already {self.state.name}")
        self.state = TargeterState.ACTIVE

    def _candidates(self) -> List[Actor]:
        world = self.resolver.world
        return [a for a in (ref.resolve(world) for ref in self.effectable) if a is not None]

    def _require_active(self) -> Actor:
        if self.state != TargeterState.ACTIVE:
            raise SchedulerStateError(f"Targeter for '{self.ability_id}' is {self.state.name}")
        caster = self.caster.resolve(self.resolver.world)
        if caster is None:
            self._cancel("caster_invalid")
            raise SelectionCancelled("caster_invalid")
        return caster

    def _cancel(self, reason: str) -> None:
        self.state = TargeterState.CANCELLED
        self.cancel_reason = reason

    def preview(self, point: Point) -> List[ActorRef]:
        """
        Aktorzy, których trafiłby punkt (mouseover). Nie zmienia stanu.
        """
        caster = self.caster.resolve(self.resolver.world)
        if caster is None:
            return []
        if self.resolver.rejection_reason(caster, self.max_range, self.passability, point):
            return []
        origin = caster.position
        return [ActorRef.of(a) for a in self.shape.gather(point, self._candidates(), origin=origin)]

    def select(self, point: Point) -> TargetSet:
        """
        Wybór punktu przez gracza.

        Raises:
            SelectionCancelled: Punkt nieprawidłowy - targeter anulowany
        """
        caster = self._require_active()
        try:
            result = self.resolver.resolve(
                caster, self.max_range, self.passability, self.shape,
                self._candidates(), point,
            )
        except SelectionCancelled as e:
            self._cancel(e.reason)
            raise

        self.state = TargeterState.SELECTED
        self.target_set = result
        return result

    def auto_select(self) -> TargetSet:
        """
        Wybór punktu przez AI (najwięcej celów w kształcie).

        Raises:
            SelectionCancelled: Brak osiągalnego punktu
        """
        caster = self._require_active()
        point = self.resolver.best_point(
            caster, self.max_range, self.passability, self.shape, self._candidates(),
        )
        if point is None:
            self._cancel("no_valid_point")
            raise SelectionCancelled("no_valid_point")
        return self.select(point)

    def cancel(self) -> None:
        """Anulowanie przez gracza. Idempotentne."""
        if not self.state.is_terminal():
            self._cancel("cancelled_by_user")
