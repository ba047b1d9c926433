"""
Filtry kształtu (Area of Effect) dla targetera.

Kształt jest centrowany na wybranym punkcie i zbiera aktorów
z puli kandydatów. Kolejność wyniku = kolejność w puli
(stabilna, deterministyczna dla danego stanu świata).

KSZTAŁTY:
═══════════════════════════════════════════════════════════════════

    object_size   - footprint z object_sizes.yaml ("7by7round")
                    round: odległość <= width / 2
                    prostokąt: |dx| <= w / 2 i |dy| <= h / 2
    circle        - odległość <= radius
    cone          - stożek od castera w kierunku punktu
    line          - odcinek caster -> punkt o danej szerokości
    single        - tylko aktorzy na kafelku punktu

Granice są WŁĄCZNE - aktor dokładnie na krawędzi jest trafiony.

UŻYCIE W YAML:
═══════════════════════════════════════════════════════════════════

    shape:
      type: "object_size"
      size: "7by7round"

    shape:
      type: "circle"
      radius: 3.5

    shape:
      type: "cone"
      radius: 6.0
      angle: 60          # stopnie

    shape:
      type: "line"
      width: 1.0
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Type, TYPE_CHECKING
import math

from ..core.point import Point
from ..errors import ConfigurationError

if TYPE_CHECKING:
    from ..units.actor import Actor


# Tolerancja granicy - aktor "dokładnie na krawędzi" po arytmetyce float
BOUNDARY_EPSILON = 1e-9


def get_actors_in_circle(
    center: Point,
    radius: float,
    actors: Iterable["Actor"],
) -> List["Actor"]:
    """
    Zwraca aktorów w okręgu (granica włącznie).

    Args:
        center: Środek okręgu
        radius: Promień
        actors: Pula kandydatów

    Returns:
        List[Actor]: Aktorzy w zasięgu, w kolejności puli
    """
    result = []

    for actor in actors:
        if not actor.is_valid():
            continue

        if center.distance(actor.position) <= radius + BOUNDARY_EPSILON:
            result.append(actor)

    return result


def get_actors_in_rect(
    center: Point,
    width: float,
    height: float,
    actors: Iterable["Actor"],
) -> List["Actor"]:
    """Aktorzy w prostokącie width x height wycentrowanym na punkcie."""
    half_w = width / 2 + BOUNDARY_EPSILON
    half_h = height / 2 + BOUNDARY_EPSILON
    return [
        actor for actor in actors
        if actor.is_valid()
        and abs(actor.position.x - center.x) <= half_w
        and abs(actor.position.y - center.y) <= half_h
    ]


def get_actors_in_cone(
    origin: Point,
    target: Point,
    angle: float,
    range_: float,
    actors: Iterable["Actor"],
) -> List["Actor"]:
    """
    Zwraca aktorów w stożku w kierunku celu.

    Args:
        origin: Wierzchołek stożka (caster)
        target: Punkt wskazujący kierunek
        angle: Kąt rozwarcia w stopniach
        range_: Maksymalny zasięg
        actors: Pula kandydatów
    """
    result = []

    dir_x = target.x - origin.x
    dir_y = target.y - origin.y

    # Brak kierunku - stożek pusty
    if dir_x == 0 and dir_y == 0:
        return result

    base_angle = math.atan2(dir_y, dir_x)
    half_cone = math.radians(angle / 2)

    for actor in actors:
        if not actor.is_valid():
            continue

        distance = origin.distance(actor.position)
        if distance == 0 or distance > range_ + BOUNDARY_EPSILON:
            continue

        actor_angle = math.atan2(actor.position.y - origin.y, actor.position.x - origin.x)

        # Różnica kątów (normalized)
        angle_diff = abs(actor_angle - base_angle)
        if angle_diff > math.pi:
            angle_diff = 2 * math.pi - angle_diff

        if angle_diff <= half_cone + BOUNDARY_EPSILON:
            result.append(actor)

    return result


def _distance_to_segment(p: Point, a: Point, b: Point) -> float:
    ab = b - a
    length_sq = ab.x * ab.x + ab.y * ab.y
    if length_sq == 0:
        return p.distance(a)
    t = ((p.x - a.x) * ab.x + (p.y - a.y) * ab.y) / length_sq
    t = max(0.0, min(1.0, t))
    return p.distance(a + ab * t)


def get_actors_in_line(
    origin: Point,
    target: Point,
    width: float,
    actors: Iterable["Actor"],
) -> List["Actor"]:
    """
    Zwraca aktorów na odcinku origin -> target.

    Args:
        width: Szerokość linii (aktor trafiony gdy odległość
               od odcinka <= width / 2)
    """
    half_width = width / 2 + BOUNDARY_EPSILON
    return [
        actor for actor in actors
        if actor.is_valid()
        and _distance_to_segment(actor.position, origin, target) <= half_width
    ]


# ═══════════════════════════════════════════════════════════════════════════
# KSZTAŁTY
# ═══════════════════════════════════════════════════════════════════════════

class Shape(ABC):
    """
    Bazowa klasa filtrów kształtu.
    """

    shape_type: str = "base"

    @abstractmethod
    def gather(
        self,
        center: Point,
        candidates: Iterable["Actor"],
        origin: Optional[Point] = None,
    ) -> List["Actor"]:
        """
        Zbiera aktorów w kształcie.

        Args:
            center: Wybrany punkt
            candidates: Pula kandydatów (kolejność zachowana)
            origin: Pozycja castera (dla cone/line)
        """
        pass

    @classmethod
    @abstractmethod
    def from_dict(cls, data: Dict[str, Any], object_sizes: Dict[str, Dict]) -> "Shape":
        pass


@dataclass
class ObjectSizeShape(Shape):
    """
    Footprint rozmiaru obiektu (np. "7by7round").

    Attributes:
        size_id: ID z object_sizes.yaml
        width: Szerokość w kafelkach
        height: Wysokość w kafelkach
        round: Okrąg (True) czy prostokąt (False)
    """
    size_id: str
    width: int
    height: int
    round: bool = False
    shape_type: str = "object_size"

    @property
    def radius(self) -> float:
        return self.width / 2

    def gather(self, center, candidates, origin=None):
        if self.round:
            return get_actors_in_circle(center, self.radius, candidates)
        return get_actors_in_rect(center, self.width, self.height, candidates)

    @classmethod
    def from_size_id(cls, size_id: str, object_sizes: Dict[str, Dict]) -> "ObjectSizeShape":
        size = object_sizes.get(size_id)
        if size is None:
            raise ConfigurationError(
                f"No object size '{size_id}' found. Available: {list(object_sizes.keys())}"
            )
        width = size.get("width")
        height = size.get("height")
        if not isinstance(width, int) or not isinstance(height, int) or width <= 0 or height <= 0:
            raise ConfigurationError(f"Object size '{size_id}' must have positive integer width/height")
        return cls(size_id=size_id, width=width, height=height, round=bool(size.get("round", False)))

    @classmethod
    def from_dict(cls, data, object_sizes):
        if "size" not in data:
            raise ConfigurationError("object_size shape requires 'size'")
        return cls.from_size_id(data["size"], object_sizes)


@dataclass
class CircleShape(Shape):
    radius: float
    shape_type: str = "circle"

    def gather(self, center, candidates, origin=None):
        return get_actors_in_circle(center, self.radius, candidates)

    @classmethod
    def from_dict(cls, data, object_sizes):
        radius = _positive_float(data, "radius")
        return cls(radius=radius)


@dataclass
class ConeShape(Shape):
    """Stożek od castera (origin) w kierunku wybranego punktu."""
    radius: float
    angle: float = 60.0
    shape_type: str = "cone"

    def gather(self, center, candidates, origin=None):
        if origin is None:
            return []
        return get_actors_in_cone(origin, center, self.angle, self.radius, candidates)

    @classmethod
    def from_dict(cls, data, object_sizes):
        return cls(radius=_positive_float(data, "radius"), angle=_positive_float(data, "angle", 60.0))


@dataclass
class LineShape(Shape):
    """Odcinek od castera do wybranego punktu."""
    width: float = 1.0
    shape_type: str = "line"

    def gather(self, center, candidates, origin=None):
        if origin is None:
            return []
        return get_actors_in_line(origin, center, self.width, candidates)

    @classmethod
    def from_dict(cls, data, object_sizes):
        return cls(width=_positive_float(data, "width", 1.0))


@dataclass
class SingleShape(Shape):
    """Tylko aktorzy stojący na kafelku wybranego punktu."""
    shape_type: str = "single"

    def gather(self, center, candidates, origin=None):
        tile = center.tile
        return [a for a in candidates if a.is_valid() and a.position.tile == tile]

    @classmethod
    def from_dict(cls, data, object_sizes):
        return cls()


def _positive_float(data: Dict[str, Any], key: str, default: Optional[float] = None) -> float:
    value = data.get(key, default)
    if value is None:
        raise ConfigurationError(f"Shape '{data.get('type')}' requires '{key}'")
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Shape parameter '{key}' must be a number, got {value!r}")
    if not math.isfinite(value) or value <= 0:
        raise ConfigurationError(f"Shape parameter '{key}' must be positive, got {value}")
    return value


# ═══════════════════════════════════════════════════════════════════════════
# REGISTRY
# ═══════════════════════════════════════════════════════════════════════════

SHAPE_REGISTRY: Dict[str, Type[Shape]] = {
    "object_size": ObjectSizeShape,
    "circle": CircleShape,
    "cone": ConeShape,
    "line": LineShape,
    "single": SingleShape,
}


def parse_shape(data: Any, object_sizes: Dict[str, Dict]) -> Shape:
    """
    Factory kształtów z YAML.

    Akceptuje też skrót: sam string = ID rozmiaru obiektu.

    Args:
        data: Dict z "type" albo string ("7by7round")
        object_sizes: Mapa z ConfigLoader.get_object_sizes()

    Raises:
        ConfigurationError: Nieznany typ lub złe parametry
    """
    if isinstance(data, str):
        return ObjectSizeShape.from_size_id(data, object_sizes)

    if not isinstance(data, dict):
        raise ConfigurationError(f"Malformed shape definition: {data!r}")

    shape_type = data.get("type", "object_size")
    shape_class = SHAPE_REGISTRY.get(shape_type)

    if shape_class is None:
        raise ConfigurationError(f"Unknown shape type: {shape_type}. "
                                 f"Available: {list(SHAPE_REGISTRY.keys())}")

    return shape_class.from_dict(data, object_sizes)
