"""
Testy targetingu umiejętności.

Testuje free select (zasięg, przechodniość), filtry kształtu
i maszynę stanów Targetera.
"""

import pytest
import sys
from pathlib import Path

# Add repo root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from ability_pipeline.abilities.aoe import (
    parse_shape, ObjectSizeShape, CircleShape, ConeShape, LineShape, SingleShape,
    SHAPE_REGISTRY,
)
from ability_pipeline.core.config_loader import ConfigLoader
from ability_pipeline.core.point import Point
from ability_pipeline.core.targeting import (
    SELECTION_PENDING, PassabilityRule, Targeter, TargeterState, TargetResolver, TargetSet,
)
from ability_pipeline.core.world import World
from ability_pipeline.errors import ConfigurationError, SchedulerStateError, SelectionCancelled
from ability_pipeline.units.actor import Actor, ActorRef


DATA_PATH = Path(__file__).parent.parent / "data"


# ═══════════════════════════════════════════════════════════════════════════
# FIXTURES
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def object_sizes():
    return ConfigLoader(str(DATA_PATH)).get_object_sizes()


@pytest.fixture
def world():
    """Pusty obszar 40x40."""
    return World(width=40, height=40)


def create_actor(world: World, actor_id: str, x: float, y: float) -> Actor:
    """Helper do tworzenia aktorów testowych."""
    actor = Actor(id=actor_id, name=f"Actor_{actor_id}", position=Point(x, y))
    world.add_actor(actor)
    return actor


def create_targeter(world: World, caster: Actor, object_sizes, max_range: float = 12.0) -> Targeter:
    targeter = Targeter(
        caster=ActorRef.of(caster),
        ability_id="frag_grenade",
        resolver=TargetResolver(world),
        max_range=max_range,
        passability=PassabilityRule.from_size_id("1by1", object_sizes),
        shape=parse_shape("7by7round", object_sizes),
    )
    targeter.add_all_effectable(ActorRef.of(a) for a in world.actors())
    return targeter


# ═══════════════════════════════════════════════════════════════════════════
# TEST: KSZTAŁTY
# ═══════════════════════════════════════════════════════════════════════════

def test_shape_registry_has_all_shapes():
    for name in ["object_size", "circle", "cone", "line", "single"]:
        assert name in SHAPE_REGISTRY, f"Brak kształtu: {name}"


def test_7by7round_boundary_inclusive(world, object_sizes):
    """7x7 round łapie aktorów do 3.5 od środka włącznie."""
    shape = parse_shape("7by7round", object_sizes)
    inside = create_actor(world, "inside", 10, 10)
    edge = create_actor(world, "edge", 13.5, 10)
    outside = create_actor(world, "outside", 13.6, 10)

    gathered = shape.gather(Point(10, 10), world.actors())

    assert inside in gathered
    assert edge in gathered
    assert outside not in gathered


def test_square_object_size_uses_rect(world, object_sizes):
    """Nie-okrągły rozmiar to prostokąt (narożniki wliczone)."""
    shape = parse_shape("3by3", object_sizes)
    corner = create_actor(world, "corner", 11.5, 11.5)

    assert shape.gather(Point(10, 10), world.actors()) == [corner]


def test_shape_preserves_pool_order(world, object_sizes):
    """Kolejność TargetSet = kolejność puli kandydatów."""
    shape = parse_shape("7by7round", object_sizes)
    b = create_actor(world, "b", 11, 10)
    a = create_actor(world, "a", 10, 10)
    c = create_actor(world, "c", 9, 9)

    assert shape.gather(Point(10, 10), [b, a, c]) == [b, a, c]
    assert shape.gather(Point(10, 10), [c, b, a]) == [c, b, a]


def test_shape_skips_invalid_actors(world, object_sizes):
    shape = parse_shape("7by7round", object_sizes)
    alive = create_actor(world, "alive", 10, 10)
    dead = create_actor(world, "dead", 10, 11)
    dead.alive = False

    assert shape.gather(Point(10, 10), world.actors()) == [alive]


def test_cone_and_line_need_origin(world):
    create_actor(world, "t", 10, 15)

    assert ConeShape(radius=10).gather(Point(10, 15), world.actors()) == []
    cone = ConeShape(radius=10, angle=60).gather(Point(10, 15), world.actors(), origin=Point(10, 8))
    line = LineShape(width=1.0).gather(Point(10, 15), world.actors(), origin=Point(10, 8))

    assert [a.id for a in cone] == ["t"]
    assert [a.id for a in line] == ["t"]


def test_single_and_circle_shapes(world):
    on_tile = create_actor(world, "on_tile", 4.2, 4.8)
    create_actor(world, "next", 5.1, 4.5)

    assert SingleShape().gather(Point(4.5, 4.5), world.actors()) == [on_tile]
    assert len(CircleShape(radius=2).gather(Point(4.5, 4.5), world.actors())) == 2


def test_parse_shape_dict_forms(object_sizes):
    assert isinstance(parse_shape({"type": "object_size", "size": "5by5round"}, object_sizes), ObjectSizeShape)
    assert parse_shape({"type": "circle", "radius": 2.5}, object_sizes).radius == 2.5
    assert parse_shape({"type": "cone", "radius": 4}, object_sizes).angle == 60.0


@pytest.mark.parametrize("shape_data", [
    "11by11round",
    {"type": "hexagon"},
    {"type": "circle"},
    {"type": "circle", "radius": -1},
    {"type": "object_size"},
    42,
])
def test_parse_shape_malformed_raises(shape_data, object_sizes):
    with pytest.raises(ConfigurationError):
        parse_shape(shape_data, object_sizes)


# ═══════════════════════════════════════════════════════════════════════════
# TEST: RESOLVER
# ═══════════════════════════════════════════════════════════════════════════

def test_resolver_pending_without_point(world, object_sizes):
    caster = create_actor(world, "caster", 5, 5)
    resolver = TargetResolver(world)

    result = resolver.resolve(
        caster, 12.0, PassabilityRule.from_size_id("1by1", object_sizes),
        parse_shape("7by7round", object_sizes), world.actors(),
    )

    assert result is SELECTION_PENDING
    assert not result


def test_resolver_gathers_targets(world, object_sizes):
    caster = create_actor(world, "caster", 5, 5)
    near = create_actor(world, "near", 5, 12)
    create_actor(world, "far", 15, 12)

    result = TargetResolver(world).resolve(
        caster, 12.0, PassabilityRule.from_size_id("1by1", object_sizes),
        parse_shape("7by7round", object_sizes), world.actors(), Point(5, 12),
    )

    assert isinstance(result, TargetSet)
    assert result.point == Point(5, 12)
    assert result.actor_ids() == [near.id]


def test_resolver_range_is_inclusive(world, object_sizes):
    caster = create_actor(world, "caster", 5, 5)
    resolver = TargetResolver(world)
    passable = PassabilityRule.from_size_id("1by1", object_sizes)

    assert resolver.rejection_reason(caster, 12.0, passable, Point(5, 17)) is None
    assert resolver.rejection_reason(caster, 12.0, passable, Point(5, 17.01)) == "out_of_range"


def test_resolver_rejects_impassable_point(world, object_sizes):
    caster = create_actor(world, "caster", 5, 5)
    world.block_tile(5, 10)

    with pytest.raises(SelectionCancelled) as exc:
        TargetResolver(world).resolve(
            caster, 12.0, PassabilityRule.from_size_id("1by1", object_sizes),
            parse_shape("7by7round", object_sizes), world.actors(), Point(5.2, 10.3),
        )
    assert exc.value.reason == "impassable"


def test_resolver_rejects_point_outside_area(world, object_sizes):
    caster = create_actor(world, "caster", 1, 1)
    reason = TargetResolver(world).rejection_reason(
        caster, 12.0, PassabilityRule.from_size_id("1by1", object_sizes), Point(-2, 1),
    )
    assert reason == "impassable"


def test_resolver_checks_point_finiteness(world, object_sizes):
    caster = create_actor(world, "caster", 5, 5)
    resolver = TargetResolver(world)
    rule = PassabilityRule.from_size_id("1by1", object_sizes)

    assert Point(5, 10).is_finite()
    assert resolver.rejection_reason(caster, 12.0, rule, Point(5, 10)) is None
    assert resolver.rejection_reason(caster, 12.0, rule, Point(float("nan"), 10)) == "point_not_finite"
    assert not world.is_passable(Point(float("inf"), 5), 1, 1)


def test_resolver_does_not_mutate_world(world, object_sizes):
    caster = create_actor(world, "caster", 5, 5)
    target = create_actor(world, "target", 5, 12)
    before = world.to_dict()

    TargetResolver(world).resolve(
        caster, 12.0, PassabilityRule.from_size_id("1by1", object_sizes),
        parse_shape("7by7round", object_sizes), world.actors(), Point(5, 12),
    )

    assert world.to_dict() == before
    assert target.resources == {}


# ═══════════════════════════════════════════════════════════════════════════
# TEST: TARGETER
# ═══════════════════════════════════════════════════════════════════════════

def test_targeter_select_transitions_to_selected(world, object_sizes):
    caster = create_actor(world, "caster", 5, 5)
    create_actor(world, "goblin", 5, 12)
    targeter = create_targeter(world, caster, object_sizes)

    assert targeter.state == TargeterState.CREATED
    targeter.activate()
    result = targeter.select(Point(5, 12))

    assert targeter.state == TargeterState.SELECTED
    assert targeter.target_set is result
    assert result.actor_ids() == ["goblin"]


def test_targeter_out_of_range_cancels(world, object_sizes):
    """Punkt poza zasięgiem - anulowanie, brak TargetSet."""
    caster = create_actor(world, "caster", 5, 5)
    targeter = create_targeter(world, caster, object_sizes)
    targeter.activate()

    with pytest.raises(SelectionCancelled) as exc:
        targeter.select(Point(5, 30))

    assert exc.value.reason == "out_of_range"
    assert targeter.state == TargeterState.CANCELLED
    assert targeter.target_set is None


def test_targeter_requires_activation(world, object_sizes):
    caster = create_actor(world, "caster", 5, 5)
    targeter = create_targeter(world, caster, object_sizes)

    with pytest.raises(SchedulerStateError):
        targeter.select(Point(5, 10))

    targeter.activate()
    with pytest.raises(SchedulerStateError):
        targeter.activate()


def test_targeter_cancel_is_idempotent(world, object_sizes):
    caster = create_actor(world, "caster", 5, 5)
    targeter = create_targeter(world, caster, object_sizes)
    targeter.activate()

    targeter.cancel()
    targeter.cancel()

    assert targeter.state == TargeterState.CANCELLED
    assert targeter.cancel_reason == "cancelled_by_user"


def test_targeter_caster_removed(world, object_sizes):
    caster = create_actor(world, "caster", 5, 5)
    targeter = create_targeter(world, caster, object_sizes)
    targeter.activate()
    world.remove_actor("caster")

    with pytest.raises(SelectionCancelled) as exc:
        targeter.select(Point(5, 10))
    assert exc.value.reason == "caster_invalid"


def test_targeter_preview_does_not_change_state(world, object_sizes):
    caster = create_actor(world, "caster", 5, 5)
    create_actor(world, "goblin", 5, 12)
    targeter = create_targeter(world, caster, object_sizes)
    targeter.activate()

    assert [r.actor_id for r in targeter.preview(Point(5, 12))] == ["goblin"]
    assert targeter.preview(Point(5, 30)) == []
    assert targeter.state == TargeterState.ACTIVE


def test_auto_select_picks_cluster(world, object_sizes):
    """AI wybiera pozycję, która zbiera najwięcej celów."""
    caster = create_actor(world, "caster", 5, 5)
    create_actor(world, "lonely", 12, 5)
    create_actor(world, "c1", 5, 14)
    create_actor(world, "c2", 6, 15)
    create_actor(world, "c3", 4, 15)
    targeter = create_targeter(world, caster, object_sizes)
    targeter.activate()

    result = targeter.auto_select()

    assert result.point == Point(5, 14)
    assert result.actor_ids() == ["c1", "c2", "c3"]


def test_auto_select_without_reachable_point(world, object_sizes):
    caster = create_actor(world, "caster", 5, 5)
    create_actor(world, "far", 30, 30)
    targeter = create_targeter(world, caster, object_sizes)
    targeter.activate()

    with pytest.raises(SelectionCancelled) as exc:
        targeter.auto_select()
    assert exc.value.reason == "no_valid_point"
    assert targeter.state == TargeterState.CANCELLED
