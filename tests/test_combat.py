"""
Testy rozstrzygania ataku.

Poziomy trafienia -> wielkość zmiany, pomijanie nieważnych
celów i referencyjny rzut d100.
"""

import pytest
import sys
from pathlib import Path

# Add repo root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from ability_pipeline.combat.attack import (
    AttackOutcome, CombatCheck, CombatResolver, CombatRules, HitKind, RollTableCheck,
)
from ability_pipeline.core.point import Point
from ability_pipeline.core.rng import GameRNG
from ability_pipeline.core.world import World
from ability_pipeline.errors import ConfigurationError
from ability_pipeline.events.event_logger import EventLogger, EventType
from ability_pipeline.units.actor import Actor, ActorRef


class ScriptedCheck(CombatCheck):
    """Rzut zwracający zadane poziomy po kolei."""

    def __init__(self, *results: HitKind):
        self.results = list(results)
        self.calls = []

    def roll(self, attacker, target, defense_kind, attack_kind):
        self.calls.append((attacker.id, target.id, defense_kind, attack_kind))
        return self.results.pop(0) if len(self.results) > 1 else self.results[0]


class FixedRNG(GameRNG):
    """RNG z ustalonym wynikiem d100."""

    def __init__(self, roll: int):
        super().__init__(seed=0)
        self.roll = roll

    def roll_d100(self) -> int:
        return self.roll


def create_world(**target_stats) -> World:
    """Świat z atakującym "player" i celem "goblin"."""
    world = World(width=40, height=40)
    world.add_actor(Actor(
        id="player", name="Player", position=Point(5, 5),
        accuracy={"Ranged": target_stats.pop("accuracy", 0)},
    ))
    world.add_actor(Actor(
        id="goblin", name="Goblin", position=Point(5, 12),
        resources={"overflow_ap": 0.0},
        defense={"Reflex": target_stats.pop("defense", 0)},
    ))
    return world


def resolve(resolver: CombatResolver, base_amount: float = -2000) -> AttackOutcome:
    return resolver.resolve(ActorRef("player"), ActorRef("goblin"), "Reflex", "Ranged", base_amount)


# ═══════════════════════════════════════════════════════════════════════════
# TEST: WIELKOŚĆ ZMIANY
# ═══════════════════════════════════════════════════════════════════════════

@pytest.mark.parametrize("hit_kind,expected", [
    (HitKind.MISS, 0.0),
    (HitKind.GRAZE, -1000.0),
    (HitKind.HIT, -2000.0),
    (HitKind.CRIT, -4000.0),
])
def test_hit_kind_magnitudes(hit_kind, expected):
    """base -2000: Miss 0, Graze -1000, Hit -2000, Crit -4000."""
    world = create_world()
    resolver = CombatResolver(world, ScriptedCheck(hit_kind))

    outcome = resolve(resolver)

    assert outcome.hit_kind == hit_kind
    assert outcome.amount == pytest.approx(expected)
    assert outcome.applied == (hit_kind != HitKind.MISS)
    assert world.get_actor("goblin").get_resource("overflow_ap") == pytest.approx(expected)


def test_check_receives_defense_and_attack_kind():
    check = ScriptedCheck(HitKind.HIT)
    resolver = CombatResolver(create_world(), check)

    resolve(resolver)

    assert check.calls == [("player", "goblin", "Reflex", "Ranged")]


def test_resolve_is_single_additive_change():
    world = create_world()
    world.get_actor("goblin").resources["overflow_ap"] = 500.0
    resolver = CombatResolver(world, ScriptedCheck(HitKind.GRAZE, HitKind.HIT))

    resolve(resolver)
    resolve(resolver)

    assert world.get_actor("goblin").get_resource("overflow_ap") == pytest.approx(500 - 1000 - 2000)


def test_missing_resource_pool_starts_at_zero():
    world = create_world()
    resolver = CombatResolver(world, ScriptedCheck(HitKind.HIT))

    resolver.resolve(ActorRef("player"), ActorRef("goblin"), "Reflex", "Ranged", -50, resource="hp")

    assert world.get_actor("goblin").get_resource("hp") == pytest.approx(-50)


# ═══════════════════════════════════════════════════════════════════════════
# TEST: NIEWAŻNE REFERENCJE
# ═══════════════════════════════════════════════════════════════════════════

def test_invalid_target_skipped_without_roll():
    world = create_world()
    check = ScriptedCheck(HitKind.CRIT)
    log = EventLogger(seed=0)
    resolver = CombatResolver(world, check, event_log=log)
    goblin = world.remove_actor("goblin")

    first = resolve(resolver)
    second = resolve(resolver)

    for outcome in (first, second):
        assert outcome.was_skipped
        assert outcome.skip_reason == "invalid_target"
        assert outcome.hit_kind is None
        assert not outcome.applied
    assert check.calls == []
    assert goblin.get_resource("overflow_ap") == 0.0
    assert len(log.get_events_by_type(EventType.ATTACK_SKIPPED)) == 2


def test_dead_target_skipped():
    world = create_world()
    world.get_actor("goblin").alive = False
    resolver = CombatResolver(world, ScriptedCheck(HitKind.HIT))

    assert resolve(resolver).skip_reason == "invalid_target"
    assert world.get_actor("goblin").get_resource("overflow_ap") == 0.0


def test_reused_id_does_not_resolve_stale_ref():
    world = create_world()
    ref = ActorRef.of(world.get_actor("goblin"))
    world.remove_actor("goblin")
    newcomer = Actor(id="goblin", name="Goblin 2", position=Point(5, 12), resources={"overflow_ap": 0.0})
    world.add_actor(newcomer)
    resolver = CombatResolver(world, ScriptedCheck(HitKind.HIT))

    outcome = resolver.resolve(ActorRef.of(world.get_actor("player")), ref, "Reflex", "Ranged", -2000)

    assert ref.resolve(world) is None
    assert ActorRef.of(newcomer).resolve(world) is newcomer
    assert outcome.skip_reason == "invalid_target"
    assert newcomer.get_resource("overflow_ap") == 0.0


def test_invalid_attacker_skipped():
    world = create_world()
    world.remove_actor("player")
    resolver = CombatResolver(world, ScriptedCheck(HitKind.HIT))

    outcome = resolve(resolver)

    assert outcome.skip_reason == "invalid_attacker"
    assert world.get_actor("goblin").get_resource("overflow_ap") == 0.0


# ═══════════════════════════════════════════════════════════════════════════
# TEST: LOGOWANIE
# ═══════════════════════════════════════════════════════════════════════════

def test_hit_logs_attack_and_resource_change():
    log = EventLogger(seed=0)
    resolver = CombatResolver(create_world(), ScriptedCheck(HitKind.CRIT), event_log=log)

    resolver.resolve(ActorRef("player"), ActorRef("goblin"), "Reflex", "Ranged", -2000, tick=33)

    attack = log.get_events_by_type(EventType.ATTACK_ROLL)[0]
    change = log.get_events_by_type(EventType.RESOURCE_CHANGE)[0]
    assert attack.tick == 33
    assert attack.data["hit_kind"] == "CRIT"
    assert change.unit_id == "goblin"
    assert change.data["amount"] == -4000.0
    assert change.data["source_id"] == "player"


def test_miss_logs_attack_only():
    log = EventLogger(seed=0)
    resolver = CombatResolver(create_world(), ScriptedCheck(HitKind.MISS), event_log=log)

    resolve(resolver)

    assert len(log.get_events_by_type(EventType.ATTACK_ROLL)) == 1
    assert log.get_events_by_type(EventType.RESOURCE_CHANGE) == []


# ═══════════════════════════════════════════════════════════════════════════
# TEST: REFERENCYJNY RZUT
# ═══════════════════════════════════════════════════════════════════════════

@pytest.mark.parametrize("roll,expected", [
    (1, HitKind.MISS),
    (14, HitKind.MISS),
    (15, HitKind.GRAZE),
    (49, HitKind.GRAZE),
    (50, HitKind.HIT),
    (94, HitKind.HIT),
    (95, HitKind.CRIT),
    (100, HitKind.CRIT),
])
def test_roll_table_thresholds(roll, expected):
    world = create_world()
    check = RollTableCheck(CombatRules(), FixedRNG(roll))

    result = check.roll(world.get_actor("player"), world.get_actor("goblin"), "Reflex", "Ranged")

    assert result == expected


def test_roll_table_uses_accuracy_and_defense():
    """wynik = d100 + accuracy - defense."""
    world = create_world(accuracy=30, defense=10)
    check = RollTableCheck(CombatRules(), FixedRNG(40))

    # 40 + 30 - 10 = 60 -> HIT
    assert check.roll(world.get_actor("player"), world.get_actor("goblin"), "Reflex", "Ranged") == HitKind.HIT


def test_roll_table_is_deterministic_per_seed():
    world = create_world()
    player, goblin = world.get_actor("player"), world.get_actor("goblin")

    first = RollTableCheck(CombatRules(), GameRNG(777))
    second = RollTableCheck(CombatRules(), GameRNG(777))

    assert [first.roll(player, goblin, "Reflex", "Ranged") for _ in range(20)] == \
           [second.roll(player, goblin, "Reflex", "Ranged") for _ in range(20)]


def test_combat_rules_from_dict_and_validation():
    rules = CombatRules.from_dict({"graze_percentile": 10, "crit_damage_multiplier": 3.0})

    assert rules.graze_percentile == 10
    assert rules.multiplier(HitKind.CRIT) == 3.0
    assert rules.multiplier(HitKind.MISS) == 0.0

    with pytest.raises(ConfigurationError):
        CombatRules(graze_percentile=60, hit_percentile=50)


def test_rng_snapshot_replays_roll():
    rng = GameRNG(31)
    state = rng.snapshot()
    first = [rng.roll_d100() for _ in range(5)]

    rng.restore(state)

    assert [rng.roll_d100() for _ in range(5)] == first
