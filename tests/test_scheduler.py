"""
Testy schedulera efektów.

Kolejność callbacków, remisy, anulowanie, izolacja błędów
handlerów i walidacja rejestracji.
"""

import pytest
import sys
from pathlib import Path

# Add repo root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from ability_pipeline.abilities.handlers import AbilityContext, FunctionHandler, HandlerRegistry
from ability_pipeline.abilities.scheduler import (
    EffectHandle, EffectManager, EffectState, TriggerKind,
)
from ability_pipeline.core.point import Point
from ability_pipeline.core.targeting import TargetSet
from ability_pipeline.core.world import World
from ability_pipeline.errors import ConfigurationError, SchedulerStateError
from ability_pipeline.events.event_logger import EventLogger, EventType
from ability_pipeline.units.actor import ActorRef


DT = 1 / 30


class FakeHost:
    """Minimalny host: świat, tick, logger, manager efektów."""

    def __init__(self):
        self.world = World(width=40, height=40)
        self.tick = 0
        self.logger = EventLogger(seed=0)
        self.effects = EffectManager()


def create_context(calls: list, host: FakeHost = None) -> AbilityContext:
    """
    Helper: kontekst z handlerami zapisującymi wywołania.

    Handlery:
        a, b, c - zapisują swoją nazwę do calls
        boom    - rzuca RuntimeError
        cancel  - anuluje własny efekt
        spawn   - tworzy kolejny efekt (0.15s) z callbackiem "a" w t=0
    """
    registry = HandlerRegistry("test")
    for name in ("a", "b", "c"):
        registry.register(name, FunctionHandler(name, lambda ctx, n=name: calls.append(n)))

    @registry.handler("boom")
    def boom(ctx):
        calls.append("boom")
        raise RuntimeError("handler exploded")

    @registry.handler("cancel")
    def cancel(ctx):
        calls.append("cancel")
        ctx.effect.cancel("handler")

    @registry.handler("spawn")
    def spawn(ctx):
        calls.append("spawn")
        child = ctx.host.effects.create("burst", 0.15, ctx)
        child.on_update_at(0.0, "a", ctx.targets)
        child.activate()

    return AbilityContext(
        host=host or FakeHost(),
        caster=ActorRef("caster"),
        ability=None,
        handlers=registry,
    )


def targets(*ids: str) -> TargetSet:
    return TargetSet(point=Point(5, 25), targets=tuple(ActorRef(i) for i in ids))


# ═══════════════════════════════════════════════════════════════════════════
# TEST: KOLEJNOŚĆ
# ═══════════════════════════════════════════════════════════════════════════

def test_callbacks_fire_in_fire_time_order():
    calls = []
    handle = EffectHandle("burst", 0.15, create_context(calls))
    handle.on_complete("c", targets())
    handle.on_update_at(0.1, "a", targets())
    handle.on_update_at(0.05, "b", targets())
    handle.activate()

    fired = handle.advance(0.2)

    assert calls == ["b", "a", "c"]
    assert [cb.trigger for cb in fired] == [
        TriggerKind.ON_UPDATE_AT, TriggerKind.ON_UPDATE_AT, TriggerKind.ON_COMPLETE,
    ]
    assert handle.state == EffectState.COMPLETE


def test_ties_fire_in_registration_order():
    calls = []
    handle = EffectHandle("burst", 0.15, create_context(calls))
    handle.on_update_at(0.1, "b", targets())
    handle.on_update_at(0.1, "a", targets())
    handle.on_update_at(0.1, "c", targets())
    handle.activate()

    handle.advance(0.15)

    assert calls == ["b", "a", "c"]


def test_each_callback_fires_exactly_once():
    calls = []
    handle = EffectHandle("burst", 0.15, create_context(calls))
    handle.on_update_at(0.1, "a", targets())
    handle.on_complete("b", targets())
    handle.activate()

    for _ in range(20):
        handle.advance(DT)

    assert calls == ["a", "b"]
    assert handle.pending_callbacks() == []
    assert handle.advance(DT) == []


def test_on_complete_fires_when_clock_reaches_duration():
    """D = 1.0 przy 30 tps: dokładnie w 30. ticku."""
    calls = []
    handle = EffectHandle("particles/circle12", 1.0, create_context(calls))
    handle.on_complete("a", targets())
    handle.activate()

    for _ in range(29):
        handle.advance(DT)
    assert calls == []
    assert handle.state == EffectState.ACTIVE

    handle.advance(DT)
    assert calls == ["a"]
    assert handle.elapsed == pytest.approx(1.0)
    assert handle.is_complete


def test_callback_context_carries_targets_and_time():
    seen = []
    registry = HandlerRegistry("ctx")
    registry.register("probe", FunctionHandler("probe", seen.append))
    ctx = AbilityContext(host=FakeHost(), caster=ActorRef("caster"), ability=None, handlers=registry)

    handle = EffectHandle("burst", 0.15, ctx)
    handle.on_update_at(0.1, "probe", targets("goblin_1"))
    handle.on_update_at(0.1, "probe", targets("goblin_2"))
    handle.activate()
    handle.advance(0.15)

    assert [c.targets.actor_ids() for c in seen] == [["goblin_1"], ["goblin_2"]]
    assert all(c.effect is handle for c in seen)
    assert all(c.elapsed == pytest.approx(0.1) for c in seen)


# ═══════════════════════════════════════════════════════════════════════════
# TEST: ANULOWANIE
# ═══════════════════════════════════════════════════════════════════════════

def test_cancelled_handle_never_fires():
    calls = []
    handle = EffectHandle("burst", 0.15, create_context(calls))
    handle.on_update_at(0.1, "a", targets())
    handle.on_complete("b", targets())
    handle.activate()
    handle.advance(DT)

    assert handle.cancel("owner_removed") is True
    assert handle.cancel("again") is False

    for _ in range(10):
        handle.advance(DT)

    assert calls == []
    assert handle.was_cancelled
    assert handle.cancel_reason == "owner_removed"


def test_handler_cancelling_own_effect_stops_remaining():
    calls = []
    handle = EffectHandle("burst", 0.15, create_context(calls))
    handle.on_update_at(0.05, "cancel", targets())
    handle.on_update_at(0.05, "a", targets())
    handle.on_complete("b", targets())
    handle.activate()

    handle.advance(0.15)

    assert calls == ["cancel"]
    assert handle.is_complete


def test_recreated_handle_carries_no_state():
    calls = []
    ctx = create_context(calls)
    first = EffectHandle("burst", 0.15, ctx)
    first.on_update_at(0.1, "a", targets())
    first.activate()
    first.advance(0.05)
    first.cancel()

    second = EffectHandle("burst", 0.15, ctx)

    assert second.id != first.id
    assert second.state == EffectState.PENDING
    assert second.elapsed == 0.0
    assert second.callbacks == []
    assert calls == []


# ═══════════════════════════════════════════════════════════════════════════
# TEST: IZOLACJA BŁĘDÓW
# ═══════════════════════════════════════════════════════════════════════════

def test_handler_fault_does_not_block_later_callbacks():
    calls = []
    host = FakeHost()
    handle = EffectHandle("burst", 0.15, create_context(calls, host))
    handle.on_update_at(0.05, "boom", targets())
    handle.on_update_at(0.1, "a", targets())
    handle.on_complete("b", targets())
    handle.activate()

    handle.advance(0.15)

    assert calls == ["boom", "a", "b"]
    faults = host.logger.get_events_by_type(EventType.HANDLER_FAULT)
    assert len(faults) == 1
    assert faults[0].data["handler"] == "boom"


# ═══════════════════════════════════════════════════════════════════════════
# TEST: WALIDACJA REJESTRACJI
# ═══════════════════════════════════════════════════════════════════════════

@pytest.mark.parametrize("offset", [0.2, -0.01, float("nan")])
def test_offset_outside_duration_raises(offset):
    handle = EffectHandle("burst", 0.15, create_context([]))
    with pytest.raises(ConfigurationError):
        handle.on_update_at(offset, "a", targets())


def test_offset_at_bounds_is_accepted():
    handle = EffectHandle("burst", 0.15, create_context([]))
    handle.on_update_at(0.0, "a", targets())
    handle.on_update_at(0.15, "a", targets())
    assert len(handle.callbacks) == 2


def test_unknown_handler_id_raises_at_registration():
    handle = EffectHandle("burst", 0.15, create_context([]))
    with pytest.raises(ConfigurationError):
        handle.on_complete("create_explosoin", targets())


@pytest.mark.parametrize("duration", [0, -1.0, float("inf"), float("nan")])
def test_invalid_duration_raises(duration):
    with pytest.raises(ConfigurationError):
        EffectHandle("burst", duration, create_context([]))


def test_state_machine_misuse_raises():
    handle = EffectHandle("burst", 0.15, create_context([]))
    handle.activate()

    with pytest.raises(SchedulerStateError):
        handle.on_update_at(0.1, "a", targets())
    with pytest.raises(SchedulerStateError):
        handle.activate()
    with pytest.raises(ValueError):
        handle.advance(-DT)


def test_duplicate_handler_registration_raises():
    registry = HandlerRegistry("dup")
    registry.register("a", FunctionHandler("a", lambda ctx: None))
    with pytest.raises(ConfigurationError):
        registry.register("a", FunctionHandler("a", lambda ctx: None))


# ═══════════════════════════════════════════════════════════════════════════
# TEST: MANAGER
# ═══════════════════════════════════════════════════════════════════════════

def test_manager_chained_effect_starts_next_tick():
    """Efekt stworzony w callbacku ma własny zegar od następnego ticka."""
    calls = []
    host = FakeHost()
    ctx = create_context(calls, host)

    primary = host.effects.create("particles/circle12", 0.1, ctx, owner_id="caster")
    primary.on_complete("spawn", targets("goblin"))
    primary.activate()

    for _ in range(3):
        host.effects.tick(DT)
    assert calls == ["spawn"]

    host.effects.tick(DT)
    assert calls == ["spawn", "a"]


def test_manager_cancel_owned_by():
    calls = []
    host = FakeHost()
    ctx = create_context(calls, host)

    mine = host.effects.create("burst", 0.15, ctx, owner_id="caster")
    mine.on_complete("a", targets())
    mine.activate()
    other = host.effects.create("burst", 0.15, ctx, owner_id="enemy")
    other.on_complete("b", targets())
    other.activate()
    host.effects.tick(DT)

    assert host.effects.cancel_owned_by("caster") == 1
    assert host.effects.get_active_count() == 1

    while not host.effects.is_idle():
        host.effects.tick(DT)

    assert calls == ["b"]
    assert mine.was_cancelled
    assert not other.was_cancelled


def test_manager_clear_cancels_active_and_incoming():
    calls = []
    host = FakeHost()
    ctx = create_context(calls, host)

    running = host.effects.create("burst", 0.15, ctx, owner_id="caster")
    running.on_update_at(0.1, "a", targets())
    running.activate()
    host.effects.tick(DT)
    queued = host.effects.create("burst", 0.15, ctx, owner_id="enemy")
    queued.on_complete("b", targets())
    queued.activate()

    assert host.effects.clear() == 2
    assert host.effects.is_idle()

    host.effects.tick(DT)
    assert calls == []
    assert running.was_cancelled and queued.was_cancelled
    assert host.effects.clear() == 0


def test_manager_prunes_completed_effects():
    host = FakeHost()
    handle = host.effects.create("burst", 0.15, create_context([], host))
    handle.activate()

    assert host.effects.get_active_count() == 1
    for _ in range(5):
        host.effects.tick(DT)

    assert host.effects.is_idle()
    assert host.logger.get_events_by_type(EventType.EFFECT_COMPLETE)
