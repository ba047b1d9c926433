"""
Frag Grenade - granat rzucany w punkt, wybuch obszarowy.

ETAPY:
═══════════════════════════════════════════════════════════════════

    1. on_activate
       ─────────────────────────────────────────────────────────
       • Targeter: free select w zasięgu, punkt "1by1" przechodni
       • Kształt "7by7round" centrowany na punkcie
       • Pula kandydatów: wszyscy aktorzy świata

    2. on_target_select
       ─────────────────────────────────────────────────────────
       • Kinematyka: czas lotu = odległość / prędkość
       • Efekt pocisku (particles/circle12) lecący od castera
       • ON_COMPLETE -> create_explosion (ten sam TargetSet)

    3. create_explosion
       ─────────────────────────────────────────────────────────
       • Efekt wybuchu (burst, 0.15s) w wybranym punkcie
       • Dla KAŻDEGO celu: ON_UPDATE_AT(0.1) -> attack_target
         (jeden cel na callback, ten sam offset dla wszystkich)

    4. attack_target
       ─────────────────────────────────────────────────────────
       • Reflex vs Ranged, base -2000 overflow_ap
       • Cel nieważny -> pominięty przez CombatResolver

Przykład (caster (5,5), punkt (5,25), speed 20):
    t = 0.0   pocisk startuje, velocity (0, 20)
    t = 1.0   ON_COMPLETE -> wybuch
    t = 1.1   atak na każdy cel w promieniu 3.5 od (5,25)
"""

from __future__ import annotations
from typing import Optional, TYPE_CHECKING
import logging

from ..abilities.handlers import HandlerRegistry, SCRIPT_REGISTRY
from ..abilities.projectile import compute_trajectory
from ..abilities.scheduler import EffectHandle, EffectVisual, LinearParam
from ..core.point import Point
from ..core.targeting import PassabilityRule, Targeter, TargetResolver, TargetSet
from ..events.event_logger import EventType
from ..units.actor import ActorRef

if TYPE_CHECKING:
    from ..abilities.handlers import AbilityContext
    from ..combat.attack import AttackOutcome


logger = logging.getLogger(__name__)

registry = HandlerRegistry("frag_grenade")


@registry.handler("on_activate")
def on_activate(ctx: "AbilityContext") -> Targeter:
    """Tworzy i aktywuje targeter związany z casterem."""
    config = ctx.ability.targeter
    targeter = Targeter(
        caster=ctx.caster,
        ability_id=ctx.ability.id,
        resolver=TargetResolver(ctx.world),
        max_range=config.max_range,
        passability=PassabilityRule.from_size_id(config.passable_size, ctx.host.object_sizes),
        shape=config.shape,
    )
    targeter.add_all_effectable(ActorRef.of(a) for a in ctx.world.actors())
    targeter.activate()
    return targeter


@registry.handler("on_target_select")
def on_target_select(ctx: "AbilityContext") -> Optional[EffectHandle]:
    """
    Rzut granatu w wybrany punkt.

    Returns:
        EffectHandle pocisku lub None gdy caster zniknął
    """
    caster = ctx.resolve_caster()
    if caster is None:
        logger.debug("Caster %s gone before launch", ctx.caster.actor_id)
        return None

    projectile = ctx.ability.projectile
    point = ctx.targets.point
    trajectory = compute_trajectory(
        caster.position, point, projectile.speed, projectile.drift_damping,
    )

    if trajectory.degenerate:
        ctx.event_log.log_event(
            ctx.tick,
            EventType.DEGENERATE_KINEMATICS,
            unit_id=caster.id,
            ability_id=ctx.ability.id,
            duration=trajectory.duration,
        )

    visual = EffectVisual(
        position_x=LinearParam(caster.position.x, trajectory.velocity.x),
        position_y=LinearParam(caster.position.y, trajectory.velocity.y),
        particle_size=(projectile.particle_size, projectile.particle_size),
        particle_drift=trajectory.counter_drift,
        color=projectile.color,
    )
    effect = ctx.host.effects.create(
        projectile.template, trajectory.duration, ctx,
        owner_id=caster.id, visual=visual,
    )
    effect.on_complete("create_explosion", ctx.targets)
    effect.activate()
    return effect


@registry.handler("create_explosion")
def create_explosion(ctx: "AbilityContext") -> EffectHandle:
    """Wybuch w wybranym punkcie + jeden atak na każdy zebrany cel."""
    detonation = ctx.ability.detonation
    point = ctx.targets.point

    # Pozycja efektu to róg cząsteczki, nie środek
    corner = point - Point(detonation.burst_offset, detonation.burst_offset)
    visual = EffectVisual(
        position_x=LinearParam(corner.x),
        position_y=LinearParam(corner.y),
        particle_size=(detonation.burst_size, detonation.burst_size),
        color=ctx.ability.projectile.color,
    )
    burst = ctx.host.effects.create(
        detonation.template, detonation.duration, ctx,
        owner_id=ctx.caster.actor_id, visual=visual,
    )
    for ref in ctx.targets:
        burst.on_update_at(detonation.attack_offset, "attack_target", TargetSet(point, (ref,)))
    burst.activate()
    return burst


@registry.handler("attack_target")
def attack_target(ctx: "AbilityContext") -> Optional["AttackOutcome"]:
    target = ctx.targets.first()
    if target is None:
        return None
    return ctx.host.resolve_attack(ctx.caster, target, ctx.ability.attack)


registry.validate_entry_points()
SCRIPT_REGISTRY[registry.script_id] = registry
