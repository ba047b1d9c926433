"""
Abilities module - definicje i pipeline umiejętności.

Zawiera:
- AbilityDefinition: Stałe autorskie (targeter, pocisk, wybuch, atak)
- Shape / parse_shape: Filtry kształtu (object_size, circle, cone, line, single)
- compute_trajectory: Kinematyka pocisku
- EffectHandle / EffectManager: Oś czasu efektów i callbacków
- HandlerRegistry / AbilityContext: Rejestr handlerów + jawny kontekst
"""

from .ability import (
    AbilityDefinition, TargeterConfig, ProjectileConfig,
    DetonationConfig, AttackConfig,
)
from .aoe import (
    Shape, ObjectSizeShape, CircleShape, ConeShape, LineShape, SingleShape,
    SHAPE_REGISTRY, parse_shape,
    get_actors_in_circle, get_actors_in_rect, get_actors_in_cone, get_actors_in_line,
)
from .projectile import Trajectory, compute_trajectory, MIN_DURATION
from .scheduler import (
    TriggerKind, EffectState, ScheduledCallback,
    LinearParam, EffectVisual, EffectHandle, EffectManager,
)
from .handlers import (
    Handler, FunctionHandler, HandlerRegistry, AbilityContext,
    SCRIPT_REGISTRY, get_script,
)

__all__ = [
    # Ability
    "AbilityDefinition", "TargeterConfig", "ProjectileConfig",
    "DetonationConfig", "AttackConfig",

    # AoE
    "Shape", "ObjectSizeShape", "CircleShape", "ConeShape", "LineShape", "SingleShape",
    "SHAPE_REGISTRY", "parse_shape",
    "get_actors_in_circle", "get_actors_in_rect", "get_actors_in_cone", "get_actors_in_line",

    # Projectile
    "Trajectory", "compute_trajectory", "MIN_DURATION",

    # Scheduler
    "TriggerKind", "EffectState", "ScheduledCallback",
    "LinearParam", "EffectVisual", "EffectHandle", "EffectManager",

    # Handlers
    "Handler", "FunctionHandler", "HandlerRegistry", "AbilityContext",
    "SCRIPT_REGISTRY", "get_script",
]
