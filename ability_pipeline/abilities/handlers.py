"""
Rejestr handlerów + jawny kontekst umiejętności.

Handler to obiekt z jedną metodą invoke(context). Skrypt umiejętności
rejestruje swoje entry points (on_activate, on_target_select) i handlery
etapów (create_explosion, attack_target) pod stabilnymi ID.

ID są rozwiązywane w momencie REJESTRACJI callbacku na efekcie,
nie w momencie wywołania - literówka w ID to ConfigurationError
zanim cokolwiek zostanie zaplanowane.

KONTEKST:
═══════════════════════════════════════════════════════════════════

    Zamiast globalnych "parent"/"ability"/"targets" każdy handler
    dostaje AbilityContext przekazywany przez scheduler:

        ctx.host        - runtime hosta (świat, rng, log, efekty)
        ctx.caster      - ActorRef castera (może być nieważny!)
        ctx.ability     - definicja umiejętności
        ctx.targets     - TargetSet tego wywołania
        ctx.effect      - EffectHandle który wywołał callback
        ctx.elapsed     - czas efektu w momencie wywołania

UŻYCIE:
═══════════════════════════════════════════════════════════════════

    registry = HandlerRegistry("frag_grenade")

    @registry.handler("attack_target")
    def attack_target(ctx):
        ...

    SCRIPT_REGISTRY["frag_grenade"] = registry
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Optional, TYPE_CHECKING

from ..errors import ConfigurationError

if TYPE_CHECKING:
    from ..core.targeting import TargetSet
    from ..units.actor import Actor, ActorRef
    from .ability import AbilityDefinition
    from .scheduler import EffectHandle


# Entry points wymagane od każdego skryptu umiejętności
ENTRY_POINTS = ("on_activate", "on_target_select")


class Handler(ABC):
    """Bazowa klasa handlera callbacku."""

    handler_id: str = "base"

    @abstractmethod
    def invoke(self, context: "AbilityContext") -> Any:
        pass


class FunctionHandler(Handler):
    """Handler opakowujący zwykłą funkcję ctx -> Any."""

    def __init__(self, handler_id: str, func: Callable[["AbilityContext"], Any]):
        self.handler_id = handler_id
        self.func = func

    def invoke(self, context: "AbilityContext") -> Any:
        return self.func(context)

    def __repr__(self) -> str:
        return f"FunctionHandler({self.handler_id!r})"


class HandlerRegistry:
    """
    Mapa stabilne ID -> Handler dla jednego skryptu.

    Attributes:
        script_id: ID skryptu (np. "frag_grenade")
        _handlers: Zarejestrowane handlery
    """

    def __init__(self, script_id: str):
        self.script_id = script_id
        self._handlers: Dict[str, Handler] = {}

    def register(self, handler_id: str, handler: Handler) -> Handler:
        if handler_id in self._handlers:
            raise ConfigurationError(
                f"Handler '{handler_id}' already registered in script '{self.script_id}'"
            )
        self._handlers[handler_id] = handler
        return handler

    def handler(self, handler_id: str) -> Callable:
        """Dekorator rejestrujący funkcję jako FunctionHandler."""
        def decorator(func: Callable[["AbilityContext"], Any]) -> Callable:
            self.register(handler_id, FunctionHandler(handler_id, func))
            return func
        return decorator

    def get(self, handler_id: str) -> Handler:
        """
        Rozwiązuje ID handlera.

        Raises:
            ConfigurationError: Nieznane ID
        """
        handler = self._handlers.get(handler_id)
        if handler is None:
            raise ConfigurationError(
                f"Unknown handler '{handler_id}' in script '{self.script_id}'. "
                f"Available: {list(self._handlers.keys())}"
            )
        return handler

    def __contains__(self, handler_id: str) -> bool:
        return handler_id in self._handlers

    def validate_entry_points(self) -> None:
        missing = [name for name in ENTRY_POINTS if name not in self._handlers]
        if missing:
            raise ConfigurationError(f"Script '{self.script_id}' is missing entry points: {missing}")


SCRIPT_REGISTRY: Dict[str, HandlerRegistry] = {}


def get_script(script_id: str) -> HandlerRegistry:
    """
    Zwraca rejestr handlerów skryptu.

    Raises:
        ConfigurationError: Nieznany skrypt
    """
    registry = SCRIPT_REGISTRY.get(script_id)
    if registry is None:
        raise ConfigurationError(f"Unknown ability script: {script_id}. "
                                 f"Available: {list(SCRIPT_REGISTRY.keys())}")
    return registry


@dataclass(frozen=True)
class AbilityContext:
    """
    Jawny kontekst przekazywany do każdego handlera.

    Niemutowalny - scheduler tworzy kopię z targets/effect/elapsed
    dla każdego wywołania (for_callback).

    Attributes:
        host: Runtime hosta (Simulation)
        caster: Słaba referencja do castera
        ability: Definicja umiejętności
        handlers: Rejestr handlerów skryptu
        targets: TargetSet tego wywołania
        effect: Efekt który wywołał callback
        elapsed: Czas efektu w momencie wywołania
    """
    host: Any
    caster: "ActorRef"
    ability: "AbilityDefinition"
    handlers: HandlerRegistry
    targets: Optional["TargetSet"] = None
    effect: Optional["EffectHandle"] = None
    elapsed: float = 0.0

    @property
    def world(self):
        return self.host.world

    @property
    def tick(self) -> int:
        return self.host.tick

    @property
    def event_log(self):
        return self.host.logger

    def resolve_caster(self) -> Optional["Actor"]:
        return self.caster.resolve(self.world)

    def with_targets(self, targets: "TargetSet") -> "AbilityContext":
        return replace(self, targets=targets)

    def for_callback(
        self,
        targets: "TargetSet",
        effect: "EffectHandle",
        elapsed: float,
    ) -> "AbilityContext":
        return replace(self, targets=targets, effect=effect, elapsed=elapsed)

    def invoke(self, handler_id: str) -> Any:
        """Wywołuje entry point skryptu po ID."""
        return self.handlers.get(handler_id).invoke(self)
