"""
Scheduler efektów - oś czasu pojedynczego efektu + manager efektów.

Każdy EffectHandle ma WŁASNY zegar (czas względny od aktywacji).
Callbacki są rejestrowane przed activate() i odpalane dokładnie raz,
gdy zegar dojdzie do ich fire time.

MASZYNA STANÓW:
═══════════════════════════════════════════════════════════════════

    PENDING ──activate()──► ACTIVE ──zegar >= D──► COMPLETE
       │                       │
       └───────cancel()────────┴──────────────────► COMPLETE

    - PENDING: rejestracja callbacków (on_complete / on_update_at)
    - ACTIVE: zegar biegnie, advance(dt) odpala należne callbacki
    - COMPLETE: wszystko odpalone albo anulowane; brak powrotu

    cancel() w dowolnym stanie przechodzi do COMPLETE BEZ odpalania
    pozostałych callbacków. Idempotentne.

KOLEJNOŚĆ:
═══════════════════════════════════════════════════════════════════

    - Rosnący fire time
    - Remis: kolejność rejestracji
    - ON_COMPLETE ma fire time = D (duration)
    - ON_UPDATE_AT(offset) ma fire time = offset, 0 <= offset <= D

IZOLACJA BŁĘDÓW:
═══════════════════════════════════════════════════════════════════

    Wyjątek z handlera jest łapany na granicy schedulera,
    logowany (logging + HANDLER_FAULT) i NIE blokuje kolejnych
    callbacków tego samego efektu.

ŁAŃCUCHY:
═══════════════════════════════════════════════════════════════════

    Handler ON_COMPLETE może stworzyć nowy efekt (detonację)
    i zarejestrować na nim kolejne callbacki. Każdy etap to osobna
    oś czasu - offsety są zawsze względne do właściciela.

    EffectManager aktywuje nowe efekty od NASTĘPNEGO ticka.

Przykład użycia:
    >>> handle = manager.create("burst", 0.15, context, owner_id="player")
    >>> for ref in target_set:
    ...     handle.on_update_at(0.1, "attack_target", TargetSet(point, (ref,)))
    >>> handle.activate()
    >>> manager.tick(1 / 30)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum, auto
from itertools import count
from typing import Dict, List, Optional, Tuple, TYPE_CHECKING
import logging
import math

from ..core.point import Point
from ..errors import ConfigurationError, HandlerFault, SchedulerStateError
from ..events.event_logger import EventType

if TYPE_CHECKING:
    from ..core.targeting import TargetSet
    from .handlers import AbilityContext, Handler


logger = logging.getLogger(__name__)

# Tolerancja zegara - suma ticków 1/30 s nie trafia idealnie w 1.0
TIME_EPSILON = 1e-6

_effect_ids = count(1)


class TriggerKind(Enum):
    """Kiedy callback ma zostać odpalony."""
    ON_COMPLETE = auto()     # t = duration
    ON_UPDATE_AT = auto()    # t = offset


class EffectState(Enum):
    """Stan EffectHandle."""
    PENDING = auto()
    ACTIVE = auto()
    COMPLETE = auto()

    def __str__(self) -> str:
        return self.name


@dataclass
class ScheduledCallback:
    """
    Zaplanowane wywołanie handlera.

    Attributes:
        trigger: ON_COMPLETE / ON_UPDATE_AT
        targets: TargetSet przekazywany do handlera
        handler_id: Stabilne ID handlera
        handler: Handler rozwiązany przy rejestracji
        fire_time: Czas względny efektu (0 <= t <= duration)
        sequence: Kolejność rejestracji (tiebreaker)
        fired: Czy już odpalony
    """
    trigger: TriggerKind
    targets: "TargetSet"
    handler_id: str
    handler: "Handler"
    fire_time: float
    sequence: int
    fired: bool = False

    @property
    def sort_key(self) -> Tuple[float, int]:
        return (self.fire_time, self.sequence)

    def to_dict(self) -> dict:
        return {
            "trigger": self.trigger.name,
            "handler": self.handler_id,
            "fire_time": round(self.fire_time, 4),
            "targets": self.targets.actor_ids() if self.targets is not None else [],
            "fired": self.fired,
        }


@dataclass
class LinearParam:
    """
    Parametr animacji: value(t) = initial + speed * t.

    Odpowiednik gen:param(initial, speed).
    """
    initial: float
    speed: float = 0.0

    def at(self, t: float) -> float:
        return self.initial + self.speed * t


@dataclass
class EffectVisual:
    """
    Parametry wizualne efektu (tylko do replay - bez renderingu).

    Attributes:
        position_x, position_y: Pozycja efektu w funkcji czasu
        particle_size: (szerokość, wysokość) cząsteczki
        particle_drift: Prędkość cząsteczek w lokalnym układzie
        color: (r, g, b)
    """
    position_x: LinearParam = field(default_factory=lambda: LinearParam(0.0))
    position_y: LinearParam = field(default_factory=lambda: LinearParam(0.0))
    particle_size: Tuple[float, float] = (1.0, 1.0)
    particle_drift: Point = field(default_factory=lambda: Point(0.0, 0.0))
    color: Tuple[float, float, float] = (1.0, 1.0, 1.0)

    def position_at(self, t: float) -> Point:
        return Point(self.position_x.at(t), self.position_y.at(t))

    def to_dict(self) -> dict:
        return {
            "position": [self.position_x.initial, self.position_y.initial],
            "position_speed": [self.position_x.speed, self.position_y.speed],
            "particle_size": list(self.particle_size),
            "particle_drift": self.particle_drift.to_list(),
            "color": list(self.color),
        }


class EffectHandle:
    """
    Pojedynczy zaplanowany efekt z własną osią czasu.

    Attributes:
        id (str): Unikalny identyfikator efektu
        template (str): Nazwa szablonu ("particles/circle12", "burst")
        duration (float): Całkowity czas D w sekundach
        context (AbilityContext): Kontekst przekazywany do handlerów
        owner_id (Optional[str]): ID aktora-właściciela (anulowanie)
        visual (EffectVisual): Parametry animacji
        state (EffectState): Aktualny stan
        elapsed (float): Czas od aktywacji
    """

    def __init__(
        self,
        template: str,
        duration: float,
        context: "AbilityContext",
        owner_id: Optional[str] = None,
        visual: Optional[EffectVisual] = None,
        manager: Optional["EffectManager"] = None,
    ):
        if not isinstance(duration, (int, float)) or not math.isfinite(duration) or duration <= 0:
            raise ConfigurationError(f"Effect '{template}' duration must be positive and finite, got {duration!r}")

        self.id = f"{template}#{next(_effect_ids)}"
        self.template = template
        self.duration = float(duration)
        self.context = context
        self.owner_id = owner_id
        self.visual = visual or EffectVisual()
        self.state = EffectState.PENDING
        self.elapsed = 0.0
        self.cancel_reason: Optional[str] = None

        self._callbacks: List[ScheduledCallback] = []
        self._sequence = count()
        self._manager = manager

    # ─────────────────────────────────────────────────────────────────────────
    # REJESTRACJA
    # ─────────────────────────────────────────────────────────────────────────

    def _register(
        self,
        trigger: TriggerKind,
        fire_time: float,
        handler_id: str,
        targets: "TargetSet",
    ) -> ScheduledCallback:
        if self.state != EffectState.PENDING:
            raise SchedulerStateError(
                f"Cannot register '{handler_id}' on effect {self.id} in state {self.state}"
            )
        if not math.isfinite(fire_time) or fire_time < 0 or fire_time > self.duration:
            raise ConfigurationError(
                f"Callback '{handler_id}' fire time {fire_time} outside [0, {self.duration}] "
                f"for effect {self.id}"
            )

        handler = self.context.handlers.get(handler_id)
        callback = ScheduledCallback(
            trigger=trigger,
            targets=targets,
            handler_id=handler_id,
            handler=handler,
            fire_time=float(fire_time),
            sequence=next(self._sequence),
        )
        self._callbacks.append(callback)
        return callback

    def on_complete(self, handler_id: str, targets: "TargetSet") -> ScheduledCallback:
        """Callback odpalany raz, gdy zegar dojdzie do duration."""
        return self._register(TriggerKind.ON_COMPLETE, self.duration, handler_id, targets)

    def on_update_at(self, offset: float, handler_id: str, targets: "TargetSet") -> ScheduledCallback:
        """
        Callback odpalany raz w chwili offset.

        Można rejestrować wielokrotnie z niezależnymi listami celów.

        Raises:
            ConfigurationError: offset poza [0, duration]
        """
        return self._register(TriggerKind.ON_UPDATE_AT, offset, handler_id, targets)

    # ─────────────────────────────────────────────────────────────────────────
    # CYKL ŻYCIA
    # ─────────────────────────────────────────────────────────────────────────

    def activate(self) -> None:
        """
        Uruchamia zegar. Jeśli efekt ma managera, trafia do niego.

        Raises:
            SchedulerStateError: Efekt nie jest PENDING
        """
        if self.state != EffectState.PENDING:
            raise SchedulerStateError(f"Effect {self.id} cannot be activated in state {self.state}")

        self.state = EffectState.ACTIVE
        self._log(
            EventType.EFFECT_ACTIVATE,
            template=self.template,
            duration=round(self.duration, 4),
            callbacks=[cb.to_dict() for cb in self._callbacks],
            visual=self.visual.to_dict(),
        )
        if self._manager is not None:
            self._manager._on_activated(self)

    def advance(self, dt: float) -> List[ScheduledCallback]:
        """
        Przesuwa zegar o dt i odpala należne callbacki.

        Args:
            dt: Krok czasu w sekundach (>= 0)

        Returns:
            List[ScheduledCallback]: Callbacki odpalone w tym kroku
        """
        if dt < 0:
            raise ValueError(f"Time step must be non-negative, got {dt}")
        if self.state != EffectState.ACTIVE:
            return []

        self.elapsed = min(self.elapsed + dt, self.duration)

        due = sorted(
            (cb for cb in self._callbacks
             if not cb.fired and cb.fire_time <= self.elapsed + TIME_EPSILON),
            key=lambda cb: cb.sort_key,
        )

        fired = []
        for callback in due:
            # Handler mógł anulować efekt (np. usunąć castera)
            if self.state != EffectState.ACTIVE:
                break
            callback.fired = True
            fired.append(callback)
            self._fire(callback)

        if self.state == EffectState.ACTIVE and self.elapsed >= self.duration - TIME_EPSILON:
            self.elapsed = self.duration
            self.state = EffectState.COMPLETE
            self._log(EventType.EFFECT_COMPLETE, template=self.template)

        return fired

    def _fire(self, callback: ScheduledCallback) -> None:
        self._log(
            EventType.CALLBACK_FIRE,
            handler=callback.handler_id,
            trigger=callback.trigger.name,
            fire_time=round(callback.fire_time, 4),
            targets=callback.targets.actor_ids() if callback.targets is not None else [],
        )
        ctx = self.context.for_callback(callback.targets, self, callback.fire_time)
        try:
            callback.handler.invoke(ctx)
        except Exception as e:
            fault = HandlerFault(callback.handler_id, self.id, e)
            logger.exception("%s", fault)
            self._log(EventType.HANDLER_FAULT, handler=callback.handler_id, error=repr(e))

    def cancel(self, reason: str = "cancelled") -> bool:
        """
        Przerywa efekt bez odpalania pozostałych callbacków.

        Returns:
            bool: True jeśli efekt został właśnie anulowany,
                  False jeśli już był COMPLETE
        """
        if self.state == EffectState.COMPLETE:
            return False

        self.state = EffectState.COMPLETE
        self.cancel_reason = reason
        self._log(
            EventType.EFFECT_CANCEL,
            template=self.template,
            reason=reason,
            unfired=len(self.pending_callbacks()),
        )
        return True

    # ─────────────────────────────────────────────────────────────────────────
    # ODCZYT
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def is_complete(self) -> bool:
        return self.state == EffectState.COMPLETE

    @property
    def was_cancelled(self) -> bool:
        return self.cancel_reason is not None

    @property
    def callbacks(self) -> List[ScheduledCallback]:
        return list(self._callbacks)

    def pending_callbacks(self) -> List[ScheduledCallback]:
        return [cb for cb in self._callbacks if not cb.fired]

    def position(self) -> Point:
        return self.visual.position_at(self.elapsed)

    def _log(self, event_type: EventType, **data) -> None:
        host = self.context.host
        event_log = getattr(host, "logger", None)
        if event_log is None:
            return
        event_log.log_event(
            host.tick,
            event_type,
            unit_id=self.owner_id,
            effect_id=self.id,
            elapsed=round(self.elapsed, 4),
            **data,
        )

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "template": self.template,
            "duration": round(self.duration, 4),
            "elapsed": round(self.elapsed, 4),
            "state": self.state.name,
            "owner_id": self.owner_id,
            "position": self.position().to_list(),
            "callbacks": [cb.to_dict() for cb in self._callbacks],
        }

    def __repr__(self) -> str:
        return f"EffectHandle({self.id!r}, {self.state}, {self.elapsed:.3f}/{self.duration:.3f})"


class EffectManager:
    """
    Zarządza wszystkimi aktywnymi efektami (per host).

    Efekty aktywowane w trakcie ticka zaczynają biec od
    następnego ticka. Każdy efekt ma własny zegar.
    """

    def __init__(self):
        self.effects: List[EffectHandle] = []
        self._incoming: List[EffectHandle] = []

    def create(
        self,
        template: str,
        duration: float,
        context: "AbilityContext",
        owner_id: Optional[str] = None,
        visual: Optional[EffectVisual] = None,
    ) -> EffectHandle:
        """Tworzy efekt PENDING powiązany z tym managerem."""
        return EffectHandle(
            template=template,
            duration=duration,
            context=context,
            owner_id=owner_id,
            visual=visual,
            manager=self,
        )

    def _on_activated(self, handle: EffectHandle) -> None:
        self._incoming.append(handle)

    def tick(self, dt: float) -> List[ScheduledCallback]:
        """
        Przesuwa wszystkie aktywne efekty o dt.

        Returns:
            List[ScheduledCallback]: Wszystkie callbacki odpalone w ticku
        """
        # Efekty aktywowane przed tym tickiem dołączają teraz
        self.effects.extend(self._incoming)
        self._incoming = []

        fired = []
        for handle in list(self.effects):
            fired.extend(handle.advance(dt))

        self.effects = [h for h in self.effects if not h.is_complete]
        self._incoming = [h for h in self._incoming if not h.is_complete]
        return fired

    def cancel_owned_by(self, owner_id: str, reason: str = "owner_removed") -> int:
        """
        Anuluje efekty aktora (np. caster zginął / opuścił obszar).

        Returns:
            int: Liczba anulowanych efektów
        """
        cancelled = 0
        for handle in self.effects + self._incoming:
            if handle.owner_id == owner_id and handle.cancel(reason):
                cancelled += 1
        self.effects = [h for h in self.effects if not h.is_complete]
        self._incoming = [h for h in self._incoming if not h.is_complete]
        return cancelled

    def get_active_count(self) -> int:
        return len(self.effects) + len(self._incoming)

    def is_idle(self) -> bool:
        return self.get_active_count() == 0

    def clear(self, reason: str = "cleared") -> int:
        """
        Anuluje wszystkie efekty (aktywne i oczekujące) bez odpalania callbacków.

        Returns:
            int: Liczba anulowanych efektów
        """
        cancelled = sum(1 for handle in self.effects + self._incoming if handle.cancel(reason))
        self.effects = []
        self._incoming = []
        return cancelled
