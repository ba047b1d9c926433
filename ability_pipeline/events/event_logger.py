"""
System logowania zdarzeń pipeline'u do formatu JSON dla replay.

Każdy etap umiejętności (targeting, efekt, callback, rzut ataku,
zmiana zasobu) jest zapisywany z pełnym kontekstem. Log może być
później użyty do odtworzenia rzutu granatu w wizualizacji.

TYPY ZDARZEŃ:
═══════════════════════════════════════════════════════════════════

    ABILITY_ACTIVATE
    ─────────────────────────────────────────────────────────────
    Caster aktywował umiejętność (on_activate).
    Data: ability_id

    TARGET_SELECT / SELECTION_CANCELLED
    ─────────────────────────────────────────────────────────────
    Punkt wybrany (point, targets) lub wybór anulowany (reason).

    DEGENERATE_KINEMATICS
    ─────────────────────────────────────────────────────────────
    Punkt == pozycja castera, czas lotu przycięty.

    EFFECT_ACTIVATE / EFFECT_COMPLETE / EFFECT_CANCEL
    ─────────────────────────────────────────────────────────────
    Cykl życia EffectHandle.
    Data: effect_id, template, duration, callbacks

    CALLBACK_FIRE
    ─────────────────────────────────────────────────────────────
    Wywołanie zaplanowanego callbacku.
    Data: effect_id, handler, trigger, fire_time, targets

    HANDLER_FAULT
    ─────────────────────────────────────────────────────────────
    Handler rzucił wyjątek - odizolowany, rodzeństwo działa dalej.
    Data: effect_id, handler, error

    ATTACK_ROLL / ATTACK_SKIPPED
    ─────────────────────────────────────────────────────────────
    Wynik CombatResolver (hit_kind, amount) lub pominięcie (reason).

    RESOURCE_CHANGE
    ─────────────────────────────────────────────────────────────
    Addytywna zmiana puli zasobu (resource, amount, value_after).

FORMAT LOGU:
═══════════════════════════════════════════════════════════════════

{
    "metadata": {
        "version": "1.0",
        "seed": 12345,
        "ticks_per_second": 30,
        "area": {"width": 40, "height": 40},
        "timestamp": "2026-01-01T12:00:00"
    },
    "initial_state": {"actors": [...]},
    "events": [
        {"tick": 0, "type": "ABILITY_ACTIVATE", "unit_id": "player", "data": {...}},
        ...
    ],
    "final_state": {"actors": [...], "total_ticks": 40}
}
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, List, Optional
from datetime import datetime
import json
from pathlib import Path


class EventType(Enum):
    """Typ zdarzenia w symulacji."""

    # Symulacja
    SIMULATION_START = auto()
    SIMULATION_END = auto()

    # Aktorzy
    ACTOR_REMOVED = auto()
    RESOURCE_CHANGE = auto()

    # Umiejętności
    ABILITY_ACTIVATE = auto()
    TARGET_SELECT = auto()
    SELECTION_CANCELLED = auto()
    DEGENERATE_KINEMATICS = auto()

    # Efekty
    EFFECT_ACTIVATE = auto()
    EFFECT_COMPLETE = auto()
    EFFECT_CANCEL = auto()
    CALLBACK_FIRE = auto()
    HANDLER_FAULT = auto()

    # Walka
    ATTACK_ROLL = auto()
    ATTACK_SKIPPED = auto()


@dataclass
class GameEvent:
    """
    Pojedyncze zdarzenie w symulacji.

    Attributes:
        tick (int): Numer ticka kiedy zdarzenie nastąpiło
        event_type (EventType): Typ zdarzenia
        unit_id (Optional[str]): ID aktora (jeśli dotyczy)
        target_id (Optional[str]): ID celu (jeśli dotyczy)
        data (Dict): Dodatkowe dane specyficzne dla typu zdarzenia
    """
    tick: int
    event_type: EventType
    unit_id: Optional[str] = None
    target_id: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Serializuje zdarzenie do słownika."""
        result = {
            "tick": self.tick,
            "type": self.event_type.name,
        }

        if self.unit_id:
            result["unit_id"] = self.unit_id
        if self.target_id:
            result["target_id"] = self.target_id
        if self.data:
            result["data"] = self.data

        return result


class EventLogger:
    """
    Logger zdarzeń symulacji.

    Zbiera wszystkie zdarzenia i może je zapisać do pliku JSON.

    Example:
        >>> logger = EventLogger(seed=12345)
        >>> logger.log_event(0, EventType.ABILITY_ACTIVATE, unit_id="player", ability_id="frag_grenade")
        >>> logger.save("output/cast_12345.json")
    """

    def __init__(
        self,
        seed: int,
        area_width: int = 40,
        area_height: int = 40,
        ticks_per_second: int = 30,
    ):
        self.events: List[GameEvent] = []
        self.metadata: Dict[str, Any] = {
            "version": "1.0",
            "seed": seed,
            "ticks_per_second": ticks_per_second,
            "area": {"width": area_width, "height": area_height},
            "timestamp": datetime.now().isoformat(),
        }
        self.initial_state: Dict[str, Any] = {}
        self.final_state: Dict[str, Any] = {}

    # ─────────────────────────────────────────────────────────────────────────
    # LOGOWANIE OGÓLNE
    # ─────────────────────────────────────────────────────────────────────────

    def log_event(
        self,
        tick: int,
        event_type: EventType,
        unit_id: Optional[str] = None,
        target_id: Optional[str] = None,
        **data: Any,
    ) -> GameEvent:
        """
        Tworzy i loguje zdarzenie.

        Args:
            tick: Numer ticka
            event_type: Typ zdarzenia
            unit_id: ID aktora
            target_id: ID celu
            **data: Dodatkowe dane

        Returns:
            GameEvent: Utworzone zdarzenie
        """
        event = GameEvent(
            tick=tick,
            event_type=event_type,
            unit_id=unit_id,
            target_id=target_id,
            data=dict(data),
        )
        self.events.append(event)
        return event

    # ─────────────────────────────────────────────────────────────────────────
    # ETAPY PIPELINE'U
    # ─────────────────────────────────────────────────────────────────────────

    def log_simulation_start(self, tick: int, actors: List[Dict]) -> None:
        self.initial_state = {"actors": actors}
        self.log_event(tick, EventType.SIMULATION_START, actors=[a["id"] for a in actors])

    def log_simulation_end(self, tick: int, actors: List[Dict]) -> None:
        self.final_state = {"actors": actors, "total_ticks": tick}
        self.log_event(tick, EventType.SIMULATION_END, total_ticks=tick)

    def log_ability_activate(self, tick: int, caster_id: str, ability_id: str) -> None:
        self.log_event(tick, EventType.ABILITY_ACTIVATE, caster_id, ability_id=ability_id)

    def log_target_select(
        self, tick: int, caster_id: str, ability_id: str,
        point: List[float], targets: List[str],
    ) -> None:
        """Punkt wybrany przez gracza/AI i cele zebrane przez kształt."""
        self.log_event(
            tick, EventType.TARGET_SELECT, caster_id,
            ability_id=ability_id, point=point, targets=targets,
        )

    def log_selection_cancelled(self, tick: int, caster_id: str, ability_id: str, reason: str) -> None:
        self.log_event(tick, EventType.SELECTION_CANCELLED, caster_id, ability_id=ability_id, reason=reason)

    # ─────────────────────────────────────────────────────────────────────────
    # WALKA
    # ─────────────────────────────────────────────────────────────────────────

    def log_attack(self, tick: int, attacker_id: str, defender_id: str, hit_kind: str, amount: float) -> None:
        self.log_event(
            tick, EventType.ATTACK_ROLL, attacker_id, defender_id,
            hit_kind=hit_kind, amount=round(amount, 1),
        )

    def log_attack_skipped(self, tick: int, attacker_id: str, defender_id: str, reason: str) -> None:
        self.log_event(tick, EventType.ATTACK_SKIPPED, attacker_id, defender_id, reason=reason)

    def log_resource_change(
        self, tick: int, actor_id: str, resource: str,
        amount: float, value_after: float, source_id: Optional[str] = None,
    ) -> None:
        """Addytywna zmiana puli; wartości zaokrąglone do 0.1 jak w replay."""
        self.log_event(
            tick, EventType.RESOURCE_CHANGE, actor_id,
            source_id=source_id, resource=resource,
            amount=round(amount, 1), value_after=round(value_after, 1),
        )

    def log_actor_removed(self, tick: int, actor_id: str) -> None:
        self.log_event(tick, EventType.ACTOR_REMOVED, actor_id)

    # ─────────────────────────────────────────────────────────────────────────
    # SERIALIZACJA
    # ─────────────────────────────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        """
        Serializuje cały log do słownika.

        Returns:
            Dict: Pełny log w formacie dla JSON
        """
        return {
            "metadata": self.metadata,
            "initial_state": self.initial_state,
            "events": [e.to_dict() for e in self.events],
            "final_state": self.final_state,
        }

    def save(self, filepath: str) -> None:
        """
        Zapisuje log do pliku JSON.

        Args:
            filepath: Ścieżka do pliku
        """
        path = Path(filepath)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, 'w', encoding='utf-8') as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)

    # ─────────────────────────────────────────────────────────────────────────
    # ZAPYTANIA
    # ─────────────────────────────────────────────────────────────────────────

    def get_events_by_type(self, event_type: EventType) -> List[GameEvent]:
        """Filtruje zdarzenia po typie."""
        return [e for e in self.events if e.event_type == event_type]
