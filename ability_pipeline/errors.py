"""
Wyjątki pipeline'u umiejętności.

TAKSONOMIA:
═══════════════════════════════════════════════════════════════════

    SelectionCancelled
    ─────────────────────────────────────────────────────────────
    Gracz/AI nie wybrał poprawnego punktu. Przerywa aktywację,
    nic nie jest tworzone, nic nie jest zużywane.

    ConfigurationError
    ─────────────────────────────────────────────────────────────
    Błąd autorski (speed <= 0, zły kształt, nieznany handler,
    fire time poza [0, D]). Fatalny - zgłaszany ZANIM cokolwiek
    zostanie zaplanowane.

    SchedulerStateError
    ─────────────────────────────────────────────────────────────
    Niepoprawne użycie maszyny stanów EffectHandle
    (np. rejestracja callbacku po activate()).

    HandlerFault
    ─────────────────────────────────────────────────────────────
    Opakowuje wyjątek rzucony przez handler callbacku.
    Tylko do logowania - nigdy nie wychodzi poza scheduler.

Nieważny cel w momencie rozstrzygania NIE jest wyjątkiem -
to zwykły wynik AttackOutcome ze skip_reason.
"""

from __future__ import annotations
from typing import Optional


class SelectionCancelled(Exception):
    """Wybór punktu anulowany lub niemożliwy."""

    def __init__(self, reason: str, point: Optional[object] = None):
        super().__init__(reason)
        self.reason = reason
        self.point = point


class ConfigurationError(ValueError):
    """Błąd konfiguracji umiejętności (fatalny)."""


class SchedulerStateError(RuntimeError):
    """Operacja niedozwolona w aktualnym stanie efektu."""


class HandlerFault(Exception):
    """
    Błąd wewnątrz handlera callbacku.

    Attributes:
        handler_id: ID handlera który rzucił
        effect_id: ID efektu który go wywołał
        original: Oryginalny wyjątek
    """

    def __init__(self, handler_id: str, effect_id: str, original: BaseException):
        super().__init__(f"Handler '{handler_id}' failed in effect '{effect_id}': {original!r}")
        self.handler_id = handler_id
        self.effect_id = effect_id
        self.original = original
