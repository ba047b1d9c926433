"""
Rozstrzyganie ataku umiejętności - poziomy trafienia i wielkość efektu.

CombatResolver NIE zna wzoru rzutu. Rzut to czarna skrzynka
(CombatCheck), która zwraca dokładnie jeden z poziomów:

    MISS  -> 0, brak efektu (early return)
    GRAZE -> base_amount * 0.5
    HIT   -> base_amount * 1.0
    CRIT  -> base_amount * 2.0

Mnożniki pochodzą z combat_rules w defaults.yaml.

KOLEJNOŚĆ:
═══════════════════════════════════════════════════════════════════

    1. Walidacja celu (ActorRef -> Actor). Nieważny cel:
       wynik "skipped" z reason="invalid_target", brak rzutu,
       brak mutacji. Idempotentne - kolejne wywołania też nic nie robią.
    2. Walidacja atakującego (bez niego nie ma rzutu).
    3. Rzut: CombatCheck.roll(attacker, target, defense, attack_kind)
    4. Miss -> koniec
    5. Graze/Hit/Crit -> JEDNA addytywna zmiana puli zasobu celu

Przykład (base_amount = -2000):
    MISS  ->     0
    GRAZE -> -1000
    HIT   -> -2000
    CRIT  -> -4000

REFERENCYJNY RZUT (RollTableCheck):
═══════════════════════════════════════════════════════════════════

    roll = d100
    wynik = roll + accuracy[attack_kind] - defense[defense_kind]
    wynik >= crit_percentile  -> CRIT
    wynik >= hit_percentile   -> HIT
    wynik >= graze_percentile -> GRAZE
    inaczej                   -> MISS
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Dict, Optional, TYPE_CHECKING
import logging

from ..errors import ConfigurationError

if TYPE_CHECKING:
    from ..core.rng import GameRNG
    from ..core.world import World
    from ..events.event_logger import EventLogger
    from ..units.actor import Actor, ActorRef


logger = logging.getLogger(__name__)


class HitKind(Enum):
    """Poziom wyniku rzutu ataku."""
    MISS = auto()
    GRAZE = auto()
    HIT = auto()
    CRIT = auto()

    def is_miss(self) -> bool:
        return self == HitKind.MISS

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class AttackOutcome:
    """
    Wynik CombatResolver.resolve().

    Attributes:
        hit_kind: Poziom trafienia (None gdy pominięty)
        amount: Zastosowana zmiana (ze znakiem, 0 dla miss/skip)
        applied: Czy pula zasobu została zmieniona
        skip_reason: "invalid_target" / "invalid_attacker" / None
    """
    hit_kind: Optional[HitKind]
    amount: float = 0.0
    applied: bool = False
    skip_reason: Optional[str] = None

    @classmethod
    def skipped(cls, reason: str) -> "AttackOutcome":
        return cls(hit_kind=None, amount=0.0, applied=False, skip_reason=reason)

    @property
    def was_skipped(self) -> bool:
        return self.skip_reason is not None

    def to_dict(self) -> dict:
        return {
            "hit_kind": self.hit_kind.name if self.hit_kind else None,
            "amount": round(self.amount, 1),
            "applied": self.applied,
            "skip_reason": self.skip_reason,
        }


@dataclass(frozen=True)
class CombatRules:
    """
    Progi rzutu i mnożniki obrażeń.

    Attributes:
        graze_percentile, hit_percentile, crit_percentile: Progi wyniku
        graze_multiplier, hit_multiplier, crit_multiplier: Mnożniki base_amount
    """
    graze_percentile: int = 15
    hit_percentile: int = 50
    crit_percentile: int = 95
    graze_multiplier: float = 0.5
    hit_multiplier: float = 1.0
    crit_multiplier: float = 2.0

    def __post_init__(self):
        if not self.graze_percentile <= self.hit_percentile <= self.crit_percentile:
            raise ConfigurationError(
                "combat_rules percentiles must satisfy graze <= hit <= crit"
            )

    def multiplier(self, hit_kind: HitKind) -> float:
        if hit_kind == HitKind.GRAZE:
            return self.graze_multiplier
        if hit_kind == HitKind.HIT:
            return self.hit_multiplier
        if hit_kind == HitKind.CRIT:
            return self.crit_multiplier
        return 0.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CombatRules":
        return cls(
            graze_percentile=data.get("graze_percentile", 15),
            hit_percentile=data.get("hit_percentile", 50),
            crit_percentile=data.get("crit_percentile", 95),
            graze_multiplier=data.get("graze_damage_multiplier", 0.5),
            hit_multiplier=data.get("hit_damage_multiplier", 1.0),
            crit_multiplier=data.get("crit_damage_multiplier", 2.0),
        )


# ═══════════════════════════════════════════════════════════════════════════
# COMBAT CHECK (czarna skrzynka)
# ═══════════════════════════════════════════════════════════════════════════

class CombatCheck(ABC):
    """
    Rzut ataku dostarczany przez hosta.
    """

    @abstractmethod
    def roll(
        self,
        attacker: "Actor",
        target: "Actor",
        defense_kind: str,
        attack_kind: str,
    ) -> HitKind:
        """
        Zwraca dokładnie jeden poziom trafienia.

        Args:
            attacker: Atakujący (ważny)
            target: Cel (ważny)
            defense_kind: Rodzaj obrony (np. "Reflex")
            attack_kind: Rodzaj ataku (np. "Ranged")
        """
        pass


class RollTableCheck(CombatCheck):
    """
    Referencyjny rzut hosta: d100 + accuracy - defense vs progi.
    """

    def __init__(self, rules: CombatRules, rng: "GameRNG"):
        self.rules = rules
        self.rng = rng

    def roll(self, attacker, target, defense_kind, attack_kind):
        roll = self.rng.roll_d100()
        accuracy = attacker.get_accuracy(attack_kind)
        defense = target.get_defense(defense_kind)
        result = roll + accuracy - defense

        logger.debug(
            "Attack roll: %d with accuracy %d against %s %d",
            roll, accuracy, defense_kind, defense,
        )

        if result >= self.rules.crit_percentile:
            return HitKind.CRIT
        elif result >= self.rules.hit_percentile:
            return HitKind.HIT
        elif result >= self.rules.graze_percentile:
            return HitKind.GRAZE
        return HitKind.MISS


# ═══════════════════════════════════════════════════════════════════════════
# RESOLVER
# ═══════════════════════════════════════════════════════════════════════════

class CombatResolver:
    """
    Zamienia rzut ataku w zmianę zasobu celu.

    Attributes:
        world: Świat (walidacja referencji)
        check: CombatCheck hosta
        rules: Mnożniki poziomów
        event_log: Opcjonalny EventLogger
    """

    def __init__(
        self,
        world: "World",
        check: CombatCheck,
        rules: Optional[CombatRules] = None,
        event_log: Optional["EventLogger"] = None,
    ):
        self.world = world
        self.check = check
        self.rules = rules or CombatRules()
        self.event_log = event_log

    def magnitude(self, hit_kind: HitKind, base_amount: float) -> float:
        """
        Wielkość efektu dla poziomu trafienia.

        Example:
            >>> resolver.magnitude(HitKind.GRAZE, -2000)
            -1000.0
        """
        return base_amount * self.rules.multiplier(hit_kind)

    def resolve(
        self,
        attacker: "ActorRef",
        target: "ActorRef",
        check_kind: str,
        range_kind: str,
        base_amount: float,
        resource: str = "overflow_ap",
        tick: int = 0,
    ) -> AttackOutcome:
        """
        Rozstrzyga atak na jeden cel.

        Args:
            attacker: Referencja do atakującego
            target: Referencja do celu
            check_kind: Rodzaj obrony celu (np. "Reflex")
            range_kind: Rodzaj ataku (np. "Ranged")
            base_amount: Bazowa zmiana zasobu (np. -2000)
            resource: Nazwa puli zasobu celu
            tick: Tick hosta (do logu)

        Returns:
            AttackOutcome
        """
        target_actor = target.resolve(self.world)
        if target_actor is None:
            return self._skip(attacker, target, "invalid_target", tick)

        attacker_actor = attacker.resolve(self.world)
        if attacker_actor is None:
            return self._skip(attacker, target, "invalid_attacker", tick)

        hit_kind = self.check.roll(attacker_actor, target_actor, check_kind, range_kind)

        if hit_kind.is_miss():
            self._log_attack(attacker, target, hit_kind, 0.0, tick)
            return AttackOutcome(hit_kind=hit_kind)

        amount = self.magnitude(hit_kind, base_amount)
        value_after = target_actor.change_resource(resource, amount)

        self._log_attack(attacker, target, hit_kind, amount, tick)
        if self.event_log is not None:
            self.event_log.log_resource_change(
                tick, target.actor_id, resource, amount, value_after,
                source_id=attacker.actor_id,
            )

        return AttackOutcome(hit_kind=hit_kind, amount=amount, applied=True)

    def _skip(self, attacker: "ActorRef", target: "ActorRef", reason: str, tick: int) -> AttackOutcome:
        if self.event_log is not None:
            self.event_log.log_attack_skipped(tick, attacker.actor_id, target.actor_id, reason)
        return AttackOutcome.skipped(reason)

    def _log_attack(self, attacker, target, hit_kind: HitKind, amount: float, tick: int) -> None:
        if self.event_log is not None:
            self.event_log.log_attack(tick, attacker.actor_id, target.actor_id, hit_kind.name, amount)
