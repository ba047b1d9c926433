"""
Host runtime - świat + pętla ticków dla pipeline'u umiejętności.

Symulacja odbywa się w 30 tickach na sekundę (konfigurowalnie).
Każdy tick przesuwa zegary wszystkich aktywnych efektów o 1/tps.

CYKL UMIEJĘTNOŚCI:
═══════════════════════════════════════════════════════════════════

    1. activate_ability(caster_id, ability_id)
       ─────────────────────────────────────────────────────────
       • Buduje AbilityContext (host, caster, definicja, skrypt)
       • Wywołuje entry point on_activate -> Targeter
       • Loguj ABILITY_ACTIVATE

    2. select_target(caster_id, point) / auto_select(caster_id)
       ─────────────────────────────────────────────────────────
       • Targeter zamienia punkt w TargetSet
       • SelectionCancelled -> log SELECTION_CANCELLED, brak efektu
       • Loguj TARGET_SELECT
       • Wywołuje entry point on_target_select -> efekt pocisku

    3. step()
       ─────────────────────────────────────────────────────────
       • EffectManager.tick(1 / tps)
       • Callbacki tworzą kolejne etapy (wybuch, ataki)

    4. remove_actor(actor_id)
       ─────────────────────────────────────────────────────────
       • Aktor znika ze świata (referencje stają się nieważne)
       • Efekty należące do aktora są anulowane

DETERMINIZM:
═══════════════════════════════════════════════════════════════════

    • Ten sam seed = te same rzuty ataku
    • Cele przetwarzane w kolejności puli kandydatów
    • Wszystkie "losowe" decyzje przez GameRNG

Przykład użycia:
    >>> sim = Simulation(seed=12345)
    >>> sim.add_actor_from_config({"id": "player", "position": [5, 5]})
    >>> sim.add_actor_from_config({"id": "goblin", "position": [5, 12]})
    >>> sim.cast("player", "frag_grenade", Point(5, 12))
    >>> result = sim.run()
    >>> sim.save_log("output/cast.json")
"""

from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
import logging

from ..core.config_loader import ConfigLoader
from ..core.point import Point
from ..core.rng import GameRNG
from ..core.targeting import Targeter, TargetSet
from ..core.world import World
from ..units.actor import Actor, ActorRef
from ..abilities.ability import AbilityDefinition, AttackConfig
from ..abilities.handlers import AbilityContext, get_script
from ..abilities.scheduler import EffectHandle, EffectManager, ScheduledCallback
from ..combat.attack import (
    AttackOutcome, CombatCheck, CombatResolver, CombatRules, RollTableCheck,
)
from ..errors import SchedulerStateError, SelectionCancelled
from ..events.event_logger import EventLogger
from .. import scripts  # noqa: F401  rejestracja skryptów


logger = logging.getLogger(__name__)

DEFAULT_DATA_PATH = Path(__file__).resolve().parent.parent.parent / "data"


@dataclass
class SimulationConfig:
    """
    Konfiguracja symulacji.

    Attributes:
        ticks_per_second (int): Ticki na sekundę
        max_ticks (int): Maksymalna liczba ticków (timeout)
        area_width (int): Szerokość obszaru
        area_height (int): Wysokość obszaru
    """
    ticks_per_second: int = 30
    max_ticks: int = 900
    area_width: int = 40
    area_height: int = 40

    @property
    def dt(self) -> float:
        return 1.0 / self.ticks_per_second

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SimulationConfig":
        return cls(
            ticks_per_second=data.get("ticks_per_second", 30),
            max_ticks=data.get("max_ticks", 900),
            area_width=data.get("area_width", 40),
            area_height=data.get("area_height", 40),
        )


@dataclass
class PendingCast:
    """Umiejętność czekająca na wybór punktu."""
    context: AbilityContext
    targeter: Targeter


class Simulation:
    """
    Host pipeline'u umiejętności.

    Attributes:
        seed (int): Ziarno losowości
        tick (int): Aktualny tick
        config (SimulationConfig): Konfiguracja
        world (World): Obszar z aktorami
        rng (GameRNG): Generator losowości
        logger (EventLogger): Logger zdarzeń
        effects (EffectManager): Aktywne efekty
        combat (CombatResolver): Rozstrzyganie ataków
        attack_outcomes (List): (target_id, AttackOutcome) w kolejności rozstrzygania

    Example:
        >>> sim = Simulation(seed=12345)
        >>> sim.add_actor_from_config({"id": "player", "position": [5, 5]})
        >>> targeter = sim.activate_ability("player", "frag_grenade")
        >>> sim.select_target("player", Point(5, 12))
        >>> sim.run_until_idle()
    """

    def __init__(
        self,
        seed: int = 0,
        config: Optional[SimulationConfig] = None,
        loader: Optional[ConfigLoader] = None,
        check: Optional[CombatCheck] = None,
    ):
        """
        Inicjalizuje symulację.

        Args:
            seed: Ziarno losowości (determinizm)
            config: Konfiguracja (z defaults.yaml jeśli None)
            loader: ConfigLoader (domyślnie katalog data/ repozytorium)
            check: Rzut ataku (domyślnie RollTableCheck)
        """
        self.seed = seed
        self.loader = loader or ConfigLoader(str(DEFAULT_DATA_PATH))
        self.config = config or SimulationConfig.from_dict(self.loader.get_simulation_config())
        self.tick = 0

        # Komponenty
        self.world = World(width=self.config.area_width, height=self.config.area_height)
        self.rng = GameRNG(seed)
        self.logger = EventLogger(
            seed=seed,
            area_width=self.config.area_width,
            area_height=self.config.area_height,
            ticks_per_second=self.config.ticks_per_second,
        )
        self.effects = EffectManager()

        rules = CombatRules.from_dict(self.loader.get_combat_rules())
        self.combat = CombatResolver(
            self.world,
            check or RollTableCheck(rules, self.rng),
            rules=rules,
            event_log=self.logger,
        )

        # Stan
        self.attack_outcomes: List[Tuple[str, AttackOutcome]] = []
        self._pending: Dict[str, PendingCast] = {}
        self._ability_cache: Dict[str, AbilityDefinition] = {}
        self._started = False
        self._finished = False

    @property
    def object_sizes(self) -> Dict[str, Dict]:
        return self.loader.get_object_sizes()

    # ─────────────────────────────────────────────────────────────────────────
    # AKTORZY
    # ─────────────────────────────────────────────────────────────────────────

    def add_actor(self, actor: Actor) -> bool:
        """
        Dodaje aktora do świata.

        Returns:
            bool: False jeśli ID jest zajęte
        """
        return self.world.add_actor(actor)

    def add_actor_from_config(self, data: Dict[str, Any]) -> Optional[Actor]:
        """
        Tworzy i dodaje aktora z definicji (uzupełnionej defaults).

        Args:
            data: Słownik z co najmniej "id" i "position" [x, y]

        Returns:
            Optional[Actor]: Stworzony aktor lub None
        """
        actor = Actor.from_config(self.loader.build_actor_config(data))
        if self.add_actor(actor):
            return actor
        return None

    def remove_actor(self, actor_id: str) -> bool:
        """
        Usuwa aktora ze świata i anuluje jego efekty.

        Referencje do aktora w zaplanowanych callbackach stają się
        nieważne - kolejne ataki na niego są pomijane.

        Returns:
            bool: True jeśli aktor istniał
        """
        actor = self.world.remove_actor(actor_id)
        if actor is None:
            return False

        pending = self._pending.pop(actor_id, None)
        if pending is not None:
            pending.targeter.cancel()

        cancelled = self.effects.cancel_owned_by(actor_id)
        self.logger.log_actor_removed(self.tick, actor_id)
        logger.debug("Removed %s, cancelled %d effect(s)", actor_id, cancelled)
        return True

    # ─────────────────────────────────────────────────────────────────────────
    # UMIEJĘTNOŚCI
    # ─────────────────────────────────────────────────────────────────────────

    def get_ability(self, ability_id: str) -> AbilityDefinition:
        """
        Zwraca definicję umiejętności (cache).

        Raises:
            KeyError: Brak ability w abilities.yaml
            ConfigurationError: Błędne wartości w definicji
        """
        if ability_id not in self._ability_cache:
            data = self.loader.load_ability(ability_id)
            self._ability_cache[ability_id] = AbilityDefinition.from_dict(
                ability_id, data, self.object_sizes,
            )
        return self._ability_cache[ability_id]

    def register_ability(self, definition: AbilityDefinition) -> None:
        """Nadpisuje definicję w cache (np. zmodyfikowany zasięg)."""
        self._ability_cache[definition.id] = definition

    def activate_ability(self, caster_id: str, ability_id: str) -> Optional[Targeter]:
        """
        Aktywuje umiejętność - tworzy targeter czekający na punkt.

        Returns:
            Optional[Targeter]: Aktywny targeter lub None gdy caster nieważny
        """
        self.start()
        definition = self.get_ability(ability_id)

        caster = self.world.get_actor(caster_id)
        if caster is None or not caster.is_valid():
            self.logger.log_selection_cancelled(self.tick, caster_id, ability_id, "caster_invalid")
            return None

        context = AbilityContext(
            host=self,
            caster=ActorRef.of(caster),
            ability=definition,
            handlers=get_script(definition.script),
        )
        self.logger.log_ability_activate(self.tick, caster_id, ability_id)

        targeter = context.invoke("on_activate")
        self._pending[caster_id] = PendingCast(context, targeter)
        return targeter

    def select_target(self, caster_id: str, point: Point) -> Optional[EffectHandle]:
        """
        Wybór punktu przez gracza.

        Returns:
            Optional[EffectHandle]: Efekt pocisku lub None (anulowane)

        Raises:
            SchedulerStateError: Brak aktywnego targetera
        """
        pending = self._take_pending(caster_id)
        try:
            targets = pending.targeter.select(point)
        except SelectionCancelled as e:
            self._log_cancelled(pending, e)
            return None
        return self._launch(pending, targets)

    def auto_select(self, caster_id: str) -> Optional[EffectHandle]:
        """Wybór punktu przez AI (najwięcej celów w kształcie)."""
        pending = self._take_pending(caster_id)
        try:
            targets = pending.targeter.auto_select()
        except SelectionCancelled as e:
            self._log_cancelled(pending, e)
            return None
        return self._launch(pending, targets)

    def cancel_cast(self, caster_id: str) -> bool:
        """Anulowanie targetera przez gracza."""
        pending = self._pending.pop(caster_id, None)
        if pending is None:
            return False
        pending.targeter.cancel()
        self.logger.log_selection_cancelled(
            self.tick, caster_id, pending.context.ability.id, pending.targeter.cancel_reason,
        )
        return True

    def cast(
        self,
        caster_id: str,
        ability_id: str,
        point: Optional[Point] = None,
    ) -> Optional[EffectHandle]:
        """
        Aktywacja + wybór punktu w jednym kroku.

        Args:
            point: Wybrany punkt (None = wybór AI)
        """
        if self.activate_ability(caster_id, ability_id) is None:
            return None
        if point is None:
            return self.auto_select(caster_id)
        return self.select_target(caster_id, point)

    def resolve_attack(
        self,
        attacker: ActorRef,
        target: ActorRef,
        attack: AttackConfig,
    ) -> AttackOutcome:
        """Rozstrzyga atak umiejętności na jeden cel i zapamiętuje wynik."""
        outcome = self.combat.resolve(
            attacker, target,
            attack.defense, attack.attack_kind, attack.base_amount,
            resource=attack.resource, tick=self.tick,
        )
        self.attack_outcomes.append((target.actor_id, outcome))
        return outcome

    def _take_pending(self, caster_id: str) -> PendingCast:
        pending = self._pending.pop(caster_id, None)
        if pending is None:
            raise SchedulerStateError(f"No active targeter for '{caster_id}'")
        return pending

    def _log_cancelled(self, pending: PendingCast, error: SelectionCancelled) -> None:
        logger.debug("%s", error)
        self.logger.log_selection_cancelled(
            self.tick, pending.context.caster.actor_id, pending.context.ability.id, error.reason,
        )

    def _launch(self, pending: PendingCast, targets: TargetSet) -> Optional[EffectHandle]:
        context = pending.context.with_targets(targets)
        self.logger.log_target_select(
            self.tick,
            context.caster.actor_id,
            context.ability.id,
            targets.point.to_list(),
            targets.actor_ids(),
        )
        return context.invoke("on_target_select")

    # ─────────────────────────────────────────────────────────────────────────
    # GŁÓWNA PĘTLA
    # ─────────────────────────────────────────────────────────────────────────

    def step(self) -> List[ScheduledCallback]:
        """
        Wykonuje jeden tick.

        Returns:
            List[ScheduledCallback]: Callbacki odpalone w tym ticku
        """
        fired = self.effects.tick(self.config.dt)
        self.tick += 1
        return fired

    def run_until_idle(self, max_ticks: Optional[int] = None) -> int:
        """
        Wykonuje ticki aż nie zostanie żaden efekt.

        Returns:
            int: Liczba wykonanych ticków
        """
        limit = self.config.max_ticks if max_ticks is None else max_ticks
        steps = 0
        while not self.effects.is_idle() and steps < limit:
            self.step()
            steps += 1

        if not self.effects.is_idle():
            logger.warning("Effects still active after %d ticks", steps)
        return steps

    def run(self) -> Dict[str, Any]:
        """
        Uruchamia symulację do wygaśnięcia wszystkich efektów.

        Returns:
            Dict: Wynik symulacji (patrz get_result)
        """
        self.start()
        self.run_until_idle()
        self.finish()
        return self.get_result()

    def start(self) -> None:
        """Loguje stan początkowy (raz)."""
        if self._started:
            return
        self._started = True
        self.logger.log_simulation_start(self.tick, [a.to_dict() for a in self.world.actors()])

    def finish(self) -> None:
        """Loguje stan końcowy (raz)."""
        if self._finished:
            return
        self._finished = True
        # Efekty ponad limit ticków nie odpalają już callbacków
        leftover = self.effects.clear("simulation_end")
        if leftover:
            logger.warning("Cancelled %d effects still active at simulation end", leftover)
        self.logger.log_simulation_end(self.tick, [a.to_dict() for a in self.world.actors()])

    # ─────────────────────────────────────────────────────────────────────────
    # WYNIKI
    # ─────────────────────────────────────────────────────────────────────────

    def get_result(self) -> Dict[str, Any]:
        """
        Zwraca wynik symulacji.

        Returns:
            Dict z:
                - total_ticks: int
                - duration_seconds: float
                - attacks: List[Dict] (target_id + outcome)
                - actors: List[Dict]
        """
        return {
            "total_ticks": self.tick,
            "duration_seconds": self.tick / self.config.ticks_per_second,
            "attacks": [
                {"target_id": target_id, **outcome.to_dict()}
                for target_id, outcome in self.attack_outcomes
            ],
            "actors": [a.to_dict() for a in self.world.actors()],
        }

    def save_log(self, filepath: str) -> None:
        """Zapisuje log do pliku JSON."""
        self.logger.save(filepath)

    def get_log(self) -> Dict[str, Any]:
        """Zwraca log jako słownik."""
        return self.logger.to_dict()
