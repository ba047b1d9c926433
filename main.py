#!/usr/bin/env python3
"""
Ability Pipeline - Entry Point
═══════════════════════════════════════════════════════════════════════════

Uruchamia przykładowy rzut granatem (frag_grenade) w grupę aktorów.

Użycie:
    python main.py                    # Domyślny seed i punkt
    python main.py --seed 12345       # Konkretny seed
    python main.py --point 5 12       # Konkretny punkt
    python main.py --auto             # Punkt wybrany przez AI
    python main.py --verbose          # Szczegółowy output

Wynik:
    - Wypisuje przebieg umiejętności na konsolę
    - Zapisuje pełny log do output/cast_{seed}.json
"""

import argparse
import logging
import sys
from pathlib import Path

# Dodaj katalog repozytorium do path
sys.path.insert(0, str(Path(__file__).parent))

from ability_pipeline.core.config_loader import ConfigLoader
from ability_pipeline.core.point import Point
from ability_pipeline.events.event_logger import EventType
from ability_pipeline.simulation.simulation import Simulation, SimulationConfig


# Przykładowa scena: gracz + grupa goblinów wokół (5, 12)
SCENE = [
    {"id": "player", "name": "Player", "position": [5, 5], "accuracy": {"Ranged": 20}},
    {"id": "goblin_1", "name": "Goblin", "position": [5, 12], "defense": {"Reflex": 10}},
    {"id": "goblin_2", "name": "Goblin", "position": [7, 13], "defense": {"Reflex": 10}},
    {"id": "goblin_3", "name": "Goblin", "position": [4, 10], "defense": {"Reflex": 10}},
    {"id": "goblin_chief", "name": "Goblin Chief", "position": [12, 12], "defense": {"Reflex": 25}},
]


def main():
    """Główna funkcja."""
    parser = argparse.ArgumentParser(
        description="Ability Pipeline - frag grenade",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=12345,
        help="Ziarno losowości (domyślnie: 12345)"
    )
    parser.add_argument(
        "--point",
        type=float,
        nargs=2,
        metavar=("X", "Y"),
        default=[5.0, 12.0],
        help="Wybrany punkt (domyślnie: 5 12)"
    )
    parser.add_argument(
        "--auto",
        action="store_true",
        help="Punkt wybrany przez AI"
    )
    parser.add_argument(
        "--data",
        default="data/",
        help="Katalog z plikami YAML"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Szczegółowy output"
    )
    parser.add_argument(
        "--no-save",
        action="store_true",
        help="Nie zapisuj logu do pliku"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    print("=" * 60)
    print("ABILITY PIPELINE - FRAG GRENADE")
    print("=" * 60)
    print(f"Seed: {args.seed}")
    print()

    # Załaduj konfigurację
    loader = ConfigLoader(args.data)
    sim_config = SimulationConfig.from_dict(loader.get_simulation_config())

    # Stwórz symulację
    sim = Simulation(seed=args.seed, config=sim_config, loader=loader)

    print("Aktorzy:")
    for data in SCENE:
        actor = sim.add_actor_from_config(data)
        print(f"  - {actor.name} [{actor.id}] @ ({actor.position.x:.1f}, {actor.position.y:.1f})")

    print()
    print("-" * 60)
    if args.auto:
        print("RZUT GRANATEM (AI)...")
        point = None
    else:
        point = Point(*args.point)
        print(f"RZUT GRANATEM W ({point.x:.1f}, {point.y:.1f})...")
    print("-" * 60)
    print()

    effect = sim.cast("player", "frag_grenade", point)
    if effect is None:
        cancelled = sim.logger.get_events_by_type(EventType.SELECTION_CANCELLED)
        reason = cancelled[-1].data.get("reason") if cancelled else "unknown"
        print(f"❌ Wybór punktu anulowany: {reason}")
        return 1

    print(f"Czas lotu: {effect.duration:.2f}s")

    # Uruchom symulację
    result = sim.run()

    # Wyniki
    print()
    print("=" * 60)
    print("WYNIKI")
    print("=" * 60)
    print(f"Czas: {result['duration_seconds']:.2f}s ({result['total_ticks']} ticks)")
    print()

    if not result["attacks"]:
        print("Brak celów w zasięgu wybuchu.")
    for attack in result["attacks"]:
        if attack["skip_reason"]:
            print(f"  - {attack['target_id']}: pominięty ({attack['skip_reason']})")
        else:
            print(f"  - {attack['target_id']}: {attack['hit_kind']} ({attack['amount']:+.0f})")

    print()
    print("Zasoby:")
    for actor in result["actors"]:
        resources = ", ".join(f"{k}={v:.0f}" for k, v in actor["resources"].items())
        print(f"  - {actor['id']}: {resources}")

    # Zapisz log
    if not args.no_save:
        output_path = f"output/cast_{args.seed}.json"
        sim.save_log(output_path)
        print()
        print(f"📄 Log zapisany: {output_path}")

    # Verbose: pokaż statystyki
    if args.verbose:
        print()
        print("-" * 60)
        print("STATYSTYKI ZDARZEŃ")
        print("-" * 60)

        for event_type in EventType:
            count = len(sim.logger.get_events_by_type(event_type))
            if count > 0:
                print(f"  {event_type.name}: {count}")

    print()
    print("Symulacja zakończona!")

    return 0


if __name__ == "__main__":
    sys.exit(main())
