"""
Core module - podstawowe komponenty silnika.

Zawiera:
- Point: Punkt / wektor 2D
- World: Obszar gry z aktorami i siatką przechodniości
- GameRNG: Deterministyczny generator losowości
- ConfigLoader: Wczytywanie konfiguracji z defaults
- targeting: TargetResolver + Targeter (import bezpośrednio z .targeting)
"""

from .point import Point, ORIGIN
from .world import World
from .rng import GameRNG
from .config_loader import ConfigLoader

__all__ = [
    "Point", "ORIGIN", "World", "GameRNG", "ConfigLoader",
]
