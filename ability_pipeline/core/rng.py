"""
Deterministyczny RNG rzutów ataku.

Ten sam seed daje te same wyniki Miss / Graze / Hit / Crit,
więc log JSON rzutu granatu da się odtworzyć 1:1.

Zasady:
    - jedna instancja GameRNG na Simulation
    - AbilityContext trzyma referencję do tej instancji
    - moduł `random` nie jest używany globalnie

    >>> rng = GameRNG(seed=12345)
    >>> first = rng.roll_d100()
    >>> GameRNG(seed=12345).roll_d100() == first
    True
"""

from __future__ import annotations
import random


class GameRNG:
    """
    Źródło losowości jednej symulacji.

    Attributes:
        seed (int): Ziarno zapisywane w metadata logu
    """

    def __init__(self, seed: int):
        self.seed = seed
        self._rng = random.Random(seed)

    def roll_d100(self) -> int:
        """Rzut 1-100 (włącznie) dla RollTableCheck."""
        return self._rng.randint(1, 100)

    def snapshot(self) -> tuple:
        """Stan generatora, np. przed rzutem do powtórzenia."""
        return self._rng.getstate()

    def restore(self, state: tuple) -> None:
        self._rng.setstate(state)

    def __repr__(self) -> str:
        return f"GameRNG(seed={self.seed})"
