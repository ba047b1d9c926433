"""
Combat module - rozstrzyganie ataków umiejętności.

Zawiera:
- HitKind: Poziomy trafienia (MISS, GRAZE, HIT, CRIT)
- AttackOutcome: Wynik ataku (poziom, zmiana, pominięcie)
- CombatCheck / RollTableCheck: Rzut ataku (czarna skrzynka hosta)
- CombatResolver: Rzut -> zmiana zasobu celu
"""

from .attack import (
    HitKind, AttackOutcome, CombatRules,
    CombatCheck, RollTableCheck, CombatResolver,
)

__all__ = [
    "HitKind", "AttackOutcome", "CombatRules",
    "CombatCheck", "RollTableCheck", "CombatResolver",
]
