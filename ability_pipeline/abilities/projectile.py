"""
Kinematyka pocisku dla umiejętności.

Pocisk leci od castera do wybranego punktu ze stałą prędkością.
Czas lotu efektu wizualnego MUSI odpowiadać symulowanej prędkości:

    distance = |destination - origin|
    velocity = (destination - origin) / duration

COUNTER-DRIFT:
═══════════════════════════════════════════════════════════════════

    Pozycja cząsteczek potomnych jest liczona w lokalnym układzie
    efektu, którego środek podąża za głowicą. Żeby cząsteczki stały
    w miejscu względem świata, ich ruch musi znosić prędkość rodzica:

        counter_drift = -velocity / drift_damping      (domyślnie 5)

PRZYPADEK ZDEGENEROWANY:
═══════════════════════════════════════════════════════════════════

    distance == 0 (lub duration zaokrąglone do 0) -> NIE dzielimy.
    duration = MIN_DURATION,
    velocity = (0, 0), degenerate = True. Efekt rozstrzyga się
    praktycznie natychmiast.

YAML CONFIG:
═══════════════════════════════════════════════════════════════════

    projectile:
      speed: 20.0          # jednostek na sekundę
      drift_damping: 5.0
"""

from __future__ import annotations
from dataclasses import dataclass
import math

from ..core.point import Point, ORIGIN
from ..errors import ConfigurationError


# Minimalny czas lotu (sekundy) gdy distance / speed daje 0
MIN_DURATION = 1e-3

DEFAULT_DRIFT_DAMPING = 5.0


@dataclass(frozen=True)
class Trajectory:
    """
    Wynik obliczeń kinematyki.

    Attributes:
        origin: Punkt startowy
        destination: Punkt docelowy
        distance: Odległość euklidesowa
        duration: Czas lotu w sekundach (zawsze > 0 i skończony)
        velocity: Prędkość (składowe x, y) na sekundę
        counter_drift: -velocity / drift_damping
        degenerate: True gdy czas lotu przycięty do MIN_DURATION
    """
    origin: Point
    destination: Point
    distance: float
    duration: float
    velocity: Point
    counter_drift: Point
    degenerate: bool = False

    def position_at(self, t: float) -> Point:
        """Pozycja głowicy po czasie t (przycięta do [0, duration])."""
        t = max(0.0, min(t, self.duration))
        return self.origin + self.velocity * t

    def to_dict(self) -> dict:
        return {
            "origin": self.origin.to_list(),
            "destination": self.destination.to_list(),
            "distance": round(self.distance, 3),
            "duration": round(self.duration, 4),
            "velocity": self.velocity.to_list(),
            "counter_drift": self.counter_drift.to_list(),
            "degenerate": self.degenerate,
        }


def compute_trajectory(
    origin: Point,
    destination: Point,
    speed: float,
    drift_damping: float = DEFAULT_DRIFT_DAMPING,
) -> Trajectory:
    """
    Oblicza czas lotu i prędkość pocisku.

    Funkcja czysta - brak efektów ubocznych.

    Args:
        origin: Środek castera
        destination: Wybrany punkt
        speed: Prędkość (> 0)
        drift_damping: Tłumienie counter-drift (> 0)

    Returns:
        Trajectory: duration, velocity, counter_drift

    Raises:
        ConfigurationError: speed lub drift_damping <= 0 / nieskończone,
            nieskończone końce lub odległość

    Example:
        >>> t = compute_trajectory(Point(0, 0), Point(0, 100), 20.0)
        >>> t.duration
        5.0
        >>> t.velocity
        Point(x=0.0, y=20.0)
    """
    if not _is_positive_finite(speed):
        raise ConfigurationError(f"Projectile speed must be positive and finite, got {speed!r}")
    if not _is_positive_finite(drift_damping):
        raise ConfigurationError(f"Drift damping must be positive and finite, got {drift_damping!r}")

    if not (origin.is_finite() and destination.is_finite()):
        raise ConfigurationError(f"Trajectory endpoints must be finite, got {origin} -> {destination}")

    distance = origin.distance(destination)
    if not math.isfinite(distance):
        raise ConfigurationError(f"Trajectory distance overflows: {origin} -> {destination}")

    duration = distance / speed

    # Odległość subnormalna daje duration == 0 po dzieleniu
    if distance == 0 or duration == 0:
        return Trajectory(
            origin=origin,
            destination=destination,
            distance=distance,
            duration=MIN_DURATION,
            velocity=ORIGIN,
            counter_drift=ORIGIN,
            degenerate=True,
        )

    velocity = (destination - origin) / duration

    return Trajectory(
        origin=origin,
        destination=destination,
        distance=distance,
        duration=duration,
        velocity=velocity,
        counter_drift=-velocity / drift_damping,
    )


def _is_positive_finite(value) -> bool:
    try:
        value = float(value)
    except (TypeError, ValueError):
        return False
    return math.isfinite(value) and value > 0
