"""
AbilityDefinition - stałe autorskie umiejętności.

Definicja łączy:
- Targeter (zasięg, przechodniość, kształt)
- Projectile (prędkość, parametry wizualne)
- Detonation (czas efektu, offset ataków)
- Attack (rodzaj obrony/ataku, bazowa zmiana zasobu)
- Script (ID rejestru handlerów)

Wszystkie błędy konfiguracji są zgłaszane w from_dict() - czyli
w momencie autorskim, ZANIM cokolwiek zostanie zaplanowane.

YAML FORMAT:
═══════════════════════════════════════════════════════════════════

    frag_grenade:
      name: "Frag Grenade"
      script: "frag_grenade"
      targeter:
        max_range: 12.0
        passable_size: "1by1"
        shape: {type: "object_size", size: "7by7round"}
      projectile:
        speed: 20.0
        drift_damping: 5.0
      detonation:
        duration: 0.15
        attack_offset: 0.1
      attack:
        defense: "Reflex"
        attack_kind: "Ranged"
        base_amount: -2000
      frag_radius: 4.0
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Tuple
import math

from .aoe import Shape, parse_shape
from ..errors import ConfigurationError


def _require_positive(section: str, key: str, value: Any) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{section}.{key} must be a number, got {value!r}")
    if not math.isfinite(value) or value <= 0:
        raise ConfigurationError(f"{section}.{key} must be positive, got {value}")
    return value


def _color(data: Any) -> Tuple[float, float, float]:
    if not isinstance(data, (list, tuple)) or len(data) != 3:
        raise ConfigurationError(f"color must be [r, g, b], got {data!r}")
    return (float(data[0]), float(data[1]), float(data[2]))


# ═══════════════════════════════════════════════════════════════════════════
# TARGETER CONFIG
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class TargeterConfig:
    """
    Konfiguracja targetera.

    Attributes:
        max_range: Maksymalna odległość punktu od castera
        passable_size: Rozmiar obiektu, który musi zmieścić się na punkcie
        shape: Filtr kształtu
    """
    max_range: float
    passable_size: str
    shape: Shape

    @classmethod
    def from_dict(cls, data: Dict[str, Any], object_sizes: Dict[str, Dict]) -> "TargeterConfig":
        passable = data.get("passable_size", "1by1")
        if passable not in object_sizes:
            raise ConfigurationError(f"No object size '{passable}' found")
        return cls(
            max_range=_require_positive("targeter", "max_range", data.get("max_range", 10.0)),
            passable_size=passable,
            shape=parse_shape(data.get("shape", "1by1"), object_sizes),
        )


# ═══════════════════════════════════════════════════════════════════════════
# PROJECTILE CONFIG
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class ProjectileConfig:
    """
    Konfiguracja pocisku.

    Attributes:
        speed: Jednostki na sekundę
        drift_damping: Tłumienie counter-drift cząsteczek
        template: Szablon efektu
        particle_size: Rozmiar cząsteczki
        color: (r, g, b)
    """
    speed: float = 10.0
    drift_damping: float = 5.0
    template: str = "particles/circle12"
    particle_size: float = 0.7
    color: Tuple[float, float, float] = (1.0, 1.0, 1.0)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProjectileConfig":
        return cls(
            speed=_require_positive("projectile", "speed", data.get("speed", 10.0)),
            drift_damping=_require_positive("projectile", "drift_damping", data.get("drift_damping", 5.0)),
            template=data.get("template", "particles/circle12"),
            particle_size=_require_positive("projectile", "particle_size", data.get("particle_size", 0.7)),
            color=_color(data.get("color", [1.0, 1.0, 1.0])),
        )


# ═══════════════════════════════════════════════════════════════════════════
# DETONATION CONFIG
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class DetonationConfig:
    """
    Konfiguracja wybuchu.

    Attributes:
        template: Szablon efektu
        duration: Czas efektu wybuchu
        attack_offset: Chwila ataku na każdy cel (względem wybuchu)
        burst_size: Rozmiar cząsteczki wybuchu
        burst_offset: Przesunięcie pozycji wybuchu (środek -> róg)
    """
    template: str = "burst"
    duration: float = 0.15
    attack_offset: float = 0.1
    burst_size: float = 8.0
    burst_offset: float = 4.0

    def __post_init__(self):
        if not 0 <= self.attack_offset <= self.duration:
            raise ConfigurationError(
                f"detonation.attack_offset {self.attack_offset} outside [0, {self.duration}]"
            )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DetonationConfig":
        return cls(
            template=data.get("template", "burst"),
            duration=_require_positive("detonation", "duration", data.get("duration", 0.15)),
            attack_offset=float(data.get("attack_offset", 0.1)),
            burst_size=_require_positive("detonation", "burst_size", data.get("burst_size", 8.0)),
            burst_offset=float(data.get("burst_offset", 4.0)),
        )


# ═══════════════════════════════════════════════════════════════════════════
# ATTACK CONFIG
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class AttackConfig:
    """
    Attributes:
        defense: Rodzaj obrony celu ("Reflex")
        attack_kind: Rodzaj ataku ("Ranged")
        base_amount: Bazowa zmiana zasobu (ze znakiem)
        resource: Pula zasobu celu
    """
    defense: str = "Reflex"
    attack_kind: str = "Ranged"
    base_amount: float = -1000.0
    resource: str = "overflow_ap"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AttackConfig":
        base_amount = data.get("base_amount", -1000.0)
        if not isinstance(base_amount, (int, float)) or not math.isfinite(base_amount):
            raise ConfigurationError(f"attack.base_amount must be a finite number, got {base_amount!r}")
        return cls(
            defense=data.get("defense", "Reflex"),
            attack_kind=data.get("attack_kind", "Ranged"),
            base_amount=float(base_amount),
            resource=data.get("resource", "overflow_ap"),
        )


# ═══════════════════════════════════════════════════════════════════════════
# ABILITY
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class AbilityDefinition:
    """
    Reprezentacja umiejętności.

    Attributes:
        id: Unikalny identyfikator (klucz YAML)
        name: Nazwa wyświetlana
        script: ID rejestru handlerów
        targeter: Konfiguracja targetera
        projectile: Konfiguracja pocisku
        detonation: Konfiguracja wybuchu
        attack: Konfiguracja ataku
        extra: Pozostałe klucze (np. frag_radius - nieużywany)
    """
    id: str
    name: str
    script: str
    targeter: TargeterConfig
    projectile: ProjectileConfig = field(default_factory=ProjectileConfig)
    detonation: DetonationConfig = field(default_factory=DetonationConfig)
    attack: AttackConfig = field(default_factory=AttackConfig)
    extra: Dict[str, Any] = field(default_factory=dict)

    KNOWN_KEYS = ("id", "name", "script", "targeter", "projectile", "detonation", "attack")

    @classmethod
    def from_dict(
        cls,
        ability_id: str,
        data: Dict[str, Any],
        object_sizes: Dict[str, Dict],
    ) -> "AbilityDefinition":
        """
        Tworzy definicję z YAML dict.

        Args:
            ability_id: Klucz z YAML (np. "frag_grenade")
            data: Dane ability (po merge z defaults)
            object_sizes: Mapa rozmiarów obiektów

        Raises:
            ConfigurationError: Złe wartości
        """
        return cls(
            id=ability_id,
            name=data.get("name", ability_id),
            script=data.get("script", ability_id),
            targeter=TargeterConfig.from_dict(data.get("targeter", {}), object_sizes),
            projectile=ProjectileConfig.from_dict(data.get("projectile", {})),
            detonation=DetonationConfig.from_dict(data.get("detonation", {})),
            attack=AttackConfig.from_dict(data.get("attack", {})),
            extra={k: v for k, v in data.items() if k not in cls.KNOWN_KEYS},
        )

    def to_dict(self) -> dict:
        """Serializuje ability do dict."""
        return {
            "id": self.id,
            "name": self.name,
            "script": self.script,
            "max_range": self.targeter.max_range,
            "shape": self.targeter.shape.shape_type,
            "speed": self.projectile.speed,
            "base_amount": self.attack.base_amount,
        }
