"""
Loader konfiguracji z automatycznym uzupełnianiem wartości domyślnych.

Pliki YAML w folderze data/:
- defaults.yaml: symulacja, reguły walki, domyślne wartości aktorów
- abilities.yaml: definicje umiejętności (stałe autorskie)
- object_sizes.yaml: rozmiary obiektów ("1by1", "7by7round", ...)

Logika merge:
    1. Wczytaj sekcję *_defaults z defaults.yaml
    2. Wczytaj konkretną definicję (np. ability "frag_grenade")
    3. Definicja nadpisuje defaults, nested dicts merge'owane rekurencyjnie

Przykład:
    defaults.yaml:
        ability_defaults:
          targeter:
            max_range: 10.0
            passable_size: "1by1"

    abilities.yaml:
        abilities:
          frag_grenade:
            targeter:
              max_range: 12.0      # nadpisuje default
              # passable_size nie podane -> "1by1" z defaults

Użycie:
    >>> loader = ConfigLoader("data/")
    >>> grenade = loader.load_ability("frag_grenade")
    >>> grenade["targeter"]["max_range"]
    12.0
"""

from __future__ import annotations
from pathlib import Path
from typing import Dict, Any, Optional, List
import yaml
import copy


class ConfigLoader:
    """
    Ładuje konfigurację z plików YAML z automatycznym merge defaults.

    Attributes:
        data_path (Path): Ścieżka do folderu data/
        _defaults (Dict): Cache defaults.yaml
        _abilities (Dict): Cache abilities.yaml
        _object_sizes (Dict): Cache object_sizes.yaml
    """

    def __init__(self, data_path: str = "data/"):
        self.data_path = Path(data_path)
        self._defaults: Optional[Dict] = None
        self._abilities: Optional[Dict] = None
        self._object_sizes: Optional[Dict] = None

    # ─────────────────────────────────────────────────────────────────────────
    # WCZYTYWANIE PLIKÓW
    # ─────────────────────────────────────────────────────────────────────────

    def _load_yaml(self, filename: str) -> Dict:
        """
        Wczytuje plik YAML.

        Raises:
            FileNotFoundError: Jeśli plik nie istnieje
        """
        filepath = self.data_path / filename
        with open(filepath, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f) or {}

    def get_defaults(self) -> Dict:
        """Zawartość defaults.yaml (cache'owana)."""
        if self._defaults is None:
            self._defaults = self._load_yaml("defaults.yaml")
        return self._defaults

    def get_simulation_config(self) -> Dict:
        """Ustawienia tick rate, rozmiaru obszaru, etc."""
        return self.get_defaults().get("simulation", {})

    def get_combat_rules(self) -> Dict:
        """Progi rzutu i mnożniki obrażeń."""
        return self.get_defaults().get("combat_rules", {})

    def get_actor_defaults(self) -> Dict:
        return self.get_defaults().get("actor_defaults", {})

    # ─────────────────────────────────────────────────────────────────────────
    # ŁADOWANIE AKTORÓW
    # ─────────────────────────────────────────────────────────────────────────

    def build_actor_config(self, data: Dict[str, Any]) -> Dict:
        """
        Uzupełnia surową definicję aktora wartościami domyślnymi.

        Args:
            data: Definicja aktora (np. z requestu API)

        Returns:
            Dict: Pełna definicja ze wszystkimi polami
        """
        return self._deep_merge(self.get_actor_defaults(), data)

    # ─────────────────────────────────────────────────────────────────────────
    # ŁADOWANIE ABILITIES
    # ─────────────────────────────────────────────────────────────────────────

    def _get_all_abilities_raw(self) -> Dict:
        """Zwraca wszystkie surowe definicje abilities."""
        if self._abilities is None:
            data = self._load_yaml("abilities.yaml")
            self._abilities = data.get("abilities", {})
        return self._abilities

    def load_ability(self, ability_id: str) -> Dict:
        """
        Wczytuje definicję umiejętności z uzupełnionymi defaults.

        Args:
            ability_id: ID ability (klucz w abilities.yaml)

        Returns:
            Dict: Pełna definicja

        Raises:
            KeyError: Jeśli ability nie istnieje
        """
        abilities = self._get_all_abilities_raw()

        if ability_id not in abilities:
            raise KeyError(f"Ability '{ability_id}' not found in abilities.yaml")

        defaults = self.get_defaults().get("ability_defaults", {})
        result = self._deep_merge(defaults, abilities[ability_id])
        result["id"] = ability_id

        return result

    def get_ability_ids(self) -> List[str]:
        return list(self._get_all_abilities_raw().keys())

    # ─────────────────────────────────────────────────────────────────────────
    # ROZMIARY OBIEKTÓW
    # ─────────────────────────────────────────────────────────────────────────

    def get_object_sizes(self) -> Dict[str, Dict]:
        """
        Mapa id -> {width, height, round}.

        Returns:
            Dict: Sekcja object_sizes z object_sizes.yaml
        """
        if self._object_sizes is None:
            data = self._load_yaml("object_sizes.yaml")
            self._object_sizes = data.get("object_sizes", {})
        return self._object_sizes

    # ─────────────────────────────────────────────────────────────────────────
    # HELPERY
    # ─────────────────────────────────────────────────────────────────────────

    @staticmethod
    def _deep_merge(base: Dict, override: Dict) -> Dict:
        """
        Głęboko łączy dwa słowniki.

        Override nadpisuje wartości w base.
        Nested dicts są merge'owane rekurencyjnie.
        """
        result = copy.deepcopy(base)

        for key, value in override.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = ConfigLoader._deep_merge(result[key], value)
            else:
                result[key] = copy.deepcopy(value)

        return result

    def reload(self) -> None:
        """Czyści cache - kolejne wywołania wczytają pliki od nowa."""
        self._defaults = None
        self._abilities = None
        self._object_sizes = None
