"""
Abilities router - lista dostępnych umiejętności.
"""

from fastapi import APIRouter, HTTPException
from typing import List, Dict, Any
from pathlib import Path

from ability_pipeline.abilities.ability import AbilityDefinition
from ability_pipeline.core.config_loader import ConfigLoader


router = APIRouter()

# Initialize config loader
DATA_PATH = Path(__file__).parent.parent.parent / "data"
_loader = ConfigLoader(str(DATA_PATH))


def _load_definition(ability_id: str) -> AbilityDefinition:
    data = _loader.load_ability(ability_id)
    return AbilityDefinition.from_dict(ability_id, data, _loader.get_object_sizes())


@router.get("/abilities")
async def get_abilities() -> List[Dict[str, Any]]:
    """
    Zwraca listę wszystkich umiejętności.

    Returns:
        Lista umiejętności z zasięgiem, kształtem i bazową zmianą.
    """
    return [_load_definition(ability_id).to_dict() for ability_id in _loader.get_ability_ids()]


@router.get("/abilities/{ability_id}")
async def get_ability(ability_id: str) -> Dict[str, Any]:
    """
    Zwraca pełną (po merge z defaults) definicję umiejętności.

    Args:
        ability_id: ID umiejętności
    """
    try:
        return _loader.load_ability(ability_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Ability '{ability_id}' not found")
