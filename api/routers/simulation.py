"""
Simulation router - rzucanie umiejętności w scenie.
"""

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field, conlist
from typing import List, Dict, Any, Optional
from pathlib import Path
import random

from ability_pipeline.core.config_loader import ConfigLoader
from ability_pipeline.core.point import Point
from ability_pipeline.events.event_logger import EventType
from ability_pipeline.simulation.simulation import Simulation


router = APIRouter()

DATA_PATH = Path(__file__).parent.parent.parent / "data"
_loader = ConfigLoader(str(DATA_PATH))


# ═══════════════════════════════════════════════════════════════════════════
# REQUEST/RESPONSE MODELS
# ═══════════════════════════════════════════════════════════════════════════

class ActorPlacement(BaseModel):
    """Aktor umieszczony w scenie."""
    id: str
    name: Optional[str] = None
    position: List[float] = Field(..., min_length=2, max_length=2)  # [x, y]
    resources: Dict[str, float] = {}
    defense: Dict[str, int] = {}
    accuracy: Dict[str, int] = {}

    def to_config(self) -> Dict[str, Any]:
        data = self.model_dump(exclude_none=True)
        # Puste słowniki nie nadpisują defaults
        return {k: v for k, v in data.items() if v != {}}


class CastRequest(BaseModel):
    """Request rzutu umiejętności."""
    actors: List[ActorPlacement]
    caster_id: str
    ability_id: str = "frag_grenade"
    point: Optional[conlist(float, min_length=2, max_length=2)] = None  # None = AI
    seed: Optional[int] = None


# ═══════════════════════════════════════════════════════════════════════════
# ENDPOINTS
# ═══════════════════════════════════════════════════════════════════════════

@router.post("/cast")
async def cast_ability(request: CastRequest) -> Dict[str, Any]:
    """
    Rzuca umiejętność i uruchamia symulację do wygaśnięcia efektów.

    Args:
        request: Aktorzy, caster, punkt (opcjonalny) i seed

    Returns:
        Wynik z atakami, stanem aktorów i logiem eventów
    """
    seed = request.seed if request.seed is not None else random.randint(1, 999999)
    sim = Simulation(seed=seed, loader=_loader)

    for placement in request.actors:
        if sim.add_actor_from_config(placement.to_config()) is None:
            raise HTTPException(status_code=422, detail=f"Duplicate actor id '{placement.id}'")

    point = Point.from_sequence(request.point) if request.point is not None else None

    try:
        effect = sim.cast(request.caster_id, request.ability_id, point)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Ability '{request.ability_id}' not found")

    cancel_reason = None
    if effect is None:
        cancelled = sim.logger.get_events_by_type(EventType.SELECTION_CANCELLED)
        cancel_reason = cancelled[-1].data.get("reason") if cancelled else None

    result = sim.run()
    log = sim.get_log()

    return {
        "seed": seed,
        "launched": effect is not None,
        "flight_time": round(effect.duration, 4) if effect is not None else None,
        "cancel_reason": cancel_reason,
        "result": result,
        "events": log["events"],
        "total_events": len(log["events"]),
    }
