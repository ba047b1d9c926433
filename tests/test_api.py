"""
Testy API (FastAPI TestClient).
"""

import pytest
import sys
from pathlib import Path

# Add repo root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from fastapi.testclient import TestClient

from ability_pipeline.errors import ConfigurationError
from api.main import app
from api.routers import simulation as simulation_router


@pytest.fixture
def client():
    return TestClient(app)


def scene(**overrides) -> dict:
    """Helper: request z graczem w (5,5) i dwoma goblinami."""
    request = {
        "actors": [
            {"id": "player", "position": [5, 5]},
            {"id": "goblin_1", "position": [5, 12], "defense": {"Reflex": 10}},
            {"id": "goblin_2", "position": [6, 13]},
        ],
        "caster_id": "player",
        "point": [5, 12],
        "seed": 12345,
    }
    request.update(overrides)
    return request


# ═══════════════════════════════════════════════════════════════════════════
# TEST: ENDPOINTY ODCZYTU
# ═══════════════════════════════════════════════════════════════════════════

def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert "frag_grenade" in data["scripts"]


def test_list_abilities(client):
    response = client.get("/api/abilities")

    assert response.status_code == 200
    abilities = {a["id"]: a for a in response.json()}
    assert abilities["frag_grenade"]["max_range"] == 12.0
    assert abilities["frag_grenade"]["shape"] == "object_size"


def test_get_ability_details(client):
    response = client.get("/api/abilities/frag_grenade")

    assert response.status_code == 200
    assert response.json()["detonation"]["attack_offset"] == 0.1


def test_get_unknown_ability(client):
    assert client.get("/api/abilities/fireball").status_code == 404


# ═══════════════════════════════════════════════════════════════════════════
# TEST: CAST
# ═══════════════════════════════════════════════════════════════════════════

def test_cast_hits_both_goblins(client):
    response = client.post("/api/cast", json=scene())

    assert response.status_code == 200
    data = response.json()
    assert data["launched"] is True
    assert data["flight_time"] == pytest.approx(0.35)
    assert [a["target_id"] for a in data["result"]["attacks"]] == ["goblin_1", "goblin_2"]
    assert data["total_events"] == len(data["events"])


def test_cast_is_deterministic_per_seed(client):
    first = client.post("/api/cast", json=scene()).json()
    second = client.post("/api/cast", json=scene()).json()

    assert first["result"]["attacks"] == second["result"]["attacks"]


def test_cast_out_of_range(client):
    data = client.post("/api/cast", json=scene(point=[5, 30])).json()

    assert data["launched"] is False
    assert data["cancel_reason"] == "out_of_range"
    assert data["result"]["attacks"] == []


def test_cast_ai_point(client):
    data = client.post("/api/cast", json=scene(point=None)).json()

    assert data["launched"] is True
    assert len(data["result"]["attacks"]) == 2


def test_cast_unknown_caster(client):
    data = client.post("/api/cast", json=scene(caster_id="nobody")).json()

    assert data["launched"] is False
    assert data["cancel_reason"] == "caster_invalid"


def test_cast_unknown_ability(client):
    response = client.post("/api/cast", json=scene(ability_id="fireball"))
    assert response.status_code == 404


def test_cast_duplicate_actor(client):
    request = scene()
    request["actors"].append({"id": "player", "position": [1, 1]})

    assert client.post("/api/cast", json=request).status_code == 422


def test_cast_malformed_point(client):
    assert client.post("/api/cast", json=scene(point=[5])).status_code == 422


def test_cast_broken_ability_config(client, monkeypatch):
    def broken(self, ability_id):
        raise ConfigurationError("projectile.speed must be > 0")

    monkeypatch.setattr(simulation_router.Simulation, "get_ability", broken)
    response = client.post("/api/cast", json=scene())

    assert response.status_code == 422
    assert "speed" in response.json()["detail"]
