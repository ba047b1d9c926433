"""
FastAPI Backend dla Ability Pipeline.

Endpoints:
    GET  /api/abilities            - lista umiejętności
    GET  /api/abilities/{id}       - szczegóły umiejętności
    POST /api/cast                 - rzuć umiejętność w scenie
    GET  /api/health               - health check + zarejestrowane skrypty
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging
import sys
from pathlib import Path

# Add repo root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from ability_pipeline.abilities.handlers import SCRIPT_REGISTRY
from ability_pipeline.errors import ConfigurationError
from api.routers import abilities, simulation


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "Ability Pipeline API up: data=%s scripts=%s",
        abilities.DATA_PATH, sorted(SCRIPT_REGISTRY),
    )
    yield
    logger.info("Ability Pipeline API down")


app = FastAPI(
    title="Ability Pipeline API",
    description="Cast timed multi-stage abilities in a deterministic scene",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(abilities.router, prefix="/api", tags=["Abilities"])
app.include_router(simulation.router, prefix="/api", tags=["Simulation"])


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    """Błąd autorski w YAML -> 422 zamiast 500."""
    logger.warning("Configuration error on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.get("/api/health")
async def health():
    return {"status": "healthy", "scripts": sorted(SCRIPT_REGISTRY)}
