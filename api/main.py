"""FastAPI server for the Examination Diagram Mapper.

Classifies examination notes onto anatomical diagrams, serves coordinate
catalogs and builds finding overlays, with Prometheus metrics.
Runs on port 8526.
"""

from contextlib import asynccontextmanager
from typing import Any, Dict, List

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from pydantic import BaseModel
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from api.routes.diagrams import router as diagrams_router

# =====================================================================
# Response Models
# =====================================================================


class HealthResponse(BaseModel):
    """Service health response."""
    status: str
    coordinates_dir: str = ""
    cached_catalogs: List[str] = []


# =====================================================================
# Application State
# =====================================================================

_state: Dict[str, Any] = {}


# =====================================================================
# Lifespan
# =====================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize and tear down application resources."""
    try:
        from config.settings import settings
        from src.repository import CoordinateRepository, JsonCoordinateSource

        logger.info(f"Starting Examination Diagram Mapper API on port {settings.API_PORT}")

        source = JsonCoordinateSource(settings.COORDINATES_DIR)
        if not source.directory.is_dir():
            logger.warning(f"Coordinates directory {source.directory} does not exist")

        _state["repository"] = CoordinateRepository(source)
        _state["settings"] = settings
        logger.info(f"Coordinate repository ready ({source.directory})")
    except Exception as e:
        logger.error(f"Initialization failed: {e}")
        _state["error"] = str(e)

    yield

    logger.info("Shutting down Examination Diagram Mapper API")
    _state.clear()


# =====================================================================
# FastAPI App
# =====================================================================

app = FastAPI(
    title="Examination Diagram Mapper API",
    description=(
        "Maps free-text clinical examination notes onto anatomical reference "
        "diagrams and positions each finding on the rendered image."
    ),
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

app.include_router(diagrams_router, tags=["Diagrams"])


# =====================================================================
# Core Endpoints
# =====================================================================


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Service health check with repository cache status."""
    repository = _state.get("repository")
    error = _state.get("error")
    status = "degraded" if error else ("healthy" if repository else "initializing")

    coordinates_dir = ""
    cached: List[str] = []
    if repository is not None:
        coordinates_dir = str(getattr(repository.source, "directory", ""))
        cached = repository.cached_ids

    return HealthResponse(status=status, coordinates_dir=coordinates_dir, cached_catalogs=cached)


@app.get("/metrics", tags=["Monitoring"])
async def prometheus_metrics():
    """Prometheus-compatible metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )


# =====================================================================
# Run
# =====================================================================

if __name__ == "__main__":
    import uvicorn

    from config.settings import settings

    uvicorn.run(
        "api.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=False,
    )
