"""AreaScope - area comparison service.

Main FastAPI application.
"""

import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from app.config import Settings, settings
from app.routers.analysis import router as analysis_router
from areascope import __version__
from areascope.areas.state import AppState


def configure_logging(level: str) -> None:
    """Route loguru output to stderr at the configured level."""
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


def create_state(config: Settings) -> AppState:
    """Build the analysis state from settings."""
    return AppState(
        max_areas=config.max_comparison_areas,
        metrics_config=config.metrics_config(),
        active_layers=config.default_active_layers,
    )


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("=" * 60)
    logger.info(f"  {settings.app_name} v{__version__} - INITIALIZING")
    logger.info("=" * 60)

    app.state.analysis = create_state(settings)
    logger.info(
        f"Analysis state ready (max {settings.max_comparison_areas} areas, "
        f"{len(settings.default_active_layers)} active layers)"
    )

    yield

    logger.info(f"{settings.app_name} shutting down")
    app.state.analysis = None


configure_logging(settings.log_level)

app = FastAPI(
    title=settings.app_name,
    description="Clip map layers to selection polygons and compare areas",
    version=__version__,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(analysis_router)


@app.get("/health")
async def health():
    """Liveness check."""
    return {"status": "ok", "version": __version__}


def main() -> None:
    """Run the server with uvicorn (installed with the `server` extra)."""
    import uvicorn

    uvicorn.run("app.main:app", host=settings.host, port=settings.port, reload=settings.debug)


if __name__ == "__main__":
    main()
