"""API routers for AreaScope."""

from app.routers.analysis import router as analysis_router

__all__ = ["analysis_router"]
