"""Examination Diagram Mapper API route modules."""

from api.routes.diagrams import router as diagrams_router

__all__ = [
    "diagrams_router",
]
