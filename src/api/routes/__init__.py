"""API route modules."""

from src.api.routes.health import router as health_router
from src.api.routes.offline_queue import router as offline_queue_router

__all__ = [
    "health_router",
    "offline_queue_router",
]
