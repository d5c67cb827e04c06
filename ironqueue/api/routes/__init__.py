"""
API Routes

Route definitions for the push-queue receiver.
"""
from ironqueue.api.routes.health import router as health_router
from ironqueue.api.routes.queue import router as queue_router

__all__ = [
    "health_router",
    "queue_router",
]
