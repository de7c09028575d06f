from .fetch_router import router as fetch_router
from .health_router import router as health_router

__all__ = ["fetch_router", "health_router"]
