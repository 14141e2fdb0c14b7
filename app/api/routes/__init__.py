from __future__ import annotations

from app.api.routes.health import router as health_router
from app.api.routes.rooms import router as rooms_router

__all__ = ["health_router", "rooms_router"]
