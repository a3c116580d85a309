from __future__ import annotations

from ratewindow.api.routes.health import router as health_router
from ratewindow.api.routes.status import router as status_router

__all__ = ["health_router", "status_router"]
