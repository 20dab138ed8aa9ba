from cardintake.api.health import router as health_router
from cardintake.api.intake import router as intake_router

__all__ = [
    "health_router",
    "intake_router",
]
