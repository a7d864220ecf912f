"""API routers package."""

from papertrade.api.routers.portfolio import router as portfolio_router
from papertrade.api.routers.options import router as options_router
from papertrade.api.routers.session import router as session_router

__all__ = [
    "portfolio_router",
    "options_router",
    "session_router",
]
