"""API routers."""

from shareledger.routers.auth import router as auth_router
from shareledger.routers.properties import router as properties_router
from shareledger.routers.trading import router as trading_router
from shareledger.routers.user import router as user_router

__all__ = ["auth_router", "properties_router", "trading_router", "user_router"]
