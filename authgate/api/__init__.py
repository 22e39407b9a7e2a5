"""API package exports."""

from authgate.api.auth import router as auth_router
from authgate.api.middleware import CorrelationIdMiddleware
from authgate.api.users import router as users_router

__all__ = ["auth_router", "users_router", "CorrelationIdMiddleware"]
