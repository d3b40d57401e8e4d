# (c) Copyright Datacraft, 2026
"""API routers."""
from .check import router as check_router
from .debug import router as debug_router
from .health import router as health_router

__all__ = ["check_router", "debug_router", "health_router"]
