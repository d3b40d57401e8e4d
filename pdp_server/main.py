# (c) Copyright Datacraft, 2026
"""FastAPI application factory."""
import logging

from fastapi import FastAPI

from .config import Settings, get_settings
from .pdp import PolicyDecisionPoint, build_pdp
from .routers import check_router, debug_router, health_router

logger = logging.getLogger(__name__)


def create_app(
	settings: Settings | None = None,
	pdp: PolicyDecisionPoint | None = None,
) -> FastAPI:
	settings = settings or get_settings()
	logging.basicConfig(level=settings.log_level.upper())
	if not settings.api_key:
		logger.warning("PDP_API_KEY is not set, every authenticated request will be rejected")

	app = FastAPI(title="pdp-server")
	app.state.settings = settings
	app.state.pdp = pdp or build_pdp(settings)

	app.include_router(check_router)
	app.include_router(debug_router)
	app.include_router(health_router)
	return app
