# (c) Copyright Datacraft, 2026
"""Raw debug endpoint exposing evaluation internals."""
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from pdp_server import schema
from pdp_server.config import Settings
from pdp_server.errors import RoutingError, CheckTimeoutError
from pdp_server.pdp import PolicyDecisionPoint
from pdp_server.utils import get_app_settings, get_pdp, require_api_key

logger = logging.getLogger(__name__)
router = APIRouter(
	prefix="/debug",
	tags=["Debug"],
	dependencies=[Depends(require_api_key)],
)


@router.post("/explain", response_model=schema.EvaluationTrace)
async def explain(
	request: schema.CheckRequest,
	pdp: PolicyDecisionPoint = Depends(get_pdp),
	settings: Settings = Depends(get_app_settings),
) -> schema.EvaluationTrace:
	"""Evaluate a check and return resolved attributes, rules and decision."""
	if not settings.debug_enabled:
		raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Debug endpoint is disabled")

	try:
		return await pdp.explain(request)
	except RoutingError as e:
		raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
	except CheckTimeoutError as e:
		raise HTTPException(status_code=status.HTTP_504_GATEWAY_TIMEOUT, detail=str(e))
