# (c) Copyright Datacraft, 2026
"""Authorization check endpoints."""
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from pdp_server import schema
from pdp_server.errors import RoutingError, CheckTimeoutError
from pdp_server.pdp import PolicyDecisionPoint
from pdp_server.utils import get_pdp, require_api_key

logger = logging.getLogger(__name__)
router = APIRouter(
	prefix="/allowed",
	tags=["Authorization"],
	dependencies=[Depends(require_api_key)],
)


@router.post("", response_model=schema.CheckResult)
async def is_allowed(
	request: schema.CheckRequest,
	pdp: PolicyDecisionPoint = Depends(get_pdp),
) -> schema.CheckResult:
	"""Check whether the user may perform the action on the resource."""
	try:
		return await pdp.check_request(request)
	except RoutingError as e:
		raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
	except CheckTimeoutError as e:
		raise HTTPException(status_code=status.HTTP_504_GATEWAY_TIMEOUT, detail=str(e))


@router.post("/bulk", response_model=schema.BulkCheckResponse)
async def is_allowed_bulk(
	request: schema.BulkCheckRequest,
	pdp: PolicyDecisionPoint = Depends(get_pdp),
) -> schema.BulkCheckResponse:
	"""Check many requests; results are index-aligned with `checks`."""
	results = await pdp.bulk_check(request.checks)
	return schema.BulkCheckResponse(allow=results)


@router.post("/all-tenants", response_model=schema.AllTenantsResponse)
async def is_allowed_all_tenants(
	request: schema.CheckRequest,
	pdp: PolicyDecisionPoint = Depends(get_pdp),
) -> schema.AllTenantsResponse:
	"""List the user's tenants in which the check is allowed."""
	tenants = await pdp.check_all_tenants(
		request.user, request.action, request.resource, request.context
	)
	return schema.AllTenantsResponse(allowed_tenants=tenants)
