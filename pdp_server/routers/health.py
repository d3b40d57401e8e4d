# (c) Copyright Datacraft, 2026
from fastapi import APIRouter, Depends

from pdp_server import schema
from pdp_server.pdp import PolicyDecisionPoint
from pdp_server.utils import get_pdp

router = APIRouter(tags=["Health"])


@router.get("/healthy", response_model=schema.HealthResponse)
async def healthy(pdp: PolicyDecisionPoint = Depends(get_pdp)) -> schema.HealthResponse:
	return schema.HealthResponse(shards=sorted(pdp.router.shards))
