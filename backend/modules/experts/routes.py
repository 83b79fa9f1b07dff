"""
Expert API endpoints.
"""

from fastapi import APIRouter, Depends, Query

from api.middleware.auth import get_current_user
from api.dependencies import get_expert_service
from shared.models import AuthenticatedUser, RequestContext

from .interfaces import IExpertService
from .models import EarningsSummary, ExpertStore, UpdatePresenceRequest

router = APIRouter()


@router.put("/me/presence", response_model=ExpertStore)
async def update_presence(
    request: UpdatePresenceRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: IExpertService = Depends(get_expert_service),
) -> ExpertStore:
    """Go online or offline for on-demand consultations."""
    return await service.set_presence(user.id, request.is_online, RequestContext())


@router.get("/me/earnings", response_model=EarningsSummary)
async def get_earnings(
    limit: int = Query(default=50, ge=1, le=200),
    user: AuthenticatedUser = Depends(get_current_user),
    service: IExpertService = Depends(get_expert_service),
) -> EarningsSummary:
    """Get the expert's earnings balances and recent earnings."""
    return await service.get_earnings(user.id, limit)


@router.get("/{expert_id}/store", response_model=ExpertStore)
async def get_expert_store(
    expert_id: str,
    service: IExpertService = Depends(get_expert_service),
) -> ExpertStore:
    """Get an expert's rates, recharge options and availability."""
    return await service.get_store(expert_id)
