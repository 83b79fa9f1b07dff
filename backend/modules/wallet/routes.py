"""
Wallet API endpoints.

Wallets are per (user, expert): every endpoint is scoped to the
authenticated user and an expert.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from api.middleware.auth import get_current_user
from api.dependencies import get_wallet_service
from shared.models import AuthenticatedUser, RequestContext

from .interfaces import IWalletService
from .models import (
    CreateRechargeRequest,
    RechargeOrderResponse,
    RechargeResult,
    VerifyRechargeRequest,
    WalletBalance,
    WalletTransaction,
)

router = APIRouter()


@router.post("/recharge", response_model=RechargeOrderResponse, status_code=201)
async def create_recharge(
    request: CreateRechargeRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: IWalletService = Depends(get_wallet_service),
) -> RechargeOrderResponse:
    """
    Start a recharge.

    Returns the gateway order the client completes checkout against.
    """
    return await service.create_recharge(user.id, request, RequestContext())


@router.post("/recharge/verify", response_model=RechargeResult)
async def verify_recharge(
    request: VerifyRechargeRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: IWalletService = Depends(get_wallet_service),
) -> RechargeResult:
    """Confirm a completed checkout and credit the wallet."""
    return await service.verify_recharge(user.id, request, RequestContext())


@router.get("/{expert_id}", response_model=WalletBalance)
async def get_balance(
    expert_id: str,
    currency: Optional[str] = Query(default=None, description="Currency (defaults to platform currency)"),
    user: AuthenticatedUser = Depends(get_current_user),
    service: IWalletService = Depends(get_wallet_service),
) -> WalletBalance:
    """Get the user's wallet balance with an expert."""
    return await service.get_balance(user.id, expert_id, currency)


@router.get("/{expert_id}/transactions", response_model=list[WalletTransaction])
async def list_transactions(
    expert_id: str,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    user: AuthenticatedUser = Depends(get_current_user),
    service: IWalletService = Depends(get_wallet_service),
) -> list[WalletTransaction]:
    """Get wallet ledger entries, most recent first."""
    return await service.list_transactions(user.id, expert_id, limit, offset)
