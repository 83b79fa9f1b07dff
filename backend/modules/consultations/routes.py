"""
Consultation API endpoints.

Domain errors not handled here are translated by the application-level
exception handler.
"""

from fastapi import APIRouter, Depends, HTTPException

from api.middleware.auth import get_current_user
from api.dependencies import get_consultation_service
from shared.models import AuthenticatedUser, RequestContext, Trigger

from .interfaces import IConsultationService
from .models import (
    ActiveCallResponse,
    ConsultationOrder,
    EndConsultationResponse,
    ExtendDurationResponse,
    HeartbeatResponse,
    InitiateConsultationRequest,
    InitiateConsultationResponse,
)
from .exceptions import OrderAccessDeniedError

router = APIRouter()


@router.post("", response_model=InitiateConsultationResponse, status_code=201)
async def initiate_consultation(
    request: InitiateConsultationRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: IConsultationService = Depends(get_consultation_service),
) -> InitiateConsultationResponse:
    """
    Start an on-demand consultation with an expert.

    The order is created INITIATED; billing starts once both parties have
    joined the call.
    """
    return await service.initiate(user.id, request, RequestContext())


@router.get("/active", response_model=ActiveCallResponse)
async def get_active_call(
    user: AuthenticatedUser = Depends(get_current_user),
    service: IConsultationService = Depends(get_consultation_service),
) -> ActiveCallResponse:
    """Get the user's consultation in progress, if any."""
    return await service.get_active_call(user.id, RequestContext())


@router.get("/{order_id}", response_model=ConsultationOrder)
async def get_consultation(
    order_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    service: IConsultationService = Depends(get_consultation_service),
) -> ConsultationOrder:
    """Get a consultation order."""
    try:
        return await service.get_order(user.id, order_id)
    except OrderAccessDeniedError:
        raise HTTPException(status_code=404, detail="Consultation not found")


@router.post("/{order_id}/connect", response_model=ConsultationOrder)
async def connect_consultation(
    order_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    service: IConsultationService = Depends(get_consultation_service),
) -> ConsultationOrder:
    """Mark the consultation connected and start the billing clock."""
    try:
        return await service.connect(user.id, order_id, RequestContext())
    except OrderAccessDeniedError:
        raise HTTPException(status_code=404, detail="Consultation not found")


@router.post("/{order_id}/heartbeat", response_model=HeartbeatResponse)
async def heartbeat(
    order_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    service: IConsultationService = Depends(get_consultation_service),
) -> HeartbeatResponse:
    """
    Periodic client check-in during a call.

    Returns TERMINATE when the order is no longer connected or the wallet
    is exhausted; the client then ends the call.
    """
    try:
        return await service.heartbeat(user.id, order_id, RequestContext.for_trigger(Trigger.HEARTBEAT))
    except OrderAccessDeniedError:
        raise HTTPException(status_code=404, detail="Consultation not found")


@router.post("/{order_id}/extend", response_model=ExtendDurationResponse)
async def extend_consultation(
    order_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    service: IConsultationService = Depends(get_consultation_service),
) -> ExtendDurationResponse:
    """Recompute the allowed duration after a mid-call recharge."""
    try:
        return await service.extend_max_duration(user.id, order_id, RequestContext())
    except OrderAccessDeniedError:
        raise HTTPException(status_code=404, detail="Consultation not found")


@router.post("/{order_id}/end", response_model=EndConsultationResponse)
async def end_consultation(
    order_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    service: IConsultationService = Depends(get_consultation_service),
) -> EndConsultationResponse:
    """
    End the consultation and charge for it.

    Safe to call more than once: later calls return the recorded charge.
    """
    try:
        return await service.end(user.id, order_id, RequestContext())
    except OrderAccessDeniedError:
        raise HTTPException(status_code=404, detail="Consultation not found")


@router.post("/{order_id}/cancel", response_model=ConsultationOrder)
async def cancel_consultation(
    order_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    service: IConsultationService = Depends(get_consultation_service),
) -> ConsultationOrder:
    """Cancel a consultation that has not connected yet."""
    try:
        return await service.cancel(user.id, order_id, RequestContext())
    except OrderAccessDeniedError:
        raise HTTPException(status_code=404, detail="Consultation not found")
