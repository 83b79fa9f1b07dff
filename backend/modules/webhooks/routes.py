"""
Webhook endpoints.

Verified against the raw request body before anything is parsed.
"""

import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from pydantic import ValidationError as PydanticValidationError

from api.dependencies import get_webhook_handler
from shared.config import get_settings
from shared.models import RequestContext, Trigger
from modules.video.exceptions import WebhookVerificationError
from modules.video.signature import verify_webhook

from .handler import StreamWebhookHandler
from .models import WebhookResult

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/stream", response_model=WebhookResult)
async def stream_webhook(
    request: Request,
    x_signature: Optional[str] = Header(default=None),
    x_api_key: Optional[str] = Header(default=None),
    handler: StreamWebhookHandler = Depends(get_webhook_handler),
) -> WebhookResult:
    """
    Receive a video platform webhook.

    Unknown event types and events for unknown calls are acknowledged with
    status "ignored" so the platform does not retry them.
    """
    body = await request.body()
    settings = get_settings()

    try:
        verify_webhook(
            body,
            x_signature or "",
            x_api_key or "",
            settings.stream_api_key,
            settings.stream_api_secret,
        )
    except WebhookVerificationError as e:
        logger.warning(f"Rejected webhook: {e.message}")
        raise HTTPException(status_code=401, detail=e.message)

    try:
        payload = json.loads(body)
    except ValueError:
        raise HTTPException(status_code=400, detail="Webhook body is not valid JSON")
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Webhook body must be a JSON object")

    try:
        return await handler.handle(payload, RequestContext.for_trigger(Trigger.WEBHOOK))
    except PydanticValidationError as e:
        raise HTTPException(status_code=400, detail=f"Malformed event: {e.error_count()} errors")
