"""
Translation of domain exceptions into HTTP responses.

Routes let module exceptions propagate; the handler registered here maps
them onto status codes by their place in the shared hierarchy.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from shared.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    ConsultLedgerError,
    ExternalServiceError,
    NotFoundError,
    ValidationError,
)
from modules.consultations.exceptions import CallSetupError, OrderAccessDeniedError
from modules.experts.exceptions import ExpertUnavailableError
from modules.wallet.exceptions import InsufficientBalanceError, PaymentVerificationError

from .models.errors import ErrorResponse

logger = logging.getLogger(__name__)

# Most specific first
STATUS_CODES: list[tuple[type[ConsultLedgerError], int]] = [
    (InsufficientBalanceError, 402),
    (ExpertUnavailableError, 409),
    (CallSetupError, 502),
    (OrderAccessDeniedError, 404),
    (PaymentVerificationError, 400),
    (NotFoundError, 404),
    (ValidationError, 400),
    (ConflictError, 409),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (ExternalServiceError, 502),
]


def status_for(exc: ConsultLedgerError) -> int:
    for exc_type, status_code in STATUS_CODES:
        if isinstance(exc, exc_type):
            return status_code
    return 500


async def handle_domain_error(request: Request, exc: ConsultLedgerError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.code} {exc.message}")
    body = ErrorResponse(**exc.to_dict())
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ConsultLedgerError, handle_domain_error)
