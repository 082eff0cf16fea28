"""
Traducción de errores del núcleo a respuestas HTTP.
"""
import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ..application.errors import (
    LedgerError, NotFoundError, ConstraintViolationError, InsufficientStockError,
    CreditLimitExceededError, InvalidAmountError, InvalidStateTransitionError,
    PermissionDeniedError, StorageUnavailableError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = {
    NotFoundError: 404,
    ConstraintViolationError: 409,
    InsufficientStockError: 409,
    CreditLimitExceededError: 409,
    InvalidAmountError: 422,
    InvalidStateTransitionError: 409,
    PermissionDeniedError: 403,
    StorageUnavailableError: 503,
}


def status_for(exc: LedgerError) -> int:
    for cls in type(exc).__mro__:
        if cls in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[cls]
    return 400


async def ledger_error_handler(request: Request, exc: LedgerError):
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error("%s %s: %s", request.method, request.url.path, exc)
    else:
        logger.warning("%s %s rechazado: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error": type(exc).__name__},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LedgerError, ledger_error_handler)
