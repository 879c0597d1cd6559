"""Exception handlers mapping domain failures to HTTP responses.

Protean's ``ValidationError`` becomes a 400 and ``ObjectNotFoundError`` a
404; marketplace errors carry their own status through ``status_for``.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError

from marketplace.exceptions import (
    AccessDeniedError,
    InsufficientStockError,
    InvalidTransitionError,
    MarketplaceError,
    PersistenceError,
    ProductUnavailableError,
    StockConflictError,
)

_STATUS_CODES = {
    ProductUnavailableError: 409,
    InsufficientStockError: 409,
    InvalidTransitionError: 409,
    StockConflictError: 409,
    AccessDeniedError: 403,
    PersistenceError: 503,
}


def status_for(exc: MarketplaceError) -> int:
    for exc_type, status_code in _STATUS_CODES.items():
        if isinstance(exc, exc_type):
            return status_code
    return 400


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:  # noqa: ARG001
    return JSONResponse(status_code=400, content={"error": exc.messages})


async def not_found_handler(request: Request, exc: ObjectNotFoundError) -> JSONResponse:  # noqa: ARG001
    return JSONResponse(status_code=404, content={"error": str(exc) or "Not found"})


async def marketplace_error_handler(request: Request, exc: MarketplaceError) -> JSONResponse:  # noqa: ARG001
    return JSONResponse(status_code=status_for(exc), content=exc.to_dict())


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(ObjectNotFoundError, not_found_handler)
    app.add_exception_handler(MarketplaceError, marketplace_error_handler)
