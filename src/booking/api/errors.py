"""Map booking errors onto HTTP responses.

Protean's own handlers cover field validation (400). Booking errors are
registered on top:

    NotFoundError       → 404
    AuthorizationError  → 403, or 401 when the caller is anonymous
    ConflictError       → 409, with the order's current status
    DownstreamError     → 502
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from booking.exceptions import AuthorizationError, ConflictError, DownstreamError, NotFoundError


async def _not_found(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"error": exc.message})


async def _unauthorized(request: Request, exc: AuthorizationError) -> JSONResponse:
    return JSONResponse(status_code=403 if exc.authenticated else 401, content=exc.to_dict())


async def _conflict(request: Request, exc: ConflictError) -> JSONResponse:
    return JSONResponse(status_code=409, content=exc.to_dict())


async def _downstream(request: Request, exc: DownstreamError) -> JSONResponse:
    return JSONResponse(status_code=502, content=exc.to_dict())


def register_booking_exception_handlers(app: FastAPI) -> None:
    register_exception_handlers(app)
    app.add_exception_handler(NotFoundError, _not_found)
    app.add_exception_handler(AuthorizationError, _unauthorized)
    app.add_exception_handler(ConflictError, _conflict)
    app.add_exception_handler(DownstreamError, _downstream)
