"""Domain exceptions and their FastAPI handlers.

Every handler answers with the same JSON body shape: ``{"error", "detail"}``.
Pure computation errors (conversion) surface to the immediate caller; the
refresh policy is the only place that absorbs network errors.
"""

from __future__ import annotations

import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger("tripwallet.errors")


class TripWalletError(Exception):
    """Base class for domain errors mapped onto HTTP responses."""

    code = "tripwallet_error"
    status_code = status.HTTP_400_BAD_REQUEST


class UnconvertibleCurrency(TripWalletError):
    code = "unconvertible_currency"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, currency: str):
        self.currency = currency
        super().__init__(f"no exchange rate available for '{currency}'")


class RateFetchFailed(TripWalletError):
    code = "rate_fetch_failed"
    status_code = status.HTTP_502_BAD_GATEWAY


class InvalidCredential(TripWalletError):
    code = "invalid_credential"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(
        self, message: str = "Invalid API key. Please check your key and try again."
    ):
        super().__init__(message)


class ExpensesDisabled(TripWalletError):
    code = "expenses_disabled"
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(
        self,
        message: str = "Configure your exchange rate API key in Settings to enable expense tracking.",
    ):
        super().__init__(message)


class NotFound(TripWalletError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


def domain_error_handler(request: Request, exc: TripWalletError):  # type: ignore
    if exc.status_code >= 500:
        logger.warning("%s on %s %s: %s", exc.code, request.method, request.url.path, exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "detail": str(exc)},
    )


def http_error_handler(request: Request, exc: StarletteHTTPException):  # type: ignore
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        detail = f"No route for {request.method} {request.url.path}"
    else:
        detail = exc.detail
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": "not_found" if exc.status_code == 404 else "http_error",
            "detail": detail,
        },
    )


def validation_error_handler(request: Request, exc: RequestValidationError):  # type: ignore
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "validation_error",
            "detail": [
                {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")}
                for e in exc.errors()
            ],
        },
    )


def server_error_handler(request: Request, exc: Exception):  # type: ignore
    logger.exception("unhandled exception")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "internal_error",
            "detail": "An unexpected error occurred.",
        },
    )
