"""Domain exceptions and their HTTP translation.

Services raise these; ``register_exception_handlers`` turns them into JSON
responses at the app boundary so routers stay free of status-code plumbing.
"""
from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

logger = logging.getLogger(__name__)


class BillingError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal server error"
    headers: dict[str, str] | None = None

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(BillingError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request data"


class EmptyInvoice(ValidationError):
    default_detail = "Invoice must have at least one item"


class InvalidLineItem(ValidationError):
    default_detail = "Invalid invoice item"


class AuthError(BillingError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Authentication required"
    headers = {"WWW-Authenticate": "Bearer"}


class InvalidCredentials(AuthError):
    default_detail = "Invalid credentials"


class AccountInactive(AuthError):
    default_detail = "Account is inactive"


class InvalidToken(AuthError):
    default_detail = "Invalid token"


class PermissionDenied(BillingError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Insufficient permissions"


class NotFoundError(BillingError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class ConflictError(BillingError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Resource was modified by another request"


class UpstreamError(BillingError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = "Upstream service failed"


class ServiceUnavailable(BillingError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Service unavailable"


class InternalError(BillingError):
    pass


def _billing_error_handler(request: Request, exc: BillingError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=exc.headers,
    )


def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Invalid request data", "errors": jsonable_encoder(exc.errors())},
    )


def _stale_data_handler(request: Request, exc: StaleDataError) -> JSONResponse:
    logger.warning("stale write rejected endpoint=%s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": ConflictError.default_detail},
    )


def _integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    # corrida em constraint única (email, slug, número da fatura)
    logger.warning("integrity error endpoint=%s %s: %s", request.method, request.url.path, exc.orig)
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": "Resource already exists"},
    )


def _database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("database failure endpoint=%s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": InternalError.default_detail},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BillingError, _billing_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(StaleDataError, _stale_data_handler)
    app.add_exception_handler(IntegrityError, _integrity_error_handler)
    app.add_exception_handler(SQLAlchemyError, _database_error_handler)
