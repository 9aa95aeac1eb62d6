"""Problem Details (RFC 7807) error responses for the API.

Every failure leaving the API, whether raised by a view, by marshmallow, by
flask-jwt-extended or by the database, is rendered as
``application/problem+json`` with a stable ``code`` and the request's
correlation id.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from flask import Flask, Response, jsonify, request
from marshmallow import ValidationError
from sqlalchemy.exc import IntegrityError, OperationalError
from werkzeug.exceptions import HTTPException

from supportdesk.core.extensions import jwt
from supportdesk.core.logger import ensure_request_id

log = logging.getLogger(__name__)

PROBLEM_MIMETYPE = "application/problem+json"

# Stable codes for statuses raised by Werkzeug or Flask-Limiter directly.
STATUS_CODES: dict[int, str] = {
    HTTPStatus.BAD_REQUEST: "bad_request",
    HTTPStatus.UNAUTHORIZED: "unauthorized",
    HTTPStatus.FORBIDDEN: "forbidden",
    HTTPStatus.NOT_FOUND: "not_found",
    HTTPStatus.METHOD_NOT_ALLOWED: "method_not_allowed",
    HTTPStatus.CONFLICT: "conflict",
    HTTPStatus.REQUEST_ENTITY_TOO_LARGE: "payload_too_large",
    HTTPStatus.UNSUPPORTED_MEDIA_TYPE: "unsupported_media_type",
    HTTPStatus.UNPROCESSABLE_ENTITY: "validation_error",
    HTTPStatus.TOO_MANY_REQUESTS: "too_many_requests",
    HTTPStatus.INTERNAL_SERVER_ERROR: "internal_server_error",
    HTTPStatus.SERVICE_UNAVAILABLE: "service_unavailable",
}


def problem_response(
    status: int,
    code: str,
    message: str,
    *,
    details: dict[str, Any] | None = None,
    exc_info: bool = False,
) -> tuple[Response, int]:
    """
    Build and log a problem+json response.

    :param status: HTTP status.
    :param code: Machine-readable error code.
    :param message: Client-safe detail.
    :param details: Optional structured payload (e.g. field errors).
    :param exc_info: Attach the active traceback to the log record.
    """
    body: dict[str, Any] = {
        "type": "about:blank",
        "title": HTTPStatus(status).phrase,
        "status": status,
        "detail": message,
        "instance": request.path if request else None,
        "code": code,
        "request_id": ensure_request_id(),
    }
    if details:
        body["details"] = details

    level = logging.ERROR if status >= 500 else logging.WARNING
    log.log(
        level,
        "api.problem: status=%s code=%s detail=%s",
        status,
        code,
        message,
        exc_info=exc_info,
    )
    resp = jsonify(body)
    resp.mimetype = PROBLEM_MIMETYPE
    return resp, status


class APIError(Exception):
    """
    Error raised by views and mapped 1:1 onto a problem response.

    :param message: Client-safe description.
    :param status_code: HTTP status (default 400).
    :param code: Machine-readable code (default ``bad_request``).
    :param details: Optional structured payload.
    """

    def __init__(
        self,
        message: str,
        status_code: int = HTTPStatus.BAD_REQUEST,
        code: str = "bad_request",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = int(status_code)
        self.code = code
        self.details = details or {}


class NotFound(APIError):
    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message, HTTPStatus.NOT_FOUND, "not_found")


class Conflict(APIError):
    def __init__(self, message: str = "Conflict") -> None:
        super().__init__(message, HTTPStatus.CONFLICT, "conflict")


class Unauthorized(APIError):
    """401; ``code`` distinguishes e.g. a disabled account from bad credentials."""

    def __init__(self, message: str = "Unauthorized", code: str = "unauthorized") -> None:
        super().__init__(message, HTTPStatus.UNAUTHORIZED, code)


class Forbidden(APIError):
    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message, HTTPStatus.FORBIDDEN, "forbidden")


class Unprocessable(APIError):
    """422 for input that parsed but makes no sense (e.g. a bogus hostname)."""

    def __init__(self, message: str = "Validation failed") -> None:
        super().__init__(message, HTTPStatus.UNPROCESSABLE_ENTITY, "validation_error")


class InternalError(APIError):
    def __init__(self, message: str = "An error occurred. Please try again later.") -> None:
        super().__init__(message, HTTPStatus.INTERNAL_SERVER_ERROR, "internal_server_error")


def _register_jwt_callbacks() -> None:
    """Route flask-jwt-extended rejections through the same renderer."""

    def _unauthorized(message: str) -> tuple[Response, int]:
        return problem_response(HTTPStatus.UNAUTHORIZED, "unauthorized", message)

    @jwt.unauthorized_loader
    def _missing_token(_reason: str):
        return _unauthorized("Missing or malformed Authorization header")

    @jwt.invalid_token_loader
    def _invalid_token(_reason: str):
        return _unauthorized("Invalid access token")

    @jwt.expired_token_loader
    def _expired_token(_header: dict[str, Any], _payload: dict[str, Any]):
        return _unauthorized("Access token has expired")


def init_app(app: Flask) -> None:
    """Install the problem+json handlers on ``app``."""

    _register_jwt_callbacks()

    @app.errorhandler(APIError)
    def handle_api_error(err: APIError):
        return problem_response(
            err.status_code, err.code, err.message, details=err.details or None
        )

    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        return problem_response(
            HTTPStatus.UNPROCESSABLE_ENTITY,
            "validation_error",
            "Validation failed",
            details={"errors": err.messages},
        )

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = int(err.code or HTTPStatus.INTERNAL_SERVER_ERROR)
        if status == HTTPStatus.NOT_FOUND:
            message = f"Route '{request.path}' not found"
        else:
            message = (err.description or HTTPStatus(status).phrase).strip()
        return problem_response(status, STATUS_CODES.get(status, "error"), message)

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        return problem_response(
            HTTPStatus.CONFLICT, "conflict", "Resource conflict", exc_info=True
        )

    @app.errorhandler(OperationalError)
    def handle_operational_error(err: OperationalError):
        return problem_response(
            HTTPStatus.SERVICE_UNAVAILABLE,
            "service_unavailable",
            "Service temporarily unavailable",
            exc_info=True,
        )

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        return problem_response(
            HTTPStatus.INTERNAL_SERVER_ERROR,
            "internal_server_error",
            "Unexpected error",
            exc_info=True,
        )
