"""Shared API helpers for request parsing and cross-cutting concerns."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar

from flask import Response, current_app, jsonify, request
from flask_jwt_extended import get_jwt, get_jwt_identity, verify_jwt_in_request

from supportdesk.core.errors import (
    APIError,
    Conflict,
    Forbidden,
    InternalError,
    NotFound,
    Unauthorized,
    Unprocessable,
)
from supportdesk.infra.jwt.flask_jwt_token_issuer import JWTTokenIssuer
from supportdesk.services._shared.result import ErrorKind, Result
from supportdesk.services.auth.dto import SessionConfig
from supportdesk.services.auth.service import AuthService
from supportdesk.services.domains.service import DomainService

F = TypeVar("F", bound=Callable[..., Any])
T = TypeVar("T")


def require_auth(func: F) -> F:
    """Ensure the request carries a valid JWT access token."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        verify_jwt_in_request(optional=False)
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def current_user_id() -> int:
    """Return the verified principal id (``sub``)."""

    identity = get_jwt_identity()
    try:
        return int(identity)
    except (TypeError, ValueError) as exc:
        raise Unauthorized("Invalid access token") from exc


def current_tenant_id() -> int:
    """Return the tenant the verified access token was issued for (``tid``)."""

    tenant_id = (get_jwt() or {}).get("tid")
    if not isinstance(tenant_id, int):
        raise Unauthorized("Invalid access token")
    return tenant_id


def bearer_token() -> str:
    """Return the raw ``Authorization: Bearer`` value without validating it."""

    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise Unauthorized("Missing or malformed Authorization header")
    return token.strip()


def client_address() -> str | None:
    """Client IP as seen after ``ProxyFix`` rewrote ``remote_addr``."""

    return request.remote_addr


_ERRORS: dict[ErrorKind, Callable[[str], APIError]] = {
    ErrorKind.VALIDATION: Unprocessable,
    ErrorKind.CONFLICT: Conflict,
    ErrorKind.AUTHENTICATION: Unauthorized,
    ErrorKind.ACCOUNT_DISABLED: lambda message: Unauthorized(message, code="account_disabled"),
    ErrorKind.FORBIDDEN: Forbidden,
    ErrorKind.NOT_FOUND: NotFound,
    ErrorKind.UNEXPECTED: InternalError,
}


def unwrap_result(result: Result[T]) -> T:
    """Return the value of a successful result or raise the matching API error."""

    if result.ok:
        return result.value  # type: ignore[return-value]
    kind = result.error or ErrorKind.UNEXPECTED
    raise _ERRORS.get(kind, InternalError)(result.message or "")


def get_auth_service() -> AuthService:
    """Compose an :class:`AuthService` from the current app config."""

    config = SessionConfig.from_mapping(current_app.config)
    return AuthService(
        token_issuer=JWTTokenIssuer(access_expires=config.access_expires),
        config=config,
    )


def get_domain_service() -> DomainService:
    return DomainService(widget_url=str(current_app.config.get("WIDGET_URL", "")))


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_endpoint = getattr(request, "endpoint", None)
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request_endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
