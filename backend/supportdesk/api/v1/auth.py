"""Authentication endpoints using the service layer."""

from __future__ import annotations

from flask import Blueprint, current_app, request

from supportdesk.api.deps import (
    bearer_token,
    client_address,
    current_user_id,
    get_auth_service,
    json_response,
    require_auth,
    timing,
    unwrap_result,
)
from supportdesk.core.extensions import limiter
from supportdesk.schemas import (
    LoginSchema,
    LogoutSchema,
    RefreshSchema,
    RegisterSchema,
    SessionResponseSchema,
    UserSchema,
)
from supportdesk.services.auth.dto import LoginIn, LogoutIn, RefreshIn, RegisterIn

bp = Blueprint("auth", __name__, url_prefix="/auth")

register_schema = RegisterSchema()
login_schema = LoginSchema()
refresh_schema = RefreshSchema()
logout_schema = LogoutSchema()
session_schema = SessionResponseSchema()
user_schema = UserSchema()


def _login_rate_limit() -> str:
    return str(current_app.config.get("AUTH_LOGIN_RATE_LIMIT", "5 per minute"))


def _register_rate_limit() -> str:
    return str(current_app.config.get("AUTH_REGISTER_RATE_LIMIT", "10 per hour"))


@bp.post("/register")
@limiter.limit(_register_rate_limit)
@timing
def register():
    """Create a tenant with its admin user and start a session."""

    data = register_schema.load(request.get_json(silent=True) or {})
    session = unwrap_result(
        get_auth_service().register(
            RegisterIn(
                company_name=data["company_name"].strip(),
                email=data["email"],
                first_name=data["first_name"].strip(),
                last_name=data["last_name"].strip(),
                password=data["password"],
            ),
            client_ip=client_address(),
        )
    )
    return json_response(session_schema.dump(session), status=201)


@bp.post("/login")
@limiter.limit(_login_rate_limit)
@timing
def login():
    """Authenticate credentials and issue an access/refresh pair."""

    data = login_schema.load(request.get_json(silent=True) or {})
    session = unwrap_result(
        get_auth_service().login(
            LoginIn(email=data["email"], password=data["password"]),
            client_ip=client_address(),
        )
    )
    return json_response(session_schema.dump(session))


@bp.post("/refresh")
@timing
def refresh():
    """
    Rotate a refresh token.

    The (possibly expired) access token in ``Authorization`` names the
    principal; the body carries the refresh secret.
    """

    access_token = bearer_token()
    data = refresh_schema.load(request.get_json(silent=True) or {})
    session = unwrap_result(
        get_auth_service().refresh(
            RefreshIn(refresh_token=data["refresh_token"], access_token=access_token),
            client_ip=client_address(),
        )
    )
    return json_response(session_schema.dump(session))


@bp.post("/logout")
@require_auth
@timing
def logout():
    """Revoke the caller's refresh token."""

    data = logout_schema.load(request.get_json(silent=True) or {})
    unwrap_result(
        get_auth_service().logout(
            LogoutIn(refresh_token=data["refresh_token"], user_id=current_user_id()),
            client_ip=client_address(),
        )
    )
    return "", 204


@bp.get("/me")
@require_auth
@timing
def me():
    """Return the authenticated user profile."""

    user = unwrap_result(get_auth_service().current_user(current_user_id()))
    return json_response({"data": user_schema.dump(user)})
