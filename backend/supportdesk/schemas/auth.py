"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

import re
from typing import Any

from marshmallow import (
    EXCLUDE,
    Schema,
    ValidationError,
    fields,
    validate,
    validates,
    validates_schema,
)

_UPPER = re.compile(r"[A-Z]")
_LOWER = re.compile(r"[a-z]")
_DIGIT = re.compile(r"\d")


class RegisterSchema(Schema):
    """Input payload for tenant + admin registration."""

    class Meta:
        unknown = EXCLUDE

    company_name = fields.String(
        required=True, data_key="companyName", validate=validate.Length(min=1, max=255)
    )
    email = fields.Email(required=True, validate=validate.Length(max=254))
    first_name = fields.String(
        required=True, data_key="firstName", validate=validate.Length(min=1, max=100)
    )
    last_name = fields.String(
        required=True, data_key="lastName", validate=validate.Length(min=1, max=100)
    )
    password = fields.String(required=True, validate=validate.Length(min=8, max=128))
    confirm_password = fields.String(required=True, data_key="confirmPassword")

    @validates("company_name")
    def validate_company_name(self, value: str, **_: Any) -> None:
        if not value.strip():
            raise ValidationError("Company name is required.")

    @validates("password")
    def validate_password(self, value: str, **_: Any) -> None:
        if not (_UPPER.search(value) and _LOWER.search(value) and _DIGIT.search(value)):
            raise ValidationError(
                "Password must contain at least one uppercase letter, "
                "one lowercase letter and one number."
            )

    @validates_schema
    def validate_confirmation(self, data: dict[str, Any], **_: Any) -> None:
        if data.get("password") != data.get("confirm_password"):
            raise ValidationError("Passwords do not match.", field_name="confirmPassword")


class LoginSchema(Schema):
    """Input payload for authenticating a user."""

    class Meta:
        unknown = EXCLUDE

    email = fields.Email(required=True, validate=validate.Length(max=254))
    password = fields.String(required=True, validate=validate.Length(min=1, max=128))


class RefreshSchema(Schema):
    """Input payload for rotating a refresh token."""

    class Meta:
        unknown = EXCLUDE

    refresh_token = fields.String(
        required=True, data_key="refreshToken", validate=validate.Length(min=1, max=512)
    )


class LogoutSchema(RefreshSchema):
    """Input payload for revoking the caller's refresh token."""


class UserSchema(Schema):
    """Public representation of the authenticated principal."""

    id = fields.Integer(required=True)
    tenant_id = fields.Integer(data_key="tenantId")
    tenant_name = fields.String(data_key="tenantName")
    email = fields.Email(required=True)
    first_name = fields.String(data_key="firstName")
    last_name = fields.String(data_key="lastName")
    role = fields.String()
    is_active = fields.Boolean(data_key="isActive")
    last_login_at = fields.DateTime(data_key="lastLoginAt", allow_none=True)


class SessionResponseSchema(Schema):
    """Response payload for register, login and refresh."""

    access_token = fields.String(required=True, data_key="accessToken")
    refresh_token = fields.String(required=True, data_key="refreshToken")
    token_type = fields.Constant("Bearer", data_key="tokenType")
    expires_at = fields.DateTime(data_key="expiresAt")
    user = fields.Nested(UserSchema)
