"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import (
    LoginSchema,
    LogoutSchema,
    RefreshSchema,
    RegisterSchema,
    SessionResponseSchema,
    UserSchema,
)
from .domain import (
    DomainCreateSchema,
    DomainSchema,
    VerificationInstructionsSchema,
    WidgetConfigQuerySchema,
    WidgetConfigSchema,
)

__all__ = [
    "DomainCreateSchema",
    "DomainSchema",
    "LoginSchema",
    "LogoutSchema",
    "RefreshSchema",
    "RegisterSchema",
    "SessionResponseSchema",
    "UserSchema",
    "VerificationInstructionsSchema",
    "WidgetConfigQuerySchema",
    "WidgetConfigSchema",
]
