"""Domain claim schemas."""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, fields, validate


class DomainCreateSchema(Schema):
    """Payload for claiming a hostname."""

    class Meta:
        unknown = EXCLUDE

    domain = fields.String(required=True, validate=validate.Length(min=1, max=2048))


class WidgetConfigQuerySchema(Schema):
    """Query parameters of the public widget lookup."""

    class Meta:
        unknown = EXCLUDE

    domain = fields.String(load_default=None, validate=validate.Length(max=2048))


class DomainSchema(Schema):
    """Tenant-facing representation of a domain claim."""

    id = fields.Integer(required=True)
    hostname = fields.String(required=True)
    status = fields.String()
    is_verified = fields.Boolean(data_key="isVerified")
    verified_at = fields.DateTime(data_key="verifiedAt", allow_none=True)
    verification_code = fields.String(data_key="verificationCode")
    api_key = fields.String(data_key="apiKey")
    verification_attempts = fields.Integer(data_key="verificationAttempts")
    last_verification_attempt_at = fields.DateTime(
        data_key="lastVerificationAttemptAt", allow_none=True
    )
    last_verification_error = fields.String(data_key="lastVerificationError", allow_none=True)
    next_verification_attempt_at = fields.DateTime(
        data_key="nextVerificationAttemptAt", allow_none=True
    )
    created_at = fields.DateTime(data_key="createdAt")


class VerificationInstructionsSchema(Schema):
    """DNS record the tenant must publish."""

    domain_id = fields.Integer(data_key="domainId")
    hostname = fields.String()
    record_type = fields.String(data_key="recordType")
    record_name = fields.String(data_key="recordName")
    record_value = fields.String(data_key="recordValue")
    status = fields.String()
    last_verification_error = fields.String(data_key="lastVerificationError", allow_none=True)


class WidgetConfigSchema(Schema):
    """Public embed configuration for a verified site."""

    domain_id = fields.Integer(data_key="domainId")
    api_key = fields.String(data_key="apiKey")
    widget_url = fields.String(data_key="widgetUrl")
    is_verified = fields.Boolean(data_key="isVerified")
