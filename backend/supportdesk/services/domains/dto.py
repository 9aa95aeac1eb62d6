# supportdesk/services/domains/dto.py
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

# ------------------------------ Config DTO -------------------------------- #


@dataclass(frozen=True, slots=True)
class VerificationConfig:
    """
    Settings for the DNS verification worker.

    :param interval_seconds: Pause between ticks.
    :param batch_size: Claims checked per tick.
    :param max_attempts: Unmatched checks before a claim is marked failed.
    :param max_backoff_minutes: Ceiling of the exponential retry delay.
    :param error_retry_minutes: Fixed retry delay after a lookup error.
    :param dns_timeout_seconds: Lifetime of a single TXT lookup.
    """

    interval_seconds: int = 300
    batch_size: int = 20
    max_attempts: int = 10
    max_backoff_minutes: int = 60
    error_retry_minutes: int = 15
    dns_timeout_seconds: float = 5.0

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> VerificationConfig:
        return cls(
            interval_seconds=int(config.get("DOMAIN_VERIFICATION_INTERVAL_SECONDS", 300)),
            batch_size=int(config.get("DOMAIN_VERIFICATION_BATCH_SIZE", 20)),
            max_attempts=int(config.get("DOMAIN_VERIFICATION_MAX_ATTEMPTS", 10)),
            max_backoff_minutes=int(config.get("DOMAIN_VERIFICATION_MAX_BACKOFF_MINUTES", 60)),
            error_retry_minutes=int(config.get("DOMAIN_VERIFICATION_ERROR_RETRY_MINUTES", 15)),
            dns_timeout_seconds=float(config.get("DOMAIN_VERIFICATION_DNS_TIMEOUT_SECONDS", 5)),
        )


class VerificationOutcome(str, Enum):
    """Result of checking one claim."""

    VERIFIED = "verified"
    RETRY = "retry"
    FAILED = "failed"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class VerificationSummary:
    """Counts for one scheduler tick; ``skipped`` when the tick did not run."""

    checked: int = 0
    verified: int = 0
    retrying: int = 0
    failed: int = 0
    errored: int = 0
    skipped: bool = False


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class DomainOut:
    id: int
    hostname: str
    status: str
    is_verified: bool
    verified_at: datetime | None
    verification_code: str
    api_key: str
    verification_attempts: int
    last_verification_attempt_at: datetime | None
    last_verification_error: str | None
    next_verification_attempt_at: datetime | None
    created_at: datetime


@dataclass(frozen=True, slots=True)
class VerificationInstructionsOut:
    """
    What the tenant must publish at their DNS provider.

    :param record_type: Always ``TXT``.
    :param record_name: Host the record goes on.
    :param record_value: The claim's verification code.
    """

    domain_id: int
    hostname: str
    record_type: str
    record_name: str
    record_value: str
    status: str
    last_verification_error: str | None


@dataclass(frozen=True, slots=True)
class WidgetConfigOut:
    domain_id: int
    api_key: str
    widget_url: str
    is_verified: bool
