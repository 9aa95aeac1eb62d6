"""Pure rules for domain claims: hostname keys, TXT matching and backoff.

Nothing here touches storage; the scheduler and the registry service apply
these functions to claims they loaded through a store.
"""

from __future__ import annotations

import re
import secrets
from collections.abc import Iterable
from datetime import datetime, timedelta
from urllib.parse import urlsplit
from uuid import uuid4

from supportdesk.models.domain import LAST_ERROR_MAX_LENGTH, DomainClaim, DomainStatus
from supportdesk.services.domains.dto import VerificationConfig, VerificationOutcome

LOOPBACK_HOSTS = frozenset({"localhost", "127.0.0.1", "::1"})
VERIFICATION_CODE_PREFIX = "cs-verify-"
API_KEY_PREFIX = "sk_live_"

_LABEL = r"(?!-)[a-z0-9-]{1,63}(?<!-)"
_HOSTNAME_RE = re.compile(rf"^(?=.{{1,253}}$){_LABEL}(\.{_LABEL})+$")


# ------------------------------ Hostnames ----------------------------------


def normalize_hostname(value: str) -> str:
    """
    Reduce a user-supplied URL or hostname to its comparison key.

    Lower-cases, strips the scheme, credentials, path, query, a leading
    ``www.`` (unless it is the registrable name itself, as in ``www.com``) and
    a trailing dot; drops the port unless the host is loopback.
    Applying it twice gives the same result as applying it once.

    :param value: Anything from ``example.com`` to ``https://WWW.Example.com:8443/x``.
    :returns: The key, or ``""`` when nothing host-like is left.
    """
    raw = (value or "").strip()
    if not raw:
        return ""
    parts = urlsplit(raw if "://" in raw else f"//{raw}")
    host = (parts.hostname or "").rstrip(".")
    while host.startswith("www.") and host.count(".") >= 2:
        host = host[4:]
    try:
        port = parts.port
    except ValueError:
        port = None
    if port is not None and host in LOOPBACK_HOSTS:
        return f"[{host}]:{port}" if ":" in host else f"{host}:{port}"
    return host


def is_valid_hostname(hostname: str) -> bool:
    """Whether a normalized key names a claimable host."""
    host = hostname
    if host.startswith("[::1]") or host.split(":", 1)[0] in LOOPBACK_HOSTS:
        return True
    return bool(_HOSTNAME_RE.match(host))


def lookup_name(hostname: str) -> str:
    """DNS name to query for a normalized key (loopback ports removed)."""
    if hostname.startswith("["):
        return hostname[1:].split("]", 1)[0]
    return hostname.split(":", 1)[0]


# --------------------------- Claim construction ----------------------------


def generate_verification_code() -> str:
    return f"{VERIFICATION_CODE_PREFIX}{uuid4().hex}"


def generate_api_key() -> str:
    return f"{API_KEY_PREFIX}{secrets.token_hex(16)}"


def build_claim(*, tenant_id: int, hostname: str, now: datetime) -> DomainClaim:
    """Return a fresh ``PENDING`` claim with new secrets and zeroed bookkeeping."""
    return DomainClaim(
        tenant_id=tenant_id,
        hostname=hostname,
        verification_code=generate_verification_code(),
        api_key=generate_api_key(),
        status=DomainStatus.PENDING,
        is_verified=False,
        verification_attempts=0,
        created_at=now,
        updated_at=now,
    )


# ------------------------------ Verification -------------------------------


def txt_record_matches(records: Iterable[str], code: str) -> bool:
    """True when any record equals ``code`` after trimming, ignoring case."""
    expected = code.strip().casefold()
    return any(record.strip().strip('"').casefold() == expected for record in records)


def backoff_delay(attempts: int, max_minutes: int = 60) -> timedelta:
    """
    Delay before the next check after ``attempts`` unmatched checks.

    ``min(max_minutes, 2 ** attempts)`` minutes: non-decreasing in
    ``attempts`` and capped.
    """
    exponent = min(max(int(attempts), 0), 32)
    return timedelta(minutes=min(max_minutes, 2**exponent))


def missing_record_message(code: str) -> str:
    return f"TXT record matching verification code '{code}' not found."


def record_match(claim: DomainClaim, now: datetime) -> VerificationOutcome:
    """Mark the claim verified and clear its retry bookkeeping."""
    claim.status = DomainStatus.VERIFIED
    claim.is_verified = True
    claim.verified_at = now
    claim.last_verification_attempt_at = now
    claim.last_verification_error = None
    claim.next_verification_attempt_at = None
    return VerificationOutcome.VERIFIED


def record_miss(
    claim: DomainClaim, now: datetime, config: VerificationConfig
) -> VerificationOutcome:
    """Count an unmatched check and schedule an exponential retry (or fail)."""
    attempts = (claim.verification_attempts or 0) + 1
    return _record_failure(
        claim,
        now,
        missing_record_message(claim.verification_code),
        backoff_delay(attempts, config.max_backoff_minutes),
        config,
        VerificationOutcome.RETRY,
    )


def record_error(
    claim: DomainClaim, now: datetime, error: str, config: VerificationConfig
) -> VerificationOutcome:
    """Count a failed lookup and schedule a retry after the fixed fallback."""
    return _record_failure(
        claim,
        now,
        error,
        timedelta(minutes=config.error_retry_minutes),
        config,
        VerificationOutcome.ERROR,
    )


def _record_failure(
    claim: DomainClaim,
    now: datetime,
    message: str,
    delay: timedelta,
    config: VerificationConfig,
    outcome: VerificationOutcome,
) -> VerificationOutcome:
    claim.verification_attempts = (claim.verification_attempts or 0) + 1
    claim.last_verification_attempt_at = now
    claim.last_verification_error = message[:LAST_ERROR_MAX_LENGTH]
    if claim.verification_attempts >= config.max_attempts:
        claim.status = DomainStatus.FAILED
        claim.next_verification_attempt_at = None
        return VerificationOutcome.FAILED
    claim.next_verification_attempt_at = now + delay
    return outcome
