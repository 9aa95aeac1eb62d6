"""Hostname keys, TXT matching and retry bookkeeping for domain claims."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from supportdesk.models.domain import DomainClaim, DomainStatus
from supportdesk.services.domains.dto import VerificationConfig, VerificationOutcome
from supportdesk.services.domains.policy import (
    API_KEY_PREFIX,
    VERIFICATION_CODE_PREFIX,
    backoff_delay,
    build_claim,
    is_valid_hostname,
    lookup_name,
    normalize_hostname,
    record_error,
    record_match,
    record_miss,
    txt_record_matches,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
CONFIG = VerificationConfig()


def _pending(**overrides) -> DomainClaim:
    fields = dict(
        tenant_id=1,
        hostname="example.com",
        verification_code="cs-verify-abc123",
        api_key="sk_live_0",
        status=DomainStatus.PENDING,
        is_verified=False,
        verification_attempts=0,
        created_at=NOW,
    )
    fields.update(overrides)
    return DomainClaim(**fields)


# ------------------------------ Hostnames ----------------------------------
@pytest.mark.parametrize(
    "raw, expected",
    [
        ("example.com", "example.com"),
        ("https://WWW.Example.com:8443/path?q=1", "example.com"),
        ("http://user:pw@shop.example.com/", "shop.example.com"),
        ("www.www.example.com", "example.com"),
        ("www.com", "www.com"),
        ("https://WWW.com/", "www.com"),
        ("example.com.", "example.com"),
        ("  Example.COM  ", "example.com"),
        ("http://localhost:3000/app", "localhost:3000"),
        ("127.0.0.1:8080", "127.0.0.1:8080"),
        ("http://[::1]:5173", "[::1]:5173"),
        ("", ""),
        ("   ", ""),
    ],
)
def test_normalize_hostname(raw, expected):
    assert normalize_hostname(raw) == expected


@pytest.mark.parametrize(
    "raw",
    [
        "https://www.www.Example.com./x",
        "www.com",
        "http://localhost:3000",
        "http://[::1]:80",
        "a.b.c",
    ],
)
def test_normalize_hostname_is_idempotent(raw):
    once = normalize_hostname(raw)
    assert normalize_hostname(once) == once


@pytest.mark.parametrize(
    "host, valid",
    [
        ("example.com", True),
        ("shop.example.co.uk", True),
        ("www.com", True),
        ("localhost:3000", True),
        ("[::1]:5173", True),
        ("example", False),
        ("-bad.example.com", False),
        ("bad-.example.com", False),
        ("exa mple.com", False),
        ("", False),
    ],
)
def test_is_valid_hostname(host, valid):
    assert is_valid_hostname(host) is valid


def test_lookup_name_drops_loopback_port():
    assert lookup_name("localhost:3000") == "localhost"
    assert lookup_name("[::1]:5173") == "::1"
    assert lookup_name("example.com") == "example.com"


# --------------------------- Claim construction ----------------------------
def test_build_claim_starts_pending_with_fresh_secrets():
    a = build_claim(tenant_id=7, hostname="example.com", now=NOW)
    b = build_claim(tenant_id=7, hostname="example.com", now=NOW)

    assert a.status == DomainStatus.PENDING
    assert a.is_verified is False
    assert a.verification_attempts == 0
    assert a.next_verification_attempt_at is None
    assert a.verification_code.startswith(VERIFICATION_CODE_PREFIX)
    assert a.api_key.startswith(API_KEY_PREFIX)
    assert a.verification_code != b.verification_code
    assert a.api_key != b.api_key


# ------------------------------ TXT matching -------------------------------
def test_txt_record_matches_trims_quotes_and_case():
    code = "cs-verify-ABC"
    assert txt_record_matches(['  "cs-verify-abc"  '], code)
    assert txt_record_matches(["v=spf1 -all", "CS-VERIFY-abc"], code)
    assert not txt_record_matches(["cs-verify-abcd"], code)
    assert not txt_record_matches([], code)


# -------------------------------- Backoff ----------------------------------
def test_backoff_is_non_decreasing_and_capped():
    delays = [backoff_delay(n) for n in range(0, 40)]
    assert delays[:4] == [timedelta(minutes=m) for m in (1, 2, 4, 8)]
    assert all(a <= b for a, b in zip(delays, delays[1:]))
    assert max(delays) == timedelta(minutes=60)
    assert backoff_delay(-3) == timedelta(minutes=1)
    assert backoff_delay(10, max_minutes=5) == timedelta(minutes=5)


# ------------------------------ Transitions --------------------------------
def test_match_verifies_and_clears_bookkeeping():
    claim = _pending(
        verification_attempts=3,
        last_verification_error="old",
        next_verification_attempt_at=NOW,
    )

    assert record_match(claim, NOW) is VerificationOutcome.VERIFIED
    assert claim.status == DomainStatus.VERIFIED
    assert claim.is_verified and claim.is_usable
    assert claim.verified_at == NOW
    assert claim.verification_attempts == 3
    assert claim.last_verification_error is None
    assert claim.next_verification_attempt_at is None


def test_miss_counts_attempt_and_backs_off():
    claim = _pending(verification_attempts=2)

    assert record_miss(claim, NOW, CONFIG) is VerificationOutcome.RETRY
    assert claim.verification_attempts == 3
    assert claim.status == DomainStatus.PENDING
    assert claim.next_verification_attempt_at == NOW + timedelta(minutes=8)
    assert claim.last_verification_attempt_at == NOW
    assert "cs-verify-abc123" in claim.last_verification_error


def test_error_uses_fixed_retry_and_truncates_message():
    claim = _pending()

    outcome = record_error(claim, NOW, "x" * 2000, CONFIG)

    assert outcome is VerificationOutcome.ERROR
    assert claim.verification_attempts == 1
    assert claim.next_verification_attempt_at == NOW + timedelta(minutes=15)
    assert len(claim.last_verification_error) == 500


@pytest.mark.parametrize("recorder", ["miss", "error"])
def test_attempt_ceiling_fails_claim_for_good(recorder):
    claim = _pending(verification_attempts=CONFIG.max_attempts - 1)

    if recorder == "miss":
        outcome = record_miss(claim, NOW, CONFIG)
    else:
        outcome = record_error(claim, NOW, "timeout", CONFIG)

    assert outcome is VerificationOutcome.FAILED
    assert claim.status == DomainStatus.FAILED
    assert claim.verification_attempts == CONFIG.max_attempts
    assert claim.next_verification_attempt_at is None
    assert not claim.is_usable


def test_repeated_misses_reach_ceiling_after_max_attempts():
    config = VerificationConfig(max_attempts=3)
    claim = _pending()
    outcomes = [record_miss(claim, NOW + timedelta(hours=i), config) for i in range(3)]
    assert outcomes == [
        VerificationOutcome.RETRY,
        VerificationOutcome.RETRY,
        VerificationOutcome.FAILED,
    ]
