# supportdesk/services/domains/service.py
from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from sqlalchemy.exc import IntegrityError

from supportdesk.models.domain import DomainClaim, DomainStatus
from supportdesk.services._shared.base import BaseService
from supportdesk.services._shared.result import ErrorKind, Result
from supportdesk.services.domains.dto import (
    DomainOut,
    VerificationInstructionsOut,
    WidgetConfigOut,
)
from supportdesk.services.domains.policy import (
    build_claim,
    is_valid_hostname,
    normalize_hostname,
)

log = logging.getLogger(__name__)

INVALID_HOSTNAME = "A valid domain name is required"
DOMAIN_TAKEN = "This domain is already registered for your account"
DOMAIN_NOT_FOUND = "Domain not found"
DOMAIN_NOT_VERIFIED = "Domain not verified"
TRY_AGAIN_LATER = "An error occurred. Please try again later."


class DomainService(BaseService):
    """
    Tenant-facing registry of domain claims and the public widget lookup.

    Verification itself happens in the background worker; this service only
    creates, lists and removes claims and reads their state.
    """

    def __init__(
        self,
        *,
        widget_url: str = "",
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """
        :param widget_url: Script URL handed to embedding sites.
        :param clock: Optional UTC clock override.
        """
        super().__init__(clock=clock)
        self.widget_url = widget_url

    def add_domain(self, tenant_id: int, raw_hostname: str) -> Result[DomainOut]:
        """
        Claim a hostname for ``tenant_id``.

        :returns: The new ``PENDING`` claim, ``VALIDATION`` for an unusable
            hostname or ``CONFLICT`` when the tenant already claimed it.
        """
        hostname = normalize_hostname(raw_hostname)
        if not hostname or not is_valid_hostname(hostname):
            return Result.failure(ErrorKind.VALIDATION, INVALID_HOSTNAME)

        try:
            with self.rw_uow() as uow:
                if uow.domains.exists(tenant_id=tenant_id, hostname=hostname):
                    return Result.failure(ErrorKind.CONFLICT, DOMAIN_TAKEN)
                claim = uow.domains.insert(
                    build_claim(tenant_id=tenant_id, hostname=hostname, now=self.now())
                )
                out = self._domain_out(claim)
        except IntegrityError:
            log.warning("domains.add.rejected: reason=duplicate hostname=%s", hostname)
            return Result.failure(ErrorKind.CONFLICT, DOMAIN_TAKEN)
        except Exception:
            log.exception("domains.add.error: hostname=%s", hostname)
            return Result.failure(ErrorKind.UNEXPECTED, TRY_AGAIN_LATER)

        log.info(
            "domains.add.succeeded: hostname=%s",
            hostname,
            extra={"tenant_id": tenant_id, "domain_id": out.id},
        )
        return Result.success(out)

    def list_domains(self, tenant_id: int) -> Result[list[DomainOut]]:
        with self.ro_uow() as uow:
            return Result.success(
                [self._domain_out(c) for c in uow.domains.list_for_tenant(tenant_id)]
            )

    def verification_instructions(
        self, tenant_id: int, domain_id: int
    ) -> Result[VerificationInstructionsOut]:
        with self.ro_uow() as uow:
            claim = uow.domains.get_for_tenant(tenant_id, domain_id)
            if claim is None:
                return Result.failure(ErrorKind.NOT_FOUND, DOMAIN_NOT_FOUND)
            return Result.success(
                VerificationInstructionsOut(
                    domain_id=claim.id,
                    hostname=claim.hostname,
                    record_type="TXT",
                    record_name=claim.hostname,
                    record_value=claim.verification_code,
                    status=DomainStatus(claim.status).value,
                    last_verification_error=claim.last_verification_error,
                )
            )

    def delete_domain(self, tenant_id: int, domain_id: int) -> Result[None]:
        """Remove a claim owned by ``tenant_id``; foreign ids look missing."""
        with self.rw_uow() as uow:
            claim = uow.domains.get_for_tenant(tenant_id, domain_id)
            if claim is None:
                return Result.failure(ErrorKind.NOT_FOUND, DOMAIN_NOT_FOUND)
            uow.domains.delete(claim)
        log.info("domains.delete.succeeded", extra={"tenant_id": tenant_id, "domain_id": domain_id})
        return Result.success(None)

    def widget_config(self, raw_hostname: str) -> Result[WidgetConfigOut]:
        """
        Resolve the embed configuration for the site hosting the widget.

        Only verified claims hand out their API key.
        """
        hostname = normalize_hostname(raw_hostname)
        if not hostname:
            return Result.failure(ErrorKind.NOT_FOUND, DOMAIN_NOT_FOUND)
        with self.ro_uow() as uow:
            claim = uow.domains.find_by_hostname(hostname)
            if claim is None:
                return Result.failure(ErrorKind.NOT_FOUND, DOMAIN_NOT_FOUND)
            if not claim.is_usable:
                log.info("domains.widget.rejected: reason=unverified hostname=%s", hostname)
                return Result.failure(ErrorKind.FORBIDDEN, DOMAIN_NOT_VERIFIED)
            return Result.success(
                WidgetConfigOut(
                    domain_id=claim.id,
                    api_key=claim.api_key,
                    widget_url=self.widget_url,
                    is_verified=True,
                )
            )

    @staticmethod
    def _domain_out(claim: DomainClaim) -> DomainOut:
        return DomainOut(
            id=claim.id,
            hostname=claim.hostname,
            status=DomainStatus(claim.status).value,
            is_verified=claim.is_verified,
            verified_at=claim.verified_at,
            verification_code=claim.verification_code,
            api_key=claim.api_key,
            verification_attempts=claim.verification_attempts,
            last_verification_attempt_at=claim.last_verification_attempt_at,
            last_verification_error=claim.last_verification_error,
            next_verification_attempt_at=claim.next_verification_attempt_at,
            created_at=claim.created_at,
        )
