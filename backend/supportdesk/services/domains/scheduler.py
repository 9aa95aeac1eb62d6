"""Background worker that verifies pending domain claims over DNS."""

from __future__ import annotations

import logging
import threading
from collections import Counter
from collections.abc import Callable, Iterator
from contextlib import AbstractContextManager, contextmanager, nullcontext
from datetime import datetime
from typing import TYPE_CHECKING, Any

from flask import has_app_context

from supportdesk.core.clock import utcnow
from supportdesk.models.domain import DomainClaim
from supportdesk.services._shared.ports import (
    DomainClaimStore,
    NoopCoordinator,
    SchedulerCoordinator,
    TxtResolver,
)
from supportdesk.services.domains.dto import (
    VerificationConfig,
    VerificationOutcome,
    VerificationSummary,
)
from supportdesk.services.domains.policy import (
    lookup_name,
    normalize_hostname,
    record_error,
    record_match,
    record_miss,
    txt_record_matches,
)
from supportdesk.uow.sqlalchemy_uow import SQLAlchemyUnitOfWork

if TYPE_CHECKING:
    from flask import Flask

log = logging.getLogger(__name__)

StoreScope = Callable[[], AbstractContextManager[DomainClaimStore]]


@contextmanager
def sqlalchemy_claim_scope() -> Iterator[DomainClaimStore]:
    """Open a unit of work whose commit persists the whole batch at once."""
    with SQLAlchemyUnitOfWork() as uow:
        yield uow.domains


class DomainVerificationScheduler:
    """
    Periodically checks due claims for their TXT record.

    Responsibilities:
    - Run ticks on a daemon thread until the stop event is set.
    - Skip a tick while another one is still running in this process.
    - Ask the coordinator whether this process owns the tick.
    - Turn every per-claim failure into backoff state; a bad claim never
      aborts the batch.

    Usage::

        scheduler = DomainVerificationScheduler(resolver=..., config=...)
        scheduler.run_once()   # one tick, synchronously
        scheduler.start()      # background loop
        scheduler.stop()
    """

    LOCK_NAME = "domains:verification"

    def __init__(
        self,
        *,
        resolver: TxtResolver,
        config: VerificationConfig | None = None,
        store_scope: StoreScope | None = None,
        coordinator: SchedulerCoordinator | None = None,
        clock: Callable[[], datetime] | None = None,
        app: Flask | None = None,
    ) -> None:
        """
        :param resolver: TXT lookups.
        :param config: Batch size, backoff and interval settings.
        :param store_scope: Factory of a context manager yielding the claim
            store; leaving it persists the batch.
        :param coordinator: Cross-process tick ownership (default: none).
        :param clock: Optional UTC clock override.
        :param app: Application whose context is pushed around each tick.
        """
        self._resolver = resolver
        self._config = config or VerificationConfig()
        self._store_scope = store_scope or sqlalchemy_claim_scope
        self._coordinator = coordinator or NoopCoordinator()
        self._clock = clock or utcnow
        self._app = app

        self._stop = threading.Event()
        self._run_lock = threading.Lock()
        self._thread: threading.Thread | None = None

    @property
    def config(self) -> VerificationConfig:
        return self._config

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def now(self) -> datetime:
        return self._clock()

    # ------------------------------------------------------------------ #
    # Ticks
    # ------------------------------------------------------------------ #

    def run_once(self) -> VerificationSummary:
        """
        Check one batch of due claims.

        Returns immediately with ``skipped=True`` when a tick is already in
        progress here or another instance holds the coordinator lock.
        """
        if not self._run_lock.acquire(blocking=False):
            log.info("domains.verification.skipped: reason=tick_in_progress")
            return VerificationSummary(skipped=True)
        try:
            with self._app_context(), self._coordinator.acquire(self.LOCK_NAME) as acquired:
                if not acquired:
                    log.info("domains.verification.skipped: reason=lock_not_acquired")
                    return VerificationSummary(skipped=True)
                return self._process_batch()
        finally:
            self._run_lock.release()

    def _process_batch(self) -> VerificationSummary:
        counts: Counter[VerificationOutcome] = Counter()
        with self._store_scope() as store:
            claims = store.find_due_pending(self._config.batch_size, self.now())
            touched: list[DomainClaim] = []
            for claim in claims:
                if self._stop.is_set():
                    log.info(
                        "domains.verification.interrupted: remaining=%s",
                        len(claims) - len(touched),
                    )
                    break
                counts[self.check_claim(claim)] += 1
                touched.append(claim)
            if touched:
                store.update(touched)

        summary = VerificationSummary(
            checked=len(touched),
            verified=counts[VerificationOutcome.VERIFIED],
            retrying=counts[VerificationOutcome.RETRY],
            failed=counts[VerificationOutcome.FAILED],
            errored=counts[VerificationOutcome.ERROR],
        )
        if summary.checked:
            log.info(
                "domains.verification.tick: verified=%s retrying=%s failed=%s errored=%s",
                summary.verified,
                summary.retrying,
                summary.failed,
                summary.errored,
                extra={"processed": summary.checked},
            )
        return summary

    def check_claim(self, claim: DomainClaim) -> VerificationOutcome:
        """Look up one claim's TXT records and record the outcome on it."""
        host = lookup_name(normalize_hostname(claim.hostname))
        try:
            records = self._resolver.lookup_txt(host)
        except Exception as exc:
            log.warning(
                "domains.verification.error: hostname=%s error=%s",
                host,
                exc,
                extra={"domain_id": claim.id},
            )
            return record_error(claim, self.now(), str(exc) or type(exc).__name__, self._config)

        now = self.now()
        if txt_record_matches(records, claim.verification_code):
            log.info(
                "domains.verification.matched: hostname=%s", host, extra={"domain_id": claim.id}
            )
            return record_match(claim, now)

        outcome = record_miss(claim, now, self._config)
        log.info(
            "domains.verification.unmatched: hostname=%s attempts=%s outcome=%s",
            host,
            claim.verification_attempts,
            outcome.value,
            extra={"domain_id": claim.id},
        )
        return outcome

    # ------------------------------------------------------------------ #
    # Loop
    # ------------------------------------------------------------------ #

    def start(self) -> None:
        """Start the background loop on a daemon thread."""
        if self.is_running:
            log.warning("domains.scheduler.already_running")
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self.run_forever, name="domain-verification", daemon=True
        )
        self._thread.start()
        log.info(
            "domains.scheduler.started: interval_seconds=%s", self._config.interval_seconds
        )

    def stop(self, timeout: float | None = None) -> None:
        """Signal the loop to stop and wait for the current tick to finish."""
        self._stop.set()
        thread, self._thread = self._thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
            log.info("domains.scheduler.stopped")

    def run_forever(self) -> None:
        """Tick until :meth:`stop` is called; used by the thread and the CLI worker."""
        while not self._stop.is_set():
            try:
                self.run_once()
            except Exception:
                log.exception("domains.scheduler.tick_failed")
            self._stop.wait(self._config.interval_seconds)

    def _app_context(self) -> AbstractContextManager[Any]:
        if self._app is not None and not has_app_context():
            return self._app.app_context()
        return nullcontext()
