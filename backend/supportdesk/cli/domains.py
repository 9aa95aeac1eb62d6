"""Flask CLI commands driving DNS domain verification."""

from __future__ import annotations

import logging
import signal

import click
from flask.cli import with_appcontext

from supportdesk.services.domains.dto import VerificationSummary
from supportdesk.services.domains.lifecycle import get_scheduler

LOGGER = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    """Raise logging verbosity for the verification modules when requested."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.getLogger("supportdesk.services.domains").setLevel(level)
    LOGGER.setLevel(level)


def _echo_summary(summary: VerificationSummary) -> None:
    if summary.skipped:
        click.echo("Tick skipped: another verification run holds the lock.")
        return
    click.echo("Verification summary:")
    click.echo(f"  checked   {summary.checked:>4}")
    click.echo(f"  verified  {summary.verified:>4}")
    click.echo(f"  retrying  {summary.retrying:>4}")
    click.echo(f"  failed    {summary.failed:>4}")
    click.echo(f"  errored   {summary.errored:>4}")


@click.group("domains")
@click.option("--verbose", is_flag=True, help="Enable verbose logging for verification.")
def domains_cli(verbose: bool) -> None:
    """Domain verification commands."""
    _configure_logging(verbose)


@domains_cli.command("verify-pending")
@with_appcontext
def verify_pending() -> None:
    """Check one batch of due domain claims now."""
    _echo_summary(get_scheduler().run_once())


@domains_cli.command("worker")
@with_appcontext
def worker() -> None:
    """Run the verification loop in the foreground until interrupted."""
    scheduler = get_scheduler()
    if scheduler.is_running:
        raise click.UsageError("The verification scheduler is already running in this process.")

    def _stop(signum, _frame) -> None:
        LOGGER.info("domains.worker.signal: signum=%s", signum)
        scheduler.stop()

    signal.signal(signal.SIGTERM, _stop)
    click.echo(
        f"Verifying pending domains every {scheduler.config.interval_seconds}s (Ctrl+C to stop)."
    )
    try:
        scheduler.run_forever()
    except KeyboardInterrupt:
        scheduler.stop()
    click.echo("Verification worker stopped.")
