from __future__ import annotations

from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from typing import Protocol


class SchedulerCoordinator(Protocol):
    """Decides whether this process may run a scheduled tick.

    ``acquire`` yields ``True`` when the caller holds the right to run and
    ``False`` when another instance does; the right is released on exit.
    """

    def acquire(self, name: str) -> AbstractContextManager[bool]: ...


class NoopCoordinator(SchedulerCoordinator):
    """Single-instance deployments: every tick may run."""

    @contextmanager
    def acquire(self, name: str) -> Iterator[bool]:
        yield True
