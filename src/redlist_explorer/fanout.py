"""
Bounded scatter/gather for provider sub-fetches.

Every call in a phase runs on a small thread pool. The phase ends when all
calls have settled or when the phase timeout expires, whichever comes first;
calls still running at that point are reported as timed out and their
results are discarded.

Failures never propagate out of :func:`gather`. Each slot comes back as an
:class:`Outcome` that keeps the failure reason for logging but folds to a
default value for aggregation::

    outcomes = gather({"total": lambda: count(query)}, timeout=10, max_workers=4)
    total = outcomes["total"].value_or(0)
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TIMEOUT = 15.0
DEFAULT_MAX_WORKERS = 12


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Result of one sub-fetch: either a value or a failure reason."""

    value: T | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def value_or(self, default: T) -> T:
        """Return the value, or ``default`` if the call failed or returned None."""
        if self.error is not None or self.value is None:
            return default
        return self.value

    @classmethod
    def success(cls, value: T) -> Outcome[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, reason: str) -> Outcome[T]:
        return cls(error=reason)


def _describe(exc: BaseException) -> str:
    return f"{type(exc).__name__}: {exc}"


def gather(
    calls: Mapping[str, Callable[[], Any]],
    *,
    timeout: float = DEFAULT_TIMEOUT,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> dict[str, Outcome[Any]]:
    """
    Run named zero-argument callables concurrently and collect their outcomes.

    Args:
        calls: Slot name -> callable. Order is preserved in the result.
        timeout: Seconds to wait for the whole phase before giving up on
            the calls that have not finished.
        max_workers: Upper bound on concurrent calls.

    Returns:
        Slot name -> Outcome, one entry per input call.
    """
    if not calls:
        return {}

    outcomes: dict[str, Outcome[Any]] = {}
    executor = ThreadPoolExecutor(
        max_workers=max(1, min(max_workers, len(calls))),
        thread_name_prefix="fanout",
    )
    try:
        futures: dict[Future[Any], str] = {executor.submit(fn): name for name, fn in calls.items()}
        done, not_done = wait(futures, timeout=timeout)

        for future in done:
            name = futures[future]
            exc = future.exception()
            if exc is not None:
                outcomes[name] = Outcome.failure(_describe(exc))
            else:
                outcomes[name] = Outcome.success(future.result())

        for future in not_done:
            future.cancel()
            outcomes[futures[future]] = Outcome.failure(f"timed out after {timeout:g}s")
    finally:
        # Don't block on stalled providers; their results are already discarded.
        executor.shutdown(wait=False, cancel_futures=True)

    for name, outcome in outcomes.items():
        if not outcome.ok:
            logger.warning("Sub-fetch %r failed: %s", name, outcome.error)

    return {name: outcomes[name] for name in calls}
