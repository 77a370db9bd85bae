"""
QueryContext: cancellation and deadline for driver calls.

A DataSet checks the context before each query/exec/prepare call and passes
its remaining time on as the statement timeout. ``cancel()`` may be called
from another thread; it interrupts whatever driver call is registered via
``running()`` at that moment.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from pydataset.core.exceptions import QueryCancelledError

_log = logging.getLogger(__name__)


class QueryContext:
    def __init__(self, timeout: float | None = None) -> None:
        self._deadline = time.monotonic() + timeout if timeout is not None else None
        self._cancelled = threading.Event()
        self._lock = threading.Lock()
        self._interrupts: list[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    def remaining(self) -> float | None:
        """Seconds left before the deadline, ``None`` when there is none."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def check(self) -> None:
        """Raise QueryCancelledError if cancelled or past the deadline."""
        if self.cancelled:
            raise QueryCancelledError("Query cancelled")
        if self.expired:
            raise QueryCancelledError("Query deadline exceeded")

    def cancel(self) -> None:
        self._cancelled.set()
        with self._lock:
            interrupts = list(self._interrupts)
        for interrupt in interrupts:
            try:
                interrupt()
            except Exception:
                _log.warning("Interrupting driver call failed", exc_info=True)

    @contextmanager
    def running(self, interrupt: Callable[[], None] | None) -> Iterator[None]:
        """Register *interrupt* for the duration of one driver call."""
        self.check()
        if interrupt is None:
            yield
            return
        with self._lock:
            self._interrupts.append(interrupt)
        try:
            yield
        finally:
            with self._lock:
                self._interrupts.remove(interrupt)
