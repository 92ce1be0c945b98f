"""Single-flight scheduling of analysis runs.

At most one run executes at a time. An explicit request made while a run is
in flight is rejected with a notice. Automatic requests (file saves) are
coalesced: only the most recent pending one is kept, and it starts once the
in-flight run finishes.
"""

import threading
from collections.abc import Callable
from typing import Any

from checks.llm.reviewer import CancellationToken
from common.logger import get_logger

from .engine import AnalysisRequest, AnalysisResult

logger = get_logger(__name__)

RunFunction = Callable[[AnalysisRequest, CancellationToken], AnalysisResult]

__all__ = ["AnalysisScheduler", "CancellationToken", "Debouncer"]


class AnalysisScheduler:
    """Gate around a run function."""

    def __init__(self, run: RunFunction):
        """Initialize the scheduler.

        Args:
            run: Executes one request (usually ``AnalysisEngine.run``)
        """
        self._run = run
        self._lock = threading.Lock()
        self._idle = threading.Condition(self._lock)
        self._running = False
        self._pending: AnalysisRequest | None = None
        self._token: CancellationToken | None = None
        self._worker: threading.Thread | None = None
        self.last_result: AnalysisResult | None = None

    @property
    def busy(self) -> bool:
        with self._lock:
            return self._running

    def run_explicit(self, request: AnalysisRequest) -> AnalysisResult | None:
        """Run a user-requested analysis on the calling thread.

        Returns:
            The result, or None if another run is in flight
        """
        with self._lock:
            if self._running:
                logger.warning("Analysis already running; request ignored")
                return None
            self._running = True
            self._token = CancellationToken()
            token = self._token

        try:
            return self._execute(request, token)
        finally:
            self._finish()

    def submit_auto(self, request: AnalysisRequest) -> None:
        """Queue an automatic analysis; replaces any pending automatic request."""
        with self._lock:
            if self._running:
                if self._pending is not None:
                    logger.debug("Replacing pending automatic analysis")
                self._pending = request
                return
            self._start_worker(request)

    def cancel(self) -> None:
        """Ask the in-flight run to stop between reviewed elements."""
        with self._lock:
            if self._token is not None:
                self._token.cancel()
            self._pending = None

    def wait_idle(self, timeout: float | None = None) -> bool:
        """Block until no run is in flight or pending.

        Returns:
            False if the timeout expired first
        """
        with self._idle:
            return self._idle.wait_for(lambda: not self._running and self._pending is None, timeout)

    def _start_worker(self, request: AnalysisRequest) -> None:
        # Caller holds the lock
        self._running = True
        self._token = CancellationToken()
        self._worker = threading.Thread(
            target=self._worker_loop,
            args=(request, self._token),
            name="thesis-lint-analysis",
            daemon=True,
        )
        self._worker.start()

    def _worker_loop(self, request: AnalysisRequest, token: CancellationToken) -> None:
        try:
            self._execute(request, token)
        finally:
            self._finish()

    def _execute(self, request: AnalysisRequest, token: CancellationToken) -> AnalysisResult | None:
        try:
            result = self._run(request, token)
        except Exception:
            logger.exception("Analysis run failed")
            return None
        self.last_result = result
        return result

    def _finish(self) -> None:
        with self._lock:
            self._running = False
            self._token = None
            pending, self._pending = self._pending, None
            if pending is not None:
                self._start_worker(pending)
            else:
                self._idle.notify_all()


class Debouncer:
    """Delay a callback until triggers stop arriving for ``delay`` seconds."""

    def __init__(self, delay: float, callback: Callable[..., Any]):
        self.delay = delay
        self.callback = callback
        self._lock = threading.Lock()
        self._timer: threading.Timer | None = None

    def trigger(self, *args: Any) -> None:
        """(Re)start the countdown; the callback receives the latest args."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self.delay, self._fire, args=args)
            self._timer.daemon = True
            self._timer.start()

    def _fire(self, *args: Any) -> None:
        with self._lock:
            if self._timer is threading.current_thread():
                self._timer = None
        self.callback(*args)

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._timer is not None
