"""Tests for single-flight scheduling and debouncing."""

import threading
import time

from analysis.engine import AnalysisRequest, AnalysisResult
from analysis.scheduler import AnalysisScheduler, Debouncer


class BlockingRun:
    """Run function that blocks until released and records its requests."""

    def __init__(self):
        self.requests = []
        self.started = threading.Event()
        self.release = threading.Event()
        self.tokens = []

    def __call__(self, request, token):
        self.requests.append(request)
        self.tokens.append(token)
        self.started.set()
        assert self.release.wait(timeout=5)
        return AnalysisResult()


def start_blocking_auto(scheduler, run):
    scheduler.submit_auto(AnalysisRequest(explicit=False))
    assert run.started.wait(timeout=5)


class TestAnalysisScheduler:
    def test_explicit_run_returns_result(self):
        scheduler = AnalysisScheduler(lambda request, token: AnalysisResult(completed=True))

        result = scheduler.run_explicit(AnalysisRequest())

        assert result.completed
        assert scheduler.last_result is result
        assert not scheduler.busy

    def test_explicit_rejected_while_busy(self, caplog):
        run = BlockingRun()
        scheduler = AnalysisScheduler(run)
        start_blocking_auto(scheduler, run)

        assert scheduler.run_explicit(AnalysisRequest()) is None
        assert "already running" in caplog.text

        run.release.set()
        assert scheduler.wait_idle(timeout=5)
        assert len(run.requests) == 1

    def test_auto_requests_coalesce_to_latest(self):
        run = BlockingRun()
        scheduler = AnalysisScheduler(run)
        start_blocking_auto(scheduler, run)

        for name in ("a.tex", "b.tex", "c.tex"):
            scheduler.submit_auto(AnalysisRequest(changed_file=name, explicit=False))
        run.release.set()

        assert scheduler.wait_idle(timeout=5)
        assert [r.changed_file for r in run.requests] == [None, "c.tex"]

    def test_auto_runs_on_worker_thread(self):
        threads = []
        done = threading.Event()

        def run(request, token):
            threads.append(threading.current_thread())
            done.set()
            return AnalysisResult()

        scheduler = AnalysisScheduler(run)
        scheduler.submit_auto(AnalysisRequest(explicit=False))

        assert done.wait(timeout=5)
        assert scheduler.wait_idle(timeout=5)
        assert threads[0] is not threading.main_thread()

    def test_cancel_sets_token_and_drops_pending(self):
        run = BlockingRun()
        scheduler = AnalysisScheduler(run)
        start_blocking_auto(scheduler, run)
        scheduler.submit_auto(AnalysisRequest(changed_file="pending.tex", explicit=False))

        scheduler.cancel()
        run.release.set()

        assert scheduler.wait_idle(timeout=5)
        assert run.tokens[0].cancelled
        assert len(run.requests) == 1

    def test_failed_run_frees_the_scheduler(self):
        def run(request, token):
            raise RuntimeError("boom")

        scheduler = AnalysisScheduler(run)

        assert scheduler.run_explicit(AnalysisRequest()) is None
        assert not scheduler.busy

    def test_wait_idle_times_out(self):
        run = BlockingRun()
        scheduler = AnalysisScheduler(run)
        start_blocking_auto(scheduler, run)

        assert scheduler.wait_idle(timeout=0.05) is False

        run.release.set()
        assert scheduler.wait_idle(timeout=5)


class TestDebouncer:
    def test_fires_once_after_quiet_period(self):
        calls = []
        fired = threading.Event()

        def callback(value):
            calls.append(value)
            fired.set()

        debouncer = Debouncer(0.05, callback)
        for value in range(5):
            debouncer.trigger(value)

        assert fired.wait(timeout=5)
        time.sleep(0.1)
        assert calls == [4]
        assert not debouncer.pending

    def test_cancel_prevents_callback(self):
        calls = []
        debouncer = Debouncer(0.05, lambda: calls.append(1))

        debouncer.trigger()
        debouncer.cancel()
        time.sleep(0.1)

        assert calls == []
