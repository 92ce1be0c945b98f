"""Debounced workspace watcher that submits automatic analyses on .tex saves."""

import threading
from pathlib import Path

from watchfiles import watch

from common.constants import IGNORED_DIRS, TEX_SUFFIX
from common.env import env
from common.logger import get_logger

from .engine import AnalysisMode, AnalysisRequest
from .scheduler import AnalysisScheduler, Debouncer

logger = get_logger(__name__)


class TexFilter:
    """watchfiles filter: only .tex files outside ignored directories."""

    def __init__(self, ignored_dirs: set[str] | None = None):
        self.ignored_dirs = ignored_dirs if ignored_dirs is not None else set(IGNORED_DIRS)

    def __call__(self, change: object, path: str) -> bool:
        p = Path(path)
        if any(part in self.ignored_dirs for part in p.parts):
            return False
        return p.suffix == TEX_SUFFIX


class ChangeBatcher:
    """Collects changed paths until the debouncer fires, then submits one request.

    A single changed file takes the single-file fast path; several files
    changed within one debounce window trigger a full parse.
    """

    def __init__(self, scheduler: AnalysisScheduler, delay: float | None = None):
        self.scheduler = scheduler
        self._lock = threading.Lock()
        self._paths: set[Path] = set()
        self.debouncer = Debouncer(env.watch_debounce_seconds() if delay is None else delay, self.flush)

    def add(self, path: Path) -> None:
        with self._lock:
            self._paths.add(path)
        self.debouncer.trigger()

    def flush(self) -> None:
        with self._lock:
            paths, self._paths = self._paths, set()
        if not paths:
            return

        changed_file = next(iter(paths)) if len(paths) == 1 else None
        logger.info(f"Detected {len(paths)} changed .tex file(s), re-analyzing...")
        self.scheduler.submit_auto(
            AnalysisRequest(mode=AnalysisMode.FULL, changed_file=changed_file, explicit=False)
        )


def watch_workspace(
    workspace: Path,
    scheduler: AnalysisScheduler,
    stop_event: threading.Event | None = None,
    ignored_dirs: set[str] | None = None,
) -> None:
    """Watch ``workspace`` until interrupted or ``stop_event`` is set.

    Args:
        workspace: Workspace root
        scheduler: Receives automatic requests
        stop_event: Optional event ending the watch loop
        ignored_dirs: Directory names never watched (default: .git, node_modules, cache folder)
    """
    if ignored_dirs is None:
        ignored_dirs = set(IGNORED_DIRS) | {env.cache_dir()}
    batcher = ChangeBatcher(scheduler)

    logger.info(f"Watching {workspace} for .tex changes (Ctrl+C to stop)")
    try:
        for changes in watch(workspace, watch_filter=TexFilter(ignored_dirs), stop_event=stop_event):
            for _change, path in changes:
                batcher.add(Path(path))
    finally:
        batcher.debouncer.cancel()
