"""Run orchestration, scheduling and the command line interface."""

from .engine import AnalysisEngine, AnalysisMode, AnalysisRequest, AnalysisResult
from .scheduler import AnalysisScheduler, Debouncer

__all__ = [
    "AnalysisEngine",
    "AnalysisMode",
    "AnalysisRequest",
    "AnalysisResult",
    "AnalysisScheduler",
    "Debouncer",
]
