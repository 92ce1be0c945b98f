"""Incremental analysis cache: decides which findings survive an edit."""

from .change_detection import ChangeSet, classify, classify_keys
from .errors import CacheError, SnapshotPersistError, StaleSnapshotError
from .identity import ElementKey, content_hash, identify, key_lookup, split_element_key
from .merge import merge, merge_by_code, relocate
from .models import (
    DiagnosticRecord,
    DiagnosticSnapshot,
    ElementRecord,
    ElementSnapshot,
    Severity,
    Slot,
)
from .planner import RecheckPlan, plan_logic, plan_review
from .store import FileSnapshotStore, MemorySnapshotStore, SnapshotStore

__all__ = [
    "CacheError",
    "ChangeSet",
    "DiagnosticRecord",
    "DiagnosticSnapshot",
    "ElementKey",
    "ElementRecord",
    "ElementSnapshot",
    "FileSnapshotStore",
    "MemorySnapshotStore",
    "RecheckPlan",
    "Severity",
    "Slot",
    "SnapshotPersistError",
    "SnapshotStore",
    "StaleSnapshotError",
    "classify",
    "classify_keys",
    "content_hash",
    "identify",
    "key_lookup",
    "merge",
    "merge_by_code",
    "plan_logic",
    "plan_review",
    "relocate",
    "split_element_key",
]
