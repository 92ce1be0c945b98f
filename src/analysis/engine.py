"""
Run orchestration for incremental workspace analysis.

One run parses the workspace (or re-parses a single changed file), assigns
element keys, and for each check family promotes its snapshot, plans the
recheck against the family baseline, runs the checks on planned targets only
and merges the fresh findings with the still-valid cached ones.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from checks.llm.providers import create_provider
from checks.llm.reviewer import CancellationToken, LLMReviewer
from checks.logic import LogicAnalyzer
from common.constants import (
    ELEMENTS_FAMILY,
    IGNORED_DIRS,
    LLM_FAMILY,
    LLM_REVIEW_CODE,
    LOGIC_FAMILY,
)
from common.env import env
from common.logger import get_logger
from extract.latex_parser import parse_tex_file, parse_workspace, relative_path
from extract.models import Element
from extract.ordering import replace_file_elements
from incremental.change_detection import ChangeSet, classify, classify_keys
from incremental.errors import SnapshotPersistError
from incremental.identity import ElementKey, identify
from incremental.merge import filter_cached, merge, merge_by_code, relocate
from incremental.models import DiagnosticRecord, DiagnosticSnapshot, ElementSnapshot, Slot
from incremental.planner import plan_logic, plan_review
from incremental.store import FileSnapshotStore, SnapshotStore

logger = get_logger(__name__)

PublishCallback = Callable[[list[DiagnosticRecord]], None]


class AnalysisMode(str, Enum):
    """Which families a run recomputes."""

    FULL = "full"
    PARSE = "parse"
    LOGIC = "logic"
    LLM = "llm"


@dataclass
class AnalysisRequest:
    """One requested run."""

    mode: AnalysisMode = AnalysisMode.FULL
    force: bool = False
    changed_file: Path | None = None
    explicit: bool = True


@dataclass
class AnalysisResult:
    """Outcome of one run."""

    diagnostics: list[DiagnosticRecord] = field(default_factory=list)
    completed: bool = True
    changes: ChangeSet | None = None
    errors: list[str] = field(default_factory=list)
    persist_failures: int = 0


def default_reviewer(store: SnapshotStore) -> LLMReviewer | None:
    """Reviewer built from the environment, or None if the provider is unknown."""
    try:
        provider = create_provider()
    except ValueError as e:
        logger.warning(f"LLM review unavailable: {e}")
        return None

    debug_log = None
    if env.llm_debug_log() and isinstance(store, FileSnapshotStore):
        debug_log = store.debug_log_path()
    return LLMReviewer(provider, debug_log=debug_log)


class AnalysisEngine:
    """Runs analyses against one workspace and keeps the latest parse in memory."""

    def __init__(
        self,
        workspace: Path,
        store: SnapshotStore | None = None,
        logic: LogicAnalyzer | None = None,
        reviewer: LLMReviewer | None = None,
        publish: PublishCallback | None = None,
    ):
        """Initialize the engine.

        Args:
            workspace: Workspace root
            store: Snapshot store (default: JSON files under the workspace)
            logic: Deterministic rule family (default: all rules, env thresholds)
            reviewer: Model-backed reviewer (default: built from env)
            publish: Receives the full diagnostic set whenever it changes
        """
        self.workspace = workspace
        self.store = store if store is not None else FileSnapshotStore(workspace)
        self.logic = logic or LogicAnalyzer()
        self.reviewer = reviewer if reviewer is not None else default_reviewer(self.store)
        self.publish = publish
        self.latest_elements: list[Element] | None = None

        self.ignored_dirs = set(IGNORED_DIRS)
        if isinstance(self.store, FileSnapshotStore):
            self.ignored_dirs.add(self.store.folder.name)

    def _publish(self, diagnostics: list[DiagnosticRecord]) -> None:
        if self.publish is not None:
            self.publish(diagnostics)

    def _persist(self, result: AnalysisResult, action: Callable[[], None], what: str) -> None:
        try:
            action()
        except SnapshotPersistError as e:
            result.persist_failures += 1
            logger.warning(f"Could not persist {what}, continuing with in-memory results: {e}")

    def collect_elements(self, request: AnalysisRequest) -> list[Element]:
        """Parse the workspace, or only the changed file of an automatic run.

        The single-file path needs a previous parse. Explicit runs always
        re-read the whole workspace.
        """
        fast_path = not request.explicit and not request.force and request.changed_file is not None
        if fast_path and self.latest_elements is not None:
            changed = request.changed_file
            if not changed.is_absolute():
                changed = self.workspace / changed
            file_path = relative_path(changed, self.workspace)
            try:
                file_elements = parse_tex_file(changed, self.workspace)
            except (OSError, UnicodeDecodeError) as e:
                logger.error(f"[red]✗[/red] Failed to parse {file_path}: {e}")
                file_elements = []
            logger.debug(f"Re-parsed {file_path}: {len(file_elements)} element(s)")
            return replace_file_elements(self.latest_elements, file_path, file_elements)

        return parse_workspace(self.workspace, self.ignored_dirs)

    def run(self, request: AnalysisRequest, token: CancellationToken | None = None) -> AnalysisResult:
        """Execute one analysis run.

        Args:
            request: What to run
            token: Cancellation token for the review family

        Returns:
            AnalysisResult with the merged diagnostics of every family
        """
        result = AnalysisResult()

        if request.force:
            logger.info("Clearing cached snapshots")
            self.store.clear()

        elements = self.collect_elements(request)
        self.latest_elements = elements
        identified = identify(elements)

        result.changes = self._update_element_snapshot(result, identified)
        if result.changes is None:
            logger.info(f"Parsed {len(identified)} element(s) (no previous snapshot)")
        else:
            logger.info(f"Parsed {len(identified)} element(s): {result.changes.summary()}")

        if request.mode in (AnalysisMode.FULL, AnalysisMode.LOGIC):
            logic_records = self._run_logic(result, identified, elements)
        else:
            logic_records = self._replay(LOGIC_FAMILY, identified)

        if request.mode in (AnalysisMode.FULL, AnalysisMode.LLM):
            llm_records = self._run_review(result, identified, logic_records, token)
        else:
            signature = self._review_signature()
            llm_records = self._replay(LLM_FAMILY, identified, signature) if signature else []

        result.diagnostics = [*logic_records, *llm_records]
        self._publish(result.diagnostics)
        return result

    def _update_element_snapshot(
        self,
        result: AnalysisResult,
        identified: dict[ElementKey, Element],
    ) -> ChangeSet | None:
        self._persist(result, lambda: self.store.promote(ELEMENTS_FAMILY), "element snapshot")
        previous = self.store.load_elements(Slot.PREVIOUS)
        changes = classify(identified, previous.elements) if previous else None
        snapshot = ElementSnapshot.from_identified(identified)
        self._persist(result, lambda: self.store.save_elements(snapshot), "element snapshot")
        return changes

    def _review_signature(self) -> str | None:
        """Signature of the active reviewer, or None when review is off."""
        if self.reviewer is None or not self.reviewer.is_available():
            return None
        return self.reviewer.signature

    def _replay(
        self,
        family: str,
        identified: dict[ElementKey, Element],
        config_signature: str | None = None,
    ) -> list[DiagnosticRecord]:
        """Current snapshot of a family, limited to live elements and relocated."""
        snapshot = self.store.load_diagnostics(family, Slot.CURRENT, config_signature=config_signature)
        if snapshot is None:
            return []
        return [
            relocate(record, identified)
            for record in filter_cached(snapshot.diagnostics, (), identified)
        ]

    def _run_logic(
        self,
        result: AnalysisResult,
        identified: dict[ElementKey, Element],
        elements: list[Element],
    ) -> list[DiagnosticRecord]:
        self._persist(result, lambda: self.store.promote(LOGIC_FAMILY), "logic snapshot")
        baseline = self.store.load_diagnostics(LOGIC_FAMILY, Slot.PREVIOUS)

        changes = classify_keys(identified, baseline.baseline_keys) if baseline else None
        plan = plan_logic(identified, changes, baseline.sentence_order if baseline else None)
        targets_by_code = {code: plan.targets_for(code) for code in self.logic.codes}

        fresh = self.logic.analyze(elements, plan)
        cached = baseline.diagnostics if baseline else []
        merged = merge_by_code(fresh, cached, targets_by_code, identified, identified)

        snapshot = DiagnosticSnapshot(
            diagnostics=merged,
            baseline_keys=set(identified),
            sentence_order=plan.sentence_keys,
        )
        self._persist(result, lambda: self.store.save_diagnostics(LOGIC_FAMILY, snapshot), "logic snapshot")

        if plan.cold_start:
            logger.info(f"Logic checks: full pass, {len(fresh)} finding(s)")
        else:
            logger.info(
                f"Logic checks: {len(plan.recheck_keys)} element(s) rechecked, "
                f"{len(merged) - len(fresh)} cached finding(s) reused"
            )
        return merged

    def _run_review(
        self,
        result: AnalysisResult,
        identified: dict[ElementKey, Element],
        logic_records: list[DiagnosticRecord],
        token: CancellationToken | None,
    ) -> list[DiagnosticRecord]:
        reviewer = self.reviewer
        if reviewer is None or not reviewer.is_available():
            logger.info("LLM review disabled or not configured, skipped")
            return []

        signature = reviewer.signature
        self._persist(result, lambda: self.store.promote(LLM_FAMILY), "review snapshot")
        baseline = self.store.load_diagnostics(LLM_FAMILY, Slot.PREVIOUS, config_signature=signature)
        baseline_keys = baseline.baseline_keys if baseline else None

        plan = plan_review(identified, baseline_keys, max_items=env.llm_max_items())
        for note in plan.notes:
            logger.info(note)
        target_keys = plan.targets_for(LLM_REVIEW_CODE)

        records = merge(
            [],
            baseline.diagnostics if baseline else [],
            target_keys,
            identified,
            identified,
        )
        covered = set(baseline_keys or ()) & set(identified)

        def save() -> None:
            snapshot = DiagnosticSnapshot(
                diagnostics=list(records),
                baseline_keys=set(covered),
                config_signature=signature,
            )
            self._persist(result, lambda: self.store.save_diagnostics(LLM_FAMILY, snapshot), "review snapshot")

        def on_reviewed(key: ElementKey, element: Element, fresh: list[DiagnosticRecord]) -> None:
            covered.add(key)
            records.extend(fresh)
            save()
            self._publish([*logic_records, *records])

        targets = [(key, identified[key]) for key in plan.sentence_keys if key in target_keys]
        if targets:
            logger.info(f"Reviewing {len(targets)} sentence(s) with {reviewer.source}")
        outcome = reviewer.review(targets, on_reviewed=on_reviewed, token=token)
        save()

        if outcome.fatal_error:
            result.completed = False
            result.errors.append(outcome.fatal_error)
        elif outcome.cancelled:
            result.completed = False
            result.errors.append("Review cancelled")

        logger.info(
            f"LLM review: {len(outcome.reviewed)} reviewed, {outcome.skipped} skipped, "
            f"{len(records)} finding(s)"
        )
        return records

    def restore(self) -> list[DiagnosticRecord]:
        """Last persisted diagnostics of every family, without parsing.

        Review findings are only restored while the current reviewer is on
        and configured as it was when they were written.
        """
        diagnostics: list[DiagnosticRecord] = []
        snapshot = self.store.load_diagnostics(LOGIC_FAMILY, Slot.CURRENT)
        if snapshot is not None:
            diagnostics.extend(snapshot.diagnostics)

        signature = self._review_signature()
        if signature is not None:
            snapshot = self.store.load_diagnostics(LLM_FAMILY, Slot.CURRENT, config_signature=signature)
            if snapshot is not None:
                diagnostics.extend(snapshot.diagnostics)
        return diagnostics
