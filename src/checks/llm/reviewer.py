"""Sequential model-backed review of sentences."""

import json
import threading
from collections.abc import Callable, Sequence
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path

from common.constants import LLM_REVIEW_CODE, LLM_SOURCE_PREFIX
from common.env import env
from common.logger import get_logger
from extract.models import Element
from incremental.identity import ElementKey
from incremental.models import DiagnosticRecord, Severity

from .base import ProviderError, ProviderFatalError, ProviderReview, ReviewProvider
from .providers import config_signature

logger = get_logger(__name__)

ReviewedCallback = Callable[[ElementKey, Element, list[DiagnosticRecord]], None]


class CancellationToken:
    """Cooperative cancellation flag shared between a run and its owner."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass
class ReviewOutcome:
    """What one review pass achieved."""

    reviewed: set[ElementKey] = field(default_factory=set)
    records: list[DiagnosticRecord] = field(default_factory=list)
    skipped: int = 0
    cancelled: bool = False
    fatal_error: str | None = None

    @property
    def completed(self) -> bool:
        return not self.cancelled and self.fatal_error is None


class LLMReviewer:
    """Drives a provider over pending sentences, one at a time."""

    def __init__(
        self,
        provider: ReviewProvider,
        enabled: bool | None = None,
        debug_log: Path | None = None,
    ):
        """Initialize the reviewer.

        Args:
            provider: Review provider
            enabled: Master switch (default from env)
            debug_log: Optional JSONL file receiving every prompt and reply
        """
        self.provider = provider
        self.enabled = env.llm_enabled() if enabled is None else enabled
        self.debug_log = debug_log

    @property
    def signature(self) -> str:
        return config_signature(self.provider)

    @property
    def source(self) -> str:
        return f"{LLM_SOURCE_PREFIX}{self.provider.id}"

    def is_available(self) -> bool:
        """True when the reviewer is enabled and its provider is configured."""
        return self.enabled and self.provider.is_configured()

    def records_for(self, key: ElementKey, element: Element, review: ProviderReview) -> list[DiagnosticRecord]:
        return [
            DiagnosticRecord(
                file_path=element.file_path,
                range=element.range,
                message=f"[LLM] {issue.message}",
                severity=Severity.from_label(issue.severity),
                source=self.source,
                code=LLM_REVIEW_CODE,
                element_key=key,
            )
            for issue in review.issues
        ]

    def _reset_debug_log(self) -> None:
        if self.debug_log is None:
            return
        try:
            self.debug_log.parent.mkdir(parents=True, exist_ok=True)
            self.debug_log.write_text("", encoding="utf-8")
        except OSError as e:
            logger.warning(f"Could not reset {self.debug_log}: {e}")

    def _write_debug(self, key: ElementKey, review: ProviderReview) -> None:
        if self.debug_log is None:
            return
        entry = {
            "timestamp": datetime.now().isoformat(),
            "element_key": key,
            "provider": self.provider.id,
            "model": self.provider.model,
            "mode": self.provider.mode,
            "prompt": review.prompt,
            "response": review.response,
            "issues": [asdict(issue) for issue in review.issues],
            "rewrite": review.rewrite,
        }
        try:
            self.debug_log.parent.mkdir(parents=True, exist_ok=True)
            with open(self.debug_log, "a", encoding="utf-8") as f:
                f.write(json.dumps(entry, ensure_ascii=False) + "\n")
        except OSError as e:
            logger.warning(f"Could not append to {self.debug_log}: {e}")

    def review(
        self,
        targets: Sequence[tuple[ElementKey, Element]],
        on_reviewed: ReviewedCallback | None = None,
        token: CancellationToken | None = None,
    ) -> ReviewOutcome:
        """Review targets strictly in order.

        ``on_reviewed`` runs after every successfully reviewed element, before
        the next request is made. A failed request skips its element; a fatal
        provider error or a cancellation stops the queue. The debug log, if any,
        only holds the exchanges of the latest pass.

        Args:
            targets: (key, element) pairs in document order
            on_reviewed: Callback receiving each element's fresh records
            token: Cancellation token checked between elements

        Returns:
            ReviewOutcome for this pass
        """
        outcome = ReviewOutcome()
        self._reset_debug_log()

        for index, (key, element) in enumerate(targets, 1):
            if token is not None and token.cancelled:
                outcome.cancelled = True
                logger.info(f"Review cancelled after {index - 1}/{len(targets)} sentence(s)")
                break

            try:
                review = self.provider.review(element)
            except ProviderFatalError as e:
                outcome.fatal_error = str(e)
                logger.error(f"[red]✗[/red] Reviewer halted: {e}")
                break
            except ProviderError as e:
                outcome.skipped += 1
                logger.warning(f"Skipping {element.file_path}:{element.range.start.line + 1}: {e}")
                continue

            self._write_debug(key, review)
            records = self.records_for(key, element, review)
            outcome.reviewed.add(key)
            outcome.records.extend(records)
            logger.debug(f"Reviewed {index}/{len(targets)}: {len(records)} issue(s)")

            if on_reviewed is not None:
                on_reviewed(key, element, records)

        return outcome
