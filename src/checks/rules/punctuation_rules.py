"""Sentence punctuation rules."""

import re

from common.constants import PUNCTUATION_CODE
from extract.models import Element
from incremental.models import DiagnosticRecord
from incremental.planner import RecheckPlan

from .base import diagnostic_for


class PunctuationRule:
    """Flags sentences that do not end with terminal punctuation."""

    CODE = PUNCTUATION_CODE
    TERMINAL_PATTERN = re.compile(r"[.!?。？！]$")

    def check(self, elements: list[Element], plan: RecheckPlan) -> list[DiagnosticRecord]:
        """Check planned sentences for terminal punctuation.

        Args:
            elements: Full element sequence in document order
            plan: Recheck plan; only its punctuation targets are inspected

        Returns:
            One record per sentence missing punctuation
        """
        targets = plan.targets_for(self.CODE)
        if not targets:
            return []

        records = []
        for element in elements:
            if not element.is_sentence or not plan.is_target(self.CODE, element):
                continue

            value = element.content.strip()
            if value and not self.TERMINAL_PATTERN.search(value):
                records.append(
                    diagnostic_for(
                        element,
                        plan,
                        self.CODE,
                        "Sentence is missing terminal punctuation.",
                    )
                )

        return records
