"""Acronym definition rules.

An acronym must be spelled out where it first appears in the whole
document, e.g. "Machine Learning (ML)" or "机器学习（Machine Learning, ML）".
Whether a sentence bears that obligation depends on every sentence before
it, so the rule replays the earlier sentences read-only to rebuild the set of
acronyms already seen and only reports from the planned start index on.
"""

import re

from common.constants import ACRONYM_CODE
from extract.models import Element
from incremental.models import DiagnosticRecord
from incremental.planner import RecheckPlan

from .base import diagnostic_for

# ASCII word boundaries so "ML模型" still yields ML
ACRONYM_PATTERN = re.compile(r"\b[A-Z]{2,}\b", re.ASCII)
PARENTHESIZED_PATTERN = re.compile(r"([^()（）]{2,})\s*[(（]([^)）]+)[)）]")


def extract_acronyms(text: str) -> list[str]:
    """All acronym tokens in order of appearance (duplicates kept)."""
    return ACRONYM_PATTERN.findall(text)


def extract_defined_acronyms(text: str) -> set[str]:
    """Acronyms introduced in parentheses after a phrase within ``text``."""
    definitions: set[str] = set()
    for match in PARENTHESIZED_PATTERN.finditer(text):
        definitions.update(ACRONYM_PATTERN.findall(match.group(2)))
    return definitions


class AcronymRule:
    """Flags acronyms whose first document-wide use lacks a definition."""

    CODE = ACRONYM_CODE

    def check(self, elements: list[Element], plan: RecheckPlan) -> list[DiagnosticRecord]:
        """Check the sentence suffix starting at the plan's start index.

        Args:
            elements: Full element sequence in document order
            plan: Recheck plan carrying the abbreviation start index

        Returns:
            One record per undefined first use
        """
        start = plan.abbreviation_start
        targets = plan.targets_for(self.CODE)
        if start is None or not targets:
            return []

        sentences = [element for element in elements if element.is_sentence]

        # Earlier sentences only seed the seen set; their verdicts are replayed from cache
        seen: set[str] = set()
        for sentence in sentences[:start]:
            seen.update(extract_acronyms(sentence.content))

        records = []
        for sentence in sentences[start:]:
            is_target = plan.element_key_for(sentence) in targets
            defined = extract_defined_acronyms(sentence.content)
            for acronym in extract_acronyms(sentence.content):
                if acronym in seen:
                    continue
                seen.add(acronym)
                if acronym in defined or not is_target:
                    continue
                records.append(
                    diagnostic_for(
                        sentence,
                        plan,
                        self.CODE,
                        f'Acronym "{acronym}" is used here for the first time without its full form; '
                        f"define it at first use, e.g. Machine Learning (ML).",
                    )
                )

        return records
