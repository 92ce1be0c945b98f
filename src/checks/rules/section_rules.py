"""Section density rules."""

from dataclasses import dataclass

from common.constants import SECTION_DENSITY_CODE
from common.env import env
from extract.models import Element
from incremental.models import DiagnosticRecord
from incremental.planner import RecheckPlan

from .base import diagnostic_for


@dataclass
class SectionStat:
    """Sentence count of one section-kind heading."""

    heading: Element
    sentences: int = 0


def count_section_sentences(elements: list[Element]) -> list[SectionStat]:
    """
    Count the sentences directly under each section-kind heading.

    A heading's count runs until the next section-kind heading (any level)
    or the end of its file. Sentences before the first heading of a file are
    not attributed to the previous file's last section.

    Returns:
        Stats in document order
    """
    stats: list[SectionStat] = []
    current: SectionStat | None = None
    current_file: str | None = None

    for element in elements:
        if element.file_path != current_file:
            current_file = element.file_path
            current = None

        if element.is_section:
            current = SectionStat(heading=element)
            stats.append(current)
        elif element.is_sentence and current is not None:
            current.sentences += 1

    return stats


class SectionDensityRule:
    """Flags sections with fewer sentences than the configured minimum."""

    CODE = SECTION_DENSITY_CODE

    def __init__(self, min_sentences: int | None = None):
        """Initialize the rule.

        Args:
            min_sentences: Minimum sentences per section (default from MIN_SENTENCES_PER_SECTION)
        """
        self.min_sentences = env.min_sentences_per_section() if min_sentences is None else min_sentences

    def check(self, elements: list[Element], plan: RecheckPlan) -> list[DiagnosticRecord]:
        targets = plan.targets_for(self.CODE)
        if not targets:
            return []

        records = []
        for stat in count_section_sentences(elements):
            if stat.sentences >= self.min_sentences:
                continue
            if plan.element_key_for(stat.heading) not in targets:
                continue
            records.append(
                diagnostic_for(
                    stat.heading,
                    plan,
                    self.CODE,
                    f'Section "{stat.heading.content}" only contains {stat.sentences} sentences '
                    f"(minimum recommended: {self.min_sentences}).",
                )
            )

        return records
