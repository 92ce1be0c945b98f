"""Logic analyzer orchestrating all deterministic rules."""

from extract.models import Element
from incremental.identity import identify
from incremental.models import DiagnosticRecord
from incremental.planner import RecheckPlan, plan_logic

from .rules.acronym_rules import AcronymRule
from .rules.base import LogicRule
from .rules.caption_rules import CaptionRule
from .rules.punctuation_rules import PunctuationRule
from .rules.section_rules import SectionDensityRule


class LogicAnalyzer:
    """Runs the deterministic rule family over planned targets."""

    def __init__(self, min_sentences: int | None = None):
        """Initialize the analyzer.

        Args:
            min_sentences: Minimum sentences per section (default from env)
        """
        self.rules: list[LogicRule] = [
            PunctuationRule(),
            AcronymRule(),
            SectionDensityRule(min_sentences=min_sentences),
            CaptionRule(),
        ]

    @property
    def codes(self) -> list[str]:
        """Rule codes in execution order."""
        return [rule.CODE for rule in self.rules]

    def analyze(self, elements: list[Element], plan: RecheckPlan | None = None) -> list[DiagnosticRecord]:
        """Run every rule.

        Args:
            elements: Full element sequence in document order
            plan: Recheck plan; None runs a full pass over everything

        Returns:
            Fresh records, grouped by rule in execution order
        """
        if plan is None:
            plan = plan_logic(identify(elements), None)

        records: list[DiagnosticRecord] = []
        for rule in self.rules:
            records.extend(rule.check(elements, plan))
        return records
