"""Figure and table caption rules."""

from common.constants import CAPTION_CODE
from extract.models import CAPTION_KINDS, Element, ElementKind
from incremental.models import DiagnosticRecord
from incremental.planner import RecheckPlan

from .base import diagnostic_for


class CaptionRule:
    """Flags figures and tables without a \\caption."""

    CODE = CAPTION_CODE

    def check(self, elements: list[Element], plan: RecheckPlan) -> list[DiagnosticRecord]:
        targets = plan.targets_for(self.CODE)
        if not targets:
            return []

        records = []
        for element in elements:
            if element.kind not in CAPTION_KINDS or not plan.is_target(self.CODE, element):
                continue
            if element.metadata.get("hasCaption"):
                continue

            label = "Figure" if element.kind is ElementKind.FIGURE else "Table"
            records.append(
                diagnostic_for(element, plan, self.CODE, f"{label} is missing a \\caption{{...}}.")
            )

        return records
