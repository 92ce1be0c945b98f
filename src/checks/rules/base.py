"""Shared helpers for deterministic rules."""

from typing import Protocol

from common.constants import LOGIC_SOURCE
from extract.models import Element
from incremental.models import DiagnosticRecord, Severity
from incremental.planner import RecheckPlan


class LogicRule(Protocol):
    """A deterministic rule that only reports on its planned targets."""

    CODE: str

    def check(self, elements: list[Element], plan: RecheckPlan) -> list[DiagnosticRecord]: ...


def diagnostic_for(
    element: Element,
    plan: RecheckPlan,
    code: str,
    message: str,
    severity: Severity = Severity.WARNING,
) -> DiagnosticRecord:
    """Build a record anchored to ``element``."""
    return DiagnosticRecord(
        file_path=element.file_path,
        range=element.range,
        message=message,
        severity=severity,
        source=LOGIC_SOURCE,
        code=code,
        element_key=plan.element_key_for(element),
    )
