"""Diagnostic reporters."""

import json
from collections import defaultdict

from common.logger import get_logger
from incremental.models import DiagnosticRecord, Severity

logger = get_logger(__name__)

_ICONS = {
    Severity.ERROR: "[red]✗[/red]",
    Severity.WARNING: "[yellow]⚠[/yellow]",
    Severity.INFO: "ℹ",
    Severity.HINT: "·",
}


def sort_diagnostics(diagnostics: list[DiagnosticRecord]) -> list[DiagnosticRecord]:
    return sorted(
        diagnostics,
        key=lambda d: (d.file_path, d.range.start.line, d.range.start.character, d.code, d.message),
    )


class DiagnosticReporter:
    """Format and display diagnostics."""

    def __init__(self, show_info: bool = True):
        """Initialize the reporter.

        Args:
            show_info: Whether to show info- and hint-level diagnostics
        """
        self.show_info = show_info

    def counts(self, diagnostics: list[DiagnosticRecord]) -> dict[Severity, int]:
        totals = {severity: 0 for severity in Severity}
        for record in diagnostics:
            totals[record.severity] += 1
        return totals

    def report_console(self, diagnostics: list[DiagnosticRecord]) -> int:
        """Print diagnostics grouped by file.

        Args:
            diagnostics: Diagnostics to report

        Returns:
            Exit code (0 for success, 1 if errors found)
        """
        by_file: dict[str, list[DiagnosticRecord]] = defaultdict(list)
        for record in sort_diagnostics(diagnostics):
            by_file[record.file_path].append(record)

        for file_path, records in by_file.items():
            visible = [
                r for r in records if self.show_info or r.severity in (Severity.ERROR, Severity.WARNING)
            ]
            if not visible:
                continue
            logger.info(f"\n{file_path}:")
            for record in visible:
                start = record.range.start
                logger.info(
                    f"  {_ICONS[record.severity]} Line [bold]{start.line + 1}[/bold]:{start.character + 1} "
                    f"{record.message} [dim]({record.source}, {record.code})[/dim]"
                )

        totals = self.counts(diagnostics)
        logger.info("\n" + "=" * 60)
        logger.info(
            f"Total: [bold]{totals[Severity.ERROR]}[/bold] errors, "
            f"[bold]{totals[Severity.WARNING]}[/bold] warnings, "
            f"[bold]{totals[Severity.INFO] + totals[Severity.HINT]}[/bold] info"
        )

        return 1 if totals[Severity.ERROR] else 0

    def report_json(self, diagnostics: list[DiagnosticRecord], completed: bool = True) -> str:
        """Format diagnostics as JSON.

        Args:
            diagnostics: Diagnostics to report
            completed: Whether the run finished every requested family

        Returns:
            JSON string grouped by file
        """
        by_file: dict[str, list[DiagnosticRecord]] = defaultdict(list)
        for record in sort_diagnostics(diagnostics):
            by_file[record.file_path].append(record)

        data = {
            "completed": completed,
            "files": [
                {
                    "file": file_path,
                    "diagnostics": [
                        {
                            "range": r.range.to_dict(),
                            "severity": r.severity.value,
                            "source": r.source,
                            "code": r.code,
                            "message": r.message,
                            "element_key": r.element_key,
                        }
                        for r in records
                    ],
                }
                for file_path, records in by_file.items()
            ],
        }
        return json.dumps(data, indent=2, ensure_ascii=False)
