#!/usr/bin/env python3
"""CLI for incremental thesis linting."""

import argparse
import sys
import threading
from pathlib import Path

from common.logger import error, get_logger, notice, setup_logging, success
from incremental.models import DiagnosticRecord, Severity

from .engine import AnalysisEngine, AnalysisMode, AnalysisRequest, AnalysisResult
from .reporters import DiagnosticReporter
from .scheduler import AnalysisScheduler
from .watch import watch_workspace

logger = get_logger(__name__)


def emit(args, diagnostics: list[DiagnosticRecord], completed: bool = True) -> int:
    """Report diagnostics in the requested format.

    Returns:
        1 if any diagnostic has error severity, else 0
    """
    reporter = DiagnosticReporter(show_info=not args.quiet)
    if args.format == "json":
        text = reporter.report_json(diagnostics, completed=completed)
        if args.output:
            args.output.write_text(text + "\n", encoding="utf-8")
            logger.info(f"Wrote {len(diagnostics)} diagnostic(s) to {args.output}")
        else:
            print(text)
        return 1 if any(d.severity == Severity.ERROR for d in diagnostics) else 0
    return reporter.report_console(diagnostics)


def run_mode(args, mode: AnalysisMode, force: bool = False) -> int:
    """Run one analysis and report it.

    Returns:
        Exit code (1 for incomplete runs or error diagnostics)
    """
    engine = AnalysisEngine(args.workspace)
    scheduler = AnalysisScheduler(engine.run)
    result: AnalysisResult | None = scheduler.run_explicit(AnalysisRequest(mode=mode, force=force))
    if result is None:
        error("Analysis failed")
        return 1

    exit_code = emit(args, result.diagnostics, completed=result.completed)
    if not result.completed:
        for message in result.errors:
            notice(message)
        notice("Analysis did not complete")
        return 1
    success(f"Analysis complete ({mode.value})")
    return exit_code


def cmd_scan(args):
    """Run every check family incrementally."""
    return run_mode(args, AnalysisMode.FULL)


def cmd_parse(args):
    """Parse the workspace and update the element snapshot.

    With --force every cached snapshot is cleared first.
    """
    return run_mode(args, AnalysisMode.PARSE, force=args.force)


def cmd_logic(args):
    """Run only the deterministic rules."""
    return run_mode(args, AnalysisMode.LOGIC)


def cmd_llm(args):
    """Run only the model-backed review."""
    return run_mode(args, AnalysisMode.LLM)


def cmd_rescan(args):
    """Clear every cached snapshot, then run a full analysis."""
    return run_mode(args, AnalysisMode.FULL, force=True)


def cmd_restore(args):
    """Print the last persisted diagnostics without re-running anything."""
    engine = AnalysisEngine(args.workspace)
    diagnostics = engine.restore()
    if not diagnostics:
        logger.info("No persisted diagnostics found")
    return emit(args, diagnostics)


def cmd_watch(args):
    """Run once, then re-analyze on every debounced .tex save."""
    engine = AnalysisEngine(args.workspace)
    reporter = DiagnosticReporter(show_info=not args.quiet)

    def publish_final(request: AnalysisRequest, token):
        result = engine.run(request, token)
        reporter.report_console(result.diagnostics)
        if not result.completed:
            notice("Analysis did not complete")
        return result

    scheduler = AnalysisScheduler(publish_final)
    scheduler.run_explicit(AnalysisRequest(mode=AnalysisMode.FULL))

    stop_event = threading.Event()
    try:
        watch_workspace(args.workspace, scheduler, stop_event=stop_event)
    except KeyboardInterrupt:
        stop_event.set()
    scheduler.cancel()
    scheduler.wait_idle(timeout=5)
    success("Stopped watching")
    return 0


def main():
    """Main entry point for the thesis-lint CLI."""
    parser = argparse.ArgumentParser(
        description="Incrementally lint a LaTeX thesis workspace",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--workspace",
        type=Path,
        default=Path("."),
        help="Workspace root containing .tex files (default: current directory)",
    )
    parser.add_argument(
        "--format",
        choices=["console", "json"],
        default="console",
        help="Output format (default: console)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write JSON output to this file instead of stdout",
    )
    parser.add_argument("--log-file", default=None, help="Also write logs to this file")
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Only show errors and warnings",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    commands = [
        ("scan", cmd_scan, "Run all checks, reusing cached results where still valid"),
        ("parse", cmd_parse, "Parse the workspace and report what changed"),
        ("logic", cmd_logic, "Run only the deterministic rules"),
        ("llm", cmd_llm, "Run only the model-backed review"),
        ("rescan", cmd_rescan, "Clear caches and run all checks from scratch"),
        ("restore", cmd_restore, "Show the last persisted diagnostics"),
        ("watch", cmd_watch, "Re-run checks whenever a .tex file is saved"),
    ]
    for name, func, help_text in commands:
        command_parser = subparsers.add_parser(name, help=help_text)
        command_parser.set_defaults(func=func)
        if name == "parse":
            command_parser.add_argument(
                "--force",
                action="store_true",
                help="Clear cached snapshots before parsing",
            )

    args = parser.parse_args()
    setup_logging(log_file=args.log_file)

    if not args.workspace.is_dir():
        error(f"{args.workspace} is not a directory")
        return 1
    args.workspace = args.workspace.resolve()

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
