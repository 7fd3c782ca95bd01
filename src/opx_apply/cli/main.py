"""CLI entry point for opx-apply."""
import argparse
from dotenv import load_dotenv
import json
import logging
import os
import sys
import traceback
from pathlib import Path

from pydantic import ValidationError

from opx_apply.analysis import analyze_actions
from opx_apply.config import ApplySettings, load_settings, parse_roots
from opx_apply.filesystem import FileSystemError, LocalFileSystem
from opx_apply.models import ApplyResponse, BatchStatus
from opx_apply.orchestrator import ApplySession, OrchestratorError
from opx_apply.parsing import lint_text, parse, preprocess
from opx_apply.prompts import OPX_INSTRUCTIONS
from opx_apply.report import build_fix_instructions
from opx_apply.utils import UnifiedDiffSink

load_dotenv()

logger = logging.getLogger(__name__)

# Exit codes
EXIT_SUCCESS = 0
EXIT_INVALID_INPUT = 1
EXIT_ROWS_FAILED = 2
EXIT_ORCHESTRATOR_ERROR = 3
EXIT_FILESYSTEM_ERROR = 4
EXIT_UNEXPECTED = 5
EXIT_KEYBOARD_INTERRUPT = 130

STDIN_MARKER = "-"
LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    parser = argparse.ArgumentParser(
        prog="opx-apply",
        description="Parse, preview and apply OPX file edits from an LLM response",
    )
    parser.add_argument(
        "--workspace",
        action="append",
        metavar="[NAME=]PATH",
        help="Workspace root; repeat for multi-root workspaces (default: $OPX_WORKSPACE_ROOTS or cwd)",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose output")
    parser.add_argument(
        "--output-json",
        action="store_true",
        help="Print results as JSON instead of human-readable text",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    def _with_input(name: str, help_text: str) -> argparse.ArgumentParser:
        command = sub.add_parser(name, help=help_text)
        command.add_argument("input", help=f"Response file, or {STDIN_MARKER} for stdin")
        return command

    _with_input("lint", "Report edits missing required attributes")
    _with_input("preprocess", "Print the response with normalized attributes")
    _with_input("parse", "Show parsed actions as preview rows")

    preview = _with_input("preview", "Dry-run every action without touching files")
    preview.add_argument("--row", type=int, help="Preview one row (1-based) as a unified diff")

    apply = _with_input("apply", "Apply the actions to the workspace")
    apply.add_argument("--row", type=int, help="Apply only this row (1-based)")
    apply.add_argument("--report", type=str, help="Write a Markdown failure report to this path")

    sub.add_parser("instructions", help="Print the OPX prompt instructions")
    return parser


def read_input(source: str) -> str:
    """Read response text from a file path or stdin."""
    if source == STDIN_MARKER:
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def configure_logging(settings: ApplySettings, verbose: bool) -> None:
    level = logging.INFO if verbose else getattr(logging, settings.log_level)
    logging.basicConfig(level=level, format=LOG_FORMAT)


def format_result_json(result) -> str:
    """Serialize a pydantic model (or dict of them) to a JSON string."""

    def _serialize(obj):
        if obj is None:
            return None
        if hasattr(obj, "model_dump"):
            return obj.model_dump(mode="json")
        return obj

    if isinstance(result, dict):
        result = {key: _serialize(value) for key, value in result.items()}
    else:
        result = _serialize(result)
    return json.dumps(result, indent=2, default=str)


def print_messages(title: str, messages: list[str]) -> None:
    if not messages:
        return
    print(f"\n{title} ({len(messages)}):")
    for message in messages:
        print(f"  - {message}")


def print_response_human(response: ApplyResponse) -> None:
    print(f"\n{'='*60}")
    print("OPX Apply Results")
    print(f"{'='*60}")
    print(f"Status: {response.status.value}")

    if response.preview_data is not None:
        rows = response.preview_data.rows
        results = {result.row_index: result for result in response.results}
        print(f"\nRows ({len(rows)} total):")
        for index, row in enumerate(rows):
            result = results.get(index)
            mark = "  " if result is None else ("ok" if result.success else "!!")
            print(
                f"  {mark} {index + 1}. {row.action.value:<7} {row.path} "
                f"(+{row.changes.added}/-{row.changes.removed}) {row.description}"
            )
            if result is not None and not result.success:
                cascade = " [cascade]" if result.is_cascade_failure else ""
                print(f"       {result.message}{cascade}")

    print_messages("Lint", response.lint)
    print_messages("Errors", response.errors)
    print(f"\n{'='*60}")


def determine_exit_code(response: ApplyResponse) -> int:
    """Map a response onto an exit code."""
    if response.status == BatchStatus.ABORTED:
        return EXIT_ORCHESTRATOR_ERROR
    if not response.success:
        return EXIT_INVALID_INPUT if not response.results else EXIT_ROWS_FAILED
    if any(not result.success for result in response.results):
        return EXIT_ROWS_FAILED
    return EXIT_SUCCESS


def _emit(args: argparse.Namespace, payload, human) -> None:
    if args.output_json:
        print(format_result_json(payload))
    else:
        human()


def _run_lint(args: argparse.Namespace, text: str) -> int:
    issues = lint_text(text)

    def _human() -> None:
        if issues:
            print_messages("Lint issues", issues)
        else:
            print("No lint issues")

    _emit(args, {"issues": issues}, _human)
    return EXIT_INVALID_INPUT if issues else EXIT_SUCCESS


def _run_preprocess(args: argparse.Namespace, text: str) -> int:
    result = preprocess(text)

    def _human() -> None:
        print(result.text)
        for note in result.changes + result.issues:
            print(note, file=sys.stderr)

    _emit(args, result, _human)
    return EXIT_INVALID_INPUT if result.issues else EXIT_SUCCESS


def _run_parse(args: argparse.Namespace, text: str) -> int:
    parsed = parse(preprocess(text).text)
    preview = analyze_actions(parsed.actions, parsed.errors)

    def _human() -> None:
        if parsed.plan:
            print(f"Plan: {parsed.plan}\n")
        for index, row in enumerate(preview.rows, 1):
            flag = f"  [{row.error_message}]" if row.has_error else ""
            print(
                f"{index}. {row.action.value:<7} {row.path} "
                f"(+{row.changes.added}/-{row.changes.removed}) {row.description}{flag}"
            )
        print_messages("Warnings", parsed.warnings)
        print_messages("Errors", parsed.errors)

    _emit(args, {"parse": parsed, "preview": preview}, _human)
    return EXIT_INVALID_INPUT if parsed.errors else EXIT_SUCCESS


def _write_report(path: str, session: ApplySession, response: ApplyResponse, text: str) -> None:
    if response.preview_data is None:
        return
    report = build_fix_instructions(
        response.preview_data,
        session.row_results or response.results,
        response_text=text,
    )
    Path(path).write_text(report, encoding="utf-8")
    logger.info(f"Failure report written to {path}")


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:]).

    Returns:
        Exit code integer.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings()
    except ValidationError as exc:
        return _handle_error("Invalid configuration", exc, args.verbose, EXIT_INVALID_INPUT)
    if args.workspace:
        settings = settings.model_copy(
            update={"workspace_roots": parse_roots(os.pathsep.join(args.workspace))}
        )
    configure_logging(settings, args.verbose)

    if args.command == "instructions":
        print(OPX_INSTRUCTIONS)
        return EXIT_SUCCESS

    try:
        text = read_input(args.input)
    except OSError as exc:
        return _handle_error("Cannot read input", exc, args.verbose, EXIT_INVALID_INPUT)

    try:
        if args.command == "lint":
            return _run_lint(args, text)
        if args.command == "preprocess":
            return _run_preprocess(args, text)
        if args.command == "parse":
            return _run_parse(args, text)

        sink = UnifiedDiffSink(emit=None if args.output_json else print)
        session = ApplySession(LocalFileSystem(settings.workspace_roots), diff_sink=sink)

        if args.command == "preview":
            if args.row is not None:
                response = session.preview_row(text, args.row - 1)
            else:
                response = session.preview(text)
        elif args.row is not None:
            response = session.apply_row(text, args.row - 1)
        else:
            response = session.apply(text)

        if args.output_json:
            payload = response.model_dump(mode="json")
            if args.command == "preview" and args.row is not None:
                payload["diffs"] = sink.diffs
            print(json.dumps(payload, indent=2, default=str))
        else:
            print_response_human(response)

        if args.command == "apply" and args.report:
            _write_report(args.report, session, response, text)

        return determine_exit_code(response)

    except OrchestratorError as exc:
        return _handle_error("Orchestrator error", exc, args.verbose, EXIT_ORCHESTRATOR_ERROR)

    except FileSystemError as exc:
        return _handle_error("File system error", exc, args.verbose, EXIT_FILESYSTEM_ERROR)

    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return EXIT_KEYBOARD_INTERRUPT

    except Exception as exc:
        return _handle_error("Unexpected error", exc, args.verbose, EXIT_UNEXPECTED)


def _handle_error(label: str, exc: BaseException, verbose: bool, exit_code: int) -> int:
    """Print error message to stderr and return the exit code."""
    print(f"{label}: {exc}", file=sys.stderr)
    if verbose:
        traceback.print_exc(file=sys.stderr)
    return exit_code


def run() -> None:
    """Console-script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
