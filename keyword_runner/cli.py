"""Command-line interface for the keyword runner."""
from __future__ import annotations

import argparse
import asyncio
import logging
from logging.handlers import TimedRotatingFileHandler
import sys
from pathlib import Path
from typing import Awaitable, Callable, Iterable, List, Optional, Sequence

from dotenv import load_dotenv

from .actions import ActionLibrary
from .config import RunnerSettings, load_settings
from .errors import ConfigError, ScriptParseError
from .executor import TestExecutor
from .models import TestCase, TestResult
from .parser import ScriptParser
from .recorder import ResultRecorder
from .report_generator import ReportGenerator
from .session import BrowserSession
from .variables import VariableEnvironment

LOG_DIR = Path("log")
DEFAULT_PATTERNS = ("*.feature", "*.txt")
LOGGER = logging.getLogger("keyword_runner.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run keyword test scripts in a browser")
    parser.add_argument(
        "paths",
        nargs="*",
        default=["features"],
        help="Script files or directories to search (default: features)",
    )
    parser.add_argument("--config", help="Path to config.json (default: ./config.json when present)")
    parser.add_argument(
        "--pattern",
        action="append",
        help="Glob for script files inside directories; repeatable (default: *.feature and *.txt)",
    )
    parser.add_argument("--headed", action="store_true", help="Show the browser window")
    parser.add_argument("--no-logs", action="store_true", help="Do not write the JSON result log")
    parser.add_argument("--report", help="Write a Markdown run summary to this path")
    parser.add_argument("--debug", action="store_true", help="Enable DEBUG logging")
    return parser


def _setup_logging(debug: bool) -> None:
    LOG_DIR.mkdir(exist_ok=True)
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(level=level)

    root = logging.getLogger()
    root.setLevel(level)
    log_path = (LOG_DIR / "keyword_runner.log").resolve()
    for handler in root.handlers:
        if isinstance(handler, TimedRotatingFileHandler) and Path(handler.baseFilename).resolve() == log_path:
            return

    file_handler = TimedRotatingFileHandler(
        log_path,
        when="midnight",
        encoding="utf-8",
        backupCount=7,
    )
    file_handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s"))
    root.addHandler(file_handler)


def discover_scripts(paths: Iterable[str], patterns: Sequence[str] = DEFAULT_PATTERNS) -> List[Path]:
    """Expand files and directories into a sorted, de-duplicated script list."""
    found: List[Path] = []
    for raw in paths:
        path = Path(raw)
        if path.is_file():
            candidates = [path]
        elif path.is_dir():
            candidates = sorted({item for pattern in patterns for item in path.rglob(pattern) if item.is_file()})
        else:
            raise FileNotFoundError(f"Script path not found: {path}")
        for candidate in candidates:
            if candidate not in found:
                found.append(candidate)
    return found


async def run_test_cases(
    executor: TestExecutor,
    test_cases: Sequence[TestCase],
    teardown: Optional[Callable[[], Awaitable[None]]] = None,
) -> List[TestResult]:
    """Run cases one after another, tearing the session down after each.

    A teardown failure is logged against its case; the remaining cases still run.
    """
    results: List[TestResult] = []
    for test_case in test_cases:
        try:
            results.append(await executor.execute_test_case(test_case))
        finally:
            if teardown is not None:
                try:
                    await teardown()
                except Exception as exc:
                    LOGGER.error('Teardown after "%s" failed: %s', test_case.name, exc)
    return results


async def _run(settings: RunnerSettings, test_cases: Sequence[TestCase]) -> List[TestResult]:
    variables = VariableEnvironment()
    actions = ActionLibrary(BrowserSession(settings), variables)
    executor = TestExecutor(actions, variables=variables, recorder=ResultRecorder(settings.logging))
    return await run_test_cases(executor, test_cases, teardown=actions.close)


def _print_summary(results: Sequence[TestResult]) -> None:
    passed = sum(1 for result in results if result.status == "passed")
    print("")
    print("=" * 80)
    print("Run finished")
    print("=" * 80)
    for result in results:
        marker = "✓" if result.status == "passed" else "✗"
        print(f"{marker} {result.test_name} ({result.duration_ms} ms, {result.passed_steps}/{len(result.steps)} steps)")
        failure = result.first_failure
        if failure is not None:
            print(f"    step {failure.step_number}: {failure.action} -> {failure.error}")
    print("")
    print(f"Passed: {passed}/{len(results)}")


def main(argv: Sequence[str] | None = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    _setup_logging(args.debug)

    try:
        settings = load_settings(args.config)
        scripts = discover_scripts(args.paths, args.pattern or DEFAULT_PATTERNS)
        script_parser = ScriptParser()
        test_cases = [case for script in scripts for case in script_parser.parse_file(script)]
    except (ConfigError, ScriptParseError, FileNotFoundError) as exc:
        LOGGER.error("%s", exc)
        return 2

    if not test_cases:
        LOGGER.error("No test cases found in %s", ", ".join(args.paths))
        return 2

    if args.headed:
        settings.browser.headless = False
    if args.no_logs:
        settings.logging.enabled = False

    LOGGER.info("Running %d test case(s) from %d script(s)", len(test_cases), len(scripts))
    results = asyncio.run(_run(settings, test_cases))
    _print_summary(results)

    if args.report:
        report_path = ReportGenerator().write(results, Path(args.report))
        print(f"Report: {report_path}")

    return 0 if all(result.status == "passed" for result in results) else 1


if __name__ == "__main__":
    sys.exit(main())
