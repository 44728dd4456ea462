"""Tests for script discovery and the command-line entry point."""
from __future__ import annotations

import asyncio
import logging
from logging.handlers import TimedRotatingFileHandler

import pytest

from .cli import build_parser, discover_scripts, main, run_test_cases
from .models import TestCase


def _file_handlers():
    return [handler for handler in logging.getLogger().handlers if isinstance(handler, TimedRotatingFileHandler)]


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("CI", raising=False)
    root = logging.getLogger()
    before = list(root.handlers)
    yield tmp_path
    for handler in root.handlers[:]:
        if handler not in before:
            root.removeHandler(handler)
            handler.close()


def test_discover_scripts_expands_directories(tmp_path):
    features = tmp_path / "features"
    (features / "nested").mkdir(parents=True)
    (features / "b.feature").write_text("Test: B\n", encoding="utf-8")
    (features / "nested" / "a.txt").write_text("Test: A\n", encoding="utf-8")
    (features / "notes.md").write_text("ignored", encoding="utf-8")
    single = tmp_path / "single.script"
    single.write_text("Test: S\n", encoding="utf-8")

    scripts = discover_scripts([str(features), str(single), str(features / "b.feature")])

    assert scripts == [features / "b.feature", features / "nested" / "a.txt", single]


def test_discover_scripts_custom_pattern(tmp_path):
    (tmp_path / "a.feature").write_text("", encoding="utf-8")
    (tmp_path / "b.txt").write_text("", encoding="utf-8")

    assert discover_scripts([str(tmp_path)], ["*.txt"]) == [tmp_path / "b.txt"]


def test_discover_scripts_missing_path(tmp_path):
    with pytest.raises(FileNotFoundError):
        discover_scripts([str(tmp_path / "nowhere")])


def test_run_test_cases_tears_down_after_every_case():
    events = []

    class Executor:
        async def execute_test_case(self, test_case):
            events.append(f"run {test_case.name}")
            return test_case.name

    async def teardown():
        events.append("teardown")

    cases = [TestCase(name="one"), TestCase(name="two")]
    results = asyncio.run(run_test_cases(Executor(), cases, teardown=teardown))

    assert results == ["one", "two"]
    assert events == ["run one", "teardown", "run two", "teardown"]


def test_teardown_failure_does_not_stop_the_run():
    ran = []

    class Executor:
        async def execute_test_case(self, test_case):
            ran.append(test_case.name)
            return test_case.name

    async def teardown():
        raise RuntimeError("close failed")

    cases = [TestCase(name="one"), TestCase(name="two")]
    results = asyncio.run(run_test_cases(Executor(), cases, teardown=teardown))

    assert ran == ["one", "two"]
    assert results == ["one", "two"]


def test_repeated_main_keeps_one_log_file_handler(workdir):
    script = workdir / "empty.feature"
    script.write_text("# nothing here\n", encoding="utf-8")
    log_path = (workdir / "log" / "keyword_runner.log").resolve()

    main([str(script)])
    main([str(script)])

    handlers = [handler for handler in _file_handlers() if handler.baseFilename == str(log_path)]
    assert len(handlers) == 1


def test_build_parser_defaults():
    args = build_parser().parse_args([])

    assert args.paths == ["features"]
    assert args.pattern is None
    assert args.headed is False
    assert args.report is None


def test_main_rejects_unbalanced_script(workdir):
    script = workdir / "bad.feature"
    script.write_text("Test: Broken\nOpen cart\nEndIf\n", encoding="utf-8")

    assert main([str(script)]) == 2


def test_main_without_test_cases(workdir):
    script = workdir / "empty.feature"
    script.write_text("# nothing here\n", encoding="utf-8")

    assert main([str(script)]) == 2


def test_main_missing_path(workdir):
    assert main([str(workdir / "features")]) == 2


def test_main_invalid_config(workdir):
    (workdir / "config.json").write_text('{"browser": {"slowMo": "fast"}}', encoding="utf-8")
    script = workdir / "ok.feature"
    script.write_text("Test: T\nOpen cart\n", encoding="utf-8")

    assert main([str(script)]) == 2
