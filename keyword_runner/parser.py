"""Block parser: turns script text into test cases with nested step trees."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional, Tuple

from .errors import ScriptParseError
from .models import StepKind, TestCase, TestStep, action_step, else_step, if_step, loop_step

logger = logging.getLogger(__name__)

PLACEHOLDER = "{}"
PARAMETER_PATTERN = re.compile(r'"([^"]+)"|(\d+)')

TEST_HEADER_PATTERN = re.compile(r"^(?:test|тест):\s*(.*)$", re.IGNORECASE)
STEP_PATTERNS = (
    (StepKind.IF, re.compile(r"^(?:if|если)\s+(.+)$", re.IGNORECASE)),
    (StepKind.ELSE, re.compile(r"^(?:else|иначе)(?:\s+(?:if|если)\s+(.+))?$", re.IGNORECASE)),
    (StepKind.ENDIF, re.compile(r"^(?:endif|конецесли)\b", re.IGNORECASE)),
    (StepKind.LOOP, re.compile(r"^(?:for\s+each|для\s+каждого)\s+(.+)$", re.IGNORECASE)),
    (StepKind.ENDLOOP, re.compile(r"^(?:endloop|конеццикла)\b", re.IGNORECASE)),
)


@dataclass
class _Frame:
    """An open block: the step that opened it and the list receiving children."""

    owner: Optional[TestStep]
    steps: List[TestStep]


def extract_action_and_parameters(line: str) -> Tuple[str, List[str]]:
    """Replace quoted strings and bare integers with placeholders.

    Returns the template and the literal values in left-to-right order.
    """
    parameters = [m.group(1) if m.group(1) is not None else m.group(2) for m in PARAMETER_PATTERN.finditer(line)]
    template = PARAMETER_PATTERN.sub(PLACEHOLDER, line).strip()
    return template, parameters


class ScriptParser:
    """Parses keyword scripts written with English or Russian keywords."""

    def parse_file(self, file_path: Any) -> List[TestCase]:
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"Script file not found: {path}")
        return self.parse(path.read_text(encoding="utf-8"))

    def parse(self, text: str) -> List[TestCase]:
        cases: List[TestCase] = []
        current: Optional[TestCase] = None
        stack: List[_Frame] = []

        for line_number, raw_line in enumerate(text.splitlines(), start=1):
            line = raw_line.strip()
            if not line or line.startswith("#"):
                continue

            header = TEST_HEADER_PATTERN.match(line)
            if header:
                if current is not None:
                    self._close_case(current, stack)
                    cases.append(current)
                current = TestCase(name=header.group(1).strip())
                stack = [_Frame(owner=None, steps=current.steps)]
                continue

            if current is None:
                logger.debug("Ignoring line %d outside of a test case: %s", line_number, line)
                continue

            self._place(self.parse_step(line), stack, line_number, line)

        if current is not None:
            self._close_case(current, stack)
            cases.append(current)

        return cases

    def parse_step(self, line: str) -> TestStep:
        line = line.strip()
        for kind, pattern in STEP_PATTERNS:
            match = pattern.match(line)
            if not match:
                continue
            if kind == StepKind.IF:
                return if_step(match.group(1).strip())
            if kind == StepKind.ELSE:
                condition = match.group(1)
                return else_step(condition=condition.strip() if condition else None)
            if kind == StepKind.LOOP:
                return loop_step(match.group(1).strip())
            return TestStep(kind=kind)

        template, parameters = extract_action_and_parameters(line)
        return action_step(template, parameters)

    def _place(self, step: TestStep, stack: List[_Frame], line_number: int, line: str) -> None:
        if step.kind in (StepKind.IF, StepKind.LOOP):
            stack[-1].steps.append(step)
            stack.append(_Frame(owner=step, steps=step.children))
        elif step.kind == StepKind.ELSE:
            # Else branches hang off the owning If, never off a previous Else.
            owner = self._pop(stack, StepKind.IF, line_number, line)
            owner.children.append(step)
            stack.append(_Frame(owner=owner, steps=step.children))
        elif step.kind == StepKind.ENDIF:
            self._pop(stack, StepKind.IF, line_number, line)
        elif step.kind == StepKind.ENDLOOP:
            self._pop(stack, StepKind.LOOP, line_number, line)
        else:
            stack[-1].steps.append(step)

    @staticmethod
    def _pop(stack: List[_Frame], expected: StepKind, line_number: int, line: str) -> TestStep:
        if len(stack) <= 1:
            raise ScriptParseError(line_number, line, "no open block to close")
        owner = stack[-1].owner
        if owner is None or owner.kind != expected:
            raise ScriptParseError(line_number, line, f"innermost open block is not {expected.value}")
        stack.pop()
        return owner

    @staticmethod
    def _close_case(case: TestCase, stack: List[_Frame]) -> None:
        unclosed = len(stack) - 1
        if unclosed > 0:
            logger.warning("Test case %r ends with %d unclosed block(s); closing them", case.name, unclosed)


def parse_script(text: str) -> List[TestCase]:
    return ScriptParser().parse(text)
