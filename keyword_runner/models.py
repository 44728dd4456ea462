"""Data models for the keyword runner."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class StepKind(str, Enum):
    """Tag of a parsed script step."""

    ACTION = "action"
    IF = "if"
    ELSE = "else"
    LOOP = "loop"
    ENDIF = "endif"
    ENDLOOP = "endloop"


BLOCK_KINDS = (StepKind.IF, StepKind.ELSE, StepKind.LOOP)


@dataclass
class TestStep:
    """A single node of the step tree.

    ``text`` holds the action template for ``action`` steps, the condition for
    ``if`` and ``else if`` steps (``None`` for a bare ``else``) and the raw
    header for ``loop`` steps.
    """

    __test__ = False

    kind: StepKind
    text: Optional[str] = None
    parameters: List[str] = field(default_factory=list)
    children: List["TestStep"] = field(default_factory=list)

    @property
    def is_block(self) -> bool:
        return self.kind in BLOCK_KINDS

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"type": getattr(self.kind, "value", self.kind)}
        if self.text is not None:
            payload["action"] = self.text
        if self.kind == StepKind.ACTION:
            payload["parameters"] = list(self.parameters)
        if self.is_block:
            payload["steps"] = [child.to_dict() for child in self.children]
        return payload


def action_step(template: str, parameters: Optional[List[str]] = None) -> TestStep:
    return TestStep(kind=StepKind.ACTION, text=template, parameters=list(parameters or []))


def if_step(condition: str, children: Optional[List[TestStep]] = None) -> TestStep:
    return TestStep(kind=StepKind.IF, text=condition, children=list(children or []))


def else_step(children: Optional[List[TestStep]] = None, condition: Optional[str] = None) -> TestStep:
    return TestStep(kind=StepKind.ELSE, text=condition, children=list(children or []))


def loop_step(expression: str, children: Optional[List[TestStep]] = None) -> TestStep:
    return TestStep(kind=StepKind.LOOP, text=expression, children=list(children or []))


@dataclass
class TestCase:
    """A named script case and its step tree."""

    __test__ = False

    name: str
    steps: List[TestStep] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "steps": [step.to_dict() for step in self.steps]}


@dataclass
class StepResult:
    """Captures outcome data for a single dispatched action."""

    step_number: int
    action: str
    parameters: List[str]
    status: str
    started_at: datetime
    finished_at: datetime
    error: Optional[str] = None
    screenshot_path: Optional[str] = None
    video_path: Optional[str] = None

    @property
    def duration_ms(self) -> int:
        return int((self.finished_at - self.started_at).total_seconds() * 1000)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "stepNumber": self.step_number,
            "action": self.action,
            "parameters": list(self.parameters),
            "status": self.status,
            "startedAt": self.started_at.isoformat(),
            "finishedAt": self.finished_at.isoformat(),
            "durationMs": self.duration_ms,
        }
        if self.error is not None:
            payload["error"] = self.error
        if self.screenshot_path is not None:
            payload["screenshotPath"] = self.screenshot_path
        if self.video_path is not None:
            payload["videoPath"] = self.video_path
        return payload


@dataclass
class TestResult:
    """Aggregated outcome of one test case."""

    __test__ = False

    test_name: str
    status: str
    started_at: datetime
    finished_at: datetime
    steps: List[StepResult] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def duration_ms(self) -> int:
        return int((self.finished_at - self.started_at).total_seconds() * 1000)

    @property
    def passed_steps(self) -> int:
        return sum(1 for step in self.steps if step.status == "passed")

    @property
    def first_failure(self) -> Optional[StepResult]:
        for step in self.steps:
            if step.status == "failed":
                return step
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "testName": self.test_name,
            "steps": [step.to_dict() for step in self.steps],
            "status": self.status,
            "durationMs": self.duration_ms,
            "startedAt": self.started_at.isoformat(),
            "finishedAt": self.finished_at.isoformat(),
            "error": self.error,
        }
