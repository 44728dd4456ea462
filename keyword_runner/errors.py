"""Exception hierarchy for the keyword runner."""
from __future__ import annotations

from typing import Optional


class KeywordRunnerError(Exception):
    """Base class for every error raised by the runner."""


class ConfigError(KeywordRunnerError):
    """Raised when config.json does not match the expected schema."""


class ScriptParseError(KeywordRunnerError):
    """Raised when block keywords in a script do not balance."""

    def __init__(self, line_number: int, line: str, reason: str) -> None:
        super().__init__(f"line {line_number}: {reason}: {line!r}")
        self.line_number = line_number
        self.line = line
        self.reason = reason


class UnknownStepType(KeywordRunnerError):
    """Raised when the step tree contains a kind the executor cannot run."""

    def __init__(self, kind: object) -> None:
        super().__init__(f"Unknown step type: {getattr(kind, 'value', kind)}")
        self.kind = kind


class InvalidLoopExpression(KeywordRunnerError):
    """Raised when a loop header is not ``<name> in [<items>]``."""

    def __init__(self, expression: str) -> None:
        super().__init__(f"Invalid loop expression: {expression}")
        self.expression = expression


class ActionError(KeywordRunnerError):
    """Raised by the action library; may carry failure artifacts."""

    def __init__(
        self,
        message: str,
        *,
        screenshot_path: Optional[str] = None,
        video_path: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.screenshot_path = screenshot_path
        self.video_path = video_path


class UnknownAction(ActionError):
    """Raised when no registered action matches the step text."""

    def __init__(self, action: str) -> None:
        super().__init__(f"Unknown action: {action}")
        self.action = action


class MissingPrecondition(ActionError):
    """Raised when an action needs data an earlier step should have stored."""

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail
