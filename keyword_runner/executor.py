"""Tree-walking interpreter for parsed keyword scripts."""
from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import List, Optional, Protocol, Sequence

from .conditions import ConditionEvaluator
from .errors import UnknownStepType
from .loops import parse_loop_expression
from .models import StepKind, StepResult, TestCase, TestResult, TestStep
from .recorder import ResultRecorder
from .variables import VariableEnvironment


class ActionPerformer(Protocol):
    async def perform(self, action: str, parameters: List[str]) -> None:
        ...


def format_parameters(parameters: Sequence[str]) -> str:
    shown = [param for param in parameters if param and param != "{}"]
    return f" [{', '.join(shown)}]" if shown else ""


class TestExecutor:
    """Runs test cases against an action library, one case at a time."""

    __test__ = False

    def __init__(
        self,
        actions: ActionPerformer,
        variables: Optional[VariableEnvironment] = None,
        conditions: Optional[ConditionEvaluator] = None,
        recorder: Optional[ResultRecorder] = None,
    ) -> None:
        self.actions = actions
        self.variables = variables if variables is not None else VariableEnvironment()
        self.conditions = conditions or ConditionEvaluator()
        self.recorder = recorder
        self.results: List[TestResult] = []
        self.logger = logging.getLogger("keyword_runner.executor")

    async def execute_test_case(self, test_case: TestCase) -> TestResult:
        """Execute every step of ``test_case``, stopping at the first failure.

        Errors never escape: the case is marked failed and the returned
        result carries the message so the next case can still run.
        """
        self.logger.info("Test: %s", test_case.name)
        result = TestResult(
            test_name=test_case.name,
            status="passed",
            started_at=datetime.now(),
            finished_at=datetime.now(),
        )

        try:
            await self.execute_steps(test_case.steps, result)
        except Exception as exc:  # fail-fast: the rest of the case is skipped
            result.status = "failed"
            result.error = str(exc)
            self.logger.error('Test "%s" failed: %s', test_case.name, exc)
        else:
            self.logger.info('Test "%s" passed', test_case.name)
        finally:
            result.finished_at = datetime.now()

        self.results.append(result)
        if self.recorder is not None:
            try:
                self.recorder.record(result)
            except OSError as exc:
                self.logger.error('Could not record result of "%s": %s', test_case.name, exc)
        return result

    async def execute_steps(self, steps: Sequence[TestStep], result: TestResult) -> None:
        for step in steps:
            await self.execute_step(step, result)

    async def execute_step(self, step: TestStep, result: TestResult) -> None:
        if step.kind == StepKind.ACTION:
            await self._execute_action(step, result)
        elif step.kind == StepKind.IF:
            await self._execute_if(step, result)
        elif step.kind == StepKind.LOOP:
            await self._execute_loop(step, result)
        elif step.kind in (StepKind.ELSE, StepKind.ENDIF, StepKind.ENDLOOP):
            # Else is reached through its If; the end markers only shape the tree.
            return
        else:
            raise UnknownStepType(step.kind)

    async def _execute_action(self, step: TestStep, result: TestResult) -> None:
        parameters = [self.variables.substitute(param) for param in step.parameters]
        action = self.variables.substitute(step.text or "")
        step_number = len(result.steps) + 1
        started_at = datetime.now()

        try:
            await self.actions.perform(action, parameters)
        except Exception as exc:
            result.steps.append(
                StepResult(
                    step_number=step_number,
                    action=action,
                    parameters=parameters,
                    status="failed",
                    started_at=started_at,
                    finished_at=datetime.now(),
                    error=str(exc),
                    screenshot_path=getattr(exc, "screenshot_path", None),
                    video_path=getattr(exc, "video_path", None),
                ))
            result.status = "failed"
            self.logger.warning("Step %d failed: %s%s", step_number, action, format_parameters(parameters))
            raise

        result.steps.append(
            StepResult(
                step_number=step_number,
                action=action,
                parameters=parameters,
                status="passed",
                started_at=started_at,
                finished_at=datetime.now(),
            ))
        self.logger.info("Step %d: %s%s", step_number, action, format_parameters(parameters))

    async def _execute_if(self, step: TestStep, result: TestResult) -> None:
        condition = self.variables.substitute(step.text or "")
        if self.conditions.evaluate(condition, self.variables):
            body = [child for child in step.children if child.kind != StepKind.ELSE]
            await self.execute_steps(body, result)
            return

        for branch in step.children:
            if branch.kind != StepKind.ELSE:
                continue
            if branch.text is None or self.conditions.evaluate(self.variables.substitute(branch.text), self.variables):
                await self.execute_steps(branch.children, result)
                return

    async def _execute_loop(self, step: TestStep, result: TestResult) -> None:
        expression = self.variables.substitute(step.text or "")
        name, items = parse_loop_expression(expression)

        for item in items:
            self.variables[name] = item
            # Body steps run with [item] as their only parameter, whatever they were parsed with.
            body = [replace(child, parameters=[item]) for child in step.children]
            await self.execute_steps(body, result)
