"""Phrase-prefix predicates used by If / Else if steps."""
from __future__ import annotations

import logging
from typing import Callable, List, Tuple

from .variables import VariableEnvironment

logger = logging.getLogger(__name__)

Predicate = Callable[[str, VariableEnvironment], bool]


def page_title_contains(argument: str, variables: VariableEnvironment) -> bool:
    expected = argument.replace('"', "")
    actual = variables.get("pageTitle") or ""
    return expected in str(actual)


class ConditionEvaluator:
    """Ordered registry of ``(prefix, predicate)`` pairs.

    Conditions that match no registered prefix evaluate to ``True`` so that a
    script may reference a predicate before anyone has implemented it.
    """

    def __init__(self, register_defaults: bool = True) -> None:
        self._predicates: List[Tuple[str, Predicate]] = []
        if register_defaults:
            self.register("page title contains ", page_title_contains)
            self.register("заголовок страницы содержит ", page_title_contains)

    def register(self, prefix: str, predicate: Predicate) -> None:
        self._predicates.append((prefix.lower(), predicate))

    def evaluate(self, condition: str, variables: VariableEnvironment) -> bool:
        text = condition.strip()
        lowered = text.lower()
        for prefix, predicate in self._predicates:
            if lowered.startswith(prefix):
                result = bool(predicate(text[len(prefix):].strip(), variables))
                logger.debug("Condition %r -> %s", text, result)
                return result
        logger.debug("No predicate registered for condition %r; treating it as true", text)
        return True
