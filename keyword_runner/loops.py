"""Parsing of ``For each`` loop headers."""
from __future__ import annotations

import re
from typing import List, Tuple

from .errors import InvalidLoopExpression

LOOP_EXPRESSION_PATTERN = re.compile(r"^(.*?)\s+(?:in|в)\s+\[(.*)\]", re.IGNORECASE | re.DOTALL)


def parse_loop_expression(expression: str) -> Tuple[str, List[str]]:
    """Split ``name in ["a", "b"]`` into ``("name", ["a", "b"])``."""
    match = LOOP_EXPRESSION_PATTERN.match(expression.strip())
    if not match:
        raise InvalidLoopExpression(expression)
    name = match.group(1).strip()
    if not name:
        raise InvalidLoopExpression(expression)
    body = match.group(2).strip()
    if not body:
        return name, []
    items = [item.strip().replace('"', "") for item in body.split(",")]
    return name, items
