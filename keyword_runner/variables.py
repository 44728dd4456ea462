"""Variable environment shared by the executor and the action library."""
from __future__ import annotations

import re
from collections.abc import MutableMapping
from typing import Any, Dict, Iterator, Optional

VARIABLE_PATTERN = re.compile(r"\{(.*?)\}")


class VariableEnvironment(MutableMapping):
    """Mutable name -> value mapping with ``{name}`` substitution."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self._values: Dict[str, Any] = dict(initial or {})

    def __getitem__(self, name: str) -> Any:
        return self._values[name]

    def __setitem__(self, name: str, value: Any) -> None:
        self._values[name] = value

    def __delitem__(self, name: str) -> None:
        del self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"VariableEnvironment({self._values!r})"

    def set(self, name: str, value: Any) -> None:
        self._values[name] = value

    def substitute(self, text: Optional[str]) -> str:
        """Replace bound ``{name}`` references; unbound ones stay as written."""
        if not text:
            return text or ""

        def _replace(match: re.Match) -> str:
            value = self._values.get(match.group(1).strip())
            return match.group(0) if value is None else str(value)

        return VARIABLE_PATTERN.sub(_replace, text)
