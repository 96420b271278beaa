"""Named template placeholders resolved on demand."""

from __future__ import annotations

import re
from collections.abc import Callable

from loguru import logger

_MACRO_PATTERN = re.compile(r"\{\{\s*(\w+)\s*\}\}")


class MacroRegistry:
    """Maps ``{{name}}`` placeholders to resolver callables."""

    def __init__(self) -> None:
        self._resolvers: dict[str, Callable[[], str]] = {}

    def register(self, name: str, resolver: Callable[[], str]) -> None:
        if name in self._resolvers:
            logger.warning(f"Macro {name!r} re-registered")
        self._resolvers[name] = resolver

    def names(self) -> list[str]:
        return sorted(self._resolvers)

    def resolve(self, name: str) -> str:
        """Resolve a macro to its current text.

        Raises:
            KeyError: If no macro of that name is registered
        """
        return self._resolvers[name]()

    def substitute(self, text: str) -> str:
        """Replace every registered placeholder in ``text``; others are left as-is."""

        def replacer(match: re.Match) -> str:
            name = match.group(1)
            if name not in self._resolvers:
                return match.group(0)
            return self._resolvers[name]()

        return _MACRO_PATTERN.sub(replacer, text)
