"""Document-order numbering of sections, figures, tables and footnotes.

Counters are keyed by ``(class, parent_scope)``. A heading's parent scope is
the number of its enclosing section, so when an ancestor heading increments
every deeper level starts again from one: 1, 1.1, 1.2, 2, 2.1. Figures and
tables use the first ``figure_scope`` levels of the current section number as
their scope (0 numbers them through the whole document).
"""

from typing import Dict, List, Tuple

from .errors import NumberingContractError

Number = Tuple[int, ...]


def format_number(number: Number) -> str:
    return '.'.join(str(n) for n in number)


class NumberingManager:
    def __init__(self, figure_scope: int = 0):
        if figure_scope < 0:
            raise NumberingContractError(f"figure_scope must be >= 0, got {figure_scope}")
        self.figure_scope = figure_scope
        self._counters: Dict[Tuple[str, Number], int] = {}
        self._section: List[int] = []

    def next(self, klass: str, parent_scope: Number = ()) -> int:
        """Return the next value of the counter for ``(klass, parent_scope)``."""
        key = (klass, tuple(parent_scope))
        value = self._counters.get(key, 0) + 1
        self._counters[key] = value
        return value

    def current(self, klass: str, parent_scope: Number = ()) -> int:
        return self._counters.get((klass, tuple(parent_scope)), 0)

    @property
    def section(self) -> Number:
        return tuple(self._section)

    def heading(self, level: int) -> Number:
        """Number the next heading at ``level`` (1-based)."""
        if not isinstance(level, int) or level < 1:
            raise NumberingContractError(f"Heading level must be a positive integer, got {level!r}")
        parent = self._section[: level - 1]
        # A skipped level counts as zero, like Typst's own heading counter
        parent += [0] * (level - 1 - len(parent))
        value = self.next('heading', tuple(parent))
        self._section = parent + [value]
        return tuple(self._section)

    def _scoped(self, klass: str) -> Number:
        scope = self._section[: self.figure_scope]
        scope += [0] * (self.figure_scope - len(scope))
        return tuple(scope) + (self.next(klass, tuple(scope)),)

    def figure(self) -> Number:
        return self._scoped('figure')

    def table(self) -> Number:
        return self._scoped('table')

    def footnote(self) -> Number:
        return (self.next('footnote'),)
