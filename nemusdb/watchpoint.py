"""A fixed-size pool of watchpoints over debugger expressions."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Iterator, List, Optional, Tuple

NR_WP = 32


class NoFreeWatchpoint(RuntimeError):
    """Raised when every watchpoint in the pool is already in use."""


@dataclass
class Watchpoint:
    """An expression whose value is compared after every step."""

    number: int
    expression: str = ""
    value: int = 0


class WatchpointPool:
    """Watchpoints numbered from 0; a freed number is the next one handed out."""

    def __init__(self, evaluate: Callable[[str], int], size: int = NR_WP) -> None:
        self._evaluate = evaluate
        self._free: Deque[Watchpoint] = deque(Watchpoint(i) for i in range(size))
        self._active: List[Watchpoint] = []

    def __len__(self) -> int:
        return len(self._active)

    def __iter__(self) -> Iterator[Watchpoint]:
        return iter(list(self._active))

    def add(self, expression: str) -> Watchpoint:
        """Watch an expression; raises NoFreeWatchpoint or the evaluator's error."""
        if not self._free:
            raise NoFreeWatchpoint("no free watchpoint left")
        value = self._evaluate(expression)
        watchpoint = self._free.popleft()
        watchpoint.expression = expression
        watchpoint.value = value
        self._active.append(watchpoint)
        return watchpoint

    def delete(self, number: int) -> Watchpoint:
        """Release the watchpoint with this number; KeyError if none is active."""
        for index, watchpoint in enumerate(self._active):
            if watchpoint.number == number:
                del self._active[index]
                removed = Watchpoint(watchpoint.number, watchpoint.expression, watchpoint.value)
                watchpoint.expression = ""
                watchpoint.value = 0
                self._free.appendleft(watchpoint)
                return removed
        raise KeyError(number)

    def check(self) -> Optional[Tuple[Watchpoint, int]]:
        """Re-evaluate in creation order; return the first changed one and its old value."""
        for watchpoint in self._active:
            try:
                new_value = self._evaluate(watchpoint.expression)
            except ValueError:
                new_value = 0
            old_value = watchpoint.value
            watchpoint.value = new_value
            if new_value != old_value:
                return watchpoint, old_value
        return None

    def display(self) -> List[str]:
        """One line per active watchpoint, ordered by number."""
        return [
            f"watchpoint {wp.number}: {wp.expression}"
            for wp in sorted(self._active, key=lambda wp: wp.number)
        ]