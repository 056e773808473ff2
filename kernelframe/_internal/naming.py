from __future__ import annotations

import threading

FIRST_INDEX = 1


class VariableNameGenerator:
    """Hands out collision-free remote variable names, one counter per kind.

    Instances are owned by a Session. Names are never reused for the lifetime
    of the generator.
    """

    def __init__(self, start: int = FIRST_INDEX) -> None:
        self._start = start
        self._counters: dict[str, int] = {}
        self._lock = threading.Lock()

    def next(self, kind: str) -> str:
        # a trailing digit would let "df1" + "1" collide with "df" + "11"
        if not kind.isidentifier() or kind[-1].isdigit():
            raise ValueError(f"Variable kind must be an identifier without a trailing digit, got {kind!r}")
        with self._lock:
            index = self._counters.get(kind, self._start)
            self._counters[kind] = index + 1
        return f"{kind}{index}"

    def issued(self, kind: str) -> int:
        """Number of names handed out so far for *kind*."""
        with self._lock:
            return self._counters.get(kind, self._start) - self._start
