# provision/log_sink.py
from __future__ import annotations
from collections import deque
from typing import Deque, Iterable, Iterator, List

MAX_LOG_LINES = 200


class LogSink:
    """Ordered buffer of the most recent install log lines (oldest evicted first)."""

    def __init__(self, limit: int = MAX_LOG_LINES) -> None:
        self._lines: Deque[str] = deque(maxlen=limit)

    @property
    def limit(self) -> int:
        return self._lines.maxlen

    def append(self, line: str) -> None:
        self._lines.append(line)

    def extend(self, lines: Iterable[str]) -> None:
        self._lines.extend(lines)

    def clear(self) -> None:
        self._lines.clear()

    @property
    def lines(self) -> List[str]:
        return list(self._lines)

    def text(self) -> str:
        return "\n".join(self._lines)

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._lines))
