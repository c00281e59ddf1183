from __future__ import annotations

from typing import Iterator, List

from common.logging_setup import get_logger


log = get_logger("catalog.diagnostics")


class Diagnostics:
    """
    Append-only record of parse/registration failures, one plain-text line
    each ("<source>: <cause>"). Every line is also logged as a warning.
    The owner decides when to read or drain it.
    """

    def __init__(self) -> None:
        self._lines: List[str] = []

    def append(self, source: str, cause: str) -> str:
        # Entries are single lines.
        cause = " ".join(cause.split())
        line = f"{source}: {cause}"
        self._lines.append(line)
        log.warning(cause, extra={"extra": {"source": source}})
        return line

    def lines(self) -> List[str]:
        return list(self._lines)

    def drain(self) -> List[str]:
        out, self._lines = self._lines, []
        return out

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._lines))
