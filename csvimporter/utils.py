"""Common helpers shared by the batch and streaming parsers."""
from __future__ import annotations

import re
from collections import Counter
from time import perf_counter

LINE_BREAK = re.compile(r"\r?\n")
"""Physical record separator. A lone ``\\r`` is not a line break."""


def split_lines(text: str) -> list[str]:
    """Split text into physical lines, keeping a trailing (possibly empty) last piece."""
    return LINE_BREAK.split(text)


def is_blank(line: str) -> bool:
    """Empty or whitespace-only lines are considered blank."""
    return not line or not line.strip()


def uniquify(names: list[str]) -> list[str]:
    """Make names unique by appending a counter to repeated ones."""
    counts = Counter(names)
    seen: dict[str, int] = {}
    result = []

    for name in names:
        if counts[name] == 1:
            result.append(name)
            continue

        n = seen.get(name, 0)
        seen[name] = n + 1
        result.append(name if n == 0 else f"{name}_{n}")

    return result


class Timer:
    def __enter__(self):
        self.start = perf_counter()
        return self

    def __exit__(self, type, value, traceback):
        self.end = perf_counter()
        self.elapsed = self.end - self.start
