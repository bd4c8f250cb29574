"""Course code normalization."""

from __future__ import annotations

import re
from collections.abc import Iterable

_COMPACT_COURSE = re.compile(r"^(?P<department>[^\d]+?)(?P<number>\d.*)$")


def _has_digit(token: str) -> bool:
    return any(ch.isdigit() for ch in token)


def normalize_course(raw: str | None) -> str:
    """Normalize a course label into ``"<DEPARTMENT> <NUMBER>"`` form.

    Department and number are upper-cased and the number carries no
    whitespace, so ``"cs 31a"``, ``"CS31A"`` and ``" Cs  31 A "`` all become
    ``"CS 31A"``. Multi-word departments keep single spaces
    (``"com sci 31"`` -> ``"COM SCI 31"``).

    Labels that cannot be split into a department and a number (no digit
    anywhere, or nothing in front of it) come back upper-cased and
    whitespace-collapsed. Such codes only ever match themselves.
    """
    tokens = (raw or "").upper().split()
    if not tokens:
        return ""

    # The number starts at the first token after the department that has a digit.
    for index in range(1, len(tokens)):
        if _has_digit(tokens[index]):
            department = " ".join(tokens[:index])
            number = "".join(tokens[index:])
            return f"{department} {number}"

    if len(tokens) == 1:
        match = _COMPACT_COURSE.match(tokens[0])
        if match:
            return f"{match.group('department')} {match.group('number')}"
        return tokens[0]

    return f"{' '.join(tokens[:-1])} {tokens[-1]}"


def normalize_courses(raws: Iterable[str | None] | None) -> list[str]:
    """Normalize a list of course labels, dropping blanks and duplicates.

    The first occurrence of each course keeps its position.
    """
    seen: dict[str, None] = {}
    for raw in raws or []:
        code = normalize_course(raw)
        if code:
            seen.setdefault(code, None)
    return list(seen)
