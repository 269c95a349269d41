"""
Derived academic scores.

cutoff = maths/2 + physics/4 + chemistry/4, only when all three subjects are present.
Each mark is out of 100; unparseable or non-finite marks count as 0.
"""
import math
from typing import Iterable, NamedTuple, Optional


class MarkSummary(NamedTuple):
    total_marks: float
    mark_percentage: float
    cutoff_marks: Optional[float]


CUTOFF_WEIGHTS = (
    ("math", 0.5),
    ("physics", 0.25),
    ("chemistry", 0.25),
)


def _parse_mark(mark) -> float:
    try:
        value = float(mark)
    except (TypeError, ValueError):
        return 0.0
    return value if math.isfinite(value) else 0.0


def _find_mark(subjects, keyword: str) -> Optional[float]:
    for item in subjects:
        if keyword in item["subject"].lower():
            return _parse_mark(item["mark"])
    return None


def summarize_marks(subjects: Iterable[dict]) -> MarkSummary:
    subjects = list(subjects)
    total = sum(_parse_mark(item["mark"]) for item in subjects)
    percentage = (total / (len(subjects) * 100)) * 100 if subjects else 0.0

    cutoff = None
    weighted = [(_find_mark(subjects, keyword), weight) for keyword, weight in CUTOFF_WEIGHTS]
    if all(mark is not None for mark, _ in weighted):
        cutoff = round(sum(mark * weight for mark, weight in weighted), 2)

    return MarkSummary(round(total, 2), round(percentage, 2), cutoff)
