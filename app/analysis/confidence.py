from collections.abc import Iterable


def mean(values: Iterable[float | None]) -> float:
    """Arithmetic mean of the present values; 0.0 when none are present.

    Absent entries are excluded from both the sum and the count.
    """
    present = [float(v) for v in values if v is not None]
    if not present:
        return 0.0
    return sum(present) / len(present)
