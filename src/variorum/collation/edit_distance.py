"""Bounded character-level Levenshtein distance."""

from __future__ import annotations


def compute(a: str, b: str, limit: int | None = None) -> int:
    """Return the edit distance between two strings.

    With ``limit`` set, computation stops as soon as the distance is known to
    exceed it and ``limit + 1`` is returned.
    """
    if a == b:
        return 0
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a) if limit is None else min(len(a), limit + 1)
    if limit is not None and len(a) - len(b) > limit:
        return limit + 1

    prev = list(range(len(b) + 1))
    curr = [0] * (len(b) + 1)
    for i in range(1, len(a) + 1):
        curr[0] = i
        c1 = a[i - 1]
        row_min = curr[0]
        for j in range(1, len(b) + 1):
            cost = 0 if c1 == b[j - 1] else 1
            curr[j] = min(prev[j] + 1, curr[j - 1] + 1, prev[j - 1] + cost)
            if curr[j] < row_min:
                row_min = curr[j]
        if limit is not None and row_min > limit:
            return limit + 1
        prev, curr = curr, prev
    distance = prev[len(b)]
    if limit is not None and distance > limit:
        return limit + 1
    return distance


def is_near_match(a: str, b: str, threshold: int) -> tuple[bool, int]:
    """Check whether two keys are close enough to be a near match.

    Returns (accepted, distance). Identical keys are not near matches, and a
    distance equal to the shorter key's length (every character replaced) is
    never accepted.
    """
    if a == b or threshold <= 0:
        return False, 0
    distance = compute(a, b, limit=threshold)
    accepted = distance <= threshold and distance < min(len(a), len(b))
    return accepted, distance
