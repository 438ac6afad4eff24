"""Repeat detection over normalized key sequences.

Builds a suffix array (prefix doubling) and its LCP array over the key
sequence. Suffixes starting with the same key are adjacent in the suffix
array, so every group of equal keys is a run of LCP values >= 1.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from variorum.collation.models import Token


def build_suffix_array(sequence: list[int]) -> list[int]:
    """Sort suffix start positions of an integer sequence.

    Prefix doubling: O(n log^2 n) with Python's sort, no sentinel needed.
    """
    n = len(sequence)
    if n == 0:
        return []
    rank = list(sequence)
    suffixes = list(range(n))
    k = 1
    while True:
        def sort_key(i: int, k: int = k) -> tuple[int, int]:
            return rank[i], rank[i + k] if i + k < n else -1

        suffixes.sort(key=sort_key)
        new_rank = [0] * n
        for prev, curr in zip(suffixes, suffixes[1:]):
            new_rank[curr] = new_rank[prev] + (sort_key(prev) != sort_key(curr))
        rank = new_rank
        if rank[suffixes[-1]] == n - 1 or k >= n:
            break
        k *= 2
    return suffixes


def build_lcp_array(sequence: list[int], suffixes: list[int]) -> list[int]:
    """Kasai's algorithm: lcp[i] is the common prefix of suffixes[i-1] and suffixes[i]."""
    n = len(sequence)
    lcp = [0] * n
    rank = [0] * n
    for i, s in enumerate(suffixes):
        rank[s] = i
    h = 0
    for i in range(n):
        if rank[i] > 0:
            j = suffixes[rank[i] - 1]
            while i + h < n and j + h < n and sequence[i + h] == sequence[j + h]:
                h += 1
            lcp[rank[i]] = h
            if h > 0:
                h -= 1
        else:
            h = 0
    return lcp


@dataclass
class RepeatIndex:
    """Read-only repeat lookup for one key sequence.

    Rebuilt for every merge step and discarded afterwards.
    """

    keys: list[str]
    suffixes: list[int] = field(default_factory=list)
    lcp: list[int] = field(default_factory=list)
    _occurrences: dict[str, list[int]] = field(default_factory=dict, repr=False)

    @classmethod
    def build(cls, keys: list[str]) -> "RepeatIndex":
        """Index a sequence of normalized keys."""
        codes: dict[str, int] = {}
        sequence = [codes.setdefault(k, len(codes)) for k in keys]
        suffixes = build_suffix_array(sequence)
        lcp = build_lcp_array(sequence, suffixes)

        occurrences: dict[str, list[int]] = {}
        run: list[int] = []
        for i, start in enumerate(suffixes):
            if i > 0 and lcp[i] == 0:
                occurrences[keys[run[0]]] = sorted(run)
                run = []
            run.append(start)
        if run:
            occurrences[keys[run[0]]] = sorted(run)

        return cls(keys=keys, suffixes=suffixes, lcp=lcp, _occurrences=occurrences)

    @classmethod
    def for_tokens(cls, tokens: list[Token]) -> "RepeatIndex":
        return cls.build([t.normalized_key for t in tokens])

    def occurrences(self, key: str) -> list[int]:
        """Positions of a key, in sequence order."""
        return list(self._occurrences.get(key, []))

    def is_repeating_key(self, key: str) -> bool:
        return len(self._occurrences.get(key, ())) > 1

    def is_repeating(self, token: Token) -> bool:
        """True if the token's key occurs more than once in the sequence."""
        return self.is_repeating_key(token.normalized_key)

