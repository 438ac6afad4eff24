"""Candidate matching between a witness and the variant graph.

Two phases per witness token:
- Exact: every vertex carrying the token's normalized key is a candidate.
  Keys that repeat in the witness or the graph are flagged ambiguous and
  left to the decision search instead of being paired 1:1. So is any
  cluster whose candidate vertex is also wanted by another token.
- Near: tokens without an exact candidate are compared by edit distance
  against vertices in a bounded neighbourhood of their expected position.

The matcher never mutates the graph.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass

from variorum.collation.edit_distance import is_near_match
from variorum.collation.graph import VariantGraph
from variorum.collation.models import Match, MatchCluster, Token, Witness
from variorum.collation.repeats import RepeatIndex
from variorum.config import Settings

logger = logging.getLogger(__name__)


@dataclass
class GraphSnapshot:
    """Immutable view of the graph's interior vertices for one merge step."""

    order: list[int]
    """Interior vertex ids in topological order."""

    positions: dict[int, int]
    """Vertex id -> index in ``order``."""

    by_key: dict[str, list[int]]
    """Normalized key -> vertex ids carrying it, in topological order."""

    keys: dict[int, set[str]]

    @classmethod
    def of(cls, graph: VariantGraph) -> "GraphSnapshot":
        order = [v.id for v in graph.vertices()]
        positions = {v: i for i, v in enumerate(order)}
        by_key: dict[str, list[int]] = {}
        keys: dict[int, set[str]] = {}
        for v in order:
            vertex_keys = graph.vertex(v).keys
            keys[v] = vertex_keys
            for key in sorted(vertex_keys):
                by_key.setdefault(key, []).append(v)
        return cls(order=order, positions=positions, by_key=by_key, keys=keys)


class Matcher:
    """Produces candidate match clusters for a witness."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or Settings()

    def match(self, graph: VariantGraph, witness: Witness) -> list[MatchCluster]:
        """Find candidate matches for every witness token.

        Args:
            graph: Graph built from the previously merged witnesses
            witness: Witness about to be merged

        Returns:
            One cluster per token with at least one candidate, in witness
            order. Tokens without candidates are left out; they become
            additions.
        """
        snapshot = GraphSnapshot.of(graph)
        if not snapshot.order:
            return []

        graph_repeats = RepeatIndex.build([graph.vertex(v).key for v in snapshot.order])
        witness_repeats = RepeatIndex.for_tokens(list(witness.tokens))

        found: list[tuple[Token, tuple[Match, ...], bool]] = []
        near_count = 0
        for token in witness:
            exact = snapshot.by_key.get(token.normalized_key, [])
            if exact:
                candidates = tuple(
                    Match(v, snapshot.positions[v], token, 0) for v in exact
                )
                ambiguous = (
                    len(candidates) > 1
                    or graph_repeats.is_repeating(token)
                    or witness_repeats.is_repeating(token)
                )
            else:
                candidates = self._near_candidates(
                    token, len(witness), snapshot
                )
                near_count += len(candidates)
                ambiguous = len(candidates) > 1 or witness_repeats.is_repeating(token)

            if candidates:
                found.append((token, candidates, ambiguous))

        # A vertex wanted by several tokens is never unique to one of them
        requests = Counter(m.vertex for _, candidates, _ in found for m in candidates)
        clusters = [
            MatchCluster(
                token,
                candidates,
                ambiguous or any(requests[m.vertex] > 1 for m in candidates),
            )
            for token, candidates, ambiguous in found
        ]

        logger.debug(
            f"Matched witness {witness.sigil}: {len(clusters)} clusters, "
            f"{near_count} near candidates, "
            f"{sum(c.ambiguous for c in clusters)} ambiguous"
        )
        return clusters

    def _near_candidates(
        self, token: Token, witness_length: int, snapshot: GraphSnapshot
    ) -> tuple[Match, ...]:
        threshold = self.settings.near_match_threshold
        if threshold <= 0:
            return ()

        # Expected position scales the witness position onto the graph
        size = len(snapshot.order)
        if witness_length > 1:
            expected = round(token.position * (size - 1) / (witness_length - 1))
        else:
            expected = 0
        window = self.settings.near_match_window
        lo = max(0, expected - window)
        hi = min(size, expected + window + 1)

        candidates = []
        for v in snapshot.order[lo:hi]:
            best: int | None = None
            for key in sorted(snapshot.keys[v]):
                accepted, distance = is_near_match(
                    token.normalized_key, key, threshold
                )
                if accepted and (best is None or distance < best):
                    best = distance
            if best is not None:
                candidates.append(Match(v, snapshot.positions[v], token, best))
        return tuple(candidates)


def count_matches(clusters: list[MatchCluster]) -> int:
    """Total number of candidates over all clusters."""
    return sum(len(c.candidates) for c in clusters)
