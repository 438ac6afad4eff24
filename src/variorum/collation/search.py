"""A* decision search over candidate match clusters.

A DecisionTreeNode has decided the first ``resolved`` clusters. Its children
decide the next cluster: accept one of its candidates, or reject the
cluster. Path cost adds the candidate's edit distance for an accepted match,
``transposition_penalty`` when the match runs backwards relative to the
accepted order so far, and ``gap_penalty`` for a rejection.

Only unique clusters may run backwards. Every other match must lie beyond
the frontier, so accepted vertices are distinct without tracking them, and
the state space is bounded by clusters times graph positions.

The heuristic sums, over the unresolved clusters, the cheapest thing each
cluster could possibly cost. It ignores order, so it never overestimates,
and it is consistent, so closed nodes are final.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import threading
from dataclasses import dataclass, field

from variorum.collation.errors import SearchCancelled, SearchExhausted
from variorum.collation.models import Match, MatchCluster
from variorum.config import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecisionTreeNode:
    """Search state after deciding the first ``resolved`` clusters."""

    resolved: int
    frontier: int
    """Highest graph position accepted in order so far (-1 if none)."""


@dataclass
class SearchResult:
    """Outcome of one decision search."""

    accepted: list[Match] = field(default_factory=list)
    """Accepted matches in witness order."""

    rejected: list[MatchCluster] = field(default_factory=list)
    cost: int = 0
    expanded: int = 0


class DecisionSearch:
    """Finds the cheapest consistent subset of candidate matches."""

    def __init__(
        self,
        clusters: list[MatchCluster],
        settings: Settings | None = None,
        cancel: threading.Event | None = None,
    ):
        self.clusters = clusters
        self.settings = settings or Settings()
        self.cancel = cancel

        self._remaining: list[int] = [0] * (len(clusters) + 1)
        for k in range(len(clusters) - 1, -1, -1):
            cheapest = min(self.settings.gap_penalty, clusters[k].min_cost)
            self._remaining[k] = self._remaining[k + 1] + cheapest

    def heuristic(self, node: DecisionTreeNode) -> int:
        """Lower bound on the cost of resolving the remaining clusters."""
        return self._remaining[node.resolved]

    def is_goal(self, node: DecisionTreeNode) -> bool:
        return node.resolved == len(self.clusters)

    def neighbors(
        self, node: DecisionTreeNode
    ) -> list[tuple[Match | None, int, DecisionTreeNode]]:
        """Children of a node as (decision, step cost, child) triples.

        Candidates come first in graph order, the rejection last. A
        candidate behind the frontier is only offered for a unique cluster.
        """
        cluster = self.clusters[node.resolved]
        children: list[tuple[Match | None, int, DecisionTreeNode]] = []

        for match in cluster.candidates:
            if match.graph_position > node.frontier:
                child = DecisionTreeNode(node.resolved + 1, match.graph_position)
                children.append((match, match.cost, child))
            elif cluster.is_unique:
                child = DecisionTreeNode(node.resolved + 1, node.frontier)
                step = match.cost + self.settings.transposition_penalty
                children.append((match, step, child))

        children.append(
            (
                None,
                self.settings.gap_penalty,
                DecisionTreeNode(node.resolved + 1, node.frontier),
            )
        )
        return children

    def run(self) -> SearchResult:
        """Run A* from the empty decision to a fully resolved one.

        Raises:
            SearchCancelled: If the cancel event is set while searching
            SearchExhausted: If the frontier empties without a goal, which
                cannot happen for a well-formed decision tree
        """
        start = DecisionTreeNode(0, -1)
        counter = itertools.count()
        g_score: dict[DecisionTreeNode, int] = {start: 0}
        came_from: dict[DecisionTreeNode, tuple[DecisionTreeNode, Match | None]] = {}
        open_heap = [(self.heuristic(start), next(counter), start)]
        closed: set[DecisionTreeNode] = set()

        while open_heap:
            if self.cancel is not None and self.cancel.is_set():
                logger.info(f"Decision search cancelled after {len(closed)} nodes")
                raise SearchCancelled(f"Search cancelled after {len(closed)} nodes")

            _, _, current = heapq.heappop(open_heap)
            if current in closed:
                continue
            if self.is_goal(current):
                result = self._reconstruct(came_from, current)
                result.cost = g_score[current]
                result.expanded = len(closed)
                logger.debug(
                    f"Decision search resolved {len(self.clusters)} clusters: "
                    f"cost={result.cost}, expanded={result.expanded}"
                )
                return result
            closed.add(current)

            for decision, step, neighbor in self.neighbors(current):
                if neighbor in closed:
                    continue
                tentative = g_score[current] + step
                if neighbor not in g_score or tentative < g_score[neighbor]:
                    came_from[neighbor] = (current, decision)
                    g_score[neighbor] = tentative
                    heapq.heappush(
                        open_heap,
                        (tentative + self.heuristic(neighbor), next(counter), neighbor),
                    )

        logger.error(
            f"Decision search exhausted after {len(closed)} nodes "
            f"over {len(self.clusters)} clusters"
        )
        raise SearchExhausted("No node found that suits the goal condition")

    def _reconstruct(
        self,
        came_from: dict[DecisionTreeNode, tuple[DecisionTreeNode, Match | None]],
        current: DecisionTreeNode,
    ) -> SearchResult:
        decisions: list[Match | None] = [None] * len(self.clusters)
        while current in came_from:
            parent, decision = came_from[current]
            decisions[parent.resolved] = decision
            current = parent

        result = SearchResult()
        for cluster, decision in zip(self.clusters, decisions):
            if decision is None:
                result.rejected.append(cluster)
            else:
                result.accepted.append(decision)
        return result


def select_matches(
    clusters: list[MatchCluster],
    settings: Settings | None = None,
    cancel: threading.Event | None = None,
) -> SearchResult:
    """Choose the optimal consistent match set for a list of clusters."""
    return DecisionSearch(clusters, settings, cancel).run()
