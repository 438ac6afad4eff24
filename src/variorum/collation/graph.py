"""Variant graph: the shared DAG that accumulates aligned witnesses.

Vertices and edges live in arenas and refer to each other by integer index.
Vertex 0 is the start sentinel and vertex 1 the end sentinel; every other
vertex holds at most one token per witness. The graph only grows: merging a
witness adds tokens to existing vertices, new vertices and edges, and never
removes anything.
"""

from __future__ import annotations

import logging
import heapq
from dataclasses import dataclass, field
from typing import Iterator

from variorum.collation.models import Gap, Token, Transposition

logger = logging.getLogger(__name__)

START = 0
END = 1


@dataclass
class Vertex:
    """One aligned column: at most one token per witness."""

    id: int
    tokens: dict[str, Token] = field(default_factory=dict)

    @property
    def is_sentinel(self) -> bool:
        return self.id in (START, END)

    @property
    def sigils(self) -> set[str]:
        return set(self.tokens)

    @property
    def keys(self) -> set[str]:
        """Normalized keys of all tokens on this vertex."""
        return {t.normalized_key for t in self.tokens.values()}

    @property
    def key(self) -> str:
        """Key of the earliest merged token; used for repeat detection."""
        for token in self.tokens.values():
            return token.normalized_key
        return ""

    def __str__(self) -> str:
        if self.id == START:
            return "#start"
        if self.id == END:
            return "#end"
        return "/".join(sorted({t.display_form for t in self.tokens.values()}))


@dataclass
class Edge:
    """A directed edge traversed by one or more witnesses."""

    source: int
    target: int
    sigils: set[str] = field(default_factory=set)


class VariantGraph:
    """Arena-backed variant graph.

    Usage:
        graph = VariantGraph()
        merge(graph, witness_a)
        merge(graph, witness_b)
        for vertex in graph.vertices():
            ...
    """

    def __init__(self):
        self._vertices: list[Vertex] = [Vertex(START), Vertex(END)]
        self._edges: dict[tuple[int, int], Edge] = {}
        self._outgoing: dict[int, list[int]] = {START: [], END: []}
        self._incoming: dict[int, list[int]] = {START: [], END: []}
        self._sigils: list[str] = []
        self._transpositions: list[Transposition] = []
        self._gaps: dict[str, list[Gap]] = {}

    # --- Read accessors ---

    @property
    def start(self) -> Vertex:
        return self._vertices[START]

    @property
    def end(self) -> Vertex:
        return self._vertices[END]

    @property
    def sigils(self) -> list[str]:
        """Merged witness sigla, in merge order."""
        return list(self._sigils)

    @property
    def is_empty(self) -> bool:
        return not self._sigils

    def __len__(self) -> int:
        """Number of interior vertices."""
        return len(self._vertices) - 2

    def vertex(self, vertex_id: int) -> Vertex:
        return self._vertices[vertex_id]

    def vertices(self, include_sentinels: bool = False) -> list[Vertex]:
        """Vertices in topological order."""
        order = self.topological_order()
        if not include_sentinels:
            order = [v for v in order if v not in (START, END)]
        return [self._vertices[v] for v in order]

    def edges(self) -> list[Edge]:
        return list(self._edges.values())

    def edge(self, source: int, target: int) -> Edge | None:
        return self._edges.get((source, target))

    def successors(self, vertex_id: int) -> list[int]:
        return list(self._outgoing[vertex_id])

    def predecessors(self, vertex_id: int) -> list[int]:
        return list(self._incoming[vertex_id])

    def transpositions(self) -> set[Transposition]:
        """Transposition relations recorded while merging."""
        return set(self._transpositions)

    def transposition_list(self) -> list[Transposition]:
        """Transposition relations in the order they were recorded."""
        return list(self._transpositions)

    def gaps(self, sigil: str | None = None) -> list[Gap]:
        """Classified differences, for one witness or all in merge order."""
        if sigil is not None:
            return list(self._gaps.get(sigil, []))
        return [g for s in self._sigils for g in self._gaps.get(s, [])]

    def witness_path(self, sigil: str) -> list[int]:
        """Interior vertex ids visited by a witness, following its edges."""
        if sigil not in self._sigils:
            raise KeyError(f"Witness not in graph: {sigil}")
        path = []
        current = START
        while current != END:
            current = next(
                t for t in self._outgoing[current] if sigil in self._edges[(current, t)].sigils
            )
            if current != END:
                path.append(current)
        return path

    def witness_tokens(self, sigil: str) -> list[Token]:
        """Tokens of a witness along its path."""
        return [self._vertices[v].tokens[sigil] for v in self.witness_path(sigil)]

    def topological_order(self) -> list[int]:
        """Vertex ids in a deterministic topological order.

        Kahn's algorithm with ties broken by vertex id; the start sentinel is
        first and the end sentinel last.
        """
        in_degree = {v.id: len(self._incoming[v.id]) for v in self._vertices}
        ready = [v for v, d in in_degree.items() if d == 0 and v != END]
        heapq.heapify(ready)
        order: list[int] = []
        while ready:
            current = heapq.heappop(ready)
            order.append(current)
            for target in self._outgoing[current]:
                in_degree[target] -= 1
                if in_degree[target] == 0 and target != END:
                    heapq.heappush(ready, target)
        order.append(END)
        if len(order) != len(self._vertices):
            logger.error("Variant graph contains a cycle")
            raise RuntimeError("Variant graph contains a cycle")
        return order

    def ranks(self) -> dict[int, int]:
        """Longest-path distance of every vertex from the start sentinel."""
        rank = {START: 0}
        for v in self.topological_order():
            if v == START:
                continue
            rank[v] = max((rank[p] + 1 for p in self._incoming[v]), default=0)
        return rank

    # --- Mutation (used by the merge step) ---

    def add_vertex(self, token: Token) -> Vertex:
        vertex = Vertex(len(self._vertices), {token.witness_id: token})
        self._vertices.append(vertex)
        self._outgoing[vertex.id] = []
        self._incoming[vertex.id] = []
        return vertex

    def add_token(self, vertex_id: int, token: Token) -> None:
        vertex = self._vertices[vertex_id]
        if vertex.is_sentinel:
            raise ValueError("Sentinel vertices carry no tokens")
        if token.witness_id in vertex.tokens:
            raise ValueError(
                f"Vertex {vertex_id} already holds a token of {token.witness_id}"
            )
        vertex.tokens[token.witness_id] = token

    def connect(self, source: int, target: int, sigil: str) -> Edge:
        edge = self._edges.get((source, target))
        if edge is None:
            edge = Edge(source, target)
            self._edges[(source, target)] = edge
            self._outgoing[source].append(target)
            self._incoming[target].append(source)
        edge.sigils.add(sigil)
        return edge

    def register_witness(self, sigil: str, path: list[int]) -> None:
        """Connect start, the given interior vertices and end for a witness."""
        self._sigils.append(sigil)
        full = [START, *path, END]
        for source, target in zip(full, full[1:]):
            self.connect(source, target, sigil)

    def record_transposition(self, transposition: Transposition) -> None:
        self._transpositions.append(transposition)

    def record_gaps(self, sigil: str, gaps: list[Gap]) -> None:
        self._gaps[sigil] = list(gaps)

    def __iter__(self) -> Iterator[Vertex]:
        return iter(self.vertices())

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        return {
            "sigils": self.sigils,
            "vertices": [
                {
                    "id": v.id,
                    "tokens": {s: t.to_dict() for s, t in v.tokens.items()},
                }
                for v in self.vertices()
            ],
            "edges": [
                {"source": e.source, "target": e.target, "sigils": sorted(e.sigils)}
                for e in self._edges.values()
            ],
            "transpositions": [t.to_dict() for t in self._transpositions],
        }
