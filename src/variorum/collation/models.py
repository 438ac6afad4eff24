"""Collation data models.

Key concepts:
- Token: one normalized unit of a witness text
- Witness: an ordered, immutable token sequence identified by a sigil
- Match / MatchCluster: candidate pairings produced by the matcher
- Gap: a classified difference (addition, omission, replacement, transposition)
- Transposition: two phrases whose relative order differs between graph and witness
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator


@dataclass(frozen=True)
class Token:
    """A single token of a witness."""

    witness_id: str
    """Sigil of the owning witness."""

    position: int
    """0-based position within the witness."""

    normalized_key: str
    """Comparison key supplied by the tokenizer."""

    display_form: str
    """Original surface form, used for display."""

    def __str__(self) -> str:
        return self.display_form

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        return {
            "witness": self.witness_id,
            "position": self.position,
            "n": self.normalized_key,
            "t": self.display_form,
        }


@dataclass(frozen=True)
class Witness:
    """One version of the text being collated."""

    sigil: str
    tokens: tuple[Token, ...] = ()

    def __len__(self) -> int:
        return len(self.tokens)

    def __iter__(self) -> Iterator[Token]:
        return iter(self.tokens)

    def __getitem__(self, index: int) -> Token:
        return self.tokens[index]

    @property
    def keys(self) -> list[str]:
        """Normalized keys in witness order."""
        return [t.normalized_key for t in self.tokens]

    @property
    def char_count(self) -> int:
        """Number of characters over all display forms."""
        return sum(len(t.display_form) for t in self.tokens)

    @classmethod
    def from_pairs(cls, sigil: str, pairs: list[tuple[str, str]]) -> "Witness":
        """Build a witness from (display_form, normalized_key) pairs."""
        return cls(
            sigil=sigil,
            tokens=tuple(
                Token(
                    witness_id=sigil,
                    position=i,
                    normalized_key=key,
                    display_form=display,
                )
                for i, (display, key) in enumerate(pairs)
            ),
        )


@dataclass(frozen=True)
class Match:
    """A candidate pairing of a graph vertex with a witness token."""

    vertex: int
    """Vertex index in the graph arena."""

    graph_position: int
    """Position of the vertex in the graph's topological order."""

    token: Token
    cost: int = 0
    """0 for exact matches, the edit distance for near matches."""

    @property
    def is_exact(self) -> bool:
        return self.cost == 0


@dataclass(frozen=True)
class MatchCluster:
    """All candidates for one witness token."""

    token: Token
    candidates: tuple[Match, ...]

    ambiguous: bool = False
    """True when the key repeats in the witness or the graph, or a candidate
    vertex is wanted by another token."""

    @property
    def min_cost(self) -> int:
        return min(m.cost for m in self.candidates)

    @property
    def is_unique(self) -> bool:
        """A single exact candidate that no other token can claim.

        Only unique clusters may be matched against the accepted order.
        """
        return (
            not self.ambiguous
            and len(self.candidates) == 1
            and self.candidates[0].is_exact
        )


class GapKind(Enum):
    """Kinds of difference between a witness and the graph."""

    ADDITION = "addition"
    """Material present in the witness only."""

    OMISSION = "omission"
    """Material present in the graph only."""

    REPLACEMENT = "replacement"
    """Different material on both sides."""

    TRANSPOSITION = "transposition"
    """Matched material in a different relative order."""


@dataclass(frozen=True)
class Gap:
    """A classified span of difference for one merged witness."""

    kind: GapKind
    witness: str
    graph_vertices: tuple[int, ...] = ()
    witness_tokens: tuple[Token, ...] = ()

    @property
    def witness_text(self) -> str:
        return " ".join(t.display_form for t in self.witness_tokens)

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        return {
            "kind": self.kind.value,
            "witness": self.witness,
            "graph_vertices": list(self.graph_vertices),
            "witness_tokens": [t.to_dict() for t in self.witness_tokens],
        }


@dataclass(frozen=True)
class Transposition:
    """Two phrases whose relative order differs between graph and witness.

    Equality only looks at the tokens of both phrases, so the same relation
    is found whichever witness was merged first.
    """

    phrases: frozenset[frozenset[Token]]

    witness: str = field(default="", compare=False)
    """Sigil of the witness whose merge recorded the relation."""

    vertices: tuple[int, ...] = field(default=(), compare=False)
    """Graph vertices of the moved phrase followed by the witness's new vertices."""

    distance: int = field(default=0, compare=False)
    """Number of graph tokens the moved phrase crossed."""

    @classmethod
    def between(
        cls,
        moved: frozenset[Token],
        crossed: frozenset[Token],
        witness: str = "",
        vertices: tuple[int, ...] = (),
        distance: int = 0,
    ) -> "Transposition":
        return cls(
            phrases=frozenset((moved, crossed)),
            witness=witness,
            vertices=vertices,
            distance=distance,
        )

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        phrases = sorted(
            (
                sorted(
                    (t.to_dict() for t in phrase),
                    key=lambda d: (d["witness"], d["position"]),
                )
                for phrase in self.phrases
            ),
            key=lambda p: [(d["witness"], d["position"]) for d in p],
        )
        return {
            "witness": self.witness,
            "phrases": phrases,
            "vertices": list(self.vertices),
            "distance": self.distance,
        }
