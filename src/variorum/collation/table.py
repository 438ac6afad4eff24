"""Alignment-table projection of a variant graph.

One row per witness, one column per vertex rank. Vertices of equal rank
(parallel readings) share a column, and a witness visits at most one vertex
per rank, so every cell holds at most one token.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from variorum.collation.graph import END, VariantGraph
from variorum.collation.models import Token


@dataclass
class AlignmentTable:
    """Row/column view of a collation, computed on demand."""

    sigils: list[str]
    columns: list[dict[str, Token]] = field(default_factory=list)
    """Per column: sigil -> token for witnesses present in that column."""

    column_vertices: list[list[int]] = field(default_factory=list)

    @classmethod
    def from_graph(cls, graph: VariantGraph) -> "AlignmentTable":
        ranks = graph.ranks()
        width = ranks[END] - 1
        columns: list[dict[str, Token]] = [{} for _ in range(max(width, 0))]
        column_vertices: list[list[int]] = [[] for _ in range(max(width, 0))]
        for vertex in graph.vertices():
            column = ranks[vertex.id] - 1
            column_vertices[column].append(vertex.id)
            for sigil, token in vertex.tokens.items():
                columns[column][sigil] = token
        return cls(
            sigils=graph.sigils, columns=columns, column_vertices=column_vertices
        )

    def __len__(self) -> int:
        return len(self.columns)

    def row(self, sigil: str) -> list[Token | None]:
        """Cells of one witness, None where the witness is absent."""
        if sigil not in self.sigils:
            raise KeyError(f"Witness not in table: {sigil}")
        return [column.get(sigil) for column in self.columns]

    @property
    def rows(self) -> dict[str, list[Token | None]]:
        return {sigil: self.row(sigil) for sigil in self.sigils}

    def tokens_of(self, sigil: str) -> list[Token]:
        """A witness's tokens read back left to right."""
        return [cell for cell in self.row(sigil) if cell is not None]

    def to_string(self, sigil: str, normalized: bool = True) -> str:
        """Render a row as ``|a|b| |``."""
        cells = []
        for cell in self.row(sigil):
            if cell is None:
                cells.append(" ")
            else:
                cells.append(cell.normalized_key if normalized else cell.display_form)
        return "|" + "|".join(cells) + "|"

    def to_strings(self, normalized: bool = True) -> dict[str, str]:
        return {sigil: self.to_string(sigil, normalized) for sigil in self.sigils}

    def variant_columns(self) -> list[int]:
        """Indices of columns where the witnesses do not all agree."""
        variant = []
        for i, column in enumerate(self.columns):
            keys = {column[s].normalized_key if s in column else None for s in self.sigils}
            if len(keys) > 1:
                variant.append(i)
        return variant

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        return {
            "witnesses": self.sigils,
            "table": [
                [
                    [cell.to_dict()] if cell is not None else []
                    for cell in self.row(sigil)
                ]
                for sigil in self.sigils
            ],
            "variant_columns": self.variant_columns(),
        }


def alignment_table(graph: VariantGraph) -> AlignmentTable:
    """Project a graph onto an alignment table."""
    return AlignmentTable.from_graph(graph)
