"""Gap and transposition classification for one merge step.

The accepted matches are split into:
- the backbone: the longest subsequence whose graph order agrees with the
  witness order; these matches become shared vertices
- moved phrases: the remaining matches, grouped where they are adjacent in
  both orders; a phrase is a confirmed transposition when the number of
  backbone matches it crosses stays within the distance limiter, otherwise
  its matches are dropped and reported as an omission plus an addition

Spans between consecutive backbone matches are classified as additions,
omissions or replacements. A span with material on both sides is one
replacement whatever the lengths of its sides; the gap keeps both sides so
callers can compare them.
"""

from __future__ import annotations

import bisect
import logging
from dataclasses import dataclass, field

from variorum.collation.models import Gap, GapKind, Match, Token, Witness
from variorum.config import Settings

logger = logging.getLogger(__name__)


@dataclass
class MovedPhrase:
    """Matches that moved together relative to the backbone."""

    matches: list[Match]
    crossed: list[Match] = field(default_factory=list)

    @property
    def distance(self) -> int:
        """Graph tokens crossed by the move."""
        return len(self.crossed)

    @property
    def vertices(self) -> tuple[int, ...]:
        return tuple(m.vertex for m in self.matches)

    @property
    def tokens(self) -> tuple[Token, ...]:
        return tuple(m.token for m in self.matches)


@dataclass
class Classification:
    """Result of classifying the accepted matches of one witness."""

    backbone: list[Match] = field(default_factory=list)
    transposed: list[MovedPhrase] = field(default_factory=list)
    limited: list[MovedPhrase] = field(default_factory=list)
    """Moves rejected by the distance limiter."""

    gaps: list[Gap] = field(default_factory=list)


def longest_ordered_subsequence(matches: list[Match]) -> list[Match]:
    """Longest run of matches (in witness order) with increasing graph positions.

    Patience sorting with predecessor links; among equally long answers the
    one ending on the lowest graph position is returned.
    """
    tails: list[int] = []
    tail_index: list[int] = []
    previous: list[int] = [-1] * len(matches)
    for i, match in enumerate(matches):
        slot = bisect.bisect_left(tails, match.graph_position)
        if slot > 0:
            previous[i] = tail_index[slot - 1]
        if slot == len(tails):
            tails.append(match.graph_position)
            tail_index.append(i)
        else:
            tails[slot] = match.graph_position
            tail_index[slot] = i

    result: list[Match] = []
    i = tail_index[-1] if tail_index else -1
    while i >= 0:
        result.append(matches[i])
        i = previous[i]
    result.reverse()
    return result


def group_moved(matches: list[Match]) -> list[list[Match]]:
    """Group matches adjacent in both witness and graph order."""
    groups: list[list[Match]] = []
    for match in matches:
        if groups:
            last = groups[-1][-1]
            if (
                match.token.position == last.token.position + 1
                and match.graph_position == last.graph_position + 1
            ):
                groups[-1].append(match)
                continue
        groups.append([match])
    return groups


def crossed_by(phrase: list[Match], backbone: list[Match]) -> list[Match]:
    """Backbone matches whose order relative to the phrase differs."""
    head = phrase[0]
    return [
        b
        for b in backbone
        if (b.graph_position < head.graph_position)
        != (b.token.position < head.token.position)
    ]


class GapClassifier:
    """Classifies the accepted matches of a witness against the graph."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or Settings()

    def classify(
        self, order: list[int], witness: Witness, accepted: list[Match]
    ) -> Classification:
        """Split accepted matches and classify the spans between them.

        Args:
            order: Interior graph vertex ids in topological order
            witness: The witness being merged
            accepted: Matches chosen by the decision search, witness order

        Returns:
            Classification with backbone, confirmed and limited moves, gaps
        """
        accepted = sorted(accepted, key=lambda m: m.token.position)
        backbone = longest_ordered_subsequence(accepted)
        in_backbone = {m.token.position for m in backbone}
        moved = [m for m in accepted if m.token.position not in in_backbone]

        result = Classification(backbone=backbone)
        for group in group_moved(moved):
            phrase = MovedPhrase(group, crossed_by(group, backbone))
            if phrase.distance <= self.settings.transposition_limit * len(group):
                result.transposed.append(phrase)
            else:
                logger.debug(
                    f"Transposition limiter rejected "
                    f"{' '.join(t.display_form for t in phrase.tokens)!r} in "
                    f"{witness.sigil}: distance {phrase.distance}"
                )
                result.limited.append(phrase)

        result.gaps = self._gaps(order, witness, result)
        return result

    def _gaps(
        self, order: list[int], witness: Witness, result: Classification
    ) -> list[Gap]:
        moved_vertices = {v for p in result.transposed for v in p.vertices}
        moved_tokens = {t.position for p in result.transposed for t in p.tokens}

        gaps: list[Gap] = []
        anchors = [(-1, -1)]
        anchors += [(m.graph_position, m.token.position) for m in result.backbone]
        anchors.append((len(order), len(witness)))

        for (g1, w1), (g2, w2) in zip(anchors, anchors[1:]):
            graph_side = tuple(
                v for v in order[g1 + 1 : g2] if v not in moved_vertices
            )
            witness_side = tuple(
                t for t in witness.tokens[w1 + 1 : w2] if t.position not in moved_tokens
            )
            if graph_side and witness_side:
                kind = GapKind.REPLACEMENT
            elif graph_side:
                kind = GapKind.OMISSION
            elif witness_side:
                kind = GapKind.ADDITION
            else:
                continue
            gaps.append(Gap(kind, witness.sigil, graph_side, witness_side))

        for phrase in result.transposed:
            gaps.append(
                Gap(GapKind.TRANSPOSITION, witness.sigil, phrase.vertices, phrase.tokens)
            )
        return gaps
