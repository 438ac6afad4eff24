"""Tests for gap and transposition classification."""

from variorum.collation import GapClassifier, GapKind, create_witnesses
from variorum.collation.classifier import (
    crossed_by,
    group_moved,
    longest_ordered_subsequence,
)
from variorum.collation.models import Match, Token
from variorum.config import Settings


def matches(graph_positions):
    """Matches in witness order onto vertices ``position + 2``."""
    return [
        Match(g + 2, g, Token("B", w, str(g), str(g)))
        for w, g in enumerate(graph_positions)
    ]


class TestLongestOrderedSubsequence:
    def test_already_ordered(self):
        ms = matches([0, 1, 2])

        assert longest_ordered_subsequence(ms) == ms

    def test_single_move(self):
        ms = matches([2, 0, 1])

        assert [m.graph_position for m in longest_ordered_subsequence(ms)] == [0, 1]

    def test_prefers_lowest_ending(self):
        ms = matches([1, 0])

        assert [m.graph_position for m in longest_ordered_subsequence(ms)] == [0]

    def test_empty(self):
        assert longest_ordered_subsequence([]) == []


class TestMovedPhrases:
    def test_adjacent_in_both_orders_group(self):
        ms = matches([3, 4, 0, 1])

        groups = group_moved([ms[0], ms[1]])

        assert len(groups) == 1
        assert [m.graph_position for m in groups[0]] == [3, 4]

    def test_reversed_pair_splits(self):
        ms = matches([4, 3])

        assert len(group_moved(ms)) == 2

    def test_crossed_counts_order_changes(self):
        ms = matches([3, 0, 1, 2])
        backbone = ms[1:]

        assert crossed_by([ms[0]], backbone) == backbone


class TestGapClassifier:
    def classify(self, positions, text, limit=3, order_size=None):
        witness = create_witnesses("x", text)[1]
        size = order_size if order_size is not None else len(positions)
        order = list(range(2, size + 2))
        accepted = [Match(g + 2, g, witness[w]) for w, g in positions]
        return GapClassifier(Settings(transposition_limit=limit)).classify(
            order, witness, accepted
        )

    def test_addition_and_omission(self):
        """Graph 'a b', witness 'c a': c added, b omitted."""
        result = self.classify([(1, 0)], "c a", order_size=2)

        kinds = [g.kind for g in result.gaps]
        assert kinds == [GapKind.ADDITION, GapKind.OMISSION]
        assert result.gaps[0].witness_text == "c"
        assert result.gaps[1].graph_vertices == (3,)
        assert result.transposed == []

    def test_replacement(self):
        """Graph 'a b c', witness 'a x c'."""
        result = self.classify([(0, 0), (2, 2)], "a x c", order_size=3)

        assert [g.kind for g in result.gaps] == [GapKind.REPLACEMENT]
        assert result.gaps[0].graph_vertices == (3,)
        assert result.gaps[0].witness_text == "x"

    def test_unequal_sides_are_one_replacement(self):
        """Graph 'a b c', witness 'a w x y z c'."""
        result = self.classify([(0, 0), (5, 2)], "a w x y z c", order_size=3)

        assert [g.kind for g in result.gaps] == [GapKind.REPLACEMENT]
        assert result.gaps[0].graph_vertices == (3,)
        assert result.gaps[0].witness_text == "w x y z"

    def test_transposition_confirmed(self):
        """Graph 'a b', witness 'b a'."""
        result = self.classify([(0, 1), (1, 0)], "b a")

        assert len(result.transposed) == 1
        assert result.transposed[0].distance == 1
        assert [g.kind for g in result.gaps] == [GapKind.TRANSPOSITION]

    def test_phrase_moves_as_one(self):
        """Graph 'x y a b', witness 'a b x y': the backbone keeps 'x y'."""
        result = self.classify([(0, 2), (1, 3), (2, 0), (3, 1)], "a b x y")

        assert len(result.transposed) == 1
        assert [t.display_form for t in result.transposed[0].tokens] == ["a", "b"]
        assert result.transposed[0].distance == 2

    def test_limiter_turns_long_move_into_gaps(self):
        """A token dragged across the whole text is an omission plus an addition."""
        text = "a b c d e f g h i j k l m n o p x"
        positions = [(w, w + 1) for w in range(16)] + [(16, 0)]

        result = self.classify(positions, text)

        assert result.transposed == []
        assert len(result.limited) == 1
        assert result.limited[0].distance == 16
        kinds = [g.kind for g in result.gaps]
        assert kinds == [GapKind.OMISSION, GapKind.ADDITION]
        assert result.gaps[0].graph_vertices == (2,)
        assert result.gaps[1].witness_text == "x"

    def test_zero_limit_disables_transpositions(self):
        result = self.classify([(0, 1), (1, 0)], "b a", limit=0)

        assert result.transposed == []
        assert len(result.limited) == 1
