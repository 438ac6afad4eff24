"""Tests for the A* decision search."""

import threading

import pytest

from variorum.collation import (
    DecisionSearch,
    DecisionTreeNode,
    Matcher,
    SearchCancelled,
    SearchExhausted,
    collate,
    create_witnesses,
)
from variorum.collation.models import Match, MatchCluster, Token
from variorum.collation.search import select_matches
from variorum.config import Settings


def token(position, key, sigil="B"):
    return Token(sigil, position, key, key)


def clusters_for(base, text, settings=None):
    witnesses = create_witnesses(base, text)
    graph = collate([witnesses[0]], settings)
    return graph, Matcher(settings).match(graph, witnesses[1])


class TestDecisionSearch:
    def test_in_order_matches_cost_nothing(self):
        _, clusters = clusters_for("a b c", "a b c")

        result = select_matches(clusters)

        assert result.cost == 0
        assert [m.graph_position for m in result.accepted] == [0, 1, 2]
        assert result.rejected == []

    def test_equal_cost_tie_takes_first_vertex(self):
        """Two equally good candidates: the earlier graph vertex wins."""
        graph, clusters = clusters_for("a a", "a")

        result = select_matches(clusters)

        assert len(result.accepted) == 1
        assert result.accepted[0].graph_position == 0

    def test_tie_break_is_stable_across_runs(self):
        _, clusters = clusters_for("a b a b", "b a")

        first = select_matches(clusters)
        second = select_matches(clusters)

        assert first.accepted == second.accepted
        assert first.cost == second.cost == 0

    def test_order_violation_costs_penalty(self):
        _, clusters = clusters_for("a b", "b a")

        result = select_matches(clusters)

        assert len(result.accepted) == 2
        assert result.cost == Settings().transposition_penalty

    def test_vertex_used_once(self):
        """Repeated witness tokens cannot share a single graph vertex."""
        _, clusters = clusters_for("a", "a a")

        result = select_matches(clusters)

        assert len(result.accepted) == 1
        assert len(result.rejected) == 1
        assert result.cost == Settings().gap_penalty

    def test_near_match_preferred_over_gap(self):
        _, clusters = clusters_for("near matching", "nar matching")

        result = select_matches(clusters)

        assert len(result.accepted) == 2
        assert result.cost == 1

    def test_no_clusters(self):
        result = select_matches([])

        assert result.accepted == []
        assert result.cost == 0


class TestHeuristic:
    def test_never_overestimates(self):
        for base, text in [
            ("a b c", "c b a"),
            ("the cat and the dog", "the dog and the cat"),
            ("a a b b", "b a b a"),
            ("near matching yeah", "nar yeah matching"),
        ]:
            _, clusters = clusters_for(base, text)
            search = DecisionSearch(clusters)

            result = search.run()

            assert search.heuristic(DecisionTreeNode(0, -1)) <= result.cost

    def test_consistent_along_children(self):
        _, clusters = clusters_for("a b a c", "c a b a")
        search = DecisionSearch(clusters)
        node = DecisionTreeNode(0, -1)

        for _, step, child in search.neighbors(node):
            assert search.heuristic(node) <= step + search.heuristic(child)

    def test_goal_has_zero_heuristic(self):
        _, clusters = clusters_for("a b", "a b")
        search = DecisionSearch(clusters)
        goal = DecisionTreeNode(len(clusters), 1)

        assert search.is_goal(goal)
        assert search.heuristic(goal) == 0


class TestUniqueClusters:
    def test_unique_cluster_can_be_rejected(self):
        cluster = MatchCluster(token(0, "a"), (Match(2, 0, token(0, "a")),))
        search = DecisionSearch([cluster])

        children = search.neighbors(DecisionTreeNode(0, -1))

        assert cluster.is_unique
        assert [decision for decision, _, _ in children] == [cluster.candidates[0], None]

    def test_unique_cluster_runs_backwards_at_penalty(self):
        cluster = MatchCluster(token(0, "a"), (Match(2, 0, token(0, "a")),))
        search = DecisionSearch([cluster])

        decision, step, child = search.neighbors(DecisionTreeNode(0, 5))[0]

        assert decision is cluster.candidates[0]
        assert step == Settings().transposition_penalty
        assert child.frontier == 5

    def test_ambiguous_cluster_stays_in_order(self):
        t = token(0, "a")
        cluster = MatchCluster(t, (Match(2, 0, t), Match(5, 3, t)), ambiguous=True)
        search = DecisionSearch([cluster])

        children = search.neighbors(DecisionTreeNode(0, 1))

        assert [d.vertex if d else None for d, _, _ in children] == [5, None]

    def test_ambiguous_cluster_offers_rejection_last(self):
        t = token(0, "a")
        cluster = MatchCluster(t, (Match(2, 0, t), Match(3, 1, t)), ambiguous=True)
        search = DecisionSearch([cluster])

        children = search.neighbors(DecisionTreeNode(0, -1))

        assert [d.vertex if d else None for d, _, _ in children] == [2, 3, None]
        assert children[-1][1] == Settings().gap_penalty

    def test_rejecting_a_moved_token_can_be_cheapest(self):
        """Rejecting one displaced token beats pushing every later match backwards."""
        _, clusters = clusters_for("the a b c d X the", "X the a b c d the")

        result = select_matches(clusters)

        assert result.cost == Settings().gap_penalty
        assert [c.token.display_form for c in result.rejected] == ["X"]
        assert [m.graph_position for m in result.accepted] == [0, 1, 2, 3, 4, 6]

    def test_token_moved_across_long_text_is_rejected(self):
        text = "a b c d e f g h i j k l m n o p"
        _, clusters = clusters_for(text + " X", "X " + text)

        result = select_matches(clusters)

        assert result.cost == Settings().gap_penalty
        assert [c.token.display_form for c in result.rejected] == ["X"]


class TestBoundedSearch:
    def test_repeated_prose_stays_polynomial(self):
        """Expanded nodes never exceed clusters times graph positions."""
        phrase = "the cat and the dog and the bird saw the man and the woman"
        base = " ".join([phrase] * 7)
        edited = base.replace("bird saw", "birds watched", 3).replace("dog and", "dog", 2)
        graph, clusters = clusters_for(base, edited)

        result = select_matches(clusters)

        assert result.expanded <= (len(clusters) + 1) * (len(graph) + 1)
        assert len(result.accepted) >= len(clusters) - 6

    def test_cancel_event_stops_search(self):
        _, clusters = clusters_for("a b c", "a b c")
        cancel = threading.Event()
        cancel.set()

        with pytest.raises(SearchCancelled):
            select_matches(clusters, cancel=cancel)


class StuckSearch(DecisionSearch):
    """A search whose tree has no way forward."""

    def neighbors(self, node):
        return []


class TestExhaustion:
    def test_empty_frontier_raises(self):
        t = token(0, "a")
        cluster = MatchCluster(t, (Match(2, 0, t),))

        with pytest.raises(SearchExhausted):
            StuckSearch([cluster]).run()
