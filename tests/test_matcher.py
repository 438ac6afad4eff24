"""Tests for candidate matching."""

from variorum.collation import Matcher, collate, create_witnesses, new_graph
from variorum.collation.matcher import count_matches
from variorum.config import Settings


def graph_of(text):
    witness = create_witnesses(text)[0]
    return collate([witness]), witness


class TestExactMatching:
    def test_one_candidate_per_unique_token(self):
        graph, _ = graph_of("the black cat")
        witness = create_witnesses("x", "the white cat")[1]

        clusters = Matcher().match(graph, witness)

        assert [c.token.display_form for c in clusters] == ["the", "cat"]
        assert all(c.is_unique for c in clusters)

    def test_repeating_key_is_ambiguous(self):
        """Repeated keys emit every candidate and are left to the search."""
        graph, base = graph_of("the cat and the dog")
        witness = create_witnesses("x", "the dog")[1]

        clusters = Matcher().match(graph, witness)
        the = clusters[0]

        assert the.ambiguous
        assert not the.is_unique
        assert len(the.candidates) == 2
        positions = [c.graph_position for c in the.candidates]
        assert positions == sorted(positions)

    def test_repeat_in_witness_only(self):
        graph, _ = graph_of("the cat")
        witness = create_witnesses("x", "the the cat")[1]

        clusters = Matcher().match(graph, witness)

        assert clusters[0].ambiguous
        assert clusters[1].ambiguous
        assert clusters[2].is_unique

    def test_empty_graph(self):
        witness = create_witnesses("a b")[0]

        assert Matcher().match(new_graph(), witness) == []


class TestNearMatching:
    def test_near_token_matching(self):
        """'nar' near-matches 'near', 'matching' matches exactly: 2 matches."""
        witnesses = create_witnesses("near matching yeah", "nar matching")
        graph = collate([witnesses[0]])

        clusters = Matcher().match(graph, witnesses[1])

        assert count_matches(clusters) == 2
        near, exact = clusters
        assert near.token == witnesses[1][0]
        assert near.candidates[0].cost == 1
        assert graph.vertex(near.candidates[0].vertex).tokens["A"] == witnesses[0][0]
        assert exact.candidates[0].cost == 0
        assert graph.vertex(exact.candidates[0].vertex).tokens["A"] == witnesses[0][1]

    def test_near_matching_disabled(self):
        witnesses = create_witnesses("near matching yeah", "nar matching")
        graph = collate([witnesses[0]])

        clusters = Matcher(Settings(near_match_threshold=0)).match(graph, witnesses[1])

        assert count_matches(clusters) == 1

    def test_window_bounds_search(self):
        """Near candidates far outside the neighbourhood are not considered."""
        base = " ".join(["w%d" % i for i in range(30)] + ["colour"])
        witnesses = create_witnesses(base, "color w1")
        graph = collate([witnesses[0]])

        clusters = Matcher(Settings(near_match_window=2)).match(graph, witnesses[1])

        assert [c.token.display_form for c in clusters] == ["w1"]

    def test_unmatched_token_has_no_cluster(self):
        witnesses = create_witnesses("a b", "c a")
        graph = collate([witnesses[0]])

        clusters = Matcher().match(graph, witnesses[1])

        assert [c.token.display_form for c in clusters] == ["a"]
