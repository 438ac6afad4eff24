"""Progressive alignment: merge witnesses one at a time into a variant graph.

One merge step:
1. Validate the witness (fail fast, before any mutation)
2. Matcher: candidate clusters against the current graph
3. Decision search: optimal consistent match set
4. Classifier: backbone, transpositions (distance limited), gaps
5. Graph update: backbone tokens join existing vertices, every other token
   gets a new vertex, the witness path is connected start to end
"""

from __future__ import annotations

import logging
import threading
from typing import Iterable

from variorum.collation.classifier import Classification, GapClassifier
from variorum.collation.errors import InvalidWitness, OversizeInput
from variorum.collation.graph import VariantGraph
from variorum.collation.matcher import Matcher, count_matches
from variorum.collation.models import Match, Token, Transposition, Witness
from variorum.collation.search import select_matches
from variorum.config import Settings

logger = logging.getLogger(__name__)


def new_graph() -> VariantGraph:
    """Empty graph holding only the start and end sentinels."""
    return VariantGraph()


def validate_witness(
    witness: Witness,
    settings: Settings | None = None,
    graph: VariantGraph | None = None,
) -> None:
    """Check a witness's shape and size before it touches the graph.

    Raises:
        InvalidWitness: Empty or malformed token sequence, or a sigil that
            is already merged into ``graph``
        OversizeInput: More tokens than ``max_witness_length``
    """
    settings = settings or Settings()
    if not witness.sigil:
        raise InvalidWitness(witness.sigil, "sigil must not be empty")
    if not witness.tokens:
        raise InvalidWitness(witness.sigil, "no tokens")
    if graph is not None and witness.sigil in graph.sigils:
        raise InvalidWitness(witness.sigil, "sigil already merged into this graph")

    previous = -1
    for token in witness.tokens:
        if token.witness_id != witness.sigil:
            raise InvalidWitness(
                witness.sigil,
                f"token at position {token.position} belongs to {token.witness_id!r}",
            )
        if token.position <= previous:
            raise InvalidWitness(
                witness.sigil, f"token positions not increasing at {token.position}"
            )
        if not token.normalized_key:
            raise InvalidWitness(
                witness.sigil, f"empty normalized key at position {token.position}"
            )
        previous = token.position

    limit = settings.max_witness_length
    if limit and len(witness) > limit:
        raise OversizeInput(f"Witness {witness.sigil} token count", limit, len(witness))


def check_collation_size(
    witnesses: Iterable[Witness], settings: Settings | None = None
) -> None:
    """Enforce ``max_collation_size`` over the characters of all witnesses.

    Raises:
        OversizeInput: If the limit is set and exceeded
    """
    settings = settings or Settings()
    limit = settings.max_collation_size
    if not limit:
        return
    total = sum(w.char_count for w in witnesses)
    if total > limit:
        raise OversizeInput("Collation character count", limit, total)


def _match_tokens(graph: VariantGraph, match: Match) -> frozenset[Token]:
    return frozenset(graph.vertex(match.vertex).tokens.values()) | {match.token}


def merge(
    graph: VariantGraph,
    witness: Witness,
    settings: Settings | None = None,
    cancel: threading.Event | None = None,
) -> Classification:
    """Merge one witness into the graph.

    Args:
        graph: Graph to mutate
        witness: Next witness in the caller's chosen order
        settings: Matching, search and limiter configuration
        cancel: Event that stops the search; the graph is left untouched

    Returns:
        The classification of this merge step (also recorded on the graph)
    """
    settings = settings or Settings()
    validate_witness(witness, settings, graph)
    logger.info(f"Merging witness {witness.sigil} ({len(witness)} tokens)")

    first = graph.is_empty
    order = [v.id for v in graph.vertices()]
    clusters = Matcher(settings).match(graph, witness)
    logger.debug(
        f"Witness {witness.sigil}: {count_matches(clusters)} candidates "
        f"in {len(clusters)} clusters"
    )
    search = select_matches(clusters, settings, cancel)
    classification = GapClassifier(settings).classify(order, witness, search.accepted)

    # Relations are described by token sets captured before the update
    relations = [
        (
            phrase,
            frozenset().union(*(_match_tokens(graph, m) for m in phrase.matches)),
            frozenset().union(*(_match_tokens(graph, m) for m in phrase.crossed)),
        )
        for phrase in classification.transposed
    ]

    shared = {m.token.position: m.vertex for m in classification.backbone}
    path: list[int] = []
    created: dict[int, int] = {}
    for token in witness:
        vertex_id = shared.get(token.position)
        if vertex_id is None:
            vertex_id = graph.add_vertex(token).id
            created[token.position] = vertex_id
        else:
            graph.add_token(vertex_id, token)
        path.append(vertex_id)
    graph.register_witness(witness.sigil, path)

    for phrase, moved_tokens, crossed_tokens in relations:
        graph.record_transposition(
            Transposition.between(
                moved_tokens,
                crossed_tokens,
                witness=witness.sigil,
                vertices=phrase.vertices
                + tuple(created[t.position] for t in phrase.tokens),
                distance=phrase.distance,
            )
        )
    if not first:
        graph.record_gaps(witness.sigil, classification.gaps)

    logger.info(
        f"Merged witness {witness.sigil}: {len(classification.backbone)} aligned, "
        f"{len(classification.transposed)} transposed, "
        f"{len(classification.limited)} limited, {len(created)} new vertices"
    )
    return classification


def collate(
    witnesses: Iterable[Witness],
    settings: Settings | None = None,
    graph: VariantGraph | None = None,
) -> VariantGraph:
    """Validate all witnesses, then merge them in order.

    Args:
        witnesses: Witnesses in merge order
        settings: Collation configuration
        graph: Existing graph to extend (a new one by default)

    Returns:
        The variant graph

    Raises:
        InvalidWitness: Before any merge, for the first malformed witness
        OversizeInput: Before any merge, if a size limit is exceeded
    """
    settings = settings or Settings()
    witnesses = list(witnesses)
    sigils = set(graph.sigils) if graph is not None else set()
    for witness in witnesses:
        validate_witness(witness, settings)
        if witness.sigil in sigils:
            raise InvalidWitness(witness.sigil, "duplicate sigil")
        sigils.add(witness.sigil)
    check_collation_size(witnesses, settings)

    graph = graph if graph is not None else new_graph()
    for witness in witnesses:
        merge(graph, witness, settings)
    return graph
