"""Collation core: variant-graph alignment of textual witnesses.

Key concepts:
- Witness: one version of a text, an immutable sequence of Tokens
- VariantGraph: the shared DAG that witnesses are merged into, one at a time
- Matcher / DecisionSearch: candidate matches and their optimal selection
- GapClassifier: additions, omissions, replacements and transpositions
- AlignmentTable: the row/column projection used for display and export
"""

from variorum.collation.algorithm import (
    check_collation_size,
    collate,
    merge,
    new_graph,
    validate_witness,
)
from variorum.collation.classifier import Classification, GapClassifier
from variorum.collation.errors import (
    CollationError,
    InvalidWitness,
    OversizeInput,
    SearchCancelled,
    SearchExhausted,
)
from variorum.collation.graph import Edge, VariantGraph, Vertex
from variorum.collation.matcher import Matcher
from variorum.collation.models import (
    Gap,
    GapKind,
    Match,
    MatchCluster,
    Token,
    Transposition,
    Witness,
)
from variorum.collation.repeats import RepeatIndex
from variorum.collation.search import DecisionSearch, DecisionTreeNode
from variorum.collation.table import AlignmentTable, alignment_table
from variorum.collation.tokenize import (
    Tokenizer,
    WhitespaceTokenizer,
    create_witnesses,
    witness_from_tokens,
)

__all__ = [
    # Entry points
    "new_graph",
    "merge",
    "collate",
    "validate_witness",
    "check_collation_size",
    "alignment_table",
    # Models
    "Token",
    "Witness",
    "Match",
    "MatchCluster",
    "Gap",
    "GapKind",
    "Transposition",
    # Graph
    "VariantGraph",
    "Vertex",
    "Edge",
    "AlignmentTable",
    # Machinery
    "Matcher",
    "RepeatIndex",
    "DecisionSearch",
    "DecisionTreeNode",
    "GapClassifier",
    "Classification",
    # Tokenization
    "Tokenizer",
    "WhitespaceTokenizer",
    "create_witnesses",
    "witness_from_tokens",
    # Errors
    "CollationError",
    "InvalidWitness",
    "OversizeInput",
    "SearchCancelled",
    "SearchExhausted",
]
