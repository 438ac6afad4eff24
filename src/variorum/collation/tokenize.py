"""Tokenization boundary of the collation core.

The core only needs tokens with a normalized key and a display form. Callers
with their own normalization policy implement the Tokenizer protocol; the
defaults here split words from punctuation and compare case-insensitively.
"""

from __future__ import annotations

import re
import string
import unicodedata
from typing import Iterable, Protocol, runtime_checkable

from variorum.collation.models import Token, Witness

TOKEN_PATTERN = re.compile(r"\w+|[^\w\s]+")

SIGLA = string.ascii_uppercase


def default_normalizer(text: str) -> str:
    """Canonical comparison key for a token.

    Normalization steps:
    1. NFC composition so precomposed and combining forms compare equal
    2. Strip surrounding whitespace
    3. Lowercase
    """
    return unicodedata.normalize("NFC", text).strip().lower()


def strip_diacritics(text: str) -> str:
    """Normalizer that also ignores accents and breathing marks."""
    text = unicodedata.normalize("NFD", text)
    text = "".join(c for c in text if unicodedata.category(c) != "Mn")
    return default_normalizer(text)


@runtime_checkable
class Tokenizer(Protocol):
    """Interface for turning raw witness text into tokens."""

    def tokenize(self, sigil: str, text: str) -> Witness:
        """Return the witness for a raw text."""
        ...


class WhitespaceTokenizer:
    """Split on whitespace, keeping punctuation runs as separate tokens."""

    def __init__(self, normalizer=default_normalizer):
        self.normalizer = normalizer

    def tokenize(self, sigil: str, text: str) -> Witness:
        pieces = TOKEN_PATTERN.findall(text)
        return Witness(
            sigil=sigil,
            tokens=tuple(
                Token(
                    witness_id=sigil,
                    position=i,
                    normalized_key=self.normalizer(piece),
                    display_form=piece,
                )
                for i, piece in enumerate(pieces)
            ),
        )


def witness_from_tokens(sigil: str, tokens: Iterable[dict]) -> Witness:
    """Build a witness from pre-tokenized input.

    Each entry carries ``t`` (display form) and optionally ``n`` (normalized
    key); a missing key falls back to the default normalizer.
    """
    pairs = []
    for entry in tokens:
        display = entry["t"]
        key = entry.get("n")
        pairs.append((display, key if key is not None else default_normalizer(display)))
    return Witness.from_pairs(sigil, pairs)


def create_witnesses(
    *texts: str, tokenizer: Tokenizer | None = None
) -> list[Witness]:
    """Tokenize texts into witnesses with sigla A, B, C, ..."""
    if len(texts) > len(SIGLA):
        raise ValueError(f"At most {len(SIGLA)} witnesses supported, got {len(texts)}")
    tokenizer = tokenizer or WhitespaceTokenizer()
    return [tokenizer.tokenize(SIGLA[i], text) for i, text in enumerate(texts)]
