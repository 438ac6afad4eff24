"""Tests for the tokenization boundary."""

import pytest

from variorum.collation.models import Witness
from variorum.collation.tokenize import (
    Tokenizer,
    WhitespaceTokenizer,
    create_witnesses,
    default_normalizer,
    strip_diacritics,
    witness_from_tokens,
)


class TestWhitespaceTokenizer:
    """Tests for the default tokenizer."""

    def test_splits_punctuation(self):
        """Punctuation runs become their own tokens."""
        witness = WhitespaceTokenizer().tokenize("A", "He was agast, so")

        assert [t.display_form for t in witness] == ["He", "was", "agast", ",", "so"]
        assert witness.keys == ["he", "was", "agast", ",", "so"]

    def test_positions_and_sigil(self):
        """Tokens carry their witness sigil and consecutive positions."""
        witness = WhitespaceTokenizer().tokenize("B", "a b c")

        assert [t.position for t in witness] == [0, 1, 2]
        assert all(t.witness_id == "B" for t in witness)

    def test_satisfies_protocol(self):
        assert isinstance(WhitespaceTokenizer(), Tokenizer)

    def test_custom_normalizer(self):
        tokenizer = WhitespaceTokenizer(normalizer=strip_diacritics)
        witness = tokenizer.tokenize("A", "μονογενὴς θεός")

        assert witness.keys == ["μονογενης", "θεος"]


class TestNormalizers:
    def test_default_lowercases_and_strips(self):
        assert default_normalizer("  The ") == "the"

    def test_strip_diacritics(self):
        assert strip_diacritics("Café") == "cafe"


class TestWitnessFactories:
    def test_create_witnesses_assigns_sigla(self):
        witnesses = create_witnesses("a", "b", "c")

        assert [w.sigil for w in witnesses] == ["A", "B", "C"]

    def test_too_many_witnesses(self):
        with pytest.raises(ValueError):
            create_witnesses(*["x"] * 27)

    def test_from_tokens_uses_given_keys(self):
        witness = witness_from_tokens("A", [{"t": "Colour", "n": "color"}, {"t": "Red"}])

        assert witness.keys == ["color", "red"]
        assert [t.display_form for t in witness] == ["Colour", "Red"]

    def test_from_pairs(self):
        witness = Witness.from_pairs("A", [("X", "x"), ("Y", "y")])

        assert len(witness) == 2
        assert witness[1].normalized_key == "y"
        assert witness.char_count == 2
