"""Shared fixtures for collation tests."""

import pytest

from variorum.collation import collate, create_witnesses
from variorum.config import Settings


@pytest.fixture
def settings():
    """Default collation settings."""
    return Settings()


@pytest.fixture
def collate_texts(settings):
    """Collate raw texts with sigla A, B, C, ..."""

    def _collate(*texts, **overrides):
        witnesses = create_witnesses(*texts)
        return collate(witnesses, settings.replace(**overrides)), witnesses

    return _collate
