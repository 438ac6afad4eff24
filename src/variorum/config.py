"""Configuration settings for Variorum."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path

import yaml

VERSION = "0.1.0"


@dataclass
class Settings:
    """Collation and service settings.

    Passed explicitly into every collation call; nothing in the core reads
    global configuration.
    """

    # Matching
    near_match_threshold: int = 1
    near_match_window: int = 8

    # Decision search costs
    gap_penalty: int = 3
    transposition_penalty: int = 1

    # Transposition limiter: crossed graph tokens allowed per moved token
    transposition_limit: int = 3

    # Input limits (0 = unlimited)
    max_collation_size: int = 0
    max_witness_length: int = 0

    # Service
    max_parallel_collations: int = 2
    merge_timeout: float | None = None
    host: str = "127.0.0.1"
    port: int = 7369

    config_path: Path | None = field(default=None, compare=False)

    def validate(self) -> None:
        """Reject settings the collation core cannot work with."""
        if self.near_match_threshold < 0:
            raise ValueError("near_match_threshold must be >= 0")
        if self.near_match_window < 0:
            raise ValueError("near_match_window must be >= 0")
        if self.gap_penalty <= self.near_match_threshold:
            raise ValueError(
                "gap_penalty must exceed near_match_threshold, "
                "otherwise near matches are never accepted"
            )
        if self.transposition_penalty < 0:
            raise ValueError("transposition_penalty must be >= 0")
        if self.transposition_limit < 0:
            raise ValueError("transposition_limit must be >= 0")
        if self.max_parallel_collations < 1:
            raise ValueError("max_parallel_collations must be >= 1")
        if self.max_collation_size < 0 or self.max_witness_length < 0:
            raise ValueError("size limits must be >= 0")

    def replace(self, **overrides) -> "Settings":
        """Copy with overrides applied; None values are ignored."""
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        values.update({k: v for k, v in overrides.items() if v is not None})
        settings = Settings(**values)
        settings.validate()
        return settings


def load_settings(path: Path | None = None) -> Settings:
    """Load settings from a YAML file.

    Args:
        path: YAML file with a mapping of setting names to values. A missing
            file (or None) yields the defaults.

    Returns:
        Validated Settings

    Raises:
        ValueError: If the file is not a mapping or names unknown settings
    """
    if path is None or not Path(path).exists():
        settings = Settings()
        settings.validate()
        return settings

    with open(path, encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ValueError(f"Settings file must contain a mapping: {path}")

    known = {f.name for f in fields(Settings)} - {"config_path"}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ValueError(f"Unknown settings in {path}: {', '.join(unknown)}")

    settings = Settings(**raw, config_path=Path(path))
    settings.validate()
    return settings
