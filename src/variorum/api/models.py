"""Pydantic models for the collation API."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class TokenInModel(BaseModel):
    """A pre-tokenized witness token."""

    t: str = Field(..., description="Display form")
    n: Optional[str] = Field(None, description="Normalized comparison key")


class WitnessModel(BaseModel):
    """A witness given either as raw text or as tokens."""

    id: str = Field(..., description="Witness sigil")
    content: Optional[str] = Field(None, description="Raw witness text")
    tokens: Optional[List[TokenInModel]] = Field(
        None, description="Pre-tokenized witness"
    )


class CollateRequest(BaseModel):
    """Request body for POST /collate."""

    witnesses: List[WitnessModel] = Field(..., description="Witnesses in merge order")
    near_match_threshold: Optional[int] = Field(
        None, description="Max edit distance for near matches"
    )
    transposition_limit: Optional[int] = Field(
        None, description="Crossed tokens allowed per transposed token"
    )


class TokenModel(BaseModel):
    """A token in a collation result."""

    witness: str
    position: int
    n: str
    t: str


class GapModel(BaseModel):
    """A classified difference."""

    kind: str = Field(..., description="addition, omission, replacement or transposition")
    witness: str
    graph_vertices: List[int]
    witness_tokens: List[TokenModel]


class TranspositionModel(BaseModel):
    """A transposition relation between two phrases."""

    witness: str = Field(..., description="Witness whose merge recorded it")
    phrases: List[List[TokenModel]]
    vertices: List[int]
    distance: int


class CollateResponse(BaseModel):
    """Alignment table plus classified differences."""

    witnesses: List[str]
    table: List[List[List[TokenModel]]] = Field(
        ..., description="Row per witness, cell per column (empty when absent)"
    )
    variant_columns: List[int]
    transpositions: List[TranspositionModel]
    gaps: List[GapModel]


class HealthModel(BaseModel):
    """Health check response."""

    status: str
    version: str
    active_collations: int
    max_parallel_collations: int
