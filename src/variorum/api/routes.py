"""API route definitions."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request

from variorum.config import VERSION
from variorum.api.models import CollateRequest, CollateResponse, HealthModel
from variorum.collation import (
    InvalidWitness,
    OversizeInput,
    SearchExhausted,
    WhitespaceTokenizer,
    Witness,
    alignment_table,
    witness_from_tokens,
)
from variorum.service import CollationRunner, MergeTimeout

logger = logging.getLogger(__name__)

router = APIRouter()


def _error(status_code: int, code: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status_code, detail={"error": code, "message": message}
    )


def build_witnesses(request: CollateRequest) -> list[Witness]:
    """Turn request witnesses into core witnesses.

    Raises:
        InvalidWitness: A witness has neither content nor tokens
    """
    tokenizer = WhitespaceTokenizer()
    witnesses = []
    for w in request.witnesses:
        if w.tokens is not None:
            witnesses.append(
                witness_from_tokens(w.id, [t.model_dump() for t in w.tokens])
            )
        elif w.content is not None:
            witnesses.append(tokenizer.tokenize(w.id, w.content))
        else:
            raise InvalidWitness(w.id, "needs 'content' or 'tokens'")
    return witnesses


@router.get("/health", response_model=HealthModel)
async def health_check(request: Request):
    """Health check endpoint."""
    runner: CollationRunner = request.app.state.runner
    return HealthModel(
        status="ok",
        version=VERSION,
        active_collations=runner.active,
        max_parallel_collations=runner.settings.max_parallel_collations,
    )


@router.post("/collate", response_model=CollateResponse)
async def collate_witnesses(body: CollateRequest, request: Request):
    """
    Collate witnesses into a variant graph.

    Returns the alignment table, transpositions and classified gaps.
    """
    runner: CollationRunner = request.app.state.runner

    try:
        settings = runner.settings.replace(
            near_match_threshold=body.near_match_threshold,
            transposition_limit=body.transposition_limit,
        )
    except ValueError as e:
        raise _error(400, "E_INVALID_SETTINGS", str(e))

    try:
        witnesses = build_witnesses(body)
        graph = await runner.collate(witnesses, settings)
    except InvalidWitness as e:
        raise _error(400, "E_INVALID_WITNESS", str(e))
    except OversizeInput as e:
        raise _error(413, "E_OVERSIZE_INPUT", str(e))
    except MergeTimeout as e:
        raise _error(504, "E_MERGE_TIMEOUT", str(e))
    except SearchExhausted as e:
        logger.exception(f"Internal search failure: {e}")
        raise _error(500, "E_SEARCH_EXHAUSTED", "Internal alignment error")

    table = alignment_table(graph).to_dict()
    return CollateResponse(
        witnesses=table["witnesses"],
        table=table["table"],
        variant_columns=table["variant_columns"],
        transpositions=[t.to_dict() for t in graph.transposition_list()],
        gaps=[g.to_dict() for g in graph.gaps()],
    )
