from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException

from .errors import DimensionMismatch, InvalidPreference
from .recommendations.models import RankResponse, SimilarityRankRequest, WeightedRankRequest
from .recommendations.ranker import rank_by_similarity, rank_by_weights

logger = logging.getLogger(__name__)

app = FastAPI(title="Restaurant Ranking API", version="1.0.0")


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


# ── Ranking endpoints ────────────────────────────────────────────────────


@app.post("/rank/weighted", response_model=RankResponse)
def rank_weighted(body: WeightedRankRequest) -> RankResponse:
    try:
        ranked = rank_by_weights(body.candidates, body.weights, body.limit)
    except InvalidPreference as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return RankResponse(mode="weighted", ranked=ranked, total_candidates=len(body.candidates))


@app.post("/rank/similarity", response_model=RankResponse)
def rank_similarity(body: SimilarityRankRequest) -> RankResponse:
    try:
        ranked = rank_by_similarity(body.user_vector, body.candidates, body.limit)
    except DimensionMismatch as exc:
        logger.warning("Similarity ranking with mismatched vectors: %s", exc)
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return RankResponse(mode="similarity", ranked=ranked, total_candidates=len(body.candidates))
