"""
Semantic second pass over lexical candidates.

Strategies:
- replace: score = semantic similarity
- linear: score = weight × semantic + (1 - weight) × min-max normalized lexical score
- rrf: score = reciprocal rank fusion of the lexical and semantic orders

Backend failures (missing package, model load error, remote error, malformed
output) never reach the caller: the pass is retried with the hash embedding.
"""

import logging
import math
from typing import List, Optional, Sequence

from ..bm25.fusion import reciprocal_rank_fusion
from ..config import STRATEGIES, SearchSettings
from ..models import RankedResult
from .base import BaseReranker
from .factory import RerankingFactory
from .hash_embedding import HashEmbeddingReranker

logger = logging.getLogger(__name__)

_TOLERANCE = 1e-6


def _validated(scores: Sequence[float], expected: int) -> List[float]:
    scores = [float(score) for score in scores]
    if len(scores) != expected:
        raise ValueError(f"Backend returned {len(scores)} scores for {expected} candidates")
    if not all(math.isfinite(score) for score in scores):
        raise ValueError("Backend returned a non-finite similarity")
    if any(score < -_TOLERANCE or score > 1.0 + _TOLERANCE for score in scores):
        raise ValueError("Backend returned a similarity outside [0, 1]")
    # float32 rounding can land just outside the range
    return [min(max(score, 0.0), 1.0) for score in scores]


def _minmax(values: Sequence[float]) -> List[float]:
    low, high = min(values), max(values)
    if high <= low:
        return [1.0] * len(values)
    return [(value - low) / (high - low) for value in values]


def semantic_rerank(
    query: str,
    candidates: Sequence[RankedResult],
    backend: str = "hash",
    reranker: Optional[BaseReranker] = None,
    strategy: str = "replace",
    weight: float = 0.5,
    settings: Optional[SearchSettings] = None,
) -> List[RankedResult]:
    """
    Rescore lexical candidates with vector similarity.

    Args:
        query: Raw query text
        candidates: Lexically ranked candidates (score = BM25 score)
        backend: Backend tag used when no reranker instance is given
        reranker: Explicit backend instance (takes precedence over backend)
        strategy: "replace" | "linear" | "rrf"
        weight: Semantic weight for the linear strategy, in [0, 1]
        settings: Passed to the factory when creating a backend

    Returns:
        The same candidates with new scores, sorted descending; ties keep
        input order.

    Raises:
        ValueError: If strategy or weight is invalid

    Example:
        >>> semantic_rerank("performance", [
        ...     RankedResult("match", 0.5, "optimize performance speed"),
        ...     RankedResult("no-match", 0.5, "slow sluggish lag"),
        ... ])[0].id
        'match'
    """
    if strategy not in STRATEGIES:
        raise ValueError(f"Unknown rerank strategy: {strategy}. Valid options: {', '.join(STRATEGIES)}")
    if not 0.0 <= weight <= 1.0:
        raise ValueError(f"weight must be in [0, 1], got {weight}")
    if not candidates:
        return []

    texts = [candidate.text for candidate in candidates]
    similarities = None
    active = reranker
    try:
        if active is None:
            active = RerankingFactory.create(backend, settings)
        similarities = _validated(active.similarities(query, texts), len(texts))
    except Exception as e:
        if isinstance(active, HashEmbeddingReranker):
            raise
        name = type(active).__name__ if active is not None else backend
        logger.warning(f"Rerank backend '{name}' failed, falling back to hash embedding: {e}")

    if similarities is None:
        fallback = RerankingFactory.create("hash", settings)
        similarities = fallback.similarities(query, texts)

    if strategy == "replace":
        rescored = [
            RankedResult(id=c.id, score=sim, text=c.text)
            for c, sim in zip(candidates, similarities)
        ]
    elif strategy == "linear":
        lexical = _minmax([c.score for c in candidates])
        rescored = [
            RankedResult(id=c.id, score=weight * sim + (1.0 - weight) * lex, text=c.text)
            for c, sim, lex in zip(candidates, similarities, lexical)
        ]
    else:
        lexical_order = sorted(candidates, key=lambda c: c.score, reverse=True)
        semantic_order = sorted(
            (RankedResult(id=c.id, score=sim, text=c.text) for c, sim in zip(candidates, similarities)),
            key=lambda r: r.score,
            reverse=True,
        )
        return reciprocal_rank_fusion([lexical_order, semantic_order])

    rescored.sort(key=lambda r: r.score, reverse=True)
    logger.debug(
        f"Reranked {len(rescored)} candidates ({strategy}); "
        f"top={rescored[0].id} score={rescored[0].score:.3f}"
    )
    return rescored
