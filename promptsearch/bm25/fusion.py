"""
RRF (Reciprocal Rank Fusion) for combining multiple rankings.

Used to blend the lexical (BM25) order with the semantic order without
normalizing their incompatible score scales.

Formula:
    RRF(item, k=60) = Σ 1/(k + rank_i(item))

Where:
    k = constant (default: 60, from literature)
    rank_i = rank of item in i-th ranking (1-based)

Reference: https://plg.uwaterloo.ca/~gvcormac/cormacksigir09-rrf.pdf
"""

from typing import Dict, List, Sequence

from ..models import RankedResult


def reciprocal_rank_fusion(
    rankings: Sequence[Sequence[RankedResult]],
    k: int = 60,
) -> List[RankedResult]:
    """
    Combine multiple rankings using Reciprocal Rank Fusion.

    Args:
        rankings: Ranked result lists, each already sorted best-first
        k: RRF constant (default: 60)

    Returns:
        One RankedResult per unique id with score = RRF score, sorted
        descending; ties keep first-appearance order.

    Example:
        >>> lexical = [RankedResult("a", 9.1, ""), RankedResult("b", 4.0, "")]
        >>> semantic = [RankedResult("b", 0.9, ""), RankedResult("a", 0.7, "")]
        >>> [r.id for r in reciprocal_rank_fusion([lexical, semantic])]
        ['a', 'b']
    """
    if not rankings:
        return []

    rrf_scores: Dict[str, float] = {}
    first_seen: Dict[str, RankedResult] = {}

    for ranking in rankings:
        for rank, item in enumerate(ranking, start=1):
            rrf_scores[item.id] = rrf_scores.get(item.id, 0.0) + 1.0 / (k + rank)
            first_seen.setdefault(item.id, item)

    fused = [
        RankedResult(id=item_id, score=rrf_scores[item_id], text=item.text)
        for item_id, item in first_seen.items()
    ]
    fused.sort(key=lambda r: r.score, reverse=True)
    return fused
