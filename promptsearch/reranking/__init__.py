"""
Semantic reranking for prompt search.

Usage:
    # Hash fallback (always available):
    from promptsearch.reranking import semantic_rerank

    results = semantic_rerank(query, candidates, backend="hash")

    # Or a specific backend instance:
    from promptsearch.reranking import LocalEmbeddingReranker

    reranker = LocalEmbeddingReranker("BAAI/bge-small-en-v1.5")
    results = semantic_rerank(query, candidates, reranker=reranker)
"""

from .base import BaseReranker, RankedResult
from .hash_embedding import HashEmbeddingReranker
from .local import LocalEmbeddingReranker
from .factory import BACKENDS, RerankingFactory
from .semantic import STRATEGIES, semantic_rerank


def get_reranker(backend: str = "hash", force_reload: bool = False) -> BaseReranker:
    """Get a cached reranker for a backend tag (factory convenience function)."""
    return RerankingFactory.create(backend, force_reload=force_reload)


__all__ = [
    'BaseReranker',
    'RankedResult',
    'HashEmbeddingReranker',
    'LocalEmbeddingReranker',
    'RerankingFactory',
    'BACKENDS',
    'STRATEGIES',
    'get_reranker',
    'semantic_rerank',
]
