"""
BM25 (Best Match 25) lexical ranking for prompt search.

Components:
- tokenizer: Text normalization into terms
- index_builder: Inverted index over a corpus snapshot
- scorer: Okapi BM25 scoring with global IDF
- fusion: RRF (Reciprocal Rank Fusion) for combining rankings
"""

from .tokenizer import tokenize
from .index_builder import BM25Index, build_index
from .scorer import BM25Scorer, search
from .fusion import reciprocal_rank_fusion

__all__ = [
    "tokenize",
    "BM25Index",
    "build_index",
    "BM25Scorer",
    "search",
    "reciprocal_rank_fusion",
]
