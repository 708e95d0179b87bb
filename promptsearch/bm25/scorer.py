"""
Okapi BM25 scorer.

BM25 (Best Match 25) is a probabilistic ranking function used for information retrieval.

Formula:
    score(D, Q) = Σ IDF(t) × (f × (k1 + 1)) / (f + k1 × (1 - b + b × |D|/avgdl))
    IDF(t) = ln((N - n(t) + 0.5) / (n(t) + 0.5) + 1)

Where:
    f = frequency of t in D
    k1 = term frequency saturation parameter (default: 1.2)
    b = length normalization parameter (default: 0.75)
    |D| = document length (number of tokens)
    avgdl = average document length across the corpus
    N = number of documents, n(t) = documents containing t

The "+1" inside the log keeps IDF positive even for terms in every document.
Duplicate query terms each contribute (synonym amplification).
"""

import logging
import math
from typing import Dict, List, Sequence, Tuple

from .index_builder import BM25Index

logger = logging.getLogger(__name__)


class BM25Scorer:
    """Okapi BM25 over a prebuilt BM25Index."""

    def __init__(self, k1: float = 1.2, b: float = 0.75):
        """
        Initialize BM25 scorer.

        Args:
            k1: Term frequency saturation parameter
                Higher = more weight to term frequency
                Range: 1.2 - 2.0
                Default: 1.2 (standard)

            b: Length normalization parameter
                Higher = more penalty for long documents
                Range: 0.0 - 1.0
                Default: 0.75 (standard)
        """
        if k1 < 0:
            raise ValueError(f"k1 must be non-negative, got {k1}")
        if not 0.0 <= b <= 1.0:
            raise ValueError(f"b must be in [0, 1], got {b}")
        self.k1 = k1
        self.b = b

    @staticmethod
    def idf(total_docs: int, doc_freq: int) -> float:
        """Inverse document frequency; strictly decreasing in doc_freq."""
        return math.log((total_docs - doc_freq + 0.5) / (doc_freq + 0.5) + 1.0)

    def term_score(self, tf: float, doc_length: float, avgdl: float, idf: float) -> float:
        """Single-term BM25 contribution for one document."""
        if tf <= 0:
            return 0.0
        length_ratio = doc_length / avgdl if avgdl > 0 else 0.0
        numerator = tf * (self.k1 + 1)
        denominator = tf + self.k1 * (1 - self.b + self.b * length_ratio)
        return idf * numerator / denominator

    def search(self, index: BM25Index, query_tokens: Sequence[str]) -> List[Tuple[str, float]]:
        """
        Score every document against the query.

        Args:
            index: Prebuilt index
            query_tokens: Tokenized (and possibly expanded) query

        Returns:
            All (doc_id, score) pairs with nonzero score, sorted by score
            descending; ties keep corpus order. Never truncated: callers
            filter before limiting.
        """
        if not query_tokens or index.total_docs == 0:
            return []

        scores: Dict[str, float] = {}
        idf_cache: Dict[str, float] = {}

        for term in query_tokens:
            term_postings = index.postings.get(term)
            if not term_postings:
                continue

            idf = idf_cache.get(term)
            if idf is None:
                idf = self.idf(index.total_docs, len(term_postings))
                idf_cache[term] = idf

            for doc_id, tf in term_postings.items():
                contribution = self.term_score(tf, index.doc_lengths[doc_id], index.avgdl, idf)
                scores[doc_id] = scores.get(doc_id, 0.0) + contribution

        # Iterate in corpus order so the stable sort breaks ties by insertion
        ranked = [(doc_id, scores[doc_id]) for doc_id in index.doc_order if scores.get(doc_id, 0.0) > 0]
        ranked.sort(key=lambda item: item[1], reverse=True)

        logger.debug(
            f"BM25 scored {len(ranked)}/{index.total_docs} documents "
            f"for {len(query_tokens)} query tokens ({len(idf_cache)} known terms)"
        )
        return ranked


def search(
    index: BM25Index,
    query_tokens: Sequence[str],
    k1: float = 1.2,
    b: float = 0.75,
) -> List[Tuple[str, float]]:
    """Convenience wrapper: BM25Scorer(k1, b).search(index, query_tokens)."""
    return BM25Scorer(k1=k1, b=b).search(index, query_tokens)
