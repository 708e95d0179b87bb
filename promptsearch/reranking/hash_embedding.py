"""
Deterministic hash-embedding reranker.

Represents text as a fixed-length vector of hashed character n-grams:
- text is normalized with the BM25 tokenizer and re-joined with single spaces
- every n-gram of length 3..4 hashes to a bucket and a +1/-1 sign
- the accumulated vector is L2-normalized

Similarity is cosine renormalized to [0, 1]. This is a lexical-overlap proxy,
not semantics: texts sharing more substrings score higher. It needs no model
and no network, which makes it the fallback every other backend degrades to.

blake2b is used instead of hash() so vectors are identical across processes
(PYTHONHASHSEED).
"""

import hashlib
import logging
from typing import List, Sequence, Tuple

import numpy as np

from ..bm25.tokenizer import tokenize
from .base import BaseReranker

logger = logging.getLogger(__name__)


class HashEmbeddingReranker(BaseReranker):
    """Character n-gram feature hashing with sign folding."""

    def __init__(self, dim: int = 256, ngram_range: Tuple[int, int] = (3, 4)):
        """
        Args:
            dim: Number of vector buckets
            ngram_range: Inclusive (min, max) n-gram length
        """
        low, high = ngram_range
        if dim <= 0:
            raise ValueError(f"dim must be positive, got {dim}")
        if low <= 0 or high < low:
            raise ValueError(f"Invalid ngram_range: {ngram_range}")
        self.dim = dim
        self.ngram_range = (low, high)

    def _ngrams(self, normalized: str) -> List[str]:
        low, high = self.ngram_range
        if len(normalized) < low:
            return [normalized]
        grams = []
        for n in range(low, high + 1):
            grams.extend(normalized[i:i + n] for i in range(len(normalized) - n + 1))
        return grams

    def _bucket(self, gram: str) -> Tuple[int, float]:
        value = int.from_bytes(hashlib.blake2b(gram.encode("utf-8"), digest_size=8).digest(), "little")
        sign = -1.0 if value >> 63 else 1.0
        return value % self.dim, sign

    def embed(self, text: str) -> np.ndarray:
        """
        Embed one text.

        Returns:
            L2-normalized float32 vector of length `dim`; all zeros if the
            text normalizes to nothing.
        """
        vector = np.zeros(self.dim, dtype=np.float32)
        normalized = " ".join(tokenize(text))
        if not normalized:
            return vector

        for gram in self._ngrams(normalized):
            bucket, sign = self._bucket(gram)
            vector[bucket] += sign

        norm = np.linalg.norm(vector)
        if norm > 0:
            vector /= norm
        return vector

    def similarities(self, query: str, texts: Sequence[str]) -> List[float]:
        """Cosine similarity renormalized to [0, 1]; empty texts score 0.0."""
        if not texts:
            return []

        query_vector = self.embed(query)
        if not query_vector.any():
            logger.debug("Query normalized to empty text, all candidates get minimum similarity")
            return [0.0] * len(texts)

        matrix = np.vstack([self.embed(text) for text in texts])
        cosine = matrix @ query_vector
        scores = np.clip((cosine + 1.0) / 2.0, 0.0, 1.0)

        # Zero vectors would otherwise land at the midpoint 0.5
        empty_rows = ~matrix.any(axis=1)
        scores[empty_rows] = 0.0

        return [float(score) for score in scores]

    def get_model_info(self) -> dict:
        """Get backend metadata."""
        return {
            "name": f"hash-ngram-{self.ngram_range[0]}-{self.ngram_range[1]}",
            "type": "hash",
            "provider": "builtin",
            "dim": self.dim,
        }
