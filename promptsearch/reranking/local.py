"""
Local embedding reranker using sentence-transformers.

Supports any HuggingFace bi-encoder model.
Model loads once on first use and stays in memory for fast inference.
Requires the optional `local` extra: pip install promptsearch[local]
"""

import logging
import threading
from typing import List, Sequence

import numpy as np

from .base import BaseReranker

logger = logging.getLogger(__name__)


class LocalEmbeddingReranker(BaseReranker):
    """
    Local bi-encoder reranker using sentence-transformers.

    Query and candidates are embedded with normalized embeddings and compared
    by cosine similarity, renormalized to [0, 1].
    """

    def __init__(self, model_name: str = "sentence-transformers/all-MiniLM-L6-v2"):
        """
        Initialize local embedding reranker.

        Args:
            model_name: HuggingFace model identifier
                - 'sentence-transformers/all-MiniLM-L6-v2' (90MB, fast)
                - 'BAAI/bge-small-en-v1.5' (130MB, better quality)
        """
        self.model_name = model_name
        self.model = None  # Lazy loading
        self._load_lock = threading.Lock()
        logger.info(f"LocalEmbeddingReranker initialized (model will load on first use): {model_name}")

    def _ensure_loaded(self):
        """Lazy load model on first use (avoid startup overhead)"""
        with self._load_lock:
            if self.model is not None:
                return self.model
            logger.info(f"Loading embedding model: {self.model_name}")
            try:
                from sentence_transformers import SentenceTransformer
                self.model = SentenceTransformer(self.model_name)
                logger.info(f"Model loaded successfully: {self.model_name}")
            except Exception as e:
                logger.error(f"Failed to load model {self.model_name}: {e}")
                raise
            return self.model

    def similarities(self, query: str, texts: Sequence[str]) -> List[float]:
        """Score texts with the embedding model."""
        if not texts:
            return []

        # Local reference: close() may drop self.model while this call runs
        model = self._ensure_loaded()

        embeddings = model.encode(
            [query, *texts],
            normalize_embeddings=True,
            show_progress_bar=False,
        )
        embeddings = np.asarray(embeddings, dtype=np.float32)
        query_vector, matrix = embeddings[0], embeddings[1:]

        scores = np.clip((matrix @ query_vector + 1.0) / 2.0, 0.0, 1.0)
        results = [float(score) for score in scores]

        # Same floor as the hash backend for texts with nothing to embed
        for idx, text in enumerate(texts):
            if not text or not text.strip():
                results[idx] = 0.0

        logger.debug(f"Embedded and scored {len(texts)} candidates with {self.model_name}")
        return results

    def get_model_info(self) -> dict:
        """Get model metadata."""
        return {
            "name": self.model_name,
            "type": "local_embedding",
            "provider": "sentence-transformers",
            "loaded": self.model is not None
        }

    def close(self):
        """Free model memory."""
        if self.model is not None:
            logger.info(f"Closing model: {self.model_name}")
            del self.model
            self.model = None
