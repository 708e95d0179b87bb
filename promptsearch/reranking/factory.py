"""
Factory to create reranker instances by backend tag.
"""

import logging
import threading
from typing import Dict, Optional, Tuple

from ..config import BACKENDS, SearchSettings
from ..exceptions import UnknownBackendError
from .base import BaseReranker
from .hash_embedding import HashEmbeddingReranker
from .local import LocalEmbeddingReranker

logger = logging.getLogger(__name__)


class RerankingFactory:
    """
    Factory to create reranker instances based on configuration.

    The instance cache is shared by every engine in the process and guarded
    by a lock. Replaced or cleaned-up instances are closed after the lock is
    released; a query already holding one keeps its loaded model.
    """

    _instances: Dict[Tuple[str, str], BaseReranker] = {}  # Cache per (backend, model config)
    _lock = threading.Lock()

    @classmethod
    def create(
        cls,
        backend: str = "hash",
        settings: Optional[SearchSettings] = None,
        force_reload: bool = False,
    ) -> BaseReranker:
        """
        Create (or return the cached) reranker for a backend tag.

        Supported backends:
            - hash: deterministic character n-gram embedding (no dependencies)
            - local: sentence-transformers bi-encoder (requires the `local` extra)

        Args:
            backend: Backend tag
            settings: Source of hash_dim / local_model (defaults if None)
            force_reload: If True, recreate instance even if cached

        Returns:
            Reranker instance

        Raises:
            UnknownBackendError: If backend is not one of BACKENDS
        """
        backend = (backend or "hash").lower()
        if backend not in BACKENDS:
            raise UnknownBackendError(backend, BACKENDS)

        settings = settings or SearchSettings()
        model_key = str(settings.hash_dim) if backend == "hash" else settings.local_model
        key = (backend, model_key)

        with cls._lock:
            cached = cls._instances.get(key)
            if cached is not None and not force_reload:
                return cached

            # Constructors are cheap: the local model loads on first use
            if backend == "hash":
                instance = HashEmbeddingReranker(dim=settings.hash_dim)
            else:
                logger.info(f"Creating local embedding reranker: {settings.local_model}")
                instance = LocalEmbeddingReranker(model_name=settings.local_model)
            cls._instances[key] = instance

        if cached is not None:
            cached.close()
        return instance

    @classmethod
    def cleanup(cls):
        """Close and drop every cached reranker instance."""
        with cls._lock:
            instances = list(cls._instances.items())
            cls._instances.clear()

        for (backend, _), instance in instances:
            logger.info(f"Cleaning up {backend} reranker instance")
            instance.close()
