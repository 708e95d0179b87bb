"""
Abstract base class for semantic reranking backends.

All backends implement the same text-in, score-out contract so the engine
never needs to know which one is active.
"""

from abc import ABC, abstractmethod
from typing import List, Sequence

from ..models import RankedResult

__all__ = ["BaseReranker", "RankedResult"]


class BaseReranker(ABC):
    """
    Abstract base class for reranking backends.

    All rerankers must implement this interface to be swappable.
    """

    @abstractmethod
    def similarities(self, query: str, texts: Sequence[str]) -> List[float]:
        """
        Score each text against the query.

        Args:
            query: Raw query text
            texts: Candidate texts

        Returns:
            One similarity per text, in input order, each in [0, 1]
            (higher = more similar). A text that is empty after
            normalization scores 0.0.
        """
        pass

    @abstractmethod
    def get_model_info(self) -> dict:
        """
        Get information about the backend.

        Returns:
            Dict with keys: name, type, provider (+ backend-specific keys)
        """
        pass

    def close(self):
        """Optional cleanup (free model memory, close clients, etc.)"""
        pass
