"""
Environment-backed configuration for prompt search.

Config (env vars, all optional):
    PROMPTSEARCH_BM25_K1: Term frequency saturation (default: 1.2)
    PROMPTSEARCH_BM25_B: Length normalization (default: 0.75)
    PROMPTSEARCH_DEFAULT_LIMIT: Result limit for full search (default: 20)
    PROMPTSEARCH_QUICK_LIMIT: Result limit for autocomplete (default: 5)
    PROMPTSEARCH_RERANK_ENABLED: "true" to rerank every search (default: false)
    PROMPTSEARCH_RERANK_BACKEND: "hash" | "local" (default: hash)
    PROMPTSEARCH_RERANK_STRATEGY: "replace" | "linear" | "rrf" (default: replace)
    PROMPTSEARCH_RERANK_WEIGHT: Semantic weight for linear blending (default: 0.5)
    PROMPTSEARCH_LOCAL_MODEL: sentence-transformers model for the local backend
    PROMPTSEARCH_HASH_DIM: Hash embedding dimension (default: 256)
"""

import math
import os
from dataclasses import dataclass

from dotenv import load_dotenv

BACKENDS = ("hash", "local")
STRATEGIES = ("replace", "linear", "rrf")


@dataclass(frozen=True)
class SearchSettings:
    """Runtime tuning knobs for indexing, ranking and reranking."""

    k1: float = 1.2
    b: float = 0.75
    default_limit: int = 20
    quick_limit: int = 5
    rerank_enabled: bool = False
    rerank_backend: str = "hash"
    rerank_strategy: str = "replace"
    rerank_weight: float = 0.5
    local_model: str = "sentence-transformers/all-MiniLM-L6-v2"
    hash_dim: int = 256

    def __post_init__(self):
        for name in ("k1", "b", "rerank_weight"):
            if not math.isfinite(getattr(self, name)):
                raise ValueError(f"{name} must be a finite number, got {getattr(self, name)}")
        if self.k1 < 0:
            raise ValueError(f"k1 must be non-negative, got {self.k1}")
        if not 0.0 <= self.b <= 1.0:
            raise ValueError(f"b must be in [0, 1], got {self.b}")
        if not 0.0 <= self.rerank_weight <= 1.0:
            raise ValueError(f"rerank_weight must be in [0, 1], got {self.rerank_weight}")
        if self.default_limit <= 0 or self.quick_limit <= 0:
            raise ValueError("default_limit and quick_limit must be positive")
        if self.hash_dim <= 0:
            raise ValueError(f"hash_dim must be positive, got {self.hash_dim}")
        if self.rerank_backend not in BACKENDS:
            raise ValueError(
                f"rerank_backend must be one of {', '.join(BACKENDS)}, got {self.rerank_backend!r}"
            )
        if self.rerank_strategy not in STRATEGIES:
            raise ValueError(
                f"rerank_strategy must be one of {', '.join(STRATEGIES)}, got {self.rerank_strategy!r}"
            )


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        parsed = float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}") from None
    if not math.isfinite(parsed):
        raise ValueError(f"{name} must be a finite number, got {value!r}")
    return parsed


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}") from None


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_choice(name: str, default: str, choices) -> str:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    value = value.strip().lower()
    if value not in choices:
        raise ValueError(f"{name} must be one of {', '.join(choices)}, got {value!r}")
    return value


def load_settings() -> SearchSettings:
    """
    Load .env (if present) and build settings from environment variables.

    Returns:
        SearchSettings with defaults for every unset variable

    Raises:
        ValueError: If a variable is set to an unparseable or out-of-range value
    """
    load_dotenv()
    return SearchSettings(
        k1=_env_float("PROMPTSEARCH_BM25_K1", 1.2),
        b=_env_float("PROMPTSEARCH_BM25_B", 0.75),
        default_limit=_env_int("PROMPTSEARCH_DEFAULT_LIMIT", 20),
        quick_limit=_env_int("PROMPTSEARCH_QUICK_LIMIT", 5),
        rerank_enabled=_env_bool("PROMPTSEARCH_RERANK_ENABLED", False),
        rerank_backend=_env_choice("PROMPTSEARCH_RERANK_BACKEND", "hash", BACKENDS),
        rerank_strategy=_env_choice("PROMPTSEARCH_RERANK_STRATEGY", "replace", STRATEGIES),
        rerank_weight=_env_float("PROMPTSEARCH_RERANK_WEIGHT", 0.5),
        local_model=os.getenv("PROMPTSEARCH_LOCAL_MODEL", "sentence-transformers/all-MiniLM-L6-v2"),
        hash_dim=_env_int("PROMPTSEARCH_HASH_DIM", 256),
    )
