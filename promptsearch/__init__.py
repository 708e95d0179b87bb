"""
promptsearch - lexical + semantic ranking over an in-memory prompt corpus.

Components:
- bm25: tokenizer, inverted index, Okapi BM25 scorer, rank fusion
- synonyms: query expansion from a small curated table
- reranking: pluggable semantic second pass (hash embedding fallback)
- engine: SearchEngine with cached index, filters and highlighting
"""

from .bm25 import BM25Index, BM25Scorer, build_index, search, tokenize
from .config import SearchSettings, load_settings
from .engine import IndexCache, SearchEngine
from .exceptions import (
    DuplicateDocumentError,
    InvalidLimitError,
    PromptSearchError,
    UnknownBackendError,
)
from .logging_config import setup_logging
from .models import Document, PromptCategory, RankedResult, SearchOptions, SearchResult
from .reranking import semantic_rerank
from .synonyms import DEFAULT_SYNONYMS, SynonymExpander, expand_query

__version__ = "0.1.0"

__all__ = [
    "BM25Index",
    "BM25Scorer",
    "build_index",
    "search",
    "tokenize",
    "SearchSettings",
    "load_settings",
    "IndexCache",
    "SearchEngine",
    "DuplicateDocumentError",
    "InvalidLimitError",
    "PromptSearchError",
    "UnknownBackendError",
    "setup_logging",
    "Document",
    "PromptCategory",
    "RankedResult",
    "SearchOptions",
    "SearchResult",
    "semantic_rerank",
    "DEFAULT_SYNONYMS",
    "SynonymExpander",
    "expand_query",
]
