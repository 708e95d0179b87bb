"""
Prompt search engine - BM25 ranking with optional semantic reranking.

Pipeline for one query:
1. Tokenize, optionally expand with synonyms
2. Full (untruncated) BM25 search on the cached index
3. Optional semantic rerank of every candidate
4. Category / tag filters
5. Slice to limit (after filtering, so filtered-out documents never take a slot)
6. Field highlighting for the surviving page only

The index is owned by an IndexCache: built lazily on first query, kept until
reset_index() is called. The cache does not watch the corpus; callers that
replace documents must reset.
"""

import dataclasses
import logging
import math
import numbers
import threading
import time
from typing import Callable, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .bm25.index_builder import BM25Index, build_index
from .bm25.scorer import BM25Scorer
from .bm25.tokenizer import tokenize
from .config import SearchSettings, load_settings
from .exceptions import InvalidLimitError
from .models import HIGHLIGHT_FIELDS, Document, RankedResult, SearchOptions, SearchResult, as_tags
from .reranking.base import BaseReranker
from .reranking.semantic import semantic_rerank
from .synonyms import SynonymExpander

logger = logging.getLogger(__name__)

CorpusSource = Union[Sequence[Document], Callable[[], Iterable[Document]]]


class IndexCache:
    """
    Single-slot cache for the BM25 index.

    States: absent (nothing built, or reset) and built.

    Builds run outside the lock, so concurrent first queries may build
    redundantly; any of those builds is interchangeable. A build that was
    started before a reset() is returned to its caller but never installed.
    """

    def __init__(self):
        self._index: Optional[BM25Index] = None
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def state(self) -> str:
        return "built" if self._index is not None else "absent"

    def peek(self) -> Optional[BM25Index]:
        """Current index without building."""
        return self._index

    def get(self, builder: Callable[[], BM25Index]) -> BM25Index:
        """Return the cached index, building it with `builder` if absent."""
        with self._lock:
            index, generation = self._index, self._generation
        if index is not None:
            return index

        built = builder()

        with self._lock:
            if self._generation != generation:
                logger.info("Index was reset during build; serving this query without caching")
                return built
            if self._index is None:
                self._index = built
            return self._index

    def install(self, index: BM25Index):
        with self._lock:
            self._index = index
            self._generation += 1

    def reset(self):
        with self._lock:
            self._index = None
            self._generation += 1


def validate_limit(limit) -> int:
    """
    Check a caller-supplied result limit.

    Accepts positive ints and integral floats (5.0).

    Raises:
        InvalidLimitError: For bools, non-numbers, NaN/inf, zero, negatives, 2.5
    """
    if isinstance(limit, bool) or not isinstance(limit, numbers.Real):
        raise InvalidLimitError(limit)
    if not math.isfinite(limit) or limit <= 0:
        raise InvalidLimitError(limit)
    if isinstance(limit, numbers.Integral):
        return int(limit)
    if not float(limit).is_integer():
        raise InvalidLimitError(limit)
    return int(limit)


class SearchEngine:
    """
    Public query API over a prompt corpus.

    Example:
        >>> engine = SearchEngine(registry.all_prompts, settings=SearchSettings())
        >>> [r.document.id for r in engine.search("fix flaky tests", limit=3)]
        ['flaky-test-hunter', 'debug-session', 'test-writer']
    """

    def __init__(
        self,
        corpus: CorpusSource,
        settings: Optional[SearchSettings] = None,
        synonyms: Union[SynonymExpander, Mapping[str, Iterable[str]], None] = None,
        reranker: Optional[BaseReranker] = None,
        field_weights: Optional[Mapping[str, float]] = None,
        cache: Optional[IndexCache] = None,
    ):
        """
        Args:
            corpus: Documents, or a zero-argument callable returning the
                current snapshot (called on every index build)
            settings: Tuning knobs (loaded from the environment if None)
            synonyms: Expander or synonym table (DEFAULT_SYNONYMS if None)
            reranker: Explicit rerank backend; otherwise settings.rerank_backend
            field_weights: Per-field BM25 weights passed to build_index
            cache: Index cache (a private one if None)
        """
        self._corpus = corpus
        self.settings = settings or load_settings()
        self.expander = synonyms if isinstance(synonyms, SynonymExpander) else SynonymExpander(synonyms)
        self.reranker = reranker
        self.field_weights = dict(field_weights) if field_weights else None
        self.scorer = BM25Scorer(k1=self.settings.k1, b=self.settings.b)
        self.cache = cache or IndexCache()

    # Index lifecycle

    def _snapshot(self) -> Tuple[Document, ...]:
        source = self._corpus() if callable(self._corpus) else self._corpus
        return tuple(source)

    def _build(self) -> BM25Index:
        started = time.perf_counter()
        index = build_index(self._snapshot(), field_weights=self.field_weights)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            f"Built search index: {index.total_docs} documents, "
            f"{len(index.postings)} terms in {elapsed_ms:.1f}ms"
        )
        return index

    def get_index(self) -> BM25Index:
        """Cached index, built on first use."""
        return self.cache.get(self._build)

    def rebuild_index(self) -> BM25Index:
        """Build from the current corpus now and install it."""
        index = self._build()
        self.cache.install(index)
        return index

    def reset_index(self):
        """Drop the cached index; the next query rebuilds from the current corpus."""
        logger.info("Search index reset")
        self.cache.reset()

    def replace_corpus(self, corpus: CorpusSource):
        """Swap the corpus source and reset the index."""
        self._corpus = corpus
        self.reset_index()

    def index_stats(self) -> dict:
        """Describe the cached index without building it."""
        index = self.cache.peek()
        if index is None:
            return {"state": "absent"}
        return {
            "state": "built",
            "documents": index.total_docs,
            "terms": len(index.postings),
            "avgdl": index.avgdl,
            "fingerprint": index.fingerprint,
        }

    # Queries

    def _rank(self, query: str, options: SearchOptions, highlight: bool) -> List[SearchResult]:
        limit = validate_limit(self.settings.default_limit if options.limit is None else options.limit)

        tokens = tokenize(query)
        if options.expand_synonyms:
            tokens = self.expander.expand(tokens)
        if not tokens:
            return []

        index = self.get_index()
        ranked = self.scorer.search(index, tokens)

        rerank = self.settings.rerank_enabled if options.rerank is None else options.rerank
        if rerank and ranked:
            candidates = [
                RankedResult(id=doc_id, score=score, text=index.documents[doc_id].search_text())
                for doc_id, score in ranked
            ]
            reranked = semantic_rerank(
                query,
                candidates,
                backend=self.settings.rerank_backend,
                reranker=self.reranker,
                strategy=self.settings.rerank_strategy,
                weight=self.settings.rerank_weight,
                settings=self.settings,
            )
            ranked = [(r.id, r.score) for r in reranked]

        wanted_tags = set(as_tags(options.tags))
        results: List[SearchResult] = []
        for doc_id, score in ranked:
            doc = index.documents[doc_id]
            if options.category and doc.category != options.category:
                continue
            if wanted_tags and wanted_tags.isdisjoint(doc.tags):
                continue
            results.append(SearchResult(document=doc, score=score))
            if len(results) == limit:
                break

        if highlight:
            for result in results:
                result.matched_fields = self._matched_fields(index, result.document.id, tokens)

        logger.debug(
            f"Search '{query}': {len(tokens)} tokens, {len(ranked)} candidates, "
            f"{len(results)} returned (limit={limit})"
        )
        return results

    @staticmethod
    def _matched_fields(index: BM25Index, doc_id: str, tokens: Sequence[str]) -> List[str]:
        field_tokens = index.field_tokens[doc_id]
        matched: List[str] = []
        for term in tokens:
            for name in HIGHLIGHT_FIELDS:
                if name not in matched and term in field_tokens[name]:
                    matched.append(name)
        return matched

    def search(self, query: str, options: Optional[SearchOptions] = None, **overrides) -> List[SearchResult]:
        """
        Full ranked search.

        Args:
            query: Free-text query
            options: SearchOptions (limit, category, tags, expand_synonyms, rerank)
            **overrides: Individual SearchOptions fields, e.g. limit=5

        Returns:
            Results ordered by final score; empty for queries with no tokens

        Raises:
            InvalidLimitError: If limit is not a positive whole number
        """
        options = options or SearchOptions()
        if overrides:
            options = dataclasses.replace(options, **overrides)
        return self._rank(query, options, highlight=True)

    def quick_search(self, query: str, limit: Optional[int] = None) -> List[Document]:
        """
        Lightweight autocomplete search: no synonyms, no rerank, no highlighting.

        Args:
            query: Partial query text
            limit: Max documents (settings.quick_limit if None)

        Returns:
            Matching documents, best first
        """
        limit = validate_limit(self.settings.quick_limit if limit is None else limit)
        if not query or not query.strip():
            return []
        options = SearchOptions(limit=limit, expand_synonyms=False, rerank=False)
        return [result.document for result in self._rank(query, options, highlight=False)]
