"""
Unit tests for SearchEngine: filters, limits, highlighting and the index cache.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import Mock

import pytest

from promptsearch.config import SearchSettings
from promptsearch.engine import IndexCache, SearchEngine, validate_limit
from promptsearch.exceptions import DuplicateDocumentError, InvalidLimitError
from promptsearch.models import PromptCategory, SearchOptions
from promptsearch.reranking.base import BaseReranker


@pytest.fixture
def engine(sample_documents, settings):
    return SearchEngine(sample_documents, settings=settings)


def ids(results):
    return [r.document.id for r in results]


class TestSearch:
    """Test the full search pipeline"""

    def test_basic_ranking(self, engine):
        """Test that the heaviest user of a term ranks first"""
        results = engine.search("code review")
        assert results[0].document.id == "code-review"
        assert [r.score for r in results] == sorted((r.score for r in results), reverse=True)

    def test_default_limit(self, doc_factory, settings):
        """Test that the configured default limit applies"""
        docs = [doc_factory(f"doc-{i}", "shared term") for i in range(30)]
        engine = SearchEngine(docs, settings=settings)
        assert len(engine.search("shared")) == 20

    def test_explicit_limit(self, engine):
        """Test limit via options and via keyword override"""
        assert len(engine.search("code", SearchOptions(limit=2))) == 2
        assert len(engine.search("code", limit=1)) == 1

    def test_empty_query(self, engine):
        """Test that empty or punctuation-only queries return nothing"""
        assert engine.search("") == []
        assert engine.search("   ") == []
        assert engine.search("?!") == []

    def test_no_matches(self, engine):
        """Test that unknown terms return nothing"""
        assert engine.search("xylophone") == []

    def test_deterministic(self, engine):
        """Test that repeated searches give identical ordered results"""
        first = engine.search("write tests for code")
        second = engine.search("write tests for code")
        assert ids(first) == ids(second)
        assert [r.score for r in first] == [r.score for r in second]
        assert [r.matched_fields for r in first] == [r.matched_fields for r in second]

    def test_synonyms_without_corpus_vocabulary(self, engine):
        """Test that synonyms absent from the corpus add nothing"""
        # "debug" only occurs inside the tag "debugging" (no stemming);
        # its synonyms troubleshoot/diagnose are not in the corpus either
        assert engine.search("debug", expand_synonyms=False) == []
        assert engine.search("debug") == []

    def test_synonyms_reach_related_documents(self, engine):
        """Test expansion of a table term into corpus vocabulary"""
        assert ids(engine.search("bug", expand_synonyms=False)) == ["bug-triage"]
        # bug -> defect, error, issue; "issues" is not "issue", so the set is unchanged
        assert ids(engine.search("bug")) == ["bug-triage"]
        # fast -> speed, performance
        assert ids(engine.search("fast", expand_synonyms=False)) == []
        assert ids(engine.search("fast")) == ["perf-tuning"]

    def test_category_filter(self, engine):
        """Test exact category matching with strings and enum members"""
        by_string = engine.search("write", category="testing")
        by_enum = engine.search("write", category=PromptCategory.TESTING)
        assert ids(by_string) == ids(by_enum) == ["unit-test-writer"]

    def test_tag_filter_matches_any(self, engine):
        """Test that any listed tag qualifies a document"""
        results = engine.search("write", tags=["coverage", "email"])
        assert set(ids(results)) == {"unit-test-writer", "status-update"}

    def test_single_tag_string(self, engine):
        """Test that a plain string is one tag, not a set of characters"""
        assert ids(engine.search("write", tags="tests")) == ["unit-test-writer"]
        assert ids(engine.search("write", tags="tests")) == ids(engine.search("write", tags=["tests"]))

    def test_filter_before_limit(self, engine):
        """Test that filtered-out documents never take a limited slot"""
        unfiltered = ids(engine.search("code"))
        assert unfiltered[0] != "flaky-tests"

        results = engine.search("code", category="testing", limit=1)

        assert ids(results) == ["flaky-tests"]
        assert results[0].document.category == PromptCategory.TESTING

    def test_filter_leaves_fewer_than_limit(self, engine):
        """Test that filters can return less than the limit"""
        assert ids(engine.search("code", category="communication", limit=5)) == []

    def test_scores_are_bm25_scores(self, engine):
        """Test that without rerank the score is the raw BM25 score"""
        index = engine.get_index()
        raw = dict(engine.scorer.search(index, ["code"]))
        for result in engine.search("code", expand_synonyms=False):
            assert result.score == pytest.approx(raw[result.document.id])


class TestMatchedFields:
    """Test per-field match highlighting"""

    def test_title_only_match(self, engine):
        """Test that a title-only term excludes content"""
        result = engine.search("tuning", expand_synonyms=False)[0]
        assert result.document.id == "perf-tuning"
        assert "title" in result.matched_fields
        assert "content" not in result.matched_fields
        assert result.matched_fields == ["id", "title"]

    def test_discovery_order_and_dedup(self, engine):
        """Test that fields are listed once, in order of discovery"""
        result = engine.search("review code", expand_synonyms=False)[0]
        assert result.document.id == "code-review"
        assert result.matched_fields == ["id", "title", "description", "tags", "content"]

    def test_tags_field(self, engine):
        """Test that tag tokens are matched"""
        result = engine.search("triage", expand_synonyms=False)[0]
        assert "tags" in result.matched_fields

    def test_expanded_terms_highlight(self, engine):
        """Test that synonym tokens count for highlighting"""
        result = engine.search("fast")[0]
        assert result.document.id == "perf-tuning"
        # "fast" matches nothing; "speed" then "performance" are discovered in turn
        assert result.matched_fields == ["description", "content", "title", "tags"]


class TestQuickSearch:
    """Test the autocomplete path"""

    def test_returns_documents(self, engine, sample_documents):
        """Test that bare documents are returned"""
        docs = engine.quick_search("tests")
        assert docs[0] in sample_documents
        assert {d.id for d in docs} == {"flaky-tests", "unit-test-writer"}

    def test_no_synonyms(self, engine):
        """Test that expansion is off"""
        assert engine.quick_search("fast") == []

    def test_default_limit(self, doc_factory, settings):
        """Test the configured quick limit"""
        docs = [doc_factory(f"doc-{i}", "shared term") for i in range(10)]
        engine = SearchEngine(docs, settings=settings)
        assert len(engine.quick_search("shared")) == 5
        assert len(engine.quick_search("shared", limit=3)) == 3

    def test_blank_query(self, engine):
        """Test that blank queries short-circuit"""
        assert engine.quick_search("") == []
        assert engine.quick_search("  \t") == []

    def test_never_reranks(self, sample_documents):
        """Test that autocomplete skips the semantic pass even when enabled"""
        reranker = Mock(spec=BaseReranker)
        engine = SearchEngine(sample_documents, settings=SearchSettings(rerank_enabled=True), reranker=reranker)

        engine.quick_search("code")

        reranker.similarities.assert_not_called()


class TestLimitValidation:
    """Test InvalidLimit handling"""

    @pytest.mark.parametrize("limit", [0, -1, 2.5, float("nan"), float("inf"), True, "5", None])
    def test_invalid_limits(self, limit):
        with pytest.raises(InvalidLimitError):
            validate_limit(limit)

    def test_integral_float_accepted(self):
        assert validate_limit(5.0) == 5

    def test_search_rejects_before_querying(self, engine):
        """Test that invalid limits surface even for empty queries"""
        with pytest.raises(InvalidLimitError):
            engine.search("", limit=0)
        with pytest.raises(InvalidLimitError):
            engine.quick_search("", limit=-3)
        assert engine.cache.state == "absent"

    def test_is_value_error(self, engine):
        """Test that callers catching ValueError still work"""
        with pytest.raises(ValueError):
            engine.search("code", limit=float("inf"))


class TestRerank:
    """Test the optional semantic pass inside search"""

    def test_rerank_uses_similarity_scores(self, engine):
        """Test that reranked scores are hash similarities in [0, 1]"""
        results = engine.search("performance", rerank=True)
        assert results[0].document.id == "perf-tuning"
        assert all(0.0 <= r.score <= 1.0 for r in results)

    def test_rerank_enabled_from_settings(self, sample_documents):
        """Test that settings turn reranking on by default"""
        reranker = Mock(spec=BaseReranker)
        reranker.similarities.side_effect = lambda query, texts: [0.5] * len(texts)
        engine = SearchEngine(sample_documents, settings=SearchSettings(rerank_enabled=True), reranker=reranker)

        results = engine.search("code")

        reranker.similarities.assert_called_once()
        assert all(r.score == 0.5 for r in results)
        # Equal similarities keep the lexical order
        assert ids(results) == ids(engine.search("code", rerank=False))

    def test_rerank_before_filter_and_limit(self, sample_documents):
        """Test that reranking sees every candidate and filters still apply after"""
        reranker = Mock(spec=BaseReranker)
        reranker.similarities.side_effect = lambda query, texts: [float(i) / len(texts) for i in range(len(texts))]
        engine = SearchEngine(sample_documents, settings=SearchSettings(), reranker=reranker)

        results = engine.search("code", rerank=True, category="testing", limit=1)

        texts = reranker.similarities.call_args.args[1]
        assert len(texts) == 3
        assert ids(results) == ["flaky-tests"]

    def test_failing_backend_still_returns_results(self, sample_documents):
        """Test that backend failures degrade to the hash fallback"""
        reranker = Mock(spec=BaseReranker)
        reranker.similarities.side_effect = TimeoutError("embedding service timed out")
        engine = SearchEngine(sample_documents, settings=SearchSettings(rerank_enabled=True), reranker=reranker)

        results = engine.search("performance")

        assert results
        assert results[0].document.id == "perf-tuning"

    def test_linear_strategy_from_settings(self, sample_documents):
        """Test that strategy and weight come from settings"""
        reranker = Mock(spec=BaseReranker)
        reranker.similarities.side_effect = lambda query, texts: [0.0] * len(texts)
        settings = SearchSettings(rerank_enabled=True, rerank_strategy="linear", rerank_weight=0.5)
        engine = SearchEngine(sample_documents, settings=settings, reranker=reranker)

        results = engine.search("code")

        assert results[0].score == pytest.approx(0.5)  # top lexical score normalizes to 1
        assert results[-1].score == pytest.approx(0.0)


class TestIndexLifecycle:
    """Test lazy build, caching and reset"""

    def test_lazy_build(self, engine):
        """Test that nothing is built until the first query"""
        assert engine.index_stats() == {"state": "absent"}
        engine.search("code")
        stats = engine.index_stats()
        assert stats["state"] == "built"
        assert stats["documents"] == 10
        assert stats["terms"] > 0
        assert len(stats["fingerprint"]) == 64

    def test_index_cached(self, engine):
        """Test that queries reuse the same index"""
        engine.search("code")
        first = engine.get_index()
        engine.search("tests")
        assert engine.get_index() is first

    def test_stale_without_reset(self, sample_documents, doc_factory, settings):
        """Test that corpus changes are invisible until reset_index()"""
        corpus = list(sample_documents)
        engine = SearchEngine(corpus, settings=settings)
        assert engine.search("zebra") == []

        corpus.append(doc_factory("zebra-stripes", "Zebra Stripes", "Pattern ideas", "zebra zebra"))
        assert engine.search("zebra") == []

        engine.reset_index()
        assert ids(engine.search("zebra")) == ["zebra-stripes"]

    def test_callable_corpus(self, sample_documents, doc_factory, settings):
        """Test that a loader callable is re-read on rebuild"""
        registry = {"docs": list(sample_documents)}
        engine = SearchEngine(lambda: registry["docs"], settings=settings)
        assert engine.search("zebra") == []

        registry["docs"] = [doc_factory("zebra", "zebra")]
        engine.reset_index()

        assert ids(engine.search("zebra")) == ["zebra"]
        assert engine.index_stats()["documents"] == 1

    def test_replace_corpus(self, engine, doc_factory):
        """Test that replace_corpus resets the cache"""
        engine.search("code")
        engine.replace_corpus([doc_factory("only", "lonely document")])
        assert engine.index_stats() == {"state": "absent"}
        assert ids(engine.search("lonely")) == ["only"]
        assert engine.search("code") == []

    def test_stale_index_serves_old_documents(self, sample_documents, doc_factory, settings):
        """Test that results come from the indexed snapshot, not the live corpus"""
        corpus = list(sample_documents)
        engine = SearchEngine(corpus, settings=settings)
        engine.search("code")

        corpus[1] = doc_factory("code-review", "Renamed", "", "")
        assert engine.search("code review")[0].document.title == "Thorough Code Review"

    def test_rebuild_index(self, engine):
        """Test eager rebuild"""
        index = engine.rebuild_index()
        assert engine.get_index() is index

    def test_duplicate_ids_surface_on_first_query(self, doc_factory, settings):
        """Test that a malformed corpus fails loudly"""
        engine = SearchEngine([doc_factory("dup", "a"), doc_factory("dup", "b")], settings=settings)
        with pytest.raises(DuplicateDocumentError):
            engine.search("a")

    def test_empty_corpus(self, settings):
        """Test that an empty corpus yields no results"""
        assert SearchEngine([], settings=settings).search("anything") == []


class TestIndexCache:
    """Test the cache slot itself"""

    def test_builds_once_when_cached(self):
        cache = IndexCache()
        builder = Mock(return_value="index")
        assert cache.get(builder) == "index"
        assert cache.get(builder) == "index"
        builder.assert_called_once()

    def test_reset_during_build_is_not_installed(self):
        """Test that a build racing a reset does not repopulate the cache"""
        cache = IndexCache()

        def builder():
            cache.reset()  # Simulates another thread resetting mid-build
            return "old-snapshot"

        assert cache.get(builder) == "old-snapshot"
        assert cache.state == "absent"

    def test_concurrent_first_queries(self, sample_documents, settings):
        """Test that concurrent lazy builds converge on one cached index"""
        engine = SearchEngine(sample_documents, settings=settings)
        barrier = threading.Barrier(8)

        def query(_):
            barrier.wait()
            return ids(engine.search("write tests"))

        with ThreadPoolExecutor(max_workers=8) as pool:
            outcomes = list(pool.map(query, range(8)))

        assert all(outcome == outcomes[0] for outcome in outcomes)
        assert engine.index_stats()["state"] == "built"
