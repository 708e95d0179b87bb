"""Unit test configuration - isolate tests from env and cached backends"""

import os

import pytest

from promptsearch.reranking.factory import RerankingFactory


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Drop PROMPTSEARCH_* variables so local .env files cannot change results."""
    for name in list(os.environ):
        if name.startswith("PROMPTSEARCH_"):
            monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture(autouse=True)
def reset_reranker_cache():
    """Each test starts with an empty reranker factory cache."""
    RerankingFactory.cleanup()
    yield
    RerankingFactory.cleanup()
