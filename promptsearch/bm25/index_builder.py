"""
BM25 index builder - inverted index over an immutable corpus snapshot.

Build once, query many. The index holds everything scoring and highlighting
need, including the documents themselves, so a query never reads the live
corpus and cannot mix an old index with new documents.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, FrozenSet, Mapping, Optional, Sequence, Tuple

from ..exceptions import DuplicateDocumentError
from ..models import HIGHLIGHT_FIELDS, SCORED_FIELDS, Document
from ..utils import corpus_fingerprint
from .tokenizer import tokenize

logger = logging.getLogger(__name__)

DEFAULT_FIELD_WEIGHTS: Mapping[str, float] = MappingProxyType({name: 1.0 for name in SCORED_FIELDS})


@dataclass(frozen=True)
class BM25Index:
    """
    Immutable BM25 inverted index.

    Attributes:
        postings: term -> {doc_id: term frequency}
        doc_lengths: doc_id -> document length (weighted token count)
        field_tokens: doc_id -> field name -> token set (for highlighting)
        documents: doc_id -> Document snapshot
        doc_order: doc ids in corpus order (tie-break order)
        total_docs: N
        avgdl: average document length
        fingerprint: SHA256 of the corpus snapshot
    """
    postings: Mapping[str, Mapping[str, float]]
    doc_lengths: Mapping[str, float]
    field_tokens: Mapping[str, Mapping[str, FrozenSet[str]]]
    documents: Mapping[str, Document]
    doc_order: Tuple[str, ...]
    total_docs: int
    avgdl: float
    fingerprint: str

    def document_frequency(self, term: str) -> int:
        """n(t): number of documents containing term"""
        return len(self.postings.get(term, ()))

    def __len__(self) -> int:
        return self.total_docs


def build_index(
    corpus: Sequence[Document],
    field_weights: Optional[Mapping[str, float]] = None,
) -> BM25Index:
    """
    Build a BM25 index from a corpus snapshot.

    Each scored field (title, description, tags, content) is tokenized
    separately. A token adds its field weight to the term frequency and to
    the document length, so weight 2.0 behaves like repeating the field.

    Args:
        corpus: Ordered documents (ids must be unique)
        field_weights: field name -> weight (default 1.0 for each field)

    Returns:
        Immutable BM25Index

    Raises:
        DuplicateDocumentError: If two documents share an id

    Example:
        >>> index = build_index([doc_a, doc_b])
        >>> index.postings["pod"]
        {'doc-a': 2.0}
    """
    weights = dict(DEFAULT_FIELD_WEIGHTS)
    if field_weights:
        unknown = set(field_weights) - set(SCORED_FIELDS)
        if unknown:
            raise ValueError(f"Unknown scored fields: {sorted(unknown)}")
        weights.update(field_weights)

    postings: Dict[str, Dict[str, float]] = defaultdict(dict)
    doc_lengths: Dict[str, float] = {}
    field_tokens: Dict[str, Mapping[str, FrozenSet[str]]] = {}
    documents: Dict[str, Document] = {}
    total_length = 0.0

    for doc in corpus:
        if doc.id in documents:
            raise DuplicateDocumentError(doc.id)
        documents[doc.id] = doc

        per_field = {name: tokenize(doc.field_text(name)) for name in HIGHLIGHT_FIELDS}

        doc_length = 0.0
        for name in SCORED_FIELDS:
            weight = weights[name]
            for term in per_field[name]:
                term_postings = postings[term]
                term_postings[doc.id] = term_postings.get(doc.id, 0.0) + weight
            doc_length += weight * len(per_field[name])

        doc_lengths[doc.id] = doc_length
        total_length += doc_length
        field_tokens[doc.id] = MappingProxyType(
            {name: frozenset(tokens) for name, tokens in per_field.items()}
        )

    total_docs = len(documents)
    avgdl = total_length / total_docs if total_docs else 0.0

    index = BM25Index(
        postings=MappingProxyType({term: MappingProxyType(p) for term, p in postings.items()}),
        doc_lengths=MappingProxyType(doc_lengths),
        field_tokens=MappingProxyType(field_tokens),
        documents=MappingProxyType(documents),
        doc_order=tuple(documents),
        total_docs=total_docs,
        avgdl=avgdl,
        fingerprint=corpus_fingerprint(list(documents.values())),
    )

    logger.debug(
        f"Built BM25 index: {len(index.postings)} unique terms from {total_docs} documents "
        f"(avgdl={avgdl:.1f})"
    )
    return index
