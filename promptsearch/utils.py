"""Utility functions for prompt search"""

import hashlib
from typing import Sequence

from .models import Document


def corpus_fingerprint(documents: Sequence[Document]) -> str:
    """
    Calculate SHA256 fingerprint of a corpus snapshot.

    Covers every indexed field in corpus order, so two snapshots with the
    same fingerprint produce identical scoring.

    Args:
        documents: Ordered corpus snapshot

    Returns:
        Hexadecimal hash string (64 characters)

    Examples:
        >>> corpus_fingerprint([])
        'e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855'
    """
    digest = hashlib.sha256()
    for doc in documents:
        for value in (doc.id, doc.title, doc.description, doc.content, doc.category.value, *doc.tags):
            digest.update(value.encode("utf-8"))
            digest.update(b"\x00")
        digest.update(b"\x01")
    return digest.hexdigest()
