"""
Tokenizer for BM25 text processing.

Tokenization pipeline:
1. Lowercase conversion
2. Every character outside [a-z0-9] is a separator
3. Runs of separators collapse into one split point
4. Empty tokens are dropped

No stopword removal: common words still carry (low) IDF weight.
No stemming: "deploy" and "deployment" are different terms; the synonym
table bridges the important cases.

The same function runs at index-build time and query time.
"""

import re
from typing import List, Optional

_TOKEN_PATTERN = re.compile(r'[a-z0-9]+')


def tokenize(text: Optional[str]) -> List[str]:
    """
    Tokenize text into normalized terms, preserving order and duplicates.

    Args:
        text: Input text (None is treated as empty)

    Returns:
        List of lowercase alphanumeric tokens

    Examples:
        >>> tokenize("Kubernetes-based deployment strategies!")
        ['kubernetes', 'based', 'deployment', 'strategies']

        >>> tokenize("BM25 scores: 0.95, 0.95")
        ['bm25', 'scores', '0', '95', '0', '95']

        >>> tokenize("   ")
        []
    """
    if not text:
        return []

    # Non-ASCII letters are separators too: "café" -> ['caf']
    return _TOKEN_PATTERN.findall(text.lower())
