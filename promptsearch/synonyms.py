"""
Synonym expansion for search queries.

Each query token is looked up in a small, hand-curated table; related terms
are appended after the original tokens. Repetition is kept:
a synonym that is also in the query raises its effective query frequency.

Keep the table high-precision. Every extra term adds IDF-weighted score,
so loose synonyms pull in unrelated prompts.

Example:
    ["fix", "bug"] -> ["fix", "bug", "debug", "repair", "resolve", "defect", "error", "issue"]
"""

from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .bm25.tokenizer import tokenize

DEFAULT_SYNONYMS: Dict[str, Tuple[str, ...]] = {
    # Debugging
    "bug": ("defect", "error", "issue"),
    "fix": ("debug", "repair", "resolve"),
    "error": ("bug", "exception", "failure"),
    "debug": ("troubleshoot", "diagnose"),
    "crash": ("failure", "error"),
    # Testing
    "test": ("testing", "tests", "spec"),
    "tests": ("test", "testing"),
    "qa": ("testing", "quality"),
    # Documentation
    "docs": ("documentation", "readme"),
    "doc": ("documentation", "docs"),
    "readme": ("documentation", "docs"),
    # Refactoring
    "refactor": ("refactoring", "restructure", "cleanup"),
    "cleanup": ("refactor", "simplify"),
    # Performance
    "performance": ("speed", "optimize", "latency"),
    "fast": ("speed", "performance"),
    "slow": ("performance", "latency"),
    "optimize": ("performance", "optimization"),
    # Ideation
    "idea": ("ideas", "brainstorm", "ideation"),
    "brainstorm": ("ideas", "ideation"),
    # Automation / workflow
    "automate": ("automation", "script"),
    "ci": ("pipeline", "automation"),
    "workflow": ("process", "pipeline"),
    # Communication
    "explain": ("describe", "clarify"),
    "summary": ("summarize", "overview"),
    "review": ("critique", "feedback"),
}


def _normalize_table(table: Mapping[str, Iterable[str]]) -> Dict[str, Tuple[str, ...]]:
    """
    Run keys and values through the tokenizer.

    Multi-word values ("unit test") become several tokens; keys that do not
    normalize to exactly one token can never match a query token and are dropped.
    A term never expands to itself.
    """
    normalized: Dict[str, Tuple[str, ...]] = {}
    for key, related in table.items():
        key_tokens = tokenize(key)
        if len(key_tokens) != 1:
            continue
        term = key_tokens[0]
        expansions = list(normalized.get(term, ()))
        for value in related:
            for token in tokenize(value):
                if token != term and token not in expansions:
                    expansions.append(token)
        normalized[term] = tuple(expansions)
    return normalized


class SynonymExpander:
    """Query expander over an injectable synonym table."""

    def __init__(self, table: Optional[Mapping[str, Iterable[str]]] = None):
        """
        Args:
            table: term -> related terms. Defaults to DEFAULT_SYNONYMS.
        """
        self.table = _normalize_table(DEFAULT_SYNONYMS if table is None else table)

    def expand(self, tokens: Sequence[str]) -> List[str]:
        """
        Return original tokens followed by the synonyms of each token.

        Args:
            tokens: Normalized query tokens

        Returns:
            Expanded token list (duplicates kept)
        """
        expanded = list(tokens)
        for token in tokens:
            expanded.extend(self.table.get(token, ()))
        return expanded

    def __contains__(self, term: str) -> bool:
        return term in self.table


_default_expander: Optional[SynonymExpander] = None


def expand_query(tokens: Sequence[str], synonyms: Optional[Mapping[str, Iterable[str]]] = None) -> List[str]:
    """
    Expand query tokens with synonyms.

    Args:
        tokens: Normalized query tokens
        synonyms: Optional table overriding DEFAULT_SYNONYMS for this call

    Returns:
        Original tokens followed by synonym tokens

    Example:
        >>> expand_query(["bug"])
        ['bug', 'defect', 'error', 'issue']
    """
    global _default_expander
    if synonyms is not None:
        return SynonymExpander(synonyms).expand(tokens)
    if _default_expander is None:
        _default_expander = SynonymExpander()
    return _default_expander.expand(tokens)
