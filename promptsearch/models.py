"""
Data model for prompt search.

Documents are supplied by the caller as an immutable corpus snapshot.
The index never mutates a document; results wrap the original instance.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union


class PromptCategory(str, Enum):
    """Closed set of prompt categories"""
    IDEATION = "ideation"
    DOCUMENTATION = "documentation"
    AUTOMATION = "automation"
    REFACTORING = "refactoring"
    TESTING = "testing"
    DEBUGGING = "debugging"
    WORKFLOW = "workflow"
    COMMUNICATION = "communication"


# Fields checked for match highlighting, in discovery order
HIGHLIGHT_FIELDS = ("id", "title", "description", "tags", "content")

# Fields that contribute to BM25 term frequencies
SCORED_FIELDS = ("title", "description", "tags", "content")


def as_tags(value) -> Tuple[str, ...]:
    """Normalize a tag collection; a bare string is one tag, not its characters."""
    if not value:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(value)


@dataclass(frozen=True)
class Document:
    """Single searchable prompt"""
    id: str
    title: str
    description: str
    content: str
    category: PromptCategory
    tags: Tuple[str, ...] = ()

    def __post_init__(self):
        # Accept plain strings and lists from registries
        object.__setattr__(self, "category", PromptCategory(self.category))
        object.__setattr__(self, "tags", as_tags(self.tags))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Document":
        """
        Build a Document from a registry record.

        Unknown keys (author, version, changelog, ...) are ignored.

        Raises:
            ValueError: If category is not a known PromptCategory
            KeyError: If a required field is missing
        """
        return cls(
            id=data["id"],
            title=data["title"],
            description=data.get("description", ""),
            content=data.get("content", ""),
            category=data["category"],
            tags=as_tags(data.get("tags")),
        )

    def field_text(self, name: str) -> str:
        """Raw text of a highlight/scored field (tags joined by spaces)."""
        if name == "tags":
            return " ".join(self.tags)
        return getattr(self, name)

    def search_text(self) -> str:
        """Concatenated text used for the semantic pass."""
        return " ".join(self.field_text(name) for name in SCORED_FIELDS)


@dataclass
class RankedResult:
    """Candidate passed through the semantic reranker"""
    id: str
    score: float
    text: str


@dataclass
class SearchResult:
    """Ranked document returned to callers"""
    document: Document
    score: float
    matched_fields: List[str] = field(default_factory=list)


@dataclass
class SearchOptions:
    """
    Per-call search options.

    None means "use the engine's configured default". A single tag may be
    passed as a plain string.
    """
    limit: Optional[int] = None
    category: Optional[str] = None
    tags: Union[str, Sequence[str], None] = None
    expand_synonyms: bool = True
    rerank: Optional[bool] = None
