"""Error types raised by promptsearch."""


class PromptSearchError(Exception):
    """Base class for all promptsearch errors"""


class InvalidLimitError(PromptSearchError, ValueError):
    """Result limit is not a positive, finite whole number"""

    def __init__(self, limit):
        self.limit = limit
        super().__init__(f"Invalid limit {limit!r}: provide a positive whole number")


class DuplicateDocumentError(PromptSearchError, ValueError):
    """Corpus snapshot contains the same document id twice"""

    def __init__(self, doc_id: str):
        self.doc_id = doc_id
        super().__init__(f"Duplicate document id in corpus: {doc_id!r}")


class UnknownBackendError(PromptSearchError, ValueError):
    """Requested rerank backend tag is not registered"""

    def __init__(self, backend: str, valid):
        self.backend = backend
        super().__init__(
            f"Unknown rerank backend: {backend}. "
            f"Valid options: {', '.join(valid)}"
        )
