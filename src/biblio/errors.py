"""errors.py
Exception hierarchy of the reconciliation pipeline.

Every failure is fatal for the run: the operator fixes the input or the
auxiliary override files and starts again.
"""

from __future__ import annotations

from typing import Sequence


class BiblioError(Exception):
    """Root of all errors raised while reconciling bibliographic records."""


class MalformedRecordError(BiblioError, ValueError):
    """Raised for unknown fields, missing required fields or unparsable values."""


class IdentityConflictError(BiblioError):
    """Raised when two different things claim the same identity."""


class DuplicateKeyError(IdentityConflictError):
    """Raised when a bibtex key is inserted twice in the same corpus."""

    def __init__(self, key: str, message: str | None = None) -> None:
        self.key = key
        super().__init__(message or f"The corpus already contains the bibtex key '{key}'")


class UnresolvedReferenceError(BiblioError, LookupError):
    """Raised when a citation matches no article of the corpus."""

    def __init__(self, citation: str, message: str | None = None) -> None:
        self.citation = citation
        super().__init__(message or f"Could not resolve reference '{citation}'")


class AmbiguousReferenceError(BiblioError, LookupError):
    """Raised when a citation is compatible with several corpus articles."""

    def __init__(self, citation: str, candidates: Sequence[str]) -> None:
        self.citation = citation
        self.candidates = list(candidates)
        super().__init__(
            f"Reference '{citation}' matches {len(self.candidates)} articles: "
            + ", ".join(self.candidates)
        )
