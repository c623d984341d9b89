"""citations.py
Parsing of the compact references found in citation-index exports, e.g.

    Newman MEJ, 2003, SIAM REV, V45, P167, DOI 10.1137/S003614450342480

Only this positional format is handled: first author, year, abbreviated
source, then optional volume (``V``), first page (``P``) and DOI tokens.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from src.biblio.authors import Author, initials_from_compact, initials_from_names
from src.biblio.entities import SourceType

_YEAR = re.compile(r"\d{4}")
_VOLUME = re.compile(r"V(\S+)")
_PAGE = re.compile(r"P(\S+)")


@dataclass
class CompactCitation:
    """Fields found in one compact reference."""

    raw: str
    author: Optional[str] = None
    year: Optional[str] = None
    source: Optional[str] = None
    volume: Optional[str] = None
    page: Optional[str] = None
    doi: Optional[str] = None

    @property
    def source_type(self) -> SourceType:
        """A volume means a journal, a page alone a conference, nothing a book."""
        if self.volume is not None:
            return SourceType.JOURNAL
        if self.page is not None:
            return SourceType.IN_PROCEEDINGS
        return SourceType.BOOK


def _clean_doi(text: str) -> str:
    # several DOIs are sometimes listed as "[10.1/a, 10.1/b]"
    text = text.strip().strip("[]")
    return text.split(",")[0].strip()


def parse_citation(text: str) -> CompactCitation:
    """Split a compact reference into its positional fields."""
    result = CompactCitation(raw=text)
    tokens = [token.strip() for token in text.split(",")]

    # the DOI may itself contain commas: everything after "DOI " belongs to it
    for i, token in enumerate(tokens):
        if token.upper().startswith("DOI "):
            result.doi = _clean_doi(", ".join(tokens[i:])[4:])
            tokens = tokens[:i]
            break

    if tokens and tokens[0]:
        result.author = tokens[0]
    rest = tokens[1:]
    if rest and _YEAR.fullmatch(rest[0]):
        result.year = rest.pop(0)
    if rest:
        result.source = rest.pop(0) or None
    for token in rest:
        if result.volume is None and (match := _VOLUME.fullmatch(token)):
            result.volume = match.group(1)
        elif result.page is None and (match := _PAGE.fullmatch(token)):
            result.page = match.group(1)
    return result


def parse_compact_author(text: str | None) -> Author | None:
    """Recover ``Lastname Initials`` from the first token of a compact reference.

    The last word holds the initials (``MEJ``, ``J-P``) or a given name
    (``Mark``); the words before it form the last name. Anonymous markers
    (``*``, ``[Anonymous]``) are stripped.
    """
    if text is None:
        return None
    text = text.strip().lstrip("*").strip().strip("[]").strip()
    if not text:
        return None

    if "," in text:
        lastname, _, firstnames = text.partition(",")
        tokens = [lastname.strip(), firstnames.strip()] if firstnames.strip() else [lastname.strip()]
        lastname_tokens = tokens[:1]
    else:
        tokens = text.split()
        if len(tokens) == 1 and "." in tokens[0]:
            tokens = [token for token in tokens[0].split(".") if token]
        lastname_tokens = tokens[:-1]

    if len(tokens) == 1:
        return Author(tokens[0])
    initials = tokens[-1]
    letters = initials.replace("-", "").replace(".", "").replace(" ", "")
    if letters.isupper() and len(letters) <= 3:
        initials = initials_from_compact(initials)
    else:
        initials = initials_from_names(initials)
    return Author(" ".join(lastname_tokens), initials)
