"""articles.py
The publication record shared by both sources.

An :class:`Article` is created once per distinct publication, then only
enriched through :meth:`src.biblio.corpus.Corpus.complete_article`. Its
identity is the bibtex key; :attr:`Article.cite_as` is only meant for
display and logs.

Citation links are stored as two sets of bibtex keys (``cited_keys`` and
``citing_keys``) and are only ever created through
:meth:`src.biblio.corpus.Corpus.add_citation`, which keeps both ends in sync.
"""

from __future__ import annotations

import re
from functools import total_ordering
from typing import Iterable, Optional

from src.biblio.authors import Author
from src.biblio.entities import SourceType
from src.common.text import clean, comparison_key, normalize

# Descriptive fields merged one by one by complete_with and written back
# to BibTeX as they were read.
DESCRIPTIVE_FIELDS: tuple[str, ...] = (
    "abstract",
    "address",
    "booktitle",
    "chapter",
    "edition",
    "editor",
    "file",
    "groups",
    "howpublished",
    "institution",
    "journal",
    "month",
    "organization",
    "owner",
    "publisher",
    "review",
    "school",
    "series",
    "sortkey",
    "timestamp",
    "type",
    "url",
)

BIBLIOGRAPHIC_FIELDS: tuple[str, ...] = ("volume", "issue", "page", "year", "doi")

_SOURCE_ACRONYMS = ("ieee", "wic", "acm", "siam")
_NON_ALNUM = re.compile(r"[^a-z0-9]")


def normalize_source_name(source_name: str | None) -> str | None:
    """Reduce a journal or conference name to a comparison key.

    ``"IEEE International Conference on Data Mining (ICDM 2010)"`` and
    ``"International Conference on Data Mining"`` both give
    ``"internationalconferenceondatamining"``.
    """
    result = normalize(source_name)
    if not result:
        return None
    # ending parenthesis, typically "(ICDM'10)"
    pos = result.find("(")
    if pos != -1:
        result = result[:pos]
    result = result.strip().rstrip("0123456789").strip()
    # leading edition number, "10th international..."
    if result[:1].isdigit():
        _, _, rest = result.partition(" ")
        if rest:
            result = rest
    for acronym in _SOURCE_ACRONYMS:
        if result.startswith(acronym + " "):
            result = result[len(acronym) + 1:]
    result = _NON_ALNUM.sub("", result)
    return result or None


def first_page(page: str | None) -> str | None:
    """``"66-70"`` -> ``"66"``; ``"66--70"`` -> ``"66"``."""
    if page is None:
        return None
    return page.split("-")[0].strip()


@total_ordering
class Article:
    """A publication, possibly described only partially."""

    def __init__(self, bibtex_key: str | None = None) -> None:
        self.bibtex_key = bibtex_key

        self.authors: list[Author] = []
        self.title: Optional[str] = None
        self.norm_title: Optional[str] = None
        self.source_type: Optional[SourceType] = None
        self.source_name: Optional[str] = None
        self.norm_source_name: Optional[str] = None

        self.volume: Optional[str] = None
        self.issue: Optional[str] = None
        self.page: Optional[str] = None
        self.year: Optional[str] = None
        self.doi: Optional[str] = None

        for name in DESCRIPTIVE_FIELDS:
            setattr(self, name, None)

        self.cited_keys: set[str] = set()
        self.citing_keys: set[str] = set()

        self.times_cited = 0
        self.ignored = False
        self.present = False
        self.core = False

    # ------------------------------------------------------------------ fields

    def add_author(self, author: Author) -> None:
        if author not in self.authors:
            self.authors.append(author)

    def add_authors(self, authors: Iterable[Author]) -> None:
        for author in authors:
            self.add_author(author)

    def set_title(self, title: str | None) -> None:
        # stored as read; dashes are only unified in the comparison key
        self.title = title
        self.norm_title = comparison_key(title)

    def set_source(self, source_type: SourceType, source_name: str) -> None:
        """Set the venue and mirror it into the field of that venue kind."""
        source_name = clean(source_name).strip()
        self.source_type = source_type
        self.source_name = source_name
        setattr(self, source_type.mirror_field, source_name)
        self.norm_source_name = normalize_source_name(source_name)

    @property
    def first_page(self) -> str | None:
        return first_page(self.page)

    @property
    def first_author(self) -> Author | None:
        return self.authors[0] if self.authors else None

    # ------------------------------------------------------------ comparison

    def is_compatible(self, other: "Article") -> bool:
        """Tell whether *other* may describe the same publication.

        Only fields set on both sides are compared, so a record with little
        information is compatible with many. The author rule depends on the
        list lengths of both records, which makes the test asymmetric in
        some cases (see DESIGN.md).
        """
        # authors
        if not self.authors or not other.authors:
            return False
        if len(self.authors) > 1 and len(other.authors) > 1:
            for mine, theirs in zip(self.authors, other.authors):
                if mine != theirs:
                    return False
        elif self.authors[0] != other.authors[0]:
            return False

        if not _agree(self.norm_title, other.norm_title):
            return False
        if not _agree(self.norm_source_name, other.norm_source_name):
            return False
        if not _agree(self.volume, other.volume):
            return False
        if not _agree(self.issue, other.issue):
            return False
        if not _agree(self.first_page, other.first_page):
            return False
        return _agree(self.year, other.year)

    def complete_with(self, other: "Article") -> None:
        """Fill every absent field with the value of *other*.

        Present values are never overwritten and authors are unioned.
        Citation links are left alone: they have two ends, so
        :meth:`src.biblio.corpus.Corpus.complete_article` unions them.
        """
        self.add_authors(other.authors)

        if self.title is None and other.title is not None:
            self.title = other.title
            self.norm_title = other.norm_title

        if self.source_name is None and other.source_name is not None:
            self.source_type = other.source_type
            self.source_name = other.source_name
            self.norm_source_name = other.norm_source_name

        for name in BIBLIOGRAPHIC_FIELDS + DESCRIPTIVE_FIELDS:
            if getattr(self, name) is None:
                value = getattr(other, name)
                if value is not None:
                    setattr(self, name, value)

    # --------------------------------------------------------------- strings

    @property
    def cite_as(self) -> str:
        """Compact citation, ``"newman mej, 2003, V45, P167, DOI 10.1137/x"``."""
        result = self.first_author.canonical_key if self.authors else ""
        result += f", {self.year}"
        if self.volume is not None:
            result += f", V{self.volume}"
        if self.page is not None:
            result += f", P{self.first_page}"
        if self.doi is not None:
            result += f", DOI {self.doi}"
        return result

    def __str__(self) -> str:
        result = f"[{self.bibtex_key}] " if self.bibtex_key else ""
        result += f"{self.title}. "
        if self.authors:
            result += self.authors[0].fullname
        result += ". "
        kind = self.source_type.name if self.source_type else None
        result += f"{kind}:{self.source_name} "
        if self.volume is not None:
            result += self.volume
        if self.issue is not None:
            result += f"({self.issue})"
        if self.page is not None:
            result += f":{self.page}"
        if self.year is not None:
            result += f", {self.year}"
        result += "."
        if self.doi is not None:
            result += f" DOI: {self.doi}"
        return result

    def __repr__(self) -> str:
        return f"Article({self.bibtex_key!r})"

    # -------------------------------------------------------------- identity

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Article):
            return NotImplemented
        return self.bibtex_key == other.bibtex_key

    def __lt__(self, other: "Article") -> bool:
        return (self.bibtex_key or "") < (other.bibtex_key or "")

    def __hash__(self) -> int:
        return hash(self.bibtex_key)


def _agree(first: str | None, second: str | None) -> bool:
    """Null-permissive equality: an unknown value never disagrees."""
    if first is None or second is None:
        return True
    return first == second
