"""authors.py
Author identity.

An author is identified by its canonical key, a normalized
``"lastname initials"`` string. Instances are deduplicated by
:meth:`src.biblio.corpus.Corpus.retrieve_author`, so that every article
citing the same person shares one object.
"""

from __future__ import annotations

import re
from functools import total_ordering

from pybtex.database import Person

from src.biblio.errors import MalformedRecordError
from src.common.text import clean, latex_to_unicode, normalize, strip_braces


def initials_from_names(text: str) -> str:
    """Turn first names into initials.

    Each space- or hyphen-separated word is replaced by its uppercase
    initial followed by a dot, hyphens are kept: ``"Jean-Pierre Marc"`` gives
    ``"J.-P. M."`` and ``"J. K."`` is left as is.
    """
    words = []
    for word in text.split():
        parts = [part[0].upper() + "." for part in word.split("-") if part]
        if parts:
            words.append("-".join(parts))
    return " ".join(words)


def initials_from_compact(token: str) -> str:
    """Expand citation-index initials: ``"MEJ"`` -> ``"M. E. J."``, ``"J-P"`` -> ``"J.-P."``."""
    groups = []
    for group in token.replace(".", "").split("-"):
        letters = [ch.upper() + "." for ch in group if ch.isalpha()]
        if letters:
            groups.append(letters)
    # the letters around a hyphen belong to one composite first name
    result = ""
    for i, letters in enumerate(groups):
        if i > 0:
            result += "-"
        result += " ".join(letters)
    return result


@total_ordering
class Author:
    """A person, reduced to a last name and first-name initials."""

    def __init__(self, lastname: str, firstname_initials: str | None = None) -> None:
        self.lastname = clean(lastname.strip())
        self.firstname_initials = (firstname_initials or "").strip()
        self.canonical_key = self._build_key()

    def _build_key(self) -> str:
        initials = self.firstname_initials
        for char in (" ", ".", "-"):
            initials = initials.replace(char, "")
        name = self.lastname.replace("-", " ")
        key = normalize(strip_braces(f"{name} {initials}"))
        return re.sub(r"\s+", " ", key)

    @classmethod
    def from_fullname(cls, fullname: str) -> "Author":
        """Build an author from ``"Lastname, Firstname1 Firstname2"``."""
        fullname = clean(fullname)
        lastname, sep, firstnames = fullname.partition(", ")
        if not sep or not firstnames.strip():
            raise MalformedRecordError(f'Could not find the firstname in fullname "{fullname}"')
        return cls(lastname, initials_from_names(firstnames))

    @classmethod
    def from_person(cls, person: Person) -> "Author":
        """Build an author from a name parsed by pybtex."""
        lastname = " ".join(person.prelast_names + person.last_names)
        firstnames = " ".join(person.first_names + person.middle_names)
        lastname = strip_braces(latex_to_unicode(lastname))
        firstnames = strip_braces(latex_to_unicode(firstnames))
        if not firstnames.strip():
            raise MalformedRecordError(f'Could not find the firstname of author "{person}"')
        return cls(lastname, initials_from_names(firstnames))

    @property
    def fullname(self) -> str:
        """``"Lastname, F. M."``"""
        if self.firstname_initials:
            return f"{self.lastname}, {self.firstname_initials}"
        return self.lastname

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Author):
            return NotImplemented
        return self.canonical_key == other.canonical_key

    def __lt__(self, other: "Author") -> bool:
        return self.canonical_key < other.canonical_key

    def __hash__(self) -> int:
        return hash(self.canonical_key)

    def __repr__(self) -> str:
        return f"Author({self.fullname!r})"

    def __str__(self) -> str:
        return self.fullname
