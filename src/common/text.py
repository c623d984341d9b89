"""text.py
String helpers shared by the BibTeX side and the citation-index side.

Two transforms are kept strictly apart:

* :func:`normalize` builds comparison keys (titles, names, sources).
* :func:`clean` only unifies dashes and is applied to source names taken
  from either side. Titles and plain BibTeX fields are stored as read.
"""

from __future__ import annotations

import codecs
import re
import unicodedata

import latexcodec  # noqa: F401  (registers the "ulatex" codec)

_LATEX_PATTERN = re.compile(r"[{}]")
_MATH_PATTERN = re.compile(r"(\\\[.*?\\\]|\\\(.*?\\\)|\$\$.*?\$\$|\$.*?\$)", re.DOTALL)

# letters with no canonical decomposition
_NO_DECOMPOSITION = str.maketrans({"ø": "o", "ł": "l"})


def _unify_dashes(text: str) -> str:
    return "".join("-" if unicodedata.category(ch) == "Pd" else ch for ch in text)


def normalize(text: str | None) -> str | None:
    """Return the comparison form of *text*.

    Lowercases, strips diacritics, maps every dash variant to ``-`` and
    trims. ``None`` is passed through.
    """
    if text is None:
        return None
    result = text.lower()
    result = unicodedata.normalize("NFD", result)
    result = "".join(ch for ch in result if unicodedata.category(ch) != "Mn")
    result = result.translate(_NO_DECOMPOSITION)
    result = _unify_dashes(result)
    return result.strip()


def clean(text: str | None) -> str | None:
    """Replace dash variants by plain hyphens, leave everything else."""
    if text is None:
        return None
    return _unify_dashes(text)


def latex_to_unicode(text: str | None) -> str | None:
    """Convert LaTeX escape sequences to plain Unicode.

    Args:
        text: A string that may contain LaTeX escapes or None.

    Returns:
        The decoded Unicode string, or None if *text* is None.
    """
    if text is None:
        return None
    # drop inline / display math
    text = _MATH_PATTERN.sub("", text)

    try:
        return codecs.decode(text, "ulatex")
    except Exception:
        return _LATEX_PATTERN.sub("", text)


def strip_braces(text: str | None) -> str | None:
    if text is None:
        return None
    return _LATEX_PATTERN.sub("", text)


def comparison_key(text: str | None) -> str | None:
    """Normalize a possibly LaTeX-encoded BibTeX value."""
    return normalize(strip_braces(latex_to_unicode(text)))
