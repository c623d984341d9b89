"""resolver.py
Resolution of compact references against a populated corpus.

Resolution order, first match wins:

1. references listed in the ignored table are skipped;
2. a DOI carried by the reference is looked up exactly;
3. a manual correction from the error fixes table is applied (a corrected
   DOI or bibtex key is looked up exactly);
4. the reference is parsed into a provisional article which is compared
   with every corpus article using :meth:`Article.is_compatible`.

No match raises :class:`UnresolvedReferenceError` in strict mode, otherwise
a placeholder article with a synthetic key is added and reported in
:attr:`CitationResolver.missing`. Several matches always raise
:class:`AmbiguousReferenceError`.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Mapping, Sequence

from tqdm import tqdm

from src.biblio.articles import Article
from src.biblio.authors import Author
from src.biblio.corpus import Corpus
from src.biblio.entities import MissingReference, SourceType
from src.biblio.errors import AmbiguousReferenceError, MalformedRecordError, UnresolvedReferenceError
from src.resolution.citations import CompactCitation, parse_citation, parse_compact_author
from src.resolution.tables import ResolverTables

logger = logging.getLogger(__name__)

SYNTHETIC_PREFIX = "SYNTH_"


def synthetic_key(article: Article, corpus: Corpus | None = None) -> str:
    """Stable bibtex key for an article known only through citations.

    The key hashes the compact citation together with the normalized source
    and title. When *corpus* already holds an incompatible article under that
    key, a ``_2``, ``_3``... suffix is appended until the key is free or
    names a compatible article.
    """
    base = "|".join([article.cite_as.lower(), article.norm_source_name or "", article.norm_title or ""])
    key = f"{SYNTHETIC_PREFIX}{hashlib.md5(base.encode()).hexdigest()[:12]}"
    if corpus is None:
        return key
    candidate, suffix = key, 1
    existing = corpus.get_article(candidate)
    while existing is not None and not article.is_compatible(existing):
        suffix += 1
        candidate = f"{key}_{suffix}"
        existing = corpus.get_article(candidate)
    return candidate


def _looks_like_doi(identifier: str) -> bool:
    return identifier.startswith("10.") and "/" in identifier


class CitationResolver:
    """Map compact references to corpus articles and link them."""

    def __init__(
        self,
        corpus: Corpus,
        tables: ResolverTables | None = None,
        strict: bool = False,
    ) -> None:
        """
        Args:
            corpus: Corpus holding the fully described articles.
            tables: Short names, error fixes, ignored and additional references.
            strict: Raise on unresolved references instead of creating
                placeholder articles.
        """
        self.corpus = corpus
        self.tables = tables or ResolverTables()
        self.strict = strict
        self.missing: list[MissingReference] = []
        self.ignored: list[str] = []

    # ------------------------------------------------------------ resolution

    def resolve(self, citation: str, citing_key: str | None = None) -> Article | None:
        """Return the corpus article denoted by *citation*.

        Returns:
            The matching article, or None if the reference is ignored.

        Raises:
            UnresolvedReferenceError: No match in strict mode.
            AmbiguousReferenceError: More than one compatible article.
        """
        citation = citation.strip()
        if self.tables.is_ignored(citation):
            logger.debug("Ignoring reference '%s'", citation)
            self.ignored.append(citation)
            return None

        parsed = parse_citation(citation)
        if parsed.doi:
            article = self.corpus.get_article_by_doi(parsed.doi)
            if article is not None:
                return article

        fixes = self.tables.fixes_for(citation)
        if "BK" in fixes:
            article = self.corpus.get_article(fixes["BK"])
            if article is None:
                raise UnresolvedReferenceError(
                    citation, f"Correction of '{citation}' points to unknown bibtex key '{fixes['BK']}'"
                )
            return article
        if fixes.get("DI"):
            article = self.corpus.get_article_by_doi(fixes["DI"])
            if article is not None:
                return article

        provisional = self.build_provisional(parsed, fixes)
        candidates = sorted(a for a in self.corpus if provisional.is_compatible(a))
        if len(candidates) == 1:
            return candidates[0]
        if len(candidates) > 1:
            raise AmbiguousReferenceError(citation, [a.bibtex_key for a in candidates])

        if self.strict:
            raise UnresolvedReferenceError(citation)
        return self._add_placeholder(citation, provisional, citing_key)

    def resolve_and_link(self, citing: Article, citation: str) -> Article | None:
        """Resolve *citation* and record that *citing* cites the result."""
        cited = self.resolve(citation, citing.bibtex_key)
        if cited is None:
            return None
        if cited.bibtex_key == citing.bibtex_key:
            logger.warning("Article %s resolved one of its own references to itself: '%s'", citing.bibtex_key, citation)
            return cited
        self.corpus.add_citation(citing.bibtex_key, cited.bibtex_key)
        return cited

    def resolve_all(self, references: Mapping[str, Sequence[str]]) -> int:
        """Resolve the reference list of every citing article (by bibtex key).

        Returns:
            Number of new citation links.
        """
        links = 0
        for citing_key, citations in tqdm(references.items(), desc="Resolving references", unit="article"):
            citing = self.corpus.get_article(citing_key)
            for citation in citations:
                cited = self.resolve_and_link(citing, citation)
                if cited is not None and cited.bibtex_key != citing_key:
                    links += 1
        logger.info(
            "Resolved references: %d links, %d ignored, %d placeholders",
            links,
            len(self.ignored),
            len(self.missing),
        )
        return links

    def apply_additional_refs(self) -> int:
        """Link the manually listed ``(citing, cited)`` pairs.

        Each side is a DOI or a bibtex key; an unknown one raises
        :class:`UnresolvedReferenceError`.
        """
        count = 0
        for citing_id, cited_id in self.tables.additional_refs:
            citing = self._lookup_identifier(citing_id)
            cited = self._lookup_identifier(cited_id)
            if self.corpus.add_citation(citing.bibtex_key, cited.bibtex_key):
                count += 1
        logger.info("Added %d manually completed references", count)
        return count

    # --------------------------------------------------------------- helpers

    def build_provisional(self, parsed: CompactCitation, fixes: Mapping[str, str] | None = None) -> Article:
        """Build an unregistered article from a parsed reference and its corrections."""
        fixes = fixes or {}
        article = Article()

        author = parse_compact_author(fixes.get("AU", parsed.author))
        if author is not None:
            article.add_author(self._recover_author(author))

        if "TI" in fixes:
            article.set_title(fixes["TI"])
        article.year = fixes.get("PY", parsed.year)
        article.volume = fixes.get("VL", parsed.volume)
        article.issue = fixes.get("IS")
        article.page = fixes.get("AR", parsed.page)
        article.doi = fixes.get("DI", parsed.doi)

        source_type = parsed.source_type
        if "JT" in fixes:
            try:
                source_type = SourceType.from_name(fixes["JT"])
            except KeyError as exc:
                raise MalformedRecordError(f"Unknown source type '{fixes['JT']}' in correction of '{parsed.raw}'") from exc
        source_name = fixes.get("SO") or self.tables.short_names.get(parsed.source)
        if source_name is None and parsed.source is not None:
            logger.debug("Unknown short source name '%s' in '%s'", parsed.source, parsed.raw)
        if source_name:
            article.set_source(source_type, source_name)
        else:
            article.source_type = source_type
        return article

    def _recover_author(self, author: Author) -> Author:
        """Return the registered author matching *author*, if any.

        Citation indexes often glue multi-word last names together
        (``VANDERBERG J``), so a registered author whose key is equal once
        spaces are removed is accepted when it is the only one.
        """
        registered = self.corpus.get_author(author.canonical_key)
        if registered is not None:
            return registered
        compact = author.canonical_key.replace(" ", "")
        matches = [a for a in self.corpus.authors if a.canonical_key.replace(" ", "") == compact]
        if len(matches) == 1:
            return matches[0]
        return author

    def _add_placeholder(self, citation: str, article: Article, citing_key: str | None) -> Article:
        key = synthetic_key(article, self.corpus)
        existing = self.corpus.get_article(key)
        if existing is not None:
            logger.debug("Reusing placeholder %s for '%s'", key, citation)
            return existing
        article.bibtex_key = key
        article.authors = [self.corpus.retrieve_author(author) for author in article.authors]
        self.corpus.add_article(article)
        self.missing.append({"citation": citation, "bibtex_key": key, "citing_key": citing_key})
        logger.debug("Created placeholder %s for '%s'", key, citation)
        return article

    def _lookup_identifier(self, identifier: str) -> Article:
        if _looks_like_doi(identifier):
            article = self.corpus.get_article_by_doi(identifier)
        else:
            article = self.corpus.get_article(identifier)
        if article is None:
            raise UnresolvedReferenceError(identifier, f"Unknown DOI or bibtex key '{identifier}'")
        return article
