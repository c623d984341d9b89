"""corpus.py
Identity-mapped collection of articles and authors.

The corpus is the only owner of both maps: articles are indexed by bibtex
key, authors by canonical key, and citation links are stored on the
articles as key sets. It is not thread-safe; the pipeline owns it for the
whole run.
"""

from __future__ import annotations

import logging
from typing import Iterator

from src.biblio.articles import Article
from src.biblio.authors import Author
from src.biblio.errors import DuplicateKeyError

logger = logging.getLogger(__name__)


class Corpus:
    """Articles by bibtex key, authors by canonical key."""

    def __init__(self) -> None:
        self._articles: dict[str, Article] = {}
        self._authors: dict[str, Author] = {}

    # ------------------------------------------------------------ articles

    def add_article(self, article: Article) -> None:
        """Insert *article*.

        Raises:
            DuplicateKeyError: If its bibtex key is already used.
        """
        key = article.bibtex_key
        if not key:
            raise ValueError(f"Cannot insert an article without bibtex key ({article})")
        if key in self._articles:
            raise DuplicateKeyError(
                key, f"Trying to insert an article whose bibtex key ({key}) already exists ({article})"
            )
        self._articles[key] = article

    def get_article(self, bibtex_key: str) -> Article | None:
        return self._articles.get(bibtex_key)

    def contains_key(self, bibtex_key: str) -> bool:
        return bibtex_key in self._articles

    def get_article_by_doi(self, doi: str) -> Article | None:
        """Return the article with this DOI (case-insensitive), if any."""
        wanted = doi.strip().lower()
        for article in self._articles.values():
            if article.doi is not None and article.doi.strip().lower() == wanted:
                return article
        return None

    @property
    def articles(self) -> list[Article]:
        return list(self._articles.values())

    @property
    def keys(self) -> list[str]:
        return list(self._articles.keys())

    def __contains__(self, bibtex_key: object) -> bool:
        return bibtex_key in self._articles

    def __iter__(self) -> Iterator[Article]:
        return iter(list(self._articles.values()))

    def __len__(self) -> int:
        return len(self._articles)

    # ------------------------------------------------------------- authors

    def retrieve_author(self, author: Author) -> Author:
        """Return the registered author with the same canonical key.

        If there is none, *author* itself is registered and returned.
        """
        existing = self._authors.get(author.canonical_key)
        if existing is not None:
            return existing
        self._authors[author.canonical_key] = author
        return author

    def get_author(self, canonical_key: str) -> Author | None:
        return self._authors.get(canonical_key)

    @property
    def authors(self) -> list[Author]:
        return list(self._authors.values())

    # ----------------------------------------------------------- citations

    def add_citation(self, citing_key: str, cited_key: str) -> bool:
        """Record that *citing_key* cites *cited_key*, on both ends.

        Returns:
            True if the link did not exist yet.
        """
        citing = self._articles[citing_key]
        cited = self._articles[cited_key]
        if cited_key in citing.cited_keys:
            return False
        citing.cited_keys.add(cited_key)
        cited.citing_keys.add(citing_key)
        cited.times_cited += 1
        logger.debug("Link %s -> %s", citing_key, cited_key)
        return True

    def complete_article(self, article: Article, other: Article) -> None:
        """Merge *other* into the registered *article*, citation links included.

        Scalar fields and authors go through :meth:`Article.complete_with`.
        Each link of *other* is re-created with :meth:`add_citation` so both
        ends stay in sync; links to keys unknown to this corpus are dropped.
        """
        key = article.bibtex_key
        if self._articles.get(key) is not article:
            raise KeyError(f"Article {key} is not registered in this corpus")
        article.complete_with(other)
        for cited_key in sorted(other.cited_keys):
            if cited_key == key or cited_key not in self._articles:
                logger.debug("Dropping link %s -> %s while completing %s", other.bibtex_key, cited_key, key)
                continue
            self.add_citation(key, cited_key)
        for citing_key in sorted(other.citing_keys):
            if citing_key == key or citing_key not in self._articles:
                logger.debug("Dropping link %s -> %s while completing %s", citing_key, other.bibtex_key, key)
                continue
            self.add_citation(citing_key, key)

    def cited_articles(self, article: Article) -> list[Article]:
        return [self._articles[key] for key in sorted(article.cited_keys)]

    def citing_articles(self, article: Article) -> list[Article]:
        return [self._articles[key] for key in sorted(article.citing_keys)]
