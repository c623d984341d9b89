"""builders.py
Derived graphs extracted from a resolved corpus.

Every builder takes a :class:`~src.biblio.corpus.Corpus` and returns a new
:class:`~src.graphs.graph.PropertyGraph`; nothing is cached on the corpus.
Article nodes are named after bibtex keys, author nodes after canonical
keys. Iteration always follows sorted keys so that two runs on the same
corpus give the same GraphML files.
"""

from __future__ import annotations

import logging
from itertools import combinations
from typing import Callable, Iterable

from src.biblio.articles import Article
from src.biblio.authors import Author
from src.biblio.corpus import Corpus
from src.graphs.graph import PropertyGraph

logger = logging.getLogger(__name__)

WEIGHT = "weight"
COUNT = "count"

# node attribute -> article attribute
ARTICLE_NODE_FIELDS: dict[str, str] = {
    "chapter": "chapter",
    "doi": "doi",
    "journal": "journal",
    "number": "issue",
    "pages": "page",
    "title": "title",
    "booktitle": "booktitle",
    "url": "url",
    "volume": "volume",
    "year": "year",
}


def jaccard(first: set, second: set) -> tuple[float, int]:
    """Return ``(|A & B| / |A | B|, |A & B|)``; ``(0.0, 0)`` for two empty sets."""
    intersection = len(first & second)
    union = len(first | second)
    if union == 0:
        return 0.0, 0
    return intersection / union, intersection


# ----------------------------------------------------------------- nodes


def _declare_article_properties(graph: PropertyGraph) -> None:
    graph.add_node_property("core", "string")
    graph.add_node_property("author", "string")
    for name in ARTICLE_NODE_FIELDS:
        graph.add_node_property(name, "string")
    graph.add_node_property("core_label", "string")


def _add_article_node(graph: PropertyGraph, article: Article) -> None:
    values = {name: getattr(article, attr) for name, attr in ARTICLE_NODE_FIELDS.items()}
    graph.set_node_properties(
        article.bibtex_key,
        core=str(article.core).lower(),
        author=" and ".join(author.fullname for author in article.authors),
        core_label=article.bibtex_key if article.core else "",
        **values,
    )


def _add_author_node(graph: PropertyGraph, author: Author) -> None:
    graph.set_node_properties(author.canonical_key, fullname=author.fullname)


def _sorted_articles(corpus: Corpus) -> list[Article]:
    return sorted(corpus)


def _sorted_authors(corpus: Corpus) -> list[Author]:
    return sorted(corpus.authors)


# -------------------------------------------------------------- builders


def build_authorship_graph(corpus: Corpus) -> PropertyGraph:
    """Bipartite undirected graph linking each article to its authors."""
    graph = PropertyGraph("Authorship network", directed=False)
    graph.add_node_property("type", "string")
    graph.add_node_property("fullname", "string")
    _declare_article_properties(graph)

    for article in _sorted_articles(corpus):
        _add_article_node(graph, article)
        graph.set_node_properties(article.bibtex_key, type="Article")
    for author in _sorted_authors(corpus):
        _add_author_node(graph, author)
        graph.set_node_properties(author.canonical_key, type="Author", core_label="")

    for article in _sorted_articles(corpus):
        for author in article.authors:
            graph.retrieve_link(article.bibtex_key, author.canonical_key)
    return graph


def build_article_citation_graph(corpus: Corpus) -> PropertyGraph:
    """Directed citing -> cited graph of articles, weight 1 per link."""
    graph = PropertyGraph("Article citation network", directed=True)
    _declare_article_properties(graph)
    graph.add_link_property(WEIGHT, "int")

    articles = _sorted_articles(corpus)
    for article in articles:
        _add_article_node(graph, article)
    for article in articles:
        for cited in corpus.cited_articles(article):
            graph.increment_link_property(article.bibtex_key, cited.bibtex_key, WEIGHT)
    return graph


def build_author_citation_graph(corpus: Corpus) -> PropertyGraph:
    """Directed citing author -> cited author graph.

    Every citation link between two articles adds one to each
    (author of citing, author of cited) pair.
    """
    graph = PropertyGraph("Author citation network", directed=True)
    graph.add_node_property("fullname", "string")
    graph.add_link_property(WEIGHT, "int")

    for author in _sorted_authors(corpus):
        _add_author_node(graph, author)
    for article in _sorted_articles(corpus):
        for cited in corpus.cited_articles(article):
            for citing_author in article.authors:
                for cited_author in cited.authors:
                    graph.increment_link_property(citing_author.canonical_key, cited_author.canonical_key, WEIGHT)
    return graph


def _jaccard_graph(
    name: str,
    corpus: Corpus,
    members: Callable[[Article], Iterable],
) -> PropertyGraph:
    graph = PropertyGraph(name, directed=False)
    _declare_article_properties(graph)
    graph.add_link_property(WEIGHT, "float")
    graph.add_link_property(COUNT, "int")

    articles = _sorted_articles(corpus)
    for article in articles:
        _add_article_node(graph, article)
    sets = {article.bibtex_key: set(members(article)) for article in articles}
    for first, second in combinations(articles, 2):
        weight, count = jaccard(sets[first.bibtex_key], sets[second.bibtex_key])
        if count > 0:
            graph.set_link_properties(first.bibtex_key, second.bibtex_key, weight=weight, count=count)
    return graph


def build_article_coauthorship_graph(corpus: Corpus) -> PropertyGraph:
    """Undirected article graph weighted by the Jaccard index of the author sets."""
    return _jaccard_graph(
        "Article co-authorship network",
        corpus,
        lambda article: (author.canonical_key for author in article.authors),
    )


def build_author_coauthorship_graph(corpus: Corpus) -> PropertyGraph:
    """Undirected author graph weighted by the number of co-authored articles."""
    graph = PropertyGraph("Author co-authorship network", directed=False)
    graph.add_node_property("fullname", "string")
    graph.add_link_property(WEIGHT, "int")

    for author in _sorted_authors(corpus):
        _add_author_node(graph, author)
    for article in _sorted_articles(corpus):
        for first, second in combinations(article.authors, 2):
            graph.increment_link_property(first.canonical_key, second.canonical_key, WEIGHT)
    return graph


def build_article_cociting_graph(corpus: Corpus) -> PropertyGraph:
    """Undirected article graph weighted by the Jaccard index of the reference sets."""
    return _jaccard_graph("Article co-citing network", corpus, lambda article: article.cited_keys)


def build_article_cocited_graph(corpus: Corpus) -> PropertyGraph:
    """Undirected article graph weighted by the Jaccard index of the citing sets."""
    return _jaccard_graph("Article co-cited network", corpus, lambda article: article.citing_keys)


BUILDERS: dict[str, Callable[[Corpus], PropertyGraph]] = {
    "authorship": build_authorship_graph,
    "article_citation": build_article_citation_graph,
    "author_citation": build_author_citation_graph,
    "article_coauthorship": build_article_coauthorship_graph,
    "author_coauthorship": build_author_coauthorship_graph,
    "article_cociting": build_article_cociting_graph,
    "article_cocited": build_article_cocited_graph,
}


def build_graphs(corpus: Corpus, names: Iterable[str]) -> dict[str, PropertyGraph]:
    """Run the named builders.

    Raises:
        KeyError: Unknown graph name.
    """
    result: dict[str, PropertyGraph] = {}
    for name in names:
        if name not in BUILDERS:
            raise KeyError(f"Unknown graph '{name}', expected one of {sorted(BUILDERS)}")
        graph = BUILDERS[name](corpus)
        logger.info("Built %r", graph)
        result[name] = graph
    return result
