import networkx as nx
import pytest

from src.biblio.articles import Article
from src.biblio.authors import Author
from src.biblio.corpus import Corpus
from src.graphs.builders import (
    BUILDERS,
    build_article_citation_graph,
    build_article_cocited_graph,
    build_article_coauthorship_graph,
    build_article_cociting_graph,
    build_author_citation_graph,
    build_author_coauthorship_graph,
    build_authorship_graph,
    build_graphs,
    jaccard,
)
from src.graphs.graph import PropertyGraph
from src.graphs.ranking import annotate_pagerank


@pytest.fixture
def citation_corpus() -> Corpus:
    """A cites X, Y, Z; B cites Y, Z, W."""
    corpus = Corpus()
    for key in ("A", "B", "W", "X", "Y", "Z"):
        corpus.add_article(Article(key))
    for cited in ("X", "Y", "Z"):
        corpus.add_citation("A", cited)
    for cited in ("Y", "Z", "W"):
        corpus.add_citation("B", cited)
    return corpus


def test_jaccard():
    assert jaccard({"X", "Y", "Z"}, {"Y", "Z", "W"}) == (0.5, 2)
    assert jaccard(set(), set()) == (0.0, 0)


def test_undirected_links_are_canonical():
    graph = PropertyGraph("test", directed=False)
    graph.add_link_property("weight", "int")
    graph.increment_link_property("b", "a", "weight")
    graph.increment_link_property("a", "b", "weight")
    assert graph.link_count == 1
    assert graph.retrieve_link("a", "b")["weight"] == 2


def test_directed_links_keep_their_direction():
    graph = PropertyGraph("test", directed=True)
    graph.retrieve_link("b", "a")
    graph.retrieve_link("a", "b")
    assert graph.link_count == 2


def test_declared_properties_have_defaults():
    graph = PropertyGraph("test", directed=False)
    graph.add_node_property("title", "string")
    graph.add_node_property("score", "float")
    assert graph.retrieve_node("a") == {"title": "NA", "score": 0.0}
    with pytest.raises(KeyError):
        graph.set_node_properties("a", unknown="x")
    with pytest.raises(ValueError):
        graph.add_link_property("weight", "complex")


def test_cociting_weights(citation_corpus):
    graph = build_article_cociting_graph(citation_corpus).graph
    assert graph.edges["A", "B"] == {"weight": 0.5, "count": 2}
    # articles citing nothing share nothing
    assert not graph.has_edge("X", "Y")
    assert graph.number_of_nodes() == 6


def test_cocited_weights(citation_corpus):
    graph = build_article_cocited_graph(citation_corpus).graph
    assert graph.edges["Y", "Z"] == {"weight": 1.0, "count": 2}
    assert graph.edges["X", "Y"] == {"weight": 0.5, "count": 1}
    assert not graph.has_edge("A", "B")


def test_article_citation_graph(citation_corpus):
    graph = build_article_citation_graph(citation_corpus).graph
    assert graph.is_directed()
    assert graph.edges["A", "X"]["weight"] == 1
    assert not graph.has_edge("X", "A")
    assert graph.number_of_edges() == 6


def test_author_citation_counts_each_pair_per_link(article_factory):
    corpus = Corpus()
    alice, bob, carol = (corpus.retrieve_author(Author(name, "A.")) for name in ("Alice", "Bob", "Carol"))
    corpus.add_article(article_factory("P1", alice, bob))
    corpus.add_article(article_factory("P2", alice))
    corpus.add_article(article_factory("Q", carol))
    corpus.add_citation("P1", "Q")
    corpus.add_citation("P2", "Q")

    graph = build_author_citation_graph(corpus).graph

    assert graph.edges["alice a", "carol a"]["weight"] == 2
    assert graph.edges["bob a", "carol a"]["weight"] == 1
    assert graph.nodes["carol a"]["fullname"] == "Carol, A."


def test_coauthorship_graphs(corpus):
    articles = build_article_coauthorship_graph(corpus).graph
    assert articles.edges["Doe2005", "Smith2001"] == {"weight": 1.0, "count": 2}
    assert not articles.has_edge("Newman2003", "Smith2001")

    authors = build_author_coauthorship_graph(corpus).graph
    assert authors.edges["doe j", "smith ja"]["weight"] == 2
    assert authors.degree("newman mej") == 0


def test_authorship_graph(corpus):
    graph = build_authorship_graph(corpus).graph
    assert graph.number_of_nodes() == 6
    assert graph.number_of_edges() == 5
    assert graph.nodes["Newman2003"]["type"] == "Article"
    assert graph.nodes["Newman2003"]["volume"] == "45"
    assert graph.nodes["Doe2005"]["volume"] == "NA"
    assert graph.nodes["newman mej"]["type"] == "Author"
    assert graph.has_edge("Newman2003", "newman mej")


def test_core_label(corpus):
    corpus.get_article("Newman2003").core = True
    graph = build_article_citation_graph(corpus).graph
    assert graph.nodes["Newman2003"]["core_label"] == "Newman2003"
    assert graph.nodes["Newman2003"]["core"] == "true"
    assert graph.nodes["Smith2001"]["core_label"] == ""


def test_pagerank(citation_corpus):
    graph = build_article_citation_graph(citation_corpus)
    scores = annotate_pagerank(graph, alpha=0.85)

    assert sum(scores.values()) == pytest.approx(1.0)
    assert scores["Y"] > scores["A"]
    assert graph.graph.nodes["Y"]["pagerank"] == scores["Y"]


def test_build_and_write_graphs(tmp_path, corpus):
    graphs = build_graphs(corpus, list(BUILDERS))
    assert set(graphs) == set(BUILDERS)

    path = tmp_path / "authorship.graphml"
    graphs["authorship"].write_graphml(path)
    assert nx.read_graphml(path).number_of_nodes() == 6


def test_unknown_graph_name(corpus):
    with pytest.raises(KeyError):
        build_graphs(corpus, ["nope"])
