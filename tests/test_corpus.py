import pytest

from src.biblio.articles import Article
from src.biblio.corpus import Corpus
from src.biblio.errors import DuplicateKeyError, IdentityConflictError


def test_add_article_rejects_duplicate_key():
    corpus = Corpus()
    corpus.add_article(Article("Newman2003"))
    with pytest.raises(DuplicateKeyError) as info:
        corpus.add_article(Article("Newman2003"))
    assert info.value.key == "Newman2003"
    assert isinstance(info.value, IdentityConflictError)
    assert len(corpus) == 1


def test_add_article_requires_key():
    with pytest.raises(ValueError):
        Corpus().add_article(Article())


def test_add_citation_updates_both_ends():
    corpus = Corpus()
    for key in ("A", "B"):
        corpus.add_article(Article(key))

    assert corpus.add_citation("A", "B") is True
    assert corpus.add_citation("A", "B") is False

    citing, cited = corpus.get_article("A"), corpus.get_article("B")
    assert citing.cited_keys == {"B"}
    assert cited.citing_keys == {"A"}
    assert cited.times_cited == 1
    assert corpus.cited_articles(citing) == [cited]
    assert corpus.citing_articles(cited) == [citing]


def test_lookup_by_doi_is_case_insensitive(corpus):
    assert corpus.get_article_by_doi(" 10.1038/35065725 ".upper()).bibtex_key == "Smith2001"
    assert corpus.get_article_by_doi("10.1/none") is None


def test_lookup_by_key(corpus):
    assert "Newman2003" in corpus
    assert corpus.contains_key("Doe2005")
    assert corpus.get_article("Missing") is None
    assert sorted(corpus.keys) == ["Doe2005", "Newman2003", "Smith2001"]


def test_complete_article_links_both_ends():
    corpus = Corpus()
    for key in ("T", "S", "X", "Y"):
        corpus.add_article(Article(key))
    corpus.add_citation("S", "X")
    corpus.add_citation("Y", "S")
    target, source = corpus.get_article("T"), corpus.get_article("S")

    corpus.complete_article(target, source)

    assert target.cited_keys == {"X"}
    assert target.citing_keys == {"Y"}
    assert corpus.get_article("X").citing_keys == {"S", "T"}
    assert corpus.get_article("X").times_cited == 2
    assert corpus.get_article("Y").cited_keys == {"S", "T"}
    assert target.times_cited == 1


def test_complete_article_drops_links_unknown_to_the_corpus():
    master = Corpus()
    for key in ("M", "Z"):
        master.add_article(Article(key))
    master.add_citation("M", "Z")
    master.get_article("M").year = "2003"

    selection = Corpus()
    selection.add_article(Article("M"))
    article = selection.get_article("M")

    selection.complete_article(article, master.get_article("M"))

    assert article.year == "2003"
    assert article.cited_keys == set()
    assert selection.cited_articles(article) == []


def test_complete_article_requires_registered_article():
    with pytest.raises(KeyError):
        Corpus().complete_article(Article("A"), Article("B"))
