import pytest

from src.biblio.authors import Author, initials_from_compact, initials_from_names
from src.biblio.corpus import Corpus
from src.biblio.errors import MalformedRecordError


def test_initials_from_names():
    assert initials_from_names("Jean-Pierre Marc") == "J.-P. M."
    assert initials_from_names("J. K.") == "J. K."


def test_initials_from_compact():
    assert initials_from_compact("MEJ") == "M. E. J."
    assert initials_from_compact("J-P") == "J.-P."


def test_canonical_key_ignores_initial_punctuation():
    author = Author("Newman", "M. E. J.")
    assert author.canonical_key == "newman mej"
    assert author == Author("Newman", "M.E.J.")
    assert hash(author) == hash(Author("Newman", "M.E.J."))


def test_canonical_key_normalizes_last_name():
    assert Author("Erdős", "P.") == Author("Erdos", "P.")
    assert Author("Van-Der Berg", "J.").canonical_key == "van der berg j"


def test_from_fullname():
    author = Author.from_fullname("Newman, Mark E. J.")
    assert author.lastname == "Newman"
    assert author.fullname == "Newman, M. E. J."


def test_from_fullname_requires_first_name():
    with pytest.raises(MalformedRecordError):
        Author.from_fullname("Newman")


def test_retrieve_author_returns_registered_instance():
    corpus = Corpus()
    first = corpus.retrieve_author(Author("Newman", "M. E. J."))
    second = corpus.retrieve_author(Author("Newman", "M.E.J."))
    assert second is first
    assert corpus.authors == [first]
    assert corpus.get_author("newman mej") is first


def test_authors_sort_by_key():
    authors = sorted([Author("Smith", "J."), Author("Doe", "J.")])
    assert [a.lastname for a in authors] == ["Doe", "Smith"]
