import pytest

from src.biblio.authors import Author
from src.biblio.entities import SourceType
from src.resolution.citations import parse_citation, parse_compact_author


def test_parse_full_citation():
    parsed = parse_citation("Newman MEJ, 2003, SIAM REV, V45, P167, DOI 10.1137/S003614450342480")
    assert parsed.author == "Newman MEJ"
    assert parsed.year == "2003"
    assert parsed.source == "SIAM REV"
    assert parsed.volume == "45"
    assert parsed.page == "167"
    assert parsed.doi == "10.1137/S003614450342480"
    assert parsed.source_type is SourceType.JOURNAL


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Doe J, 2005, IEEE INT C DAT MIN, P66", SourceType.IN_PROCEEDINGS),
        ("Knuth DE, 1997, ART COMPUTER PROGRAMM", SourceType.BOOK),
        ("Smith JA, 2001, NATURE, V410, P227", SourceType.JOURNAL),
    ],
)
def test_source_type_is_inferred_from_tokens(text, expected):
    assert parse_citation(text).source_type is expected


def test_citation_without_year():
    parsed = parse_citation("Smith JA, NATURE, V410")
    assert parsed.year is None
    assert parsed.source == "NATURE"
    assert parsed.volume == "410"


def test_bracketed_doi_list_keeps_first():
    parsed = parse_citation("Smith JA, 2001, NATURE, V410, P227, DOI [10.1038/35065725, 10.1038/other]")
    assert parsed.doi == "10.1038/35065725"


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Newman MEJ", Author("Newman", "M. E. J.")),
        ("Newman Mark", Author("Newman", "M.")),
        ("VAN DER BERG J", Author("Van der Berg", "J.")),
        ("Newman, M. E. J.", Author("Newman", "M. E. J.")),
        ("[Anonymous]", Author("Anonymous")),
    ],
)
def test_parse_compact_author(text, expected):
    assert parse_compact_author(text) == expected


def test_parse_compact_author_empty():
    assert parse_compact_author(None) is None
    assert parse_compact_author("*") is None
