import pytest

from src.biblio.articles import Article
from src.biblio.entities import SourceType
from src.biblio.errors import MalformedRecordError
from src.inout.bibtex_handler import (
    load_bibtex_file,
    load_bibtex_text,
    parse_groups,
    write_bibtex_file,
)

COMPARED_FIELDS = ("title", "year", "journal", "booktitle", "volume", "issue", "page", "doi", "owner", "source_type")


def _entry(fields: str, entry_type: str = "Article") -> str:
    return f"@{entry_type}{{Key2000,\n{fields}\n}}\n"


def test_load_fields(corpus):
    newman = corpus.get_article("Newman2003")
    assert newman.source_type is SourceType.JOURNAL
    assert newman.journal == "SIAM Review"
    assert newman.issue == "2"
    assert newman.page == "167--256"
    assert newman.first_page == "167"
    assert newman.norm_title == "the structure and function of complex networks"
    assert [a.fullname for a in newman.authors] == ["Newman, M. E. J."]
    assert newman.present

    doe = corpus.get_article("Doe2005")
    assert doe.source_type is SourceType.IN_PROCEEDINGS
    assert doe.booktitle.startswith("10th IEEE")
    assert doe.owner == "reviewer"


def test_authors_are_shared_between_articles(corpus):
    smith_paper = corpus.get_article("Smith2001")
    doe_paper = corpus.get_article("Doe2005")
    assert smith_paper.authors[1] is doe_paper.authors[0]
    assert len(corpus.authors) == 3


def test_groups_flag_ignored_articles(corpus):
    assert corpus.get_article("Doe2005").ignored
    assert not corpus.get_article("Newman2003").ignored
    assert not corpus.get_article("Smith2001").ignored


def test_parse_groups(bib_text):
    groups = load_bibtex_text(bib_text).groups
    assert groups["Ignored"] == ["Doe2005"]
    assert groups["Core"] == ["Newman2003", "Smith2001"]


def test_parse_groups_across_wrapped_lines():
    commands = "@Comment{jabref-meta: groupstree:\n0 AllEntriesGroup:;\n1 ExplicitGroup:Ignored\\;0\\;Doe20\n05\\;Smith2001\\;;\n}"
    assert parse_groups(commands) == {"Ignored": ["Doe2005", "Smith2001"]}


def test_unknown_field_raises():
    text = _entry("author = {Doe, Jane},\nyear = {2000},\njournal = {Nature},\nfoo = {bar},")
    with pytest.raises(MalformedRecordError):
        load_bibtex_text(text)


@pytest.mark.parametrize(
    "fields, entry_type",
    [
        ("author = {Doe, Jane},\njournal = {Nature},", "Article"),
        ("year = {2000},\njournal = {Nature},", "Article"),
        ("author = {Doe, Jane},\nyear = {2000},", "Article"),
        ("author = {Doe, Jane},\nyear = {2000},\njournal = {Nature},", "InProceedings"),
        ("author = {Doe, Jane},\nyear = {2000},\nhowpublished = {web},", "Misc"),
        ("author = {Doe, J.K.},\nyear = {2000},\njournal = {Nature},", "Article"),
    ],
)
def test_malformed_entries_raise(fields, entry_type):
    with pytest.raises(MalformedRecordError):
        load_bibtex_text(_entry(fields, entry_type))


def test_thesis_accepts_school():
    text = _entry("author = {Doe, Jane},\nyear = {2000},\nschool = {Avignon University},", "PhdThesis")
    article = load_bibtex_text(text).corpus.get_article("Key2000")
    assert article.source_type is SourceType.THESIS_PHD
    assert article.source_name == "Avignon University"


def test_write_then_read_preserves_fields(tmp_path, bib_text):
    original = load_bibtex_text(bib_text, ignored_groups=["Ignored"])
    path = tmp_path / "out.bib"
    write_bibtex_file(original.corpus, path, original.jabref_commands)

    reloaded = load_bibtex_file(path, ignored_groups=["Ignored"]).corpus

    assert sorted(reloaded.keys) == sorted(original.corpus.keys)
    for article in original.corpus:
        copy = reloaded.get_article(article.bibtex_key)
        for name in COMPARED_FIELDS:
            assert getattr(copy, name) == getattr(article, name), name
        assert copy.authors == article.authors
        assert copy.ignored == article.ignored


def test_writer_skips_placeholders_and_adds_default_commands(tmp_path, corpus):
    placeholder = Article("SYNTH_0123456789ab")
    placeholder.year = "1999"
    corpus.add_article(placeholder)
    path = tmp_path / "out.bib"

    write_bibtex_file(corpus, path)

    content = path.read_text(encoding="utf-8")
    assert "SYNTH_0123456789ab" not in content
    assert "@Article{Newman2003," in content
    assert "jabref-meta: databaseType:bibtex;" in content
    assert len(load_bibtex_file(path).corpus) == 3


def test_title_dashes_survive_a_round_trip(tmp_path):
    text = _entry("author = {Doe, Jane},\ntitle = {Pre\u2013post analysis},\njournal = {Nature},\nyear = {2000},")
    corpus = load_bibtex_text(text).corpus
    article = corpus.get_article("Key2000")
    assert article.title == "Pre\u2013post analysis"
    assert article.norm_title == "pre-post analysis"

    path = tmp_path / "out.bib"
    write_bibtex_file(corpus, path)

    assert "Pre\u2013post analysis" in path.read_text(encoding="utf-8")
    assert load_bibtex_file(path).corpus.get_article("Key2000").title == "Pre\u2013post analysis"
