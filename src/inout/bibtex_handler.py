"""bibtex_handler.py
Reading and writing JabRef-flavoured BibTeX files.

Reading relies on pybtex for the entry syntax; this module adds what the
reconciliation needs on top of it:

* a closed set of known fields (anything else is a hard error);
* the source field required by each entry type;
* JabRef group directives, used to flag articles as ignored;
* the trailing ``@Comment`` block, kept verbatim so that it can be written
  back.

Writing uses a fixed field order so that reading a written file gives the
same fields back.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from pybtex.database import Entry, parse_string
from pybtex.exceptions import PybtexError

from src.biblio.articles import Article
from src.biblio.authors import Author
from src.biblio.corpus import Corpus
from src.biblio.entities import SourceType
from src.biblio.errors import MalformedRecordError

logger = logging.getLogger(__name__)

# Known fields. "author" and "editor" are handled by pybtex as persons.
KNOWN_FIELDS = frozenset(
    {
        "author", "abstract", "chapter", "doi", "file", "institution", "issue",
        "journal", "journaltitle", "number", "owner", "pages", "timestamp",
        "title", "booktitle", "url", "volume", "year", "publisher", "series",
        "editor", "review", "address", "school", "type", "sortkey", "edition",
        "organization", "groups", "month", "howpublished",
        # internal JabRef field, read and dropped
        "__markedentry",
    }
)

# Fields holding the source name, by entry type, in order of preference.
SOURCE_FIELDS: dict[SourceType, tuple[str, ...]] = {
    SourceType.JOURNAL: ("journal", "journaltitle"),
    SourceType.BOOK: ("publisher",),
    SourceType.IN_BOOK: ("booktitle",),
    SourceType.COLLECTION: ("publisher",),
    SourceType.IN_COLLECTION: ("booktitle",),
    SourceType.IN_PROCEEDINGS: ("booktitle",),
    SourceType.ELECTRONIC: ("organization",),
    SourceType.TECH_REPORT: ("institution",),
    SourceType.THESIS_MSC: ("institution", "school"),
    SourceType.THESIS_PHD: ("institution", "school"),
}

# Field order used when writing, with the attribute each field comes from.
WRITE_ORDER: tuple[tuple[str, str], ...] = (
    ("title", "title"),
    ("year", "year"),
    ("journal", "journal"),
    ("volume", "volume"),
    ("number", "issue"),
    ("pages", "page"),
    ("editor", "editor"),
    ("edition", "edition"),
    ("series", "series"),
    ("chapter", "chapter"),
    ("institution", "institution"),
    ("school", "school"),
    ("booktitle", "booktitle"),
    ("publisher", "publisher"),
    ("address", "address"),
    ("type", "type"),
    ("month", "month"),
    ("organization", "organization"),
    ("howpublished", "howpublished"),
    ("doi", "doi"),
    ("file", "file"),
    ("abstract", "abstract"),
    ("owner", "owner"),
    ("timestamp", "timestamp"),
    ("url", "url"),
    ("review", "review"),
    ("groups", "groups"),
    ("sortkey", "sortkey"),
)

# plain copies from the BibTeX field to the attribute of the same name
_PLAIN_FIELDS = (
    "journal", "publisher", "booktitle", "month", "howpublished", "organization",
    "institution", "school", "volume", "doi", "abstract", "chapter", "file",
    "owner", "timestamp", "url", "series", "review", "address", "type",
    "sortkey", "edition", "groups",
)

_DOT_WITHOUT_SPACE = re.compile(r"[^\W\d_]\.[^\W\d_]")
_GROUP_PATTERN = re.compile(r"\d+\s+(?:ExplicitGroup|StaticGroup):(.*?);;", re.DOTALL)

DEFAULT_COMMANDS = (
    "@Comment{jabref-meta: databaseType:bibtex;}\n\n"
    "@Comment{jabref-meta: groupsversion:3;}\n"
)


@dataclass
class BibtexFile:
    """A loaded BibTeX file: its corpus and the JabRef commands found after the entries."""

    corpus: Corpus
    jabref_commands: str = ""
    groups: dict[str, list[str]] = field(default_factory=dict)


def _field_name(name: str) -> str:
    name = name.strip().lower()
    # JabRef disables a field by prefixing it with a single underscore
    if name.startswith("_") and not name.startswith("__"):
        name = name[1:]
    return name


def _fields_of(entry: Entry, key: str) -> dict[str, str]:
    result: dict[str, str] = {}
    for name, value in entry.fields.items():
        fname = _field_name(name)
        if fname not in KNOWN_FIELDS:
            raise MalformedRecordError(f'Unknown BibTeX field "{name}" in entry "{key}"')
        result[fname] = " ".join(str(value).split())
    return result


def _build_source(article: Article, source_type: SourceType, data: dict[str, str]) -> None:
    for name in SOURCE_FIELDS[source_type]:
        source = data.get(name)
        if source:
            article.set_source(source_type, source)
            return
    raise MalformedRecordError(
        f"Missing {' or '.join(SOURCE_FIELDS[source_type])} in entry "
        f"{article.bibtex_key} of type {source_type.entry_type}"
    )


def build_article(key: str, entry: Entry, corpus: Corpus) -> Article:
    """Turn one pybtex entry into an article registered in *corpus*.

    Raises:
        MalformedRecordError: Unknown entry type or field, missing required field.
        DuplicateKeyError: The key is already used.
    """
    data = _fields_of(entry, key)
    article = Article(key)

    try:
        source_type = SourceType.from_entry_type(entry.type)
    except ValueError as exc:
        raise MalformedRecordError(f"Unknown BibTeX entry type ({key}): {entry.type}") from exc
    _build_source(article, source_type, data)

    persons = entry.persons.get("author", [])
    if not persons:
        raise MalformedRecordError(f"Missing author field in entry {key}")
    for person in persons:
        if _DOT_WITHOUT_SPACE.search(str(person)):
            raise MalformedRecordError(f'Probably a dot/space problem in author "{person}" of entry {key}')
        article.add_author(corpus.retrieve_author(Author.from_person(person)))

    editors = entry.persons.get("editor", [])
    if editors:
        data["editor"] = " and ".join(str(person) for person in editors)

    if "year" not in data:
        raise MalformedRecordError(f"Missing year field in entry {key}")
    article.year = data["year"].strip()

    article.set_title(data.get("title"))
    journal = data.get("journal") or data.get("journaltitle")
    for name in _PLAIN_FIELDS:
        value = journal if name == "journal" else data.get(name)
        if value is not None:
            setattr(article, name, value.strip())
    article.editor = data.get("editor")

    issue = data.get("number") or data.get("issue")
    if issue is not None:
        article.issue = issue.strip()
    pages = data.get("pages")
    if pages is not None:
        article.page = pages.strip()

    article.present = True
    corpus.add_article(article)
    return article


def parse_groups(commands: str) -> dict[str, list[str]]:
    """Extract the JabRef group directives: group name -> member keys.

    Directives look like ``3 ExplicitGroup:Ignored\\;2\\;key1\\;key2\\;;``
    and may be wrapped over several lines.
    """
    text = "".join(line.strip() for line in commands.splitlines())
    text = text.replace("\\;", ";")
    result: dict[str, list[str]] = {}
    for match in _GROUP_PATTERN.finditer(text):
        parts = match.group(1).split(";")
        name = parts[0]
        # parts[1] is the group hierarchy mode
        result[name] = [key for key in parts[2:] if key]
    return result


def split_jabref_commands(text: str) -> tuple[str, str]:
    """Split the file content into the entries and the trailing JabRef commands."""
    match = re.search(r"^@comment\{jabref-meta", text, re.IGNORECASE | re.MULTILINE)
    if match is None:
        return text, ""
    return text[: match.start()], text[match.start():]


def load_bibtex_text(text: str, ignored_groups: Iterable[str] = ()) -> BibtexFile:
    """Build a corpus from the content of a JabRef file."""
    entries_text, commands = split_jabref_commands(text)
    try:
        bib_data = parse_string(entries_text, bib_format="bibtex")
    except PybtexError as exc:
        raise MalformedRecordError(f"Could not parse BibTeX content: {exc}") from exc

    corpus = Corpus()
    for key, entry in bib_data.entries.items():
        article = build_article(key, entry, corpus)
        logger.debug("Loaded %s", article)
    logger.info("Number of articles retrieved: %d", len(corpus))

    groups = parse_groups(commands)
    for name in ignored_groups:
        for key in groups.get(name, []):
            article = corpus.get_article(key)
            if article is None:
                logger.warning("Group '%s' lists unknown bibtex key '%s'", name, key)
                continue
            article.ignored = True
            logger.debug("Ignored article (group '%s'): %s", name, article)
    return BibtexFile(corpus=corpus, jabref_commands=commands, groups=groups)


def load_bibtex_file(path: Path, ignored_groups: Iterable[str] = ()) -> BibtexFile:
    """Load a JabRef file.

    Args:
        path: Filesystem path to a .bib file.
        ignored_groups: Names of the JabRef groups whose members are flagged
            as ignored.
    """
    logger.info("Loading BibTeX file %s", path)
    return load_bibtex_text(Path(path).read_text(encoding="utf-8"), ignored_groups)


def format_article(article: Article) -> str:
    """Render one article as a JabRef entry."""
    lines = [f"@{article.source_type.entry_type}{{{article.bibtex_key},"]
    if article.authors:
        lines.append(f"  author = {{{' and '.join(a.fullname for a in article.authors)}}},")
    for field_name, attribute in WRITE_ORDER:
        value = getattr(article, attribute)
        if value is not None:
            lines.append(f"  {field_name} = {{{value}}},")
    lines.append("}")
    return "\n".join(lines) + "\n"


def write_bibtex_file(
    corpus: Corpus,
    path: Path,
    jabref_commands: Optional[str] = None,
    include_placeholders: bool = False,
) -> None:
    """Record the corpus as a JabRef file.

    Placeholder articles (never present in a BibTeX file) are skipped
    unless *include_placeholders* is set; they would lack a source type
    when nothing is known about them.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    with path.open("w", encoding="utf-8") as out:
        out.write("% Encoding: UTF-8\n\n")
        for article in sorted(corpus):
            if not article.present and not include_placeholders:
                continue
            if article.source_type is None:
                logger.warning("Skipping %s: unknown source type", article.bibtex_key)
                continue
            out.write(format_article(article))
            out.write("\n")
            count += 1
        out.write(jabref_commands or DEFAULT_COMMANDS)
    logger.info("Wrote %d articles to %s", count, path)
