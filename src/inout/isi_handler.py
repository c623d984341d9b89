"""isi_handler.py
Reader for Web of Science tagged exports (``.ciw`` / ``.txt``).

A record is a sequence of ``TAG value`` lines, values spanning several lines
being continued by lines starting with spaces, and ends with an ``ER`` line.
Each record is matched to the corpus loaded from BibTeX and merged into it;
the cited references (``CR``) are returned so that they can be resolved once
every record is known.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Iterator, Optional, Sequence

from tqdm import tqdm

from src.biblio.articles import Article
from src.biblio.authors import Author, initials_from_compact, initials_from_names
from src.biblio.corpus import Corpus
from src.biblio.entities import IsiRecord, SourceType
from src.biblio.errors import AmbiguousReferenceError, MalformedRecordError, UnresolvedReferenceError
from src.resolution.resolver import synthetic_key
from src.resolution.tables import ShortNameTable

logger = logging.getLogger(__name__)

RECORD_END = "ER"
# header and footer tags of the export file
FILE_TAGS = ("FN", "VR", "EF")
EXPORT_SUFFIXES = (".txt", ".ciw")

PUBLICATION_TYPES = {
    "J": SourceType.JOURNAL,
    "S": SourceType.IN_PROCEEDINGS,
    "C": SourceType.IN_PROCEEDINGS,
    "B": SourceType.BOOK,
}


def iter_records(lines: Iterable[str]) -> Iterator[IsiRecord]:
    """Group the lines of an export into tagged records.

    Raises:
        MalformedRecordError: A continuation line with no tag before it, or
            a record not terminated by ``ER``.
    """
    record: IsiRecord = {}
    tag: Optional[str] = None
    for number, line in enumerate(lines, start=1):
        line = line.rstrip("\r\n").lstrip("\ufeff")
        if not line.strip():
            continue
        if line.startswith(" "):
            if tag is None:
                raise MalformedRecordError(f"Continuation line {number} outside of any field")
            record[tag].append(line.strip())
            continue
        current = line[:2]
        if current == RECORD_END:
            if record:
                yield record
            record, tag = {}, None
            continue
        if current in FILE_TAGS:
            tag = None
            continue
        tag = current
        record.setdefault(tag, []).append(line[3:].strip())
    if record:
        raise MalformedRecordError(f"Unterminated record at end of file (fields {sorted(record)})")


def parse_isi_author(text: str) -> Author:
    """``"Newman, MEJ"`` -> Newman M. E. J.; ``"Newman, Mark E."`` -> Newman M. E."""
    lastname, sep, firstnames = text.partition(",")
    firstnames = firstnames.strip()
    if not sep or not firstnames:
        return Author(lastname.strip())
    letters = firstnames.replace("-", "").replace(".", "").replace(" ", "")
    if letters.isupper():
        return Author(lastname.strip(), initials_from_compact(firstnames))
    return Author(lastname.strip(), initials_from_names(firstnames))


def _single(record: IsiRecord, tag: str) -> Optional[str]:
    values = record.get(tag)
    if not values:
        return None
    return " ".join(values).strip() or None


def build_isi_article(record: IsiRecord, corpus: Corpus) -> Article:
    """Turn a record into an unregistered article.

    Authors are registered in *corpus* so that the article shares them with
    the BibTeX records.
    """
    type_code = _single(record, "PT")
    if type_code is None:
        raise MalformedRecordError(f"Could not find the publication type in record {_single(record, 'TI')}")
    try:
        source_type = PUBLICATION_TYPES[type_code]
    except KeyError as exc:
        raise MalformedRecordError(f"Unknown ISI publication type: {type_code}") from exc

    article = Article()
    authors = record.get("AU")
    if not authors:
        raise MalformedRecordError(f"Could not find the authors in record {_single(record, 'TI')}")
    for text in authors:
        article.add_author(corpus.retrieve_author(parse_isi_author(text)))

    title = _single(record, "TI")
    if title is not None:
        article.set_title(title)
    source = _single(record, "SO")
    if source is not None:
        article.set_source(source_type, source)
    else:
        article.source_type = source_type

    article.year = _single(record, "PY")
    article.volume = _single(record, "VL")
    article.issue = _single(record, "IS")
    start, end = _single(record, "BP"), _single(record, "EP")
    if start is not None:
        article.page = f"{start}-{end}" if end is not None else start
    else:
        article.page = _single(record, "AR")
    article.doi = _single(record, "DI")
    article.abstract = _single(record, "AB")
    return article


class IsiReader:
    """Merge citation-index records into a corpus."""

    def __init__(self, corpus: Corpus, short_names: ShortNameTable, strict: bool = False) -> None:
        """
        Args:
            corpus: Corpus loaded from BibTeX, completed in place.
            short_names: Table receiving the ``J9`` -> ``SO`` pairs.
            strict: Raise when a record matches no corpus article instead of
                adding it as a new article.
        """
        self.corpus = corpus
        self.short_names = short_names
        self.strict = strict
        self.added: list[str] = []

    def merge(self, record: IsiRecord) -> Article:
        """Match *record* with the corpus and merge it.

        Returns:
            The corpus article the record was merged into (or added as).
        """
        article = build_isi_article(record, self.corpus)
        short, long = _single(record, "J9"), _single(record, "SO")
        if short is not None and long is not None:
            self.short_names.register(short, long)

        candidates = sorted(a for a in self.corpus if article.is_compatible(a))
        if len(candidates) > 1:
            raise AmbiguousReferenceError(article.cite_as, [a.bibtex_key for a in candidates])
        if candidates:
            result = candidates[0]
            self.corpus.complete_article(result, article)
        elif self.strict:
            raise UnresolvedReferenceError(article.cite_as, f"Could not find article in the corpus: {article}")
        else:
            article.bibtex_key = synthetic_key(article, self.corpus)
            self.corpus.add_article(article)
            self.added.append(article.bibtex_key)
            logger.warning("ISI record not in the BibTeX file, added as %s: %s", article.bibtex_key, article)
            result = article
        result.core = True
        return result

    def read(self, lines: Iterable[str]) -> dict[str, list[str]]:
        """Merge every record.

        Returns:
            Cited references (``CR`` lines) by bibtex key of the citing article.
        """
        references: dict[str, list[str]] = {}
        for record in tqdm(iter_records(lines), desc="Reading ISI records", unit="record"):
            article = self.merge(record)
            references.setdefault(article.bibtex_key, []).extend(record.get("CR", []))
        logger.info("Merged %d ISI records (%d new articles)", len(references), len(self.added))
        return references


def collect_isi_files(paths: Iterable[Path]) -> list[Path]:
    """Expand folders into the exports they hold (``*.txt``, ``*.ciw``), sorted by name."""
    result: list[Path] = []
    for path in map(Path, paths):
        if path.is_dir():
            result.extend(sorted(p for p in path.iterdir() if p.suffix.lower() in EXPORT_SUFFIXES))
        else:
            result.append(path)
    return result


def _iter_lines(paths: Sequence[Path]) -> Iterator[str]:
    for path in paths:
        logger.info("Loading ISI file %s", path)
        with Path(path).open(encoding="utf-8-sig") as handle:
            yield from handle


def load_isi_files(
    paths: Iterable[Path],
    corpus: Corpus,
    short_names: ShortNameTable,
    strict: bool = False,
) -> dict[str, list[str]]:
    """Read several Web of Science exports into *corpus* as one stream of records.

    The ``FN``/``VR``/``EF`` header and footer lines of each file are skipped
    by :func:`iter_records`. See :meth:`IsiReader.read` for the result.
    """
    files = collect_isi_files(paths)
    if not files:
        logger.warning("No ISI export found")
        return {}
    return IsiReader(corpus, short_names, strict).read(_iter_lines(files))


def load_isi_file(
    path: Path,
    corpus: Corpus,
    short_names: ShortNameTable,
    strict: bool = False,
) -> dict[str, list[str]]:
    """Read a Web of Science export into *corpus*; see :meth:`IsiReader.read`."""
    return load_isi_files([path], corpus, short_names, strict)
