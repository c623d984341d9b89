from pathlib import Path

import pytest

from src.biblio.articles import Article
from src.biblio.authors import Author
from src.biblio.corpus import Corpus
from src.biblio.entities import SourceType
from src.inout.bibtex_handler import load_bibtex_text

BIB_TEXT = r"""% Encoding: UTF-8

@Article{Newman2003,
  author    = {Newman, Mark E. J.},
  title     = {The Structure and Function of Complex Networks},
  journal   = {SIAM Review},
  year      = {2003},
  volume    = {45},
  number    = {2},
  pages     = {167--256},
  doi       = {10.1137/S003614450342480},
}

@Article{Smith2001,
  author    = {Smith, John A. and Doe, Jane},
  title     = {Scale-free networks},
  journal   = {Nature},
  year      = {2001},
  volume    = {410},
  pages     = {227--232},
  doi       = {10.1038/35065725},
}

@InProceedings{Doe2005,
  author    = {Doe, Jane and Smith, John A.},
  title     = {Graph Theory},
  booktitle = {10th IEEE International Conference on Data Mining (ICDM 2005)},
  year      = {2005},
  pages     = {66-70},
  owner     = {reviewer},
}

@Comment{jabref-meta: databaseType:bibtex;}

@Comment{jabref-meta: groupstree:
0 AllEntriesGroup:;
1 ExplicitGroup:Ignored\;0\;Doe2005\;;
1 ExplicitGroup:Core\;0\;Newman2003\;Smith2001\;;
}
"""

ISI_TEXT = """FN Clarivate Analytics Web of Science
VR 1.0
PT J
AU Newman, MEJ
TI The structure and function of complex networks
SO SIAM REVIEW
J9 SIAM REV
PY 2003
VL 45
IS 2
BP 167
EP 256
DI 10.1137/S003614450342480
CR Smith JA, 2001, NATURE, V410, P227, DOI 10.1038/35065725
   Doe J, 2005, IEEE INT C DAT MIN, P66
   Unknown A, 1999, J IRREPRODUCIBLE RES, V1, P1
ER

EF
"""

SECOND_ISI_TEXT = """FN Clarivate Analytics Web of Science
VR 1.0
PT J
AU Smith, JA
AU Doe, J
TI Scale-free networks
SO NATURE
J9 NATURE
PY 2001
VL 410
BP 227
EP 232
DI 10.1038/35065725
CR Newman MEJ, 2003, SIAM REV, V45, P167
ER

EF
"""


@pytest.fixture
def bib_text() -> str:
    return BIB_TEXT


@pytest.fixture
def isi_text() -> str:
    return ISI_TEXT


@pytest.fixture
def corpus() -> Corpus:
    return load_bibtex_text(BIB_TEXT, ignored_groups=["Ignored"]).corpus


@pytest.fixture
def bib_file(tmp_path: Path) -> Path:
    path = tmp_path / "corpus.bib"
    path.write_text(BIB_TEXT, encoding="utf-8")
    return path


@pytest.fixture
def isi_file(tmp_path: Path) -> Path:
    path = tmp_path / "savedrecs.txt"
    path.write_text(ISI_TEXT, encoding="utf-8")
    return path


@pytest.fixture
def second_isi_file(tmp_path: Path) -> Path:
    path = tmp_path / "savedrecs(1).txt"
    path.write_text(SECOND_ISI_TEXT, encoding="utf-8")
    return path


def make_article(key: str, *authors: Author, **fields) -> Article:
    """Article with the given authors and plain attribute values (``title`` is normalized)."""
    article = Article(key)
    article.add_authors(authors)
    title = fields.pop("title", None)
    if title is not None:
        article.set_title(title)
    source = fields.pop("journal", None)
    if source is not None:
        article.set_source(SourceType.JOURNAL, source)
    for name, value in fields.items():
        setattr(article, name, value)
    return article


@pytest.fixture
def article_factory():
    return make_article
