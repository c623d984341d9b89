"""BibTeX + Web of Science reconciliation pipeline.

Workflow
--------
1. Read the JabRef file given by ``BIB_FILE`` into a fresh corpus; members of
   the ignored JabRef groups are flagged.
2. Load the auxiliary lookup tables (short names, error fixes, ignored and
   additional references).
3. Merge the Web of Science records of every export listed in ``ISI_FILES``
   (folders are expanded to the exports they hold) into the corpus.
4. Resolve every cited reference of those records and link the articles.
5. Link the manually listed additional references.
6. Build the configured graphs, annotate the citation graph with PageRank and
   record everything as GraphML in ``OUTPUT_DIR``.
7. Record the merged corpus as BibTeX and the unresolved references as CSV.

Environment variables are consumed via :pyfile:`src.common.settings` and
:pyfile:`src.graphs.settings`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence

import pandas as pd

from src.biblio.corpus import Corpus
from src.biblio.entities import MissingReference
from src.graphs.builders import build_graphs
from src.graphs.graph import PropertyGraph
from src.graphs.ranking import annotate_pagerank
from src.inout.bibtex_handler import load_bibtex_file, write_bibtex_file
from src.inout.isi_handler import load_isi_files
from src.resolution.resolver import CitationResolver
from src.resolution.tables import load_resolver_tables

logger = logging.getLogger(__name__)

MERGED_BIB_NAME = "merged.bib"
MISSING_NAME = "missing.csv"


@dataclass
class PipelineResult:
    """What one run produced, for callers that want more than the files."""

    corpus: Corpus
    graphs: dict[str, PropertyGraph] = field(default_factory=dict)
    missing: list[MissingReference] = field(default_factory=list)
    links: int = 0


def write_missing_report(missing: Sequence[MissingReference], path: Path) -> None:
    """Record the placeholder articles and the references that created them."""
    df = pd.DataFrame(list(missing), columns=["citation", "bibtex_key", "citing_key"])
    df.to_csv(path, index=False, encoding="utf-8")
    logger.info("Recorded %d unresolved references in %s", len(df), path)


def run_pipeline(
    bib_file: Path,
    output_dir: Path,
    isi_files: Sequence[Path] = (),
    short_names_file: Optional[Path] = None,
    error_fixes_file: Optional[Path] = None,
    ignored_refs_file: Optional[Path] = None,
    additional_refs_file: Optional[Path] = None,
    strict: bool = False,
    ignored_groups: Sequence[str] = (),
    graph_names: Sequence[str] = (),
    pagerank_alpha: float = 0.85,
    save_short_names: bool = False,
) -> PipelineResult:
    """Run the whole reconciliation; see the module docstring for the steps.

    Raises:
        BiblioError: Any malformed record, identity conflict or (in strict
            mode) unresolved reference aborts the run.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    bib = load_bibtex_file(bib_file, ignored_groups)
    corpus = bib.corpus

    tables = load_resolver_tables(
        short_names_file=short_names_file,
        error_fixes_file=error_fixes_file,
        ignored_refs_file=ignored_refs_file,
        additional_refs_file=additional_refs_file,
    )
    resolver = CitationResolver(corpus, tables, strict=strict)

    links = 0
    if isi_files:
        references = load_isi_files(isi_files, corpus, tables.short_names, strict=strict)
        links = resolver.resolve_all(references)
    else:
        logger.info("No ISI export given, skipping reference resolution")
    links += resolver.apply_additional_refs()

    if save_short_names and short_names_file is not None:
        tables.short_names.save(short_names_file)

    graphs = build_graphs(corpus, graph_names)
    if "article_citation" in graphs:
        annotate_pagerank(graphs["article_citation"], alpha=pagerank_alpha)
    for name, graph in graphs.items():
        graph.write_graphml(output_dir / f"{name}.graphml")

    write_bibtex_file(corpus, output_dir / MERGED_BIB_NAME, bib.jabref_commands)
    write_missing_report(resolver.missing, output_dir / MISSING_NAME)

    logger.info(
        "Pipeline completed: %d articles, %d authors, %d citation links, %d placeholders",
        len(corpus),
        len(corpus.authors),
        links,
        len(resolver.missing),
    )
    return PipelineResult(corpus=corpus, graphs=graphs, missing=list(resolver.missing), links=links)
