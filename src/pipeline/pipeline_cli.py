"""pipeline_cli.py
Command-line entry point for the BibTeX / Web of Science reconciliation.

This module only handles CLI parsing and delegates all heavy lifting to
:pyfunc:`src.pipeline.pipeline.run_pipeline`. Every option defaults to the
value configured in the environment (or ``.env``).

    python -m src.pipeline.pipeline_cli --bib-file corpus.bib --isi-files savedrecs1.txt savedrecs2.txt
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from src.common.settings import settings
from src.graphs.builders import BUILDERS
from src.graphs.settings import settings as graph_settings
from src.pipeline.pipeline import run_pipeline


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Merge a JabRef file with a Web of Science export and extract citation graphs.",
    )
    parser.add_argument(
        "--bib-file", type=Path, default=settings.bib_file, help="Path to the JabRef .bib file"
    )
    parser.add_argument(
        "--isi-files",
        "--isi-file",
        nargs="+",
        type=Path,
        default=settings.isi_files,
        help="Web of Science exports, or folders holding them",
    )
    parser.add_argument(
        "--output-dir", type=Path, default=settings.output_dir, help="Folder receiving the outputs"
    )
    parser.add_argument(
        "--short-names", type=Path, default=settings.short_names_file, help="Short source names table"
    )
    parser.add_argument(
        "--error-fixes", type=Path, default=settings.error_fixes_file, help="Manual reference corrections"
    )
    parser.add_argument(
        "--ignored-refs", type=Path, default=settings.ignored_refs_file, help="References to skip"
    )
    parser.add_argument(
        "--additional-refs",
        type=Path,
        default=settings.additional_refs_file,
        help="Extra citing/cited pairs to link",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        default=settings.strict_resolution,
        help="Abort on unresolved references instead of creating placeholders",
    )
    parser.add_argument(
        "--graphs",
        nargs="*",
        choices=sorted(BUILDERS),
        default=graph_settings.graphs,
        help="Graphs to extract",
    )
    parser.add_argument(
        "--save-short-names",
        action="store_true",
        default=settings.save_short_names,
        help="Write the short names learned from the ISI file back to the table",
    )
    parser.add_argument(
        "--log-level", type=str, default=settings.log_level, help="Root logger level"
    )
    return parser.parse_args()


def main() -> None:  # noqa: D401
    """Parse CLI options and launch the pipeline."""

    args = _parse_args()
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    run_pipeline(
        bib_file=args.bib_file,
        output_dir=args.output_dir,
        isi_files=args.isi_files,
        short_names_file=args.short_names,
        error_fixes_file=args.error_fixes,
        ignored_refs_file=args.ignored_refs,
        additional_refs_file=args.additional_refs,
        strict=args.strict,
        ignored_groups=settings.ignored_groups,
        graph_names=args.graphs,
        pagerank_alpha=graph_settings.pagerank_alpha,
        save_short_names=args.save_short_names,
    )


if __name__ == "__main__":
    main()
