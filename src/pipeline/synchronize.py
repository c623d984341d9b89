"""synchronize.py
Complete a selection BibTeX file with the records of a master file.

Every key of the selection must exist in the master with the same
normalized title; the selection record is then filled with the master's
fields and the result recorded as a new file.

    python -m src.pipeline.synchronize master.bib selection.bib updated.bib
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from tqdm import tqdm

from src.biblio.corpus import Corpus
from src.biblio.errors import IdentityConflictError, UnresolvedReferenceError
from src.inout.bibtex_handler import load_bibtex_file, write_bibtex_file

logger = logging.getLogger(__name__)


def synchronize_corpora(master: Corpus, selection: Corpus) -> int:
    """Complete every article of *selection* with its namesake in *master*.

    Returns:
        Number of articles processed.

    Raises:
        UnresolvedReferenceError: A selection key is missing from the master.
        IdentityConflictError: Same key, different normalized titles.
    """
    count = 0
    for article in tqdm(sorted(selection), desc="Synchronizing", unit="article"):
        original = master.get_article(article.bibtex_key)
        if original is None:
            raise UnresolvedReferenceError(
                article.bibtex_key, f'Article "{article.bibtex_key}" not found in the master file'
            )
        if original.norm_title != article.norm_title:
            raise IdentityConflictError(f"Incompatible articles:\n{original}\n{article}")
        selection.complete_article(article, original)
        count += 1
    logger.info("Synchronized %d articles", count)
    return count


def synchronize_files(master_file: Path, selection_file: Path, output_file: Path) -> int:
    master = load_bibtex_file(master_file).corpus
    selection = load_bibtex_file(selection_file)
    count = synchronize_corpora(master, selection.corpus)
    write_bibtex_file(selection.corpus, output_file, selection.jabref_commands)
    return count


def main() -> None:
    parser = argparse.ArgumentParser(description="Complete a BibTeX selection from a master BibTeX file.")
    parser.add_argument("master", type=Path, help="Complete BibTeX file")
    parser.add_argument("selection", type=Path, help="BibTeX file holding a subset of the keys")
    parser.add_argument("output", type=Path, help="Where to record the completed selection")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    synchronize_files(args.master, args.selection, args.output)


if __name__ == "__main__":
    main()
