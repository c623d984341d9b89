"""count_citations.py
Count how many times each BibTeX key is cited in a LaTeX document.

Every ``\\cite``-like command (``\\cite``, ``\\citep``, ``\\citeauthor``...)
is read, keys of multi-key commands counted separately. The counts are
recorded as a tab-separated ``key<TAB>count`` file sorted by key; keys cited
only once are logged.

    python -m src.pipeline.count_citations article.tex counts.txt
"""

from __future__ import annotations

import argparse
import csv
import logging
import re
from collections import Counter
from pathlib import Path

import pandas as pd

logger = logging.getLogger(__name__)

# optional argument ("\cite[p. 3]{key}") is skipped
CITE_PATTERN = re.compile(r"\\cite\w*\*?(?:\[[^\]]*\])*\{([^}]*)\}")


def count_citations(text: str) -> Counter:
    counts: Counter = Counter()
    for match in CITE_PATTERN.finditer(text):
        for key in match.group(1).split(","):
            key = key.strip()
            if key:
                counts[key] += 1
    return counts


def write_counts(counts: Counter, path: Path) -> None:
    df = pd.DataFrame(sorted(counts.items()), columns=["key", "count"])
    df.to_csv(path, sep="\t", header=False, index=False, quoting=csv.QUOTE_NONE)
    logger.info("Recorded %d cited keys in %s", len(df), path)


def count_file(tex_file: Path, output_file: Path) -> Counter:
    logger.info('Counting BibTeX keys in file "%s"', tex_file)
    counts = count_citations(Path(tex_file).read_text(encoding="utf-8"))
    write_counts(counts, output_file)
    singles = sorted(key for key, count in counts.items() if count == 1)
    if singles:
        logger.info("Keys appearing only once: %s", ", ".join(singles))
    return counts


def main() -> None:
    parser = argparse.ArgumentParser(description="Count the BibTeX keys cited in a LaTeX file.")
    parser.add_argument("tex_file", type=Path, help="LaTeX source")
    parser.add_argument("output", type=Path, help="Where to record the key counts")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    count_file(args.tex_file, args.output)


if __name__ == "__main__":
    main()
