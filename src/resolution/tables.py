"""tables.py
Auxiliary lookup tables consumed by the citation resolver.

The tables are plain files maintained by hand next to the exports:

* short names: ``SHORT<TAB>LONG`` (abbreviated source name -> full name);
* error fixes: ``CITATION<TAB>KEY=VALUE[<TAB>KEY=VALUE...]``;
* ignored references: one citation per line;
* additional references: ``CITING<TAB>CITED`` (DOIs or bibtex keys).

They are loaded once by :func:`load_resolver_tables` and handed to the
resolver as a single :class:`ResolverTables` object.
"""

from __future__ import annotations

import csv
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import pandas as pd

from src.biblio.errors import IdentityConflictError, MalformedRecordError
from src.common.text import normalize

logger = logging.getLogger(__name__)

# keys accepted in the error fixes file
FIX_KEYS = ("TI", "AU", "DI", "IS", "VL", "PY", "AR", "SO", "JT", "BK")


def source_key(name: str | None) -> str | None:
    """Normalized source name without dots, used on both sides of the short-name table."""
    result = normalize(name)
    if result is None:
        return None
    result = result.replace(".", "")
    return re.sub(r"\s+", " ", result).strip()


def citation_key(citation: str) -> str:
    """Key under which a citation is looked up in the fixes and ignored tables."""
    return re.sub(r"\s+", " ", normalize(citation))


class ShortNameTable:
    """Abbreviated source names (``J SOC COMPUT``) mapped to full names."""

    def __init__(self, names: dict[str, str] | None = None) -> None:
        self._names: dict[str, str] = {}
        for short, long in (names or {}).items():
            self.register(short, long)

    def get(self, short_name: str | None) -> str | None:
        if short_name is None:
            return None
        return self._names.get(source_key(short_name))

    def register(self, short_name: str, long_name: str) -> None:
        """Add a mapping.

        The short name is looked up in normalized form; the long name is kept
        as first registered, since it ends up in placeholder records.

        Raises:
            IdentityConflictError: If *short_name* already maps to another name.
        """
        short = source_key(short_name)
        if not short or not source_key(long_name):
            return
        long = long_name.strip()
        existing = self._names.get(short)
        if existing is not None:
            if source_key(existing) != source_key(long):
                raise IdentityConflictError(
                    f'Found two different long names ("{long}" vs. "{existing}") '
                    f'for the same short name ("{short}")'
                )
            return
        self._names[short] = long

    def save(self, path: Path) -> None:
        df = pd.DataFrame(sorted(self._names.items()), columns=["short", "long"])
        df.to_csv(path, sep="\t", header=False, index=False, quoting=csv.QUOTE_NONE)
        logger.info("Recorded %d short names in %s", len(df), path)

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, short_name: object) -> bool:
        return isinstance(short_name, str) and source_key(short_name) in self._names


@dataclass
class ResolverTables:
    """Everything the resolver needs besides the corpus."""

    short_names: ShortNameTable = field(default_factory=ShortNameTable)
    error_fixes: dict[str, dict[str, str]] = field(default_factory=dict)
    ignored_refs: set[str] = field(default_factory=set)
    additional_refs: list[tuple[str, str]] = field(default_factory=list)

    def fixes_for(self, citation: str) -> dict[str, str]:
        return self.error_fixes.get(citation_key(citation), {})

    def is_ignored(self, citation: str) -> bool:
        return citation_key(citation) in self.ignored_refs


def _read_two_columns(path: Path, names: list[str]) -> pd.DataFrame:
    if path.stat().st_size == 0:
        return pd.DataFrame(columns=names)
    return pd.read_csv(
        path,
        sep="\t",
        header=None,
        names=names,
        dtype=str,
        keep_default_na=False,
        quoting=csv.QUOTE_NONE,
        encoding="utf-8",
    )


def load_short_names(path: Path) -> ShortNameTable:
    df = _read_two_columns(path, ["short", "long"])
    table = ShortNameTable()
    for short, long in zip(df["short"], df["long"]):
        table.register(short, long)
    logger.info("Loaded %d short names from %s", len(table), path)
    return table


def parse_fix_line(line: str) -> tuple[str, dict[str, str]]:
    """Split one error fixes line into its citation key and its corrections."""
    columns = [col.strip() for col in line.rstrip("\n").split("\t")]
    citation, fields = columns[0], columns[1:]
    if not fields:
        raise MalformedRecordError(f"No correction given for reference \"{citation}\"")
    fixes: dict[str, str] = {}
    for item in fields:
        key, sep, value = item.partition("=")
        key = key.strip().upper()
        if not sep or key not in FIX_KEYS:
            raise MalformedRecordError(f"Unknown correction \"{item}\" for reference \"{citation}\"")
        fixes[key] = value.strip()
    return citation_key(citation), fixes


def load_error_fixes(path: Path) -> dict[str, dict[str, str]]:
    result: dict[str, dict[str, str]] = {}
    for line in path.read_text(encoding="utf-8").splitlines():
        if not line.strip():
            continue
        key, fixes = parse_fix_line(line)
        result[key] = fixes
    logger.info("Loaded %d error fixes from %s", len(result), path)
    return result


def load_ignored_refs(path: Path) -> set[str]:
    result = {
        citation_key(line)
        for line in path.read_text(encoding="utf-8").splitlines()
        if line.strip()
    }
    logger.info("Loaded %d ignored references from %s", len(result), path)
    return result


def load_additional_refs(path: Path) -> list[tuple[str, str]]:
    df = _read_two_columns(path, ["citing", "cited"])
    result = [(citing.strip(), cited.strip()) for citing, cited in zip(df["citing"], df["cited"])]
    logger.info("Loaded %d additional references from %s", len(result), path)
    return result


def load_resolver_tables(
    short_names_file: Optional[Path] = None,
    error_fixes_file: Optional[Path] = None,
    ignored_refs_file: Optional[Path] = None,
    additional_refs_file: Optional[Path] = None,
) -> ResolverTables:
    """Load the auxiliary files that exist; missing ones give empty tables."""
    tables = ResolverTables()
    if short_names_file is not None and short_names_file.exists():
        tables.short_names = load_short_names(short_names_file)
    if error_fixes_file is not None and error_fixes_file.exists():
        tables.error_fixes = load_error_fixes(error_fixes_file)
    if ignored_refs_file is not None and ignored_refs_file.exists():
        tables.ignored_refs = load_ignored_refs(ignored_refs_file)
    if additional_refs_file is not None and additional_refs_file.exists():
        tables.additional_refs = load_additional_refs(additional_refs_file)
    return tables
