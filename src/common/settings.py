"""Settings shared by the loaders, the resolver and the pipeline.

All values are sourced from environment variables (or a ``.env`` file loaded at
import time). CLI options default to them.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings
from pydantic import Field
from dotenv import load_dotenv

load_dotenv(override=True)


class Settings(BaseSettings):
    """Reconciliation pipeline configuration.

    Fields
    ------
    bib_file
        JabRef/BibTeX export holding the fully described articles.
    isi_files
        Web of Science (CIW) exports, or folders of exports, whose reference
        lists are resolved. Records of all files are read as one stream.
    short_names_file
        Tab-separated table of abbreviated source names to long names.
    error_fixes_file
        Manual corrections for citations that cannot be resolved as written.
    ignored_refs_file
        Citations to skip entirely, one per line.
    additional_refs_file
        Extra ``citing<TAB>cited`` pairs (DOIs or bibtex keys) linked after
        automatic resolution.
    output_dir
        Folder receiving the merged BibTeX file, graphs and reports.
    strict_resolution
        If *true*, an unresolved citation aborts the run instead of creating
        a placeholder article.
    ignored_groups
        JabRef groups whose members are flagged as ignored.
    save_short_names
        If *true*, short names learned from the CIW file are written back to
        ``short_names_file``.
    log_level
        Root logger level used by the CLI.
    """

    bib_file: Path = Field(Path("data/bibtex/corpus.bib"), env="BIB_FILE")
    isi_files: list[Path] = Field([], env="ISI_FILES")

    short_names_file: Optional[Path] = Field(None, env="SHORT_NAMES_FILE")
    error_fixes_file: Optional[Path] = Field(None, env="ERROR_FIXES_FILE")
    ignored_refs_file: Optional[Path] = Field(None, env="IGNORED_REFS_FILE")
    additional_refs_file: Optional[Path] = Field(None, env="ADDITIONAL_REFS_FILE")

    output_dir: Path = Field(Path("out"), env="OUTPUT_DIR")
    strict_resolution: bool = Field(False, env="STRICT_RESOLUTION")
    ignored_groups: list[str] = Field(["Ignored", "Applications Only"], env="IGNORED_GROUPS")
    save_short_names: bool = Field(False, env="SAVE_SHORT_NAMES")

    log_level: str = Field("INFO", env="LOG_LEVEL")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
