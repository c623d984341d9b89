"""entities.py
Shared type definitions used across the reconciliation pipeline.
"""

from __future__ import annotations

from enum import Enum
from typing import TypedDict


class SourceType(Enum):
    """Kind of venue an article was published in.

    Each member carries the BibTeX entry type used when writing the record
    and the single descriptive field mirroring the source name, so that a
    source can only ever populate its own field.
    """

    JOURNAL = ("Article", "journal")
    BOOK = ("Book", "publisher")
    IN_BOOK = ("InBook", "booktitle")
    COLLECTION = ("Collection", "publisher")
    IN_COLLECTION = ("InCollection", "booktitle")
    IN_PROCEEDINGS = ("InProceedings", "booktitle")
    ELECTRONIC = ("Electronic", "organization")
    TECH_REPORT = ("TechReport", "institution")
    THESIS_MSC = ("MastersThesis", "school")
    THESIS_PHD = ("PhdThesis", "school")

    def __init__(self, entry_type: str, mirror_field: str) -> None:
        self.entry_type = entry_type
        self.mirror_field = mirror_field

    @classmethod
    def from_entry_type(cls, entry_type: str) -> "SourceType":
        lowered = entry_type.lower()
        for member in cls:
            if member.entry_type.lower() == lowered:
                return member
        raise ValueError(f"Unknown BibTeX entry type: {entry_type}")

    @classmethod
    def from_name(cls, name: str) -> "SourceType":
        """Parse ``journal``, ``in-proceedings``, ``IN_PROCEEDINGS``..."""
        return cls[name.strip().upper().replace("-", "_")]


class IsiRecord(TypedDict, total=False):
    """Raw tagged values of one citation-index record (tag -> lines)."""

    PT: list[str]
    AU: list[str]
    TI: list[str]
    SO: list[str]
    AB: list[str]
    CR: list[str]
    J9: list[str]
    PY: list[str]
    VL: list[str]
    IS: list[str]
    BP: list[str]
    EP: list[str]
    AR: list[str]
    DI: list[str]


class MissingReference(TypedDict):
    """A citation for which a placeholder article had to be created."""

    citation: str
    bibtex_key: str
    citing_key: str | None
