"""
------------------------------------------------------------------------------
Project:        ParaFlux
File:           paraflux/models/types.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Centralized enumeration and type definitions for the PARA
                taxonomy, note metadata and link relations.
------------------------------------------------------------------------------
"""

import re
from enum import Enum
from pathlib import Path
from typing import Optional, Union


class ParaCategory(str, Enum):
    """The four PARA filing categories."""
    PROJECT = "project"
    AREA = "area"
    RESOURCE = "resource"
    ARCHIVE = "archive"

    @property
    def folder_name(self) -> str:
        return _FOLDER_NAMES[self]

    @property
    def short_name(self) -> str:
        """Folder name without the numeric prefix ('Area')."""
        return self.folder_name.split("_", 1)[1]

    @classmethod
    def from_token(cls, token: Optional[str]) -> Optional["ParaCategory"]:
        """Parses an AI or frontmatter token ('area', '2_Area', 'Area')."""
        if not token:
            return None
        value = str(token).strip().lower()
        for cat in cls:
            if value in (cat.value, cat.folder_name.lower(), cat.short_name.lower()):
                return cat
        return None

    @classmethod
    def from_folder_prefix(cls, name: str) -> Optional["ParaCategory"]:
        """Maps '1_Project', '2_Area/...' style names to a category."""
        match = re.match(r"^([1-4])_", name or "")
        if not match:
            return None
        return list(cls)[int(match.group(1)) - 1]

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> Optional["ParaCategory"]:
        """Finds the first category folder among the path components."""
        for part in Path(path).parts:
            cat = cls.from_folder_prefix(part)
            if cat is not None and part.lower() == cat.folder_name.lower():
                return cat
        return None


_FOLDER_NAMES = {
    ParaCategory.PROJECT: "1_Project",
    ParaCategory.AREA: "2_Area",
    ParaCategory.RESOURCE: "3_Resource",
    ParaCategory.ARCHIVE: "4_Archive",
}


class NoteStatus(str, Enum):
    ACTIVE = "active"
    DRAFT = "draft"
    COMPLETED = "completed"
    ON_HOLD = "on-hold"


class NoteSource(str, Enum):
    ORIGINAL = "original"
    MEETING = "meeting"
    LITERATURE = "literature"
    IMPORT = "import"


class RelationType(str, Enum):
    """Semantic relation between two linked notes."""
    PREREQUISITE = "prerequisite"
    PROJECT = "project"
    REFERENCE = "reference"
    RELATED = "related"

    @classmethod
    def parse(cls, value: Optional[str]) -> "RelationType":
        """Unknown model output collapses to RELATED."""
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.RELATED

    @classmethod
    def from_label(cls, label: str) -> Optional["RelationType"]:
        wanted = label.strip().lower()
        for rel in cls:
            if rel.label.lower() == wanted or rel.value == wanted:
                return rel
        return None

    @property
    def label(self) -> str:
        """Sub-heading used in a grouped Related Notes section."""
        return _RELATION_LABELS[self]

    @property
    def reverse_context(self) -> str:
        """Context phrase written on the target side of a link."""
        return _REVERSE_CONTEXTS[self]


_RELATION_LABELS = {
    RelationType.PREREQUISITE: "Prerequisites",
    RelationType.PROJECT: "Project",
    RelationType.REFERENCE: "References",
    RelationType.RELATED: "Related",
}

_REVERSE_CONTEXTS = {
    RelationType.PREREQUISITE: "Builds on this note as background knowledge",
    RelationType.PROJECT: "Project that makes use of this material",
    RelationType.REFERENCE: "Cites this note as a reference",
    RelationType.RELATED: "Covers a related topic",
}


class PendingReason(str, Enum):
    """Why a file was routed to user confirmation instead of being filed."""
    LOW_CONFIDENCE = "low-confidence"
    INDEX_NAME_COLLISION = "index-name-collision"
    EXISTING_FILE_COLLISION = "existing-file-collision"
    MISCLASSIFIED_PLACEMENT = "misclassified-placement"
    UNMATCHED_PROJECT = "unmatched-project"


class OutcomeKind(str, Enum):
    SUCCESS = "success"
    RELOCATED = "relocated"
    SKIPPED = "skipped"
    DELETED = "deleted"
    DEDUPLICATED = "deduplicated"
    ERROR = "error"


class FolderRelationType(str, Enum):
    BOOST = "boost"
    SUPPRESS = "suppress"
