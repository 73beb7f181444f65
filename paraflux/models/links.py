"""
------------------------------------------------------------------------------
Project:        ParaFlux
File:           paraflux/models/links.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Data models for the semantic link graph. Dataclasses for the
                in-memory note index and candidates; pydantic models for the
                JSON documents persisted below <vault>/.meta/.
------------------------------------------------------------------------------
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from paraflux.models.types import FolderRelationType, ParaCategory, RelationType


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


@dataclass
class NoteInfo:
    """One archived note as seen by the link graph."""
    name: str
    path: Path
    folder_name: str
    folder_rel_path: str  # e.g. "2_Area/DevOps"
    category: ParaCategory
    tags: List[str] = field(default_factory=list)
    summary: str = ""
    project: Optional[str] = None
    existing_related: Set[str] = field(default_factory=set)

    @property
    def tag_set(self) -> Set[str]:
        return {t.lower() for t in self.tags}


@dataclass
class LinkCandidate:
    """Scored link proposal, recomputed on every run."""
    name: str
    summary: str
    tags: List[str]
    score: float
    folder_rel_path: str = ""


@dataclass(frozen=True)
class RelatedLink:
    name: str
    context: str
    relation: Optional[RelationType] = None

    @property
    def effective_relation(self) -> RelationType:
        return self.relation or RelationType.RELATED


@dataclass
class LinkResult:
    tags_normalized: int = 0
    notes_linked: int = 0
    links_created: int = 0
    removals_detected: int = 0
    cancelled: bool = False


class _StoreModel(BaseModel):
    """JSON documents use camelCase keys on disk."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class FolderRelation(_StoreModel):
    source: str
    target: str
    type: FolderRelationType
    hint: Optional[str] = None
    relation_type: Optional[str] = None
    origin: str = "manual"  # explore | manual | detected
    created: str = Field(default_factory=utc_timestamp)

    def matches(self, a: str, b: str) -> bool:
        return (self.source == a and self.target == b) or (self.source == b and self.target == a)


class FolderRelations(_StoreModel):
    version: int = 1
    updated: str = Field(default_factory=utc_timestamp)
    relations: List[FolderRelation] = Field(default_factory=list)


class LinkFeedbackEntry(_StoreModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore", frozen=True)

    date: str = Field(default_factory=utc_timestamp)
    source_note: str
    target_note: str
    source_folder: str = ""
    target_folder: str = ""
    action: str = "removed"


class LinkFeedback(_StoreModel):
    version: int = 1
    entries: List[LinkFeedbackEntry] = Field(default_factory=list)


class LinkSnapshot(_StoreModel):
    """note name -> sorted names linked from its Related Notes section"""
    note_links: Dict[str, List[str]] = Field(default_factory=dict)

    @field_validator("note_links")
    @classmethod
    def _sorted_targets(cls, value: Dict[str, List[str]]) -> Dict[str, List[str]]:
        return {k: sorted(set(v)) for k, v in value.items()}

    def links_for(self, note: str) -> Set[str]:
        return set(self.note_links.get(note, []))


@dataclass
class FolderPairCandidate:
    """Aggregate statistics for one folder pair, optionally AI-scored."""
    folder_a: str
    folder_b: str
    category_a: Optional[ParaCategory]
    category_b: Optional[ParaCategory]
    note_count_a: int = 0
    note_count_b: int = 0
    existing_links: int = 0
    shared_tags: int = 0
    top_shared_tags: List[str] = field(default_factory=list)
    hint: str = ""
    relation_type: str = ""
    confidence: float = 0.0
    removal_count: int = 0
    proposed: Optional[FolderRelationType] = None

    @property
    def score(self) -> int:
        return self.existing_links * 3 + self.shared_tags
