"""
------------------------------------------------------------------------------
Project:        ParaFlux
File:           paraflux/models/classification.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Immutable classifier records. A ClassificationResult is created
                once by the classifier and consumed once by the organizer.
------------------------------------------------------------------------------
"""

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional, Tuple

from paraflux.models.types import ParaCategory

PREVIEW_LENGTH = 800


@dataclass(frozen=True)
class ClassificationResult:
    """
    Filing decision for a single file.

    `project` only ever holds the name of an existing project folder. A
    project name the model invented without a matching folder is kept in
    `suggested_project` so the caller can ask the user.
    """
    category: ParaCategory
    tags: Tuple[str, ...] = ()
    summary: str = ""
    target_folder: str = ""
    project: Optional[str] = None
    confidence: float = 0.0
    suggested_project: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "tags", tuple(self.tags))
        object.__setattr__(self, "confidence", min(1.0, max(0.0, float(self.confidence))))

    @classmethod
    def default(cls) -> "ClassificationResult":
        """Safe fallback when no model produced a usable answer."""
        return cls(category=ParaCategory.RESOURCE, confidence=0.0)

    def with_category(self, category: ParaCategory) -> "ClassificationResult":
        return replace(self, category=category)

    @property
    def needs_project_confirmation(self) -> bool:
        return self.category == ParaCategory.PROJECT and bool(self.suggested_project) and not self.project


@dataclass
class ClassifyInput:
    """Extracted content of one staging file, ready for the classifier."""
    file_path: Path
    content: str
    file_name: str = ""
    preview: str = field(default="")

    def __post_init__(self) -> None:
        self.file_path = Path(self.file_path)
        if not self.file_name:
            self.file_name = self.file_path.name
        if not self.preview:
            self.preview = self.content[:PREVIEW_LENGTH]
