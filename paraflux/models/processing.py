"""
------------------------------------------------------------------------------
Project:        ParaFlux
File:           paraflux/models/processing.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Result records of an inbox run: one ProcessingOutcome per
                filed file and one PendingDecision per file that needs the
                user's confirmation.
------------------------------------------------------------------------------
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from paraflux.models.classification import ClassificationResult
from paraflux.models.types import OutcomeKind, ParaCategory, PendingReason


@dataclass(frozen=True)
class OutcomeStatus:
    """Terminal state of a file, with the variant's payload in `detail`."""
    kind: OutcomeKind
    detail: str = ""

    @classmethod
    def success(cls) -> "OutcomeStatus":
        return cls(OutcomeKind.SUCCESS)

    @classmethod
    def relocated(cls, from_path: str) -> "OutcomeStatus":
        return cls(OutcomeKind.RELOCATED, from_path)

    @classmethod
    def skipped(cls, reason: str) -> "OutcomeStatus":
        return cls(OutcomeKind.SKIPPED, reason)

    @classmethod
    def deleted(cls) -> "OutcomeStatus":
        return cls(OutcomeKind.DELETED)

    @classmethod
    def deduplicated(cls, target: str) -> "OutcomeStatus":
        return cls(OutcomeKind.DEDUPLICATED, target)

    @classmethod
    def error(cls, message: str) -> "OutcomeStatus":
        return cls(OutcomeKind.ERROR, message)


@dataclass(frozen=True)
class ProcessingOutcome:
    file_name: str
    category: Optional[ParaCategory]
    target_path: str
    tags: Tuple[str, ...] = ()
    status: OutcomeStatus = field(default_factory=OutcomeStatus.success)

    @property
    def is_success(self) -> bool:
        return self.status.kind in (OutcomeKind.SUCCESS, OutcomeKind.RELOCATED, OutcomeKind.DEDUPLICATED)

    @property
    def is_error(self) -> bool:
        return self.status.kind == OutcomeKind.ERROR

    @property
    def display_target(self) -> str:
        """Target path shortened to the last two components."""
        parts = Path(self.target_path).parts
        return "/".join(parts[-2:]) if parts else ""

    @classmethod
    def failed(cls, file_name: str, message: str) -> "ProcessingOutcome":
        return cls(file_name=file_name, category=None, target_path="", status=OutcomeStatus.error(message))


@dataclass
class PendingDecision:
    """
    A file the pipeline refused to file on its own. The first entry of
    `options` is the classifier's own proposal.
    """
    file_name: str
    file_path: Path
    content: str
    options: List[ClassificationResult]
    reason: PendingReason
    suggested_project: Optional[str] = None

    @property
    def proposal(self) -> Optional[ClassificationResult]:
        return self.options[0] if self.options else None


@dataclass
class InboxRunResult:
    outcomes: List[ProcessingOutcome] = field(default_factory=list)
    pending: List[PendingDecision] = field(default_factory=list)
    total: int = 0
    cancelled: bool = False

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if o.is_error)

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.is_success)
