"""
------------------------------------------------------------------------------
Project:        ParaFlux
File:           paraflux/models/__init__.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Package initializer for data models. Exports the taxonomy
                enums, classifier records and processing outcomes.
------------------------------------------------------------------------------
"""

from .types import (
    FolderRelationType,
    NoteSource,
    NoteStatus,
    OutcomeKind,
    ParaCategory,
    PendingReason,
    RelationType,
)
from .classification import ClassificationResult, ClassifyInput
from .processing import InboxRunResult, OutcomeStatus, PendingDecision, ProcessingOutcome
