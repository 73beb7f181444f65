"""
------------------------------------------------------------------------------
Project:        ParaFlux
File:           paraflux/linker/__init__.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Semantic link graph: candidate scoring, AI filtering, Related
                Notes sections, removal feedback and folder relations.
------------------------------------------------------------------------------
"""

from .folder_relations import FolderRelationAnalyzer
from .semantic_linker import SemanticLinker
from .state_detector import LinkStateDetector
from .stores import FolderRelationStore, LinkFeedbackStore

__all__ = [
    "FolderRelationAnalyzer",
    "FolderRelationStore",
    "LinkFeedbackStore",
    "LinkStateDetector",
    "SemanticLinker",
]
