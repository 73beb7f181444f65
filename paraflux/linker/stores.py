"""
------------------------------------------------------------------------------
Project:        ParaFlux
File:           paraflux/linker/stores.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    JSON stores below <vault>/.meta: folder relations (boost /
                suppress pairs) and the capped log of user link removals.
                Missing or corrupt files read as empty documents.
------------------------------------------------------------------------------
"""

from collections import Counter
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set

from pydantic import ValidationError

from paraflux.logger import get_logger
from paraflux.models.links import (
    FolderRelation,
    FolderRelations,
    LinkFeedback,
    LinkFeedbackEntry,
    utc_timestamp,
)
from paraflux.models.types import FolderRelationType
from paraflux.utils.fileio import atomic_write_json, read_json
from paraflux.vault import VaultLayout

logger = get_logger("linker.stores")

FOLDER_RELATIONS_FILE = "folder-relations.json"
LINK_FEEDBACK_FILE = "link-feedback.json"


def pair_key(a: str, b: str) -> str:
    """Order independent key of a folder pair."""
    return f"{a}|{b}" if a < b else f"{b}|{a}"


class FolderRelationStore:
    """
    Folder pair relations. Every query is bidirectional: (A, B) and (B, A)
    address the same relation.
    """

    def __init__(self, layout: VaultLayout) -> None:
        self.path: Path = layout.meta_path / FOLDER_RELATIONS_FILE

    pair_key = staticmethod(pair_key)

    def load(self) -> FolderRelations:
        data = read_json(self.path)
        if data is None:
            return FolderRelations()
        try:
            return FolderRelations.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Ignoring invalid {self.path.name}: {e.error_count()} errors")
            return FolderRelations()

    def save(self, relations: FolderRelations) -> None:
        atomic_write_json(self.path, relations.model_dump(mode="json", by_alias=True))

    def _find(self, a: str, b: str) -> Optional[FolderRelation]:
        return next((r for r in self.load().relations if r.matches(a, b)), None)

    # --- CRUD ---

    def add(self, relation: FolderRelation) -> None:
        """Adds a relation, replacing any existing one for the same pair."""
        store = self.load()
        store.relations = [r for r in store.relations if not r.matches(relation.source, relation.target)]
        store.relations.append(relation)
        store.updated = utc_timestamp()
        self.save(store)

    def remove(self, source: str, target: str) -> bool:
        store = self.load()
        kept = [r for r in store.relations if not r.matches(source, target)]
        if len(kept) == len(store.relations):
            return False
        store.relations = kept
        store.updated = utc_timestamp()
        self.save(store)
        return True

    # --- Queries ---

    def relation_type(self, source: str, target: str) -> Optional[FolderRelationType]:
        relation = self._find(source, target)
        return relation.type if relation else None

    def hint(self, source: str, target: str) -> Optional[str]:
        relation = self._find(source, target)
        return relation.hint if relation else None

    def boost_pairs(self) -> List[FolderRelation]:
        return [r for r in self.load().relations if r.type == FolderRelationType.BOOST]

    def boost_pair_keys(self) -> Set[str]:
        return {pair_key(r.source, r.target) for r in self.boost_pairs()}

    def suppress_pairs(self) -> Set[str]:
        return {
            pair_key(r.source, r.target)
            for r in self.load().relations
            if r.type == FolderRelationType.SUPPRESS
        }

    # --- Maintenance ---

    def rename_path(self, old_path: str, new_path: str) -> int:
        store = self.load()
        changed = 0
        for relation in store.relations:
            modified = False
            if relation.source == old_path:
                relation.source = new_path
                modified = True
            if relation.target == old_path:
                relation.target = new_path
                modified = True
            changed += modified
        if changed:
            store.updated = utc_timestamp()
            self.save(store)
        return changed

    def prune_stale(self, existing_folders: Set[str]) -> int:
        """Drops relations whose source or target folder no longer exists."""
        store = self.load()
        kept = [
            r for r in store.relations
            if r.source in existing_folders and r.target in existing_folders
        ]
        pruned = len(store.relations) - len(kept)
        if pruned:
            store.relations = kept
            store.updated = utc_timestamp()
            self.save(store)
            logger.info(f"Pruned {pruned} stale folder relations")
        return pruned


class LinkFeedbackStore:
    """Append-only log of links the user removed, capped FIFO."""

    MAX_ENTRIES: int = 500
    PROMPT_PAIRS: int = 10

    def __init__(self, layout: VaultLayout) -> None:
        self.path: Path = layout.meta_path / LINK_FEEDBACK_FILE

    def load(self) -> LinkFeedback:
        data = read_json(self.path)
        if data is None:
            return LinkFeedback()
        try:
            return LinkFeedback.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Ignoring invalid {self.path.name}: {e.error_count()} errors")
            return LinkFeedback()

    def save(self, feedback: LinkFeedback) -> None:
        atomic_write_json(self.path, feedback.model_dump(mode="json", by_alias=True))

    def record_removal(self, source_note: str, target_note: str, source_folder: str = "", target_folder: str = "") -> None:
        self.record_removals([LinkFeedbackEntry(
            source_note=source_note,
            target_note=target_note,
            source_folder=source_folder,
            target_folder=target_folder,
        )])

    def record_removals(self, entries: Iterable[LinkFeedbackEntry]) -> int:
        entries = list(entries)
        if not entries:
            return 0
        feedback = self.load()
        feedback.entries.extend(entries)
        if len(feedback.entries) > self.MAX_ENTRIES:
            feedback.entries = feedback.entries[-self.MAX_ENTRIES:]
        self.save(feedback)
        logger.info(f"Recorded {len(entries)} link removals")
        return len(entries)

    def removal_counts(self) -> Dict[str, int]:
        """pair_key(source folder, target folder) -> number of removals"""
        counts: Counter = Counter()
        for entry in self.load().entries:
            if entry.action == "removed":
                counts[pair_key(entry.source_folder, entry.target_folder)] += 1
        return dict(counts)

    def build_prompt_context(self) -> str:
        """Soft guidance for the link filter; empty when nothing was removed."""
        counts = self.removal_counts()
        if not counts:
            return ""
        top = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))[:self.PROMPT_PAIRS]
        lines = [f"- {key.replace('|', ' <> ')}: removed {count}x" for key, count in top]
        return (
            "### LINK REMOVALS BY THE USER\n"
            + "\n".join(lines)
            + "\nBe careful when linking notes between these folder pairs."
        )
