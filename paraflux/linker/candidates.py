"""
------------------------------------------------------------------------------
Project:        ParaFlux
File:           paraflux/linker/candidates.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Scores link candidates for a note from tag overlap, shared
                index-note groups, shared project and folder relations.
                Reverse indices keep the scan away from O(n^2) scoring.
------------------------------------------------------------------------------
"""

from typing import Dict, List, Optional, Set

from paraflux.linker.context_map import ContextMap
from paraflux.linker.stores import pair_key
from paraflux.models.links import LinkCandidate, NoteInfo

TAG_WEIGHT = 1.5
MIN_TAG_OVERLAP = 2
GROUP_WEIGHT = 1.0
PROJECT_BONUS = 2.0
BOOST_BONUS = 2.0
MIN_SCORE = 3.0


class LinkCandidateGenerator:
    """
    Prepared once per run for the full note list; `generate()` is then
    called per note.
    """

    def __init__(
        self,
        notes: List[NoteInfo],
        context_map: Optional[ContextMap] = None,
        boost_keys: Optional[Set[str]] = None,
        suppress_keys: Optional[Set[str]] = None,
        group_weight: float = GROUP_WEIGHT,
    ) -> None:
        self.notes = notes
        self.boost_keys = boost_keys or set()
        self.suppress_keys = suppress_keys or set()
        self.group_weight = group_weight
        self.groups: Dict[str, Set[str]] = context_map.groups_by_note() if context_map else {}

        self._tag_index: Dict[str, List[int]] = {}
        self._project_index: Dict[str, List[int]] = {}
        self._group_index: Dict[str, List[int]] = {}
        self._folder_index: Dict[str, List[int]] = {}
        for i, note in enumerate(notes):
            for tag in note.tag_set:
                self._tag_index.setdefault(tag, []).append(i)
            if note.project:
                self._project_index.setdefault(note.project.lower(), []).append(i)
            for group in self.groups.get(note.name, ()):
                self._group_index.setdefault(group, []).append(i)
            self._folder_index.setdefault(note.folder_rel_path, []).append(i)

    def _boosted_folders(self, folder: str) -> Set[str]:
        boosted = set()
        for key in self.boost_keys:
            a, _, b = key.partition("|")
            if a == folder:
                boosted.add(b)
            elif b == folder:
                boosted.add(a)
        return boosted

    def _collect(self, note: NoteInfo) -> Set[int]:
        indices: Set[int] = set()
        for tag in note.tag_set:
            indices.update(self._tag_index.get(tag, ()))
        if note.project:
            indices.update(self._project_index.get(note.project.lower(), ()))
        for group in self.groups.get(note.name, ()):
            indices.update(self._group_index.get(group, ()))
        for folder in self._boosted_folders(note.folder_rel_path):
            indices.update(self._folder_index.get(folder, ()))
        return indices

    def score(self, note: NoteInfo, other: NoteInfo) -> float:
        """Raw score of a pair; 0 when the pair is suppressed."""
        key = pair_key(note.folder_rel_path, other.folder_rel_path)
        if key in self.suppress_keys:
            return 0.0

        score = 0.0
        overlap = len(note.tag_set & other.tag_set)
        if overlap >= MIN_TAG_OVERLAP:
            score += overlap * TAG_WEIGHT

        shared_groups = self.groups.get(note.name, set()) & self.groups.get(other.name, set())
        score += len(shared_groups) * self.group_weight

        if note.project and other.project and note.project.lower() == other.project.lower():
            score += PROJECT_BONUS

        if key in self.boost_keys:
            score += BOOST_BONUS
        return score

    def generate(self, note: NoteInfo) -> List[LinkCandidate]:
        """Candidates scoring at least MIN_SCORE, best first."""
        candidates: List[LinkCandidate] = []
        for idx in self._collect(note):
            other = self.notes[idx]
            if other.name == note.name or other.name in note.existing_related:
                continue
            score = self.score(note, other)
            if score < MIN_SCORE:
                continue
            candidates.append(LinkCandidate(
                name=other.name,
                summary=other.summary,
                tags=list(other.tags),
                score=score,
                folder_rel_path=other.folder_rel_path,
            ))
        candidates.sort(key=lambda c: (-c.score, c.name))

        # notes sharing a name in different folders collapse to the best one
        seen: Set[str] = set()
        unique = []
        for candidate in candidates:
            if candidate.name not in seen:
                seen.add(candidate.name)
                unique.append(candidate)
        return unique
