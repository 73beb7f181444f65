"""
------------------------------------------------------------------------------
Project:        ParaFlux
File:           paraflux/linker/folder_relations.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    On-demand folder relation analysis. Ranks folder pairs by
                cross links and shared tags, lets the fast model describe
                them and proposes boost or suppress relations.
------------------------------------------------------------------------------
"""

from collections import Counter
from typing import Dict, List, Optional

from pydantic import ValidationError

from paraflux.ai import prompts
from paraflux.ai.parsing import parse_json_payload
from paraflux.linker.note_index import NoteIndex
from paraflux.linker.stores import FolderRelationStore, LinkFeedbackStore, pair_key
from paraflux.logger import get_logger
from paraflux.models.ai_payloads import FolderPairScore
from paraflux.models.links import FolderPairCandidate, FolderRelation, NoteInfo
from paraflux.models.types import FolderRelationType
from paraflux.vault import VaultLayout

logger = get_logger("linker.folders")


class FolderRelationAnalyzer:

    MAX_PAIRS: int = 20
    TOP_SHARED_TAGS: int = 3
    BOOST_CONFIDENCE: float = 0.5
    SUPPRESS_REMOVALS: int = 3
    MIN_CONFIDENCE: float = 0.1
    MAX_TOKENS: int = 4096

    def __init__(self, layout: VaultLayout, ai_service) -> None:
        self.layout = layout
        self.ai_service = ai_service
        self.relation_store = FolderRelationStore(layout)
        self.feedback_store = LinkFeedbackStore(layout)

    def analyze(self, notes: Optional[List[NoteInfo]] = None) -> List[FolderPairCandidate]:
        """
        Returns scored folder pairs without a stored relation, best first.
        Nothing is persisted; see persist().
        """
        if notes is None:
            notes = NoteIndex(self.layout).build()

        folder_notes: Dict[str, List[NoteInfo]] = {}
        for note in notes:
            folder_notes.setdefault(note.folder_rel_path, []).append(note)

        candidates = self.generate_candidates(folder_notes)
        if not candidates:
            return []

        removals = self.feedback_store.removal_counts()
        for candidate in candidates:
            candidate.removal_count = removals.get(pair_key(candidate.folder_a, candidate.folder_b), 0)

        self.score_with_ai(candidates, folder_notes)

        for candidate in candidates:
            if candidate.removal_count >= self.SUPPRESS_REMOVALS:
                candidate.proposed = FolderRelationType.SUPPRESS
            elif candidate.confidence >= self.BOOST_CONFIDENCE:
                candidate.proposed = FolderRelationType.BOOST

        result = [
            c for c in candidates
            if c.confidence > self.MIN_CONFIDENCE or c.proposed == FolderRelationType.SUPPRESS
        ]
        result.sort(key=lambda c: c.confidence, reverse=True)
        logger.info(f"Folder relation analysis: {len(result)} pairs, "
                    f"{sum(1 for c in result if c.proposed)} proposals")
        return result

    def generate_candidates(self, folder_notes: Dict[str, List[NoteInfo]]) -> List[FolderPairCandidate]:
        existing = {pair_key(r.source, r.target) for r in self.relation_store.load().relations}
        folders = sorted(folder_notes)

        candidates: List[FolderPairCandidate] = []
        for i, a in enumerate(folders):
            for b in folders[i + 1:]:
                if pair_key(a, b) in existing:
                    continue
                a_notes, b_notes = folder_notes[a], folder_notes[b]
                a_names = {n.name for n in a_notes}
                b_names = {n.name for n in b_notes}
                links = (sum(len(n.existing_related & b_names) for n in a_notes)
                         + sum(len(n.existing_related & a_names) for n in b_notes))
                a_tags = set().union(*(n.tag_set for n in a_notes))
                b_tags = set().union(*(n.tag_set for n in b_notes))
                shared = a_tags & b_tags

                candidate = FolderPairCandidate(
                    folder_a=a,
                    folder_b=b,
                    category_a=a_notes[0].category,
                    category_b=b_notes[0].category,
                    note_count_a=len(a_notes),
                    note_count_b=len(b_notes),
                    existing_links=links,
                    shared_tags=len(shared),
                    top_shared_tags=sorted(shared)[:self.TOP_SHARED_TAGS],
                )
                if candidate.score > 0:
                    candidates.append(candidate)

        candidates.sort(key=lambda c: c.score, reverse=True)
        return candidates[:self.MAX_PAIRS]

    # --- AI scoring ---

    @staticmethod
    def _top_tags(notes: List[NoteInfo], limit: int = 5) -> List[str]:
        counts = Counter(tag for note in notes for tag in note.tag_set)
        return [tag for tag, _ in counts.most_common(limit)]

    def _describe_pairs(self, candidates: List[FolderPairCandidate], folder_notes: Dict[str, List[NoteInfo]]) -> str:
        blocks = []
        for i, c in enumerate(candidates):
            a_tags = ", ".join(self._top_tags(folder_notes.get(c.folder_a, [])))
            b_tags = ", ".join(self._top_tags(folder_notes.get(c.folder_b, [])))
            cat_a = c.category_a.value if c.category_a else "?"
            cat_b = c.category_b.value if c.category_b else "?"
            blocks.append(
                f"[{i}] {c.folder_a.rsplit('/', 1)[-1]} ({cat_a}, {c.note_count_a} notes, tags: {a_tags})\n"
                f"    <> {c.folder_b.rsplit('/', 1)[-1]} ({cat_b}, {c.note_count_b} notes, tags: {b_tags})\n"
                f"    existing links: {c.existing_links}, shared tags: {', '.join(c.top_shared_tags)}"
            )
        return "\n\n".join(blocks)

    def score_with_ai(self, candidates: List[FolderPairCandidate], folder_notes: Dict[str, List[NoteInfo]]) -> bool:
        """
        Fills hint, relation type and confidence in place. Falls back to a
        heuristic confidence when the model gives no usable answer.
        """
        reply = None
        if self.ai_service is not None and self.ai_service.is_available:
            prompt = prompts.PROMPT_FOLDER_RELATIONS.format(
                pair_descriptions=self._describe_pairs(candidates, folder_notes),
            )
            reply = self.ai_service.send_fast(prompt, max_tokens=self.MAX_TOKENS, stage_label="Folder relations")

        payload = parse_json_payload(reply)
        if not isinstance(payload, list):
            logger.warning("Folder relation analysis without AI, using heuristic confidence")
            for c in candidates:
                c.confidence = min(1.0, c.existing_links * 0.1 + c.shared_tags * 0.05)
            return False

        for raw in payload:
            if not isinstance(raw, dict):
                continue
            try:
                item = FolderPairScore.model_validate(raw)
            except ValidationError:
                continue
            if not 0 <= item.index < len(candidates):
                continue
            target = candidates[item.index]
            target.hint = item.hint
            target.relation_type = item.relation_type
            target.confidence = item.confidence
        return True

    # --- Persistence ---

    def persist(self, candidates: List[FolderPairCandidate]) -> int:
        """Stores every proposed relation with origin 'explore'."""
        written = 0
        for c in candidates:
            if c.proposed is None:
                continue
            self.relation_store.add(FolderRelation(
                source=c.folder_a,
                target=c.folder_b,
                type=c.proposed,
                hint=c.hint or None,
                relation_type=c.relation_type or None,
                origin="explore",
            ))
            written += 1
        if written:
            logger.info(f"Stored {written} folder relations")
        return written
