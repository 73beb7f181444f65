"""
------------------------------------------------------------------------------
Project:        ParaFlux
File:           paraflux/linker/semantic_linker.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Semantic link graph builder. Normalizes tags, indexes the
                archive, scores candidates, lets the fast model pick the
                links and writes them in both directions into the notes.
------------------------------------------------------------------------------
"""

import threading
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Set, Union

from paraflux.ai.link_filter import LinkAIFilter, LinkRequest
from paraflux.linker.candidates import LinkCandidateGenerator
from paraflux.linker.context_map import ContextMapBuilder
from paraflux.linker.note_index import NoteIndex
from paraflux.linker.related_notes import RelatedNotesWriter
from paraflux.linker.state_detector import LinkStateDetector
from paraflux.linker.stores import FolderRelationStore, LinkFeedbackStore
from paraflux.linker.tag_normalizer import TagNormalizer
from paraflux.logger import get_logger
from paraflux.models.links import LinkResult, NoteInfo, RelatedLink
from paraflux.vault import VaultLayout

logger = get_logger("linker")

ProgressCallback = Callable[[float, str], None]


class SemanticLinker:

    def __init__(self, layout: VaultLayout, ai_service) -> None:
        self.layout = layout
        self.ai_filter = LinkAIFilter(ai_service)
        self.writer = RelatedNotesWriter()
        self.index = NoteIndex(layout)
        self.relation_store = FolderRelationStore(layout)
        self.feedback_store = LinkFeedbackStore(layout)
        self.state_detector = LinkStateDetector(layout)

    def link_all(
        self,
        changed_files: Optional[Iterable[Union[str, Path]]] = None,
        on_progress: Optional[ProgressCallback] = None,
        cancel: Optional[threading.Event] = None,
    ) -> LinkResult:
        """
        Runs the full link pass. With `changed_files`, only those notes and
        the notes already linking to them get new candidates.
        """
        def report(fraction: float, message: str) -> None:
            if on_progress:
                on_progress(fraction, message)

        def cancelled() -> bool:
            return cancel is not None and cancel.is_set()

        result = LinkResult()

        # 0. Housekeeping
        self.relation_store.prune_stale(self.layout.all_folder_rel_paths())

        # 1. Tags
        report(0.0, "Normalizing tags")
        result.tags_normalized = TagNormalizer(self.layout).normalize().tags_added

        # 2. Index + removal detection
        report(0.1, "Indexing notes")
        notes = self.index.build()
        note_map = NoteIndex.by_name(notes)
        result.removals_detected = self._record_removals(notes, note_map)
        report(0.2, f"{len(notes)} notes indexed")

        if not notes:
            self._save_snapshot()
            return result

        # 3. Candidates
        targets = self._select_targets(notes, changed_files)
        generator = LinkCandidateGenerator(
            notes,
            context_map=ContextMapBuilder(self.layout).build(),
            boost_keys=self.relation_store.boost_pair_keys(),
            suppress_keys=self.relation_store.suppress_pairs(),
        )
        requests: List[LinkRequest] = []
        sources: List[NoteInfo] = []
        for note in targets:
            candidates = generator.generate(note)
            if candidates:
                requests.append(LinkRequest(note.name, note.summary, list(note.tags), candidates))
                sources.append(note)
        report(0.3, f"Candidates for {len(requests)} notes")

        if not requests or cancelled():
            result.cancelled = cancelled()
            self._save_snapshot()
            return result

        # 4. AI filter
        selected = self.ai_filter.filter_all(
            requests,
            guidance=self._build_guidance(),
            cancel=cancel,
            on_progress=lambda f, m: report(0.3 + 0.5 * f, m),
        )
        if cancelled():
            logger.info("Link pass cancelled before writing")
            result.cancelled = True
            self._save_snapshot()
            return result

        # 5. Write forward and reverse links, one write per note
        report(0.8, "Writing related notes")
        pending: Dict[str, List[RelatedLink]] = {}
        forward_sources: Set[str] = set()
        for source, links in zip(sources, selected):
            if not links:
                continue
            forward_sources.add(source.name)
            pending.setdefault(source.name, []).extend(links)
            for link in links:
                relation = link.effective_relation
                pending.setdefault(link.name, []).append(
                    RelatedLink(name=source.name, context=relation.reverse_context, relation=relation)
                )

        note_names = set(note_map)
        for name, links in pending.items():
            note = note_map.get(name)
            if note is None:
                continue
            try:
                added = self.writer.write(note.path, links, note_names)
            except (OSError, UnicodeDecodeError) as e:
                logger.error(f"Could not write related notes to {note.path.name}: {e}")
                continue
            result.links_created += added
            if added and name in forward_sources:
                result.notes_linked += 1

        # 6. Snapshot
        self._save_snapshot()
        report(1.0, f"Linked {result.notes_linked} notes, {result.links_created} links")
        logger.info(
            f"Link pass finished: {result.notes_linked} notes linked, "
            f"{result.links_created} links, {result.removals_detected} removals detected"
        )
        return result

    # --- Helpers ---

    @staticmethod
    def _select_targets(notes: List[NoteInfo], changed_files) -> List[NoteInfo]:
        if changed_files is None:
            return notes
        changed = {Path(f).stem for f in changed_files}
        targets = [n for n in notes if n.name in changed or n.existing_related & changed]
        logger.info(f"Incremental link pass: {len(targets)}/{len(notes)} notes")
        return targets

    def _record_removals(self, notes: List[NoteInfo], note_map: Dict[str, NoteInfo]) -> int:
        previous = self.state_detector.load_snapshot()
        if previous is None:
            return 0
        current = self.state_detector.build_snapshot(notes)
        removals = self.state_detector.detect_removals(previous, current, note_map)
        return self.feedback_store.record_removals(removals)

    def _save_snapshot(self) -> None:
        self.state_detector.save_snapshot(self.state_detector.build_snapshot(self.index.build()))

    def _build_guidance(self) -> str:
        parts = []
        boosts = self.relation_store.boost_pairs()
        hints = [
            f"- {r.source} <> {r.target}: {r.hint}"
            for r in boosts if r.hint
        ]
        if hints:
            parts.append("### FOLDER RELATIONS\n" + "\n".join(hints))
        feedback = self.feedback_store.build_prompt_context()
        if feedback:
            parts.append(feedback)
        return "\n\n".join(parts)
