"""
------------------------------------------------------------------------------
Project:        ParaFlux
File:           paraflux/linker/state_detector.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Detects links the user deleted by hand. Snapshots every
                note's outgoing Related Notes after a run and diffs it
                against the previous snapshot on the next run.
------------------------------------------------------------------------------
"""

from pathlib import Path
from typing import Dict, Iterable, List, Optional

from pydantic import ValidationError

from paraflux.logger import get_logger
from paraflux.models.links import LinkFeedbackEntry, LinkSnapshot, NoteInfo, utc_timestamp
from paraflux.utils.fileio import atomic_write_json, read_json
from paraflux.vault import VaultLayout

logger = get_logger("linker.state")

SNAPSHOT_FILE = "link-snapshot.json"


class LinkStateDetector:

    def __init__(self, layout: VaultLayout) -> None:
        self.path: Path = layout.meta_path / SNAPSHOT_FILE

    def load_snapshot(self) -> Optional[LinkSnapshot]:
        data = read_json(self.path)
        if data is None:
            return None
        try:
            return LinkSnapshot.model_validate(data)
        except ValidationError:
            logger.warning(f"Ignoring invalid {self.path.name}")
            return None

    def save_snapshot(self, snapshot: LinkSnapshot) -> None:
        atomic_write_json(self.path, snapshot.model_dump(mode="json", by_alias=True))

    @staticmethod
    def build_snapshot(notes: Iterable[NoteInfo]) -> LinkSnapshot:
        return LinkSnapshot(note_links={
            note.name: sorted(note.existing_related)
            for note in notes
            if note.existing_related
        })

    @staticmethod
    def detect_removals(
        previous: LinkSnapshot,
        current: LinkSnapshot,
        note_map: Dict[str, NoteInfo],
    ) -> List[LinkFeedbackEntry]:
        """
        Links present in `previous` but gone from `current`. Edges whose
        source or target note no longer exists are deletions of notes, not
        of links, and are not reported.
        """
        timestamp = utc_timestamp()
        removals: List[LinkFeedbackEntry] = []
        for note_name, targets in sorted(previous.note_links.items()):
            source = note_map.get(note_name)
            if source is None:
                continue
            for target_name in sorted(set(targets) - current.links_for(note_name)):
                target = note_map.get(target_name)
                if target is None:
                    continue
                removals.append(LinkFeedbackEntry(
                    date=timestamp,
                    source_note=note_name,
                    target_note=target_name,
                    source_folder=source.folder_rel_path,
                    target_folder=target.folder_rel_path,
                ))
        return removals
