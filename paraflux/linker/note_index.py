"""
------------------------------------------------------------------------------
Project:        ParaFlux
File:           paraflux/linker/note_index.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Builds the in-memory note index of the archive: every note one
                level below a category folder with its frontmatter fields and
                the names it already links to.
------------------------------------------------------------------------------
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List

from paraflux import frontmatter
from paraflux.linker.related_notes import related_names
from paraflux.logger import get_logger
from paraflux.models.links import NoteInfo
from paraflux.models.types import ParaCategory
from paraflux.vault import VaultLayout

logger = get_logger("linker.index")


@dataclass
class NoteLocation:
    path: Path
    category: ParaCategory
    folder_name: str
    folder_rel_path: str


def _visible(name: str) -> bool:
    return not name.startswith((".", "_"))


def iter_note_locations(layout: VaultLayout) -> Iterator[NoteLocation]:
    """
    Yields `<category>/<folder>/<note>.md` files, skipping hidden and
    underscore entries and each folder's index note.
    """
    for category in ParaCategory:
        base = layout.category_path(category)
        if not base.is_dir():
            continue
        for folder in sorted(base.iterdir(), key=lambda p: p.name):
            if not folder.is_dir() or not _visible(folder.name):
                continue
            for path in sorted(folder.iterdir(), key=lambda p: p.name):
                if path.suffix != ".md" or not path.is_file() or not _visible(path.name):
                    continue
                if path.name == f"{folder.name}.md":
                    continue
                yield NoteLocation(
                    path=path,
                    category=category,
                    folder_name=folder.name,
                    folder_rel_path=f"{category.folder_name}/{folder.name}",
                )


class NoteIndex:

    def __init__(self, layout: VaultLayout) -> None:
        self.layout = layout

    def build(self) -> List[NoteInfo]:
        notes: List[NoteInfo] = []
        for loc in iter_note_locations(self.layout):
            try:
                text = loc.path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"Skipping unreadable note {loc.path.name}: {e}")
                continue
            fm, body = frontmatter.parse(text)
            notes.append(NoteInfo(
                name=loc.path.stem,
                path=loc.path,
                folder_name=loc.folder_name,
                folder_rel_path=loc.folder_rel_path,
                category=loc.category,
                tags=list(fm.tags),
                summary=fm.summary or "",
                project=fm.project,
                existing_related=related_names(body),
            ))
        logger.debug(f"Indexed {len(notes)} notes")
        return notes

    @staticmethod
    def by_name(notes: List[NoteInfo]) -> Dict[str, NoteInfo]:
        """Name lookup; the first note wins when names repeat across folders."""
        mapping: Dict[str, NoteInfo] = {}
        for note in notes:
            if note.name in mapping:
                logger.debug(f"Duplicate note name {note.name} in {note.folder_rel_path}")
                continue
            mapping[note.name] = note
        return mapping
