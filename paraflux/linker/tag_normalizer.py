"""
------------------------------------------------------------------------------
Project:        ParaFlux
File:           paraflux/linker/tag_normalizer.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Makes sure every note carries its project identity as a tag:
                the folder name inside 1_Project, the `project` field
                everywhere else.
------------------------------------------------------------------------------
"""

from dataclasses import dataclass
from pathlib import Path

from paraflux import frontmatter
from paraflux.linker.note_index import iter_note_locations
from paraflux.logger import get_logger
from paraflux.models.types import ParaCategory
from paraflux.utils.fileio import atomic_write_text
from paraflux.vault import VaultLayout

logger = get_logger("linker.tags")


@dataclass
class TagNormalizeResult:
    files_modified: int = 0
    tags_added: int = 0


class TagNormalizer:

    def __init__(self, layout: VaultLayout) -> None:
        self.layout = layout

    def normalize(self) -> TagNormalizeResult:
        result = TagNormalizeResult()
        for loc in iter_note_locations(self.layout):
            try:
                text = loc.path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"Skipping unreadable note {loc.path.name}: {e}")
                continue

            if loc.category == ParaCategory.PROJECT:
                tag = loc.folder_name
            else:
                fm, _ = frontmatter.parse(text)
                tag = (fm.project or "").strip()
            if not tag:
                continue

            if self._add_tag(loc.path, text, tag):
                result.files_modified += 1
                result.tags_added += 1

        if result.files_modified:
            logger.info(f"Tag normalization: {result.tags_added} tags added to {result.files_modified} notes")
        return result

    @staticmethod
    def _add_tag(path: Path, text: str, tag: str) -> bool:
        new_text, changed = frontmatter.merge_tags(text, [tag])
        if changed:
            atomic_write_text(path, new_text)
        return changed
