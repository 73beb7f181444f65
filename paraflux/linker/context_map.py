"""
------------------------------------------------------------------------------
Project:        ParaFlux
File:           paraflux/linker/context_map.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Vault context map. Reads the '## Documents' list of every
                folder index note; notes listed in the same index share a
                structural group. Pure file I/O, no AI calls.
------------------------------------------------------------------------------
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Set, Tuple

from paraflux import frontmatter
from paraflux.linker.related_notes import sanitize_context
from paraflux.logger import get_logger
from paraflux.models.types import ParaCategory
from paraflux.organizer import DOCUMENTS_HEADING
from paraflux.vault import VaultLayout

logger = get_logger("linker.context")


@dataclass
class ContextMapEntry:
    note_name: str
    summary: str
    folder_name: str
    folder_rel_path: str
    category: ParaCategory
    folder_summary: str = ""
    tags: List[str] = field(default_factory=list)


@dataclass
class ContextMap:
    entries: List[ContextMapEntry] = field(default_factory=list)
    folder_count: int = 0

    def groups_by_note(self) -> Dict[str, Set[str]]:
        """note name -> folder relative paths of every index listing it"""
        groups: Dict[str, Set[str]] = {}
        for entry in self.entries:
            groups.setdefault(entry.note_name, set()).add(entry.folder_rel_path)
        return groups

    def to_prompt_text(self) -> str:
        if not self.entries:
            return "No documents in the vault"

        sections = []
        for category in ParaCategory:
            cat_entries = [e for e in self.entries if e.category == category]
            if not cat_entries:
                continue
            lines = [f"### {category.short_name}"]
            by_folder: Dict[str, List[ContextMapEntry]] = {}
            for entry in cat_entries:
                by_folder.setdefault(entry.folder_name, []).append(entry)
            for folder_name in sorted(by_folder):
                first = by_folder[folder_name][0]
                tags = f" [{', '.join(first.tags)}]" if first.tags else ""
                lines.append(f"**{folder_name}**: {first.folder_summary}{tags}")
                for entry in by_folder[folder_name]:
                    suffix = f" — {entry.summary}" if entry.summary else ""
                    lines.append(f"  - [[{entry.note_name}]]{suffix}")
            sections.append("\n".join(lines))
        return "\n\n".join(sections)


def parse_documents_section(body: str) -> List[Tuple[str, str]]:
    """(name, summary) pairs of the '## Documents' list."""
    entries: List[Tuple[str, str]] = []
    in_section = False
    for line in body.split("\n"):
        stripped = line.strip()
        if stripped == DOCUMENTS_HEADING:
            in_section = True
            continue
        if in_section and stripped.startswith("## "):
            break
        if not in_section or not stripped.startswith("- [["):
            continue
        end = stripped.find("]]")
        if end < 0:
            continue
        name = stripped[4:end].split("|", 1)[0].strip()
        if not name:
            continue
        rest = stripped[end + 2:].strip()
        if rest[:1] in ("—", "–", "-"):
            rest = rest[1:].strip()
        entries.append((name, sanitize_context(rest)))
    return entries


class ContextMapBuilder:

    MAX_CONCURRENT: int = 3

    def __init__(self, layout: VaultLayout) -> None:
        self.layout = layout

    def build(self) -> ContextMap:
        folders: List[Tuple[ParaCategory, Path]] = []
        for category in ParaCategory:
            base = self.layout.category_path(category)
            if not base.is_dir():
                continue
            for folder in sorted(base.iterdir(), key=lambda p: p.name):
                if folder.is_dir() and not folder.name.startswith((".", "_")):
                    folders.append((category, folder))

        entries: List[ContextMapEntry] = []
        with ThreadPoolExecutor(max_workers=self.MAX_CONCURRENT) as executor:
            for folder_entries in executor.map(lambda item: self._parse_index(*item), folders):
                entries.extend(folder_entries)

        logger.debug(f"Context map: {len(entries)} entries from {len(folders)} folders")
        return ContextMap(entries=entries, folder_count=len(folders))

    def _parse_index(self, category: ParaCategory, folder: Path) -> List[ContextMapEntry]:
        index_path = folder / f"{folder.name}.md"
        if not index_path.is_file():
            return []
        try:
            text = index_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Cannot read index note {index_path.name}: {e}")
            return []

        fm, body = frontmatter.parse(text)
        return [
            ContextMapEntry(
                note_name=name,
                summary=summary,
                folder_name=folder.name,
                folder_rel_path=f"{category.folder_name}/{folder.name}",
                category=category,
                folder_summary=fm.summary or "",
                tags=list(fm.tags),
            )
            for name, summary in parse_documents_section(body)
        ]
