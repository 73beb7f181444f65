"""
------------------------------------------------------------------------------
Project:        ParaFlux
File:           paraflux/linker/related_notes.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Reader and writer for the '## Related Notes' section of a note.
                Understands the flat list and the form grouped by relation
                sub-headings, and always re-renders in a canonical layout.
------------------------------------------------------------------------------
"""

import re
from pathlib import Path
from typing import Collection, Iterable, List, Optional, Set, Tuple

from paraflux.logger import get_logger
from paraflux.models.links import RelatedLink
from paraflux.models.types import RelationType
from paraflux.utils.fileio import atomic_write_text

logger = get_logger("linker.related")

RELATED_HEADING = "## Related Notes"
DEFAULT_CONTEXT = "Related document"

_ENTRY_RE = re.compile(r"^[-*]\s*\[\[([^\]]*)\]\](.*)$")
_SUBHEADING_RE = re.compile(r"^###\s+(.+?)\s*$")
_RELATION_ORDER = (
    RelationType.PREREQUISITE,
    RelationType.PROJECT,
    RelationType.REFERENCE,
    RelationType.RELATED,
)


def sanitize_wikilink(name: str) -> str:
    return (name.replace("[[", "").replace("]]", "")
            .replace("/", "-").replace("\\", "-").replace("..", "")
            .strip())


def sanitize_context(context: str) -> str:
    return " ".join(context.replace("[[", "").replace("]]", "").split())


def find_section(lines: List[str]) -> Optional[Tuple[int, int]]:
    """
    Line range [start, end) of the Related Notes section, heading
    included. The section ends at the next level-1/2 heading.
    """
    start = None
    for i, line in enumerate(lines):
        stripped = line.strip()
        if start is None:
            if stripped == RELATED_HEADING or stripped.startswith(RELATED_HEADING + " "):
                start = i
            continue
        if stripped.startswith("# ") or stripped.startswith("## "):
            return start, i
    if start is None:
        return None
    return start, len(lines)


def _parse_entry(line: str, relation: Optional[RelationType]) -> Optional[RelatedLink]:
    match = _ENTRY_RE.match(line.strip())
    if not match:
        return None
    name = match.group(1).split("|", 1)[0].strip()
    if not name:
        return None
    rest = match.group(2).strip()
    if rest[:1] in ("—", "–", "-", ":"):
        context = rest[1:].strip()
    else:
        context = rest
    return RelatedLink(name=name, context=context or DEFAULT_CONTEXT, relation=relation)


def parse_related(text: str) -> List[RelatedLink]:
    """All entries of the section in file order, duplicates dropped."""
    lines = text.split("\n")
    section = find_section(lines)
    if section is None:
        return []

    links: List[RelatedLink] = []
    seen: Set[str] = set()
    relation: Optional[RelationType] = None
    for line in lines[section[0] + 1:section[1]]:
        heading = _SUBHEADING_RE.match(line.strip())
        if heading:
            relation = RelationType.from_label(heading.group(1))
            continue
        link = _parse_entry(line, relation)
        if link is not None and link.name not in seen:
            seen.add(link.name)
            links.append(link)
    return links


def related_names(text: str) -> Set[str]:
    return {link.name for link in parse_related(text)}


def render_section(links: List[RelatedLink]) -> str:
    """
    Flat list when every link is plain RELATED, otherwise one
    '### <label>' group per relation in a fixed order so the
    relation survives a re-parse.
    """
    def entry(link: RelatedLink) -> str:
        return f"- [[{sanitize_wikilink(link.name)}]] — {sanitize_context(link.context) or DEFAULT_CONTEXT}"

    relations = {link.effective_relation for link in links}
    lines = [RELATED_HEADING, ""]
    if relations <= {RelationType.RELATED}:
        lines.extend(entry(link) for link in links)
    else:
        for relation in _RELATION_ORDER:
            group = [link for link in links if link.effective_relation == relation]
            if not group:
                continue
            if lines[-1] != "":
                lines.append("")
            lines.append(f"### {relation.label}")
            lines.extend(entry(link) for link in group)
    return "\n".join(lines)


def merge_links(
    text: str,
    new_links: Iterable[RelatedLink],
    self_name: str,
    note_names: Optional[Collection[str]] = None,
) -> Tuple[str, int]:
    """
    Merges links into a note text. Links to unknown notes, self links and
    edges already present are dropped. Returns the new text and the number
    of links added.
    """
    existing = parse_related(text)
    known = {link.name for link in existing}
    merged = list(existing)
    added = 0
    for link in new_links:
        name = sanitize_wikilink(link.name)
        if not name or name == self_name or name in known:
            continue
        if note_names is not None and name not in note_names:
            continue
        known.add(name)
        merged.append(RelatedLink(name=name, context=link.context, relation=link.relation))
        added += 1

    if added == 0:
        return text, 0

    section = render_section(merged)
    lines = text.split("\n")
    bounds = find_section(lines)
    if bounds is None:
        new_text = text.rstrip() + "\n\n" + section + "\n"
    else:
        start, end = bounds
        before = "\n".join(lines[:start]).rstrip()
        after = "\n".join(lines[end:]).strip("\n")
        new_text = (before + "\n\n" if before else "") + section + "\n"
        if after:
            new_text += "\n" + after + "\n"
    return new_text, added


class RelatedNotesWriter:
    """Applies link merges to note files on disk."""

    def write(self, path: Path, new_links: List[RelatedLink], note_names: Collection[str]) -> int:
        """
        Returns the number of links added to the note.

        Raises:
            OSError: If the note cannot be read or written.
        """
        if not new_links:
            return 0
        text = path.read_text(encoding="utf-8")
        new_text, added = merge_links(text, new_links, path.stem, note_names)
        if added:
            atomic_write_text(path, new_text)
            logger.debug(f"{path.name}: +{added} related notes")
        return added
