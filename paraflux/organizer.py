"""
------------------------------------------------------------------------------
Project:        ParaFlux
File:           paraflux/organizer.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    File organizer. Moves classified inbox files into the vault:
                content-hash deduplication, collision-free naming,
                frontmatter injection, companion notes for documents,
                folder index notes and a recoverable trash.
------------------------------------------------------------------------------
"""

import hashlib
import re
import secrets
import shutil
from pathlib import Path
from typing import Dict, Iterable, Optional, Tuple, Union

from paraflux import frontmatter
from paraflux.extraction import ContentExtractor, DefaultExtractor, describe_file
from paraflux.frontmatter import Frontmatter
from paraflux.logger import get_logger
from paraflux.models.classification import ClassificationResult
from paraflux.models.processing import OutcomeStatus, ProcessingOutcome
from paraflux.models.types import NoteSource, ParaCategory
from paraflux.utils.fileio import atomic_write_text
from paraflux.vault import VaultLayout, is_binary_file, is_image_file, is_video_file

logger = get_logger("organizer")

HASH_CHUNK_SIZE = 1024 * 1024
FULL_HASH_LIMIT = 500 * 1024 * 1024
MAX_SUFFIX_ATTEMPTS = 1000
EXCERPT_LENGTH = 1000

DOCUMENTS_HEADING = "## Documents"
NOTE_EXTENSIONS = {".md", ".txt"}

_HEADING_RE = re.compile(r"^#{1,2}\s")


def compute_fingerprint(path: Path) -> str:
    """
    Streaming SHA-256 for files up to 500 MB. Larger files are identified
    by size and modification time.
    """
    st = path.stat()
    if st.st_size > FULL_HASH_LIMIT:
        return f"size:{st.st_size}:mtime:{int(st.st_mtime)}"

    sha256_hash = hashlib.sha256()
    with open(path, "rb") as f:
        for byte_block in iter(lambda: f.read(HASH_CHUNK_SIZE), b""):
            sha256_hash.update(byte_block)
    return f"sha256:{sha256_hash.hexdigest()}"


def body_hash(text: str) -> Optional[str]:
    """Hash of a note body without frontmatter. None for empty bodies."""
    body = frontmatter.strip(text).strip()
    if not body:
        return None
    return hashlib.sha256(body.encode("utf-8")).hexdigest()


def note_link_name(path: Path) -> str:
    """Wiki-link name of a filed note ('Plan.md' -> 'Plan', 'a.pdf.md' -> 'a.pdf')."""
    return path.stem if path.suffix.lower() == ".md" else path.name


def resolve_collision(path: Path) -> Path:
    """
    Returns `path` if free, otherwise the first free `<stem>_<n><suffix>`
    for n = 2..1000, otherwise a random 6 hex character suffix.
    """
    if not path.exists():
        return path
    stem, suffix = path.stem, path.suffix
    for n in range(2, MAX_SUFFIX_ATTEMPTS + 1):
        candidate = path.with_name(f"{stem}_{n}{suffix}")
        if not candidate.exists():
            return candidate
    while True:
        candidate = path.with_name(f"{stem}_{secrets.token_hex(3)}{suffix}")
        if not candidate.exists():
            return candidate


class FileOrganizer:
    """
    Files one classified inbox item at a time. An instance belongs to a
    single run: the duplicate caches are built lazily per directory and
    never invalidated from outside.
    """

    def __init__(
        self,
        layout: VaultLayout,
        extractor: Optional[ContentExtractor] = None,
        summarizer=None,
    ) -> None:
        self.layout = layout
        self.extractor = extractor or DefaultExtractor()
        self.summarizer = summarizer
        # (resolved directory, binary?) -> {hash: path}
        self._hash_cache: Dict[Tuple[Path, bool], Dict[str, Path]] = {}

    # --- Public API ---

    def organize(self, path: Union[str, Path], classification: ClassificationResult) -> ProcessingOutcome:
        """
        Moves one inbox file to its PARA destination.

        Raises:
            UnsafePathError: If the source lies outside the vault.
            OSError: On filesystem failures; the caller turns it into an
                error outcome.
        """
        source = self.layout.ensure_contained(Path(path))
        if not source.is_file():
            raise FileNotFoundError(f"Source file missing: {source.name}")

        target_dir = self.layout.target_directory(classification)
        target_dir.mkdir(parents=True, exist_ok=True)
        self.layout.ensure_contained(target_dir, self.layout.category_path(classification.category))

        if classification.category != ParaCategory.PROJECT and not self._is_category_root(target_dir):
            self.ensure_index_note(target_dir, classification.category)

        if is_binary_file(source):
            return self._organize_binary(source, target_dir, classification)
        return self._organize_text(source, target_dir, classification)

    def delete(self, path: Union[str, Path]) -> ProcessingOutcome:
        source = self.layout.ensure_contained(Path(path))
        trashed = self.move_to_trash(source)
        return ProcessingOutcome(
            file_name=source.name,
            category=None,
            target_path=str(trashed),
            status=OutcomeStatus.deleted(),
        )

    def relocate(self, note_path: Union[str, Path], classification: ClassificationResult) -> ProcessingOutcome:
        """
        Moves an already filed note to the folder of a new classification.
        The note's category is overwritten, tags are merged, every other
        frontmatter field is kept.
        """
        source = self.layout.ensure_contained(Path(note_path))
        target_dir = self.layout.target_directory(classification)
        target_dir.mkdir(parents=True, exist_ok=True)
        self.layout.ensure_contained(target_dir, self.layout.category_path(classification.category))

        if classification.category != ParaCategory.PROJECT and not self._is_category_root(target_dir):
            self.ensure_index_note(target_dir, classification.category)

        text = source.read_text(encoding="utf-8")
        fm, body = frontmatter.parse(text)
        fm.category = classification.category
        fm.tags = frontmatter.dedup_tags(list(fm.tags) + list(classification.tags))
        if classification.project and not fm.project:
            fm.project = classification.project
        if fm.created is None:
            fm.created = frontmatter.today()

        destination = source if source.parent == target_dir else resolve_collision(target_dir / source.name)
        atomic_write_text(destination, frontmatter.compose(fm, body))
        if destination != source:
            source.unlink()
            self.remove_from_index(source.parent, note_link_name(source))
            logger.info(f"Relocated {source.name} -> {self.layout.folder_rel_path(target_dir)}")
        self.append_to_index(target_dir, note_link_name(destination), fm.summary or "")

        return ProcessingOutcome(
            file_name=source.name,
            category=classification.category,
            target_path=str(destination),
            tags=tuple(fm.tags),
            status=OutcomeStatus.relocated(str(source)),
        )

    def create_project(self, name: str) -> Path:
        """Creates a project folder with an index note. Existing folders are reused."""
        folder = self.layout.sanitize_folder(name)
        if not folder:
            raise ValueError(f"Invalid project name: {name!r}")
        directory = self.layout.projects_path / folder
        directory.mkdir(parents=True, exist_ok=True)
        self.layout.ensure_contained(directory, self.layout.projects_path)
        self.ensure_index_note(directory, ParaCategory.PROJECT)
        logger.info(f"Created project folder {folder}")
        return directory

    # --- Index notes ---

    def ensure_index_note(self, directory: Path, category: ParaCategory) -> Path:
        """
        Creates `<dir>/<dir name>.md` if missing. The index note is written
        before any file is moved into the folder.
        """
        index_path = directory / f"{directory.name}.md"
        if index_path.exists():
            return index_path

        fm = Frontmatter.create_default(
            category=category,
            summary=f"Index of {directory.name}",
            source=NoteSource.ORIGINAL,
        )
        body = f"# {directory.name}\n\n{DOCUMENTS_HEADING}\n\n"
        atomic_write_text(index_path, frontmatter.compose(fm, "\n" + body))
        logger.debug(f"Created index note {self.layout.folder_rel_path(index_path)}")
        return index_path

    def append_to_index(self, directory: Path, link_name: str, summary: str = "") -> bool:
        """
        Adds `- [[name]] — summary` to the index note's Documents list.
        Returns False if there is no index note or the entry already exists.
        """
        index_path = directory / f"{directory.name}.md"
        if not index_path.exists() or link_name == directory.name:
            return False

        text = index_path.read_text(encoding="utf-8")
        if f"[[{link_name}]]" in text:
            return False

        entry = f"- [[{link_name}]]"
        if summary:
            entry += f" — {' '.join(summary.split())}"

        lines = text.split("\n")
        try:
            start = next(i for i, line in enumerate(lines) if line.strip() == DOCUMENTS_HEADING)
        except StopIteration:
            new_text = text.rstrip("\n") + f"\n\n{DOCUMENTS_HEADING}\n\n{entry}\n"
        else:
            end = len(lines)
            for i in range(start + 1, len(lines)):
                if _HEADING_RE.match(lines[i]):
                    end = i
                    break
            insert_at = end
            while insert_at > start + 1 and not lines[insert_at - 1].strip():
                insert_at -= 1
            if insert_at == start + 1:
                lines[insert_at:insert_at] = ["", entry]
            else:
                lines.insert(insert_at, entry)
            new_text = "\n".join(lines)
            if not new_text.endswith("\n"):
                new_text += "\n"

        atomic_write_text(index_path, new_text)
        return True

    def remove_from_index(self, directory: Path, link_name: str) -> bool:
        """Drops the `- [[name]]` entry from the index note of `directory`."""
        index_path = directory / f"{directory.name}.md"
        if not index_path.exists():
            return False

        text = index_path.read_text(encoding="utf-8")
        entry_re = re.compile(r"^\s*[-*]\s*\[\[" + re.escape(link_name) + r"(\|[^\]]*)?\]\]")
        lines = text.split("\n")
        kept = [line for line in lines if not entry_re.match(line)]
        if len(kept) == len(lines):
            return False
        atomic_write_text(index_path, "\n".join(kept))
        return True

    # --- Trash ---

    def move_to_trash(self, path: Path) -> Path:
        trash = self.layout.trash_path
        trash.mkdir(parents=True, exist_ok=True)
        destination = resolve_collision(trash / path.name)
        shutil.move(str(path), str(destination))
        logger.info(f"Moved {path.name} to trash")
        return destination

    # --- Binary files ---

    def _organize_binary(self, source: Path, target_dir: Path, classification: ClassificationResult) -> ProcessingOutcome:
        assets_dir = self.layout.assets_directory_for(source)
        assets_dir.mkdir(parents=True, exist_ok=True)

        fingerprint = compute_fingerprint(source)
        known = self._directory_hashes(assets_dir, binary=True)
        existing = known.get(fingerprint)
        if existing is not None and existing.exists():
            companion = self._find_companion(existing.name, target_dir)
            survivor = companion or existing
            if companion is not None:
                self._merge_tags_into(companion, classification.tags)
            self.move_to_trash(source)
            logger.info(f"Duplicate of {existing.name}: {source.name}")
            return ProcessingOutcome(
                file_name=source.name,
                category=classification.category,
                target_path=str(survivor),
                tags=classification.tags,
                status=OutcomeStatus.deduplicated(str(survivor)),
            )

        asset = resolve_collision(assets_dir / source.name)
        self.layout.ensure_contained(asset, assets_dir)
        shutil.move(str(source), str(asset))
        known[fingerprint] = asset

        if is_image_file(asset) or is_video_file(asset):
            return ProcessingOutcome(
                file_name=source.name,
                category=classification.category,
                target_path=str(asset),
                tags=classification.tags,
            )

        note_path = self._write_companion(asset, target_dir, classification)
        self.append_to_index(target_dir, note_link_name(note_path), classification.summary)
        return ProcessingOutcome(
            file_name=source.name,
            category=classification.category,
            target_path=str(note_path),
            tags=classification.tags,
        )

    def _write_companion(self, asset: Path, target_dir: Path, classification: ClassificationResult) -> Path:
        text = ""
        try:
            text = self.extractor.extract(asset).text
        except OSError as e:
            logger.warning(f"Could not extract {asset.name}: {e}")

        summary = None
        if self.summarizer is not None:
            summary = self.summarizer.summarize(asset.name, text)
        if not summary:
            summary = text.strip()[:EXCERPT_LENGTH]

        fm = Frontmatter.create_default(
            category=classification.category,
            tags=classification.tags,
            summary=classification.summary,
            source=NoteSource.IMPORT,
            project=classification.project,
            file=describe_file(asset),
        )
        body = f"# {asset.name}\n\n{summary}\n\n[[{asset.name}]]"
        note_path = resolve_collision(target_dir / f"{asset.name}.md")
        atomic_write_text(note_path, fm.stringify() + "\n\n" + body + "\n")
        logger.info(f"Filed {asset.name} with companion note in {self.layout.folder_rel_path(target_dir)}")
        return note_path

    def _find_companion(self, asset_name: str, preferred_dir: Path) -> Optional[Path]:
        """Companion note of an asset: preferred folder first, then every category folder."""
        name = f"{asset_name}.md"
        direct = preferred_dir / name
        if direct.is_file():
            return direct
        for category in ParaCategory:
            base = self.layout.category_path(category)
            if not base.is_dir():
                continue
            for candidate in base.rglob(name):
                if candidate.is_file():
                    return candidate
        return None

    # --- Text files ---

    def _organize_text(self, source: Path, target_dir: Path, classification: ClassificationResult) -> ProcessingOutcome:
        content = source.read_text(encoding="utf-8")
        digest = body_hash(content)
        known = self._directory_hashes(target_dir, binary=False)

        existing = known.get(digest) if digest else None
        if existing is not None and existing.exists():
            self._merge_tags_into(existing, classification.tags)
            self.move_to_trash(source)
            logger.info(f"Duplicate of {existing.name}: {source.name}")
            return ProcessingOutcome(
                file_name=source.name,
                category=classification.category,
                target_path=str(existing),
                tags=classification.tags,
                status=OutcomeStatus.deduplicated(str(existing)),
            )

        fm = Frontmatter.create_default(
            category=classification.category,
            tags=classification.tags,
            summary=classification.summary,
            source=NoteSource.IMPORT,
            project=classification.project,
        )
        destination = resolve_collision(target_dir / source.name)
        self.layout.ensure_contained(destination, target_dir)
        atomic_write_text(destination, fm.inject(content))
        source.unlink()
        if digest:
            known[digest] = destination

        self.append_to_index(target_dir, note_link_name(destination), classification.summary)
        logger.info(f"Filed {source.name} -> {self.layout.folder_rel_path(target_dir)}")
        return ProcessingOutcome(
            file_name=source.name,
            category=classification.category,
            target_path=str(destination),
            tags=classification.tags,
        )

    # --- Helpers ---

    def _is_category_root(self, directory: Path) -> bool:
        return any(directory == self.layout.category_path(c) for c in ParaCategory)

    def _merge_tags_into(self, note: Path, tags: Iterable[str]) -> None:
        text = note.read_text(encoding="utf-8")
        merged, changed = frontmatter.merge_tags(text, tags)
        if changed:
            atomic_write_text(note, merged)

    def _directory_hashes(self, directory: Path, binary: bool) -> Dict[str, Path]:
        """Scans a directory at most once per run and caches its content hashes."""
        key = (directory.resolve(), binary)
        cached = self._hash_cache.get(key)
        if cached is not None:
            return cached

        hashes: Dict[str, Path] = {}
        if directory.is_dir():
            for entry in sorted(directory.iterdir()):
                if not entry.is_file() or entry.name.startswith("."):
                    continue
                try:
                    if binary:
                        hashes.setdefault(compute_fingerprint(entry), entry)
                    elif entry.suffix.lower() in NOTE_EXTENSIONS and entry.stem != directory.name:
                        digest = body_hash(entry.read_text(encoding="utf-8"))
                        if digest:
                            hashes.setdefault(digest, entry)
                except (OSError, UnicodeDecodeError) as e:
                    logger.debug(f"Skipping {entry.name} for duplicate detection: {e}")

        self._hash_cache[key] = hashes
        return hashes
