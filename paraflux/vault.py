"""
------------------------------------------------------------------------------
Project:        ParaFlux
File:           paraflux/vault.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Vault layout resolver. Knows the fixed PARA folder structure,
                maps a classification to a sanitized target directory and
                enforces that every resolved path stays inside the vault.
------------------------------------------------------------------------------
"""

import re
from pathlib import Path
from typing import List, Optional, Set, Union

from paraflux.errors import UnsafePathError, VaultStructureError
from paraflux.logger import get_logger
from paraflux.models.classification import ClassificationResult
from paraflux.models.types import ParaCategory

logger = get_logger("vault")

INBOX_DIR = "_Inbox"
ASSETS_DIR = "_Assets"
META_DIR = ".meta"
TRASH_DIR = ".trash"

MAX_COMPONENTS = 3
MAX_COMPONENT_LENGTH = 255

IMAGE_EXTENSIONS = {"jpg", "jpeg", "png", "gif", "bmp", "webp", "heic", "tiff", "svg"}
VIDEO_EXTENSIONS = {"mov", "mp4", "avi", "mkv", "wmv", "flv", "webm", "m4v"}
DOCUMENT_EXTENSIONS = {"pdf", "pptx", "xlsx", "docx"}
BINARY_EXTENSIONS = DOCUMENT_EXTENSIONS | IMAGE_EXTENSIONS | VIDEO_EXTENSIONS

_CATEGORY_SEGMENT_RE = re.compile(r"^(?:[1-4]_)?(project|area|resource|archive)s?$", re.IGNORECASE)


def file_extension(path: Union[str, Path]) -> str:
    return Path(path).suffix.lower().lstrip(".")


def is_binary_file(path: Union[str, Path]) -> bool:
    return file_extension(path) in BINARY_EXTENSIONS


def is_image_file(path: Union[str, Path]) -> bool:
    return file_extension(path) in IMAGE_EXTENSIONS


def is_video_file(path: Union[str, Path]) -> bool:
    return file_extension(path) in VIDEO_EXTENSIONS


class VaultLayout:
    """
    Path manager for a PARA vault:

        <root>/_Inbox
        <root>/1_Project/<project>
        <root>/2_Area/<folder>
        <root>/3_Resource/<folder>
        <root>/4_Archive/<folder>
        <root>/_Assets/{documents,images}
        <root>/.meta
    """

    def __init__(self, root: Union[str, Path]) -> None:
        self.root: Path = Path(root).absolute()

    @property
    def inbox_path(self) -> Path:
        return self.root / INBOX_DIR

    @property
    def projects_path(self) -> Path:
        return self.root / ParaCategory.PROJECT.folder_name

    @property
    def area_path(self) -> Path:
        return self.root / ParaCategory.AREA.folder_name

    @property
    def resource_path(self) -> Path:
        return self.root / ParaCategory.RESOURCE.folder_name

    @property
    def archive_path(self) -> Path:
        return self.root / ParaCategory.ARCHIVE.folder_name

    @property
    def assets_path(self) -> Path:
        return self.root / ASSETS_DIR

    @property
    def documents_assets_path(self) -> Path:
        return self.assets_path / "documents"

    @property
    def images_assets_path(self) -> Path:
        return self.assets_path / "images"

    @property
    def meta_path(self) -> Path:
        return self.root / META_DIR

    @property
    def trash_path(self) -> Path:
        return self.root / TRASH_DIR

    def category_path(self, category: ParaCategory) -> Path:
        return self.root / category.folder_name

    def assets_directory_for(self, path: Union[str, Path]) -> Path:
        """Images go to _Assets/images, every other binary to _Assets/documents."""
        return self.images_assets_path if is_image_file(path) else self.documents_assets_path

    def is_initialized(self) -> bool:
        return self.inbox_path.is_dir() and all(self.category_path(c).is_dir() for c in ParaCategory)

    def ensure_structure(self) -> None:
        """
        Creates the folder skeleton.

        Raises:
            VaultStructureError: If a directory cannot be created.
        """
        dirs = [self.inbox_path, self.documents_assets_path, self.images_assets_path, self.meta_path]
        dirs.extend(self.category_path(c) for c in ParaCategory)
        for directory in dirs:
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise VaultStructureError(f"Cannot create {directory}: {e}") from e

    def ensure_directory(self, directory: Path) -> None:
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise VaultStructureError(f"Cannot create {directory}: {e}") from e

    # --- Folder discovery ---

    def existing_subfolders(self, category: ParaCategory) -> List[str]:
        base = self.category_path(category)
        if not base.is_dir():
            return []
        return sorted(
            p.name for p in base.iterdir()
            if p.is_dir() and not p.name.startswith((".", "_"))
        )

    def project_names(self) -> List[str]:
        return self.existing_subfolders(ParaCategory.PROJECT)

    def all_folder_rel_paths(self) -> Set[str]:
        """'2_Area/DevOps' style paths of every category subfolder."""
        return {
            f"{c.folder_name}/{name}"
            for c in ParaCategory
            for name in self.existing_subfolders(c)
        }

    # --- Resolution ---

    def sanitize_folder(self, name: Optional[str]) -> str:
        """
        Turns a model-supplied folder name into a safe relative path.
        Traversal and hidden segments are dropped, depth and length capped,
        and a leading category segment removed ('Area/DevOps' -> 'DevOps').
        """
        if not name:
            return ""
        raw = str(name).replace("\x00", "").replace("\\", "/")
        components: List[str] = []
        for part in raw.split("/"):
            part = part.strip()
            if not part or part in (".", "..") or part.startswith("."):
                continue
            components.append(part[:MAX_COMPONENT_LENGTH])

        while components and _CATEGORY_SEGMENT_RE.match(components[0]):
            components.pop(0)

        return "/".join(components[:MAX_COMPONENTS])

    def target_directory(self, classification: ClassificationResult) -> Path:
        """
        Resolves the directory a classified file is filed into. Falls back
        to the category root whenever the resolved path would leave it.
        """
        base = self.category_path(classification.category)
        if classification.category == ParaCategory.PROJECT:
            folder = self.sanitize_folder(classification.project)
        else:
            folder = self.sanitize_folder(classification.target_folder)

        if not folder:
            return base

        candidate = base / folder
        if not self.is_contained(candidate, base):
            logger.warning(f"Resolved folder '{folder}' escapes {base.name}, using category root")
            return base
        return candidate

    def folder_rel_path(self, directory: Path) -> str:
        """Vault relative, slash separated path of a directory."""
        try:
            return Path(directory).absolute().relative_to(self.root).as_posix()
        except ValueError:
            return Path(directory).name

    # --- Containment ---

    def is_contained(self, path: Union[str, Path], base: Optional[Path] = None) -> bool:
        """Symlink-resolved check that `path` lies inside `base` (default: vault root)."""
        base = base or self.root
        try:
            return Path(path).resolve().is_relative_to(Path(base).resolve())
        except (ValueError, OSError):
            return False

    def ensure_contained(self, path: Union[str, Path], base: Optional[Path] = None) -> Path:
        """
        Raises:
            UnsafePathError: If the path escapes `base` after symlink resolution.
        """
        if not self.is_contained(path, base):
            raise UnsafePathError(path)
        return Path(path)
