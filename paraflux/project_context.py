"""
------------------------------------------------------------------------------
Project:        ParaFlux
File:           paraflux/project_context.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Builds the vault context shown to the classifier: the active
                projects with their index summaries and the existing
                subfolders of each category.
------------------------------------------------------------------------------
"""

from typing import List

from paraflux import frontmatter
from paraflux.logger import get_logger
from paraflux.models.types import ParaCategory
from paraflux.vault import VaultLayout

logger = get_logger("context")


class ProjectContextBuilder:

    def __init__(self, layout: VaultLayout) -> None:
        self.layout = layout

    def project_names(self) -> List[str]:
        return self.layout.project_names()

    def build_project_context(self) -> str:
        """One line per project: '- name: summary [tags]'."""
        lines = []
        for name in self.project_names():
            index_path = self.layout.projects_path / name / f"{name}.md"
            if not index_path.is_file():
                lines.append(f"- {name}")
                continue
            try:
                fm, _ = frontmatter.parse(index_path.read_text(encoding="utf-8"))
            except OSError as e:
                logger.debug(f"Cannot read project index {index_path}: {e}")
                lines.append(f"- {name}")
                continue
            tags = ", ".join(fm.tags)
            lines.append(f"- {name}: {fm.summary or ''} [{tags}]")
        return "\n".join(lines) if lines else "No active projects"

    def build_subfolder_context(self) -> str:
        lines = []
        for category in (ParaCategory.AREA, ParaCategory.RESOURCE, ParaCategory.ARCHIVE):
            folders = self.layout.existing_subfolders(category)
            if folders:
                lines.append(f"{category.folder_name} existing folders: {', '.join(folders)}")
        return "\n".join(lines) if lines else "No existing subfolders"
