"""
------------------------------------------------------------------------------
Project:        ParaFlux
File:           paraflux/scanner.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Lists the files waiting in the staging folder. System files,
                source code, dev tooling files and symlinks leaving the vault
                are skipped.
------------------------------------------------------------------------------
"""

from pathlib import Path
from typing import List

from paraflux.logger import get_logger
from paraflux.vault import VaultLayout, file_extension

logger = get_logger("scanner")

LARGE_FILE_THRESHOLD = 100 * 1024 * 1024

IGNORED_FILES = {
    ".DS_Store", ".gitkeep", "Thumbs.db", "desktop.ini", "Icon\r", ".localized",
}

IGNORED_PREFIXES = (".", "_", "~$")

IGNORED_EXTENSIONS = {
    # system / temp
    "tmp", "swp", "lock", "part", "crdownload",
    # source code
    "swift", "py", "js", "ts", "jsx", "tsx", "go", "rs", "java", "c", "cpp", "h",
    "hpp", "cs", "rb", "php", "kt", "scala", "lua", "pl", "sh", "bash", "zsh",
    "vue", "svelte",
    # config / build
    "json", "toml", "yml", "yaml", "xml", "ini", "cfg", "conf", "gradle", "cmake",
    # compiled artifacts
    "o", "a", "so", "dylib", "class", "pyc", "pyo", "wasm", "dll", "exe", "bin",
}

IGNORED_FILE_NAMES = {
    "package.json", "package-lock.json", "yarn.lock", "Cargo.lock", "go.sum",
    "Makefile", "Dockerfile", "docker-compose.yml", "LICENSE", "LICENSE.md",
    "CHANGELOG.md", "CONTRIBUTING.md",
}


class InboxScanner:
    """Collects top-level files of the staging folder."""

    def __init__(self, layout: VaultLayout) -> None:
        self.layout = layout

    @staticmethod
    def should_include(name: str) -> bool:
        if name in IGNORED_FILES or name in IGNORED_FILE_NAMES:
            return False
        if name.startswith(IGNORED_PREFIXES):
            return False
        return file_extension(name) not in IGNORED_EXTENSIONS

    def scan(self) -> List[Path]:
        inbox = self.layout.inbox_path
        if not inbox.is_dir():
            return []

        files: List[Path] = []
        for entry in sorted(inbox.iterdir(), key=lambda p: p.name):
            if not self.should_include(entry.name):
                continue
            if entry.is_symlink() and not self.layout.is_contained(entry):
                logger.warning(f"Skipping symlink leaving the vault: {entry.name}")
                continue
            if entry.is_dir():
                logger.info(f"Skipping folder in inbox: {entry.name}")
                continue
            if not entry.is_file():
                continue
            if entry.stat().st_size > LARGE_FILE_THRESHOLD:
                logger.warning(f"Large file in inbox ({entry.stat().st_size // (1024 * 1024)} MB): {entry.name}")
            files.append(entry)
        return files
