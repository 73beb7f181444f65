"""
------------------------------------------------------------------------------
Project:        ParaFlux
File:           paraflux/extraction.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Content extraction for staging files. The pipeline only sees
                the ContentExtractor interface; the default implementation
                reads text notes directly and PDFs through PyMuPDF.
------------------------------------------------------------------------------
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import fitz  # PyMuPDF

from paraflux.frontmatter import FileMetadata
from paraflux.logger import get_logger
from paraflux.vault import file_extension, is_binary_file

logger = get_logger("extraction")

MAX_TEXT_CHARS = 50000


@dataclass
class ExtractResult:
    text: str
    file: Optional[FileMetadata] = None

    @property
    def is_binary(self) -> bool:
        return self.file is not None


def describe_file(path: Path) -> FileMetadata:
    size = path.stat().st_size if path.exists() else 0
    return FileMetadata(name=path.name, format=file_extension(path), size_kb=round(size / 1024, 1))


class ContentExtractor(ABC):
    """Turns a file into text plus an optional binary descriptor."""

    @abstractmethod
    def extract(self, path: Path) -> ExtractResult:
        pass


class DefaultExtractor(ContentExtractor):
    """
    Text files are read as UTF-8 (undecodable bytes replaced). PDFs are
    read page by page; other binaries only get a descriptor.
    """

    def __init__(self, max_chars: int = MAX_TEXT_CHARS) -> None:
        self.max_chars = max_chars

    def extract(self, path: Path) -> ExtractResult:
        path = Path(path)
        if not is_binary_file(path):
            text = path.read_text(encoding="utf-8", errors="replace")
            return ExtractResult(text=text)

        meta = describe_file(path)
        text = ""
        if meta.format == "pdf":
            text = self._extract_pdf(path)
        return ExtractResult(text=text or f"[{meta.format.upper()}] {path.name}", file=meta)

    def _extract_pdf(self, path: Path) -> str:
        parts = []
        total = 0
        try:
            with fitz.open(path) as doc:
                for page in doc:
                    chunk = page.get_text()
                    parts.append(chunk)
                    total += len(chunk)
                    if total >= self.max_chars:
                        break
        except Exception as e:
            logger.warning(f"PDF text extraction failed for {path.name}: {e}")
            return ""
        return "\n".join(parts)[: self.max_chars]
