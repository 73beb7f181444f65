"""
------------------------------------------------------------------------------
Project:        ParaFlux
File:           paraflux/utils/fileio.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Atomic file writes (temp file in the target directory followed
                by os.replace) and tolerant JSON loading for the .meta stores.
------------------------------------------------------------------------------
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Optional, Union

from paraflux.logger import get_logger

logger = get_logger("utils.fileio")


def atomic_write_text(path: Union[str, Path], text: str) -> None:
    """
    Writes `text` to `path` so that readers see either the old or the new
    content, never a partial file.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except OSError:
            pass
        raise


def atomic_write_json(path: Union[str, Path], data: Any) -> None:
    atomic_write_text(path, json.dumps(data, indent=2, ensure_ascii=False) + "\n")


def read_json(path: Union[str, Path]) -> Optional[Any]:
    """Returns the decoded document, or None when missing or corrupt."""
    path = Path(path)
    if not path.exists():
        return None
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        logger.warning(f"Ignoring unreadable store {path.name}: {e}")
        return None
