"""
------------------------------------------------------------------------------
Project:        ParaFlux
File:           paraflux/errors.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Exception hierarchy. Input errors abort a single file,
                structure errors abort the run, AI errors never leave the
                AI service.
------------------------------------------------------------------------------
"""

from pathlib import Path
from typing import Union


class ParaFluxError(Exception):
    """Base class for all ParaFlux errors."""


class UnsafePathError(ParaFluxError):
    """A path escapes the vault root after symlink resolution."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        super().__init__(f"Unsafe path outside of vault: {self.path.name}")


class VaultStructureError(ParaFluxError):
    """The vault directory structure cannot be created. Fatal for a run."""


class AIRequestError(ParaFluxError):
    """Transport level AI failure (network, non-2xx, empty reply)."""

    def __init__(self, message: str, status_code: int = 0) -> None:
        self.status_code = status_code
        super().__init__(message)

    @property
    def is_rate_limit(self) -> bool:
        return self.status_code in (429, 529)
