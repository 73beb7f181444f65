"""
------------------------------------------------------------------------------
Project:        ParaFlux
File:           paraflux/logger.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Logging setup for the 'paraflux' logger tree. Inbox runs and
                link passes log under per-module children whose levels can
                be raised individually; raw model traffic goes to 'ai.raw'.
------------------------------------------------------------------------------
"""

import json
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

APP_LOGGER_NAME = "paraflux"

DEFAULT_FORMAT = "%(asctime)s [%(levelname).4s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _level(name: str, fallback: Optional[int]) -> Optional[int]:
    value = getattr(logging, str(name).upper(), None)
    return value if isinstance(value, int) else fallback


def _build_handlers(log_file: Optional[str]) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(str(path), encoding="utf-8"))
    return handlers


def setup_logging(
    level: str = "WARNING",
    log_file: Optional[str] = None,
    component_levels: Optional[Dict[str, str]] = None
) -> None:
    """
    Configures the 'paraflux' logger. Safe to call again when the
    configuration changes; previous handlers are closed first.

    Args:
        level: Base level for every module (DEBUG, INFO, WARNING, ERROR).
        log_file: Optional log file, its directory is created on demand.
        component_levels: Overrides such as {'linker.store': 'DEBUG'}.
    """
    root = logging.getLogger(APP_LOGGER_NAME)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    root.setLevel(_level(level, logging.WARNING))
    formatter = logging.Formatter(DEFAULT_FORMAT, datefmt=DATE_FORMAT)
    for handler in _build_handlers(log_file):
        handler.setFormatter(formatter)
        root.addHandler(handler)

    for component, component_level in (component_levels or {}).items():
        set_component_level(component, component_level)


def get_logger(name: str) -> logging.Logger:
    """'organizer' -> 'paraflux.organizer'. Qualified names pass through."""
    if name == APP_LOGGER_NAME or name.startswith(APP_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{APP_LOGGER_NAME}.{name}")


def set_component_level(component: str, level: str) -> None:
    """Unknown level names leave the logger untouched."""
    numeric = _level(level, None)
    if numeric is not None:
        get_logger(component).setLevel(numeric)


def log_ai_interaction(
    prompt: str,
    response: str,
    payload: Optional[object] = None,
    stage: str = "",
) -> None:
    """Dumps one model exchange to 'paraflux.ai.raw' when it logs DEBUG."""
    logger = get_logger("ai.raw")
    if not logger.isEnabledFor(logging.DEBUG):
        return
    title = f"[{stage}] " if stage else ""
    parts = [f"{title}prompt ({len(prompt)} chars):", prompt, f"{title}response:", response]
    if payload is not None:
        parts += [f"{title}parsed:", json.dumps(payload, indent=2, ensure_ascii=False, default=str)]
    logger.debug("\n".join(parts))
