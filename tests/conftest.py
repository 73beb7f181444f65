import threading
import time
from pathlib import Path
from typing import Callable, List, Optional, Tuple

import pytest
from PyQt6.QtCore import QSettings

from paraflux.config import AppConfig
from paraflux.vault import VaultLayout


class ScriptedAIService:
    """
    Stand-in for AIService. Replies come from `handler(prompt, precise)`
    if given, otherwise from the fast/precise queues in order. Every
    prompt is recorded. An optional `delay(prompt)` holds each call open
    so tests can observe how many requests overlap.
    """

    def __init__(
        self,
        fast: Optional[List[Optional[str]]] = None,
        precise: Optional[List[Optional[str]]] = None,
        handler: Optional[Callable[[str, bool], Optional[str]]] = None,
        available: bool = True,
        delay: Optional[Callable[[str], float]] = None,
    ) -> None:
        self.fast_replies = list(fast or [])
        self.precise_replies = list(precise or [])
        self.handler = handler
        self.available = available
        self.prompts: List[Tuple[str, str]] = []
        self.delay = delay
        self.in_flight = 0
        self.peak_in_flight = 0
        self._lock = threading.Lock()

    @property
    def is_available(self) -> bool:
        return self.available

    def send_fast(self, prompt: str, max_tokens: int = 4096, stage_label: str = "FAST") -> Optional[str]:
        return self._reply(prompt, precise=False)

    def send_precise(self, prompt: str, max_tokens: int = 4096, stage_label: str = "PRECISE") -> Optional[str]:
        return self._reply(prompt, precise=True)

    def _reply(self, prompt: str, precise: bool) -> Optional[str]:
        with self._lock:
            self.prompts.append(("precise" if precise else "fast", prompt))
            self.in_flight += 1
            self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            # Sleep outside the lock so calls overlap like real requests
            if self.delay is not None:
                time.sleep(self.delay(prompt))
            with self._lock:
                if self.handler is not None:
                    return self.handler(prompt, precise)
                queue = self.precise_replies if precise else self.fast_replies
                return queue.pop(0) if queue else None
        finally:
            with self._lock:
                self.in_flight -= 1

    def count(self, kind: str) -> int:
        return sum(1 for k, _ in self.prompts if k == kind)


@pytest.fixture
def scripted_ai():
    """Factory for ScriptedAIService instances."""
    return ScriptedAIService


@pytest.fixture
def vault(tmp_path) -> VaultLayout:
    """Temporary vault with the full PARA skeleton."""
    layout = VaultLayout(tmp_path / "vault")
    layout.ensure_structure()
    return layout


@pytest.fixture
def write_file():
    def _write(path: Path, text: str) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path
    return _write


@pytest.fixture
def config():
    # Dedicated QSettings scope so the real configuration is never touched
    settings = QSettings("ParaFluxTest", "TestConfig")
    settings.clear()

    app_config = AppConfig()
    app_config.settings = settings
    yield app_config
    settings.clear()
