import datetime
import random
import threading
import time
from abc import ABC, abstractmethod
from typing import List, Optional


class AIProvider(ABC):
    """
    Abstract base class for all AI backends (Claude, Gemini).

    Subclasses keep their own class-level cooldown state so that all
    worker threads talking to the same backend back off together.
    """

    MAX_RETRIES: int = 5
    name: str = "ai"
    _cooldown_until: Optional[datetime.datetime] = None
    _adaptive_delay: float = 0.0
    _state_lock = threading.Lock()

    @abstractmethod
    def list_models(self) -> List[str]:
        """Returns available models."""
        pass

    @abstractmethod
    def generate_text(self, prompt: str, model: str, max_tokens: int = 4096,
                      stage_label: str = "AI REQUEST") -> Optional[str]:
        """Executes a single text request. Returns None on failure."""
        pass

    @property
    def is_configured(self) -> bool:
        return True

    @classmethod
    def get_adaptive_delay(cls) -> float:
        """Returns current rate-limit delay."""
        return cls._adaptive_delay

    @classmethod
    def _handle_rate_limit(cls, attempt: int) -> float:
        with cls._state_lock:
            new_delay = max(2.0, cls._adaptive_delay * 2.0)
            cls._adaptive_delay = min(256.0, new_delay)
            delay = max(2 * (2 ** attempt) + random.uniform(0, 1), cls._adaptive_delay)
            cls._cooldown_until = datetime.datetime.now() + datetime.timedelta(seconds=delay)
        return delay

    @classmethod
    def _relax_delay(cls) -> None:
        with cls._state_lock:
            if cls._adaptive_delay > 0:
                cls._adaptive_delay *= 0.5
                if cls._adaptive_delay < 0.2:
                    cls._adaptive_delay = 0.0

    @classmethod
    def _wait_for_cooldown(cls) -> None:
        with cls._state_lock:
            until = cls._cooldown_until
        if until is not None:
            wait_time = (until - datetime.datetime.now()).total_seconds()
            if wait_time > 0:
                time.sleep(wait_time)
        with cls._state_lock:
            if cls._cooldown_until is not None and cls._cooldown_until <= datetime.datetime.now():
                cls._cooldown_until = None
