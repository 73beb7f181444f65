import threading
import time
from typing import List, Optional

import requests

from paraflux.ai.base import AIProvider
from paraflux.errors import AIRequestError
from paraflux.logger import get_logger, log_ai_interaction

logger = get_logger("ai.anthropic")

API_URL = "https://api.anthropic.com/v1/messages"
API_VERSION = "2023-06-01"


class AnthropicProvider(AIProvider):
    """Client for Anthropic (Claude) API."""

    name = "claude"
    _cooldown_until = None
    _adaptive_delay = 0.0
    _state_lock = threading.Lock()

    def __init__(self, api_key: str, timeout: int = 120, max_retries: Optional[int] = None) -> None:
        self.api_key = api_key
        self.timeout = timeout
        self.max_retries = max_retries or self.MAX_RETRIES

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def list_models(self) -> List[str]:
        """Static list, the set of models changes rarely."""
        return [
            "claude-3-5-haiku-20241022",
            "claude-sonnet-4-20250514",
            "claude-opus-4-20250514",
        ]

    def generate_text(self, prompt: str, model: str, max_tokens: int = 4096,
                      stage_label: str = "AI REQUEST") -> Optional[str]:
        """Executes a messages request. Retries on 429 and connection errors."""
        if not self.api_key:
            return None

        logger.info(f"Anthropic Request [{stage_label}] using {model}")

        headers = {
            "x-api-key": self.api_key,
            "anthropic-version": API_VERSION,
            "content-type": "application/json"
        }
        payload = {
            "model": model,
            "max_tokens": max_tokens,
            "temperature": 0.1,
            "messages": [{"role": "user", "content": prompt}],
        }

        if type(self)._adaptive_delay > 0:
            time.sleep(type(self)._adaptive_delay)

        for attempt in range(self.max_retries):
            self._wait_for_cooldown()
            try:
                text = self._post(headers, payload)
            except AIRequestError as e:
                if e.is_rate_limit:
                    delay = self._handle_rate_limit(attempt)
                    logger.warning(f"Anthropic rate limited [{stage_label}], cooling down {delay:.1f}s")
                    continue
                if e.status_code == 0:
                    logger.error(f"Anthropic connection failed (attempt {attempt + 1}): {e}")
                    time.sleep(1)
                    continue
                logger.error(f"Anthropic error: {e}")
                return None

            self._relax_delay()
            log_ai_interaction(prompt, text, stage=stage_label)
            return text or None

        logger.error(f"Anthropic [{stage_label}] failed after {self.max_retries} attempts")
        return None

    def _post(self, headers: dict, payload: dict) -> str:
        """
        Sends one request and returns the joined text blocks.

        Raises:
            AIRequestError: On network failure (status 0), non-200 status or
                an undecodable body.
        """
        try:
            resp = requests.post(API_URL, headers=headers, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise AIRequestError(str(e)) from e

        if resp.status_code != 200:
            raise AIRequestError(f"HTTP {resp.status_code}: {resp.text}", resp.status_code)

        try:
            result = resp.json()
            return "".join(
                block.get("text", "") for block in result.get("content", [])
                if block.get("type", "text") == "text"
            )
        except (ValueError, AttributeError) as e:
            raise AIRequestError(f"Undecodable response body: {e}", resp.status_code) from e
