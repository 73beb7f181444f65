import threading
import time
from typing import List, Optional

from google import genai
from google.genai import types

from paraflux.ai.base import AIProvider
from paraflux.logger import get_logger, log_ai_interaction

logger = get_logger("ai.gemini")


class GeminiProvider(AIProvider):
    """Low-level Gemini API client (Cloud AI)."""

    name = "gemini"
    _cooldown_until = None
    _adaptive_delay = 0.0
    _state_lock = threading.Lock()

    def __init__(self, api_key: str, max_retries: Optional[int] = None) -> None:
        self.api_key: str = api_key
        self.max_retries = max_retries or self.MAX_RETRIES
        self.client: Optional[genai.Client] = None

        if not self.api_key:
            logger.warning("Missing API key. Gemini Provider will be inactive.")
        else:
            try:
                self.client = genai.Client(api_key=self.api_key)
            except Exception as e:
                logger.error(f"Failed to initialize Gemini Client: {e}")
                self.client = None

    @property
    def is_configured(self) -> bool:
        return self.client is not None

    def list_models(self) -> List[str]:
        if not self.client:
            return []
        models = []
        try:
            for m in self.client.models.list():
                if hasattr(m, "supported_actions") and "generateContent" in m.supported_actions:
                    name = m.name
                    if name.startswith("models/"):
                        name = name[7:]
                    models.append(name)
        except Exception as e:
            logger.error(f"Error listing models: {e}")
        return sorted(models)

    def generate_text(self, prompt: str, model: str, max_tokens: int = 4096,
                      stage_label: str = "AI REQUEST") -> Optional[str]:
        if not self.client:
            return None

        logger.info(f"Gemini Request [{stage_label}] using {model}")
        config = types.GenerateContentConfig(max_output_tokens=max_tokens, temperature=0.1)

        if GeminiProvider._adaptive_delay > 0:
            time.sleep(GeminiProvider._adaptive_delay)

        for attempt in range(self.max_retries):
            self._wait_for_cooldown()
            try:
                response = self.client.models.generate_content(model=model, contents=[prompt], config=config)
            except Exception as e:
                if self._is_rate_limit_error(e):
                    delay = self._handle_rate_limit(attempt)
                    logger.warning(f"Gemini rate limited [{stage_label}], cooling down {delay:.1f}s")
                    continue
                logger.error(f"Gemini attempt {attempt + 1} failed: {e}")
                time.sleep(1)
                continue

            self._relax_delay()
            try:
                text = response.text
            except Exception as e:
                logger.error(f"Gemini response text inaccessible: {e}")
                return None
            if not text:
                logger.warning(f"Gemini returned an empty response for {stage_label}")
                return None
            text = text.replace("\x00", "")
            log_ai_interaction(prompt, text, stage=stage_label)
            return text

        logger.error(f"Gemini [{stage_label}] failed after {self.max_retries} attempts")
        return None

    @staticmethod
    def _is_rate_limit_error(e: Exception) -> bool:
        return getattr(e, "code", None) == 429 or "RESOURCE_EXHAUSTED" in str(e)
