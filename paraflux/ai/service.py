"""
------------------------------------------------------------------------------
Project:        ParaFlux
File:           paraflux/ai/service.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Routes requests to a fast (cheap, batch) or precise (slow,
                thorough) model of the configured provider and falls back to
                the alternate provider when its key is available.
------------------------------------------------------------------------------
"""

from dataclasses import dataclass
from typing import List, Optional

from paraflux.ai.anthropic_provider import AnthropicProvider
from paraflux.ai.base import AIProvider
from paraflux.ai.gemini_provider import GeminiProvider
from paraflux.logger import get_logger

logger = get_logger("ai.service")


@dataclass
class ModelRoute:
    provider: AIProvider
    fast_model: str
    precise_model: str


class AIService:
    """
    Thin facade over one or more providers. Every call returns the reply
    text or None; transport errors never propagate to the pipeline.
    """

    def __init__(self, routes: List[ModelRoute]) -> None:
        self.routes = [r for r in routes if r.provider.is_configured]
        if not self.routes:
            logger.warning("No AI provider configured. All AI requests will fail.")

    @classmethod
    def from_config(cls, config) -> "AIService":
        """
        Builds the routes from AppConfig: the selected provider first,
        the other one as fallback if it has a key.
        """
        retries = config.get_ai_retries()
        claude = ModelRoute(
            AnthropicProvider(config.get_anthropic_key(), max_retries=retries),
            config.get_anthropic_fast_model(),
            config.get_anthropic_precise_model(),
        )
        routes = [claude]
        gemini_key = config.get_gemini_key()
        if gemini_key or config.get_ai_provider() == "gemini":
            gemini = ModelRoute(
                GeminiProvider(gemini_key, max_retries=retries),
                config.get_gemini_fast_model(),
                config.get_gemini_precise_model(),
            )
            routes = [gemini, claude] if config.get_ai_provider() == "gemini" else [claude, gemini]
        return cls(routes)

    @property
    def is_available(self) -> bool:
        return bool(self.routes)

    def send_fast(self, prompt: str, max_tokens: int = 4096, stage_label: str = "FAST") -> Optional[str]:
        return self._send(prompt, max_tokens, stage_label, precise=False)

    def send_precise(self, prompt: str, max_tokens: int = 4096, stage_label: str = "PRECISE") -> Optional[str]:
        return self._send(prompt, max_tokens, stage_label, precise=True)

    def _send(self, prompt: str, max_tokens: int, stage_label: str, precise: bool) -> Optional[str]:
        for route in self.routes:
            model = route.precise_model if precise else route.fast_model
            reply = route.provider.generate_text(prompt, model, max_tokens=max_tokens, stage_label=stage_label)
            if reply:
                return reply
            logger.warning(f"[{stage_label}] no reply from {route.provider.name}/{model}")
        return None
