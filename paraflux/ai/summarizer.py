"""
------------------------------------------------------------------------------
Project:        ParaFlux
File:           paraflux/ai/summarizer.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Short AI summaries of extracted binary document text, used as
                the body of companion notes.
------------------------------------------------------------------------------
"""

from typing import Optional

from paraflux.ai import prompts
from paraflux.logger import get_logger

logger = get_logger("ai.summarizer")

MAX_INPUT_CHARS = 8000


class DocumentSummarizer:

    def __init__(self, ai_service) -> None:
        self.ai_service = ai_service

    def summarize(self, file_name: str, text: str) -> Optional[str]:
        """Returns a plain-text summary or None if the model did not answer."""
        if not text.strip():
            return None
        prompt = prompts.PROMPT_SUMMARIZE_DOCUMENT.format(file_name=file_name, content=text[:MAX_INPUT_CHARS])
        reply = self.ai_service.send_fast(prompt, max_tokens=1024, stage_label=f"Summary ({file_name})")
        if not reply or not reply.strip():
            logger.info(f"No summary for {file_name}, companion note keeps the raw excerpt")
            return None
        return reply.strip()
