"""
------------------------------------------------------------------------------
Project:        ParaFlux
File:           paraflux/ai/stage2.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Stage 2 Processor (precise single file classification).
                Re-submits uncertain files one by one with their full content
                to the precise model, at most 3 requests in flight.
------------------------------------------------------------------------------
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, List, Optional, Tuple

from pydantic import ValidationError

from paraflux.ai import prompts
from paraflux.ai.parsing import parse_json_payload
from paraflux.logger import get_logger
from paraflux.models.ai_payloads import Stage2Payload
from paraflux.models.classification import ClassifyInput

logger = get_logger("ai.stage2")

MAX_CONTENT_CHARS = 5000


class Stage2Processor:
    """
    Precise classification for the files Stage 1 was unsure about.
    A failed request yields no entry; the caller keeps the Stage 1 guess.
    """

    MAX_CONCURRENT: int = 3
    MAX_TOKENS: int = 2048

    def __init__(self, ai_service) -> None:
        self.ai_service = ai_service

    def classify(
        self,
        files: List[Tuple[int, ClassifyInput]],
        project_context: str,
        subfolder_context: str,
        cancel: Optional[threading.Event] = None,
        on_progress: Optional[Callable[[float, str], None]] = None,
    ) -> Dict[int, Stage2Payload]:
        if not files:
            return {}

        done = 0
        lock = threading.Lock()

        def run(index: int, item: ClassifyInput) -> Optional[Stage2Payload]:
            nonlocal done
            if cancel is not None and cancel.is_set():
                return None
            result = self.classify_single(item, project_context, subfolder_context)
            with lock:
                done += 1
                if on_progress:
                    on_progress(done / len(files), f"Stage 2: {item.file_name}")
            return result

        results: Dict[int, Stage2Payload] = {}
        with ThreadPoolExecutor(max_workers=self.MAX_CONCURRENT) as executor:
            futures = [(index, executor.submit(run, index, item)) for index, item in files]
            for index, future in futures:
                payload = future.result()
                if payload is not None:
                    results[index] = payload
        return results

    def build_prompt(self, item: ClassifyInput, project_context: str, subfolder_context: str) -> str:
        return prompts.PROMPT_STAGE_2_SINGLE.format(
            project_context=project_context or "(none)",
            subfolder_context=subfolder_context or "(none)",
            rules=prompts.PARA_RULES.strip(),
            file_name=item.file_name,
            content=item.content[:MAX_CONTENT_CHARS],
        )

    def classify_single(self, item: ClassifyInput, project_context: str, subfolder_context: str) -> Optional[Stage2Payload]:
        prompt = self.build_prompt(item, project_context, subfolder_context)
        reply = self.ai_service.send_precise(prompt, max_tokens=self.MAX_TOKENS,
                                             stage_label=f"Stage 2 ({item.file_name})")
        if reply is None:
            return None
        return self.parse_response(reply)

    @staticmethod
    def parse_response(reply: str) -> Optional[Stage2Payload]:
        payload = parse_json_payload(reply)
        if isinstance(payload, list) and payload:
            payload = payload[0]
        if not isinstance(payload, dict):
            logger.warning("Stage 2 reply contained no JSON object")
            return None
        # Older prompt revisions used targetPath
        if "targetFolder" not in payload and "targetPath" in payload:
            payload["targetFolder"] = payload["targetPath"]
        try:
            return Stage2Payload.model_validate(payload)
        except ValidationError as e:
            logger.warning(f"Invalid Stage 2 payload: {e.error_count()} errors")
            return None
