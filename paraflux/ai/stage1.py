"""
------------------------------------------------------------------------------
Project:        ParaFlux
File:           paraflux/ai/stage1.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Stage 1 Processor (fast batch classification).
                Sends previews of up to 5 files per request to the fast
                model, with at most 3 batches in flight.
------------------------------------------------------------------------------
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

from paraflux.ai import prompts
from paraflux.ai.parsing import parse_json_payload
from paraflux.logger import get_logger
from paraflux.models.ai_payloads import Stage1Item
from paraflux.models.classification import ClassifyInput

logger = get_logger("ai.stage1")

ProgressCallback = Callable[[float, str], None]


class Stage1Processor:
    """
    Orchestrates the first phase of classification: a cheap category guess
    with a confidence score for every file.
    """

    BATCH_SIZE: int = 5
    MAX_CONCURRENT: int = 3
    MAX_TOKENS: int = 4096

    def __init__(self, ai_service) -> None:
        """
        Args:
            ai_service: An AIService (anything with send_fast/send_precise).
        """
        self.ai_service = ai_service

    def classify(
        self,
        files: List[ClassifyInput],
        project_context: str,
        subfolder_context: str,
        cancel: Optional[threading.Event] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> Dict[int, Stage1Item]:
        """
        Returns Stage 1 items keyed by the index of the file in `files`.
        Files the model skipped or answered invalidly are absent.
        """
        batches = [
            (offset, files[offset:offset + self.BATCH_SIZE])
            for offset in range(0, len(files), self.BATCH_SIZE)
        ]
        if not batches:
            return {}

        results: Dict[int, Stage1Item] = {}
        done = 0
        lock = threading.Lock()

        def run(offset: int, batch: List[ClassifyInput]) -> Dict[int, Stage1Item]:
            nonlocal done
            if cancel is not None and cancel.is_set():
                return {}
            items = self._classify_batch(offset, batch, project_context, subfolder_context)
            with lock:
                done += 1
                if on_progress:
                    on_progress(done / len(batches), f"Stage 1: batch {done}/{len(batches)}")
            return items

        with ThreadPoolExecutor(max_workers=self.MAX_CONCURRENT) as executor:
            futures = [executor.submit(run, offset, batch) for offset, batch in batches]
            for future in futures:
                results.update(future.result())

        return results

    def build_prompt(self, batch: List[ClassifyInput], project_context: str, subfolder_context: str) -> str:
        file_list = "\n\n".join(
            f"[{i}] File name: {f.file_name}\nPreview: {f.preview}" for i, f in enumerate(batch)
        )
        return prompts.PROMPT_STAGE_1_BATCH.format(
            project_context=project_context or "(none)",
            subfolder_context=subfolder_context or "(none)",
            rules=prompts.PARA_RULES.strip(),
            file_list=file_list,
        )

    def _classify_batch(
        self, offset: int, batch: List[ClassifyInput], project_context: str, subfolder_context: str
    ) -> Dict[int, Stage1Item]:
        prompt = self.build_prompt(batch, project_context, subfolder_context)
        label = f"Stage 1 (files {offset + 1}-{offset + len(batch)})"
        reply = self.ai_service.send_fast(prompt, max_tokens=self.MAX_TOKENS, stage_label=label)
        if reply is None:
            logger.warning(f"{label}: no reply, files fall through to Stage 2")
            return {}
        return self.parse_response(reply, batch, offset)

    @staticmethod
    def parse_response(reply: str, batch: List[ClassifyInput], offset: int = 0) -> Dict[int, Stage1Item]:
        payload: Any = parse_json_payload(reply)
        if isinstance(payload, dict):
            payload = payload.get("results") or payload.get("files") or [payload]
        if not isinstance(payload, list):
            logger.warning("Stage 1 reply contained no JSON array")
            return {}

        exact = {f.file_name: offset + i for i, f in enumerate(batch)}
        folded = {f.file_name.lower(): offset + i for i, f in enumerate(batch)}

        results: Dict[int, Stage1Item] = {}
        for raw in payload:
            if not isinstance(raw, dict):
                continue
            try:
                item = Stage1Item.model_validate(raw)
            except ValidationError as e:
                logger.debug(f"Discarding Stage 1 item {raw.get('fileName')!r}: {e.error_count()} errors")
                continue
            index = exact.get(item.file_name, folded.get(item.file_name.lower()))
            if index is None:
                logger.debug(f"Stage 1 returned unknown file name {item.file_name!r}")
                continue
            results.setdefault(index, item)
        return results
