"""
------------------------------------------------------------------------------
Project:        ParaFlux
File:           paraflux/ai/link_filter.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    AI relevance filter for link candidates. Sends up to 5 notes
                with their scored candidates per request (max. 3 requests in
                flight) and keeps at most 5 links per note.
------------------------------------------------------------------------------
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from pydantic import ValidationError

from paraflux.ai import prompts
from paraflux.ai.parsing import parse_json_payload
from paraflux.logger import get_logger
from paraflux.models.ai_payloads import LinkChoice, NoteLinkChoices
from paraflux.models.links import LinkCandidate, RelatedLink

logger = get_logger("ai.links")

DEFAULT_CONTEXT = "Related document"


@dataclass
class LinkRequest:
    """One note and its candidate set."""
    name: str
    summary: str
    tags: List[str]
    candidates: List[LinkCandidate]


class LinkAIFilter:

    BATCH_SIZE: int = 5
    MAX_CONCURRENT: int = 3
    MAX_LINKS_PER_NOTE: int = 5
    MAX_TOKENS: int = 4096

    def __init__(self, ai_service) -> None:
        self.ai_service = ai_service

    def filter_all(
        self,
        requests: List[LinkRequest],
        guidance: str = "",
        cancel: Optional[threading.Event] = None,
        on_progress: Optional[Callable[[float, str], None]] = None,
    ) -> List[List[RelatedLink]]:
        """
        Runs every request through the model in batches. The result is
        aligned with `requests`; failed batches contribute empty lists.
        """
        batches = [requests[i:i + self.BATCH_SIZE] for i in range(0, len(requests), self.BATCH_SIZE)]
        if not batches:
            return []

        done = 0
        lock = threading.Lock()

        def run(batch: List[LinkRequest]) -> List[List[RelatedLink]]:
            nonlocal done
            if cancel is not None and cancel.is_set():
                return [[] for _ in batch]
            links = self.filter_batch(batch, guidance)
            with lock:
                done += 1
                if on_progress:
                    on_progress(done / len(batches), f"Link filter: batch {done}/{len(batches)}")
            return links

        results: List[List[RelatedLink]] = []
        with ThreadPoolExecutor(max_workers=self.MAX_CONCURRENT) as executor:
            for links in executor.map(run, batches):
                results.extend(links)
        return results

    def filter_batch(self, batch: List[LinkRequest], guidance: str = "") -> List[List[RelatedLink]]:
        if not batch:
            return []
        prompt = prompts.PROMPT_LINK_FILTER_BATCH.format(
            note_descriptions=self._describe_notes(batch),
            guidance=f"\n{guidance}\n" if guidance else "",
            rules=prompts.LINK_RULES.format(max_links=self.MAX_LINKS_PER_NOTE).strip(),
        )
        reply = self.ai_service.send_fast(prompt, max_tokens=self.MAX_TOKENS, stage_label="Link filter (batch)")
        return self.parse_batch_response(reply, batch)

    def filter_single(self, request: LinkRequest, guidance: str = "") -> List[RelatedLink]:
        if not request.candidates:
            return []
        prompt = prompts.PROMPT_LINK_FILTER_SINGLE.format(
            note_name=request.name,
            note_tags=", ".join(request.tags),
            note_summary=request.summary,
            candidate_list=self._describe_candidates(request.candidates, indent=""),
            guidance=f"\n{guidance}\n" if guidance else "",
            rules=prompts.LINK_RULES.format(max_links=self.MAX_LINKS_PER_NOTE).strip(),
        )
        reply = self.ai_service.send_fast(prompt, max_tokens=self.MAX_TOKENS, stage_label=f"Link filter ({request.name})")
        return self.parse_single_response(reply, request.candidates)

    # --- Prompt helpers ---

    @staticmethod
    def _describe_candidates(candidates: List[LinkCandidate], indent: str = "  ") -> str:
        return "\n".join(
            f"{indent}[{j}] {c.name} | {', '.join(c.tags[:3])} | {c.summary}"
            for j, c in enumerate(candidates)
        )

    def _describe_notes(self, batch: List[LinkRequest]) -> str:
        blocks = []
        for i, req in enumerate(batch):
            blocks.append(
                f"### Note {i}: {req.name}\n"
                f"Tags: {', '.join(req.tags)}\n"
                f"Summary: {req.summary}\n"
                f"Candidates:\n{self._describe_candidates(req.candidates)}"
            )
        return "\n\n".join(blocks)

    # --- Parsing ---

    def _to_links(self, raw_links: List[Any], candidates: List[LinkCandidate]) -> List[RelatedLink]:
        links: List[RelatedLink] = []
        seen = set()
        for raw in raw_links:
            if not isinstance(raw, dict):
                continue
            try:
                choice = LinkChoice.model_validate(raw)
            except ValidationError:
                continue
            if not 0 <= choice.index < len(candidates):
                continue
            name = candidates[choice.index].name
            if name in seen:
                continue
            seen.add(name)
            links.append(RelatedLink(name=name, context=choice.context or DEFAULT_CONTEXT, relation=choice.relation))
            if len(links) >= self.MAX_LINKS_PER_NOTE:
                break
        return links

    def parse_single_response(self, reply: Optional[str], candidates: List[LinkCandidate]) -> List[RelatedLink]:
        payload = parse_json_payload(reply)
        if not isinstance(payload, list):
            return []
        return self._to_links(payload, candidates)

    def parse_batch_response(self, reply: Optional[str], batch: List[LinkRequest]) -> List[List[RelatedLink]]:
        results: List[List[RelatedLink]] = [[] for _ in batch]
        payload = parse_json_payload(reply)
        if not isinstance(payload, list):
            if reply is not None:
                logger.warning("Link filter reply contained no JSON array")
            return results

        for raw in payload:
            if not isinstance(raw, dict):
                continue
            raw_links = raw.get("links")
            try:
                item = NoteLinkChoices.model_validate({
                    "noteIndex": raw.get("noteIndex"),
                    "links": raw_links if isinstance(raw_links, list) else [],
                })
            except ValidationError:
                continue
            if not 0 <= item.note_index < len(batch):
                continue
            results[item.note_index] = self._to_links(item.links, batch[item.note_index].candidates)
        return results
