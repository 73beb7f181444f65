"""
------------------------------------------------------------------------------
Project:        ParaFlux
File:           paraflux/ai/parsing.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Tolerant extraction of JSON payloads from free-form model
                replies (commentary, markdown fences, trailing prose).
------------------------------------------------------------------------------
"""

import json
import re
from typing import Any, Optional

_FENCE_START_RE = re.compile(r"^\s*```[A-Za-z0-9_-]*[ \t]*\r?\n?")
_FENCE_END_RE = re.compile(r"\r?\n?```\s*$")


def strip_code_fences(text: str) -> str:
    cleaned = _FENCE_START_RE.sub("", text, count=1)
    cleaned = _FENCE_END_RE.sub("", cleaned, count=1)
    return cleaned.strip()


def parse_json_payload(text: Optional[str]) -> Optional[Any]:
    """
    Decodes the JSON payload of a model reply.

    Tries the fence-stripped reply as a whole, then the slice from the first
    '[' or '{' to the last ']' or '}'. Returns None if both fail.
    """
    if not text:
        return None
    cleaned = strip_code_fences(text.replace("\x00", ""))

    try:
        return json.loads(cleaned, strict=False)
    except json.JSONDecodeError:
        pass

    starts = [i for i in (cleaned.find("["), cleaned.find("{")) if i != -1]
    end = max(cleaned.rfind("]"), cleaned.rfind("}"))
    if not starts or end == -1:
        return None
    start = min(starts)
    if end <= start:
        return None
    try:
        return json.loads(cleaned[start:end + 1], strict=False)
    except json.JSONDecodeError:
        return None
