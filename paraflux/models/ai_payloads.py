"""
------------------------------------------------------------------------------
Project:        ParaFlux
File:           paraflux/models/ai_payloads.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Pydantic schemas for JSON replies of the AI models. Repairs
                the usual model sloppiness (string tags, percent confidence,
                null fields) before the data reaches the pipeline.
------------------------------------------------------------------------------
"""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from paraflux.models.types import ParaCategory, RelationType

MAX_TAGS = 5


class _Payload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


def _coerce_tags(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, (list, tuple)):
        return []
    tags: List[str] = []
    seen = set()
    for item in value:
        tag = str(item).strip().lstrip("#").strip()
        if tag and tag.lower() not in seen:
            seen.add(tag.lower())
            tags.append(tag)
    return tags[:MAX_TAGS]


def _coerce_confidence(value: Any) -> float:
    try:
        conf = float(value)
    except (TypeError, ValueError):
        return 0.0
    if conf > 1.0 and conf <= 100.0:
        conf = conf / 100.0
    return min(1.0, max(0.0, conf))


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    if not text or text.lower() in ("null", "none", "n/a"):
        return None
    return text


class _ClassificationFields(_Payload):
    para: ParaCategory
    tags: List[str] = Field(default_factory=list)
    summary: str = ""
    confidence: float = 0.0
    project: Optional[str] = None
    target_folder: Optional[str] = None

    @field_validator("para", mode="before")
    @classmethod
    def _parse_para(cls, value: Any) -> Any:
        cat = ParaCategory.from_token(value if isinstance(value, str) else None)
        if cat is None:
            raise ValueError(f"invalid para token: {value!r}")
        return cat

    @field_validator("tags", mode="before")
    @classmethod
    def _parse_tags(cls, value: Any) -> List[str]:
        return _coerce_tags(value)

    @field_validator("confidence", mode="before")
    @classmethod
    def _parse_confidence(cls, value: Any) -> float:
        return _coerce_confidence(value)

    @field_validator("summary", mode="before")
    @classmethod
    def _parse_summary(cls, value: Any) -> str:
        return "" if value is None else str(value).strip()

    @field_validator("project", "target_folder", mode="before")
    @classmethod
    def _parse_optional(cls, value: Any) -> Optional[str]:
        return _optional_text(value)


class Stage1Item(_ClassificationFields):
    """One element of the Stage 1 batch array."""
    file_name: str


class Stage2Payload(_ClassificationFields):
    """Single object returned by the precise model. Confidence defaults to certain."""
    confidence: float = 1.0


class LinkChoice(_Payload):
    index: int
    context: str = ""
    relation: RelationType = RelationType.RELATED

    @field_validator("relation", mode="before")
    @classmethod
    def _parse_relation(cls, value: Any) -> RelationType:
        return RelationType.parse(value)

    @field_validator("context", mode="before")
    @classmethod
    def _parse_context(cls, value: Any) -> str:
        return "" if value is None else str(value).replace("[[", "").replace("]]", "").strip()


class NoteLinkChoices(_Payload):
    note_index: int
    links: List[Any] = Field(default_factory=list)  # validated one by one as LinkChoice


class FolderPairScore(_Payload):
    index: int
    hint: str = ""
    relation_type: str = ""
    confidence: float = 0.0

    @field_validator("confidence", mode="before")
    @classmethod
    def _parse_confidence(cls, value: Any) -> float:
        return _coerce_confidence(value)

    @field_validator("hint", "relation_type", mode="before")
    @classmethod
    def _parse_text(cls, value: Any) -> str:
        return "" if value is None else str(value).strip()
