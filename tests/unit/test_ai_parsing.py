import pytest
from pydantic import ValidationError

from paraflux.ai.parsing import parse_json_payload, strip_code_fences
from paraflux.models.ai_payloads import FolderPairScore, LinkChoice, Stage1Item, Stage2Payload
from paraflux.models.types import ParaCategory, RelationType


def test_strip_code_fences():
    assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences('{"a": 1}') == '{"a": 1}'


@pytest.mark.parametrize("reply, expected", [
    ('[{"a": 1}]', [{"a": 1}]),
    ('```json\n{"a": 1}\n```', {"a": 1}),
    ('Sure! Here you go: {"a": [1, 2]} Hope that helps.', {"a": [1, 2]}),
    ('prefix [1, 2, 3] suffix', [1, 2, 3]),
    ('{"text": "line\nbreak"}', {"text": "line\nbreak"}),
])
def test_parse_json_payload(reply, expected):
    assert parse_json_payload(reply) == expected


@pytest.mark.parametrize("reply", [None, "", "no json here", "} backwards {", '{"open": '])
def test_parse_json_payload_failures(reply):
    assert parse_json_payload(reply) is None


def test_stage1_item_coercion():
    item = Stage1Item.model_validate({
        "fileName": "notes.md",
        "para": "2_Area",
        "tags": "#ops, Ops, cloud, a, b, c, d",
        "summary": None,
        "confidence": 85,
        "project": "null",
        "targetFolder": " DevOps ",
    })
    assert item.file_name == "notes.md"
    assert item.para == ParaCategory.AREA
    assert item.tags == ["ops", "cloud", "a", "b", "c"]
    assert item.summary == ""
    assert item.confidence == pytest.approx(0.85)
    assert item.project is None
    assert item.target_folder == "DevOps"


def test_stage1_item_rejects_unknown_category():
    with pytest.raises(ValidationError):
        Stage1Item.model_validate({"fileName": "x.md", "para": "inbox"})


def test_stage2_confidence_defaults_to_certain():
    payload = Stage2Payload.model_validate({"para": "project", "project": "Apollo"})
    assert payload.confidence == 1.0
    assert payload.project == "Apollo"


def test_link_choice_normalizes():
    choice = LinkChoice.model_validate({"index": 2, "context": "[[Other]] explains it", "relation": "Prerequisite"})
    assert choice.context == "Other explains it"
    assert choice.relation == RelationType.PREREQUISITE

    fallback = LinkChoice.model_validate({"index": 0, "relation": "cousin"})
    assert fallback.relation == RelationType.RELATED


def test_folder_pair_score():
    score = FolderPairScore.model_validate({"index": 1, "hint": None, "relationType": "uses", "confidence": "0.4"})
    assert score.hint == ""
    assert score.relation_type == "uses"
    assert score.confidence == pytest.approx(0.4)
