import json
import re
import threading

import pytest

from paraflux.ai.classifier import TwoStageClassifier, fuzzy_match_project, strip_category_prefix
from paraflux.ai.stage1 import Stage1Processor
from paraflux.ai.stage2 import Stage2Processor
from paraflux.models.classification import ClassifyInput
from paraflux.models.types import ParaCategory


def _inputs(*names):
    return [ClassifyInput(file_path=f"/inbox/{n}", content=f"content of {n}") for n in names]


def _stage1_handler(answers, stage2=None):
    """Answers Stage 1 for every file named in the batch prompt, Stage 2 per file."""
    def handler(prompt, precise):
        if precise:
            name = re.search(r"File name: (\S+)", prompt).group(1)
            if stage2 is None or name not in stage2:
                return None
            return json.dumps(stage2[name])
        names = re.findall(r"\] File name: (\S+)", prompt)
        return json.dumps([dict(answers[n], fileName=n) for n in names if n in answers])
    return handler


@pytest.mark.parametrize("raw, expected", [
    ("2_Area/DevOps", "DevOps"),
    ("3_resource/Books/SciFi", "Books/SciFi"),
    ("Resource", ""),
    ("3_Resource", ""),
    ("Areas", ""),
    (None, ""),
    ("DevOps", "DevOps"),
])
def test_strip_category_prefix(raw, expected):
    assert strip_category_prefix(raw) == expected


def test_fuzzy_match_project():
    projects = ["Website_Relaunch", "Apollo"]
    assert fuzzy_match_project("Apollo", projects) == "Apollo"
    assert fuzzy_match_project("website relaunch", projects) == "Website_Relaunch"
    assert fuzzy_match_project("Website-Relaunch 2024", projects) == "Website_Relaunch"
    assert fuzzy_match_project("Gemini", projects) is None
    assert fuzzy_match_project("Apollo", []) is None


def test_stage1_parse_response_matches_names():
    batch = _inputs("a.md", "B.md")
    reply = json.dumps([
        {"fileName": "b.md", "para": "area", "confidence": 0.9},
        {"fileName": "a.md", "para": "resource", "confidence": 0.95},
        {"fileName": "a.md", "para": "archive", "confidence": 0.99},
        {"fileName": "ghost.md", "para": "area", "confidence": 0.9},
        {"fileName": "a.md", "para": "bogus"},
    ])
    items = Stage1Processor.parse_response(reply, batch, offset=10)
    assert set(items) == {10, 11}
    assert items[10].para == ParaCategory.RESOURCE
    assert items[11].para == ParaCategory.AREA


def test_stage2_parse_response_variants():
    payload = Stage2Processor.parse_response('[{"para": "area", "targetPath": "2_Area/Health"}]')
    assert payload.para == ParaCategory.AREA
    assert payload.target_folder == "2_Area/Health"
    assert Stage2Processor.parse_response("nothing") is None
    assert Stage2Processor.parse_response('{"para": "weird"}') is None


def test_confident_stage1_skips_stage2(scripted_ai):
    ai = scripted_ai(handler=_stage1_handler({
        "a.md": {"para": "area", "targetFolder": "2_Area/DevOps", "tags": ["ops"], "confidence": 0.9},
    }))
    results = TwoStageClassifier(ai).classify_files(_inputs("a.md"), project_names=[])

    assert ai.count("precise") == 0
    assert results[0].category == ParaCategory.AREA
    assert results[0].target_folder == "DevOps"
    assert results[0].tags == ("ops",)


def test_uncertain_files_go_to_stage2(scripted_ai):
    ai = scripted_ai(handler=_stage1_handler(
        {"a.md": {"para": "area", "confidence": 0.4}, "b.md": {"para": "resource", "confidence": 0.95}},
        stage2={"a.md": {"para": "project", "project": "apollo", "confidence": 0.9}},
    ))
    results = TwoStageClassifier(ai).classify_files(_inputs("a.md", "b.md"), project_names=["Apollo"])

    assert ai.count("precise") == 1
    assert results[0].category == ParaCategory.PROJECT
    assert results[0].project == "Apollo"
    assert results[0].suggested_project is None
    assert results[1].category == ParaCategory.RESOURCE


def test_failed_stage2_keeps_stage1_and_missing_gets_default(scripted_ai):
    ai = scripted_ai(handler=_stage1_handler({"a.md": {"para": "archive", "confidence": 0.3}}))
    results = TwoStageClassifier(ai).classify_files(_inputs("a.md", "b.md"), project_names=[])

    assert results[0].category == ParaCategory.ARCHIVE
    assert results[0].confidence == pytest.approx(0.3)
    assert results[1].category == ParaCategory.RESOURCE
    assert results[1].confidence == 0.0


def test_unknown_project_becomes_suggestion(scripted_ai):
    ai = scripted_ai(handler=_stage1_handler({
        "a.md": {"para": "project", "targetFolder": "1_Project/Moonshot", "confidence": 0.9},
    }))
    result = TwoStageClassifier(ai).classify_files(_inputs("a.md"), project_names=["Apollo"])[0]

    assert result.project is None
    assert result.suggested_project == "Moonshot"
    assert result.needs_project_confirmation


def test_batches_of_five(scripted_ai):
    names = [f"n{i}.md" for i in range(12)]
    ai = scripted_ai(handler=_stage1_handler({n: {"para": "resource", "confidence": 0.9} for n in names}))
    progress = []
    results = TwoStageClassifier(ai).classify_files(
        _inputs(*names), project_names=[], on_progress=lambda f, m: progress.append(f)
    )

    assert ai.count("fast") == 3
    assert len(results) == 12
    assert progress[-1] == 1.0


def test_cancelled_before_start_uses_defaults(scripted_ai):
    ai = scripted_ai(handler=_stage1_handler({"a.md": {"para": "area", "confidence": 0.9}}))
    cancel = threading.Event()
    cancel.set()
    results = TwoStageClassifier(ai).classify_files(_inputs("a.md"), project_names=[], cancel=cancel)

    assert ai.prompts == []
    assert results[0].category == ParaCategory.RESOURCE


def _first_index(prompt):
    return int(re.search(r"File name: f(\d+)\.md", prompt).group(1))


def test_stage1_batches_capped_at_three_and_kept_in_order(scripted_ai):
    names = [f"f{i:02d}.md" for i in range(30)]
    answers = {n: {"para": "area", "targetFolder": f"F{i:02d}", "confidence": 0.95} for i, n in enumerate(names)}
    # Later batches answer first
    ai = scripted_ai(handler=_stage1_handler(answers), delay=lambda p: 0.05 + 0.01 * (30 - _first_index(p)))

    results = TwoStageClassifier(ai).classify_files(_inputs(*names), project_names=[])

    assert ai.count("fast") == 6
    assert ai.peak_in_flight == Stage1Processor.MAX_CONCURRENT == 3
    assert [r.target_folder for r in results] == [f"F{i:02d}" for i in range(30)]


def test_stage2_requests_capped_at_three_and_kept_in_order(scripted_ai):
    names = [f"f{i:02d}.md" for i in range(9)]
    stage2 = {n: {"para": "resource", "targetFolder": f"R{i:02d}", "confidence": 0.9} for i, n in enumerate(names)}
    ai = scripted_ai(
        handler=_stage1_handler({}, stage2=stage2),
        delay=lambda p: 0.05 + 0.02 * (9 - _first_index(p)) if "] File name:" not in p else 0,
    )

    results = TwoStageClassifier(ai).classify_files(_inputs(*names), project_names=[])

    assert ai.count("precise") == 9
    assert ai.peak_in_flight == Stage2Processor.MAX_CONCURRENT == 3
    assert [r.target_folder for r in results] == [f"R{i:02d}" for i in range(9)]
    assert all(r.category == ParaCategory.RESOURCE for r in results)
