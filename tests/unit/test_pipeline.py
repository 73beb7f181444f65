import json
import re
import threading
from pathlib import Path

import pytest

from paraflux import frontmatter
from paraflux.errors import VaultStructureError
from paraflux.extraction import ExtractResult
from paraflux.models.classification import ClassificationResult
from paraflux.models.types import OutcomeKind, ParaCategory, PendingReason
from paraflux.pipeline import InboxProcessor
from paraflux.vault import VaultLayout


def _classify_by_name(answers):
    """Stage 1 replies built from {file name: payload}; Stage 2 never answers."""
    def handler(prompt, precise):
        if precise:
            return None
        names = re.findall(r"\] File name: (\S+)", prompt)
        if not names:
            return None  # summary requests
        return json.dumps([dict(answers[n], fileName=n) for n in names if n in answers])
    return handler


def test_process_files_confident_results(vault, write_file, scripted_ai):
    write_file(vault.inbox_path / "pipeline.md", "# CI\nsteps")
    write_file(vault.inbox_path / "recipe.md", "# Pasta")
    ai = scripted_ai(handler=_classify_by_name({
        "pipeline.md": {"para": "area", "targetFolder": "DevOps", "tags": ["ci"], "confidence": 0.95},
        "recipe.md": {"para": "resource", "targetFolder": "3_Resource/Cooking", "confidence": 0.9},
    }))
    progress = []

    result = InboxProcessor(vault, ai).process(on_progress=lambda f, m: progress.append(f))

    assert result.total == 2
    assert result.succeeded == 2
    assert result.pending == []
    assert (vault.area_path / "DevOps" / "pipeline.md").exists()
    assert (vault.resource_path / "Cooking" / "recipe.md").exists()
    assert list(vault.inbox_path.iterdir()) == []
    assert progress == sorted(progress)
    assert progress[-1] == 1.0


def test_empty_inbox(vault, scripted_ai):
    result = InboxProcessor(vault, scripted_ai()).process()
    assert result.total == 0
    assert result.outcomes == []


def test_low_confidence_becomes_pending(vault, write_file, scripted_ai):
    write_file(vault.inbox_path / "vague.md", "something")
    (vault.projects_path / "Apollo").mkdir()
    ai = scripted_ai(handler=_classify_by_name({"vague.md": {"para": "area", "confidence": 0.3}}))

    result = InboxProcessor(vault, ai).process()

    assert result.outcomes == []
    decision = result.pending[0]
    assert decision.reason == PendingReason.LOW_CONFIDENCE
    assert [o.category for o in decision.options] == [
        ParaCategory.AREA, ParaCategory.PROJECT, ParaCategory.RESOURCE, ParaCategory.ARCHIVE,
    ]
    assert decision.options[1].project == "Apollo"
    assert all(o.confidence == 0.5 for o in decision.options[1:])
    assert (vault.inbox_path / "vague.md").exists()


def test_no_ai_means_everything_pending(vault, write_file, scripted_ai):
    write_file(vault.inbox_path / "a.md", "x")
    result = InboxProcessor(vault, scripted_ai(available=False)).process()
    assert result.pending[0].reason == PendingReason.LOW_CONFIDENCE
    assert result.pending[0].proposal.category == ParaCategory.RESOURCE


def test_unmatched_project_then_confirm_creates_it(vault, write_file, scripted_ai):
    write_file(vault.inbox_path / "kickoff.md", "Kickoff notes")
    ai = scripted_ai(handler=_classify_by_name({
        "kickoff.md": {"para": "project", "project": "Moonshot", "confidence": 0.9},
    }))
    processor = InboxProcessor(vault, ai)

    decision = processor.process().pending[0]
    assert decision.reason == PendingReason.UNMATCHED_PROJECT
    assert decision.suggested_project == "Moonshot"
    assert all(o.category != ParaCategory.PROJECT for o in decision.options[1:])

    outcome = processor.resolve(decision)
    assert outcome.status.kind == OutcomeKind.SUCCESS
    assert (vault.projects_path / "Moonshot" / "Moonshot.md").exists()
    assert (vault.projects_path / "Moonshot" / "kickoff.md").exists()


def test_index_name_collision(vault, write_file, scripted_ai):
    write_file(vault.inbox_path / "DevOps.md", "overview")
    ai = scripted_ai(handler=_classify_by_name({
        "DevOps.md": {"para": "area", "targetFolder": "DevOps", "confidence": 0.9},
    }))
    result = InboxProcessor(vault, ai).process()
    assert result.pending[0].reason == PendingReason.INDEX_NAME_COLLISION


def test_existing_file_collision_only_when_enabled(vault, write_file, scripted_ai, config):
    write_file(vault.area_path / "DevOps" / "n.md", "old")
    answers = {"n.md": {"para": "area", "targetFolder": "DevOps", "confidence": 0.9}}

    write_file(vault.inbox_path / "n.md", "new")
    config.set_confirm_name_collisions(True)
    result = InboxProcessor(vault, scripted_ai(handler=_classify_by_name(answers)), config=config).process()
    assert result.pending[0].reason == PendingReason.EXISTING_FILE_COLLISION

    config.set_confirm_name_collisions(False)
    result = InboxProcessor(vault, scripted_ai(handler=_classify_by_name(answers)), config=config).process()
    assert Path(result.outcomes[0].target_path).name == "n_2.md"


def test_configured_threshold(vault, write_file, scripted_ai, config):
    write_file(vault.inbox_path / "a.md", "x")
    config.set_low_confidence_threshold(0.95)
    ai = scripted_ai(handler=_classify_by_name({"a.md": {"para": "area", "confidence": 0.9}}))
    result = InboxProcessor(vault, ai, config=config).process()
    assert result.pending[0].reason == PendingReason.LOW_CONFIDENCE


def test_extraction_error_is_isolated(vault, write_file, scripted_ai):
    write_file(vault.inbox_path / "bad.md", "x")
    write_file(vault.inbox_path / "good.md", "y")

    class FlakyExtractor:
        def extract(self, path):
            if path.name == "bad.md":
                raise OSError("unreadable")
            return ExtractResult(text=path.read_text())

    ai = scripted_ai(handler=_classify_by_name({"good.md": {"para": "area", "confidence": 0.9}}))
    result = InboxProcessor(vault, ai, extractor=FlakyExtractor()).process()

    assert result.failed == 1
    assert result.succeeded == 1
    assert result.outcomes[0].file_name == "bad.md"
    assert "unreadable" in result.outcomes[0].status.detail


def test_undecodable_text_fails_only_that_file(vault, write_file, scripted_ai):
    (vault.inbox_path / "latin1.txt").write_bytes(b"caf\xe9")
    write_file(vault.inbox_path / "ok.md", "fine")
    ai = scripted_ai(handler=_classify_by_name({
        "latin1.txt": {"para": "area", "confidence": 0.9},
        "ok.md": {"para": "area", "confidence": 0.9},
    }))
    result = InboxProcessor(vault, ai).process()
    kinds = {o.file_name: o.status.kind for o in result.outcomes}
    assert kinds == {"latin1.txt": OutcomeKind.ERROR, "ok.md": OutcomeKind.SUCCESS}


def test_cancel_before_run(vault, write_file, scripted_ai):
    write_file(vault.inbox_path / "a.md", "x")
    cancel = threading.Event()
    cancel.set()
    result = InboxProcessor(vault, scripted_ai()).process(cancel=cancel)
    assert result.cancelled
    assert (vault.inbox_path / "a.md").exists()


def test_vault_structure_error_propagates(tmp_path, scripted_ai):
    blocker = tmp_path / "blocker"
    blocker.write_text("x")
    with pytest.raises(VaultStructureError):
        InboxProcessor(VaultLayout(blocker / "vault"), scripted_ai()).process()


def test_resolve_skip_and_delete(vault, write_file, scripted_ai):
    write_file(vault.inbox_path / "a.md", "x")
    write_file(vault.inbox_path / "b.md", "y")
    processor = InboxProcessor(vault, scripted_ai(available=False))
    first, second = processor.process().pending

    skipped = processor.resolve(first, action="skip")
    assert skipped.status.kind == OutcomeKind.SKIPPED
    assert skipped.status.detail == "low-confidence"
    assert (vault.inbox_path / "a.md").exists()

    deleted = processor.resolve(second, action="delete")
    assert deleted.status.kind == OutcomeKind.DELETED
    assert (vault.trash_path / "b.md").exists()

    unknown = processor.resolve(first, action="explode")
    assert unknown.is_error


def test_resolve_with_alternative(vault, write_file, scripted_ai):
    write_file(vault.inbox_path / "a.md", "x")
    processor = InboxProcessor(vault, scripted_ai(available=False))
    decision = processor.process().pending[0]
    archive = next(o for o in decision.options if o.category == ParaCategory.ARCHIVE)

    outcome = processor.resolve(decision, archive)
    assert outcome.category == ParaCategory.ARCHIVE
    assert (vault.archive_path / "a.md").exists()


def test_find_misplaced_and_relocate(vault, write_file, scripted_ai):
    write_file(vault.resource_path / "Ops" / "runbook.md", "---\ncategory: area\ntags: [ops]\n---\nsteps\n")
    write_file(vault.resource_path / "Ops" / "fine.md", "---\ncategory: resource\n---\nok\n")
    write_file(vault.resource_path / "_drafts" / "hidden.md", "---\ncategory: area\n---\nx\n")

    processor = InboxProcessor(vault, scripted_ai())
    decisions = processor.find_misplaced()

    assert [d.file_name for d in decisions] == ["runbook.md"]
    move, keep = decisions[0].options
    assert move.category == ParaCategory.AREA and move.target_folder == "Ops"
    assert keep.category == ParaCategory.RESOURCE

    outcome = processor.resolve(decisions[0], move)
    assert outcome.status.kind == OutcomeKind.RELOCATED
    fm, _ = frontmatter.parse((vault.area_path / "Ops" / "runbook.md").read_text(encoding="utf-8"))
    assert fm.category == ParaCategory.AREA


def test_keep_rewrites_category_in_place(vault, write_file, scripted_ai):
    note = write_file(vault.resource_path / "Ops" / "runbook.md", "---\ncategory: area\n---\nsteps\n")
    processor = InboxProcessor(vault, scripted_ai())
    decision = processor.find_misplaced()[0]

    processor.resolve(decision, decision.options[1])
    fm, _ = frontmatter.parse(note.read_text(encoding="utf-8"))
    assert fm.category == ParaCategory.RESOURCE
    assert processor.find_misplaced() == []


def test_generate_options_without_projects():
    base = ClassificationResult(ParaCategory.AREA, confidence=0.2)
    options = InboxProcessor.generate_options(base, [])
    assert [o.category for o in options] == [ParaCategory.AREA, ParaCategory.RESOURCE, ParaCategory.ARCHIVE]
