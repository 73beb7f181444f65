import json

import pytest

from paraflux.linker.folder_relations import FolderRelationAnalyzer
from paraflux.linker.stores import FolderRelationStore, LinkFeedbackStore
from paraflux.models.links import FolderRelation
from paraflux.models.types import FolderRelationType


def _write(write_file, path, tags, related=()):
    body = "# Note\n"
    if related:
        body += "\n## Related Notes\n\n" + "".join(f"- [[{r}]] — ctx\n" for r in related)
    return write_file(path, "---\ntags: [" + ", ".join(tags) + "]\n---\n" + body)


@pytest.fixture
def linked_vault(vault, write_file):
    _write(write_file, vault.area_path / "Ops" / "deploy.md", ["docker", "k8s"], related=["images"])
    _write(write_file, vault.area_path / "Ops" / "monitor.md", ["grafana"])
    _write(write_file, vault.resource_path / "Docker" / "images.md", ["docker", "k8s"])
    _write(write_file, vault.archive_path / "Old" / "misc.md", ["unrelated"])
    return vault


def test_generate_candidates(linked_vault):
    analyzer = FolderRelationAnalyzer(linked_vault, None)
    candidates = analyzer.analyze()

    assert len(candidates) == 1
    pair = candidates[0]
    assert (pair.folder_a, pair.folder_b) == ("2_Area/Ops", "3_Resource/Docker")
    assert pair.existing_links == 1
    assert pair.shared_tags == 2
    assert pair.top_shared_tags == ["docker", "k8s"]
    # heuristic without AI: 1 * 0.1 + 2 * 0.05
    assert pair.confidence == pytest.approx(0.2)
    assert pair.proposed is None


def test_ai_scoring_proposes_boost(linked_vault, scripted_ai):
    ai = scripted_ai(fast=[json.dumps([
        {"index": 0, "hint": "images used by deployments", "relationType": "uses", "confidence": 0.8},
        {"index": 9, "confidence": 1.0},
    ])])
    analyzer = FolderRelationAnalyzer(linked_vault, ai)
    candidates = analyzer.analyze()

    assert candidates[0].confidence == pytest.approx(0.8)
    assert candidates[0].hint == "images used by deployments"
    assert candidates[0].proposed == FolderRelationType.BOOST
    assert "Ops" in ai.prompts[0][1]

    assert analyzer.persist(candidates) == 1
    stored = FolderRelationStore(linked_vault).load().relations[0]
    assert stored.type == FolderRelationType.BOOST
    assert stored.origin == "explore"
    assert stored.relation_type == "uses"


def test_removals_propose_suppress(linked_vault, scripted_ai):
    feedback = LinkFeedbackStore(linked_vault)
    for _ in range(3):
        feedback.record_removal("deploy", "images", "2_Area/Ops", "3_Resource/Docker")

    candidates = FolderRelationAnalyzer(linked_vault, scripted_ai(fast=["[]"])).analyze()

    assert candidates[0].removal_count == 3
    assert candidates[0].proposed == FolderRelationType.SUPPRESS


def test_existing_relation_excluded(linked_vault):
    FolderRelationStore(linked_vault).add(FolderRelation(
        source="3_Resource/Docker", target="2_Area/Ops", type=FolderRelationType.BOOST,
    ))
    assert FolderRelationAnalyzer(linked_vault, None).analyze() == []
