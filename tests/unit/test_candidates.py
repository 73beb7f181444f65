from pathlib import Path

from paraflux.linker.candidates import LinkCandidateGenerator
from paraflux.linker.context_map import ContextMap, ContextMapBuilder, ContextMapEntry, parse_documents_section
from paraflux.linker.stores import pair_key
from paraflux.models.links import NoteInfo
from paraflux.models.types import ParaCategory


def _note(name, folder="2_Area/Ops", tags=(), project=None, related=(), summary=""):
    return NoteInfo(
        name=name,
        path=Path(f"/vault/{folder}/{name}.md"),
        folder_name=folder.rsplit("/", 1)[-1],
        folder_rel_path=folder,
        category=ParaCategory.from_path(folder),
        tags=list(tags),
        summary=summary,
        project=project,
        existing_related=set(related),
    )


def test_tag_overlap_threshold():
    a = _note("A", tags=["x", "y", "z"])
    b = _note("B", tags=["X", "y"])
    c = _note("C", tags=["x"])
    generator = LinkCandidateGenerator([a, b, c])

    assert generator.score(a, b) == 3.0
    assert generator.score(a, c) == 0.0
    assert [c.name for c in generator.generate(a)] == ["B"]


def test_project_bonus_and_ordering():
    a = _note("A", tags=["x", "y"], project="Apollo")
    b = _note("B", tags=["x", "y"], project="apollo")
    c = _note("C", tags=["x", "y"])
    generator = LinkCandidateGenerator([a, b, c])

    result = generator.generate(a)
    assert [(r.name, r.score) for r in result] == [("B", 5.0), ("C", 3.0)]


def test_existing_links_and_self_excluded():
    a = _note("A", tags=["x", "y"], related=["B"])
    b = _note("B", tags=["x", "y"])
    assert LinkCandidateGenerator([a, b]).generate(a) == []


def test_context_groups_and_boosted_folders():
    a = _note("A", folder="2_Area/Ops")
    b = _note("B", folder="3_Resource/Docs")
    context = ContextMap(entries=[
        ContextMapEntry("A", "", "Hub", "2_Area/Hub", ParaCategory.AREA),
        ContextMapEntry("B", "", "Hub", "2_Area/Hub", ParaCategory.AREA),
    ])
    boost = {pair_key("2_Area/Ops", "3_Resource/Docs")}

    generator = LinkCandidateGenerator([a, b], context_map=context, boost_keys=boost)
    assert generator.score(a, b) == 3.0
    assert [c.name for c in generator.generate(a)] == ["B"]

    plain = LinkCandidateGenerator([a, b], context_map=context)
    assert plain.generate(a) == []


def test_suppressed_pair_scores_zero():
    a = _note("A", folder="2_Area/Ops", tags=["x", "y", "z"])
    b = _note("B", folder="3_Resource/Docs", tags=["x", "y", "z"])
    generator = LinkCandidateGenerator([a, b], suppress_keys={pair_key("3_Resource/Docs", "2_Area/Ops")})
    assert generator.score(a, b) == 0.0
    assert generator.generate(a) == []


def test_same_name_in_two_folders_collapses():
    a = _note("A", tags=["x", "y"])
    b1 = _note("B", folder="3_Resource/One", tags=["x", "y"])
    b2 = _note("B", folder="3_Resource/Two", tags=["x", "y"], project=None)
    result = LinkCandidateGenerator([a, b1, b2]).generate(a)
    assert [r.name for r in result] == ["B"]


def test_parse_documents_section():
    body = "# Hub\n\n## Documents\n\n- [[One]] — first\n- [[Two|alias]]\n- plain line\n\n## Other\n- [[Three]]\n"
    assert parse_documents_section(body) == [("One", "first"), ("Two", "")]


def test_context_map_builder(vault, write_file):
    write_file(
        vault.area_path / "Ops" / "Ops.md",
        "---\ncategory: area\ntags: [infra]\nsummary: Operations\n---\n# Ops\n\n## Documents\n\n- [[runbook]] — How to restart\n",
    )
    write_file(
        vault.resource_path / "Guides" / "Guides.md",
        "---\ncategory: resource\n---\n# Guides\n\n## Documents\n\n- [[runbook]]\n",
    )
    (vault.archive_path / "NoIndex").mkdir()

    context = ContextMapBuilder(vault).build()

    assert context.folder_count == 3
    assert context.groups_by_note() == {"runbook": {"2_Area/Ops", "3_Resource/Guides"}}
    text = context.to_prompt_text()
    assert "### Area" in text
    assert "**Ops**: Operations [infra]" in text
    assert "  - [[runbook]] — How to restart" in text


def test_empty_context_map_text():
    assert ContextMap().to_prompt_text() == "No documents in the vault"
