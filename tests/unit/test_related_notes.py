from paraflux.linker.related_notes import (
    DEFAULT_CONTEXT,
    RelatedNotesWriter,
    merge_links,
    parse_related,
    related_names,
    render_section,
    sanitize_wikilink,
)
from paraflux.models.links import RelatedLink
from paraflux.models.types import RelationType


NOTE = """# Title

Body text.

## Related Notes

- [[Alpha]] — first context
* [[Beta|shown]]: second
- [[Gamma]]
- [[Alpha]] — duplicate

## Appendix

more
"""


def test_parse_related_entries():
    links = parse_related(NOTE)
    assert [link.name for link in links] == ["Alpha", "Beta", "Gamma"]
    assert links[0].context == "first context"
    assert links[1].context == "second"
    assert links[2].context == DEFAULT_CONTEXT
    assert related_names("no section here") == set()


def test_parse_grouped_section():
    text = "## Related Notes\n\n### Prerequisites\n- [[A]] — x\n\n### References\n- [[B]] — y\n"
    links = parse_related(text)
    assert links[0].relation == RelationType.PREREQUISITE
    assert links[1].relation == RelationType.REFERENCE


def test_sanitize_wikilink():
    assert sanitize_wikilink("[[a/b]]") == "a-b"
    assert sanitize_wikilink("../x") == "-x"


def test_render_flat_and_grouped():
    flat = render_section([RelatedLink("A", "ctx"), RelatedLink("B", "")])
    assert flat == f"## Related Notes\n\n- [[A]] — ctx\n- [[B]] — {DEFAULT_CONTEXT}"

    grouped = render_section([
        RelatedLink("R", "r", RelationType.REFERENCE),
        RelatedLink("P", "p", RelationType.PREREQUISITE),
        RelatedLink("X", "x"),
    ])
    assert grouped == (
        "## Related Notes\n\n"
        "### Prerequisites\n- [[P]] — p\n\n"
        "### References\n- [[R]] — r\n\n"
        "### Related\n- [[X]] — x"
    )


def test_merge_appends_section():
    text, added = merge_links("# Note\n\nBody\n", [RelatedLink("Other", "see [[this]]")], "Note")
    assert added == 1
    assert text == "# Note\n\nBody\n\n## Related Notes\n\n- [[Other]] — see this\n"


def test_merge_replaces_section_in_place():
    text, added = merge_links(NOTE, [RelatedLink("Delta", "new")], "Title")
    assert added == 1
    assert text.index("[[Delta]]") < text.index("## Appendix")
    assert text.count("## Related Notes") == 1
    assert text.endswith("## Appendix\n\nmore\n")
    assert related_names(text) == {"Alpha", "Beta", "Gamma", "Delta"}


def test_merge_filters_self_duplicates_and_unknown():
    links = [RelatedLink("Title", "self"), RelatedLink("Alpha", "dup"), RelatedLink("Ghost", "x")]
    text, added = merge_links(NOTE, links, "Title", note_names={"Alpha", "Title"})
    assert added == 0
    assert text == NOTE


def test_merge_is_idempotent():
    once, _ = merge_links("Body\n", [RelatedLink("A", "c")], "N")
    twice, added = merge_links(once, [RelatedLink("A", "c")], "N")
    assert added == 0
    assert twice == once


def test_writer(tmp_path):
    path = tmp_path / "Note.md"
    path.write_text("---\ntags: [x]\n---\nBody\n", encoding="utf-8")
    writer = RelatedNotesWriter()

    assert writer.write(path, [RelatedLink("Other", "ctx")], {"Other", "Note"}) == 1
    assert writer.write(path, [RelatedLink("Other", "ctx")], {"Other", "Note"}) == 0
    content = path.read_text(encoding="utf-8")
    assert content.startswith("---\ntags: [x]\n---\nBody\n")
    assert "- [[Other]] — ctx" in content


def test_single_typed_relation_renders_grouped():
    section = render_section([RelatedLink("P", "p", RelationType.PREREQUISITE)])
    assert section == "## Related Notes\n\n### Prerequisites\n- [[P]] — p"
    assert parse_related(section)[0].relation == RelationType.PREREQUISITE


def test_relation_kept_across_merges():
    text, _ = merge_links("# N\n", [RelatedLink("B", "needs", RelationType.PREREQUISITE)], "N")
    text, added = merge_links(text, [RelatedLink("C", "see", RelationType.REFERENCE)], "N")

    assert added == 1
    relations = {link.name: link.effective_relation for link in parse_related(text)}
    assert relations == {"B": RelationType.PREREQUISITE, "C": RelationType.REFERENCE}
    assert text.index("### Prerequisites") < text.index("[[B]]") < text.index("### References")
