from paraflux import frontmatter
from paraflux.frontmatter import FileMetadata, Frontmatter, merge_tags, parse, quote_value, strip
from paraflux.models.types import NoteSource, NoteStatus, ParaCategory


def test_parse_known_keys():
    text = (
        "---\n"
        "category: area\n"
        "tags: [devops, \"ci, cd\"]\n"
        "created: 2024-05-01\n"
        "status: active\n"
        "summary: \"Build pipeline: overview\"\n"
        "source: meeting\n"
        "project: Apollo\n"
        "---\n"
        "# Body\n"
    )
    fm, body = parse(text)
    assert fm.category == ParaCategory.AREA
    assert fm.tags == ["devops", "ci, cd"]
    assert fm.created == "2024-05-01"
    assert fm.status == NoteStatus.ACTIVE
    assert fm.summary == "Build pipeline: overview"
    assert fm.source == NoteSource.MEETING
    assert fm.project == "Apollo"
    assert body == "# Body\n"


def test_parse_block_list_and_legacy_para_key():
    text = "---\npara: 3_Resource\ntags:\n  - alpha\n  - Beta\n---\nbody"
    fm, body = parse(text)
    assert fm.category == ParaCategory.RESOURCE
    assert fm.tags == ["alpha", "Beta"]
    assert body == "body"


def test_parse_without_frontmatter_returns_text():
    fm, body = parse("# Just a note\n")
    assert fm.is_empty
    assert body == "# Just a note\n"


def test_unterminated_block_is_body():
    text = "---\ncategory: area\nno end here"
    fm, body = parse(text)
    assert fm.is_empty
    assert body == text


def test_malformed_block_is_ignored():
    text = "---\n  indented: first\n---\nbody"
    fm, body = parse(text)
    assert fm.is_empty
    assert body == text


def test_file_object_and_extra_keys_survive():
    text = (
        "---\n"
        "category: resource\n"
        "aliases: [foo]\n"
        "file:\n"
        "  name: report.pdf\n"
        "  format: pdf\n"
        "  size_kb: 12.5\n"
        "---\n"
        "x"
    )
    fm, _ = parse(text)
    assert fm.file == FileMetadata(name="report.pdf", format="pdf", size_kb=12.5)
    assert fm.extra_lines == ["aliases: [foo]"]

    out = fm.stringify()
    assert "aliases: [foo]" in out
    assert "  size_kb: 12.5" in out


def test_stringify_fixed_order_and_quoting():
    fm = Frontmatter(
        category=ParaCategory.PROJECT,
        tags=["a", "b"],
        created="2024-01-02",
        status=NoteStatus.DRAFT,
        summary="Notes: part 1",
        source=NoteSource.ORIGINAL,
        project="true",
    )
    lines = fm.stringify().split("\n")
    assert lines[0] == "---" and lines[-1] == "---"
    keys = [line.split(":", 1)[0] for line in lines[1:-1]]
    assert keys == ["category", "tags", "created", "status", "summary", "source", "project"]
    assert 'summary: "Notes: part 1"' in lines
    assert 'project: "true"' in lines


def test_quote_value_rules():
    assert quote_value("plain") == "plain"
    assert quote_value("42") == '"42"'
    assert quote_value("yes") == '"yes"'
    assert quote_value("- dash") == '"- dash"'
    assert quote_value('say "hi"') == '"say \\"hi\\""'
    assert quote_value(" padded") == '" padded"'


def test_stringify_parse_preserves_tricky_values():
    fm = Frontmatter(summary='a: "b" #c', tags=["x, y", "[z]"])
    parsed, _ = parse(fm.stringify() + "\nbody")
    assert parsed.summary == 'a: "b" #c'
    assert parsed.tags == ["x, y", "[z]"]


def test_carriage_return_survives_round_trip():
    assert quote_value("a\r\nb") == '"a\\r\\nb"'
    fm = Frontmatter(summary="line1\r\nline2")
    parsed, _ = parse(fm.stringify() + "\nbody")
    assert parsed.summary == "line1\r\nline2"


def test_tags_deduplicated_case_insensitive():
    fm = Frontmatter(tags=["Python", "python", " ", "Go"])
    assert fm.tags == ["Python", "Go"]


def test_inject_existing_values_win():
    note = "---\ncategory: area\ntags: [mine]\n---\n# Note\n"
    fm = Frontmatter.create_default(ParaCategory.RESOURCE, tags=["ai"], summary="generated")
    result = fm.inject(note)
    parsed, body = parse(result)
    assert parsed.category == ParaCategory.AREA
    assert parsed.tags == ["mine"]
    assert parsed.summary == "generated"
    assert parsed.created == frontmatter.today()
    assert body == "# Note\n"


def test_inject_into_plain_note():
    fm = Frontmatter.create_default(ParaCategory.AREA, tags=["x"])
    result = fm.inject("Hello")
    assert result.startswith("---\ncategory: area\n")
    assert strip(result) == "Hello"


def test_merge_tags_is_idempotent():
    note = "---\ntags: [a]\n---\nbody"
    once, changed = merge_tags(note, ["b", "A"])
    assert changed
    assert parse(once)[0].tags == ["a", "b"]

    twice, changed_again = merge_tags(once, ["b"])
    assert not changed_again
    assert twice == once
