import fitz

from paraflux.extraction import DefaultExtractor, describe_file


def test_text_file(tmp_path):
    path = tmp_path / "note.md"
    path.write_bytes("Hello \xe4".encode("utf-8") + b"\xff")
    result = DefaultExtractor().extract(path)
    assert result.text.startswith("Hello \xe4")
    assert not result.is_binary


def test_pdf_text(tmp_path):
    path = tmp_path / "doc.pdf"
    doc = fitz.open()
    page = doc.new_page()
    page.insert_text((72, 72), "Quarterly report")
    doc.save(str(path))
    doc.close()

    result = DefaultExtractor().extract(path)
    assert "Quarterly report" in result.text
    assert result.is_binary
    assert result.file.name == "doc.pdf"
    assert result.file.format == "pdf"


def test_broken_pdf_gets_placeholder(tmp_path):
    path = tmp_path / "broken.pdf"
    path.write_bytes(b"not a pdf")
    result = DefaultExtractor().extract(path)
    assert result.text == "[PDF] broken.pdf"
    assert result.is_binary


def test_image_descriptor_only(tmp_path):
    path = tmp_path / "photo.png"
    path.write_bytes(b"\x89PNG" + b"\x00" * 2048)
    result = DefaultExtractor().extract(path)
    assert result.text == "[PNG] photo.png"
    assert describe_file(path).size_kb == 2.0
