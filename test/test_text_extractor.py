import io

import pytest
from docx import Document

from duelist.errors import ExtractionFailed, UnsupportedMediaType
from extraction import text_extractor
from extraction.text_extractor import DOCX, PDF, TEXT, extract_text, is_supported


def make_pdf(pages):
    """Minimal single-font PDF, one text line per page, with a valid xref table."""
    n = len(pages)
    kids = " ".join(f"{4 + 2 * i} 0 R" for i in range(n))
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        f"<< /Type /Pages /Kids [{kids}] /Count {n} >>".encode(),
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    for i, text in enumerate(pages):
        content = f"BT /F1 12 Tf 72 720 Td ({text}) Tj ET".encode()
        objects.append(
            (
                "<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
                f"/Resources << /Font << /F1 3 0 R >> >> /Contents {5 + 2 * i} 0 R >>"
            ).encode()
        )
        objects.append(b"<< /Length %d >>\nstream\n" % len(content) + content + b"\nendstream")

    out = b"%PDF-1.4\n"
    offsets = []
    for num, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += b"%d 0 obj\n" % num + body + b"\nendobj\n"
    xref = len(out)
    out += b"xref\n0 %d\n" % (len(objects) + 1)
    out += b"0000000000 65535 f \n"
    for off in offsets:
        out += b"%010d 00000 n \n" % off
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (
        len(objects) + 1,
        xref,
    )
    return out


def make_docx(paragraphs, table_rows=()):
    doc = Document()
    for p in paragraphs:
        doc.add_paragraph(p)
    if table_rows:
        table = doc.add_table(rows=len(table_rows), cols=len(table_rows[0]))
        for r, row in enumerate(table_rows):
            for c, value in enumerate(row):
                table.cell(r, c).text = value
    buf = io.BytesIO()
    doc.save(buf)
    return buf.getvalue()


def test_plain_text_is_utf8_decoded():
    assert extract_text("Essay due 2025-09-01 – café".encode("utf-8"), TEXT) == "Essay due 2025-09-01 – café"


def test_media_type_parameters_are_ignored():
    assert extract_text(b"Quiz 1", "text/plain; charset=utf-8") == "Quiz 1"


def test_pdf_all_pages_in_order():
    data = make_pdf(["Essay 1 due 2025-09-01", "Final exam 2025-12-10"])
    text = extract_text(data, PDF)
    assert "Essay 1 due 2025-09-01" in text
    assert "Final exam 2025-12-10" in text
    assert text.index("Essay 1") < text.index("Final exam")


def test_docx_paragraphs_and_tables():
    data = make_docx(
        ["CS 101 Syllabus", "Essay 1 due 2025-09-01"],
        table_rows=[("Quiz 1", "2025-09-15")],
    )
    text = extract_text(data, DOCX)
    assert text.splitlines()[:2] == ["CS 101 Syllabus", "Essay 1 due 2025-09-01"]
    assert "Quiz 1\t2025-09-15" in text


def test_unsupported_type_is_rejected_without_decoding(monkeypatch):
    called = []
    monkeypatch.setattr(
        text_extractor,
        "_EXTRACTORS",
        {k: (lambda data, k=k: called.append(k)) for k in text_extractor._EXTRACTORS},
    )
    with pytest.raises(UnsupportedMediaType):
        extract_text(b"\x89PNG", "image/png")
    assert called == []


def test_missing_media_type_is_unsupported():
    assert not is_supported(None)
    with pytest.raises(UnsupportedMediaType):
        extract_text(b"hello", "")


def test_corrupt_pdf_fails_with_cause():
    with pytest.raises(ExtractionFailed) as exc:
        extract_text(b"definitely not a pdf", PDF)
    assert str(exc.value).startswith("Failed to extract text:")


def test_corrupt_docx_fails():
    with pytest.raises(ExtractionFailed):
        extract_text(b"PK\x03\x04 broken zip", DOCX)


def test_invalid_utf8_fails():
    with pytest.raises(ExtractionFailed):
        extract_text(b"\xff\xfe\xfa", TEXT)
