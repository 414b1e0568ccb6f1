import json
import os

import pytest
from docx import Document as DocxDocument

from reportgen.docs.pipeline import process_report


def _write_report(tmp_path, **overrides):
    data = {
        "title": "Wind Energy",
        "abstract": "Wind is a renewable source.",
        "chapters": [
            {
                "number": 1,
                "title": "Turbines",
                "content": "Blades turn. [IMAGE:wind turbine]",
                "subsections": [{"title": "1.1 Design", "content": "Three blades."}],
            }
        ],
        "references": ["IEA, Wind Report."],
        "fontSizes": {"content": 30, "chapter": 16},
    }
    data.update(overrides)
    path = tmp_path / "report.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


def test_process_report_writes_docx_next_to_input(tmp_path):
    path = _write_report(tmp_path)
    out = process_report(path, fetch_missing_images=False)
    assert out["docx"] == os.path.join(str(tmp_path), "wind_energy_report.docx")

    doc = DocxDocument(out["docx"])
    texts = [p.text for p in doc.paragraphs]
    assert "Blades turn." in texts
    assert "1.1 Design:" in texts
    assert len(doc.inline_shapes) == 0

    # stored content size 30 is clamped to 18pt
    body = next(p for p in doc.paragraphs if p.text == "Blades turn.")
    assert body.runs[0].font.size.pt == 18


def test_process_report_explicit_sizes_and_preview(tmp_path):
    path = _write_report(tmp_path)
    out = process_report(
        path,
        out_dir=str(tmp_path / "out"),
        content_font_size=11,
        chapter_font_size=19,
        preview_dir=str(tmp_path / "preview"),
        fetch_missing_images=False,
    )
    assert out["docx"].startswith(str(tmp_path / "out"))
    assert int(out["preview_pages"]) == len(os.listdir(out["preview"]))

    doc = DocxDocument(out["docx"])
    body = next(p for p in doc.paragraphs if p.text == "Three blades.")
    assert body.runs[0].font.size.pt == 11


def test_process_report_rejects_bad_input(tmp_path):
    with pytest.raises(FileNotFoundError):
        process_report(str(tmp_path / "missing.json"))
    path = _write_report(tmp_path)
    with pytest.raises(ValueError):
        process_report(path, out_format="odt")
