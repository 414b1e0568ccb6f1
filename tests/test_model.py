import base64
import json

from reportgen.docs.json_io import read_report_json, write_report_json
from reportgen.docs.model import FontSizes, Report


def test_from_dict_tolerates_missing_fields():
    report = Report.from_dict({"title": "Topic", "chapters": [{"title": "Intro"}, None, {"number": "7"}]})
    assert report.abstract == ""
    assert report.references == []
    assert report.images == {}
    assert [c.number for c in report.chapters] == [1, 7]
    assert report.chapters[0].content == ""
    assert report.chapters[0].subsections == []
    assert report.font_sizes == FontSizes(14, 16)


def test_from_dict_null_values_become_empty():
    report = Report.from_dict(
        {
            "title": None,
            "abstract": None,
            "chapters": [{"number": 1, "title": None, "content": None, "subsections": [{"title": None}]}],
            "references": ["A", None],
        }
    )
    assert report.title == ""
    assert report.chapters[0].title == ""
    assert report.chapters[0].subsections[0].content == ""
    assert report.references == ["A"]


def test_from_dict_decodes_base64_images_and_font_sizes():
    payload = base64.b64encode(b"\x89PNGfake").decode("ascii")
    report = Report.from_dict(
        {
            "images": {
                "[IMAGE:a]": payload,
                "[IMAGE:b]": "data:image/png;base64," + payload,
                "[IMAGE:c]": "not base64!!",
            },
            "fontSizes": {"content": 12, "chapter": 18},
        }
    )
    assert report.images == {"[IMAGE:a]": b"\x89PNGfake", "[IMAGE:b]": b"\x89PNGfake"}
    assert report.font_sizes == FontSizes(12, 18)


def test_font_sizes_clamped_to_editor_ranges():
    assert FontSizes(4, 40).clamped() == FontSizes(10, 20)
    assert FontSizes(25, 2).clamped() == FontSizes(18, 12)
    assert FontSizes("x", None).clamped() == FontSizes(14, 16)
    assert FontSizes(12, 18).clamped() == FontSizes(12, 18)


def test_json_round_trip_through_files(tmp_path):
    source = {
        "title": "Solar Power",
        "abstract": "Short abstract.",
        "chapters": [
            {
                "number": 1,
                "title": "Introduction",
                "content": "Body [IMAGE:Panel]",
                "subsections": [{"title": "1.1 Scope", "content": "Scope text."}],
            }
        ],
        "references": ["Ref one."],
        "images": {"[IMAGE:Panel]": base64.b64encode(b"img").decode("ascii")},
        "fontSizes": {"content": 13, "chapter": 17},
    }
    path = tmp_path / "report.json"
    path.write_text(json.dumps(source), encoding="utf-8")

    report = read_report_json(str(path))
    out = write_report_json(report, str(tmp_path / "copy.json"))
    again = read_report_json(out)

    assert again == report
    assert again.images["[IMAGE:Panel]"] == b"img"


def test_read_report_json_missing_file(tmp_path):
    import pytest

    with pytest.raises(FileNotFoundError):
        read_report_json(str(tmp_path / "missing.json"))
