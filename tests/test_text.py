import pytest

from reportgen.docs.text import (
    ImageSegment,
    TextSegment,
    chunk_words,
    clean_subsection_title,
    iter_image_tags,
    report_filename,
    split_image_segments,
    split_paragraphs,
    subsection_label,
    word_count,
)


def test_word_count_blank_inputs_are_zero():
    assert word_count("") == 0
    assert word_count("   \n\t ") == 0
    assert word_count(None) == 0


def test_word_count_splits_on_any_whitespace():
    assert word_count("one two\tthree\nfour   five") == 5
    assert word_count("  padded  ") == 1


def test_chunk_words_is_lossless_and_ordered():
    text = "  alpha beta\n gamma\tdelta epsilon  zeta eta  "
    chunks = chunk_words(text, 3)
    assert chunks == ["alpha beta gamma", "delta epsilon zeta", "eta"]
    assert " ".join(chunks) == " ".join(text.split())


def test_chunk_words_never_exceeds_limit():
    text = " ".join(f"w{i}" for i in range(1001))
    chunks = chunk_words(text, 320)
    assert [word_count(c) for c in chunks] == [320, 320, 320, 41]


def test_chunk_words_empty_text_gives_no_chunks():
    assert chunk_words("", 350) == []
    assert chunk_words("   ", 350) == []


def test_chunk_words_rejects_non_positive_size():
    with pytest.raises(ValueError):
        chunk_words("a b", 0)


def test_split_paragraphs_drops_blank_lines():
    assert split_paragraphs("First line.\n\n   \n  Second line.  \n") == ["First line.", "Second line."]
    assert split_paragraphs(None) == []


def test_clean_subsection_title_strips_numeric_prefix():
    assert clean_subsection_title("2.7 Overview") == "Overview"
    assert clean_subsection_title("1.2.3 Deep Dive ") == "Deep Dive"
    assert clean_subsection_title("3 Things") == "Things"
    # no whitespace after the number: not a prefix
    assert clean_subsection_title("3D Printing") == "3D Printing"


def test_subsection_label_uses_structural_numbering():
    assert subsection_label(1, 2, "2.7 Overview") == "1.3 Overview"


def test_split_image_segments_preserves_order():
    segments = split_image_segments("Intro. [IMAGE:Battery Diagram] More text. [IMAGE: Cell ]")
    assert segments == [
        TextSegment("Intro. "),
        ImageSegment(tag="[IMAGE:Battery Diagram]", query="Battery Diagram"),
        TextSegment(" More text. "),
        ImageSegment(tag="[IMAGE: Cell ]", query="Cell"),
    ]


def test_split_image_segments_without_markers():
    assert split_image_segments("plain text") == [TextSegment("plain text")]
    assert split_image_segments("") == []


def test_iter_image_tags_keeps_verbatim_tags():
    assert iter_image_tags("a [IMAGE:x] b [IMAGE:y] [IMAGE:x]") == ["[IMAGE:x]", "[IMAGE:y]", "[IMAGE:x]"]


def test_report_filename_replaces_non_alphanumerics():
    assert report_filename("Electric Vehicles: A Study!") == "electric_vehicles__a_study__report.docx"
    assert report_filename("AI 2030", ext="pdf") == "ai_2030_report.pdf"
