"""Report document layer.

Exposes:
- Data model: Report, Chapter, Subsection, FontSizes
- Text helpers: word counting, word chunking, image-tag splitting
- Readers/writers: report JSON in, DOCX out (PDF via DOCX→PDF conversion)
"""

from .model import Chapter, FontSizes, Report, Subsection
from .text import (
    ImageSegment,
    TextSegment,
    chunk_words,
    clean_subsection_title,
    report_filename,
    split_image_segments,
    word_count,
)

__all__ = [
    "Report",
    "Chapter",
    "Subsection",
    "FontSizes",
    "ImageSegment",
    "TextSegment",
    "chunk_words",
    "clean_subsection_title",
    "report_filename",
    "split_image_segments",
    "word_count",
]
