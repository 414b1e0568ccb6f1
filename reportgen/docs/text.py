from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Union

IMAGE_TAG_RE = re.compile(r"(\[IMAGE:.*?\])")
_IMAGE_TAG_FULL_RE = re.compile(r"^\[IMAGE:(.*?)\]$", re.DOTALL)
_NUMBER_PREFIX_RE = re.compile(r"^(\d+(\.\d+)*\s+)")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")


@dataclass(frozen=True)
class TextSegment:
    text: str


@dataclass(frozen=True)
class ImageSegment:
    tag: str
    query: str


Segment = Union[TextSegment, ImageSegment]


def word_count(text: Optional[str]) -> int:
    if not text:
        return 0
    return len(text.split())


def chunk_words(text: Optional[str], words_per_chunk: int) -> List[str]:
    """Greedily cut text into pieces of at most `words_per_chunk` words.

    Words are never split and runs of whitespace collapse to a single space.
    """
    if words_per_chunk < 1:
        raise ValueError("words_per_chunk must be positive")
    words = (text or "").split()
    return [" ".join(words[i:i + words_per_chunk]) for i in range(0, len(words), words_per_chunk)]


def split_paragraphs(text: Optional[str]) -> List[str]:
    return [line.strip() for line in (text or "").split("\n") if line.strip()]


def clean_subsection_title(title: Optional[str]) -> str:
    """Drop a stored numeric prefix such as "2.7 " from a subsection title."""
    return _NUMBER_PREFIX_RE.sub("", title or "").strip()


def subsection_label(chapter_number: int, index: int, title: Optional[str]) -> str:
    return f"{chapter_number}.{index + 1} {clean_subsection_title(title)}"


def split_image_segments(text: Optional[str]) -> List[Segment]:
    """Split text on [IMAGE:<query>] markers, keeping document order."""
    segments: List[Segment] = []
    for part in IMAGE_TAG_RE.split(text or ""):
        if not part:
            continue
        match = _IMAGE_TAG_FULL_RE.match(part)
        if match:
            segments.append(ImageSegment(tag=part, query=match.group(1).strip()))
        else:
            segments.append(TextSegment(text=part))
    return segments


def iter_image_tags(text: Optional[str]) -> List[str]:
    return [s.tag for s in split_image_segments(text) if isinstance(s, ImageSegment)]


def report_filename(title: Optional[str], ext: str = "docx") -> str:
    stem = _NON_ALNUM_RE.sub("_", (title or "").lower())
    return f"{stem}_report.{ext}"
