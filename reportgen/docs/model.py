from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping

CONTENT_FONT_RANGE = (10, 18)
CHAPTER_FONT_RANGE = (12, 20)


@dataclass
class FontSizes:
    content: int = 14
    chapter: int = 16

    def clamped(self) -> "FontSizes":
        """Return a copy limited to the ranges the editor accepts."""
        return FontSizes(
            content=_clamp(self.content, CONTENT_FONT_RANGE, 14),
            chapter=_clamp(self.chapter, CHAPTER_FONT_RANGE, 16),
        )


def _clamp(value: Any, bounds, default: int) -> int:
    try:
        num = int(value)
    except (TypeError, ValueError):
        return default
    low, high = bounds
    return max(low, min(high, num))


@dataclass
class Subsection:
    title: str = ""
    content: str = ""


@dataclass
class Chapter:
    number: int
    title: str = ""
    content: str = ""
    subsections: List[Subsection] = field(default_factory=list)


@dataclass
class Report:
    title: str = ""
    abstract: str = ""
    chapters: List[Chapter] = field(default_factory=list)
    references: List[str] = field(default_factory=list)
    images: Dict[str, bytes] = field(default_factory=dict)
    font_sizes: FontSizes = field(default_factory=FontSizes)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Report":
        """Build a Report from the loosely shaped dict the content service returns.

        Missing or null fields become empty strings/lists. Chapters without a
        number are numbered by position. Image values may be raw bytes or
        base64 strings; undecodable entries are dropped.
        """
        data = data or {}
        chapters: List[Chapter] = []
        for idx, raw in enumerate(data.get("chapters") or []):
            if not isinstance(raw, Mapping):
                continue
            subsections = [
                Subsection(title=_text(s.get("title")), content=_text(s.get("content")))
                for s in (raw.get("subsections") or [])
                if isinstance(s, Mapping)
            ]
            chapters.append(
                Chapter(
                    number=_number(raw.get("number"), idx + 1),
                    title=_text(raw.get("title")),
                    content=_text(raw.get("content")),
                    subsections=subsections,
                )
            )

        sizes = data.get("fontSizes") or data.get("font_sizes") or {}
        if not isinstance(sizes, Mapping):
            sizes = {}
        font_sizes = FontSizes(
            content=sizes.get("content") or 14,
            chapter=sizes.get("chapter") or 16,
        )

        return cls(
            title=_text(data.get("title")),
            abstract=_text(data.get("abstract")),
            chapters=chapters,
            references=[_text(r) for r in (data.get("references") or []) if r is not None],
            images=_decode_images(data.get("images") or {}),
            font_sizes=font_sizes,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "abstract": self.abstract,
            "chapters": [
                {
                    "number": c.number,
                    "title": c.title,
                    "content": c.content,
                    "subsections": [{"title": s.title, "content": s.content} for s in c.subsections],
                }
                for c in self.chapters
            ],
            "references": list(self.references),
            "images": {tag: base64.b64encode(blob).decode("ascii") for tag, blob in self.images.items()},
            "fontSizes": {"content": self.font_sizes.content, "chapter": self.font_sizes.chapter},
        }


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _number(value: Any, fallback: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return fallback


def _decode_images(raw: Mapping[str, Any]) -> Dict[str, bytes]:
    images: Dict[str, bytes] = {}
    if not isinstance(raw, Mapping):
        return images
    for tag, value in raw.items():
        if isinstance(value, (bytes, bytearray)):
            images[str(tag)] = bytes(value)
        elif isinstance(value, str):
            # tolerate data URLs from the browser cache
            payload = value.split(",", 1)[1] if value.startswith("data:") else value
            try:
                images[str(tag)] = base64.b64decode(payload, validate=True)
            except (binascii.Error, ValueError):
                print(f"Warning: dropping undecodable image for {tag}")
    return images
