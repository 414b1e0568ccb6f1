"""Building blocks of preview pages.

`MainTitle`, `SubTitle` and `Text` form the flat stream a chapter is
packed from; the remaining blocks only appear on fixed pages (title, TOC,
abstract, references).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Union


@dataclass(frozen=True)
class MainTitle:
    text: str


@dataclass(frozen=True)
class SubTitle:
    text: str


@dataclass(frozen=True)
class Text:
    text: str


ContentElement = Union[MainTitle, SubTitle, Text]


@dataclass(frozen=True)
class TitleBlock:
    title: str
    subtitle: str


@dataclass(frozen=True)
class SectionHeading:
    text: str


@dataclass(frozen=True)
class TocRow:
    number: str
    title: str
    page: int


@dataclass(frozen=True)
class TocTable:
    rows: List[TocRow] = field(default_factory=list)


@dataclass(frozen=True)
class ReferenceList:
    items: List[str] = field(default_factory=list)


Block = Union[MainTitle, SubTitle, Text, TitleBlock, SectionHeading, TocTable, ReferenceList]


@dataclass
class Page:
    content: List[Block]
    page_number: int
