"""Word-budget paginator for the on-screen report preview.

The preview only approximates the exported document: every block is
charged a word cost (flat for titles, real word count for text) and pages
are filled greedily against a fixed budget.

Page order:
- title page
- table of contents (one page, page numbers estimated analytically)
- abstract (one page per chunk)
- chapters (greedy packing, oversized paragraphs force-split)
- references (grouped by word budget)
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from reportgen.config import LayoutConfig
from reportgen.docs.model import Chapter, Report
from reportgen.docs.text import chunk_words, split_paragraphs, subsection_label, word_count

from .elements import (
    Block,
    ContentElement,
    MainTitle,
    Page,
    ReferenceList,
    SectionHeading,
    SubTitle,
    Text,
    TitleBlock,
    TocRow,
    TocTable,
)

REPORT_SUBTITLE = "A PROJECT REPORT"
TOC_HEADING = "TABLE OF CONTENT"
ABSTRACT_HEADING = "ABSTRACT"
REFERENCES_HEADING = "REFERENCES"

# title page is page 1, the TOC always takes page 2
TOC_PAGE = 2


@dataclass
class TocEstimate:
    abstract_page: int
    chapter_pages: List[Tuple[Chapter, int]] = field(default_factory=list)
    references_page: int = 0

    def rows(self) -> List[TocRow]:
        rows = [TocRow(number="", title=ABSTRACT_HEADING, page=self.abstract_page)]
        for chapter, page in self.chapter_pages:
            rows.append(TocRow(number=str(chapter.number), title=(chapter.title or "").upper(), page=page))
        rows.append(TocRow(number="", title=REFERENCES_HEADING, page=self.references_page))
        return rows


def chapter_word_total(chapter: Chapter) -> int:
    sub_text = "".join(f"\n\n{s.title}\n{s.content}" for s in chapter.subsections)
    return word_count(chapter.content) + word_count(sub_text)


def estimate_chapter_pages(chapter: Chapter, config: LayoutConfig) -> int:
    """Pages a chapter is expected to take: a shorter first page, then full pages."""
    total = chapter_word_total(chapter)
    pages = 1
    if total > config.chapter_first_page_words:
        pages += math.ceil((total - config.chapter_first_page_words) / config.continuation_words_per_page)
    return pages


def estimate_toc(report: Report, config: Optional[LayoutConfig] = None) -> TocEstimate:
    """Compute TOC page numbers from word counts alone, without laying out chapters."""
    config = config or LayoutConfig()
    abstract_page = TOC_PAGE + 1
    abstract_pages = max(1, math.ceil(word_count(report.abstract) / config.abstract_words_per_page))

    estimate = TocEstimate(abstract_page=abstract_page)
    current = abstract_page + abstract_pages
    for chapter in report.chapters:
        estimate.chapter_pages.append((chapter, current))
        current += estimate_chapter_pages(chapter, config)
    estimate.references_page = current
    return estimate


def flatten_chapter(chapter: Chapter) -> List[ContentElement]:
    elements: List[ContentElement] = [MainTitle(f"CHAPTER {chapter.number}: {(chapter.title or '').upper()}")]
    elements.extend(Text(p) for p in split_paragraphs(chapter.content))
    for idx, sub in enumerate(chapter.subsections):
        elements.append(SubTitle(f"{subsection_label(chapter.number, idx, sub.title)}: "))
        elements.extend(Text(p) for p in split_paragraphs(sub.content))
    return elements


def element_cost(element: ContentElement, config: LayoutConfig) -> int:
    if isinstance(element, (MainTitle, SubTitle)):
        return config.title_cost
    return word_count(element.text)


def paginate_elements(elements: List[ContentElement], config: LayoutConfig) -> List[List[ContentElement]]:
    """Greedily pack a chapter's element stream into pages.

    A page is closed when the next element would exceed the budget and the
    page already holds something. Text longer than a whole page is cut into
    page-sized chunks, each packed with the same rule.
    """
    budget = config.chapter_words_per_page
    pages: List[List[ContentElement]] = []
    current: List[ContentElement] = []
    used = 0

    for el in elements:
        cost = element_cost(el, config)
        if used + cost > budget and current:
            pages.append(current)
            current, used = [], 0

        if isinstance(el, Text) and cost > budget:
            for part in chunk_words(el.text, budget):
                part_cost = word_count(part)
                if used + part_cost > budget and current:
                    pages.append(current)
                    current, used = [], 0
                current.append(Text(part))
                used += part_cost
        else:
            current.append(el)
            used += cost

    if current:
        pages.append(current)
    return pages


def group_references(references: List[str], budget: int) -> List[List[str]]:
    groups: List[List[str]] = []
    current: List[str] = []
    used = 0
    for ref in references:
        words = word_count(ref)
        if current and used + words > budget:
            groups.append(current)
            current, used = [], 0
        current.append(ref)
        used += words
    if current:
        groups.append(current)
    return groups


def estimate_layout(report: Report, config: Optional[LayoutConfig] = None) -> List[Page]:
    """Lay a report out into preview pages numbered 1..N.

    Doxygen:
    - @param report: Report to paginate; it is not modified.
    - @param config: Word budgets; defaults to the built-in `LayoutConfig()`. Callers load config/layout.json.
    - @return: Pages in reading order.
    """
    config = config or LayoutConfig()
    pages: List[Page] = []

    def add_page(content: List[Block]) -> None:
        pages.append(Page(content=content, page_number=len(pages) + 1))

    add_page([TitleBlock(title=(report.title or "").upper(), subtitle=REPORT_SUBTITLE)])

    toc = estimate_toc(report, config)
    add_page([SectionHeading(TOC_HEADING), TocTable(rows=toc.rows())])

    abstract_chunks = chunk_words(report.abstract, config.abstract_words_per_page) or [""]
    for i, chunk in enumerate(abstract_chunks):
        blocks: List[Block] = [SectionHeading(ABSTRACT_HEADING)] if i == 0 else []
        blocks.append(Text(chunk))
        add_page(blocks)

    for chapter in report.chapters:
        for page_elements in paginate_elements(flatten_chapter(chapter), config):
            add_page(list(page_elements))

    ref_groups = group_references(report.references, config.references_words_per_page) or [[]]
    for i, group in enumerate(ref_groups):
        blocks = [SectionHeading(REFERENCES_HEADING)] if i == 0 else []
        blocks.append(ReferenceList(items=group))
        add_page(blocks)

    return pages
