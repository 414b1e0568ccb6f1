from __future__ import annotations

import io
import os
from dataclasses import dataclass, field
from datetime import datetime
from functools import partial
from typing import Dict, List, Mapping, Optional, Union

import requests
from docx import Document as DocxDocument
from docx.enum.text import WD_ALIGN_PARAGRAPH, WD_BREAK
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Emu, Inches, Pt, RGBColor

from reportgen.config import ImageServiceConfig, load_image_service_config
from reportgen.image.fetch import ImageFetcher, fetch_image, resolve_images
from reportgen.image.processing import FigureImage, prepare_figure

from .model import Chapter, Report
from .text import ImageSegment, TextSegment, split_image_segments, split_paragraphs, subsection_label

BLACK = RGBColor(0x00, 0x00, 0x00)
ATTRIBUTION_GREY = RGBColor(0x66, 0x66, 0x66)
TIMESTAMP_GREY = RGBColor(0x88, 0x88, 0x88)

ATTRIBUTION = "Generated by Report-maker.ai"
REPORT_LABEL = "A PROJECT REPORT"

TITLE_PT = 24
LABEL_PT = 16
ATTRIBUTION_PT = 12
TIMESTAMP_PT = 11
TOC_HEADING_PT = 16
TOC_PT = 12
CAPTION_PT = 10
FOOTER_PT = 14

LINE_SPACING = 1.15
FIRST_LINE_INDENT = Inches(0.5)
TOC_SUBSECTION_INDENT = Inches(0.5)
TOC_COLUMN_SHARES = (0.15, 0.70, 0.15)
EMU_PER_PX = 9525

ABSTRACT_BOOKMARK = "BMABSTRACT"
REFERENCES_BOOKMARK = "BMREFS"

# w:settings children that must follow w:updateFields
_SETTINGS_AFTER_UPDATE_FIELDS = (
    "w:hdrShapeDefaults",
    "w:footnotePr",
    "w:endnotePr",
    "w:compat",
    "w:docVars",
    "w:rsids",
    "w:attachedSchema",
    "w:themeFontLang",
    "w:clrSchemeMapping",
    "w:shapeDefaults",
    "w:decimalSymbol",
    "w:listSeparator",
)


def chapter_bookmark(position: int) -> str:
    return f"BMCH{position}"


def subsection_bookmark(chapter_position: int, sub_position: int) -> str:
    return f"BMCH{chapter_position}S{sub_position}"


def chapter_bookmarks(chapter: Chapter, position: int) -> List[str]:
    """Every bookmark the TOC points at for the chapter at `position`."""
    subsections = getattr(chapter, "subsections", None) or []
    return [chapter_bookmark(position)] + [subsection_bookmark(position, j) for j in range(1, len(subsections) + 1)]


def half_points(pt: float) -> int:
    """Word stores run sizes in half-points."""
    return int(round(pt * 2))


@dataclass(frozen=True)
class BodyParagraph:
    text: str


@dataclass(frozen=True)
class FigureBlock:
    image: FigureImage
    caption: str


@dataclass(frozen=True)
class ChapterHeading:
    number: int
    title: str
    bookmark: str


@dataclass(frozen=True)
class SubsectionHeading:
    text: str
    bookmark: str


ChapterBlock = Union[BodyParagraph, FigureBlock, ChapterHeading, SubsectionHeading]


@dataclass
class ChapterOk:
    blocks: List[ChapterBlock] = field(default_factory=list)


@dataclass
class ChapterErr:
    message: str
    # TOC anchors the error paragraph still has to define
    bookmarks: List[str] = field(default_factory=list)


ChapterResult = Union[ChapterOk, ChapterErr]


def build_body_blocks(text: str, figures: Mapping[str, FigureImage]) -> List[ChapterBlock]:
    """Turn body text with [IMAGE:...] markers into paragraphs and figures.

    Markers without a resolved figure are dropped silently.
    """
    blocks: List[ChapterBlock] = []
    for segment in split_image_segments(text):
        if isinstance(segment, ImageSegment):
            figure = figures.get(segment.tag)
            if figure is not None:
                blocks.append(FigureBlock(image=figure, caption=f"Figure: {segment.query}"))
        elif isinstance(segment, TextSegment):
            blocks.extend(BodyParagraph(line) for line in split_paragraphs(segment.text))
    return blocks


def build_chapter(chapter: Chapter, position: int, figures: Mapping[str, FigureImage]) -> ChapterResult:
    """Build one chapter's blocks; any failure is captured as ChapterErr."""
    try:
        blocks: List[ChapterBlock] = [
            ChapterHeading(number=chapter.number, title=chapter.title.upper(), bookmark=chapter_bookmark(position))
        ]
        blocks.extend(build_body_blocks(chapter.content, figures))
        for j, sub in enumerate(chapter.subsections):
            blocks.append(
                SubsectionHeading(
                    text=f"{subsection_label(chapter.number, j, sub.title)}:",
                    bookmark=subsection_bookmark(position, j + 1),
                )
            )
            blocks.extend(build_body_blocks(sub.content, figures))
        return ChapterOk(blocks=blocks)
    except Exception as exc:
        print(f"Warning: error generating chapter {position}: {exc}")
        return ChapterErr(message=str(exc), bookmarks=chapter_bookmarks(chapter, position))


def prepare_figures(blobs: Mapping[str, bytes], config: ImageServiceConfig) -> Dict[str, FigureImage]:
    figures: Dict[str, FigureImage] = {}
    for tag, blob in blobs.items():
        figure = prepare_figure(blob, config.figure_max_width_px, config.figure_max_height_px)
        if figure is not None:
            figures[tag] = figure
    return figures


def _style_run(run, size_pt: float, bold: bool = False, italic: bool = False, color: RGBColor = BLACK) -> None:
    run.bold = bold
    run.italic = italic
    run.font.color.rgb = color
    run.font.size = Pt(size_pt)
    rPr = run._r.get_or_add_rPr()
    sz_cs = rPr.find(qn("w:szCs"))
    if sz_cs is None:
        sz_cs = OxmlElement("w:szCs")
        rPr.find(qn("w:sz")).addnext(sz_cs)
    sz_cs.set(qn("w:val"), str(half_points(size_pt)))


def _add_field(paragraph, instruction: str, size_pt: float, bold: bool = False) -> None:
    """Append a complex field whose cached result is empty until the viewer updates it."""

    def _fld_char(kind: str) -> None:
        run = paragraph.add_run()
        _style_run(run, size_pt, bold=bold)
        el = OxmlElement("w:fldChar")
        el.set(qn("w:fldCharType"), kind)
        run._r.append(el)

    _fld_char("begin")
    instr_run = paragraph.add_run()
    _style_run(instr_run, size_pt, bold=bold)
    instr = OxmlElement("w:instrText")
    instr.set(qn("xml:space"), "preserve")
    instr.text = f" {instruction} "
    instr_run._r.append(instr)
    _fld_char("separate")
    _style_run(paragraph.add_run(""), size_pt, bold=bold)
    _fld_char("end")


def _add_internal_link(paragraph, text: str, anchor: str, size_pt: float, bold: bool = False) -> None:
    link = OxmlElement("w:hyperlink")
    link.set(qn("w:anchor"), anchor)
    link.set(qn("w:history"), "1")
    run = paragraph.add_run(text)
    _style_run(run, size_pt, bold=bold)
    link.append(run._r)
    paragraph._p.append(link)


def _remove_table_borders(table) -> None:
    tbl_pr = table._tbl.tblPr
    borders = OxmlElement("w:tblBorders")
    for edge in ("top", "left", "bottom", "right", "insideH", "insideV"):
        el = OxmlElement(f"w:{edge}")
        el.set(qn("w:val"), "nil")
        borders.append(el)
    successor = None
    for name in ("w:shd", "w:tblLayout", "w:tblCellMar", "w:tblLook"):
        successor = tbl_pr.find(qn(name))
        if successor is not None:
            break
    if successor is not None:
        successor.addprevious(borders)
    else:
        tbl_pr.append(borders)


def _request_field_update(doc) -> None:
    settings = doc.settings.element
    el = settings.find(qn("w:updateFields"))
    if el is None:
        el = OxmlElement("w:updateFields")
        for name in _SETTINGS_AFTER_UPDATE_FIELDS:
            successor = settings.find(qn(name))
            if successor is not None:
                successor.addprevious(el)
                break
        else:
            settings.append(el)
    el.set(qn("w:val"), "true")


class ReportDocxBuilder:
    """Assembles a Report into a python-docx Document in a fixed order.

    Title page, TOC table, abstract, chapters, references, footer page
    number. TOC rows point at bookmarks placed on the real headings; page
    numbers are PAGEREF fields resolved by the viewer.
    """

    def __init__(self, content_font_size: int = 14, chapter_font_size: int = 16) -> None:
        self.content_pt = content_font_size
        self.chapter_pt = chapter_font_size
        self.doc = DocxDocument()
        self._bookmark_id = 0

    # -- paragraph helpers ------------------------------------------------

    def _add_bookmark(self, paragraph, name: str) -> None:
        bid = str(self._bookmark_id)
        self._bookmark_id += 1
        start = OxmlElement("w:bookmarkStart")
        start.set(qn("w:id"), bid)
        start.set(qn("w:name"), name)
        end = OxmlElement("w:bookmarkEnd")
        end.set(qn("w:id"), bid)
        paragraph._p.append(start)
        paragraph._p.append(end)

    def _centered(self, text: str, size_pt: float, bold: bool = False, italic: bool = False,
                  color: RGBColor = BLACK, space_before: float = 0, space_after: float = 0):
        p = self.doc.add_paragraph()
        p.alignment = WD_ALIGN_PARAGRAPH.CENTER
        p.paragraph_format.space_before = Pt(space_before)
        p.paragraph_format.space_after = Pt(space_after)
        _style_run(p.add_run(text), size_pt, bold=bold, italic=italic, color=color)
        return p

    def _section_heading(self, text: str, size_pt: float, bookmark: Optional[str] = None):
        p = self.doc.add_paragraph(style="Heading 1")
        p.alignment = WD_ALIGN_PARAGRAPH.CENTER
        p.paragraph_format.page_break_before = True
        p.paragraph_format.space_after = Pt(20)
        if bookmark:
            self._add_bookmark(p, bookmark)
        _style_run(p.add_run(text), size_pt, bold=True)
        return p

    def body_paragraph(self, text: str, page_break_before: bool = False):
        p = self.doc.add_paragraph()
        p.alignment = WD_ALIGN_PARAGRAPH.JUSTIFY
        pf = p.paragraph_format
        pf.first_line_indent = FIRST_LINE_INDENT
        pf.line_spacing = LINE_SPACING
        pf.space_after = Pt(10)
        if page_break_before:
            pf.page_break_before = True
        _style_run(p.add_run(text), self.content_pt)
        return p

    # -- sections -------------------------------------------------------

    def add_title_page(self, title: str, generated_at: datetime) -> None:
        self._centered(title.upper(), TITLE_PT, bold=True, space_before=150, space_after=50)
        self._centered(REPORT_LABEL, LABEL_PT, bold=True, space_after=50)
        self._centered(ATTRIBUTION, ATTRIBUTION_PT, italic=True, color=ATTRIBUTION_GREY, space_after=20)
        self._centered(generated_at.strftime("%d/%m/%Y, %H:%M:%S"), TIMESTAMP_PT, italic=True,
                       color=TIMESTAMP_GREY, space_after=150)

    def add_toc(self, report: Report) -> None:
        self._section_heading("TABLE OF CONTENT", TOC_HEADING_PT)

        table = self.doc.add_table(rows=0, cols=3)
        _remove_table_borders(table)
        section = self.doc.sections[0]
        avail_width = section.page_width - section.left_margin - section.right_margin
        widths = [Emu(int(avail_width * share)) for share in TOC_COLUMN_SHARES]

        def _row(number: str, title: str, anchor: Optional[str], bold: bool = True, indent=None, header=False):
            row = table.add_row()
            if header:
                tr_pr = row._tr.get_or_add_trPr()
                flag = OxmlElement("w:tblHeader")
                flag.set(qn("w:val"), "true")
                tr_pr.append(flag)
            cells = row.cells
            for cell, width in zip(cells, widths):
                cell.width = width

            num_p = cells[0].paragraphs[0]
            num_p.alignment = WD_ALIGN_PARAGRAPH.CENTER
            if number:
                _style_run(num_p.add_run(number), TOC_PT, bold=True)

            title_p = cells[1].paragraphs[0]
            if indent is not None:
                title_p.paragraph_format.left_indent = indent
            page_p = cells[2].paragraphs[0]
            page_p.alignment = WD_ALIGN_PARAGRAPH.CENTER

            if header:
                title_p.alignment = WD_ALIGN_PARAGRAPH.CENTER
                _style_run(title_p.add_run(title), TOC_PT, bold=True)
                _style_run(page_p.add_run("PAGE NO"), TOC_PT, bold=True)
                return
            _add_internal_link(title_p, title, anchor, TOC_PT, bold=bold)
            _add_field(page_p, f"PAGEREF {anchor} \\h", TOC_PT, bold=bold)

        _row("CHAPTER NO", "TITLE", None, header=True)
        _row("", "ABSTRACT", ABSTRACT_BOOKMARK)
        for i, chapter in enumerate(report.chapters, start=1):
            _row(str(chapter.number), (chapter.title or "").upper(), chapter_bookmark(i))
            for j, sub in enumerate(chapter.subsections):
                _row("", subsection_label(chapter.number, j, sub.title), subsection_bookmark(i, j + 1),
                     bold=False, indent=TOC_SUBSECTION_INDENT)
        _row("", "REFERENCES", REFERENCES_BOOKMARK)

    def add_abstract(self, abstract: str) -> None:
        self._section_heading("ABSTRACT", self.chapter_pt, bookmark=ABSTRACT_BOOKMARK)
        for para in split_paragraphs(abstract):
            self.body_paragraph(para)

    def add_chapter(self, position: int, result: ChapterResult) -> None:
        if isinstance(result, ChapterErr):
            self._error_paragraph(position, result)
            return
        for block in result.blocks:
            if isinstance(block, ChapterHeading):
                self._chapter_heading(block)
            elif isinstance(block, SubsectionHeading):
                self._subsection_heading(block)
            elif isinstance(block, FigureBlock):
                self._figure(block)
            else:
                self.body_paragraph(block.text)

    def _error_paragraph(self, position: int, result: ChapterErr) -> None:
        p = self.body_paragraph(f"[ERROR GENERATING CHAPTER {position}: {result.message}]", page_break_before=True)
        for name in result.bookmarks:
            self._add_bookmark(p, name)

    def _write_chapter(self, position: int, chapter: Chapter, figures: Mapping[str, FigureImage]) -> None:
        """Write one chapter; a failure while writing replaces whatever it had added with the error paragraph."""
        result = build_chapter(chapter, position, figures)
        body = self.doc.element.body
        before = set(body.iterchildren())
        try:
            self.add_chapter(position, result)
        except Exception as exc:
            print(f"Warning: error writing chapter {position}: {exc}")
            for child in list(body.iterchildren()):
                if child not in before and child.tag != qn("w:sectPr"):
                    body.remove(child)
            self._error_paragraph(position, ChapterErr(message=str(exc), bookmarks=chapter_bookmarks(chapter, position)))

    def _chapter_heading(self, block: ChapterHeading) -> None:
        p = self.doc.add_paragraph(style="Heading 1")
        p.alignment = WD_ALIGN_PARAGRAPH.CENTER
        pf = p.paragraph_format
        pf.page_break_before = True
        pf.space_before = Pt(10)
        pf.space_after = Pt(20)
        self._add_bookmark(p, block.bookmark)
        _style_run(p.add_run(f"CHAPTER {block.number}"), self.chapter_pt, bold=True)
        title_run = p.add_run()
        title_run.add_break(WD_BREAK.LINE)
        title_run.add_text(block.title)
        _style_run(title_run, self.chapter_pt, bold=True)

    def _subsection_heading(self, block: SubsectionHeading) -> None:
        p = self.doc.add_paragraph(style="Heading 2")
        p.paragraph_format.space_before = Pt(15)
        p.paragraph_format.space_after = Pt(10)
        self._add_bookmark(p, block.bookmark)
        _style_run(p.add_run(block.text), self.content_pt, bold=True)

    def _figure(self, block: FigureBlock) -> None:
        p = self.doc.add_paragraph()
        p.alignment = WD_ALIGN_PARAGRAPH.CENTER
        p.paragraph_format.space_before = Pt(10)
        p.add_run().add_picture(
            block.image.stream(),
            width=Emu(block.image.width_px * EMU_PER_PX),
            height=Emu(block.image.height_px * EMU_PER_PX),
        )
        self._centered(block.caption, CAPTION_PT, bold=True, space_after=10)

    def add_references(self, references: List[str]) -> None:
        self._section_heading("REFERENCES", self.chapter_pt, bookmark=REFERENCES_BOOKMARK)
        for ref in references:
            p = self.doc.add_paragraph(style="List Bullet")
            p.alignment = WD_ALIGN_PARAGRAPH.JUSTIFY
            p.paragraph_format.line_spacing = LINE_SPACING
            p.paragraph_format.space_after = Pt(10)
            _style_run(p.add_run(ref), self.content_pt)

    def add_page_number_footer(self) -> None:
        footer = self.doc.sections[0].footer
        p = footer.paragraphs[0] if footer.paragraphs else footer.add_paragraph()
        p.alignment = WD_ALIGN_PARAGRAPH.CENTER
        _add_field(p, "PAGE", FOOTER_PT)

    def build(self, report: Report, figures: Mapping[str, FigureImage], generated_at: Optional[datetime] = None):
        self.add_title_page(report.title or "", generated_at or datetime.now())
        self.add_toc(report)
        self.add_abstract(report.abstract)
        for position, chapter in enumerate(report.chapters, start=1):
            self._write_chapter(position, chapter, figures)
        self.add_references(report.references)
        self.add_page_number_footer()
        _request_field_update(self.doc)
        return self.doc


def build_document(
    report: Report,
    content_font_size: int = 14,
    chapter_font_size: int = 16,
    fetcher: Optional[ImageFetcher] = None,
    fetch_missing: bool = True,
    image_config: Optional[ImageServiceConfig] = None,
    generated_at: Optional[datetime] = None,
):
    """Resolve images, then assemble the report as a python-docx Document.

    Doxygen:
    - @param report: Report to export; it is not modified.
    - @param content_font_size: Body/subsection size in points.
    - @param chapter_font_size: Chapter/section heading size in points.
    - @param fetcher: Callable(query) -> bytes|None used for tags missing from report.images (defaults to the image service).
    - @param fetch_missing: When False, only images already in report.images are used and `fetcher` is never called.
    - @param image_config: Endpoint and figure-size settings.
    - @param generated_at: Timestamp shown on the title page (defaults to now).
    - @return: The assembled `docx.Document`.
    """
    image_config = image_config or load_image_service_config()
    builder = ReportDocxBuilder(content_font_size, chapter_font_size)
    if not fetch_missing:
        blobs = resolve_images(report, None)
    elif fetcher is None:
        with requests.Session() as session:
            blobs = resolve_images(report, partial(fetch_image, config=image_config, session=session))
    else:
        blobs = resolve_images(report, fetcher)
    print(f"Resolved {len(blobs)} images")
    figures = prepare_figures(blobs, image_config)
    return builder.build(report, figures, generated_at)


def serialize_report(
    report: Report,
    content_font_size: int = 14,
    chapter_font_size: int = 16,
    **kwargs,
) -> bytes:
    """Export the report as DOCX bytes. Extra keyword arguments go to `build_document`."""
    doc = build_document(report, content_font_size, chapter_font_size, **kwargs)
    buf = io.BytesIO()
    doc.save(buf)
    return buf.getvalue()


def save_as(data: bytes, filename: str, out_dir: str = ".") -> str:
    os.makedirs(out_dir or ".", exist_ok=True)
    out_path = os.path.join(out_dir or ".", filename)
    with open(out_path, "wb") as f:
        f.write(data)
    return out_path


def write_docx(report: Report, out_path: str, content_font_size: int = 14, chapter_font_size: int = 16, **kwargs) -> str:
    data = serialize_report(report, content_font_size, chapter_font_size, **kwargs)
    out_dir, filename = os.path.split(out_path)
    return save_as(data, filename, out_dir or ".")
