"""Rendering helpers to draw estimated preview pages as images.

Uses PIL to lay out and render text on A4-proportioned pages.
"""

from __future__ import annotations

import os
from typing import List, Optional, Tuple

from PIL import Image, ImageDraw, ImageFont

from reportgen.config import CONFIG_DIR
from reportgen.layout.elements import (
    Block,
    MainTitle,
    Page,
    ReferenceList,
    SectionHeading,
    SubTitle,
    Text,
    TitleBlock,
    TocTable,
)

_CONFIG_FONTS_DIR = os.path.join(CONFIG_DIR, "fonts")  # optional extra search dir

CANDIDATE_FONTS = [
    "times.ttf",
    "times new roman.ttf",
    "georgia.ttf",
    "DejaVuSerif.ttf",
    "DejaVuSans.ttf",
    "arial.ttf",
]

A4_PX = (794, 1123)  # 210x297mm at 96 dpi
MARGIN = 72
BODY_SIZE = 16
HEADING_SIZE = 22
SUBHEADING_SIZE = 18
TITLE_SIZE = 32
FOOTER_SIZE = 14
LINE_SPACING = 4
PARAGRAPH_GAP = 10
TOC_COLUMNS = (0.15, 0.70, 0.15)


def _find_font_path(name: str) -> Optional[str]:
    if os.path.isabs(name) and os.path.exists(name):
        return name
    env_paths = os.environ.get("FONT_PATH", "")
    for base in [p for p in env_paths.split(os.pathsep) if p.strip()]:
        p = os.path.join(base, name)
        if os.path.exists(p):
            return p
    candidates_dirs = [_CONFIG_FONTS_DIR, "/usr/share/fonts/truetype/dejavu"]
    windir = os.environ.get("WINDIR") or os.environ.get("SystemRoot")
    if windir:
        candidates_dirs.append(os.path.join(windir, "Fonts"))
    for d in candidates_dirs:
        if not os.path.isdir(d):
            continue
        try_name_lower = name.lower()
        for fname in os.listdir(d):
            if fname.lower() == try_name_lower:
                return os.path.join(d, fname)
    return None


def _load_font(size: int, font_name: Optional[str] = None):
    names = [font_name] if font_name else list(CANDIDATE_FONTS)
    for name in names:
        path = _find_font_path(name)
        if not path:
            continue
        try:
            return ImageFont.truetype(path, size)
        except OSError:
            continue
    return ImageFont.load_default(size)


def _measure(draw: ImageDraw.ImageDraw, text: str, font) -> Tuple[int, int]:
    bbox = draw.textbbox((0, 0), text, font=font)
    return (bbox[2] - bbox[0], bbox[3] - bbox[1])


def _line_height(font) -> int:
    return int(getattr(font, "size", 12)) + LINE_SPACING


def _layout_lines(draw: ImageDraw.ImageDraw, text: str, font, max_width: int) -> List[str]:
    words = str(text).split()
    if not words:
        return []
    lines: List[str] = []
    cur = ""
    for w_ in words:
        t = (cur + " " + w_) if cur else w_
        tw, _ = _measure(draw, t, font)
        if tw <= max_width:
            cur = t
        else:
            if cur:
                lines.append(cur)
            cur = w_
    if cur:
        lines.append(cur)
    return lines


def _draw_justified_line(draw: ImageDraw.ImageDraw, x: int, y: int, inner_w: int, line: str, font, is_last: bool) -> None:
    words = line.split()
    if not words:
        return
    if is_last or len(words) == 1:
        draw.text((x, y), line, font=font, fill=(0, 0, 0))
        return
    words_w = sum(_measure(draw, w, font)[0] for w in words)
    spaces = len(words) - 1
    space_w = max(1, (inner_w - words_w) // spaces)
    cur_x = x
    for idx, w in enumerate(words):
        draw.text((cur_x, y), w, font=font, fill=(0, 0, 0))
        if idx < spaces:
            cur_x += _measure(draw, w, font)[0] + space_w


def _draw_centered(draw: ImageDraw.ImageDraw, text: str, font, y: int, width: int, inner_w: int) -> int:
    for line in _layout_lines(draw, text, font, inner_w):
        tw, _ = _measure(draw, line, font)
        draw.text(((width - tw) // 2, y), line, font=font, fill=(0, 0, 0))
        y += _line_height(font)
    return y


def _draw_paragraph(draw: ImageDraw.ImageDraw, text: str, font, x: int, y: int, inner_w: int, bottom: int) -> int:
    lines = _layout_lines(draw, text, font, inner_w)
    for li, line in enumerate(lines):
        if y + _line_height(font) > bottom:
            break
        _draw_justified_line(draw, x, y, inner_w, line, font, is_last=(li == len(lines) - 1))
        y += _line_height(font)
    return y + PARAGRAPH_GAP


def _draw_toc(draw: ImageDraw.ImageDraw, table: TocTable, font, bold_font, y: int, inner_w: int, bottom: int) -> int:
    col_w = [int(inner_w * share) for share in TOC_COLUMNS]
    col_x = [MARGIN, MARGIN + col_w[0], MARGIN + col_w[0] + col_w[1]]

    def _row(cells: Tuple[str, str, str], row_font) -> None:
        for i, text in enumerate(cells):
            if i == 1:
                draw.text((col_x[i], y), text, font=row_font, fill=(0, 0, 0))
            else:
                tw, _ = _measure(draw, text, row_font)
                draw.text((col_x[i] + (col_w[i] - tw) // 2, y), text, font=row_font, fill=(0, 0, 0))

    _row(("CHAPTER NO", "TITLE", "PAGE NO"), bold_font)
    y += _line_height(bold_font) + PARAGRAPH_GAP
    for row in table.rows:
        if y + _line_height(font) > bottom:
            break
        title = row.title
        while len(title) > 1 and _measure(draw, title, font)[0] > col_w[1]:
            title = title[:-2] + "…"
        _row((row.number, title, str(row.page)), font)
        y += _line_height(font) + PARAGRAPH_GAP // 2
    return y


def render_page(page: Page, size: Tuple[int, int] = A4_PX, font_name: Optional[str] = None) -> Image.Image:
    """Draw one preview page and its page number.

    Doxygen:
    - @param page: Page produced by `estimate_layout`.
    - @param size: Output image size (width, height) in pixels.
    - @param font_name: Optional font file name; defaults to the candidate list.
    - @return: RGB image of the page.
    """
    width, height = size
    img = Image.new("RGB", size, (255, 255, 255))
    draw = ImageDraw.Draw(img)
    inner_w = max(1, width - 2 * MARGIN)
    bottom = height - MARGIN

    body = _load_font(BODY_SIZE, font_name)
    heading = _load_font(HEADING_SIZE, font_name)
    subheading = _load_font(SUBHEADING_SIZE, font_name)

    y = MARGIN
    for block in page.content:
        if y >= bottom:
            break
        y = _draw_block(draw, block, y, size, inner_w, bottom, body, heading, subheading, font_name)

    footer = _load_font(FOOTER_SIZE, font_name)
    label = str(page.page_number)
    tw, _ = _measure(draw, label, footer)
    draw.text(((width - tw) // 2, height - MARGIN // 2 - FOOTER_SIZE), label, font=footer, fill=(0, 0, 0))
    return img


def _draw_block(draw, block: Block, y: int, size: Tuple[int, int], inner_w: int, bottom: int,
                body, heading, subheading, font_name: Optional[str]) -> int:
    width, height = size
    if isinstance(block, TitleBlock):
        y = max(y, int(0.3 * height))
        y = _draw_centered(draw, block.title, _load_font(TITLE_SIZE, font_name), y, width, inner_w)
        return _draw_centered(draw, block.subtitle, heading, y + 2 * PARAGRAPH_GAP, width, inner_w)
    if isinstance(block, SectionHeading):
        return _draw_centered(draw, block.text, heading, y, width, inner_w) + PARAGRAPH_GAP
    if isinstance(block, MainTitle):
        # "CHAPTER n" and the title go on separate lines
        head, _, rest = block.text.partition(":")
        y = _draw_centered(draw, head.strip(), heading, y, width, inner_w)
        return _draw_centered(draw, rest.strip(), heading, y, width, inner_w) + PARAGRAPH_GAP
    if isinstance(block, SubTitle):
        for line in _layout_lines(draw, block.text, subheading, inner_w):
            draw.text((MARGIN, y), line, font=subheading, fill=(0, 0, 0))
            y += _line_height(subheading)
        return y + PARAGRAPH_GAP
    if isinstance(block, TocTable):
        return _draw_toc(draw, block, body, subheading, y, inner_w, bottom)
    if isinstance(block, ReferenceList):
        indent = 24
        for item in block.items:
            if y + _line_height(body) > bottom:
                break
            draw.text((MARGIN, y), "•", font=body, fill=(0, 0, 0))
            y = _draw_paragraph(draw, item, body, MARGIN + indent, y, inner_w - indent, bottom)
        return y
    if isinstance(block, Text):
        return _draw_paragraph(draw, block.text, body, MARGIN, y, inner_w, bottom)
    return y


def render_preview(pages: List[Page], out_dir: str, size: Tuple[int, int] = A4_PX) -> List[str]:
    """Render every page to out_dir/page-NNNN.png and return the written paths."""
    os.makedirs(out_dir, exist_ok=True)
    paths: List[str] = []
    for page in pages:
        out_path = os.path.join(out_dir, f"page-{page.page_number:04d}.png")
        render_page(page, size).save(out_path)
        paths.append(out_path)
    return paths
