import os

import numpy as np

from reportgen.docs.model import Chapter, Report
from reportgen.layout import Page, Text, TitleBlock, estimate_layout
from reportgen.render.draw import render_page, render_preview


def test_render_page_draws_text_on_white_page():
    page = Page(content=[Text("Hello World " * 20)], page_number=3)
    img = render_page(page, size=(400, 560))
    assert img.size == (400, 560)
    arr = np.asarray(img)
    # body area is no longer pure white
    body = arr[72:200, 72:328]
    assert body.mean() < 255
    # corners stay blank
    assert arr[:20, :20].mean() == 255


def test_render_page_title_block_is_centered():
    page = Page(content=[TitleBlock(title="SOLAR", subtitle="A PROJECT REPORT")], page_number=1)
    arr = np.asarray(render_page(page, size=(400, 560)).convert("L"))
    dark_cols = np.where(arr[100:300].min(axis=0) < 128)[0]
    assert dark_cols.size > 0
    center = (dark_cols.min() + dark_cols.max()) / 2
    assert abs(center - 200) < 40


def test_render_preview_writes_one_png_per_page(tmp_path):
    report = Report(title="Preview", abstract="Short.", chapters=[Chapter(number=1, title="One", content="Text.")])
    pages = estimate_layout(report)
    out_dir = str(tmp_path / "preview")
    paths = render_preview(pages, out_dir, size=(300, 420))
    assert len(paths) == len(pages)
    assert os.path.basename(paths[0]) == "page-0001.png"
    assert all(os.path.exists(p) for p in paths)
