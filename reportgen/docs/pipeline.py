from __future__ import annotations

import os
from typing import Dict, Optional

from reportgen.config import load_image_service_config, load_layout_config

from .docx_io import save_as, serialize_report
from .json_io import read_report_json
from .model import FontSizes
from .text import report_filename


def process_report(
    file_path: str,
    out_format: str = "docx",
    out_dir: Optional[str] = None,
    content_font_size: Optional[int] = None,
    chapter_font_size: Optional[int] = None,
    preview_dir: Optional[str] = None,
    fetch_missing_images: bool = True,
) -> Dict[str, str]:
    """High-level pipeline for reports: read JSON → DOCX → (optional) PDF and preview pages.

    - Font sizes given here override the ones stored in the report; both are clamped
      to the editor's ranges.
    - PDF export converts the DOCX with docx2pdf; on failure the DOCX is kept and
      the error is returned under 'pdf_error'.
    """
    if not os.path.exists(file_path):
        raise FileNotFoundError(f"File not found: {file_path}")
    if out_format.lower() not in ("docx", "pdf"):
        raise ValueError(f"Unsupported output format: {out_format}")

    report = read_report_json(file_path)
    sizes = FontSizes(
        content=content_font_size if content_font_size is not None else report.font_sizes.content,
        chapter=chapter_font_size if chapter_font_size is not None else report.font_sizes.chapter,
    ).clamped()

    target_dir = out_dir or os.path.dirname(os.path.abspath(file_path))
    out: Dict[str, str] = {}

    data = serialize_report(
        report,
        sizes.content,
        sizes.chapter,
        fetch_missing=fetch_missing_images,
        image_config=load_image_service_config(),
    )
    out["docx"] = save_as(data, report_filename(report.title), target_dir)
    print(f"DOCX written to {out['docx']}")

    if out_format.lower() == "pdf":
        try:
            from docx2pdf import convert
            out_pdf = os.path.splitext(out["docx"])[0] + ".pdf"
            convert(out["docx"], out_pdf)
            out["pdf"] = out_pdf
        except Exception as e:
            out["pdf_error"] = f"DOCX→PDF conversion failed: {e}"

    if preview_dir:
        from reportgen.layout import estimate_layout
        from reportgen.render import render_preview

        pages = estimate_layout(report, load_layout_config())
        paths = render_preview(pages, preview_dir)
        out["preview"] = preview_dir
        out["preview_pages"] = str(len(paths))

    return out
