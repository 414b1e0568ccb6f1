"""
Entry point and compatibility facade for the Report → Preview / DOCX pipeline.

Packages:
- reportgen.docs: Report model, JSON reader, DOCX serializer, high-level pipeline
- reportgen.layout: Preview pagination (`estimate_layout`)
- reportgen.image: Image-generation client and image pre-pass
- reportgen.render: Preview page rendering
"""

from __future__ import annotations

from reportgen.config import load_image_service_config, load_layout_config
from reportgen.docs.docx_io import save_as, serialize_report, write_docx
from reportgen.docs.json_io import read_report_json, write_report_json
from reportgen.docs.model import Chapter, FontSizes, Report, Subsection
from reportgen.docs.pipeline import process_report
from reportgen.docs.text import report_filename
from reportgen.image import fetch_image, resolve_images
from reportgen.layout import estimate_layout, estimate_toc
from reportgen.render import render_preview

__all__ = [
    # config
    "load_layout_config",
    "load_image_service_config",
    # model
    "Report",
    "Chapter",
    "Subsection",
    "FontSizes",
    "read_report_json",
    "write_report_json",
    # preview
    "estimate_layout",
    "estimate_toc",
    "render_preview",
    # export
    "serialize_report",
    "save_as",
    "write_docx",
    "report_filename",
    "fetch_image",
    "resolve_images",
    # pipeline
    "process_report",
]


def _print_layout(file_path: str) -> None:
    report = read_report_json(file_path)
    config = load_layout_config()
    toc = estimate_toc(report, config)
    print("Estimated table of contents:")
    print(f"  ABSTRACT ... {toc.abstract_page}")
    for chapter, page in toc.chapter_pages:
        print(f"  {chapter.number}. {chapter.title.upper()} ... {page}")
    print(f"  REFERENCES ... {toc.references_page}")
    pages = estimate_layout(report, config)
    print(f"Estimated pages: {len(pages)}")
    for page in pages:
        kinds = ", ".join(type(block).__name__ for block in page.content)
        print(f"  [{page.page_number}] {kinds}")


def _cli() -> None:
    """CLI for report export.

    --file / -f: Path to the report JSON
    --out-format: docx|pdf (default: docx)
    --out-dir: Output directory (default: next to the JSON file)
    --content-size: Body font size in pt (10-18)
    --chapter-size: Chapter heading font size in pt (12-20)
    --preview-dir: Also render estimated preview pages as PNG into this directory
    --no-fetch: Do not request images missing from the report's image cache
    --layout: Print the estimated page layout and exit
    """
    import argparse

    parser = argparse.ArgumentParser(description="Export an AI-generated report as a paginated Word document.")
    parser.add_argument("--file", "-f", type=str, help="Path to input report (JSON)")
    parser.add_argument("--out-format", type=str, default="docx", choices=["docx", "pdf"], help="Output format (default: docx)")
    parser.add_argument("--out-dir", type=str, default=None, help="Directory for the exported file (default: next to the input)")
    parser.add_argument("--content-size", type=int, default=None, help="Body font size in pt (default: from report or 14)")
    parser.add_argument("--chapter-size", type=int, default=None, help="Chapter heading font size in pt (default: from report or 16)")
    parser.add_argument("--preview-dir", type=str, default=None, help="Render preview pages as PNG into this directory")
    parser.add_argument("--no-fetch", action="store_true", help="Skip images that are not already in the report's image cache")
    parser.add_argument("--layout", action="store_true", help="Print the estimated preview layout and exit")

    args = parser.parse_args()

    if not args.file:
        print("Please provide --file path to a report JSON.")
        print("Examples:\n  python main.py --file report.json\n  python main.py --file report.json --out-format pdf --preview-dir preview")
        raise SystemExit(2)

    try:
        if args.layout:
            _print_layout(args.file)
            return

        result = process_report(
            file_path=args.file,
            out_format=args.out_format,
            out_dir=args.out_dir,
            content_font_size=args.content_size,
            chapter_font_size=args.chapter_size,
            preview_dir=args.preview_dir,
            fetch_missing_images=not args.no_fetch,
        )
    except (FileNotFoundError, ValueError) as e:
        print(str(e))
        raise SystemExit(2)

    for k, v in result.items():
        print(f"{k}: {v}")


if __name__ == "__main__":
    _cli()
