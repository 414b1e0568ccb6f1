"""Preview page rendering with Pillow."""

from .draw import render_page, render_preview

__all__ = [
    "render_page",
    "render_preview",
]
