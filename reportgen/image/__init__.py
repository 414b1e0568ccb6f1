"""Image-level helpers: endpoint client, image pre-pass and figure sizing."""

from .fetch import (
    build_image_url,
    collect_image_tags,
    fetch_image,
    resolve_images,
)
from .processing import FigureImage, fit_within, prepare_figure

__all__ = [
    "FigureImage",
    "build_image_url",
    "collect_image_tags",
    "fetch_image",
    "fit_within",
    "prepare_figure",
    "resolve_images",
]
