"""Figure preparation: validate image bytes and size them for the page.

Uses Pillow to sniff the format and dimensions. Formats Word cannot embed
directly are re-encoded as PNG.
"""

from __future__ import annotations

import io
from dataclasses import dataclass
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError

_EMBEDDABLE_FORMATS = {"PNG", "JPEG", "GIF", "BMP"}


@dataclass(frozen=True)
class FigureImage:
    data: bytes
    width_px: int
    height_px: int

    def stream(self) -> io.BytesIO:
        return io.BytesIO(self.data)


def fit_within(size: Tuple[int, int], box: Tuple[int, int]) -> Tuple[int, int]:
    """Scale `size` to the largest size that fits `box`, keeping the aspect ratio.

    Doxygen:
    - @param size: Source (width, height) in pixels.
    - @param box: Maximum (width, height) in pixels.
    - @return: Scaled (width, height), each at least 1.
    """
    w, h = size
    max_w, max_h = box
    if w <= 0 or h <= 0:
        return max_w, max_h
    scale = min(max_w / w, max_h / h)
    return max(1, int(round(w * scale))), max(1, int(round(h * scale)))


def prepare_figure(blob: bytes, max_width_px: int = 400, max_height_px: int = 266) -> Optional[FigureImage]:
    """Return an embeddable figure for `blob`, or None when it is not an image."""
    try:
        with Image.open(io.BytesIO(blob)) as img:
            img.load()
            fmt = (img.format or "").upper()
            width, height = fit_within(img.size, (max_width_px, max_height_px))
            if fmt in _EMBEDDABLE_FORMATS:
                data = blob
            else:
                out = io.BytesIO()
                converted = img if img.mode in ("RGB", "RGBA", "L", "LA", "P") else img.convert("RGBA")
                converted.save(out, format="PNG")
                data = out.getvalue()
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        print(f"Warning: skipping unreadable image ({exc})")
        return None
    return FigureImage(data=data, width_px=width, height_px=height)
