import json
import os
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
CONFIG_DIR = os.path.join(PROJECT_ROOT, "config")
LAYOUT_CONFIG_PATH = os.path.join(CONFIG_DIR, "layout.json")
IMAGES_CONFIG_PATH = os.path.join(CONFIG_DIR, "images.json")


@dataclass(frozen=True)
class LayoutConfig:
    """Word budgets used by the preview paginator.

    Tuned for a 14pt body font on an A4 page; the export never uses them.
    """

    title_cost: int = 60
    chapter_words_per_page: int = 320
    chapter_first_page_words: int = 250
    continuation_words_per_page: int = 350
    abstract_words_per_page: int = 350
    references_words_per_page: int = 300


@dataclass(frozen=True)
class ImageServiceConfig:
    base_url: str = "https://image.pollinations.ai/prompt/"
    width: int = 600
    height: int = 400
    nologo: bool = True
    timeout: float = 30.0
    figure_max_width_px: int = 400
    figure_max_height_px: int = 266


def _read_json(path: str) -> Optional[Dict[str, Any]]:
    if not os.path.exists(path):
        return None
    try:
        with open(path, "r", encoding="utf-8") as config_file:
            data = json.load(config_file)
    except Exception as exc:
        print(f"Warning: Could not load config from {path}: {exc}")
        return None
    if not isinstance(data, dict):
        print(f"Warning: Config at {path} must be a JSON object; using defaults.")
        return None
    return data


def _apply_overrides(cls, data: Optional[Dict[str, Any]], path: str):
    defaults = cls()
    if not data:
        return defaults
    values: Dict[str, Any] = {}
    for f in fields(cls):
        if f.name not in data:
            continue
        default = getattr(defaults, f.name)
        raw = data[f.name]
        # bool is an int subclass; keep the two apart
        if isinstance(default, bool):
            ok = isinstance(raw, bool)
        elif isinstance(default, (int, float)):
            ok = isinstance(raw, (int, float)) and not isinstance(raw, bool) and raw > 0
            if ok and isinstance(default, int):
                ok = float(raw).is_integer()
                raw = int(raw)
        else:
            ok = isinstance(raw, str) and bool(raw.strip())
        if ok:
            values[f.name] = raw
        else:
            print(f"Warning: Ignoring invalid value for '{f.name}' in {path}: {raw!r}")
    unknown = sorted(set(data) - {f.name for f in fields(cls)})
    if unknown:
        print(f"Warning: Unknown keys in {path}: {', '.join(unknown)}")
    return cls(**values)


def load_layout_config(path: str = LAYOUT_CONFIG_PATH) -> LayoutConfig:
    """Load paginator budgets from config/layout.json, falling back to defaults."""
    return _apply_overrides(LayoutConfig, _read_json(path), path)


def load_image_service_config(path: str = IMAGES_CONFIG_PATH) -> ImageServiceConfig:
    """Load the image-generation endpoint settings from config/images.json."""
    return _apply_overrides(ImageServiceConfig, _read_json(path), path)
