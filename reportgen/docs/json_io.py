from __future__ import annotations

import json
import os

from .model import Report


def read_report_json(path: str) -> Report:
    if not os.path.exists(path):
        raise FileNotFoundError(f"Report file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Report file must contain a JSON object: {path}")
    return Report.from_dict(data)


def write_report_json(report: Report, out_path: str) -> str:
    with open(out_path, "w", encoding="utf-8") as f:
        json.dump(report.to_dict(), f, ensure_ascii=False, indent=2)
    return out_path
