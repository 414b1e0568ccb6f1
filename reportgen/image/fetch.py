"""Client for the image-generation endpoint and the image pre-pass.

Every figure marker in a report is resolved once, before the document is
assembled: a blob already present in `Report.images` wins, otherwise the
endpoint is asked for a picture matching the marker's query.
"""

from __future__ import annotations

import random
from typing import Callable, Dict, List, Optional
from urllib.parse import quote

import requests

from reportgen.config import ImageServiceConfig, load_image_service_config
from reportgen.docs.model import Report
from reportgen.docs.text import ImageSegment, split_image_segments

ImageFetcher = Callable[[str], Optional[bytes]]


def build_image_url(query: str, config: ImageServiceConfig, seed: int) -> str:
    nologo = "true" if config.nologo else "false"
    return (
        f"{config.base_url}{quote(query, safe='')}"
        f"?width={config.width}&height={config.height}&nologo={nologo}&seed={seed}"
    )


def fetch_image(
    query: str,
    config: Optional[ImageServiceConfig] = None,
    seed: Optional[int] = None,
    session: Optional[requests.Session] = None,
) -> Optional[bytes]:
    """Fetch a generated image for `query`.

    A random seed is used unless one is given so that repeated queries do
    not hit the same cached picture.

    Doxygen:
    - @param query: Free-text image description taken from the marker.
    - @param config: Endpoint settings; defaults to config/images.json.
    - @param seed: Explicit seed for reproducible URLs.
    - @param session: Optional requests session to reuse connections.
    - @return: Raw image bytes, or None on any failure.
    """
    config = config or load_image_service_config()
    if seed is None:
        seed = random.randint(0, 99999)
    url = build_image_url(query, config, seed)
    getter = session.get if session is not None else requests.get
    try:
        response = getter(url, timeout=config.timeout)
    except requests.RequestException as exc:
        print(f"Warning: image request failed for '{query}': {exc}")
        return None
    if not response.ok:
        print(f"Warning: image service returned HTTP {response.status_code} for '{query}'")
        return None
    if not response.content:
        print(f"Warning: image service returned an empty body for '{query}'")
        return None
    return response.content


def collect_image_tags(report: Report) -> List[ImageSegment]:
    """Distinct image markers of all chapter and subsection bodies, in document order."""
    seen: Dict[str, ImageSegment] = {}
    for chapter in report.chapters:
        bodies = [chapter.content] + [s.content for s in chapter.subsections]
        for body in bodies:
            for segment in split_image_segments(body):
                if isinstance(segment, ImageSegment) and segment.tag not in seen:
                    seen[segment.tag] = segment
    return list(seen.values())


def resolve_images(report: Report, fetcher: Optional[ImageFetcher] = fetch_image) -> Dict[str, bytes]:
    """Map every resolvable image tag of the report to its bytes.

    Tags found in `report.images` are used as-is. Others are fetched one by
    one when a fetcher is given; failures are left out of the result.
    """
    resolved: Dict[str, bytes] = {}
    for segment in collect_image_tags(report):
        blob = report.images.get(segment.tag)
        if blob is None and fetcher is not None:
            try:
                blob = fetcher(segment.query)
            except Exception as exc:
                print(f"Warning: failed to fetch image for '{segment.query}': {exc}")
                blob = None
        if blob:
            resolved[segment.tag] = blob
    return resolved
