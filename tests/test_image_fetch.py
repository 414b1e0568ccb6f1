import requests

from reportgen.config import ImageServiceConfig
from reportgen.docs.model import Chapter, Report, Subsection
from reportgen.image import fetch
from reportgen.image.fetch import build_image_url, collect_image_tags, fetch_image, resolve_images

CONFIG = ImageServiceConfig(base_url="https://img.example/prompt/", timeout=3.0)


class _FakeResponse:
    def __init__(self, status_code=200, content=b""):
        self.status_code = status_code
        self.content = content

    @property
    def ok(self):
        return self.status_code < 400


def test_build_image_url_encodes_query():
    url = build_image_url("solar panel / roof", CONFIG, seed=42)
    assert url == "https://img.example/prompt/solar%20panel%20%2F%20roof?width=600&height=400&nologo=true&seed=42"


def test_fetch_image_returns_bytes(monkeypatch):
    seen = {}

    def fake_get(url, timeout):
        seen["url"] = url
        seen["timeout"] = timeout
        return _FakeResponse(200, b"\x89PNG")

    monkeypatch.setattr(fetch.requests, "get", fake_get)
    assert fetch_image("cell", CONFIG, seed=7) == b"\x89PNG"
    assert seen["url"].endswith("cell?width=600&height=400&nologo=true&seed=7")
    assert seen["timeout"] == 3.0


def test_fetch_image_http_error_returns_none(monkeypatch, capsys):
    monkeypatch.setattr(fetch.requests, "get", lambda url, timeout: _FakeResponse(502))
    assert fetch_image("cell", CONFIG) is None
    assert "HTTP 502" in capsys.readouterr().out


def test_fetch_image_network_error_returns_none(monkeypatch):
    def fake_get(url, timeout):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(fetch.requests, "get", fake_get)
    assert fetch_image("cell", CONFIG) is None


def test_fetch_image_empty_body_returns_none(monkeypatch):
    monkeypatch.setattr(fetch.requests, "get", lambda url, timeout: _FakeResponse(200, b""))
    assert fetch_image("cell", CONFIG) is None


def test_fetch_image_uses_session_when_given():
    class _Session:
        def __init__(self):
            self.urls = []

        def get(self, url, timeout):
            self.urls.append(url)
            return _FakeResponse(200, b"data")

    session = _Session()
    assert fetch_image("x", CONFIG, seed=1, session=session) == b"data"
    assert len(session.urls) == 1


def _tagged_report():
    return Report(
        title="T",
        chapters=[
            Chapter(number=1, content="a [IMAGE:one] b [IMAGE:two]", subsections=[Subsection("s", "[IMAGE:three]")]),
            Chapter(number=2, content="[IMAGE:two] [IMAGE:four]"),
        ],
        images={"[IMAGE:two]": b"cached"},
    )


def test_collect_image_tags_distinct_in_document_order():
    tags = [s.tag for s in collect_image_tags(_tagged_report())]
    assert tags == ["[IMAGE:one]", "[IMAGE:two]", "[IMAGE:three]", "[IMAGE:four]"]


def test_resolve_images_prefers_cache_and_drops_failures():
    calls = []

    def fetcher(query):
        calls.append(query)
        if query == "three":
            raise RuntimeError("service down")
        if query == "four":
            return None
        return query.encode()

    resolved = resolve_images(_tagged_report(), fetcher)
    assert calls == ["one", "three", "four"]
    assert resolved == {"[IMAGE:one]": b"one", "[IMAGE:two]": b"cached"}


def test_resolve_images_without_fetcher_uses_cache_only():
    assert resolve_images(_tagged_report(), None) == {"[IMAGE:two]": b"cached"}
