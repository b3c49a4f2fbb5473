"""
Shared test helpers: an in-memory stand-in for the HTTP session and a PDF
engine that writes placeholder files instead of laying out pages.
"""

import sys
from pathlib import Path

import pytest
import requests
from requests.structures import CaseInsensitiveDict

# Add the src directory to the path
src_path = Path(__file__).parent / "src"
sys.path.insert(0, str(src_path))

from essayvault.core.renderer import RendererSession  # noqa: E402


SITE = "http://www.paulgraham.com/"


class FakeResponse:
    def __init__(self, url, status_code=200, body=b"", headers=None):
        self.url = url
        self.status_code = status_code
        self.content = body if isinstance(body, bytes) else body.encode("utf-8")
        self.headers = CaseInsensitiveDict(headers or {"content-type": "text/html; charset=utf-8"})

    @property
    def text(self):
        # requests falls back to ISO-8859-1 for text/* without a charset
        encoding = requests.utils.get_encoding_from_headers(self.headers) or "utf-8"
        return self.content.decode(encoding, errors="replace")

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error for url: {self.url}", response=self)


class FakeHttpSession:
    """Serves canned pages; unknown URLs answer 404."""

    def __init__(self, pages=None):
        # url -> body | (status, body) | (status, body, headers) | Exception
        self.pages = dict(pages or {})
        self.headers = {}
        self.requested = []
        self.closed = False

    def get(self, url, timeout=None):
        self.requested.append(url)
        entry = self.pages.get(url, (404, "not found"))
        if isinstance(entry, Exception):
            raise entry
        if isinstance(entry, tuple):
            return FakeResponse(url, *entry)
        return FakeResponse(url, 200, entry)

    def close(self):
        self.closed = True


class FakeEngine:
    """Records render calls and writes a stub PDF."""

    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def available(self):
        return True

    def session_fetcher(self, http_session, timeout, cache=None):
        return lambda url: cache.get(url)

    def generate(self, html_content, output_path, base_url=None, stylesheet=None, url_fetcher=None):
        self.calls.append({
            "html": html_content,
            "path": output_path,
            "base_url": base_url,
            "stylesheet": stylesheet,
            "url_fetcher": url_fetcher,
        })
        if self.error is not None:
            raise self.error
        with open(output_path, "wb") as f:
            f.write(b"%PDF-1.4 stub")
        return output_path


INDEX_HTML = """<html><head><title>Essays</title></head><body>
<table><tr><td>
<font size="2" face="verdana">
<a href="greatwork.html">How to Do Great Work</a><br><br>
<a href="http://www.paulgraham.com/getideas.html">How to Get New Ideas</a><br><br>
<a href="https://example.com/elsewhere.html">Somewhere Else</a><br><br>
<a href="rss.html">RSS</a><br><br>
<a href="index.html">Home</a><br><br>
<a href="greatwork.html">How to Do Great Work (again)</a>
</font>
</td></tr></table>
</body></html>"""


def essay_html(title="How to Do Great Work", date_line="July 2023"):
    """Essay page laid out like the site: nested tables, title image, date in <font>."""
    return f"""<html><head><title>{title}</title></head><body bgcolor="#ffffff">
<table border="0" cellspacing="0" cellpadding="0">
<tr><td valign="top"><img src="nav.gif" width="69"></td>
<td><img src="spacer.gif" width="26"></td>
<td width="435">
<table><tr><td></td></tr></table>
<table><tr><td></td></tr></table>
<table><tr><td></td></tr></table>
<table width="435"><tr><td><img src="https://s.turbifycdn.com/title.gif" alt="{title}" width="410"></td></tr></table>
<br>
<table width="435"><tr><td><font size="2" face="verdana">{date_line}<br><br>Essay text goes here.<br><br>More text.</font></td></tr></table>
</td></tr></table>
</body></html>"""


@pytest.fixture
def fake_http():
    return FakeHttpSession()


@pytest.fixture
def fake_engine():
    return FakeEngine()


@pytest.fixture
def session(fake_http, fake_engine):
    renderer = RendererSession(http_session=fake_http, engine=fake_engine)
    renderer.open()
    yield renderer
    renderer.close()
