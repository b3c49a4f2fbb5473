"""
Tests for the page rendering layer without network or WeasyPrint.
"""

import pytest
import requests

from conftest import SITE, FakeEngine, FakeHttpSession, INDEX_HTML, essay_html
from essayvault.core import renderer as renderer_module
from essayvault.core.errors import NavigationError, RenderError, RendererError
from essayvault.core.pdf_engines import weasyprint_engine
from essayvault.core.pdf_engines.weasyprint_engine import WeasyPrintEngine
from essayvault.core.renderer import PdfOptions, RendererSession, WaitPolicy


def test_session_context_manager_closes_http_session():
    http = FakeHttpSession()
    with RendererSession(http_session=http, engine=FakeEngine()) as session:
        assert session.is_open
        assert http.headers["User-Agent"] == session.user_agent
    assert http.closed
    assert not session.is_open


def test_session_closes_when_body_raises():
    http = FakeHttpSession()
    with pytest.raises(RuntimeError):
        with RendererSession(http_session=http, engine=FakeEngine()):
            raise RuntimeError("boom")
    assert http.closed


def test_new_page_on_closed_session_fails():
    session = RendererSession(http_session=FakeHttpSession(), engine=FakeEngine())
    with pytest.raises(RendererError):
        session.new_page()


def test_close_is_idempotent(session):
    session.close()
    session.close()
    assert not session.is_open


def test_query_before_goto_fails(session):
    page = session.new_page()
    with pytest.raises(RendererError):
        page.query_selector("font")
    with pytest.raises(RendererError):
        page.render_to_pdf("out.pdf")


def test_hrefs_resolve_against_page_url(session, fake_http):
    fake_http.pages[SITE + "articles.html"] = INDEX_HTML
    page = session.new_page()
    page.goto(SITE + "articles.html")

    links = page.query_selector_all("font > a")
    hrefs = [page.evaluate(el, lambda e: e.get_property("href")) for el in links]

    assert hrefs[0] == SITE + "greatwork.html"
    assert hrefs[1] == SITE + "getideas.html"
    assert hrefs[2] == "https://example.com/elsewhere.html"


def test_missing_href_is_empty_string(session, fake_http):
    fake_http.pages[SITE + "a.html"] = "<html><body><font><a name='top'>x</a></font></body></html>"
    page = session.new_page()
    page.goto(SITE + "a.html")
    anchor = page.query_selector("font > a")
    assert anchor.get_property("href") == ""
    assert anchor.get_attribute("name") == "top"


def test_dom_has_implicit_tbody(session, fake_http):
    fake_http.pages[SITE + "greatwork.html"] = essay_html()
    page = session.new_page()
    page.goto(SITE + "greatwork.html")

    img = page.query_selector(
        "body > table > tbody > tr > td:nth-child(3) > table:nth-child(4) > tbody > tr > td > img"
    )
    assert img is not None
    assert img.get_attribute("alt") == "How to Do Great Work"


def test_inner_html_keeps_line_breaks(session, fake_http):
    fake_http.pages[SITE + "greatwork.html"] = essay_html(date_line="March 2024")
    page = session.new_page()
    page.goto(SITE + "greatwork.html")
    markup = page.query_selector("font").inner_html()
    assert markup.startswith("March 2024<br")


def test_meta_charset_decides_encoding_when_header_has_none(session, fake_http):
    title = "Café — naïve"
    body = essay_html(title=title).replace("<head>", '<head><meta charset="utf-8">')
    fake_http.pages[SITE + "cafe.html"] = (200, body.encode("utf-8"), {"Content-Type": "text/html"})
    page = session.new_page()
    page.goto(SITE + "cafe.html")

    assert page.query_selector("table[width='435'] img").get_attribute("alt") == title
    assert f'alt="{title}"' in page.html


def test_header_charset_decides_encoding(session, fake_http):
    body = essay_html(title="Résumé").encode("windows-1252")
    fake_http.pages[SITE + "resume.html"] = (200, body, {"Content-Type": "text/html; charset=windows-1252"})
    page = session.new_page()
    page.goto(SITE + "resume.html")

    assert page.query_selector("title").get_property("textContent") == "Résumé"
    assert "Résumé" in page.html


def test_http_error_raises_navigation_error(session, fake_http):
    fake_http.pages[SITE + "gone.html"] = (410, "gone")
    page = session.new_page()
    with pytest.raises(NavigationError) as excinfo:
        page.goto(SITE + "gone.html")
    assert excinfo.value.status_code == 410
    assert excinfo.value.url == SITE + "gone.html"


def test_transport_error_raises_navigation_error(session, fake_http):
    fake_http.pages[SITE + "down.html"] = requests.ConnectionError("name resolution failed")
    page = session.new_page()
    with pytest.raises(NavigationError) as excinfo:
        page.goto(SITE + "down.html")
    assert excinfo.value.status_code is None


def test_network_idle_0_prefetches_subresources(session, fake_http):
    fake_http.pages[SITE + "greatwork.html"] = essay_html()
    fake_http.pages["https://s.turbifycdn.com/title.gif"] = (200, b"GIF89a", {"content-type": "image/gif"})
    page = session.new_page()
    page.goto(SITE + "greatwork.html", wait_until=WaitPolicy.NETWORK_IDLE_0)

    # nav.gif and spacer.gif answer 404 and are skipped
    assert list(page.resources) == ["https://s.turbifycdn.com/title.gif"]
    assert page.resources["https://s.turbifycdn.com/title.gif"] == (b"GIF89a", "image/gif")
    assert SITE + "nav.gif" in fake_http.requested


def test_network_idle_2_does_not_prefetch(session, fake_http):
    fake_http.pages[SITE + "greatwork.html"] = essay_html()
    page = session.new_page()
    page.goto(SITE + "greatwork.html")
    assert page.resources == {}
    assert fake_http.requested == [SITE + "greatwork.html"]


def test_render_to_pdf_passes_page_and_options(session, fake_http, fake_engine, tmp_path):
    fake_http.pages[SITE + "greatwork.html"] = essay_html()
    page = session.new_page()
    page.goto(SITE + "greatwork.html")

    target = str(tmp_path / "out.pdf")
    assert page.render_to_pdf(target) == target

    call = fake_engine.calls[0]
    assert call["base_url"] == SITE + "greatwork.html"
    assert "size: A4" in call["stylesheet"]
    assert "margin: 50px 25px 50px 25px" in call["stylesheet"]
    assert (tmp_path / "out.pdf").read_bytes().startswith(b"%PDF")


def test_pdf_options_without_background():
    css = PdfOptions(print_background=False).to_css()
    assert "background: none" in css
    assert "background" not in PdfOptions().to_css()


def test_session_fetcher_serves_cached_resources():
    cache = {"https://cdn.example.com/a.gif": (b"GIF89a", "image/gif")}
    http = FakeHttpSession()
    fetch = WeasyPrintEngine().session_fetcher(http, 5, cache)

    result = fetch("https://cdn.example.com/a.gif")
    assert result["string"] == b"GIF89a"
    assert result["mime_type"] == "image/gif"
    assert http.requested == []


def test_session_fetcher_downloads_uncached_resources():
    http = FakeHttpSession({"https://cdn.example.com/site.css": (200, "body{}", {"content-type": "text/css"})})
    fetch = WeasyPrintEngine().session_fetcher(http, 5, {})

    result = fetch("https://cdn.example.com/site.css")
    assert result["string"] == b"body{}"
    assert result["mime_type"] == "text/css"


def test_engine_without_weasyprint_raises_render_error(monkeypatch, tmp_path):
    monkeypatch.setattr(weasyprint_engine, "HTML", None)
    engine = WeasyPrintEngine()
    assert not engine.available()
    with pytest.raises(RenderError):
        engine.generate("<html></html>", str(tmp_path / "x.pdf"))


def test_default_engine_is_weasyprint():
    session = RendererSession(http_session=FakeHttpSession())
    assert isinstance(session.engine, renderer_module.WeasyPrintEngine)


weasyprint_missing = pytest.mark.skipif(
    not WeasyPrintEngine().available(),
    reason="WeasyPrint or its system libraries are not installed",
)


@weasyprint_missing
def test_weasyprint_writes_pdf_with_prefetched_stylesheet(tmp_path):
    http = FakeHttpSession({
        SITE + "greatwork.html": '<html><head><link rel="stylesheet" href="style.css"></head>'
                                 '<body><h1>How to Do Great Work</h1><p>July 2023</p></body></html>',
        SITE + "style.css": (200, "h1 { color: #336699; }", {"content-type": "text/css"}),
    })
    target = tmp_path / "greatwork-2023-07.pdf"

    with RendererSession(http_session=http) as renderer:
        page = renderer.new_page()
        page.goto(SITE + "greatwork.html", wait_until=WaitPolicy.NETWORK_IDLE_0)
        assert page.render_to_pdf(str(target)) == str(target)

    assert page.resources[SITE + "style.css"] == (b"h1 { color: #336699; }", "text/css")
    # The stylesheet came from the cache at render time
    assert http.requested.count(SITE + "style.css") == 1
    assert target.read_bytes().startswith(b"%PDF")


@weasyprint_missing
def test_pdf_options_lay_out_a4_pages():
    document = weasyprint_engine.HTML(string="<p>July 2023</p>").render(
        stylesheets=[weasyprint_engine.CSS(string=PdfOptions().to_css())]
    )
    page = document.pages[0]
    assert page.width == pytest.approx(793.7, abs=0.5)
    assert page.height == pytest.approx(1122.5, abs=0.5)
