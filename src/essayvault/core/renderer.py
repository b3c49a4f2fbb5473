"""
Page Rendering Module

A small page-automation layer over requests, BeautifulSoup and WeasyPrint:
a session owns the HTTP connection pool, pages navigate to URLs and expose
the parsed DOM through CSS selectors, and the current page can be rendered
to a PDF file.

The DOM is built with the html5lib tree builder so that selectors see the
same tree a browser would (for example the implicit ``<tbody>`` inside
tables).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup

from .constants import DEFAULT_TIMEOUT_SECS, USER_AGENT
from .errors import NavigationError, RendererError
from .pdf_engines.weasyprint_engine import WeasyPrintEngine


class WaitPolicy(Enum):
    """When a navigation counts as finished."""

    # Document received
    NETWORK_IDLE_2 = "networkidle2"
    # Document received and every render-time subresource fetched
    NETWORK_IDLE_0 = "networkidle0"


@dataclass(frozen=True)
class PdfOptions:
    format: str = "A4"
    margin_top: str = "50px"
    margin_right: str = "25px"
    margin_bottom: str = "50px"
    margin_left: str = "25px"
    print_background: bool = True

    def to_css(self) -> str:
        css = (
            f"@page {{ size: {self.format}; "
            f"margin: {self.margin_top} {self.margin_right} "
            f"{self.margin_bottom} {self.margin_left}; }}"
        )
        if not self.print_background:
            css += "\n* { background: none !important; }"
        return css


class ElementHandle:
    """A DOM element of a loaded page."""

    def __init__(self, tag, page_url: str):
        self._tag = tag
        self._page_url = page_url

    def get_attribute(self, name: str) -> Optional[str]:
        value = self._tag.get(name)
        if isinstance(value, list):
            return " ".join(value)
        return value

    def inner_html(self) -> str:
        return self._tag.decode_contents()

    def get_property(self, name: str) -> Any:
        """
        Read a DOM property the way a browser reports it.

        ``href`` and ``src`` are resolved to absolute URLs against the page
        URL (empty string when the attribute is missing), ``innerHTML`` is
        the serialised child markup and ``textContent`` the text. Anything
        else falls back to the attribute value.
        """
        if name in ("href", "src"):
            value = self.get_attribute(name)
            if value is None:
                return ""
            return urljoin(self._page_url, value.strip())
        if name == "innerHTML":
            return self.inner_html()
        if name == "textContent":
            return self._tag.get_text()
        return self.get_attribute(name)

    def __repr__(self) -> str:
        return f"<ElementHandle {self._tag.name}>"


def _declared_charset(response) -> Optional[str]:
    """The charset named in the Content-Type header, if any."""
    content_type = response.headers.get('content-type', '')
    for param in content_type.split(';')[1:]:
        key, _, value = param.partition('=')
        if key.strip().lower() == 'charset' and value.strip():
            return value.strip().strip('"\'')
    return None


class PageHandle:
    """A single tab: navigates, queries and renders one document at a time."""

    def __init__(self, session: RendererSession):
        self.logger = logging.getLogger(__name__)
        self._session = session
        self.url: Optional[str] = None
        self.html: Optional[str] = None
        self._soup: Optional[BeautifulSoup] = None
        # URL -> (content, mime type) of subresources fetched during navigation
        self.resources: Dict[str, Tuple[bytes, Optional[str]]] = {}

    def goto(self, url: str, wait_until: WaitPolicy = WaitPolicy.NETWORK_IDLE_2):
        """
        Navigate to ``url`` and wait until ``wait_until`` is satisfied.

        Args:
            url: Absolute URL to load
            wait_until: Navigation wait policy

        Returns:
            The HTTP response of the main document

        Raises:
            NavigationError: The request failed or returned an error status
        """
        http = self._session.http
        self.logger.debug(f"Navigating to {url} (wait_until={wait_until.value})")

        try:
            response = http.get(url, timeout=self._session.timeout)
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else None
            raise NavigationError(url, f"HTTP {status_code}", status_code=status_code) from e
        except requests.exceptions.RequestException as e:
            raise NavigationError(url, str(e)) from e

        self.url = response.url or url
        # Decode like a browser: an explicit header charset wins, otherwise
        # html5lib sniffs the BOM and <meta charset> before guessing
        self._soup = BeautifulSoup(response.content, "html5lib",
                                   from_encoding=_declared_charset(response))
        encoding = self._soup.original_encoding or "utf-8"
        try:
            self.html = response.content.decode(encoding, errors="replace")
        except LookupError:
            self.html = response.content.decode("utf-8", errors="replace")
        self.resources = {}

        if wait_until is WaitPolicy.NETWORK_IDLE_0:
            self._prefetch_resources()

        return response

    def _prefetch_resources(self):
        """Fetch images and stylesheets so rendering needs no further requests."""
        http = self._session.http
        for tag in self._soup.select("img[src], link[rel~=stylesheet][href]"):
            ref = tag.get("src") if tag.name == "img" else tag.get("href")
            if not ref.strip():
                continue
            resource_url = urljoin(self.url, ref.strip())
            if not resource_url.startswith(("http://", "https://")) or resource_url in self.resources:
                continue
            try:
                response = http.get(resource_url, timeout=self._session.timeout)
                response.raise_for_status()
            except requests.exceptions.RequestException as e:
                # A broken image does not fail the page load
                self.logger.warning(f"Subresource failed for {self.url}: {resource_url} ({e})")
                continue
            mime_type = response.headers.get('content-type', '').split(';')[0].strip() or None
            self.resources[resource_url] = (response.content, mime_type)

        self.logger.debug(f"Prefetched {len(self.resources)} resources for {self.url}")

    def _require_loaded(self):
        if self._soup is None:
            raise RendererError("No page loaded; call goto() first")

    def query_selector(self, selector: str) -> Optional[ElementHandle]:
        self._require_loaded()
        tag = self._soup.select_one(selector)
        return ElementHandle(tag, self.url) if tag is not None else None

    def query_selector_all(self, selector: str) -> List[ElementHandle]:
        self._require_loaded()
        return [ElementHandle(tag, self.url) for tag in self._soup.select(selector)]

    def evaluate(self, element: ElementHandle, fn: Callable[[ElementHandle], Any]) -> Any:
        return fn(element)

    def render_to_pdf(self, path: str, options: Optional[PdfOptions] = None) -> str:
        """
        Render the current page to ``path`` as a PDF, overwriting any file
        already there.
        """
        self._require_loaded()
        options = options or PdfOptions()
        engine = self._session.engine
        fetcher = engine.session_fetcher(self._session.http, self._session.timeout, self.resources)
        return engine.generate(self.html, path,
                               base_url=self.url,
                               stylesheet=options.to_css(),
                               url_fetcher=fetcher)


class RendererSession:
    """
    Owns the HTTP session shared by every page.

    Use as a context manager so the session is released on every exit path.
    """

    def __init__(self,
                 user_agent: str = USER_AGENT,
                 timeout: float = DEFAULT_TIMEOUT_SECS,
                 http_session=None,
                 engine: Optional[WeasyPrintEngine] = None):
        """
        Args:
            user_agent: User-Agent header sent with every request
            timeout: Per-request timeout in seconds
            http_session: Pre-built requests-compatible session (optional)
            engine: PDF engine (defaults to WeasyPrint)
        """
        self.logger = logging.getLogger(__name__)
        self.user_agent = user_agent
        self.timeout = timeout
        self.engine = engine or WeasyPrintEngine()
        self._provided_http = http_session
        self._http = None

    @property
    def is_open(self) -> bool:
        return self._http is not None

    @property
    def http(self):
        if self._http is None:
            raise RendererError("Renderer session is closed")
        return self._http

    def open(self) -> RendererSession:
        if self._http is None:
            self._http = self._provided_http or requests.Session()
            self._http.headers.update({
                'User-Agent': self.user_agent,
                'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
                'Accept-Language': 'en-US,en;q=0.5',
            })
            self.logger.info("Renderer session opened")
        return self

    def new_page(self) -> PageHandle:
        if self._http is None:
            raise RendererError("Renderer session is closed")
        return PageHandle(self)

    def close(self):
        if self._http is not None:
            self._http.close()
            self._http = None
            self.logger.info("Renderer session closed")

    def __enter__(self) -> RendererSession:
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
