"""
WeasyPrint PDF Engine

Renders a fetched essay page to PDF with WeasyPrint.

Remote resources referenced by the page (images, stylesheets) are fetched
through the same HTTP session that loaded the page, and served from the
page's resource cache when they were prefetched during navigation.
"""

import logging
from typing import Callable, Dict, Optional, Tuple

from ..errors import RenderError

try:
    from weasyprint import CSS, HTML, default_url_fetcher
except Exception:  # pragma: no cover - handled at runtime
    CSS = HTML = default_url_fetcher = None


class WeasyPrintEngine:
    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def session_fetcher(self,
                        http_session,
                        timeout: float,
                        cache: Optional[Dict[str, Tuple[bytes, Optional[str]]]] = None) -> Callable:
        """
        Return a url_fetcher for WeasyPrint that loads http(s) resources
        through ``http_session``.

        Args:
            http_session: requests-compatible session used for the page
            timeout: Per-request timeout in seconds
            cache: Mapping of URL -> (content, mime type) already downloaded
        """
        cache = cache if cache is not None else {}

        def fetch(url):
            if url in cache:
                content, mime_type = cache[url]
                return {'string': content, 'mime_type': mime_type, 'redirected_url': url}
            if url.startswith('http://') or url.startswith('https://'):
                response = http_session.get(url, timeout=timeout)
                response.raise_for_status()
                mime_type = response.headers.get('content-type', '').split(';')[0].strip() or None
                return {
                    'string': response.content,
                    'mime_type': mime_type,
                    'redirected_url': response.url or url,
                }
            # data:, file: and friends
            return default_url_fetcher(url)

        return fetch

    def available(self) -> bool:
        """Return True if WeasyPrint is importable."""
        return HTML is not None

    def generate(self,
                 html_content: str,
                 output_path: str,
                 base_url: Optional[str] = None,
                 stylesheet: Optional[str] = None,
                 url_fetcher: Optional[Callable] = None) -> str:
        """
        Render HTML to a PDF file, creating or overwriting ``output_path``.

        Args:
            html_content: Page markup
            output_path: Target PDF path
            base_url: URL relative references are resolved against
            stylesheet: Extra CSS applied on top of the page (page size, margins)
            url_fetcher: WeasyPrint url_fetcher for page resources

        Returns:
            The path written

        Raises:
            RenderError: WeasyPrint is missing or fails to lay out the page
            OSError: The PDF file cannot be written
        """
        if not self.available():
            raise RenderError(output_path, "WeasyPrint is not installed. Please install 'weasyprint'.")

        try:
            html = HTML(string=html_content, base_url=base_url,
                        url_fetcher=url_fetcher or default_url_fetcher)
            stylesheets = [CSS(string=stylesheet)] if stylesheet else None
            document = html.render(stylesheets=stylesheets)
        except Exception as e:
            self.logger.error(f"WeasyPrint rendering failed for {base_url}: {e}")
            raise RenderError(output_path, str(e)) from e

        document.write_pdf(output_path)
        self.logger.debug(f"Wrote PDF: {output_path}")
        return output_path
