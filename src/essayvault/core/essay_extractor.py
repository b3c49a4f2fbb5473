"""
Essay Page Extraction

Loads a single essay page, works out its title and publication date, and
saves the rendered page as ``<root>/<year>/<essayId>-<year>-<month>.pdf``.
"""

import logging
import re
from typing import Optional, Tuple

from .constants import MONTH_CODES, MONTH_NAMES, SELECTORS, UNKNOWN_DATE
from .errors import RendererError
from .renderer import PageHandle, PdfOptions, WaitPolicy
from ..utils.file_manager import FileManager

# innerHTML line break, however the serializer spells it
_LINE_BREAK = re.compile(r"<br\s*/?>", re.IGNORECASE)


def essay_id_from_url(essay_url: str) -> str:
    """``http://www.paulgraham.com/getideas.html`` -> ``getideas``"""
    return essay_url.split("/")[-1].split(".")[0]


def _split_month_year(line: str) -> Tuple[str, str]:
    tokens = line.split(" ")
    if len(tokens) < 2:
        raise ValueError(f"Expected '<month> <year>', got {line!r}")
    return tokens[0], tokens[1]


def _recognised(month: str, year: str) -> Optional[Tuple[str, str]]:
    if month not in MONTH_NAMES:
        return None
    # The year sometimes has a trailing comma
    if year.endswith(","):
        year = year[:-1]
    return month, year


def _date_from_font(page: PageHandle) -> Optional[Tuple[str, str]]:
    # e.g. <font ...>March 2024<br><br>Essay text...
    element = page.query_selector(SELECTORS["date_font"])
    if element is None:
        return None
    markup = page.evaluate(element, lambda e: e.inner_html())
    first_line = _LINE_BREAK.split(markup, maxsplit=1)[0]
    return _recognised(*_split_month_year(first_line))


def _date_from_paragraph(page: PageHandle) -> Optional[Tuple[str, str]]:
    # e.g. <p>\nMarch 2024<br>... on pages without a <font> wrapper
    element = page.query_selector(SELECTORS["date_paragraph"])
    if element is None:
        return None
    markup = page.evaluate(element, lambda e: e.inner_html())
    first_line = _LINE_BREAK.split(markup, maxsplit=1)[0]
    return _recognised(*_split_month_year(first_line.split("\n")[1]))


def resolve_publish_date(page: PageHandle,
                         logger: Optional[logging.Logger] = None) -> Tuple[str, str]:
    """
    Return ``(month name, year)`` for the loaded essay page.

    The date is looked for in the first ``<font>`` element, then in the
    first ``<p>``. When neither yields a month name the placeholder
    ``("Unknown", "2xxx")`` is returned; parsing problems never propagate.
    """
    logger = logger or logging.getLogger(__name__)

    for strategy in (_date_from_font, _date_from_paragraph):
        try:
            date = strategy(page)
        except (ValueError, IndexError, RendererError) as e:
            logger.debug(f"{strategy.__name__} failed on {page.url}: {e}")
            continue
        if date is not None:
            return date

    logger.warning(f"Error occurred when parsing the publish date of {page.url}, "
                   f"using placeholder month/year")
    return UNKNOWN_DATE


class EssayExtractor:
    """Saves one essay page as a PDF named after its id and publish date."""

    def __init__(self,
                 output_dir: str,
                 pdf_options: Optional[PdfOptions] = None,
                 logger: Optional[logging.Logger] = None):
        self.files = FileManager(output_dir)
        self.pdf_options = pdf_options or PdfOptions()
        self.logger = logger or logging.getLogger(__name__)

    def extract_title(self, page: PageHandle) -> Optional[str]:
        """Title from the heading image's ``alt`` text, or None when absent."""
        element = page.query_selector(SELECTORS["title_image"])
        if element is None:
            return None
        return page.evaluate(element, lambda e: e.get_attribute("alt"))

    def build_output_path(self, essay_id: str, month: str, year: str) -> str:
        """e.g. ``essays/2023/greatwork-2023-07.pdf``"""
        return self.files.get_pdf_path(essay_id, year, MONTH_CODES[month])

    def download(self, page: PageHandle, essay_url: str) -> str:
        """
        Visit ``essay_url`` with ``page`` and save it as a PDF.

        Args:
            page: Page handle to navigate (reused between essays)
            essay_url: Essay to download

        Returns:
            Path of the written PDF

        Raises:
            NavigationError: The essay page could not be loaded
            RenderError: The page could not be rendered
            OSError: The year directory or PDF could not be written
        """
        page.goto(essay_url, wait_until=WaitPolicy.NETWORK_IDLE_0)
        essay_id = essay_id_from_url(essay_url)

        title = self.extract_title(page)
        month, year = resolve_publish_date(page, self.logger)
        self.logger.info(f"title={title!r} year={year} month={month}")

        self.files.ensure_year_dir(year)
        output_path = self.build_output_path(essay_id, month, year)

        self.logger.info(f"Saving file: {output_path}..")
        page.render_to_pdf(output_path, self.pdf_options)
        return output_path
