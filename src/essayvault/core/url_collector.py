"""
Essay URL Discovery

Visits the essay index page and turns its links into the list of essay
URLs to consider for download.
"""

import logging
from typing import Iterable, List, Optional, Sequence

from .constants import INDEX_URL, ORIGIN_PREFIX, SELECTORS, UNWANTED_SUFFIXES
from .errors import NavigationError
from .renderer import PageHandle, WaitPolicy


def filter_essay_urls(urls: Iterable[str],
                      origin_prefix: str = ORIGIN_PREFIX,
                      unwanted_suffixes: Sequence[str] = UNWANTED_SUFFIXES) -> List[str]:
    """
    Keep on-site links that do not end with an unwanted suffix, dropping
    duplicates while preserving first-seen order.
    """
    keep = [
        url for url in urls
        if url.startswith(origin_prefix)
        and not any(url.endswith(suffix) for suffix in unwanted_suffixes)
    ]
    return list(dict.fromkeys(keep))


class UrlCollector:
    """Collects essay URLs from the site's article index."""

    def __init__(self,
                 index_url: str = INDEX_URL,
                 origin_prefix: str = ORIGIN_PREFIX,
                 unwanted_suffixes: Sequence[str] = UNWANTED_SUFFIXES,
                 logger: Optional[logging.Logger] = None):
        self.index_url = index_url
        self.origin_prefix = origin_prefix
        self.unwanted_suffixes = tuple(unwanted_suffixes)
        self.logger = logger or logging.getLogger(__name__)

    def collect(self, page: PageHandle) -> List[str]:
        """
        Navigate ``page`` to the index and return the unique essay URLs.

        Collection is best effort: a failed navigation or an index without
        any matching links yields an empty list.
        """
        try:
            page.goto(self.index_url, wait_until=WaitPolicy.NETWORK_IDLE_2)
        except NavigationError as e:
            self.logger.error(f"Could not load essay index: {e}")
            return []

        link_elements = page.query_selector_all(SELECTORS["essay_link"])
        if not link_elements:
            self.logger.warning(f"No essay links found on {self.index_url}")
            return []

        all_urls = [page.evaluate(el, lambda e: e.get_property("href")) for el in link_elements]

        site_urls = [url for url in all_urls if url.startswith(self.origin_prefix)]
        self.logger.info(f"NumberOfUrlsFound: {len(site_urls)}")

        unique_urls = filter_essay_urls(site_urls, self.origin_prefix, self.unwanted_suffixes)
        self.logger.info(f"NumberOfUniqueUrls: {len(unique_urls)}")

        return unique_urls
