"""
Essay Vault Orchestrator: runs the end-to-end download pipeline.

Collect essay URLs -> drop the ones already on disk -> download the rest
one at a time, politely spaced, on a single reused page.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

from .constants import (
    DEFAULT_DELAY_SECS,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_TIMEOUT_SECS,
    INDEX_URL,
    ORIGIN_PREFIX,
    USER_AGENT,
)
from .download_filter import get_essay_urls_to_download
from .errors import NavigationError, RenderError
from .essay_extractor import EssayExtractor
from .logger import ErrorTracker
from .renderer import PageHandle, RendererSession
from .url_collector import UrlCollector


@dataclass
class RunConfig:
    output_dir: str = DEFAULT_OUTPUT_DIR
    index_url: str = INDEX_URL
    origin_prefix: str = ORIGIN_PREFIX
    delay_secs: float = DEFAULT_DELAY_SECS
    request_timeout: float = DEFAULT_TIMEOUT_SECS
    user_agent: str = USER_AGENT
    keep_going: bool = False  # log per-essay failures and carry on


class SequentialDownloader:
    """
    Downloads essays strictly one after another, waiting ``delay_secs``
    before each one to go easy on the site.
    """

    def __init__(self,
                 extractor: EssayExtractor,
                 delay_secs: float = DEFAULT_DELAY_SECS,
                 keep_going: bool = False,
                 error_tracker: Optional[ErrorTracker] = None,
                 sleep: Callable[[float], None] = time.sleep,
                 logger: Optional[logging.Logger] = None):
        self.extractor = extractor
        self.delay_secs = delay_secs
        self.keep_going = keep_going
        self.logger = logger or logging.getLogger(__name__)
        self.error_tracker = error_tracker or ErrorTracker(self.logger)
        self._sleep = sleep

    def download_all(self, page: PageHandle, essay_urls: Sequence[str]) -> Dict[str, int]:
        """
        Download every URL in order with the same page.

        Without ``keep_going`` the first failure propagates and ends the run;
        essays saved before it stay on disk and are skipped next time.
        """
        stats = {"downloaded": 0, "failed": 0}
        total = len(essay_urls)

        for i, url in enumerate(essay_urls, 1):
            self._sleep(self.delay_secs)
            self.logger.debug(f"[{i}/{total}] {url}")
            try:
                self.extractor.download(page, url)
            except (NavigationError, RenderError, OSError) as e:
                if not self.keep_going:
                    raise
                self.error_tracker.log_error(e, context="download essay", url=url)
                stats["failed"] += 1
                continue
            stats["downloaded"] += 1

        return stats


class EssayVaultController:
    def __init__(self,
                 config: RunConfig,
                 logger: Optional[logging.Logger] = None,
                 session_factory: Callable[..., RendererSession] = RendererSession,
                 error_tracker: Optional[ErrorTracker] = None,
                 sleep: Callable[[float], None] = time.sleep):
        self.config = config
        self.logger = logger or logging.getLogger(__name__)
        self.session_factory = session_factory
        self.error_tracker = error_tracker or ErrorTracker(self.logger)
        self.collector = UrlCollector(index_url=config.index_url,
                                      origin_prefix=config.origin_prefix)
        self.extractor = EssayExtractor(config.output_dir)
        self.downloader = SequentialDownloader(self.extractor,
                                               delay_secs=config.delay_secs,
                                               keep_going=config.keep_going,
                                               error_tracker=self.error_tracker,
                                               sleep=sleep)

    def run(self) -> Dict[str, int]:
        """Run the whole pipeline; the renderer session is always closed."""
        stats = {"found": 0, "existing_skipped": 0, "to_download": 0, "downloaded": 0, "failed": 0}

        with self.session_factory(user_agent=self.config.user_agent,
                                  timeout=self.config.request_timeout) as session:
            essay_urls: List[str] = self.collector.collect(session.new_page())
            stats["found"] = len(essay_urls)

            to_download = get_essay_urls_to_download(essay_urls, self.config.output_dir)
            stats["to_download"] = len(to_download)
            stats["existing_skipped"] = stats["found"] - stats["to_download"]

            result = self.downloader.download_all(session.new_page(), to_download)
            stats.update(result)

        self.logger.info(f"Run complete: {stats}")
        return stats
