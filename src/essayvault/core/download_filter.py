"""
Already-downloaded detection.

The PDFs under the output directory are the only record of past runs. Each
file is named ``<root>/<year>/<essayId>-<year>-<month>.pdf``; the essay id
is recovered by slicing fixed-width pieces off that path.
"""

import glob
import logging
from typing import Iterable, List

from .essay_extractor import essay_id_from_url

logger = logging.getLogger(__name__)

# "-YYYY-MM.pdf"
SUFFIX_CHARS = 12
# "/YYYY/" after the root
YEAR_DIR_CHARS = 6


def get_existing_essay_ids(root: str) -> List[str]:
    """
    Return the ids of essays already saved under ``root``.

    ``essays/2020/earnest-2020-12.pdf`` -> ``earnest``. Files renamed by
    hand do not follow the fixed layout and yield ids that match nothing.
    """
    prefix_chars = len(root) + YEAR_DIR_CHARS
    existing_files = glob.glob(f"{root}/**/*.pdf", recursive=True)
    return [path[:-SUFFIX_CHARS][prefix_chars:] for path in existing_files]


def get_essay_urls_to_download(essay_urls: Iterable[str], root: str) -> List[str]:
    """Drop essay URLs whose id already has a PDF under ``root``."""
    existing_ids = get_existing_essay_ids(root)
    existing_id_set = set(existing_ids)
    to_download = [url for url in essay_urls if essay_id_from_url(url) not in existing_id_set]

    logger.info(f"NumberOfExistingEssays: {len(existing_ids)}")
    logger.info(f"NumberOfNewEssaysToDownload: {len(to_download)}")

    return to_download
