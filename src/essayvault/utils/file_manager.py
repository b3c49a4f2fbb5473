"""
File Management Utilities

Output layout for saved essays: one directory per publication year under
the output root, holding ``<essayId>-<year>-<monthCode>.pdf`` files.
"""

import glob
import logging
import os
from typing import Any, Dict


class FileManager:
    """
    Manages the year-per-directory layout of the essay archive.

    Paths are built as plain strings on top of the root exactly as given,
    so they line up with the fixed-width names the download filter reads
    back.
    """

    def __init__(self, base_output_dir: str = "essays"):
        """
        Args:
            base_output_dir: Root directory for saved essays
        """
        self.base_output_dir = base_output_dir
        self.logger = logging.getLogger(__name__)

    def year_dir(self, year: str) -> str:
        return os.path.join(self.base_output_dir, year)

    def ensure_year_dir(self, year: str) -> str:
        """Create the directory for ``year`` if it does not exist yet."""
        directory = self.year_dir(year)
        if not os.path.isdir(directory):
            os.makedirs(directory, exist_ok=True)
            self.logger.debug(f"Created directory: {directory}")
        return directory

    def get_pdf_path(self, essay_id: str, year: str, month_code: str) -> str:
        return os.path.join(self.year_dir(year), f"{essay_id}-{year}-{month_code}.pdf")

    def get_output_stats(self) -> Dict[str, Any]:
        """
        Get statistics about the output directory.

        Returns:
            Dictionary with the PDF count, total size and per-year counts
        """
        stats = {
            'pdf_files': 0,
            'total_pdf_size': 0,
            'years': {},
            'root': self.base_output_dir,
        }

        for path in glob.glob(os.path.join(self.base_output_dir, '**', '*.pdf'), recursive=True):
            stats['pdf_files'] += 1
            stats['total_pdf_size'] += os.path.getsize(path)
            year = os.path.basename(os.path.dirname(path))
            stats['years'][year] = stats['years'].get(year, 0) + 1

        stats['years'] = dict(sorted(stats['years'].items()))
        return stats
