"""Command line entry point for the essay archiver."""

import argparse
import logging
import os
from typing import List, Optional

from .core.constants import (
    DEFAULT_DELAY_SECS,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_TIMEOUT_SECS,
    INDEX_URL,
    ORIGIN_PREFIX,
)
from .core.controller import EssayVaultController, RunConfig
from .core.logger import create_error_tracker, get_logger, initialize_logging
from .utils.file_manager import FileManager
from .utils.validators import origin_prefix, validate_url


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="essayvault",
        description="Download every essay from the author's website as PDF, "
                    "skipping essays already saved.",
    )
    parser.add_argument(
        "--output-dir",
        default=DEFAULT_OUTPUT_DIR,
        help=f"Directory the essays are saved under (default: {DEFAULT_OUTPUT_DIR})",
    )
    parser.add_argument(
        "--index-url",
        default=INDEX_URL,
        help=f"Page listing the essays (default: {INDEX_URL})",
    )
    parser.add_argument(
        "--delay",
        type=float,
        default=DEFAULT_DELAY_SECS,
        help=f"Seconds to wait before each essay download (default: {DEFAULT_DELAY_SECS})",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT_SECS,
        help=f"Per-request timeout in seconds (default: {DEFAULT_TIMEOUT_SECS})",
    )
    parser.add_argument(
        "--keep-going",
        action="store_true",
        help="Log failed essays and continue instead of stopping the run",
    )
    parser.add_argument(
        "--log-dir",
        default="logs",
        help="Directory for log files (default: logs)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Show debug output on the console",
    )

    args = parser.parse_args(argv)

    ok, index_url, error = validate_url(args.index_url)
    if not ok:
        parser.error(f"--index-url: {error}")
    args.index_url = index_url

    if args.delay < 0:
        parser.error("--delay must not be negative")
    if args.timeout <= 0:
        parser.error("--timeout must be positive")

    return args


def build_config(args: argparse.Namespace) -> RunConfig:
    # Essay links must live on the same site as the index
    site_origin = ORIGIN_PREFIX if args.index_url == INDEX_URL else origin_prefix(args.index_url)
    return RunConfig(
        output_dir=args.output_dir.rstrip("/\\") or args.output_dir,
        index_url=args.index_url,
        origin_prefix=site_origin,
        delay_secs=args.delay,
        request_timeout=args.timeout,
        keep_going=args.keep_going,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    initialize_logging(args.log_dir,
                       console_level=logging.DEBUG if args.verbose else logging.INFO)
    logger = get_logger('main')

    config = build_config(args)
    logger.info(f"Index: {config.index_url}")
    logger.info(f"Output: {config.output_dir}")
    logger.info(f"Delay: {config.delay_secs}s, keep going: {config.keep_going}")

    error_tracker = create_error_tracker('downloads')
    controller = EssayVaultController(config, logger=logger, error_tracker=error_tracker)
    stats = controller.run()

    output = FileManager(config.output_dir).get_output_stats()
    logger.info(f"Downloaded: {stats['downloaded']}, Failed: {stats['failed']}, "
                f"Skipped (already saved): {stats['existing_skipped']}")
    logger.info(f"Essays on disk: {output['pdf_files']} across {len(output['years'])} years")

    if error_tracker.has_errors:
        summary = error_tracker.get_error_summary()
        by_type = ", ".join(f"{name} x{count}" for name, count in summary['error_types'].items())
        logger.warning(f"{summary['total_errors']} essay(s) failed: {by_type}")
        for url in summary['failed_urls']:
            logger.warning(f"Failed: {url}")
        report_path = os.path.join(args.log_dir, "error_report.txt")
        error_tracker.save_error_report(report_path)
        return 1
    return 0
