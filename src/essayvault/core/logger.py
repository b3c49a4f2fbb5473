"""
Logging and Error Handling System

One ``essayvault`` logger hierarchy for the whole run: a detailed rotating
log, an errors-only rotating log and a short console stream. Failed essay
downloads are collected by ``ErrorTracker`` so a ``--keep-going`` run can
finish and report them together.
"""

import logging
import logging.handlers
import os
import sys
import traceback
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

APP_LOGGER = "essayvault"

FILE_FORMAT = '%(asctime)s | %(name)s | %(levelname)s | %(funcName)s:%(lineno)d | %(message)s'
CONSOLE_FORMAT = '%(asctime)s | %(levelname)s | %(message)s'

MAIN_LOG_BYTES = 10 * 1024 * 1024
ERROR_LOG_BYTES = 5 * 1024 * 1024


def _rotating_handler(path: Path, level: int, max_bytes: int, backups: int,
                      formatter: logging.Formatter) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path, maxBytes=max_bytes, backupCount=backups, encoding='utf-8'
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


class EssayVaultLogger:
    """Owns the handlers attached to the application logger."""

    def __init__(self, log_dir: str = "logs", app_name: str = APP_LOGGER):
        self.log_dir = Path(log_dir)
        self.app_name = app_name
        self.log_dir.mkdir(parents=True, exist_ok=True)

    def setup_logger(self, level: int = logging.INFO,
                     console_level: int = logging.INFO) -> logging.Logger:
        """
        Attach the file, error-file and console handlers.

        Handlers from an earlier setup are closed first, so calling this
        again with another log directory moves the output there.

        Args:
            level: Level of the application logger
            console_level: Level of the console handler

        Returns:
            The application logger
        """
        app_logger = logging.getLogger(self.app_name)
        app_logger.setLevel(min(level, console_level))

        for handler in list(app_logger.handlers):
            app_logger.removeHandler(handler)
            handler.close()

        file_formatter = logging.Formatter(FILE_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')

        console = logging.StreamHandler(sys.stdout)
        console.setLevel(console_level)
        console.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt='%H:%M:%S'))

        app_logger.addHandler(_rotating_handler(
            self.log_dir / f"{self.app_name}.log", logging.DEBUG, MAIN_LOG_BYTES, 5, file_formatter))
        app_logger.addHandler(console)
        app_logger.addHandler(_rotating_handler(
            self.log_dir / f"{self.app_name}_errors.log", logging.ERROR, ERROR_LOG_BYTES, 3, file_formatter))
        return app_logger

    def get_logger(self, name: Optional[str] = None) -> logging.Logger:
        return logging.getLogger(f"{self.app_name}.{name}" if name else self.app_name)

    def log_system_info(self):
        system = self.get_logger('system')
        system.debug("=== Essay Vault Started ===")
        system.debug(f"Python version: {sys.version}")
        system.debug(f"Platform: {sys.platform}")
        system.debug(f"Working directory: {os.getcwd()}")
        system.debug(f"Log directory: {self.log_dir.absolute()}")


@dataclass
class FailedDownload:
    """One recorded failure."""

    error_id: str
    error_type: str
    message: str
    traceback: str
    url: Optional[str] = None
    context: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def describe(self) -> str:
        text = f"[{self.error_id}] {self.error_type}: {self.message}"
        if self.context:
            text += f" (Context: {self.context})"
        if self.url:
            text += f" (URL: {self.url})"
        return text


class ErrorTracker:
    """
    Collects failures while the download loop keeps going, then summarises
    them for the end-of-run log and the error report file.
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self.errors: List[FailedDownload] = []

    def log_error(self,
                  error: Exception,
                  context: Optional[str] = None,
                  url: Optional[str] = None,
                  additional_info: Optional[Dict[str, Any]] = None) -> str:
        """
        Record ``error`` and log it at ERROR level.

        Args:
            error: The exception that occurred
            context: What was being done
            url: Essay URL being processed
            additional_info: Extra details kept in the report

        Returns:
            The error ID, ``ERR_<timestamp>_<n>``
        """
        failure = FailedDownload(
            error_id=f"ERR_{datetime.now().strftime('%Y%m%d_%H%M%S')}_{len(self.errors):03d}",
            error_type=type(error).__name__,
            message=str(error),
            traceback=''.join(traceback.format_exception(type(error), error, error.__traceback__)),
            url=url,
            context=context,
            details=dict(additional_info or {}),
        )
        self.errors.append(failure)

        self.logger.error(failure.describe())
        self.logger.debug(f"[{failure.error_id}] Full traceback:\n{failure.traceback}")
        return failure.error_id

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def get_error_summary(self) -> Dict[str, Any]:
        """Counts per exception type and the URLs that failed, in order."""
        return {
            'total_errors': len(self.errors),
            'error_types': dict(Counter(e.error_type for e in self.errors)),
            'failed_urls': [e.url for e in self.errors if e.url],
        }

    def save_error_report(self, output_path: str):
        """
        Write a plain-text report: the summary first, then every failure
        grouped by exception type with its traceback.
        """
        summary = self.get_error_summary()
        os.makedirs(os.path.dirname(os.path.abspath(output_path)), exist_ok=True)

        with open(output_path, 'w', encoding='utf-8') as f:
            f.write("ESSAY VAULT ERROR REPORT\n")
            f.write("=" * 50 + "\n\n")
            f.write(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n")
            f.write(f"Total Errors: {summary['total_errors']}\n")
            for error_type, count in summary['error_types'].items():
                f.write(f"  {error_type}: {count}\n")

            f.write("\nFailed URLs:\n")
            for url in summary['failed_urls']:
                f.write(f"  {url}\n")

            for error_type in summary['error_types']:
                f.write(f"\n== {error_type} ==\n")
                for failure in (e for e in self.errors if e.error_type == error_type):
                    f.write(f"{failure.describe()}\n")
                    f.write(f"Time: {failure.timestamp:%Y-%m-%d %H:%M:%S}\n")
                    for key, value in failure.details.items():
                        f.write(f"{key}: {value}\n")
                    f.write(f"Traceback:\n{failure.traceback}\n")
                    f.write("-" * 50 + "\n")

        self.logger.info(f"Error report saved to: {output_path}")


# Global logger instance
_logger_instance: Optional[EssayVaultLogger] = None


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Logger named ``essayvault.<name>``.

    Works before ``initialize_logging`` too; records then go wherever the
    root logger sends them and nothing is written to disk.
    """
    if _logger_instance is None:
        return logging.getLogger(f"{APP_LOGGER}.{name}" if name else APP_LOGGER)
    return _logger_instance.get_logger(name)


def initialize_logging(log_dir: str = "logs", level: int = logging.INFO,
                       console_level: int = logging.INFO) -> EssayVaultLogger:
    global _logger_instance
    _logger_instance = EssayVaultLogger(log_dir)
    _logger_instance.setup_logger(level, console_level)
    _logger_instance.log_system_info()
    return _logger_instance


def create_error_tracker(logger_name: Optional[str] = None) -> ErrorTracker:
    return ErrorTracker(get_logger(logger_name))
