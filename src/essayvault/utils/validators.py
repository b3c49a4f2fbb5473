"""
URL Validation Utilities

Checks the index URL supplied on the command line and derives the site
origin that essay links must share.
"""

import logging
import re
from typing import Optional, Tuple
from urllib.parse import urlparse


class URLValidator:
    """
    Validates index URLs for the essay crawler.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)

        self.domain_pattern = re.compile(
            r'^[a-zA-Z0-9]([a-zA-Z0-9\-]{0,61}[a-zA-Z0-9])?(\.[a-zA-Z0-9]([a-zA-Z0-9\-]{0,61}[a-zA-Z0-9])?)*$'
        )

    def validate(self, url: str) -> Tuple[bool, str, str]:
        """
        Validate a URL, adding ``http://`` when no scheme is given.

        The path is left untouched: the index page is fetched exactly as
        written.

        Args:
            url: The URL to validate

        Returns:
            Tuple of (is_valid, url_with_scheme, error_message)
        """
        if not url or not isinstance(url, str):
            return False, "", "URL cannot be empty"

        url = url.strip()
        parsed = urlparse(url)

        if parsed.scheme:
            if parsed.scheme not in ['http', 'https']:
                return False, "", "URL must use HTTP or HTTPS protocol"
        else:
            url = 'http://' + url
            parsed = urlparse(url)

        if not parsed.netloc:
            return False, "", "URL must have a valid domain"

        domain = parsed.netloc.lower()
        if ':' in domain:
            domain = domain.split(':')[0]

        if not self.domain_pattern.match(domain):
            return False, "", "Invalid domain format"

        return True, url, ""

    def origin_prefix(self, url: str) -> str:
        """``http://www.example.com/essays/index.html`` -> ``http://www.example.com/``"""
        parsed = urlparse(url)
        return f"{parsed.scheme}://{parsed.netloc}/"


# Global validator instance
_validator_instance: Optional[URLValidator] = None


def get_validator() -> URLValidator:
    """
    Get the global URL validator instance.

    Returns:
        URLValidator instance
    """
    global _validator_instance
    if _validator_instance is None:
        _validator_instance = URLValidator()
    return _validator_instance


def validate_url(url: str) -> Tuple[bool, str, str]:
    """
    Validate a URL.

    Returns:
        Tuple of (is_valid, url_with_scheme, error_message)
    """
    return get_validator().validate(url)


def origin_prefix(url: str) -> str:
    return get_validator().origin_prefix(url)
