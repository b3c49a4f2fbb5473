"""
Site profile for the essay archive.

Fixed tables describing the target website: where the essay index lives,
which links count as essays, how publication months map to filename codes,
and the CSS selectors used to scrape each page.
"""

from types import MappingProxyType

# Target site
INDEX_URL = "http://www.paulgraham.com/articles.html"
ORIGIN_PREFIX = "http://www.paulgraham.com/"

# Index pages, feeds, and pages that are not essays (or duplicate one)
UNWANTED_SUFFIXES = (
    "rss.html",
    "index.html",
    "fix.html",
    "noop.html",
    "rootsoflisp.html",
    "langdes.html",
    "lwba.html",
    "progbot.html",
)

MONTH_CODES = MappingProxyType({
    "January": "01",
    "February": "02",
    "March": "03",
    "April": "04",
    "May": "05",
    "June": "06",
    "July": "07",
    "August": "08",
    "September": "09",
    "October": "10",
    "November": "11",
    "December": "12",
    "Unknown": "xx",
})

# Month names a publish date may start with ("Unknown" is only a placeholder)
MONTH_NAMES = frozenset(name for name in MONTH_CODES if name != "Unknown")

UNKNOWN_DATE = ("Unknown", "2xxx")

SELECTORS = MappingProxyType({
    "essay_link": "font > a",
    "title_image": (
        "body > table > tbody > tr > td:nth-child(3) > "
        "table:nth-child(4) > tbody > tr > td > img"
    ),
    "date_font": "font",
    "date_paragraph": "p",
})

# Output
DEFAULT_OUTPUT_DIR = "essays"

# Politeness delay before each essay download (seconds)
DEFAULT_DELAY_SECS = 4.0

DEFAULT_TIMEOUT_SECS = 30

USER_AGENT = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 16_5_1 like Mac OS X) "
    "AppleWebKit/605.1.15 (KHTML, like Gecko) Version/16.5 "
    "Mobile/15E148 Safari/604.1"
)
