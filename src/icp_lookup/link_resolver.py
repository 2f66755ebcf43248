"""
Link Resolver - builds query URLs and pulls the detail link out of page markup
"""

import re
from urllib.parse import urljoin

BASE_URL = "https://icp.chinaz.com"

# The query page links to the record details as /home/info?host=<base64>
INFO_HREF_RE = re.compile(r'href="(/home/info[^"]+)"')


class NoMatchError(ValueError):
    """Raised when the query page carries no /home/info link."""


def build_query_url(domain: str) -> str:
    return f"{BASE_URL}/{domain.strip()}"


def extract_info_href(markup: str) -> str:
    """Return the first /home/info href found in ``markup``."""
    match = INFO_HREF_RE.search(markup or "")
    if not match:
        raise NoMatchError("No match found")
    return match.group(1)


def resolve_detail_url(href: str) -> str:
    """Resolve a relative detail link against the site root."""
    return urljoin(BASE_URL, href)
