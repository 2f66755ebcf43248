"""
Domain Input - resolves the list of domains to look up
Precedence: single target flag > list file > piped stdin
"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional, TextIO

logger = logging.getLogger(__name__)


def _clean_lines(lines: Iterable[str]) -> List[str]:
    domains = []
    for line in lines:
        line = line.strip()
        if line:
            domains.append(line)
    return domains


def read_domains_from_file(path: str) -> List[str]:
    """Read one domain per non-empty line. Raises OSError if unreadable."""
    with open(Path(path), "r", encoding="utf-8") as f:
        domains = _clean_lines(f)
    logger.debug("Read %s domains from %s", len(domains), path)
    return domains


def stdin_is_piped(stdin: Optional[TextIO]) -> bool:
    if stdin is None:
        return False
    try:
        return not stdin.isatty()
    except (AttributeError, ValueError):
        return False


def read_domains_from_stdin(stdin: TextIO) -> List[str]:
    domains = _clean_lines(stdin)
    logger.debug("Read %s domains from stdin", len(domains))
    return domains


def collect_domains(target: Optional[str] = None,
                    list_path: Optional[str] = None,
                    stdin: Optional[TextIO] = None) -> List[str]:
    """
    Resolve the ordered domain list.

    Returns an empty list when no source is available (interactive stdin
    and neither target nor list file given).
    """
    if target and target.strip():
        return [target.strip()]
    if list_path:
        return read_domains_from_file(list_path)
    if stdin_is_piped(stdin):
        return read_domains_from_stdin(stdin)
    return []
