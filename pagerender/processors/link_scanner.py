"""Reject pages that link to blocklisted destinations."""

import logging
from typing import Any, Iterable, Optional, Protocol

from pagerender.core.exceptions import BaseError
from pagerender.models.dto import PageLink, ScanResult

logger = logging.getLogger(__name__)


class ConfigSource(Protocol):
    async def get(self, key: str) -> Any: ...


def normalize_blocklist(value: Any) -> list[str]:
    """Keep the non-empty string keywords of a config value, in order."""
    if not isinstance(value, list):
        return []
    return [keyword for keyword in value if isinstance(keyword, str) and keyword]


def scan_links(links: Iterable[PageLink], blocklist: list[str]) -> ScanResult:
    """
    Return the first (link, keyword) pair where the keyword occurs in the href.

    Links are checked in page order and keywords in blocklist order; scanning
    stops at the first match.
    """
    for link in links:
        if not link.href:
            continue
        for keyword in blocklist:
            if keyword in link.href:
                return ScanResult.block(link.href, keyword)
    return ScanResult.clean()


async def load_blocklist(
    config: ConfigSource,
    key: str,
    log_extra: Optional[dict[str, Any]] = None,
) -> tuple[list[str], Optional[BaseError]]:
    """
    Fetch the keyword blocklist, failing open.

    Returns:
        (keywords, error) where `error` is the failure that forced an empty
        blocklist, so callers can alert on it
    """
    try:
        value = await config.get(key)
    except BaseError as e:
        logger.warning(
            f"Failed to load link blocklist, continuing without it: {e.message}",
            extra={**(log_extra or {}), "error_code": e.error_code},
        )
        return [], e
    return normalize_blocklist(value), None
