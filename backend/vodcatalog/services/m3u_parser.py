"""Extended M3U playlist parsing for VOD entries.

Only movie and series entries are returned; live channels and malformed
``#EXTINF`` blocks are dropped.
"""
import enum
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional
from urllib.parse import urlsplit

import httpx

from vodcatalog.core.config import settings
from vodcatalog.services.vod.errors import ProviderError

logger = logging.getLogger(__name__)

EXTINF_PREFIX = "#EXTINF:"
ATTRIBUTE_RE = re.compile(r'([a-zA-Z0-9_-]+)="([^"]*)"')
URL_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")
DEFAULT_TITLE = "Untitled"


class EntryType(str, enum.Enum):
    MOVIE = "movie"
    SERIES = "series"


@dataclass
class PlaylistEntry:
    name: str
    url: str
    entry_type: EntryType
    attributes: Dict[str, str] = field(default_factory=dict)

    @property
    def logo(self) -> Optional[str]:
        return self.attributes.get("tvg-logo") or None

    @property
    def group_title(self) -> Optional[str]:
        return self.attributes.get("group-title") or None


def _parse_extinf(line: str) -> dict:
    attributes = {key: value for key, value in ATTRIBUTE_RE.findall(line)}
    _, comma, display_name = line.rpartition(",")
    name = display_name.strip() if comma else ""
    return {"attributes": attributes, "name": name or DEFAULT_TITLE}


def classify_entry(url: str, attributes: Dict[str, str]) -> Optional[EntryType]:
    path = urlsplit(url).path
    tvg_type = attributes.get("tvg-type")
    if "/movie/" in path or tvg_type == "movie":
        return EntryType.MOVIE
    if "/series/" in path or tvg_type == "series":
        return EntryType.SERIES
    return None


def parse_m3u(content: str) -> List[PlaylistEntry]:
    entries: List[PlaylistEntry] = []
    pending = None

    for raw_line in content.splitlines():
        line = raw_line.strip()
        if line.startswith(EXTINF_PREFIX):
            # A second #EXTINF replaces an entry that never got its URL
            pending = _parse_extinf(line)
        elif URL_SCHEME_RE.match(line):
            if pending is None:
                continue
            entry_type = classify_entry(line, pending["attributes"])
            if entry_type is not None:
                entries.append(PlaylistEntry(
                    name=pending["name"],
                    url=line,
                    entry_type=entry_type,
                    attributes=pending["attributes"],
                ))
            pending = None
        else:
            pending = None

    logger.debug(f"Parsed {len(entries)} VOD entries from playlist")
    return entries


def fetch_m3u(url: str, timeout: float = None, transport: httpx.BaseTransport = None) -> str:
    """Download playlist text. Any transport or HTTP failure becomes a ProviderError."""
    try:
        with httpx.Client(
            timeout=timeout if timeout is not None else settings.XC_TIMEOUT_SECONDS,
            follow_redirects=True,
            headers={"User-Agent": settings.XC_USER_AGENT},
            transport=transport,
        ) as client:
            response = client.get(url)
            response.raise_for_status()
    except httpx.HTTPError as e:
        logger.error(f"Error fetching M3U playlist {url}: {e}")
        raise ProviderError(f"Failed to fetch M3U playlist: {e}") from e

    if not response.text.strip():
        raise ProviderError("Failed to fetch M3U playlist: Empty response from provider")
    return response.text
