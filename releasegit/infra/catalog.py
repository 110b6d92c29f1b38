"""
Release catalog infrastructure for releasegit.

A catalog lists the releases of the upstream project. The HTML catalog
scrapes the download page, which publishes one table row per release:

    | archive link | ... | version | ... | date |

Column positions are configurable. Nothing here orders the releases;
HistoryUpdater does that explicitly.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup

from ..domain.release import Release
from ..errors import CatalogError

logger = logging.getLogger(__name__)

DEFAULT_COLUMNS = {"link": 0, "version": 2, "date": 4}

DATE_FORMATS = [
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%d %b %Y",
    "%d %B %Y",
    "%b %d, %Y",
    "%B %d, %Y",
    "%a %b %d %H:%M:%S %Z %Y",
    "%a, %d %b %Y %H:%M:%S %Z",
]


def parse_release_date(text: str) -> datetime:
    """
    Parse a release date as shown on a download page.

    ISO 8601 is tried first, then a list of common human formats. Dates
    without a zone are taken as UTC.

    Raises:
        CatalogError: If no format matches
    """
    text = " ".join(text.split())
    if not text:
        raise CatalogError("Empty release date")

    parsed = None
    try:
        parsed = datetime.fromisoformat(text.replace('Z', '+00:00'))
    except ValueError:
        for fmt in DATE_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue

    if parsed is None:
        raise CatalogError(f"Unrecognized release date: {text!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class ReleaseCatalog:
    """Source of the release list."""

    def list(self) -> List[Release]:
        raise NotImplementedError


class StaticReleaseCatalog(ReleaseCatalog):
    """Catalog over a fixed list of releases, in the order given."""

    def __init__(self, releases: Iterable[Release]):
        self.releases = list(releases)

    def list(self) -> List[Release]:
        return list(self.releases)


class HtmlReleaseCatalog(ReleaseCatalog):
    """
    Scrapes releases from an HTML download page.

    Example:
        catalog = HtmlReleaseCatalog("http://downloads.datomic.com/free.html")
        for release in catalog.list():
            print(release.version, release.archive_url)
    """

    def __init__(
        self,
        url: str,
        session: Optional[requests.Session] = None,
        timeout: int = 30,
        columns: Optional[Dict[str, int]] = None,
        user_agent: Optional[str] = None
    ):
        """
        Initialize HtmlReleaseCatalog.

        Args:
            url: Download page URL
            session: requests session (creates one if None)
            timeout: Request timeout in seconds
            columns: Cell indices of the "link", "version" and "date" columns
            user_agent: User-Agent header sent with the request
        """
        self.url = url
        self.session = session or requests.Session()
        self.timeout = timeout
        self.columns = {**DEFAULT_COLUMNS, **(columns or {})}
        self.user_agent = user_agent

    def fetch_page(self) -> str:
        headers = {'User-Agent': self.user_agent} if self.user_agent else {}
        try:
            response = self.session.get(self.url, timeout=self.timeout, headers=headers)
            response.raise_for_status()
        except requests.RequestException as e:
            raise CatalogError(f"Could not fetch release page {self.url}: {e}") from e
        return response.text

    def list(self) -> List[Release]:
        logger.info(f"Reading releases from {self.url}")
        releases = self.parse(self.fetch_page())
        logger.debug(f"Found {len(releases)} releases")
        return releases

    def parse(self, html: str) -> List[Release]:
        """Extract releases from the page's release table."""
        soup = BeautifulSoup(html, "html.parser")
        rows = soup.select("table > tbody > tr") or soup.select("table tr")

        releases = []
        for row in rows:
            release = self._parse_row(row.find_all("td"))
            if release is not None:
                releases.append(release)
        return releases

    def _parse_row(self, cells) -> Optional[Release]:
        needed = max(self.columns.values())
        if len(cells) <= needed:
            # Header rows use <th> and have no <td> cells
            return None

        link = cells[self.columns["link"]].find("a")
        version = cells[self.columns["version"]].get_text(strip=True)
        if link is None or not link.get("href") or not version:
            logger.debug(f"Skipping row without link or version: {[c.get_text(strip=True) for c in cells]}")
            return None

        filename = link.get_text(strip=True) or link["href"].rsplit('/', 1)[-1]
        return Release(
            version=version,
            filename=filename,
            archive_url=urljoin(self.url, link["href"]),
            published_at=parse_release_date(cells[self.columns["date"]].get_text(" ", strip=True)),
        )
