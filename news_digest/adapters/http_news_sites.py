"""Front-page scrapers for the Taiwanese news sites feeding the digest."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable, List, Optional, Sequence
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup, Tag
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from news_digest.domain.models import Candidate

if TYPE_CHECKING:
    from news_digest.workers import RunLog

LOGGER = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0
DEFAULT_DELAY = 1.0
DEFAULT_MAX_ITEMS = 50
TITLE_MAX_CHARS = 200
SUMMARY_MAX_CHARS = 300
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/124.0 Safari/537.36"
)


@dataclass(frozen=True)
class NewsSource:
    """A front page and the CSS selectors used to pull items off it."""

    name: str
    url: str
    item_selector: str
    title_selector: str
    summary_selector: str
    link_selector: str = "a"


DEFAULT_SOURCES: Sequence[NewsSource] = (
    NewsSource(
        name="聯合新聞網",
        url="https://udn.com/news/index",
        item_selector="article",
        title_selector="h2, h3",
        summary_selector="p",
    ),
    NewsSource(
        name="自由時報",
        url="https://www.ltn.com.tw/",
        item_selector="article, .news-item",
        title_selector="h2, h3, .title",
        summary_selector="p, .summary",
    ),
    NewsSource(
        name="中時新聞網",
        url="https://www.chinatimes.com/",
        item_selector=".news-item, article",
        title_selector="h2, h3",
        summary_selector="p",
    ),
)


def create_session() -> requests.Session:
    """Create a requests session with connection-level retries."""
    session = requests.Session()
    retries = Retry(
        total=3,
        backoff_factor=0.3,
        status_forcelist=(500, 502, 503, 504),
    )
    adapter = HTTPAdapter(max_retries=retries)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.headers.update(
        {
            "User-Agent": USER_AGENT,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "zh-TW,zh;q=0.9",
        }
    )
    return session


def _first_text(node: Tag, selector: str) -> str:
    match = node.select_one(selector)
    if match is None:
        return ""
    return match.get_text(" ", strip=True)


def _first_href(node: Tag, selector: str) -> Optional[str]:
    for match in node.select(selector):
        href = (match.get("href") or "").strip()
        if href:
            return href
    return None


def normalize_url(href: str, base_url: str) -> str:
    value = href.strip()
    if value.startswith("http://") or value.startswith("https://"):
        return value
    return urljoin(base_url, value)


def parse_listing(
    html: str,
    source: NewsSource,
    *,
    max_items: int = DEFAULT_MAX_ITEMS,
    fetched_at: Optional[datetime] = None,
) -> List[Candidate]:
    """Extract candidates from a front page; items without a title or link are skipped."""
    soup = BeautifulSoup(html, "html.parser")
    stamp = (fetched_at or datetime.now(timezone.utc)).isoformat()
    items: List[Candidate] = []
    for node in soup.select(source.item_selector):
        if len(items) >= max_items:
            break
        title = _first_text(node, source.title_selector)
        href = _first_href(node, source.link_selector)
        if not title or not href:
            continue
        items.append(
            Candidate(
                title=title[:TITLE_MAX_CHARS],
                summary=_first_text(node, source.summary_selector)[:SUMMARY_MAX_CHARS],
                url=normalize_url(href, source.url),
                source=source.name,
                fetched_at=stamp,
            )
        )
    return items


def fetch_from_source(
    session: requests.Session,
    source: NewsSource,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    max_items: int = DEFAULT_MAX_ITEMS,
    log: Optional["RunLog"] = None,
) -> List[Candidate]:
    """Fetch and parse one source. Failures are logged and yield no items."""
    debug = log.debug if log else LOGGER.debug
    debug("fetching %s (%s)", source.name, source.url)
    try:
        resp = session.get(source.url, timeout=timeout)
        resp.raise_for_status()
        if not resp.encoding or resp.encoding.lower() == "iso-8859-1":
            resp.encoding = resp.apparent_encoding
        items = parse_listing(resp.text, source, max_items=max_items)
    except requests.RequestException as exc:
        (log.error if log else LOGGER.error)("%s fetch failed: %s", source.name, exc)
        return []
    (log.info if log else LOGGER.info)("%s fetched %d items", source.name, len(items))
    return items


def fetch_all_news(
    sources: Sequence[NewsSource] = DEFAULT_SOURCES,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    delay: float = DEFAULT_DELAY,
    max_items: int = DEFAULT_MAX_ITEMS,
    session: Optional[requests.Session] = None,
    log: Optional["RunLog"] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> List[Candidate]:
    """Fetch every source in order, pausing ``delay`` seconds between requests."""
    owns_session = session is None
    active = session or create_session()
    collected: List[Candidate] = []
    try:
        for idx, source in enumerate(sources, start=1):
            collected.extend(fetch_from_source(active, source, timeout=timeout, max_items=max_items, log=log))
            if delay > 0 and idx < len(sources):
                sleep(delay)
    finally:
        if owns_session:
            active.close()
    (log.info if log else LOGGER.info)("fetched %d items from %d sources", len(collected), len(sources))
    return collected


__all__ = [
    "DEFAULT_SOURCES",
    "NewsSource",
    "create_session",
    "fetch_all_news",
    "fetch_from_source",
    "normalize_url",
    "parse_listing",
]
