"""Strategy chain, SourceAdapter ABC, and shared HTTP/scrape helpers."""

import calendar
import re
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup

from ..config import BROWSER_UA
from ..log import get_logger, log
from ..models import TrendItem

HTML_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"


class RateLimited(requests.HTTPError):
    """Upstream answered 429."""


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ─────────────────────────────────────────────────────
# HTTP
# ─────────────────────────────────────────────────────
def http_get(url: str, params: dict = None, headers: dict = None, timeout: float = 10) -> requests.Response:
    """GET with a browser UA; raises RateLimited on 429 and HTTPError on 4xx/5xx."""
    merged = {"User-Agent": BROWSER_UA}
    merged.update(headers or {})
    r = requests.get(url, params=params, headers=merged, timeout=timeout)
    if r.status_code == 429:
        raise RateLimited(f"429 Too Many Requests: {url}", response=r)
    r.raise_for_status()
    return r


def fetch_soup(url: str, timeout: float = 10) -> BeautifulSoup:
    r = http_get(url, headers={"Accept": HTML_ACCEPT}, timeout=timeout)
    return BeautifulSoup(r.text, "html.parser")


# ─────────────────────────────────────────────────────
# Time window
# ─────────────────────────────────────────────────────
def parse_timestamp(value) -> datetime | None:
    """ISO-8601 string, epoch seconds, or feedparser struct_time -> aware UTC datetime."""
    if value is None or value == "":
        return None
    try:
        if isinstance(value, (int, float)):
            return datetime.fromtimestamp(value, tz=timezone.utc)
        if hasattr(value, "tm_year"):
            return datetime.fromtimestamp(calendar.timegm(value), tz=timezone.utc)
        parsed = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
    except (ValueError, TypeError, OverflowError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def within_window(published: datetime | None, now: datetime, hours: float) -> bool:
    """True when published falls in [now - hours, now]. Unknown dates are rejected."""
    if published is None:
        return False
    return now - timedelta(hours=hours) <= published <= now


def hours_ago(published: datetime, now: datetime) -> int:
    return int((now - published).total_seconds() // 3600)


# ─────────────────────────────────────────────────────
# Scraping
# ─────────────────────────────────────────────────────
_ORDINAL = re.compile(r"^\d+\.?\s*")
_SOURCE_TAIL = re.compile(r"\s*\|\s*.*$")
_MARKUP = re.compile(r"[^\w\s\-'\"‘’“”ऀ-ॿ]")
_SPACES = re.compile(r"\s+")

NEWS_RELEVANCE_TERMS = [
    "india", "indian", "hindi", "desi", "government", "minister", "election",
    "court", "supreme", "parliament", "pm", "modi", "congress", "bjp", "covid",
    "vaccine", "economy", "rupee", "cricket", "ipl", "bollywood", "actor",
    "film", "movie", "celebrity", "star", "technology", "startup", "company",
    "market", "share", "price", "stock", "weather", "rain", "storm",
    "temperature", "flood", "drought", "festival", "celebration", "wedding",
    "death", "born", "award", "police", "arrest", "crime", "accident", "fire",
    "rescue", "school", "college", "university", "student", "exam", "result",
    "viral", "trending", "youtube", "instagram", "twitter", "social",
    "comedian", "comedy", "meme", "funny", "video", "content", "creator",
    "influencer", "youtuber", "animal", "wildlife", "zoo", "forest",
    "entertainment", "show", "episode", "series", "web series", "ott",
    "netflix", "amazon", "hotstar", "gaming", "esports", "bgmi", "mobile",
    "music", "song", "singer", "album", "rap", "hip hop",
]

EXCLUDE_PATTERNS = [
    re.compile(p, re.I) for p in (
        r"subscribe", r"follow", r"share", r"like", r"comment", r"login",
        r"advertisement", r"sponsored", r"promoted", r"cookie", r"privacy",
        r"terms", r"contact", r"about", r"home", r"menu", r"search",
        r"^\d+$", r"^[^a-z]*$", r"seo", r"marketing", r"template", r"tool",
        r"insight", r"keyword", r"audit", r"traffic", r"^how to",
    )
]


def clean_headline(text: str) -> str:
    """Strip ordinals, '| Source' tails, markup characters; collapse whitespace."""
    text = _ORDINAL.sub("", text.strip())
    text = _SOURCE_TAIL.sub("", text)
    text = _MARKUP.sub(" ", text)
    text = _SPACES.sub(" ", text)
    return text.strip()[:120]


def is_valid_headline(text: str) -> bool:
    """Length bounds + relevance keyword + no navigation/ad boilerplate."""
    if not text or len(text) < 15 or len(text) > 200:
        return False
    lower = text.lower()
    if not any(term in lower for term in NEWS_RELEVANCE_TERMS):
        return False
    return not any(p.search(text) for p in EXCLUDE_PATTERNS)


def iter_selector_nodes(soup: BeautifulSoup, selectors, descendants: str = None):
    """Yield (selector, nodes) in priority order; callers stop once satisfied."""
    for selector in selectors:
        nodes = soup.select(selector)
        if descendants:
            nodes = [d for n in nodes for d in n.select(descendants)]
        if nodes:
            yield selector, nodes


def node_text(node) -> str:
    return node.get_text(" ", strip=True)


def node_href(node, base: str = None) -> str | None:
    """Link of the node or its first anchor, absolute when base is given."""
    href = node.get("href")
    if not href:
        anchor = node.find("a")
        href = anchor.get("href") if anchor else None
    if href and base:
        return urljoin(base, href)
    return href or None


def dedupe_titles(items: list[TrendItem]) -> list[TrendItem]:
    """Case-insensitive exact-title dedup; first occurrence wins."""
    seen = set()
    unique = []
    for item in items:
        key = item.title.lower().strip()
        if key and key not in seen:
            seen.add(key)
            unique.append(item)
    return unique


# ─────────────────────────────────────────────────────
# Strategy chain
# ─────────────────────────────────────────────────────
class Strategy(ABC):
    """One attempt in an adapter's ordered fallback chain."""

    name: str = "unknown"
    synthetic: bool = False

    @property
    def is_available(self) -> bool:
        """False when a required credential is missing; the chain skips it."""
        return True

    @abstractmethod
    def attempt(self) -> list[TrendItem] | None:
        """Return items, or None/[] to let the chain move on."""
        ...


class SourceAdapter(ABC):
    """Runs its strategies in order and returns the first non-empty result.

    Never raises: every strategy failure is logged and the next one tried.
    """

    name: str = "unknown"

    def __init__(self):
        self.strategies: list[Strategy] = []

    @property
    def is_available(self) -> bool:
        return True

    def fetch(self, include_synthetic: bool = True, skip=()) -> list[TrendItem]:
        """Items from the first strategy that yields any; strategies named in skip are not run."""
        logger = get_logger()
        if not self.is_available:
            logger.warning("%s: credential not configured, returning no items", self.name)
            return []

        for strategy in self.strategies:
            if strategy.synthetic and not include_synthetic:
                continue
            if strategy.name in skip:
                continue
            items = self.run_strategy(strategy)
            if items:
                log(f"{self.name}: {len(items)} items via {strategy.name}")
                return self.finalize(items)

        logger.warning("%s: all strategies exhausted", self.name)
        return []

    def run_strategy(self, strategy: Strategy) -> list[TrendItem]:
        """One guarded attempt: skipped, failed and empty all come back as []."""
        logger = get_logger()
        if not strategy.is_available:
            logger.debug("%s/%s: skipped (not configured)", self.name, strategy.name)
            return []
        try:
            items = strategy.attempt()
        except RateLimited as e:
            logger.warning("%s/%s: rate limited: %s", self.name, strategy.name, e)
            return []
        except Exception as e:
            logger.warning("%s/%s: failed: %s", self.name, strategy.name, e)
            return []
        if not items:
            logger.debug("%s/%s: no items", self.name, strategy.name)
            return []
        return list(items)

    def finalize(self, items: list[TrendItem]) -> list[TrendItem]:
        """Post-process the winning strategy's items."""
        return items


class CuratedStrategy(Strategy):
    """Closes every chain. Wraps a generator of synthetic items; never fails."""

    name = "curated"
    synthetic = True

    def __init__(self, generate):
        self._generate = generate

    def attempt(self) -> list[TrendItem]:
        return self._generate()
