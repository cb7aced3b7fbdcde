"""News source: GNews → MediaStack → regional news sections → curated."""

import random
from dataclasses import replace
from datetime import timedelta

from ..config import NEWS_WINDOW_HOURS, Credentials, extract_keywords, source_options
from ..crossmatch import deduplicate_news
from ..log import get_logger
from ..models import SourceKind, TrendItem
from ..scoring import score_headline
from .base import (
    CuratedStrategy,
    SourceAdapter,
    Strategy,
    clean_headline,
    fetch_soup,
    http_get,
    is_valid_headline,
    iter_selector_nodes,
    node_href,
    node_text,
    parse_timestamp,
    utc_now,
    within_window,
)
from .curated import NEWS_TOPICS, curated_items

GNEWS_URL = "https://gnews.io/api/v4/search"
MEDIASTACK_URL = "http://api.mediastack.com/v1/news"

VIRAL_QUERY = (
    "viral OR trending OR breaking OR exclusive OR watch OR popular OR shares "
    "OR social media OR buzz OR sensation OR controversy OR backlash OR outrage "
    "OR massive OR epic OR incredible OR stunning"
)
MEDIASTACK_KEYWORDS = "viral,trending,breaking,popular,watch,latest,exclusive,video,shares,social media"

REGIONAL_SECTIONS = [
    ("https://www.indiatoday.in/trending-news", "India Today"),
    ("https://www.indiatoday.in/entertainment", "India Today Entertainment"),
    ("https://www.hindustantimes.com/entertainment", "Hindustan Times Entertainment"),
    ("https://timesofindia.indiatimes.com/etimes/trending", "Times of India Etimes"),
    ("https://indianexpress.com/section/trending/", "Indian Express Trending"),
    ("https://www.news18.com/trending", "News18"),
    ("https://www.news18.com/viral", "News18 Viral"),
    ("https://timesofindia.indiatimes.com/trending-topics", "Times of India"),
    ("https://www.hindustantimes.com/trending", "Hindustan Times"),
    ("https://www.republicworld.com/trending-news", "Republic World"),
    ("https://www.freepressjournal.in/viral", "Free Press Journal"),
    ("https://www.indiatv.in/viral", "India TV Viral"),
    ("https://www.dnaindia.com/viral", "DNA India Viral"),
]

SECTION_SELECTORS = [
    "h1, h2, h3",
    ".trending-story",
    ".headline",
    ".story-title",
    ".news-title",
    '[class*="trend"]',
    '[class*="viral"]',
    '[class*="popular"]',
    ".top-story",
    ".breaking-news",
    ".story-card h3",
    ".article-title",
]


def _news_item(title, description, source_name, source_url, url, published, api) -> TrendItem:
    title = " ".join(title.split())
    return TrendItem(
        title=title,
        source_name=source_name,
        source_kind=SourceKind.NEWS,
        score=score_headline(title, source_url or ""),
        url=url,
        published_at=published,
        metrics={"api": api, "description": description or ""},
        keywords=tuple(extract_keywords(f"{title} {description or ''}")),
    )


def _keep_recent(articles, now, name):
    """Client-side re-check of the window; providers return stale items anyway."""
    logger = get_logger()
    for article, published in articles:
        if within_window(published, now, NEWS_WINDOW_HOURS):
            yield article, published
        else:
            logger.debug("%s: dropped stale article %r (%s)", name, article.get("title"), published)


class GNewsStrategy(Strategy):
    name = "gnews"

    def __init__(self, api_key: str, clock=utc_now):
        self.api_key = api_key
        self.clock = clock

    @property
    def is_available(self) -> bool:
        return bool(self.api_key)

    def attempt(self) -> list[TrendItem]:
        now = self.clock()
        since = now - timedelta(hours=NEWS_WINDOW_HOURS)
        r = http_get(GNEWS_URL, params={
            "token": self.api_key,
            "country": "in",
            "lang": "en",
            "q": VIRAL_QUERY,
            "sortby": "publishedAt",
            "max": 15,
            "from": since.strftime("%Y-%m-%dT%H:%M:%SZ"),
            "to": now.strftime("%Y-%m-%dT%H:%M:%SZ"),
        }, timeout=10)
        articles = r.json().get("articles") or []

        dated = [(a, parse_timestamp(a.get("publishedAt"))) for a in articles if a.get("title")]
        return [
            _news_item(
                a["title"], a.get("description"),
                (a.get("source") or {}).get("name", "GNews"),
                (a.get("source") or {}).get("url", ""),
                a.get("url"), published, "GNews",
            )
            for a, published in _keep_recent(dated, now, self.name)
        ]


class MediaStackStrategy(Strategy):
    name = "mediastack"

    def __init__(self, api_key: str, clock=utc_now):
        self.api_key = api_key
        self.clock = clock

    @property
    def is_available(self) -> bool:
        return bool(self.api_key)

    def attempt(self) -> list[TrendItem]:
        now = self.clock()
        since = now - timedelta(hours=NEWS_WINDOW_HOURS)
        r = http_get(MEDIASTACK_URL, params={
            "access_key": self.api_key,
            "countries": "in",
            "languages": "en",
            "sort": "popularity",
            "categories": "general,entertainment,sports,technology",
            "keywords": MEDIASTACK_KEYWORDS,
            "limit": 15,
            "date": f"{since:%Y-%m-%d},{now:%Y-%m-%d}",
        }, timeout=10)
        articles = r.json().get("data") or []

        dated = [(a, parse_timestamp(a.get("published_at"))) for a in articles if a.get("title")]
        return [
            _news_item(
                a["title"], a.get("description"),
                a.get("source") or "MediaStack",
                a.get("source") or "",
                a.get("url"), published, "MediaStack",
            )
            for a, published in _keep_recent(dated, now, self.name)
        ]


def scrape_section(url: str, source_name: str, kind: SourceKind, now=None) -> list[TrendItem]:
    """Headlines from one news listing page, best selectors first."""
    soup = fetch_soup(url, timeout=8)
    found: list[TrendItem] = []
    seen = set()

    for _, nodes in iter_selector_nodes(soup, SECTION_SELECTORS):
        for node in nodes:
            if len(found) >= 10:
                break
            text = node_text(node)
            if not is_valid_headline(text):
                continue
            title = clean_headline(text)
            if not title or title.lower() in seen:
                continue
            seen.add(title.lower())
            found.append(TrendItem(
                title=title,
                source_name=source_name,
                source_kind=kind,
                score=score_headline(title, url),
                url=node_href(node, url) or url,
                published_at=now,
                metrics={"traffic": "Trending"},
                keywords=tuple(extract_keywords(title)),
            ))
        if len(found) >= 8:
            break

    return found[:8]


class RegionalSectionsStrategy(Strategy):
    """Scrapes regional 'trending' sections in order until enough headlines."""

    name = "regional_sections"

    def __init__(self, kind: SourceKind, sections=None, enough: int = 10, clock=utc_now):
        self.kind = kind
        self.sections = sections or REGIONAL_SECTIONS
        self.enough = enough
        self.clock = clock

    def attempt(self) -> list[TrendItem]:
        logger = get_logger()
        now = self.clock()
        collected: list[TrendItem] = []
        for url, name in self.sections:
            try:
                items = scrape_section(url, name, self.kind, now)
            except Exception as e:
                logger.debug("regional_sections: %s failed: %s", name, e)
                continue
            if items:
                logger.debug("regional_sections: %d headlines from %s", len(items), name)
                collected.extend(items)
                if len(collected) >= self.enough:
                    break

        seen = set()
        unique = []
        for item in collected:
            if item.title.lower() not in seen:
                seen.add(item.title.lower())
                unique.append(item)
        return unique[:self.enough]


class NewsSource(SourceAdapter):
    name = "news"

    def __init__(self, config: dict = None, credentials: Credentials = None,
                 rng: random.Random = None, clock=utc_now):
        super().__init__()
        options = source_options(config or {}, "news")
        credentials = credentials or Credentials()
        self.rng = rng or random.Random()
        self.clock = clock

        self.gnews = GNewsStrategy(credentials.gnews, clock)
        self.mediastack = MediaStackStrategy(credentials.mediastack, clock)
        self.strategies = [
            self.gnews,
            self.mediastack,
            RegionalSectionsStrategy(SourceKind.NEWS, options.get("sections"), clock=clock),
            CuratedStrategy(self._curated),
        ]

    def _curated(self) -> list[TrendItem]:
        return [
            replace(item, keywords=tuple(extract_keywords(item.title)))
            for item in curated_items(NEWS_TOPICS, SourceKind.NEWS, "Curated News", self.clock(), self.rng)
        ]

    def finalize(self, items: list[TrendItem]) -> list[TrendItem]:
        return deduplicate_news(items)

    def fetch_from_apis(self) -> list[TrendItem]:
        """Both news APIs merged and deduplicated; no scrape or curated fallback."""
        return deduplicate_news(self.run_strategy(self.gnews) + self.run_strategy(self.mediastack))
