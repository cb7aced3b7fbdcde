"""Trend-list source: trends24 → getdaytrends → curated."""

import random
import re
from dataclasses import replace
from urllib.parse import quote

from ..config import Credentials
from ..models import SourceKind, TrendItem
from ..scoring import categorize_trend, is_viral_trend_text, score_trend, trend_content_type
from .base import (
    CuratedStrategy,
    SourceAdapter,
    Strategy,
    fetch_soup,
    iter_selector_nodes,
    node_href,
    node_text,
    utc_now,
)
from .curated import SOCIAL_TOPICS, curated_items

TOP_N = 15
MIN_SCORE = 5

_ORDINAL = re.compile(r"^\d+\.?\s*")
_TWEET_COUNT = re.compile(r"\s*\d*[.,]?\d*\s*[KM]?\s*tweets.*$", re.I)


def clean_trend(text: str) -> str:
    """Drop leading rank numbers and trailing 'N tweets' counters."""
    return _TWEET_COUNT.sub("", _ORDINAL.sub("", text.strip())).strip()


def search_url(title: str) -> str:
    return f"https://twitter.com/search?q={quote(title)}"


class _TrendListStrategy(Strategy):
    """Scrapes a trend-list page; candidates kept when score >= 5 or viral."""

    url = ""
    source_label = ""
    selectors: list = []
    max_candidates = 25

    def __init__(self, clock=utc_now):
        self.clock = clock

    def attempt(self) -> list[TrendItem]:
        soup = fetch_soup(self.url, timeout=10)
        now = self.clock()
        items: list[TrendItem] = []
        seen = set()

        for _, nodes in iter_selector_nodes(soup, self.selectors):
            for node in nodes:
                if len(items) >= self.max_candidates:
                    break
                text = node_text(node)
                if not 1 < len(text) < 120:
                    continue
                title = clean_trend(text)
                if not title or title in seen:
                    continue
                seen.add(title)
                score = score_trend(title)
                if score < MIN_SCORE and not is_viral_trend_text(title):
                    continue
                items.append(TrendItem(
                    title=title,
                    source_name=self.source_label,
                    source_kind=SourceKind.SOCIAL_A,
                    score=score,
                    url=node_href(node, self.url) or search_url(title),
                    published_at=now,
                    metrics={"type": trend_content_type(title), "category": categorize_trend(title)},
                ))
            if len(items) >= TOP_N:
                break

        items.sort(key=lambda i: i.score, reverse=True)
        return items[:TOP_N]


class Trends24Strategy(_TrendListStrategy):
    name = "trends24"
    url = "https://trends24.in/india/"
    source_label = "trends24.in"
    selectors = [
        ".trend-card__list .trend-card__list-item",
        ".trending-item",
        ".trend-item",
        'a[href*="twitter.com"]',
        '[class*="trend"]',
        ".hashtag-item",
        ".trending-topic",
    ]


class GetDayTrendsStrategy(_TrendListStrategy):
    name = "getdaytrends"
    url = "https://getdaytrends.com/india/"
    source_label = "getdaytrends.com"
    selectors = [
        ".trend",
        ".trend-item",
        ".hashtag",
        "[data-trend]",
        "td a",
        ".trending-topic",
        ".viral-trend",
    ]


class TwitterSource(SourceAdapter):
    name = "twitter"

    def __init__(self, config: dict = None, credentials: Credentials = None,
                 rng: random.Random = None, clock=utc_now):
        super().__init__()
        self.rng = rng or random.Random()
        self.clock = clock
        self.strategies = [
            Trends24Strategy(clock),
            GetDayTrendsStrategy(clock),
            CuratedStrategy(self._curated),
        ]

    def _curated(self) -> list[TrendItem]:
        items = curated_items(SOCIAL_TOPICS, SourceKind.SOCIAL_A, "Curated Trends", self.clock(), self.rng)
        return [
            replace(
                item,
                score=score_trend(item.title),
                url=search_url(item.title),
                metrics={"type": trend_content_type(item.title), "category": categorize_trend(item.title)},
            )
            for item in items
        ]
