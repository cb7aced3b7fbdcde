"""Search-trend source: pytrends → trends24 → regional sections → forum → curated."""

import random
import re
from dataclasses import replace

from ..config import Credentials, source_options
from ..log import get_logger
from ..models import SourceKind, TrendItem
from ..scoring import score_headline
from .base import (
    CuratedStrategy,
    SourceAdapter,
    Strategy,
    fetch_soup,
    iter_selector_nodes,
    node_text,
    utc_now,
)
from .curated import SEARCH_TOPICS, curated_items
from .news import RegionalSectionsStrategy
from .reddit import RedditSource

TRENDS24_URL = "https://trends24.in/india/"
TRENDS24_SELECTORS = [
    ".google-trends",
    ".search-trends",
    '[data-source="google"]',
    ".trending-searches",
    'div[class*="search"]',
]

ORDINAL = re.compile(r"^\d+\.?\s*")

GEO_TO_PN = {
    "IN": "india",
    "US": "united_states",
    "GB": "united_kingdom",
    "AU": "australia",
}


class PyTrendsStrategy(Strategy):
    name = "google_trends"

    def __init__(self, geo: str = "IN", clock=utc_now):
        self.geo = geo
        self.clock = clock

    def _geo_to_pn(self) -> str:
        return GEO_TO_PN.get(self.geo, "india")

    def attempt(self) -> list[TrendItem]:
        from pytrends.request import TrendReq

        pytrends = TrendReq(hl="en-US", tz=330)  # IST offset
        trending = pytrends.trending_searches(pn=self._geo_to_pn())

        now = self.clock()
        items = []
        for _, row in trending.head(10).iterrows():
            title = str(row.iloc[0]).strip()
            if title:
                items.append(TrendItem(
                    title=title,
                    source_name="Google Trends",
                    source_kind=SourceKind.SEARCH_TREND,
                    score=score_headline(title),
                    published_at=now,
                    metrics={"traffic": "Trending"},
                ))
        return items


class Trends24SearchStrategy(Strategy):
    """Google-side trends from the trends24 aggregator page."""

    name = "trends24_google"

    def __init__(self, clock=utc_now):
        self.clock = clock

    def attempt(self) -> list[TrendItem]:
        soup = fetch_soup(TRENDS24_URL, timeout=10)
        now = self.clock()
        titles: list[str] = []
        for _, nodes in iter_selector_nodes(soup, TRENDS24_SELECTORS, descendants="a, span, div"):
            for node in nodes:
                if len(titles) >= 15:
                    break
                text = node_text(node)
                if not 2 < len(text) < 100 or "Twitter" in text or "#" in text:
                    continue
                cleaned = ORDINAL.sub("", text).strip()
                if cleaned and cleaned not in titles:
                    titles.append(cleaned)
            if len(titles) >= 10:
                break

        return [
            TrendItem(
                title=title,
                source_name="trends24.in (Google)",
                source_kind=SourceKind.SEARCH_TREND,
                score=score_headline(title),
                published_at=now,
                metrics={"traffic": "High"},
            )
            for title in titles[:12]
        ]


class ForumTrendsStrategy(Strategy):
    """Live forum strategies, relabelled as search trends."""

    name = "forum_trends"

    def __init__(self, forum: RedditSource):
        self.forum = forum

    def attempt(self) -> list[TrendItem]:
        for strategy in self.forum.live_strategies:
            items = self.forum.run_strategy(strategy)
            if items:
                return [replace(item, source_kind=SourceKind.SEARCH_TREND) for item in items]
        return []


class TrendsSource(SourceAdapter):
    name = "search_trends"

    def __init__(self, config: dict = None, credentials: Credentials = None,
                 rng: random.Random = None, clock=utc_now, forum: RedditSource = None):
        super().__init__()
        config = config or {}
        options = source_options(config, "google_trends")
        self.rng = rng or random.Random()
        self.clock = clock
        forum = forum or RedditSource(config, credentials, self.rng, clock)
        self.strategies = [
            PyTrendsStrategy(options.get("geo", "IN"), clock),
            Trends24SearchStrategy(clock),
            RegionalSectionsStrategy(SourceKind.SEARCH_TREND, options.get("sections"), clock=clock),
            ForumTrendsStrategy(forum),
            CuratedStrategy(self._curated),
        ]

    def _curated(self) -> list[TrendItem]:
        get_logger().debug("search_trends: using curated topics")
        return curated_items(SEARCH_TOPICS, SourceKind.SEARCH_TREND, "India News Trends",
                             self.clock(), self.rng)
